from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal

if TYPE_CHECKING:
    from ..message import Message

type CommandPermission = Literal["user", "admin"]

USER: CommandPermission = "user"
ADMIN: CommandPermission = "admin"


@dataclass(frozen=True, slots=True)
class NoReply:
    pass


@dataclass(frozen=True, slots=True)
class PublicReply:
    text: str


@dataclass(frozen=True, slots=True)
class EphemeralReply:
    text: str


@dataclass(frozen=True, slots=True)
class ErrorReply:
    error: BaseException | str


type CommandResult = NoReply | PublicReply | EphemeralReply | ErrorReply

NO_REPLY = NoReply()


def normalize_result(value: object, permission: CommandPermission) -> CommandResult:
    """Turn an action's return value into an explicit reply decision.

    Plain strings keep the permission-based routing: admin commands answer
    ephemerally, user commands answer in public. Empty strings and `None`
    produce no reply.
    """
    if value is None:
        return NO_REPLY
    if isinstance(value, NoReply | PublicReply | EphemeralReply | ErrorReply):
        return value
    if isinstance(value, str):
        if not value:
            return NO_REPLY
        if permission == ADMIN:
            return EphemeralReply(value)
        return PublicReply(value)
    raise TypeError(
        f"command actions must return str, None or a reply, got {type(value).__name__}"
    )


async def deliver(message: Message, result: CommandResult) -> None:
    if isinstance(result, PublicReply):
        if result.text:
            await message.reply(result.text)
    elif isinstance(result, EphemeralReply):
        if result.text:
            await message.reply_ephemeral(result.text)
    elif isinstance(result, ErrorReply):
        await message.reply_system_error(result.error)
