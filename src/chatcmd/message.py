"""Inbound message contract used by command resolution.

The command core only needs a handful of things from a chat message: the raw
text, its whitespace tokens, a way to expand it into independently handled
sub-messages, and the three reply channels. `Message` spells that out as a
protocol; `IncomingMessage` is the transport-backed implementation used by the
CLI and by bridges that don't bring their own message type.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field, replace
from typing import Protocol

from .logging import get_logger
from .transport import MessageRef, RenderedMessage, SendOptions, Transport

logger = get_logger(__name__)


class Message(Protocol):
    @property
    def text(self) -> str: ...

    @property
    def tokens(self) -> Sequence[str]: ...

    @property
    def first_token(self) -> str: ...

    async def all(self) -> Sequence[Message]: ...

    async def reply(self, text: str) -> object: ...

    async def reply_ephemeral(self, text: str) -> object: ...

    async def reply_system_error(self, error: BaseException | str) -> object: ...


def tokenize(text: str) -> tuple[str, ...]:
    return tuple(text.split())


def split_messages(text: str) -> list[str]:
    return [line.strip() for line in text.splitlines() if line.strip()]


def format_system_error(error: BaseException | str) -> str:
    if isinstance(error, BaseException):
        detail = str(error) or error.__class__.__name__
    else:
        detail = error or "unknown error"
    return f"error:\n{detail}"


@dataclass(slots=True)
class BotMessage:
    """A message the bot sent, kept around so it can be edited or reacted to."""

    transport: Transport
    ref: MessageRef
    text: str

    async def edit(self, text: str) -> None:
        ref = await self.transport.edit(ref=self.ref, message=RenderedMessage(text=text))
        if ref is not None:
            self.ref = ref
        self.text = text

    async def add_reaction(self, reaction: str) -> bool:
        return await self.transport.react(ref=self.ref, reaction=reaction)


@dataclass(frozen=True, slots=True)
class IncomingMessage:
    transport: Transport
    ref: MessageRef
    text: str
    split_lines: bool = True
    tokens: tuple[str, ...] = field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "tokens", tokenize(self.text))

    @property
    def first_token(self) -> str:
        return self.tokens[0] if self.tokens else ""

    async def all(self) -> list[IncomingMessage]:
        if not self.split_lines:
            return [self]
        lines = split_messages(self.text)
        if len(lines) <= 1:
            return [self]
        return [replace(self, text=line, split_lines=False) for line in lines]

    async def _send(self, text: str, *, ephemeral: bool) -> BotMessage | None:
        options = SendOptions(reply_to=self.ref, ephemeral=ephemeral)
        sent = await self.transport.send(
            channel_id=self.ref.channel_id,
            message=RenderedMessage(text=text),
            options=options,
        )
        if sent is None:
            logger.info(
                "message.reply_dropped",
                channel_id=self.ref.channel_id,
                message_id=self.ref.message_id,
                ephemeral=ephemeral,
            )
            return None
        return BotMessage(transport=self.transport, ref=sent, text=text)

    async def reply(self, text: str) -> BotMessage | None:
        return await self._send(text, ephemeral=False)

    async def reply_ephemeral(self, text: str) -> BotMessage | None:
        return await self._send(text, ephemeral=True)

    async def reply_system_error(
        self, error: BaseException | str
    ) -> BotMessage | None:
        return await self._send(format_system_error(error), ephemeral=True)
