from __future__ import annotations

import sys
from dataclasses import dataclass, field
from itertools import count
from typing import Any, Protocol, TextIO

type ChannelId = int | str
type MessageId = int | str
type UserId = int | str


@dataclass(frozen=True, slots=True)
class MessageRef:
    channel_id: ChannelId
    message_id: MessageId
    raw: Any | None = field(default=None, compare=False, hash=False)
    sender_id: UserId | None = field(default=None, compare=False, hash=False)


@dataclass(frozen=True, slots=True)
class RenderedMessage:
    text: str
    extra: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class SendOptions:
    reply_to: MessageRef | None = None
    notify: bool = True
    ephemeral: bool = False


class Transport(Protocol):
    async def close(self) -> None: ...

    async def send(
        self,
        *,
        channel_id: ChannelId,
        message: RenderedMessage,
        options: SendOptions | None = None,
    ) -> MessageRef | None: ...

    async def edit(
        self,
        *,
        ref: MessageRef,
        message: RenderedMessage,
    ) -> MessageRef | None: ...

    async def react(self, *, ref: MessageRef, reaction: str) -> bool: ...


class ConsoleTransport:
    """Writes outgoing messages to a text stream, one block per message."""

    def __init__(self, stream: TextIO | None = None) -> None:
        self._stream = stream if stream is not None else sys.stdout
        self._ids = count(1)

    def _write(self, line: str) -> None:
        self._stream.write(f"{line}\n")
        self._stream.flush()

    async def close(self) -> None:
        self._stream.flush()

    async def send(
        self,
        *,
        channel_id: ChannelId,
        message: RenderedMessage,
        options: SendOptions | None = None,
    ) -> MessageRef | None:
        prefix = "(only you) " if options is not None and options.ephemeral else ""
        self._write(f"{prefix}{message.text}")
        return MessageRef(channel_id=channel_id, message_id=next(self._ids))

    async def edit(
        self,
        *,
        ref: MessageRef,
        message: RenderedMessage,
    ) -> MessageRef | None:
        self._write(f"(edited #{ref.message_id}) {message.text}")
        return ref

    async def react(self, *, ref: MessageRef, reaction: str) -> bool:
        self._write(f"(#{ref.message_id} :{reaction}:)")
        return True
