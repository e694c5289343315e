from __future__ import annotations

from typing import TYPE_CHECKING, Literal

import anyio

from ..logging import bind_message_context, clear_context, get_logger
from .command import Command
from .registry import CommandRegistry

if TYPE_CHECKING:
    from ..message import Message

logger = get_logger(__name__)

type RunOutcome = Literal["noop", "completed", "failed"]


class CommandRunner:
    """Resolves and runs commands for inbound messages.

    A parent message is expanded into its sub-messages, which are handled
    concurrently. Failures stay with the sub-message that raised them: they
    are reported back to the sender and never cancel the siblings.
    """

    def __init__(self, registry: CommandRegistry) -> None:
        self.registry = registry

    def resolve_command(self, message: Message) -> Command | None:
        command = self.registry.find(message.first_token)
        if command is not None:
            return command
        return self.registry.find_match(message)

    async def handle(self, parent_message: Message) -> tuple[RunOutcome, ...]:
        messages = list(await parent_message.all())
        outcomes: list[RunOutcome] = ["noop"] * len(messages)

        async def _run(index: int, message: Message) -> None:
            bind_message_context(message_index=index)
            outcomes[index] = await self.handle_single(message)

        async with anyio.create_task_group() as tg:
            for index, message in enumerate(messages):
                tg.start_soon(_run, index, message)
        return tuple(outcomes)

    async def handle_single(self, message: Message) -> RunOutcome:
        command = self.resolve_command(message)
        if command is None:
            logger.debug("command.no_match", first_token=message.first_token)
            return "noop"
        bind_message_context(command=command.keyword)
        try:
            await command.run(message)
        except Exception as exc:  # noqa: BLE001
            logger.exception(
                "command.failed",
                command=command.keyword,
                error=str(exc),
                error_type=exc.__class__.__name__,
            )
            await self._report_failure(message, exc)
            return "failed"
        finally:
            clear_context()
        return "completed"

    async def _report_failure(self, message: Message, exc: Exception) -> None:
        try:
            await message.reply_system_error(exc)
        except Exception as report_exc:  # noqa: BLE001
            logger.exception(
                "command.error_reply_failed",
                error=str(report_exc),
                error_type=report_exc.__class__.__name__,
            )
