from __future__ import annotations

from collections.abc import Iterator
from typing import TYPE_CHECKING

from ..logging import get_logger
from .command import Command, CommandAction, CommandConfigError, DuplicateCommandError

if TYPE_CHECKING:
    from ..message import Message

logger = get_logger(__name__)


class CommandRegistry:
    """Top-level commands, keyed by keyword, in registration order."""

    def __init__(self) -> None:
        self._commands: dict[str, Command] = {}

    def __iter__(self) -> Iterator[Command]:
        return iter(self._commands.values())

    def __len__(self) -> int:
        return len(self._commands)

    def __contains__(self, keyword: object) -> bool:
        return keyword in self._commands

    @property
    def command_ids(self) -> list[str]:
        return list(self._commands)

    def register(self, command: Command) -> Command:
        if command.parent is not None:
            raise CommandConfigError(
                f"subcommand {command.command_name!r} can't be registered top-level"
            )
        if command.keyword in self._commands:
            raise DuplicateCommandError(command.keyword)
        self._commands[command.keyword] = command
        command.registered = True
        logger.debug("registry.register", command=command.keyword)
        return command

    def create(self, keyword: str, action: CommandAction | None = None) -> Command:
        return self.register(Command(keyword, action))

    def find(self, token: str) -> Command | None:
        return self._commands.get(token)

    def find_match(self, message: Message) -> Command | None:
        for command in self._commands.values():
            if command.matches(message):
                return command
        return None

    @property
    def help(self) -> list[str]:
        return [line for command in self for line in command.help]

    @property
    def help_with_aliases(self) -> list[str]:
        return [line for command in self for line in command.help_with_aliases]
