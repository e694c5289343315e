from __future__ import annotations

import inspect
from collections.abc import Awaitable, Callable, Iterable
from typing import TYPE_CHECKING

from ..config import ConfigError
from ..logging import get_logger
from .help import CommandArgument, format_help_line
from .result import (
    ADMIN,
    USER,
    CommandPermission,
    CommandResult,
    deliver,
    normalize_result,
)

if TYPE_CHECKING:
    from ..message import Message

logger = get_logger(__name__)

type CommandAction = Callable[[Message, list[str]], object | Awaitable[object]]


class CommandError(RuntimeError):
    pass


class CommandConfigError(ConfigError):
    pass


class DuplicateCommandError(CommandConfigError):
    def __init__(self, keyword: str, *, parent: str | None = None) -> None:
        if parent is None:
            message = f"command {keyword!r} is already registered"
        else:
            message = f"command {parent!r} already has a subcommand {keyword!r}"
        super().__init__(message)
        self.keyword = keyword
        self.parent = parent


def _clean_keyword(keyword: str) -> str:
    if not isinstance(keyword, str):
        raise CommandConfigError("command keyword must be a string")
    cleaned = keyword.strip()
    if not cleaned:
        raise CommandConfigError("command keyword must be a non-empty string")
    return cleaned


class Command:
    """A node in the command tree.

    The keyword triggers the command; it may contain spaces only when the
    command is in phrase mode, because first-pass lookup compares it against a
    single token. Children are owned by their parent and are matched by exact
    token, one level per token. The parent link is only used to build the
    fully-qualified name.
    """

    def __init__(
        self,
        keyword: str,
        action: CommandAction | None = None,
        *,
        description: str = "",
        arguments: Iterable[CommandArgument] = (),
        permission: CommandPermission = USER,
        aliases: Iterable[str] = (),
        phrase: bool = False,
        hidden: bool = False,
    ) -> None:
        self.keyword = _clean_keyword(keyword)
        self.action = action
        self.description = description
        self.arguments: list[CommandArgument] = list(arguments)
        self.permission: CommandPermission = permission
        self.aliases: list[str] = []
        self.phrase = phrase
        self.hidden = hidden
        self.children: dict[str, Command] = {}
        self.registered = False
        self.parent: Command | None = None
        self.alias(*aliases)

    @classmethod
    def sub(cls, keyword: str, action: CommandAction | None = None) -> Command:
        return cls(keyword, action)

    def __repr__(self) -> str:
        return f"Command({self.command_name!r})"

    def do(self, action: CommandAction) -> Command:
        self.action = action
        return self

    def desc(self, description: str) -> Command:
        self.description = description
        return self

    def arg(
        self,
        name: str,
        *,
        required: bool = False,
        default: str | None = None,
        description: str = "",
    ) -> Command:
        self.arguments.append(
            CommandArgument(
                name=name,
                required=required,
                default=default,
                description=description,
            )
        )
        return self

    def admin(self) -> Command:
        self.permission = ADMIN
        return self

    def is_phrase(self, phrase: bool = True) -> Command:
        self.phrase = phrase
        return self

    def alias(self, *keywords: str) -> Command:
        for keyword in keywords:
            cleaned = _clean_keyword(keyword)
            if cleaned not in self.aliases:
                self.aliases.append(cleaned)
        return self

    def hide(self, hidden: bool = True) -> Command:
        self.hidden = hidden
        return self

    def nest(self, child: Command) -> Command:
        if child.registered:
            raise CommandConfigError(
                f"command {child.keyword!r} is registered and can't be nested"
            )
        if child.parent is not None:
            raise CommandConfigError(
                f"command {child.command_name!r} is already nested"
            )
        node: Command | None = self
        while node is not None:
            if node is child:
                raise CommandConfigError(
                    f"command {child.keyword!r} can't be nested inside itself"
                )
            node = node.parent
        if child.keyword in self.children:
            raise DuplicateCommandError(child.keyword, parent=self.command_name)
        self.children[child.keyword] = child
        child.parent = self
        return self

    def matches(self, message: Message) -> bool:
        if self.phrase and message.text.lower().startswith(self.keyword.lower()):
            return True
        return message.first_token in self.aliases

    def find_child(self, token: str) -> Command | None:
        child = self.children.get(token)
        if child is not None:
            return child
        for child in self.children.values():
            if token in child.aliases:
                return child
        return None

    async def run(self, message: Message, step: int = 0) -> CommandResult:
        tokens = message.tokens
        if step + 1 < len(tokens):
            child = self.find_child(tokens[step + 1])
            if child is not None:
                logger.debug(
                    "command.descend",
                    command=self.command_name,
                    subcommand=child.keyword,
                )
                return await child.run(message, step + 1)

        logger.info("command.execute", command=self.keywords)
        result = await self.invoke(message, list(tokens[step + 1 :]))
        await deliver(message, result)
        return result

    async def invoke(self, message: Message, args: list[str]) -> CommandResult:
        if self.action is None:
            raise CommandError(f"command {self.command_name!r} has no action")
        value = self.action(message, args)
        if inspect.isawaitable(value):
            value = await value
        return normalize_result(value, self.permission)

    @property
    def keywords(self) -> str:
        return "|".join([self.command_name, *self.aliases])

    @property
    def command_name(self) -> str:
        parent = self.parent
        if parent is None:
            return self.keyword
        return f"{parent.command_name} {self.keyword}"

    @property
    def help(self) -> list[str]:
        return self._help_lines(with_aliases=False)

    @property
    def help_with_aliases(self) -> list[str]:
        return self._help_lines(with_aliases=True)

    def _help_lines(self, *, with_aliases: bool) -> list[str]:
        if self.hidden:
            return []
        name = self.keywords if with_aliases else self.command_name
        lines = [format_help_line(name, self.arguments, self.description)]
        for child in self.children.values():
            lines.extend(child._help_lines(with_aliases=with_aliases))
        return lines
