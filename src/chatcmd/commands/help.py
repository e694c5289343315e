from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class CommandArgument:
    name: str
    required: bool = False
    default: str | None = None
    description: str = ""


def format_argument(argument: CommandArgument) -> str:
    if argument.required:
        return f"<{argument.name}>"
    if argument.default is not None:
        return f"[{argument.name}={argument.default}]"
    return f"[{argument.name}]"


def format_help_line(
    name: str, arguments: Iterable[CommandArgument], description: str
) -> str:
    parts = [name, *(format_argument(arg) for arg in arguments)]
    if description:
        parts.extend(["-", description])
    return " ".join(parts)
