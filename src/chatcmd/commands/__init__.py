from __future__ import annotations

from .command import (
    Command,
    CommandAction,
    CommandConfigError,
    CommandError,
    DuplicateCommandError,
)
from .help import CommandArgument, format_argument, format_help_line
from .registry import CommandRegistry
from .result import (
    ADMIN,
    NO_REPLY,
    USER,
    CommandPermission,
    CommandResult,
    EphemeralReply,
    ErrorReply,
    NoReply,
    PublicReply,
    deliver,
    normalize_result,
)
from .runner import CommandRunner, RunOutcome

__all__ = [
    "ADMIN",
    "NO_REPLY",
    "USER",
    "Command",
    "CommandAction",
    "CommandArgument",
    "CommandConfigError",
    "CommandError",
    "CommandPermission",
    "CommandRegistry",
    "CommandResult",
    "CommandRunner",
    "DuplicateCommandError",
    "EphemeralReply",
    "ErrorReply",
    "NoReply",
    "PublicReply",
    "RunOutcome",
    "deliver",
    "format_argument",
    "format_help_line",
    "normalize_result",
]
