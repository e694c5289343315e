"""Stable public API for chatcmd command modules and bridges."""

from __future__ import annotations

from .commands import (
    ADMIN,
    USER,
    Command,
    CommandAction,
    CommandArgument,
    CommandConfigError,
    CommandError,
    CommandPermission,
    CommandRegistry,
    CommandResult,
    CommandRunner,
    DuplicateCommandError,
    EphemeralReply,
    ErrorReply,
    NoReply,
    PublicReply,
    RunOutcome,
)
from .config import ConfigError
from .logging import bind_message_context, clear_context, get_logger, suppress_logs
from .message import BotMessage, IncomingMessage, Message
from .plugins import COMMAND_GROUP, load_command_modules, load_command_plugins
from .settings import ChatcmdSettings, load_settings
from .transport import MessageRef, RenderedMessage, SendOptions, Transport

CHATCMD_PLUGIN_API_VERSION = 1

__all__ = [
    # Command tree
    "ADMIN",
    "USER",
    "Command",
    "CommandAction",
    "CommandArgument",
    "CommandPermission",
    "CommandRegistry",
    "CommandRunner",
    "RunOutcome",
    # Results
    "CommandResult",
    "EphemeralReply",
    "ErrorReply",
    "NoReply",
    "PublicReply",
    # Errors
    "CommandConfigError",
    "CommandError",
    "ConfigError",
    "DuplicateCommandError",
    # Messages and transports
    "BotMessage",
    "IncomingMessage",
    "Message",
    "MessageRef",
    "RenderedMessage",
    "SendOptions",
    "Transport",
    # Setup
    "CHATCMD_PLUGIN_API_VERSION",
    "COMMAND_GROUP",
    "ChatcmdSettings",
    "bind_message_context",
    "clear_context",
    "get_logger",
    "load_command_modules",
    "load_command_plugins",
    "load_settings",
    "suppress_logs",
]
