from __future__ import annotations

from functools import partial
from pathlib import Path
from typing import NoReturn, TextIO

import anyio
import anyio.to_thread
import typer

from . import __version__
from .commands import CommandRegistry, CommandRunner
from .config import ConfigError
from .logging import get_logger, setup_logging
from .message import IncomingMessage
from .plugins import install_commands
from .settings import ChatcmdSettings, load_settings_if_exists
from .transport import ChannelId, ConsoleTransport, MessageRef

logger = get_logger(__name__)

_CONFIG_PATH_OPTION = typer.Option(
    None,
    "--config-path",
    help="Override the default config path.",
)


def _print_version_and_exit() -> None:
    typer.echo(__version__)
    raise typer.Exit()


def _version_callback(value: bool) -> None:
    if value:
        _print_version_and_exit()


def _exit_config_error(exc: ConfigError, *, code: int = 1) -> NoReturn:
    typer.echo(f"error: {exc}", err=True)
    raise typer.Exit(code=code) from exc


def _load_settings_or_exit(config_path: Path | None) -> ChatcmdSettings:
    try:
        loaded = load_settings_if_exists(config_path)
    except ConfigError as exc:
        _exit_config_error(exc)
    if loaded is None:
        if config_path is not None:
            _exit_config_error(ConfigError(f"Missing config file {config_path}."))
        return ChatcmdSettings()
    settings, _ = loaded
    return settings


def build_registry(settings: ChatcmdSettings) -> CommandRegistry:
    registry = CommandRegistry()
    install_commands(registry, settings)
    return registry


async def _run_console(
    runner: CommandRunner,
    *,
    stream: TextIO,
    transport: ConsoleTransport,
    channel_id: ChannelId,
    split_lines: bool,
    batch: bool,
) -> None:
    def _incoming(message_id: int, text: str) -> IncomingMessage:
        return IncomingMessage(
            transport=transport,
            ref=MessageRef(channel_id=channel_id, message_id=message_id),
            text=text,
            split_lines=split_lines,
        )

    try:
        if batch:
            text = await anyio.to_thread.run_sync(stream.read)
            if text.strip():
                await runner.handle(_incoming(1, text))
            return
        message_id = 0
        async with anyio.create_task_group() as tg:
            while True:
                line = await anyio.to_thread.run_sync(stream.readline)
                if not line:
                    return
                if not line.strip():
                    continue
                message_id += 1
                tg.start_soon(
                    runner.handle, _incoming(message_id, line.rstrip("\n"))
                )
    finally:
        await transport.close()


def run(
    config_path: Path | None = _CONFIG_PATH_OPTION,
    channel: str = typer.Option(
        "console",
        "--channel",
        help="Channel id reported to commands.",
    ),
    batch: bool = typer.Option(
        False,
        "--batch/--no-batch",
        help="Read all of stdin as a single message instead of one per line.",
    ),
    debug: bool | None = typer.Option(
        None,
        "--debug/--no-debug",
        help="Log resolution details.",
    ),
) -> None:
    """Dispatch messages read from stdin and print the replies."""
    settings = _load_settings_or_exit(config_path)
    setup_logging(
        debug=settings.logging.debug if debug is None else debug,
        fmt=settings.logging.format,
    )
    try:
        registry = build_registry(settings)
    except ConfigError as exc:
        _exit_config_error(exc)
    logger.info("startup.commands", commands=registry.command_ids)
    stdin = typer.get_text_stream("stdin")
    anyio.run(
        partial(
            _run_console,
            CommandRunner(registry),
            stream=stdin,
            transport=ConsoleTransport(),
            channel_id=channel,
            split_lines=settings.dispatch.split_lines,
            batch=batch,
        )
    )


def commands(
    config_path: Path | None = _CONFIG_PATH_OPTION,
    aliases: bool = typer.Option(
        False,
        "--aliases/--no-aliases",
        help="Include aliases in the listing.",
    ),
) -> None:
    """List registered commands."""
    settings = _load_settings_or_exit(config_path)
    setup_logging(debug=settings.logging.debug, fmt=settings.logging.format)
    try:
        registry = build_registry(settings)
    except ConfigError as exc:
        _exit_config_error(exc)
    lines = registry.help_with_aliases if aliases else registry.help
    if not lines:
        typer.echo("no commands registered")
        return
    for line in lines:
        typer.echo(line)


def app_main(
    version: bool = typer.Option(
        False,
        "--version",
        help="Show the version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """chatcmd command dispatcher."""


def create_app() -> typer.Typer:
    app = typer.Typer(
        add_completion=False,
        no_args_is_help=True,
        help="Resolve and dispatch chat commands.",
    )
    app.callback()(app_main)
    app.command(name="run")(run)
    app.command(name="commands")(commands)
    return app


def main() -> None:
    create_app()()
