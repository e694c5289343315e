from collections.abc import Iterator

import pytest
import structlog

from chatcmd import plugins
from chatcmd.commands import CommandRegistry, CommandRunner


@pytest.fixture(autouse=True)
def _reset_logging() -> Iterator[None]:
    yield
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()


@pytest.fixture(autouse=True)
def _reset_plugin_state() -> Iterator[None]:
    plugins.reset_plugin_state()
    yield
    plugins.reset_plugin_state()


@pytest.fixture
def registry() -> CommandRegistry:
    return CommandRegistry()


@pytest.fixture
def runner(registry: CommandRegistry) -> CommandRunner:
    return CommandRunner(registry)
