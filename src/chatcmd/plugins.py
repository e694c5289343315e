"""Loading of command setup hooks.

Third-party distributions add commands by exposing an entry point in the
``chatcmd.commands`` group that resolves to a ``setup(registry)`` callable.
Local projects can list importable modules in the config instead; each module
must define a ``setup`` function with the same signature.
"""

from __future__ import annotations

import importlib
import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from importlib.metadata import EntryPoint, entry_points
from typing import TYPE_CHECKING, Any

from .config import ConfigError
from .logging import get_logger

if TYPE_CHECKING:
    from .commands import CommandRegistry
    from .settings import ChatcmdSettings

logger = get_logger(__name__)

COMMAND_GROUP = "chatcmd.commands"

type CommandSetup = Callable[[CommandRegistry], object]
type Validator = Callable[[Any, EntryPoint], None]


@dataclass(frozen=True, slots=True)
class PluginLoadError:
    group: str
    name: str
    value: str
    distribution: str | None
    error: str


class PluginLoadFailed(RuntimeError):
    def __init__(self, error: PluginLoadError) -> None:
        super().__init__(f"failed to load plugin {error.name!r}: {error.error}")
        self.error = error


_LOADED: dict[tuple[str, str], Any] = {}
_LOAD_ERRORS: list[PluginLoadError] = []


def reset_plugin_state() -> None:
    _LOADED.clear()
    _LOAD_ERRORS.clear()


def get_load_errors() -> tuple[PluginLoadError, ...]:
    return tuple(_LOAD_ERRORS)


def clear_load_errors(*, group: str | None = None, name: str | None = None) -> None:
    _LOAD_ERRORS[:] = [
        err
        for err in _LOAD_ERRORS
        if not (
            (group is None or err.group == group) and (name is None or err.name == name)
        )
    ]


def canonicalize_distribution_name(name: str) -> str:
    return re.sub(r"[-_.]+", "-", name).lower()


def normalize_allowlist(allowlist: Iterable[str] | None) -> set[str] | None:
    if allowlist is None:
        return None
    normalized = {
        canonicalize_distribution_name(item.strip())
        for item in allowlist
        if item and item.strip()
    }
    return normalized or None


def entrypoint_distribution_name(ep: EntryPoint) -> str | None:
    dist = getattr(ep, "dist", None)
    if dist is None:
        return None
    name = getattr(dist, "name", None)
    if not name:
        return None
    return name


def is_entrypoint_allowed(ep: EntryPoint, allowlist: set[str] | None) -> bool:
    if allowlist is None:
        return True
    dist_name = entrypoint_distribution_name(ep)
    if dist_name is None:
        return False
    return canonicalize_distribution_name(dist_name) in allowlist


def _record_error(ep: EntryPoint, error: str) -> PluginLoadError:
    record = PluginLoadError(
        group=ep.group,
        name=ep.name,
        value=ep.value,
        distribution=entrypoint_distribution_name(ep),
        error=error,
    )
    _LOAD_ERRORS.append(record)
    logger.warning(
        "plugins.load_failed",
        group=record.group,
        name=record.name,
        distribution=record.distribution,
        error=error,
    )
    return record


def _select(group: str) -> list[EntryPoint]:
    return list(entry_points().select(group=group))


def _duplicates(eps: Iterable[EntryPoint]) -> set[str]:
    seen: set[str] = set()
    dupes: set[str] = set()
    for ep in eps:
        if ep.name in seen:
            dupes.add(ep.name)
        seen.add(ep.name)
    return dupes


def list_entrypoints(
    group: str,
    *,
    allowlist: Iterable[str] | None = None,
) -> list[EntryPoint]:
    allowed = normalize_allowlist(allowlist)
    eps = [ep for ep in _select(group) if is_entrypoint_allowed(ep, allowed)]
    dupes = _duplicates(eps)
    for ep in eps:
        if ep.name in dupes:
            _record_error(ep, f"duplicate plugin id {ep.name!r}")
    return sorted(
        (ep for ep in eps if ep.name not in dupes),
        key=lambda ep: ep.name,
    )


def list_ids(group: str, *, allowlist: Iterable[str] | None = None) -> list[str]:
    return [ep.name for ep in list_entrypoints(group, allowlist=allowlist)]


def load_entrypoint(
    group: str,
    name: str,
    *,
    allowlist: Iterable[str] | None = None,
    validator: Validator | None = None,
) -> Any:
    key = (group, name)
    if key in _LOADED:
        return _LOADED[key]
    allowed = normalize_allowlist(allowlist)
    matches = [
        ep
        for ep in _select(group)
        if ep.name == name and is_entrypoint_allowed(ep, allowed)
    ]
    if not matches:
        raise ConfigError(f"Unknown plugin {name!r} in group {group!r}.")
    if len(matches) > 1:
        records = [
            _record_error(ep, f"duplicate plugin id {name!r}") for ep in matches
        ]
        raise PluginLoadFailed(records[0])
    ep = matches[0]
    try:
        obj = ep.load()
        if validator is not None:
            validator(obj, ep)
    except Exception as exc:  # noqa: BLE001
        record = _record_error(ep, str(exc) or type(exc).__name__)
        raise PluginLoadFailed(record) from exc
    _LOADED[key] = obj
    return obj


def _validate_setup(obj: Any, ep: EntryPoint) -> None:
    if not callable(obj):
        raise TypeError(f"{ep.value} is not callable; expected setup(registry)")


def load_command_plugins(
    registry: CommandRegistry,
    *,
    allowlist: Iterable[str] | None = None,
) -> list[str]:
    loaded: list[str] = []
    for ep in list_entrypoints(COMMAND_GROUP, allowlist=allowlist):
        try:
            setup: CommandSetup = load_entrypoint(
                COMMAND_GROUP,
                ep.name,
                allowlist=allowlist,
                validator=_validate_setup,
            )
        except PluginLoadFailed:
            continue
        setup(registry)
        loaded.append(ep.name)
        logger.info("plugins.commands_loaded", plugin=ep.name)
    return loaded


def load_command_modules(
    registry: CommandRegistry, modules: Iterable[str]
) -> list[str]:
    loaded: list[str] = []
    for module_name in modules:
        try:
            module = importlib.import_module(module_name)
        except ImportError as exc:
            raise ConfigError(
                f"Failed to import command module {module_name!r}: {exc}"
            ) from exc
        setup = getattr(module, "setup", None)
        if not callable(setup):
            raise ConfigError(
                f"Command module {module_name!r} has no setup(registry) function."
            )
        setup(registry)
        loaded.append(module_name)
        logger.info("plugins.module_loaded", module=module_name)
    return loaded


def install_commands(registry: CommandRegistry, settings: ChatcmdSettings) -> None:
    allowlist = settings.plugins.enabled or None
    load_command_plugins(registry, allowlist=allowlist)
    load_command_modules(registry, settings.commands.modules)
