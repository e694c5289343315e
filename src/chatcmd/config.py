from __future__ import annotations

from pathlib import Path

HOME_CONFIG_PATH = Path.home() / ".chatcmd" / "chatcmd.toml"


class ConfigError(RuntimeError):
    pass
