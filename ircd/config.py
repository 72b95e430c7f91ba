from __future__ import annotations

import os
from dataclasses import asdict, dataclass, replace
from pathlib import Path
from typing import Any


@dataclass(frozen=True)
class ServerRuntimeConfig:
    config_path: str | None = None
    host: str = "0.0.0.0"
    port: int = 6667
    backlog: int = 128
    server_name: str = "ircd"
    motd: str | None = "work in progress"
    # 0 disables the limit.
    nick_max_chars: int = 0
    max_line_bytes: int = 8192
    log_level: str = "INFO"
    log_console: bool = True
    log_file: str | None = None
    log_format: str = "%(asctime)s %(levelname)s %(name)s[%(threadName)s]: %(message)s"
    log_datefmt: str | None = None
    # Per-line RX/TX debug output from ircd.session and ircd.commands.
    log_wire: bool = False


_LOGGING_KEYS = {
    "level": "log_level",
    "console": "log_console",
    "file": "log_file",
    "format": "log_format",
    "datefmt": "log_datefmt",
    "wire": "log_wire",
}


def default_config_path() -> Path:
    home = os.environ.get("IRCD_HOME")
    base = Path(home) if home else Path.home() / ".ircd"
    return base / "ircd.toml"


def load_toml(path: str) -> dict:
    import tomllib

    with open(path, "rb") as f:
        data = tomllib.load(f)
    return data if isinstance(data, dict) else {}


def apply_config_data(base: ServerRuntimeConfig, data: dict[str, Any]) -> ServerRuntimeConfig:
    """Overlay a parsed config file onto ``base``.

    Keys may sit at the top level or under ``[server]``; ``[logging]`` keys
    map onto the ``log_*`` fields. Unknown keys are ignored.
    """
    server = data.get("server") if isinstance(data, dict) else None
    if isinstance(server, dict):
        data = {**data, **server}

    log_table = data.get("logging") if isinstance(data, dict) else None
    if isinstance(log_table, dict):
        mapped = {
            field: log_table.get(key)
            for key, field in _LOGGING_KEYS.items()
            if key in log_table
        }
        data = {**data, **mapped}

    allowed = set(asdict(base).keys())
    # This identifies where the config came from; do not let the file override it.
    allowed.discard("config_path")
    updates = {k: v for k, v in data.items() if k in allowed}

    for int_key in ("port", "backlog", "nick_max_chars", "max_line_bytes"):
        if int_key in updates:
            updates[int_key] = int(updates[int_key])

    for optional_key in ("motd", "log_file", "log_datefmt"):
        if optional_key in updates and updates[optional_key] == "":
            updates[optional_key] = None

    return replace(base, **updates) if updates else base
