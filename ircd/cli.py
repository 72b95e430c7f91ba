from __future__ import annotations

import argparse
import os
import sys
from dataclasses import replace
from pathlib import Path

from .config import ServerRuntimeConfig, apply_config_data, default_config_path, load_toml
from .logging_config import configure_logging
from .service import IrcService


def _write_default_config(config_path: str) -> None:
    cfg_dir = os.path.dirname(config_path)
    if cfg_dir:
        Path(cfg_dir).mkdir(parents=True, exist_ok=True)
        try:
            os.chmod(cfg_dir, 0o700)
        except OSError:
            pass

    defaults = ServerRuntimeConfig()
    content = f"""# ircd configuration (TOML)
#
# This file was created on first run.
# Edit it, then start ircd again.

[server]

# Listening address. Port 6667 is the conventional plain-text IRC port.
host = {defaults.host!r}
port = {defaults.port}
backlog = {defaults.backlog}

# Name used in reply prefixes and the welcome banner.
server_name = {defaults.server_name!r}

# Message of the day, sent after USER. Multiple lines are allowed.
motd = {defaults.motd!r}

# Maximum accepted nickname length. 0 disables length limiting.
nick_max_chars = {defaults.nick_max_chars}

# Longest accepted request line in bytes, CRLF excluded. Longer lines
# drop the connection. 0 disables the cap.
max_line_bytes = {defaults.max_line_bytes}

[logging]

# Log level for ircd itself.
level = "INFO"

# Log to stderr (systemd/journald friendly).
console = true

# Optional file path for logs (leave empty to disable).
file = ""

# Log format and optional date format.
format = "%(asctime)s %(levelname)s %(name)s[%(threadName)s]: %(message)s"
datefmt = ""

# Log every line received and sent at DEBUG (very noisy).
wire = false
"""

    with open(config_path, "w", encoding="utf-8") as f:
        f.write(content)


def _build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="ircd", description="Run a line-oriented IRC server")

    p.add_argument(
        "--config",
        default=str(default_config_path()),
        help="Path to a TOML config file (created on first run)",
    )
    p.add_argument("--host", default=None, help="Listen address (default: 0.0.0.0)")
    p.add_argument("--port", type=int, default=None, help="Listen port (default: 6667)")
    p.add_argument("--server-name", default=None, help="Server name in replies")
    p.add_argument("--motd", default=None, help="Message of the day")
    p.add_argument(
        "--max-line-bytes",
        type=int,
        default=None,
        help="Longest accepted request line in bytes (0 disables the cap)",
    )

    p.add_argument(
        "--log-level",
        default=None,
        help="Logging level override (DEBUG, INFO, WARNING, ERROR). Default comes from config.",
    )
    p.add_argument(
        "--log-file",
        default=None,
        help="Log file path override (empty disables file logging). Default comes from config.",
    )

    return p


def main(argv: list[str] | None = None) -> None:
    args = _build_arg_parser().parse_args(sys.argv[1:] if argv is None else argv)

    config_path = str(args.config)

    if not os.path.exists(config_path):
        _write_default_config(config_path)
        print(
            "Created default ircd config. Review it before starting:\n"
            f"- Config: {config_path}\n"
            "\nThen re-run ircd.",
            file=sys.stderr,
        )
        raise SystemExit(0)

    cfg = ServerRuntimeConfig(config_path=config_path)
    cfg = apply_config_data(cfg, load_toml(config_path))

    if args.host is not None:
        cfg = replace(cfg, host=args.host)
    if args.port is not None:
        cfg = replace(cfg, port=int(args.port))
    if args.server_name is not None:
        cfg = replace(cfg, server_name=args.server_name)
    if args.motd is not None:
        cfg = replace(cfg, motd=args.motd or None)
    if args.max_line_bytes is not None:
        cfg = replace(cfg, max_line_bytes=int(args.max_line_bytes))

    if args.log_level is not None:
        cfg = replace(cfg, log_level=str(args.log_level))
    if args.log_file is not None:
        cfg = replace(cfg, log_file=str(args.log_file) if str(args.log_file) else None)

    configure_logging(cfg, override_level=args.log_level, override_file=args.log_file)

    svc = IrcService(cfg)
    svc.start()
    svc.run_forever()


if __name__ == "__main__":
    main()
