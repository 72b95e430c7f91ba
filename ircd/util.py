from __future__ import annotations

from .constants import CHANNEL_PREFIX


def normalize_nick(value, max_chars: int = 0) -> str | None:
    if not isinstance(value, str):
        return None

    s = value.strip()
    if not s:
        return None

    if max_chars and len(s) > int(max_chars):
        return None

    # Channel names own the marker; a nick must never be mistaken for one.
    if s.startswith(CHANNEL_PREFIX):
        return None

    # A nick is echoed inside reply lines; it must not end one early.
    if "\n" in s or "\r" in s or "\x00" in s:
        return None

    return s
