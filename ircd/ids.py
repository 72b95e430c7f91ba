from __future__ import annotations

import itertools
import threading


class IdGenerator:
    """Hands out session ids that are unique for the life of the process."""

    def __init__(self, prefix: str = "c") -> None:
        self.prefix = prefix
        self._counter = itertools.count()
        self._lock = threading.Lock()

    def next_id(self) -> str:
        with self._lock:
            n = next(self._counter)
        return f"{self.prefix}{n}"


_default = IdGenerator()


def next_id() -> str:
    return _default.next_id()
