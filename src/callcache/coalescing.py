"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Module: coalescing.py.
"""

from __future__ import annotations

import threading


class MissCoalescer:
    """
    Elect one leader per key among threads that missed concurrently.

    Followers wait at most `wait_s` for the leader to finish, then return so
    the caller can re-check the store and compute on its own.
    """

    def __init__(self, *, wait_s: float) -> None:
        if wait_s < 0:
            raise ValueError(f"wait_s must be >= 0, got {wait_s}")
        self.wait_s = wait_s
        self._events: dict[str, threading.Event] = {}
        self._lock = threading.Lock()

    def acquire(self, key: str) -> bool:
        """Return `True` when the caller leads `key`, else wait and return `False`."""
        with self._lock:
            event = self._events.get(key)
            if event is None:
                self._events[key] = threading.Event()
                return True
        event.wait(self.wait_s)
        return False

    def release(self, key: str) -> None:
        with self._lock:
            event = self._events.pop(key, None)
        if event is not None:
            event.set()

    def in_flight(self) -> int:
        with self._lock:
            return len(self._events)
