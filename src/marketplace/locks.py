"""Per-key exclusive locks with bounded waiting."""

from __future__ import annotations

import threading
from collections.abc import Iterator
from contextlib import contextmanager

from marketplace.domain.errors import NegotiationBusyError


class KeyedLocks:
    """One ``threading.Lock`` per key, created on first use.

    Mutations of different negotiations never contend; mutations of the
    same negotiation run one at a time.

    Args:
        timeout: Seconds to wait for a key's lock before giving up.
    """

    def __init__(self, timeout: float = 5.0) -> None:
        self._timeout = timeout
        self._locks: dict[str, threading.Lock] = {}
        self._guard = threading.Lock()

    @contextmanager
    def hold(self, key: str) -> Iterator[None]:
        """Hold the lock for *key* for the duration of the ``with`` block.

        Raises:
            NegotiationBusyError: If the lock is not acquired within the timeout.
        """
        with self._guard:
            lock = self._locks.setdefault(key, threading.Lock())
        if not lock.acquire(timeout=self._timeout):
            raise NegotiationBusyError(key, self._timeout)
        try:
            yield
        finally:
            lock.release()

    def __len__(self) -> int:
        return len(self._locks)
