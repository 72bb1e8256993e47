"""Per-entity serialization points.

Stock and order operations take a lock keyed by the entity id so that two
requests touching the same product (or the same order) run one after the
other, while unrelated entities proceed in parallel.

Entries are reference counted and dropped once no thread holds or waits on
them, so the registry only ever contains keys that are in use.
"""

import threading
from collections.abc import Iterator
from contextlib import contextmanager


class _Entry:
    __slots__ = ("lock", "users")

    def __init__(self) -> None:
        self.lock = threading.RLock()
        self.users = 0


class KeyedLocks:
    """A registry of re-entrant locks, one per key, created on demand."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[str, _Entry] = {}

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)

    def __contains__(self, key) -> bool:
        with self._guard:
            return str(key) in self._locks

    def _checkout(self, key: str) -> _Entry:
        with self._guard:
            entry = self._locks.get(key)
            if entry is None:
                entry = self._locks[key] = _Entry()
            entry.users += 1
            return entry

    def _checkin(self, key: str, entry: _Entry) -> None:
        with self._guard:
            entry.users -= 1
            if entry.users == 0:
                del self._locks[key]

    @contextmanager
    def hold(self, key) -> Iterator[None]:
        key = str(key)
        entry = self._checkout(key)
        try:
            with entry.lock:
                yield
        finally:
            self._checkin(key, entry)


product_locks = KeyedLocks()
order_locks = KeyedLocks()
