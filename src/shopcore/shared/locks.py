"""Keyed mutual exclusion.

One lock per key (a product id, an order id, a normalised email). An entry
exists only while some thread holds or waits for its key; the last one out
removes it, so the map stays as small as the set of keys currently in play.
Work on different keys never contends.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from threading import Lock


class _Entry:
    __slots__ = ("lock", "users")

    def __init__(self):
        self.lock = Lock()
        self.users = 0


class KeyedLocks:
    def __init__(self, name: str):
        self.name = name
        self._guard = Lock()
        self._entries: dict[str, _Entry] = {}

    @contextmanager
    def hold(self, key) -> Iterator[None]:
        key = str(key)
        with self._guard:
            entry = self._entries.get(key)
            if entry is None:
                entry = self._entries[key] = _Entry()
            entry.users += 1

        try:
            with entry.lock:
                yield
        finally:
            with self._guard:
                entry.users -= 1
                if entry.users == 0:
                    del self._entries[key]

    def is_held(self, key) -> bool:
        with self._guard:
            entry = self._entries.get(str(key))
            return entry is not None and entry.lock.locked()

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"<KeyedLocks {self.name}: {len(self)} keys>"


product_locks = KeyedLocks("product")
order_locks = KeyedLocks("order")
email_locks = KeyedLocks("email")
