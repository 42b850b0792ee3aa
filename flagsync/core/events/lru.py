from __future__ import annotations

import collections
from typing import Hashable


class LRUCache:
    """
    Fixed-capacity set of keys with least-recently-used eviction.

    Not thread-safe; the event processor loop is the only caller.
    """

    def __init__(self, capacity: int):
        self.capacity = int(capacity)
        self._keys: "collections.OrderedDict[Hashable, bool]" = collections.OrderedDict()

    def add(self, key: Hashable) -> bool:
        """Record `key`; returns True if it was already present."""
        if self.capacity <= 0:
            return False
        if key in self._keys:
            self._keys.move_to_end(key)
            return True
        while len(self._keys) >= self.capacity:
            self._keys.popitem(last=False)
        self._keys[key] = True
        return False

    def clear(self) -> None:
        self._keys.clear()

    def __contains__(self, key: object) -> bool:
        return key in self._keys

    def __len__(self) -> int:
        return len(self._keys)
