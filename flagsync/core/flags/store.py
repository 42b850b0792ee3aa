from __future__ import annotations

import threading
from typing import Dict, Iterable, Optional

from flagsync.core.flags.models import FeatureFlag


class InMemoryFeatureStore:
    """
    Thread-safe local flag cache.

    Update processors (streaming or polling) write into it; evaluations read
    from it. Deletions are kept as versioned tombstones so a late upsert of an
    older version cannot resurrect a deleted flag.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._flags: Dict[str, FeatureFlag] = {}
        self._initialized = False

    def init(self, flags: Iterable[FeatureFlag]) -> None:
        with self._lock:
            self._flags = {f.key: f for f in flags}
            self._initialized = True

    def get(self, key: str) -> Optional[FeatureFlag]:
        with self._lock:
            flag = self._flags.get(key)
        if flag is None or flag.deleted:
            return None
        return flag

    def all(self) -> Dict[str, FeatureFlag]:
        with self._lock:
            return {k: f for k, f in self._flags.items() if not f.deleted}

    def upsert(self, flag: FeatureFlag) -> bool:
        with self._lock:
            prev = self._flags.get(flag.key)
            if prev is not None and prev.version >= flag.version:
                return False
            self._flags[flag.key] = flag
            return True

    def delete(self, key: str, version: int) -> bool:
        return self.upsert(FeatureFlag(key=key, version=version, deleted=True))

    @property
    def initialized(self) -> bool:
        with self._lock:
            return self._initialized
