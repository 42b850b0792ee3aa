from __future__ import annotations

import threading
from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional


@dataclass
class EventProcessorStats:
    events_received_total: int = 0
    inbox_dropped_total: int = 0
    records_queued_total: int = 0
    capacity_dropped_total: int = 0
    summarized_total: int = 0
    sampled_out_total: int = 0
    flushes_total: int = 0
    batches_delivered_total: int = 0
    batches_failed_total: int = 0
    loop_errors_total: int = 0
    last_error_code: Optional[str] = None


class StatsCounter:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._stats = EventProcessorStats()

    def snapshot(self) -> EventProcessorStats:
        with self._lock:
            return EventProcessorStats(**asdict(self._stats))

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self.snapshot())

    def inc(self, name: str, n: int = 1) -> None:
        with self._lock:
            setattr(self._stats, name, int(getattr(self._stats, name)) + int(n))

    def set_last_error(self, code: Optional[str]) -> None:
        with self._lock:
            self._stats.last_error_code = code
