"""Lightweight in-memory metrics collector."""

from __future__ import annotations

import threading
from collections import Counter
from dataclasses import dataclass
from typing import Dict


@dataclass
class MetricSnapshot:
    total_updates: int
    event_kinds: Dict[str, int]
    deliveries: Dict[str, int]


class MetricsCollector:
    """Thread-safe counter storage for basic service metrics."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._total_updates = 0
        self._event_kinds: Counter[str] = Counter()
        self._deliveries: Counter[str] = Counter()

    def record_update(self, kind: str) -> None:
        with self._lock:
            self._total_updates += 1
            self._event_kinds[kind] += 1

    def record_delivery(self, success: bool) -> None:
        with self._lock:
            self._deliveries["ok" if success else "failed"] += 1

    def snapshot(self) -> MetricSnapshot:
        with self._lock:
            return MetricSnapshot(
                total_updates=self._total_updates,
                event_kinds=dict(self._event_kinds),
                deliveries=dict(self._deliveries),
            )
