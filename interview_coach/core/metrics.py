from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from threading import Lock
from time import perf_counter
from typing import Deque, Dict


@dataclass
class _Series:
    values: Deque[float]
    lock: Lock


class MetricsCollector:
    """In-memory, best-effort metrics collector.

    Counts analysis fallbacks and report lifecycle events, and keeps a latency
    series for report generation.
    """

    def __init__(self, capacity: int = 500) -> None:
        self.capacity = capacity
        self.report_ms = _Series(deque(maxlen=capacity), Lock())
        self.counters: Dict[str, int] = {}
        self._counter_lock = Lock()
        self.histograms: Dict[str, _Series] = {}
        self._hists_lock = Lock()

    def increment_counter(self, name: str, value: int = 1) -> None:
        with self._counter_lock:
            self.counters[name] = self.counters.get(name, 0) + int(value)

    def get_counter(self, name: str) -> int:
        with self._counter_lock:
            return self.counters.get(name, 0)

    def record_report_ms(self, ms: float) -> None:
        with self.report_ms.lock:
            self.report_ms.values.append(max(0.0, ms))

    def record_histogram(self, name: str, value: float) -> None:
        with self._hists_lock:
            series = self.histograms.get(name)
            if series is None:
                series = _Series(deque(maxlen=self.capacity), Lock())
                self.histograms[name] = series
        with series.lock:
            series.values.append(float(value))

    def _percentile(self, series: _Series, p: float) -> float:
        with series.lock:
            values = list(series.values)
        if not values:
            return 0.0
        values.sort()
        k = int(round((p / 100.0) * (len(values) - 1)))
        return float(values[k])

    def snapshot(self) -> dict:
        with self.report_ms.lock:
            n_reports = len(self.report_ms.values)
        with self._counter_lock:
            counters = dict(self.counters)
        with self._hists_lock:
            hists = dict(self.histograms)
        return {
            "report_p95_ms": round(self._percentile(self.report_ms, 95), 2),
            "counts": {"reports_timed": n_reports, **counters},
            "p95_ms": {name: round(self._percentile(series, 95), 2) for name, series in hists.items()},
        }

    def reset(self) -> None:
        with self._counter_lock:
            self.counters.clear()
        with self.report_ms.lock:
            self.report_ms.values.clear()
        with self._hists_lock:
            self.histograms.clear()


# Singleton instance
collector = MetricsCollector()


class Timer:
    """Context manager to time an operation."""

    def __init__(self) -> None:
        self._start = 0.0
        self.ms = 0.0

    def __enter__(self) -> "Timer":
        self._start = perf_counter()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # noqa: ANN001
        self.ms = max(0.0, (perf_counter() - self._start) * 1000.0)
        return None
