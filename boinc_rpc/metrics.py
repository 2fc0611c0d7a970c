"""Minimal in-process metrics recorder (not suitable for multi-process aggregation)."""

from __future__ import annotations

from collections import Counter, defaultdict
from threading import Lock
from typing import DefaultDict, Dict


class MetricsRecorder:
    """Counts RPCs per operation, with remote error numbers and HTTP failures broken out."""

    def __init__(self) -> None:
        self._lock = Lock()
        self._calls = 0
        self._last_durations_ms: Dict[str, float] = {}
        self._operation_success: Counter[str] = Counter()
        self._operation_error: Counter[str] = Counter()
        # operation -> BOINC error_num -> count
        self._remote_errors: DefaultDict[str, Counter[int]] = defaultdict(Counter)
        # operation -> HTTP status (>= 400) -> count
        self._http_statuses: DefaultDict[str, Counter[int]] = defaultdict(Counter)

    def incr_call(self) -> None:
        with self._lock:
            self._calls += 1

    def record_duration(self, operation: str, duration_ms: float) -> None:
        with self._lock:
            self._last_durations_ms[operation] = duration_ms

    def record_operation(self, operation: str, *, success: bool) -> None:
        with self._lock:
            if success:
                self._operation_success[operation] += 1
            else:
                self._operation_error[operation] += 1

    def record_remote_error(self, operation: str, error_num: int) -> None:
        with self._lock:
            self._remote_errors[operation][error_num] += 1

    def record_http_status(self, operation: str, status_code: int) -> None:
        with self._lock:
            self._http_statuses[operation][status_code] += 1

    def remote_error_total(self, error_num: int) -> int:
        """Count one error number across all operations (e.g. -183 for project down)."""
        with self._lock:
            return sum(codes[error_num] for codes in self._remote_errors.values())

    def snapshot(self) -> Dict[str, object]:
        with self._lock:
            return {
                "calls": self._calls,
                "operation_success": dict(self._operation_success),
                "operation_error": dict(self._operation_error),
                "remote_errors": {op: dict(codes) for op, codes in self._remote_errors.items()},
                "http_statuses": {op: dict(codes) for op, codes in self._http_statuses.items()},
                "last_durations_ms": dict(self._last_durations_ms),
            }

    def reset(self) -> None:
        with self._lock:
            self._calls = 0
            self._last_durations_ms.clear()
            self._operation_success.clear()
            self._operation_error.clear()
            self._remote_errors.clear()
            self._http_statuses.clear()


default_metrics = MetricsRecorder()
