"""
Rolling baseline storage for metric anomaly detection.

Keeps a bounded, arrival-ordered history per metric name. Writers for the
same metric are serialized by a per-metric lock; readers always work on a
snapshot so statistics are never computed over a list that is changing.
"""

from __future__ import annotations

import logging
import math
import threading
from collections import deque
from dataclasses import dataclass, field
from math import sqrt
from typing import Deque, Dict, Iterable, List, Optional, Sequence, Tuple

from src.core.exceptions import InvalidInputError

from .schema import BaselineStats

logger = logging.getLogger(__name__)


def compute_stats(values: Sequence[float]) -> Optional[BaselineStats]:
    """
    Mean and population standard deviation of a snapshot.

    Returns None for an empty snapshot. Values near the float limits may
    give an infinite mean or std; that is left to the detectors.
    """
    if not values:
        return None
    mean = sum(values) / len(values)
    # d * d overflows to inf where d ** 2 raises OverflowError
    variance = sum((v - mean) * (v - mean) for v in values) / len(values)
    return BaselineStats(mean=mean, std=sqrt(variance), count=len(values))


def validate_metric_value(metric_name: str, value: float) -> float:
    if not metric_name:
        raise InvalidInputError("metric_name is required")
    if isinstance(value, bool):
        raise InvalidInputError(f"Value for {metric_name} must be numeric, got bool")
    try:
        value = float(value)
    except (TypeError, ValueError) as exc:
        raise InvalidInputError(f"Value for {metric_name} must be numeric: {value!r}") from exc
    if not math.isfinite(value):
        raise InvalidInputError(f"Value for {metric_name} must be finite, got {value}")
    return value


@dataclass
class _MetricHistory:
    values: Deque[float]
    lock: threading.Lock = field(default_factory=threading.Lock)


class RollingBaselineStore:
    """
    Per-metric FIFO history with fixed capacity.

    Notes:
    - Eviction is by arrival order only (oldest first).
    - Different metric names never share state or locks.
    - Instances are created and owned by the caller; there is no global store.
    """

    def __init__(self, capacity: int = 100) -> None:
        if capacity < 1:
            raise ValueError("capacity must be >= 1")
        self.capacity = capacity
        self._histories: Dict[str, _MetricHistory] = {}
        self._registry_lock = threading.Lock()

    def _history(self, metric_name: str, create: bool) -> Optional[_MetricHistory]:
        history = self._histories.get(metric_name)
        if history is not None or not create:
            return history
        with self._registry_lock:
            history = self._histories.get(metric_name)
            if history is None:
                history = _MetricHistory(values=deque(maxlen=self.capacity))
                self._histories[metric_name] = history
            return history

    def update_baseline(self, metric_name: str, value: float) -> None:
        value = validate_metric_value(metric_name, value)
        history = self._history(metric_name, create=True)
        with history.lock:
            history.values.append(value)
            size = len(history.values)
        logger.debug("Baseline %s updated (%d points)", metric_name, size)

    def update_many(self, metric_name: str, values: Iterable[float]) -> None:
        """Append several values for one metric, in order."""
        checked = [validate_metric_value(metric_name, v) for v in values]
        history = self._history(metric_name, create=True)
        with history.lock:
            history.values.extend(checked)

    def get_historical_data(self, metric_name: str) -> Tuple[float, ...]:
        history = self._history(metric_name, create=False)
        if history is None:
            return ()
        with history.lock:
            return tuple(history.values)

    def stats(self, metric_name: str) -> Optional[BaselineStats]:
        return compute_stats(self.get_historical_data(metric_name))

    def metrics(self) -> List[str]:
        with self._registry_lock:
            return sorted(self._histories)

    def clear(self, metric_name: Optional[str] = None) -> None:
        with self._registry_lock:
            if metric_name is None:
                self._histories.clear()
            else:
                self._histories.pop(metric_name, None)

    def __len__(self) -> int:
        return len(self._histories)

    def __contains__(self, metric_name: object) -> bool:
        return metric_name in self._histories
