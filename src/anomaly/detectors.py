"""
Detectors for statistical deviations.

Implements explainable methods:
- Z-score against a rolling baseline
- Trend direction of recent vs older points
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Sequence

from .schema import BaselineStats, TrendDirection


@dataclass
class ZScoreDetector:
    """
    Z-score detector.

    A flat baseline (std == 0) yields a z-score of 0, never a division error.
    So does any baseline whose z-score would not be finite (std close to 0
    against a huge deviation, or an overflowed mean/std).
    """

    def compute(self, observed: float, baseline: BaselineStats) -> float:
        if baseline.std == 0:
            return 0.0
        zscore = (observed - baseline.mean) / baseline.std
        if not math.isfinite(zscore):
            return 0.0
        return zscore


@dataclass
class TrendDetector:
    """
    Compares the mean of the last `window` points to the `window` before them.

    Fewer than 2 * window points is always STABLE.
    """

    window: int = 5
    change_threshold: float = 0.1

    def compute(self, values: Sequence[float]) -> TrendDirection:
        if len(values) < 2 * self.window:
            return TrendDirection.STABLE

        recent = values[-self.window:]
        older = values[-2 * self.window:-self.window]
        recent_avg = sum(recent) / len(recent)
        older_avg = sum(older) / len(older)

        if older_avg == 0:
            if recent_avg > 0:
                return TrendDirection.INCREASING
            if recent_avg < 0:
                return TrendDirection.DECREASING
            return TrendDirection.STABLE

        change = (recent_avg - older_avg) / abs(older_avg)
        if change > self.change_threshold:
            return TrendDirection.INCREASING
        if change < -self.change_threshold:
            return TrendDirection.DECREASING
        return TrendDirection.STABLE
