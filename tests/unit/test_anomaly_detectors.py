"""
Unit tests for anomaly detectors.
"""

from src.anomaly.detectors import TrendDetector, ZScoreDetector
from src.anomaly.schema import BaselineStats, TrendDirection


def test_zscore_detector_computes_value():
    detector = ZScoreDetector()
    baseline = BaselineStats(mean=10.0, std=2.0, count=10)

    z = detector.compute(14.0, baseline)
    assert abs(z - 2.0) < 1e-6

    z = detector.compute(6.0, baseline)
    assert abs(z + 2.0) < 1e-6


def test_zscore_detector_flat_baseline_is_zero():
    detector = ZScoreDetector()
    baseline = BaselineStats(mean=10.0, std=0.0, count=10)

    assert detector.compute(1000.0, baseline) == 0.0


def test_trend_increasing():
    detector = TrendDetector(window=5, change_threshold=0.1)
    values = [10.0] * 5 + [12.0] * 5
    assert detector.compute(values) == TrendDirection.INCREASING


def test_trend_decreasing():
    detector = TrendDetector()
    values = [10.0] * 5 + [8.0] * 5
    assert detector.compute(values) == TrendDirection.DECREASING


def test_trend_within_band_is_stable():
    detector = TrendDetector()
    values = [10.0] * 5 + [10.5] * 5
    assert detector.compute(values) == TrendDirection.STABLE


def test_trend_uses_only_last_ten_points():
    detector = TrendDetector()
    values = [1000.0] * 20 + [10.0] * 5 + [10.0] * 5
    assert detector.compute(values) == TrendDirection.STABLE


def test_trend_needs_two_full_windows():
    detector = TrendDetector()
    assert detector.compute([1.0, 2.0, 3.0, 50.0, 90.0, 200.0, 300.0, 400.0, 500.0]) == TrendDirection.STABLE


def test_trend_from_zero_older_mean():
    detector = TrendDetector()
    assert detector.compute([0.0] * 5 + [3.0] * 5) == TrendDirection.INCREASING
    assert detector.compute([0.0] * 5 + [-3.0] * 5) == TrendDirection.DECREASING
    assert detector.compute([0.0] * 10) == TrendDirection.STABLE


def test_zscore_detector_overflow_is_zero():
    detector = ZScoreDetector()
    tiny_std = BaselineStats(mean=1.0, std=1e-320, count=10)
    infinite_mean = BaselineStats(mean=float("inf"), std=float("inf"), count=10)

    assert detector.compute(1e300, tiny_std) == 0.0
    assert detector.compute(1.0, infinite_mean) == 0.0
