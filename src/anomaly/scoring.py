"""
Scoring helpers shared by the detectors and predictors.

Every function here is pure: same inputs, same output, no hidden state.
"""

from __future__ import annotations

from typing import Iterable, Optional, Tuple

from src.core.config import ConfidenceConfig, RiskBands


def anomaly_confidence(
    zscore: float,
    data_points: int,
    confidence: Optional[ConfidenceConfig] = None,
) -> float:
    """
    Blend score magnitude and sample size into a confidence in [0, 1].

    Both components are capped at 1 before weighting.
    """
    confidence = confidence or ConfidenceConfig()
    z_part = min(abs(zscore) / confidence.zscore_scale, 1.0)
    sample_part = min(data_points / confidence.sample_scale, 1.0)
    blended = confidence.zscore_weight * z_part + confidence.sample_weight * sample_part
    return min(max(blended, 0.0), 1.0)


def confidence_weighted_mean(signals: Iterable[Tuple[float, float]]) -> Tuple[float, float]:
    """
    Aggregate (score, confidence) pairs.

    Returns:
        (sum(score * conf) / sum(conf), mean(conf)); (0.0, 0.0) for no signals.
    """
    pairs = list(signals)
    if not pairs:
        return 0.0, 0.0
    total_confidence = sum(conf for _, conf in pairs)
    weighted = sum(score * conf for score, conf in pairs)
    score = weighted / total_confidence if total_confidence > 0 else 0.0
    return score, total_confidence / len(pairs)


def risk_level(score: float, bands: Optional[RiskBands] = None) -> str:
    """
    Map a risk score to low / medium / high / critical.
    """
    return (bands or RiskBands()).level_for(score)


def requires_review(score: float, review_threshold: float) -> bool:
    return score > review_threshold


def time_to_failure(
    score: float,
    max_minutes: float = 60.0,
    min_minutes: float = 5.0,
    slope: float = 30.0,
) -> float:
    """
    Minutes until a predicted outage; higher risk means sooner, floored at min_minutes.
    """
    return max(min_minutes, max_minutes - score * slope)
