"""
Anomaly module: Statistical anomaly detection over rolling metric baselines.

Implements the baseline store, detectors, scoring, and anomaly records.
"""

from .baselines import RollingBaselineStore, compute_stats
from .detectors import TrendDetector, ZScoreDetector
from .engine import AnomalyDetector
from .schema import (
	Anomaly,
	AnomalyMetadata,
	AnomalyStatus,
	BaselineStats,
	MetricSample,
	TrendDirection,
	ZScoreAnalysis,
)
from .scoring import anomaly_confidence, confidence_weighted_mean, risk_level

__all__ = [
	"AnomalyDetector",
	"Anomaly",
	"AnomalyMetadata",
	"AnomalyStatus",
	"BaselineStats",
	"MetricSample",
	"TrendDirection",
	"ZScoreAnalysis",
	"RollingBaselineStore",
	"compute_stats",
	"TrendDetector",
	"ZScoreDetector",
	"anomaly_confidence",
	"confidence_weighted_mean",
	"risk_level",
]
