"""
Schema definitions for metric anomaly detection.

All anomaly outputs are deterministic and explainable. Each anomaly references
its observed value, baseline statistics, and computed deviation.
"""

from __future__ import annotations

import math
from datetime import datetime, timezone
from enum import Enum
from typing import Dict
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class AnomalyStatus(str, Enum):
    """Review lifecycle of an anomaly. The detector only creates ACTIVE."""

    ACTIVE = "active"
    INVESTIGATING = "investigating"
    RESOLVED = "resolved"
    FALSE_POSITIVE = "false_positive"


class TrendDirection(str, Enum):
    """Direction of the recent baseline movement."""

    INCREASING = "increasing"
    DECREASING = "decreasing"
    STABLE = "stable"


class MetricSample(BaseModel):
    """
    A single metric observation.

    Fields:
    - service_name: service that produced the metric
    - metric_name: baseline key (e.g. "cpu_usage")
    - value: finite numeric observation
    - timestamp: observation time (UTC)
    - labels: free-form string labels
    """

    model_config = ConfigDict(allow_inf_nan=False)

    service_name: str = Field(..., min_length=1, max_length=128)
    metric_name: str = Field(..., min_length=1, max_length=128)
    value: float
    timestamp: datetime = Field(default_factory=utc_now)
    labels: Dict[str, str] = Field(default_factory=dict)


class BaselineStats(BaseModel):
    """
    Baseline statistics for a single metric.

    Fields:
    - mean: central tendency
    - std: population standard deviation (may be 0)
    - count: number of points used
    """

    mean: float
    std: float
    count: int


class ZScoreAnalysis(BaseModel):
    """
    Result of comparing one value to its baseline, regardless of outcome.
    """

    metric_name: str
    current_value: float
    mean: float
    std: float
    z_score: float
    threshold: float
    count: int

    @property
    def is_anomalous(self) -> bool:
        return abs(self.z_score) > self.threshold


class AnomalyMetadata(BaseModel):
    baseline_mean: float
    baseline_std: float
    current_value: float
    z_score: float
    trend_direction: TrendDirection


class Anomaly(BaseModel):
    """
    Detected metric anomaly.

    Fields:
    - id: unique identifier
    - tenant_id: owning tenant
    - metric_name / service_name: what was measured and where
    - anomaly_score: |z-score|
    - threshold: z-score threshold that was exceeded
    - confidence: blend of score magnitude and sample size in [0.0, 1.0]
    - status: review lifecycle, always ACTIVE on creation
    - metadata: baseline reference values and trend
    """

    id: str = Field(default_factory=lambda: f"anomaly_{uuid4().hex}")
    tenant_id: str
    metric_name: str
    service_name: str
    anomaly_score: float = Field(ge=0.0)
    threshold: float
    confidence: float = Field(ge=0.0, le=1.0)
    detected_at: datetime = Field(default_factory=utc_now)
    status: AnomalyStatus = AnomalyStatus.ACTIVE
    metadata: AnomalyMetadata
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @field_validator("anomaly_score", "confidence")
    @classmethod
    def _finite(cls, value: float) -> float:
        if not math.isfinite(value):
            raise ValueError("must be finite")
        return value
