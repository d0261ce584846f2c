"""
Schema definitions for outage and fraud predictions.

Inbound records (transactions, Web3 activity, profiles) accept snake_case or
the camelCase keys used by the hosting service's JSON. Numeric fields reject
NaN and Infinity at validation time.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import List, Optional, Tuple
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from src.anomaly.schema import utc_now


class _InboundRecord(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        allow_inf_nan=False,
        extra="ignore",
    )


class OutageStatus(str, Enum):
    PREDICTED = "predicted"
    MITIGATED = "mitigated"
    OCCURRED = "occurred"
    FALSE_POSITIVE = "false_positive"


class PredictionType(str, Enum):
    TRANSACTION_VOLUME = "transaction_volume"
    FREQUENCY_ANOMALY = "frequency_anomaly"
    PATTERN_DEVIATION = "pattern_deviation"
    BEHAVIORAL_ANOMALY = "behavioral_anomaly"


class RiskLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class TransactionData(_InboundRecord):
    """
    Aggregated transaction activity for one tenant over a time window.

    Fields:
    - volume: total monetary volume
    - frequency: number of transactions
    - average_amount: mean transaction amount
    - average_time_between_transactions: mean gap, seconds
    - time_window: label of the window (e.g. "1h")
    """

    volume: float = Field(ge=0.0)
    frequency: float = Field(ge=0.0)
    average_amount: float = Field(0.0, ge=0.0)
    average_time_between_transactions: float = Field(0.0, ge=0.0)
    time_window: str = "1h"


class Web3ActivityData(_InboundRecord):
    wallet_transaction_count: int = Field(0, ge=0)
    large_transaction_count: int = Field(0, ge=0)
    suspicious_contract_interactions: int = Field(0, ge=0)
    abnormal_gas_usage: bool = False
    total_volume: float = Field(0.0, ge=0.0)
    time_window: str = "1h"


class UserBehaviorProfile(_InboundRecord):
    """Typical behavior a tenant's transactions are compared against."""

    user_id: str
    avg_time_between_tx: float = Field(gt=0.0)
    avg_amount: float = Field(gt=0.0)
    typical_hours: List[int] = Field(default_factory=list)
    risk_score: float = Field(0.0, ge=0.0, le=1.0)


class TransactionPattern(_InboundRecord):
    tenant_id: str
    typical_volume: float = Field(gt=0.0)
    typical_frequency: float = Field(gt=0.0)
    typical_amount_range: Tuple[float, float] = (0.0, 0.0)
    peak_hours: List[int] = Field(default_factory=list)


class FraudRisk(BaseModel):
    """One triggered fraud signal."""

    model_config = ConfigDict(frozen=True)

    type: PredictionType
    indicator: str
    score: float = Field(ge=0.0)
    confidence: float = Field(gt=0.0, le=1.0)


class FraudContext(BaseModel):
    model_config = ConfigDict(frozen=True)

    transaction_volume: Optional[float] = None
    transaction_frequency: Optional[float] = None
    user_behavior_score: Optional[float] = None
    pattern_deviation_score: Optional[float] = None
    time_window: str


class FraudPrediction(BaseModel):
    """
    Fraud or suspicious-activity prediction. Immutable once created.

    Fields:
    - risk_score: confidence-weighted mean of triggered signal scores
      (deviation signals are uncapped, so it may exceed 1.0)
    - confidence: mean confidence of triggered signals
    - risk_level: banded from risk_score
    - indicators: human-readable triggered signals (never empty)
    - requires_review: risk_score above the path's review threshold
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: f"fraud_{uuid4().hex}")
    tenant_id: str
    prediction_type: PredictionType
    risk_score: float = Field(ge=0.0)
    confidence: float = Field(ge=0.0, le=1.0)
    risk_level: RiskLevel
    indicators: List[str] = Field(min_length=1)
    context: FraudContext
    requires_review: bool
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


class OutagePrediction(BaseModel):
    """
    Composite outage-risk prediction for one service.

    Fields:
    - prediction_confidence: sum of triggered rule weights (not capped at 1)
    - time_to_failure: estimated minutes until failure
    - risk_factors: triggered rule labels (never empty)
    - affected_metrics: metric names that were evaluated
    - recommended_actions: remediation steps for the triggered rules
    """

    id: str = Field(default_factory=lambda: f"outage_{uuid4().hex}")
    tenant_id: str
    service_name: str
    prediction_confidence: float = Field(ge=0.0)
    time_to_failure: float = Field(ge=0.0)
    risk_factors: List[str] = Field(min_length=1)
    affected_metrics: List[str] = Field(default_factory=list)
    recommended_actions: List[str] = Field(default_factory=list)
    status: OutageStatus = OutageStatus.PREDICTED
    predicted_at: datetime = Field(default_factory=utc_now)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
