"""
Prediction module: outage risk and fraud / suspicious-activity scoring.
"""

from .fraud import FraudPredictor, behavioral_deviation, pattern_deviation, primary_risk_type
from .outage import OutagePredictor
from .profiles import EWMABaselineEstimator, TenantBaselineStore
from .schema import (
    FraudContext,
    FraudPrediction,
    FraudRisk,
    OutagePrediction,
    OutageStatus,
    PredictionType,
    RiskLevel,
    TransactionData,
    TransactionPattern,
    UserBehaviorProfile,
    Web3ActivityData,
)

__all__ = [
    "FraudPredictor",
    "OutagePredictor",
    "TenantBaselineStore",
    "EWMABaselineEstimator",
    "behavioral_deviation",
    "pattern_deviation",
    "primary_risk_type",
    "FraudContext",
    "FraudPrediction",
    "FraudRisk",
    "OutagePrediction",
    "OutageStatus",
    "PredictionType",
    "RiskLevel",
    "TransactionData",
    "TransactionPattern",
    "UserBehaviorProfile",
    "Web3ActivityData",
]
