"""
Fraud and suspicious-activity prediction.

Two entry points share one aggregation:
- Transactions: volume, frequency, behavioral and pattern signals.
- Web3 activity: wallet frequency, large transfers, contract interactions, gas usage.

Triggered signals are combined as a confidence-weighted mean; the result is
banded into a risk level and emitted only above the path's threshold.
"""

from __future__ import annotations

import logging
from typing import Any, List, Mapping, Optional, Union
from uuid import uuid4

from src.anomaly.scoring import confidence_weighted_mean, requires_review, risk_level
from src.core.config import MonitoringConfig, config as app_config
from src.core.exceptions import ConfigurationError, InvalidInputError
from src.core.validation import coerce_record
from src.events.publisher import EventPublisher, MonitoringEvents, publish_monitoring_event

from .profiles import TenantBaselineStore
from .schema import (
    FraudContext,
    FraudPrediction,
    FraudRisk,
    PredictionType,
    RiskLevel,
    TransactionData,
    TransactionPattern,
    UserBehaviorProfile,
    Web3ActivityData,
)

logger = logging.getLogger(__name__)


def behavioral_deviation(profile: UserBehaviorProfile, data: TransactionData) -> float:
    time_dev = abs(data.average_time_between_transactions - profile.avg_time_between_tx) / profile.avg_time_between_tx
    amount_dev = abs(data.average_amount - profile.avg_amount) / profile.avg_amount
    return (time_dev + amount_dev) / 2


def pattern_deviation(pattern: TransactionPattern, data: TransactionData) -> float:
    volume_dev = abs(data.volume - pattern.typical_volume) / pattern.typical_volume
    frequency_dev = abs(data.frequency - pattern.typical_frequency) / pattern.typical_frequency
    return (volume_dev + frequency_dev) / 2


def primary_risk_type(risks: List[FraudRisk]) -> PredictionType:
    """Type of the highest-scoring signal; the earliest wins ties."""
    highest = risks[0]
    for risk in risks[1:]:
        if risk.score > highest.score:
            highest = risk
    return highest.type


class FraudPredictor:
    """
    Fraud risk predictor for transaction windows and Web3 activity.

    Notes:
    - Behavioral and pattern signals need stored tenant reference data;
      without it they simply do not fire.
    - Behavioral and pattern scores are the raw deviation and may exceed
      1.0, so risk_score may too; it still bands as critical.
    """

    def __init__(
        self,
        config: Optional[MonitoringConfig] = None,
        tenant_baselines: Optional[TenantBaselineStore] = None,
        publisher: Optional[EventPublisher] = None,
        service_name: Optional[str] = None,
    ) -> None:
        self.config = config or app_config.monitoring
        self.tenant_baselines = tenant_baselines or TenantBaselineStore(self.config.fraud)
        self.publisher = publisher
        self.service_name = service_name or app_config.service_name

        web3_type = self.config.fraud.web3_prediction_type
        if web3_type is not None and web3_type not in {t.value for t in PredictionType}:
            raise ConfigurationError(f"Unknown web3_prediction_type: {web3_type}")

    # Transaction signals

    def _volume_risk(self, tenant_id: str, data: TransactionData) -> Optional[FraudRisk]:
        fraud = self.config.fraud
        baseline = self.tenant_baselines.volume_baseline(tenant_id)
        threshold = baseline * fraud.volume_multiplier
        if data.volume <= threshold:
            return None
        return FraudRisk(
            type=PredictionType.TRANSACTION_VOLUME,
            indicator=f"Transaction volume {data.volume:g} exceeds baseline {baseline:g}",
            score=min(data.volume / threshold, 1.0),
            confidence=fraud.volume_confidence,
        )

    def _frequency_risk(self, tenant_id: str, data: TransactionData) -> Optional[FraudRisk]:
        fraud = self.config.fraud
        baseline = self.tenant_baselines.frequency_baseline(tenant_id)
        threshold = baseline * fraud.frequency_multiplier
        if data.frequency <= threshold:
            return None
        return FraudRisk(
            type=PredictionType.FREQUENCY_ANOMALY,
            indicator=f"Transaction frequency {data.frequency:g} exceeds baseline {baseline:g}",
            score=min(data.frequency / threshold, 1.0),
            confidence=fraud.frequency_confidence,
        )

    def _behavior_risk(self, tenant_id: str, data: TransactionData) -> Optional[FraudRisk]:
        profile = self.tenant_baselines.get_behavior_profile(tenant_id)
        if profile is None:
            return None
        deviation = behavioral_deviation(profile, data)
        if deviation <= self.config.fraud.behavior_threshold:
            return None
        return FraudRisk(
            type=PredictionType.BEHAVIORAL_ANOMALY,
            indicator="Unusual user behavior pattern detected",
            score=deviation,
            confidence=self.config.fraud.behavior_confidence,
        )

    def _pattern_risk(self, tenant_id: str, data: TransactionData) -> Optional[FraudRisk]:
        pattern = self.tenant_baselines.get_transaction_pattern(tenant_id)
        if pattern is None:
            return None
        deviation = pattern_deviation(pattern, data)
        if deviation <= self.config.fraud.pattern_threshold:
            return None
        return FraudRisk(
            type=PredictionType.PATTERN_DEVIATION,
            indicator="Significant deviation from normal transaction patterns",
            score=deviation,
            confidence=self.config.fraud.pattern_confidence,
        )

    def transaction_risks(self, tenant_id: str, data: TransactionData) -> List[FraudRisk]:
        candidates = (
            self._volume_risk(tenant_id, data),
            self._frequency_risk(tenant_id, data),
            self._behavior_risk(tenant_id, data),
            self._pattern_risk(tenant_id, data),
        )
        return [risk for risk in candidates if risk is not None]

    def web3_risks(self, activity: Web3ActivityData) -> List[FraudRisk]:
        fraud = self.config.fraud
        risks: List[FraudRisk] = []
        if activity.wallet_transaction_count > fraud.web3_wallet_tx_limit:
            risks.append(FraudRisk(
                type=PredictionType.FREQUENCY_ANOMALY,
                indicator="High wallet transaction frequency",
                score=fraud.web3_wallet_score,
                confidence=fraud.web3_wallet_confidence,
            ))
        if activity.large_transaction_count > fraud.web3_large_tx_limit:
            risks.append(FraudRisk(
                type=PredictionType.TRANSACTION_VOLUME,
                indicator="Unusual number of large transactions",
                score=fraud.web3_large_tx_score,
                confidence=fraud.web3_large_tx_confidence,
            ))
        if activity.suspicious_contract_interactions > 0:
            risks.append(FraudRisk(
                type=PredictionType.PATTERN_DEVIATION,
                indicator="Suspicious contract interactions detected",
                score=fraud.web3_contract_score,
                confidence=fraud.web3_contract_confidence,
            ))
        if activity.abnormal_gas_usage:
            risks.append(FraudRisk(
                type=PredictionType.BEHAVIORAL_ANOMALY,
                indicator="Abnormal gas usage patterns",
                score=fraud.web3_gas_score,
                confidence=fraud.web3_gas_confidence,
            ))
        return risks

    # Entry points

    def detect_fraud(
        self,
        tenant_id: str,
        transaction: Union[TransactionData, Mapping[str, Any]],
    ) -> Optional[FraudPrediction]:
        if not tenant_id:
            raise InvalidInputError("tenant_id is required")
        data = coerce_record(TransactionData, transaction)

        risks = self.transaction_risks(tenant_id, data)
        if not risks:
            return None

        score, confidence = confidence_weighted_mean((r.score, r.confidence) for r in risks)
        fraud = self.config.fraud
        if score <= fraud.transaction_threshold:
            logger.debug("Transaction risk %.3f for %s below threshold", score, tenant_id)
            return None

        context = FraudContext(
            transaction_volume=data.volume,
            transaction_frequency=data.frequency,
            user_behavior_score=_score_of(risks, PredictionType.BEHAVIORAL_ANOMALY),
            pattern_deviation_score=_score_of(risks, PredictionType.PATTERN_DEVIATION),
            time_window=data.time_window,
        )
        prediction = self._build_prediction(
            tenant_id=tenant_id,
            risks=risks,
            score=score,
            confidence=confidence,
            prediction_type=primary_risk_type(risks),
            context=context,
            review_threshold=fraud.transaction_review_threshold,
            id_prefix="fraud",
        )
        return self._emit(prediction)

    def detect_web3_suspicious_activity(
        self,
        tenant_id: str,
        activity: Union[Web3ActivityData, Mapping[str, Any]],
    ) -> Optional[FraudPrediction]:
        if not tenant_id:
            raise InvalidInputError("tenant_id is required")
        data = coerce_record(Web3ActivityData, activity)

        risks = self.web3_risks(data)
        if not risks:
            return None

        score, confidence = confidence_weighted_mean((r.score, r.confidence) for r in risks)
        fraud = self.config.fraud
        if score <= fraud.web3_threshold:
            logger.debug("Web3 risk %.3f for %s below threshold", score, tenant_id)
            return None

        if fraud.web3_prediction_type is None:
            prediction_type = primary_risk_type(risks)
        else:
            prediction_type = PredictionType(fraud.web3_prediction_type)

        context = FraudContext(
            transaction_volume=data.total_volume,
            transaction_frequency=float(data.wallet_transaction_count),
            time_window=data.time_window,
        )
        prediction = self._build_prediction(
            tenant_id=tenant_id,
            risks=risks,
            score=score,
            confidence=confidence,
            prediction_type=prediction_type,
            context=context,
            review_threshold=fraud.web3_review_threshold,
            id_prefix="web3_fraud",
        )
        return self._emit(prediction)

    def _build_prediction(
        self,
        tenant_id: str,
        risks: List[FraudRisk],
        score: float,
        confidence: float,
        prediction_type: PredictionType,
        context: FraudContext,
        review_threshold: float,
        id_prefix: str,
    ) -> FraudPrediction:
        return FraudPrediction(
            id=f"{id_prefix}_{uuid4().hex}",
            tenant_id=tenant_id,
            prediction_type=prediction_type,
            risk_score=score,
            confidence=confidence,
            risk_level=RiskLevel(risk_level(score, self.config.risk_bands)),
            indicators=[r.indicator for r in risks],
            context=context,
            requires_review=requires_review(score, review_threshold),
        )

    def _emit(self, prediction: FraudPrediction) -> FraudPrediction:
        logger.info(
            "Fraud predicted for %s: type=%s score=%.3f level=%s review=%s",
            prediction.tenant_id,
            prediction.prediction_type.value,
            prediction.risk_score,
            prediction.risk_level.value,
            prediction.requires_review,
        )
        publish_monitoring_event(
            self.publisher,
            MonitoringEvents.FRAUD_PREDICTED,
            {
                "prediction_id": prediction.id,
                "tenant_id": prediction.tenant_id,
                "prediction_type": prediction.prediction_type.value,
                "risk_score": prediction.risk_score,
                "risk_level": prediction.risk_level.value,
                "requires_review": prediction.requires_review,
                "indicators": list(prediction.indicators),
            },
            service_name=self.service_name,
        )
        return prediction


def _score_of(risks: List[FraudRisk], risk_type: PredictionType) -> float:
    for risk in risks:
        if risk.type == risk_type:
            return risk.score
    return 0.0
