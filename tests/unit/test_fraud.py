"""
Unit tests for fraud and Web3 suspicious-activity prediction.
"""

import pytest
from pydantic import ValidationError

from src.core.config import MonitoringConfig
from src.core.exceptions import ConfigurationError, InvalidInputError
from src.events.publisher import MonitoringEvents
from src.prediction.fraud import FraudPredictor, primary_risk_type
from src.prediction.profiles import TenantBaselineStore
from src.prediction.schema import (
    FraudRisk,
    PredictionType,
    RiskLevel,
    TransactionData,
    TransactionPattern,
    UserBehaviorProfile,
)


def _quiet_transaction(**overrides):
    data = {
        "volume": 20_000,
        "frequency": 40,
        "average_amount": 500,
        "average_time_between_transactions": 90,
        "time_window": "1h",
    }
    data.update(overrides)
    return data


def _profile(avg_time=100.0, avg_amount=100.0):
    return UserBehaviorProfile(user_id="u1", avg_time_between_tx=avg_time, avg_amount=avg_amount)


class TestTransactionPath:
    """Transaction fraud scoring."""

    def test_no_signals_returns_none(self, mock_config, publisher):
        predictor = FraudPredictor(mock_config, publisher=publisher)
        assert predictor.detect_fraud("t1", _quiet_transaction()) is None
        assert publisher.events == []

    def test_volume_spike(self, mock_config):
        predictor = FraudPredictor(mock_config)

        prediction = predictor.detect_fraud("t1", _quiet_transaction(volume=60_000))

        assert prediction is not None
        assert prediction.prediction_type == PredictionType.TRANSACTION_VOLUME
        assert prediction.risk_score == pytest.approx(1.0)
        assert prediction.confidence == pytest.approx(0.85)
        assert prediction.risk_level == RiskLevel.CRITICAL
        assert prediction.requires_review is True
        assert prediction.indicators == ["Transaction volume 60000 exceeds baseline 10000"]
        assert prediction.context.transaction_volume == 60_000
        assert prediction.context.time_window == "1h"
        assert prediction.id.startswith("fraud_")

    def test_volume_at_threshold_does_not_fire(self, mock_config):
        predictor = FraudPredictor(mock_config)
        assert predictor.detect_fraud("t1", _quiet_transaction(volume=50_000)) is None

    def test_frequency_spike(self, mock_config):
        predictor = FraudPredictor(mock_config)
        prediction = predictor.detect_fraud("t1", _quiet_transaction(frequency=151))

        assert prediction.prediction_type == PredictionType.FREQUENCY_ANOMALY
        assert prediction.confidence == pytest.approx(0.9)

    def test_behavioral_deviation(self, mock_config):
        store = TenantBaselineStore(mock_config.fraud)
        store.set_behavior_profile("t1", _profile())
        predictor = FraudPredictor(mock_config, tenant_baselines=store)

        prediction = predictor.detect_fraud(
            "t1",
            _quiet_transaction(average_time_between_transactions=175, average_amount=175),
        )

        assert prediction.prediction_type == PredictionType.BEHAVIORAL_ANOMALY
        assert prediction.risk_score == pytest.approx(0.75)
        assert prediction.risk_level == RiskLevel.HIGH
        assert prediction.requires_review is False
        assert prediction.context.user_behavior_score == pytest.approx(0.75)
        assert prediction.context.pattern_deviation_score == 0.0

    def test_behavior_profile_required(self, mock_config):
        predictor = FraudPredictor(mock_config)
        assert predictor.detect_fraud(
            "t1", _quiet_transaction(average_time_between_transactions=900, average_amount=900)
        ) is None

    def test_pattern_deviation(self, mock_config):
        store = TenantBaselineStore(mock_config.fraud)
        store.set_transaction_pattern(
            "t1", TransactionPattern(tenant_id="t1", typical_volume=10_000, typical_frequency=10)
        )
        predictor = FraudPredictor(mock_config, tenant_baselines=store)

        prediction = predictor.detect_fraud("t1", _quiet_transaction(volume=19_000, frequency=19))

        assert prediction.prediction_type == PredictionType.PATTERN_DEVIATION
        assert prediction.risk_score == pytest.approx(0.9)
        assert prediction.confidence == pytest.approx(0.95)
        assert prediction.risk_level == RiskLevel.CRITICAL
        assert prediction.requires_review is True

    @pytest.mark.parametrize("observed,deviation", [(400, 3.0), (1000, 9.0)])
    def test_deviation_scores_are_uncapped(self, mock_config, observed, deviation):
        store = TenantBaselineStore(mock_config.fraud)
        store.set_behavior_profile("t1", _profile())
        predictor = FraudPredictor(mock_config, tenant_baselines=store)

        prediction = predictor.detect_fraud(
            "t1",
            _quiet_transaction(average_time_between_transactions=observed, average_amount=observed),
        )
        assert prediction.risk_score == pytest.approx(deviation)
        assert prediction.context.user_behavior_score == pytest.approx(deviation)
        assert prediction.risk_level == RiskLevel.CRITICAL
        assert prediction.requires_review is True

    def test_pattern_score_is_uncapped(self, mock_config):
        store = TenantBaselineStore(mock_config.fraud)
        store.set_transaction_pattern(
            "t1", TransactionPattern(tenant_id="t1", typical_volume=10_000, typical_frequency=10)
        )
        predictor = FraudPredictor(mock_config, tenant_baselines=store)

        prediction = predictor.detect_fraud("t1", _quiet_transaction(volume=40_000, frequency=40))
        assert prediction.context.pattern_deviation_score == pytest.approx(3.0)
        assert prediction.risk_score == pytest.approx(3.0)

    def test_mixed_signals_pick_highest_type(self, mock_config):
        store = TenantBaselineStore(mock_config.fraud)
        store.set_behavior_profile("t1", _profile())
        predictor = FraudPredictor(mock_config, tenant_baselines=store)

        prediction = predictor.detect_fraud(
            "t1",
            _quiet_transaction(
                volume=80_000, average_time_between_transactions=175, average_amount=175
            ),
        )

        assert prediction.prediction_type == PredictionType.TRANSACTION_VOLUME
        assert prediction.risk_score == pytest.approx((1.0 * 0.85 + 0.75 * 0.8) / 1.65)
        assert prediction.confidence == pytest.approx((0.85 + 0.8) / 2)
        assert len(prediction.indicators) == 2

    def test_observed_tenant_baseline(self, mock_config):
        store = TenantBaselineStore(mock_config.fraud)
        for _ in range(mock_config.fraud.min_observations):
            store.observe_transaction("t1", TransactionData(volume=1000, frequency=5))
        predictor = FraudPredictor(mock_config, tenant_baselines=store)

        assert predictor.detect_fraud("t1", _quiet_transaction(volume=6000)) is not None
        # other tenants keep the default baseline
        assert predictor.detect_fraud("t2", _quiet_transaction(volume=6000)) is None

    def test_camel_case_record(self, mock_config):
        predictor = FraudPredictor(mock_config)
        prediction = predictor.detect_fraud(
            "t1",
            {
                "volume": 75_000,
                "frequency": 10,
                "averageAmount": 50,
                "averageTimeBetweenTransactions": 60,
                "timeWindow": "24h",
            },
        )
        assert prediction.context.time_window == "24h"

    @pytest.mark.parametrize(
        "record",
        [
            {"volume": float("nan"), "frequency": 1},
            {"volume": float("inf"), "frequency": 1},
            {"frequency": 1},
            {"volume": "lots", "frequency": 1},
            None,
        ],
    )
    def test_invalid_records_rejected(self, mock_config, record):
        predictor = FraudPredictor(mock_config)
        with pytest.raises(InvalidInputError):
            predictor.detect_fraud("t1", record)

    def test_event_published(self, mock_config, publisher):
        predictor = FraudPredictor(mock_config, publisher=publisher)
        prediction = predictor.detect_fraud("t1", _quiet_transaction(volume=60_000))

        events = publisher.of_type(MonitoringEvents.FRAUD_PREDICTED.value)
        assert len(events) == 1
        payload = events[0].payload
        assert payload["prediction_id"] == prediction.id
        assert payload["prediction_type"] == "transaction_volume"
        assert payload["risk_level"] == "critical"
        assert payload["requires_review"] is True
        assert payload["indicators"] == prediction.indicators

    def test_prediction_is_immutable(self, mock_config):
        predictor = FraudPredictor(mock_config)
        prediction = predictor.detect_fraud("t1", _quiet_transaction(volume=60_000))
        with pytest.raises(ValidationError):
            prediction.risk_score = 0.1


class TestWeb3Path:
    """Web3 suspicious-activity scoring."""

    def test_no_signals(self, mock_config):
        predictor = FraudPredictor(mock_config)
        assert predictor.detect_web3_suspicious_activity("t1", {"wallet_transaction_count": 5}) is None

    def test_low_single_signal_not_emitted(self, mock_config):
        predictor = FraudPredictor(mock_config)
        assert predictor.detect_web3_suspicious_activity("t1", {"abnormal_gas_usage": True}) is None

    def test_contract_interactions(self, mock_config, publisher):
        predictor = FraudPredictor(mock_config, publisher=publisher)

        prediction = predictor.detect_web3_suspicious_activity(
            "t1", {"suspicious_contract_interactions": 2, "total_volume": 12.5, "time_window": "6h"}
        )

        assert prediction.risk_score == pytest.approx(0.8)
        assert prediction.risk_level == RiskLevel.CRITICAL
        assert prediction.requires_review is True
        assert prediction.prediction_type == PredictionType.BEHAVIORAL_ANOMALY
        assert prediction.indicators == ["Suspicious contract interactions detected"]
        assert prediction.context.transaction_volume == 12.5
        assert prediction.id.startswith("web3_fraud_")
        assert len(publisher.of_type(MonitoringEvents.FRAUD_PREDICTED.value)) == 1

    def test_wallet_and_large_transactions(self, mock_config):
        predictor = FraudPredictor(mock_config)

        prediction = predictor.detect_web3_suspicious_activity(
            "t1", {"walletTransactionCount": 150, "largeTransactionCount": 11}
        )

        assert prediction.risk_score == pytest.approx((0.6 * 0.8 + 0.7 * 0.9) / 1.7)
        assert prediction.risk_level == RiskLevel.HIGH
        assert prediction.requires_review is False
        assert prediction.context.transaction_frequency == 150

    def test_dominant_type_when_configured(self):
        config = MonitoringConfig()
        config.fraud.web3_prediction_type = None
        predictor = FraudPredictor(config)

        prediction = predictor.detect_web3_suspicious_activity(
            "t1", {"suspicious_contract_interactions": 1, "abnormal_gas_usage": True}
        )
        assert prediction.prediction_type == PredictionType.PATTERN_DEVIATION

    def test_unknown_configured_type_rejected(self):
        config = MonitoringConfig()
        config.fraud.web3_prediction_type = "phishing"
        with pytest.raises(ConfigurationError):
            FraudPredictor(config)

    def test_negative_counts_rejected(self, mock_config):
        predictor = FraudPredictor(mock_config)
        with pytest.raises(InvalidInputError):
            predictor.detect_web3_suspicious_activity("t1", {"wallet_transaction_count": -1})


def test_same_score_diverges_between_paths():
    """An aggregate of 0.65 clears the Web3 threshold but not the transaction one."""
    config = MonitoringConfig()
    config.fraud.behavior_threshold = 0.5
    config.fraud.web3_gas_score = 0.65
    store = TenantBaselineStore(config.fraud)
    store.set_behavior_profile("t1", _profile())
    predictor = FraudPredictor(config, tenant_baselines=store)

    transaction = _quiet_transaction(average_time_between_transactions=165, average_amount=165)
    assert predictor.transaction_risks("t1", TransactionData(**transaction))[0].score == pytest.approx(0.65)
    assert predictor.detect_fraud("t1", transaction) is None

    web3 = predictor.detect_web3_suspicious_activity("t1", {"abnormal_gas_usage": True})
    assert web3 is not None
    assert web3.risk_score == pytest.approx(0.65)


def test_primary_risk_type_first_wins_ties():
    risks = [
        FraudRisk(type=PredictionType.FREQUENCY_ANOMALY, indicator="a", score=1.0, confidence=0.9),
        FraudRisk(type=PredictionType.TRANSACTION_VOLUME, indicator="b", score=1.0, confidence=0.85),
    ]
    assert primary_risk_type(risks) == PredictionType.FREQUENCY_ANOMALY
