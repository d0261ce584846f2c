"""
Unit tests for outage risk prediction.
"""

import pytest

from src.core.config import MonitoringConfig, OutageRule
from src.core.exceptions import ConfigurationError, InvalidInputError
from src.events.publisher import MonitoringEvents
from src.prediction.outage import OutagePredictor
from src.prediction.schema import OutageStatus


def test_single_rule_below_threshold(mock_config, publisher):
    predictor = OutagePredictor(mock_config, publisher)
    metrics = {"cpu_usage": 90, "memory_usage": 50, "error_rate": 0, "response_time": 0}

    score, triggered = predictor.score(metrics)
    assert score == pytest.approx(0.3)
    assert [r.label for r in triggered] == ["High CPU usage"]
    assert predictor.detect_outage_risk("t1", "api", metrics) is None
    assert publisher.events == []


def test_composite_prediction(mock_config, publisher):
    predictor = OutagePredictor(mock_config, publisher)
    metrics = {"cpu_usage": 90, "memory_usage": 95, "error_rate": 15, "response_time": 0}

    prediction = predictor.detect_outage_risk("t1", "billing", metrics)

    assert prediction is not None
    assert prediction.prediction_confidence == pytest.approx(1.0)
    assert prediction.time_to_failure == pytest.approx(30)
    assert prediction.risk_factors == ["High CPU usage", "High memory usage", "High error rate"]
    assert prediction.affected_metrics == ["cpu_usage", "memory_usage", "error_rate", "response_time"]
    assert prediction.recommended_actions == [
        "Scale up compute resources",
        "Optimize CPU-intensive operations",
        "Increase memory allocation",
        "Check for memory leaks",
        "Investigate error logs",
        "Roll back recent deployments",
    ]
    assert prediction.status == OutageStatus.PREDICTED
    assert prediction.id.startswith("outage_")


def test_score_at_threshold_is_not_emitted(mock_config):
    predictor = OutagePredictor(mock_config)
    # 0.3 + 0.3 == 0.6, not strictly above
    assert predictor.detect_outage_risk("t1", "api", {"cpu_usage": 86, "memory_usage": 91}) is None


def test_all_rules_fire_uncapped(mock_config):
    predictor = OutagePredictor(mock_config)
    metrics = {"cpu_usage": 99, "memory_usage": 99, "error_rate": 50, "response_time": 5000}

    prediction = predictor.detect_outage_risk("t1", "api", metrics)
    assert prediction.prediction_confidence == pytest.approx(1.2)
    assert prediction.time_to_failure == pytest.approx(24)
    assert "Optimize slow queries" in prediction.recommended_actions


def test_boundary_values_do_not_fire(mock_config):
    predictor = OutagePredictor(mock_config)
    score, triggered = predictor.score(
        {"cpu_usage": 85, "memory_usage": 90, "error_rate": 10, "response_time": 2000}
    )
    assert score == 0.0
    assert triggered == []


def test_missing_metrics_are_skipped(mock_config):
    predictor = OutagePredictor(mock_config)
    prediction = predictor.detect_outage_risk("t1", "api", {"error_rate": 20, "cpu_usage": 88})

    assert prediction is not None
    assert prediction.prediction_confidence == pytest.approx(0.7)
    assert prediction.risk_factors == ["High CPU usage", "High error rate"]
    assert prediction.affected_metrics == ["error_rate", "cpu_usage"]


def test_event_payload(mock_config, publisher):
    predictor = OutagePredictor(mock_config, publisher)
    prediction = predictor.detect_outage_risk(
        "t1", "api", {"cpu_usage": 95, "error_rate": 20}
    )

    events = publisher.of_type(MonitoringEvents.OUTAGE_PREDICTED.value)
    assert len(events) == 1
    payload = events[0].payload
    assert payload["prediction_id"] == prediction.id
    assert payload["service_name"] == "api"
    assert payload["confidence"] == pytest.approx(0.7)
    assert payload["time_to_failure"] == pytest.approx(39)
    assert payload["risk_factors"] == ["High CPU usage", "High error rate"]


def test_repeated_evaluation_is_stable(mock_config):
    predictor = OutagePredictor(mock_config)
    metrics = {"cpu_usage": 95, "error_rate": 20}
    first = predictor.detect_outage_risk("t1", "api", metrics)
    second = predictor.detect_outage_risk("t1", "api", metrics)

    fields = {"prediction_confidence", "time_to_failure", "risk_factors", "recommended_actions"}
    assert first.model_dump(include=fields) == second.model_dump(include=fields)


def test_non_finite_metric_rejected(mock_config):
    predictor = OutagePredictor(mock_config)
    with pytest.raises(InvalidInputError):
        predictor.detect_outage_risk("t1", "api", {"cpu_usage": float("nan")})


def test_custom_rule_table():
    config = MonitoringConfig()
    config.outage.rules = [
        OutageRule(metric="queue_depth", threshold=1000, label="Queue backlog", weight=0.9,
                   actions=["Add consumers"]),
    ]
    predictor = OutagePredictor(config)

    prediction = predictor.detect_outage_risk("t1", "worker", {"queue_depth": 5000, "cpu_usage": 99})
    assert prediction.risk_factors == ["Queue backlog"]
    assert prediction.recommended_actions == ["Add consumers"]


def test_duplicate_rule_labels_rejected():
    config = MonitoringConfig()
    rule = OutageRule(metric="cpu_usage", threshold=1, label="Dup", weight=0.5)
    config.outage.rules = [rule, rule]
    with pytest.raises(ConfigurationError):
        OutagePredictor(config)


def test_inexact_weight_sum_at_threshold_is_not_emitted(mock_config):
    predictor = OutagePredictor(mock_config)
    metrics = {"error_rate": 11, "response_time": 2001}

    score, triggered = predictor.score(metrics)

    # 0.4 + 0.2 is 0.6000000000000001 in raw float arithmetic
    assert score == 0.6
    assert [r.label for r in triggered] == ["High error rate", "High response time"]
    assert predictor.detect_outage_risk("t1", "api", metrics) is None


def test_reported_confidence_is_rounded(mock_config):
    predictor = OutagePredictor(mock_config)
    prediction = predictor.detect_outage_risk(
        "t1", "api", {"cpu_usage": 90, "error_rate": 11, "response_time": 2001}
    )
    assert prediction.prediction_confidence == 0.9
