"""
Outage risk prediction from simultaneous service-health metrics.

Each configured rule that fires adds its weight to a composite score and its
label to the risk factors. Scores above the risk threshold produce a
prediction with a time-to-failure estimate and remediation steps.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Mapping, Optional, Tuple

from src.anomaly.baselines import validate_metric_value
from src.anomaly.scoring import time_to_failure
from src.core.config import MonitoringConfig, OutageRule, config as app_config
from src.core.exceptions import ConfigurationError, InvalidInputError
from src.events.publisher import EventPublisher, MonitoringEvents, publish_monitoring_event

from .schema import OutagePrediction

logger = logging.getLogger(__name__)

SCORE_PRECISION = 9


class OutagePredictor:
    """
    Rule-based outage risk predictor.

    Notes:
    - Metrics missing from the input never fire their rule.
    - The composite score is a plain sum of weights and may exceed 1.0.
    - Emission requires the score to be strictly above risk_threshold.
    """

    def __init__(
        self,
        config: Optional[MonitoringConfig] = None,
        publisher: Optional[EventPublisher] = None,
        service_name: Optional[str] = None,
    ) -> None:
        self.config = config or app_config.monitoring
        self.publisher = publisher
        self.service_name = service_name or app_config.service_name

        labels = [rule.label for rule in self.config.outage.rules]
        if len(labels) != len(set(labels)):
            raise ConfigurationError(f"Outage rule labels must be unique: {labels}")

    def score(self, metrics: Mapping[str, float]) -> Tuple[float, List[OutageRule]]:
        """
        Evaluate the rule table.

        Returns:
            (composite score, triggered rules in table order)

        The score is rounded to SCORE_PRECISION places so that weight sums
        such as 0.4 + 0.2 compare equal to the threshold they add up to.
        """
        triggered: List[OutageRule] = []
        total = 0.0
        for rule in self.config.outage.rules:
            if rule.metric not in metrics:
                continue
            if metrics[rule.metric] > rule.threshold:
                triggered.append(rule)
                total += rule.weight
        return round(total, SCORE_PRECISION), triggered

    def detect_outage_risk(
        self,
        tenant_id: str,
        service_name: str,
        metrics: Mapping[str, float],
    ) -> Optional[OutagePrediction]:
        if not tenant_id:
            raise InvalidInputError("tenant_id is required")
        if not service_name:
            raise InvalidInputError("service_name is required")
        if metrics is None:
            raise InvalidInputError("metrics are required")

        checked: Dict[str, float] = {
            name: validate_metric_value(name, value) for name, value in metrics.items()
        }
        total, triggered = self.score(checked)
        outage = self.config.outage

        if total <= outage.risk_threshold:
            return None

        actions: List[str] = []
        for rule in triggered:
            actions.extend(rule.actions)

        prediction = OutagePrediction(
            tenant_id=tenant_id,
            service_name=service_name,
            prediction_confidence=total,
            time_to_failure=time_to_failure(
                total,
                max_minutes=outage.max_time_to_failure,
                min_minutes=outage.min_time_to_failure,
                slope=outage.ttf_slope,
            ),
            risk_factors=[rule.label for rule in triggered],
            affected_metrics=list(checked),
            recommended_actions=actions,
        )
        logger.info(
            "Outage predicted for %s: score=%.2f ttf=%.0fmin factors=%s",
            service_name, total, prediction.time_to_failure, prediction.risk_factors,
        )

        publish_monitoring_event(
            self.publisher,
            MonitoringEvents.OUTAGE_PREDICTED,
            {
                "prediction_id": prediction.id,
                "tenant_id": prediction.tenant_id,
                "service_name": prediction.service_name,
                "confidence": prediction.prediction_confidence,
                "time_to_failure": prediction.time_to_failure,
                "risk_factors": prediction.risk_factors,
            },
            service_name=self.service_name,
        )
        return prediction
