"""
Predictive monitoring service.

Wires the baseline store, detectors, predictors, alerts and event publisher
into the operations a hosting service calls per request or per sample.
Every collaborator can be injected; nothing here is a process-wide singleton.
"""

from __future__ import annotations

import logging
import re
import threading
from collections import deque
from datetime import datetime, timedelta, timezone
from typing import Any, Deque, Dict, Iterable, List, Mapping, Optional, Union

from pydantic import ValidationError

from src.anomaly.baselines import RollingBaselineStore, validate_metric_value
from src.anomaly.engine import AnomalyDetector
from src.anomaly.schema import Anomaly, MetricSample
from src.core.config import MonitoringConfig, config as app_config
from src.core.exceptions import InvalidInputError
from src.core.logging_config import setup_logging
from src.events.publisher import EventPublisher, MonitoringEvents, publish_monitoring_event
from src.prediction.fraud import FraudPredictor
from src.prediction.outage import OutagePredictor
from src.prediction.profiles import TenantBaselineStore
from src.prediction.schema import (
    FraudPrediction,
    OutagePrediction,
    TransactionData,
    Web3ActivityData,
)

from .alerts import AlertEvaluator
from .schema import Alert, AnomalyTrend, HealthStatus, PredictiveInsights, ServiceHealth

logger = logging.getLogger(__name__)

_TIME_RANGE = re.compile(r"^(\d+)([mhd])$")
_TIME_UNITS = {"m": "minutes", "h": "hours", "d": "days"}

DEFAULT_RECOMMENDATIONS = [
    "Monitor CPU usage trends",
    "Review transaction patterns",
    "Check Web3 activity patterns",
]


def parse_time_range(time_range: str) -> timedelta:
    """Parse "30m", "24h" or "7d" into a timedelta."""
    match = _TIME_RANGE.match(time_range or "")
    if not match:
        raise InvalidInputError(f"Invalid time range: {time_range!r}")
    amount, unit = match.groups()
    return timedelta(**{_TIME_UNITS[unit]: int(amount)})


class PredictiveMonitoringService:
    """
    Facade over the predictive monitoring core.

    Notes:
    - process_metric mirrors the request flow: update baseline, then detect.
    - Findings are kept per tenant in bounded in-memory logs for insights only.
    """

    def __init__(
        self,
        config: Optional[MonitoringConfig] = None,
        publisher: Optional[EventPublisher] = None,
        baseline_store: Optional[RollingBaselineStore] = None,
        tenant_baselines: Optional[TenantBaselineStore] = None,
        history_limit: int = 500,
    ) -> None:
        setup_logging()
        self.config = config or app_config.monitoring
        self.publisher = publisher
        self.service_name = app_config.service_name
        self.baseline_store = baseline_store or RollingBaselineStore(self.config.baselines.capacity)
        self.tenant_baselines = tenant_baselines or TenantBaselineStore(self.config.fraud)

        self.anomaly_detector = AnomalyDetector(self.baseline_store, self.config, publisher)
        self.outage_predictor = OutagePredictor(self.config, publisher)
        self.fraud_predictor = FraudPredictor(self.config, self.tenant_baselines, publisher)
        self.alerts = AlertEvaluator(self.config.alerts)

        self._history_limit = history_limit
        self._health: Dict[str, ServiceHealth] = {}
        self._anomalies: Dict[str, Deque[Anomaly]] = {}
        self._outages: Dict[str, Deque[OutagePrediction]] = {}
        self._frauds: Dict[str, Deque[FraudPrediction]] = {}
        self._lock = threading.Lock()

    # Baselines and samples

    def update_baseline(self, metric_name: str, value: float) -> None:
        self.baseline_store.update_baseline(metric_name, value)

    def get_historical_data(self, metric_name: str):
        return self.baseline_store.get_historical_data(metric_name)

    def record_metric(
        self,
        service_name: str,
        metric_name: str,
        value: float,
        labels: Optional[Mapping[str, str]] = None,
        timestamp: Optional[datetime] = None,
    ) -> MetricSample:
        value = validate_metric_value(metric_name, value)
        fields: Dict[str, Any] = {
            "service_name": service_name,
            "metric_name": metric_name,
            "value": value,
            "labels": dict(labels or {}),
        }
        if timestamp is not None:
            fields["timestamp"] = timestamp
        try:
            sample = MetricSample(**fields)
        except ValidationError as exc:
            raise InvalidInputError(f"Invalid metric sample: {exc}") from exc

        self.baseline_store.update_baseline(sample.metric_name, sample.value)
        alert = self.alerts.evaluate(sample.service_name, sample.metric_name, sample.value)
        if alert is not None:
            publish_monitoring_event(
                self.publisher,
                MonitoringEvents.ALERT_TRIGGERED,
                {
                    "alert_id": alert.id,
                    "service_name": alert.service_name,
                    "metric_name": alert.metric_name,
                    "severity": alert.severity.value,
                    "current_value": alert.current_value,
                    "threshold": alert.threshold,
                },
                service_name=self.service_name,
            )
        return sample

    # Detection

    def detect_anomaly(
        self,
        tenant_id: str,
        service_name: str,
        metric_name: str,
        value: float,
    ) -> Optional[Anomaly]:
        anomaly = self.anomaly_detector.detect_anomaly(tenant_id, service_name, metric_name, value)
        if anomaly is not None:
            self._remember(self._anomalies, tenant_id, anomaly)
        return anomaly

    def process_metric(
        self,
        tenant_id: str,
        service_name: str,
        metric_name: str,
        value: float,
        labels: Optional[Mapping[str, str]] = None,
    ) -> Optional[Anomaly]:
        sample = self.record_metric(service_name, metric_name, value, labels)
        return self.detect_anomaly(tenant_id, sample.service_name, sample.metric_name, sample.value)

    def replay(self, tenant_id: str, samples: Iterable[MetricSample]) -> List[Anomaly]:
        """Feed samples in order through process_metric, returning detected anomalies."""
        found: List[Anomaly] = []
        for sample in samples:
            anomaly = self.process_metric(
                tenant_id, sample.service_name, sample.metric_name, sample.value, sample.labels
            )
            if anomaly is not None:
                found.append(anomaly)
        logger.info("Replayed samples for %s: %d anomalies", tenant_id, len(found))
        return found

    def detect_outage_risk(
        self,
        tenant_id: str,
        service_name: str,
        metrics: Mapping[str, float],
    ) -> Optional[OutagePrediction]:
        prediction = self.outage_predictor.detect_outage_risk(tenant_id, service_name, metrics)
        if prediction is not None:
            self._remember(self._outages, tenant_id, prediction)
        return prediction

    def detect_fraud(
        self,
        tenant_id: str,
        transaction: Union[TransactionData, Mapping[str, Any]],
    ) -> Optional[FraudPrediction]:
        prediction = self.fraud_predictor.detect_fraud(tenant_id, transaction)
        if prediction is not None:
            self._remember(self._frauds, tenant_id, prediction)
        return prediction

    def detect_web3_suspicious_activity(
        self,
        tenant_id: str,
        activity: Union[Web3ActivityData, Mapping[str, Any]],
    ) -> Optional[FraudPrediction]:
        prediction = self.fraud_predictor.detect_web3_suspicious_activity(tenant_id, activity)
        if prediction is not None:
            self._remember(self._frauds, tenant_id, prediction)
        return prediction

    # Service health

    def update_service_health(self, service_name: str, **fields: Any) -> ServiceHealth:
        """
        Merge fields into the service's health snapshot and record its metrics.

        Without an explicit status, the service is degraded when CPU is above
        90% or memory above 95%.
        """
        if not service_name:
            raise InvalidInputError("service_name is required")

        with self._lock:
            current = self._health.get(service_name) or ServiceHealth(service_name=service_name)
            merged = {**current.model_dump(), **fields, "last_check": datetime.now(timezone.utc)}
            try:
                health = ServiceHealth.model_validate(merged)
            except ValidationError as exc:
                raise InvalidInputError(f"Invalid health update for {service_name}: {exc}") from exc
            if "status" not in fields:
                degraded = health.cpu_usage > 90 or health.memory_usage > 95
                health = health.model_copy(
                    update={"status": HealthStatus.DEGRADED if degraded else HealthStatus.HEALTHY}
                )
            self._health[service_name] = health

        for metric_name, value in health.metrics().items():
            self.record_metric(service_name, metric_name, value)
        return health

    def get_service_health(self, service_name: str) -> Optional[ServiceHealth]:
        return self._health.get(service_name)

    def get_all_service_health(self) -> List[ServiceHealth]:
        with self._lock:
            return list(self._health.values())

    def evaluate_service(self, tenant_id: str, service_name: str) -> Optional[OutagePrediction]:
        """Run outage risk detection on the service's current health snapshot."""
        health = self._health.get(service_name)
        if health is None:
            return None
        return self.detect_outage_risk(tenant_id, service_name, health.metrics())

    def get_active_alerts(self) -> List[Alert]:
        return self.alerts.active_alerts()

    # Insights

    def get_predictive_insights(self, tenant_id: str, time_range: str = "24h") -> PredictiveInsights:
        since = datetime.now(timezone.utc) - parse_time_range(time_range)

        with self._lock:
            anomalies = [a for a in self._anomalies.get(tenant_id, ()) if a.detected_at >= since]
            outages = [p for p in self._outages.get(tenant_id, ()) if p.predicted_at >= since]
            frauds = [p for p in self._frauds.get(tenant_id, ()) if p.created_at >= since]
            health = list(self._health.values())

        trends: Dict[tuple, AnomalyTrend] = {}
        for anomaly in anomalies:
            key = (anomaly.service_name, anomaly.metric_name)
            trend = trends.get(key)
            if trend is None:
                trends[key] = AnomalyTrend(
                    metric_name=anomaly.metric_name,
                    service_name=anomaly.service_name,
                    count=1,
                    max_score=anomaly.anomaly_score,
                    latest_at=anomaly.detected_at,
                )
            else:
                trends[key] = trend.model_copy(update={
                    "count": trend.count + 1,
                    "max_score": max(trend.max_score, anomaly.anomaly_score),
                    "latest_at": max(trend.latest_at, anomaly.detected_at),
                })

        recommendations: List[str] = []
        for prediction in outages:
            for action in prediction.recommended_actions:
                if action not in recommendations:
                    recommendations.append(action)
        if not recommendations:
            recommendations = list(DEFAULT_RECOMMENDATIONS)

        if health:
            healthy = sum(1 for h in health if h.status == HealthStatus.HEALTHY)
            health_score = healthy / len(health)
        else:
            health_score = 1.0

        return PredictiveInsights(
            tenant_id=tenant_id,
            time_range=time_range,
            anomaly_trends=sorted(trends.values(), key=lambda t: (-t.count, t.service_name, t.metric_name)),
            anomaly_count=len(anomalies),
            fraud_predictions=len(frauds),
            fraud_requiring_review=sum(1 for p in frauds if p.requires_review),
            outage_predictions=len(outages),
            system_health_score=health_score,
            recommendations=recommendations,
        )

    def _remember(self, log: Dict[str, Deque], tenant_id: str, item: Any) -> None:
        with self._lock:
            entries = log.get(tenant_id)
            if entries is None:
                entries = deque(maxlen=self._history_limit)
                log[tenant_id] = entries
            entries.append(item)
