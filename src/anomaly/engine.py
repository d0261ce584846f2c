"""
Metric anomaly detection engine.

Scores an incoming metric value against the rolling baseline of its metric
name, classifies the recent trend, and publishes detected anomalies.
The baseline is not updated here; callers feed it explicitly.
"""

from __future__ import annotations

import logging
from typing import Optional

from src.core.config import MonitoringConfig, config as app_config
from src.core.exceptions import InvalidInputError
from src.events.publisher import EventPublisher, MonitoringEvents, publish_monitoring_event

from .baselines import RollingBaselineStore, compute_stats, validate_metric_value
from .detectors import TrendDetector, ZScoreDetector
from .schema import Anomaly, AnomalyMetadata, ZScoreAnalysis
from .scoring import anomaly_confidence

logger = logging.getLogger(__name__)


class AnomalyDetector:
    """
    Z-score anomaly detector over a shared baseline store.

    Notes:
    - Warm-up: fewer than min_points history values means no detection.
    - Detection requires |z| strictly greater than the metric's threshold.
    - Statistics and trend are computed from one snapshot of the history.
    """

    def __init__(
        self,
        baseline_store: RollingBaselineStore,
        config: Optional[MonitoringConfig] = None,
        publisher: Optional[EventPublisher] = None,
        service_name: Optional[str] = None,
    ) -> None:
        self.config = config or app_config.monitoring
        self.baseline_store = baseline_store
        self.publisher = publisher
        self.service_name = service_name or app_config.service_name
        self._z_detector = ZScoreDetector()
        self._trend_detector = TrendDetector(
            window=self.config.baselines.trend_window,
            change_threshold=self.config.baselines.trend_change,
        )

    def analyze(self, metric_name: str, current_value: float) -> Optional[ZScoreAnalysis]:
        """
        Compare a value to the metric's baseline without publishing anything.

        Returns None while the baseline is still warming up.
        """
        current_value = validate_metric_value(metric_name, current_value)
        history = self.baseline_store.get_historical_data(metric_name)
        return self._analyze_snapshot(metric_name, current_value, history)

    def _analyze_snapshot(self, metric_name, current_value, history) -> Optional[ZScoreAnalysis]:
        if len(history) < self.config.baselines.min_points:
            return None

        stats = compute_stats(history)
        zscore = self._z_detector.compute(current_value, stats)
        return ZScoreAnalysis(
            metric_name=metric_name,
            current_value=current_value,
            mean=stats.mean,
            std=stats.std,
            z_score=zscore,
            threshold=self.config.thresholds.for_metric(metric_name),
            count=stats.count,
        )

    def detect_anomaly(
        self,
        tenant_id: str,
        service_name: str,
        metric_name: str,
        current_value: float,
    ) -> Optional[Anomaly]:
        if not tenant_id:
            raise InvalidInputError("tenant_id is required")
        if not service_name:
            raise InvalidInputError("service_name is required")
        current_value = validate_metric_value(metric_name, current_value)

        history = self.baseline_store.get_historical_data(metric_name)
        analysis = self._analyze_snapshot(metric_name, current_value, history)
        if analysis is None:
            logger.debug(
                "Not enough data for %s (%d < %d points)",
                metric_name, len(history), self.config.baselines.min_points,
            )
            return None

        if not analysis.is_anomalous:
            return None

        anomaly = Anomaly(
            tenant_id=tenant_id,
            metric_name=metric_name,
            service_name=service_name,
            anomaly_score=abs(analysis.z_score),
            threshold=analysis.threshold,
            confidence=anomaly_confidence(analysis.z_score, analysis.count, self.config.confidence),
            metadata=AnomalyMetadata(
                baseline_mean=analysis.mean,
                baseline_std=analysis.std,
                current_value=current_value,
                z_score=analysis.z_score,
                trend_direction=self._trend_detector.compute(history),
            ),
        )
        logger.info(
            "Anomaly on %s/%s: z=%.2f threshold=%.2f",
            service_name, metric_name, analysis.z_score, analysis.threshold,
        )

        publish_monitoring_event(
            self.publisher,
            MonitoringEvents.ANOMALY_DETECTED,
            {
                "anomaly_id": anomaly.id,
                "tenant_id": anomaly.tenant_id,
                "service_name": anomaly.service_name,
                "metric_name": anomaly.metric_name,
                "anomaly_score": anomaly.anomaly_score,
                "confidence": anomaly.confidence,
            },
            service_name=self.service_name,
        )
        return anomaly
