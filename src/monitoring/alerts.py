"""
Plain threshold alerts on recorded service metrics.

Complements the statistical detectors: a metric above a fixed limit raises
an alert immediately, with no warm-up.
"""

from __future__ import annotations

import logging
import threading
from typing import Dict, List, Optional, Tuple

from src.anomaly.schema import utc_now
from src.core.config import AlertThresholds

from .schema import Alert, AlertSeverity, AlertStatus

logger = logging.getLogger(__name__)

AlertKey = Tuple[str, str]


class AlertEvaluator:
    """
    Evaluates metric values against warning / critical limits.

    Notes:
    - Only metrics listed in the warning table are evaluated.
    - At most one active alert exists per (service, metric). A repeated
      breach updates it in place and keeps its id.
    - Resolving an alert removes it, so the store never outgrows the number
      of distinct service/metric pairs.
    """

    def __init__(self, thresholds: Optional[AlertThresholds] = None) -> None:
        self.thresholds = thresholds or AlertThresholds()
        self._active: Dict[AlertKey, Alert] = {}
        self._lock = threading.Lock()

    def evaluate(self, service_name: str, metric_name: str, value: float) -> Optional[Alert]:
        warning = self.thresholds.warning.get(metric_name)
        if warning is None or value <= warning:
            return None

        critical = self.thresholds.critical.get(metric_name)
        if critical is not None and value > critical:
            severity, threshold = AlertSeverity.CRITICAL, critical
        else:
            severity, threshold = AlertSeverity.WARNING, warning
        message = f"{metric_name} is {value:g} for service {service_name} (limit {threshold:g})"

        key = (service_name, metric_name)
        with self._lock:
            existing = self._active.get(key)
            if existing is None:
                alert = Alert(
                    service_name=service_name,
                    metric_name=metric_name,
                    threshold=threshold,
                    current_value=value,
                    severity=severity,
                    message=message,
                )
            else:
                alert = existing.model_copy(update={
                    "threshold": threshold,
                    "current_value": value,
                    "severity": severity,
                    "message": message,
                    "triggered_at": utc_now(),
                })
            self._active[key] = alert

        if existing is None or existing.severity != severity:
            logger.warning("Alert %s: %s", severity.value, message)
        return alert

    def active_alerts(self) -> List[Alert]:
        with self._lock:
            return list(self._active.values())

    def resolve(self, alert_id: str) -> Optional[Alert]:
        with self._lock:
            for key, alert in self._active.items():
                if alert.id == alert_id:
                    del self._active[key]
                    return alert.model_copy(update={"status": AlertStatus.RESOLVED})
        return None
