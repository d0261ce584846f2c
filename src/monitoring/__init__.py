"""
Monitoring module: service facade, service health, and threshold alerts.
"""

from .alerts import AlertEvaluator
from .schema import (
    Alert,
    AlertSeverity,
    AlertStatus,
    AnomalyTrend,
    HealthStatus,
    PredictiveInsights,
    ServiceHealth,
)
from .service import PredictiveMonitoringService, parse_time_range

__all__ = [
    "PredictiveMonitoringService",
    "parse_time_range",
    "AlertEvaluator",
    "Alert",
    "AlertSeverity",
    "AlertStatus",
    "AnomalyTrend",
    "HealthStatus",
    "PredictiveInsights",
    "ServiceHealth",
]
