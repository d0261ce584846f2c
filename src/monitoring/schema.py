"""
Schema definitions for service health, threshold alerts, and insights.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Dict, List
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

from src.anomaly.schema import utc_now


class HealthStatus(str, Enum):
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    DOWN = "down"


class AlertSeverity(str, Enum):
    INFO = "info"
    WARNING = "warning"
    CRITICAL = "critical"


class AlertStatus(str, Enum):
    ACTIVE = "active"
    RESOLVED = "resolved"
    SUPPRESSED = "suppressed"


class ServiceHealth(BaseModel):
    """
    Latest health snapshot of a service.

    Fields:
    - response_time: milliseconds
    - error_rate: percent of failed requests
    - cpu_usage / memory_usage: percent utilisation
    - uptime: seconds
    """

    model_config = ConfigDict(allow_inf_nan=False)

    service_name: str = Field(..., min_length=1)
    status: HealthStatus = HealthStatus.HEALTHY
    response_time: float = Field(0.0, ge=0.0)
    error_rate: float = Field(0.0, ge=0.0)
    cpu_usage: float = Field(0.0, ge=0.0)
    memory_usage: float = Field(0.0, ge=0.0)
    last_check: datetime = Field(default_factory=utc_now)
    uptime: float = Field(0.0, ge=0.0)
    version: str = "1.0.0"

    def metrics(self) -> Dict[str, float]:
        return {
            "response_time": self.response_time,
            "error_rate": self.error_rate,
            "cpu_usage": self.cpu_usage,
            "memory_usage": self.memory_usage,
        }


class Alert(BaseModel):
    id: str = Field(default_factory=lambda: f"alert_{uuid4().hex}")
    service_name: str
    metric_name: str
    threshold: float
    current_value: float
    severity: AlertSeverity
    status: AlertStatus = AlertStatus.ACTIVE
    message: str
    triggered_at: datetime = Field(default_factory=utc_now)
    created_at: datetime = Field(default_factory=utc_now)


class AnomalyTrend(BaseModel):
    metric_name: str
    service_name: str
    count: int
    max_score: float
    latest_at: datetime


class PredictiveInsights(BaseModel):
    """
    Per-tenant summary of recent findings.

    Fields:
    - anomaly_trends: anomalies grouped by service and metric
    - fraud_predictions / outage_predictions: counts within the range
    - system_health_score: share of tracked services reported healthy
    - recommendations: deduplicated remediation steps
    """

    tenant_id: str
    time_range: str
    anomaly_trends: List[AnomalyTrend] = Field(default_factory=list)
    anomaly_count: int = 0
    fraud_predictions: int = 0
    fraud_requiring_review: int = 0
    outage_predictions: int = 0
    system_health_score: float = Field(1.0, ge=0.0, le=1.0)
    recommendations: List[str] = Field(default_factory=list)
    generated_at: datetime = Field(default_factory=utc_now)
