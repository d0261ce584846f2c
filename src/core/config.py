"""
Application configuration for the predictive monitoring core.

Provides environment-aware settings with conservative defaults. All detection
thresholds and rule weights are configurable to avoid hard-coded "magic numbers".
"""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaselineConfig(BaseModel):
	"""
	Configuration for rolling metric baselines.

	Notes:
	- capacity: most-recent values kept per metric (oldest evicted first).
	- min_points: warm-up points before detection begins.
	- trend_window: points per half when comparing recent vs older means.
	- trend_change: relative change that counts as increasing/decreasing.
	"""

	capacity: int = Field(100, ge=1)
	min_points: int = Field(10, ge=1)
	trend_window: int = Field(5, ge=1)
	trend_change: float = Field(0.1, ge=0.0)


class AnomalyThresholds(BaseModel):
	"""
	Z-score thresholds per metric.

	Rationale:
	- error_rate reacts earlier since small shifts matter.
	- transaction_volume is bursty and needs a wider band.
	"""

	default: float = Field(2.5, gt=0.0, description="Threshold for unlisted metrics")
	per_metric: Dict[str, float] = Field(
		default_factory=lambda: {
			"cpu_usage": 2.5,
			"memory_usage": 2.5,
			"response_time": 3.0,
			"error_rate": 2.0,
			"transaction_volume": 3.5,
			"api_calls": 2.5,
		}
	)

	def for_metric(self, metric_name: str) -> float:
		return self.per_metric.get(metric_name, self.default)


class ConfidenceConfig(BaseModel):
	"""
	Anomaly confidence blend.

	confidence = zscore_weight * min(|z| / zscore_scale, 1)
	           + sample_weight * min(points / sample_scale, 1)
	"""

	zscore_weight: float = Field(0.7, ge=0.0, le=1.0)
	sample_weight: float = Field(0.3, ge=0.0, le=1.0)
	zscore_scale: float = Field(4.0, gt=0.0)
	sample_scale: float = Field(100.0, gt=0.0)


class OutageRule(BaseModel):
	"""A single service-health condition contributing to outage risk."""

	metric: str
	threshold: float
	label: str
	weight: float = Field(ge=0.0)
	actions: List[str] = Field(default_factory=list)


def _default_outage_rules() -> List[OutageRule]:
	return [
		OutageRule(
			metric="cpu_usage",
			threshold=85.0,
			label="High CPU usage",
			weight=0.3,
			actions=["Scale up compute resources", "Optimize CPU-intensive operations"],
		),
		OutageRule(
			metric="memory_usage",
			threshold=90.0,
			label="High memory usage",
			weight=0.3,
			actions=["Increase memory allocation", "Check for memory leaks"],
		),
		OutageRule(
			metric="error_rate",
			threshold=10.0,
			label="High error rate",
			weight=0.4,
			actions=["Investigate error logs", "Roll back recent deployments"],
		),
		OutageRule(
			metric="response_time",
			threshold=2000.0,
			label="High response time",
			weight=0.2,
			actions=["Check database performance", "Optimize slow queries"],
		),
	]


class OutageConfig(BaseModel):
	"""
	Outage risk rules and time-to-failure estimation.

	time_to_failure = max(min_time_to_failure, max_time_to_failure - score * ttf_slope)
	"""

	rules: List[OutageRule] = Field(default_factory=_default_outage_rules)
	risk_threshold: float = Field(0.6, ge=0.0)
	max_time_to_failure: float = Field(60.0, gt=0.0)
	min_time_to_failure: float = Field(5.0, ge=0.0)
	ttf_slope: float = Field(30.0, ge=0.0)


class RiskBands(BaseModel):
	"""Upper bounds (exclusive) of the low/medium/high risk levels."""

	low: float = Field(0.3, ge=0.0, le=1.0)
	medium: float = Field(0.6, ge=0.0, le=1.0)
	high: float = Field(0.8, ge=0.0, le=1.0)

	@model_validator(mode="after")
	def _check_order(self) -> "RiskBands":
		if not (self.low <= self.medium <= self.high):
			raise ValueError("risk bands must be ascending: low <= medium <= high")
		return self

	def level_for(self, score: float) -> str:
		if score < self.low:
			return "low"
		if score < self.medium:
			return "medium"
		if score < self.high:
			return "high"
		return "critical"


class FraudConfig(BaseModel):
	"""
	Fraud and Web3 suspicious-activity scoring.

	Notes:
	- *_baseline values are fallbacks until a tenant has enough observations.
	- *_multiplier scales a baseline into a trigger threshold.
	- web3_prediction_type: fixed type for Web3 predictions; None selects
	  the highest-scoring signal like the transaction path.
	"""

	volume_baseline: float = Field(10000.0, gt=0.0)
	volume_multiplier: float = Field(5.0, gt=0.0)
	volume_confidence: float = Field(0.85, gt=0.0, le=1.0)

	frequency_baseline: float = Field(50.0, gt=0.0)
	frequency_multiplier: float = Field(3.0, gt=0.0)
	frequency_confidence: float = Field(0.9, gt=0.0, le=1.0)

	behavior_threshold: float = Field(0.7, ge=0.0)
	behavior_confidence: float = Field(0.8, gt=0.0, le=1.0)

	pattern_threshold: float = Field(0.8, ge=0.0)
	pattern_confidence: float = Field(0.95, gt=0.0, le=1.0)

	transaction_threshold: float = Field(0.7, ge=0.0, le=1.0)
	transaction_review_threshold: float = Field(0.8, ge=0.0, le=1.0)

	web3_wallet_tx_limit: int = Field(100, ge=0)
	web3_large_tx_limit: int = Field(10, ge=0)
	web3_wallet_score: float = Field(0.6, ge=0.0, le=1.0)
	web3_wallet_confidence: float = Field(0.8, gt=0.0, le=1.0)
	web3_large_tx_score: float = Field(0.7, ge=0.0, le=1.0)
	web3_large_tx_confidence: float = Field(0.9, gt=0.0, le=1.0)
	web3_contract_score: float = Field(0.8, ge=0.0, le=1.0)
	web3_contract_confidence: float = Field(0.95, gt=0.0, le=1.0)
	web3_gas_score: float = Field(0.5, ge=0.0, le=1.0)
	web3_gas_confidence: float = Field(0.7, gt=0.0, le=1.0)
	web3_threshold: float = Field(0.6, ge=0.0, le=1.0)
	web3_review_threshold: float = Field(0.7, ge=0.0, le=1.0)
	web3_prediction_type: Optional[str] = "behavioral_anomaly"

	ewma_alpha: float = Field(0.2, gt=0.0, lt=1.0)
	min_observations: int = Field(10, ge=1)


class AlertThresholds(BaseModel):
	"""
	Plain threshold alerts on recorded service metrics.

	A metric above its warning threshold raises a warning alert; above its
	critical threshold (when set) the alert is critical.
	"""

	warning: Dict[str, float] = Field(
		default_factory=lambda: {
			"cpu_usage": 80.0,
			"memory_usage": 85.0,
			"response_time": 1000.0,
			"error_rate": 5.0,
		}
	)
	critical: Dict[str, float] = Field(
		default_factory=lambda: {
			"cpu_usage": 90.0,
			"memory_usage": 95.0,
		}
	)


class MonitoringConfig(BaseModel):
	"""
	Predictive monitoring configuration.
	"""

	baselines: BaselineConfig = BaselineConfig()
	thresholds: AnomalyThresholds = AnomalyThresholds()
	confidence: ConfidenceConfig = ConfidenceConfig()
	outage: OutageConfig = OutageConfig()
	fraud: FraudConfig = FraudConfig()
	risk_bands: RiskBands = RiskBands()
	alerts: AlertThresholds = AlertThresholds()


class Config(BaseSettings):
	"""
	Global configuration with environment overrides.
	"""

	model_config = SettingsConfigDict(
		env_prefix="PREDICTIVE_",
		env_nested_delimiter="__",
		env_file=".env",
		extra="ignore",
	)

	log_level: str = Field("INFO", description="Default logging level")
	logs_dir: Path = Field(Path("logs"), description="Directory for log files")
	service_name: str = Field("monitoring-service", description="Event source name")
	monitoring: MonitoringConfig = MonitoringConfig()

	def model_post_init(self, __context: object) -> None:
		self.logs_dir.mkdir(parents=True, exist_ok=True)


config = Config()
