"""
Per-tenant reference data for fraud scoring.

Volume and frequency baselines are EWMA estimates over the transactions a
tenant has been observed with, falling back to configured defaults during
warm-up. Behavior profiles and transaction patterns are stored as given.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Dict, Optional

from src.core.config import FraudConfig

from .schema import TransactionData, TransactionPattern, UserBehaviorProfile

logger = logging.getLogger(__name__)


@dataclass
class EWMABaselineEstimator:
    """
    Exponentially Weighted Moving Average (EWMA) estimator.

    Warm-up: peek() returns None until min_points values were seen.
    """

    alpha: float
    min_points: int
    _count: int = 0
    _mean: Optional[float] = None

    def peek(self) -> Optional[float]:
        if self._count < self.min_points or self._mean is None:
            return None
        return self._mean

    def update(self, value: float) -> None:
        value = float(value)
        if self._mean is None:
            self._mean = value
        else:
            self._mean = self.alpha * value + (1.0 - self.alpha) * self._mean
        self._count += 1

    @property
    def count(self) -> int:
        return self._count


@dataclass
class _TenantBaselines:
    volume: EWMABaselineEstimator
    frequency: EWMABaselineEstimator
    lock: threading.Lock


class TenantBaselineStore:
    """
    Tenant-scoped fraud baselines, profiles, and patterns.

    Updates are caller-driven: detect_fraud never observes a transaction
    on its own.
    """

    def __init__(self, config: Optional[FraudConfig] = None) -> None:
        self.config = config or FraudConfig()
        self._baselines: Dict[str, _TenantBaselines] = {}
        self._profiles: Dict[str, UserBehaviorProfile] = {}
        self._patterns: Dict[str, TransactionPattern] = {}
        self._lock = threading.Lock()

    def _tenant(self, tenant_id: str) -> _TenantBaselines:
        with self._lock:
            baselines = self._baselines.get(tenant_id)
            if baselines is None:
                baselines = _TenantBaselines(
                    volume=EWMABaselineEstimator(self.config.ewma_alpha, self.config.min_observations),
                    frequency=EWMABaselineEstimator(self.config.ewma_alpha, self.config.min_observations),
                    lock=threading.Lock(),
                )
                self._baselines[tenant_id] = baselines
            return baselines

    def observe_transaction(self, tenant_id: str, transaction: TransactionData) -> None:
        baselines = self._tenant(tenant_id)
        with baselines.lock:
            baselines.volume.update(transaction.volume)
            baselines.frequency.update(transaction.frequency)
            count = baselines.volume.count
        logger.debug("Observed transaction window for tenant %s (%d total)", tenant_id, count)

    def volume_baseline(self, tenant_id: str) -> float:
        baselines = self._baselines.get(tenant_id)
        if baselines is not None:
            with baselines.lock:
                estimate = baselines.volume.peek()
            if estimate:
                return estimate
        return self.config.volume_baseline

    def frequency_baseline(self, tenant_id: str) -> float:
        baselines = self._baselines.get(tenant_id)
        if baselines is not None:
            with baselines.lock:
                estimate = baselines.frequency.peek()
            if estimate:
                return estimate
        return self.config.frequency_baseline

    def set_behavior_profile(self, tenant_id: str, profile: UserBehaviorProfile) -> None:
        with self._lock:
            self._profiles[tenant_id] = profile

    def get_behavior_profile(self, tenant_id: str) -> Optional[UserBehaviorProfile]:
        return self._profiles.get(tenant_id)

    def set_transaction_pattern(self, tenant_id: str, pattern: TransactionPattern) -> None:
        with self._lock:
            self._patterns[tenant_id] = pattern

    def get_transaction_pattern(self, tenant_id: str) -> Optional[TransactionPattern]:
        return self._patterns.get(tenant_id)
