"""
Data module: Loading recorded metric samples.

    Sample file (CSV / JSON lines)
        ↓
    Ingestion (src/data/ingestion.py) → MetricSample
        ↓
    Replay through PredictiveMonitoringService.replay
"""

from src.data.ingestion import (
    REQUIRED_COLUMNS,
    load_metric_samples,
    samples_from_dataframe,
)

__all__ = [
    "REQUIRED_COLUMNS",
    "load_metric_samples",
    "samples_from_dataframe",
]
