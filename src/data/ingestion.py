"""
Metric sample ingestion from CSV and JSON-lines files.

Loads recorded samples for replay through the detectors (back-testing,
seeding baselines after a restart). Bad rows are logged and skipped, they
don't stop the load.

Expected columns:
    service_name, metric_name, value        required
    timestamp, labels                       optional (labels: dict or JSON object string)
"""

import json
import logging
import math
from pathlib import Path
from typing import Any, Dict, List, Tuple, Union

import pandas as pd
from pydantic import ValidationError

from src.anomaly.schema import MetricSample
from src.core.exceptions import DataIngestionError

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ("service_name", "metric_name", "value")


def _parse_labels(raw: Any) -> Dict[str, str]:
    if raw is None or (isinstance(raw, float) and math.isnan(raw)):
        return {}
    if isinstance(raw, dict):
        return {str(k): str(v) for k, v in raw.items()}
    if isinstance(raw, str):
        if not raw.strip():
            return {}
        parsed = json.loads(raw)
        if not isinstance(parsed, dict):
            raise ValueError(f"labels must be a JSON object, got {type(parsed).__name__}")
        return {str(k): str(v) for k, v in parsed.items()}
    raise ValueError(f"Unsupported labels value: {raw!r}")


def samples_from_dataframe(df: pd.DataFrame) -> Tuple[List[MetricSample], int]:
    """
    Convert a DataFrame of samples into MetricSample objects.

    Args:
        df: DataFrame with at least the required columns

    Returns:
        Tuple of (samples ordered by timestamp, count of skipped rows)

    Raises:
        DataIngestionError: If a required column is missing
    """
    missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        raise DataIngestionError(f"Missing required columns: {missing}")

    frame = df.copy()
    has_timestamp = "timestamp" in frame.columns
    if has_timestamp:
        frame["timestamp"] = pd.to_datetime(frame["timestamp"], utc=True, errors="coerce")
        # Stable sort keeps file order for equal timestamps
        frame = frame.sort_values("timestamp", kind="stable", na_position="last")

    samples: List[MetricSample] = []
    skipped = 0
    for row_num, row in enumerate(frame.to_dict(orient="records"), start=1):
        try:
            for column in ("service_name", "metric_name"):
                if pd.isna(row[column]):
                    raise ValueError(f"{column} is empty")
            fields: Dict[str, Any] = {
                "service_name": str(row["service_name"]),
                "metric_name": str(row["metric_name"]),
                "value": float(row["value"]),
                "labels": _parse_labels(row.get("labels")),
            }
            if has_timestamp:
                ts = row.get("timestamp")
                if ts is None or pd.isna(ts):
                    raise ValueError("unparseable timestamp")
                fields["timestamp"] = ts.to_pydatetime()
            samples.append(MetricSample(**fields))
        except (ValueError, TypeError, ValidationError) as e:
            logger.warning(f"Skipping sample row {row_num}: {e}")
            skipped += 1

    return samples, skipped


def load_metric_samples(
    filepath: Union[str, Path],
    format: str = "auto",
) -> Tuple[List[MetricSample], int]:
    """
    Load metric samples from a file.

    Args:
        filepath: Path to a .csv or .jsonl/.json (one object per line) file
        format: "csv", "jsonl", or "auto" (by extension)

    Returns:
        Tuple of (samples, skipped row count)

    Raises:
        DataIngestionError: If the file is missing, the format unknown, or unreadable
    """
    path = Path(filepath)
    if not path.exists():
        raise DataIngestionError(f"Sample file not found: {path}")

    if format == "auto":
        suffix = path.suffix.lower()
        if suffix == ".csv":
            format = "csv"
        elif suffix in (".jsonl", ".json", ".ndjson"):
            format = "jsonl"
        else:
            raise DataIngestionError(f"Cannot detect format for {path}")

    try:
        if format == "csv":
            df = pd.read_csv(path)
        elif format == "jsonl":
            df = pd.read_json(path, lines=True, convert_dates=False)
        else:
            raise DataIngestionError(f"Unsupported format: {format}")
    except DataIngestionError:
        raise
    except Exception as e:
        logger.error(f"Error reading sample file {path}: {e}")
        raise DataIngestionError(f"Failed to read samples: {e}") from e

    samples, skipped = samples_from_dataframe(df)
    logger.info(f"Loaded {len(samples)} samples from {path} ({skipped} skipped)")
    return samples, skipped
