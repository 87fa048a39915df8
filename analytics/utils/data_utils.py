"""
Data processing and transformation utilities.

This module provides helper functions shared by the aggregation modules:
value normalization for JSON responses, DataFrame conversion, and the
guarded ratio arithmetic used for month-over-month deltas and KPI ratios.
"""
import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

import numpy as np
import pandas as pd

# Configure logging
logger = logging.getLogger(__name__)

Number = Union[int, float, Decimal]

def to_float(value: Any, default: float = 0.0) -> float:
    """Coerce a numeric database value (Decimal, str, None) to float."""
    if value is None:
        return default
    try:
        result = float(value)
    except (TypeError, ValueError):
        return default
    if np.isnan(result):
        return default
    return result

def percent_change(current: Optional[Number], previous: Optional[Number]) -> float:
    """Percentage change from ``previous`` to ``current``.

    Returns 0 when there is no previous value to compare against.
    """
    previous = to_float(previous)
    if previous == 0:
        return 0.0
    return (to_float(current) - previous) / previous * 100

def safe_ratio(
    numerator: Optional[Number],
    denominator: Optional[Number],
    scale: float = 100.0,
    default: float = 0.0
) -> float:
    """``numerator / denominator * scale`` or ``default`` when undefined."""
    denominator = to_float(denominator)
    if denominator == 0:
        return default
    return to_float(numerator) / denominator * scale

def normalize_value(value: Any) -> Any:
    """Convert driver-specific types into JSON-friendly ones."""
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, np.generic):
        return value.item()
    return value

def normalize_row(row: Mapping[str, Any]) -> Dict[str, Any]:
    return {key: normalize_value(value) for key, value in row.items()}

def convert_to_dataframe(
    data: Union[Iterable[Mapping[str, Any]], pd.DataFrame, None],
    columns: Optional[List[str]] = None
) -> pd.DataFrame:
    """Convert query rows to a DataFrame, keeping ``columns`` when empty."""
    if data is None:
        return pd.DataFrame(columns=columns)

    if isinstance(data, pd.DataFrame):
        return data.copy()

    rows = list(data)
    if not rows:
        return pd.DataFrame(columns=columns)
    return pd.DataFrame(rows, columns=columns)

def dataframe_to_records(df: pd.DataFrame) -> List[Dict[str, Any]]:
    """Prepare a DataFrame for JSON serialization.

    NaN and NaT become ``None``, timestamps become ISO dates, and numpy
    scalars are unboxed to native Python values.
    """
    if df.empty:
        return []

    df = df.copy()
    for col in df.select_dtypes(include=['datetime64', 'datetimetz']).columns:
        df[col] = df[col].apply(
            lambda x: x.date().isoformat() if pd.notna(x) else None
        )

    df = df.astype(object).where(pd.notna(df), None)
    return [normalize_row(record) for record in df.to_dict(orient='records')]
