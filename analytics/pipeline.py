"""Sales funnel and deal velocity aggregates over the ``sales_pipeline`` table."""
import logging
from datetime import date
from typing import Any, Dict, List, Optional

import pandas as pd
from sqlalchemy.engine import Engine

from analytics.data_fetcher import run_sql
from analytics.utils.data_utils import (
    convert_to_dataframe,
    dataframe_to_records,
    safe_ratio,
    to_float,
)
from utils.time_utils import months_ago

logger = logging.getLogger(__name__)

def get_sales_funnel(
    engine: Engine,
    customer_id: Optional[int] = None
) -> List[Dict[str, Any]]:
    """Entries, conversions and conversion rate per stage, in stage order."""
    where = "WHERE customer_id = :customer_id" if customer_id is not None else ""
    params = {"customer_id": customer_id} if customer_id is not None else {}
    rows = run_sql(engine, f"""
        SELECT
          stage_name,
          stage_order,
          COUNT(id) AS entries,
          SUM(CASE WHEN converted THEN 1 ELSE 0 END) AS conversions
        FROM sales_pipeline
        {where}
        GROUP BY stage_name, stage_order
        ORDER BY stage_order
    """, params)

    return [
        {
            "stage_name": row["stage_name"],
            "stage_order": int(row["stage_order"]),
            "entries": int(row["entries"]),
            "conversions": int(to_float(row["conversions"])),
            "conversion_rate": safe_ratio(row["conversions"], row["entries"]),
        }
        for row in rows
    ]

def get_deal_velocity(
    engine: Engine,
    months: int = 6,
    as_of: Optional[date] = None
) -> List[Dict[str, Any]]:
    """
    Per-stage deal count, average days spent in the stage, average deal
    value and conversion rate for deals entered in the last ``months``.

    Deals still open are measured up to ``as_of``.
    """
    as_of = as_of or date.today()
    since = months_ago(as_of, months)
    df = convert_to_dataframe(
        run_sql(engine, """
            SELECT stage_name, stage_order, entry_date, exit_date, value, converted
            FROM sales_pipeline
            WHERE entry_date >= :since
        """, {"since": since.isoformat()}),
        columns=["stage_name", "stage_order", "entry_date", "exit_date", "value", "converted"],
    )
    if df.empty:
        return []

    entry = pd.to_datetime(df["entry_date"])
    exit_ = pd.to_datetime(df["exit_date"]).fillna(pd.Timestamp(as_of))
    df["days_in_stage"] = (exit_ - entry).dt.days
    df["value"] = df["value"].astype(float)
    df["converted"] = df["converted"].fillna(0).astype(int)

    result = (
        df.groupby(["stage_name", "stage_order"])
        .agg(
            total_deals=("value", "size"),
            avg_days_in_stage=("days_in_stage", "mean"),
            avg_deal_value=("value", "mean"),
            conversions=("converted", "sum"),
        )
        .reset_index()
        .sort_values("stage_order")
    )
    result["conversion_rate"] = [
        safe_ratio(conv, total) for conv, total in zip(result["conversions"], result["total_deals"])
    ]
    result = result.drop(columns=["conversions"])
    return dataframe_to_records(result)
