"""Latest KPI snapshot."""
from typing import Any, Dict, List, Optional

from sqlalchemy.engine import Engine

from analytics.data_fetcher import run_sql
from analytics.utils.data_utils import safe_ratio, to_float

def get_kpi_metrics(
    engine: Engine,
    customer_id: Optional[int] = None
) -> List[Dict[str, Any]]:
    """
    KPI rows recorded on the most recent metric date.

    Company-wide metrics have no customer attached; passing ``customer_id``
    switches to that customer's own snapshot (empty when it has none).
    Each row gains ``achievement``, the value as a percentage of target.
    """
    if customer_id is None:
        scope, params = "customer_id IS NULL", {}
    else:
        scope, params = "customer_id = :customer_id", {"customer_id": customer_id}

    rows = run_sql(engine, f"""
        SELECT
          metric_name,
          metric_value,
          target_value,
          metric_type,
          description,
          metric_date
        FROM kpi_metrics
        WHERE {scope}
          AND metric_date = (SELECT MAX(metric_date) FROM kpi_metrics WHERE {scope})
        ORDER BY metric_name
    """, params)

    for row in rows:
        row["metric_value"] = to_float(row["metric_value"])
        if row["target_value"] is not None:
            row["target_value"] = to_float(row["target_value"])
        row["achievement"] = safe_ratio(row["metric_value"], row["target_value"])
    return rows
