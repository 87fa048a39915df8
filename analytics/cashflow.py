"""Projected vs actual cashflow per period."""
from typing import Any, Dict, List, Optional

from sqlalchemy.engine import Engine

from analytics.data_fetcher import run_sql
from analytics.utils.data_utils import to_float

def get_cashflow_timeline(
    engine: Engine,
    customer_id: Optional[int] = None
) -> List[Dict[str, Any]]:
    """
    Cashflow rows ordered by period with projected and actual net flow.

    Without a customer the company-level rows (no customer attached) are
    returned; with one, only that customer's rows. ``actual_net`` is None
    for periods that have no actuals yet.
    """
    if customer_id is None:
        scope, params = "customer_id IS NULL", {}
    else:
        scope, params = "customer_id = :customer_id", {"customer_id": customer_id}

    rows = run_sql(engine, f"""
        SELECT
          period_date,
          projected_inflow,
          projected_outflow,
          actual_inflow,
          actual_outflow,
          notes
        FROM cashflow
        WHERE {scope}
        ORDER BY period_date
    """, params)

    timeline = []
    for row in rows:
        projected_inflow = to_float(row["projected_inflow"])
        projected_outflow = to_float(row["projected_outflow"])
        has_actuals = row["actual_inflow"] is not None and row["actual_outflow"] is not None
        timeline.append({
            "period_date": row["period_date"],
            "projected_inflow": projected_inflow,
            "projected_outflow": projected_outflow,
            "actual_inflow": to_float(row["actual_inflow"]) if row["actual_inflow"] is not None else None,
            "actual_outflow": to_float(row["actual_outflow"]) if row["actual_outflow"] is not None else None,
            "projected_net": projected_inflow - projected_outflow,
            "actual_net": (
                to_float(row["actual_inflow"]) - to_float(row["actual_outflow"])
                if has_actuals else None
            ),
            "notes": row["notes"],
        })
    return timeline
