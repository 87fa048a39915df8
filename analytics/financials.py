"""
Revenue and expense aggregates.

Every function takes the engine first and an optional ``customer_id``;
when given, all underlying queries are restricted to that customer's
transactions. Period boundaries are computed in Python and bound as
parameters so the SQL stays portable across MySQL and SQLite.
"""
import logging
from datetime import date
from typing import Any, Dict, List, Optional

from sqlalchemy.engine import Engine

from analytics.data_fetcher import fetch_one, fetch_scalar, month_bucket, run_sql
from analytics.utils.data_utils import (
    convert_to_dataframe,
    dataframe_to_records,
    percent_change,
    safe_ratio,
    to_float,
)
from utils.time_utils import month_bounds, months_ago, previous_month

logger = logging.getLogger(__name__)

EMPTY_SUMMARY: Dict[str, float] = {
    "monthlyRevenue": 0.0,
    "monthlyExpenses": 0.0,
    "netProfit": 0.0,
    "cashBalance": 0.0,
    "revenueChange": 0.0,
    "expensesChange": 0.0,
    "netProfitChange": 0.0,
    "profitMargin": 0.0,
}

_PERIOD_TOTALS = """
    SELECT
      SUM(CASE WHEN type = 'revenue' THEN amount ELSE 0 END) AS revenue,
      SUM(CASE WHEN type = 'expense' THEN amount ELSE 0 END) AS expenses
    FROM transactions
    WHERE transaction_date >= :start
      AND transaction_date < :end
      {customer_filter}
"""

_CASH_BALANCE = """
    SELECT
      SUM(CASE WHEN type = 'revenue' THEN amount
               WHEN type = 'expense' THEN -amount
               ELSE 0 END) AS cash_balance
    FROM transactions
    WHERE 1 = 1
      {customer_filter}
"""

def _customer_filter(customer_id: Optional[int], column: str = "customer_id") -> str:
    return f"AND {column} = :customer_id" if customer_id is not None else ""

def _customer_params(customer_id: Optional[int], **params: Any) -> Dict[str, Any]:
    if customer_id is not None:
        params["customer_id"] = customer_id
    return params

def _period_totals(
    engine: Engine,
    day: date,
    customer_id: Optional[int]
) -> Dict[str, float]:
    start, end = month_bounds(day)
    row = fetch_one(
        engine,
        _PERIOD_TOTALS.format(customer_filter=_customer_filter(customer_id)),
        _customer_params(customer_id, start=start.isoformat(), end=end.isoformat()),
    ) or {}
    return {
        "revenue": to_float(row.get("revenue")),
        "expenses": to_float(row.get("expenses")),
    }

def get_financial_summary(
    engine: Engine,
    customer_id: Optional[int] = None,
    as_of: Optional[date] = None
) -> Dict[str, float]:
    """
    Current month's revenue, expenses and profit with month-over-month deltas.

    Args:
        engine: Database engine
        customer_id: Restrict every figure to one customer
        as_of: Day inside the month to report on (defaults to today)

    Returns:
        Dict with monthlyRevenue, monthlyExpenses, netProfit, cashBalance,
        revenueChange, expensesChange, netProfitChange and profitMargin
    """
    as_of = as_of or date.today()

    current = _period_totals(engine, as_of, customer_id)
    previous = _period_totals(engine, previous_month(as_of), customer_id)
    cash_balance = fetch_scalar(
        engine,
        _CASH_BALANCE.format(customer_filter=_customer_filter(customer_id)),
        _customer_params(customer_id),
    )

    net_profit = current["revenue"] - current["expenses"]
    prev_net_profit = previous["revenue"] - previous["expenses"]

    return {
        "monthlyRevenue": current["revenue"],
        "monthlyExpenses": current["expenses"],
        "netProfit": net_profit,
        "cashBalance": to_float(cash_balance),
        "revenueChange": percent_change(current["revenue"], previous["revenue"]),
        "expensesChange": percent_change(current["expenses"], previous["expenses"]),
        "netProfitChange": percent_change(net_profit, prev_net_profit),
        "profitMargin": safe_ratio(net_profit, current["revenue"]),
    }

def get_monthly_revenue_expenses(
    engine: Engine,
    customer_id: Optional[int] = None,
    months: int = 6,
    as_of: Optional[date] = None
) -> List[Dict[str, Any]]:
    """
    Revenue and expense totals per ``YYYY-MM`` month.

    Company-wide data covers the trailing ``months`` window; a single
    customer's series covers their whole history.
    """
    month = month_bucket(engine, "transaction_date")
    conditions = []
    params: Dict[str, Any] = {}

    if customer_id is not None:
        conditions.append("customer_id = :customer_id")
        params["customer_id"] = customer_id
    else:
        since = months_ago(as_of or date.today(), months)
        conditions.append("transaction_date >= :since")
        params["since"] = since.isoformat()

    sql = f"""
        SELECT
          {month} AS month,
          SUM(CASE WHEN type = 'revenue' THEN amount ELSE 0 END) AS revenue,
          SUM(CASE WHEN type = 'expense' THEN amount ELSE 0 END) AS expense
        FROM transactions
        WHERE {' AND '.join(conditions)}
        GROUP BY {month}
        ORDER BY month
    """
    rows = run_sql(engine, sql, params)
    return [
        {
            "month": row["month"],
            "revenue": to_float(row["revenue"]),
            "expense": to_float(row["expense"]),
        }
        for row in rows
    ]

def get_recurring_revenue(engine: Engine) -> List[Dict[str, Any]]:
    """Recurring vs one-off revenue per month."""
    month = month_bucket(engine, "transaction_date")
    sql = f"""
        SELECT
          {month} AS month,
          SUM(CASE WHEN recurring THEN amount ELSE 0 END) AS recurring_revenue,
          SUM(CASE WHEN recurring THEN 0 ELSE amount END) AS non_recurring_revenue,
          SUM(CASE WHEN recurring THEN 1 ELSE 0 END) AS recurring_transactions,
          SUM(CASE WHEN recurring THEN 0 ELSE 1 END) AS non_recurring_transactions
        FROM transactions
        WHERE type = 'revenue'
        GROUP BY {month}
        ORDER BY month
    """
    return [
        {
            "month": row["month"],
            "recurring_revenue": to_float(row["recurring_revenue"]),
            "non_recurring_revenue": to_float(row["non_recurring_revenue"]),
            "recurring_transactions": int(to_float(row["recurring_transactions"])),
            "non_recurring_transactions": int(to_float(row["non_recurring_transactions"])),
        }
        for row in run_sql(engine, sql)
    ]

def get_expense_trends(engine: Engine) -> List[Dict[str, Any]]:
    """Expense totals per category and month, with each category's share of the month."""
    month = month_bucket(engine, "t.transaction_date")
    sql = f"""
        SELECT
          c.category_name,
          {month} AS month,
          SUM(t.amount) AS total_expense
        FROM transactions t
        JOIN categories c ON t.category_id = c.id
        WHERE t.type = 'expense'
        GROUP BY c.category_name, {month}
    """
    df = convert_to_dataframe(
        run_sql(engine, sql),
        columns=["category_name", "month", "total_expense"],
    )
    if df.empty:
        return []

    df["total_expense"] = df["total_expense"].astype(float)
    monthly_total = df.groupby("month")["total_expense"].transform("sum")
    df["percentage_of_monthly_expense"] = (
        (df["total_expense"] / monthly_total.where(monthly_total != 0)) * 100
    ).fillna(0.0)
    df = df.sort_values(["month", "total_expense"], ascending=[True, False])
    return dataframe_to_records(df)
