"""
Customer-level aggregates: segments, growth, lifetime value, revenue by
customer age, profitability, and the single-customer overview.
"""
import logging
from datetime import date
from typing import Any, Dict, List, Optional

import numpy as np
import pandas as pd
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from analytics.data_fetcher import fetch_one, month_bucket, run_sql
from analytics.financials import get_monthly_revenue_expenses
from analytics.schemas import CustomerCreate
from analytics.utils.api_utils import NotFoundError
from analytics.utils.data_utils import (
    convert_to_dataframe,
    dataframe_to_records,
    safe_ratio,
    to_float,
)
from db.model import Customer

logger = logging.getLogger(__name__)

CUSTOMER_AGE_BUCKETS = ["0-3 months", "3-6 months", "6-12 months", "Over 12 months"]
_AGE_BINS = [-np.inf, 90, 180, 365, np.inf]

def list_customers(engine: Engine) -> List[Dict[str, Any]]:
    """Customers for the dashboard dropdown, alphabetically."""
    return run_sql(engine, """
        SELECT id, name, business_size
        FROM customers
        ORDER BY name, id
    """)

def get_customer(session: Session, customer_id: int) -> Customer:
    customer = session.get(Customer, customer_id)
    if customer is None:
        raise NotFoundError("Customer", customer_id)
    return customer

def create_customer(session: Session, payload: CustomerCreate) -> Customer:
    customer = Customer(**payload.model_dump())
    session.add(customer)
    session.flush()
    logger.info(f"Created customer {customer.id} ({customer.name})")
    return customer

def get_customer_segments(engine: Engine) -> List[Dict[str, Any]]:
    """Customer count and summed lifetime value per business size."""
    rows = run_sql(engine, """
        SELECT
          c.business_size,
          COUNT(c.id) AS count,
          SUM(c.lifetime_value) AS total_value
        FROM customers c
        GROUP BY c.business_size
        ORDER BY total_value DESC
    """)
    return [
        {
            "business_size": row["business_size"],
            "count": int(row["count"]),
            "total_value": to_float(row["total_value"]),
        }
        for row in rows
    ]

def get_customer_growth(engine: Engine) -> List[Dict[str, Any]]:
    """
    New customers per acquisition month and growth rate against the
    customer base that existed before that month.
    """
    month = month_bucket(engine, "acquisition_date")
    df = convert_to_dataframe(
        run_sql(engine, f"""
            SELECT {month} AS month, COUNT(*) AS new_customers
            FROM customers
            GROUP BY {month}
            ORDER BY month
        """),
        columns=["month", "new_customers"],
    )
    if df.empty:
        return []

    df["new_customers"] = df["new_customers"].astype(int)
    existing = df["new_customers"].cumsum().shift(1, fill_value=0)
    df["growth_rate"] = [
        safe_ratio(new, base) for new, base in zip(df["new_customers"], existing)
    ]
    return dataframe_to_records(df)

def get_customer_lifetime_value(engine: Engine) -> List[Dict[str, Any]]:
    """Average, min, max and population standard deviation of LTV per business size."""
    df = convert_to_dataframe(
        run_sql(engine, "SELECT business_size, lifetime_value FROM customers"),
        columns=["business_size", "lifetime_value"],
    )
    if df.empty:
        return []

    df["lifetime_value"] = df["lifetime_value"].astype(float)
    result = (
        df.groupby("business_size")["lifetime_value"]
        .agg(
            avg_ltv="mean",
            min_ltv="min",
            max_ltv="max",
            ltv_stddev=lambda s: float(np.std(s.to_numpy())),
        )
        .reset_index()
    )
    return dataframe_to_records(result)

def get_revenue_by_customer_age(
    engine: Engine,
    as_of: Optional[date] = None
) -> List[Dict[str, Any]]:
    """
    Revenue grouped by how long customers have been with the business.

    Buckets are 0-3 months (up to 90 days), 3-6 months (up to 180),
    6-12 months (up to 365) and Over 12 months.
    """
    as_of = as_of or date.today()
    df = convert_to_dataframe(
        run_sql(engine, """
            SELECT
              c.id AS customer_id,
              c.acquisition_date,
              SUM(t.amount) AS revenue
            FROM transactions t
            JOIN customers c ON t.customer_id = c.id
            WHERE t.type = 'revenue'
            GROUP BY c.id, c.acquisition_date
        """),
        columns=["customer_id", "acquisition_date", "revenue"],
    )
    if df.empty:
        return []

    acquired = pd.to_datetime(df["acquisition_date"])
    age_days = (pd.Timestamp(as_of) - acquired).dt.days
    df["customer_age"] = pd.cut(age_days, bins=_AGE_BINS, labels=CUSTOMER_AGE_BUCKETS)
    df["revenue"] = df["revenue"].astype(float)

    result = (
        df.groupby("customer_age", observed=True)
        .agg(total_revenue=("revenue", "sum"), customer_count=("customer_id", "nunique"))
        .reset_index()
    )
    result["customer_age"] = result["customer_age"].astype(str)
    result["avg_revenue_per_customer"] = result["total_revenue"] / result["customer_count"]
    return dataframe_to_records(result)

def get_customer_profitability(engine: Engine) -> List[Dict[str, Any]]:
    """Revenue, cost, profit and margin for every customer with revenue."""
    rows = run_sql(engine, """
        SELECT
          c.id AS customer_id,
          c.name AS customer_name,
          c.business_size,
          SUM(CASE WHEN t.type = 'revenue' THEN t.amount ELSE 0 END) AS total_revenue,
          SUM(CASE WHEN t.type = 'expense' THEN t.amount ELSE 0 END) AS total_cost
        FROM customers c
        LEFT JOIN transactions t ON c.id = t.customer_id
        GROUP BY c.id, c.name, c.business_size
        HAVING SUM(CASE WHEN t.type = 'revenue' THEN t.amount ELSE 0 END) > 0
    """)

    result = []
    for row in rows:
        revenue = to_float(row["total_revenue"])
        cost = to_float(row["total_cost"])
        profit = revenue - cost
        result.append({
            "customer_id": row["customer_id"],
            "customer_name": row["customer_name"],
            "business_size": row["business_size"],
            "total_revenue": revenue,
            "total_cost": cost,
            "profit": profit,
            "profit_margin": safe_ratio(profit, revenue),
        })
    return sorted(result, key=lambda r: r["profit_margin"], reverse=True)

def get_customer_overview(engine: Engine, customer_id: int) -> Dict[str, Any]:
    """Customer record plus its transactions and monthly series."""
    info = fetch_one(engine, "SELECT * FROM customers WHERE id = :id", {"id": customer_id})
    if info is None:
        raise NotFoundError("Customer", customer_id)

    transactions = run_sql(engine, """
        SELECT
          t.id,
          t.transaction_date,
          t.description,
          t.amount,
          t.type,
          c.category_name,
          t.recurring,
          t.recurring_frequency
        FROM transactions t
        LEFT JOIN categories c ON t.category_id = c.id
        WHERE t.customer_id = :customer_id
        ORDER BY t.transaction_date DESC, t.id DESC
    """, {"customer_id": customer_id})
    for row in transactions:
        row["recurring"] = bool(row["recurring"])

    monthly_data = get_monthly_revenue_expenses(engine, customer_id=customer_id)

    return {
        "customerInfo": info,
        "transactions": transactions,
        "monthlyData": monthly_data,
        "transactionCount": len(transactions),
        "monthlyDataCount": len(monthly_data),
    }
