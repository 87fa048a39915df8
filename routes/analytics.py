"""
Standalone analytics reports.

Each report is a zero-argument aggregate over the whole dataset, looked up
by its URL name.
"""
from typing import Any, Callable, Dict, List

from fastapi import APIRouter, Depends
from sqlalchemy.engine import Engine
from starlette.concurrency import run_in_threadpool

from analytics.customers import (
    get_customer_growth,
    get_customer_lifetime_value,
    get_customer_profitability,
    get_revenue_by_customer_age,
)
from analytics.financials import get_expense_trends, get_recurring_revenue
from analytics.pipeline import get_deal_velocity
from analytics.utils.api_utils import NotFoundError, create_response
from db.database import get_engine

router = APIRouter(prefix="/analytics", tags=["analytics"])

REPORTS: Dict[str, Callable[[Engine], List[Dict[str, Any]]]] = {
    "customer-growth": get_customer_growth,
    "customer-lifetime-value": get_customer_lifetime_value,
    "revenue-by-customer-age": get_revenue_by_customer_age,
    "recurring-revenue": get_recurring_revenue,
    "expense-trends": get_expense_trends,
    "deal-velocity": get_deal_velocity,
    "customer-profitability": get_customer_profitability,
}

@router.get("")
async def list_reports():
    return create_response(data=sorted(REPORTS))

@router.get("/{name}")
async def get_report(name: str, engine: Engine = Depends(get_engine)):
    report = REPORTS.get(name)
    if report is None:
        raise NotFoundError(f"Analytics report '{name}'")

    data = await run_in_threadpool(report, engine)
    return create_response(data=data, meta={"report": name, "count": len(data)})
