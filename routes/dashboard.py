"""Dashboard endpoints."""
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.engine import Engine
from starlette.concurrency import run_in_threadpool

from analytics.dashboard import build_dashboard
from analytics.financials import get_monthly_revenue_expenses
from analytics.utils.api_utils import create_response, parse_customer_id
from config import settings
from db.database import get_engine

router = APIRouter(prefix="/dashboard", tags=["dashboard"])

@router.get("")
async def get_dashboard(
    customer_id: Optional[str] = Query(None, alias="customerId"),
    engine: Engine = Depends(get_engine)
):
    """
    Every dashboard section in one payload.

    Sections whose query failed come back as their empty default and are
    listed under ``failed``.
    """
    result = await build_dashboard(engine, parse_customer_id(customer_id))
    message = "Some dashboard sections could not be loaded" if result["partial"] else None
    return create_response(
        data=result["data"],
        message=message,
        partial=result["partial"],
        failed=result["failed"],
    )

@router.get("/monthly-data")
async def get_monthly_data(
    customer_id: Optional[str] = Query(None, alias="customerId"),
    engine: Engine = Depends(get_engine)
):
    """Monthly revenue and expense series, company-wide or for one customer."""
    parsed = parse_customer_id(customer_id)
    data = await run_in_threadpool(
        get_monthly_revenue_expenses,
        engine,
        customer_id=parsed,
        months=settings.TREND_MONTHS,
    )
    return create_response(data=data, meta={"count": len(data), "customerId": parsed})
