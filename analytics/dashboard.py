"""
Combined dashboard payload.

The sections are independent read-only aggregates, so they run
concurrently on the threadpool. A section that fails is logged and
replaced by its empty default; the rest of the dashboard is still served.
"""
import asyncio
import copy
import logging
from functools import partial
from typing import Any, Callable, Dict, List, Optional, Tuple

from sqlalchemy.engine import Engine
from starlette.concurrency import run_in_threadpool

from analytics.cashflow import get_cashflow_timeline
from analytics.customers import get_customer_segments
from analytics.financials import (
    EMPTY_SUMMARY,
    get_financial_summary,
    get_monthly_revenue_expenses,
)
from analytics.kpis import get_kpi_metrics
from analytics.pipeline import get_sales_funnel
from analytics.transactions import get_recent_transactions
from config import settings

logger = logging.getLogger(__name__)

def _sections(
    engine: Engine,
    customer_id: Optional[int]
) -> Dict[str, Tuple[Callable[[], Any], Any]]:
    # Segments and the funnel describe the whole book of business and are
    # not narrowed by customer.
    return {
        "financialSummary": (
            partial(get_financial_summary, engine, customer_id=customer_id),
            EMPTY_SUMMARY,
        ),
        "monthlyData": (
            partial(
                get_monthly_revenue_expenses,
                engine,
                customer_id=customer_id,
                months=settings.TREND_MONTHS,
            ),
            [],
        ),
        "customerSegments": (partial(get_customer_segments, engine), []),
        "salesFunnel": (partial(get_sales_funnel, engine), []),
        "cashflowTimeline": (
            partial(get_cashflow_timeline, engine, customer_id=customer_id),
            [],
        ),
        "kpiMetrics": (partial(get_kpi_metrics, engine, customer_id=customer_id), []),
        "recentTransactions": (
            partial(
                get_recent_transactions,
                engine,
                limit=settings.RECENT_TRANSACTIONS_LIMIT,
                customer_id=customer_id,
            ),
            [],
        ),
    }

async def build_dashboard(
    engine: Engine,
    customer_id: Optional[int] = None
) -> Dict[str, Any]:
    """
    Run every dashboard aggregate and assemble the payload.

    Args:
        engine: Database engine
        customer_id: Narrow the customer-aware sections to one customer

    Returns:
        Dict with ``data`` (section name to result, plus ``customerId``),
        ``partial`` and ``failed`` (names of sections that fell back)
    """
    sections = _sections(engine, customer_id)
    results = await asyncio.gather(
        *(run_in_threadpool(func) for func, _ in sections.values()),
        return_exceptions=True,
    )

    data: Dict[str, Any] = {}
    failed: List[str] = []
    for (name, (_, default)), result in zip(sections.items(), results):
        if isinstance(result, BaseException):
            if not isinstance(result, Exception):
                raise result
            logger.error(f"Dashboard section {name} failed: {str(result)}", exc_info=result)
            failed.append(name)
            data[name] = copy.deepcopy(default)
        else:
            data[name] = result

    data["customerId"] = customer_id
    if failed:
        logger.warning(f"Serving partial dashboard without: {', '.join(failed)}")

    return {"data": data, "partial": bool(failed), "failed": failed}
