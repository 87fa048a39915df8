"""Health checks and the test-data endpoints."""
import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, status
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from starlette.concurrency import run_in_threadpool

from analytics.utils.api_utils import APIError, NotFoundError, create_response
from config import settings
from db.database import check_connection, get_engine, get_session
from db.seed_data import add_cashflow_test_data, add_recent_transactions

logger = logging.getLogger(__name__)

router = APIRouter(tags=["system"])

@router.get("/health")
async def health():
    """Liveness check"""
    return create_response(data={
        "status": "ok",
        "version": settings.APP_VERSION,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    })

@router.get("/health/db")
async def health_db(engine: Engine = Depends(get_engine)):
    """Database reachability check"""
    try:
        await run_in_threadpool(check_connection, engine)
    except SQLAlchemyError as e:
        logger.error(f"Database health check failed: {str(e)}", exc_info=True)
        raise APIError(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            message="Database connection failed",
            error_type="database_error",
        )
    return create_response(data={"database": engine.dialect.name, "connected": True})

def _require_seeding() -> None:
    if not settings.seed_endpoints_enabled:
        raise NotFoundError("Endpoint")

@router.post("/seed/cashflow", dependencies=[Depends(_require_seeding)])
def seed_cashflow(engine: Engine = Depends(get_engine)):
    with get_session(engine) as session:
        result = add_cashflow_test_data(session)
    return create_response(data=result, message=result["message"])

@router.post("/seed/transactions", dependencies=[Depends(_require_seeding)])
def seed_transactions(engine: Engine = Depends(get_engine)):
    with get_session(engine) as session:
        result = add_recent_transactions(session)
    return create_response(data=result, message=result["message"])
