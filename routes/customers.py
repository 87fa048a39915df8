"""Customer and category endpoints."""
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.engine import Engine
from starlette.concurrency import run_in_threadpool

from analytics.customers import create_customer, get_customer_overview, list_customers
from analytics.data_fetcher import run_sql
from analytics.schemas import CustomerCreate
from analytics.utils.api_utils import ValidationError, create_response
from db.database import get_engine, get_session
from db.model import TRANSACTION_TYPES

router = APIRouter(tags=["customers"])

@router.get("/customers")
async def get_customers(engine: Engine = Depends(get_engine)):
    """Customers for the dashboard dropdown."""
    customers = await run_in_threadpool(list_customers, engine)
    return create_response(data=customers, meta={"count": len(customers)})

@router.post("/customers", status_code=status.HTTP_201_CREATED)
def post_customer(payload: CustomerCreate, engine: Engine = Depends(get_engine)):
    with get_session(engine) as session:
        data = create_customer(session, payload).to_dict()
    return create_response(
        data=data,
        message="Customer created successfully",
        status_code=status.HTTP_201_CREATED,
    )

@router.get("/customers/{customer_id}")
async def get_customer_detail(customer_id: int, engine: Engine = Depends(get_engine)):
    """Customer record with its transactions and monthly series."""
    overview = await run_in_threadpool(get_customer_overview, engine, customer_id)
    return create_response(data=overview)

@router.get("/categories")
async def get_categories(
    type: Optional[str] = Query(None),
    engine: Engine = Depends(get_engine)
):
    """Categories, optionally only revenue or only expense ones."""
    if type and type not in TRANSACTION_TYPES:
        raise ValidationError(
            f"Invalid category type: {type}",
            details={"allowed": list(TRANSACTION_TYPES)}
        )

    sql = "SELECT id, category_name, type, description FROM categories"
    params = {}
    if type:
        sql += " WHERE type = :type"
        params["type"] = type
    sql += " ORDER BY type, category_name"

    categories = await run_in_threadpool(run_sql, engine, sql, params)
    return create_response(data=categories, meta={"count": len(categories)})
