"""Transaction endpoints: filtered listing and single-row CRUD."""
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.engine import Engine
from starlette.concurrency import run_in_threadpool

from analytics.schemas import TransactionCreate, TransactionUpdate
from analytics.transactions import (
    create_transaction,
    delete_transaction,
    get_transaction,
    list_transactions,
    update_transaction,
)
from analytics.utils.api_utils import ValidationError, create_response, parse_customer_id
from config import settings
from db.database import get_session, get_engine
from db.model import TRANSACTION_TYPES
from utils.time_utils import parse_date

router = APIRouter(prefix="/transactions", tags=["transactions"])

def _parse_date_param(value: Optional[str], name: str):
    if not value:
        return None
    try:
        return parse_date(value)
    except ValueError:
        raise ValidationError(f"Invalid {name}", details={name: value})

@router.get("")
async def get_transactions(
    type: Optional[str] = Query(None),
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    category: Optional[str] = Query(None),
    customer: Optional[str] = Query(None),
    customer_id: Optional[str] = Query(None, alias="customerId"),
    limit: int = Query(settings.DEFAULT_TRANSACTION_LIMIT, ge=1, le=settings.MAX_TRANSACTION_LIMIT),
    offset: int = Query(0, ge=0),
    engine: Engine = Depends(get_engine)
):
    """Filtered transactions, newest first, with pagination info."""
    if type and type not in TRANSACTION_TYPES:
        raise ValidationError(
            f"Invalid transaction type: {type}",
            details={"allowed": list(TRANSACTION_TYPES)}
        )

    start = _parse_date_param(start_date, "startDate")
    end = _parse_date_param(end_date, "endDate")
    if start and end and start > end:
        raise ValidationError("startDate must not be after endDate")

    rows, total = await run_in_threadpool(
        list_transactions,
        engine,
        limit=limit,
        offset=offset,
        type=type,
        start_date=start,
        end_date=end,
        category=category,
        customer=customer,
        customer_id=parse_customer_id(customer_id),
    )
    return create_response(
        data=rows,
        pagination={"total": total, "limit": limit, "offset": offset},
    )

@router.get("/{transaction_id}")
def get_transaction_by_id(transaction_id: int, engine: Engine = Depends(get_engine)):
    with get_session(engine) as session:
        transaction = get_transaction(session, transaction_id).to_dict()
    return create_response(data=transaction)

@router.post("", status_code=status.HTTP_201_CREATED)
def post_transaction(payload: TransactionCreate, engine: Engine = Depends(get_engine)):
    with get_session(engine) as session:
        transaction = create_transaction(session, payload)
        data = transaction.to_dict()
    return create_response(
        data=data,
        message="Transaction created successfully",
        status_code=status.HTTP_201_CREATED,
    )

@router.patch("/{transaction_id}")
def patch_transaction(
    transaction_id: int,
    payload: TransactionUpdate,
    engine: Engine = Depends(get_engine)
):
    """Update only the fields present in the body."""
    with get_session(engine) as session:
        transaction, changed = update_transaction(session, transaction_id, payload)
        data = transaction.to_dict()
    message = "Transaction updated successfully" if changed else "No changes to update"
    return create_response(data=data, message=message)

@router.delete("/{transaction_id}")
def remove_transaction(transaction_id: int, engine: Engine = Depends(get_engine)):
    with get_session(engine) as session:
        delete_transaction(session, transaction_id)
    return create_response(
        data={"id": transaction_id},
        message="Transaction deleted successfully",
    )
