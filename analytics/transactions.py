"""
Transaction listing and CRUD.

Listing goes through raw SQL like the other aggregates; single-row writes
use the ORM session so defaults and constraints come from ``db.model``.
"""
import logging
from datetime import date
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from analytics.data_fetcher import fetch_scalar, run_sql
from analytics.schemas import TransactionCreate, TransactionUpdate
from analytics.utils.api_utils import NotFoundError, ValidationError
from db.model import Category, Customer, Transaction

logger = logging.getLogger(__name__)

_SELECT_TRANSACTIONS = """
    SELECT
      t.id,
      t.transaction_date,
      t.description,
      t.amount,
      t.type,
      t.category_id,
      t.customer_id,
      t.recurring,
      t.recurring_frequency,
      c.category_name,
      cu.name AS customer_name
    FROM transactions t
    LEFT JOIN categories c ON t.category_id = c.id
    LEFT JOIN customers cu ON t.customer_id = cu.id
"""

_COUNT_TRANSACTIONS = """
    SELECT COUNT(*) AS total
    FROM transactions t
    LEFT JOIN categories c ON t.category_id = c.id
    LEFT JOIN customers cu ON t.customer_id = cu.id
"""

def _build_filters(
    type: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    category: Optional[str] = None,
    customer: Optional[str] = None,
    customer_id: Optional[int] = None
) -> Tuple[str, Dict[str, Any]]:
    conditions: List[str] = []
    params: Dict[str, Any] = {}

    if type:
        conditions.append("t.type = :type")
        params["type"] = type

    if start_date:
        conditions.append("t.transaction_date >= :start_date")
        params["start_date"] = start_date.isoformat()

    if end_date:
        conditions.append("t.transaction_date <= :end_date")
        params["end_date"] = end_date.isoformat()

    if category:
        conditions.append("c.category_name LIKE :category")
        params["category"] = f"%{category}%"

    if customer:
        conditions.append("cu.name LIKE :customer")
        params["customer"] = f"%{customer}%"

    if customer_id is not None:
        conditions.append("t.customer_id = :customer_id")
        params["customer_id"] = customer_id

    where = f" WHERE {' AND '.join(conditions)}" if conditions else ""
    return where, params

def list_transactions(
    engine: Engine,
    limit: int = 50,
    offset: int = 0,
    **filters: Any
) -> Tuple[List[Dict[str, Any]], int]:
    """
    Filtered, newest-first page of transactions and the total match count.

    Filters: ``type``, ``start_date``, ``end_date`` (inclusive),
    ``category`` and ``customer`` (name substrings), ``customer_id``.
    """
    where, params = _build_filters(**filters)

    rows = run_sql(
        engine,
        _SELECT_TRANSACTIONS + where
        + " ORDER BY t.transaction_date DESC, t.id DESC LIMIT :limit OFFSET :offset",
        {**params, "limit": limit, "offset": offset},
    )
    for row in rows:
        row["recurring"] = bool(row["recurring"])

    total = fetch_scalar(engine, _COUNT_TRANSACTIONS + where, params)
    return rows, int(total)

def get_recent_transactions(
    engine: Engine,
    limit: int = 10,
    customer_id: Optional[int] = None
) -> List[Dict[str, Any]]:
    """Latest transactions, optionally for one customer."""
    # Ensure limit is a positive integer
    limit = max(1, int(limit))
    rows, _ = list_transactions(engine, limit=limit, customer_id=customer_id)
    return rows

def get_transaction(session: Session, transaction_id: int) -> Transaction:
    transaction = session.get(Transaction, transaction_id)
    if transaction is None:
        raise NotFoundError("Transaction", transaction_id)
    return transaction

def _check_references(
    session: Session,
    type: str,
    category_id: int,
    customer_id: Optional[int]
) -> None:
    category = session.get(Category, category_id)
    if category is None:
        raise ValidationError(
            f"Category {category_id} does not exist",
            details={"field": "category_id"}
        )
    if category.type != type:
        raise ValidationError(
            f"Category '{category.category_name}' is a {category.type} category",
            details={"field": "category_id"}
        )
    if customer_id is not None and session.get(Customer, customer_id) is None:
        raise ValidationError(
            f"Customer {customer_id} does not exist",
            details={"field": "customer_id"}
        )

def create_transaction(session: Session, payload: TransactionCreate) -> Transaction:
    _check_references(session, payload.type, payload.category_id, payload.customer_id)

    transaction = Transaction(**payload.model_dump())
    session.add(transaction)
    session.flush()
    logger.info(f"Created {transaction.type} transaction {transaction.id}")
    return transaction

def update_transaction(
    session: Session,
    transaction_id: int,
    payload: TransactionUpdate
) -> Tuple[Transaction, bool]:
    """Apply the provided fields; returns the row and whether anything changed."""
    transaction = get_transaction(session, transaction_id)
    changes = payload.model_dump(exclude_unset=True)
    if not changes:
        return transaction, False

    _check_references(
        session,
        changes.get("type", transaction.type),
        changes.get("category_id", transaction.category_id),
        changes.get("customer_id", transaction.customer_id),
    )

    for field, value in changes.items():
        setattr(transaction, field, value)
    session.flush()
    logger.info(f"Updated transaction {transaction_id}: {', '.join(sorted(changes))}")
    return transaction, True

def delete_transaction(session: Session, transaction_id: int) -> None:
    transaction = get_transaction(session, transaction_id)
    session.delete(transaction)
    session.flush()
    logger.info(f"Deleted transaction {transaction_id}")
