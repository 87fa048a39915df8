from typing import List, Dict, Any, Optional
import logging
from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from analytics.utils.data_utils import normalize_row

# Configure logging
logger = logging.getLogger(__name__)

class QueryError(Exception):
    """Custom exception for query execution errors"""
    pass

def run_sql(
    engine: Engine,
    query: str,
    params: Optional[Dict[str, Any]] = None
) -> List[Dict[str, Any]]:
    """
    Execute a SQL query and return the rows as JSON-friendly dictionaries.

    Args:
        engine: Engine to run the query on
        query: SQL query to execute, with ``:name`` bind parameters
        params: Dictionary of parameters for parameterized queries

    Returns:
        List of dictionaries, Decimals as floats and dates as ISO strings

    Raises:
        QueryError: If there's an error executing the query
    """
    if not query or not isinstance(query, str):
        raise ValueError("Query must be a non-empty string")

    params = params or {}

    try:
        # Log the query (without parameters for security)
        logger.debug(f"Executing SQL query: {' '.join(query.split())[:200]}")

        with engine.connect() as connection:
            result = connection.execute(text(query), params)
            return [normalize_row(row._mapping) for row in result]

    except SQLAlchemyError as e:
        error_msg = f"Database error: {str(e)}"
        logger.error(error_msg, exc_info=True)
        raise QueryError(error_msg) from e

def fetch_one(
    engine: Engine,
    query: str,
    params: Optional[Dict[str, Any]] = None
) -> Optional[Dict[str, Any]]:
    """Fetch the first row of a query, or None."""
    rows = run_sql(engine, query, params)
    return rows[0] if rows else None

def fetch_scalar(
    engine: Engine,
    query: str,
    params: Optional[Dict[str, Any]] = None,
    default: Any = 0
) -> Any:
    """Fetch the first column of the first row; ``default`` for NULL/no row."""
    row = fetch_one(engine, query, params)
    if not row:
        return default
    value = next(iter(row.values()))
    return default if value is None else value

def month_bucket(engine: Engine, column: str) -> str:
    """SQL fragment formatting ``column`` as ``YYYY-MM`` for the engine's dialect."""
    dialect = engine.dialect.name
    if dialect == "sqlite":
        return f"strftime('%Y-%m', {column})"
    if dialect == "postgresql":
        return f"to_char({column}, 'YYYY-MM')"
    return f"DATE_FORMAT({column}, '%Y-%m')"
