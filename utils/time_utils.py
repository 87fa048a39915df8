from datetime import date, datetime, timedelta
from typing import Tuple, Union

from dateutil import parser

def month_bounds(day: date) -> Tuple[date, date]:
    """Return the first day of ``day``'s month and the first day of the next."""
    start = day.replace(day=1)
    if start.month == 12:
        return start, start.replace(year=start.year + 1, month=1)
    return start, start.replace(month=start.month + 1)

def previous_month(day: date) -> date:
    # The last day of the previous month, which handles the January wrap
    return day.replace(day=1) - timedelta(days=1)

def months_ago(day: date, months: int) -> date:
    """First day of the month ``months`` before ``day``'s month."""
    index = day.year * 12 + (day.month - 1) - months
    return date(index // 12, index % 12 + 1, 1)

def parse_date(value: Union[str, date, datetime]) -> date:
    """Parse a loosely formatted date string (``2024-03-01``, ``Mar 1 2024``)."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not value or not str(value).strip():
        raise ValueError("Empty date value")
    try:
        return parser.parse(str(value)).date()
    except (parser.ParserError, OverflowError) as e:
        raise ValueError(f"Invalid date: {value}") from e
