"""
HTTP routers for the dashboard API.

Every router here is mounted under ``settings.API_PREFIX`` by ``main.py``.
"""
from typing import List

from fastapi import APIRouter

from .analytics import router as analytics_router
from .customers import router as customers_router
from .dashboard import router as dashboard_router
from .system import router as system_router
from .transactions import router as transactions_router

def get_all_routers() -> List[APIRouter]:
    """
    Get all API routers.

    Returns:
        List[APIRouter]: Routers in the order they are mounted.
    """
    return [
        dashboard_router,
        transactions_router,
        customers_router,
        analytics_router,
        system_router,
    ]
