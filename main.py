import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import Depends, FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates
from sqlalchemy.engine import Engine
from starlette.concurrency import run_in_threadpool
from starlette.exceptions import HTTPException as StarletteHTTPException

from config import settings
from analytics.customers import list_customers
from analytics.dashboard import build_dashboard
from analytics.utils.api_utils import APIError, handle_exception, parse_customer_id
from analytics.visualizer import build_dashboard_charts, format_change, format_currency
from db.database import dispose_engine, get_engine, init_db
from routes import get_all_routers

# Configure logging
logger = logging.getLogger(__name__)

BASE_DIR = Path(__file__).resolve().parent

templates = Jinja2Templates(directory=str(BASE_DIR / "templates"))
templates.env.filters["currency"] = format_currency
templates.env.filters["change"] = format_change

@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db(get_engine())
    logger.info(f"{settings.APP_NAME} started")
    yield
    dispose_engine()
    logger.info(f"{settings.APP_NAME} stopped")

# Initialize FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    description="Revenue, expense, customer, pipeline, cashflow and KPI analytics",
    version=settings.APP_VERSION,
    lifespan=lifespan,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.BACKEND_CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

for router in get_all_routers():
    app.include_router(router, prefix=settings.API_PREFIX)

@app.get("/", response_class=HTMLResponse, include_in_schema=False)
async def dashboard_page(
    request: Request,
    customer_id: Optional[str] = Query(None, alias="customerId"),
    engine: Engine = Depends(get_engine)
):
    """Server-rendered dashboard."""
    parsed = parse_customer_id(customer_id)
    result = await build_dashboard(engine, parsed)

    try:
        customers = await run_in_threadpool(list_customers, engine)
    except Exception as e:
        logger.error(f"Error loading customer list: {str(e)}", exc_info=True)
        customers = []

    return templates.TemplateResponse(
        request,
        "dashboard.html",
        {
            "app_name": settings.APP_NAME,
            "data": result["data"],
            "charts": build_dashboard_charts(result["data"]),
            "customers": customers,
            "selected_customer": parsed,
            "partial": result["partial"],
            "failed": result["failed"],
        },
    )

# Error handlers
@app.exception_handler(APIError)
async def api_exception_handler(request, exc):
    return handle_exception(exc)

@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request, exc):
    return handle_exception(exc)

@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request, exc):
    return handle_exception(exc)

@app.exception_handler(Exception)
async def global_exception_handler(request, exc):
    return handle_exception(exc)

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=settings.DEBUG)
