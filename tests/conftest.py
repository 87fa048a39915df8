"""Pytest configuration and fixtures."""

import os
import tempfile
from datetime import date, timedelta

import pytest
from fastapi.testclient import TestClient

from db.database import build_engine, get_engine, get_session, init_db
from db.model import (
    CashflowProjection,
    Category,
    Customer,
    KpiMetric,
    SalesPipelineEntry,
    Transaction,
)
from utils.time_utils import previous_month

TODAY = date.today()
MONTH_START = TODAY.replace(day=1)
PREV_MONTH_START = previous_month(TODAY).replace(day=1)


@pytest.fixture
def engine():
    """Create a temporary SQLite database with the full schema."""
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    engine = build_engine(f"sqlite:///{db_path}")
    init_db(engine)
    try:
        yield engine
    finally:
        engine.dispose()
        if os.path.exists(db_path):
            os.unlink(db_path)


@pytest.fixture
def seeded(engine):
    """Load a small deterministic dataset and return the ids tests refer to.

    Current month: revenue 1500 (Acme 1000, Bluewave 500 recurring),
    expenses 500 (Acme 300, company rent 200).
    Previous month: revenue 1000 (Acme 800, Bluewave 200 recurring),
    expenses 400 (Acme 400).
    """
    with get_session(engine) as session:
        consulting = Category(category_name="Consulting", type="revenue")
        subscriptions = Category(category_name="Subscriptions", type="revenue")
        salaries = Category(category_name="Salaries", type="expense")
        rent = Category(category_name="Rent", type="expense")
        session.add_all([consulting, subscriptions, salaries, rent])

        acme = Customer(
            name="Acme Retail",
            email="finance@acme.test",
            industry="Retail",
            business_size="enterprise",
            lifetime_value=1000,
            acquisition_date=TODAY - timedelta(days=30),
        )
        bluewave = Customer(
            name="Bluewave Logistics",
            industry="Logistics",
            business_size="small",
            lifetime_value=200,
            acquisition_date=TODAY - timedelta(days=400),
        )
        cedar = Customer(
            name="Cedar Health",
            industry="Healthcare",
            business_size="small",
            lifetime_value=400,
            acquisition_date=TODAY - timedelta(days=200),
        )
        session.add_all([acme, bluewave, cedar])
        session.flush()

        def txn(day, amount, type_, category, customer=None, recurring=False, description=None):
            return Transaction(
                transaction_date=day,
                description=description or f"{category.category_name} {amount}",
                amount=amount,
                type=type_,
                category_id=category.id,
                customer_id=customer.id if customer else None,
                recurring=recurring,
                recurring_frequency="monthly" if recurring else None,
            )

        # Insert order fixes the id tie-break within a day
        transactions = [
            txn(MONTH_START, 1000, "revenue", consulting, acme),
            txn(MONTH_START, 300, "expense", salaries, acme),
            txn(MONTH_START, 500, "revenue", subscriptions, bluewave, recurring=True),
            txn(MONTH_START, 200, "expense", rent, description="Office rent"),
            txn(PREV_MONTH_START, 800, "revenue", consulting, acme),
            txn(PREV_MONTH_START, 400, "expense", salaries, acme),
            txn(PREV_MONTH_START, 200, "revenue", subscriptions, bluewave, recurring=True),
        ]
        for t in transactions:
            session.add(t)
            session.flush()

        session.add_all([
            SalesPipelineEntry(
                customer_id=acme.id, stage_name="Lead", stage_order=1,
                entry_date=TODAY - timedelta(days=40), exit_date=TODAY - timedelta(days=30),
                value=1000, converted=True,
            ),
            SalesPipelineEntry(
                customer_id=bluewave.id, stage_name="Lead", stage_order=1,
                entry_date=TODAY - timedelta(days=20), exit_date=None,
                value=3000, converted=False,
            ),
            SalesPipelineEntry(
                customer_id=acme.id, stage_name="Qualified", stage_order=2,
                entry_date=TODAY - timedelta(days=30), exit_date=TODAY - timedelta(days=10),
                value=1000, converted=True,
            ),
            SalesPipelineEntry(
                customer_id=acme.id, stage_name="Proposal", stage_order=3,
                entry_date=TODAY - timedelta(days=10), exit_date=None,
                value=1000, converted=False,
            ),
        ])

        session.add_all([
            CashflowProjection(
                period_date=PREV_MONTH_START, projected_inflow=1000, projected_outflow=600,
                actual_inflow=900, actual_outflow=700, notes="Actuals recorded",
            ),
            CashflowProjection(
                period_date=MONTH_START, projected_inflow=1200, projected_outflow=500,
                notes="Projection",
            ),
            CashflowProjection(
                period_date=MONTH_START, projected_inflow=300, projected_outflow=100,
                customer_id=acme.id, notes="Acme projection",
            ),
        ])

        session.add_all([
            KpiMetric(
                metric_name="Old Metric", metric_value=1, target_value=10,
                metric_date=TODAY - timedelta(days=30),
            ),
            KpiMetric(
                metric_name="Sales Target", metric_value=80, target_value=100,
                metric_date=TODAY,
            ),
            KpiMetric(
                metric_name="Retention", metric_value=90, target_value=None,
                metric_date=TODAY,
            ),
            KpiMetric(
                metric_name="Account Health", metric_value=50, target_value=100,
                metric_date=TODAY, customer_id=acme.id,
            ),
        ])
        session.flush()

        return {
            "acme": acme.id,
            "bluewave": bluewave.id,
            "cedar": cedar.id,
            "consulting": consulting.id,
            "subscriptions": subscriptions.id,
            "salaries": salaries.id,
            "rent": rent.id,
            "transactions": [t.id for t in transactions],
        }


@pytest.fixture
def client(engine):
    """TestClient whose requests run against the temporary database."""
    from main import app

    app.dependency_overrides[get_engine] = lambda: engine
    try:
        # Not used as a context manager so the lifespan (which binds the
        # configured database) never runs.
        yield TestClient(app, raise_server_exceptions=False)
    finally:
        app.dependency_overrides.clear()
