"""Tests for the test-data generators."""

import random
from datetime import date

import pytest

from analytics.utils.api_utils import ValidationError
from db.database import get_session
from db.model import CashflowProjection, Category, Customer, KpiMetric, SalesPipelineEntry, Transaction
from db.seed_data import (
    CATEGORIES,
    CUSTOMERS,
    KPIS,
    add_cashflow_test_data,
    add_recent_transactions,
    seed_reference_data,
)

TODAY = date(2024, 3, 15)


class TestSeedReferenceData:
    def test_populates_tables(self, engine):
        with get_session(engine) as session:
            result = seed_reference_data(session, today=TODAY, rng=random.Random(1))

        with get_session(engine) as session:
            assert session.query(Category).count() == len(CATEGORIES)
            assert session.query(Customer).count() == len(CUSTOMERS)
            assert session.query(KpiMetric).count() == len(KPIS)
            stages = session.query(SalesPipelineEntry).all()

        assert result["added"] > 0
        assert stages
        assert all(s.entry_date <= TODAY for s in stages)
        assert all(s.exit_date is None or s.exit_date <= TODAY for s in stages)

    def test_is_idempotent(self, engine):
        with get_session(engine) as session:
            seed_reference_data(session, today=TODAY, rng=random.Random(1))
        with get_session(engine) as session:
            result = seed_reference_data(session, today=TODAY, rng=random.Random(1))

        assert result["added"] == 0


class TestCashflowTestData:
    def test_twelve_months_half_with_actuals(self, engine):
        with get_session(engine) as session:
            result = add_cashflow_test_data(session, today=TODAY, rng=random.Random(7))

        with get_session(engine) as session:
            rows = session.query(CashflowProjection).order_by(CashflowProjection.period_date).all()

        assert result["added"] == 12
        assert rows[0].period_date == date(2023, 9, 1)
        assert rows[-1].period_date == date(2024, 8, 1)
        with_actuals = [r for r in rows if r.actual_inflow is not None]
        assert len(with_actuals) == 6
        assert all(r.period_date < date(2024, 3, 1) for r in with_actuals)
        assert all(r.customer_id is None for r in rows)

    def test_skips_when_data_exists(self, engine):
        with get_session(engine) as session:
            add_cashflow_test_data(session, today=TODAY, rng=random.Random(7))
        with get_session(engine) as session:
            result = add_cashflow_test_data(session, today=TODAY)

        assert result["added"] == 0


class TestRecentTransactions:
    def test_per_customer_counts(self, engine):
        with get_session(engine) as session:
            seed_reference_data(session, today=TODAY, rng=random.Random(1))
        with get_session(engine) as session:
            result = add_recent_transactions(session, today=TODAY, rng=random.Random(3))

        with get_session(engine) as session:
            transactions = session.query(Transaction).all()
            categories = {c.id: c.type for c in session.query(Category).all()}

        assert result["added"] == 9 * len(CUSTOMERS)
        assert len(transactions) == result["added"]

        current = [t for t in transactions if t.transaction_date >= date(2024, 3, 1)]
        previous = [t for t in transactions if t.transaction_date < date(2024, 3, 1)]
        assert len(current) == 5 * len(CUSTOMERS)
        assert len(previous) == 4 * len(CUSTOMERS)
        assert all(t.transaction_date <= TODAY for t in current)
        assert all(t.transaction_date >= date(2024, 2, 1) for t in previous)
        assert sum(t.type == "revenue" for t in current) == 3 * len(CUSTOMERS)
        assert all(categories[t.category_id] == t.type for t in transactions)

    def test_requires_customers(self, engine):
        with pytest.raises(ValidationError):
            with get_session(engine) as session:
                add_recent_transactions(session, today=TODAY)
