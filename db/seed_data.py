# db/seed_data.py

import logging
import random
from datetime import date, timedelta
from typing import Any, Dict, Optional

import pandas as pd
from sqlalchemy.orm import Session

from analytics.utils.api_utils import ValidationError
from db.model import (
    CashflowProjection,
    Category,
    Customer,
    KpiMetric,
    SalesPipelineEntry,
    Transaction,
)
from utils.time_utils import month_bounds, months_ago, previous_month

logger = logging.getLogger(__name__)

CATEGORIES = [
    ("Consulting", "revenue", "Advisory and consulting engagements"),
    ("Subscriptions", "revenue", "Recurring software subscriptions"),
    ("Product Sales", "revenue", "One-off product sales"),
    ("Support Contracts", "revenue", "Annual support and maintenance"),
    ("Salaries", "expense", "Payroll"),
    ("Rent", "expense", "Office rent"),
    ("Software", "expense", "Tools and licences"),
    ("Marketing", "expense", "Campaigns and events"),
    ("Travel", "expense", "Client travel"),
]

CUSTOMERS = [
    ("Acme Retail", "finance@acmeretail.in", "Retail", "enterprise", 2400000, 720),
    ("Bluewave Logistics", "accounts@bluewave.in", "Logistics", "enterprise", 1850000, 400),
    ("Cedar Health", "billing@cedarhealth.in", "Healthcare", "medium", 920000, 260),
    ("Delta Foods", "ap@deltafoods.in", "FMCG", "medium", 640000, 150),
    ("Everest Schools", "office@everestschools.in", "Education", "small", 210000, 75),
    ("Fern Studio", "hello@fernstudio.in", "Design", "small", 95000, 30),
]

PIPELINE_STAGES = ["Lead", "Qualified", "Proposal", "Negotiation", "Closed Won"]

KPIS = [
    ("Sales Target", 82.0, 100.0, "percentage", "Quarterly sales against target"),
    ("Customer Retention", 91.5, 95.0, "percentage", "Customers retained year over year"),
    ("Profit Margin", 18.4, 20.0, "percentage", "Net profit as a share of revenue"),
    ("Average Deal Size", 185000.0, 200000.0, "currency", "Mean value of closed deals"),
]

def _random_day(rng: random.Random, start: date, end: date) -> date:
    """A day in ``[start, end]``."""
    return start + timedelta(days=rng.randint(0, max((end - start).days, 0)))

def seed_reference_data(
    session: Session,
    today: Optional[date] = None,
    rng: Optional[random.Random] = None
) -> Dict[str, Any]:
    """Categories, customers, a sales pipeline and a KPI snapshot.

    Does nothing when categories already exist.
    """
    today = today or date.today()
    rng = rng or random.Random()

    if session.query(Category).count() > 0:
        return {"added": 0, "message": "Reference data already exists"}

    session.add_all(
        Category(category_name=name, type=type_, description=description)
        for name, type_, description in CATEGORIES
    )

    customers = [
        Customer(
            name=name,
            email=email,
            industry=industry,
            business_size=size,
            lifetime_value=ltv,
            acquisition_date=today - timedelta(days=age),
        )
        for name, email, industry, size, ltv, age in CUSTOMERS
    ]
    session.add_all(customers)
    session.flush()

    # Each deal walks the stages in order until it stalls
    entries = 0
    for customer in customers:
        entered = _random_day(rng, months_ago(today, 5), today - timedelta(days=60))
        for order, stage in enumerate(PIPELINE_STAGES, start=1):
            advanced = rng.random() < 0.7
            exit_date = entered + timedelta(days=rng.randint(5, 20)) if advanced else None
            session.add(SalesPipelineEntry(
                customer_id=customer.id,
                stage_name=stage,
                stage_order=order,
                entry_date=entered,
                exit_date=exit_date if exit_date and exit_date <= today else None,
                value=round(rng.uniform(50000, 400000), 2),
                converted=advanced,
            ))
            entries += 1
            if not advanced or exit_date > today:
                break
            entered = exit_date

    session.add_all(
        KpiMetric(
            metric_name=name,
            metric_value=value,
            target_value=target,
            metric_type=metric_type,
            description=description,
            metric_date=today,
        )
        for name, value, target, metric_type, description in KPIS
    )
    session.flush()

    added = len(CATEGORIES) + len(customers) + entries + len(KPIS)
    logger.info(f"Seeded reference data ({added} rows)")
    return {"added": added, "message": f"Added {added} reference rows"}

def add_cashflow_test_data(
    session: Session,
    today: Optional[date] = None,
    rng: Optional[random.Random] = None
) -> Dict[str, Any]:
    """
    Twelve monthly company-level cashflow rows around ``today``.

    The six months before the current one get actuals; the current month
    and the five after it are projections only. Does nothing when cashflow
    rows already exist.
    """
    today = today or date.today()
    rng = rng or random.Random()

    existing = session.query(CashflowProjection).count()
    if existing > 0:
        return {"added": 0, "message": f"Cashflow data already exists ({existing} rows)"}

    start = months_ago(today, 6)
    periods = pd.date_range(start=start, periods=12, freq="MS")
    current = month_bounds(today)[0]

    rows = []
    for period in periods:
        period_date = period.date()
        inflow = round(rng.uniform(400000, 600000), 2)
        outflow = round(rng.uniform(250000, 400000), 2)
        row = CashflowProjection(
            period_date=period_date,
            projected_inflow=inflow,
            projected_outflow=outflow,
            notes="Projection",
        )
        if period_date < current:
            row.actual_inflow = round(inflow * rng.uniform(0.9, 1.1), 2)
            row.actual_outflow = round(outflow * rng.uniform(0.9, 1.1), 2)
            row.notes = "Actuals recorded"
        rows.append(row)

    session.add_all(rows)
    session.flush()
    logger.info(f"Added {len(rows)} cashflow rows starting {start.isoformat()}")
    return {"added": len(rows), "message": f"Added {len(rows)} cashflow rows"}

def add_recent_transactions(
    session: Session,
    today: Optional[date] = None,
    rng: Optional[random.Random] = None
) -> Dict[str, Any]:
    """
    Give every customer activity in the current and previous month.

    Per customer: 3 revenue and 2 expense transactions this month, 2 and 2
    in the previous month.
    """
    today = today or date.today()
    rng = rng or random.Random()

    customers = session.query(Customer).order_by(Customer.id).all()
    if not customers:
        raise ValidationError("No customers found, seed reference data first")

    revenue_categories = session.query(Category).filter_by(type="revenue").all()
    expense_categories = session.query(Category).filter_by(type="expense").all()
    if not revenue_categories or not expense_categories:
        raise ValidationError("Revenue and expense categories are required")

    this_month = (month_bounds(today)[0], today)
    last_day = previous_month(today)
    last_month = (last_day.replace(day=1), last_day)

    plan = [
        (this_month, "revenue", 3),
        (this_month, "expense", 2),
        (last_month, "revenue", 2),
        (last_month, "expense", 2),
    ]

    added = 0
    for customer in customers:
        for (start, end), type_, count in plan:
            categories = revenue_categories if type_ == "revenue" else expense_categories
            for _ in range(count):
                category = rng.choice(categories)
                low, high = (20000, 150000) if type_ == "revenue" else (5000, 60000)
                session.add(Transaction(
                    transaction_date=_random_day(rng, start, end),
                    description=f"{category.category_name} - {customer.name}",
                    amount=round(rng.uniform(low, high), 2),
                    type=type_,
                    category_id=category.id,
                    customer_id=customer.id,
                    recurring=category.category_name == "Subscriptions",
                    recurring_frequency="monthly" if category.category_name == "Subscriptions" else None,
                ))
                added += 1

    session.flush()
    logger.info(f"Added {added} transactions for {len(customers)} customers")
    return {
        "added": added,
        "customers": len(customers),
        "message": f"Added {added} transactions for {len(customers)} customers",
    }

def main() -> None:
    from db.database import get_engine, get_session, init_db

    engine = get_engine()
    init_db(engine)
    with get_session(engine) as session:
        for step in (seed_reference_data, add_cashflow_test_data, add_recent_transactions):
            result = step(session)
            logger.info(f"{step.__name__}: {result['message']}")

    print("✅ Data seeded successfully!")

if __name__ == "__main__":
    main()
