"""Tests for the sales pipeline, cashflow and KPI aggregates."""

import pytest

from analytics.cashflow import get_cashflow_timeline
from analytics.kpis import get_kpi_metrics
from analytics.pipeline import get_deal_velocity, get_sales_funnel
from tests.conftest import MONTH_START, PREV_MONTH_START, TODAY


class TestSalesFunnel:
    def test_stages_in_order(self, engine, seeded):
        funnel = get_sales_funnel(engine)

        assert [(s["stage_name"], s["entries"], s["conversions"]) for s in funnel] == [
            ("Lead", 2, 1),
            ("Qualified", 1, 1),
            ("Proposal", 1, 0),
        ]
        assert [s["conversion_rate"] for s in funnel] == [50.0, 100.0, 0.0]

    def test_customer_filter(self, engine, seeded):
        funnel = get_sales_funnel(engine, customer_id=seeded["bluewave"])

        assert funnel == [{
            "stage_name": "Lead",
            "stage_order": 1,
            "entries": 1,
            "conversions": 0,
            "conversion_rate": 0.0,
        }]

    def test_empty(self, engine):
        assert get_sales_funnel(engine) == []


class TestDealVelocity:
    def test_open_deals_measured_to_today(self, engine, seeded):
        data = {row["stage_name"]: row for row in get_deal_velocity(engine, as_of=TODAY)}

        assert data["Lead"]["total_deals"] == 2
        assert data["Lead"]["avg_days_in_stage"] == pytest.approx(15.0)
        assert data["Lead"]["avg_deal_value"] == pytest.approx(2000.0)
        assert data["Lead"]["conversion_rate"] == 50.0
        assert data["Qualified"]["avg_days_in_stage"] == pytest.approx(20.0)
        assert data["Proposal"]["avg_days_in_stage"] == pytest.approx(10.0)

    def test_ordered_by_stage(self, engine, seeded):
        stages = [row["stage_name"] for row in get_deal_velocity(engine, as_of=TODAY)]

        assert stages == ["Lead", "Qualified", "Proposal"]

    def test_empty(self, engine):
        assert get_deal_velocity(engine) == []


class TestCashflowTimeline:
    def test_company_rows(self, engine, seeded):
        timeline = get_cashflow_timeline(engine)

        assert [row["period_date"] for row in timeline] == [
            PREV_MONTH_START.isoformat(),
            MONTH_START.isoformat(),
        ]
        assert timeline[0]["projected_net"] == 400.0
        assert timeline[0]["actual_net"] == 200.0
        assert timeline[1]["projected_net"] == 700.0
        assert timeline[1]["actual_inflow"] is None
        assert timeline[1]["actual_net"] is None

    def test_customer_rows(self, engine, seeded):
        timeline = get_cashflow_timeline(engine, customer_id=seeded["acme"])

        assert len(timeline) == 1
        assert timeline[0]["notes"] == "Acme projection"

    def test_customer_without_rows(self, engine, seeded):
        assert get_cashflow_timeline(engine, customer_id=seeded["cedar"]) == []


class TestKpiMetrics:
    def test_latest_company_snapshot(self, engine, seeded):
        kpis = get_kpi_metrics(engine)

        assert [k["metric_name"] for k in kpis] == ["Retention", "Sales Target"]
        by_name = {k["metric_name"]: k for k in kpis}
        assert by_name["Sales Target"]["achievement"] == 80.0
        assert by_name["Retention"]["target_value"] is None
        assert by_name["Retention"]["achievement"] == 0.0

    def test_customer_snapshot(self, engine, seeded):
        kpis = get_kpi_metrics(engine, customer_id=seeded["acme"])

        assert [k["metric_name"] for k in kpis] == ["Account Health"]
        assert kpis[0]["achievement"] == 50.0

    def test_customer_without_metrics(self, engine, seeded):
        assert get_kpi_metrics(engine, customer_id=seeded["cedar"]) == []
