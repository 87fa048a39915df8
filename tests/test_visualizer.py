"""Tests for chart configuration and display formatting."""

import pytest

from analytics.visualizer import (
    NO_DATA,
    build_dashboard_charts,
    format_change,
    format_currency,
)


class TestFormatCurrency:
    @pytest.mark.parametrize("value,expected", [
        (2.5e7, "₹2.50 Cr"),
        (150000, "₹1.50 L"),
        (1234.5, "₹1,234.50"),
        (0, "₹0.00"),
        (None, "₹0.00"),
        (-150000, "-₹1.50 L"),
    ])
    def test_units(self, value, expected):
        assert format_currency(value) == expected


class TestFormatChange:
    def test_directions(self):
        assert format_change(12.5) == "↑ 12.5%"
        assert format_change(-3.0) == "↓ 3.0%"
        assert format_change(0) == "0.0%"
        assert format_change(None) == "0.0%"


class TestBuildDashboardCharts:
    def test_empty_sections_use_placeholders(self):
        charts = build_dashboard_charts({})

        assert charts["revenueExpenses"] == NO_DATA
        assert charts["customerSegments"] == NO_DATA
        assert charts["salesFunnel"] == NO_DATA
        assert charts["cashflow"] == NO_DATA
        assert charts["kpis"] == []

    def test_revenue_expenses_sorted_by_month(self):
        charts = build_dashboard_charts({"monthlyData": [
            {"month": "2024-02", "revenue": 200, "expense": 50},
            {"month": "2024-01", "revenue": 100, "expense": 80},
        ]})

        chart = charts["revenueExpenses"]
        assert chart["type"] == "bar"
        assert chart["options"]["xaxis"]["categories"] == ["Jan 2024", "Feb 2024"]
        assert chart["series"] == [
            {"name": "Revenue", "data": [100.0, 200.0]},
            {"name": "Expenses", "data": [80.0, 50.0]},
        ]

    def test_segments_donut(self):
        charts = build_dashboard_charts({"customerSegments": [
            {"business_size": "enterprise", "count": 1, "total_value": 1000.0},
            {"business_size": "small", "count": 2, "total_value": 600.0},
        ]})

        chart = charts["customerSegments"]
        assert chart["series"] == [1000.0, 600.0]
        assert chart["options"]["labels"] == ["Enterprise", "Small"]

    def test_funnel_in_stage_order(self):
        charts = build_dashboard_charts({"salesFunnel": [
            {"stage_name": "Qualified", "stage_order": 2, "entries": 1, "conversions": 1},
            {"stage_name": "Lead", "stage_order": 1, "entries": 4, "conversions": 2},
        ]})

        chart = charts["salesFunnel"]
        assert chart["options"]["xaxis"]["categories"] == ["Lead", "Qualified"]
        assert chart["series"][0]["data"] == [4, 1]
        assert chart["options"]["plotOptions"]["bar"]["horizontal"] is True

    def test_cashflow_keeps_gaps_for_missing_actuals(self):
        charts = build_dashboard_charts({"cashflowTimeline": [
            {"period_date": "2024-01-01", "projected_net": 400.0, "actual_net": 200.0},
            {"period_date": "2024-02-01", "projected_net": 700.0, "actual_net": None},
        ]})

        chart = charts["cashflow"]
        assert chart["options"]["xaxis"]["categories"] == ["Jan 2024", "Feb 2024"]
        assert chart["series"][1]["data"] == [200.0, None]

    def test_kpi_radials_are_clamped(self):
        charts = build_dashboard_charts({"kpiMetrics": [
            {"metric_name": "Sales Target", "metric_value": 150, "target_value": 100, "achievement": 150.0},
            {"metric_name": "Retention", "metric_value": 90, "target_value": None, "achievement": 0.0},
        ]})

        assert [k["series"] for k in charts["kpis"]] == [[100.0], [0.0]]
        assert charts["kpis"][0]["title"] == "Sales Target"
