from typing import Dict, List, Any, Optional
import pandas as pd
from datetime import datetime

REVENUE_COLOR = "#f97316"
EXPENSE_COLOR = "#94a3b8"
SEGMENT_COLORS = ["#f97316", "#0ea5e9", "#22c55e", "#a855f7"]

NO_DATA = {"type": "text", "message": "No data available for visualization."}

def _format_month(month: str) -> str:
    """Format a ``YYYY-MM`` or ``YYYY-MM-DD`` string as ``Mar 2024``."""
    for fmt in ('%Y-%m', '%Y-%m-%d'):
        try:
            return datetime.strptime(str(month), fmt).strftime('%b %Y')
        except (ValueError, TypeError):
            continue
    return str(month)

def format_currency(value: Optional[float]) -> str:
    """Format currency values with appropriate units."""
    value = float(value or 0)
    sign = '-' if value < 0 else ''
    value = abs(value)
    if value >= 1e7:  # Crores
        return f'{sign}₹{value/1e7:.2f} Cr'
    elif value >= 1e5:  # Lakhs
        return f'{sign}₹{value/1e5:.2f} L'
    else:
        return f'{sign}₹{value:,.2f}'

def format_change(change: Optional[float]) -> str:
    """Month-over-month change with a direction arrow, e.g. ``↑ 12.5%``."""
    change = float(change or 0)
    if change > 0:
        return f'↑ {change:.1f}%'
    if change < 0:
        return f'↓ {abs(change):.1f}%'
    return '0.0%'

def _revenue_expense_chart(monthly: List[Dict[str, Any]]) -> Dict[str, Any]:
    if not monthly:
        return NO_DATA

    df = pd.DataFrame(monthly).sort_values(by='month')
    return {
        "type": "bar",
        "title": "Revenue vs Expenses",
        "series": [
            {"name": "Revenue", "data": df['revenue'].astype(float).tolist()},
            {"name": "Expenses", "data": df['expense'].astype(float).tolist()},
        ],
        "options": {
            "chart": {"type": "bar", "height": 320, "toolbar": {"show": False}},
            "colors": [REVENUE_COLOR, EXPENSE_COLOR],
            "plotOptions": {"bar": {"columnWidth": "45%", "borderRadius": 4}},
            "dataLabels": {"enabled": False},
            "xaxis": {"categories": [_format_month(m) for m in df['month']]},
            "legend": {"position": "top"},
        },
    }

def _segment_chart(segments: List[Dict[str, Any]]) -> Dict[str, Any]:
    if not segments:
        return NO_DATA

    return {
        "type": "donut",
        "title": "Customer Segments",
        "series": [float(s.get('total_value') or 0) for s in segments],
        "options": {
            "chart": {"type": "donut", "height": 320},
            "labels": [str(s['business_size']).title() for s in segments],
            "colors": SEGMENT_COLORS[:len(segments)],
            "legend": {"position": "bottom"},
        },
    }

def _funnel_chart(funnel: List[Dict[str, Any]]) -> Dict[str, Any]:
    if not funnel:
        return NO_DATA

    df = pd.DataFrame(funnel).sort_values(by='stage_order')
    return {
        "type": "bar",
        "title": "Sales Funnel",
        "series": [
            {"name": "Entries", "data": df['entries'].astype(int).tolist()},
            {"name": "Conversions", "data": df['conversions'].astype(int).tolist()},
        ],
        "options": {
            "chart": {"type": "bar", "height": 320, "toolbar": {"show": False}},
            "colors": [EXPENSE_COLOR, REVENUE_COLOR],
            "plotOptions": {"bar": {"horizontal": True, "borderRadius": 4}},
            "dataLabels": {"enabled": False},
            "xaxis": {"categories": df['stage_name'].tolist()},
        },
    }

def _cashflow_chart(timeline: List[Dict[str, Any]]) -> Dict[str, Any]:
    if not timeline:
        return NO_DATA

    df = pd.DataFrame(timeline).sort_values(by='period_date')
    # Future periods have no actuals; ApexCharts leaves a gap for null
    actual = [None if pd.isna(v) else float(v) for v in df['actual_net']]
    return {
        "type": "area",
        "title": "Cashflow Timeline",
        "series": [
            {"name": "Projected net", "data": df['projected_net'].astype(float).tolist()},
            {"name": "Actual net", "data": actual},
        ],
        "options": {
            "chart": {"type": "area", "height": 320, "toolbar": {"show": False}},
            "colors": [EXPENSE_COLOR, REVENUE_COLOR],
            "stroke": {"curve": "smooth", "width": 2},
            "dataLabels": {"enabled": False},
            "xaxis": {"categories": [_format_month(d) for d in df['period_date']]},
        },
    }

def _kpi_charts(kpis: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    charts = []
    for kpi in kpis:
        achievement = float(kpi.get('achievement') or 0)
        charts.append({
            "type": "radialBar",
            "title": kpi['metric_name'],
            "value": kpi.get('metric_value'),
            "target": kpi.get('target_value'),
            "series": [round(min(max(achievement, 0.0), 100.0), 1)],
            "options": {
                "chart": {"type": "radialBar", "height": 200},
                "colors": [REVENUE_COLOR],
                "labels": [kpi['metric_name']],
                "plotOptions": {"radialBar": {"hollow": {"size": "60%"}}},
            },
        })
    return charts

def build_dashboard_charts(data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Generate ApexCharts configurations for the dashboard sections.

    Args:
        data: The ``data`` mapping of a dashboard payload

    Returns:
        Dict of chart name to an ``options``/``series`` configuration, or a
        text placeholder when the section is empty. ``kpis`` is a list.
    """
    return {
        "revenueExpenses": _revenue_expense_chart(data.get('monthlyData') or []),
        "customerSegments": _segment_chart(data.get('customerSegments') or []),
        "salesFunnel": _funnel_chart(data.get('salesFunnel') or []),
        "cashflow": _cashflow_chart(data.get('cashflowTimeline') or []),
        "kpis": _kpi_charts(data.get('kpiMetrics') or []),
    }
