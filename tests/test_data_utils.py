"""Tests for value normalization and guarded arithmetic."""

from datetime import date
from decimal import Decimal

import numpy as np
import pandas as pd

from analytics.utils.data_utils import (
    dataframe_to_records,
    normalize_row,
    percent_change,
    safe_ratio,
    to_float,
)


class TestPercentChange:
    def test_increase(self):
        assert percent_change(150, 100) == 50.0

    def test_decrease(self):
        assert percent_change(75, 100) == -25.0

    def test_zero_previous_is_zero(self):
        assert percent_change(500, 0) == 0.0

    def test_missing_previous_is_zero(self):
        assert percent_change(500, None) == 0.0

    def test_accepts_decimals(self):
        assert percent_change(Decimal("110.00"), Decimal("100.00")) == 10.0


class TestSafeRatio:
    def test_percentage_by_default(self):
        assert safe_ratio(1, 4) == 25.0

    def test_custom_scale(self):
        assert safe_ratio(1, 4, scale=1) == 0.25

    def test_zero_denominator_returns_default(self):
        assert safe_ratio(5, 0) == 0.0
        assert safe_ratio(5, None, default=-1.0) == -1.0


class TestToFloat:
    def test_none_and_nan_use_default(self):
        assert to_float(None) == 0.0
        assert to_float(float("nan"), default=1.0) == 1.0

    def test_unparseable_uses_default(self):
        assert to_float("abc") == 0.0


class TestNormalize:
    def test_row_types(self):
        row = normalize_row({
            "amount": Decimal("12.50"),
            "day": date(2024, 3, 1),
            "count": np.int64(3),
            "name": "Acme",
        })

        assert row == {"amount": 12.5, "day": "2024-03-01", "count": 3, "name": "Acme"}
        assert type(row["count"]) is int

    def test_dataframe_records_replace_nan(self):
        df = pd.DataFrame({"month": ["2024-01", "2024-02"], "value": [1.5, np.nan]})

        records = dataframe_to_records(df)

        assert records == [
            {"month": "2024-01", "value": 1.5},
            {"month": "2024-02", "value": None},
        ]

    def test_empty_dataframe(self):
        assert dataframe_to_records(pd.DataFrame()) == []
