"""Unit tests for quality filtering, unit derivation, type normalization, and summaries."""

from __future__ import annotations

import numpy as np
import pandas as pd
import pytest

from etape_calibration.errors import (
    ConfigurationError,
    MalformedInputError,
    TypeCoercionError,
)
from etape_calibration.processing import (
    derive_units,
    filter_quality,
    normalize_types,
    summarize,
)

# ──────────────────────────────────────────────
# filter_quality
# ──────────────────────────────────────────────


class TestFilterQuality:
    def test_drops_bad_rows_and_flag_column(self, records: pd.DataFrame) -> None:
        out = filter_quality(records)
        assert len(out) == 4
        assert "quality_flag" not in out.columns
        assert list(out.index) == [0, 1, 2, 3]

    def test_is_idempotent(self, records: pd.DataFrame) -> None:
        once = filter_quality(records)
        twice = filter_quality(once)
        pd.testing.assert_frame_equal(once, twice)

    def test_does_not_mutate_input(self, records: pd.DataFrame) -> None:
        before = records.copy()
        filter_quality(records)
        pd.testing.assert_frame_equal(records, before)

    def test_all_bad_gives_empty_frame(self, records: pd.DataFrame) -> None:
        records["quality_flag"] = "bad"
        out = filter_quality(records)
        assert out.empty
        assert "resistivity_ohm" in out.columns


# ──────────────────────────────────────────────
# derive_units
# ──────────────────────────────────────────────


class TestDeriveUnits:
    def test_converts_inches_exactly(self, records: pd.DataFrame) -> None:
        out = derive_units(records)
        expected = records["water_depth_inch"] * 2.54
        np.testing.assert_array_equal(out["water_depth_cm"].values, expected.values)

    def test_overwrites_existing_column(self, records: pd.DataFrame) -> None:
        records["water_depth_cm"] = -1.0
        out = derive_units(records)
        assert out["water_depth_cm"].iloc[0] == pytest.approx(2.54)

    def test_missing_inch_column_raises(self, records: pd.DataFrame) -> None:
        with pytest.raises(MalformedInputError, match="water_depth_inch"):
            derive_units(records.drop(columns=["water_depth_inch"]))


# ──────────────────────────────────────────────
# normalize_types
# ──────────────────────────────────────────────


class TestNormalizeTypes:
    def test_length_is_ordered_categorical_over_supported(self, records: pd.DataFrame) -> None:
        out = normalize_types(derive_units(filter_quality(records)))
        dtype = out["etape_length"].dtype
        assert isinstance(dtype, pd.CategoricalDtype)
        assert dtype.ordered
        assert list(dtype.categories) == [8, 12, 15, 18, 24]

    def test_unit_levels_in_natural_order(self, records: pd.DataFrame) -> None:
        out = normalize_types(records)
        assert list(out["etape_id"].cat.categories) == ["E1", "E2", "E10"]
        assert list(out["year"].cat.categories) == ["2019", "2020"]

    def test_numeric_columns_are_float(self, records: pd.DataFrame) -> None:
        out = normalize_types(derive_units(records))
        for col in ("water_depth_inch", "water_depth_cm", "resistivity_ohm"):
            assert out[col].dtype == float

    def test_custom_length_ordering_is_kept(self, records: pd.DataFrame) -> None:
        out = normalize_types(records, supported_lengths=(12, 8))
        assert list(out["etape_length"].cat.categories) == [12, 8]

    def test_unsupported_length_raises(self, records: pd.DataFrame) -> None:
        records.loc[0, "etape_length"] = 20
        with pytest.raises(ConfigurationError, match="20"):
            normalize_types(records)

    def test_non_positive_resistance_raises(self, records: pd.DataFrame) -> None:
        records.loc[2, "resistivity_ohm"] = 0.0
        with pytest.raises(TypeCoercionError) as exc_info:
            normalize_types(records)
        assert exc_info.value.column == "resistivity_ohm"
        assert exc_info.value.row == 2

    def test_works_without_unit_or_year_columns(self, records: pd.DataFrame) -> None:
        out = normalize_types(records.drop(columns=["etape_id", "year"]))
        assert "etape_id" not in out.columns
        assert isinstance(out["etape_length"].dtype, pd.CategoricalDtype)


# ──────────────────────────────────────────────
# summarize
# ──────────────────────────────────────────────


class TestSummarize:
    def test_groups_sorted_by_length_then_depth(self) -> None:
        df = pd.DataFrame(
            {
                "etape_length": [12, 8, 12, 8, 8],
                "water_depth_inch": [2.0, 3.0, 1.0, 1.0, 1.0],
                "resistivity_ohm": [1.0, 2.0, 3.0, 4.0, 6.0],
            }
        )
        out = summarize(df)
        assert out[["etape_length", "water_depth_inch"]].values.tolist() == [
            [8, 1.0],
            [8, 3.0],
            [12, 1.0],
            [12, 2.0],
        ]
        first = out.iloc[0]
        assert first["mean"] == pytest.approx(5.0)
        assert first["median"] == pytest.approx(5.0)
        assert first["sd"] == pytest.approx(np.sqrt(2.0))
        assert first["min"] == 4.0
        assert first["max"] == 6.0
        assert first["count"] == 2

    def test_single_reading_has_nan_sd(self) -> None:
        df = pd.DataFrame(
            {"etape_length": [8], "water_depth_inch": [1.0], "resistivity_ohm": [1400.0]}
        )
        out = summarize(df)
        assert np.isnan(out["sd"].iloc[0])
        assert out["count"].iloc[0] == 1

    def test_column_order(self, records: pd.DataFrame) -> None:
        out = summarize(normalize_types(records))
        assert list(out.columns) == [
            "etape_length",
            "water_depth_inch",
            "mean",
            "median",
            "sd",
            "min",
            "max",
            "count",
        ]

    def test_missing_value_column_raises(self, records: pd.DataFrame) -> None:
        with pytest.raises(MalformedInputError):
            summarize(records, value_col="conductance")
