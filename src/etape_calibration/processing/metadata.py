"""
Column derivation and type normalization for eTape calibration DataFrames.

Adds water_depth_cm from water_depth_inch and coerces categorical and numeric
columns to their declared semantic types. Coercion failures name the row and
column so a bad spreadsheet cell can be located.
"""

import logging
from typing import Optional, Sequence

import numpy as np
import pandas as pd

from etape_calibration.constants import (
    GOOD_FLAG,
    INCH_TO_CM,
    NUMERIC_COLUMNS,
    QUALITY_FLAGS,
    SUPPORTED_LENGTHS,
)
from etape_calibration.errors import (
    ConfigurationError,
    MalformedInputError,
    TypeCoercionError,
)
from etape_calibration.utils.natural_sort import ordered_levels

logger = logging.getLogger(__name__)


def _as_plain(series: pd.Series) -> pd.Series:
    """Drop categorical dtype so values can be re-parsed."""
    if isinstance(series.dtype, pd.CategoricalDtype):
        return series.astype(object)
    return series


def _raise_first(series: pd.Series, bad: pd.Series, column: str, expected: str) -> None:
    if bad.any():
        row = bad[bad].index[0]
        raise TypeCoercionError(column, row, series.loc[row], expected)


def coerce_numeric(
    series: pd.Series,
    column: str,
    *,
    positive: bool = True,
    checked_rows: Optional[pd.Series] = None,
) -> pd.Series:
    """
    Parse a column as float, rejecting text, blanks, and non-finite values.

    Text that is not a number is rejected on every row. Blank, non-finite,
    and (with positive=True) non-positive values are rejected only on
    checked_rows; elsewhere they are returned as parsed (NaN for blanks).

    Args:
        series: Raw column values.
        column: Column name (used in the error message).
        positive: If True, zero and negative values are rejected as well.
        checked_rows: Boolean mask of rows held to the value checks. None
            means every row.

    Returns:
        Float Series with the same index.

    Raises:
        TypeCoercionError: On the first value that cannot be interpreted.
    """
    raw = _as_plain(series)
    parsed = pd.to_numeric(raw, errors="coerce").astype(float)
    blank = raw.isna() | (raw.astype(str).str.strip() == "")
    expected = "a finite positive number" if positive else "a finite number"
    _raise_first(raw, parsed.isna() & ~blank, column, expected)

    bad = ~np.isfinite(parsed)
    if positive:
        bad = bad | (parsed <= 0)
    if checked_rows is not None:
        bad = bad & checked_rows.astype(bool)
    _raise_first(raw, bad, column, expected)
    return parsed


def coerce_length(series: pd.Series, column: str = "etape_length") -> pd.Series:
    """Parse nominal lengths as integers (e.g. "12" or 12.0 -> 12)."""
    raw = _as_plain(series)
    parsed = pd.to_numeric(raw, errors="coerce").astype(float)
    bad = ~np.isfinite(parsed) | (parsed != np.round(parsed))
    _raise_first(raw, bad, column, "an integer length in inches")
    return parsed.astype(int)


def coerce_label(series: pd.Series, column: str) -> pd.Series:
    """
    Parse a categorical label column as stripped strings.

    Whole-number floats (e.g. a year read as 2019.0) are rendered without the
    decimal part.
    """
    raw = _as_plain(series)

    def _to_label(v):
        if isinstance(v, float) and v.is_integer():
            return str(int(v))
        return str(v).strip()

    labels = raw.map(_to_label, na_action="ignore")
    bad = labels.isna() | (labels == "")
    _raise_first(raw, bad, column, "a non-empty label")
    return labels.astype(str)


def coerce_quality_flag(series: pd.Series, column: str = "quality_flag") -> pd.Series:
    """Normalize the good/bad flag to lower-case strings."""
    raw = _as_plain(series)
    flags = raw.astype(str).str.strip().str.lower()
    bad = raw.isna() | ~flags.isin(QUALITY_FLAGS)
    _raise_first(raw, bad, column, f"one of {list(QUALITY_FLAGS)}")
    return flags


def check_supported_lengths(
    lengths: pd.Series,
    supported_lengths: Sequence[int] = SUPPORTED_LENGTHS,
) -> None:
    """
    Raise ConfigurationError if any length is outside the supported set.

    There is no prior mean for an unknown length, so such rows cannot be
    modeled and are never dropped silently.
    """
    supported = {int(v) for v in supported_lengths}
    values = pd.to_numeric(_as_plain(lengths), errors="coerce")
    unknown = values[~values.isin(supported)]
    if not unknown.empty:
        found = sorted({str(v) for v in unknown.unique()})
        raise ConfigurationError(
            f"Unsupported etape_length value(s) {found} in {len(unknown)} row(s); "
            f"supported lengths are {sorted(supported)}"
        )


def derive_units(df: pd.DataFrame) -> pd.DataFrame:
    """
    Add water_depth_cm = water_depth_inch * 2.54.

    The column is always recomputed; an existing water_depth_cm is overwritten.

    Args:
        df: DataFrame with a water_depth_inch column.

    Returns:
        Copy of df with water_depth_cm added.
    """
    if "water_depth_inch" not in df.columns:
        raise MalformedInputError(
            "derive_units: missing column 'water_depth_inch'. "
            f"Available: {list(df.columns)}"
        )
    out = df.copy()
    depth_inch = pd.to_numeric(_as_plain(out["water_depth_inch"]), errors="coerce")
    out["water_depth_cm"] = depth_inch.astype(float) * INCH_TO_CM
    return out


def normalize_types(
    df: pd.DataFrame,
    *,
    supported_lengths: Sequence[int] = SUPPORTED_LENGTHS,
) -> pd.DataFrame:
    """
    Coerce columns to their semantic types.

    - year, etape_id: unordered Categorical, levels in natural sort order.
    - etape_length: ordered Categorical whose categories are
      supported_lengths in their declared order.
    - water_depth_inch, water_depth_cm, resistivity_ohm: float, finite, > 0.

    Columns that are absent are skipped (e.g. simulated data has no etape_id).

    Args:
        df: Loaded calibration DataFrame.
        supported_lengths: Canonical ordering of nominal lengths.

    Returns:
        Copy of df with normalized dtypes.

    Raises:
        TypeCoercionError: A value cannot be parsed.
        ConfigurationError: An etape_length is outside supported_lengths.
    """
    out = df.copy()

    for col in NUMERIC_COLUMNS:
        if col in out.columns:
            out[col] = coerce_numeric(out[col], col)

    if "etape_length" in out.columns:
        lengths = coerce_length(out["etape_length"])
        check_supported_lengths(lengths, supported_lengths)
        out["etape_length"] = pd.Categorical(
            lengths,
            categories=[int(v) for v in supported_lengths],
            ordered=True,
        )

    for col in ("year", "etape_id"):
        if col in out.columns:
            labels = coerce_label(out[col], col)
            out[col] = pd.Categorical(labels, categories=ordered_levels(labels))

    if "quality_flag" in out.columns:
        out["quality_flag"] = coerce_quality_flag(out["quality_flag"])
        n_good = int((out["quality_flag"] == GOOD_FLAG).sum())
        logger.debug("normalize_types: %d of %d rows flagged good", n_good, len(out))

    return out
