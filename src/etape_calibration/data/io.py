"""
eTape calibration data I/O.

Two tabular sources are supported, as CSV or Excel:

- the main calibration table with columns ``year, water_depth_inch,
  resistivity_ohm, etape_ID, etape_length, good.bad, notes``;
- the single-sensor sub-study table with columns ``etape_ID,
  water_depth_inch, resistivity_ohm`` (one nominal length assumed).

Loaders return DataFrames with internal snake_case column names
(etape_ID -> etape_id, good.bad -> quality_flag) and parsed values. Paths are
always explicit; nothing depends on the working directory.
"""

import logging
from pathlib import Path
from typing import Mapping, Sequence, Union

import pandas as pd

from etape_calibration.constants import (
    CALIBRATION_COLUMN_MAP,
    DEFAULT_SINGLE_SENSOR_LENGTH,
    GOOD_FLAG,
    OPTIONAL_CALIBRATION_COLUMNS,
    SINGLE_SENSOR_COLUMN_MAP,
)
from etape_calibration.errors import MalformedInputError
from etape_calibration.processing.metadata import (
    coerce_label,
    coerce_length,
    coerce_numeric,
    coerce_quality_flag,
)

logger = logging.getLogger(__name__)

EXCEL_SUFFIXES = (".xlsx",)
# Legacy binary workbooks need xlrd, which is not a dependency.
LEGACY_EXCEL_SUFFIXES = (".xls",)


def _read_table(path: Path) -> pd.DataFrame:
    """Read a CSV or Excel file; any read failure becomes MalformedInputError."""
    if not path.exists():
        raise MalformedInputError(f"File not found: {path}")
    if not path.is_file():
        raise MalformedInputError(f"Not a file: {path}")
    if path.suffix.lower() in LEGACY_EXCEL_SUFFIXES:
        raise MalformedInputError(
            f"Cannot read {path.name}: legacy .xls workbooks are not supported; "
            "save the sheet as .xlsx or .csv"
        )

    try:
        if path.suffix.lower() in EXCEL_SUFFIXES:
            df = pd.read_excel(path)
        else:
            df = pd.read_csv(path, skipinitialspace=True)
    except (OSError, ValueError, ImportError) as e:
        raise MalformedInputError(f"Cannot read {path.name}: {e}") from e

    df.columns = [str(c).strip() for c in df.columns]
    return df


def _require_columns(
    df: pd.DataFrame,
    column_map: Mapping[str, str],
    source: str,
    optional: Sequence[str] = (),
) -> pd.DataFrame:
    """Check required raw columns and rename them to internal names."""
    missing = [c for c in column_map if c not in df.columns and c not in optional]
    if missing:
        raise MalformedInputError(
            f"Required column(s) {missing} not found in {source}. "
            f"Available: {list(df.columns)}"
        )
    present = {raw: name for raw, name in column_map.items() if raw in df.columns}
    out = df[list(present)].rename(columns=present).copy()
    for raw in optional:
        name = column_map[raw]
        if name not in out.columns:
            out[name] = ""
    return out


def load_calibration_data(path: Union[str, Path]) -> pd.DataFrame:
    """
    Load the main calibration table.

    Args:
        path: CSV or Excel file.

    Returns:
        DataFrame with columns year, water_depth_inch, resistivity_ohm,
        etape_id, etape_length, quality_flag, notes. All rows are returned,
        including those flagged bad; use filter_quality to drop them.
        Depth and resistance must be finite and positive on good rows; on
        bad rows they may be blank (NaN) or non-positive, but not text.

    Raises:
        MalformedInputError: Unreadable file or missing required columns.
        TypeCoercionError: A value cannot be parsed (row and column named).
    """
    path = Path(path)
    raw = _read_table(path)
    df = _require_columns(
        raw,
        CALIBRATION_COLUMN_MAP,
        path.name,
        optional=OPTIONAL_CALIBRATION_COLUMNS,
    )

    df["quality_flag"] = coerce_quality_flag(df["quality_flag"])
    good = df["quality_flag"] == GOOD_FLAG

    df["year"] = coerce_label(df["year"], "year")
    # Blank or zero readings are allowed on bad rows; normalize_types
    # re-checks the rows that are kept.
    for col in ("water_depth_inch", "resistivity_ohm"):
        df[col] = coerce_numeric(df[col], col, checked_rows=good)
    df["etape_id"] = coerce_label(df["etape_id"], "etape_id")
    df["etape_length"] = coerce_length(df["etape_length"])
    df["notes"] = df["notes"].fillna("").astype(str)

    logger.info(
        "Loaded %d calibration rows (%d eTapes) from %s",
        len(df),
        df["etape_id"].nunique(),
        path.name,
    )
    return df.reset_index(drop=True)


def load_single_sensor_data(
    path: Union[str, Path],
    *,
    etape_length: int = DEFAULT_SINGLE_SENSOR_LENGTH,
) -> pd.DataFrame:
    """
    Load the single-sensor sub-study table.

    The file has no length or quality columns; every row is taken as good and
    assigned the given nominal length.

    Args:
        path: CSV or Excel file with etape_ID, water_depth_inch, resistivity_ohm.
        etape_length: Nominal length of the sensor(s) in the sub-study.

    Returns:
        DataFrame with columns etape_id, water_depth_inch, resistivity_ohm,
        etape_length.
    """
    path = Path(path)
    raw = _read_table(path)
    df = _require_columns(raw, SINGLE_SENSOR_COLUMN_MAP, path.name)

    df["etape_id"] = coerce_label(df["etape_id"], "etape_id")
    df["water_depth_inch"] = coerce_numeric(df["water_depth_inch"], "water_depth_inch")
    df["resistivity_ohm"] = coerce_numeric(df["resistivity_ohm"], "resistivity_ohm")
    df["etape_length"] = int(etape_length)

    logger.info(
        "Loaded %d single-sensor rows from %s (etape_length=%d)",
        len(df),
        path.name,
        etape_length,
    )
    return df.reset_index(drop=True)
