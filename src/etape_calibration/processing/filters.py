"""
Quality filtering for calibration records.

Rows flagged "bad" in the raw good.bad column are removed before any
modeling. The flag column is dropped from the output since nothing
downstream reads it.
"""

import logging

import pandas as pd

from etape_calibration.constants import GOOD_FLAG

logger = logging.getLogger(__name__)

QUALITY_COL = "quality_flag"


def _good_mask(df: pd.DataFrame) -> pd.Series:
    """True where the quality flag reads "good" (case and whitespace ignored)."""
    flags = df[QUALITY_COL].astype(str).str.strip().str.lower()
    return flags == GOOD_FLAG


def filter_quality(df: pd.DataFrame) -> pd.DataFrame:
    """
    Keep only rows whose quality flag is "good" and drop the flag column.

    Idempotent: a DataFrame without a quality_flag column has already been
    filtered and is returned as a copy. An empty result is valid.

    Args:
        df: Calibration DataFrame from load_calibration_data.

    Returns:
        Filtered copy without the quality_flag column.
    """
    if QUALITY_COL not in df.columns:
        return df.copy()

    mask = _good_mask(df)
    out = df.loc[mask].drop(columns=[QUALITY_COL]).reset_index(drop=True)

    n_dropped = int((~mask).sum())
    logger.info(
        "filter_quality: kept %d of %d rows (%d flagged bad)",
        len(out),
        len(df),
        n_dropped,
    )
    if out.empty:
        logger.warning("filter_quality: no good rows remain")
    return out
