"""
Frequentist baseline: ordinary least squares per nominal length.

Fits depth_cm ~ resistivity_ohm with scipy.stats.linregress for each
etape_length. The resulting intercepts and slopes are the reference the
Bayesian posterior is compared against.
"""

from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np
import pandas as pd
from scipy import stats

from etape_calibration.assessment.posterior import summarize_draws
from etape_calibration.errors import MalformedInputError

BASELINE_COLUMNS = [
    "etape_length",
    "intercept",
    "slope",
    "intercept_stderr",
    "slope_stderr",
    "r_squared",
    "rmse",
    "n_points",
]


@dataclass
class LengthRegressionResult:
    """Result of fitting depth_cm ~ resistivity_ohm for one length."""

    slope: float
    intercept: float
    slope_stderr: float
    intercept_stderr: float
    r2: float
    rmse: float
    n_samples: int


def fit_length_regression(
    df: pd.DataFrame,
    *,
    depth_col: str = "water_depth_cm",
    resistance_col: str = "resistivity_ohm",
) -> Optional[LengthRegressionResult]:
    """
    Fit a straight line of depth vs resistance.

    Args:
        df: Rows of a single nominal length.
        depth_col: Y-axis column.
        resistance_col: X-axis column.

    Returns:
        LengthRegressionResult, or None if fewer than 2 valid points or the
        resistances are all identical.
    """
    if depth_col not in df.columns or resistance_col not in df.columns:
        return None

    valid = df[[resistance_col, depth_col]].notna().all(axis=1)
    df_fit = df.loc[valid]
    if len(df_fit) < 2:
        return None

    x = df_fit[resistance_col].astype(float).values
    y = df_fit[depth_col].astype(float).values
    if np.ptp(x) == 0:
        return None

    res = stats.linregress(x, y)
    residuals = y - (res.intercept + res.slope * x)
    rmse = np.sqrt(np.mean(residuals**2))

    return LengthRegressionResult(
        slope=float(res.slope),
        intercept=float(res.intercept),
        slope_stderr=float(res.stderr),
        intercept_stderr=float(res.intercept_stderr),
        r2=float(res.rvalue**2),
        rmse=float(rmse),
        n_samples=len(df_fit),
    )


def get_baseline_table(
    df: pd.DataFrame,
    *,
    length_col: str = "etape_length",
    depth_col: str = "water_depth_cm",
    resistance_col: str = "resistivity_ohm",
) -> pd.DataFrame:
    """
    Fit the OLS baseline for every nominal length present.

    Args:
        df: Cleaned calibration (or simulated) DataFrame.
        length_col: Grouping column.
        depth_col: Response column.
        resistance_col: Predictor column.

    Returns:
        DataFrame with BASELINE_COLUMNS, one row per length, ascending.
        Lengths with insufficient data (n < 2 or constant resistance) are
        omitted.
    """
    if length_col not in df.columns:
        raise MalformedInputError(
            f"length_col '{length_col}' not in DataFrame. Available: {list(df.columns)}"
        )

    rows: list[dict] = []
    for length, subset in df.groupby(length_col, observed=True, sort=True):
        res = fit_length_regression(
            subset, depth_col=depth_col, resistance_col=resistance_col
        )
        if res is None:
            continue
        rows.append(
            {
                "etape_length": int(length),
                "intercept": res.intercept,
                "slope": res.slope,
                "intercept_stderr": res.intercept_stderr,
                "slope_stderr": res.slope_stderr,
                "r_squared": res.r2,
                "rmse": res.rmse,
                "n_points": res.n_samples,
            }
        )
    return pd.DataFrame(rows, columns=BASELINE_COLUMNS)


def compare_to_baseline(
    samples: dict[str, np.ndarray],
    baseline: pd.DataFrame,
    length_levels: Sequence[int],
) -> pd.DataFrame:
    """
    Put posterior alpha/beta next to the OLS intercept/slope per length.

    Args:
        samples: Posterior draws, {"alpha": (draws, K_L), "beta": (draws, K_L)}.
        baseline: Output of get_baseline_table.
        length_levels: Length label for each column of the draws.

    Returns:
        DataFrame with etape_length, parameter ("intercept" / "slope"),
        baseline_estimate, baseline_stderr, posterior_mean, posterior_sd,
        difference (posterior_mean - baseline_estimate) and z_difference
        (difference / baseline_stderr). Lengths missing from the baseline
        are skipped.
    """
    by_length = baseline.set_index("etape_length")
    rows: list[dict] = []
    for j, length in enumerate(length_levels):
        if int(length) not in by_length.index:
            continue
        ref = by_length.loc[int(length)]
        for param, label in (("alpha", "intercept"), ("beta", "slope")):
            post = summarize_draws(samples[param][:, j])
            estimate = float(ref[label])
            stderr = float(ref[f"{label}_stderr"])
            diff = post["mean"] - estimate
            rows.append(
                {
                    "etape_length": int(length),
                    "parameter": label,
                    "baseline_estimate": estimate,
                    "baseline_stderr": stderr,
                    "posterior_mean": post["mean"],
                    "posterior_sd": post["sd"],
                    "difference": diff,
                    "z_difference": diff / stderr if stderr > 0 else np.nan,
                }
            )
    return pd.DataFrame(rows)
