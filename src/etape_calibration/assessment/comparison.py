"""
Pooled multi-sensor model vs. single-sensor sub-study.

Answers whether pooling many physical units into one length-level curve
costs calibration accuracy: at each resistance, the predictive depth of the
pooled model (for the sub-study's length) is set next to the single-sensor
model's.
"""

from typing import Mapping, Sequence

import numpy as np
import pandas as pd

from etape_calibration.assessment.posterior import predict_depth, summarize_draws
from etape_calibration.constants import SUMMARY_PERCENTILES


def compare_pooled_to_single(
    pooled_samples: Mapping[str, np.ndarray],
    single_samples: Mapping[str, np.ndarray],
    resistances: Sequence[float],
    *,
    pooled_group: int,
    single_group: int = 0,
) -> pd.DataFrame:
    """
    Side-by-side predictive summaries at the given resistances.

    Args:
        pooled_samples: Posterior draws of the pooled model.
        single_samples: Posterior draws of the single-sensor model.
        resistances: Resistance readings (ohm) to predict at.
        pooled_group: Column of the pooled draws for the sub-study length
            (its position in the pooled bundle's length_levels).
        single_group: Column of the single-sensor draws (0 for one length).

    Returns:
        DataFrame with resistivity_ohm, pooled_* and single_* summaries
        (mean, sd, lower, upper), mean_difference (pooled - single), and
        width_ratio (pooled interval width / single interval width).
    """
    lo_key = f"q{SUMMARY_PERCENTILES[0]:g}"
    hi_key = f"q{SUMMARY_PERCENTILES[-1]:g}"

    rows = []
    for r in resistances:
        row = {"resistivity_ohm": float(r)}
        for prefix, samples, group in (
            ("pooled", pooled_samples, pooled_group),
            ("single", single_samples, single_group),
        ):
            s = summarize_draws(predict_depth(samples, r, group))
            row[f"{prefix}_mean"] = s["mean"]
            row[f"{prefix}_sd"] = s["sd"]
            row[f"{prefix}_lower"] = s[lo_key]
            row[f"{prefix}_upper"] = s[hi_key]
        row["mean_difference"] = row["pooled_mean"] - row["single_mean"]
        single_width = row["single_upper"] - row["single_lower"]
        pooled_width = row["pooled_upper"] - row["pooled_lower"]
        row["width_ratio"] = pooled_width / single_width if single_width > 0 else np.nan
        rows.append(row)
    return pd.DataFrame(rows)
