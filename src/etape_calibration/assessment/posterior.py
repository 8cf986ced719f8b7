"""
Posterior summaries and predictive depth distributions.

Works on plain arrays of posterior draws, {parameter: (draws, groups)}, as
returned by CalibrationFit.posterior_samples, so it has no dependency on the
sampling library.
"""

from typing import Mapping, Sequence

import numpy as np
import pandas as pd

from etape_calibration.constants import SUMMARY_PERCENTILES
from etape_calibration.errors import ConfigurationError
from etape_calibration.simulation.synthetic import SyntheticGroundTruth


def _percentile_key(p: float) -> str:
    return f"q{p:g}"


def summarize_draws(
    values: np.ndarray,
    percentiles: Sequence[float] = SUMMARY_PERCENTILES,
) -> dict[str, float]:
    """
    Mean, standard deviation, and percentiles of a 1D sample.

    Returns:
        {"mean", "sd", "q2.5", "q97.5"} for the default percentiles. NaN
        everywhere when there are no finite draws.
    """
    vals = np.asarray(values, dtype=float).ravel()
    vals = vals[np.isfinite(vals)]
    out = {"mean": np.nan, "sd": np.nan}
    out.update({_percentile_key(p): np.nan for p in percentiles})
    if len(vals) == 0:
        return out
    out["mean"] = float(np.mean(vals))
    out["sd"] = float(np.std(vals, ddof=1)) if len(vals) > 1 else np.nan
    for p, q in zip(percentiles, np.percentile(vals, percentiles)):
        out[_percentile_key(p)] = float(q)
    return out


def predict_depth(
    samples: Mapping[str, np.ndarray],
    resistance: float,
    group: int,
) -> np.ndarray:
    """
    Predictive draws of depth (cm) at a new resistance for one length group.

    prediction = alpha[group] + beta[group] * resistance, one value per draw.
    """
    alpha = np.asarray(samples["alpha"])
    beta = np.asarray(samples["beta"])
    if alpha.shape != beta.shape:
        raise ConfigurationError(
            f"alpha {alpha.shape} and beta {beta.shape} draws differ in shape"
        )
    if not 0 <= group < alpha.shape[1]:
        raise IndexError(f"group {group} outside [0, {alpha.shape[1]})")
    return alpha[:, group] + beta[:, group] * float(resistance)


def prediction_table(
    samples: Mapping[str, np.ndarray],
    resistance: float,
    levels: Sequence,
    *,
    level_name: str = "etape_length",
) -> pd.DataFrame:
    """
    Predictive depth summary at one resistance for every group.

    Args:
        samples: Posterior draws with alpha and beta.
        resistance: New resistance reading (ohm).
        levels: Label for each group column (e.g. bundle.length_levels).
        level_name: Name of the label column.

    Returns:
        DataFrame with level_name, resistivity_ohm, mean, sd, q2.5, q97.5.
    """
    rows = []
    for j, level in enumerate(levels):
        draws = predict_depth(samples, resistance, j)
        rows.append(
            {level_name: level, "resistivity_ohm": float(resistance), **summarize_draws(draws)}
        )
    return pd.DataFrame(rows)


def parameter_table(
    samples: Mapping[str, np.ndarray],
    levels: Mapping[str, Sequence],
) -> pd.DataFrame:
    """
    Summarize every parameter per group.

    Args:
        samples: Posterior draws, {parameter: (draws, groups)}.
        levels: Group labels per parameter, e.g. {"alpha": (12, 15), ...}.
            Parameters without an entry get positional labels.

    Returns:
        DataFrame with parameter, level, mean, sd, q2.5, q97.5.
    """
    rows = []
    for name, draws in samples.items():
        draws = np.asarray(draws)
        labels = levels.get(name, range(draws.shape[1]))
        for j, label in enumerate(labels):
            rows.append({"parameter": name, "level": label, **summarize_draws(draws[:, j])})
    return pd.DataFrame(rows)


def check_recovery(
    samples: Mapping[str, np.ndarray],
    ground_truth: SyntheticGroundTruth,
    length_levels: Sequence[int],
    *,
    n_sd: float = 2.0,
) -> pd.DataFrame:
    """
    Compare posterior alpha/beta with the true intercept/slope.

    A parameter counts as recovered when the true value lies within n_sd
    posterior standard deviations of the posterior mean.

    Returns:
        DataFrame with etape_length, parameter, true_value, posterior_mean,
        posterior_sd, z_score, recovered.

    Raises:
        ConfigurationError: A length level has no ground-truth entry.
    """
    rows = []
    for j, length in enumerate(length_levels):
        if int(length) not in ground_truth.parameters:
            raise ConfigurationError(f"No ground truth for etape_length {length}")
        truth = ground_truth.parameters[int(length)]
        for param, label, true_value in (
            ("alpha", "intercept", truth.intercept),
            ("beta", "slope", truth.slope),
        ):
            post = summarize_draws(np.asarray(samples[param])[:, j])
            sd = post["sd"]
            z = (post["mean"] - true_value) / sd if sd > 0 else np.nan
            rows.append(
                {
                    "etape_length": int(length),
                    "parameter": label,
                    "true_value": true_value,
                    "posterior_mean": post["mean"],
                    "posterior_sd": sd,
                    "z_score": z,
                    "recovered": bool(np.isfinite(z) and abs(z) <= n_sd),
                }
            )
    return pd.DataFrame(rows)
