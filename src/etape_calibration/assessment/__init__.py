"""
Calibration assessment: posterior summaries, ground-truth recovery,
frequentist baseline, per-unit deviation, and pooled vs. single-sensor
comparison.

Everything here consumes plain arrays of posterior draws and DataFrames;
no rendering.
"""

from .baseline import (
    LengthRegressionResult,
    compare_to_baseline,
    fit_length_regression,
    get_baseline_table,
)
from .comparison import compare_pooled_to_single
from .posterior import (
    check_recovery,
    parameter_table,
    predict_depth,
    prediction_table,
    summarize_draws,
)
from .unit_variance import (
    compute_unit_deviation,
    identify_deviating_units,
)

__all__ = [
    "LengthRegressionResult",
    "check_recovery",
    "compare_pooled_to_single",
    "compare_to_baseline",
    "compute_unit_deviation",
    "fit_length_regression",
    "get_baseline_table",
    "identify_deviating_units",
    "parameter_table",
    "predict_depth",
    "prediction_table",
    "summarize_draws",
]
