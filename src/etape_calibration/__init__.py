"""
eTape Calibration - water-level sensor calibration analysis

Data loading and cleaning, synthetic validation data, Bayesian hierarchical
regression of depth on resistance (PyMC), frequentist baseline, and
pooled vs. single-sensor comparison for resistive eTape sensors.
"""

from .assessment import (
    check_recovery,
    compare_pooled_to_single,
    compare_to_baseline,
    compute_unit_deviation,
    get_baseline_table,
    identify_deviating_units,
    parameter_table,
    predict_depth,
    prediction_table,
    summarize_draws,
)
from .data import load_calibration_data, load_single_sensor_data
from .errors import (
    CalibrationError,
    ConfigurationError,
    ConvergenceError,
    MalformedInputError,
    TypeCoercionError,
)
from .modeling import (
    POOLED_MODEL,
    SIMULATED_MODEL,
    SINGLE_SENSOR_MODEL,
    UNIT_EFFECT_MODEL,
    ModelSpec,
)
from .pipeline import (
    prepare_calibration_data,
    prepare_single_sensor_data,
    run_synthetic_validation,
    single_sensor_group,
)
from .processing import (
    DatasetBundle,
    derive_units,
    filter_quality,
    normalize_types,
    summarize,
    to_dataset_bundle,
)
from .simulation import SyntheticGroundTruth, generate

__version__ = "0.1.0"

__all__ = [
    "CalibrationError",
    "ConfigurationError",
    "ConvergenceError",
    "DatasetBundle",
    "MalformedInputError",
    "ModelSpec",
    "POOLED_MODEL",
    "SIMULATED_MODEL",
    "SINGLE_SENSOR_MODEL",
    "SyntheticGroundTruth",
    "TypeCoercionError",
    "UNIT_EFFECT_MODEL",
    "check_recovery",
    "compare_pooled_to_single",
    "compare_to_baseline",
    "compute_unit_deviation",
    "derive_units",
    "filter_quality",
    "generate",
    "get_baseline_table",
    "identify_deviating_units",
    "load_calibration_data",
    "load_single_sensor_data",
    "normalize_types",
    "parameter_table",
    "predict_depth",
    "prediction_table",
    "prepare_calibration_data",
    "prepare_single_sensor_data",
    "run_synthetic_validation",
    "single_sensor_group",
    "summarize",
    "summarize_draws",
    "to_dataset_bundle",
    "__version__",
]
