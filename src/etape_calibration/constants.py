"""
Shared constants for eTape calibration.
"""

# Nominal sensor lengths (inches) in canonical order. Index vectors and the
# prior-mean vector are aligned to this ordering.
SUPPORTED_LENGTHS = (8, 12, 15, 18, 24)

INCH_TO_CM = 2.54

# Dry-sensor depth intercepts (cm), one per entry of SUPPORTED_LENGTHS.
DEFAULT_PRIOR_MEANS = (28.0, 37.0, 46.0, 52.0, 70.0)

# Ground truth for synthetic validation data, keyed by nominal length.
TRUE_INTERCEPTS = {8: 28.0, 12: 37.0, 15: 46.0, 18: 52.0, 24: 70.0}
TRUE_SLOPES = {8: -0.010, 12: -0.014, 15: -0.017, 18: -0.020, 24: -0.025}
TRUE_NOISE_SDS = {8: 0.3, 12: 0.4, 15: 0.5, 18: 0.6, 24: 0.8}

DEFAULT_SYNTHETIC_DEPTHS_INCH = (1, 2, 3, 4, 5, 6, 7, 8)
DEFAULT_REPLICATES_PER_DEPTH = 10
DEFAULT_SEED = 123

# The single-sensor sub-study file carries no length column.
DEFAULT_SINGLE_SENSOR_LENGTH = 12

GOOD_FLAG = "good"
BAD_FLAG = "bad"
QUALITY_FLAGS = (GOOD_FLAG, BAD_FLAG)

# Raw column name -> internal column name
CALIBRATION_COLUMN_MAP = {
    "year": "year",
    "water_depth_inch": "water_depth_inch",
    "resistivity_ohm": "resistivity_ohm",
    "etape_ID": "etape_id",
    "etape_length": "etape_length",
    "good.bad": "quality_flag",
    "notes": "notes",
}
OPTIONAL_CALIBRATION_COLUMNS = ("notes",)

SINGLE_SENSOR_COLUMN_MAP = {
    "etape_ID": "etape_id",
    "water_depth_inch": "water_depth_inch",
    "resistivity_ohm": "resistivity_ohm",
}

NUMERIC_COLUMNS = ("water_depth_inch", "water_depth_cm", "resistivity_ohm")

# Sampling diagnostics
RHAT_THRESHOLD = 1.01
MIN_ESS_BULK = 400
MAX_DIVERGENCES = 0

SUMMARY_PERCENTILES = (2.5, 97.5)
