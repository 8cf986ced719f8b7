"""
Bayesian calibration models: one configurable spec, fitted with PyMC.

The ModelSpec module has no PyMC dependency. The fitter lives in
etape_calibration.modeling.fitter and is not imported here, so data
preparation does not pay the PyMC import cost.
"""

from .spec import (
    NOISE_STRUCTURES,
    POOLED_MODEL,
    SIMULATED_MODEL,
    SINGLE_SENSOR_MODEL,
    UNIT_EFFECT_MODEL,
    ModelSpec,
    check_compatibility,
)

__all__ = [
    "NOISE_STRUCTURES",
    "POOLED_MODEL",
    "SIMULATED_MODEL",
    "SINGLE_SENSOR_MODEL",
    "UNIT_EFFECT_MODEL",
    "ModelSpec",
    "check_compatibility",
]
