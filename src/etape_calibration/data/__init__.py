"""
eTape calibration data loading (load_calibration_data, load_single_sensor_data).
"""

from .io import (
    load_calibration_data,
    load_single_sensor_data,
)

__all__ = [
    "load_calibration_data",
    "load_single_sensor_data",
]
