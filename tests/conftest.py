"""Shared fixtures: small calibration tables written to tmp_path."""

from __future__ import annotations

import pathlib

import pandas as pd
import pytest

CALIBRATION_HEADER = "year,water_depth_inch,resistivity_ohm,etape_ID,etape_length,good.bad,notes\n"

CALIBRATION_ROWS = [
    "2019,1,1400,E1,8,good,",
    "2019,2,1150,E1,8,good,",
    "2019,3,900,E1,8,good,",
    "2019,1,1420,E2,8,good,",
    "2019,2,1160,E2,8,good,",
    "2019,3,905,E2,8,bad,bubble on tape",
    "2020,2,2300,E10,12,good,",
    "2020,4,1950,E10,12,good,",
    "2020,6,1580,E10,12,good,",
    "2020,2,2310,E3,12,good,",
    "2020,4,1940,E3,12,good,",
    "2020,6,1600,E3,12,bad,",
]


@pytest.fixture()
def write_calibration_csv(tmp_path: pathlib.Path):
    """Factory: write the calibration header plus the given rows to a CSV."""

    def _write(rows: list[str], name: str = "calibration.csv") -> pathlib.Path:
        path = tmp_path / name
        path.write_text(CALIBRATION_HEADER + "\n".join(rows) + "\n", encoding="utf-8")
        return path

    return _write


@pytest.fixture()
def calibration_rows() -> list[str]:
    return list(CALIBRATION_ROWS)


@pytest.fixture()
def calibration_csv(write_calibration_csv, calibration_rows: list[str]) -> pathlib.Path:
    return write_calibration_csv(calibration_rows, "etape_calibration.csv")


@pytest.fixture()
def single_sensor_csv(tmp_path: pathlib.Path) -> pathlib.Path:
    path = tmp_path / "single_etape.csv"
    path.write_text(
        "etape_ID,water_depth_inch,resistivity_ohm\n"
        "S1,2,2290\n"
        "S1,4,1955\n"
        "S1,6,1590\n"
        "S1,8,1230\n",
        encoding="utf-8",
    )
    return path


@pytest.fixture()
def records() -> pd.DataFrame:
    """Loaded-but-unfiltered records, as load_calibration_data returns them."""
    return pd.DataFrame(
        {
            "year": ["2019", "2019", "2020", "2020", "2020"],
            "water_depth_inch": [1.0, 2.0, 2.0, 4.0, 4.0],
            "resistivity_ohm": [1400.0, 1150.0, 2300.0, 1950.0, 1940.0],
            "etape_id": ["E1", "E1", "E10", "E10", "E2"],
            "etape_length": [8, 8, 12, 12, 12],
            "quality_flag": ["good", "bad", "good", "good", "good"],
            "notes": ["", "", "", "", ""],
        }
    )
