"""Unit tests for etape_calibration/modeling/spec.py (no sampling)."""

from __future__ import annotations

import dataclasses

import numpy as np
import pandas as pd
import pytest

from etape_calibration.errors import ConfigurationError
from etape_calibration.modeling import (
    POOLED_MODEL,
    SINGLE_SENSOR_MODEL,
    UNIT_EFFECT_MODEL,
    ModelSpec,
    check_compatibility,
)
from etape_calibration.processing import to_dataset_bundle


@pytest.fixture()
def bundle():
    df = pd.DataFrame(
        {
            "etape_length": [8, 8, 12, 12],
            "water_depth_cm": [2.54, 5.08, 2.54, 5.08],
            "resistivity_ohm": [1400.0, 1150.0, 2300.0, 1950.0],
            "etape_id": ["E1", "E1", "E10", "E10"],
        }
    )
    return to_dataset_bundle(df)


class TestModelSpec:
    def test_parameter_names_follow_terms(self) -> None:
        assert POOLED_MODEL.parameter_names == ["alpha", "beta", "sigma"]
        assert UNIT_EFFECT_MODEL.parameter_names == ["alpha", "beta", "sigma", "gamma"]
        spec = ModelSpec(name="full", unit_effect=True, year_effect=True)
        assert spec.parameter_names[-1] == "delta"

    def test_single_sensor_uses_global_noise(self) -> None:
        assert SINGLE_SENSOR_MODEL.noise == "global"

    def test_unknown_noise_structure_raises(self) -> None:
        with pytest.raises(ConfigurationError, match="noise"):
            ModelSpec(name="bad", noise="per_unit")

    @pytest.mark.parametrize("attr", ["alpha_sd", "beta_sd", "sigma_rate", "effect_sd"])
    def test_non_positive_scale_raises(self, attr: str) -> None:
        with pytest.raises(ConfigurationError, match=attr):
            ModelSpec(name="bad", **{attr: 0.0})

    def test_is_frozen(self) -> None:
        with pytest.raises(dataclasses.FrozenInstanceError):
            POOLED_MODEL.alpha_sd = 5.0


class TestCheckCompatibility:
    def test_accepts_matching_bundle(self, bundle) -> None:
        check_compatibility(bundle, POOLED_MODEL)
        check_compatibility(bundle, UNIT_EFFECT_MODEL)

    def test_empty_bundle_raises(self) -> None:
        empty = to_dataset_bundle(pd.DataFrame())
        with pytest.raises(ConfigurationError, match="no observations"):
            check_compatibility(empty, POOLED_MODEL)

    def test_year_effect_without_years_raises(self, bundle) -> None:
        spec = ModelSpec(name="years", year_effect=True)
        with pytest.raises(ConfigurationError, match="year"):
            check_compatibility(bundle, spec)

    def test_unit_effect_without_units_raises(self, bundle) -> None:
        no_units = dataclasses.replace(bundle, I=None, K_I=None, unit_levels=())
        with pytest.raises(ConfigurationError, match="unit"):
            check_compatibility(no_units, UNIT_EFFECT_MODEL)

    def test_out_of_range_length_index_raises(self, bundle) -> None:
        broken = dataclasses.replace(bundle, L=np.array([0, 0, 1, 2]))
        with pytest.raises(ConfigurationError, match="L indices"):
            check_compatibility(broken, POOLED_MODEL)

    def test_mismatched_vector_lengths_raise(self, bundle) -> None:
        broken = dataclasses.replace(bundle, R=bundle.R[:2])
        with pytest.raises(ConfigurationError, match="differ"):
            check_compatibility(broken, POOLED_MODEL)
