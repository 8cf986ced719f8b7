"""Integration tests for the PyMC fitter.

Model construction and diagnostic handling run on every invocation; the
end-to-end sampling run is marked slow.
"""

from __future__ import annotations

import numpy as np
import pandas as pd
import pytest

pm = pytest.importorskip("pymc")
az = pytest.importorskip("arviz")

from etape_calibration.errors import ConfigurationError, ConvergenceError  # noqa: E402
from etape_calibration.modeling import (  # noqa: E402
    POOLED_MODEL,
    SINGLE_SENSOR_MODEL,
    UNIT_EFFECT_MODEL,
    ModelSpec,
)
from etape_calibration.modeling.fitter import (  # noqa: E402
    CalibrationFit,
    SamplingDiagnostics,
    build_model,
    compute_diagnostics,
)
from etape_calibration.pipeline import run_synthetic_validation  # noqa: E402
from etape_calibration.processing import to_dataset_bundle  # noqa: E402
from etape_calibration.simulation import SyntheticGroundTruth  # noqa: E402

# ──────────────────────────────────────────────
# Fixtures
# ──────────────────────────────────────────────


@pytest.fixture()
def bundle():
    df = pd.DataFrame(
        {
            "etape_length": [8, 8, 8, 12, 12, 12],
            "water_depth_cm": [2.54, 5.08, 7.62, 2.54, 5.08, 7.62],
            "resistivity_ohm": [2550.0, 2290.0, 2040.0, 2460.0, 2280.0, 2100.0],
            "etape_id": ["E1", "E1", "E2", "E10", "E10", "E3"],
        }
    )
    return to_dataset_bundle(df)


def _fake_idata(
    n_chains: int = 2,
    n_draws: int = 50,
    *,
    global_sigma: bool = False,
    first_chain_shift: float = 0.0,
):
    rng = np.random.default_rng(7)
    alpha = rng.normal(30.0, 1.0, size=(n_chains, n_draws, 2))
    alpha[0] += first_chain_shift
    sigma_shape = (n_chains, n_draws) if global_sigma else (n_chains, n_draws, 2)
    return az.from_dict(
        posterior={
            "alpha": alpha,
            "beta": rng.normal(-0.01, 0.001, size=(n_chains, n_draws, 2)),
            "sigma": np.abs(rng.normal(0.5, 0.1, size=sigma_shape)),
        }
    )


def _diagnostics(max_rhat: float = 1.0, min_ess: float = 2000.0, n_div: int = 0):
    return SamplingDiagnostics(max_rhat=max_rhat, min_ess_bulk=min_ess, n_divergences=n_div)


# ──────────────────────────────────────────────
# build_model
# ──────────────────────────────────────────────


class TestBuildModel:
    def test_pooled_variables(self, bundle) -> None:
        model = build_model(bundle, POOLED_MODEL)
        names = set(model.named_vars)
        assert {"alpha", "beta", "sigma", "W", "R", "L"} <= names
        assert "gamma" not in names
        assert list(model.coords["length"]) == ["8", "12"]

    def test_unit_effect_adds_gamma(self, bundle) -> None:
        model = build_model(bundle, UNIT_EFFECT_MODEL)
        assert {"gamma", "I"} <= set(model.named_vars)
        assert list(model.coords["unit"]) == ["E1", "E2", "E3", "E10"]

    def test_global_noise_is_scalar(self, bundle) -> None:
        model = build_model(bundle, SINGLE_SENSOR_MODEL)
        assert model.named_vars_to_dims.get("sigma") in (None, ())

    def test_incompatible_spec_raises(self, bundle) -> None:
        with pytest.raises(ConfigurationError):
            build_model(bundle, ModelSpec(name="years", year_effect=True))


# ──────────────────────────────────────────────
# Diagnostics and CalibrationFit
# ──────────────────────────────────────────────


class TestDiagnostics:
    def test_thresholds(self) -> None:
        assert _diagnostics().converged
        assert "R-hat" in _diagnostics(max_rhat=1.05).problems[0]
        assert "ESS" in _diagnostics(min_ess=50.0).problems[0]
        assert "divergent" in _diagnostics(n_div=3).problems[0]
        assert not _diagnostics(max_rhat=float("nan")).converged

    def test_well_mixed_chains_pass(self) -> None:
        diag = compute_diagnostics(_fake_idata(4, 1000), ["alpha", "beta", "sigma"])
        assert diag.converged
        assert diag.n_divergences == 0

    def test_separated_chains_fail(self) -> None:
        idata = _fake_idata(4, 500, first_chain_shift=20.0)
        diag = compute_diagnostics(idata, ["alpha"])
        assert diag.max_rhat > 1.01
        assert not diag.converged


class TestCalibrationFit:
    def test_unconverged_fit_refuses_samples(self, bundle) -> None:
        fit = CalibrationFit(
            idata=_fake_idata(),
            spec=POOLED_MODEL,
            bundle=bundle,
            diagnostics=_diagnostics(max_rhat=1.2),
        )
        with pytest.raises(ConvergenceError, match="R-hat") as exc_info:
            fit.posterior_samples()
        assert exc_info.value.diagnostics is fit.diagnostics

    def test_allow_unconverged_returns_samples(self, bundle) -> None:
        fit = CalibrationFit(
            idata=_fake_idata(),
            spec=POOLED_MODEL,
            bundle=bundle,
            diagnostics=_diagnostics(max_rhat=1.2),
        )
        samples = fit.posterior_samples(allow_unconverged=True)
        assert samples["alpha"].shape == (100, 2)

    def test_samples_stack_chains(self, bundle) -> None:
        fit = CalibrationFit(
            idata=_fake_idata(global_sigma=True),
            spec=SINGLE_SENSOR_MODEL,
            bundle=bundle,
            diagnostics=_diagnostics(),
        )
        samples = fit.posterior_samples()
        assert set(samples) == {"alpha", "beta", "sigma"}
        assert samples["beta"].shape == (100, 2)
        assert samples["sigma"].shape == (100, 1)
        assert fit.levels("sigma") == ("all",)
        assert fit.levels("alpha") == (8, 12)

    def test_unknown_level_name_raises(self, bundle) -> None:
        fit = CalibrationFit(
            idata=_fake_idata(), spec=POOLED_MODEL, bundle=bundle, diagnostics=_diagnostics()
        )
        with pytest.raises(KeyError):
            fit.levels("tau")


# ──────────────────────────────────────────────
# End-to-end sampling
# ──────────────────────────────────────────────


@pytest.mark.slow
class TestSyntheticRecovery:
    def test_recovers_known_lines(self) -> None:
        truth = SyntheticGroundTruth(
            {
                length: params
                for length, params in SyntheticGroundTruth.default().parameters.items()
                if length in (12, 15)
            }
        )
        bundle, fit, recovery = run_synthetic_validation(
            truth,
            n_sd=3.5,
            draws=500,
            tune=500,
            chains=2,
            cores=1,
            random_seed=11,
            min_ess=200,
        )
        assert bundle.length_levels == (12, 15)
        assert fit.converged
        assert recovery["recovered"].all()

