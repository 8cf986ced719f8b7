"""
PyMC fitter for the calibration regression.

build_model turns a DatasetBundle and a ModelSpec into a pm.Model;
fit_model samples it with NUTS and wraps the InferenceData together with
R-hat / ESS / divergence diagnostics. Posterior draws are only released
through CalibrationFit.posterior_samples, which refuses unconverged fits
unless explicitly told otherwise.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import arviz as az
import numpy as np
import pymc as pm

from etape_calibration.constants import MAX_DIVERGENCES, MIN_ESS_BULK, RHAT_THRESHOLD
from etape_calibration.errors import ConvergenceError
from etape_calibration.modeling.spec import ModelSpec, check_compatibility
from etape_calibration.processing.bundle import DatasetBundle

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SamplingDiagnostics:
    """Convergence summary across all sampled parameters."""

    max_rhat: float
    min_ess_bulk: float
    n_divergences: int
    rhat_threshold: float = RHAT_THRESHOLD
    min_ess: float = MIN_ESS_BULK
    max_divergences: int = MAX_DIVERGENCES

    @property
    def problems(self) -> list[str]:
        issues = []
        if not np.isfinite(self.max_rhat) or self.max_rhat > self.rhat_threshold:
            issues.append(f"max R-hat {self.max_rhat:.4f} > {self.rhat_threshold}")
        if not np.isfinite(self.min_ess_bulk) or self.min_ess_bulk < self.min_ess:
            issues.append(f"min bulk ESS {self.min_ess_bulk:.0f} < {self.min_ess}")
        if self.n_divergences > self.max_divergences:
            issues.append(f"{self.n_divergences} divergent transitions")
        return issues

    @property
    def converged(self) -> bool:
        return not self.problems


def compute_diagnostics(
    idata: az.InferenceData,
    var_names: list[str],
    *,
    rhat_threshold: float = RHAT_THRESHOLD,
    min_ess: float = MIN_ESS_BULK,
    max_divergences: int = MAX_DIVERGENCES,
) -> SamplingDiagnostics:
    """Collect R-hat, bulk ESS, and divergence counts from a trace."""
    summary = az.summary(idata, var_names=var_names, kind="diagnostics")
    n_div = 0
    if "sample_stats" in idata.groups() and "diverging" in idata.sample_stats:
        n_div = int(idata.sample_stats["diverging"].values.sum())
    return SamplingDiagnostics(
        max_rhat=float(summary["r_hat"].max()),
        min_ess_bulk=float(summary["ess_bulk"].min()),
        n_divergences=n_div,
        rhat_threshold=rhat_threshold,
        min_ess=min_ess,
        max_divergences=max_divergences,
    )


@dataclass(frozen=True, eq=False)
class CalibrationFit:
    """Sampled trace plus the ModelSpec, bundle, and diagnostics behind it."""

    idata: az.InferenceData
    spec: ModelSpec
    bundle: DatasetBundle
    diagnostics: SamplingDiagnostics

    @property
    def converged(self) -> bool:
        return self.diagnostics.converged

    def levels(self, name: str) -> tuple:
        """Group labels along the second axis of a parameter's draws."""
        if name in ("alpha", "beta"):
            return self.bundle.length_levels
        if name == "sigma":
            if self.spec.noise == "per_length":
                return self.bundle.length_levels
            return ("all",)
        if name == "gamma":
            return self.bundle.unit_levels
        if name == "delta":
            return self.bundle.year_levels
        raise KeyError(f"Unknown parameter '{name}'")

    def posterior_samples(self, *, allow_unconverged: bool = False) -> dict[str, np.ndarray]:
        """
        Posterior draws as {parameter: array of shape (draws, groups)}.

        Chains are stacked. A global sigma has shape (draws, 1).

        Raises:
            ConvergenceError: Diagnostics failed and allow_unconverged is False.
        """
        if not self.converged and not allow_unconverged:
            raise ConvergenceError(
                f"Model '{self.spec.name}' did not converge: "
                + "; ".join(self.diagnostics.problems),
                diagnostics=self.diagnostics,
            )
        post = self.idata.posterior.stack(sample=("chain", "draw"))
        samples = {}
        for name in self.spec.parameter_names:
            values = post[name].transpose("sample", ...).values
            if values.ndim == 1:
                values = values.reshape(-1, 1)
            samples[name] = np.asarray(values, dtype=float)
        return samples


def build_model(bundle: DatasetBundle, spec: ModelSpec) -> pm.Model:
    """Translate a bundle and spec into a PyMC model (no sampling)."""
    check_compatibility(bundle, spec)

    coords = {
        "length": [str(v) for v in bundle.length_levels],
        "obs": np.arange(bundle.n_obs),
    }
    if spec.unit_effect:
        coords["unit"] = list(bundle.unit_levels)
    if spec.year_effect:
        coords["year"] = list(bundle.year_levels)

    with pm.Model(coords=coords) as model:
        resistance = pm.Data("R", bundle.R, dims="obs")
        length_id = pm.Data("L", bundle.L, dims="obs")

        alpha = pm.Normal(
            "alpha", mu=bundle.prior_for_levels(), sigma=spec.alpha_sd, dims="length"
        )
        beta = pm.Normal("beta", mu=spec.beta_mu, sigma=spec.beta_sd, dims="length")
        mu = alpha[length_id] + beta[length_id] * resistance

        if spec.unit_effect:
            unit_id = pm.Data("I", bundle.I, dims="obs")
            gamma = pm.Normal("gamma", mu=0.0, sigma=spec.effect_sd, dims="unit")
            mu = mu + gamma[unit_id]
        if spec.year_effect:
            year_id = pm.Data("Y", bundle.Y, dims="obs")
            delta = pm.Normal("delta", mu=0.0, sigma=spec.effect_sd, dims="year")
            mu = mu + delta[year_id]

        if spec.noise == "per_length":
            sigma = pm.Exponential("sigma", lam=spec.sigma_rate, dims="length")
            obs_sigma = sigma[length_id]
        else:
            obs_sigma = pm.Exponential("sigma", lam=spec.sigma_rate)

        pm.Normal("W", mu=mu, sigma=obs_sigma, observed=bundle.W, dims="obs")

    return model


def fit_model(
    bundle: DatasetBundle,
    spec: ModelSpec,
    *,
    draws: int = 1000,
    tune: int = 1000,
    chains: int = 4,
    cores: Optional[int] = None,
    target_accept: float = 0.9,
    random_seed: Optional[int] = None,
    init: str = "jitter+adapt_full",
    progressbar: bool = False,
    rhat_threshold: float = RHAT_THRESHOLD,
    min_ess: float = MIN_ESS_BULK,
    max_divergences: int = MAX_DIVERGENCES,
) -> CalibrationFit:
    """
    Sample the calibration model and attach convergence diagnostics.

    A full mass matrix is adapted by default because alpha and beta are
    strongly correlated when resistance is not centred.

    Args:
        bundle: Dataset from to_dataset_bundle.
        spec: Model variant.
        draws, tune, chains, cores, target_accept, random_seed, init,
            progressbar: Passed to pm.sample.
        rhat_threshold, min_ess, max_divergences: Convergence criteria.

    Returns:
        CalibrationFit. Check fit.converged, or call posterior_samples(),
        which raises ConvergenceError on failed diagnostics.

    Raises:
        ConfigurationError: The bundle and spec are incompatible.
    """
    model = build_model(bundle, spec)
    logger.info(
        "Sampling model '%s': %d observations, K_L=%d, %d chains x %d draws",
        spec.name,
        bundle.n_obs,
        bundle.K_L,
        chains,
        draws,
    )
    with model:
        idata = pm.sample(
            draws=draws,
            tune=tune,
            chains=chains,
            cores=cores,
            target_accept=target_accept,
            random_seed=random_seed,
            init=init,
            progressbar=progressbar,
            return_inferencedata=True,
        )

    diagnostics = compute_diagnostics(
        idata,
        spec.parameter_names,
        rhat_threshold=rhat_threshold,
        min_ess=min_ess,
        max_divergences=max_divergences,
    )
    if diagnostics.converged:
        logger.info(
            "Model '%s' converged (max R-hat %.4f, min bulk ESS %.0f)",
            spec.name,
            diagnostics.max_rhat,
            diagnostics.min_ess_bulk,
        )
    else:
        logger.warning(
            "Model '%s' failed diagnostics: %s",
            spec.name,
            "; ".join(diagnostics.problems),
        )
    return CalibrationFit(idata=idata, spec=spec, bundle=bundle, diagnostics=diagnostics)
