"""
Model specification for the Bayesian calibration regression.

A single configurable structure covers every model variant of the study:

    W ~ Normal(mu, sigma[...])
    mu = alpha[L] + beta[L] * R  (+ gamma[I])  (+ delta[Y])

alpha has a Normal prior centred on the bundle's prior intercepts; beta,
sigma, and the optional unit / year effects have fixed-scale priors. The
unit effect gamma[I] is optional because every unit is already described by
its length-level line; switching it on tests for residual per-unit offsets.
"""

from dataclasses import dataclass
from typing import Literal

from etape_calibration.errors import ConfigurationError
from etape_calibration.processing.bundle import DatasetBundle

NoiseStructure = Literal["per_length", "global"]
NOISE_STRUCTURES = ("per_length", "global")


@dataclass(frozen=True)
class ModelSpec:
    """Which terms enter the linear predictor, plus prior scales."""

    name: str
    unit_effect: bool = False
    year_effect: bool = False
    noise: NoiseStructure = "per_length"
    alpha_sd: float = 10.0
    beta_mu: float = 0.0
    beta_sd: float = 0.1
    sigma_rate: float = 1.0
    effect_sd: float = 1.0

    def __post_init__(self) -> None:
        if self.noise not in NOISE_STRUCTURES:
            raise ConfigurationError(
                f"noise must be one of {list(NOISE_STRUCTURES)}, got {self.noise!r}"
            )
        for attr in ("alpha_sd", "beta_sd", "sigma_rate", "effect_sd"):
            if not getattr(self, attr) > 0:
                raise ConfigurationError(
                    f"{attr} must be positive, got {getattr(self, attr)}"
                )

    @property
    def parameter_names(self) -> list[str]:
        """Sampled parameters, in reporting order."""
        names = ["alpha", "beta", "sigma"]
        if self.unit_effect:
            names.append("gamma")
        if self.year_effect:
            names.append("delta")
        return names


SIMULATED_MODEL = ModelSpec(name="simulated")
POOLED_MODEL = ModelSpec(name="pooled")
UNIT_EFFECT_MODEL = ModelSpec(name="unit_effect", unit_effect=True)
SINGLE_SENSOR_MODEL = ModelSpec(name="single_sensor", noise="global")


def check_compatibility(bundle: DatasetBundle, spec: ModelSpec) -> None:
    """
    Verify that a bundle can be fitted with a spec.

    Raises:
        ConfigurationError: The bundle is empty, its prior vector does not
            match its cardinality, or the model needs an index vector (I or Y)
            the bundle does not carry.
    """
    if bundle.n_obs == 0:
        raise ConfigurationError(
            f"Cannot fit model '{spec.name}': bundle has no observations"
        )
    n = bundle.n_obs
    if len(bundle.R) != n or len(bundle.L) != n:
        raise ConfigurationError(
            f"Bundle vectors differ in length: W={n}, R={len(bundle.R)}, "
            f"L={len(bundle.L)}"
        )
    if len(bundle.aPrior) != len(bundle.supported_lengths):
        raise ConfigurationError(
            f"aPrior has {len(bundle.aPrior)} entries for "
            f"{len(bundle.supported_lengths)} supported lengths"
        )
    if len(bundle.prior_for_levels()) != bundle.K_L:
        raise ConfigurationError(
            f"Prior intercepts ({len(bundle.prior_for_levels())}) do not match "
            f"K_L={bundle.K_L}"
        )
    if bundle.L.min() < 0 or bundle.L.max() >= bundle.K_L:
        raise ConfigurationError(f"L indices outside [0, {bundle.K_L})")

    if spec.unit_effect:
        if not bundle.has_units:
            raise ConfigurationError(
                f"Model '{spec.name}' has a unit effect but the bundle has no I vector"
            )
        if len(bundle.I) != n or bundle.I.max() >= bundle.K_I:
            raise ConfigurationError("I vector does not match the bundle")
    if spec.year_effect:
        if not bundle.has_years:
            raise ConfigurationError(
                f"Model '{spec.name}' has a year effect but the bundle has no Y vector"
            )
        if len(bundle.Y) != n or bundle.Y.max() >= bundle.K_Y:
            raise ConfigurationError("Y vector does not match the bundle")
