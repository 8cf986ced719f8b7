"""
DatasetBundle: the flat, index-encoded dataset handed to the model fitter.

Each categorical level is mapped to a 0-based integer index:

- L (nominal length): lengths present, in the declared canonical ordering
  of supported lengths. Never alphabetical or first-seen, so L stays aligned
  with the prior-mean vector.
- I (eTape unit) and Y (year): observed labels in natural sort order.

The prior-mean vector aPrior keeps one entry per supported length;
prior_for_levels() selects the entries for the lengths present, in L order.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional, Sequence

import numpy as np
import pandas as pd

from etape_calibration.constants import DEFAULT_PRIOR_MEANS, SUPPORTED_LENGTHS
from etape_calibration.errors import ConfigurationError, MalformedInputError
from etape_calibration.processing.metadata import check_supported_lengths
from etape_calibration.utils.natural_sort import ordered_levels

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class DatasetBundle:
    """Index-encoded observations plus level labels and prior means."""

    W: np.ndarray  # depth, cm
    R: np.ndarray  # resistance, ohm
    L: np.ndarray
    K_L: int
    aPrior: np.ndarray
    supported_lengths: tuple[int, ...]
    length_levels: tuple[int, ...]
    I: Optional[np.ndarray] = None
    K_I: Optional[int] = None
    unit_levels: tuple[str, ...] = field(default_factory=tuple)
    Y: Optional[np.ndarray] = None
    K_Y: Optional[int] = None
    year_levels: tuple[str, ...] = field(default_factory=tuple)

    @property
    def n_obs(self) -> int:
        return len(self.W)

    @property
    def has_units(self) -> bool:
        return self.I is not None

    @property
    def has_years(self) -> bool:
        return self.Y is not None

    def prior_for_levels(self) -> np.ndarray:
        """aPrior entries for the lengths present, ordered like L."""
        positions = [self.supported_lengths.index(v) for v in self.length_levels]
        return self.aPrior[positions]

    def to_dict(self) -> dict:
        """
        Mapping with keys W, R, L, (I, Y), K_L, (K_I, K_Y), aPrior and
        aPrior_levels.

        aPrior is indexed by position in supported_lengths, not by L, and
        can be longer than K_L. aPrior_levels is prior_for_levels(): one
        entry per length present, so aPrior_levels[L] is the prior mean of
        each observation.
        """
        data = {
            "W": self.W,
            "R": self.R,
            "L": self.L,
            "K_L": self.K_L,
            "aPrior": self.aPrior,
            "aPrior_levels": self.prior_for_levels(),
        }
        if self.has_units:
            data["I"] = self.I
            data["K_I"] = self.K_I
        if self.has_years:
            data["Y"] = self.Y
            data["K_Y"] = self.K_Y
        return data


def _encode_labels(series: pd.Series) -> tuple[np.ndarray, tuple[str, ...]]:
    labels = series.astype(str)
    levels = ordered_levels(labels)
    index = {level: i for i, level in enumerate(levels)}
    return labels.map(index).to_numpy(dtype=np.int64), tuple(levels)


def to_dataset_bundle(
    df: pd.DataFrame,
    supported_lengths: Sequence[int] = SUPPORTED_LENGTHS,
    prior_means: Sequence[float] = DEFAULT_PRIOR_MEANS,
    *,
    include_units: Optional[bool] = None,
    include_years: Optional[bool] = None,
    depth_col: str = "water_depth_cm",
    resistance_col: str = "resistivity_ohm",
) -> DatasetBundle:
    """
    Build a DatasetBundle from cleaned real or simulated records.

    Args:
        df: DataFrame with depth_col, resistance_col, etape_length and
            optionally etape_id and year.
        supported_lengths: Canonical ordering of nominal lengths.
        prior_means: One prior intercept per supported length, same order.
        include_units: Encode etape_id as I. None means "if the column exists".
        include_years: Encode year as Y. None means "if the column exists".
        depth_col: Response column (W).
        resistance_col: Predictor column (R).

    Returns:
        DatasetBundle. Zero rows give an empty bundle with all cardinalities 0.

    Raises:
        ConfigurationError: prior_means and supported_lengths differ in length,
            supported_lengths has duplicates, or a row has an unsupported
            etape_length.
        MalformedInputError: A required column is missing.
    """
    supported = tuple(int(v) for v in supported_lengths)
    if len(set(supported)) != len(supported):
        raise ConfigurationError(f"Duplicate entries in supported_lengths {supported}")
    if len(prior_means) != len(supported):
        raise ConfigurationError(
            f"prior_means has {len(prior_means)} entries but there are "
            f"{len(supported)} supported lengths {list(supported)}"
        )
    a_prior = np.asarray(prior_means, dtype=float)

    if include_units is None:
        include_units = "etape_id" in df.columns
    if include_years is None:
        include_years = "year" in df.columns

    required = [depth_col, resistance_col, "etape_length"]
    if include_units:
        required.append("etape_id")
    if include_years:
        required.append("year")
    missing = [c for c in required if c not in df.columns]
    if missing and not (df.empty and len(df.columns) == 0):
        raise MalformedInputError(
            f"to_dataset_bundle: missing columns {missing}. "
            f"Available: {list(df.columns)}"
        )

    if df.empty:
        logger.warning("to_dataset_bundle: no observations, returning empty bundle")
        empty_f = np.array([], dtype=float)
        empty_i = np.array([], dtype=np.int64)
        return DatasetBundle(
            W=empty_f,
            R=empty_f.copy(),
            L=empty_i,
            K_L=0,
            aPrior=a_prior,
            supported_lengths=supported,
            length_levels=(),
            I=empty_i.copy() if include_units else None,
            K_I=0 if include_units else None,
            Y=empty_i.copy() if include_years else None,
            K_Y=0 if include_years else None,
        )

    check_supported_lengths(df["etape_length"], supported)
    lengths = pd.to_numeric(df["etape_length"].astype(object)).astype(int)
    present = set(lengths.unique())
    length_levels = tuple(v for v in supported if v in present)
    length_index = {v: i for i, v in enumerate(length_levels)}

    kwargs: dict = {}
    if include_units:
        unit_idx, unit_levels = _encode_labels(df["etape_id"])
        kwargs.update(I=unit_idx, K_I=len(unit_levels), unit_levels=unit_levels)
    if include_years:
        year_idx, year_levels = _encode_labels(df["year"])
        kwargs.update(Y=year_idx, K_Y=len(year_levels), year_levels=year_levels)

    bundle = DatasetBundle(
        W=pd.to_numeric(df[depth_col]).to_numpy(dtype=float),
        R=pd.to_numeric(df[resistance_col]).to_numpy(dtype=float),
        L=lengths.map(length_index).to_numpy(dtype=np.int64),
        K_L=len(length_levels),
        aPrior=a_prior,
        supported_lengths=supported,
        length_levels=length_levels,
        **kwargs,
    )
    logger.info(
        "to_dataset_bundle: %d observations, K_L=%d, K_I=%s, K_Y=%s",
        bundle.n_obs,
        bundle.K_L,
        bundle.K_I,
        bundle.K_Y,
    )
    return bundle
