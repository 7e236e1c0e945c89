"""Number of bands to compute and to converge in each SCF step.

Two policies are provided:

- ``FixedBands``: always the same pair of counts.
- ``AdaptiveBands``: converge every orbital whose occupation is above a
  threshold and compute enough extra orbitals to keep an eigenvalue gap of
  at least ``gap_min`` to the last converged one.

Both expose ``determine_band_counts(snapshot)``, which the SCF driver calls
once per iteration with the occupations, eigenvalues and wavefunctions of
the previous step. The policy objects themselves are never modified.
"""

import logging
import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, NamedTuple

import numpy as np

from pwkit.constants import (
    EXTRA_BANDS_COMPUTE, GAP_MIN, OCCUPATION_THRESHOLD,
    TEMPERATURE_FACTOR_COMPUTE, TEMPERATURE_FACTOR_CONVERGE, TEMPERATURE_FACTOR_FIXED,
)
from pwkit.model import Model

logger = logging.getLogger(__name__)


class BandCounts(NamedTuple):
    n_bands_converge: int
    n_bands_compute: int


class SCFSnapshot(NamedTuple):
    """State of the previous SCF step, one entry per k-point.

    Each field is either None (nothing known yet) or a sequence, or a dict
    keyed by k-point index, of per-k-point data:
        occupation: (n_bands,) occupation numbers.
        eigenvalues: (n_bands,) eigenvalues in ascending order.
        wavefunctions: (npw, n_bands) coefficient blocks.
    """
    occupation: Any = None
    eigenvalues: Any = None
    wavefunctions: Any = None


def default_occupation_threshold(dtype=np.float64) -> float:
    return max(OCCUPATION_THRESHOLD, 100 * float(np.finfo(dtype).eps))


def default_n_bands(model: Model, temperature_factor: float = TEMPERATURE_FACTOR_CONVERGE) -> int:
    """Bands needed to hold all electrons, enlarged at finite temperature."""
    min_n_bands = math.ceil(model.n_electrons
                            / (model.n_spin_components * model.filled_occupation))
    factor = 1.0 if model.temperature == 0 else temperature_factor
    return math.ceil(min_n_bands * factor)


def _per_kpoint(data) -> list:
    if isinstance(data, Mapping):
        return list(data.values())
    return list(data)


def _last_index(mask: np.ndarray) -> int:
    """1-based position of the last True entry, len(mask) + 1 if there is none."""
    hits = np.flatnonzero(mask)
    if hits.size == 0:
        return len(mask) + 1
    return int(hits[-1]) + 1


def n_bands_occupied(occupation, occupation_threshold: float) -> int:
    """Largest number of orbitals over k-points up to the last occupied one.

    An orbital counts as occupied if |f_n| >= occupation_threshold. A
    k-point without any such orbital counts as fully occupied.
    """
    return max(_last_index(np.abs(np.asarray(occk)) >= occupation_threshold)
               for occk in _per_kpoint(occupation))


def n_bands_within_gap(eigenvalues, n_bands_converge: int, gap_min: float) -> int:
    """Largest number of orbitals over k-points with eps_n <= eps_{n_conv} + gap_min.

    A k-point with fewer than ``n_bands_converge`` eigenvalues asks for one
    more band than it has.

    Raises:
        ValueError: If ``n_bands_converge`` is smaller than 1.
    """
    if n_bands_converge < 1:
        raise ValueError(f"n_bands_converge must be at least 1, got {n_bands_converge}")

    def count(epsk):
        epsk = np.asarray(epsk)
        if n_bands_converge > len(epsk):
            return len(epsk) + 1
        return _last_index(epsk <= epsk[n_bands_converge - 1] + gap_min)

    return max(count(epsk) for epsk in _per_kpoint(eigenvalues))


def _max_block_size(wavefunctions) -> int:
    return max(np.shape(psik)[-1] for psik in _per_kpoint(wavefunctions))


def _check_counts(n_bands_converge: int, n_bands_compute: int, occupation_threshold: float):
    if n_bands_converge < 0:
        raise ValueError(f"n_bands_converge must be non-negative, got {n_bands_converge}")
    if n_bands_compute < n_bands_converge:
        raise ValueError(f"n_bands_compute ({n_bands_compute}) must not be smaller "
                         f"than n_bands_converge ({n_bands_converge})")
    if not 0.0 < occupation_threshold < 1.0:
        raise ValueError(f"occupation_threshold must lie in (0, 1), got {occupation_threshold}")


@dataclass(frozen=True)
class FixedBands:
    """Converge exactly ``n_bands_converge`` bands, computing ``n_bands_compute``.

    The extra computed bands (three by default) ease eigensolver convergence
    in systems with small gaps.
    """
    n_bands_converge: int
    n_bands_compute: int | None = None
    occupation_threshold: float = field(default_factory=default_occupation_threshold)

    def __post_init__(self):
        if self.n_bands_compute is None:
            object.__setattr__(self, "n_bands_compute",
                               self.n_bands_converge + EXTRA_BANDS_COMPUTE)
        _check_counts(self.n_bands_converge, self.n_bands_compute, self.occupation_threshold)

    @classmethod
    def from_model(cls, model: Model,
                   temperature_factor_converge: float = TEMPERATURE_FACTOR_FIXED
                   ) -> "FixedBands":
        n_bands_converge = default_n_bands(model, temperature_factor_converge)
        return cls(n_bands_converge=n_bands_converge,
                   n_bands_compute=n_bands_converge + EXTRA_BANDS_COMPUTE)

    def determine_band_counts(self, snapshot: SCFSnapshot | None = None) -> BandCounts:
        counts = BandCounts(self.n_bands_converge, self.n_bands_compute)
        logger.debug("determine_band_counts: n_bands_converge=%d n_bands_compute=%d", *counts)
        return counts


@dataclass(frozen=True)
class AdaptiveBands:
    """Adapt the band counts to the occupations of the previous SCF step.

    ``n_bands_converge`` grows so that the least occupied converged orbital
    has an occupation below ``occupation_threshold``. ``n_bands_compute``
    keeps at least three extra bands and an eigenvalue gap of ``gap_min``
    between the last converged and the last computed orbital, which keeps
    the eigensolver converging quickly.

    For difficult SCF cases it can help to increase
    ``temperature_factor_converge`` or ``n_bands_converge`` slightly, e.g.
    ``AdaptiveBands.from_model(model, temperature_factor_converge=1.1)``.

    Attributes:
        n_bands_converge: Minimal number of bands to converge.
        n_bands_compute: Minimal number of bands to compute.
        occupation_threshold: Occupation below which an orbital is empty.
        gap_min: Minimal gap (Hartree) between converged and computed bands.
    """
    n_bands_converge: int
    n_bands_compute: int | None = None
    occupation_threshold: float = field(default_factory=default_occupation_threshold)
    gap_min: float = GAP_MIN

    def __post_init__(self):
        if self.n_bands_compute is None:
            object.__setattr__(self, "n_bands_compute",
                               self.n_bands_converge + EXTRA_BANDS_COMPUTE)
        _check_counts(self.n_bands_converge, self.n_bands_compute, self.occupation_threshold)
        if self.gap_min <= 0:
            raise ValueError(f"gap_min must be positive, got {self.gap_min}")

    @classmethod
    def from_model(
        cls,
        model: Model,
        temperature_factor_converge: float = TEMPERATURE_FACTOR_CONVERGE,
        temperature_factor_compute: float = TEMPERATURE_FACTOR_COMPUTE,
        n_bands_converge: int | None = None,
        occupation_threshold: float | None = None,
        gap_min: float = GAP_MIN,
    ) -> "AdaptiveBands":
        if n_bands_converge is None:
            n_bands_converge = default_n_bands(model, temperature_factor_converge)
        if occupation_threshold is None:
            occupation_threshold = default_occupation_threshold()
        n_bands_compute = max(n_bands_converge + EXTRA_BANDS_COMPUTE,
                              default_n_bands(model, temperature_factor_compute))
        return cls(n_bands_converge=n_bands_converge, n_bands_compute=n_bands_compute,
                   occupation_threshold=occupation_threshold, gap_min=gap_min)

    def determine_band_counts(self, snapshot: SCFSnapshot | None = None) -> BandCounts:
        if snapshot is None:
            snapshot = SCFSnapshot()
        if snapshot.occupation is None or snapshot.eigenvalues is None:
            return self._exploratory_counts(snapshot.wavefunctions)

        n_bands_occ = n_bands_occupied(snapshot.occupation, self.occupation_threshold)
        n_bands_converge = max(self.n_bands_converge, n_bands_occ)

        n_bands_compute_gap = n_bands_within_gap(snapshot.eigenvalues, n_bands_converge,
                                                 self.gap_min)
        n_bands_compute = max(self.n_bands_compute, n_bands_compute_gap,
                              n_bands_converge + EXTRA_BANDS_COMPUTE)
        if snapshot.wavefunctions is not None:
            n_bands_compute = max(n_bands_compute, _max_block_size(snapshot.wavefunctions))

        logger.debug("determine_band_counts: n_bands_converge=%d n_bands_compute=%d "
                     "n_bands_occ=%d n_bands_compute_gap=%d",
                     n_bands_converge, n_bands_compute, n_bands_occ, n_bands_compute_gap)
        return BandCounts(n_bands_converge, n_bands_compute)

    def _exploratory_counts(self, wavefunctions) -> BandCounts:
        n_bands_compute = self.n_bands_compute
        if wavefunctions is not None:
            n_bands_compute = max(n_bands_compute, _max_block_size(wavefunctions))
        # Converge more bands than needed for this step only, so the next step
        # has eigenvalues to base its decision on. Not stored on the policy.
        n_bands_converge = (self.n_bands_converge + self.n_bands_compute) // 2
        logger.debug("determine_band_counts: n_bands_converge=%d n_bands_compute=%d",
                     n_bands_converge, n_bands_compute)
        return BandCounts(n_bands_converge, n_bands_compute)


BandCountPolicy = FixedBands | AdaptiveBands
