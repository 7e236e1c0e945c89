"""Local potentials on the real-space grid of a plane-wave basis.

A local potential (e.g. the local part of a pseudopotential or the bare
nuclear attraction) is assembled in reciprocal space as a sum of analytic
per-species terms,

    V(G) = sum_species sum_{R in species} 4*pi/Omega * v_species(G) * exp(iG.R),

and transformed onto the real-space grid, where the Hamiltonian applies it
by pointwise multiplication.
"""

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass

import jax
import jax.numpy as jnp
import numpy as np

from pwkit.basis import PlaneWaveBasis
from pwkit.constants import FOUR_PI, REALNESS_TOLERANCE_EPS
from pwkit.errors import ConfigurationError, PhysicsInconsistencyError, ShapeMismatchError
from pwkit.lattice import fractional_to_cartesian

logger = logging.getLogger(__name__)

# Species key used when positions are given without species labels
UNNAMED_SPECIES = None


@dataclass(frozen=True, eq=False)
class LocalPotential:
    """Values of a local potential on the real-space grid of ``basis``.

    The values are stored as a read-only copy; the basis is shared, not owned.

    Raises:
        ShapeMismatchError: If ``values`` does not have the shape of the grid.
        PhysicsInconsistencyError: If ``values`` is complex.
    """
    basis: PlaneWaveBasis
    values: np.ndarray

    def __post_init__(self):
        values = np.array(self.values)
        if np.iscomplexobj(values):
            raise PhysicsInconsistencyError(
                f"Expected real-valued potential values, got dtype {values.dtype}."
            )
        if values.shape != tuple(self.basis.fft_grid):
            raise ShapeMismatchError(
                f"Size mismatch between the real-space grid of the basis "
                f"(== {tuple(self.basis.fft_grid)}) and the passed values "
                f"(== {values.shape})."
            )
        values.flags.writeable = False
        object.__setattr__(self, "values", values)

    @property
    def shape(self) -> tuple[int, int, int]:
        return self.values.shape

    def apply(self, field_in: np.ndarray, out: np.ndarray | None = None) -> np.ndarray:
        """Multiply a real-space field pointwise by the potential.

        With ``out`` given, the product is written into it and nothing is
        allocated.
        """
        return np.multiply(self.values, field_in, out=out)

    def __add__(self, other: "LocalPotential") -> "LocalPotential":
        if not isinstance(other, LocalPotential):
            return NotImplemented
        if other.basis is not self.basis:
            raise ConfigurationError("Local potentials can only be added on the same basis")
        return LocalPotential(self.basis, self.values + other.values)


def _normalize_positions(positions) -> dict:
    """Mapping species -> (natom, 3) float array, without touching the input."""
    if not isinstance(positions, Mapping):
        positions = {UNNAMED_SPECIES: positions}
    normalized = {}
    for sp, pos in positions.items():
        pos = np.array(pos, dtype=np.float64)
        if pos.size == 0:
            pos = pos.reshape(0, 3)
        if pos.ndim == 1:
            pos = pos[None, :]
        if pos.ndim != 2 or pos.shape[1] != 3:
            raise ConfigurationError(f"Positions of species {sp!r} must be 3-vectors, "
                                     f"got shape {pos.shape}")
        normalized[sp] = pos
    return normalized


def _generator_args(params) -> tuple:
    if isinstance(params, tuple):
        return params
    return (params,)


def local_potential_fourier(
    basis: PlaneWaveBasis,
    positions,
    generators,
    parameters: Mapping | None = None,
    coords_are_cartesian: bool = False,
    compensating_background: bool = True,
) -> jnp.ndarray:
    """Reciprocal-space coefficients V(G) of a local potential.

    Args:
        basis: Plane-wave basis providing the lattice and the G-vectors.
        positions: Mapping from species identifier to the positions of its
            atoms. A plain list of positions (or a single position) stands
            for one unnamed species.
        generators: Mapping from species identifier to ``v(G, *params)``,
            the analytic form factor of that species, evaluated for each
            G-vector. A single callable is used for every species. Must be
            written with jax.numpy, since it is vectorized with ``jax.vmap``.
        parameters: Optional mapping from species to the extra arguments of
            its generator. A tuple is unpacked, anything else is passed as a
            single argument.
        coords_are_cartesian: Positions are Cartesian instead of fractional.
        compensating_background: Zero the G = 0 coefficient, i.e. include a
            uniform compensating background.

    Returns:
        (nG,) complex coefficients ordered like ``basis.g_vectors``.

    Raises:
        ConfigurationError: If a species has no generator.
    """
    positions = _normalize_positions(positions)
    if isinstance(generators, Callable):
        generators = {sp: generators for sp in positions}
    parameters = {} if parameters is None else dict(parameters)

    for sp in positions:
        if sp not in generators:
            raise ConfigurationError(
                f"No generator found for species {sp!r}. Please check that the "
                f"generators contain a key for each species in the positions."
            )

    if not coords_are_cartesian:
        positions = {sp: np.asarray(fractional_to_cartesian(jnp.asarray(pos), basis.lattice))
                     for sp, pos in positions.items()}

    g_vectors = basis.g_vectors
    complex_dtype = jnp.result_type(basis.dtype, jnp.complex64)
    prefactor = FOUR_PI / basis.unit_cell_volume  # spherical Hankel transform

    values = jnp.zeros(basis.n_g, dtype=complex_dtype)
    for sp, pos in positions.items():
        generator = generators[sp]
        args = _generator_args(parameters.get(sp, ()))
        form_factor = jax.vmap(
            lambda g: jnp.asarray(generator(g, *args), dtype=complex_dtype)
        )(g_vectors)
        # S(G) = sum_R exp(iG.R)
        structure_factor = jnp.sum(jnp.exp(1j * (g_vectors @ jnp.asarray(pos).T)), axis=1)
        values = values + prefactor * form_factor * structure_factor

    if compensating_background:
        values = values.at[basis.idx_DC].set(0.0)
    return values


def build_local_potential(
    basis: PlaneWaveBasis,
    positions,
    generators,
    parameters: Mapping | None = None,
    coords_are_cartesian: bool = False,
    compensating_background: bool = True,
) -> LocalPotential:
    """Build a local potential from analytic per-species Fourier terms.

    The coefficients of ``local_potential_fourier`` (same arguments) are
    transformed to the real-space grid of ``basis``.

    Example:
        Bare Coulomb attraction of sodium chloride, parametrised by the
        nuclear charge::

            coulomb = lambda G, Z: -Z / jnp.sum(G**2)
            build_local_potential(
                basis,
                {"Na": [[0, 0, 0], [1/2, 1/2, 0], [1/2, 0, 1/2], [0, 1/2, 1/2]],
                 "Cl": [[0, 1/2, 0], [1/2, 0, 0], [0, 0, 1/2], [1/2, 1/2, 1/2]]},
                coulomb,
                parameters={"Na": 11, "Cl": 17},
            )

    Raises:
        ConfigurationError: If a species has no generator.
        PhysicsInconsistencyError: If the real-space potential is not
            finite or has an imaginary part above 100 * eps, i.e. the
            Fourier data is not Hermitian.
    """
    values_G = local_potential_fourier(
        basis, positions, generators, parameters=parameters,
        coords_are_cartesian=coords_are_cartesian,
        compensating_background=compensating_background,
    )
    values_r = basis.G_to_r(values_G)
    if not bool(jnp.all(jnp.isfinite(values_r))):
        raise PhysicsInconsistencyError(
            "The potential on the real-space grid has non-finite values. Check "
            "that the generators are finite for every G-vector, including G = 0."
        )

    max_imag = float(jnp.max(jnp.abs(jnp.imag(values_r))))
    tolerance = REALNESS_TOLERANCE_EPS * float(jnp.finfo(basis.dtype).eps)
    logger.debug("build_local_potential: %d G-vectors, max |Im V(r)| = %.3e",
                 basis.n_g, max_imag)
    if max_imag > tolerance:
        raise PhysicsInconsistencyError(
            f"Expected the potential on the real-space grid to be real-valued, "
            f"but it has an imaginary part of up to {max_imag:.3e} "
            f"(tolerance {tolerance:.3e})."
        )
    return LocalPotential(basis, np.asarray(jnp.real(values_r)))
