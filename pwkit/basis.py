"""Plane-wave basis: reciprocal vectors, FFT grid and transforms between them.

The basis holds the finite set of G-vectors on which potentials are expanded
and the real-space FFT grid they are sampled on. It is immutable: changing
the k-point set yields a new basis (see ``PlaneWaveBasis.with_kpoints``), so
potentials built on an existing basis remain valid.
"""

import dataclasses
from dataclasses import dataclass

import jax.numpy as jnp
import numpy as np

from pwkit.kpoints import gamma_point, monkhorst_pack
from pwkit.lattice import cell_volume, max_miller_indices, reciprocal_lattice


def _next_fft_size(n: int) -> int:
    """Find next integer >= n that factors only into 2, 3, 5 (efficient FFT size)."""
    if n <= 1:
        return 1
    while True:
        m = n
        for p in [2, 3, 5]:
            while m % p == 0:
                m //= p
        if m == 1:
            return n
        n += 1


def determine_grid_size(a: jnp.ndarray, ecut: float,
                        supersampling: float = 2.0) -> tuple[int, int, int]:
    """FFT grid able to represent every G with |G| <= supersampling * sqrt(2*ecut).

    Wavefunctions hold |k+G|^2/2 <= ecut; products of two of them (densities,
    potentials applied to orbitals) need twice that radius, hence the
    default supersampling of 2.

    Args:
        a: (3, 3) lattice vectors (rows) in Bohr.
        ecut: Plane-wave kinetic energy cutoff in Hartree.
        supersampling: Ratio between the potential and wavefunction G radius.

    Returns:
        (n1, n2, n3) grid dimensions, each 2,3,5-smooth.
    """
    g_max = supersampling * np.sqrt(2.0 * ecut)
    return tuple(_next_fft_size(2 * m + 1) for m in max_miller_indices(a, g_max))


def _miller_on_grid(fft_grid: tuple[int, int, int]) -> np.ndarray:
    """All integer triplets of the grid in FFT order, (n1*n2*n3, 3)."""
    freqs = [np.rint(np.fft.fftfreq(n) * n).astype(int) for n in fft_grid]
    m1, m2, m3 = np.meshgrid(*freqs, indexing='ij')
    return np.stack([m1.ravel(), m2.ravel(), m3.ravel()], axis=-1)


@dataclass(frozen=True, eq=False)
class PlaneWaveBasis:
    """Plane-wave basis of a periodic cell.

    Attributes:
        lattice: (3, 3) lattice vectors as rows, in Bohr.
        ecut: Wavefunction kinetic energy cutoff in Hartree.
        fft_grid: (n1, n2, n3) real-space grid dimensions.
        g_vectors: (nG, 3) Cartesian G-vectors of the potential basis.
        g_indices: (nG, 3) Miller indices of ``g_vectors``.
        kpoints: (nk, 3) Cartesian k-points.
        kweights: (nk,) k-point weights, summing to one.
    """
    lattice: jnp.ndarray
    ecut: float
    fft_grid: tuple[int, int, int]
    g_vectors: jnp.ndarray
    g_indices: jnp.ndarray
    kpoints: jnp.ndarray
    kweights: jnp.ndarray

    @classmethod
    def from_cutoff(
        cls,
        lattice,
        ecut: float,
        kgrid: tuple[int, int, int] | None = None,
        kpoints=None,
        kweights=None,
        supersampling: float = 2.0,
    ) -> "PlaneWaveBasis":
        """Build the basis of all G with |G| <= supersampling * sqrt(2*ecut).

        The selected set is closed under G -> -G, so Hermitian Fourier data
        transforms to a real field.

        Args:
            lattice: (3, 3) lattice vectors (rows) in Bohr.
            ecut: Kinetic energy cutoff in Hartree.
            kgrid: Monkhorst-Pack grid; ignored when ``kpoints`` is given.
            kpoints: (nk, 3) explicit Cartesian k-points.
            kweights: (nk,) weights for ``kpoints`` (uniform if omitted).
            supersampling: Ratio between the potential and wavefunction G radius.

        Returns:
            PlaneWaveBasis instance.
        """
        a = jnp.array(lattice, dtype=jnp.float64)
        b = reciprocal_lattice(a)
        fft_grid = determine_grid_size(a, ecut, supersampling)

        miller = _miller_on_grid(fft_grid)
        g_cart = miller.astype(float) @ np.array(b)
        g_max = supersampling * np.sqrt(2.0 * ecut)
        mask = np.sum(g_cart**2, axis=1) <= g_max**2 * (1.0 + 1e-8)

        if kpoints is None:
            if kgrid is not None:
                kpoints, kweights = monkhorst_pack(kgrid, b)
            else:
                kpoints, kweights = gamma_point()
        kpoints, kweights = _check_kpoints(kpoints, kweights)

        return cls(
            lattice=a,
            ecut=float(ecut),
            fft_grid=fft_grid,
            g_vectors=jnp.array(g_cart[mask]),
            g_indices=jnp.array(miller[mask]),
            kpoints=kpoints,
            kweights=kweights,
        )

    @property
    def reciprocal_lattice(self) -> jnp.ndarray:
        return reciprocal_lattice(self.lattice)

    @property
    def unit_cell_volume(self) -> float:
        return float(cell_volume(self.lattice))

    @property
    def idx_DC(self) -> int:
        """Index of G = 0 in ``g_vectors``."""
        is_zero = np.all(np.asarray(self.g_indices) == 0, axis=1)
        return int(np.flatnonzero(is_zero)[0])

    @property
    def n_g(self) -> int:
        return int(self.g_vectors.shape[0])

    @property
    def n_kpoints(self) -> int:
        return int(self.kpoints.shape[0])

    @property
    def dtype(self):
        """Working floating point precision."""
        return self.g_vectors.dtype

    def with_kpoints(self, kpoints, kweights=None) -> "PlaneWaveBasis":
        """Same lattice, grid and G-vectors on a different k-point set.

        Returns a new basis; this one is left untouched, so anything built on
        it (local potentials, projectors) stays consistent.
        """
        kpoints, kweights = _check_kpoints(kpoints, kweights)
        return dataclasses.replace(self, kpoints=kpoints, kweights=kweights)

    def _flat_grid_index(self) -> jnp.ndarray:
        n1, n2, n3 = self.fft_grid
        idx = self.g_indices % jnp.array([n1, n2, n3])
        return idx[:, 0] * (n2 * n3) + idx[:, 1] * n3 + idx[:, 2]

    def G_to_r(self, coeffs: jnp.ndarray) -> jnp.ndarray:
        """Reciprocal to real space: f(r) = sum_G f_G exp(iG.r).

        Args:
            coeffs: (nG,) coefficients ordered like ``g_vectors``.

        Returns:
            (n1, n2, n3) complex values on the real-space grid.
        """
        n_total = int(np.prod(self.fft_grid))
        dtype = jnp.result_type(coeffs.dtype, jnp.complex64)
        grid_flat = jnp.zeros(n_total, dtype=dtype).at[self._flat_grid_index()].set(coeffs)
        # ifftn carries a 1/N factor
        return jnp.fft.ifftn(grid_flat.reshape(self.fft_grid)) * n_total

    def r_to_G(self, field: jnp.ndarray) -> jnp.ndarray:
        """Real to reciprocal space, keeping the coefficients of ``g_vectors``.

        f_G = 1/N sum_r f(r) exp(-iG.r); inverse of ``G_to_r`` on the G set.
        """
        field_g = jnp.fft.fftn(field) / int(np.prod(self.fft_grid))
        return field_g.ravel()[self._flat_grid_index()]


def _check_kpoints(kpoints, kweights) -> tuple[jnp.ndarray, jnp.ndarray]:
    kpoints = jnp.atleast_2d(jnp.asarray(kpoints, dtype=jnp.float64))
    if kpoints.shape[-1] != 3:
        raise ValueError(f"k-points must be 3-vectors, got shape {kpoints.shape}")
    n_k = kpoints.shape[0]
    if kweights is None:
        kweights = jnp.full(n_k, 1.0 / n_k)
    kweights = jnp.asarray(kweights, dtype=jnp.float64)
    if kweights.shape != (n_k,):
        raise ValueError(f"Expected {n_k} k-point weights, got shape {kweights.shape}")
    return kpoints, kweights
