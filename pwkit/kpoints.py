"""K-point sets for Brillouin-zone sampling."""

import jax.numpy as jnp
import numpy as np


def monkhorst_pack(nk: tuple[int, int, int], b: jnp.ndarray,
                   shift: tuple[float, float, float] = (0.0, 0.0, 0.0)
                   ) -> tuple[jnp.ndarray, jnp.ndarray]:
    """Monkhorst-Pack grid with uniform weights.

    Fractional coordinates along direction i are
        (2*n_i - N_i + 1) / (2*N_i) + shift_i,   n_i = 0 .. N_i - 1

    Reference: H. J. Monkhorst, J. D. Pack, Phys. Rev. B 13, 5188 (1976).

    Args:
        nk: Grid dimensions (N_1, N_2, N_3).
        b: (3, 3) reciprocal lattice vectors (rows).
        shift: Offset in fractional reciprocal coordinates.

    Returns:
        kpoints: (N_1*N_2*N_3, 3) Cartesian k-points.
        weights: Weights summing to one.
    """
    axes = [(2.0 * np.arange(n) - n + 1) / (2.0 * n) + s for n, s in zip(nk, shift)]
    grid = np.meshgrid(*axes, indexing='ij')
    frac = np.stack([g.ravel() for g in grid], axis=-1)

    n_total = frac.shape[0]
    return jnp.array(frac) @ b, jnp.full(n_total, 1.0 / n_total)


def gamma_point() -> tuple[jnp.ndarray, jnp.ndarray]:
    """Single k = 0 with unit weight."""
    return jnp.zeros((1, 3)), jnp.ones(1)
