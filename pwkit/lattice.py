"""Real- and reciprocal-space lattice helpers.

Lattice vectors are always stored as the rows of a (3, 3) array.
"""

import jax.numpy as jnp
import numpy as np

from pwkit.constants import TWO_PI


def reciprocal_lattice(a: jnp.ndarray) -> jnp.ndarray:
    """Reciprocal lattice vectors b (rows) with a_i . b_j = 2*pi*delta_ij."""
    return TWO_PI * jnp.linalg.inv(a).T


def cell_volume(a: jnp.ndarray) -> jnp.ndarray:
    """Unit cell volume |det a|."""
    return jnp.abs(jnp.linalg.det(a))


def fractional_to_cartesian(frac_coords: jnp.ndarray, a: jnp.ndarray) -> jnp.ndarray:
    """Map (..., 3) fractional coordinates to Cartesian ones.

    With lattice vectors as rows this is ``frac @ a``, i.e. the lattice
    matrix (vectors as columns) applied to each fractional vector.
    """
    return frac_coords @ a


def cartesian_to_fractional(cart_coords: jnp.ndarray, a: jnp.ndarray) -> jnp.ndarray:
    return cart_coords @ jnp.linalg.inv(a)


def max_miller_indices(a: jnp.ndarray, g_max: float) -> tuple[int, int, int]:
    """Largest |m_i| of any G = m @ b with |G| <= g_max.

    Since m_i = a_i . G / (2*pi), the bound |m_i| <= |a_i| g_max / (2*pi)
    holds for any cell shape, not only orthogonal ones.
    """
    lengths = np.linalg.norm(np.asarray(a), axis=1)
    return tuple(int(m) for m in np.ceil(lengths * g_max / float(TWO_PI)))
