"""Tests for k-point generation."""

import jax.numpy as jnp
import numpy as np

from pwkit.kpoints import monkhorst_pack, gamma_point
from pwkit.constants import TWO_PI


def test_gamma_point():
    kpts, wts = gamma_point()
    assert kpts.shape == (1, 3)
    np.testing.assert_allclose(kpts[0], 0.0, atol=1e-15)
    np.testing.assert_allclose(wts[0], 1.0)


def test_mp_grid_size():
    b = jnp.eye(3) * TWO_PI / 10.0
    kpts, wts = monkhorst_pack((3, 3, 3), b)
    assert kpts.shape == (27, 3)
    np.testing.assert_allclose(jnp.sum(wts), 1.0, atol=1e-12)


def test_mp_odd_grid_contains_gamma():
    b = jnp.eye(3) * TWO_PI / 10.0
    kpts, _ = monkhorst_pack((3, 3, 3), b)
    assert np.min(np.linalg.norm(np.asarray(kpts), axis=1)) < 1e-12


def test_mp_grid_inversion():
    """Unshifted MP grid has inversion symmetry."""
    b = jnp.eye(3) * TWO_PI / 10.0
    kpts, _ = monkhorst_pack((4, 4, 4), b)

    frac = np.array(kpts @ jnp.linalg.inv(b))
    for i in range(len(frac)):
        diff = -frac[i][None, :] - frac
        diff = diff - np.round(diff)
        assert np.min(np.linalg.norm(diff, axis=-1)) < 1e-10, f"k-point {i} has no inversion partner"


def test_mp_shift():
    b = jnp.eye(3) * TWO_PI / 10.0
    kpts, _ = monkhorst_pack((1, 1, 1), b, shift=(0.5, 0.0, 0.0))
    np.testing.assert_allclose(kpts[0], [0.5 * TWO_PI / 10.0, 0.0, 0.0], atol=1e-12)
