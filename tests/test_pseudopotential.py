"""Tests for the local HGH pseudopotential form factors."""

import jax
import jax.numpy as jnp
import numpy as np
import pytest

from pwkit.pseudopotential import HGHLocalParams, get_hgh_params, hgh_local_fourier


def test_get_hgh_params():
    """Test that HGH parameters are available for common elements."""
    for symbol in ["H", "He", "C", "N", "O", "Si", "Al"]:
        params = get_hgh_params(symbol)
        assert params.Z_ion > 0
        assert params.r_loc > 0
        assert params.symbol == symbol
        assert len(params.c_loc) == 4


def test_get_hgh_params_unknown():
    with pytest.raises(ValueError, match="not available"):
        get_hgh_params("Unobtainium")


def test_c_loc_padding():
    params = HGHLocalParams("X", 1, 0.3, (1.0,))
    assert params.c_loc == (1.0, 0.0, 0.0, 0.0)
    with pytest.raises(ValueError, match="At most 4"):
        HGHLocalParams("X", 1, 0.3, (1.0, 2.0, 3.0, 4.0, 5.0))


def test_g0_limit_finite():
    params = get_hgh_params("Si")
    v0 = hgh_local_fourier(jnp.zeros(3), params)
    assert jnp.isfinite(v0)
    expected = (2.0 * np.pi * 4 * 0.44**2
                + np.sqrt(8.0 * np.pi**3) * 0.44**3 * (-7.33610297)) / (4.0 * np.pi)
    np.testing.assert_allclose(float(v0), expected, rtol=1e-12)


def test_matches_closed_form():
    params = get_hgh_params("C")
    g = jnp.array([0.3, -0.4, 1.2])
    g2 = float(jnp.sum(g**2))
    x = g2 * params.r_loc**2
    c1, c2, _, _ = params.c_loc
    expected = (-params.Z_ion / g2 * np.exp(-x / 2)
                + np.sqrt(8 * np.pi**3) * params.r_loc**3 / (4 * np.pi)
                * np.exp(-x / 2) * (c1 + c2 * (3 - x)))
    np.testing.assert_allclose(float(hgh_local_fourier(g, params)), expected, rtol=1e-12)


def test_inversion_symmetric():
    """v(G) = v(-G) and real, i.e. Hermitian Fourier data."""
    params = get_hgh_params("O")
    g = jnp.array([[0.5, 0.1, -0.2], [1.0, 2.0, 3.0]])
    v = jax.vmap(lambda gi: hgh_local_fourier(gi, params))
    np.testing.assert_array_equal(v(g), v(-g))
    assert not jnp.iscomplexobj(v(g))


def test_decay():
    params = get_hgh_params("Si")
    g = jnp.array([[1.0, 0.0, 0.0], [3.0, 0.0, 0.0], [10.0, 0.0, 0.0], [30.0, 0.0, 0.0]])
    v = jax.vmap(lambda gi: hgh_local_fourier(gi, params))(g)
    assert jnp.abs(v[-1]) < jnp.abs(v[0])
    assert float(jnp.abs(v[-1])) < 1e-10
