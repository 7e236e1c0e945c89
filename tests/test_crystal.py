"""Tests for crystal structures and the electronic model."""

import jax.numpy as jnp
import numpy as np
import pytest

from pwkit.constants import ANGSTROM_TO_BOHR
from pwkit.crystal import Crystal
from pwkit.model import Model


def _make_nacl_crystal():
    a = jnp.eye(3) * 10.0
    positions = jnp.array([
        [0.0, 0.0, 0.0],
        [5.0, 0.0, 0.0],
        [5.0, 5.0, 0.0],
        [0.0, 5.0, 0.0],
    ])
    return Crystal(a=a, species=["Na", "Cl", "Na", "Cl"], positions=positions,
                   Z_vals=jnp.array([9.0, 7.0, 9.0, 7.0]))


def test_from_angstrom_fractional():
    lattice = np.eye(3) * 5.0
    crystal = Crystal.from_angstrom(lattice, ["Si"], [[0.5, 0.5, 0.5]], [4.0],
                                    coords_are_fractional=True)
    np.testing.assert_allclose(crystal.positions[0], 2.5 * ANGSTROM_TO_BOHR, rtol=1e-12)
    np.testing.assert_allclose(crystal.fractional_positions[0], 0.5, atol=1e-12)
    np.testing.assert_allclose(crystal.volume, (5.0 * ANGSTROM_TO_BOHR)**3, rtol=1e-12)


def test_positions_by_species():
    grouped = _make_nacl_crystal().positions_by_species()
    assert list(grouped) == ["Na", "Cl"]
    np.testing.assert_allclose(grouped["Na"], [[0.0, 0.0, 0.0], [5.0, 5.0, 0.0]])
    np.testing.assert_allclose(grouped["Cl"], [[5.0, 0.0, 0.0], [0.0, 5.0, 0.0]])


def test_valence_charges():
    crystal = _make_nacl_crystal()
    assert crystal.valence_charges() == {"Na": 9.0, "Cl": 7.0}
    assert crystal.nelec == 32.0


def test_valence_charges_inconsistent():
    crystal = _make_nacl_crystal()
    crystal.Z_vals = jnp.array([9.0, 7.0, 1.0, 7.0])
    with pytest.raises(ValueError, match="inconsistent"):
        crystal.valence_charges()


def test_model_from_crystal():
    model = Model.from_crystal(_make_nacl_crystal(), temperature=0.01)
    assert model.n_electrons == 32.0
    assert model.temperature == 0.01
    assert model.filled_occupation == 2


def test_model_spin_polarized_occupation():
    assert Model(8, n_spin_components=2).filled_occupation == 1


@pytest.mark.parametrize("kwargs", [
    {"n_electrons": -1},
    {"n_electrons": 8, "n_spin_components": 3},
    {"n_electrons": 8, "temperature": -0.1},
])
def test_model_invalid(kwargs):
    with pytest.raises(ValueError):
        Model(**kwargs)
