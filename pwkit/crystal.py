"""Crystal structure definition."""

from dataclasses import dataclass

import jax.numpy as jnp
import numpy as np

from pwkit.constants import ANGSTROM_TO_BOHR
from pwkit.lattice import cartesian_to_fractional, cell_volume, fractional_to_cartesian


@dataclass
class Crystal:
    """Periodic arrangement of atoms, in atomic units (Bohr).

    Attributes:
        a: (3, 3) real-space lattice vectors as rows.
        species: Species label of each atom, e.g. element symbols.
        positions: (natom, 3) Cartesian atomic positions.
        Z_vals: (natom,) valence charges.
    """
    a: jnp.ndarray
    species: list[str]
    positions: jnp.ndarray
    Z_vals: jnp.ndarray

    @classmethod
    def from_angstrom(
        cls,
        lattice_vectors: np.ndarray,
        species: list[str],
        positions: np.ndarray,
        Z_vals: np.ndarray,
        coords_are_fractional: bool = False,
    ) -> "Crystal":
        """Create a Crystal from a lattice and positions given in Angstrom.

        If ``coords_are_fractional`` is set, ``positions`` are taken as
        fractional coordinates and only the lattice is rescaled.
        """
        a = jnp.array(lattice_vectors, dtype=jnp.float64) * ANGSTROM_TO_BOHR
        pos = jnp.array(positions, dtype=jnp.float64)
        if coords_are_fractional:
            pos = fractional_to_cartesian(pos, a)
        else:
            pos = pos * ANGSTROM_TO_BOHR
        return cls(a=a, species=list(species), positions=pos,
                   Z_vals=jnp.array(Z_vals, dtype=jnp.float64))

    @property
    def nelec(self) -> float:
        return float(jnp.sum(self.Z_vals))

    @property
    def volume(self) -> float:
        return float(cell_volume(self.a))

    @property
    def fractional_positions(self) -> jnp.ndarray:
        return cartesian_to_fractional(self.positions, self.a)

    def positions_by_species(self) -> dict[str, np.ndarray]:
        """Cartesian positions grouped by species, in order of first appearance.

        This is the positions mapping expected by ``build_local_potential``
        with ``coords_are_cartesian=True``.
        """
        positions = np.asarray(self.positions)
        grouped = {}
        for sp in dict.fromkeys(self.species):
            rows = [ia for ia, s in enumerate(self.species) if s == sp]
            grouped[sp] = positions[rows]
        return grouped

    def valence_charges(self) -> dict[str, float]:
        """Valence charge per species.

        Raises:
            ValueError: If two atoms of the same species carry different charges.
        """
        charges = {}
        for sp, z in zip(self.species, np.asarray(self.Z_vals)):
            if sp in charges and charges[sp] != float(z):
                raise ValueError(f"Species '{sp}' has inconsistent valence charges "
                                 f"{charges[sp]} and {float(z)}")
            charges[sp] = float(z)
        return charges
