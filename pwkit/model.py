"""Electronic model parameters used to size the eigenvalue problem."""

from dataclasses import dataclass

from pwkit.crystal import Crystal


@dataclass(frozen=True)
class Model:
    """Electron count, spin treatment and electronic temperature.

    Attributes:
        n_electrons: Number of valence electrons per unit cell.
        n_spin_components: 1 for spin-unpolarized, 2 for collinear spin.
        temperature: Smearing temperature in Hartree (0 for insulators).
    """
    n_electrons: float
    n_spin_components: int = 1
    temperature: float = 0.0

    def __post_init__(self):
        if self.n_electrons < 0:
            raise ValueError(f"n_electrons must be non-negative, got {self.n_electrons}")
        if self.n_spin_components not in (1, 2):
            raise ValueError(f"n_spin_components must be 1 or 2, got {self.n_spin_components}")
        if self.temperature < 0:
            raise ValueError(f"temperature must be non-negative, got {self.temperature}")

    @property
    def filled_occupation(self) -> int:
        """Maximal occupation of one orbital (2 without spin, 1 per spin channel)."""
        return 2 if self.n_spin_components == 1 else 1

    @classmethod
    def from_crystal(cls, crystal: Crystal, n_spin_components: int = 1,
                     temperature: float = 0.0) -> "Model":
        return cls(n_electrons=crystal.nelec, n_spin_components=n_spin_components,
                   temperature=temperature)
