"""Example: local pseudopotential and band counts for silicon.

Builds the local part of the HGH pseudopotential of diamond silicon on a
plane-wave basis, asks both band-count policies how many bands an SCF step
would need, and derives a band-structure basis on a k-path without touching
the SCF basis.
"""

import jax.numpy as jnp
import numpy as np

from pwkit import AdaptiveBands, Crystal, FixedBands, Model, PlaneWaveBasis, SCFSnapshot
from pwkit import build_local_potential
from pwkit.constants import ANGSTROM_TO_BOHR, HARTREE_TO_EV
from pwkit.pseudopotential import get_hgh_params, hgh_local_fourier

# Silicon diamond structure
a0_ang = 5.431020504  # Angstrom
a0 = a0_ang * ANGSTROM_TO_BOHR  # Bohr

lattice = jnp.array([
    [0.0, a0/2, a0/2],
    [a0/2, 0.0, a0/2],
    [a0/2, a0/2, 0.0],
], dtype=jnp.float64)

tau = a0 / 8 * jnp.ones(3)
crystal = Crystal(
    a=lattice,
    species=["Si", "Si"],
    positions=jnp.stack([tau, -tau]),
    Z_vals=jnp.array([4.0, 4.0]),
)

print(f"Lattice constant: {a0_ang:.4f} Angstrom ({a0:.4f} Bohr)")
print(f"Cell volume: {crystal.volume:.4f} Bohr^3")
print(f"Number of electrons: {crystal.nelec}")

# Basis for the SCF: 5 Ha cutoff, 3x3x3 Monkhorst-Pack grid
basis = PlaneWaveBasis.from_cutoff(lattice, ecut=5.0, kgrid=(3, 3, 3))
print(f"FFT grid: {basis.fft_grid}, {basis.n_g} G-vectors, {basis.n_kpoints} k-points")

# Local part of the pseudopotential
psp_local = build_local_potential(
    basis,
    crystal.positions_by_species(),
    hgh_local_fourier,
    parameters={"Si": get_hgh_params("Si")},
    coords_are_cartesian=True,
)
print(f"V_loc range: [{psp_local.values.min():.4f}, {psp_local.values.max():.4f}] Ha")

# Band counts: 4 filled bands without smearing
model = Model.from_crystal(crystal)
fixed = FixedBands.from_model(model)
adaptive = AdaptiveBands.from_model(model)
print()
print(f"Fixed policy:            {fixed.determine_band_counts()}")
print(f"Adaptive, first step:    {adaptive.determine_band_counts()}")

# Pretend a previous SCF step produced these eigenvalues (Ha) and occupations
eigenvalues = [np.array([-0.21, 0.22, 0.22, 0.22, 0.31, 0.31, 0.31, 0.35])
               for _ in range(basis.n_kpoints)]
occupation = [np.where(eps < 0.25, 2.0, 0.0) for eps in eigenvalues]
snapshot = SCFSnapshot(occupation=occupation, eigenvalues=eigenvalues)
print(f"Adaptive, later steps:   {adaptive.determine_band_counts(snapshot)}")

# Band structure along Gamma -> X uses a new basis; basis and psp_local stay valid
b = basis.reciprocal_lattice
x_point = 0.5 * (b[0] + b[2])
kpath = jnp.array([t * x_point for t in np.linspace(0.0, 1.0, 11)])
band_basis = basis.with_kpoints(kpath)
print()
print(f"Band-path basis: {band_basis.n_kpoints} k-points "
      f"(SCF basis still has {basis.n_kpoints})")
print(f"|X| = {float(jnp.linalg.norm(x_point)):.4f} 1/Bohr, "
      f"1 Ha = {HARTREE_TO_EV:.4f} eV")
