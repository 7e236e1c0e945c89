"""Physical constants (atomic units) and numerical defaults."""

import jax.numpy as jnp

# In atomic units: hbar = m_e = e = 4*pi*eps_0 = 1
HARTREE_TO_EV = 27.211386245988
ANGSTROM_TO_BOHR = 1.0 / 0.529177210903  # inverse Bohr radius in Angstrom

PI = jnp.pi
TWO_PI = 2.0 * jnp.pi
FOUR_PI = 4.0 * jnp.pi

# Band-count policies
OCCUPATION_THRESHOLD = 1e-6   # orbitals with |f_n| below this count as empty
GAP_MIN = 1e-2                # Hartree, between last converged and last computed band
EXTRA_BANDS_COMPUTE = 3       # computed on top of the converged bands
TEMPERATURE_FACTOR_CONVERGE = 1.05
TEMPERATURE_FACTOR_COMPUTE = 1.20
TEMPERATURE_FACTOR_FIXED = 1.20

# Largest allowed imaginary residue of a real-space potential, in units of eps
REALNESS_TOLERANCE_EPS = 100
