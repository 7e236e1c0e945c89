"""
Band-count policies and local potentials for plane-wave DFT in JAX.

This package provides the pieces of a Kohn-Sham SCF solver that decide
how large the eigenvalue problem is and what local potential enters it:
- Plane-wave basis with FFT transforms between reciprocal and real space
- Local potentials assembled from analytic per-species Fourier terms
  (structure factors, compensating background, realness check)
- Fixed and adaptive policies for the number of bands to compute and
  converge in each SCF step
- Local parts of Hartwigsen-Goedecker-Hutter (HGH) pseudopotentials
"""

import jax

# Plane-wave sums and the realness check need double precision
jax.config.update("jax_enable_x64", True)

from pwkit.basis import PlaneWaveBasis
from pwkit.crystal import Crystal
from pwkit.errors import ConfigurationError, PhysicsInconsistencyError, ShapeMismatchError
from pwkit.model import Model
from pwkit.nbands import AdaptiveBands, BandCounts, FixedBands, SCFSnapshot
from pwkit.potential import LocalPotential, build_local_potential

__version__ = "0.1.0"
__all__ = [
    "PlaneWaveBasis", "Crystal", "Model",
    "LocalPotential", "build_local_potential",
    "FixedBands", "AdaptiveBands", "BandCounts", "SCFSnapshot",
    "ConfigurationError", "PhysicsInconsistencyError", "ShapeMismatchError",
]
