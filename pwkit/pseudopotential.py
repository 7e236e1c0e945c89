"""Local part of Hartwigsen-Goedecker-Hutter (HGH) pseudopotentials.

Reference:
    C. Hartwigsen, S. Goedecker, J. Hutter, Phys. Rev. B 58, 3641 (1998).

The local potential of one atom in reciprocal space is
    V_loc(G) = 4*pi/Omega * v(G)
with x = |G|^2 r_loc^2 and
    v(G) = -Z_ion/|G|^2 * exp(-x/2)
         + sqrt(8*pi^3) * r_loc^3 / (4*pi) * exp(-x/2)
           * (C1 + C2*(3 - x) + C3*(15 - 10*x + x^2)
              + C4*(105 - 105*x + 21*x^2 - x^3))

``hgh_local_fourier`` evaluates v(G), so it can be passed directly as a
generator to ``build_local_potential``, which supplies the 4*pi/Omega
prefactor and the structure factor.
"""

from dataclasses import dataclass, field

import jax.numpy as jnp

from pwkit.constants import FOUR_PI, PI


@dataclass(frozen=True)
class HGHLocalParams:
    """Local HGH parameters of one element.

    Attributes:
        symbol: Element symbol.
        Z_ion: Number of valence electrons.
        r_loc: Local radius parameter (Bohr).
        c_loc: Local coefficients [C1, C2, C3, C4], zero padded.
    """
    symbol: str
    Z_ion: int
    r_loc: float
    c_loc: tuple[float, float, float, float] = field(default=(0.0, 0.0, 0.0, 0.0))

    def __post_init__(self):
        c = tuple(float(ci) for ci in self.c_loc)
        if len(c) > 4:
            raise ValueError(f"At most 4 local coefficients, got {len(c)} for {self.symbol}")
        object.__setattr__(self, "c_loc", c + (0.0,) * (4 - len(c)))


def hgh_local_fourier(g_vec: jnp.ndarray, params: HGHLocalParams) -> jnp.ndarray:
    """Local HGH form factor v(G) for a single G-vector, without 4*pi/Omega.

    The Coulomb tail diverges at G = 0; there the finite remainder
        (2*pi*Z_ion*r_loc^2 + sqrt(8*pi^3)*r_loc^3*(C1 + 3*C2 + 15*C3 + 105*C4)) / (4*pi)
    is returned instead. The result depends on |G| only, so it is real
    and symmetric under G -> -G.

    Args:
        g_vec: (3,) Cartesian G-vector.
        params: Local parameters of the element.

    Returns:
        Scalar v(G).
    """
    r_loc = params.r_loc
    c1, c2, c3, c4 = params.c_loc
    g2 = jnp.sum(g_vec**2)
    x = g2 * r_loc**2
    exp_term = jnp.exp(-x / 2.0)
    gauss_norm = jnp.sqrt(8.0 * PI**3) * r_loc**3 / FOUR_PI

    g2_safe = jnp.where(g2 == 0.0, 1.0, g2)
    v_coulomb = -params.Z_ion / g2_safe * exp_term
    poly = (c1
            + c2 * (3.0 - x)
            + c3 * (15.0 - 10.0 * x + x**2)
            + c4 * (105.0 - 105.0 * x + 21.0 * x**2 - x**3))
    v = v_coulomb + gauss_norm * exp_term * poly

    v_g0 = (2.0 * PI * params.Z_ion * r_loc**2 / FOUR_PI
            + gauss_norm * (c1 + 3.0 * c2 + 15.0 * c3 + 105.0 * c4))
    return jnp.where(g2 == 0.0, v_g0, v)


def get_hgh_params(symbol: str) -> HGHLocalParams:
    """Local HGH parameters for an element symbol (e.g. 'Si')."""
    if symbol not in _HGH_LOCAL:
        raise ValueError(f"HGH parameters not available for '{symbol}'. "
                         f"Available: {list(_HGH_LOCAL.keys())}")
    return _HGH_LOCAL[symbol]


# GTH-Pade local parameters
# From: S. Goedecker, M. Teter, J. Hutter, PRB 54, 1703 (1996)
# and C. Hartwigsen, S. Goedecker, J. Hutter, PRB 58, 3641 (1998)
_HGH_LOCAL: dict[str, HGHLocalParams] = {
    p.symbol: p for p in [
        HGHLocalParams("H", 1, 0.20000000, (-4.18023680, 0.72507482)),
        HGHLocalParams("He", 2, 0.20000000, (-9.11202340, 1.69836797)),
        HGHLocalParams("Li", 3, 0.40000000, (-14.03493470, 9.55346109, -1.75328669, 0.08644523)),
        HGHLocalParams("C", 4, 0.34883045, (-8.51377110, 1.22843203)),
        HGHLocalParams("N", 5, 0.28917923, (-12.23481988, 1.76640728)),
        HGHLocalParams("O", 6, 0.24762086, (-16.58031797, 2.39570092)),
        HGHLocalParams("Na", 9, 0.24631780, (-7.54559389, 0.94978099)),
        HGHLocalParams("Al", 3, 0.45000000, (-8.49135116,)),
        HGHLocalParams("Si", 4, 0.44000000, (-7.33610297,)),
        HGHLocalParams("Cl", 7, 0.41000000, (-6.39208181,)),
        HGHLocalParams("Ge", 4, 0.54000000, (-4.30885032,)),
    ]
}
