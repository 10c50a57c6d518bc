"""
skyrme_parameters.py
====================
Parameter dataclasses for the nonrelativistic Skyrme functional.

Energy density of uniform matter (ħ = c = 1, fm units):

    ε = Σ_q τ_q/(2m_q) + ρτ (t1(1+x1/2) + t2(1+x2/2))/4
        + Σ_q τ_q ρ_q (t2(x2+1/2) - t1(x1+1/2))/4
        + t0/2 [(1+x0/2) ρ² - (x0+1/2)(ρ_n²+ρ_p²)]
        + t3/12 ρ^α [(1+x3/2) ρ² - (x3+1/2)(ρ_n²+ρ_p²)]

Couplings are stored in fm units: t0 (fm²), t1, t2 (fm⁴), t3 (fm^{2+3α}),
i.e. the MeV·fm^k values divided by ħc.

Two ways of obtaining a parameter set:
- the fixed chiral-EFT-fitted set (`get_skyrme_chiral`), used for the
  thermal part of the combined EOS
- the inversion of nuclear-matter saturation properties and gradient
  couplings (`skyrme_params_from_saturation`), used for the main set
  drawn from the UNEDF posterior table

References:
- Kortelainen et al., PRC 82, 024313 (2010) (UNEDF0)
- Du, Steiner & Holt, PRC 99, 025803 (2019)
"""
from dataclasses import dataclass

import numpy as np

from general_physics_constants import hc, PI2, m_nucleon


@dataclass(frozen=True)
class SkyrmeParams:
    """
    Skyrme coupling constants.

    Attributes:
        name: Parameter set identifier
        t0, t1, t2, t3: Skyrme couplings (fm units, see module docstring)
        x0, x1, x2, x3: Spin-exchange parameters (dimensionless)
        alpha: Density-dependence exponent
        b4, b4p: Spin-orbit couplings (fm⁴); inert in uniform matter
    """
    name: str = "skyrme"
    t0: float = 0.0
    t1: float = 0.0
    t2: float = 0.0
    t3: float = 0.0
    x0: float = 0.0
    x1: float = 0.0
    x2: float = 0.0
    x3: float = 0.0
    alpha: float = 1.0
    b4: float = 0.0
    b4p: float = 0.0

    @property
    def term(self) -> float:
        """Coefficient of ρτ."""
        return 0.25 * (self.t1 * (1.0 + self.x1 / 2.0) + self.t2 * (1.0 + self.x2 / 2.0))

    @property
    def term2(self) -> float:
        """Coefficient of Σ_q ρ_q τ_q."""
        return 0.25 * (self.t2 * (0.5 + self.x2) - self.t1 * (0.5 + self.x1))


def get_skyrme_chiral() -> SkyrmeParams:
    """Skyrme set fitted to chiral-EFT neutron and nuclear matter at finite T."""
    return SkyrmeParams(
        name="chiral",
        t0=5.067286719233e+03,
        t1=1.749251370992e+00,
        t2=-4.721193938990e-01,
        t3=-1.945964529505e+05,
        x0=4.197555064408e+01,
        x1=-6.947915483747e-02,
        x2=4.192016722695e-01,
        x3=-2.877974634128e+01,
        alpha=0.144165,
    )


# =============================================================================
# SATURATION-PROPERTY INVERSION
# =============================================================================
def skyrme_params_from_saturation(
    rho0: float, EoA: float, K: float, Ms_star: float, S: float, L: float,
    Mv_star: float, Crdr0: float, Crdr1: float, CrdJ0: float, CrdJ1: float,
    m: float = m_nucleon, name: str = "saturation"
) -> SkyrmeParams:
    """
    Skyrme couplings reproducing given nuclear-matter properties.

    Works in the density-functional (C-coupling) representation, which is
    linear in the unknowns once the density exponent γ = α is fixed by
    E/A, the saturation condition and K.

    Args:
        rho0: Saturation density (fm⁻³)
        EoA: Binding energy per nucleon (MeV, negative)
        K: Incompressibility (MeV)
        Ms_star: Isoscalar effective mass m*/m
        S, L: Symmetry energy and its slope (MeV)
        Mv_star: Isovector effective mass m*_v/m
        Crdr0, Crdr1: C^{ρΔρ} couplings (MeV fm⁵)
        CrdJ0, CrdJ1: C^{ρ∇J} couplings (MeV fm⁵)
        m: Nucleon mass (MeV)
        name: Label of the returned set

    Returns:
        SkyrmeParams in fm units
    """
    if rho0 <= 0:
        raise ValueError(f"Saturation density must be positive, got {rho0}")
    if Ms_star <= 0 or Mv_star <= 0:
        raise ValueError(f"Effective masses must be positive, got "
                         f"Ms*={Ms_star}, Mv*={Mv_star}")

    EoA, K, S, L = EoA / hc, K / hc, S / hc, L / hc
    Crdr0, Crdr1, CrdJ0, CrdJ1 = Crdr0 / hc, Crdr1 / hc, CrdJ0 / hc, CrdJ1 / hc
    m = m / hc
    inv_ms = 1.0 / Ms_star

    c_tau = 0.6 * (1.5 * PI2)**(2.0/3.0)
    T0 = c_tau * rho0**(2.0/3.0) / (2.0 * m)

    C0tau = (inv_ms - 1.0) / (2.0 * m * rho0)
    C1tau = (inv_ms - 1.0 / Mv_star) / (2.0 * m * rho0)

    # Isoscalar: E/A, P = 0 and K fix A = C0ρ0 ρ0, B = C0ρD ρ0^{1+γ} and γ
    R1 = -EoA - 2.0/3.0 * T0 - 5.0/3.0 * (inv_ms - 1.0) * T0 + T0 * inv_ms
    R2 = K / 9.0 + 2.0/9.0 * T0 - 10.0/9.0 * (inv_ms - 1.0) * T0
    gamma = R2 / R1 - 1.0
    B = R1 / gamma
    A = EoA - T0 * inv_ms - B
    C0rho0 = A / rho0
    C0rhoD = B / rho0**(1.0 + gamma)

    # Isovector: S and L fix D = C1ρ0 ρ0 and E = C1ρD ρ0^{1+γ}
    T1 = C1tau * c_tau * rho0**(5.0/3.0)
    S_kin = 5.0/9.0 * T0 + 5.0/9.0 * (inv_ms - 1.0) * T0 + 5.0/3.0 * T1
    L_kin = 3.0 * (10.0/27.0 * T0 + 25.0/27.0 * (inv_ms - 1.0) * T0 + 25.0/9.0 * T1)
    E_coef = ((L - L_kin) / 3.0 - (S - S_kin)) / gamma
    D_coef = S - S_kin - E_coef
    C1rho0 = D_coef / rho0
    C1rhoD = E_coef / rho0**(1.0 + gamma)

    t0 = 8.0/3.0 * C0rho0
    x0 = -4.0 * C1rho0 / t0 - 0.5
    t3 = 16.0 * C0rhoD
    x3 = -24.0 * C1rhoD / t3 - 0.5

    # (t1, t1 x1, t2, t2 x2) from the C^τ and C^{ΔR} couplings
    mat = np.array([
        [3.0/16.0, 0.0, 5.0/16.0, 0.25],
        [-1.0/16.0, -0.125, 1.0/16.0, 0.125],
        [-9.0/64.0, 0.0, 5.0/64.0, 1.0/16.0],
        [3.0/64.0, 3.0/32.0, 1.0/64.0, 1.0/32.0],
    ])
    t1, u, t2, v = np.linalg.solve(mat, [C0tau, C1tau, Crdr0, Crdr1])

    b4p = -2.0 * CrdJ1
    b4 = -CrdJ0 - 0.5 * b4p

    return SkyrmeParams(
        name=name,
        t0=float(t0), t1=float(t1), t2=float(t2), t3=float(t3),
        x0=float(x0), x1=float(u / t1), x2=float(v / t2), x3=float(x3),
        alpha=float(gamma), b4=float(b4), b4p=float(b4p),
    )


# =============================================================================
# SELF-TEST
# =============================================================================
if __name__ == "__main__":
    print("Skyrme Parameters Test")
    print("=" * 50)

    for p in [get_skyrme_chiral(),
              skyrme_params_from_saturation(
                  0.16053, -16.056, 230.0, 1.0 / 0.9, 32.0, 50.0, 1.0 / 1.249,
                  -55.261, -55.622, -79.531, 45.630, name="UNEDF0-like")]:
        print(f"\n{p.name}")
        for key in ("t0", "t1", "t2", "t3", "x0", "x1", "x2", "x3", "alpha"):
            print(f"  {key:6} = {getattr(p, key): .6e}")
