"""
skyrme_thermodynamics_nucleons.py
=================================
Thermodynamics of uniform nucleonic matter in the Skyrme functional.

For given (n_n, n_p) the effective masses are fixed by the densities,

    1/(2m*_q) = 1/(2m_q) + ρ·term + ρ_q·term2

and the kinetic densities τ_q follow either from the T=0 Fermi sea or, at
finite temperature, from nonrelativistic Fermi-Dirac integrals of the
quasiparticle gas:

    ρ_q = g/(4π²) (2m*_q T)^{3/2} F_{1/2}(η_q),
    τ_q = g/(4π²) (2m*_q T)^{5/2} F_{3/2}(η_q),    ν_q = η_q T

Chemical potentials are μ_q = ν_q + U_q with the single-particle potential
U_q = ∂ε/∂ρ_q at fixed τ; the entropy is that of the quasiparticle gas.

Units: fm⁻¹ powers (T, m, μ in fm⁻¹; ε, f, P in fm⁻⁴; ρ, s in fm⁻³).
Chemical potentials exclude the rest mass.
"""
from dataclasses import dataclass
from typing import Tuple

import numpy as np
from numdifftools import Derivative
from scipy.optimize import brentq

from general_physics_constants import PI2, m_neutron_fm, m_proton_fm, hc
from general_fermi_integrals import fermi_dirac_integral, invert_fermi_half
from skyrme_parameters import SkyrmeParams
import general_particles


G_NUCLEON = general_particles.Neutron.g_degen


@dataclass
class SkyrmeThermo:
    """Skyrme matter at one (n_n, n_p, T) point (fm units)."""
    n_n: float = 0.0
    n_p: float = 0.0
    T: float = 0.0
    ed: float = 0.0          # energy density without rest mass
    f: float = 0.0           # free energy density
    pr: float = 0.0
    s: float = 0.0
    mu_n: float = 0.0
    mu_p: float = 0.0
    ms_n: float = 0.0        # effective masses
    ms_p: float = 0.0
    tau_n: float = 0.0
    tau_p: float = 0.0


# =============================================================================
# FUNCTIONAL PIECES
# =============================================================================
def effective_masses(params: SkyrmeParams, n_n: float, n_p: float,
                     m_n: float = m_neutron_fm,
                     m_p: float = m_proton_fm) -> Tuple[float, float]:
    """
    Landau effective masses (fm⁻¹).

    A negative value signals a functional whose kinetic term changes sign
    at this density.
    """
    rho = n_n + n_p
    ms_n = m_n / (1.0 + 2.0 * (rho * params.term + n_n * params.term2) * m_n)
    ms_p = m_p / (1.0 + 2.0 * (rho * params.term + n_p * params.term2) * m_p)
    return ms_n, ms_p


def _potential_energy(params, n_n, n_p):
    """Density-only part of ε (t0 and t3 terms)."""
    p = params
    rho = n_n + n_p
    sq = n_n * n_n + n_p * n_p
    e0 = 0.5 * p.t0 * ((1.0 + 0.5 * p.x0) * rho * rho - (p.x0 + 0.5) * sq)
    e3 = p.t3 / 12.0 * rho**p.alpha * ((1.0 + 0.5 * p.x3) * rho * rho - (p.x3 + 0.5) * sq)
    return e0 + e3


def _single_particle_potentials(params, n_n, n_p, tau_n, tau_p):
    """U_q = ∂ε/∂ρ_q at fixed τ_n, τ_p."""
    p = params
    rho = n_n + n_p
    tau = tau_n + tau_p
    sq = n_n * n_n + n_p * n_p
    bracket3 = (1.0 + 0.5 * p.x3) * rho * rho - (p.x3 + 0.5) * sq

    def U(n_q, tau_q):
        return (p.term * tau + p.term2 * tau_q
                + 0.5 * p.t0 * ((2.0 + p.x0) * rho - (2.0 * p.x0 + 1.0) * n_q)
                + p.t3 / 12.0 * (p.alpha * rho**(p.alpha - 1.0) * bracket3
                                 + rho**p.alpha * ((2.0 + p.x3) * rho
                                                   - (2.0 * p.x3 + 1.0) * n_q)))

    return U(n_n, tau_n), U(n_p, tau_p)


def _energy_density(params, n_n, n_p, tau_n, tau_p, m_n, m_p):
    rho = n_n + n_p
    return (tau_n / (2.0 * m_n) + tau_p / (2.0 * m_p)
            + params.term * rho * (tau_n + tau_p)
            + params.term2 * (tau_n * n_n + tau_p * n_p)
            + _potential_energy(params, n_n, n_p))


# =============================================================================
# KINETIC DENSITIES
# =============================================================================
def _fermi_sea(n_q, ms_q):
    """T = 0: (τ_q, ν_q) of a filled Fermi sphere."""
    if n_q <= 0.0:
        return 0.0, 0.0
    kF2 = (3.0 * PI2 * n_q)**(2.0/3.0)
    return 0.6 * kF2 * n_q, kF2 / (2.0 * ms_q)


def _thermal_gas(n_q, ms_q, T):
    """T > 0: (τ_q, ν_q, s_q) of the quasiparticle gas."""
    if n_q <= 0.0:
        return 0.0, -np.inf, 0.0
    pre = G_NUCLEON / (4.0 * PI2)
    base = 2.0 * ms_q * T
    eta = invert_fermi_half(n_q / (pre * base**1.5))
    tau_q = pre * base**2.5 * fermi_dirac_integral(1.5, eta)
    nu_q = eta * T
    s_q = (5.0/3.0 * tau_q / (2.0 * ms_q) - nu_q * n_q) / T
    return tau_q, nu_q, s_q


# =============================================================================
# PUBLIC API
# =============================================================================
def skyrme_thermo(params: SkyrmeParams, n_n: float, n_p: float, T: float = 0.0,
                  m_n: float = m_neutron_fm, m_p: float = m_proton_fm) -> SkyrmeThermo:
    """
    Skyrme thermodynamics at (n_n, n_p, T).

    T = 0 gives the degenerate result (s = 0, f = ε). A species with zero
    density contributes no kinetic energy or entropy; at T > 0 its chemical
    potential is -inf.

    Raises:
        ValueError: negative densities, zero total density at finite T, or a
            non-positive effective mass at finite T
    """
    if n_n < 0 or n_p < 0:
        raise ValueError(f"Densities must be non-negative, got n_n={n_n}, n_p={n_p}")
    if n_n + n_p <= 0:
        raise ValueError("Total density must be positive")

    ms_n, ms_p = effective_masses(params, n_n, n_p, m_n, m_p)

    if T <= 0.0:
        tau_n, nu_n = _fermi_sea(n_n, ms_n)
        tau_p, nu_p = _fermi_sea(n_p, ms_p)
        s = 0.0
    else:
        if (n_n > 0 and ms_n <= 0) or (n_p > 0 and ms_p <= 0):
            raise ValueError(f"Non-positive effective mass at n_n={n_n}, n_p={n_p}")
        tau_n, nu_n, s_n = _thermal_gas(n_n, ms_n, T)
        tau_p, nu_p, s_p = _thermal_gas(n_p, ms_p, T)
        s = s_n + s_p

    ed = _energy_density(params, n_n, n_p, tau_n, tau_p, m_n, m_p)
    U_n, U_p = _single_particle_potentials(params, n_n, n_p, tau_n, tau_p)
    mu_n = nu_n + U_n
    mu_p = nu_p + U_p
    f = ed - T * s

    pr = -f
    if n_n > 0:
        pr += n_n * mu_n
    if n_p > 0:
        pr += n_p * mu_p

    return SkyrmeThermo(n_n=n_n, n_p=n_p, T=T, ed=ed, f=f, pr=pr, s=s,
                        mu_n=mu_n, mu_p=mu_p, ms_n=ms_n, ms_p=ms_p,
                        tau_n=tau_n, tau_p=tau_p)


# =============================================================================
# NUCLEAR MATTER PROPERTIES
# =============================================================================
@dataclass
class SaturationProperties:
    """Bulk properties (ρ0 in fm⁻³, energies in MeV)."""
    rho0: float
    EoA: float
    K: float
    S: float
    L: float
    Ms_star: float


def saturation_properties(params: SkyrmeParams, m: float = None,
                          rho_guess: float = 0.16) -> SaturationProperties:
    """
    Saturation point, incompressibility and symmetry energy of a parameter
    set, by numerical differentiation of the T = 0 functional with equal
    nucleon masses m (fm⁻¹; default the average nucleon mass).
    """
    if m is None:
        m = 0.5 * (m_neutron_fm + m_proton_fm)

    def eoa(rho, delta=0.0):
        n_n = 0.5 * rho * (1.0 + delta)
        n_p = 0.5 * rho * (1.0 - delta)
        return skyrme_thermo(params, n_n, n_p, 0.0, m, m).ed / rho

    step = 1e-3 * rho_guess
    deoa = Derivative(eoa, n=1, step=step)
    rho0 = brentq(lambda r: deoa(r), 0.5 * rho_guess, 1.5 * rho_guess, xtol=1e-12)

    K = 9.0 * rho0**2 * Derivative(eoa, n=2, step=step)(rho0)

    def esym(rho):
        return 0.5 * Derivative(lambda d: eoa(rho, d), n=2, step=1e-2)(0.0)

    S = esym(rho0)
    L = 3.0 * rho0 * Derivative(esym, n=1, step=step)(rho0)

    ms_n, _ = effective_masses(params, 0.5 * rho0, 0.5 * rho0, m, m)
    return SaturationProperties(rho0=rho0, EoA=eoa(rho0) * hc, K=K * hc,
                                S=S * hc, L=L * hc, Ms_star=ms_n / m)


# =============================================================================
# SELF-TEST
# =============================================================================
if __name__ == "__main__":
    from skyrme_parameters import get_skyrme_chiral

    sk = get_skyrme_chiral()
    print("Chiral Skyrme set")
    print("=" * 70)
    for nb in [0.05, 0.16, 0.32]:
        for T_MeV in [0.0, 10.0]:
            r = skyrme_thermo(sk, 0.5 * nb, 0.5 * nb, T_MeV / hc)
            print(f"nb={nb:5.2f} T={T_MeV:5.1f}: f/nb={r.f/nb*hc:10.4f} MeV  "
                  f"mu_n={r.mu_n*hc:10.4f} MeV  s/nb={r.s/nb:.4f}  "
                  f"m*/m={r.ms_n/m_neutron_fm:.4f}")
