"""
general_thermodynamics_leptons.py
================================
Lepton and photon contributions to the supernova EOS.

This module provides thermodynamic quantities (n, P, ε, s) for:
- Photons (blackbody radiation) - analytic Stefan-Boltzmann
- Electron/positron pairs at fixed net density n_e = Y_e n_B
- Muon/antimuon pairs in chemical equilibrium with the electrons (μ_μ = μ_e)

and the per-baryon combination used by the tables (`compute_eg_point`).

All quantities in natural units:
- Energies/masses: MeV
- Lengths: fm
- Number density: fm⁻³
- Pressure/energy density: MeV/fm³ (energy densities include rest mass)
- Entropy density: fm⁻³
"""
from dataclasses import dataclass

from general_particles import Particle, Electron, Muon, Photon
from general_fermi_integrals import pair_gas_thermo, invert_pair_density
from general_physics_constants import hc3, PI2


ZETA3 = 1.2020569031595943  # Riemann zeta(3), photon number density


# =============================================================================
# DATA CLASSES
# =============================================================================
@dataclass
class ThermoResult:
    """
    Container for thermodynamic quantities.

    Attributes:
        n: Net number density (fm⁻³), particles minus antiparticles
        P: Pressure (MeV/fm³)
        e: Energy density (MeV/fm³)
        s: Entropy density (fm⁻³)
        mu: Chemical potential (MeV), set by the from-density functions
    """
    n: float
    P: float
    e: float
    s: float
    mu: float = 0.0

    def __repr__(self):
        return (f"ThermoResult(n={self.n:.4e}, P={self.P:.4e}, "
                f"e={self.e:.4e}, s={self.s:.4e}, mu={self.mu:.4e})")


@dataclass
class EGResult:
    """
    Electron + photon (+ muon) contribution at one (n_B, Y_e, T) point.

    F, E are per baryon (MeV), P in MeV/fm³, S per baryon (dimensionless).
    """
    F: float
    E: float
    P: float
    S: float
    mu_e: float
    electron: ThermoResult
    photon: ThermoResult
    muon: ThermoResult = None


# =============================================================================
# PHOTONS (Blackbody Radiation)
# =============================================================================
def photon_thermo(T: float) -> ThermoResult:
    """
    Blackbody photon gas (g = 2, μ = 0).

        P = (π²/45) T⁴/(ℏc)³,  ε = 3P,  s = 4P/T,  n = (2ζ(3)/π²) T³/(ℏc)³
    """
    if T <= 0:
        return ThermoResult(n=0.0, P=0.0, e=0.0, s=0.0)

    T3 = T**3
    g = Photon.g_degen
    P = g * (PI2 / 90.0) * T * T3 / hc3
    return ThermoResult(
        n=g * (ZETA3 / PI2) * T3 / hc3,
        P=P,
        e=3.0 * P,
        s=4.0 * P / T,
    )


# =============================================================================
# LEPTON PAIRS
# =============================================================================
def lepton_thermo(mu: float, T: float, particle: Particle) -> ThermoResult:
    """
    Particle/antiparticle pair gas of a massive lepton at chemical potential μ.

    n is the net density; P, e, s include both particles and antiparticles.
    """
    n, P, e, s = pair_gas_thermo(mu, T, particle.mass, particle.g_degen)
    return ThermoResult(n=n, P=P, e=e, s=s, mu=mu)


def electron_thermo(mu_e: float, T: float) -> ThermoResult:
    return lepton_thermo(mu_e, T, Electron)


def muon_thermo(mu_mu: float, T: float) -> ThermoResult:
    """Muon/antimuon pairs; appreciable only once μ_μ approaches m_μ."""
    return lepton_thermo(mu_mu, T, Muon)


def electron_thermo_from_density(n_e: float, T: float) -> ThermoResult:
    """
    Electron/positron pairs with prescribed net density n_e (fm⁻³).

    The chemical potential is found by bracketed root finding on the net
    density and stored in `result.mu`. Zero density gives an empty gas
    with μ_e = 0.
    """
    if n_e < 0:
        raise ValueError(f"Electron density must be non-negative, got {n_e}")
    if n_e == 0.0:
        return ThermoResult(n=0.0, P=0.0, e=0.0, s=0.0, mu=0.0)

    mu_e = invert_pair_density(n_e, T, Electron.mass, Electron.g_degen)
    return electron_thermo(mu_e, T)


# =============================================================================
# COMBINED ELECTRON + PHOTON (+ MUON) POINT
# =============================================================================
def compute_eg_point(n_B: float, Y_e: float, T: float,
                     include_muons: bool = False) -> EGResult:
    """
    Leptons and photons at baryon density n_B (fm⁻³), electron fraction
    Y_e and temperature T (MeV).

    Electrons carry n_e = Y_e n_B; muons, when included, share the electron
    chemical potential. Returns per-baryon F, E, S and the pressure.
    """
    if n_B <= 0:
        raise ValueError(f"Baryon density must be positive, got {n_B}")

    photon = photon_thermo(T)
    electron = electron_thermo_from_density(n_B * Y_e, T)

    E = (electron.e + photon.e) / n_B
    P = electron.P + photon.P
    S = (electron.s + photon.s) / n_B

    muon = None
    if include_muons:
        if Y_e == 0.0 or electron.mu == 0.0:
            muon = ThermoResult(n=0.0, P=0.0, e=0.0, s=0.0, mu=0.0)
        else:
            muon = muon_thermo(electron.mu, T)
        E += muon.e / n_B
        P += muon.P
        S += muon.s / n_B

    return EGResult(F=E - T * S, E=E, P=P, S=S, mu_e=electron.mu,
                    electron=electron, photon=photon, muon=muon)


# =============================================================================
# SELF-TEST AND VALIDATION
# =============================================================================
if __name__ == "__main__":
    print("Lepton and Photon Thermodynamics Module")
    print("=" * 70)

    T = 10.0

    res_gamma = photon_thermo(T)
    print(f"\n1. PHOTONS at T = {T} MeV")
    print(f"   n = {res_gamma.n:.6e} fm⁻³, P = {res_gamma.P:.6e} MeV/fm³")
    print(f"   ε/P = {res_gamma.e/res_gamma.P:.1f} (should be 3)")

    n_e = 0.05
    res_e = electron_thermo_from_density(n_e, T)
    print(f"\n2. ELECTRONS with n_e = {n_e} fm⁻³, T = {T} MeV")
    print(f"   μ_e = {res_e.mu:.6f} MeV, n = {res_e.n:.6e} fm⁻³")
    print(f"   P = {res_e.P:.6e} MeV/fm³, s = {res_e.s:.6e} fm⁻³")

    for muons in (False, True):
        eg = compute_eg_point(0.16, 0.3, T, include_muons=muons)
        print(f"\n3. e+γ point (muons={muons}): F={eg.F:.6f} E={eg.E:.6f} "
              f"P={eg.P:.6e} S={eg.S:.6f}")
