"""
general_particles.py
====================
Particle species entering the combined nuclear EOS.

Only the species the EOS reads from here are defined: the neutron, whose
spin degeneracy the virial and Skyrme parts share for both nucleons,
electrons and muons (relativistic pairs with antiparticles) and photons
(massless bosons).

Conventions:
- Baryon number (B): +1 for nucleons, 0 otherwise
- Charge (Q): electric charge in units of e
- Lepton number (L): +1 for leptons

Masses in MeV (PDG 2022); `mass_fm` gives the same mass in fm⁻¹, the unit
used inside the hadronic EOS.
"""
from dataclasses import dataclass

from general_physics_constants import (
    hc, m_neutron, m_electron, m_muon
)


@dataclass(frozen=True)
class Particle:
    """
    Immutable particle definition.

    Attributes:
        name: Identifier (e.g. "n", "p", "e-")
        spin: Spin quantum number J (in units of ℏ)
        g_degen: Spin degeneracy factor (2J + 1); 2 for photons
        mass: Rest mass in MeV
        charge: Electric charge Q in units of e
        baryon_no: Baryon number B
        lepton_no: Lepton number L
    """
    name: str
    spin: float
    g_degen: float
    mass: float = 0.0
    charge: float = 0.0
    baryon_no: float = 0.0
    lepton_no: float = 0.0

    @property
    def mass_fm(self) -> float:
        """Rest mass in fm⁻¹."""
        return self.mass / hc

    def __str__(self) -> str:
        return (f"{self.name} (m={self.mass:.4f} MeV, Q={self.charge:+.0f}, "
                f"B={self.baryon_no:.0f}, L={self.lepton_no:.0f}, g={self.g_degen:.0f})")


# =============================================================================
# NUCLEON
# =============================================================================
Neutron = Particle(name="n", spin=0.5, g_degen=2.0, mass=m_neutron,
                   charge=0.0, baryon_no=1.0)


# =============================================================================
# LEPTONS
# =============================================================================
Electron = Particle(name="e-", spin=0.5, g_degen=2.0, mass=m_electron,
                    charge=-1.0, lepton_no=1.0)

Muon = Particle(name="mu-", spin=0.5, g_degen=2.0, mass=m_muon,
                charge=-1.0, lepton_no=1.0)


# =============================================================================
# PHOTON
# =============================================================================
Photon = Particle(name="gamma", spin=1.0, g_degen=2.0)


# =============================================================================
# SELF-TEST
# =============================================================================
if __name__ == "__main__":
    for p in (Neutron, Electron, Muon, Photon):
        print(f"{p}  mass={p.mass_fm:.8f} fm^-1")
