"""
general_physics_constants.py
============================
Physical constants shared by the combined virial/Skyrme/QMC equation of
state.

Two unit systems coexist in this code base:
- MeV for energy/mass and fm for length (lepton and photon modules, output)
- pure fm⁻¹ powers (T, μ, m in fm⁻¹; energy densities in fm⁻⁴) inside the
  hadronic EOS engine, with ℏc as the only conversion factor

Values from Particle Data Group (PDG) compilation.
"""
import numpy as np

# =============================================================================
# FUNDAMENTAL CONSTANTS (PDG values)
# =============================================================================
hc = 197.3269804              # MeV·fm (ℏc)
hc3 = hc**3                   # (MeV·fm)³

# =============================================================================
# PARTICLE MASSES (PDG values, MeV/c²)
# =============================================================================
m_neutron = 939.56542052
m_proton = 938.27208816
m_electron = 0.51099895000
m_muon = 105.6583745
m_nucleon = (m_neutron + m_proton) / 2.0

# Engine units (fm⁻¹)
m_neutron_fm = m_neutron / hc
m_proton_fm = m_proton / hc

# Rest mass in the sound speed of the neutron-star fit
m_ref_cs2 = 939.565           # MeV

# =============================================================================
# NUCLEAR INPUTS
# =============================================================================
n0_default = 0.16             # fm⁻³, QMC reference density and h-switch scale
E_deuteron = 2.224            # MeV, removed from the neutron-proton virial data

# =============================================================================
# MATHEMATICAL CONSTANTS
# =============================================================================
PI = np.pi
PI2 = PI**2
SQRT2 = np.sqrt(2.0)


# =============================================================================
# SELF-TEST
# =============================================================================
if __name__ == "__main__":
    print("Physical Constants Module (PDG values)")
    print("=" * 50)
    print(f"ℏc = {hc:.7f} MeV·fm")
    print()
    print("Particle masses:")
    print(f"  m_n = {m_neutron:.8f} MeV = {m_neutron_fm:.8f} fm⁻¹")
    print(f"  m_p = {m_proton:.8f} MeV = {m_proton_fm:.8f} fm⁻¹")
    print(f"  m_e = {m_electron:.11f} MeV")
    print(f"  m_μ = {m_muon:.7f} MeV")
    print()
    print(f"n0 = {n0_default} fm⁻³, E_d = {E_deuteron} MeV")
