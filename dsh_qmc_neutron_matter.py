"""
dsh_qmc_neutron_matter.py
=========================
Quantum Monte Carlo parametrisation of the neutron-matter energy at T = 0:

    E/N(n) = a (n/n0)^α + b (n/n0)^β            (MeV)
    e_qmc(n) = E/N(n) · n / ħc                   (fm⁻⁴)

with n = n_n + n_p. The coefficients b and β are not free: they follow from
the symmetry energy S and its slope L at saturation,

    b = S + E_sat - a,    β = (L/3 - a α)/b

References:
- Gandolfi, Carlson & Reddy, PRC 85, 032801 (2012)
- Du, Steiner & Holt, PRC 99, 025803 (2019)
"""
from dataclasses import dataclass
from typing import Tuple

import numpy as np

from general_physics_constants import hc, n0_default


@dataclass(frozen=True)
class QMCParams:
    """
    QMC neutron-matter coefficients.

    Attributes:
        alpha, beta: Exponents
        a, b: Coefficients (MeV)
        n0: Reference density (fm⁻³)
    """
    alpha: float = 0.48
    beta: float = 3.45
    a: float = 12.7
    b: float = 2.12
    n0: float = n0_default


def get_qmc_default() -> QMCParams:
    return QMCParams()


def derive_qmc_coefficients(S: float, L: float, EoA: float, a: float,
                            alpha: float) -> Tuple[float, float]:
    """(b, β) from S, L and the saturation energy E/A (all MeV)."""
    b = S + EoA - a
    beta = (L / 3.0 - a * alpha) / b
    return b, beta


def energy_density_qmc(n_n, n_p, qmc: QMCParams):
    """QMC energy density without rest mass (fm⁻⁴)."""
    nb = n_n + n_p
    x = nb / qmc.n0
    return (qmc.a * np.power(x, qmc.alpha) + qmc.b * np.power(x, qmc.beta)) * nb / hc


def denergy_density_qmc_dn(n_n, n_p, qmc: QMCParams):
    """d e_qmc / d n_B (fm⁻¹)."""
    x = (n_n + n_p) / qmc.n0
    return (qmc.a * np.power(x, qmc.alpha) * (qmc.alpha + 1.0)
            + qmc.b * np.power(x, qmc.beta) * (qmc.beta + 1.0)) / hc


# =============================================================================
# SELF-TEST
# =============================================================================
if __name__ == "__main__":
    qmc = get_qmc_default()
    print("QMC neutron matter")
    print("=" * 50)
    for nb in [0.04, 0.08, 0.16, 0.32]:
        print(f"n={nb:5.2f}  E/N={energy_density_qmc(nb, 0.0, qmc)/nb*hc:8.3f} MeV  "
              f"de/dn={denergy_density_qmc_dn(nb, 0.0, qmc)*hc:8.3f} MeV")
    b, beta = derive_qmc_coefficients(32.0, 50.0, -16.0, 12.7, 0.48)
    print(f"\nS=32, L=50, E/A=-16: b={b:.3f} MeV, beta={beta:.3f}")
