"""
virial_gas.py
=============
Nonrelativistic neutron-proton gas with second-order virial corrections.

Given densities (n_n, n_p) and temperature T, solve the fugacity equations

    n_n = 2/λ³ (z_n + 2 z_n² b_n + 2 z_n z_p b_pn)
    n_p = 2/λ³ (z_p + 2 z_p² b_n + 2 z_n z_p b_pn)

with λ = sqrt(4π/((m_n+m_p) T)) and z_i = exp(μ_i/T), and return the free
energy density, pressure, entropy and the derivatives of the chemical
potentials with respect to n_n, n_p and T (implicit differentiation of the
density equations).

For very dilute matter (n_i λ³ ≤ 1e-5 for both species) the classical
Boltzmann gas is used.

Units: fm⁻¹ powers throughout (T, μ, m in fm⁻¹; f, P, e in fm⁻⁴;
s and n in fm⁻³). Chemical potentials exclude the rest mass.
"""
from dataclasses import dataclass

import numpy as np
from scipy.optimize import root

from general_physics_constants import hc, PI, m_neutron_fm, m_proton_fm
from virial_coefficients import VirialCoefficients, get_virial_default


DILUTE_LIMIT = 1.0e-5   # n λ³ below which the classical gas is used
FUGACITY_TOL = 1.0e-12


class VirialConvergenceError(RuntimeError):
    """The fugacity equations could not be solved."""


@dataclass
class VirialResult:
    """
    Virial gas at one (n_n, n_p, T) point.

    Derivatives: dmun_dnn = ∂μ_n/∂n_n at fixed (n_p, T), etc.
    """
    mu_n: float
    mu_p: float
    z_n: float
    z_p: float
    f: float
    P: float
    s: float
    e: float
    dmun_dnn: float
    dmun_dnp: float
    dmup_dnn: float
    dmup_dnp: float
    dmun_dT: float
    dmup_dT: float
    b_n: float
    b_pn: float
    lam: float
    dilute: bool


def thermal_wavelength(T: float, m_n: float = m_neutron_fm,
                       m_p: float = m_proton_fm) -> float:
    """λ = sqrt(4π/((m_n+m_p)T)) in fm."""
    return np.sqrt(4.0 * PI / ((m_n + m_p) * T))


def _solve_fugacity(n_n, n_p, T, lam3, b_n, b_pn):
    """Solve for x_i = μ_i/T with relative residuals; hybr, then lm."""
    A = 2.0 / lam3

    def residual(x):
        zn, zp = np.exp(x)
        return [A * (zn + 2.0*zn*zn*b_n + 2.0*zn*zp*b_pn) / n_n - 1.0,
                A * (zp + 2.0*zp*zp*b_n + 2.0*zn*zp*b_pn) / n_p - 1.0]

    x0 = np.log(np.array([n_n, n_p]) * lam3 / 2.0)

    sol = root(residual, x0, method='hybr', options={'xtol': FUGACITY_TOL})
    if not sol.success or np.max(np.abs(residual(sol.x))) > 1e-9:
        sol = root(residual, x0, method='lm',
                   options={'xtol': FUGACITY_TOL, 'ftol': FUGACITY_TOL})
    if not sol.success or np.max(np.abs(residual(sol.x))) > 1e-9:
        raise VirialConvergenceError(
            f"Virial fugacity solve failed at n_n={n_n:.6e}, n_p={n_p:.6e}, "
            f"T={T*hc:.4f} MeV: {sol.message}")
    return sol.x


def solve_virial_gas(n_n: float, n_p: float, T: float,
                     coeffs: VirialCoefficients = None,
                     m_n: float = m_neutron_fm, m_p: float = m_proton_fm,
                     verbose: int = 0) -> VirialResult:
    """
    Virial free energy and derivatives at (n_n, n_p, T).

    Parameters:
        n_n, n_p: Neutron and proton densities (fm⁻³), both > 0
        T: Temperature (fm⁻¹)
        coeffs: Virial coefficient parameters (T argument in MeV)
        m_n, m_p: Nucleon masses (fm⁻¹)
        verbose: 2 prints the virial coefficients

    Raises:
        ValueError: non-positive density or temperature
        VirialConvergenceError: the fugacity equations have no solution
    """
    if n_n <= 0 or n_p <= 0:
        raise ValueError(f"Virial gas requires positive densities, got "
                         f"n_n={n_n}, n_p={n_p}")
    if T <= 0:
        raise ValueError(f"Virial gas requires T > 0, got {T}")
    if coeffs is None:
        coeffs = get_virial_default()

    T_MeV = T * hc
    b_n = float(coeffs.bn(T_MeV))
    b_pn = float(coeffs.bpn(T_MeV))
    dbn = float(coeffs.dbn_dT(T_MeV)) * hc
    dbpn = float(coeffs.dbpn_dT(T_MeV)) * hc

    if verbose >= 2:
        print(f"bn= {b_n}")
        print(f"bpn= {b_pn}")

    lam = thermal_wavelength(T, m_n, m_p)
    lam3 = lam**3
    A = 2.0 / lam3
    dilute = n_n * lam3 <= DILUTE_LIMIT and n_p * lam3 <= DILUTE_LIMIT

    if dilute:
        mu_n = T * np.log(n_n * lam3 / 2.0)
        mu_p = T * np.log(n_p * lam3 / 2.0)
        zn, zp = np.exp(mu_n / T), np.exp(mu_p / T)
        P = T * A * (zn + zp)
        s = 2.5 * P / T - n_n * np.log(zn) - n_p * np.log(zp)

        dmun_dnn, dmun_dnp = T / n_n, 0.0
        dmup_dnn, dmup_dnp = 0.0, T / n_p
        dmun_dT = mu_n / T - 1.5
        dmup_dT = mu_p / T - 1.5
    else:
        x = _solve_fugacity(n_n, n_p, T, lam3, b_n, b_pn)
        mu_n, mu_p = T * x[0], T * x[1]
        zn, zp = np.exp(x)
        P = T * A * (zn + zp + (zn*zn + zp*zp) * b_n + 2.0*zn*zp*b_pn)
        s = (2.5 * P / T - n_n * np.log(zn) - n_p * np.log(zp)
             + T * A * ((zn*zn + zp*zp) * dbn + 2.0*zn*zp*dbpn))

        # Jacobian ∂(N_n, N_p)/∂(μ_n, μ_p) at fixed T
        jac = (A / T) * np.array([
            [zn + 4.0*b_n*zn*zn + 2.0*b_pn*zn*zp, 2.0*b_pn*zn*zp],
            [2.0*b_pn*zn*zp, zp + 4.0*b_n*zp*zp + 2.0*b_pn*zn*zp],
        ])

        # ∂N/∂T at fixed μ; dz/dT = -z μ/T²
        dzn = -zn * mu_n / T**2
        dzp = -zp * mu_p / T**2
        dNn_dT = 1.5 / T * n_n + A * ((1.0 + 4.0*b_n*zn + 2.0*b_pn*zp) * dzn
                                     + 2.0*b_pn*zn*dzp
                                     + 2.0*zn*zn*dbn + 2.0*zn*zp*dbpn)
        dNp_dT = 1.5 / T * n_p + A * ((1.0 + 4.0*b_n*zp + 2.0*b_pn*zn) * dzp
                                     + 2.0*b_pn*zp*dzn
                                     + 2.0*zp*zp*dbn + 2.0*zn*zp*dbpn)

        rhs = np.array([[1.0, 0.0, -dNn_dT],
                        [0.0, 1.0, -dNp_dT]])
        X = np.linalg.solve(jac, rhs)
        dmun_dnn, dmup_dnn = X[0, 0], X[1, 0]
        dmun_dnp, dmup_dnp = X[0, 1], X[1, 1]
        dmun_dT, dmup_dT = X[0, 2], X[1, 2]

    f = mu_n * n_n + mu_p * n_p - P

    return VirialResult(
        mu_n=mu_n, mu_p=mu_p, z_n=zn, z_p=zp,
        f=f, P=P, s=s, e=f + T * s,
        dmun_dnn=dmun_dnn, dmun_dnp=dmun_dnp,
        dmup_dnn=dmup_dnn, dmup_dnp=dmup_dnp,
        dmun_dT=dmun_dT, dmup_dT=dmup_dT,
        b_n=b_n, b_pn=b_pn, lam=lam, dilute=dilute,
    )


# =============================================================================
# SELF-TEST
# =============================================================================
if __name__ == "__main__":
    print("Virial gas")
    print("=" * 70)
    T = 5.0 / hc
    for nb in [1e-8, 1e-4, 1e-3, 1e-2, 0.05]:
        r = solve_virial_gas(0.5 * nb, 0.5 * nb, T)
        print(f"nb={nb:8.1e}  dilute={r.dilute!s:5}  mu_n={r.mu_n*hc:10.4f} MeV  "
              f"P={r.P*hc:.4e} MeV/fm³  s/nb={r.s/nb:.4f}  z_n={r.z_n:.4e}")
