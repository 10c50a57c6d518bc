"""
general_fermi_integrals.py
========================
Fermi-Dirac integrals for the lepton and nucleon gases of the EOS.

Two families are provided:
    1. Relativistic particle/antiparticle pairs (electrons, muons) with the
       JEL rational approximation (Johns, Ellis, Lattimer 1996), ~10⁻⁴
       accuracy, plus the exact T=0 limit.
    2. Nonrelativistic complete Fermi-Dirac integrals
           F_j(η) = ∫₀^∞ x^j / (1 + exp(x - η)) dx
       used by the finite-temperature Skyrme functional (j = 1/2, 3/2),
       with the inversion η(F_{1/2}).

Reference:
    Johns, Ellis & Lattimer, ApJ 473, 1020 (1996)

Units (relativistic part): μ, T, m in MeV
Returns: n (fm⁻³), P (MeV/fm³), e (MeV/fm³), s (fm⁻³)
"""
import math

import numpy as np
from numba import njit
from scipy.optimize import brentq

from general_physics_constants import hc, hc3, PI2

# =============================================================================
# JEL APPROXIMATION PARAMETERS (Table 9 of JEL 1996)
# =============================================================================
# Fermion parameters (M=3, N=3)
aJEL = 0.433
MJEL = 3
NJEL = 3

pmn = np.array([
    [5.34689, 18.0517, 21.3422, 8.53240],
    [16.8441, 55.7051, 63.6901, 24.6213],
    [17.4708, 56.3902, 62.1319, 23.2602],
    [6.07364, 18.9992, 20.0285, 7.11153]
], dtype=np.float64)

# Lookup table ψ(f) used for the initial guess of the Newton iteration
_f_grid = np.logspace(-7, 8, 10000)
_sqrt_term = np.sqrt(1 + _f_grid / aJEL)
_psi_grid = 2 * _sqrt_term + np.log((_sqrt_term - 1) / (_sqrt_term + 1))

# =============================================================================
# NONRELATIVISTIC FERMI INTEGRAL SETTINGS
# =============================================================================
ETA_SERIES_MAX = -2.0       # below: alternating exponential series
ETA_SOMMERFELD_MIN = 40.0   # above: Sommerfeld asymptotic expansion
N_SERIES_TERMS = 40
X_CUTOFF = 50.0             # integrate up to x = max(η, 0) + X_CUTOFF

_LEG_ORDER = 96
_LEG_NODES, _LEG_WEIGHTS = np.polynomial.legendre.leggauss(_LEG_ORDER)

# 2 (1 - 2^{1-2k}) ζ(2k), k = 1..4
_SOMMERFELD_COEFFS = np.array([
    PI2 / 6.0,
    2.0 * (1.0 - 2.0**-3) * PI2**2 / 90.0,
    2.0 * (1.0 - 2.0**-5) * PI2**3 / 945.0,
    2.0 * (1.0 - 2.0**-7) * PI2**4 / 9450.0,
])


# =============================================================================
# JEL CORE FUNCTIONS
# =============================================================================
@njit(fastmath=True, cache=True)
def _psi_of_f(f):
    """ψ(f) = 2√(1+f/a) + ln[(√(1+f/a)-1)/(√(1+f/a)+1)], the map f → (μ-m)/T."""
    if f < 1e-5:
        if f <= 0.0:
            return -10000.0
        return 2.0 + np.log(f / (4.0 * aJEL))
    sq = np.sqrt(1.0 + f / aJEL)
    return 2.0 * sq + np.log((sq - 1.0) / (sq + 1.0))


@njit(fastmath=True, cache=True)
def _dpsi_df(f):
    if f < 1e-5:
        return 1.0 / f
    sq = np.sqrt(1.0 + f / aJEL)
    return (f + aJEL) / (f * aJEL * sq)


@njit(fastmath=True, cache=True)
def _find_f_jel(mu, T, m, psi_grid, f_grid):
    """
    Solve ψ(f) = (μ-m)/T for the JEL parameter f.

    Table interpolation gives the start value, Newton steps refine it.
    Returns (f, |ψ(f) - ψ_target|).
    """
    psi_target = (mu - m) / T

    if psi_target < -14.66737:
        if psi_target < -700:
            f_curr = 1e-300
        else:
            f_curr = 4.0 * aJEL * np.exp(psi_target - 2.0)
    else:
        f_curr = np.interp(psi_target, psi_grid, f_grid)

    err = 1.0
    for _ in range(50):
        if f_curr < 1e-300:
            f_curr = 0.0
            break
        diff = _psi_of_f(f_curr) - psi_target
        err = np.abs(diff)
        if err < 1e-12:
            break
        deriv = _dpsi_df(f_curr)
        if deriv == 0:
            break
        f_next = f_curr - diff / deriv
        if f_next <= 0:
            f_next = f_curr * 0.1
        f_curr = f_next

    return f_curr, err


@njit(fastmath=True, cache=True)
def _jel_single(f_val, T, m, g):
    """(n, P, ε) of one species (no antiparticles), JEL Eqs. 21-24."""
    if f_val <= 1e-300:
        return 0.0, 0.0, 0.0

    g_val = np.sqrt(1.0 + f_val) * T / m
    f1 = 1.0 + f_val
    g1 = 1.0 + g_val

    f_pow = np.ones(MJEL + 1)
    g_pow = np.ones(NJEL + 1)
    for i in range(1, MJEL + 1):
        f_pow[i] = f_pow[i-1] * f_val
    for j in range(1, NJEL + 1):
        g_pow[j] = g_pow[j-1] * g_val

    sum_n, sum_P, sum_e = 0.0, 0.0, 0.0
    r_f = f_val / f1
    r_fg = (f_val * g_val) / (f1 * g1)
    r_g = g_val / g1

    for i in range(MJEL + 1):
        for j in range(NJEL + 1):
            base = pmn[i, j] * f_pow[i] * g_pow[j]
            sum_P += base
            sum_n += base * (1.0 + i + (0.25 + 0.5*j - MJEL) * r_f
                             + (0.75 - 0.5*NJEL) * r_fg)
            sum_e += base * (1.5 + j + (1.5 - NJEL) * r_g)

    pre = g / (2.0 * PI2 * hc3)
    denom = f1**(MJEL + 1) * g1**NJEL
    denom_n = f1**(MJEL + 0.5) * g1**NJEL * np.sqrt(1.0 + f_val / aJEL)

    n_res = pre * m**3 * f_val * g_val**1.5 * g1**1.5 / denom_n * sum_n
    P_res = pre * m**4 * f_val * g_val**2.5 * g1**1.5 / denom * sum_P
    e_kin = pre * m**4 * f_val * g_val**2.5 * g1**1.5 / denom * sum_e
    return n_res, P_res, n_res * m + e_kin


@njit(fastmath=True, cache=True)
def _pair_T0(mu, m, g):
    """Degenerate (T=0) pair gas: only one of particle/antiparticle survives."""
    mu_abs = np.abs(mu)
    if mu_abs <= m:
        return 0.0, 0.0, 0.0, 0.0

    kF = np.sqrt(mu_abs**2 - m**2)
    log_term = np.log((kF + mu_abs) / m)

    n_val = np.sign(mu) * g * kF**3 / (6.0 * PI2 * hc3)
    P_val = (g / (48.0 * PI2 * hc3)) * ((2.0 * kF**3 - 3.0 * m**2 * kF) * mu_abs
                                        + 3.0 * m**4 * log_term)
    e_val = (g / (16.0 * PI2 * hc3)) * ((2.0 * kF**3 + m**2 * kF) * mu_abs
                                        - m**4 * log_term)
    return n_val, P_val, e_val, 0.0


@njit(fastmath=True, cache=True)
def _pair_thermo(mu, T, m, g, psi_grid, f_grid):
    if T < 1.0e-4:
        return _pair_T0(mu, m, g)

    f_part, _ = _find_f_jel(mu, T, m, psi_grid, f_grid)
    f_anti, _ = _find_f_jel(-mu, T, m, psi_grid, f_grid)
    n_p, P_p, e_p = _jel_single(f_part, T, m, g)
    n_a, P_a, e_a = _jel_single(f_anti, T, m, g)

    n_net = n_p - n_a
    P_tot = P_p + P_a
    e_tot = e_p + e_a
    s_tot = (P_tot + e_tot - mu * n_net) / T
    return n_net, P_tot, e_tot, s_tot


# =============================================================================
# PUBLIC API: RELATIVISTIC PAIRS
# =============================================================================
def pair_gas_thermo(mu: float, T: float, m: float, g: float):
    """
    Particle + antiparticle Fermi gas at chemical potential μ.

    Parameters:
        mu: Chemical potential including rest mass (MeV)
        T: Temperature (MeV)
        m: Particle mass (MeV)
        g: Degeneracy factor

    Returns:
        (n, P, e, s): net number density (fm⁻³), pressure (MeV/fm³),
        energy density including rest mass (MeV/fm³), entropy density (fm⁻³)
    """
    return _pair_thermo(float(mu), float(T), float(m), float(g),
                        _psi_grid, _f_grid)


def invert_pair_density(n_target: float, T: float, m: float, g: float,
                        tol: float = 1e-12) -> float:
    """
    Chemical potential μ (MeV) of the pair gas with net density n_target.

    The net density is monotonic in μ, so the root is bracketed by
    expanding an interval around the T=0 estimate and refined with Brent's
    method.
    """
    def residual(mu):
        return pair_gas_thermo(mu, T, m, g)[0] - n_target

    if n_target == 0.0:
        return 0.0

    kF = hc * (6.0 * PI2 * abs(n_target) / g)**(1.0/3.0)
    mu_est = np.sqrt(kF**2 + m**2)
    width = mu_est + 10.0 * T

    if n_target > 0:
        lo, hi = 0.0, width
        while residual(hi) < 0:
            hi *= 2.0
    else:
        lo, hi = -width, 0.0
        while residual(lo) > 0:
            lo *= 2.0

    return brentq(residual, lo, hi, xtol=tol * max(1.0, T), rtol=1e-14, maxiter=200)


# =============================================================================
# NONRELATIVISTIC FERMI-DIRAC INTEGRALS
# =============================================================================
@njit(cache=True)
def _fd_series(j, eta):
    total = 0.0
    sign = 1.0
    for k in range(1, N_SERIES_TERMS + 1):
        total += sign * math.exp(k * eta) / k**(j + 1.0)
        sign = -sign
    return math.gamma(j + 1.0) * total


@njit(cache=True)
def _fd_sommerfeld(j, eta, coeffs):
    total = eta**(j + 1.0) / (j + 1.0)
    gj = math.gamma(j + 1.0)
    for k in range(1, coeffs.shape[0] + 1):
        total += coeffs[k-1] * gj / math.gamma(j + 2.0 - 2.0*k) * eta**(j + 1.0 - 2.0*k)
    return total


@njit(cache=True)
def _fd_panel(p, eta, lo, hi, nodes, weights):
    if hi <= lo:
        return 0.0
    half = 0.5 * (hi - lo)
    mid = 0.5 * (hi + lo)
    total = 0.0
    for i in range(nodes.shape[0]):
        t = mid + half * nodes[i]
        arg = t * t - eta
        if arg < 700.0:
            total += weights[i] * 2.0 * t**p / (1.0 + math.exp(arg))
    return half * total


@njit(cache=True)
def _fd_quadrature(j, eta, nodes, weights):
    """Gauss-Legendre in t = √x, split at the Fermi point t = √max(η, 0)."""
    eta_pos = max(eta, 0.0)
    t_split = math.sqrt(eta_pos)
    t_max = math.sqrt(eta_pos + X_CUTOFF)
    p = 2.0 * j + 1.0
    return (_fd_panel(p, eta, 0.0, t_split, nodes, weights)
            + _fd_panel(p, eta, t_split, t_max, nodes, weights))


def fermi_dirac_integral(j: float, eta: float) -> float:
    """
    Complete Fermi-Dirac integral F_j(η) = ∫₀^∞ x^j/(1+e^{x-η}) dx, j > -1.

    Not normalised by Γ(j+1). Exponential series for η < -2, Sommerfeld
    expansion for η > 40, split Gauss-Legendre quadrature in between.
    """
    j = float(j)
    eta = float(eta)
    if j <= -1.0:
        raise ValueError(f"Fermi-Dirac integral requires j > -1, got {j}")
    if eta < ETA_SERIES_MAX:
        return _fd_series(j, eta)
    if eta > ETA_SOMMERFELD_MIN:
        return _fd_sommerfeld(j, eta, _SOMMERFELD_COEFFS)
    return _fd_quadrature(j, eta, _LEG_NODES, _LEG_WEIGHTS)


def invert_fermi_half(y: float, xtol: float = 1e-13) -> float:
    """
    Degeneracy parameter η with F_{1/2}(η) = y (y > 0).

    Bracket from F_j(η) ≤ Γ(j+1) e^η and F_{1/2}(η) ≥ (2/3) η^{3/2}.
    """
    if not y > 0.0:
        raise ValueError(f"F_1/2 inversion requires a positive value, got {y}")

    gamma_32 = math.gamma(1.5)
    lo = math.log(y / gamma_32) - 1.0
    hi = max((1.5 * y)**(2.0/3.0) + 1.0, lo + 2.0)

    return brentq(lambda eta: fermi_dirac_integral(0.5, eta) - y,
                  lo, hi, xtol=xtol, rtol=1e-14, maxiter=200)


# =============================================================================
# SELF-TEST
# =============================================================================
if __name__ == "__main__":
    print("Nonrelativistic Fermi-Dirac integrals")
    print("=" * 60)
    print(f"{'eta':>8} {'F_1/2':>16} {'F_3/2':>16} {'eta(F_1/2)':>14}")
    for eta in [-20.0, -2.5, -1.5, 0.0, 5.0, 39.0, 41.0, 100.0]:
        f12 = fermi_dirac_integral(0.5, eta)
        f32 = fermi_dirac_integral(1.5, eta)
        print(f"{eta:8.2f} {f12:16.8e} {f32:16.8e} {invert_fermi_half(f12):14.8f}")

    print("\nElectron pair gas (JEL)")
    print("=" * 60)
    for mu_e, T in [(10.0, 1.0), (100.0, 10.0), (1.0, 30.0)]:
        n, P, e, s = pair_gas_thermo(mu_e, T, 0.51099895, 2.0)
        print(f"mu={mu_e:6.1f} T={T:5.1f}: n={n:.6e} P={P:.6e} e={e:.6e} s={s:.6e}")
        print(f"   inverted mu = {invert_pair_density(n, T, 0.51099895, 2.0):.8f}")
