"""
virial_coefficients.py
======================
Second virial coefficients b_n(T) (neutron-neutron) and b_pn(T)
(neutron-proton, deuteron pole removed) as smooth fit functions of T.

    b_n(T)  = p0 + p1 T + p2 T² + p3 T³ + p4 exp(-p5 (T-p6)²)
              + p7 exp(-p8 (T-p9))
    b_pn(T) = q0 exp(-q1 (T+q2)²) + q3 exp(-q4 (T+q5))

The parameters are calibrated against the phase-shift results of
Horowitz & Schwenk, Nucl. Phys. A 776, 55 (2006) / Phys. Lett. B 638, 153
(2006), with anchors at T = 150 MeV forcing the free-Fermi-gas value
b_n = -2^{-5/2} and b_pn = 0.

Units: T in MeV; coefficients are dimensionless.
"""
import warnings
from dataclasses import dataclass, field, replace
from typing import Tuple

import numpy as np
from scipy.optimize import curve_fit

from general_physics_constants import E_deuteron, SQRT2


# =============================================================================
# CALIBRATION DATA (Horowitz & Schwenk)
# =============================================================================
T_NEUTRON_DATA = np.array([
    0.1, 0.5, 1.0, 2.0, 3.0, 4.0, 5.0, 6.0, 7.0, 8.0, 9.0, 10.0, 12.0,
    14.0, 16.0, 18.0, 20.0, 22.0, 24.0, 25.0, 30.0, 35.0, 40.0, 45.0, 50.0,
    150.0
])
BN_DATA = np.array([
    0.207, 0.272, 0.288, 0.303, 0.306, 0.306, 0.306, 0.306, 0.307, 0.307,
    0.308, 0.309, 0.310, 0.313, 0.315, 0.318, 0.320, 0.322, 0.324, 0.325,
    0.329, 0.330, 0.330, 0.328, 0.324, -2.0**-2.5
])

T_NUCLEON_DATA = np.array([
    0.1, 1.0, 2.0, 3.0, 4.0, 5.0, 6.0, 7.0, 8.0, 9.0, 10.0, 12.0, 14.0,
    16.0, 18.0, 20.0, 150.0
])
# T = 0.1 MeV from the effective range expansion, last point anchors b_pn → 0
BPN_RAW_DATA = np.array([
    2.046, 19.4, 6.1, 4.018, 3.19, 2.74, 2.46, 2.26, 2.11, 2.00, 1.91,
    1.76, 1.66, 1.57, 1.51, 1.45, 0.0
])
BPN_ANCHOR_ERROR = 0.04


def bpn_data_without_deuteron() -> np.ndarray:
    """b_pn data with the deuteron bound-state term 3/√2 (e^{E_d/T} - 1) removed."""
    data = BPN_RAW_DATA.copy()
    T = T_NUCLEON_DATA[1:16]
    data[1:16] -= 3.0 / SQRT2 * (np.exp(E_deuteron / T) - 1.0)
    return data


# =============================================================================
# FIT FUNCTIONS
# =============================================================================
def bn_func(T, p0, p1, p2, p3, p4, p5, p6, p7, p8, p9):
    return (p0 + p1*T + p2*T**2 + p3*T**3 + p4*np.exp(-p5*(T - p6)**2)
            + p7*np.exp(-p8*(T - p9)))


def bpn_func(T, q0, q1, q2, q3, q4, q5):
    return q0*np.exp(-q1*(T + q2)**2) + q3*np.exp(-q4*(T + q5))


# =============================================================================
# PARAMETER SET
# =============================================================================
_BN_DEFAULT = (
    2.874487202922e-01, 2.200575070883e-03, -2.621025627694e-05,
    -6.061665959200e-08, 1.059451872186e-02, 5.673374476876e-02,
    3.492489364849e+00, -2.710552654167e-03, 3.140521199464e+00,
    1.200987113605e+00,
)
_BPN_DEFAULT = (
    1.527316309589e+00, 1.748834077357e-04, 1.754991542102e+01,
    4.510380054238e-01, 2.751333759925e-01, -1.125035495140e+00,
)


@dataclass(frozen=True)
class VirialCoefficients:
    """
    Immutable parameter set of the virial coefficient fits.

    Attributes:
        bn_params: 10 parameters of b_n(T)
        bpn_params: 6 parameters of b_pn(T)
    """
    bn_params: Tuple[float, ...] = field(default=_BN_DEFAULT)
    bpn_params: Tuple[float, ...] = field(default=_BPN_DEFAULT)

    def __post_init__(self):
        if len(self.bn_params) != 10:
            raise ValueError(f"b_n needs 10 parameters, got {len(self.bn_params)}")
        if len(self.bpn_params) != 6:
            raise ValueError(f"b_pn needs 6 parameters, got {len(self.bpn_params)}")

    def bn(self, T):
        """Neutron-neutron virial coefficient at T (MeV)."""
        return bn_func(T, *self.bn_params)

    def bpn(self, T):
        """Neutron-proton virial coefficient (deuteron removed) at T (MeV)."""
        return bpn_func(T, *self.bpn_params)

    def dbn_dT(self, T):
        p = self.bn_params
        return (p[1] + 2.0*p[2]*T + 3.0*p[3]*T**2
                - 2.0*p[4]*p[5]*(T - p[6])*np.exp(-p[5]*(T - p[6])**2)
                - p[7]*p[8]*np.exp(-p[8]*(T - p[9])))

    def dbpn_dT(self, T):
        q = self.bpn_params
        return (-2.0*q[0]*q[1]*(q[2] + T)*np.exp(-q[1]*(T + q[2])**2)
                - q[3]*q[4]*np.exp(-q[4]*(T + q[5])))


def get_virial_default() -> VirialCoefficients:
    """Calibrated default parameter set."""
    return VirialCoefficients()


# =============================================================================
# CALIBRATION
# =============================================================================
@dataclass
class VirialFitResult:
    """
    Outcome of a recalibration.

    `coeffs` always holds a usable parameter set: a coefficient whose fit
    failed keeps its previous parameters and has converged=False.
    """
    coeffs: VirialCoefficients
    chi2_bn: float = np.nan
    chi2_bpn: float = np.nan
    converged_bn: bool = False
    converged_bpn: bool = False

    @property
    def converged(self) -> bool:
        return self.converged_bn and self.converged_bpn


def _weighted_fit(func, T, data, sigma, p_start, label):
    """curve_fit wrapper returning (params, chi², converged)."""
    p_start = np.asarray(p_start, dtype=float)
    try:
        popt, _ = curve_fit(func, T, data, p0=p_start, sigma=sigma,
                            absolute_sigma=True, maxfev=20000)
    except RuntimeError as exc:
        warnings.warn(f"{label} virial fit failed ({exc}); keeping previous parameters",
                      RuntimeWarning)
        popt = None

    if popt is not None and not np.all(np.isfinite(popt)):
        warnings.warn(f"{label} virial fit returned non-finite parameters; "
                      f"keeping previous parameters", RuntimeWarning)
        popt = None

    converged = popt is not None
    params = popt if converged else p_start
    chi2 = float(np.sum(((func(T, *params) - data) / sigma)**2))
    return tuple(float(x) for x in params), chi2, converged


def fit_virial_coefficients(coeffs: VirialCoefficients = None,
                            show_fit: bool = False) -> VirialFitResult:
    """
    Refit b_n and b_pn to the calibration data by weighted least squares,
    starting from `coeffs` (default: the calibrated set).

    Returns a new parameter set; the input object is not modified.
    """
    if coeffs is None:
        coeffs = get_virial_default()

    bn_err = np.abs(BN_DATA) / 100.0
    bpn_data = bpn_data_without_deuteron()
    bpn_err = np.abs(bpn_data) / 100.0
    bpn_err[-1] = BPN_ANCHOR_ERROR

    bn_params, chi2_bn, ok_bn = _weighted_fit(
        bn_func, T_NEUTRON_DATA, BN_DATA, bn_err, coeffs.bn_params, "Neutron")
    bpn_params, chi2_bpn, ok_bpn = _weighted_fit(
        bpn_func, T_NUCLEON_DATA, bpn_data, bpn_err, coeffs.bpn_params,
        "Neutron-proton")

    new = replace(coeffs, bn_params=bn_params, bpn_params=bpn_params)

    if show_fit:
        print("Neutron virial coefficient")
        print(f"  chi2 = {chi2_bn:.6e}")
        for i, p in enumerate(bn_params):
            print(f"  bn_params[{i}] = {p:.12e}")
        print(f"  {'T':>8} {'b_n':>10} {'err':>10} {'fit':>10}")
        for T, b, e in zip(T_NEUTRON_DATA, BN_DATA, bn_err):
            print(f"  {T:8.2f} {b:10.5f} {e:10.5f} {new.bn(T):10.5f}")
        print("Neutron-proton virial coefficient")
        print(f"  chi2 = {chi2_bpn:.6e}")
        for i, p in enumerate(bpn_params):
            print(f"  bpn_params[{i}] = {p:.12e}")
        print(f"  {'T':>8} {'b_pn':>10} {'err':>10} {'fit':>10}")
        for T, b, e in zip(T_NUCLEON_DATA, bpn_data, bpn_err):
            print(f"  {T:8.2f} {b:10.5f} {e:10.5f} {new.bpn(T):10.5f}")

    return VirialFitResult(coeffs=new, chi2_bn=chi2_bn, chi2_bpn=chi2_bpn,
                           converged_bn=ok_bn, converged_bpn=ok_bpn)


# =============================================================================
# SELF-TEST
# =============================================================================
if __name__ == "__main__":
    vc = get_virial_default()
    print("Virial coefficients (default parameters)")
    print("=" * 60)
    print(f"{'T (MeV)':>8} {'b_n':>12} {'db_n/dT':>12} {'b_pn':>12} {'db_pn/dT':>12}")
    for T in [0.5, 1.0, 5.0, 10.0, 20.0, 50.0, 150.0]:
        print(f"{T:8.2f} {vc.bn(T):12.6f} {vc.dbn_dT(T):12.6f} "
              f"{vc.bpn(T):12.6f} {vc.dbpn_dT(T):12.6f}")
    print(f"\n-2^(-5/2) = {-2.0**-2.5:.6f}")

    res = fit_virial_coefficients(vc, show_fit=True)
    print(f"\nconverged: {res.converged}")
