"""
dsh_neutron_star_extension.py
=============================
Neutron-star matter energy at T = 0: a smooth fit to a tabulated
neutron-star EOS below n_max and a causal analytic extension above it.

Fit forms for E/A (MeV, relative to 939 MeV):
    old: p0 √n + p1 n + p2 n^{3/2} + p3 n² + p4 n³     (default)
    new: p0 n + p1 n² + p2 n³ + p3 n⁴ + p4 n⁵

n_max is lowered to the point where the fitted sound speed reaches the
speed of light. Above n_max the squared sound speed interpolates from its
value c_s,last at n_max towards φ at n = 2 fm⁻³, with three branches:

    increasing (φ > c_s,last):  c_s² = 1 - a1/(1 + a2 n^{a1})
    decreasing (φ < c_s,last):  c_s² = a1/(1 + a2 n^{a1})
    constant   (φ = c_s,last):  c_s² = c_s,last

The integration constants c1, c2 make the energy density and the chemical
potential continuous at n_max.

Units: n in fm⁻³, energy densities in fm⁻⁴, chemical potentials in fm⁻¹
(rest mass excluded).
"""
from dataclasses import dataclass
from typing import Tuple

import numpy as np
from scipy.optimize import curve_fit, root
from scipy.special import hyp2f1

from general_physics_constants import hc, m_ref_cs2, m_neutron_fm
from dsh_data_tables import NeutronStarTable


CS2_EQUAL_TOL = 1.0e-6      # |φ - c_s,last| below which the constant branch is used
N_MATCH_HIGH = 2.0          # density (fm⁻³) where c_s² reaches φ
FIT_EDGE = 1.0e-6
NS_FIT_P0 = (-6.102748e3, 3.053497e3, 4.662834e3, -8.371958e2, -5.228209e2)


class ExtensionMatchError(RuntimeError):
    """The high-density extension could not be matched to the fit."""


# =============================================================================
# FIT FUNCTIONS
# =============================================================================
def eoa_old(n, p0, p1, p2, p3, p4):
    sq = np.sqrt(n)
    return sq*p0 + n*p1 + n*sq*p2 + n*n*p3 + n**3*p4


def eoa_new(n, p0, p1, p2, p3, p4):
    return n*p0 + n**2*p1 + n**3*p2 + n**4*p3 + n**5*p4


@dataclass(frozen=True)
class NeutronStarFit:
    """
    Fitted neutron-star EOS.

    Attributes:
        params: Five fit coefficients (MeV)
        nb_max: Upper end of the fitted region after the causality cut (fm⁻³)
        old_form: Use the √n polynomial instead of the n^k one
        chi2: χ² of the fit
        row: Table row the fit came from (-1 if built by hand)
    """
    params: Tuple[float, ...]
    nb_max: float
    old_form: bool = True
    chi2: float = 0.0
    row: int = -1

    def eoa(self, n):
        """E/A in MeV."""
        func = eoa_old if self.old_form else eoa_new
        return func(n, *self.params)

    def ed(self, n):
        """Energy density without rest mass (fm⁻⁴)."""
        return self.eoa(n) * n / hc

    def mu(self, n):
        """d(ed)/dn (fm⁻¹)."""
        p = self.params
        if self.old_form:
            sq = np.sqrt(n)
            return (1.5*sq*p[0] + 2.0*n*p[1] + 2.5*n*sq*p[2]
                    + 3.0*n*n*p[3] + 4.0*n**3*p[4]) / hc
        return (2.0*n*p[0] + 3.0*n**2*p[1] + 4.0*n**3*p[2]
                + 5.0*n**4*p[3] + 6.0*n**5*p[4]) / hc

    def dmudn(self, n):
        p = self.params
        if self.old_form:
            sq = np.sqrt(n)
            return (0.75/sq*p[0] + 2.0*p[1] + 3.75*sq*p[2]
                    + 6.0*n*p[3] + 12.0*n*n*p[4]) / hc
        return (2.0*p[0] + 6.0*n*p[1] + 12.0*n**2*p[2]
                + 20.0*n**3*p[3] + 30.0*n**4*p[4]) / hc

    def cs2(self, n):
        """Squared sound speed of the fit."""
        return self.dmudn(n) * n / (self.mu(n) + m_ref_cs2 / hc)


def fit_neutron_star_row(table: NeutronStarTable, row: int, old_form: bool = True,
                         verbose: int = 0) -> NeutronStarFit:
    """
    Fit E/A of one table row and cut n_max at the causality limit.

    Raises:
        ValueError: row out of range or fewer than five usable points
    """
    if not 0 <= row < table.n_rows:
        raise ValueError(f"Neutron-star row {row} not in table with {table.n_rows} rows")

    nb_max = float(table.nb_max[row])
    grid = NeutronStarTable.density_grid(table.eoa.shape[1])

    nb_data, eoa_data = [], []
    for i, n in enumerate(grid):
        if n >= nb_max + FIT_EDGE:
            break
        value = table.eoa[row, i]
        if abs(value) > 1.0e-2:
            nb_data.append(n)
            eoa_data.append(value * hc)
    nb_data = np.array(nb_data)
    eoa_data = np.array(eoa_data)

    if nb_data.size < len(NS_FIT_P0):
        raise ValueError(f"Neutron-star row {row} has only {nb_data.size} usable points")

    sigma = np.abs(eoa_data) / 100.0
    func = eoa_old if old_form else eoa_new

    if verbose > 0:
        print(f"ns_fit row {row}: {nb_data.size} points, initial params {NS_FIT_P0}")

    popt, _ = curve_fit(func, nb_data, eoa_data, p0=NS_FIT_P0, sigma=sigma,
                        absolute_sigma=True, maxfev=20000)
    chi2 = float(np.sum(((func(nb_data, *popt) - eoa_data) / sigma)**2))

    fit = NeutronStarFit(params=tuple(float(x) for x in popt), nb_max=nb_max,
                         old_form=old_form, chi2=chi2, row=row)

    # Lower nb_max to the last crossing of c_s² = 1
    cs2 = fit.cs2(nb_data)
    nb_new = 0.0
    for j in range(nb_data.size - 1):
        if cs2[j] < 1.0 and cs2[j+1] > 1.0:
            nb_new = nb_data[j] + (nb_data[j+1] - nb_data[j]) * (1.0 - cs2[j]) / (cs2[j+1] - cs2[j])
    if nb_new > 0.01:
        fit = NeutronStarFit(params=fit.params, nb_max=float(nb_new),
                             old_form=old_form, chi2=chi2, row=row)

    if verbose > 0:
        for i, p in enumerate(fit.params):
            print(f"  ns_fit_parms[{i}] = {p:.6e}")
        print(f"  chi2: {chi2:.6e}, nb_max: {fit.nb_max:.6f}")

    return fit


def min_max_cs2(fit: NeutronStarFit) -> Tuple[float, float]:
    """Extremes of the fitted c_s² at n = 0.08 and n = 0.04, 0.06, ... < nb_max."""
    values = [fit.cs2(0.08)]
    n = 0.04
    while n < fit.nb_max:
        values.append(fit.cs2(n))
        n += 0.02
    return float(min(values)), float(max(values))


# =============================================================================
# HIGH-DENSITY EXTENSION
# =============================================================================
def _pfaff_hyperg(n, a1, a2):
    """₂F₁(1,1;1-1/a1; w/(1+w))/(1+w), w = n^{-a1}/a2."""
    w = n**(-a1) / a2
    return hyp2f1(1.0, 1.0, 1.0 - 1.0/a1, w / (1.0 + w)) / (1.0 + w)


@dataclass(frozen=True)
class HighDensityExtension:
    """
    Causal continuation of a NeutronStarFit above nb_max for a given φ.

    Attributes:
        branch: "increasing", "decreasing" or "constant"
        a1, a2: Sound-speed shape parameters (unused for "constant")
        c1, c2: Integration constants
        nb_max: Matching density (fm⁻³)
        cs_last: c_s² of the fit at nb_max
        phi: Target c_s² at n = 2 fm⁻³
        m: Mass subtracted from the energy density (fm⁻¹)
        e_last, p_last: Fit energy density and pressure at nb_max (fm⁻⁴)
    """
    branch: str
    a1: float
    a2: float
    c1: float
    c2: float
    nb_max: float
    cs_last: float
    phi: float
    m: float
    e_last: float
    p_last: float

    def energy(self, n) -> Tuple[float, float]:
        """(e, de/dn) above nb_max, rest mass excluded."""
        m, a1, a2, c1, c2 = self.m, self.a1, self.a2, self.c1, self.c2
        if self.branch == "increasing":
            e = -m*n + (a2*n*n/2.0 + n**(2.0 - a1)/(2.0 - a1))*c1 + c2
            dedn = -m + c1*(a2*n + n**(1.0 - a1))
        elif self.branch == "decreasing":
            e = c1*n*_pfaff_hyperg(n, a1, a2)/a2 + c2 - m*n
            dedn = -m + c1*n**a1/(1.0 + a2*n**a1)
        else:
            cs = self.cs_last
            E = self.e_last + m*self.nb_max
            Q = E + self.p_last
            x = n / self.nb_max
            e = -m*n + Q/(1.0 + cs)*x**(1.0 + cs) + (cs*E - self.p_last)/(1.0 + cs)
            dedn = -m + Q*x**cs/self.nb_max
        return e, dedn

    def cs2(self, n):
        if self.branch == "increasing":
            return 1.0 - self.a1/(1.0 + self.a2*n**self.a1)
        if self.branch == "decreasing":
            return self.a1/(1.0 + self.a2*n**self.a1)
        return self.cs_last


def _solve_shape(residual, guess, label):
    sol = root(residual, guess, method='hybr')
    if not sol.success or not np.all(np.isfinite(sol.x)) \
            or np.max(np.abs(residual(sol.x))) > 1e-8:
        raise ExtensionMatchError(f"{label} sound-speed match failed: {sol.message}")
    return float(sol.x[0]), float(sol.x[1])


def build_extension(fit: NeutronStarFit, phi: float,
                    m: float = m_neutron_fm) -> HighDensityExtension:
    """
    Determine branch and coefficients of the extension once per (fit, φ).

    Raises:
        ExtensionMatchError: the sound-speed shape cannot be matched
    """
    nb = fit.nb_max
    cs_last = float(fit.cs2(nb))
    e_last = float(fit.ed(nb))
    p_last = float(fit.mu(nb) * nb - e_last)
    E = e_last + m*nb
    Q = E + p_last

    if phi > cs_last + CS2_EQUAL_TOL:
        def residual(x):
            a1, a2 = x
            return [1.0 - a1/(1.0 + a2*nb**a1) - cs_last,
                    1.0 - a1/(1.0 + a2*N_MATCH_HIGH**a1) - phi]

        a1, a2 = _solve_shape(residual, [1.0, 1.0], "Increasing")
        if abs(2.0 - a1) < 1e-12:
            raise ExtensionMatchError("Increasing branch degenerate at a1 = 2")
        c1 = Q / (nb*nb*(a2 + nb**(-a1)))
        c2 = E - c1*(a2*nb*nb/2.0 + nb**(2.0 - a1)/(2.0 - a1))
        branch = "increasing"
    elif phi < cs_last - CS2_EQUAL_TOL:
        def residual(x):
            a1, a2 = x
            return [a1/(1.0 + a2*nb**a1) - cs_last,
                    a1/(1.0 + a2*N_MATCH_HIGH**a1) - phi]

        a1, a2 = _solve_shape(residual, [2.5, 1.0], "Decreasing")
        if a2 <= 0:
            raise ExtensionMatchError(f"Decreasing branch requires a2 > 0, got {a2}")
        c1 = nb**(-a1 - 1.0)*(a2*nb**a1 + 1.0)*Q
        c2 = E - c1*nb*_pfaff_hyperg(nb, a1, a2)/a2
        branch = "decreasing"
    else:
        a1 = a2 = c1 = c2 = 0.0
        branch = "constant"

    if not np.all(np.isfinite([c1, c2])):
        raise ExtensionMatchError(f"Non-finite matching constants in {branch} branch")

    return HighDensityExtension(branch=branch, a1=a1, a2=a2, c1=float(c1),
                                c2=float(c2), nb_max=nb, cs_last=cs_last,
                                phi=float(phi), m=m, e_last=e_last, p_last=p_last)


def neutron_star_energy(fit: NeutronStarFit, ext: HighDensityExtension,
                        n_b: float) -> Tuple[float, float]:
    """(e_ns, de_ns/dn) at n_b: the fit below nb_max, the extension above."""
    if n_b < fit.nb_max - FIT_EDGE:
        return float(fit.ed(n_b)), float(fit.mu(n_b))
    e, dedn = ext.energy(n_b)
    return float(e), float(dedn)


# =============================================================================
# SELF-TEST
# =============================================================================
if __name__ == "__main__":
    fit = NeutronStarFit(params=(10.0, 0.0, 0.0, 100.0, 60.0), nb_max=0.7)
    print("Neutron-star extension")
    print("=" * 60)
    print(f"cs2 at nb_max = {fit.cs2(fit.nb_max):.6f}")
    for phi in [0.9, float(fit.cs2(fit.nb_max)), 0.2]:
        ext = build_extension(fit, phi)
        e_fit, mu_fit = fit.ed(fit.nb_max), fit.mu(fit.nb_max)
        e_ext, mu_ext = ext.energy(fit.nb_max)
        print(f"phi={phi:.4f} branch={ext.branch:10} a1={ext.a1:.4f} a2={ext.a2:.4f}  "
              f"de={e_ext - e_fit:.2e}  dmu={mu_ext - mu_fit:.2e}  "
              f"cs2(2)={ext.cs2(2.0):.4f}")
