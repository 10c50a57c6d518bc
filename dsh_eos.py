"""
dsh_eos.py
==========
Combined free-energy density of hot nucleonic matter and single-point
helpers built on it.

The free energy density f(n_n, n_p, T) interpolates between a virial gas
at low density and a degenerate functional at high density,

    f = f_vir g + f_deg (1 - g),    g = 1/(a z_n² + a z_p² + b z_n z_p + 1)

where the degenerate part expands in the isospin asymmetry δ = 1 - 2 Y_e:

    f_deg = f_sk(n/2, n/2; T=0) + δ² e_sym
            + δ² [f_ch(n, 0; T) - f_ch(n, 0; 0)]
            + (1 - δ²) [f_ch(n/2, n/2; T) - f_ch(n/2, n/2; 0)]

    e_sym = e_qmc h + e_ns (1 - h) - f_sk(n/2, n/2; T=0)
    h     = 1/(1 + exp(20 (n - 0.24)))

f_sk is the selected Skyrme set, f_ch the chiral Skyrme set used for the
thermal corrections, e_qmc the QMC neutron-matter energy and e_ns the
neutron-star energy with its high-density extension. Chemical potentials
and entropy follow by analytic differentiation of the same chain.

Units: inside the combiner everything is in powers of fm⁻¹ (T in fm⁻¹,
f in fm⁻⁴, μ in fm⁻¹ without rest mass). `evaluate_point` takes T in MeV
and returns MeV-based quantities.

Usage:
    from dsh_eos import evaluate_point

    res = evaluate_point(context, n_B=0.16, Y_e=0.3, T_MeV=10.0)
    print(f"F/A = {res.F} MeV, P = {res.P} MeV/fm³")
"""
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

import numpy as np
from numdifftools import Derivative
from scipy.optimize import brentq

from general_physics_constants import hc, n0_default
from general_thermodynamics_leptons import (
    EGResult, compute_eg_point, electron_thermo_from_density, photon_thermo,
)
from virial_gas import VirialConvergenceError, solve_virial_gas
from skyrme_thermodynamics_nucleons import effective_masses, skyrme_thermo
from dsh_qmc_neutron_matter import denergy_density_qmc_dn, energy_density_qmc
from dsh_neutron_star_extension import neutron_star_energy
from dsh_parameters import EOSContext


H_STEEPNESS = 20.0
H_CENTER = 1.5 * n0_default
YE_MIN = 1.0e-6         # edges of the β-equilibrium bracket


# =============================================================================
# RESULT DATACLASSES
# =============================================================================
@dataclass
class CombinedThermo:
    """
    Hadronic thermodynamics at one (n_n, n_p, T) point (fm units).

    f, ed, pr in fm⁻⁴; en in fm⁻³; mu_n, mu_p in fm⁻¹ without rest mass.
    The remaining fields are the switching values and the intermediate
    free energies of the blend.
    """
    n_n: float
    n_p: float
    T: float
    f: float
    ed: float
    pr: float
    en: float
    mu_n: float
    mu_p: float
    g: float = 0.0           # g = 1: pure virial gas
    dgdT: float = 0.0
    h: float = 0.0           # h = 1: pure QMC, h = 0: pure neutron-star EOS
    z_n: float = 0.0
    z_p: float = 0.0
    f_virial: float = 0.0
    s_virial: float = 0.0
    f_deg: float = 0.0
    e_qmc: float = 0.0
    e_ns: float = 0.0
    ms_n: float = 0.0        # effective masses of the selected Skyrme set
    ms_p: float = 0.0


@dataclass
class PointResult:
    """
    Full EOS at one (n_B, Y_e, T) point.

    Per-baryon quantities (F, E) in MeV, S per baryon, P in MeV/fm³,
    chemical potentials in MeV without rest mass. The `*_int` fields are
    hadrons only; the others include electrons and photons (and muons when
    the context asks for them).
    """
    n_B: float
    Y_e: float
    T: float
    F_int: float
    E_int: float
    P_int: float
    S_int: float
    F: float
    E: float
    P: float
    S: float
    mu_n: float
    mu_p: float
    mu_e: float
    thermo: CombinedThermo
    leptons: Optional[EGResult] = None


@dataclass
class BetaEquilibriumResult:
    """
    Electron fraction of β-equilibrated matter at (n_B, T).

    out_of_range: -1 if the root lies below Y_e = 0, +1 above Y_e = 1,
    0 otherwise
    """
    converged: bool
    Y_e: float
    residual: float
    n_B: float
    T: float
    out_of_range: int = 0
    message: str = ""


@dataclass
class DerivativeCheck:
    """Analytic chemical potentials and entropy against numerical derivatives of f."""
    mu_n: float
    mu_p: float
    en: float
    mu_n_num: float
    mu_p_num: float
    en_num: float

    @property
    def rel_mu_n(self) -> float:
        return abs(self.mu_n - self.mu_n_num) / max(abs(self.mu_n_num), 1e-300)

    @property
    def rel_mu_p(self) -> float:
        return abs(self.mu_p - self.mu_p_num) / max(abs(self.mu_p_num), 1e-300)

    @property
    def rel_en(self) -> float:
        return abs(self.en - self.en_num) / max(abs(self.en_num), 1e-300)

    @property
    def max_rel(self) -> float:
        return max(self.rel_mu_n, self.rel_mu_p, self.rel_en)


# =============================================================================
# COMBINER
# =============================================================================
def _switch_h(nb):
    """Logistic QMC → neutron-star switch and its density derivative."""
    x = H_STEEPNESS * (nb - H_CENTER)
    h = 1.0 / (1.0 + np.exp(x))
    return h, -H_STEEPNESS * h * (1.0 - h)


def free_energy_density(context: EOSContext, n_n: float, n_p: float,
                        T: float) -> CombinedThermo:
    """
    Combined hadronic free energy density and its first derivatives.

    Parameters:
        context: Context with a selected model
        n_n, n_p: Neutron and proton densities (fm⁻³), both > 0
        T: Temperature (fm⁻¹), > 0

    Raises:
        ModelNotSelectedError: the context has no selected model
        ValueError: non-positive densities or temperature
        VirialConvergenceError: the virial fugacities cannot be found
    """
    model = context.require_model()
    a_vir, b_vir = context.a_virial, context.b_virial
    m_n, m_p = context.m_n, context.m_p

    nn, pn = n_n, n_p
    nb = nn + pn
    ye = pn / nb

    # Virial gas and switching function g
    vir = solve_virial_gas(nn, pn, T, context.virial, m_n, m_p,
                           verbose=context.verbose)
    zn, zp = vir.z_n, vir.z_p
    denom = a_vir * zn * zn + a_vir * zp * zp + b_vir * zn * zp + 1.0
    g = 1.0 / denom

    # Selected Skyrme set, symmetric matter at T = 0
    sk0 = skyrme_thermo(model.skyrme, 0.5 * nb, 0.5 * nb, 0.0, m_n, m_p)
    f_sk0 = sk0.ed

    # Chiral Skyrme thermal corrections
    chiral = context.skyrme_chiral
    eq_T = skyrme_thermo(chiral, 0.5 * nb, 0.5 * nb, T, m_n, m_p)
    eq_T0 = skyrme_thermo(chiral, 0.5 * nb, 0.5 * nb, 0.0, m_n, m_p)
    neut_T = skyrme_thermo(chiral, nb, 0.0, T, m_n, m_p)
    neut_T0 = skyrme_thermo(chiral, nb, 0.0, 0.0, m_n, m_p)

    # Neutron matter: QMC below ~1.5 n0, neutron-star EOS above
    e_qmc = energy_density_qmc(nn, pn, model.qmc)
    e_ns, de_ns = neutron_star_energy(model.ns_fit, model.extension, nb)

    h, dh = _switch_h(nb)
    e_sym = e_qmc * h + e_ns * (1.0 - h) - f_sk0

    delta = 1.0 - 2.0 * ye
    delta2 = delta * delta
    dye_dnn = -pn / nb**2
    dye_dpn = nn / nb**2
    ddelta2_dnn = 2.0 * delta * (-2.0 * dye_dnn)
    ddelta2_dpn = 2.0 * delta * (-2.0 * dye_dpn)

    dfneut = neut_T.f - neut_T0.f
    dfeq = eq_T.f - eq_T0.f
    f_deg = f_sk0 + delta2 * e_sym + delta2 * dfneut + (1.0 - delta2) * dfeq
    f_total = vir.f * g + f_deg * (1.0 - g)

    # Chemical potentials
    pref = -g * g / T
    dg_dnn = pref * (2.0 * a_vir * zn * zn * vir.dmun_dnn
                     + 2.0 * a_vir * zp * zp * vir.dmup_dnn
                     + b_vir * zn * zp * (vir.dmun_dnn + vir.dmup_dnn))
    dg_dpn = pref * (2.0 * a_vir * zn * zn * vir.dmun_dnp
                     + 2.0 * a_vir * zp * zp * vir.dmup_dnp
                     + b_vir * zn * zp * (vir.dmun_dnp + vir.dmup_dnp))

    df0 = 0.5 * (sk0.mu_n + sk0.mu_p)
    desym = (denergy_density_qmc_dn(nn, pn, model.qmc) * h + e_qmc * dh
             + de_ns * (1.0 - h) - e_ns * dh - df0)
    dmu_neut = neut_T.mu_n - neut_T0.mu_n
    dmu_eq = 0.5 * (eq_T.mu_n + eq_T.mu_p) - 0.5 * (eq_T0.mu_n + eq_T0.mu_p)

    def dfdeg(ddelta2):
        # Same for both species apart from the δ² derivative
        return (df0 + delta2 * desym + ddelta2 * e_sym
                + delta2 * dmu_neut + ddelta2 * dfneut
                + (1.0 - delta2) * dmu_eq - ddelta2 * dfeq)

    dfdeg_dnn = dfdeg(ddelta2_dnn)
    dfdeg_dpn = dfdeg(ddelta2_dpn)

    mu_n = vir.mu_n * g + vir.f * dg_dnn + dfdeg_dnn * (1.0 - g) - f_deg * dg_dnn
    mu_p = vir.mu_p * g + vir.f * dg_dpn + dfdeg_dpn * (1.0 - g) - f_deg * dg_dpn

    # Entropy
    dg_dT = -g * g * (
        2.0 * a_vir * zn * zn * (vir.dmun_dT / T - vir.mu_n / T**2)
        + 2.0 * a_vir * zp * zp * (vir.dmup_dT / T - vir.mu_p / T**2)
        + b_vir * zn * zp * (vir.dmun_dT / T + vir.dmup_dT / T
                             - vir.mu_n / T**2 - vir.mu_p / T**2))
    dfdeg_dT = -delta2 * neut_T.s - (1.0 - delta2) * eq_T.s
    en = -(-vir.s * g + vir.f * dg_dT + dfdeg_dT * (1.0 - g) - f_deg * dg_dT)

    pr = -f_total + nn * mu_n + pn * mu_p
    ed = f_total + T * en

    ms_n, ms_p = effective_masses(model.skyrme, nn, pn, m_n, m_p)

    if context.verbose >= 1:
        print(f"i_ns={model.params.i_ns} i_skyrme={model.params.i_skyrme}")
        print(f"g_virial= {g:.6e} (g=1 means full virial EOS) dgdT= {dg_dT:.6e}")
        print(f"h= {h:.6e} (h=1 means full QMC, h=0 means full NS)")
        print(f"f_virial= {vir.f:.6e} 1/fm^4  F_virial= {vir.f/nb*hc:.6f} MeV")
        print(f"f_skyrme_eqdenT0= {f_sk0:.6e} 1/fm^4  F= {f_sk0/nb*hc:.6f} MeV")
        print(f"e_qmc= {e_qmc:.6e} 1/fm^4  E_qmc= {e_qmc/nb*hc:.6f} MeV")
        print(f"e_ns= {e_ns:.6e} {e_ns/nb*hc:.6f}")
        print(f"f_deg= {f_deg:.6e} {f_deg/nb*hc:.6f}")
        print(f"f_total= {f_total:.6e} {f_total/nb*hc:.6f}")
        print(f"zn= {zn:.6e} zp= {zp:.6e}")
        print(f"entropy= {en:.6e} s_virial= {vir.s:.6e}")
        print()

    return CombinedThermo(
        n_n=nn, n_p=pn, T=T, f=f_total, ed=ed, pr=pr, en=en,
        mu_n=mu_n, mu_p=mu_p, g=g, dgdT=dg_dT, h=h, z_n=zn, z_p=zp,
        f_virial=vir.f, s_virial=vir.s, f_deg=f_deg,
        e_qmc=e_qmc, e_ns=e_ns, ms_n=ms_n, ms_p=ms_p,
    )


# =============================================================================
# HADRONS + ELECTRONS + PHOTONS (fm units)
# =============================================================================
def _electrons_photons(n_e: float, T: float):
    """Electron pairs at net density n_e and photons, T in fm⁻¹ (MeV-based results)."""
    T_MeV = T * hc
    return electron_thermo_from_density(n_e, T_MeV), photon_thermo(T_MeV)


def free_energy_density_ep(context: EOSContext, n_n: float, n_p: float,
                           T: float) -> float:
    """Free energy density of hadrons, electrons (n_e = n_p) and photons (fm⁻⁴)."""
    had = free_energy_density(context, n_n, n_p, T)
    ele, gam = _electrons_photons(n_p, T)
    return had.f + (ele.e + gam.e) / hc - T * (ele.s + gam.s)


def total_entropy(context: EOSContext, n_n: float, n_p: float, T: float) -> float:
    """Entropy density of hadrons, electrons and photons (fm⁻³)."""
    had = free_energy_density(context, n_n, n_p, T)
    ele, gam = _electrons_photons(n_p, T)
    return had.en + ele.s + gam.s


def total_energy_density(context: EOSContext, n_n: float, n_p: float,
                         T: float) -> float:
    """Energy density of hadrons (with rest mass), electrons and photons (fm⁻⁴)."""
    had = free_energy_density(context, n_n, n_p, T)
    ele, gam = _electrons_photons(n_p, T)
    return (had.ed + (ele.e + gam.e) / hc
            + context.m_n * n_n + context.m_p * n_p)


def dfdnn_total(context: EOSContext, n_n: float, n_p: float, T: float) -> float:
    """∂f/∂n_n including the neutron rest mass (fm⁻¹)."""
    return free_energy_density(context, n_n, n_p, T).mu_n + context.m_n


def dfdpn_total(context: EOSContext, n_n: float, n_p: float, T: float) -> float:
    """∂f/∂n_p with electrons following the protons, rest masses included (fm⁻¹)."""
    had = free_energy_density(context, n_n, n_p, T)
    ele, _ = _electrons_photons(n_p, T)
    return had.mu_p + ele.mu / hc + context.m_p


# =============================================================================
# POINT EVALUATION
# =============================================================================
def evaluate_point(context: EOSContext, n_B: float, Y_e: float, T_MeV: float,
                   include_leptons: bool = True) -> PointResult:
    """
    EOS at baryon density n_B (fm⁻³), electron fraction Y_e and T (MeV).

    Raises:
        ValueError: n_B ≤ 0, T ≤ 0 or Y_e outside (0, 1)
        ModelNotSelectedError: the context has no selected model
    """
    if n_B <= 0:
        raise ValueError(f"Baryon density must be positive, got {n_B}")
    if not 0.0 < Y_e < 1.0:
        raise ValueError(f"Electron fraction must be in (0, 1), got {Y_e}")
    if T_MeV <= 0:
        raise ValueError(f"Temperature must be positive, got {T_MeV} MeV")

    T = T_MeV / hc
    th = free_energy_density(context, n_B * (1.0 - Y_e), n_B * Y_e, T)

    F_int = th.f / n_B * hc
    E_int = th.ed / n_B * hc
    P_int = th.pr * hc
    S_int = th.en / n_B

    F, E, P, S, mu_e, eg = F_int, E_int, P_int, S_int, 0.0, None
    if include_leptons:
        eg = compute_eg_point(n_B, Y_e, T_MeV, include_muons=context.include_muons)
        F += eg.F
        E += eg.E
        P += eg.P
        S += eg.S
        mu_e = eg.mu_e

    return PointResult(n_B=n_B, Y_e=Y_e, T=T_MeV,
                       F_int=F_int, E_int=E_int, P_int=P_int, S_int=S_int,
                       F=F, E=E, P=P, S=S,
                       mu_n=th.mu_n * hc, mu_p=th.mu_p * hc, mu_e=mu_e,
                       thermo=th, leptons=eg)


# =============================================================================
# β EQUILIBRIUM AND ISENTROPES
# =============================================================================
class _ResidualFailure(Exception):
    pass


def solve_beta_equilibrium_ye(context: EOSContext, n_B: float, T: float,
                              mu_L: float = 0.0) -> BetaEquilibriumResult:
    """
    Y_e with μ_n - μ_p - μ_e + μ_L + m_n - m_p = 0 at (n_B, T), T and μ_L in fm⁻¹.

    The residual falls with Y_e. It is bracketed on [YE_MIN, 1 - YE_MIN]
    and the root is found with brentq. When the residual keeps one sign
    over the bracket the root lies outside [0, 1]: `out_of_range` is -1
    (below 0) or +1 (above 1) and Y_e is nan. A negative effective mass, a
    failed virial solve or a non-finite residual gives `converged = False`
    with `out_of_range = 0`.

    Raises:
        ModelNotSelectedError: the context has no selected model
        ValueError: non-positive n_B or T
    """
    skyrme = context.require_model().skyrme
    if n_B <= 0.0 or T <= 0.0:
        raise ValueError(f"β equilibrium needs n_B > 0 and T > 0, got n_B={n_B}, T={T}")

    def residual(ye):
        nn, pn = n_B * (1.0 - ye), n_B * ye
        ms_n, ms_p = effective_masses(skyrme, nn, pn, context.m_n, context.m_p)
        if ms_n < 0.0 or ms_p < 0.0:
            raise _ResidualFailure(f"m* < 0 at Y_e={ye}")
        th = free_energy_density(context, nn, pn, T)
        ele, _ = _electrons_photons(pn, T)
        res = th.mu_n - th.mu_p - ele.mu / hc + mu_L + context.m_n - context.m_p
        if not np.isfinite(res):
            raise _ResidualFailure(f"non-finite residual at Y_e={ye}")
        return res

    def failed(message, res=np.inf, side=0):
        return BetaEquilibriumResult(converged=False, Y_e=np.nan, residual=res,
                                     n_B=n_B, T=T, out_of_range=side, message=message)

    lo, hi = YE_MIN, 1.0 - YE_MIN
    try:
        r_lo, r_hi = residual(lo), residual(hi)
        if r_lo < 0.0 and r_hi < 0.0:
            return failed("Y_e root below 0", r_lo, -1)
        if r_lo > 0.0 and r_hi > 0.0:
            return failed("Y_e root above 1", r_hi, 1)
        ye, info = brentq(residual, lo, hi, xtol=1e-14, rtol=1e-12,
                          full_output=True, disp=False)
        res = residual(ye)
    except (_ResidualFailure, VirialConvergenceError) as exc:
        return failed(str(exc))

    return BetaEquilibriumResult(converged=bool(info.converged), Y_e=float(ye),
                                 residual=float(res), n_B=n_B, T=T, message=info.flag)


def solve_temperature_for_entropy(context: EOSContext, n_B: float, Y_e: float,
                                  s_per_baryon: float,
                                  T_bracket: Tuple[float, float] = (0.1, 100.0)) -> float:
    """
    Temperature (MeV) where hadrons + electrons + photons carry entropy
    per baryon `s_per_baryon`.

    Raises:
        ValueError: the target is not bracketed by T_bracket (MeV)
    """
    nn, pn = n_B * (1.0 - Y_e), n_B * Y_e

    def residual(T_MeV):
        return total_entropy(context, nn, pn, T_MeV / hc) / n_B - s_per_baryon

    lo, hi = T_bracket
    r_lo, r_hi = residual(lo), residual(hi)
    if r_lo * r_hi > 0:
        raise ValueError(f"s/n_B={s_per_baryon} not bracketed in T=[{lo}, {hi}] MeV "
                         f"(s/n_B from {r_lo + s_per_baryon:.4f} to {r_hi + s_per_baryon:.4f})")
    return brentq(residual, lo, hi, xtol=1e-10, rtol=1e-12)


# =============================================================================
# DIAGNOSTICS
# =============================================================================
def check_derivatives(context: EOSContext, n_n: float, n_p: float, T: float,
                      rel_step: float = 1.0e-2) -> DerivativeCheck:
    """Compare analytic μ_n, μ_p, s with numdifftools derivatives of f."""
    th = free_energy_density(context, n_n, n_p, T)

    def f_of_nn(x):
        return free_energy_density(context, x, n_p, T).f

    def f_of_pn(x):
        return free_energy_density(context, n_n, x, T).f

    def f_of_T(x):
        return free_energy_density(context, n_n, n_p, x).f

    mu_n_num = Derivative(f_of_nn, step=rel_step * n_n)(n_n)
    mu_p_num = Derivative(f_of_pn, step=rel_step * n_p)(n_p)
    en_num = -Derivative(f_of_T, step=rel_step * T)(T)

    return DerivativeCheck(mu_n=th.mu_n, mu_p=th.mu_p, en=th.en,
                           mu_n_num=float(mu_n_num), mu_p_num=float(mu_p_num),
                           en_num=float(en_num))


def virial_comparison(context: EOSContext, T_MeV: float,
                      n_B_values: Sequence[float]) -> Tuple[np.ndarray, np.ndarray]:
    """F/A (MeV) of the full model and of the bare virial gas at Y_e = 0.5."""
    T = T_MeV / hc
    nb = np.asarray(n_B_values, dtype=float)
    F_model = np.empty_like(nb)
    F_virial = np.empty_like(nb)
    for i, n in enumerate(nb):
        F_model[i] = free_energy_density(context, 0.5 * n, 0.5 * n, T).f / n * hc
        vir = solve_virial_gas(0.5 * n, 0.5 * n, T, context.virial,
                               context.m_n, context.m_p)
        F_virial[i] = vir.f / n * hc
    return F_model, F_virial


# =============================================================================
# SELF-TEST
# =============================================================================
if __name__ == "__main__":
    from dsh_parameters import get_context_default, ModelNotSelectedError

    ctx = get_context_default()
    try:
        free_energy_density(ctx, 0.08, 0.08, 10.0 / hc)
    except ModelNotSelectedError as exc:
        print(f"Unselected context: {exc}")
    print("Select a model with dsh_model_selection.select_internal first.")
