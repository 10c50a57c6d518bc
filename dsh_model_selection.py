"""
dsh_model_selection.py
======================
Validation of EOS model parameters and random model construction.

`select_internal` derives the Skyrme set, the QMC coefficients and the
neutron-star extension from a `ModelParameters` value and runs a series
of physical checks. Each rejected check has its own reason code:

     0  OK                      accepted
     1  NS_NEGATIVE_CS2         fitted neutron-star c_s² < 0
     2  SL_CORRIDOR             L outside [9.17 S - 266, 14.3 S - 379]
     3  QMC_COEFFICIENTS        b < 0 or β > 5
     4  BOUND_DINEUTRON         neutron matter E/A < 0 for 0.01 ≤ n < 0.16
     5  EFFMASS_SYMMETRIC       m* ≤ 0 at (n_n, n_p) = (1, 1)
     6  EFFMASS_NEUTRON         m* ≤ 0 at (2, 0)
     7  EFFMASS_PROTON          m* ≤ 0 at (0, 2)
     8  BETA_EQ_NONCONVERGENT   β-equilibrium solve failed (T = 1 MeV)
     9  BETA_EQ_YE_RANGE        β-equilibrium root at Y_e < 0 or Y_e > 1
    10  HIGH_DENSITY_MATCH      causal extension could not be matched
    11  SUPERLUMINAL_CS2        c_s² ≥ 1 in the sound-speed battery

Accepted parameters give a new context carrying the `SelectedModel`; the
input context is never modified.

Usage:
    from dsh_model_selection import select_internal
    from dsh_parameters import ModelParameters

    result = select_internal(context, ModelParameters(i_ns=0, i_skyrme=0))
    if result.accepted:
        context = result.context
"""
from dataclasses import dataclass, replace
from enum import IntEnum
from typing import Optional, Tuple

import numpy as np

from general_physics_constants import hc
from skyrme_parameters import skyrme_params_from_saturation
from skyrme_thermodynamics_nucleons import effective_masses, skyrme_thermo
from dsh_qmc_neutron_matter import QMCParams, derive_qmc_coefficients
from dsh_neutron_star_extension import (
    ExtensionMatchError, build_extension, fit_neutron_star_row, min_max_cs2,
)
from dsh_parameters import (
    EOSContext, ModelParameters, SelectedModel, UnphysicalResultError,
)
from dsh_eos import solve_beta_equilibrium_ye
from dsh_sound_speed import cs2_fixYe


MV_STAR = 1.0 / 1.249
DINEUTRON_GRID = np.arange(0.01, 0.16, 0.001)
BETA_EQ_GRID = np.arange(0.1, 2.00001, 0.05)
BETA_EQ_T_MEV = 1.0
CS2_YE_VALUES = (0.05, 0.15, 0.25, 0.35, 0.45)
CS2_T_VALUES_MEV = (1.0, 10.0)


class SelectionStatus(IntEnum):
    OK = 0
    NS_NEGATIVE_CS2 = 1
    SL_CORRIDOR = 2
    QMC_COEFFICIENTS = 3
    BOUND_DINEUTRON = 4
    EFFMASS_SYMMETRIC = 5
    EFFMASS_NEUTRON = 6
    EFFMASS_PROTON = 7
    BETA_EQ_NONCONVERGENT = 8
    BETA_EQ_YE_RANGE = 9
    HIGH_DENSITY_MATCH = 10
    SUPERLUMINAL_CS2 = 11


@dataclass
class SelectionResult:
    """Outcome of a validation; `context` is the new context on success."""
    status: SelectionStatus
    context: EOSContext
    params: Optional[ModelParameters] = None
    tries: int = 1

    @property
    def accepted(self) -> bool:
        return self.status == SelectionStatus.OK


def sl_corridor_ok(S: float, L: float) -> bool:
    """S-L constraint of Lattimer & Lim (MeV)."""
    return 9.17 * S - 266.0 <= L <= 14.3 * S - 379.0


# =============================================================================
# VALIDATION
# =============================================================================
def _report(verbose, status):
    if verbose > 0:
        print(f"Model rejected: {status.name} ({int(status)})")
    return status, None


def prepare_model(context: EOSContext,
                  params: ModelParameters) -> Tuple[SelectionStatus, Optional[SelectedModel]]:
    """
    Build the SelectedModel for `params` and run the checks that need no
    EOS evaluation (codes 1-7 and 10).

    Returns:
        (SelectionStatus.OK, model) or (reason code, None)

    Raises:
        ValueError: the context has no tables or a row index is out of range
    """
    if context.tables is None:
        raise ValueError("Model selection needs neutron-star and Skyrme tables")
    verbose = context.verbose

    ns_fit = fit_neutron_star_row(context.tables.neutron_star, params.i_ns,
                                  old_form=context.old_ns_fit, verbose=verbose)
    ns_min_cs2, _ = min_max_cs2(ns_fit)
    if ns_min_cs2 < 0.0:
        return _report(verbose, SelectionStatus.NS_NEGATIVE_CS2)

    if not sl_corridor_ok(params.eos_S, params.eos_L):
        return _report(verbose, SelectionStatus.SL_CORRIDOR)

    row = context.tables.skyrme.row(params.i_skyrme)

    qmc_b, qmc_beta = derive_qmc_coefficients(params.eos_S, params.eos_L, row["EoA"],
                                              params.qmc_a, params.qmc_alpha)
    if qmc_b < 0.0 or qmc_beta > 5.0:
        return _report(verbose, SelectionStatus.QMC_COEFFICIENTS)
    qmc = QMCParams(alpha=params.qmc_alpha, beta=qmc_beta, a=params.qmc_a, b=qmc_b)

    skyrme = skyrme_params_from_saturation(
        row["rho0"], row["EoA"], row["K"], 1.0 / row["Ms_inv"],
        params.eos_S, params.eos_L, MV_STAR,
        row["Crdr0"], row["Crdr1"], row["CrdJ0"], row["CrdJ1"],
        name=f"skyrme_row_{params.i_skyrme}")

    # Dineutrons must not be bound
    for nb in DINEUTRON_GRID:
        if skyrme_thermo(skyrme, nb, 0.0, 0.0, context.m_n, context.m_p).ed / nb < 0.0:
            return _report(verbose, SelectionStatus.BOUND_DINEUTRON)

    for (nn, pn), status in (((1.0, 1.0), SelectionStatus.EFFMASS_SYMMETRIC),
                             ((2.0, 0.0), SelectionStatus.EFFMASS_NEUTRON),
                             ((0.0, 2.0), SelectionStatus.EFFMASS_PROTON)):
        ms_n, ms_p = effective_masses(skyrme, nn, pn, context.m_n, context.m_p)
        if ms_n <= 0.0 or ms_p <= 0.0:
            return _report(verbose, status)

    try:
        extension = build_extension(ns_fit, params.phi, m=context.m_n)
    except ExtensionMatchError as exc:
        if verbose > 0:
            print(f"  {exc}")
        return _report(verbose, SelectionStatus.HIGH_DENSITY_MATCH)

    model = SelectedModel(params=params, qmc=qmc, skyrme=skyrme, ns_fit=ns_fit,
                          extension=extension, eos_n0=row["rho0"],
                          eos_EoA=row["EoA"], eos_K=row["K"])
    return SelectionStatus.OK, model


def select_internal(context: EOSContext, params: ModelParameters) -> SelectionResult:
    """
    Validate `params` against the context tables.

    After `prepare_model`, β equilibrium at T = 1 MeV is solved for
    n_B = 0.1 ... 2.0 fm⁻³ and, with context.select_cs2_test, c_s² at fixed
    Y_e is checked on the same densities. A root outside 0 ≤ Y_e ≤ 1 gives
    code 9, any other failed solve code 8, and c_s² ≥ 1 code 11.

    Raises:
        ValueError: the context has no tables or a row index is out of range
        UnphysicalResultError: negative c_s² in the sound-speed battery
    """
    status, model = prepare_model(context, params)
    if model is None:
        return SelectionResult(status=status, context=context, params=params)

    candidate = replace(context, model=model)
    quiet = replace(candidate, verbose=0)
    verbose = context.verbose

    if verbose > 0:
        print("Going to beta-eq test:")
    for nbx in BETA_EQ_GRID:
        beq = solve_beta_equilibrium_ye(quiet, float(nbx), BETA_EQ_T_MEV / hc)
        if beq.out_of_range != 0:
            status, _ = _report(verbose, SelectionStatus.BETA_EQ_YE_RANGE)
            return SelectionResult(status=status, context=context, params=params)
        if not beq.converged:
            status, _ = _report(verbose, SelectionStatus.BETA_EQ_NONCONVERGENT)
            return SelectionResult(status=status, context=context, params=params)

    if context.select_cs2_test:
        if verbose > 0:
            print("Going to cs2 test:")
        for nbx in BETA_EQ_GRID:
            for yex in CS2_YE_VALUES:
                for T_MeV in CS2_T_VALUES_MEV:
                    c2 = cs2_fixYe(quiet, nbx * (1.0 - yex), nbx * yex, T_MeV / hc)
                    if not c2 >= 0.0:
                        raise UnphysicalResultError(
                            f"Negative speed of sound c_s²={c2} at n_B={nbx:.3f}, "
                            f"Y_e={yex}, T={T_MeV} MeV")
                    if c2 >= 1.0:
                        if verbose > 0:
                            print(f"  c_s²={c2:.6f} at n_B={nbx:.3f}, Y_e={yex}, T={T_MeV} MeV")
                        status, _ = _report(verbose, SelectionStatus.SUPERLUMINAL_CS2)
                        return SelectionResult(status=status, context=context,
                                               params=params)

    if verbose > 0:
        print(f"Model accepted: i_ns={params.i_ns} i_skyrme={params.i_skyrme} "
              f"b={model.qmc.b:.4f} beta={model.qmc.beta:.4f} "
              f"branch={model.extension.branch}")
    return SelectionResult(status=SelectionStatus.OK, context=candidate, params=params)


# =============================================================================
# RANDOM MODELS
# =============================================================================
def random_parameters(context: EOSContext, rng: np.random.Generator) -> ModelParameters:
    """
    Draw one parameter set: φ uniform in [0, 1), α in [0.47, 0.53),
    a in [12.5, 13.5) MeV, L in [44, 65) MeV, S in [29.5, 36.1) MeV
    (PRC 91, 015804) and uniformly chosen table rows.
    """
    phi = rng.random()
    i_ns = int(rng.integers(context.tables.neutron_star.n_rows))
    qmc_alpha = rng.random() * 0.06 + 0.47
    qmc_a = rng.random() * 1.0 + 12.5
    eos_L = rng.random() * 21.0 + 44.0
    eos_S = rng.random() * 6.6 + 29.5
    i_skyrme = int(rng.integers(context.tables.skyrme.n_rows))
    return ModelParameters(i_ns=i_ns, i_skyrme=i_skyrme, qmc_alpha=qmc_alpha,
                           qmc_a=qmc_a, eos_L=eos_L, eos_S=eos_S, phi=phi)


def select_random(context: EOSContext, rng: np.random.Generator = None,
                  max_tries: int = 1000) -> SelectionResult:
    """
    Draw random parameters until `select_internal` accepts them.

    Raises:
        ValueError: the context has no tables
        RuntimeError: nothing accepted within max_tries draws
    """
    if context.tables is None:
        raise ValueError("Random model selection needs neutron-star and Skyrme tables")
    if rng is None:
        rng = np.random.default_rng()

    for attempt in range(1, max_tries + 1):
        params = random_parameters(context, rng)
        if context.verbose > 0:
            print(f"Trying random model {attempt}: i_ns={params.i_ns} "
                  f"i_skyrme={params.i_skyrme} alpha={params.qmc_alpha:.4f} "
                  f"a={params.qmc_a:.4f} L={params.eos_L:.3f} S={params.eos_S:.3f} "
                  f"phi={params.phi:.4f}")
        result = select_internal(context, params)
        if result.accepted:
            result.tries = attempt
            if context.verbose > 0:
                print(f"Success after {attempt} tries.")
            return result
        if context.verbose > 0:
            print(f"Failed ({int(result.status)}). Selecting new random model.")

    raise RuntimeError(f"No random model accepted in {max_tries} tries")


# =============================================================================
# SELF-TEST
# =============================================================================
if __name__ == "__main__":
    from dsh_data_tables import EOSTables, NeutronStarTable, SkyrmeTable
    from dsh_parameters import get_context_default
    from dsh_eos import evaluate_point

    # SLy4-like saturation properties with UNEDF1 gradient couplings
    SLY4_LIKE_ROW = {"rho0": [0.1596], "EoA": [-15.97], "K": [229.9],
                     "Ms_inv": [1.439], "Crdr0": [-45.135], "Crdr1": [-145.382],
                     "CrdJ0": [-74.026], "CrdJ1": [-35.658], "Vp": [0.0], "Vn": [0.0]}

    # Synthetic neutron-star row, E/A = 100 n + 250 n² MeV
    grid = NeutronStarTable.density_grid()
    eoa = np.zeros((1, grid.size))
    mask = grid < 1.2
    eoa[0, mask] = (100.0 * grid[mask] + 250.0 * grid[mask]**2) / hc
    tables = EOSTables(neutron_star=NeutronStarTable(nb_max=[1.2], eoa=eoa),
                       skyrme=SkyrmeTable(columns=SLY4_LIKE_ROW))

    ctx = get_context_default(tables, select_cs2_test=False, verbose=1)
    res = select_internal(ctx, ModelParameters(i_ns=0, i_skyrme=0, eos_S=32.0,
                                               eos_L=50.0, phi=0.5))
    print(f"status: {res.status.name}")

    bad = select_internal(ctx, ModelParameters(i_ns=0, i_skyrme=0, eos_S=30.0,
                                               eos_L=100.0))
    print(f"S=30, L=100 -> {bad.status.name} ({int(bad.status)})")

    if res.accepted:
        ctx = replace(res.context, verbose=0)
        for nb, ye, T in [(0.16, 0.01, 0.1), (0.16, 0.01, 10.0), (0.48, 0.5, 10.0)]:
            p = evaluate_point(ctx, nb, ye, T)
            print(f"nB={nb:5.2f} Ye={ye:4.2f} T={T:5.1f}: F={p.F:10.4f} MeV "
                  f"P={p.P:.4e} MeV/fm³ S={p.S:.4f}")
