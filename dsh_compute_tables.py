"""
dsh_compute_tables.py
=====================
Script-style generation of tabulated EOS output for a selected model.

This module provides:
- TableSettings: grids, parallelism, output control
- compute_table_Ye(): 2-D (n_B, T) table at fixed Y_e with the combiner
  diagnostics (switching functions, virial and degenerate parts)
- compute_table_full(): 3-D (n_B, Y_e, T) table of F, E, P, S (hadrons
  only and with electrons + photons) and the nucleon chemical potentials
- save_table_npz() / load_table_npz(): self-describing compressed arrays
- save_table_dat(): flat text table with a `#` header

Default grids:
    n_B(i) = 2·10^(0.04 i - 12) fm⁻³   i = 0..300
    T(i)   = 0.2 + 0.81 i MeV          i = 0..159
    Y_e(i) = 0.01 (i + 1)              i = 0..98

Density rows are independent and are distributed over worker processes
when settings.n_workers > 1.

Usage:
    from dsh_compute_tables import compute_table_full, TableSettings

    settings = TableSettings(n_B_values=[0.01, 0.16], T_values=[1.0, 10.0],
                             Ye_values=[0.1, 0.3])
    table = compute_table_full(context, settings)
    print(table.arrays["P"].shape)
"""
import time
from concurrent.futures import ProcessPoolExecutor
from dataclasses import dataclass, field
from itertools import repeat
from pathlib import Path
from typing import Dict, List, Optional, Union

import numpy as np

from general_physics_constants import hc
from dsh_eos import evaluate_point, free_energy_density
from dsh_parameters import EOSContext, UnphysicalResultError


TABLE_YE_NAMES = ["F", "s", "g", "dgdT", "msn", "msp", "pr", "f_deg",
                  "f_virial", "s_virial", "f_total", "s_sign", "pr_sign"]
TABLE_FULL_NAMES = ["Fint", "F", "Eint", "E", "Pint", "P", "Sint", "S",
                    "mun", "mup"]


# =============================================================================
# GRIDS
# =============================================================================
def nb_grid(n_points: int = 301) -> np.ndarray:
    return 10.0**(0.04 * np.arange(n_points) - 12.0) * 2.0


def T_grid(n_points: int = 160) -> np.ndarray:
    return 0.2 + 0.81 * np.arange(n_points)


def Ye_grid(n_points: int = 99) -> np.ndarray:
    return 0.01 * (np.arange(n_points) + 1)


# =============================================================================
# SETTINGS AND RESULT DATACLASSES
# =============================================================================
@dataclass
class TableSettings:
    """
    Configuration for EOS table generation.

    n_B in fm⁻³, T in MeV. `Ye` is the electron fraction of the 2-D table.
    """
    # Grid definition
    n_B_values: np.ndarray = field(default_factory=nb_grid)
    T_values: np.ndarray = field(default_factory=T_grid)
    Ye_values: np.ndarray = field(default_factory=Ye_grid)
    Ye: float = 0.5

    # Parallelism over density rows
    n_workers: int = 1

    # Output control
    print_progress: bool = True
    print_timing: bool = True

    # File output
    save_to_file: bool = False
    output_filename: Optional[str] = None  # auto-generated if None


@dataclass
class TableResult:
    """
    Tabulated EOS.

    Attributes:
        kind: "Ye" (2-D, axes n_B, T) or "full" (3-D, axes n_B, Y_e, T)
        n_B, T, Ye: Grid values (Ye has one entry for a "Ye" table)
        arrays: Name → array on the grid
    """
    kind: str
    n_B: np.ndarray
    T: np.ndarray
    Ye: np.ndarray
    arrays: Dict[str, np.ndarray] = field(default_factory=dict)

    @property
    def names(self) -> List[str]:
        return list(self.arrays)


# =============================================================================
# ROW WORKERS
# =============================================================================
def _table_Ye_row(context: EOSContext, nb: float, Ye: float,
                  T_values: np.ndarray) -> Dict[str, np.ndarray]:
    """One density row of the fixed-Y_e table."""
    row = {name: np.zeros(len(T_values)) for name in TABLE_YE_NAMES}
    nn, pn = nb * (1.0 - Ye), nb * Ye
    for j, T_MeV in enumerate(T_values):
        T = T_MeV / hc
        th = free_energy_density(context, nn, pn, T)
        values = {
            "F": hc * th.f / nb,
            "f_total": th.f,
            "s": th.en,
            "g": th.g,
            "f_virial": th.f_virial,
            "s_virial": th.s_virial,
            "f_deg": th.f_deg,
            "dgdT": th.dgdT,
            "pr": th.pr,
            "pr_sign": np.sign(th.pr),
            "s_sign": np.sign(th.en),
            "msn": th.ms_n,
            "msp": th.ms_p,
        }
        for name, value in values.items():
            if not np.isfinite(value):
                raise UnphysicalResultError(
                    f"{name} not finite at n_B={nb:.6e} fm⁻³, T={T_MeV:.4f} MeV")
            row[name][j] = value
    return row


def _table_full_row(context: EOSContext, nb: float, Ye_values: np.ndarray,
                    T_values: np.ndarray) -> Dict[str, np.ndarray]:
    """One density row of the 3-D table."""
    shape = (len(Ye_values), len(T_values))
    row = {name: np.zeros(shape) for name in TABLE_FULL_NAMES}
    for j, Ye in enumerate(Ye_values):
        for k, T_MeV in enumerate(T_values):
            p = evaluate_point(context, nb, Ye, T_MeV, include_leptons=True)
            where = f"n_B={nb:.6e} fm⁻³, Y_e={Ye:.4f}, T={T_MeV:.4f} MeV"

            th, lep = p.thermo, p.leptons
            for label, value in (("Hadronic energy density", th.ed),
                                 ("Hadronic pressure", th.pr),
                                 ("Hadronic entropy density", th.en),
                                 ("Leptonic energy", lep.E),
                                 ("Leptonic pressure", lep.P),
                                 ("Leptonic entropy", lep.S)):
                if not np.isfinite(value):
                    raise UnphysicalResultError(f"{label} not finite at {where}")
            if p.S < 0.0 and th.pr > 0.0:
                raise UnphysicalResultError(
                    f"Entropy negative where pressure is positive at {where}: "
                    f"s_had={th.en:.6e}, pr_had={th.pr:.6e}")

            row["Fint"][j, k] = p.F_int
            row["F"][j, k] = p.F
            row["Eint"][j, k] = p.E_int
            row["E"][j, k] = p.E
            row["Pint"][j, k] = p.P_int
            row["P"][j, k] = p.P
            row["Sint"][j, k] = p.S_int
            row["S"][j, k] = p.S
            row["mun"][j, k] = p.mu_n
            row["mup"][j, k] = p.mu_p
    return row


def _run_rows(worker, context, n_B, extra_args, settings: TableSettings, label: str):
    """Evaluate all density rows, serially or in a process pool."""
    n_rows = len(n_B)
    t0 = time.time()

    if settings.n_workers > 1:
        with ProcessPoolExecutor(max_workers=settings.n_workers) as pool:
            iters = [repeat(context), n_B] + [repeat(a) for a in extra_args]
            rows = []
            for i, row in enumerate(pool.map(worker, *iters)):
                rows.append(row)
                if settings.print_progress:
                    print(f"{label}: row {i + 1}/{n_rows}")
    else:
        rows = []
        for i, nb in enumerate(n_B):
            rows.append(worker(context, nb, *extra_args))
            if settings.print_progress:
                print(f"{label}: row {i + 1}/{n_rows}  n_B={nb:.4e}")

    if settings.print_timing:
        dt = time.time() - t0
        print(f"{label}: {n_rows} rows in {dt:.2f} s ({dt / max(n_rows, 1):.3f} s/row)")
    return rows


# =============================================================================
# TABLE GENERATORS
# =============================================================================
def compute_table_Ye(context: EOSContext, Ye: Optional[float] = None,
                     settings: Optional[TableSettings] = None) -> TableResult:
    """
    2-D (n_B, T) table at fixed Y_e.

    Slices: F (MeV per baryon), s (fm⁻³), g, dgdT (fm), msn, msp (fm⁻¹),
    pr, f_deg, f_virial, f_total (fm⁻⁴), s_virial (fm⁻³), s_sign, pr_sign.

    Raises:
        UnphysicalResultError: a non-finite value, naming slice and point
        ModelNotSelectedError: the context has no selected model
    """
    if settings is None:
        settings = TableSettings()
    if Ye is None:
        Ye = settings.Ye
    context.require_model()

    n_B = np.asarray(settings.n_B_values, dtype=float)
    T = np.asarray(settings.T_values, dtype=float)

    if settings.print_progress:
        print("=" * 70)
        print(f"EOS TABLE AT FIXED Y_e = {Ye}")
        print(f"  {len(n_B)} densities x {len(T)} temperatures")
        print("=" * 70)

    rows = _run_rows(_table_Ye_row, context, n_B, (Ye, T), settings, "table_Ye")
    arrays = {name: np.vstack([r[name] for r in rows]) for name in TABLE_YE_NAMES}
    result = TableResult(kind="Ye", n_B=n_B, T=T, Ye=np.array([Ye]), arrays=arrays)

    if settings.save_to_file:
        filename = settings.output_filename or f"dsh_table_Ye{Ye:.2f}.npz"
        save_table_npz(result, filename)
    return result


def compute_table_full(context: EOSContext,
                       settings: Optional[TableSettings] = None) -> TableResult:
    """
    3-D (n_B, Y_e, T) table.

    Arrays (MeV units): Fint, F, Eint, E (per baryon), Pint, P (MeV/fm³),
    Sint, S (per baryon), mun, mup. `*int` are hadrons only; the others
    include electrons and photons.

    Raises:
        UnphysicalResultError: non-finite hadronic or leptonic quantities, or
            negative total entropy where the hadronic pressure is positive
        ModelNotSelectedError: the context has no selected model
    """
    if settings is None:
        settings = TableSettings()
    context.require_model()

    n_B = np.asarray(settings.n_B_values, dtype=float)
    Ye = np.asarray(settings.Ye_values, dtype=float)
    T = np.asarray(settings.T_values, dtype=float)

    if settings.print_progress:
        print("=" * 70)
        print("FULL EOS TABLE")
        print(f"  {len(n_B)} densities x {len(Ye)} Y_e x {len(T)} temperatures")
        print("=" * 70)

    rows = _run_rows(_table_full_row, context, n_B, (Ye, T), settings, "table_full")
    arrays = {name: np.stack([r[name] for r in rows]) for name in TABLE_FULL_NAMES}
    result = TableResult(kind="full", n_B=n_B, T=T, Ye=Ye, arrays=arrays)

    if settings.save_to_file:
        filename = settings.output_filename or "dsh_table_full.npz"
        save_table_npz(result, filename)
    return result


# =============================================================================
# PERSISTENCE
# =============================================================================
def save_table_npz(table: TableResult, filename: Union[str, Path]):
    """Grids, array names and arrays in one compressed .npz file."""
    np.savez_compressed(filename, kind=np.array(table.kind),
                        names=np.array(table.names), nB_grid=table.n_B,
                        T_grid=table.T, Ye_grid=table.Ye, **table.arrays)
    print(f"Saved to: {filename}")


def load_table_npz(filename: Union[str, Path]) -> TableResult:
    with np.load(filename) as data:
        names = [str(n) for n in data["names"]]
        return TableResult(kind=str(data["kind"]), n_B=data["nB_grid"],
                           T=data["T_grid"], Ye=data["Ye_grid"],
                           arrays={name: data[name] for name in names})


def save_table_dat(table: TableResult, filename: Union[str, Path]):
    """
    Flat text table, one grid point per line:

        # n_B T <names...>          (kind "Ye")
        # n_B Y_e T <names...>      (kind "full")
    """
    if table.kind == "Ye":
        grids = np.meshgrid(table.n_B, table.T, indexing="ij")
        axes = ["n_B", "T"]
    else:
        grids = np.meshgrid(table.n_B, table.Ye, table.T, indexing="ij")
        axes = ["n_B", "Y_e", "T"]

    columns = [g.ravel() for g in grids] + [table.arrays[n].ravel() for n in table.names]
    header = f"kind={table.kind}\n" + " ".join(axes + table.names)
    np.savetxt(filename, np.column_stack(columns), header=header, fmt="%.10e")
    print(f"Saved to: {filename}")


# =============================================================================
# CONFIGURATION (EDIT THIS SECTION)
# =============================================================================
NS_TABLE_FILE = None                 # neutron-star table, "# nb_max EoA_0 ..."
SKYRME_TABLE_FILE = None             # None = shipped UNEDF reference file
TABLE_KIND = "Ye"                    # "Ye" or "full"
MODEL = dict(i_ns=0, i_skyrme=0, qmc_alpha=0.48, qmc_a=12.7,
             eos_L=50.0, eos_S=32.0, phi=0.5)

settings = TableSettings(
    n_B_values=nb_grid(),
    T_values=T_grid(),
    Ye_values=Ye_grid(),
    Ye=0.5,
    n_workers=4,
    print_progress=True,
    print_timing=True,
    save_to_file=True,
    output_filename=None,
)


# =============================================================================
# MAIN
# =============================================================================
if __name__ == "__main__":
    from dsh_data_tables import EOSTables, load_neutron_star_table, load_skyrme_table
    from dsh_parameters import ModelParameters, get_context_default
    from dsh_model_selection import select_internal

    if NS_TABLE_FILE is None:
        raise SystemExit("Set NS_TABLE_FILE in the CONFIGURATION section first.")

    skyrme = load_skyrme_table() if SKYRME_TABLE_FILE is None \
        else load_skyrme_table(SKYRME_TABLE_FILE)
    tables = EOSTables(neutron_star=load_neutron_star_table(NS_TABLE_FILE), skyrme=skyrme)
    ctx = get_context_default(tables, verbose=1)

    res = select_internal(ctx, ModelParameters(**MODEL))
    if not res.accepted:
        raise SystemExit(f"Model is unphysical (iret={int(res.status)}, {res.status.name}).")

    if TABLE_KIND == "full":
        table = compute_table_full(res.context, settings)
    else:
        table = compute_table_Ye(res.context, settings.Ye, settings)
    print("\nDONE!")
