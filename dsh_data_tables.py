"""
dsh_data_tables.py
==================
Readers and writers for the two input tables of the combined EOS.

1. Neutron-star table: one row per neutron-star EOS,

       # nb_max EoA_0 EoA_1 ... EoA_99

   EoA_i is the energy per baryon (fm⁻¹, relative to 939 MeV) at
   n_i = 0.04 + 0.012 i fm⁻³; unused trailing entries are zero.

2. Skyrme table: one row per nuclear-matter parameter set,

       # rho0 Crdr0 Vp EoA Crdr1 CrdJ0 K Ms_inv Vn CrdJ1

   (fm⁻³, MeV, MeV fm⁵). Columns are addressed by name, so any order and
   extra columns are accepted.

Both are whitespace text files with a `#`-prefixed header line, read with
numpy.loadtxt.
"""
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Union

import numpy as np


N_EOA_COLUMNS = 100
SKYRME_COLUMNS = ["rho0", "Crdr0", "Vp", "EoA", "Crdr1", "CrdJ0", "K",
                  "Ms_inv", "Vn", "CrdJ1"]

DATA_DIR = Path(__file__).resolve().parent / "data"
DEFAULT_SKYRME_FILE = DATA_DIR / "skyrme_unedf.dat"


# =============================================================================
# HEADER HANDLING
# =============================================================================
def _read_header(filename: Union[str, Path]) -> List[str]:
    """Column names from the first `#` line of a table file."""
    with open(filename) as fh:
        for line in fh:
            stripped = line.strip()
            if stripped.startswith("#"):
                names = stripped.lstrip("#").split()
                if names:
                    return names
            elif stripped:
                break
    raise ValueError(f"No '#' header line with column names in {filename}")


def _load_columns(filename: Union[str, Path]) -> Dict[str, np.ndarray]:
    names = _read_header(filename)
    raw = np.loadtxt(filename, comments="#", ndmin=2)
    if raw.shape[1] != len(names):
        raise ValueError(f"{filename}: header has {len(names)} names but rows "
                         f"have {raw.shape[1]} columns")
    return {name: raw[:, i] for i, name in enumerate(names)}


# =============================================================================
# NEUTRON-STAR TABLE
# =============================================================================
@dataclass
class NeutronStarTable:
    """
    Neutron-star EOS table.

    Attributes:
        nb_max: (n_rows,) maximum density of each EOS (fm⁻³)
        eoa: (n_rows, 100) E/A on the fixed density grid (fm⁻¹)
    """
    nb_max: np.ndarray
    eoa: np.ndarray

    def __post_init__(self):
        self.nb_max = np.atleast_1d(np.asarray(self.nb_max, dtype=float))
        self.eoa = np.atleast_2d(np.asarray(self.eoa, dtype=float))
        if self.eoa.shape[0] != self.nb_max.shape[0]:
            raise ValueError(f"nb_max has {self.nb_max.shape[0]} rows, "
                             f"EoA has {self.eoa.shape[0]}")

    @property
    def n_rows(self) -> int:
        return self.nb_max.shape[0]

    @staticmethod
    def density_grid(n_points: int = N_EOA_COLUMNS) -> np.ndarray:
        return 0.04 + 0.012 * np.arange(n_points)


def load_neutron_star_table(filename: Union[str, Path]) -> NeutronStarTable:
    cols = _load_columns(filename)
    if "nb_max" not in cols:
        raise ValueError(f"{filename}: missing column 'nb_max'")
    eoa_names = sorted((k for k in cols if k.startswith("EoA_")),
                       key=lambda k: int(k.split("_")[1]))
    if not eoa_names:
        raise ValueError(f"{filename}: no EoA_i columns")
    eoa = np.column_stack([cols[k] for k in eoa_names])
    return NeutronStarTable(nb_max=cols["nb_max"], eoa=eoa)


def save_neutron_star_table(table: NeutronStarTable, filename: Union[str, Path]):
    header = "nb_max " + " ".join(f"EoA_{i}" for i in range(table.eoa.shape[1]))
    data = np.column_stack([table.nb_max, table.eoa])
    np.savetxt(filename, data, header=header, fmt="%.10e")


# =============================================================================
# SKYRME TABLE
# =============================================================================
@dataclass
class SkyrmeTable:
    """Skyrme nuclear-matter parameter table, columns addressed by name."""
    columns: Dict[str, np.ndarray] = field(default_factory=dict)

    def __post_init__(self):
        missing = [c for c in SKYRME_COLUMNS if c not in self.columns]
        if missing:
            raise ValueError(f"Skyrme table is missing columns {missing}")
        self.columns = {k: np.atleast_1d(np.asarray(v, dtype=float))
                        for k, v in self.columns.items()}

    @property
    def n_rows(self) -> int:
        return self.columns["rho0"].shape[0]

    def row(self, i: int) -> Dict[str, float]:
        if not 0 <= i < self.n_rows:
            raise ValueError(f"Skyrme row {i} out of range (table has {self.n_rows} rows)")
        return {k: float(v[i]) for k, v in self.columns.items()}


def load_skyrme_table(filename: Union[str, Path] = DEFAULT_SKYRME_FILE) -> SkyrmeTable:
    return SkyrmeTable(columns=_load_columns(filename))


def save_skyrme_table(table: SkyrmeTable, filename: Union[str, Path]):
    names = SKYRME_COLUMNS + [k for k in table.columns if k not in SKYRME_COLUMNS]
    data = np.column_stack([table.columns[k] for k in names])
    np.savetxt(filename, data, header=" ".join(names), fmt="%.8e")


@dataclass
class EOSTables:
    """The pair of input tables a model is selected from."""
    neutron_star: NeutronStarTable
    skyrme: SkyrmeTable


# =============================================================================
# SELF-TEST
# =============================================================================
if __name__ == "__main__":
    sk = load_skyrme_table()
    print(f"Skyrme table {DEFAULT_SKYRME_FILE.name}: {sk.n_rows} rows")
    for i in range(sk.n_rows):
        r = sk.row(i)
        print("  " + "  ".join(f"{k}={r[k]:.4g}" for k in SKYRME_COLUMNS))
