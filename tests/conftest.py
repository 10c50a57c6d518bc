"""Shared fixtures: synthetic input tables and a selected EOS context."""

import numpy as np
import pytest

from general_physics_constants import hc
from dsh_data_tables import EOSTables, NeutronStarTable, SkyrmeTable, load_skyrme_table
from dsh_parameters import ModelParameters, get_context_default
from dsh_model_selection import SelectionStatus, select_internal


# SLy4-like saturation properties with UNEDF1 gradient couplings
SLY4_LIKE_ROW = {
    "rho0": [0.1596], "EoA": [-15.97], "K": [229.9], "Ms_inv": [1.439],
    "Crdr0": [-45.135], "Crdr1": [-145.382], "CrdJ0": [-74.026],
    "CrdJ1": [-35.658], "Vp": [0.0], "Vn": [0.0],
}

# Row 0: E/A = 100 n + 250 n² MeV. Above symmetric matter up to n = 2 fm⁻³;
# c_s² reaches 1 at n = (939.565/750)^{1/2} ≈ 1.12 fm⁻³.
NS_STIFF_PARAMS = (0.0, 100.0, 0.0, 250.0, 0.0)
# Row 1: E/A = 10 √n + 100 n² + 60 n³ MeV. Falls below symmetric matter
# near n = 0.8 fm⁻³, so β equilibrium needs Y_e < 0 there.
NS_PARAMS = (10.0, 0.0, 0.0, 100.0, 60.0)
NS_NB_MAX = 1.2
NS_ROW_STIFF, NS_ROW_SOFT = 0, 1


def make_neutron_star_table(rows=((NS_STIFF_PARAMS, NS_NB_MAX), (NS_PARAMS, NS_NB_MAX))):
    """Table with one row per (E/A coefficients in the √n form, nb_max)."""
    grid = NeutronStarTable.density_grid()
    eoa = np.zeros((len(rows), grid.size))
    nb_max = []
    for i, (params, nmax) in enumerate(rows):
        mask = grid < nmax
        n = grid[mask]
        eoa[i, mask] = (params[0] * np.sqrt(n) + params[1] * n + params[2] * n**1.5
                        + params[3] * n**2 + params[4] * n**3) / hc
        nb_max.append(nmax)
    return NeutronStarTable(nb_max=nb_max, eoa=eoa)


@pytest.fixture(scope="session")
def ns_table():
    return make_neutron_star_table()


@pytest.fixture(scope="session")
def sly4_like_table():
    return SkyrmeTable(columns=SLY4_LIKE_ROW)


@pytest.fixture(scope="session")
def eos_tables(ns_table, sly4_like_table):
    return EOSTables(neutron_star=ns_table, skyrme=sly4_like_table)


@pytest.fixture(scope="session")
def unedf_tables(ns_table):
    """Synthetic neutron-star table with the shipped UNEDF0/UNEDF1 rows."""
    return EOSTables(neutron_star=ns_table, skyrme=load_skyrme_table())


@pytest.fixture(scope="session")
def base_params():
    return ModelParameters(i_ns=NS_ROW_STIFF, i_skyrme=0, qmc_alpha=0.48, qmc_a=12.7,
                           eos_L=50.0, eos_S=32.0, phi=0.5)


@pytest.fixture(scope="session")
def unselected_context(eos_tables):
    return get_context_default(eos_tables, select_cs2_test=False)


@pytest.fixture(scope="session")
def selected_context(unselected_context, base_params):
    """Context with the SLy4-like model accepted by the full validation."""
    res = select_internal(unselected_context, base_params)
    assert res.status == SelectionStatus.OK
    return res.context
