"""Tests for EOS table generation on small grids."""

import numpy as np
import pytest

from dsh_compute_tables import (
    TABLE_FULL_NAMES, TABLE_YE_NAMES, T_grid, TableSettings, Ye_grid,
    compute_table_Ye, compute_table_full, load_table_npz, nb_grid,
    save_table_dat, save_table_npz,
)
from dsh_parameters import ModelNotSelectedError


def _settings(**kwargs):
    base = dict(n_B_values=np.array([0.01, 0.16]), T_values=np.array([5.0, 10.0]),
                Ye_values=np.array([0.3]), n_workers=1, print_progress=False,
                print_timing=False, save_to_file=False)
    base.update(kwargs)
    return TableSettings(**base)


@pytest.fixture(scope="module")
def table_ye(selected_context):
    return compute_table_Ye(selected_context, 0.3, _settings())


@pytest.fixture(scope="module")
def table_full(selected_context):
    return compute_table_full(selected_context, _settings(T_values=np.array([10.0])))


class TestGrids:

    def test_density_grid(self):
        nb = nb_grid()
        assert nb.size == 301
        assert nb[0] == pytest.approx(2e-12)
        assert nb[-1] == pytest.approx(2.0)

    def test_temperature_grid(self):
        T = T_grid()
        assert T.size == 160
        assert T[0] == pytest.approx(0.2)
        assert T[-1] == pytest.approx(0.2 + 0.81 * 159)

    def test_electron_fraction_grid(self):
        ye = Ye_grid()
        assert ye.size == 99
        assert ye[0] == pytest.approx(0.01)
        assert ye[-1] == pytest.approx(0.99)


class TestTableYe:

    def test_shapes(self, table_ye):
        assert table_ye.kind == "Ye"
        assert table_ye.names == TABLE_YE_NAMES
        for name in TABLE_YE_NAMES:
            assert table_ye.arrays[name].shape == (2, 2)
            assert np.all(np.isfinite(table_ye.arrays[name]))

    def test_contents(self, table_ye):
        arr = table_ye.arrays
        assert np.all((arr["g"] >= 0.0) & (arr["g"] <= 1.0))
        assert np.allclose(arr["s_sign"], np.sign(arr["s"]))
        assert np.all(arr["msn"] > 0.0)

    def test_requires_model(self, unselected_context):
        with pytest.raises(ModelNotSelectedError):
            compute_table_Ye(unselected_context, 0.3, _settings())

    def test_npz_round_trip(self, table_ye, tmp_path):
        path = tmp_path / "table_ye.npz"
        save_table_npz(table_ye, path)
        loaded = load_table_npz(path)
        assert loaded.kind == "Ye"
        assert loaded.names == table_ye.names
        assert np.allclose(loaded.T, table_ye.T)
        assert np.array_equal(loaded.arrays["F"], table_ye.arrays["F"])

    def test_dat_output(self, table_ye, tmp_path):
        path = tmp_path / "table_ye.dat"
        save_table_dat(table_ye, path)
        data = np.loadtxt(path)
        assert data.shape == (4, 2 + len(TABLE_YE_NAMES))
        assert "n_B T F" in path.read_text().splitlines()[1]

    def test_progress_output(self, selected_context, capsys):
        compute_table_Ye(selected_context, 0.3,
                         _settings(n_B_values=np.array([0.05]), print_progress=True))
        out = capsys.readouterr().out
        assert "FIXED Y_e" in out and "row 1/1" in out


class TestTableFull:

    def test_shapes(self, table_full):
        assert table_full.kind == "full"
        for name in TABLE_FULL_NAMES:
            assert table_full.arrays[name].shape == (2, 1, 1)

    def test_leptons_included(self, table_full):
        arr = table_full.arrays
        assert np.all(arr["P"] > arr["Pint"])
        assert np.all(arr["S"] > arr["Sint"])
        assert np.all(arr["S"] > 0.0)

    def test_saved_file(self, selected_context, tmp_path):
        path = tmp_path / "full.npz"
        compute_table_full(selected_context,
                           _settings(n_B_values=np.array([0.05]), T_values=np.array([10.0]),
                                     save_to_file=True, output_filename=str(path)))
        loaded = load_table_npz(path)
        assert loaded.kind == "full"
        assert loaded.arrays["mun"].shape == (1, 1, 1)
