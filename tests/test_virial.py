"""Tests for virial_coefficients and virial_gas."""

import numpy as np
import pytest
from numdifftools import Derivative

from general_physics_constants import hc
from virial_coefficients import (
    BN_DATA, T_NEUTRON_DATA, VirialCoefficients, fit_virial_coefficients,
    get_virial_default,
)
from virial_gas import DILUTE_LIMIT, solve_virial_gas, thermal_wavelength


class TestVirialCoefficients:

    def test_high_temperature_limits(self):
        vc = get_virial_default()
        assert vc.bn(150.0) == pytest.approx(-2.0**-2.5, abs=1e-3)
        assert abs(vc.bpn(150.0)) < 0.05

    def test_bn_reproduces_data(self):
        vc = get_virial_default()
        mask = (T_NEUTRON_DATA >= 1.0) & (T_NEUTRON_DATA <= 50.0)
        assert np.allclose(vc.bn(T_NEUTRON_DATA[mask]), BN_DATA[mask], atol=0.02)

    @pytest.mark.parametrize("T", [0.5, 3.0, 12.0, 40.0])
    def test_analytic_temperature_derivatives(self, T):
        vc = get_virial_default()
        assert vc.dbn_dT(T) == pytest.approx(Derivative(vc.bn)(T), rel=1e-6, abs=1e-9)
        assert vc.dbpn_dT(T) == pytest.approx(Derivative(vc.bpn)(T), rel=1e-6, abs=1e-9)

    def test_parameter_count_checked(self):
        with pytest.raises(ValueError):
            VirialCoefficients(bn_params=(1.0, 2.0))

    def test_refit_returns_new_set(self):
        vc = get_virial_default()
        res = fit_virial_coefficients(vc)
        assert res.coeffs is not vc
        assert len(res.coeffs.bn_params) == 10
        assert np.isfinite(res.chi2_bn) and np.isfinite(res.chi2_bpn)
        # The input set is untouched
        assert vc == get_virial_default()


class TestVirialGas:

    def test_dilute_matches_classical_gas(self):
        T = 10.0 / hc
        lam3 = thermal_wavelength(T)**3
        n = 0.5 * DILUTE_LIMIT / lam3
        r = solve_virial_gas(n, n, T)
        assert r.dilute
        assert r.mu_n == pytest.approx(T * np.log(n * lam3 / 2.0), rel=1e-12)
        assert r.P == pytest.approx(2.0 * n * T, rel=1e-12)

    def test_dilute_temperature_derivatives(self):
        T = 10.0 / hc
        n = 1e-3 * DILUTE_LIMIT / thermal_wavelength(T)**3
        r = solve_virial_gas(n, n, T)
        assert r.dilute

        d_T = Derivative(lambda x: solve_virial_gas(n, n, x).mu_n, step=1e-3 * T)(T)
        s_num = -Derivative(lambda x: solve_virial_gas(n, n, x).f, step=1e-3 * T)(T)
        assert r.dmun_dT == pytest.approx(d_T, rel=1e-6)
        assert r.dmun_dT == pytest.approx(r.mu_n / T - 1.5, rel=1e-12)
        assert r.s == pytest.approx(s_num, rel=1e-6)

    def test_branches_agree_near_switch(self):
        T = 10.0 / hc
        lam3 = thermal_wavelength(T)**3
        n = 2.0 * DILUTE_LIMIT / lam3
        r = solve_virial_gas(n, n, T)
        assert not r.dilute
        assert abs(r.mu_n - T * np.log(n * lam3 / 2.0)) / T < 1e-3
        assert r.P == pytest.approx(2.0 * n * T, rel=1e-3)

    def test_densities_reproduced(self):
        T = 5.0 / hc
        r = solve_virial_gas(0.02, 0.01, T)
        A = 2.0 / r.lam**3
        n_n = A * (r.z_n + 2.0 * r.z_n**2 * r.b_n + 2.0 * r.z_n * r.z_p * r.b_pn)
        n_p = A * (r.z_p + 2.0 * r.z_p**2 * r.b_n + 2.0 * r.z_n * r.z_p * r.b_pn)
        assert n_n == pytest.approx(0.02, rel=1e-8)
        assert n_p == pytest.approx(0.01, rel=1e-8)

    def test_derivatives_match_numerical(self):
        T = 8.0 / hc
        nn, pn = 0.01, 0.004
        r = solve_virial_gas(nn, pn, T)

        d_nn = Derivative(lambda x: solve_virial_gas(x, pn, T).mu_n, step=1e-3 * nn)(nn)
        d_pn = Derivative(lambda x: solve_virial_gas(nn, x, T).mu_p, step=1e-3 * pn)(pn)
        d_T = Derivative(lambda x: solve_virial_gas(nn, pn, x).mu_n, step=1e-3 * T)(T)
        s_num = -Derivative(lambda x: solve_virial_gas(nn, pn, x).f, step=1e-3 * T)(T)

        assert r.dmun_dnn == pytest.approx(d_nn, rel=1e-4)
        assert r.dmup_dnp == pytest.approx(d_pn, rel=1e-4)
        assert r.dmun_dT == pytest.approx(d_T, rel=1e-4)
        assert r.s == pytest.approx(s_num, rel=1e-4)

    def test_free_energy_consistency(self):
        T = 5.0 / hc
        r = solve_virial_gas(0.01, 0.01, T)
        assert r.f == pytest.approx(r.mu_n * 0.01 + r.mu_p * 0.01 - r.P)
        assert r.e == pytest.approx(r.f + T * r.s)

    @pytest.mark.parametrize("args", [(0.0, 0.01, 0.05), (0.01, -1.0, 0.05),
                                      (0.01, 0.01, 0.0)])
    def test_invalid_inputs(self, args):
        with pytest.raises(ValueError):
            solve_virial_gas(*args)
