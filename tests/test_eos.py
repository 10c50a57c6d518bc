"""Tests for the combined free energy and the point-evaluation helpers."""

from dataclasses import replace

import numpy as np
import pytest

from general_physics_constants import hc
from general_thermodynamics_leptons import electron_thermo_from_density, photon_thermo
from dsh_eos import (
    check_derivatives, dfdnn_total, dfdpn_total, evaluate_point,
    free_energy_density, free_energy_density_ep, solve_beta_equilibrium_ye,
    solve_temperature_for_entropy, total_energy_density, total_entropy,
    virial_comparison,
)
from dsh_parameters import ModelNotSelectedError
from dsh_model_selection import prepare_model
from conftest import NS_ROW_SOFT


T10 = 10.0 / hc


class TestUnselected:

    def test_free_energy_requires_model(self, unselected_context):
        with pytest.raises(ModelNotSelectedError):
            free_energy_density(unselected_context, 0.05, 0.05, T10)

    def test_evaluate_point_requires_model(self, unselected_context):
        with pytest.raises(ModelNotSelectedError):
            evaluate_point(unselected_context, 0.1, 0.3, 10.0)

    def test_beta_equilibrium_requires_model(self, unselected_context):
        with pytest.raises(ModelNotSelectedError):
            solve_beta_equilibrium_ye(unselected_context, 0.16, T10)


class TestCombiner:

    @pytest.mark.parametrize("nb, ye, T_MeV", [(0.1, 0.3, 10.0), (0.02, 0.45, 5.0),
                                               (0.3, 0.1, 20.0)])
    def test_derivatives_consistent(self, selected_context, nb, ye, T_MeV):
        chk = check_derivatives(selected_context, nb * (1.0 - ye), nb * ye, T_MeV / hc)
        assert chk.mu_n == pytest.approx(chk.mu_n_num, rel=1e-3, abs=1e-4)
        assert chk.mu_p == pytest.approx(chk.mu_p_num, rel=1e-3, abs=1e-4)
        assert chk.en == pytest.approx(chk.en_num, rel=1e-3, abs=1e-6)

    def test_repeatable(self, selected_context):
        a = free_energy_density(selected_context, 0.07, 0.03, T10)
        b = free_energy_density(selected_context, 0.07, 0.03, T10)
        assert a == b

    def test_virial_limit(self, selected_context):
        th = free_energy_density(selected_context, 0.5e-8, 0.5e-8, T10)
        assert th.g == pytest.approx(1.0, abs=1e-6)
        assert th.f == pytest.approx(th.f_virial, rel=1e-5)

    def test_degenerate_limit(self, selected_context):
        th = free_energy_density(selected_context, 0.25, 0.25, 1.0 / hc)
        assert th.g < 1e-2
        assert th.h < 1e-2

    def test_thermodynamic_identities(self, selected_context):
        nn, pn = 0.08, 0.04
        th = free_energy_density(selected_context, nn, pn, T10)
        assert th.pr == pytest.approx(nn * th.mu_n + pn * th.mu_p - th.f)
        assert th.ed == pytest.approx(th.f + T10 * th.en)

    def test_verbose_prints_diagnostics(self, selected_context, capsys):
        loud = replace(selected_context, verbose=1)
        free_energy_density(loud, 0.05, 0.05, T10)
        out = capsys.readouterr().out
        assert "g_virial=" in out and "f_total=" in out


class TestLeptonOracles:

    def test_entropy_and_energy(self, selected_context):
        nn, pn = 0.07, 0.03
        had = free_energy_density(selected_context, nn, pn, T10)
        ele = electron_thermo_from_density(pn, 10.0)
        gam = photon_thermo(10.0)

        assert total_entropy(selected_context, nn, pn, T10) == pytest.approx(
            had.en + ele.s + gam.s)
        assert total_energy_density(selected_context, nn, pn, T10) == pytest.approx(
            had.ed + (ele.e + gam.e) / hc + selected_context.m_n * nn
            + selected_context.m_p * pn)
        assert free_energy_density_ep(selected_context, nn, pn, T10) == pytest.approx(
            had.f + (ele.e + gam.e) / hc - T10 * (ele.s + gam.s))

    def test_chemical_potentials_include_rest_mass(self, selected_context):
        nn, pn = 0.07, 0.03
        had = free_energy_density(selected_context, nn, pn, T10)
        ele = electron_thermo_from_density(pn, 10.0)
        assert dfdnn_total(selected_context, nn, pn, T10) == pytest.approx(
            had.mu_n + selected_context.m_n)
        assert dfdpn_total(selected_context, nn, pn, T10) == pytest.approx(
            had.mu_p + ele.mu / hc + selected_context.m_p)


class TestEvaluatePoint:

    @pytest.mark.parametrize("nb, ye, T_MeV", [(0.16, 0.01, 10.0), (0.48, 0.5, 10.0),
                                               (1e-4, 0.3, 2.0)])
    def test_finite(self, selected_context, nb, ye, T_MeV):
        p = evaluate_point(selected_context, nb, ye, T_MeV)
        for value in (p.F, p.E, p.P, p.S, p.F_int, p.E_int, p.P_int, p.S_int,
                      p.mu_n, p.mu_p, p.mu_e):
            assert np.isfinite(value)
        assert p.S > 0.0
        assert p.P > p.P_int

    def test_low_temperature(self, selected_context):
        p = evaluate_point(selected_context, 0.16, 0.01, 0.1)
        for value in (p.F, p.E, p.P, p.S, p.F_int, p.E_int, p.P_int, p.S_int,
                      p.mu_n, p.mu_p, p.mu_e):
            assert np.isfinite(value)
        assert p.S >= 0.0

    def test_lepton_sum(self, selected_context):
        p = evaluate_point(selected_context, 0.1, 0.3, 10.0)
        lep = p.leptons
        assert p.F == pytest.approx(p.F_int + lep.F)
        assert p.E == pytest.approx(p.E_int + lep.E)
        assert p.P == pytest.approx(p.P_int + lep.P)
        assert p.S == pytest.approx(p.S_int + lep.S)
        assert p.mu_e == lep.mu_e

    def test_hadrons_only(self, selected_context):
        p = evaluate_point(selected_context, 0.1, 0.3, 10.0, include_leptons=False)
        assert p.leptons is None
        assert p.F == p.F_int and p.P == p.P_int and p.mu_e == 0.0

    def test_units(self, selected_context):
        p = evaluate_point(selected_context, 0.1, 0.3, 10.0)
        th = p.thermo
        assert p.F_int == pytest.approx(th.f / 0.1 * hc)
        assert p.P_int == pytest.approx(th.pr * hc)
        assert p.S_int == pytest.approx(th.en / 0.1)
        assert p.mu_n == pytest.approx(th.mu_n * hc)

    def test_muons_add_pressure(self, selected_context):
        with_mu = replace(selected_context, include_muons=True)
        p0 = evaluate_point(selected_context, 0.16, 0.3, 10.0)
        p1 = evaluate_point(with_mu, 0.16, 0.3, 10.0)
        assert p1.P > p0.P
        assert p1.P_int == pytest.approx(p0.P_int)

    @pytest.mark.parametrize("nb, ye, T_MeV", [(0.0, 0.3, 10.0), (0.1, 0.0, 10.0),
                                               (0.1, 1.0, 10.0), (0.1, 0.3, 0.0)])
    def test_invalid_inputs(self, selected_context, nb, ye, T_MeV):
        with pytest.raises(ValueError):
            evaluate_point(selected_context, nb, ye, T_MeV)


class TestBetaEquilibrium:

    @pytest.fixture(scope="class")
    def soft_context(self, unselected_context, base_params):
        _, model = prepare_model(unselected_context, replace(base_params, i_ns=NS_ROW_SOFT))
        return replace(unselected_context, model=model)

    def test_saturation_density(self, selected_context):
        beq = solve_beta_equilibrium_ye(selected_context, 0.16, 1.0 / hc)
        assert beq.converged
        assert beq.out_of_range == 0
        assert 0.0 < beq.Y_e < 0.5
        assert abs(beq.residual) < 1e-6

    def test_high_density(self, selected_context):
        beq = solve_beta_equilibrium_ye(selected_context, 2.0, 1.0 / hc)
        assert beq.converged
        assert 0.0 < beq.Y_e < 1.0

    def test_small_electron_fraction_found(self, soft_context):
        # The root sits just above Y_e = 0 at 0.45 fm⁻³
        beq = solve_beta_equilibrium_ye(soft_context, 0.45, 1.0 / hc)
        assert beq.converged
        assert 1e-6 < beq.Y_e < 0.01
        assert abs(beq.residual) < 1e-6

    def test_root_below_zero(self, soft_context):
        beq = solve_beta_equilibrium_ye(soft_context, 0.8, 1.0 / hc)
        assert not beq.converged
        assert beq.out_of_range == -1
        assert np.isnan(beq.Y_e)
        assert beq.residual < 0.0

    def test_negative_effective_mass(self, selected_context):
        model = selected_context.model
        skyrme = replace(model.skyrme, t1=-4.0, x1=0.0, t2=0.0, x2=0.0)
        ctx = replace(selected_context, model=replace(model, skyrme=skyrme))
        beq = solve_beta_equilibrium_ye(ctx, 2.0, 1.0 / hc)
        assert not beq.converged
        assert beq.out_of_range == 0
        assert "m* < 0" in beq.message

    def test_invalid_density(self, selected_context):
        with pytest.raises(ValueError):
            solve_beta_equilibrium_ye(selected_context, 0.0, 1.0 / hc)


class TestIsentropes:

    def test_temperature_for_entropy(self, selected_context):
        nb, ye = 0.1, 0.3
        s_target = total_entropy(selected_context, nb * (1.0 - ye), nb * ye, T10) / nb
        T = solve_temperature_for_entropy(selected_context, nb, ye, s_target,
                                          T_bracket=(2.0, 40.0))
        assert T == pytest.approx(10.0, rel=1e-6)

    def test_unbracketed_entropy(self, selected_context):
        with pytest.raises(ValueError):
            solve_temperature_for_entropy(selected_context, 0.1, 0.3, 1.0e3,
                                          T_bracket=(2.0, 40.0))


def test_virial_comparison(selected_context):
    F_model, F_virial = virial_comparison(selected_context, 10.0, [1e-7, 1e-6])
    assert F_model.shape == (2,)
    assert np.allclose(F_model, F_virial, rtol=1e-4)
