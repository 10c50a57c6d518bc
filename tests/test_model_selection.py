"""Tests for parameter validation and random model construction."""

from dataclasses import replace

import numpy as np
import pytest

import dsh_model_selection
from dsh_data_tables import EOSTables, SkyrmeTable
from dsh_eos import BetaEquilibriumResult
from dsh_parameters import ModelNotSelectedError, ModelParameters, get_context_default
from dsh_model_selection import (
    SelectionStatus, prepare_model, random_parameters, select_internal,
    select_random, sl_corridor_ok,
)
from conftest import NS_PARAMS, NS_ROW_SOFT, SLY4_LIKE_ROW, make_neutron_star_table


class TestCorridor:

    @pytest.mark.parametrize("S, L, ok", [(32.0, 50.0, True), (30.0, 100.0, False),
                                          (32.0, 20.0, False), (36.0, 120.0, True)])
    def test_sl_corridor(self, S, L, ok):
        assert sl_corridor_ok(S, L) is ok


class TestPrepareModel:

    def test_accepts_reference_model(self, unselected_context, base_params):
        status, model = prepare_model(unselected_context, base_params)
        assert status == SelectionStatus.OK
        assert model.params == base_params
        assert model.extension.branch == "decreasing"
        assert model.qmc.b == pytest.approx(32.0 - 15.97 - 12.7)
        assert model.eos_n0 == pytest.approx(0.1596)

    def test_input_context_untouched(self, unselected_context, base_params):
        prepare_model(unselected_context, base_params)
        assert not unselected_context.model_selected
        with pytest.raises(ModelNotSelectedError):
            unselected_context.require_model()

    def test_needs_tables(self, base_params):
        with pytest.raises(ValueError):
            prepare_model(get_context_default(), base_params)

    def test_qmc_coefficients(self, unselected_context, base_params):
        status, model = prepare_model(unselected_context, replace(base_params, qmc_a=40.0))
        assert status == SelectionStatus.QMC_COEFFICIENTS
        assert model is None

    def test_effective_mass_symmetric(self, unedf_tables, base_params):
        ctx = get_context_default(unedf_tables)
        status, _ = prepare_model(ctx, replace(base_params, i_skyrme=0))
        assert status == SelectionStatus.EFFMASS_SYMMETRIC

    def test_effective_mass_neutron(self, unedf_tables, base_params):
        ctx = get_context_default(unedf_tables)
        status, _ = prepare_model(ctx, replace(base_params, i_skyrme=1))
        assert status == SelectionStatus.EFFMASS_NEUTRON

    def test_skyrme_row_out_of_range(self, unselected_context, base_params):
        with pytest.raises(ValueError):
            prepare_model(unselected_context, replace(base_params, i_skyrme=7))


class TestSelectInternal:

    def test_reference_model_accepted(self, unselected_context, base_params, capsys):
        loud = replace(unselected_context, verbose=1)
        res = select_internal(loud, base_params)
        assert res.status == SelectionStatus.OK
        assert res.accepted
        assert res.context.model_selected
        assert res.context.model.params == base_params
        assert not loud.model_selected
        out = capsys.readouterr().out
        assert "Going to beta-eq test" in out and "Model accepted" in out

    def test_corridor_rejection_keeps_context(self, unselected_context, base_params):
        params = replace(base_params, eos_S=30.0, eos_L=100.0)
        res = select_internal(unselected_context, params)
        assert res.status == SelectionStatus.SL_CORRIDOR
        assert int(res.status) == 2
        assert not res.accepted
        assert res.context is unselected_context
        assert res.params == params

    def test_rejection_is_reported(self, unselected_context, base_params, capsys):
        loud = replace(unselected_context, verbose=1)
        select_internal(loud, replace(base_params, eos_S=30.0, eos_L=100.0))
        assert "SL_CORRIDOR (2)" in capsys.readouterr().out

    def test_negative_neutron_star_sound_speed(self, sly4_like_table, base_params):
        # E/A = 100 n - 100 n² softens to dμ/dn < 0 above n = 1/3 fm⁻³
        ns = make_neutron_star_table(rows=(((0.0, 100.0, 0.0, -100.0, 0.0), 0.8),))
        ctx = get_context_default(EOSTables(neutron_star=ns, skyrme=sly4_like_table),
                                  select_cs2_test=False)
        res = select_internal(ctx, replace(base_params, i_ns=0))
        assert res.status == SelectionStatus.NS_NEGATIVE_CS2

    def test_bound_dineutron(self, ns_table, base_params):
        # Deep binding: E/A + S < 0 in neutron matter at saturation
        row = dict(SLY4_LIKE_ROW, rho0=[0.155], EoA=[-40.0])
        ctx = get_context_default(EOSTables(neutron_star=ns_table,
                                            skyrme=SkyrmeTable(columns=row)),
                                  select_cs2_test=False)
        # b = S + E/A - a = 12 MeV keeps the QMC coefficients acceptable
        res = select_internal(ctx, replace(base_params, qmc_a=-20.0))
        assert res.status == SelectionStatus.BOUND_DINEUTRON

    def test_high_density_match_failure(self, sly4_like_table, base_params):
        ns = make_neutron_star_table(rows=((NS_PARAMS, 0.7),))
        ctx = get_context_default(EOSTables(neutron_star=ns, skyrme=sly4_like_table),
                                  select_cs2_test=False)
        res = select_internal(ctx, replace(base_params, i_ns=0, phi=1.5))
        assert res.status == SelectionStatus.HIGH_DENSITY_MATCH

    def test_beta_equilibrium_root_below_zero(self, unselected_context, base_params):
        res = select_internal(unselected_context, replace(base_params, i_ns=NS_ROW_SOFT))
        assert res.status == SelectionStatus.BETA_EQ_YE_RANGE
        assert res.context is unselected_context

    def test_beta_equilibrium_not_converged(self, unselected_context, base_params,
                                            monkeypatch):
        def no_root(context, n_B, T):
            return BetaEquilibriumResult(converged=False, Y_e=np.nan, residual=np.inf,
                                         n_B=n_B, T=T, message="no progress")

        monkeypatch.setattr(dsh_model_selection, "solve_beta_equilibrium_ye", no_root)
        res = select_internal(unselected_context, base_params)
        assert res.status == SelectionStatus.BETA_EQ_NONCONVERGENT

    def test_superluminal_sound_speed(self, unselected_context, base_params, monkeypatch):
        # Symmetric Skyrme matter is acausal at 1.6 fm⁻³
        monkeypatch.setattr(dsh_model_selection, "BETA_EQ_GRID", np.array([0.16, 1.6]))
        ctx = replace(unselected_context, select_cs2_test=True)
        res = select_internal(ctx, base_params)
        assert res.status == SelectionStatus.SUPERLUMINAL_CS2
        assert int(res.status) == 11
        assert not res.context.model_selected


class TestRandom:

    def test_parameter_ranges(self, unselected_context):
        rng = np.random.default_rng(7)
        for _ in range(50):
            p = random_parameters(unselected_context, rng)
            assert 0.0 <= p.phi < 1.0
            assert 0.47 <= p.qmc_alpha < 0.53
            assert 12.5 <= p.qmc_a < 13.5
            assert 44.0 <= p.eos_L < 65.0
            assert 29.5 <= p.eos_S < 36.1
            assert p.i_ns in (0, 1) and p.i_skyrme == 0

    def test_reproducible(self, unselected_context):
        a = random_parameters(unselected_context, np.random.default_rng(3))
        b = random_parameters(unselected_context, np.random.default_rng(3))
        assert a == b

    def test_needs_tables(self):
        with pytest.raises(ValueError):
            select_random(get_context_default())

    def test_exhausted(self, unedf_tables):
        # Neither UNEDF row has positive effective masses at high density
        ctx = get_context_default(unedf_tables)
        with pytest.raises(RuntimeError):
            select_random(ctx, np.random.default_rng(0), max_tries=3)


def test_parameters_are_frozen(base_params):
    with pytest.raises(AttributeError):
        base_params.phi = 0.9
