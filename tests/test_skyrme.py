"""Tests for the Skyrme parameter inversion and thermodynamics."""

import pytest
from numdifftools import Derivative

from general_physics_constants import hc
from skyrme_parameters import get_skyrme_chiral, skyrme_params_from_saturation
from skyrme_thermodynamics_nucleons import (
    effective_masses, saturation_properties, skyrme_thermo,
)


SLY4_LIKE = dict(rho0=0.1596, EoA=-15.97, K=229.9, Ms_star=1.0 / 1.439,
                 S=32.0, L=50.0, Mv_star=1.0 / 1.249,
                 Crdr0=-45.135, Crdr1=-145.382, CrdJ0=-74.026, CrdJ1=-35.658)


@pytest.fixture(scope="module")
def sly4_like():
    return skyrme_params_from_saturation(**SLY4_LIKE)


class TestSaturationInversion:

    def test_recovers_saturation_point(self, sly4_like):
        sat = saturation_properties(sly4_like)
        assert sat.rho0 == pytest.approx(SLY4_LIKE["rho0"], abs=1e-4)
        assert sat.EoA == pytest.approx(SLY4_LIKE["EoA"], abs=0.02)
        assert sat.K == pytest.approx(SLY4_LIKE["K"], abs=0.5)
        assert sat.Ms_star == pytest.approx(SLY4_LIKE["Ms_star"], rel=1e-3)

    def test_recovers_symmetry_energy(self, sly4_like):
        sat = saturation_properties(sly4_like)
        assert sat.S == pytest.approx(32.0, abs=0.05)
        assert sat.L == pytest.approx(50.0, abs=0.5)

    def test_spin_orbit_couplings(self, sly4_like):
        assert sly4_like.b4p == pytest.approx(2.0 * 35.658 / hc)
        assert sly4_like.b4 == pytest.approx(74.026 / hc - 0.5 * sly4_like.b4p)

    def test_rejects_non_positive_density(self):
        args = dict(SLY4_LIKE, rho0=0.0)
        with pytest.raises(ValueError):
            skyrme_params_from_saturation(**args)


class TestSkyrmeThermo:

    def test_zero_temperature_is_degenerate(self):
        r = skyrme_thermo(get_skyrme_chiral(), 0.08, 0.08, 0.0)
        assert r.s == 0.0
        assert r.f == r.ed

    @pytest.mark.parametrize("T_MeV", [0.0, 10.0])
    def test_chemical_potentials(self, T_MeV):
        sk = get_skyrme_chiral()
        T = T_MeV / hc
        nn, pn = 0.09, 0.05
        r = skyrme_thermo(sk, nn, pn, T)
        mu_n = Derivative(lambda x: skyrme_thermo(sk, x, pn, T).f, step=1e-3 * nn)(nn)
        mu_p = Derivative(lambda x: skyrme_thermo(sk, nn, x, T).f, step=1e-3 * pn)(pn)
        assert r.mu_n == pytest.approx(mu_n, rel=1e-5)
        assert r.mu_p == pytest.approx(mu_p, rel=1e-5)

    def test_entropy(self):
        sk = get_skyrme_chiral()
        T = 15.0 / hc
        r = skyrme_thermo(sk, 0.1, 0.06, T)
        s = -Derivative(lambda x: skyrme_thermo(sk, 0.1, 0.06, x).f, step=1e-3 * T)(T)
        assert r.s == pytest.approx(s, rel=1e-5)

    def test_pressure_relation(self):
        r = skyrme_thermo(get_skyrme_chiral(), 0.1, 0.06, 10.0 / hc)
        assert r.pr == pytest.approx(0.1 * r.mu_n + 0.06 * r.mu_p - r.f)

    def test_pure_neutron_matter(self):
        r = skyrme_thermo(get_skyrme_chiral(), 0.16, 0.0, 10.0 / hc)
        assert r.tau_p == 0.0
        assert r.s > 0.0

    def test_effective_masses_symmetric(self, sly4_like):
        ms_n, ms_p = effective_masses(sly4_like, 0.5 * 0.1596, 0.5 * 0.1596)
        assert ms_n > 0 and ms_p > 0

    @pytest.mark.parametrize("nn, pn", [(-0.1, 0.1), (0.0, 0.0)])
    def test_invalid_densities(self, nn, pn):
        with pytest.raises(ValueError):
            skyrme_thermo(get_skyrme_chiral(), nn, pn, 0.1)
