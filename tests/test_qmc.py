"""Tests for the QMC neutron-matter parametrization."""

import pytest

from general_physics_constants import hc
from dsh_qmc_neutron_matter import (
    QMCParams, denergy_density_qmc_dn, derive_qmc_coefficients, energy_density_qmc,
    get_qmc_default,
)


def test_derived_coefficients():
    b, beta = derive_qmc_coefficients(32.0, 50.0, -16.0, 12.7, 0.48)
    assert b == pytest.approx(3.3)
    assert beta == pytest.approx((50.0 / 3.0 - 12.7 * 0.48) / 3.3)


def test_energy_at_saturation_density():
    # E/N at n0 equals a + b = S + E/A
    b, beta = derive_qmc_coefficients(32.0, 50.0, -16.0, 12.7, 0.48)
    qmc = QMCParams(alpha=0.48, beta=beta, a=12.7, b=b)
    n0 = qmc.n0
    assert energy_density_qmc(n0, 0.0, qmc) / n0 * hc == pytest.approx(16.0)


def test_slope_at_saturation_density():
    # L = 3 n0 d(E/N)/dn at n0
    b, beta = derive_qmc_coefficients(32.0, 50.0, -16.0, 12.7, 0.48)
    qmc = QMCParams(alpha=0.48, beta=beta, a=12.7, b=b)
    n0, h = qmc.n0, 1e-6

    def eon(n):
        return energy_density_qmc(n, 0.0, qmc) / n * hc

    slope = (eon(n0 + h) - eon(n0 - h)) / (2.0 * h)
    assert 3.0 * n0 * slope == pytest.approx(50.0, rel=1e-6)


@pytest.mark.parametrize("nn, pn", [(0.05, 0.0), (0.1, 0.06), (0.4, 0.0)])
def test_derivative(nn, pn):
    qmc = get_qmc_default()
    h = 1e-6
    num = (energy_density_qmc(nn + h, pn, qmc) - energy_density_qmc(nn - h, pn, qmc)) / (2.0 * h)
    assert denergy_density_qmc_dn(nn, pn, qmc) == pytest.approx(num, rel=1e-7)
