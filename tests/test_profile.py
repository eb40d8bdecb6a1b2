import numpy as np
import pytest

from dftkit.profile import (
    MAX_POTENTIAL,
    ChemicalPotentialSpecification,
    MolesSpecification,
    TotalMolesSpecification,
    chemical_potential_residual,
    euler_lagrange_residual,
)

M = np.array([1.0, 2.5])
MU = np.array([-1.2, 0.7])
Z = np.array([3.0, 0.4])


def test_chemical_potential_specification_returns_copy():
    spec = ChemicalPotentialSpecification()
    mu = MU.copy()
    result = spec.calculate_chemical_potential(M, mu, Z)
    np.testing.assert_allclose(result, MU)
    result[0] = 100.0
    np.testing.assert_allclose(mu, MU)


def test_moles_specification_recovers_consistent_potential():
    moles = Z * np.exp(MU / M)
    spec = MolesSpecification(moles)
    result = spec.calculate_chemical_potential(M, np.zeros(2), Z)
    np.testing.assert_allclose(result, MU)


def test_moles_specification_more_moles_raise_potential():
    low = MolesSpecification(np.array([1.0, 1.0])).calculate_chemical_potential(M, MU, Z)
    high = MolesSpecification(np.array([2.0, 2.0])).calculate_chemical_potential(M, MU, Z)
    assert np.all(high > low)


def test_total_moles_specification_recovers_consistent_potential():
    total = float(np.sum(Z * np.exp(MU / M)))
    spec = TotalMolesSpecification(total, MU)
    result = spec.calculate_chemical_potential(M, np.zeros(2), Z)
    np.testing.assert_allclose(result, MU)


def test_total_moles_specification_shift_invariant():
    a = TotalMolesSpecification(5.0, MU).calculate_chemical_potential(M, MU, Z)
    b = TotalMolesSpecification(5.0, MU + 0.8 * M).calculate_chemical_potential(M, MU, Z)
    np.testing.assert_allclose(a, b)


def test_total_moles_conserved_by_result():
    result = TotalMolesSpecification(5.0, MU).calculate_chemical_potential(M, MU, Z)
    assert np.sum(Z * np.exp(result / M)) == pytest.approx(5.0)


def test_specification_length_mismatch():
    with pytest.raises(ValueError):
        MolesSpecification(np.ones(3)).calculate_chemical_potential(M, MU, Z)


def _consistent_profile():
    rng = np.random.default_rng(7)
    shape = (2, 3, 4)
    dfdrho = rng.normal(size=shape)
    external = rng.uniform(0.0, 5.0, size=shape)
    isaft = rng.uniform(0.5, 1.5, size=shape)
    density = np.exp((MU[:, None, None] - dfdrho - external) / M[:, None, None]) * isaft
    return density, dfdrho, external, isaft


@pytest.mark.parametrize("log", [False, True])
def test_euler_lagrange_residual_vanishes_at_solution(log):
    density, dfdrho, external, isaft = _consistent_profile()
    residual = euler_lagrange_residual(density, dfdrho, external, MU, M, isaft, log)
    assert residual.shape == density.shape
    np.testing.assert_allclose(residual, 0.0, atol=1e-12)


def test_euler_lagrange_log_residual_measures_density_ratio():
    density, dfdrho, external, isaft = _consistent_profile()
    residual = euler_lagrange_residual(2.0 * density, dfdrho, external, MU, M, isaft, True)
    np.testing.assert_allclose(residual, np.log(2.0))


def test_euler_lagrange_residual_masked_by_large_potential():
    density, dfdrho, external, isaft = _consistent_profile()
    external[0, 0, 0] = MAX_POTENTIAL
    external[1, 2, 3] = MAX_POTENTIAL - 0.1
    residual = euler_lagrange_residual(density + 1.0, dfdrho, external, MU, M, isaft)
    assert residual[0, 0, 0] == 0.0
    assert residual[1, 2, 3] != 0.0
    assert residual[0, 1, 1] == pytest.approx(1.0)


def test_euler_lagrange_residual_does_not_modify_inputs():
    density, dfdrho, external, isaft = _consistent_profile()
    saved = dfdrho.copy()
    euler_lagrange_residual(density, dfdrho, external, MU, M, isaft)
    np.testing.assert_array_equal(dfdrho, saved)


def test_euler_lagrange_residual_shape_mismatch():
    density, dfdrho, external, isaft = _consistent_profile()
    with pytest.raises(ValueError):
        euler_lagrange_residual(density, dfdrho[:, :2], external, MU, M, isaft)
    with pytest.raises(ValueError):
        euler_lagrange_residual(density, dfdrho, external, np.zeros(3), M, isaft)


@pytest.mark.parametrize("log", [False, True])
def test_chemical_potential_residual_zero_when_equal(log):
    np.testing.assert_allclose(chemical_potential_residual(MU, MU, log), 0.0)


@pytest.mark.parametrize("log", [False, True])
def test_chemical_potential_residual_antisymmetric(log):
    spec = MU + np.array([0.3, -0.2])
    forward = chemical_potential_residual(MU, spec, log)
    backward = chemical_potential_residual(spec, MU, log)
    np.testing.assert_allclose(forward, -backward)


def test_chemical_potential_residual_log_is_difference():
    result = chemical_potential_residual(np.array([1.0, 2.0]), np.array([0.5, 0.5]), True)
    np.testing.assert_allclose(result, [0.5, 1.5])


def test_chemical_potential_residual_length_mismatch():
    with pytest.raises(ValueError):
        chemical_potential_residual(MU, np.zeros(3))