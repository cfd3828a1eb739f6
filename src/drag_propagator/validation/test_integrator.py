"""
Integrator Configuration Tests
==============================

Tests for tolerance derivation and integrator configuration validation.

Tests:
------
TestComputeTolerances
  - test_known_solution_cartesian_tolerances     : verify abs = [dP x3, dV x3] and rel = dP / |r|
  - test_keplerian_tolerances_positive           : verify Keplerian tolerances are finite and positive
  - test_known_solution_equatorial_inc_tolerance : verify the inclination tolerance floor of equatorial orbits
  - test_keplerian_sma_tolerance_scale           : verify the sma tolerance matches the energy sensitivity
  - test_error_invalid_position_tolerance        : verify non-positive or NaN dP is rejected

TestIntegratorConfig
  - test_build_integrator_config : verify the configuration built for the default scenario
  - test_error_invalid_config    : verify invalid steps, tolerances and methods are rejected

Usage:
------
  python -m pytest src/drag_propagator/validation/test_integrator.py -v
"""
import pytest
import numpy as np

from dataclasses import replace

from drag_propagator.model.constants        import SCENARIO
from drag_propagator.model.orbit            import OrbitType, PositionAngle
from drag_propagator.propagation.integrator import (
  IntegratorConfig,
  build_integrator_config,
  compute_tolerances,
)


class TestComputeTolerances:
  """Tests for compute_tolerances function."""

  def test_known_solution_cartesian_tolerances(self, scenario_orbit):
    """Test Cartesian tolerances against the closed-form dP / dV rule."""
    dP = 10.0
    abs_tol, rel_tol = compute_tolerances(dP, scenario_orbit, OrbitType.CARTESIAN)

    pos_vec, vel_vec = scenario_orbit.to_pv()
    pos_mag = np.linalg.norm(pos_vec)
    dV      = scenario_orbit.gp * dP / (np.linalg.norm(vel_vec) * pos_mag**2)

    assert np.allclose(abs_tol, [dP, dP, dP, dV, dV, dV], rtol=1e-12)
    assert np.allclose(rel_tol, dP / pos_mag, rtol=1e-12)

  @pytest.mark.parametrize("ecc", [0.0, 0.001, 0.1, 0.5, 0.72831215])
  @pytest.mark.parametrize("inc", [0.0, 0.5, np.pi])
  @pytest.mark.parametrize("position_angle", list(PositionAngle))
  def test_keplerian_tolerances_positive(self, scenario_orbit, ecc, inc, position_angle):
    """Test that Keplerian tolerances are finite and strictly positive, including circular and equatorial orbits."""
    orbit = replace(scenario_orbit, ecc=ecc, inc=inc)

    abs_tol, rel_tol = compute_tolerances(10.0, orbit, OrbitType.KEPLERIAN, position_angle)

    assert abs_tol.shape == (6,)
    assert np.all(np.isfinite(abs_tol)) and np.all(abs_tol > 0)
    assert np.all(np.isfinite(rel_tol)) and np.all(rel_tol > 0)

  @pytest.mark.parametrize("ecc", [0.0, 0.1])
  def test_known_solution_equatorial_inc_tolerance(self, scenario_orbit, ecc):
    """Test that the inclination tolerance of an equatorial orbit is dP / |r|."""
    dP    = 10.0
    orbit = replace(scenario_orbit, ecc=ecc, inc=0.0)

    abs_tol, _ = compute_tolerances(dP, orbit, OrbitType.KEPLERIAN, PositionAngle.MEAN)

    pos_mag = np.linalg.norm(orbit.to_pv()[0])
    assert abs_tol[2] == pytest.approx(dP / pos_mag, rel=1e-12)
    assert abs_tol[0] >= dP

  def test_keplerian_sma_tolerance_scale(self, scenario_orbit):
    """Test that the sma tolerance equals sum |d(sma)/d(r, v)| weighted by dP and dV."""
    dP = 10.0
    abs_tol, _ = compute_tolerances(dP, scenario_orbit, OrbitType.KEPLERIAN, PositionAngle.MEAN)

    # sma = -gp / (2 * energy)  ->  d(sma)/dr = 2 a² gp r / (gp r³), d(sma)/dv = 2 a² v / gp
    pos_vec, vel_vec = scenario_orbit.to_pv()
    gp      = scenario_orbit.gp
    sma     = scenario_orbit.sma
    pos_mag = np.linalg.norm(pos_vec)
    vel_mag = np.linalg.norm(vel_vec)
    dV      = gp * dP / (vel_mag * pos_mag**2)

    dsma_dpos = 2 * sma**2 * pos_vec / pos_mag**3
    dsma_dvel = 2 * sma**2 * vel_vec / gp
    expected  = np.sum(np.abs(dsma_dpos)) * dP + np.sum(np.abs(dsma_dvel)) * dV

    assert np.isclose(abs_tol[0], expected, rtol=1e-5)

  @pytest.mark.parametrize("position_tolerance", [0.0, -1.0, np.nan])
  def test_error_invalid_position_tolerance(self, scenario_orbit, position_tolerance):
    """Test that dP must be a positive number."""
    with pytest.raises(ValueError):
      compute_tolerances(position_tolerance, scenario_orbit, OrbitType.CARTESIAN)


class TestIntegratorConfig:
  """Tests for IntegratorConfig validation."""

  def test_build_integrator_config(self, scenario_orbit):
    """Test the configuration of the default scenario."""
    config = build_integrator_config(
      position_tolerance = SCENARIO.INTEGRATOR.POSITION_TOLERANCE,
      min_step           = SCENARIO.INTEGRATOR.MIN_STEP,
      max_step           = SCENARIO.INTEGRATOR.MAX_STEP,
      orbit              = scenario_orbit,
      orbit_type         = OrbitType.KEPLERIAN,
      position_angle     = PositionAngle.MEAN,
    )

    assert config.method   == 'DOP853'
    assert config.min_step == 0.001
    assert config.max_step == 1000.0
    assert config.abs_tol.shape == (6,)

    # Tolerance arrays are read-only
    with pytest.raises(ValueError):
      config.abs_tol[0] = 1.0

  @pytest.mark.parametrize("kwargs", [
    {'min_step': 10.0,  'max_step': 1.0},
    {'min_step': 0.0,   'max_step': 1.0},
    {'min_step': -1.0,  'max_step': 1.0},
    {'abs_tol': np.ones(5)},
    {'abs_tol': np.array([1.0, 1.0, 1.0, 1.0, 1.0, 0.0])},
    {'rel_tol': np.array([1.0, 1.0, 1.0, 1.0, 1.0, np.nan])},
    {'method': 'RK45'},
  ])
  def test_error_invalid_config(self, kwargs):
    """Test that invalid configurations are rejected."""
    params = {
      'min_step' : 0.001,
      'max_step' : 1000.0,
      'abs_tol'  : np.ones(6),
      'rel_tol'  : np.full(6, 1e-9),
    }
    params.update(kwargs)

    with pytest.raises(ValueError):
      IntegratorConfig(**params)
