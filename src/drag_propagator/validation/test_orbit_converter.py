"""
Unit Tests for Orbit Converter and Orbit Representations
========================================================

Tests for conversions between Cartesian state vectors and orbital elements,
and for the immutable orbit types built on them.

Tests:
------
TestCartesianToKeplerian
  - test_known_solution_circular_equatorial_orbit : verify COE for circular equatorial orbit
  - test_known_solution_elliptical_orbit          : verify COE for elliptical orbit at periapsis
  - test_known_solution_inclined_orbit            : verify inclination for inclined orbit
  - test_roundtrip_pv_to_coe_to_pv                : verify pv -> coe -> pv returns original state
  - test_error_rectilinear_motion                 : verify rectilinear motion is rejected

TestAnomalyConversions
  - test_known_solution_circular_anomalies_equal : verify TA = EA = MA for circular orbit
  - test_known_solution_anomalies_at_periapsis   : verify all anomalies = 0 at periapsis
  - test_known_solution_anomalies_at_apoapsis    : verify all anomalies = π at apoapsis
  - test_revolutions_are_kept                    : verify unwrapped anomalies keep their revolution count
  - test_error_kepler_hyperbolic                 : verify elliptic-only conversions reject ecc >= 1

TestKeplerianOrbit
  - test_roundtrip_elements_to_cartesian_to_elements : verify elements -> pv -> elements for e in [0, 1)
  - test_known_solution_scenario_perigee             : verify scenario orbit starts at perigee
  - test_known_solution_shifted_by_one_period        : verify analytical shift by one period returns to start
  - test_error_invalid_elements                      : verify unbound or non-finite elements are rejected

TestOrbitTypes
  - test_roundtrip_to_vector_from_vector : verify state vector mapping for both orbit types
  - test_cartesian_orbit_is_read_only    : verify Cartesian vectors cannot be modified
  - test_error_unbound_cartesian_orbit   : verify hyperbolic state has no Keplerian form
  - test_error_frame_mismatch            : verify frame labels are checked

Usage:
------
  python -m pytest src/drag_propagator/validation/test_orbit_converter.py -v
"""
import pytest
import numpy as np

from drag_propagator.model.constants       import CONVERTER, SCENARIO, SOLARSYSTEMCONSTANTS
from drag_propagator.model.orbit           import (
  CartesianOrbit,
  KeplerianOrbit,
  OrbitType,
  PositionAngle,
  check_same_frame,
)
from drag_propagator.model.orbit_converter import OrbitConverter
from drag_propagator.model.time_converter  import Epoch


class TestCartesianToKeplerian:
  """
  Tests for Cartesian to Keplerian element conversion.
  """

  def test_known_solution_circular_equatorial_orbit(self):
    """
    Test conversion for a circular equatorial orbit.
    """
    gp      = SOLARSYSTEMCONSTANTS.EARTH.GP
    pos_mag = 7000e3
    vel_mag = np.sqrt(gp / pos_mag)

    pos_vec = np.array([pos_mag, 0.0, 0.0])
    vel_vec = np.array([0.0, vel_mag, 0.0])

    coe = OrbitConverter.pv_to_coe(pos_vec, vel_vec, gp)

    assert np.isclose(coe['sma'], pos_mag, rtol=1e-10)
    assert np.isclose(coe['ecc'],     0.0, atol=1e-10)
    assert np.isclose(coe['inc'],     0.0, atol=1e-10)

  def test_known_solution_elliptical_orbit(self):
    """
    Test conversion for an elliptical orbit at periapsis.
    """
    gp     = SOLARSYSTEMCONSTANTS.EARTH.GP
    sma    = 10000e3
    ecc    = 0.3
    pos_pe = sma * (1 - ecc)
    vel_pe = np.sqrt(gp * (1 + ecc) / pos_pe)

    pos_vec = np.array([pos_pe, 0.0, 0.0])
    vel_vec = np.array([0.0, vel_pe, 0.0])

    coe = OrbitConverter.pv_to_coe(pos_vec, vel_vec, gp)

    assert np.isclose(coe['sma'], sma, rtol=1e-10)
    assert np.isclose(coe['ecc'], ecc, rtol=1e-10)
    assert np.isclose(coe['ta'],  0.0, atol=1e-10)
    assert np.isclose(coe['ma'],  0.0, atol=1e-10)

  def test_known_solution_inclined_orbit(self):
    """
    Test inclination for an orbit crossing the ascending node.
    """
    gp      = SOLARSYSTEMCONSTANTS.EARTH.GP
    pos_mag = 7000e3
    vel_mag = np.sqrt(gp / pos_mag)
    inc     = 51.6 * CONVERTER.RAD_PER_DEG

    pos_vec = np.array([pos_mag, 0.0, 0.0])
    vel_vec = vel_mag * np.array([0.0, np.cos(inc), np.sin(inc)])

    coe = OrbitConverter.pv_to_coe(pos_vec, vel_vec, gp)

    assert np.isclose(coe['inc'],  inc, rtol=1e-10)
    assert np.isclose(coe['raan'], 0.0, atol=1e-10)

  def test_roundtrip_pv_to_coe_to_pv(self, leo_initial_state):
    """
    Test that pv -> coe -> pv returns the original state.
    """
    gp      = SOLARSYSTEMCONSTANTS.EARTH.GP
    pos_vec = leo_initial_state[0:3]
    vel_vec = leo_initial_state[3:6]

    coe                  = OrbitConverter.pv_to_coe(pos_vec, vel_vec, gp)
    pos_vec_2, vel_vec_2 = OrbitConverter.coe_to_pv(coe, gp)

    assert np.allclose(pos_vec, pos_vec_2, rtol=1e-10, atol=1e-6)
    assert np.allclose(vel_vec, vel_vec_2, rtol=1e-10, atol=1e-9)

  def test_error_rectilinear_motion(self):
    """
    Test that radial motion has no orbital plane.
    """
    with pytest.raises(ValueError):
      OrbitConverter.pv_to_coe(np.array([7000e3, 0.0, 0.0]), np.array([1000.0, 0.0, 0.0]))


class TestAnomalyConversions:
  """
  Tests for anomaly conversions.
  """

  def test_known_solution_circular_anomalies_equal(self):
    """
    Test that all anomalies are equal for a circular orbit.
    """
    ta = 1.234
    ea = OrbitConverter.ta_to_ea(ta, 0.0)
    ma = OrbitConverter.ea_to_ma(ea, 0.0)

    assert np.isclose(ea, ta, atol=1e-14)
    assert np.isclose(ma, ta, atol=1e-14)

  def test_known_solution_anomalies_at_periapsis(self):
    """
    Test that all anomalies are zero at periapsis.
    """
    ecc = 0.72831215
    assert np.isclose(OrbitConverter.ta_to_ea(0.0, ecc), 0.0, atol=1e-14)
    assert np.isclose(OrbitConverter.ma_to_ea(0.0, ecc), 0.0, atol=1e-14)
    assert np.isclose(OrbitConverter.ma_to_ta(0.0, ecc), 0.0, atol=1e-14)

  def test_known_solution_anomalies_at_apoapsis(self):
    """
    Test that all anomalies are π at apoapsis.
    """
    ecc = 0.5
    assert np.isclose(OrbitConverter.ta_to_ea(np.pi, ecc), np.pi, atol=1e-12)
    assert np.isclose(OrbitConverter.ea_to_ma(np.pi, ecc), np.pi, atol=1e-12)
    assert np.isclose(OrbitConverter.ma_to_ta(np.pi, ecc), np.pi, atol=1e-10)

  def test_revolutions_are_kept(self):
    """
    Test that an unwrapped anomaly keeps its number of revolutions.
    """
    ecc = 0.3
    ma  = 4 * np.pi + 0.5

    ta = OrbitConverter.ma_to_ta(ma, ecc)

    assert 4 * np.pi < ta < 5 * np.pi
    assert np.isclose(OrbitConverter.ta_to_ma(ta, ecc), ma, atol=1e-12)

  def test_error_kepler_hyperbolic(self):
    """
    Test that elliptic-only conversions reject ecc >= 1.
    """
    with pytest.raises(ValueError):
      OrbitConverter.ma_to_ea(1.0, 1.2)
    with pytest.raises(ValueError):
      OrbitConverter.ta_to_ea(1.0, 1.0)


class TestKeplerianOrbit:
  """
  Tests for the Keplerian orbit type.
  """

  @pytest.mark.parametrize("ecc", [0.0, 0.001, 0.3, 0.72831215, 0.95])
  def test_roundtrip_elements_to_cartesian_to_elements(self, ecc):
    """
    Test that elements -> Cartesian -> elements reproduces the six elements.
    """
    orbit = KeplerianOrbit(
      sma            = 24396159.0,
      ecc            = ecc,
      inc            = 7.0   * CONVERTER.RAD_PER_DEG,
      aop            = 30.0  * CONVERTER.RAD_PER_DEG,
      raan           = 261.0 * CONVERTER.RAD_PER_DEG - 2 * np.pi,
      anomaly        = 1.0,
      position_angle = PositionAngle.TRUE,
      frame          = 'EME2000',
      epoch          = Epoch(0.0),
      gp             = SOLARSYSTEMCONSTANTS.EARTH.GP,
    )

    orbit_2 = orbit.to_cartesian().to_keplerian(PositionAngle.TRUE)

    assert np.isclose(orbit_2.sma, orbit.sma, rtol=1e-10)
    assert np.isclose(orbit_2.ecc, orbit.ecc, atol=1e-10)
    assert np.isclose(orbit_2.inc, orbit.inc, atol=1e-10)
    assert np.isclose(orbit_2.raan, orbit.raan, atol=1e-10)
    if ecc > 0:
      assert np.isclose(orbit_2.aop,     orbit.aop,     atol=1e-8)
      assert np.isclose(orbit_2.anomaly, orbit.anomaly, atol=1e-8)
    else:
      # Circular: only the argument of latitude is defined
      assert np.isclose(orbit_2.aop + orbit_2.anomaly, orbit.aop + orbit.anomaly, atol=1e-8)

  def test_known_solution_scenario_perigee(self, scenario_orbit):
    """
    Test that the scenario orbit starts at perigee with the expected radius.
    """
    pos_vec, vel_vec = scenario_orbit.to_pv()

    pos_pe = SCENARIO.ORBIT.SMA * (1 - SCENARIO.ORBIT.ECC)
    assert np.isclose(np.linalg.norm(pos_vec), pos_pe, rtol=1e-12)
    assert np.isclose(np.dot(pos_vec, vel_vec), 0.0, atol=1e-3)
    assert np.isclose(scenario_orbit.true_anomaly, 0.0, atol=1e-14)

  def test_known_solution_shifted_by_one_period(self, scenario_orbit):
    """
    Test that an analytical shift by one period returns to the same position.
    """
    shifted = scenario_orbit.shifted_by(scenario_orbit.period)

    pos_vec,   _ = scenario_orbit.to_pv()
    pos_vec_2, _ = shifted.to_pv()

    assert np.allclose(pos_vec, pos_vec_2, atol=1e-4)
    assert np.isclose(shifted.epoch.duration_from(scenario_orbit.epoch), scenario_orbit.period)
    assert np.isclose(shifted.mean_anomaly, 2 * np.pi, atol=1e-12)

  @pytest.mark.parametrize("sma, ecc", [
    (-7000e3, 0.1),
    (0.0,     0.1),
    (7000e3,  -0.1),
    (7000e3,  1.0),
    (7000e3,  1.5),
    (np.nan,  0.1),
  ])
  def test_error_invalid_elements(self, sma, ecc):
    """
    Test that unbound or non-finite elements are rejected at construction.
    """
    with pytest.raises(ValueError):
      KeplerianOrbit(
        sma            = sma,
        ecc            = ecc,
        inc            = 0.1,
        aop            = 0.0,
        raan           = 0.0,
        anomaly        = 0.0,
        position_angle = PositionAngle.MEAN,
        frame          = 'EME2000',
        epoch          = Epoch(0.0),
        gp             = SOLARSYSTEMCONSTANTS.EARTH.GP,
      )


class TestOrbitTypes:
  """
  Tests for orbit type conversions.
  """

  def test_roundtrip_to_vector_from_vector(self, scenario_orbit):
    """
    Test that the propagated variables map back to the same orbit.
    """
    for orbit_type in OrbitType:
      state_vec = orbit_type.to_vector(scenario_orbit, PositionAngle.MEAN)
      orbit     = orbit_type.from_vector(
        state_vec      = state_vec,
        position_angle = PositionAngle.MEAN,
        frame          = scenario_orbit.frame,
        epoch          = scenario_orbit.epoch,
        gp             = scenario_orbit.gp,
      )

      pos_vec,   vel_vec   = scenario_orbit.to_pv()
      pos_vec_2, vel_vec_2 = orbit.to_pv()
      assert np.allclose(pos_vec, pos_vec_2, atol=1e-6)
      assert np.allclose(vel_vec, vel_vec_2, atol=1e-9)

  def test_cartesian_orbit_is_read_only(self, scenario_orbit):
    """
    Test that the vectors of a Cartesian orbit cannot be modified in place.
    """
    orbit = scenario_orbit.to_cartesian()
    with pytest.raises(ValueError):
      orbit.pos_vec[0] = 0.0

    # to_pv returns copies
    pos_vec, _ = orbit.to_pv()
    pos_vec[0] = 0.0
    assert orbit.pos_vec[0] != 0.0

  def test_error_unbound_cartesian_orbit(self):
    """
    Test that a hyperbolic state cannot be expressed as Keplerian elements.
    """
    gp      = SOLARSYSTEMCONSTANTS.EARTH.GP
    pos_mag = 7000e3
    vel_esc = np.sqrt(2 * gp / pos_mag)

    orbit = CartesianOrbit(
      pos_vec = [pos_mag, 0.0, 0.0],
      vel_vec = [0.0, 1.2 * vel_esc, 0.0],
      frame   = 'EME2000',
      epoch   = Epoch(0.0),
      gp      = gp,
    )

    with pytest.raises(ValueError):
      orbit.to_keplerian()
    with pytest.raises(ValueError):
      OrbitType.KEPLERIAN.to_vector(orbit)

  def test_error_frame_mismatch(self):
    """
    Test that J2000 and EME2000 are the same frame and other labels differ.
    """
    check_same_frame('J2000', 'EME2000')
    with pytest.raises(ValueError):
      check_same_frame('EME2000', 'ITRF')
