"""
Pytest Configuration and Fixtures
=================================

Shared fixtures for all validation tests.
"""
import pytest
import numpy as np

from pathlib import Path

from drag_propagator.input.loader         import load_files
from drag_propagator.model.constants      import CONVERTER, SCENARIO, SOLARSYSTEMCONSTANTS
from drag_propagator.model.orbit          import KeplerianOrbit, PositionAngle, SpacecraftState
from drag_propagator.model.time_converter import Epoch


@pytest.fixture(scope="session")
def fixtures_path():
  """Return path to test fixtures directory."""
  return Path(__file__).parent / "fixtures"


@pytest.fixture(scope="session")
def orbit_data_path(fixtures_path):
  """Return path to the reference data fixtures (leap seconds kernel, gravity file)."""
  return fixtures_path / "orbit-data"


@pytest.fixture(scope="session")
def scenarios_path(fixtures_path):
  """Return path to the scenario file fixtures."""
  return fixtures_path / "scenarios"


@pytest.fixture(scope="session")
def monkeypatch_session():
  """Session-scoped monkeypatch fixture."""
  from _pytest.monkeypatch import MonkeyPatch
  mp = MonkeyPatch()
  yield mp
  mp.undo()


@pytest.fixture(scope="session", autouse=True)
def test_data_paths(monkeypatch_session, orbit_data_path):
  """
  Point the default data folder at the test fixtures instead of user data.
  This fixture runs automatically for all tests.
  """
  monkeypatch_session.setenv('DRAG_PROPAGATOR_DATA', str(orbit_data_path))


@pytest.fixture
def data_context(orbit_data_path):
  """
  Load the fixture leap seconds kernel for tests that convert UTC epochs.

  Function scoped: main() unloads the kernels it loads, which would also
  drop a kernel shared across tests.
  """
  context = load_files(orbit_data_path)
  yield context
  context.unload()


@pytest.fixture
def scenario_orbit():
  """Default drag scenario orbit at ET 0 (mean anomaly 0, at perigee)."""
  return KeplerianOrbit(
    sma            = SCENARIO.ORBIT.SMA,
    ecc            = SCENARIO.ORBIT.ECC,
    inc            = SCENARIO.ORBIT.INC,
    aop            = SCENARIO.ORBIT.AOP,
    raan           = SCENARIO.ORBIT.RAAN,
    anomaly        = SCENARIO.ORBIT.ANOMALY,
    position_angle = PositionAngle.MEAN,
    frame          = SCENARIO.ORBIT.FRAME,
    epoch          = Epoch(0.0),
    gp             = SOLARSYSTEMCONSTANTS.EARTH.GP,
  )


@pytest.fixture
def scenario_state(scenario_orbit):
  """Default drag scenario spacecraft state (1000 kg)."""
  return SpacecraftState(scenario_orbit)


@pytest.fixture
def leo_orbit():
  """Near-circular inclined LEO orbit at ET 0, perigee near 393 km."""
  return KeplerianOrbit(
    sma            = 6778137.0,
    ecc            = 0.001,
    inc            = 51.6 * CONVERTER.RAD_PER_DEG,
    aop            = 30.0 * CONVERTER.RAD_PER_DEG,
    raan           = 45.0 * CONVERTER.RAD_PER_DEG,
    anomaly        = 10.0 * CONVERTER.RAD_PER_DEG,
    position_angle = PositionAngle.TRUE,
    frame          = 'EME2000',
    epoch          = Epoch(0.0),
    gp             = SOLARSYSTEMCONSTANTS.EARTH.GP,
  )


@pytest.fixture
def leo_initial_state():
  """Typical LEO initial state for testing."""
  return np.array([
    7000.0e3,    # x [m]
    0.0,         # y [m]
    0.0,         # z [m]
    0.0,         # vx [m/s]
    7.5e3,       # vy [m/s]
    1.0e3,       # vz [m/s]
  ])
