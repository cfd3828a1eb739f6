"""
Integrator Configuration
========================

Error tolerances and step bounds for the adaptive Dormand-Prince 8(5,3)
integrator (scipy.integrate.DOP853).

Tolerances are derived from a target position accuracy dP [m]:

  dV        = gp * dP / (|v| * |r|²)
  abs_tol_i = dP or dV                        (CARTESIAN)
  abs_tol_i = sum_j |J_ij| * (dP or dV)       (KEPLERIAN, J = d(elements)/d(r, v))
  rel_tol_i = dP / |r|

dV is the velocity error that produces a position error of dP after a
fraction of a period on a near-circular orbit.
"""
import numpy as np

from dataclasses import dataclass
from typing      import Union

from drag_propagator.model.orbit           import (
  CartesianOrbit,
  KeplerianOrbit,
  OrbitType,
  PositionAngle,
)
from drag_propagator.model.orbit_converter import OrbitConverter


STATE_DIMENSION = 6


@dataclass(frozen=True, eq=False)
class IntegratorConfig:
  """
  Immutable configuration of the adaptive-step integrator.

  Attributes:
  -----------
    min_step : float
      Smallest accepted step [s].
    max_step : float
      Largest allowed step [s].
    abs_tol : np.ndarray
      Absolute tolerance per state component.
    rel_tol : np.ndarray
      Relative tolerance per state component.
    method : str
      Integration method name.
  """
  min_step : float
  max_step : float
  abs_tol  : np.ndarray
  rel_tol  : np.ndarray
  method   : str = 'DOP853'

  def __post_init__(self):
    if not (np.isfinite(self.min_step) and self.min_step > 0):
      raise ValueError(f"Minimum step must be positive, received {self.min_step}")
    if not (np.isfinite(self.max_step) and self.max_step >= self.min_step):
      raise ValueError(f"Maximum step must be >= minimum step ({self.min_step}), received {self.max_step}")
    if self.method != 'DOP853':
      raise ValueError(f"Unsupported integration method '{self.method}'. Options: DOP853")

    for name in ('abs_tol', 'rel_tol'):
      tol = np.array(getattr(self, name), dtype=float).flatten()
      if tol.shape != (STATE_DIMENSION,):
        raise ValueError(f"{name} must have {STATE_DIMENSION} components, received {tol.size}")
      if not np.all(np.isfinite(tol)) or np.any(tol <= 0):
        raise ValueError(f"{name} must be finite and strictly positive, received {tol}")
      tol.flags.writeable = False
      object.__setattr__(self, name, tol)

    object.__setattr__(self, 'min_step', float(self.min_step))
    object.__setattr__(self, 'max_step', float(self.max_step))


def _wrap_angle(
  angle : np.ndarray,
) -> np.ndarray:
  return np.arctan2(np.sin(angle), np.cos(angle))


def _keplerian_jacobian(
  pos_vec        : np.ndarray,
  vel_vec        : np.ndarray,
  gp             : float,
  position_angle : PositionAngle,
) -> np.ndarray:
  """
  Jacobian of [sma, ecc, inc, aop, raan, anomaly] with respect to [r, v].

  Central finite differences; differences of the angular elements are
  wrapped to (-pi, pi].
  """
  def elements(pv_vec):
    coe = OrbitConverter.pv_to_coe(pv_vec[0:3], pv_vec[3:6], gp)
    if coe['ea'] is None:
      raise ValueError(f"Tolerances require a bound orbit, received ecc = {coe['ecc']}")
    if position_angle == PositionAngle.MEAN:
      anomaly = coe['ma']
    elif position_angle == PositionAngle.ECCENTRIC:
      anomaly = coe['ea']
    else:
      anomaly = coe['ta']
    return np.array([coe['sma'], coe['ecc'], coe['inc'], coe['aop'], coe['raan'], anomaly])

  pv_vec   = np.concatenate((pos_vec, vel_vec))
  delta    = np.empty(STATE_DIMENSION)
  delta[:3] = 1.0e-6 * np.linalg.norm(pos_vec)
  delta[3:] = 1.0e-6 * np.linalg.norm(vel_vec)

  jacobian = np.zeros((STATE_DIMENSION, STATE_DIMENSION))
  for j in range(STATE_DIMENSION):
    pv_plus      = pv_vec.copy()
    pv_minus     = pv_vec.copy()
    pv_plus[j]  += delta[j]
    pv_minus[j] -= delta[j]

    diff     = elements(pv_plus) - elements(pv_minus)
    diff[2:] = _wrap_angle(diff[2:])

    jacobian[:, j] = diff / (2.0 * delta[j])

  return jacobian


def compute_tolerances(
  position_tolerance : float,
  orbit              : Union[KeplerianOrbit, CartesianOrbit],
  orbit_type         : OrbitType,
  position_angle     : PositionAngle = PositionAngle.TRUE,
) -> tuple[np.ndarray, np.ndarray]:
  """
  Per-component integrator tolerances for a target position accuracy.

  Input:
  ------
    position_tolerance : float
      Desired position accuracy dP [m], > 0.
    orbit : KeplerianOrbit | CartesianOrbit
      Orbit at which the tolerances are evaluated.
    orbit_type : OrbitType
      Set of propagated variables.
    position_angle : PositionAngle
      Anomaly convention of the propagated variables (KEPLERIAN only).

  Output:
  -------
    abs_tol : np.ndarray
      Absolute tolerances, 6 components.
    rel_tol : np.ndarray
      Relative tolerances, 6 components.

  Raises:
  -------
    ValueError
      If position_tolerance is not positive or the tolerances are not finite.
  """
  if not (np.isfinite(position_tolerance) and position_tolerance > 0):
    raise ValueError(f"Position tolerance must be positive, received {position_tolerance}")

  orbit_type     = OrbitType.from_name(orbit_type)
  position_angle = PositionAngle.from_name(position_angle)

  pos_vec, vel_vec = orbit.to_pv()
  pos_mag_pwr2     = float(np.dot(pos_vec, pos_vec))
  vel_mag          = float(np.linalg.norm(vel_vec))

  dP = position_tolerance
  dV = orbit.gp * dP / (vel_mag * pos_mag_pwr2)

  if orbit_type == OrbitType.CARTESIAN:
    abs_tol = np.array([dP, dP, dP, dV, dV, dV])
  else:
    jacobian = _keplerian_jacobian(pos_vec, vel_vec, orbit.gp, position_angle)
    weights  = np.array([dP, dP, dP, dV, dV, dV])
    abs_tol  = np.abs(jacobian) @ weights

    # Rows vanish where an element sits at the end of its range (ecc = 0,
    # inc = 0 or pi); no component goes below dP for sma or dP / |r| otherwise
    floor_tol = np.full(STATE_DIMENSION, dP / np.sqrt(pos_mag_pwr2))
    floor_tol[0] = dP
    abs_tol = np.maximum(abs_tol, floor_tol)

  rel_tol = np.full(STATE_DIMENSION, dP / np.sqrt(pos_mag_pwr2))

  if not np.all(np.isfinite(abs_tol)):
    raise ValueError(f"Non-finite absolute tolerances for {orbit_type.value} propagation: {abs_tol}")

  return abs_tol, rel_tol


def build_integrator_config(
  position_tolerance : float,
  min_step           : float,
  max_step           : float,
  orbit              : Union[KeplerianOrbit, CartesianOrbit],
  orbit_type         : OrbitType,
  position_angle     : PositionAngle = PositionAngle.TRUE,
) -> IntegratorConfig:
  """
  Build the DOP853 configuration from a position accuracy and step bounds [s].
  """
  abs_tol, rel_tol = compute_tolerances(
    position_tolerance = position_tolerance,
    orbit              = orbit,
    orbit_type         = orbit_type,
    position_angle     = position_angle,
  )
  return IntegratorConfig(
    min_step = min_step,
    max_step = max_step,
    abs_tol  = abs_tol,
    rel_tol  = rel_tol,
  )
