"""
Spacecraft Orbital Dynamics Module
==================================

Orbital dynamics models for spacecraft trajectory propagation under central
gravity and atmospheric drag.

Class Structure:
----------------
Equations of Motion:
    GeneralStateEquationsOfMotion   (Cartesian state, d/dt [r, v] = [v, a])
    KeplerianEquationsOfMotion      (Keplerian elements, Gauss variational equations)
    └── Acceleration (coordinator)
        ├── TwoBodyGravity          (point mass, always on)
        └── force models            (registered contributors)
            ├── ZonalHarmonicsGravity (J2, J3, J4)
            └── DragForce
                ├── ExponentialAtmosphere
                └── IsotropicDrag

Force Model Interface:
----------------------
Every force model provides

  acceleration(time_et, pos_vec, vel_vec, mass) -> np.ndarray

returning the perturbing acceleration in the inertial frame. Force models
hold no state that changes during a propagation.

Usage Example:
--------------
  from drag_propagator.model.atmosphere import ExponentialAtmosphere
  from drag_propagator.model.ellipsoid  import OneAxisEllipsoid
  from drag_propagator.model.dynamics   import Acceleration, DragForce, IsotropicDrag

  earth      = OneAxisEllipsoid()
  atmosphere = ExponentialAtmosphere(earth, rho_ref=4.0e-13, h_ref=500.0e3, h_scale=60.0e3)
  drag       = DragForce(atmosphere, IsotropicDrag(area=5.0, cd=2.0))

  acceleration = Acceleration(gp=SOLARSYSTEMCONSTANTS.EARTH.GP, force_models=[drag])
  acc_vec      = acceleration.compute(time_et, pos_vec, vel_vec, mass=1000.0)

Units:
------
- Position     : meters [m]
- Velocity     : meters per second [m/s]
- Acceleration : meters per second squared [m/s²]
- Time         : seconds [s]
- Angles       : radians [rad]

Sources:
--------
- Vallado, D. A. (2013). Fundamentals of Astrodynamics and Applications (4th ed.). Microcosm Press.
- Schaub, H., & Junkins, J. L. (2018). Analytical Mechanics of Space Systems (4th ed.). AIAA.
"""
import numpy as np

from typing import Optional

from drag_propagator.model.atmosphere      import ExponentialAtmosphere
from drag_propagator.model.orbit           import PositionAngle
from drag_propagator.model.orbit_converter import OrbitConverter


# =============================================================================
# Gravity Components
# =============================================================================

class TwoBodyGravity:
  """
  Central body point mass gravity
  """

  def __init__(
    self,
    gp : float,
  ):
    self.gp = gp

  def point_mass(
    self,
    pos_vec : np.ndarray,
  ) -> np.ndarray:
    """
    Two-body point mass gravity

    Input:
    ------
      pos_vec : np.ndarray
        Position vector [m]

    Output:
    -------
      acc_vec : np.ndarray
        Acceleration vector [m/s²]
    """
    pos_mag = np.linalg.norm(pos_vec)
    return -self.gp * pos_vec / pos_mag**3


class ZonalHarmonicsGravity:
  """
  Zonal harmonics (J2, J3, J4) perturbation of the central body

  Notes:
  ------
    Zonal harmonics are rotationally symmetric about the body z-axis, so the
    body's spin does not affect the force. The inertial z-axis is assumed to
    be aligned with the body z-axis (precession and nutation are ignored),
    and inertial coordinates are used directly.
  """

  def __init__(
    self,
    gp      : float,
    pos_ref : float,
    j2      : float = 0.0,
    j3      : float = 0.0,
    j4      : float = 0.0,
  ):
    """
    Initialize zonal harmonics model

    Input:
    ------
      gp : float
        Gravitational parameter of central body [m³/s²]
      pos_ref : float
        Reference radius for harmonic coefficients [m]
      j2 : float
        J2 harmonic coefficient
      j3 : float
        J3 harmonic coefficient
      j4 : float
        J4 harmonic coefficient

    Output:
    -------
      None
    """
    self.gp      = gp
    self.pos_ref = pos_ref
    self.j2      = j2
    self.j3      = j3
    self.j4      = j4

  def acceleration(
    self,
    time_et : float,
    pos_vec : np.ndarray,
    vel_vec : np.ndarray,
    mass    : float,
  ) -> np.ndarray:
    return self.oblate_j2(pos_vec) + self.oblate_j3(pos_vec) + self.oblate_j4(pos_vec)

  def oblate_j2(
    self,
    pos_vec : np.ndarray,
  ) -> np.ndarray:
    """
    J2 oblateness perturbation

    Input:
    ------
      pos_vec : np.ndarray
        Position vector [m] in the inertial frame.

    Output:
    -------
      acc_vec : np.ndarray
        Acceleration vector [m/s²]
    """
    if self.j2 == 0.0:
      return np.zeros(3)

    pos_mag      = np.linalg.norm(pos_vec)
    pos_mag_pwr2 = pos_mag**2
    pos_mag_pwr5 = pos_mag_pwr2 * pos_mag_pwr2 * pos_mag

    factor = 1.5 * self.j2 * self.gp * self.pos_ref**2 / pos_mag_pwr5

    acc_vec    = np.zeros(3)
    acc_vec[0] = factor * pos_vec[0] * (5 * pos_vec[2]**2 / pos_mag_pwr2 - 1)
    acc_vec[1] = factor * pos_vec[1] * (5 * pos_vec[2]**2 / pos_mag_pwr2 - 1)
    acc_vec[2] = factor * pos_vec[2] * (5 * pos_vec[2]**2 / pos_mag_pwr2 - 3)

    return acc_vec

  def oblate_j3(
    self,
    pos_vec : np.ndarray,
  ) -> np.ndarray:
    """
    J3 oblateness perturbation
    """
    if self.j3 == 0.0:
      return np.zeros(3)

    pos_x, pos_y, pos_z = pos_vec[0], pos_vec[1], pos_vec[2]

    pos_mag      = np.linalg.norm(pos_vec)
    pos_mag_pwr2 = pos_mag**2
    pos_mag_pwr7 = pos_mag_pwr2 * pos_mag_pwr2 * pos_mag_pwr2 * pos_mag

    factor = -2.5 * self.j3 * self.gp * self.pos_ref**3 / pos_mag_pwr7

    acc_vec    = np.zeros(3)
    acc_vec[0] = factor * pos_x * pos_z * (3.0 - 7.0 * pos_z**2 / pos_mag_pwr2)
    acc_vec[1] = factor * pos_y * pos_z * (3.0 - 7.0 * pos_z**2 / pos_mag_pwr2)
    acc_vec[2] = factor * (6.0 * pos_z**2 - 7.0 * pos_z**4 / pos_mag_pwr2 - 0.6 * pos_mag_pwr2)

    return acc_vec

  def oblate_j4(
    self,
    pos_vec : np.ndarray,
  ) -> np.ndarray:
    """
    J4 oblateness perturbation
    """
    if self.j4 == 0.0:
      return np.zeros(3)

    pos_x, pos_y, pos_z = pos_vec[0], pos_vec[1], pos_vec[2]

    pos_mag      = np.linalg.norm(pos_vec)
    pos_mag_pwr2 = pos_mag**2
    pos_mag_pwr7 = pos_mag_pwr2**3 * pos_mag

    term_common = pos_z**2 / pos_mag_pwr2
    factor      = 1.875 * self.j4 * self.gp * self.pos_ref**4 / pos_mag_pwr7

    acc_vec    = np.zeros(3)
    acc_vec[0] = factor * pos_x * (1.0 - 14.0 * term_common + 21.0 * term_common**2)
    acc_vec[1] = factor * pos_y * (1.0 - 14.0 * term_common + 21.0 * term_common**2)
    acc_vec[2] = factor * pos_z * (5.0 - 70.0 * term_common / 3.0 + 21.0 * term_common**2)

    return acc_vec


# =============================================================================
# Non-Gravitational Accelerations
# =============================================================================

class IsotropicDrag:
  """
  Drag sensitivity of a spacecraft with the same cross-section in every direction
  """

  def __init__(
    self,
    area : float,
    cd   : float,
  ):
    """
    Input:
    ------
      area : float
        Cross-sectional area [m²].
      cd : float
        Drag coefficient.
    """
    if area <= 0:
      raise ValueError(f"Drag area must be positive, received {area}")
    if cd <= 0:
      raise ValueError(f"Drag coefficient must be positive, received {cd}")
    self.area = float(area)
    self.cd   = float(cd)

  def drag_acceleration(
    self,
    density     : float,
    vel_rel_vec : np.ndarray,
    mass        : float,
  ) -> np.ndarray:
    """
    Drag acceleration for a given density and velocity relative to the atmosphere

    Input:
    ------
      density : float
        Atmospheric density [kg/m³]
      vel_rel_vec : np.ndarray
        Velocity relative to the atmosphere [m/s]
      mass : float
        Spacecraft mass [kg]

    Output:
    -------
      acc_vec : np.ndarray
        Drag acceleration [m/s²]
    """
    vel_rel_mag = np.linalg.norm(vel_rel_vec)
    return -0.5 * density * (self.cd * self.area / mass) * vel_rel_mag * vel_rel_vec


class DragForce:
    """
    Atmospheric drag acceleration
    """

    def __init__(
      self,
      atmosphere : ExponentialAtmosphere,
      spacecraft : IsotropicDrag,
    ):
      """
      Initialize drag model

      Input:
      ------
        atmosphere : ExponentialAtmosphere
          Atmosphere density and velocity model.
        spacecraft : IsotropicDrag
          Spacecraft drag sensitivity model.

      Output:
      -------
        None
      """
      self.atmosphere = atmosphere
      self.spacecraft = spacecraft

    @property
    def frame(self) -> str:
      return self.atmosphere.frame

    def acceleration(
      self,
      time_et : float,
      pos_vec : np.ndarray,
      vel_vec : np.ndarray,
      mass    : float,
    ) -> np.ndarray:
      """
      Compute drag acceleration

      Input:
      ------
        time_et : float
          Current Ephemeris Time (ET) [s]
        pos_vec : np.ndarray
          Position vector [m]
        vel_vec : np.ndarray
          Velocity vector [m/s]
        mass : float
          Spacecraft mass [kg]

      Output:
      -------
        acc_vec : np.ndarray
          Drag acceleration [m/s²]

      Raises:
      -------
        ForceModelDomainError
          If the position is outside the atmosphere model's valid range.
      """
      # Atmospheric density at current altitude
      rho = self.atmosphere.density(time_et, pos_vec)

      # Velocity relative to rotating atmosphere
      vel_rel_vec = vel_vec - self.atmosphere.velocity(time_et, pos_vec)

      return self.spacecraft.drag_acceleration(rho, vel_rel_vec, mass)


# =============================================================================
# Acceleration Coordinator
# =============================================================================

class Acceleration:
    """
    Acceleration coordinator

    Computes total acceleration as:
      total = two_body_point_mass + sum(force_model accelerations)
    """

    def __init__(
      self,
      gp           : float,
      force_models : Optional[list] = None,
    ):
      """
      Initialize acceleration coordinator

      Input:
      ------
        gp : float
          Gravitational parameter of central body [m³/s²]
        force_models : list | None
          Perturbing force models.

      Output:
      -------
        None
      """
      self.gravity      = TwoBodyGravity(gp)
      self.force_models = tuple(force_models) if force_models else ()

    @property
    def gp(self) -> float:
      return self.gravity.gp

    def perturbation(
      self,
      time    : float,
      pos_vec : np.ndarray,
      vel_vec : np.ndarray,
      mass    : float,
    ) -> np.ndarray:
      """
      Sum of all force model accelerations [m/s²], excluding point mass gravity
      """
      acc_vec = np.zeros(3)
      for force_model in self.force_models:
        acc_vec += force_model.acceleration(time, pos_vec, vel_vec, mass)
      return acc_vec

    def compute(
      self,
      time    : float,
      pos_vec : np.ndarray,
      vel_vec : np.ndarray,
      mass    : float,
    ) -> np.ndarray:
      """
      Compute total acceleration from all components

      Input:
      ------
        time : float
          Current Ephemeris Time (ET) [s]
        pos_vec : np.ndarray
          Position vector [m]
        vel_vec : np.ndarray
          Velocity vector [m/s]
        mass : float
          Spacecraft mass [kg]

      Output:
      -------
        acc_vec : np.ndarray
          Total acceleration [m/s²]
      """
      acc_vec = self.gravity.point_mass(pos_vec)
      if self.force_models:
        acc_vec = acc_vec + self.perturbation(time, pos_vec, vel_vec, mass)
      return acc_vec


# =============================================================================
# Equations of Motion
# =============================================================================

class GeneralStateEquationsOfMotion:
  """
  Cartesian state equations of motion for orbit propagation
  """

  def __init__(
    self,
    acceleration : Acceleration,
    mass         : float,
  ):
    """
    Initialize equations of motion

    Input:
    ------
      acceleration : Acceleration
        Acceleration coordinator instance
      mass : float
        Spacecraft mass [kg]

    Output:
    -------
      None
    """
    self.acceleration = acceleration
    self.mass         = mass

  def state_time_derivative(
    self,
    time      : float,
    state_vec : np.ndarray,
  ) -> np.ndarray:
    """
    Compute state time derivative for ODE integration

    Input:
    ------
      time : float
        Current Ephemeris Time (ET) [s]
      state_vec : np.ndarray
        Current state vector [pos, vel] [m, m/s]

    Output:
    -------
      state_dot_vec : np.ndarray
        Time derivative of state vector [vel, acc] [m/s, m/s²]
    """
    pos_vec = state_vec[0:3]
    vel_vec = state_vec[3:6]
    acc_vec = self.acceleration.compute(time, pos_vec, vel_vec, self.mass)

    state_dot_vec      = np.zeros(6)
    state_dot_vec[0:3] = vel_vec
    state_dot_vec[3:6] = acc_vec

    return state_dot_vec


class KeplerianEquationsOfMotion:
  """
  Gauss variational equations for classical orbital elements
  """

  def __init__(
    self,
    acceleration   : Acceleration,
    mass           : float,
    position_angle : PositionAngle = PositionAngle.TRUE,
  ):
    """
    Initialize equations of motion

    Input:
    ------
      acceleration : Acceleration
        Acceleration coordinator instance
      mass : float
        Spacecraft mass [kg]
      position_angle : PositionAngle
        Anomaly carried in the last state vector component

    Output:
    -------
      None
    """
    self.acceleration   = acceleration
    self.mass           = mass
    self.position_angle = PositionAngle.from_name(position_angle)

  def state_time_derivative(
    self,
    time      : float,
    state_vec : np.ndarray,
  ) -> np.ndarray:
    """
    Compute element time derivatives for ODE integration

    Input:
    ------
      time : float
        Current Ephemeris Time (ET) [s]
      state_vec : np.ndarray
        Current elements [sma, ecc, inc, aop, raan, anomaly] [m, -, rad, rad, rad, rad]

    Output:
    -------
      state_dot_vec : np.ndarray
        Time derivative of the elements

    Notes:
    ------
      The perturbing acceleration is resolved into radial (r), along-track
      (theta) and orbit-normal (h) components. The equations are singular for
      circular (ecc = 0) and equatorial (sin(inc) = 0) orbits when a
      perturbation is present.

    Source:
    -------
      Analytical Mechanics of Space Systems, Fourth Edition
      Hanspeter Schaub and John L. Junkins, Section 12.4
      DOI: https://doi.org/10.2514/4.105210
    """
    sma, ecc, inc, aop, raan, anomaly = state_vec
    gp = self.acceleration.gp

    # Eccentric and true anomaly
    if self.position_angle == PositionAngle.MEAN:
      ea = OrbitConverter.ma_to_ea(anomaly, ecc)
    elif self.position_angle == PositionAngle.TRUE:
      ea = OrbitConverter.ta_to_ea(anomaly, ecc)
    else:
      ea = anomaly
    ta = OrbitConverter.ea_to_ta(ea, ecc)

    slr         = sma * (1 - ecc**2)
    ang_mom_mag = np.sqrt(gp * slr)
    pos_mag     = slr / (1 + ecc * np.cos(ta))
    mean_motion = np.sqrt(gp / sma**3)

    state_dot_vec = np.zeros(6)

    # Unperturbed anomaly rate
    if self.position_angle == PositionAngle.MEAN:
      state_dot_vec[5] = mean_motion
    elif self.position_angle == PositionAngle.TRUE:
      state_dot_vec[5] = ang_mom_mag / pos_mag**2
    else:
      state_dot_vec[5] = mean_motion * sma / pos_mag

    if not self.acceleration.force_models:
      return state_dot_vec

    # Perturbing acceleration in the radial / along-track / normal frame
    pos_vec, vel_vec = OrbitConverter.coe_to_pv(
      {'sma': sma, 'ecc': ecc, 'inc': inc, 'raan': raan, 'aop': aop, 'ta': ta}, gp,
    )
    acc_vec = self.acceleration.perturbation(time, pos_vec, vel_vec, self.mass)

    rad_dir = pos_vec / pos_mag
    nrm_dir = np.cross(pos_vec, vel_vec) / ang_mom_mag
    trk_dir = np.cross(nrm_dir, rad_dir)

    acc_r = np.dot(acc_vec, rad_dir)
    acc_t = np.dot(acc_vec, trk_dir)
    acc_h = np.dot(acc_vec, nrm_dir)

    sin_ta, cos_ta = np.sin(ta), np.cos(ta)
    theta          = aop + ta
    sin_th, cos_th = np.sin(theta), np.cos(theta)

    # Gauss variational equations
    sma_dot  = 2 * sma**2 / ang_mom_mag * (ecc * sin_ta * acc_r + slr / pos_mag * acc_t)
    ecc_dot  = (slr * sin_ta * acc_r + ((slr + pos_mag) * cos_ta + pos_mag * ecc) * acc_t) / ang_mom_mag
    inc_dot  = pos_mag * cos_th / ang_mom_mag * acc_h
    raan_dot = pos_mag * sin_th / (ang_mom_mag * np.sin(inc)) * acc_h
    aop_dot  = (
      (-slr * cos_ta * acc_r + (slr + pos_mag) * sin_ta * acc_t) / (ang_mom_mag * ecc)
      - raan_dot * np.cos(inc)
    )

    if self.position_angle == PositionAngle.TRUE:
      anomaly_dot = (
        ang_mom_mag / pos_mag**2
        + (slr * cos_ta * acc_r - (slr + pos_mag) * sin_ta * acc_t) / (ecc * ang_mom_mag)
      )
    else:
      eta    = np.sqrt(1 - ecc**2)
      ma_dot = (
        mean_motion
        + eta / (ang_mom_mag * ecc) * ((slr * cos_ta - 2 * pos_mag * ecc) * acc_r - (slr + pos_mag) * sin_ta * acc_t)
      )
      if self.position_angle == PositionAngle.MEAN:
        anomaly_dot = ma_dot
      else:
        # M = E - e sin(E)  ->  dE/dt = (dM/dt + de/dt sin(E)) / (1 - e cos(E))
        anomaly_dot = (ma_dot + ecc_dot * np.sin(ea)) / (1 - ecc * np.cos(ea))

    state_dot_vec[0] = sma_dot
    state_dot_vec[1] = ecc_dot
    state_dot_vec[2] = inc_dot
    state_dot_vec[3] = aop_dot
    state_dot_vec[4] = raan_dot
    state_dot_vec[5] = anomaly_dot

    return state_dot_vec
