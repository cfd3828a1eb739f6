"""
Orbit Representations
=====================

Immutable orbital states bound to an epoch, a reference frame and a
gravitational parameter.

Summary:
--------
  KeplerianOrbit  : six classical elements with an anomaly convention
  CartesianOrbit  : inertial position and velocity
  SpacecraftState : an orbit plus spacecraft mass

OrbitType maps orbits to and from the six propagated variables used by the
integrator, and PositionAngle selects which anomaly is propagated.

Units:
------
- Position : meters [m]
- Velocity : meters per second [m/s]
- Angles   : radians [rad]
- Mass     : kilograms [kg]
"""
import numpy as np

from dataclasses import dataclass, field, replace
from enum        import Enum
from typing      import Union

from drag_propagator.model.constants       import FRAMES, SPACECRAFT
from drag_propagator.model.orbit_converter import OrbitConverter
from drag_propagator.model.time_converter  import Epoch


class PositionAngle(Enum):
  MEAN      = 'mean'
  ECCENTRIC = 'eccentric'
  TRUE      = 'true'

  @classmethod
  def from_name(
    cls,
    name : Union[str, 'PositionAngle'],
  ) -> 'PositionAngle':
    if isinstance(name, cls):
      return name
    try:
      return cls(str(name).strip().lower())
    except ValueError:
      choices = ', '.join(p.value for p in cls)
      raise ValueError(f"Unknown position angle '{name}'. Options: {choices}") from None


def normalize_frame(
  frame : str,
) -> str:
  """
  Return the canonical name of an inertial frame label.
  """
  key = str(frame).strip().upper()
  if key not in FRAMES.ALIASES:
    choices = ', '.join(FRAMES.ALIASES)
    raise ValueError(f"Unsupported reference frame '{frame}'. Options: {choices}")
  return FRAMES.ALIASES[key]


def check_same_frame(
  frame_a : str,
  frame_b : str,
) -> None:
  """
  Raise ValueError if two frame labels do not name the same frame.
  """
  if normalize_frame(frame_a) != normalize_frame(frame_b):
    raise ValueError(f"Frame mismatch: {frame_a} vs {frame_b}")


def _check_finite(
  **values : float,
) -> None:
  for name, value in values.items():
    if not np.all(np.isfinite(value)):
      raise ValueError(f"Orbit parameter '{name}' must be finite, received {value}")


@dataclass(frozen=True)
class KeplerianOrbit:
  """
  Bound Keplerian orbit.

  Attributes:
  -----------
    sma : float
      Semi-major axis [m], > 0.
    ecc : float
      Eccentricity [-], 0 <= ecc < 1.
    inc : float
      Inclination [rad].
    aop : float
      Argument of perigee [rad].
    raan : float
      Right ascension of the ascending node [rad].
    anomaly : float
      Anomaly [rad] in the convention given by position_angle. Not wrapped.
    position_angle : PositionAngle
      Anomaly convention.
    frame : str
      Inertial reference frame.
    epoch : Epoch
      Epoch of the elements.
    gp : float
      Gravitational parameter [m³/s²].
  """
  sma            : float
  ecc            : float
  inc            : float
  aop            : float
  raan           : float
  anomaly        : float
  position_angle : PositionAngle
  frame          : str
  epoch          : Epoch
  gp             : float

  def __post_init__(self):
    _check_finite(
      sma     = self.sma,
      ecc     = self.ecc,
      inc     = self.inc,
      aop     = self.aop,
      raan    = self.raan,
      anomaly = self.anomaly,
      gp      = self.gp,
    )
    if self.sma <= 0:
      raise ValueError(f"Semi-major axis must be positive for a bound orbit, received sma = {self.sma}")
    if not 0 <= self.ecc < 1:
      raise ValueError(f"Eccentricity must satisfy 0 <= ecc < 1 for a bound orbit, received ecc = {self.ecc}")
    if self.gp <= 0:
      raise ValueError(f"Gravitational parameter must be positive, received gp = {self.gp}")
    object.__setattr__(self, 'position_angle', PositionAngle.from_name(self.position_angle))
    object.__setattr__(self, 'frame', normalize_frame(self.frame))
    for name in ('sma', 'ecc', 'inc', 'aop', 'raan', 'anomaly', 'gp'):
      object.__setattr__(self, name, float(getattr(self, name)))

  @property
  def true_anomaly(self) -> float:
    return self.get_anomaly(PositionAngle.TRUE)

  @property
  def mean_anomaly(self) -> float:
    return self.get_anomaly(PositionAngle.MEAN)

  @property
  def mean_motion(self) -> float:
    return np.sqrt(self.gp / self.sma**3)

  @property
  def period(self) -> float:
    return OrbitConverter.sma_to_period(self.sma, self.gp)

  def get_anomaly(
    self,
    position_angle : PositionAngle,
  ) -> float:
    """
    Anomaly in the requested convention, keeping the revolution count of the stored anomaly.
    """
    position_angle = PositionAngle.from_name(position_angle)
    if position_angle == self.position_angle:
      return self.anomaly

    # Convert through the eccentric anomaly
    if self.position_angle == PositionAngle.MEAN:
      ea = OrbitConverter.ma_to_ea(self.anomaly, self.ecc)
    elif self.position_angle == PositionAngle.TRUE:
      ea = OrbitConverter.ta_to_ea(self.anomaly, self.ecc)
    else:
      ea = self.anomaly

    if position_angle == PositionAngle.MEAN:
      return OrbitConverter.ea_to_ma(ea, self.ecc)
    if position_angle == PositionAngle.TRUE:
      return OrbitConverter.ea_to_ta(ea, self.ecc)
    return ea

  def with_position_angle(
    self,
    position_angle : PositionAngle,
  ) -> 'KeplerianOrbit':
    """
    Same orbit with its anomaly expressed in another convention.
    """
    position_angle = PositionAngle.from_name(position_angle)
    return replace(
      self,
      anomaly        = self.get_anomaly(position_angle),
      position_angle = position_angle,
    )

  def to_pv(self) -> tuple[np.ndarray, np.ndarray]:
    """
    Inertial position [m] and velocity [m/s] vectors.
    """
    coe = {
      'sma'  : self.sma,
      'ecc'  : self.ecc,
      'inc'  : self.inc,
      'raan' : self.raan,
      'aop'  : self.aop,
      'ta'   : self.true_anomaly,
    }
    return OrbitConverter.coe_to_pv(coe, self.gp)

  def to_cartesian(self) -> 'CartesianOrbit':
    pos_vec, vel_vec = self.to_pv()
    return CartesianOrbit(
      pos_vec = pos_vec,
      vel_vec = vel_vec,
      frame   = self.frame,
      epoch   = self.epoch,
      gp      = self.gp,
    )

  def to_keplerian(
    self,
    position_angle : PositionAngle = None,
  ) -> 'KeplerianOrbit':
    if position_angle is None:
      return self
    return self.with_position_angle(position_angle)

  def shifted_by(
    self,
    delta_time : float,
  ) -> 'KeplerianOrbit':
    """
    Analytical two-body propagation by delta_time seconds.
    """
    ma_f  = self.mean_anomaly + self.mean_motion * delta_time
    orbit = replace(
      self,
      anomaly        = ma_f,
      position_angle = PositionAngle.MEAN,
      epoch          = self.epoch.shifted_by(delta_time),
    )
    return orbit.with_position_angle(self.position_angle)

  @classmethod
  def from_cartesian(
    cls,
    orbit          : 'CartesianOrbit',
    position_angle : PositionAngle = PositionAngle.TRUE,
  ) -> 'KeplerianOrbit':
    """
    Classical elements of a Cartesian orbit.

    Raises:
    -------
      ValueError
        If the Cartesian state is not a bound, non-rectilinear orbit.
    """
    coe = OrbitConverter.pv_to_coe(orbit.pos_vec, orbit.vel_vec, orbit.gp)
    if coe['ea'] is None:
      raise ValueError(f"Cartesian state is not a bound orbit (ecc = {coe['ecc']})")
    orbit_ta = cls(
      sma            = coe['sma'],
      ecc            = coe['ecc'],
      inc            = coe['inc'],
      aop            = coe['aop'],
      raan           = coe['raan'],
      anomaly        = coe['ta'],
      position_angle = PositionAngle.TRUE,
      frame          = orbit.frame,
      epoch          = orbit.epoch,
      gp             = orbit.gp,
    )
    return orbit_ta.with_position_angle(position_angle)


@dataclass(frozen=True, eq=False)
class CartesianOrbit:
  """
  Inertial position and velocity of an orbiting body.
  """
  pos_vec : np.ndarray
  vel_vec : np.ndarray
  frame   : str
  epoch   : Epoch
  gp      : float

  def __post_init__(self):
    pos_vec = np.array(self.pos_vec, dtype=float).reshape(3)
    vel_vec = np.array(self.vel_vec, dtype=float).reshape(3)
    _check_finite(pos_vec=pos_vec, vel_vec=vel_vec, gp=self.gp)
    if np.linalg.norm(pos_vec) == 0:
      raise ValueError("Position vector must be non-zero")
    if self.gp <= 0:
      raise ValueError(f"Gravitational parameter must be positive, received gp = {self.gp}")
    pos_vec.flags.writeable = False
    vel_vec.flags.writeable = False
    object.__setattr__(self, 'pos_vec', pos_vec)
    object.__setattr__(self, 'vel_vec', vel_vec)
    object.__setattr__(self, 'frame',   normalize_frame(self.frame))
    object.__setattr__(self, 'gp',      float(self.gp))

  def to_pv(self) -> tuple[np.ndarray, np.ndarray]:
    return self.pos_vec.copy(), self.vel_vec.copy()

  def to_cartesian(self) -> 'CartesianOrbit':
    return self

  def to_keplerian(
    self,
    position_angle : PositionAngle = PositionAngle.TRUE,
  ) -> KeplerianOrbit:
    return KeplerianOrbit.from_cartesian(self, position_angle)

  def shifted_by(
    self,
    delta_time : float,
  ) -> 'CartesianOrbit':
    """
    Analytical two-body propagation by delta_time seconds.
    """
    return self.to_keplerian(PositionAngle.MEAN).shifted_by(delta_time).to_cartesian()


class OrbitType(Enum):
  """
  Set of six variables integrated by the propagator.
  """
  CARTESIAN = 'cartesian'
  KEPLERIAN = 'keplerian'

  @classmethod
  def from_name(
    cls,
    name : Union[str, 'OrbitType'],
  ) -> 'OrbitType':
    if isinstance(name, cls):
      return name
    try:
      return cls(str(name).strip().lower())
    except ValueError:
      choices = ', '.join(o.value for o in cls)
      raise ValueError(f"Unknown orbit type '{name}'. Options: {choices}") from None

  def to_vector(
    self,
    orbit          : Union[KeplerianOrbit, CartesianOrbit],
    position_angle : PositionAngle = PositionAngle.TRUE,
  ) -> np.ndarray:
    """
    State vector of propagated variables.

    Output:
    -------
      state_vec : np.ndarray
        CARTESIAN : [x, y, z, vx, vy, vz]
        KEPLERIAN : [sma, ecc, inc, aop, raan, anomaly]
    """
    if self == OrbitType.CARTESIAN:
      pos_vec, vel_vec = orbit.to_pv()
      return np.concatenate((pos_vec, vel_vec))

    kep = orbit.to_keplerian(position_angle)
    return np.array([kep.sma, kep.ecc, kep.inc, kep.aop, kep.raan, kep.anomaly])

  def from_vector(
    self,
    state_vec      : np.ndarray,
    position_angle : PositionAngle,
    frame          : str,
    epoch          : Epoch,
    gp             : float,
  ) -> Union[KeplerianOrbit, CartesianOrbit]:
    """
    Orbit built from a state vector of propagated variables.
    """
    if self == OrbitType.CARTESIAN:
      return CartesianOrbit(
        pos_vec = state_vec[0:3],
        vel_vec = state_vec[3:6],
        frame   = frame,
        epoch   = epoch,
        gp      = gp,
      )
    return KeplerianOrbit(
      sma            = state_vec[0],
      ecc            = state_vec[1],
      inc            = state_vec[2],
      aop            = state_vec[3],
      raan           = state_vec[4],
      anomaly        = state_vec[5],
      position_angle = position_angle,
      frame          = frame,
      epoch          = epoch,
      gp             = gp,
    )


@dataclass(frozen=True, eq=False)
class SpacecraftState:
  """
  Orbit of the spacecraft at its epoch together with its mass.
  """
  orbit : Union[KeplerianOrbit, CartesianOrbit]
  mass  : float = field(default=SPACECRAFT.MASS)

  def __post_init__(self):
    if not np.isfinite(self.mass) or self.mass <= 0:
      raise ValueError(f"Spacecraft mass must be positive, received mass = {self.mass}")

  @property
  def epoch(self) -> Epoch:
    return self.orbit.epoch

  @property
  def frame(self) -> str:
    return self.orbit.frame

  @property
  def gp(self) -> float:
    return self.orbit.gp

  def to_pv(self) -> tuple[np.ndarray, np.ndarray]:
    return self.orbit.to_pv()

  def keplerian_acceleration(self) -> np.ndarray:
    """
    Two-body acceleration [m/s²] at the current position.
    """
    pos_vec, _ = self.orbit.to_pv()
    pos_mag    = np.linalg.norm(pos_vec)
    return -self.gp * pos_vec / pos_mag**3
