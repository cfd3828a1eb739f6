"""
Central Body Shape
==================

Oblate spheroid (one-axis ellipsoid) rotating about the inertial z-axis.
"""
import numpy as np

from drag_propagator.model.constants import SOLARSYSTEMCONSTANTS, FRAMES
from drag_propagator.model.orbit     import normalize_frame


class OneAxisEllipsoid:
  """
  Oblate spheroid body shape.

  The body-fixed frame shares its z-axis with the inertial frame and spins at
  rotation_rate, so only the longitude depends on time.
  """

  def __init__(
    self,
    equatorial_radius : float = SOLARSYSTEMCONSTANTS.EARTH.RADIUS.EQUATOR,
    flattening        : float = SOLARSYSTEMCONSTANTS.EARTH.FLATTENING,
    frame             : str   = FRAMES.EME2000,
    rotation_rate     : float = SOLARSYSTEMCONSTANTS.EARTH.OMEGA,
    angular_threshold : float = 1.0e-6,
    max_iter          : int   = 20,
  ):
    """
    Initialize body shape

    Input:
    ------
      equatorial_radius : float
        Equatorial radius [m].
      flattening : float
        Flattening (a - b) / a [-].
      frame : str
        Inertial frame in which positions are expressed.
      rotation_rate : float
        Spin rate about the z-axis [rad/s].
      angular_threshold : float
        Convergence threshold on geodetic latitude [rad].
      max_iter : int
        Maximum latitude iterations.

    Output:
    -------
      None
    """
    if equatorial_radius <= 0:
      raise ValueError(f"Equatorial radius must be positive, received {equatorial_radius}")
    if not 0 <= flattening < 1:
      raise ValueError(f"Flattening must satisfy 0 <= f < 1, received {flattening}")
    if angular_threshold <= 0:
      raise ValueError(f"Angular threshold must be positive, received {angular_threshold}")

    self.equatorial_radius = float(equatorial_radius)
    self.flattening        = float(flattening)
    self.polar_radius      = self.equatorial_radius * (1.0 - self.flattening)
    self.ecc_sq            = self.flattening * (2.0 - self.flattening)
    self.frame             = normalize_frame(frame)
    self.rotation_rate     = float(rotation_rate)
    self.angular_threshold = float(angular_threshold)
    self.max_iter          = max_iter

  @property
  def omega_vec(self) -> np.ndarray:
    return np.array([0.0, 0.0, self.rotation_rate])

  def geodetic_latitude_altitude(
    self,
    pos_vec : np.ndarray,
  ) -> tuple[float, float]:
    """
    Geodetic latitude and altitude above the spheroid.

    Input:
    ------
      pos_vec : np.ndarray
        Position vector [m] in the body's inertial frame.

    Output:
    -------
      lat : float
        Geodetic latitude [rad].
      alt : float
        Altitude above the spheroid [m].

    Notes:
    ------
      Iterative Bowring method, starting from the latitude of a sphere
      scaled by (1 - e²). Latitude and altitude do not depend on longitude,
      so the body rotation angle is not needed.
    """
    pos_x, pos_y, pos_z = pos_vec[0], pos_vec[1], pos_vec[2]
    pos_xy = np.hypot(pos_x, pos_y)

    a  = self.equatorial_radius
    e2 = self.ecc_sq

    lat = np.arctan2(pos_z, pos_xy * (1.0 - e2))
    for _ in range(self.max_iter):
      sin_lat = np.sin(lat)
      n       = a / np.sqrt(1.0 - e2 * sin_lat**2)
      lat_new = np.arctan2(pos_z + e2 * n * sin_lat, pos_xy)
      if abs(lat_new - lat) < self.angular_threshold:
        lat = lat_new
        break
      lat = lat_new

    sin_lat = np.sin(lat)
    cos_lat = np.cos(lat)
    n       = a / np.sqrt(1.0 - e2 * sin_lat**2)

    if abs(cos_lat) > 1e-10:
      alt = pos_xy / cos_lat - n
    else:
      alt = abs(pos_z) - self.polar_radius

    return float(lat), float(alt)

  def altitude(
    self,
    pos_vec : np.ndarray,
  ) -> float:
    """
    Geodetic altitude [m] above the spheroid.
    """
    return self.geodetic_latitude_altitude(pos_vec)[1]

  def surface_velocity(
    self,
    pos_vec : np.ndarray,
  ) -> np.ndarray:
    """
    Inertial velocity [m/s] of a point fixed to the rotating body at pos_vec.
    """
    return np.cross(self.omega_vec, pos_vec)
