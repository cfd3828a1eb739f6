import numpy as np

from drag_propagator.model.ellipsoid import OneAxisEllipsoid


class ForceModelDomainError(ValueError):
  """
  Raised when a force model is evaluated outside its range of validity.
  """


class ExponentialAtmosphere:
  """
  Exponential atmosphere density model over an oblate spheroid.

  The atmosphere co-rotates with the body.
  """

  def __init__(
    self,
    body         : OneAxisEllipsoid,
    rho_ref      : float,
    h_ref        : float,
    h_scale      : float,
    min_altitude : float = 0.0,
  ):
    """
    Initialize atmosphere model

    Input:
    ------
      body : OneAxisEllipsoid
        Body shape used to compute geodetic altitude.
      rho_ref : float
        Density at the reference altitude [kg/m³].
      h_ref : float
        Reference altitude [m].
      h_scale : float
        Scale height [m].
      min_altitude : float
        Lowest altitude at which the model may be evaluated [m].

    Output:
    -------
      None
    """
    if rho_ref <= 0:
      raise ValueError(f"Reference density must be positive, received {rho_ref}")
    if h_scale <= 0:
      raise ValueError(f"Scale height must be positive, received {h_scale}")

    self.body         = body
    self.rho_ref      = float(rho_ref)
    self.h_ref        = float(h_ref)
    self.h_scale      = float(h_scale)
    self.min_altitude = float(min_altitude)

  @property
  def frame(self) -> str:
    return self.body.frame

  def density(
    self,
    time_et : float,
    pos_vec : np.ndarray,
  ) -> float:
    """
    Atmospheric density at a position

    Input:
    ------
      time_et : float
        Current Ephemeris Time (ET) [s]
      pos_vec : np.ndarray
        Position vector [m] in the body's inertial frame

    Output:
    -------
      rho : float
        Atmospheric density [kg/m³]

    Raises:
    -------
      ForceModelDomainError
        If the altitude is below min_altitude.
    """
    alt = self.body.altitude(pos_vec)
    if alt < self.min_altitude:
      raise ForceModelDomainError(
        f"Altitude {alt:.3f} m is below the atmosphere model's lower bound of {self.min_altitude:.3f} m"
      )
    return self.rho_ref * np.exp((self.h_ref - alt) / self.h_scale)

  def velocity(
    self,
    time_et : float,
    pos_vec : np.ndarray,
  ) -> np.ndarray:
    """
    Inertial velocity [m/s] of the atmosphere at a position.
    """
    return self.body.surface_velocity(pos_vec)
