import numpy as np

from drag_propagator.model.constants import SOLARSYSTEMCONSTANTS


class TwoBody_RootSolvers:
  """
  Root solvers for two-body orbital mechanics.
  """

  @staticmethod
  def kepler(
    ma       : float,
    ecc      : float,
    tol      : float = 1e-14,
    max_iter : int   = 50,
  ) -> float:
    """
    Solve Kepler's equation ma = ea - ecc*sin(ea) for eccentric anomaly ea.

    Input:
    ------
      ma : float
        Mean anomaly [rad], in (-pi, pi]
      ecc : float
        Eccentricity (0 <= ecc < 1)
      tol : float
        Convergence tolerance
      max_iter : int
        Maximum iterations

    Output:
    -------
      ea : float
        Eccentric anomaly [rad]

    Raises:
    -------
      ValueError
        If the iteration does not converge.
    """
    # Initial guess
    if ecc < 0.8:
      ea = ma
    else:
      ea = np.pi if ma >= 0 else -np.pi

    # Newton-Raphson iteration
    for _ in range(max_iter):
      func       = ea - ecc * np.sin(ea) - ma
      func_prime = 1 - ecc * np.cos(ea)
      delta_ea   = -func / func_prime
      ea         = ea + delta_ea
      if abs(delta_ea) < tol:
        return ea

    raise ValueError(f"Kepler's equation not converged for ma = {ma}, ecc = {ecc}")


def _split_revolutions(
  angle : float,
) -> tuple[float, float]:
  """
  Split an unwrapped angle into a whole number of revolutions and a remainder in (-pi, pi].
  """
  offset = 2 * np.pi * np.round(angle / (2 * np.pi))
  return offset, angle - offset


def _check_elliptic(
  ecc       : float,
  func_name : str,
) -> None:
  if not 0 <= ecc < 1:
    raise ValueError(f"{func_name}() requires 0 <= ecc < 1, received ecc = {ecc}")


class OrbitConverter:
  """
  Conversion between position/velocity and classical orbital elements.

  Anomaly conversions accept unwrapped angles: the number of whole revolutions
  in the input is carried over to the output, so that a continuously
  integrated anomaly stays continuous after conversion.
  """

  @staticmethod
  def pv_to_coe(
    pos_vec : np.ndarray,
    vel_vec : np.ndarray,
    gp      : float = SOLARSYSTEMCONSTANTS.EARTH.GP,
  ) -> dict:
    """
    Convert Cartesian position and velocity vectors to classical orbital elements.

    Input:
    ------
      pos_vec : np.ndarray
        Position vector [m].
      vel_vec : np.ndarray
        Velocity vector [m/s].
      gp : float
        Gravitational parameter [m³/s²].

    Output:
    -------
      coe : dict
        Dictionary containing orbital elements:
        - sma  : semi-major axis [m] (np.inf for parabolic, negative for hyperbolic)
        - ecc  : eccentricity [-]
        - inc  : inclination [rad]
        - raan : right ascension of the ascending node [rad]
        - aop  : argument of periapsis [rad]
        - ta   : true anomaly [rad]
        - ea   : eccentric anomaly [rad] (None unless elliptic)
        - ma   : mean anomaly [rad] (None unless elliptic)

    Notes:
    ------
      - For the circular case the argument of periapsis is ill-defined. The
        periapsis direction is set to the position direction, so aop holds the
        argument of latitude and ta is zero.
      - For the equatorial case the node is ill-defined. ang_mom_dir is along
        +z and raan follows from atan2(0, -0) = 0 (or pi for retrograde).

    Source:
    -------
      Modified from
      Analytical Mechanics of Space Systems, Fourth Edition
      Hanspeter Schaub and John L. Junkins
      DOI: https://doi.org/10.2514/4.105210
    """
    # Small number for numerical comparisons
    eps = 1e-12

    pos_vec = np.asarray(pos_vec, dtype=float).flatten()
    vel_vec = np.asarray(vel_vec, dtype=float).flatten()

    # Orbit radius
    pos_mag = np.linalg.norm(pos_vec)
    pos_dir = pos_vec / pos_mag

    # Angular momentum vector
    ang_mom_vec = np.cross(pos_vec, vel_vec)
    ang_mom_mag = np.linalg.norm(ang_mom_vec)
    if ang_mom_mag < eps * pos_mag * max(np.linalg.norm(vel_vec), 1.0):
      raise ValueError("Rectilinear motion has no defined orbital plane")

    # Eccentricity vector
    ecc_vec = np.cross(vel_vec, ang_mom_vec) / gp - pos_dir
    ecc_mag = np.linalg.norm(ecc_vec)

    # Semi-major axis
    sma_inv = 2.0 / pos_mag - np.dot(vel_vec, vel_vec) / gp
    sma     = 1.0 / sma_inv if abs(sma_inv) > eps / pos_mag else np.inf

    # Perifocal frame unit direction vectors
    ang_mom_dir = ang_mom_vec / ang_mom_mag
    if ecc_mag > eps:
      ecc_dir = ecc_vec / ecc_mag
    else:
      ecc_dir = pos_dir.copy()
    periapsis_dir = np.cross(ang_mom_dir, ecc_dir)

    # 3-1-3 orbit plane orientation angles
    raan = np.arctan2(ang_mom_dir[0], -ang_mom_dir[1])
    inc  = np.arccos(np.clip(ang_mom_dir[2], -1.0, 1.0))
    aop  = np.arctan2(ecc_dir[2], periapsis_dir[2])

    # Equatorial orbits have no node; measure aop from the x-axis
    if abs(np.sin(inc)) < eps:
      raan = 0.0
      aop  = np.arctan2(ecc_dir[1], ecc_dir[0]) * np.sign(ang_mom_dir[2])

    # True anomaly
    dum = np.cross(ecc_dir, pos_dir)
    ta  = np.arctan2(np.dot(dum, ang_mom_dir), np.dot(ecc_dir, pos_dir))

    ea = None
    ma = None
    if ecc_mag < 1.0 - eps:
      ea = OrbitConverter.ta_to_ea(ta, ecc_mag)
      ma = OrbitConverter.ea_to_ma(ea, ecc_mag)

    return {
      'sma'  : sma,
      'ecc'  : ecc_mag,
      'inc'  : inc,
      'raan' : raan,
      'aop'  : aop,
      'ta'   : ta,
      'ea'   : ea,
      'ma'   : ma,
    }

  @staticmethod
  def coe_to_pv(
    coe : dict,
    gp  : float = SOLARSYSTEMCONSTANTS.EARTH.GP,
  ) -> tuple[np.ndarray, np.ndarray]:
    """
    Convert classical orbital elements of a bound orbit to position and velocity vectors.

    Input:
    ------
    coe : dict
      sma  : semi-major axis [m]
      ecc  : eccentricity [-] (0 <= ecc < 1)
      inc  : inclination [rad]
      raan : RAAN [rad]
      aop  : argument of periapsis [rad]
      ta   : true anomaly [rad]
    gp : float
      Gravitational parameter [m³/s²]

    Output:
    -------
      pos_vec : np.ndarray
        Position vector [m]
      vel_vec : np.ndarray
        Velocity vector [m/s]

    Source:
    -------
      Modified from
      Analytical Mechanics of Space Systems, Fourth Edition
      Hanspeter Schaub and John L. Junkins
      DOI: https://doi.org/10.2514/4.105210
    """
    sma  = coe['sma' ]
    ecc  = coe['ecc' ]
    inc  = coe['inc' ]
    raan = coe['raan']
    aop  = coe['aop' ]
    ta   = coe['ta'  ]

    _check_elliptic(ecc, 'coe_to_pv')

    # Position magnitude, true latitude angle, angular momentum magnitude
    slr         = sma * (1 - ecc**2)            # semi-latus rectum
    pos_mag     = slr / (1 + ecc * np.cos(ta))  # orbit radius
    theta       = aop + ta                      # true latitude angle
    ang_mom_mag = np.sqrt(gp * slr)             # orbit angular momentum magnitude

    # Position vector
    pos_vec = np.array([
      pos_mag * (np.cos(raan) * np.cos(theta) - np.sin(raan) * np.sin(theta) * np.cos(inc)),
      pos_mag * (np.sin(raan) * np.cos(theta) + np.cos(raan) * np.sin(theta) * np.cos(inc)),
      pos_mag * (                                              np.sin(theta) * np.sin(inc)),
    ])

    # Velocity vector
    vel_vec = np.array([
      -gp / ang_mom_mag * (np.cos(raan) * (np.sin(theta) + ecc * np.sin(aop)) + np.sin(raan) * (np.cos(theta) + ecc * np.cos(aop)) * np.cos(inc)),
      -gp / ang_mom_mag * (np.sin(raan) * (np.sin(theta) + ecc * np.sin(aop)) - np.cos(raan) * (np.cos(theta) + ecc * np.cos(aop)) * np.cos(inc)),
      -gp / ang_mom_mag * (                                                                   -(np.cos(theta) + ecc * np.cos(aop)) * np.sin(inc)),
    ])

    return pos_vec, vel_vec

  @staticmethod
  def pv_to_specific_energy(
    pos_vec : np.ndarray,
    vel_vec : np.ndarray,
    gp      : float = SOLARSYSTEMCONSTANTS.EARTH.GP,
  ) -> float:
    """
    Specific mechanical energy [m²/s²] from Cartesian state vectors.
    """
    pos_mag = np.linalg.norm(pos_vec)
    vel_mag = np.linalg.norm(vel_vec)
    return 0.5 * vel_mag**2 - gp / pos_mag

  @staticmethod
  def sma_to_period(
    sma : float,
    gp  : float = SOLARSYSTEMCONSTANTS.EARTH.GP,
  ) -> float:
    """
    Orbital period [s] of a bound orbit.
    """
    return 2 * np.pi * np.sqrt(sma**3 / gp)

  @staticmethod
  def ea_to_ta(
    ea  : float,
    ecc : float,
  ) -> float:
    """
    Maps eccentric anomaly to true anomaly.

    Input:
    ------
      ea : float
        Eccentric anomaly [rad], possibly unwrapped
      ecc : float
        Eccentricity (0 <= ecc < 1)

    Output:
    -------
      ta : float
        True anomaly [rad], with the same number of revolutions as ea

    Source:
    -------
      Modified from
      Analytical Mechanics of Space Systems, Fourth Edition
      Hanspeter Schaub and John L. Junkins
      DOI: https://doi.org/10.2514/4.105210
    """
    _check_elliptic(ecc, 'ea_to_ta')
    offset, ea_rem = _split_revolutions(ea)
    ta_rem = 2 * np.arctan2(
      np.sqrt(1 + ecc) * np.sin(ea_rem / 2),
      np.sqrt(1 - ecc) * np.cos(ea_rem / 2),
    )
    return offset + ta_rem

  @staticmethod
  def ta_to_ea(
    ta  : float,
    ecc : float,
  ) -> float:
    """
    Maps true anomaly to eccentric anomaly.

    Input:
    ------
      ta : float
        True anomaly [rad], possibly unwrapped
      ecc : float
        Eccentricity (0 <= ecc < 1)

    Output:
    -------
      ea : float
        Eccentric anomaly [rad], with the same number of revolutions as ta
    """
    _check_elliptic(ecc, 'ta_to_ea')
    offset, ta_rem = _split_revolutions(ta)
    ea_rem = 2 * np.arctan2(
      np.sqrt(1 - ecc) * np.sin(ta_rem / 2),
      np.sqrt(1 + ecc) * np.cos(ta_rem / 2),
    )
    return offset + ea_rem

  @staticmethod
  def ea_to_ma(
    ea  : float,
    ecc : float,
  ) -> float:
    """
    Maps eccentric anomaly to mean anomaly (Kepler's equation).
    """
    _check_elliptic(ecc, 'ea_to_ma')
    return ea - ecc * np.sin(ea)

  @staticmethod
  def ma_to_ea(
    ma  : float,
    ecc : float,
  ) -> float:
    """
    Maps mean anomaly to eccentric anomaly by solving Kepler's equation.
    """
    _check_elliptic(ecc, 'ma_to_ea')
    offset, ma_rem = _split_revolutions(ma)
    return offset + TwoBody_RootSolvers.kepler(ma_rem, ecc)

  @staticmethod
  def ta_to_ma(
    ta  : float,
    ecc : float,
  ) -> float:
    """
    Maps true anomaly to mean anomaly.
    """
    return OrbitConverter.ea_to_ma(OrbitConverter.ta_to_ea(ta, ecc), ecc)

  @staticmethod
  def ma_to_ta(
    ma  : float,
    ecc : float,
  ) -> float:
    """
    Maps mean anomaly to true anomaly.
    """
    return OrbitConverter.ea_to_ta(OrbitConverter.ma_to_ea(ma, ecc), ecc)
