class CONVERTER:
  # Angle Conversions
  RAD_PER_DEG = 3.141592653589793 / 180.0  # [radian] per [degree]
  DEG_PER_RAD = 180.0 / 3.141592653589793  # [degree] per [radian]

  # Time Conversions
  SEC_PER_DAY  = 86400                     # [seconds] per [day]
  SEC_PER_HOUR = 3600                      # [seconds] per [hour]
  SEC_PER_MIN  = 60                        # [seconds] per [minute]


class PRINTFORMATTER:
  SCIENTIFIC_NOTATION = '>19.12e'


class FRAMES:
  """
  Inertial reference frame labels. EME2000 and J2000 name the same frame.
  """
  EME2000 = 'EME2000'
  ALIASES = {
    'EME2000' : 'EME2000',
    'J2000'   : 'EME2000',
  }


class SOLARSYSTEMCONSTANTS:
  """
  Class to hold physical constants of the central body.
  """

  class EARTH:
    class RADIUS:
      EQUATOR = 6378137.0  # GRS80 / WGS84 equatorial radius [m]

    GP         = 3.986004415e14             # Earth's gravitational parameter [m³/s²]
    FLATTENING = 1.0 / 298.257223563        # WGS84 flattening [-]

    # Zonal harmonics (unnormalized, WGS-84)
    J2 =  1.08263e-3
    J3 = -2.532153e-6
    J4 = -1.61962159137e-6

    # Rotation rate
    OMEGA = 7.2921150e-5                    # Earth's rotation rate [rad/s]


class SPACECRAFT:
  MASS = 1000.0                             # Default spacecraft mass [kg]


class SCENARIO:
  """
  Default drag scenario: a highly eccentric orbit with a perigee near 250 km,
  propagated for ten seconds with a one-second sampling cadence.
  """
  EPOCH_UTC = '2017-12-20T23:30:00'

  class ORBIT:
    SMA            = 24396159.0                    # Semi-major axis [m]
    ECC            = 0.72831215                    # Eccentricity [-]
    INC            = 7.0   * CONVERTER.RAD_PER_DEG # Inclination [rad]
    AOP            = 180.0 * CONVERTER.RAD_PER_DEG # Argument of perigee [rad]
    RAAN           = 261.0 * CONVERTER.RAD_PER_DEG # Right ascension of the ascending node [rad]
    ANOMALY        = 0.0                           # Mean anomaly [rad]
    POSITION_ANGLE = 'mean'
    FRAME          = FRAMES.EME2000

  class INTEGRATOR:
    MIN_STEP           = 0.001                     # [s]
    MAX_STEP           = 1000.0                    # [s]
    POSITION_TOLERANCE = 10.0                      # [m]
    PROPAGATION_TYPE   = 'keplerian'

  class DRAG:
    CD   = 2.0                                     # Drag coefficient [-]
    AREA = 5.0                                     # Cross-sectional area [m²]

  class ATMOSPHERE:
    RHO_REF           = 4.0e-13                    # Reference density [kg/m³]
    H_REF             = 500000.0                   # Reference altitude [m]
    H_SCALE           = 60000.0                    # Scale height [m]
    ANGULAR_THRESHOLD = 1.0e-6                     # Geodetic latitude convergence [rad]

  DURATION = 10.0                                  # [s]
  STEP     = 1.0                                   # [s]
