"""
Time Converter
==============

Epochs are stored as Ephemeris Time (ET), TDB seconds past J2000, which is the
continuous time scale used by the integrator. Conversion to and from UTC goes
through SPICE and requires a leap seconds kernel to be furnished.
"""
import spiceypy as spice

from dataclasses import dataclass, replace
from datetime    import datetime


@dataclass(frozen=True, order=True)
class Epoch:
  """
  Immutable instant in time.

  Attributes:
  -----------
    et : float
      Ephemeris Time (ET) in seconds past J2000.
    scale : str
      Time scale used when the epoch is read or printed (e.g. 'UTC').
  """
  et    : float
  scale : str = 'UTC'

  def __post_init__(self):
    object.__setattr__(self, 'et', float(self.et))

  def shifted_by(
    self,
    delta_time : float,
  ) -> 'Epoch':
    """
    Return a new epoch offset by delta_time seconds.
    """
    return replace(self, et=self.et + float(delta_time))

  def duration_from(
    self,
    other : 'Epoch',
  ) -> float:
    """
    Elapsed seconds from other to this epoch (positive if this epoch is later).
    """
    return self.et - other.et


def utc_to_et(
  utc_dt : datetime,
) -> float:
  """
  Convert a UTC datetime object to Ephemeris Time (ET) (seconds past J2000).

  Input:
  ------
    utc_dt : datetime
      The UTC datetime to convert.

  Output:
  -------
    et_float : float
      The corresponding Ephemeris Time (ET) in seconds past J2000.
  """
  utc_str  = utc_dt.strftime('%Y-%m-%dT%H:%M:%S.%f')
  et_float = float(spice.str2et(utc_str))
  return et_float


def et_to_utc_string(
  et                : float,
  precision_seconds : int = 3,
) -> str:
  """
  Convert Ephemeris Time (ET) to an ISO calendar UTC string.
  """
  return str(spice.et2utc(et, 'ISOC', precision_seconds))
