"""
Time Utilities
==============

Parsing of UTC epoch strings and formatting of propagation spans.
"""
from datetime import datetime, timezone

from drag_propagator.model.constants import CONVERTER


def format_time_offset(
  seconds : float,
) -> str:
  """
  Signed span in days, hours, minutes and seconds.

  Examples:
       10.0    -> "+0d 00h 00m 10.000s"
    -3725.5    -> "-0d 01h 02m 05.500s"
  """
  sign = '-' if seconds < 0 else '+'

  minutes_total, secs = divmod(abs(seconds), CONVERTER.SEC_PER_MIN)
  hours_total, minutes = divmod(int(minutes_total), CONVERTER.SEC_PER_HOUR // CONVERTER.SEC_PER_MIN)
  days, hours = divmod(hours_total, CONVERTER.SEC_PER_DAY // CONVERTER.SEC_PER_HOUR)

  return f"{sign}{days}d {hours:02d}h {minutes:02d}m {secs:06.3f}s"


def parse_time(
  time_str : str,
) -> datetime:
  """
  Parse an epoch string into a naive UTC datetime.

  Input:
  ------
    time_str : str
      ISO 8601 epoch, with 'T' or space separator, optional fractional
      seconds, and an optional 'Z' or numeric UTC offset
      (e.g. "2017-12-20T23:30:00", "2017-12-21 01:30:00+02:00").

  Output:
  -------
    utc_dt : datetime
      Epoch in UTC without tzinfo.

  Raises:
  -------
    ValueError
      If the string is not an ISO 8601 epoch.
  """
  text = str(time_str).strip()
  if text.endswith(('Z', 'z')):
    text = text[:-1] + '+00:00'

  try:
    utc_dt = datetime.fromisoformat(text)
  except ValueError:
    raise ValueError(f"Cannot parse time string: {time_str}") from None

  if utc_dt.tzinfo is not None:
    utc_dt = utc_dt.astimezone(timezone.utc).replace(tzinfo=None)
  return utc_dt
