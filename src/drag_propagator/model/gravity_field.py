"""
Gravity Field Module
====================

Reads zonal gravity coefficients from gravity field coefficient files
(ICGEM format) and converts them to unnormalized J_n values.

Supported formats:
- ICGEM .gfc files (EGM2008, EGM96, etc.)

References:
- Montenbruck & Gill, "Satellite Orbits", Chapter 3.2
- ICGEM format: http://icgem.gfz-potsdam.de/ICGEM-Format-2023.pdf
"""
import numpy as np

from pathlib import Path

from drag_propagator.model.constants import SOLARSYSTEMCONSTANTS


class ZonalCoefficients:
  """
  Container for unnormalized zonal harmonic coefficients.
  """

  def __init__(
    self,
    gp         : float,
    radius     : float,
    max_degree : int,
  ):
    """
    Input:
    ------
      gp : float
        Gravitational parameter of the field [m³/s²].
      radius : float
        Reference radius of the field [m].
      max_degree : int
        Maximum zonal degree kept.
    """
    self.gp         = gp
    self.radius     = radius
    self.max_degree = max_degree
    self.J          = np.zeros(max_degree + 1)

  def get(
    self,
    degree : int,
  ) -> float:
    if degree > self.max_degree:
      return 0.0
    return float(self.J[degree])


def _parse_float(
  value_str : str,
) -> float:
  # Handle 'D' or 'E' exponents (e.g. 1.0D-06)
  return float(value_str.replace('D', 'E').replace('d', 'e'))


def load_icgem_zonals(
  filepath   : Path,
  max_degree : int = 4,
) -> ZonalCoefficients:
  """
  Load zonal coefficients C(n,0) from an ICGEM format file.

  Input:
  ------
    filepath : Path
      Path to the .gfc file.
    max_degree : int
      Maximum degree to read.

  Output:
  -------
    coeffs : ZonalCoefficients
      Loaded coefficients with J[n] = -C(n,0) (unnormalized).

  Raises:
  -------
    FileNotFoundError
      If the file does not exist.
    ValueError
      If the file has no end_of_head marker.

  Notes:
  ------
    For fully normalized files, C(n,0) = Cbar(n,0) * sqrt(2n + 1).
  """
  filepath = Path(filepath)
  if not filepath.exists():
    raise FileNotFoundError(f"Gravity field file not found: {filepath}")

  # Default values (overwritten from file header)
  gp         = SOLARSYSTEMCONSTANTS.EARTH.GP
  radius     = SOLARSYSTEMCONSTANTS.EARTH.RADIUS.EQUATOR
  normalized = True
  found_end  = False

  with open(filepath, 'r') as f:
    # Read Header
    for line in f:
      line = line.strip()
      if not line:
        continue

      parts = line.split()
      if parts[0] == 'earth_gravity_constant':
        gp = _parse_float(parts[1])
      elif parts[0] == 'radius':
        radius = _parse_float(parts[1])
      elif parts[0] == 'norm':
        normalized = parts[1].lower() != 'unnormalized'
      elif parts[0] == 'end_of_head':
        found_end = True
        break

    if not found_end:
      raise ValueError(f"Gravity field file has no 'end_of_head' marker: {filepath}")

    coeffs = ZonalCoefficients(gp, radius, max_degree)

    # Read Coefficients (continue reading from current file position)
    for line in f:
      parts = line.split()
      if len(parts) < 4 or parts[0] not in ['gfc', 'gcf']:
        continue

      n_degree = int(parts[1])
      m_order  = int(parts[2])
      if m_order != 0 or n_degree < 2 or n_degree > max_degree:
        continue

      cn0 = _parse_float(parts[3])
      if normalized:
        cn0 = cn0 * np.sqrt(2 * n_degree + 1)
      coeffs.J[n_degree] = -cn0

  return coeffs
