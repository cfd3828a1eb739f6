import spiceypy as spice

from datetime import datetime
from pathlib  import Path
from typing   import Optional, Union

from drag_propagator.model.constants      import PRINTFORMATTER
from drag_propagator.model.gravity_field  import ZonalCoefficients, load_icgem_zonals
from drag_propagator.model.time_converter import Epoch, et_to_utc_string, utc_to_et


LSK_FILENAME = 'naif0012.tls'
LSK_URL      = 'https://naif.jpl.nasa.gov/pub/naif/generic_kernels/lsk/'


class MissingDataError(FileNotFoundError):
  """
  Raised when the reference data folder or a required file in it is missing.

  Attributes:
  -----------
    folderpath : Path
      Expected data folder.
    remediation : str
      What the user has to do to fix the problem.
  """

  def __init__(
    self,
    folderpath  : Path,
    remediation : str,
    filepath    : Optional[Path] = None,
  ):
    self.folderpath  = Path(folderpath)
    self.filepath    = Path(filepath) if filepath is not None else None
    self.remediation = remediation

    missing = self.filepath if self.filepath is not None else self.folderpath
    kind    = 'file' if self.filepath is not None else 'folder'
    super().__init__(f"Failed to find {missing} {kind}")


def _remediation(
  data_folderpath : Path,
) -> str:
  return (
    f"You need to download {LSK_FILENAME} from the {LSK_URL} page "
    f"and save it in {data_folderpath} for this program to work"
  )


def _display_path(
  folderpath : Path,
) -> str:
  try:
    rel_path = folderpath.relative_to(Path.cwd())
    return f"<project_folderpath>/{rel_path}"
  except ValueError:
    return str(folderpath)


class DataContext:
  """
  Reference data loaded for a run: SPICE kernels and optional gravity
  coefficients. Conversions between UTC and ET require the leap seconds
  kernel owned by this context.
  """

  def __init__(
    self,
    data_folderpath  : Path,
    kernel_filepaths : list,
    gravity_coeffs   : Optional[ZonalCoefficients] = None,
  ):
    self.data_folderpath  = Path(data_folderpath)
    self.kernel_filepaths = list(kernel_filepaths)
    self.gravity_coeffs   = gravity_coeffs
    self.loaded           = True

  def epoch_from_utc(
    self,
    utc : Union[str, datetime],
  ) -> Epoch:
    """
    Build an epoch from a UTC datetime or ISO string (e.g. '2017-12-20T23:30:00').
    """
    self._check_loaded()
    if isinstance(utc, str):
      utc = datetime.fromisoformat(utc)
    return Epoch(utc_to_et(utc), 'UTC')

  def epoch_to_utc(
    self,
    epoch             : Epoch,
    precision_seconds : int = 3,
  ) -> str:
    """
    ISO calendar UTC string of an epoch (e.g. '2017-12-20T23:30:00.000').
    """
    self._check_loaded()
    return et_to_utc_string(epoch.et, precision_seconds)

  def _check_loaded(self) -> None:
    if not self.loaded:
      raise RuntimeError("Data context has been unloaded")

  def unload(self) -> None:
    """
    Unload the kernels furnished by this context. Safe to call twice.
    """
    if not self.loaded:
      return
    for filepath in reversed(self.kernel_filepaths):
      spice.unload(str(filepath))
    self.loaded = False

  def __enter__(self) -> 'DataContext':
    return self

  def __exit__(self, exc_type, exc_value, traceback) -> None:
    self.unload()


def load_spice_files(
  data_folderpath : Path,
) -> list:
  """
  Load required SPICE kernels.

  Input:
  ------
    data_folderpath : Path
      Path to the reference data folder.

  Output:
  -------
    kernel_filepaths : list[Path]
      Kernels furnished, in load order.

  Raises:
  -------
    MissingDataError
      If the folder or the leap seconds kernel is not found.
  """
  data_folderpath = Path(data_folderpath)
  if not data_folderpath.is_dir():
    raise MissingDataError(data_folderpath, _remediation(data_folderpath))

  lsk_filepath = data_folderpath / LSK_FILENAME
  if not lsk_filepath.is_file():
    raise MissingDataError(data_folderpath, _remediation(data_folderpath), filepath=lsk_filepath)

  print(f"  Spice Kernels")
  print(f"    Folderpath : {_display_path(data_folderpath)}")

  spice.furnsh(str(lsk_filepath))
  print(f"    Loaded LSK : {lsk_filepath.name}")

  return [lsk_filepath]


def load_gravity_coefficients(
  data_folderpath : Path,
  max_degree      : int = 4,
) -> Optional[ZonalCoefficients]:
  """
  Load zonal coefficients from the first ICGEM file (*.gfc) in the data folder.

  Input:
  ------
    data_folderpath : Path
      Path to the reference data folder.
    max_degree : int
      Maximum zonal degree to read.

  Output:
  -------
    coeffs : ZonalCoefficients | None
      Loaded coefficients, or None if the folder holds no .gfc file.
  """
  print("  Gravity Field Model")

  gfc_filepaths = sorted(Path(data_folderpath).glob('*.gfc'))
  if not gfc_filepaths:
    print("    Filepath   : None (using built-in WGS-84 zonals)")
    return None

  gravity_filepath = gfc_filepaths[0]
  coeffs           = load_icgem_zonals(gravity_filepath, max_degree=max_degree)

  print(f"    Filepath   : {gravity_filepath.name}")
  print(f"    Degree     : {max_degree}")
  print(f"    GP         : {coeffs.gp:{PRINTFORMATTER.SCIENTIFIC_NOTATION}} m³/s²")
  print(f"    Radius     : {coeffs.radius:{PRINTFORMATTER.SCIENTIFIC_NOTATION}} m")
  return coeffs


def load_files(
  data_folderpath : Path,
  load_gravity    : bool = False,
) -> DataContext:
  """
  Load the reference data needed by the simulation.

  Input:
  ------
    data_folderpath : Path
      Path to the reference data folder.
    load_gravity : bool
      Also look for a gravity coefficient file in the folder.

  Output:
  -------
    data_context : DataContext
      Owner of the loaded kernels and coefficients.

  Raises:
  -------
    MissingDataError
      If the folder or a required file is missing.
  """
  data_folderpath = Path(data_folderpath).expanduser()

  print("\nLoad Files")
  print(f"  Data Folderpath : {data_folderpath}")

  kernel_filepaths = load_spice_files(data_folderpath)

  gravity_coeffs = None
  if load_gravity:
    try:
      gravity_coeffs = load_gravity_coefficients(data_folderpath)
    except (ValueError, OSError):
      for filepath in reversed(kernel_filepaths):
        spice.unload(str(filepath))
      raise

  return DataContext(
    data_folderpath  = data_folderpath,
    kernel_filepaths = kernel_filepaths,
    gravity_coeffs   = gravity_coeffs,
  )
