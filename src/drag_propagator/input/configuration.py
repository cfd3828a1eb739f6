import os
import yaml
import numpy as np

from datetime import datetime, timezone
from pathlib  import Path
from types    import SimpleNamespace
from typing   import Optional

from drag_propagator.input.loader        import LSK_FILENAME
from drag_propagator.model.constants     import CONVERTER, SCENARIO, SOLARSYSTEMCONSTANTS, SPACECRAFT
from drag_propagator.utility.time_helper import parse_time


# Scenario fields: name -> (default, YAML path, unit factor to SI)
SCENARIO_FIELDS = {
  'epoch'              : (SCENARIO.EPOCH_UTC,                    ('epoch',),                                 None),
  'sma'                : (SCENARIO.ORBIT.SMA,                    ('orbit', 'sma__m'),                        1.0),
  'ecc'                : (SCENARIO.ORBIT.ECC,                    ('orbit', 'ecc'),                           1.0),
  'inc'                : (SCENARIO.ORBIT.INC,                    ('orbit', 'inc__deg'),                      CONVERTER.RAD_PER_DEG),
  'aop'                : (SCENARIO.ORBIT.AOP,                    ('orbit', 'aop__deg'),                      CONVERTER.RAD_PER_DEG),
  'raan'               : (SCENARIO.ORBIT.RAAN,                   ('orbit', 'raan__deg'),                     CONVERTER.RAD_PER_DEG),
  'anomaly'            : (SCENARIO.ORBIT.ANOMALY,                ('orbit', 'anomaly__deg'),                  CONVERTER.RAD_PER_DEG),
  'position_angle'     : (SCENARIO.ORBIT.POSITION_ANGLE,         ('orbit', 'position_angle'),                None),
  'frame'              : (SCENARIO.ORBIT.FRAME,                  ('orbit', 'frame'),                         None),
  'gp'                 : (SOLARSYSTEMCONSTANTS.EARTH.GP,         ('orbit', 'gp__m3_per_s2'),                 1.0),
  'mass'               : (SPACECRAFT.MASS,                       ('spacecraft', 'mass__kg'),                 1.0),
  'cd'                 : (SCENARIO.DRAG.CD,                      ('spacecraft', 'drag', 'coeff'),            1.0),
  'area_drag'          : (SCENARIO.DRAG.AREA,                    ('spacecraft', 'drag', 'area__m2'),         1.0),
  'rho_ref'            : (SCENARIO.ATMOSPHERE.RHO_REF,           ('atmosphere', 'rho_ref__kg_per_m3'),       1.0),
  'h_ref'              : (SCENARIO.ATMOSPHERE.H_REF,             ('atmosphere', 'h_ref__m'),                 1.0),
  'h_scale'            : (SCENARIO.ATMOSPHERE.H_SCALE,           ('atmosphere', 'h_scale__m'),               1.0),
  'min_step'           : (SCENARIO.INTEGRATOR.MIN_STEP,          ('integrator', 'min_step__s'),              1.0),
  'max_step'           : (SCENARIO.INTEGRATOR.MAX_STEP,          ('integrator', 'max_step__s'),              1.0),
  'position_tolerance' : (SCENARIO.INTEGRATOR.POSITION_TOLERANCE, ('integrator', 'position_tolerance__m'),   1.0),
  'propagation_type'   : (SCENARIO.INTEGRATOR.PROPAGATION_TYPE,  ('integrator', 'propagation_type'),         None),
  'duration'           : (SCENARIO.DURATION,                     ('duration__s',),                           1.0),
  'step'               : (SCENARIO.STEP,                         ('step__s',),                               1.0),
}


def _flatten_keys(
  data   : dict,
  prefix : tuple = (),
) -> list:
  keys = []
  for key, value in data.items():
    if isinstance(value, dict):
      keys.extend(_flatten_keys(value, prefix + (key,)))
    else:
      keys.append(prefix + (key,))
  return keys


def load_scenario_file(
  scenario_filepath : Path,
) -> dict:
  """
  Load scenario overrides from a YAML file.

  Input:
  ------
    scenario_filepath : Path
      Path to the scenario .yaml file.

  Output:
  -------
    overrides : dict
      Scenario field name -> value in SI units (angles in radians).

  Raises:
  -------
    FileNotFoundError
      If the file does not exist.
    ValueError
      If the file is not a YAML mapping or a value is not numeric.

  Notes:
  ------
    Unknown keys are reported with a warning and ignored.
  """
  scenario_filepath = Path(scenario_filepath)
  if not scenario_filepath.exists():
    raise FileNotFoundError(f"Scenario file not found: {scenario_filepath}")

  with open(scenario_filepath, 'r') as f:
    data = yaml.safe_load(f) or {}

  if not isinstance(data, dict):
    raise ValueError(f"Scenario file {scenario_filepath} must contain a YAML mapping")

  overrides  = {}
  known_keys = set()
  for name, (_, yaml_path, factor) in SCENARIO_FIELDS.items():
    known_keys.add(yaml_path)

    node = data
    for key in yaml_path:
      if not isinstance(node, dict) or key not in node:
        node = None
        break
      node = node[key]
    if node is None:
      continue

    if factor is None:
      overrides[name] = node
    else:
      try:
        overrides[name] = float(node) * factor
      except (TypeError, ValueError):
        raise ValueError(f"Scenario value '{'.'.join(yaml_path)}' must be numeric, received {node!r}") from None

  for key_path in _flatten_keys(data):
    if key_path not in known_keys:
      print(f"[WARNING] Unknown scenario key '{'.'.join(key_path)}' in {scenario_filepath.name} is ignored.")

  return overrides


def setup_paths(
  data_folderpath : Optional[str] = None,
  log_filepath    : Optional[str] = None,
) -> dict:
  """
  Set up the folder paths and file names used by the propagation.

  Input:
  ------
    data_folderpath : str | None
      Reference data folder. If None, $DRAG_PROPAGATOR_DATA is used when
      set, otherwise ~/orbit-data.
    log_filepath : str | None
      Log file. If None, output is not logged.

  Output:
  -------
    paths : dict
      Data folderpath, leap seconds kernel filepath and log filepath.
  """
  if data_folderpath is None:
    env_data_path = os.environ.get('DRAG_PROPAGATOR_DATA')
    if env_data_path:
      data_folderpath = Path(env_data_path)
    else:
      data_folderpath = Path.home() / 'orbit-data'

  data_folderpath = Path(data_folderpath).expanduser().absolute()

  if log_filepath is not None:
    log_filepath = Path(log_filepath).expanduser()
    log_filepath.parent.mkdir(parents=True, exist_ok=True)

  return {
    'data_folderpath' : data_folderpath,
    'lsk_filepath'    : data_folderpath / LSK_FILENAME,
    'log_filepath'    : log_filepath,
  }


def build_config(
  data_folderpath    : Optional[str]      = None,
  scenario_filepath  : Optional[str]      = None,
  log_filepath       : Optional[str]      = None,
  epoch              : Optional[datetime] = None,
  duration           : Optional[float]    = None,
  step               : Optional[float]    = None,
  position_tolerance : Optional[float]    = None,
  min_step           : Optional[float]    = None,
  max_step           : Optional[float]    = None,
  propagation_type   : Optional[str]      = None,
  include_drag       : bool               = True,
  gravity_harmonics  : Optional[list]     = None,
  output_format      : str                = 'pv',
) -> SimpleNamespace:
  """
  Parse, validate, and set up input parameters for the propagation.

  Values are taken, in increasing precedence, from the default scenario,
  the scenario file and the keyword arguments.

  Input:
  ------
    data_folderpath : str | None
      Reference data folder.
    scenario_filepath : str | None
      YAML file with scenario overrides.
    log_filepath : str | None
      Log file for terminal output.
    epoch : datetime | None
      Initial epoch (UTC).
    duration : float | None
      Propagation duration [s]. May be negative.
    step : float | None
      Output sampling step [s].
    position_tolerance : float | None
      Target position accuracy [m].
    min_step : float | None
      Minimum integrator step [s].
    max_step : float | None
      Maximum integrator step [s].
    propagation_type : str | None
      'keplerian' or 'cartesian'.
    include_drag : bool
      Flag to enable/disable atmospheric drag.
    gravity_harmonics : list | None
      Zonal harmonics to include (e.g. ['J2', 'J3', 'J4']).
    output_format : str
      'pv' or 'coe'.

  Output:
  -------
    config : SimpleNamespace
      Configuration object with scenario values in SI units.

  Raises:
  -------
    FileNotFoundError
      If the scenario file does not exist.
    ValueError
      If a value is invalid.
  """
  # Scenario defaults, then file overrides, then arguments
  values   = {name: default for name, (default, _, _) in SCENARIO_FIELDS.items()}
  user_set = {name: False for name in values}

  if scenario_filepath is not None:
    scenario_filepath = Path(scenario_filepath).expanduser()
    for name, value in load_scenario_file(scenario_filepath).items():
      values[name]   = value
      user_set[name] = True

  arguments = {
    'epoch'              : epoch,
    'duration'           : duration,
    'step'               : step,
    'position_tolerance' : position_tolerance,
    'min_step'           : min_step,
    'max_step'           : max_step,
    'propagation_type'   : propagation_type,
  }
  for name, value in arguments.items():
    if value is not None:
      values[name]   = value
      user_set[name] = True

  # Normalize
  epoch_dt = values['epoch']
  if not isinstance(epoch_dt, datetime):
    epoch_dt = parse_time(str(epoch_dt))
  if epoch_dt.tzinfo is not None:
    epoch_dt = epoch_dt.astimezone(timezone.utc).replace(tzinfo=None)

  propagation_type       = str(values['propagation_type']).lower()
  output_format          = str(output_format).lower()
  gravity_harmonics_list = sorted({h.upper() for h in gravity_harmonics}) if gravity_harmonics else []

  # Validate
  if propagation_type not in ('keplerian', 'cartesian'):
    raise ValueError(f"Unknown propagation type '{propagation_type}'. Options: keplerian, cartesian")
  if output_format not in ('pv', 'coe'):
    raise ValueError(f"Unknown output format '{output_format}'. Options: pv, coe")
  for harmonic in gravity_harmonics_list:
    if harmonic not in ('J2', 'J3', 'J4'):
      raise ValueError(f"Unknown gravity harmonic '{harmonic}'. Options: J2, J3, J4")
  if not np.isfinite(values['duration']):
    raise ValueError(f"Duration must be finite, received {values['duration']}")
  if not (np.isfinite(values['step']) and values['step'] > 0):
    raise ValueError(f"Step must be positive, received {values['step']}")
  if not include_drag:
    for name in ('cd', 'area_drag', 'rho_ref', 'h_ref', 'h_scale'):
      if user_set[name]:
        print(f"[WARNING] Scenario value '{name}' is ignored when drag is disabled.")

  paths = setup_paths(
    data_folderpath = data_folderpath,
    log_filepath    = log_filepath,
  )

  return SimpleNamespace(
    # Scenario
    epoch_dt               = epoch_dt,
    sma                    = float(values['sma']),
    ecc                    = float(values['ecc']),
    inc                    = float(values['inc']),
    aop                    = float(values['aop']),
    raan                   = float(values['raan']),
    anomaly                = float(values['anomaly']),
    position_angle         = str(values['position_angle']).lower(),
    frame                  = str(values['frame']),
    gp                     = float(values['gp']),
    mass                   = float(values['mass']),
    cd                     = float(values['cd']),
    area_drag              = float(values['area_drag']),
    rho_ref                = float(values['rho_ref']),
    h_ref                  = float(values['h_ref']),
    h_scale                = float(values['h_scale']),
    angular_threshold      = SCENARIO.ATMOSPHERE.ANGULAR_THRESHOLD,
    # Integration
    min_step               = float(values['min_step']),
    max_step               = float(values['max_step']),
    position_tolerance     = float(values['position_tolerance']),
    propagation_type       = propagation_type,
    duration               = float(values['duration']),
    step                   = float(values['step']),
    # Force models and output
    include_drag           = include_drag,
    gravity_harmonics_list = gravity_harmonics_list,
    output_format          = output_format,
    # Paths
    scenario_filepath      = scenario_filepath,
    data_folderpath        = paths['data_folderpath'],
    lsk_filepath           = paths['lsk_filepath'],
    log_filepath           = paths['log_filepath'],
    # Bookkeeping for print_configuration
    user_set               = user_set,
  )


def print_input_configuration(
  config : SimpleNamespace,
) -> None:
  """
  Print the input configuration in a formatted table.

  Input:
  ------
    config : SimpleNamespace
      Configuration object from build_config.

  Output:
  -------
    None
  """
  deg = CONVERTER.DEG_PER_RAD

  # Build configuration entries: (name, value, default, user_set)
  entries = [
    ('epoch',              config.epoch_dt.isoformat(),     SCENARIO.EPOCH_UTC,                       config.user_set['epoch']),
    ('sma__m',             config.sma,                      SCENARIO.ORBIT.SMA,                       config.user_set['sma']),
    ('ecc',                config.ecc,                      SCENARIO.ORBIT.ECC,                       config.user_set['ecc']),
    ('inc__deg',           config.inc     * deg,            SCENARIO.ORBIT.INC     * deg,             config.user_set['inc']),
    ('aop__deg',           config.aop     * deg,            SCENARIO.ORBIT.AOP     * deg,             config.user_set['aop']),
    ('raan__deg',          config.raan    * deg,            SCENARIO.ORBIT.RAAN    * deg,             config.user_set['raan']),
    ('anomaly__deg',       config.anomaly * deg,            SCENARIO.ORBIT.ANOMALY * deg,             config.user_set['anomaly']),
    ('position_angle',     config.position_angle,           SCENARIO.ORBIT.POSITION_ANGLE,            config.user_set['position_angle']),
    ('frame',              config.frame,                    SCENARIO.ORBIT.FRAME,                     config.user_set['frame']),
    ('mass__kg',           config.mass,                     SPACECRAFT.MASS,                          config.user_set['mass']),
    ('duration__s',        config.duration,                 SCENARIO.DURATION,                        config.user_set['duration']),
    ('step__s',            config.step,                     SCENARIO.STEP,                            config.user_set['step']),
    ('position_tolerance', config.position_tolerance,       SCENARIO.INTEGRATOR.POSITION_TOLERANCE,   config.user_set['position_tolerance']),
    ('min_step__s',        config.min_step,                 SCENARIO.INTEGRATOR.MIN_STEP,             config.user_set['min_step']),
    ('max_step__s',        config.max_step,                 SCENARIO.INTEGRATOR.MAX_STEP,             config.user_set['max_step']),
    ('propagation_type',   config.propagation_type,         SCENARIO.INTEGRATOR.PROPAGATION_TYPE,     config.user_set['propagation_type']),
    ('include_drag',       config.include_drag,             True,                                     not config.include_drag),
    ('gravity_harmonics',  ' '.join(config.gravity_harmonics_list) or None, None,                     len(config.gravity_harmonics_list) > 0),
    ('output_format',      config.output_format,            'pv',                                     config.output_format != 'pv'),
  ]

  # Convert entries to strings for width calculation
  headers = ['Argument', 'Value', 'Default', 'User Set']
  rows = []
  for name, value, default, user_set in entries:
    rows.append([
      name,
      str(value) if value is not None else "None",
      str(default) if default is not None else "None",
      str(user_set),
    ])

  # Calculate column widths: max of header and all values, plus 4 for spacing
  min_spacing = 4
  col_widths = []
  for col_idx in range(len(headers)):
    max_len = len(headers[col_idx])
    for row in rows:
      max_len = max(max_len, len(row[col_idx]))
    col_widths.append(max_len + min_spacing)

  # Print table
  print("\nInput Configuration")
  header_line = "  " + "".join(h.ljust(col_widths[i]) for i, h in enumerate(headers))
  print(header_line)
  separator_line = "  " + "".join(("-" * (col_widths[i] - min_spacing)).ljust(col_widths[i]) for i in range(len(headers)))
  print(separator_line)

  for row in rows:
    row_line = "  " + "".join(row[col_idx].ljust(col_widths[col_idx]) for col_idx in range(len(row)))
    print(row_line)


def print_paths(
  config : SimpleNamespace,
) -> None:
  """
  Print the paths configuration.
  """
  print("\nPaths and Files Setup")
  print(f"  Data Folderpath       : {config.data_folderpath}")
  print(f"    LSK Filepath        : <data_folderpath>/{config.lsk_filepath.relative_to(config.data_folderpath)}")
  print(f"  Scenario Filepath     : {config.scenario_filepath}")
  print(f"  Log Filepath          : {config.log_filepath}")


def print_configuration(
  config : SimpleNamespace,
) -> None:
  """
  Print the complete configuration (input arguments and paths).
  """
  print_input_configuration(config)
  print_paths(config)
