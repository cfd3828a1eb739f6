import argparse

from typing import Optional, Sequence

from drag_propagator.utility.time_helper import parse_time


def parse_command_line_arguments(
  argv : Optional[Sequence[str]] = None,
) -> argparse.Namespace:
  """
  Parse command-line arguments for the drag propagator.

  Every argument is optional; without arguments the default drag scenario
  is propagated.

  Input:
  ------
    argv : Sequence[str] | None
      Arguments to parse. None reads sys.argv.

  Output:
  -------
    args : argparse.Namespace
      Parsed command-line arguments. Unset options are None.
  """
  parser = argparse.ArgumentParser(
    description     = 'Numerical orbit propagator with atmospheric drag',
    formatter_class = argparse.RawDescriptionHelpFormatter,
  )

  # Files and folders
  parser.add_argument(
    '--data-folderpath',
    dest    = 'data_folderpath',
    type    = str,
    default = None,
    help    = "Reference data folder holding naif0012.tls (default: $DRAG_PROPAGATOR_DATA or ~/orbit-data).",
  )
  parser.add_argument(
    '--scenario-filepath',
    dest    = 'scenario_filepath',
    type    = str,
    default = None,
    help    = "YAML file overriding fields of the default scenario.",
  )
  parser.add_argument(
    '--log-filepath',
    dest    = 'log_filepath',
    type    = str,
    default = None,
    help    = "Copy terminal output to this file (disabled by default).",
  )

  # Time arguments
  parser.add_argument(
    '--epoch',
    dest    = 'epoch',
    type    = parse_time,
    default = None,
    help    = "Initial epoch in UTC, ISO format (e.g. '2017-12-20T23:30:00').",
  )
  parser.add_argument(
    '--duration',
    dest    = 'duration',
    type    = float,
    default = None,
    help    = "Propagation duration [s]. Negative values propagate backward (default: 10).",
  )
  parser.add_argument(
    '--step',
    dest    = 'step',
    type    = float,
    default = None,
    help    = "Output sampling step [s] (default: 1).",
  )

  # Integrator arguments
  parser.add_argument(
    '--position-tolerance',
    dest    = 'position_tolerance',
    type    = float,
    default = None,
    help    = "Target position accuracy used to derive tolerances [m] (default: 10).",
  )
  parser.add_argument(
    '--min-step',
    dest    = 'min_step',
    type    = float,
    default = None,
    help    = "Minimum integrator step [s] (default: 0.001).",
  )
  parser.add_argument(
    '--max-step',
    dest    = 'max_step',
    type    = float,
    default = None,
    help    = "Maximum integrator step [s] (default: 1000).",
  )
  parser.add_argument(
    '--propagation-type',
    dest    = 'propagation_type',
    type    = str.lower,
    choices = ['keplerian', 'cartesian'],
    default = None,
    help    = "Propagated variables (default: keplerian).",
  )

  # Force models
  parser.add_argument(
    '--no-drag',
    dest    = 'include_drag',
    action  = 'store_false',
    default = True,
    help    = "Disable atmospheric drag (enabled by default).",
  )
  parser.add_argument(
    '--gravity-harmonics',
    dest    = 'gravity_harmonics',
    type    = str.upper,
    nargs   = '*',
    choices = ['J2', 'J3', 'J4'],
    default = [],
    help    = "Zonal harmonics to include (e.g. J2 J3 J4). Default: none.",
  )

  # Output
  parser.add_argument(
    '--output-format',
    dest    = 'output_format',
    type    = str.lower,
    choices = ['pv', 'coe'],
    default = 'pv',
    help    = "Per-step output: 'pv' position/velocity/acceleration or 'coe' orbital elements (default: pv).",
  )

  # Parse arguments
  args = parser.parse_args(argv)

  return args
