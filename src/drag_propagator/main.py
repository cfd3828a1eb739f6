"""
Drag Orbit Propagator

Description:
  This script propagates a spacecraft orbit numerically under central gravity
  and atmospheric drag with the adaptive DOP853 integrator, printing the state
  at a fixed output cadence.

  The default scenario is a highly eccentric orbit with a perigee near 250 km,
  propagated for 10 s with a 1 s cadence:
  - Epoch           : 2017-12-20T23:30:00 UTC
  - Elements        : a = 24396159 m, e = 0.72831215, i = 7 deg, ω = 180 deg, Ω = 261 deg, M = 0
  - Drag            : Cd = 2.0, A = 5.0 m², exponential atmosphere (4e-13 kg/m³ at 500 km, H = 60 km)
  - Integrator      : DOP853, min step 0.001 s, max step 1000 s, 10 m position tolerance

  The script performs the following steps:
  1. Loads the reference data (SPICE leap seconds kernel, optional gravity file).
  2. Builds the initial orbit and the force models.
  3. Propagates the orbit, printing each sampled state.
  4. Prints the final state.

Usage:

  Argument                     Required   Description
  ---------------------------  --------   --------------------------------------------------
  --data-folderpath            No         Folder holding naif0012.tls (default: ~/orbit-data)
  --scenario-filepath          No         YAML file overriding the default scenario
  --epoch                      No         Initial epoch, UTC ISO format
  --duration                   No         Propagation duration [s], negative for backward
  --step                       No         Output sampling step [s]
  --position-tolerance         No         Target position accuracy [m]
  --min-step                   No         Minimum integrator step [s]
  --max-step                   No         Maximum integrator step [s]
  --propagation-type           No         keplerian or cartesian
  --output-format              No         pv or coe
  --no-drag                    No         Disable atmospheric drag
  --gravity-harmonics          No         Zonal harmonics (e.g. J2 J3 J4)
  --log-filepath               No         Copy terminal output to a file

  Exit Status:
    0  success
    1  missing reference data or scenario file
    2  invalid scenario or propagation failure

  Example Commands:
    drag-propagator

    python -m drag_propagator.main \
      --data-folderpath ~/orbit-data \
      --duration 3600 \
      --step 60 \
      --gravity-harmonics J2 \
      --output-format coe
"""
import sys

from datetime import datetime
from typing   import Optional

from drag_propagator.input.cli                 import parse_command_line_arguments
from drag_propagator.input.configuration       import build_config, print_configuration
from drag_propagator.input.loader              import MissingDataError, load_files
from drag_propagator.propagation.propagator    import PropagationError
from drag_propagator.propagation.scenario      import run_propagation
from drag_propagator.propagation.step_handler  import PrintStepHandler
from drag_propagator.utility.logger            import start_logging, stop_logging
from drag_propagator.utility.printer           import print_results_summary


EXIT_SUCCESS      = 0
EXIT_MISSING_DATA = 1
EXIT_PROPAGATION  = 2


def main(
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
) -> dict:
  """
  Main function to run the drag orbit propagation.

  This function orchestrates the propagation. It builds the configuration,
  loads the reference data, propagates the scenario while printing each
  sampled state, and prints the final state.

  Input:
  ------
    Same as build_config. Arguments left as None use the default scenario.

  Output:
  -------
    result : dict
      success : bool
      message : str
      exit_code : int
        0 on success, 1 for missing reference data, 2 for an invalid
        scenario or a failed propagation.
      final_state : SpacecraftState | None
        State at the end of the propagation.
  """
  # Process inputs and setup
  try:
    config = build_config(
      data_folderpath    = data_folderpath,
      scenario_filepath  = scenario_filepath,
      log_filepath       = log_filepath,
      epoch              = epoch,
      duration           = duration,
      step               = step,
      position_tolerance = position_tolerance,
      min_step           = min_step,
      max_step           = max_step,
      propagation_type   = propagation_type,
      include_drag       = include_drag,
      gravity_harmonics  = gravity_harmonics,
      output_format      = output_format,
    )
  except FileNotFoundError as exc:
    print(f"[ERROR] {exc}", file=sys.stderr)
    return {'success': False, 'message': str(exc), 'exit_code': EXIT_MISSING_DATA, 'final_state': None}
  except ValueError as exc:
    print(f"[ERROR] {exc}", file=sys.stderr)
    return {'success': False, 'message': str(exc), 'exit_code': EXIT_PROPAGATION, 'final_state': None}

  # Start logging to file
  logger = start_logging(config.log_filepath)

  try:
    # Print input configuration and paths
    print_configuration(config)

    # Load files (leap seconds kernel is always required)
    try:
      data_context = load_files(
        data_folderpath = config.data_folderpath,
        load_gravity    = len(config.gravity_harmonics_list) > 0,
      )
    except MissingDataError as exc:
      print(str(exc), file=sys.stderr)
      print(exc.remediation, file=sys.stderr)
      return {'success': False, 'message': str(exc), 'exit_code': EXIT_MISSING_DATA, 'final_state': None}
    except ValueError as exc:
      print(f"[ERROR] {exc}", file=sys.stderr)
      return {'success': False, 'message': str(exc), 'exit_code': EXIT_PROPAGATION, 'final_state': None}

    # Kernels are unloaded when the block exits
    with data_context:
      try:
        # Propagate with per-step printing
        result = run_propagation(config, data_context)
        final_state = result['final_state']

        # Final state
        final_handler = PrintStepHandler('pv', epoch_formatter=data_context.epoch_to_utc)
        final_handler.handle_step(final_state, False)

        # Display results
        print_results_summary(
          initial_state    = result['initial_state'],
          final_state      = final_state,
          epoch_formatter  = data_context.epoch_to_utc,
          step_count       = result['step_count'],
          evaluation_count = result['evaluation_count'],
        )
      except (PropagationError, ValueError) as exc:
        print(f"[ERROR] {exc}", file=sys.stderr)
        return {'success': False, 'message': str(exc), 'exit_code': EXIT_PROPAGATION, 'final_state': None}

  finally:
    # Stop logging
    stop_logging(logger)

  return {'success': True, 'message': 'Propagation complete', 'exit_code': EXIT_SUCCESS, 'final_state': final_state}


def cli(
  argv : Optional[list] = None,
) -> None:
  """
  Console script entry point.
  """
  # Parse command-line arguments
  args = parse_command_line_arguments(argv)

  # Run main function
  result = main(**vars(args))

  sys.exit(result['exit_code'])


if __name__ == "__main__":
  cli()
