from typing import Callable, Optional

from drag_propagator.model.constants     import CONVERTER
from drag_propagator.model.orbit         import PositionAngle, SpacecraftState
from drag_propagator.utility.time_helper import format_time_offset


def print_results_summary(
  initial_state    : SpacecraftState,
  final_state      : SpacecraftState,
  epoch_formatter  : Optional[Callable] = None,
  step_count       : Optional[int]      = None,
  evaluation_count : Optional[int]      = None,
) -> None:
  """
  Print a summary of the propagation results.

  Input:
  ------
    initial_state : SpacecraftState
      State at the start of the propagation.
    final_state : SpacecraftState
      State at the end of the propagation.
    epoch_formatter : callable | None
      Converts an Epoch to display text. Defaults to ET seconds.
    step_count : int | None
      Number of accepted integrator steps.
    evaluation_count : int | None
      Number of equations-of-motion evaluations.
  """
  print("\nResults Summary")

  time_et_f = final_state.epoch.et
  if epoch_formatter is not None:
    time_f_str = f"{epoch_formatter(final_state.epoch)} UTC ({time_et_f:.6f} ET)"
  else:
    time_f_str = f"{time_et_f:.6f} ET"
  delta_time = final_state.epoch.duration_from(initial_state.epoch)

  # Final position and velocity vectors
  pos_vec_f, vel_vec_f = final_state.to_pv()

  # Final classical orbital elements
  kep  = final_state.orbit.to_keplerian(PositionAngle.TRUE)
  sma  = kep.sma
  ecc  = kep.ecc
  inc  = kep.inc  * CONVERTER.DEG_PER_RAD
  raan = kep.raan * CONVERTER.DEG_PER_RAD
  argp = kep.aop  * CONVERTER.DEG_PER_RAD
  ta   = kep.anomaly * CONVERTER.DEG_PER_RAD

  print(f"  Final State")
  print(f"    Epoch : {time_f_str}")
  print(f"    Span  : {format_time_offset(delta_time)}")
  print(f"    Frame : {final_state.frame}")
  print(f"    Mass  : {final_state.mass:.3f} kg")
  print(f"    Cartesian State")
  print(f"      Position : {pos_vec_f[0]:>19.12e}  {pos_vec_f[1]:>19.12e}  {pos_vec_f[2]:>19.12e} m")
  print(f"      Velocity : {vel_vec_f[0]:>19.12e}  {vel_vec_f[1]:>19.12e}  {vel_vec_f[2]:>19.12e} m/s")
  print(f"    Classical Orbital Elements")
  print(f"      SMA  : { sma:>19.12e} m")
  print(f"      ECC  : { ecc:>19.12e}")
  print(f"      INC  : { inc:>19.12e} deg")
  print(f"      RAAN : {raan:>19.12e} deg")
  print(f"      ARGP : {argp:>19.12e} deg")
  print(f"      TA   : {  ta:>19.12e} deg")

  if step_count is not None:
    print(f"  Integrator")
    print(f"    Steps       : {step_count}")
    print(f"    Evaluations : {evaluation_count}")
