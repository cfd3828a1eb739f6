"""
Step Handlers
=============

Observers called by NumericalPropagator.propagate() once per sampling step.

A step handler provides

  handle_step(state, is_last) -> None

and optionally

  init(initial_state, target_epoch, step) -> None

Handlers only report; they never modify the state they receive.
"""
import numpy as np

from typing import Callable, Optional

from drag_propagator.model.constants      import CONVERTER
from drag_propagator.model.orbit          import PositionAngle, SpacecraftState
from drag_propagator.model.time_converter import Epoch


def _format_et(
  epoch : Epoch,
) -> str:
  return f"ET {epoch.et:.3f}"


def _format_vec(
  vec : np.ndarray,
) -> str:
  return ', '.join(repr(float(value)) for value in vec)


class PrintStepHandler:
  """
  Print the spacecraft state at each sampling step.

  Formats:
  --------
    'pv'  : position, velocity and Keplerian acceleration
              PVC Coords: {<epoch>, P(x, y, z), V(vx, vy, vz), A(ax, ay, az)}
    'coe' : one table row of classical orbital elements (angles in degrees)
  """

  FORMATS = ('pv', 'coe')

  def __init__(
    self,
    output_format   : str                               = 'pv',
    epoch_formatter : Optional[Callable[[Epoch], str]] = None,
  ):
    """
    Input:
    ------
      output_format : str
        'pv' or 'coe'.
      epoch_formatter : callable | None
        Converts an Epoch to display text. Defaults to ET seconds.
    """
    output_format = output_format.lower()
    if output_format not in self.FORMATS:
      raise ValueError(f"Unknown output format '{output_format}'. Options: {', '.join(self.FORMATS)}")

    self.output_format   = output_format
    self.epoch_formatter = epoch_formatter or _format_et

  def init(
    self,
    initial_state : SpacecraftState,
    target_epoch  : Epoch,
    step          : float,
  ) -> None:
    if self.output_format == 'coe':
      print(
        "          date                a           e"
        "           i         ω          Ω"
        "          ν"
      )

  def handle_step(
    self,
    state   : SpacecraftState,
    is_last : bool,
  ) -> None:
    epoch_str = self.epoch_formatter(state.epoch)

    if self.output_format == 'pv':
      pos_vec, vel_vec = state.to_pv()
      acc_vec          = state.keplerian_acceleration()
      print(f"\nPVC Coords: {{{epoch_str}, P({_format_vec(pos_vec)}), V({_format_vec(vel_vec)}), A({_format_vec(acc_vec)})}}")
    else:
      kep = state.orbit.to_keplerian(PositionAngle.TRUE)
      print(
        f"{epoch_str} {kep.sma:12.3f} {kep.ecc:10.8f}"
        f" {kep.inc  * CONVERTER.DEG_PER_RAD:10.6f}"
        f" {kep.aop  * CONVERTER.DEG_PER_RAD:10.6f}"
        f" {kep.raan * CONVERTER.DEG_PER_RAD:10.6f}"
        f" {kep.anomaly * CONVERTER.DEG_PER_RAD:10.6f}"
      )

    if is_last:
      print("this was the last step ")
      print()


class RecordingStepHandler:
  """
  Collect the samples passed to the handler.
  """

  def __init__(self):
    self.init_calls = 0
    self.states     = []
    self.is_last    = []

  def init(
    self,
    initial_state : SpacecraftState,
    target_epoch  : Epoch,
    step          : float,
  ) -> None:
    self.init_calls += 1

  def handle_step(
    self,
    state   : SpacecraftState,
    is_last : bool,
  ) -> None:
    self.states.append(state)
    self.is_last.append(is_last)

  @property
  def call_count(self) -> int:
    return len(self.states)
