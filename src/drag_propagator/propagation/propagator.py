"""
Orbit Propagator
================

Numerical integration of spacecraft equations of motion with fixed-cadence
sampling.

Summary:
--------
NumericalPropagator integrates the state from the epoch of its initial
state to a target epoch with the adaptive DOP853 integrator. Each internal
step is followed by dense-output evaluation at every sampling boundary the
step crossed, so the sampling cadence is independent of the internal step
size. Samples are produced lazily by iter_fixed_steps(); propagate() drives
the same iterator and forwards samples to a step handler.

Status:
-------
  CONFIGURED -> RUNNING    : first sample requested
  RUNNING    -> COMPLETED  : target epoch reached, final state becomes the new initial state
  RUNNING    -> FAILED     : solver failure, step below min_step, or force model domain error
  RUNNING    -> CONFIGURED : iteration abandoned before the target epoch
"""
import numpy as np

from dataclasses     import dataclass
from enum            import Enum
from typing          import Iterator, Optional
from scipy.integrate import DOP853

from drag_propagator.model.dynamics         import (
  Acceleration,
  GeneralStateEquationsOfMotion,
  KeplerianEquationsOfMotion,
)
from drag_propagator.model.orbit            import (
  OrbitType,
  PositionAngle,
  SpacecraftState,
  check_same_frame,
)
from drag_propagator.model.time_converter   import Epoch
from drag_propagator.propagation.integrator import IntegratorConfig


# Epochs closer than this are treated as equal [s]
TIME_EPSILON = 1.0e-6


class PropagationError(RuntimeError):
  """
  Raised when a propagation fails. The underlying cause is chained.
  """


class PropagatorStatus(Enum):
  CONFIGURED = 'configured'
  RUNNING    = 'running'
  COMPLETED  = 'completed'
  FAILED     = 'failed'


@dataclass(frozen=True)
class StepSample:
  """
  Spacecraft state at a sampling boundary.
  """
  state   : SpacecraftState
  is_last : bool


class NumericalPropagator:
  """
  Numerical orbit propagator with registered force models.
  """

  def __init__(
    self,
    integrator_config : IntegratorConfig,
    orbit_type        : OrbitType     = OrbitType.KEPLERIAN,
    position_angle    : PositionAngle = PositionAngle.TRUE,
  ):
    """
    Initialize propagator

    Input:
    ------
      integrator_config : IntegratorConfig
        Step bounds and tolerances for DOP853. The tolerances must match
        orbit_type and position_angle.
      orbit_type : OrbitType
        Set of propagated variables.
      position_angle : PositionAngle
        Anomaly propagated when orbit_type is KEPLERIAN.

    Output:
    -------
      None
    """
    self.integrator_config = integrator_config
    self.orbit_type        = OrbitType.from_name(orbit_type)
    self.position_angle    = PositionAngle.from_name(position_angle)

    self._force_models  = []
    self._initial_state = None
    self._status        = PropagatorStatus.CONFIGURED

    # Statistics of the last run
    self.step_count       = 0
    self.evaluation_count = 0

  @property
  def status(self) -> PropagatorStatus:
    return self._status

  @property
  def initial_state(self) -> Optional[SpacecraftState]:
    return self._initial_state

  @property
  def force_models(self) -> tuple:
    return tuple(self._force_models)

  def _check_not_running(
    self,
    action : str,
  ) -> None:
    if self._status == PropagatorStatus.RUNNING:
      raise RuntimeError(f"Cannot {action} while a propagation is running")

  def set_initial_state(
    self,
    state : SpacecraftState,
  ) -> None:
    """
    Set the state propagation starts from. Resets a completed or failed propagator.
    """
    self._check_not_running('set the initial state')
    self._initial_state = state
    self._status        = PropagatorStatus.CONFIGURED

  def add_force_model(
    self,
    force_model,
  ) -> None:
    """
    Register a force model. Force models are fixed for the duration of a run.
    """
    self._check_not_running('add a force model')
    if not callable(getattr(force_model, 'acceleration', None)):
      raise TypeError(f"Force model {force_model!r} has no acceleration() method")
    self._force_models.append(force_model)

  def remove_force_models(self) -> None:
    self._check_not_running('remove force models')
    self._force_models.clear()

  def _check_ready(
    self,
    target_epoch : Epoch,
    step         : Optional[float],
  ) -> None:
    self._check_not_running('start a propagation')
    if self._status == PropagatorStatus.FAILED:
      raise RuntimeError("Propagator failed; set a new initial state before propagating again")
    if self._initial_state is None:
      raise RuntimeError("No initial state set")
    if not isinstance(target_epoch, Epoch):
      raise TypeError(f"Target epoch must be an Epoch, received {type(target_epoch).__name__}")
    if step is not None and not (np.isfinite(step) and step > 0):
      raise ValueError(f"Sampling step must be positive, received {step}")

    # Frame consistency between state and force models
    for force_model in self._force_models:
      frame = getattr(force_model, 'frame', None)
      if frame is not None:
        check_same_frame(self._initial_state.frame, frame)

    # Gauss equations are singular for circular and equatorial orbits
    if self.orbit_type == OrbitType.KEPLERIAN and self._force_models:
      kep = self._initial_state.orbit.to_keplerian(self.position_angle)
      if kep.ecc < 1.0e-10 or abs(np.sin(kep.inc)) < 1.0e-10:
        raise ValueError(
          "Keplerian propagation with force models is singular for circular or equatorial orbits. "
          "Use Cartesian propagation."
        )

  def _build_state(
    self,
    state_vec : np.ndarray,
    epoch     : Epoch,
  ) -> SpacecraftState:
    orbit = self.orbit_type.from_vector(
      state_vec      = state_vec,
      position_angle = self.position_angle,
      frame          = self._initial_state.frame,
      epoch          = epoch,
      gp             = self._initial_state.gp,
    )
    return SpacecraftState(orbit, self._initial_state.mass)

  def iter_fixed_steps(
    self,
    target_epoch : Epoch,
    step         : float,
  ) -> Iterator[StepSample]:
    """
    Lazily propagate to target_epoch, sampling the state every step seconds.

    Input:
    ------
      target_epoch : Epoch
        Epoch at which propagation stops. May precede the initial epoch.
      step : float
        Sampling cadence [s], > 0.

    Output:
    -------
      samples : Iterator[StepSample]
        States at initial_epoch + k * step for every k with k * step strictly
        inside the propagation span, followed by the state at target_epoch
        with is_last = True. ceil(duration / step) + 1 samples in total.

    Raises:
    -------
      PropagationError
        While iterating, if the integration fails.
    """
    self._check_ready(target_epoch, step)
    return self._run(target_epoch, step)

  def propagate(
    self,
    target_epoch : Epoch,
    step         : Optional[float] = None,
    handler                        = None,
  ) -> SpacecraftState:
    """
    Propagate to target_epoch and return the final state.

    Input:
    ------
      target_epoch : Epoch
        Epoch at which propagation stops.
      step : float | None
        Sampling cadence [s] for the handler. None disables sampling.
      handler : object | None
        Step handler with handle_step(state, is_last) and optional
        init(initial_state, target_epoch, step).

    Output:
    -------
      final_state : SpacecraftState
        State at target_epoch.

    Raises:
    -------
      PropagationError
        If the integration fails. No partial result is returned.
    """
    if handler is not None and step is None:
      raise ValueError("A sampling step is required when a step handler is given")
    self._check_ready(target_epoch, step)

    if handler is not None and hasattr(handler, 'init'):
      handler.init(self._initial_state, target_epoch, step)

    samples = self._run(target_epoch, step if handler is not None else None)
    try:
      for sample in samples:
        if handler is not None:
          handler.handle_step(sample.state, sample.is_last)
        final_state = sample.state
    finally:
      samples.close()

    return final_state

  def _run(
    self,
    target_epoch : Epoch,
    step         : Optional[float],
  ) -> Iterator[StepSample]:
    initial_state = self._initial_state
    config        = self.integrator_config

    # Snapshot of the force models for this run
    acceleration = Acceleration(gp=initial_state.gp, force_models=self._force_models)
    if self.orbit_type == OrbitType.CARTESIAN:
      eom = GeneralStateEquationsOfMotion(acceleration, initial_state.mass)
    else:
      eom = KeplerianEquationsOfMotion(acceleration, initial_state.mass, self.position_angle)

    time_o    = initial_state.epoch.et
    time_f    = target_epoch.et
    duration  = time_f - time_o
    direction = 1.0 if duration >= 0 else -1.0
    scale     = initial_state.epoch.scale

    self._status          = PropagatorStatus.RUNNING
    self.step_count       = 0
    self.evaluation_count = 0

    try:
      state_o_vec = self.orbit_type.to_vector(initial_state.orbit, self.position_angle)

      # Zero-length propagation
      if abs(duration) < TIME_EPSILON:
        final_state = self._build_state(state_o_vec, target_epoch)
        self._initial_state = final_state
        self._status        = PropagatorStatus.COMPLETED
        yield StepSample(final_state, True)
        return

      # Number of samples strictly before the target epoch
      if step is not None:
        num_samples = int(np.ceil((abs(duration) - TIME_EPSILON) / step))
      else:
        num_samples = 0

      # Uniform relative tolerance is passed as a scalar
      if np.all(config.rel_tol == config.rel_tol[0]):
        rtol = float(config.rel_tol[0])
      else:
        rtol = config.rel_tol

      solver = DOP853(
        fun        = eom.state_time_derivative,
        t0         = time_o,
        y0         = state_o_vec,
        t_bound    = time_f,
        max_step   = config.max_step,
        rtol       = rtol,
        atol       = config.abs_tol,
        vectorized = False,
      )

      idx_sample = 0
      if idx_sample < num_samples:
        yield StepSample(self._build_state(state_o_vec, initial_state.epoch), False)
        idx_sample += 1

      while solver.status == 'running':
        message = solver.step()
        self.step_count       += 1
        self.evaluation_count  = solver.nfev

        if solver.status == 'failed':
          raise PropagationError(f"Integration failed at ET {solver.t:.6f}: {message}")
        if not np.all(np.isfinite(solver.y)):
          raise PropagationError(f"Integration produced a non-finite state at ET {solver.t:.6f}")

        step_taken = abs(solver.t - solver.t_old)
        if solver.status != 'finished' and step_taken < config.min_step:
          raise PropagationError(
            f"Minimal step size reached at ET {solver.t:.6f}: "
            f"step {step_taken:.6e} s < min_step {config.min_step:.6e} s"
          )

        # Samples crossed by this step
        if idx_sample < num_samples:
          dense = solver.dense_output()
          while idx_sample < num_samples:
            time_k = time_o + direction * idx_sample * step
            if direction * (time_k - solver.t) > 0:
              break
            state_k = self._build_state(dense(time_k), Epoch(time_k, scale))
            yield StepSample(state_k, False)
            idx_sample += 1

      final_state = self._build_state(solver.y, target_epoch)

    except GeneratorExit:
      # Iteration abandoned before the target epoch
      if self._status == PropagatorStatus.RUNNING:
        self._status = PropagatorStatus.CONFIGURED
      raise
    except PropagationError:
      self._status = PropagatorStatus.FAILED
      raise
    except (ValueError, ArithmeticError) as exc:
      self._status = PropagatorStatus.FAILED
      raise PropagationError(f"Propagation failed: {exc}") from exc
    except Exception:
      self._status = PropagatorStatus.FAILED
      raise

    self._initial_state = final_state
    self._status        = PropagatorStatus.COMPLETED
    yield StepSample(final_state, True)
