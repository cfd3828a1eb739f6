"""
Orbit Propagation Package
=========================

Provides the numerical propagator, its integrator configuration and step handlers.
"""

from .propagator   import NumericalPropagator, PropagationError, PropagatorStatus, StepSample
from .integrator   import IntegratorConfig, build_integrator_config, compute_tolerances
from .step_handler import PrintStepHandler, RecordingStepHandler

__all__ = [
  'NumericalPropagator',
  'PropagationError',
  'PropagatorStatus',
  'StepSample',
  'IntegratorConfig',
  'build_integrator_config',
  'compute_tolerances',
  'PrintStepHandler',
  'RecordingStepHandler',
]
