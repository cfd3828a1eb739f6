"""
Scenario Assembly
=================

Builds the initial state, force models, integrator configuration and
propagator described by a configuration namespace, and runs the
propagation with a printing step handler.
"""
from types import SimpleNamespace

from drag_propagator.input.loader              import DataContext
from drag_propagator.model.atmosphere          import ExponentialAtmosphere
from drag_propagator.model.constants           import SOLARSYSTEMCONSTANTS
from drag_propagator.model.dynamics            import DragForce, IsotropicDrag, ZonalHarmonicsGravity
from drag_propagator.model.ellipsoid           import OneAxisEllipsoid
from drag_propagator.model.orbit               import KeplerianOrbit, OrbitType, PositionAngle, SpacecraftState
from drag_propagator.propagation.integrator    import build_integrator_config
from drag_propagator.propagation.propagator    import NumericalPropagator
from drag_propagator.propagation.step_handler import PrintStepHandler


def build_initial_state(
  config       : SimpleNamespace,
  data_context : DataContext,
) -> SpacecraftState:
  """
  Initial spacecraft state from the scenario elements.

  Raises:
  -------
    ValueError
      If the elements do not describe a bound orbit.
  """
  orbit = KeplerianOrbit(
    sma            = config.sma,
    ecc            = config.ecc,
    inc            = config.inc,
    aop            = config.aop,
    raan           = config.raan,
    anomaly        = config.anomaly,
    position_angle = config.position_angle,
    frame          = config.frame,
    epoch          = data_context.epoch_from_utc(config.epoch_dt),
    gp             = config.gp,
  )
  return SpacecraftState(orbit, config.mass)


def build_force_models(
  config       : SimpleNamespace,
  data_context : DataContext,
) -> list:
  """
  Force models selected by the configuration, in registration order.
  """
  force_models = []

  # Zonal harmonics
  if config.gravity_harmonics_list:
    coeffs = data_context.gravity_coeffs
    if coeffs is not None:
      # Rescale J_n so the field keeps its potential under the scenario's gp
      gp_ratio = coeffs.gp / config.gp
      if abs(gp_ratio - 1.0) > 1.0e-12:
        print(
          f"[WARNING] Gravity file gp {coeffs.gp:.9e} differs from scenario gp {config.gp:.9e}; "
          f"zonal coefficients are rescaled to the scenario gp."
        )
      pos_ref = coeffs.radius
      j_n     = {n: coeffs.get(n) * gp_ratio for n in (2, 3, 4)}
    else:
      pos_ref = SOLARSYSTEMCONSTANTS.EARTH.RADIUS.EQUATOR
      j_n     = {
        2 : SOLARSYSTEMCONSTANTS.EARTH.J2,
        3 : SOLARSYSTEMCONSTANTS.EARTH.J3,
        4 : SOLARSYSTEMCONSTANTS.EARTH.J4,
      }

    # Same gp as the two-body term
    force_models.append(ZonalHarmonicsGravity(
      gp      = config.gp,
      pos_ref = pos_ref,
      j2      = j_n[2] if 'J2' in config.gravity_harmonics_list else 0.0,
      j3      = j_n[3] if 'J3' in config.gravity_harmonics_list else 0.0,
      j4      = j_n[4] if 'J4' in config.gravity_harmonics_list else 0.0,
    ))

  # Atmospheric drag
  if config.include_drag:
    earth = OneAxisEllipsoid(
      equatorial_radius = SOLARSYSTEMCONSTANTS.EARTH.RADIUS.EQUATOR,
      flattening        = SOLARSYSTEMCONSTANTS.EARTH.FLATTENING,
      frame             = config.frame,
      angular_threshold = config.angular_threshold,
    )
    atmosphere = ExponentialAtmosphere(
      body    = earth,
      rho_ref = config.rho_ref,
      h_ref   = config.h_ref,
      h_scale = config.h_scale,
    )
    force_models.append(DragForce(
      atmosphere = atmosphere,
      spacecraft = IsotropicDrag(area=config.area_drag, cd=config.cd),
    ))

  return force_models


def build_propagator(
  config        : SimpleNamespace,
  initial_state : SpacecraftState,
  force_models  : list,
) -> NumericalPropagator:
  """
  Propagator configured for the scenario, seeded with the initial state.
  """
  orbit_type = OrbitType.from_name(config.propagation_type)

  # Keplerian elements are propagated with the anomaly they are given in
  if orbit_type == OrbitType.KEPLERIAN:
    position_angle = PositionAngle.from_name(config.position_angle)
  else:
    position_angle = PositionAngle.TRUE

  integrator_config = build_integrator_config(
    position_tolerance = config.position_tolerance,
    min_step           = config.min_step,
    max_step           = config.max_step,
    orbit              = initial_state.orbit,
    orbit_type         = orbit_type,
    position_angle     = position_angle,
  )

  propagator = NumericalPropagator(
    integrator_config = integrator_config,
    orbit_type        = orbit_type,
    position_angle    = position_angle,
  )
  propagator.set_initial_state(initial_state)
  for force_model in force_models:
    propagator.add_force_model(force_model)

  return propagator


def print_scenario_summary(
  config        : SimpleNamespace,
  data_context  : DataContext,
  initial_state : SpacecraftState,
  propagator    : NumericalPropagator,
) -> None:
  epoch_o = initial_state.epoch
  epoch_f = epoch_o.shifted_by(config.duration)

  print("\nNumerical Model")
  print(f"  Configuration")
  print(f"    Timespan")
  print(f"      Initial  : {data_context.epoch_to_utc(epoch_o)} UTC / {epoch_o.et:.6f} ET")
  print(f"      Final    : {data_context.epoch_to_utc(epoch_f)} UTC / {epoch_f.et:.6f} ET")
  print(f"      Duration : {config.duration} s")
  print(f"      Step     : {config.step} s")
  print(f"    Forces")
  print(f"      Gravity")
  print(f"        Earth")
  print(f"          Two-Body Point Mass")
  if config.gravity_harmonics_list:
    print(f"          Zonal Harmonics : {', '.join(config.gravity_harmonics_list)}")
  else:
    print(f"          Zonal Harmonics : None")
  if config.include_drag:
    print(f"      Atmospheric Drag")
    print(f"        Model      : Exponential Atmosphere")
    print(f"        Parameters : Cd={config.cd}, Area_Drag={config.area_drag} m², Mass={config.mass} kg")
  print("    Numerical Integration")
  print(f"      Method     : {propagator.integrator_config.method}")
  print(f"      Variables  : {propagator.orbit_type.value}")
  print(f"      Steps      : min={config.min_step} s, max={config.max_step} s")
  print(f"      Tolerances : position={config.position_tolerance} m")


def run_propagation(
  config       : SimpleNamespace,
  data_context : DataContext,
) -> dict:
  """
  Propagate the configured scenario, printing each sampled state.

  Input:
  ------
    config : SimpleNamespace
      Configuration object from build_config.
    data_context : DataContext
      Loaded reference data.

  Output:
  -------
    result : dict
      initial_state, final_state, step_count and evaluation_count.

  Raises:
  -------
    ValueError
      If the scenario is invalid.
    PropagationError
      If the integration fails.
  """
  initial_state = build_initial_state(config, data_context)
  force_models  = build_force_models(config, data_context)
  propagator    = build_propagator(config, initial_state, force_models)

  print_scenario_summary(config, data_context, initial_state, propagator)

  handler = PrintStepHandler(
    output_format   = config.output_format,
    epoch_formatter = data_context.epoch_to_utc,
  )

  print("\n  Compute")
  print("    Numerical Integration Running ... ")
  final_state = propagator.propagate(
    target_epoch = initial_state.epoch.shifted_by(config.duration),
    step         = config.step,
    handler      = handler,
  )
  print("    Numerical Integration Complete")

  return {
    'initial_state'    : initial_state,
    'final_state'      : final_state,
    'step_count'       : propagator.step_count,
    'evaluation_count' : propagator.evaluation_count,
  }
