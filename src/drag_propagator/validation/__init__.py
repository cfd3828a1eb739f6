"""
Validation Package
==================

Test suite for the drag propagator.

Modules:
--------
- test_orbit_converter : Tests for orbital element conversions and orbit types
- test_dynamics        : Unit tests for gravity, atmosphere and drag models
- test_integrator      : Tests for integrator tolerances and configuration
- test_propagator      : Integration tests for the propagator and its status
- test_loader          : Tests for reference data loading and configuration
- test_regression      : End-to-end tests of the default drag scenario

Usage:
------
Run all tests:
  python -m pytest src/drag_propagator/validation/ -v

Run a specific test module:
  python -m pytest src/drag_propagator/validation/test_dynamics.py -v

Run a specific test class:
  python -m pytest src/drag_propagator/validation/test_dynamics.py::TestDragForce -v
"""
