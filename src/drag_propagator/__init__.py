"""
Drag Propagator
===============

Numerical orbit propagation under central gravity and atmospheric drag.
"""
