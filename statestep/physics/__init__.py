"""
Numerical side of the simulation.

Hierarchy:
  - integrators: explicit fixed-step schemes (Euler, Heun, Midpoint, RK4) and Solver selection
  - evaluator: derivative evaluation round-trip through the physics callback
  - schedule: staged physics callback (initialize, physics, finalize)
  - library: reference Joint entity and force systems (spring, damping, gravity)
"""

# --- Integrators (numerical level) ---
from statestep.physics.integrators import (
    EulerIntegrator,
    HeunIntegrator,
    MidpointIntegrator,
    RK4Integrator,
    Solver,
    euler_step,
    get_integrator,
    heun_step,
    midpoint_step,
    rk4_step,
)

# --- Derivative evaluation ---
from statestep.physics.evaluator import DerivativeEvaluator

# --- Physics callback composition ---
from statestep.physics.schedule import PhysicsSchedule

# --- Library ---
from statestep.physics.library import (
    Joint,
    JointState,
    calculate_acceleration,
    damping_force,
    gravity,
    spring_force,
)

__all__ = [
    # Integratori
    "Solver",
    "get_integrator",
    "EulerIntegrator",
    "HeunIntegrator",
    "MidpointIntegrator",
    "RK4Integrator",
    "euler_step",
    "heun_step",
    "midpoint_step",
    "rk4_step",
    # Evaluation
    "DerivativeEvaluator",
    "PhysicsSchedule",
    # Library
    "Joint",
    "JointState",
    "spring_force",
    "damping_force",
    "gravity",
    "calculate_acceleration",
]
