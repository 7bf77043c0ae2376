"""
Esempio minimo: massa su molla con smorzamento e gravità, integrata con ogni solver.
"""

import sys
from pathlib import Path

import numpy as np
from loguru import logger

# Aggiungi root repository al path
ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(ROOT))

from statestep.core import Simulation, SimulationConfig, StateHistory
from statestep.physics import (
    Joint,
    PhysicsSchedule,
    Solver,
    calculate_acceleration,
    damping_force,
    gravity,
    spring_force,
)

FIXED_TIMESTEP = 0.002  # RK4 stays stable up to ~0.5 s here, Euler only up to ~0.01 s
N_STEPS = 50_000
X_EQ = 3.0 - 9.81 / 10.0


def build_simulation(solver: Solver) -> Simulation:
    schedule = PhysicsSchedule(
        physics=[spring_force(10.0, rest_position=3.0), damping_force(0.1), gravity(9.81)],
        finalize=[calculate_acceleration],
    )
    # Cube starts at 0.5 m, at rest (sitting on the ground)
    entities = {"cube": Joint(position=0.5, velocity=0.0, mass=1.0)}
    sim = Simulation(schedule, entities, SimulationConfig(solver=solver, dt=FIXED_TIMESTEP))
    sim.initialize()
    return sim


def main() -> None:
    logger.remove()
    logger.add(sys.stderr, level="INFO")

    out_dir = ROOT / "data"
    histories = {}
    for solver in Solver:
        sim = build_simulation(solver)
        history = StateHistory()
        sim.run(N_STEPS, history=history)
        final = sim.state["cube"]
        print(
            f"{solver.value:>8}: x={final.position:.6f} v={final.velocity:+.6f} "
            f"|x - x_eq|={abs(final.position - X_EQ):.2e} ({solver.evaluations} eval/step)"
        )
        history.to_sqlite(out_dir / "spring_mass.db", table=solver.value)
        histories[solver] = history

    try:
        import matplotlib.pyplot as plt
    except ImportError:
        print("matplotlib not available, skip plot")
        return
    fig, ax = plt.subplots(1, 1, figsize=(8, 4))
    for solver, history in histories.items():
        ax.plot(history.times(), history.get("cube")[:, 0], label=solver.value)
    ax.axhline(X_EQ, color="k", linestyle="--", linewidth=0.8, label="x_eq")
    ax.set_xlabel("t [s]")
    ax.set_ylabel("position [m]")
    ax.legend()
    ax.grid(True, alpha=0.3)
    plt.tight_layout()
    plt.show()


if __name__ == "__main__":
    main()
