import logging

import matplotlib.pyplot as plt
import numpy as np

from hybrid_dynamics import HybridSimulator, SimulationOptions, TrajectoryRecorder
from hybrid_dynamics.basic_hybrid_systems import slip
from hybrid_dynamics.basic_hybrid_systems.slip import Phase, Y, Z, default_parameters, initial_states

logging.basicConfig(level=logging.INFO)

""" Define the model. """
model = slip()

""" Define parameters. """
# Normalized units: g = l_0 = m_0 = 1.
# k = 20 is the dimensionless leg stiffness k * l_0 / (m_0 * g).
parameters = default_parameters(k=20.0, ang_att=0.3, wr=0.0)

""" Initialize states at apex. """
init_state, init_disc_state = initial_states(dx=1.0, y=1.2)

""" Simulate a single stride. """
recorder = TrajectoryRecorder(sample_time=0.01)
hybrid_simulator = HybridSimulator(
    model, recorder=recorder, options=SimulationOptions(t_max=10.0)
)
final_state, final_disc_state, final_time, recorder = hybrid_simulator.simulate(
    init_state, init_disc_state, parameters, return_output=True
)

if hybrid_simulator.last_run_cancelled:
    print(f"Stride aborted at t={final_time:.3f}: {hybrid_simulator.token.reason}")
else:
    print(
        f"Apex reached at t={final_time:.3f}: "
        f"x={final_state[Y.x]:.3f}, y={final_state[Y.y]:.3f}, dx={final_state[Y.dx]:.3f}"
    )

states = recorder.states
phases = recorder.discrete_states[:, Z.phase]
colors = {Phase.FLIGHT: "tab:blue", Phase.STANCE: "tab:red", Phase.FLIGHT_AFTER_LIFTOFF: "tab:green"}

plt.figure(figsize=(10, 4))
for phase, color in colors.items():
    mask = phases == phase
    plt.plot(states[mask, Y.x], states[mask, Y.y], ".", color=color, label=phase.name.lower())
plt.axhline(0.0, color="k", linewidth=1)
plt.xlabel("x")
plt.ylabel("y")
plt.title("SLIP Center of Mass Trajectory")
plt.axis("equal")
plt.legend()
plt.grid(True, alpha=0.3)
plt.savefig("slip_stride.png", dpi=150)
plt.close()
