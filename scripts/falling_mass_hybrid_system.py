import logging

import matplotlib.pyplot as plt
import numpy as np

from hybrid_dynamics import Excitation, SimulationOptions, TIMEOUT, TrajectoryRecorder, simulate
from hybrid_dynamics.basic_hybrid_systems import falling_mass
from hybrid_dynamics.basic_hybrid_systems.falling_mass import Y, default_parameters

logging.basicConfig(level=logging.INFO)

""" Define the model and parameters. """
model = falling_mass()
parameters = default_parameters(g=9.8)
init_state = np.array([1.0, 0.0, 0.0])
no_disc_state = np.array([])

""" Passive drop from 1m. """
passive = TrajectoryRecorder()
y_out, _, t_out, passive = simulate(
    init_state, no_disc_state, parameters, model, recorder=passive, return_output=True
)
print(f"Passive drop hits the ground at t={t_out:.4f}s (analytic {np.sqrt(2 / 9.8):.4f}s)")

""" Same drop with a booster that cancels half of gravity. """
booster = Excitation(func=lambda y, z, s: np.array([s[0]]), params=np.array([4.9]))
active = TrajectoryRecorder(sample_time=0.01)
y_out, _, t_out, active = simulate(
    init_state,
    no_disc_state,
    parameters,
    model,
    excitation=booster,
    recorder=active,
    options=SimulationOptions(t_max=0.5),
    return_output=True,
)
if t_out == TIMEOUT:
    print(f"Boosted drop still at {y_out[Y.height]:.3f}m when the time budget ran out")

plt.figure(figsize=(10, 6))
plt.plot(passive.times, passive.states[:, Y.height], "k-", label="Passive")
plt.plot(active.times, active.states[:, Y.height], "b--", label="With booster")
plt.xlabel("Time (s)")
plt.ylabel("Height (m)")
plt.title("Falling Mass")
plt.legend()
plt.grid(True, alpha=0.3)
plt.savefig("falling_mass.png")
plt.close()
