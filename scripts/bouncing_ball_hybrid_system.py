import logging

import matplotlib.pyplot as plt
import numpy as np

from hybrid_dynamics import HybridSimulator, SimulationOptions, TrajectoryRecorder
from hybrid_dynamics.basic_hybrid_systems import bouncing_ball
from hybrid_dynamics.basic_hybrid_systems.bouncing_ball import Y, default_parameters

logging.basicConfig(level=logging.INFO)

""" Define the model. """
model = bouncing_ball()

""" Initialize states. """
# Start ball at height 2.5m with zero velocity
init_state = np.array([2.5, 0.0, 0.0])
init_disc_state = np.array([0.0])  # No bounces yet

""" Define parameters. """
# e = 0.8 means ball retains 80% of velocity after bounce
# g = 9.81 m/s^2 (standard gravity)
parameters = default_parameters(e=0.8, g=9.81, max_bounces=5)

""" Initialize simulator. """
recorder = TrajectoryRecorder(sample_time=0.005)
hybrid_simulator = HybridSimulator(
    model,
    recorder=recorder,
    options=SimulationOptions(t_max=20.0),
)

final_state, final_disc_state, final_time, recorder = hybrid_simulator.simulate(
    init_state, init_disc_state, parameters, return_output=True
)
print(f"Stopped after {int(final_disc_state[0])} bounces at t={final_time:.4f}s")

times = recorder.times
states = recorder.states
event_mask = recorder.is_event

# Phase plot
plt.figure(figsize=(10, 6))
plt.plot(states[:, Y.q], states[:, Y.q_dot], "k-", label="Trajectory")
plt.plot(states[event_mask, Y.q], states[event_mask, Y.q_dot], "ro", label="Post-impact states")
plt.xlabel("Position (m)")
plt.ylabel("Velocity (m/s)")
plt.title("Bouncing Ball Phase Plot")
plt.legend()
plt.grid(True, alpha=0.3)
plt.savefig("bouncing_ball.png")
plt.close()

# Time series plots with bounce markers
fig, (ax1, ax2) = plt.subplots(2, 1, figsize=(12, 8), sharex=True)
for event_time in recorder.event_times:
    ax1.axvline(event_time, color="lightcoral", alpha=0.6)
    ax2.axvline(event_time, color="lightcoral", alpha=0.6)

ax1.plot(times, states[:, Y.q], "k-", linewidth=1.5)
ax1.set_ylabel("Position (m)", fontsize=12)
ax1.set_title("Bouncing Ball Time Series", fontsize=14, fontweight="bold")
ax1.grid(True, alpha=0.3)

ax2.plot(times, states[:, Y.q_dot], "b-", linewidth=1.5)
ax2.set_xlabel("Time (s)", fontsize=12)
ax2.set_ylabel("Velocity (m/s)", fontsize=12)
ax2.grid(True, alpha=0.3)

plt.tight_layout()
plt.savefig("bouncing_ball_timeseries.png", dpi=150)
plt.close()
