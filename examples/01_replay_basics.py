# ---
# jupyter:
#   jupytext:
#     formats: ipynb,py:percent
#     text_representation:
#       extension: .py
#       format_name: percent
#       format_version: '1.3'
#       jupytext_version: 1.18.1
#   kernelspec:
#     display_name: robotreplay
#     language: python
#     name: python3
# ---

# %% [markdown]
# # Replay Basics
#
# This notebook replays two recorded robots side by side without a 3D viewer.
#
# ## Learning Objectives
#
# By the end of this notebook, you will be able to:
#
# - Load movement CSVs into a replay session
# - Drive playback from a host loop with `ReplaySession.pump`
# - Brush a chart to pin it to a frame range
# - Render line charts and the session heatmap to PNG

# %%
import io
import logging

import matplotlib.pyplot as plt
import numpy as np

from robotreplay import ReplayConfig, ReplaySession

logging.basicConfig(level=logging.INFO)

rng = np.random.default_rng(42)

# %% [markdown]
# ## Part 1: Synthetic recordings
#
# Each CSV row is one frame sampled at 30 Hz. Joint channels hold angles in
# radians; `pos_*` and `rot_*` hold the robot base pose.


# %%
def make_recording(n_frames: int, phase: float) -> str:
    t = np.arange(n_frames) / 30.0
    hip = 1.2 * np.sin(2 * np.pi * 0.5 * t + phase)
    knee = 0.8 * np.sin(2 * np.pi * 1.0 * t + phase) + rng.normal(0, 0.05, n_frames)
    lines = ["hip,knee,pos_0,pos_1,pos_2,rot_0,rot_1,rot_2"]
    lines += [f"{h:.4f},{k:.4f},{0.01 * i:.4f},0,0,0,0,0" for i, (h, k) in enumerate(zip(hip, knee))]
    return "\n".join(lines) + "\n"


# Simulated wall clock so the loop below runs faster than real time
now = 0.0
session = ReplaySession(ReplayConfig(window_size=90), time_func=lambda: now)
for n_frames, phase in [(600, 0.0), (450, np.pi / 3)]:
    robot = session.add_robot()
    session.notify_model_loaded()  # a 3D viewer would call this
    session.load_movement(robot.robot_id, io.StringIO(make_recording(n_frames, phase)))

print(f"Common length: {session.store.min_length()} frames")

# %% [markdown]
# ## Part 2: Host loop
#
# The session never schedules itself. A host calls `pump(now)` from its frame
# loop; here we step the simulated clock through 5 seconds at 60 Hz.

# %%
session.control.check()
for step in range(1, 301):
    now = step / 60.0
    session.pump()
print(f"Frame after 5 s: {session.last_tick_frame}")

# %% [markdown]
# ## Part 3: Brush and render

# %%
session.brush(0, 100, 220)
fig_bytes = session.chart(0).renderer.to_png_bytes()
heatmap_bytes = session.heatmap_renderer.to_png_bytes()

fig, axes = plt.subplots(2, 1, figsize=(8, 6))
for ax, png in zip(axes, [fig_bytes, heatmap_bytes]):
    ax.imshow(plt.imread(io.BytesIO(png)))
    ax.axis("off")
plt.show()
