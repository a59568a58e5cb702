"""Synthetic CTRV trajectories and sensor measurements.

Generates ground truth with the same CTRV model and noise structure the
filter assumes, which makes the expected NIS statistics known exactly.
Used by the examples and the consistency tests.
"""

from __future__ import annotations

import jax
import jax.numpy as jnp
from jax import Array
from jax.typing import ArrayLike

from fusionjax.config import get_dtype
from fusionjax.measurement import Measurement, SensorType
from fusionjax.motion import ctrv_transition
from fusionjax.sensors import radar_measurement
from fusionjax.tracking import TrackerConfig


def simulate_ctrv_trajectory(
    key: Array,
    x0: ArrayLike,
    n_steps: int,
    dt: float,
    std_a: float,
    std_yawdd: float,
) -> Array:
    """Simulate a CTRV target with random accelerations.

    The longitudinal and yaw accelerations are drawn independently for
    every step and held constant over it.

    Args:
        key: ``jax.random`` key.
        x0: Initial state ``[px, py, v, yaw, yaw_rate]``.
        n_steps: Number of states to generate, ``x0`` included.
        dt: Step length in seconds.
        std_a: Longitudinal acceleration standard deviation [m/s^2].
        std_yawdd: Yaw acceleration standard deviation [rad/s^2].

    Returns:
        jax.Array: True states of shape ``(n_steps, 5)``.
    """
    dtype = get_dtype()
    x0 = jnp.asarray(x0, dtype=dtype)
    scale = jnp.array([std_a, std_yawdd], dtype=dtype)
    noise = jax.random.normal(key, (n_steps - 1, 2), dtype=dtype) * scale

    def step(x, nu):
        x_next = ctrv_transition(jnp.concatenate([x, nu]), dt)
        return x_next, x_next

    _, states = jax.lax.scan(step, x0, noise)
    return jnp.concatenate([x0[None, :], states], axis=0)


def simulate_measurements(
    key: Array,
    truth: ArrayLike,
    dt: float,
    config: TrackerConfig,
    t0_us: int = 0,
) -> list[Measurement]:
    """Generate alternating lidar and radar measurements of a trajectory.

    Even steps produce a lidar fix and odd steps a radar return, each with
    zero-mean Gaussian noise at the standard deviations in ``config``.

    Args:
        key: ``jax.random`` key.
        truth: True states of shape ``(N, 5)``.
        dt: Step length in seconds.
        config: Source of the measurement noise levels.
        t0_us: Timestamp of the first state in microseconds.

    Returns:
        list[Measurement]: One measurement per true state, in time order.
    """
    dtype = get_dtype()
    truth = jnp.asarray(truth, dtype=dtype)
    n = truth.shape[0]

    lidar_std = jnp.array([config.std_laspx, config.std_laspy], dtype=dtype)
    radar_std = jnp.array([config.std_radr, config.std_radphi, config.std_radrd], dtype=dtype)

    key_l, key_r = jax.random.split(key)
    lidar_noise = jax.random.normal(key_l, (n, 2), dtype=dtype) * lidar_std
    radar_noise = jax.random.normal(key_r, (n, 3), dtype=dtype) * radar_std
    radar_clean = jax.vmap(radar_measurement)(truth)

    dt_us = int(round(dt * 1e6))
    measurements = []
    for i in range(n):
        timestamp = t0_us + i * dt_us
        if i % 2 == 0:
            values = truth[i, :2] + lidar_noise[i]
            measurements.append(Measurement.create(timestamp, SensorType.LIDAR, values))
        else:
            values = radar_clean[i] + radar_noise[i]
            measurements.append(Measurement.create(timestamp, SensorType.RADAR, values))
    return measurements
