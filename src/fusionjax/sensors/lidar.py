"""Lidar measurement model.

A lidar return is a Cartesian position ``[px, py]`` in meters. The model
is linear in the state, but it goes through the same unscented projection
as the radar so that both sensors share one update routine.
"""

from __future__ import annotations

import jax.numpy as jnp
from jax import Array
from jax.typing import ArrayLike

from fusionjax.config import get_dtype
from fusionjax.constants import N_LIDAR
from fusionjax.estimation._types import FilterState, MeasurementModel


def lidar_measurement(state: ArrayLike) -> Array:
    """Extract the position from a CTRV state vector.

    Args:
        state: State vector ``[px, py, v, yaw, yaw_rate]``.

    Returns:
        jax.Array: Position ``[px, py]`` of shape ``(2,)``.
    """
    dtype = get_dtype()
    state = jnp.asarray(state, dtype=dtype)
    return state[:2]


def lidar_measurement_noise(std_px: float, std_py: float) -> Array:
    """Construct the lidar measurement noise covariance.

    Args:
        std_px: Standard deviation of the x position [m].
        std_py: Standard deviation of the y position [m].

    Returns:
        jax.Array: Diagonal matrix ``diag(std_px^2, std_py^2)`` of shape
            ``(2, 2)``.

    Examples:
        ```python
        from fusionjax.sensors import lidar_measurement_noise
        R = lidar_measurement_noise(0.15, 0.15)
        ```
    """
    dtype = get_dtype()
    return jnp.diag(jnp.array([std_px, std_py], dtype=dtype) ** 2)


def lidar_initial_state(
    z: ArrayLike,
    std_px: float,
    std_py: float,
    std_v: float,
    std_yaw: float,
    std_yawd: float,
) -> FilterState:
    """Seed the filter from a single lidar fix.

    Speed, heading and turn rate are not observable from one position, so
    they start at zero with the given prior standard deviations.

    Args:
        z: Lidar measurement ``[px, py]``.
        std_px: Lidar x noise standard deviation [m].
        std_py: Lidar y noise standard deviation [m].
        std_v: Prior speed standard deviation [m/s].
        std_yaw: Prior heading standard deviation [rad].
        std_yawd: Prior turn rate standard deviation [rad/s].

    Returns:
        FilterState: Initial state and diagonal covariance.
    """
    dtype = get_dtype()
    z = jnp.asarray(z, dtype=dtype)
    x = jnp.zeros(5, dtype=dtype).at[:2].set(z)
    P = jnp.diag(jnp.array([std_px, std_py, std_v, std_yaw, std_yawd], dtype=dtype) ** 2)
    return FilterState(x=x, P=P)


LIDAR_MODEL = MeasurementModel(
    name="lidar",
    fn=lidar_measurement,
    dim=N_LIDAR,
    angle_index=None,
)
