"""Constant turn rate and velocity (CTRV) process model.

The state ``[px, py, v, yaw, yaw_rate]`` is advanced by ``dt`` seconds
assuming constant speed and constant turn rate. Process noise enters
through the two trailing components of an augmented sigma point:

- ``nu_a``: longitudinal acceleration [m/s^2]
- ``nu_yawdd``: yaw acceleration [rad/s^2]

Both are held constant over the step, which gives position offsets
quadratic in ``dt`` and speed and turn-rate offsets linear in ``dt``.
"""

from __future__ import annotations

import jax
import jax.numpy as jnp
from jax import Array
from jax.typing import ArrayLike

from fusionjax.config import get_dtype
from fusionjax.constants import YAW_RATE_EPS


def ctrv_transition(point_aug: ArrayLike, dt: ArrayLike) -> Array:
    """Advance one augmented sigma point through the CTRV model.

    For ``|yaw_rate| < YAW_RATE_EPS`` the position is integrated along a
    straight line, which avoids dividing by the turn rate.

    Args:
        point_aug: Augmented point
            ``[px, py, v, yaw, yaw_rate, nu_a, nu_yawdd]`` of shape ``(7,)``.
        dt: Elapsed time in seconds. Expected to be non-negative.

    Returns:
        jax.Array: Propagated state ``[px, py, v, yaw, yaw_rate]`` of shape
            ``(5,)``.

    Examples:
        ```python
        import jax.numpy as jnp
        from fusionjax.motion import ctrv_transition

        pt = jnp.array([0.0, 0.0, 5.0, 0.0, 0.0, 0.0, 0.0])
        ctrv_transition(pt, 0.1)  # [0.5, 0.0, 5.0, 0.0, 0.0]
        ```
    """
    dtype = get_dtype()
    point_aug = jnp.asarray(point_aug, dtype=dtype)
    dt = jnp.asarray(dt, dtype=dtype)

    px, py, v, yaw, yawd, nu_a, nu_yawdd = (point_aug[i] for i in range(7))

    yaw_end = yaw + yawd * dt
    straight = jnp.abs(yawd) < YAW_RATE_EPS

    # Keep the unused branch finite
    safe_yawd = jnp.where(straight, 1.0, yawd)
    px_turn = px + v / safe_yawd * (jnp.sin(yaw_end) - jnp.sin(yaw))
    py_turn = py + v / safe_yawd * (jnp.cos(yaw) - jnp.cos(yaw_end))
    px_line = px + v * dt * jnp.cos(yaw)
    py_line = py + v * dt * jnp.sin(yaw)

    px_p = jnp.where(straight, px_line, px_turn)
    py_p = jnp.where(straight, py_line, py_turn)

    dt2 = dt * dt
    px_p = px_p + 0.5 * nu_a * dt2 * jnp.cos(yaw)
    py_p = py_p + 0.5 * nu_a * dt2 * jnp.sin(yaw)
    v_p = v + nu_a * dt
    yaw_p = yaw_end + 0.5 * nu_yawdd * dt2
    yawd_p = yawd + nu_yawdd * dt

    return jnp.stack([px_p, py_p, v_p, yaw_p, yawd_p])


def ctrv_propagate(points_aug: ArrayLike, dt: ArrayLike) -> Array:
    """Propagate a set of augmented sigma points through the CTRV model.

    Args:
        points_aug: Augmented sigma points of shape ``(N, 7)``.
        dt: Elapsed time in seconds, shared by every point.

    Returns:
        jax.Array: Propagated points of shape ``(N, 5)``.
    """
    return jax.vmap(ctrv_transition, in_axes=(0, None))(points_aug, dt)
