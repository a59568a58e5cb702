"""Radar measurement model.

A radar return is ``[rho, phi, rho_dot]``: range [m], bearing [rad] and
range rate [m/s] of the target relative to the sensor at the origin. The
mapping from the CTRV state is nonlinear:

- ``rho = sqrt(px^2 + py^2)``
- ``phi = atan2(py, px)``
- ``rho_dot = (px * v cos(yaw) + py * v sin(yaw)) / rho``

The bearing is circular and is wrapped in every residual.
"""

from __future__ import annotations

import jax.numpy as jnp
from jax import Array
from jax.typing import ArrayLike

from fusionjax.config import get_dtype
from fusionjax.constants import BEARING_INDEX, N_RADAR, RANGE_EPS
from fusionjax.estimation._types import FilterState, MeasurementModel
from fusionjax.utils import wrap_angle


def radar_measurement(state: ArrayLike) -> Array:
    """Map a CTRV state vector into radar measurement space.

    The range used as the range-rate denominator is clamped to
    ``RANGE_EPS`` so that a target at the sensor origin gives a finite
    range rate instead of a division by zero.

    Args:
        state: State vector ``[px, py, v, yaw, yaw_rate]``.

    Returns:
        jax.Array: ``[rho, phi, rho_dot]`` of shape ``(3,)``.

    Examples:
        ```python
        import jax.numpy as jnp
        from fusionjax.sensors import radar_measurement

        radar_measurement(jnp.array([3.0, 4.0, 1.0, 0.0, 0.0]))  # [5.0, 0.927, 0.6]
        ```
    """
    dtype = get_dtype()
    state = jnp.asarray(state, dtype=dtype)
    px, py, v, yaw = state[0], state[1], state[2], state[3]

    rho = jnp.sqrt(px * px + py * py)
    phi = jnp.arctan2(py, px)
    vx = v * jnp.cos(yaw)
    vy = v * jnp.sin(yaw)
    rho_dot = (px * vx + py * vy) / jnp.maximum(rho, RANGE_EPS)

    return jnp.stack([rho, phi, rho_dot])


def radar_measurement_noise(std_r: float, std_phi: float, std_rd: float) -> Array:
    """Construct the radar measurement noise covariance.

    Args:
        std_r: Range standard deviation [m].
        std_phi: Bearing standard deviation [rad].
        std_rd: Range rate standard deviation [m/s].

    Returns:
        jax.Array: Diagonal matrix of shape ``(3, 3)``.
    """
    dtype = get_dtype()
    return jnp.diag(jnp.array([std_r, std_phi, std_rd], dtype=dtype) ** 2)


def radar_initial_state(
    z: ArrayLike,
    std_r: float,
    std_phi: float,
    std_v: float,
    std_yaw: float,
    std_yawd: float,
) -> FilterState:
    """Seed the filter from a single radar return.

    The position is the polar-to-Cartesian conversion of ``(rho, phi)``.
    Its covariance is ``J diag(std_r^2, std_phi^2) J^T`` with ``J`` the
    Jacobian of that conversion, so it grows tangentially with range.

    Range rate is the radial component of the velocity, so ``|rho_dot|``
    is used as a lower-bound speed along the line of sight: heading is
    ``phi`` for a receding target and ``phi + pi`` for an approaching one.
    The speed prior standard deviation is widened by ``|rho_dot|`` to
    account for the unobserved tangential component.

    Args:
        z: Radar measurement ``[rho, phi, rho_dot]``.
        std_r: Radar range noise standard deviation [m].
        std_phi: Radar bearing noise standard deviation [rad].
        std_v: Prior speed standard deviation [m/s].
        std_yaw: Prior heading standard deviation [rad].
        std_yawd: Prior turn rate standard deviation [rad/s].

    Returns:
        FilterState: Initial state and covariance.
    """
    dtype = get_dtype()
    z = jnp.asarray(z, dtype=dtype)
    rho, phi, rho_dot = z[0], z[1], z[2]

    cos_phi = jnp.cos(phi)
    sin_phi = jnp.sin(phi)
    speed = jnp.abs(rho_dot)
    yaw = jnp.where(rho_dot < 0.0, wrap_angle(phi + jnp.pi), wrap_angle(phi))

    x = jnp.stack([rho * cos_phi, rho * sin_phi, speed, yaw, jnp.zeros((), dtype=dtype)])

    J = jnp.array([[cos_phi, -rho * sin_phi], [sin_phi, rho * cos_phi]], dtype=dtype)
    polar_cov = jnp.diag(jnp.array([std_r, std_phi], dtype=dtype) ** 2)

    P = jnp.zeros((5, 5), dtype=dtype)
    P = P.at[:2, :2].set(J @ polar_cov @ J.T)
    P = P.at[2, 2].set(std_v**2 + speed**2)
    P = P.at[3, 3].set(std_yaw**2)
    P = P.at[4, 4].set(std_yawd**2)

    return FilterState(x=x, P=P)


RADAR_MODEL = MeasurementModel(
    name="radar",
    fn=radar_measurement,
    dim=N_RADAR,
    angle_index=BEARING_INDEX,
)
