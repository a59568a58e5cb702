"""Sigma point generation over the augmented state.

The augmented state appends the longitudinal acceleration noise ``nu_a``
and yaw acceleration noise ``nu_yawdd`` to the state vector, so process
noise enters the nonlinear motion model through the sigma points instead
of as an additive ``Q``.

Sigma points use the single spreading parameter ``lam``:

- point ``0`` is the mean,
- points ``1..n`` are ``mean + sqrt((lam + n) * P)[:, i]``,
- points ``n+1..2n`` are ``mean - sqrt((lam + n) * P)[:, i]``,

with weights ``lam / (lam + n)`` for the center and ``1 / (2 (lam + n))``
for the rest. The same weights serve the mean and the covariance.
"""

from __future__ import annotations

import jax.numpy as jnp
from jax import Array
from jax.typing import ArrayLike

from fusionjax.config import get_dtype, get_regularization_eps


def default_lambda(n_aug: int) -> float:
    """Return the conventional spreading parameter ``3 - n_aug``."""
    return 3.0 - n_aug


def sigma_point_weights(n_aug: int, lam: float) -> Array:
    """Compute the unscented transform weights.

    Args:
        n_aug: Augmented state dimension.
        lam: Spreading parameter. ``lam + n_aug`` must be positive.

    Returns:
        jax.Array: Weights of shape ``(2*n_aug+1,)``. They sum to one.

    Examples:
        ```python
        from fusionjax.estimation import sigma_point_weights
        w = sigma_point_weights(7, -4.0)
        ```
    """
    dtype = get_dtype()
    w0 = lam / (lam + n_aug)
    wi = 0.5 / (lam + n_aug)
    return jnp.concatenate(
        [jnp.array([w0], dtype=dtype), jnp.full(2 * n_aug, wi, dtype=dtype)]
    )


def augment_state(
    x: ArrayLike,
    P: ArrayLike,
    std_a: float,
    std_yawdd: float,
) -> tuple[Array, Array]:
    """Append the two process noise variables to the state.

    Args:
        x: State vector of shape ``(n,)``.
        P: State covariance of shape ``(n, n)``.
        std_a: Longitudinal acceleration noise standard deviation [m/s^2].
        std_yawdd: Yaw acceleration noise standard deviation [rad/s^2].

    Returns:
        A tuple ``(x_aug, P_aug)`` of shapes ``(n+2,)`` and ``(n+2, n+2)``.
        The noise mean is zero and the noise block is
        ``diag(std_a^2, std_yawdd^2)``.
    """
    dtype = get_dtype()
    x = jnp.asarray(x, dtype=dtype)
    P = jnp.asarray(P, dtype=dtype)
    n = x.shape[0]

    x_aug = jnp.concatenate([x, jnp.zeros(2, dtype=dtype)])

    Q = jnp.diag(jnp.array([std_a, std_yawdd], dtype=dtype) ** 2)
    P_aug = jnp.zeros((n + 2, n + 2), dtype=dtype)
    P_aug = P_aug.at[:n, :n].set(P)
    P_aug = P_aug.at[n:, n:].set(Q)

    return x_aug, P_aug


def sigma_points(x: ArrayLike, P: ArrayLike, lam: float) -> Array:
    """Generate ``2n + 1`` sigma points for a mean and covariance.

    A dtype-adaptive jitter is added to the diagonal before the Cholesky
    factorization so that zero-variance components (e.g. a process noise
    switched off) do not break it. A covariance that is not positive
    definite after regularization yields NaN points.

    Args:
        x: Mean of shape ``(n,)``.
        P: Covariance of shape ``(n, n)``.
        lam: Spreading parameter.

    Returns:
        jax.Array: Sigma points of shape ``(2n+1, n)``, one per row.
    """
    dtype = get_dtype()
    x = jnp.asarray(x, dtype=dtype)
    P = jnp.asarray(P, dtype=dtype)
    n = x.shape[0]

    P_reg = P + get_regularization_eps() * jnp.eye(n, dtype=dtype)
    L = jnp.linalg.cholesky((lam + n) * P_reg)

    # Columns of L become the row offsets
    points_plus = x[None, :] + L.T
    points_minus = x[None, :] - L.T
    return jnp.concatenate([x[None, :], points_plus, points_minus], axis=0)


def augmented_sigma_points(
    x: ArrayLike,
    P: ArrayLike,
    std_a: float,
    std_yawdd: float,
    lam: float,
) -> Array:
    """Generate sigma points over the noise-augmented state.

    Args:
        x: State vector of shape ``(n,)``.
        P: State covariance of shape ``(n, n)``.
        std_a: Longitudinal acceleration noise standard deviation [m/s^2].
        std_yawdd: Yaw acceleration noise standard deviation [rad/s^2].
        lam: Spreading parameter.

    Returns:
        jax.Array: Augmented sigma points of shape ``(2(n+2)+1, n+2)``.

    Examples:
        ```python
        import jax.numpy as jnp
        from fusionjax.estimation import augmented_sigma_points

        x = jnp.array([1.0, 2.0, 3.0, 0.1, 0.01])
        P = jnp.eye(5) * 0.1
        pts = augmented_sigma_points(x, P, 1.5, 0.5, -4.0)  # (15, 7)
        ```
    """
    x_aug, P_aug = augment_state(x, P, std_a, std_yawdd)
    return sigma_points(x_aug, P_aug, lam)
