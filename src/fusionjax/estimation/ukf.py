"""Unscented Kalman Filter (UKF) predict and update functions.

Implements the augmented-state UKF for the CTRV motion model:

1. :func:`ukf_predict` generates sigma points over the noise-augmented
   state, propagates them through :func:`~fusionjax.motion.ctrv_propagate`
   and recovers the predicted mean and covariance.
2. :func:`project_measurement` maps the *propagated* sigma points into a
   sensor's measurement space and computes the predicted measurement,
   innovation covariance and state/measurement cross-covariance. The
   sensor enters only through a :class:`MeasurementModel`.
3. :func:`ukf_correct` fuses an actual measurement with that prediction
   and reports the normalized innovation squared (NIS).

Every circular component (state heading, radar bearing) is wrapped with
:func:`~fusionjax.utils.wrap_angle` before it enters a covariance,
innovation or state update.

These are pure functions compatible with ``jax.jit``. Numerical failures
are not raised; they are reported through the ``valid`` flag of the
returned result so the caller can keep its last good state.
"""

from __future__ import annotations

import jax
import jax.numpy as jnp
from jax import Array
from jax.typing import ArrayLike

from fusionjax.config import get_dtype
from fusionjax.constants import N_AUG, YAW_INDEX
from fusionjax.estimation._types import (
    FilterState,
    MeasurementModel,
    MeasurementPrediction,
    PredictResult,
    UpdateResult,
)
from fusionjax.estimation.sigma_points import augmented_sigma_points, sigma_point_weights
from fusionjax.motion.ctrv import ctrv_propagate
from fusionjax.utils import wrap_angle, wrap_component


def symmetrize(P: ArrayLike) -> Array:
    """Return ``(P + P^T) / 2``."""
    P = jnp.asarray(P)
    return 0.5 * (P + P.T)


def ensure_psd(P: ArrayLike) -> Array:
    """Project a covariance onto the symmetric positive semi-definite cone.

    The matrix is symmetrized; if it then has negative eigenvalues they are
    clipped to zero. A matrix that is already PSD is returned symmetrized
    but otherwise unchanged.

    Args:
        P: Square matrix of shape ``(n, n)``.

    Returns:
        jax.Array: Symmetric PSD matrix of shape ``(n, n)``.
    """
    P_sym = symmetrize(P)
    eigvals, eigvecs = jnp.linalg.eigh(P_sym)
    clipped = symmetrize((eigvecs * jnp.maximum(eigvals, 0.0)) @ eigvecs.T)
    return jnp.where(jnp.min(eigvals) < 0.0, clipped, P_sym)


def _weighted_mean(points: Array, weights: Array, angle_index: int | None) -> Array:
    mean = jnp.einsum("i,ij->j", weights, points)
    if angle_index is None:
        return mean
    # Average the angle relative to the first point so that points on both
    # sides of the +/-pi cut do not cancel out
    ref = points[0, angle_index]
    offsets = wrap_angle(points[:, angle_index] - ref)
    angle = wrap_angle(ref + jnp.dot(weights, offsets))
    return mean.at[angle_index].set(angle)


def recover_mean_covariance(
    points: ArrayLike,
    weights: ArrayLike,
    angle_index: int | None = None,
) -> tuple[Array, Array]:
    """Collapse sigma points into a mean and covariance.

    The mean is the weighted sum of the points. The covariance is the
    weighted sum of outer products of the residuals ``point - mean``, with
    the ``angle_index`` residual wrapped to ``(-pi, pi]``. The returned
    mean has its angle component wrapped as well.

    Args:
        points: Sigma points of shape ``(N, n)``.
        weights: Weights of shape ``(N,)``.
        angle_index: Index of the circular component, or ``None``.

    Returns:
        A tuple ``(mean, cov)`` of shapes ``(n,)`` and ``(n, n)``.

    Examples:
        ```python
        import jax.numpy as jnp
        from fusionjax.estimation import (
            augmented_sigma_points, recover_mean_covariance, sigma_point_weights,
        )

        x = jnp.array([1.0, 2.0, 3.0, 0.1, 0.01])
        pts = augmented_sigma_points(x, jnp.eye(5), 1.0, 1.0, -4.0)
        mean, cov = recover_mean_covariance(pts, sigma_point_weights(7, -4.0))
        ```
    """
    dtype = get_dtype()
    points = jnp.asarray(points, dtype=dtype)
    weights = jnp.asarray(weights, dtype=dtype)

    mean = _weighted_mean(points, weights, angle_index)
    diff = wrap_component(points - mean[None, :], angle_index)
    cov = jnp.einsum("i,ij,ik->jk", weights, diff, diff)

    return mean, cov


def ukf_predict(
    filter_state: FilterState,
    dt: ArrayLike,
    std_a: float,
    std_yawdd: float,
    lam: float,
) -> PredictResult:
    """Propagate the filter state forward by ``dt`` seconds.

    Generates augmented sigma points, propagates each through the CTRV
    model and recovers the predicted mean and covariance with the heading
    residual wrapped. The covariance is symmetrized and clipped to PSD.

    Args:
        filter_state: Current filter state ``(x, P)``.
        dt: Elapsed time in seconds. Must be non-negative.
        std_a: Longitudinal acceleration noise standard deviation [m/s^2].
        std_yawdd: Yaw acceleration noise standard deviation [rad/s^2].
        lam: Sigma point spreading parameter.

    Returns:
        PredictResult: Predicted state, the propagated sigma points of shape
            ``(15, 5)``, and a validity flag.

    Examples:
        ```python
        import jax.numpy as jnp
        from fusionjax.estimation import FilterState, ukf_predict

        fs = FilterState(x=jnp.array([0.0, 0.0, 5.0, 0.0, 0.0]), P=jnp.eye(5) * 0.1)
        result = ukf_predict(fs, 0.1, 1.5, 0.5, -4.0)
        ```
    """
    dtype = get_dtype()
    x = jnp.asarray(filter_state.x, dtype=dtype)
    P = jnp.asarray(filter_state.P, dtype=dtype)

    points_aug = augmented_sigma_points(x, P, std_a, std_yawdd, lam)
    propagated = ctrv_propagate(points_aug, dt)

    weights = sigma_point_weights(N_AUG, lam)
    x_pred, P_pred = recover_mean_covariance(propagated, weights, YAW_INDEX)
    P_pred = ensure_psd(P_pred)

    valid = (
        jnp.all(jnp.isfinite(propagated))
        & jnp.all(jnp.isfinite(x_pred))
        & jnp.all(jnp.isfinite(P_pred))
    )

    return PredictResult(
        state=FilterState(x=x_pred, P=P_pred),
        sigma_points=propagated,
        valid=valid,
    )


def project_measurement(
    sigma_points: ArrayLike,
    x_pred: ArrayLike,
    weights: ArrayLike,
    model: MeasurementModel,
    R: ArrayLike,
) -> MeasurementPrediction:
    """Map predicted sigma points into a sensor's measurement space.

    This is the one routine shared by every sensor: ``model.fn`` is applied
    to each point via ``jax.vmap``, the predicted measurement and innovation
    covariance are recovered like the state in
    :func:`recover_mean_covariance`, and the cross-covariance is computed in
    the same pass from matching state and measurement residuals.

    The measurement noise ``R`` is added once to the innovation covariance.

    Args:
        sigma_points: Propagated sigma points of shape ``(N, n_x)``.
        x_pred: Predicted state mean of shape ``(n_x,)``.
        weights: Sigma point weights of shape ``(N,)``.
        model: Sensor measurement model.
        R: Measurement noise covariance of shape ``(m, m)``.

    Returns:
        MeasurementPrediction: Projected points, ``z_pred``, ``S`` and
            ``Pxz``.
    """
    dtype = get_dtype()
    sigma_points = jnp.asarray(sigma_points, dtype=dtype)
    x_pred = jnp.asarray(x_pred, dtype=dtype)
    weights = jnp.asarray(weights, dtype=dtype)
    R = jnp.asarray(R, dtype=dtype)

    z_points = jax.vmap(model.fn)(sigma_points)

    z_pred = _weighted_mean(z_points, weights, model.angle_index)
    z_diff = wrap_component(z_points - z_pred[None, :], model.angle_index)
    S = jnp.einsum("i,ij,ik->jk", weights, z_diff, z_diff) + R

    x_diff = wrap_component(sigma_points - x_pred[None, :], YAW_INDEX)
    Pxz = jnp.einsum("i,ij,ik->jk", weights, x_diff, z_diff)

    return MeasurementPrediction(sigma_points=z_points, z_pred=z_pred, S=S, Pxz=Pxz)


def ukf_correct(
    filter_state: FilterState,
    z: ArrayLike,
    prediction: MeasurementPrediction,
    model: MeasurementModel,
) -> UpdateResult:
    """Fuse a measurement with the predicted state.

    Computes the Kalman gain ``K = Pxz S^{-1}``, the innovation with the
    measurement's angle component wrapped, the updated state with the
    heading wrapped, and the covariance ``P - K S K^T`` made symmetric PSD.

    ``valid`` is ``False`` when the innovation covariance is numerically
    singular (condition number above ``1 / eps``) or any output is not
    finite. The returned state must then be discarded by the caller.

    Args:
        filter_state: Predicted filter state ``(x_pred, P_pred)``.
        z: Measurement vector of shape ``(m,)``.
        prediction: Output of :func:`project_measurement` for the same
            predicted state.
        model: Sensor measurement model, used for the angle index.

    Returns:
        UpdateResult: Updated state, innovation, innovation covariance,
            Kalman gain, NIS and validity flag.

    Examples:
        ```python
        from fusionjax.estimation import project_measurement, ukf_correct
        from fusionjax.sensors import LIDAR_MODEL, lidar_measurement_noise

        pred = project_measurement(sig, fs.x, w, LIDAR_MODEL, lidar_measurement_noise(0.15, 0.15))
        result = ukf_correct(fs, z, pred, LIDAR_MODEL)
        ```
    """
    dtype = get_dtype()
    x = jnp.asarray(filter_state.x, dtype=dtype)
    P = jnp.asarray(filter_state.P, dtype=dtype)
    z = jnp.asarray(z, dtype=dtype)
    S = prediction.S

    innovation = wrap_component(z - prediction.z_pred, model.angle_index)

    # K^T = S^{-1} Pxz^T since S is symmetric
    K = jnp.linalg.solve(S, prediction.Pxz.T).T

    x_upd = wrap_component(x + K @ innovation, YAW_INDEX)
    P_upd = ensure_psd(P - K @ S @ K.T)

    nis = innovation @ jnp.linalg.solve(S, innovation)

    cond = jnp.linalg.cond(S)
    valid = (
        jnp.isfinite(cond)
        & (cond < 1.0 / jnp.finfo(dtype).eps)
        & jnp.all(jnp.isfinite(x_upd))
        & jnp.all(jnp.isfinite(P_upd))
        & jnp.isfinite(nis)
    )

    return UpdateResult(
        state=FilterState(x=x_upd, P=P_upd),
        innovation=innovation,
        innovation_covariance=S,
        kalman_gain=K,
        nis=nis,
        valid=valid,
    )
