"""Type definitions for the unscented filter.

Provides the core data types passed between the filter stages:

- :class:`FilterState`: Current filter state containing the state estimate
  and covariance matrix.
- :class:`MeasurementModel`: Sensor-specific projection from state space to
  measurement space, passed to the shared projection routine.
- :class:`PredictResult`: Output of the prediction stage, including the
  propagated sigma points reused by the update.
- :class:`MeasurementPrediction`: Sigma points projected into measurement
  space with their mean, innovation covariance and cross-covariance.
- :class:`UpdateResult`: Output of the correction stage, containing the
  updated state plus diagnostics for filter tuning.

All array containers are :class:`~typing.NamedTuple` instances, which JAX
treats as pytrees automatically. This means they work seamlessly with
``jax.jit``, ``jax.vmap``, and ``jax.lax`` control flow primitives.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import NamedTuple

from jax import Array


class FilterState(NamedTuple):
    """State of the unscented filter.

    Attributes:
        x: State estimate ``[px, py, v, yaw, yaw_rate]`` of shape ``(5,)``.
        P: Error covariance matrix of shape ``(5, 5)``. Symmetric positive
            semi-definite.
    """

    x: Array
    P: Array


class MeasurementModel(NamedTuple):
    """Nonlinear measurement function for one sensor type.

    Instances are hashable, so they can be passed as static arguments to
    ``jax.jit``.

    Attributes:
        name: Sensor name, used in log messages.
        fn: Measurement function ``h(x) -> z`` for a single state vector.
        dim: Measurement dimension.
        angle_index: Index of a circular component in the measurement
            vector, or ``None`` when every component is linear.
    """

    name: str
    fn: Callable[[Array], Array]
    dim: int
    angle_index: int | None = None


class PredictResult(NamedTuple):
    """Result of the prediction stage.

    Attributes:
        state: Predicted :class:`FilterState`.
        sigma_points: Propagated sigma points of shape ``(2*n_aug+1, n_x)``.
        valid: Scalar boolean. ``False`` when the augmented covariance was
            not positive definite or propagation produced non-finite values.
    """

    state: FilterState
    sigma_points: Array
    valid: Array


class MeasurementPrediction(NamedTuple):
    """Predicted sigma points mapped into measurement space.

    Attributes:
        sigma_points: Projected points of shape ``(2*n_aug+1, m)``.
        z_pred: Predicted measurement mean of shape ``(m,)``.
        S: Innovation covariance of shape ``(m, m)``, measurement noise
            included.
        Pxz: Cross-covariance between state and measurement of shape
            ``(n_x, m)``.
    """

    sigma_points: Array
    z_pred: Array
    S: Array
    Pxz: Array


class UpdateResult(NamedTuple):
    """Result of a measurement correction step.

    Attributes:
        state: Updated :class:`FilterState`.
        innovation: Measurement residual ``z - z_pred`` of shape ``(m,)``,
            bearing wrapped for radar.
        innovation_covariance: Innovation covariance ``S`` of shape
            ``(m, m)``.
        kalman_gain: Kalman gain ``K`` of shape ``(n_x, m)``.
        nis: Normalized innovation squared ``y^T S^{-1} y``. Follows a
            chi-squared distribution with ``m`` degrees of freedom for a
            consistent filter.
        valid: Scalar boolean. ``False`` when ``S`` is singular or the
            update produced non-finite values.
    """

    state: FilterState
    innovation: Array
    innovation_covariance: Array
    kalman_gain: Array
    nis: Array
    valid: Array
