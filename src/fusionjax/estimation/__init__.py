"""Unscented Kalman Filter building blocks.

Provides the stages of the augmented-state UKF used by the tracker.
Measurement models are in the :mod:`fusionjax.sensors` module and the
CTRV process model in :mod:`fusionjax.motion`.

Available components:

- :class:`FilterState` -- Filter state (estimate and covariance)
- :class:`MeasurementModel` -- Sensor projection capability
- :class:`PredictResult` -- Prediction output with propagated sigma points
- :class:`MeasurementPrediction` -- Projected points, ``z_pred``, ``S``, ``Pxz``
- :class:`UpdateResult` -- Correction output with NIS diagnostics
- :func:`sigma_point_weights` -- Unscented transform weights
- :func:`augment_state` -- Append process noise to the state
- :func:`augmented_sigma_points` -- Sigma points over the augmented state
- :func:`recover_mean_covariance` -- Sigma points back to mean/covariance
- :func:`ukf_predict` -- Full prediction stage
- :func:`project_measurement` -- Shared measurement projection
- :func:`ukf_correct` -- Kalman correction with NIS

All functions are compatible with ``jax.jit``.
"""

from fusionjax.estimation._types import (
    FilterState,
    MeasurementModel,
    MeasurementPrediction,
    PredictResult,
    UpdateResult,
)
from fusionjax.estimation.sigma_points import (
    augment_state,
    augmented_sigma_points,
    default_lambda,
    sigma_point_weights,
    sigma_points,
)
from fusionjax.estimation.ukf import (
    ensure_psd,
    project_measurement,
    recover_mean_covariance,
    symmetrize,
    ukf_correct,
    ukf_predict,
)

__all__ = [
    "FilterState",
    "MeasurementModel",
    "PredictResult",
    "MeasurementPrediction",
    "UpdateResult",
    "default_lambda",
    "sigma_point_weights",
    "augment_state",
    "sigma_points",
    "augmented_sigma_points",
    "recover_mean_covariance",
    "symmetrize",
    "ensure_psd",
    "ukf_predict",
    "project_measurement",
    "ukf_correct",
]
