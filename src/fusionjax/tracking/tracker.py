"""Stateful lidar/radar tracker built on the unscented filter kernels.

:class:`UnscentedTracker` owns the filter state and dispatches each
incoming :class:`~fusionjax.measurement.Measurement`:

- ``UNINITIALIZED`` + enabled measurement: seed state and covariance from
  the raw values, store the timestamp, switch to ``RUNNING``.
- ``RUNNING`` + enabled measurement: predict over the elapsed time, then
  correct with the sensor's measurement model.
- Measurements from a disabled sensor are ignored entirely.

The numerical kernels are pure and ``jax.jit``-compiled; this class is the
eager Python layer that checks their ``valid`` flags. Numerical problems
(non positive definite covariance, singular innovation covariance, radar
return at zero range) are logged and the offending step is skipped, so the
tracker stays usable for the next measurement. Calls must be serialized by
the caller in timestamp order.
"""

from __future__ import annotations

import logging
import math

import jax
import jax.numpy as jnp
from jax import Array

from fusionjax.config import get_dtype
from fusionjax.constants import N_AUG, N_SIGMA, N_X, RANGE_EPS, US2S
from fusionjax.estimation import (
    FilterState,
    MeasurementModel,
    UpdateResult,
    project_measurement,
    sigma_point_weights,
    ukf_correct,
    ukf_predict,
)
from fusionjax.measurement import Measurement, SensorType
from fusionjax.sensors import (
    LIDAR_MODEL,
    RADAR_MODEL,
    lidar_initial_state,
    lidar_measurement_noise,
    radar_initial_state,
    radar_measurement_noise,
)
from fusionjax.tracking._types import FilterStatus, TrackerConfig
from fusionjax.tracking.nis_log import NISLog

logger = logging.getLogger(__name__)


def _update_step(
    filter_state: FilterState,
    sigma_points: Array,
    weights: Array,
    z: Array,
    R: Array,
    model: MeasurementModel,
) -> UpdateResult:
    prediction = project_measurement(sigma_points, filter_state.x, weights, model, R)
    return ukf_correct(filter_state, z, prediction, model)


_predict_jit = jax.jit(ukf_predict, static_argnames=("lam",))
_update_jit = jax.jit(_update_step, static_argnames=("model",))


class UnscentedTracker:
    """Single-target UKF tracker fusing lidar and radar measurements.

    The state is ``[px, py, v, yaw, yaw_rate]`` under the CTRV motion model.

    Args:
        config: Filter parameters. Defaults to ``TrackerConfig()``.
        nis_log: Optional sink receiving ``(cycle, nis_lidar, nis_radar)``
            after every successful update.

    Examples:
        ```python
        from fusionjax.measurement import Measurement
        from fusionjax.tracking import UnscentedTracker

        tracker = UnscentedTracker()
        tracker.process_measurement(Measurement.lidar(0, 1.0, 2.0))
        tracker.process_measurement(Measurement.radar(100_000, 2.3, 1.1, 0.5))
        tracker.x, tracker.nis_radar
        ```
    """

    def __init__(
        self,
        config: TrackerConfig | None = None,
        nis_log: NISLog | None = None,
    ) -> None:
        self._config = config if config is not None else TrackerConfig()
        self._nis_log = nis_log

        cfg = self._config
        self._lam = cfg.spreading
        self._weights = sigma_point_weights(N_AUG, self._lam)
        self._R_lidar = lidar_measurement_noise(cfg.std_laspx, cfg.std_laspy)
        self._R_radar = radar_measurement_noise(cfg.std_radr, cfg.std_radphi, cfg.std_radrd)

        self.reset()

    def reset(self) -> None:
        """Return to ``UNINITIALIZED``, discarding state and diagnostics."""
        dtype = get_dtype()
        self._status = FilterStatus.UNINITIALIZED
        self._time_us: int | None = None
        self._state = FilterState(
            x=jnp.zeros(N_X, dtype=dtype),
            P=jnp.eye(N_X, dtype=dtype),
        )
        self._sigma_points_pred = jnp.zeros((N_SIGMA, N_X), dtype=dtype)
        self._has_prediction = False
        self._nis_lidar = math.nan
        self._nis_radar = math.nan
        self._cycle = 0

    # ── Read-only views ──────────────────────────────────────────────────

    @property
    def config(self) -> TrackerConfig:
        return self._config

    @property
    def status(self) -> FilterStatus:
        return self._status

    @property
    def is_initialized(self) -> bool:
        return self._status is FilterStatus.RUNNING

    @property
    def time_us(self) -> int | None:
        """Timestamp of the current state in microseconds."""
        return self._time_us

    @property
    def filter_state(self) -> FilterState:
        return self._state

    @property
    def x(self) -> Array:
        """State estimate ``[px, py, v, yaw, yaw_rate]``."""
        return self._state.x

    @property
    def P(self) -> Array:
        """State covariance."""
        return self._state.P

    @property
    def sigma_points_pred(self) -> Array:
        """Sigma points of the last prediction, shape ``(15, 5)``."""
        return self._sigma_points_pred

    @property
    def weights(self) -> Array:
        return self._weights

    @property
    def nis_lidar(self) -> float:
        """Latest lidar NIS, ``nan`` before the first lidar update."""
        return self._nis_lidar

    @property
    def nis_radar(self) -> float:
        """Latest radar NIS, ``nan`` before the first radar update."""
        return self._nis_radar

    @property
    def cycle(self) -> int:
        """Number of successful updates."""
        return self._cycle

    # ── Dispatch ─────────────────────────────────────────────────────────

    def process_measurement(self, measurement: Measurement) -> bool:
        """Feed one measurement into the filter.

        Args:
            measurement: Latest lidar or radar measurement. Timestamps must
                not decrease between calls.

        Returns:
            bool: ``True`` if the measurement changed the filter state
                (initialization or a committed prediction), ``False`` if it
                was ignored or the prediction failed.
        """
        sensor_type = measurement.sensor_type
        if not self._config.enabled(sensor_type):
            logger.debug("Ignoring %s measurement: sensor disabled", sensor_type.value)
            return False

        if self._status is FilterStatus.UNINITIALIZED:
            self._initialize(measurement)
            return True

        dt = (measurement.timestamp - self._time_us) * US2S
        if dt < 0.0:
            logger.warning(
                "Measurement timestamp %d precedes filter time %d; "
                "clamping dt to 0 and keeping the filter time",
                measurement.timestamp,
                self._time_us,
            )
            dt = 0.0

        if not self.prediction(dt):
            return False
        self._time_us = max(self._time_us, measurement.timestamp)

        if sensor_type is SensorType.LIDAR:
            self.update_lidar(measurement)
        else:
            self.update_radar(measurement)
        return True

    def _initialize(self, measurement: Measurement) -> None:
        cfg = self._config
        if measurement.sensor_type is SensorType.LIDAR:
            state = lidar_initial_state(
                measurement.values,
                cfg.std_laspx,
                cfg.std_laspy,
                cfg.init_std_v,
                cfg.init_std_yaw,
                cfg.init_std_yawd,
            )
        else:
            state = radar_initial_state(
                measurement.values,
                cfg.std_radr,
                cfg.std_radphi,
                cfg.init_std_v,
                cfg.init_std_yaw,
                cfg.init_std_yawd,
            )

        self._state = state
        self._time_us = measurement.timestamp
        self._has_prediction = False
        self._status = FilterStatus.RUNNING
        logger.info(
            "Initialized from %s at t=%d us: px=%.3f py=%.3f",
            measurement.sensor_type.value,
            measurement.timestamp,
            float(state.x[0]),
            float(state.x[1]),
        )

    # ── Filter stages ────────────────────────────────────────────────────

    def prediction(self, delta_t: float) -> bool:
        """Predict sigma points, state and covariance ``delta_t`` seconds ahead.

        Args:
            delta_t: Elapsed time in seconds. Negative values are clamped
                to zero.

        A failed prediction leaves the state estimate in place but re-seeds
        the covariance with the initial uncertainty so that the next cycle can
        factorize it again. A non-finite estimate resets the tracker.

        Returns:
            bool: ``False`` if the prediction was numerically invalid.
        """
        if delta_t < 0.0:
            logger.warning("Negative prediction interval %.6f s clamped to 0", delta_t)
            delta_t = 0.0

        cfg = self._config
        result = _predict_jit(
            self._state,
            jnp.asarray(delta_t, dtype=get_dtype()),
            cfg.std_a,
            cfg.std_yawdd,
            lam=self._lam,
        )
        if not bool(result.valid):
            logger.warning(
                "Skipping prediction over %.6f s: covariance is not positive definite",
                delta_t,
            )
            self._recover_covariance()
            return False

        self._state = result.state
        self._sigma_points_pred = result.sigma_points
        self._has_prediction = True
        logger.debug("Predicted %.6f s ahead", delta_t)
        return True

    def _recover_covariance(self) -> None:
        if not bool(jnp.all(jnp.isfinite(self._state.x))):
            logger.warning("State estimate is not finite; resetting the tracker")
            self.reset()
            return

        cfg = self._config
        std = jnp.array(
            [cfg.std_laspx, cfg.std_laspy, cfg.init_std_v, cfg.init_std_yaw, cfg.init_std_yawd],
            dtype=get_dtype(),
        )
        self._state = FilterState(x=self._state.x, P=jnp.diag(std**2))
        logger.warning("Covariance re-seeded with the initial uncertainty")

    def update_lidar(self, measurement: Measurement) -> bool:
        """Correct the predicted state with a lidar measurement.

        Must follow :meth:`prediction`, whose sigma points it reuses; without
        a fresh prediction the update is skipped.

        Args:
            measurement: Lidar measurement.

        Returns:
            bool: ``False`` if the update was skipped.
        """
        result = self._update(measurement, LIDAR_MODEL, self._R_lidar)
        if result is None:
            return False
        self._nis_lidar = float(result.nis)
        self._record_nis()
        return True

    def update_radar(self, measurement: Measurement) -> bool:
        """Correct the predicted state with a radar measurement.

        A return whose range is below ``RANGE_EPS`` has no defined bearing;
        it is skipped and the prediction retained.

        Args:
            measurement: Radar measurement.

        Returns:
            bool: ``False`` if the update was skipped.
        """
        rho = float(measurement.values[0])
        if rho < RANGE_EPS:
            logger.warning(
                "Skipping radar update at t=%d us: range %.3g m is degenerate",
                measurement.timestamp,
                rho,
            )
            return False

        result = self._update(measurement, RADAR_MODEL, self._R_radar)
        if result is None:
            return False
        self._nis_radar = float(result.nis)
        self._record_nis()
        return True

    def _update(
        self,
        measurement: Measurement,
        model: MeasurementModel,
        R: Array,
    ) -> UpdateResult | None:
        if not self._has_prediction:
            logger.warning(
                "Skipping %s update at t=%d us: no prediction since the last update",
                model.name,
                measurement.timestamp,
            )
            return None

        z = jnp.asarray(measurement.values, dtype=get_dtype())
        result = _update_jit(
            self._state,
            self._sigma_points_pred,
            self._weights,
            z,
            R,
            model=model,
        )
        if not bool(result.valid):
            logger.warning(
                "Skipping %s update at t=%d us: innovation covariance is singular",
                model.name,
                measurement.timestamp,
            )
            return None

        self._state = result.state
        self._has_prediction = False
        self._cycle += 1
        logger.debug("%s update %d: NIS=%.4f", model.name, self._cycle, float(result.nis))
        return result

    def _record_nis(self) -> None:
        if self._nis_log is not None:
            self._nis_log.append(self._cycle, self._nis_lidar, self._nis_radar)
