"""
fusionjax is a minimal lidar/radar sensor fusion library built on an unscented Kalman filter implemented in JAX.
"""

from .constants import (
    N_X,
    N_AUG,
    N_SIGMA,
    N_LIDAR,
    N_RADAR,
    YAW_RATE_EPS,
    RANGE_EPS,
    CHI2_95,
)

from .config import set_dtype, get_dtype
from .utils import wrap_angle
from .measurement import Measurement, SensorType

from .estimation import (
    FilterState,
    MeasurementModel,
    augmented_sigma_points,
    sigma_point_weights,
    recover_mean_covariance,
    ukf_predict,
    project_measurement,
    ukf_correct,
)

from .motion import ctrv_transition, ctrv_propagate

from .sensors import (
    LIDAR_MODEL,
    RADAR_MODEL,
    lidar_measurement,
    lidar_measurement_noise,
    radar_measurement,
    radar_measurement_noise,
)

from .tracking import (
    TrackerConfig,
    FilterStatus,
    UnscentedTracker,
    NISLog,
)

from .metrics import rmse, state_to_cartesian, mean_nis, nis_exceedance

__all__ = [
    # Constants
    "N_X",
    "N_AUG",
    "N_SIGMA",
    "N_LIDAR",
    "N_RADAR",
    "YAW_RATE_EPS",
    "RANGE_EPS",
    "CHI2_95",
    # Config
    "set_dtype",
    "get_dtype",
    # Utils
    "wrap_angle",
    # Measurements
    "Measurement",
    "SensorType",
    # Estimation
    "FilterState",
    "MeasurementModel",
    "augmented_sigma_points",
    "sigma_point_weights",
    "recover_mean_covariance",
    "ukf_predict",
    "project_measurement",
    "ukf_correct",
    # Motion
    "ctrv_transition",
    "ctrv_propagate",
    # Sensors
    "LIDAR_MODEL",
    "RADAR_MODEL",
    "lidar_measurement",
    "lidar_measurement_noise",
    "radar_measurement",
    "radar_measurement_noise",
    # Tracking
    "TrackerConfig",
    "FilterStatus",
    "UnscentedTracker",
    "NISLog",
    # Metrics
    "rmse",
    "state_to_cartesian",
    "mean_nis",
    "nis_exceedance",
]
