"""Sensor measurement models for the tracker.

Provides measurement functions, noise covariance constructors and
single-measurement initializers for each supported sensor. Each sensor
type is implemented in its own sub-module.

Available sensor models:

- :data:`LIDAR_MODEL` / :func:`lidar_measurement` -- Cartesian position
- :func:`lidar_measurement_noise` -- lidar noise covariance
- :func:`lidar_initial_state` -- seed the filter from a lidar fix
- :data:`RADAR_MODEL` / :func:`radar_measurement` -- range, bearing, range rate
- :func:`radar_measurement_noise` -- radar noise covariance
- :func:`radar_initial_state` -- seed the filter from a radar return

The ``*_MODEL`` objects are passed to
:func:`~fusionjax.estimation.project_measurement`.
"""

from fusionjax.sensors.lidar import (
    LIDAR_MODEL,
    lidar_initial_state,
    lidar_measurement,
    lidar_measurement_noise,
)
from fusionjax.sensors.radar import (
    RADAR_MODEL,
    radar_initial_state,
    radar_measurement,
    radar_measurement_noise,
)

__all__ = [
    "LIDAR_MODEL",
    "lidar_measurement",
    "lidar_measurement_noise",
    "lidar_initial_state",
    "RADAR_MODEL",
    "radar_measurement",
    "radar_measurement_noise",
    "radar_initial_state",
]
