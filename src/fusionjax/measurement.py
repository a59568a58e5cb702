"""Measurement value types consumed by the tracker.

Provides:

- :class:`SensorType`: Tag identifying which sensor produced a measurement.
- :class:`Measurement`: Timestamped raw measurement vector.

The tracker only reads measurements; parsing them from files or network
feeds is left to the caller.
"""

from __future__ import annotations

import enum
from typing import NamedTuple

import jax.numpy as jnp
from jax import Array
from jax.typing import ArrayLike

from fusionjax.config import get_dtype
from fusionjax.constants import N_LIDAR, N_RADAR


class SensorType(enum.Enum):
    """Sensor that produced a measurement.

    Attributes:
        LIDAR: Cartesian position ``[px, py]`` in meters.
        RADAR: Polar ``[rho, phi, rho_dot]`` in meters, radians and m/s.
    """

    LIDAR = "lidar"
    RADAR = "radar"

    @property
    def dim(self) -> int:
        """Length of the raw measurement vector for this sensor."""
        return N_LIDAR if self is SensorType.LIDAR else N_RADAR


class Measurement(NamedTuple):
    """A single timestamped sensor measurement.

    Use :meth:`create` to build a validated instance from plain Python
    values.

    Attributes:
        timestamp: Measurement time in integer microseconds. Must be
            non-decreasing across calls into the tracker.
        sensor_type: :class:`SensorType` of the producing sensor.
        values: Raw measurement vector of shape ``(2,)`` for lidar or
            ``(3,)`` for radar.
    """

    timestamp: int
    sensor_type: SensorType
    values: Array

    @classmethod
    def create(
        cls,
        timestamp: int,
        sensor_type: SensorType,
        values: ArrayLike,
    ) -> Measurement:
        """Build a measurement, checking the vector length against the sensor.

        Args:
            timestamp: Measurement time in microseconds.
            sensor_type: Producing sensor.
            values: Raw measurement values.

        Returns:
            Measurement: Validated measurement with ``values`` cast to the
                configured dtype.

        Raises:
            ValueError: If ``values`` does not have the sensor's dimension.

        Examples:
            ```python
            from fusionjax.measurement import Measurement, SensorType
            m = Measurement.create(1477010443000000, SensorType.LIDAR, [0.31, 0.58])
            ```
        """
        sensor_type = SensorType(sensor_type)
        values = jnp.asarray(values, dtype=get_dtype()).reshape(-1)
        if values.shape[0] != sensor_type.dim:
            raise ValueError(
                f"{sensor_type.value} measurement requires {sensor_type.dim} values, "
                f"got {values.shape[0]}"
            )
        return cls(timestamp=int(timestamp), sensor_type=sensor_type, values=values)

    @classmethod
    def lidar(cls, timestamp: int, px: float, py: float) -> Measurement:
        """Shorthand for a lidar measurement at ``(px, py)``."""
        return cls.create(timestamp, SensorType.LIDAR, [px, py])

    @classmethod
    def radar(cls, timestamp: int, rho: float, phi: float, rho_dot: float) -> Measurement:
        """Shorthand for a radar measurement ``(rho, phi, rho_dot)``."""
        return cls.create(timestamp, SensorType.RADAR, [rho, phi, rho_dot])
