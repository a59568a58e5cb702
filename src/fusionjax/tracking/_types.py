"""Configuration and state types for the tracker.

Provides :class:`TrackerConfig` for the fixed filter parameters and
:class:`FilterStatus` for the two-state lifecycle. Configuration is
validated once at construction; an invalid value raises ``ValueError``
before any filtering happens.
"""

from __future__ import annotations

import enum
import math
from dataclasses import dataclass

from fusionjax.constants import N_AUG
from fusionjax.estimation.sigma_points import default_lambda
from fusionjax.measurement import SensorType


class FilterStatus(enum.Enum):
    """Lifecycle of the tracker.

    Attributes:
        UNINITIALIZED: No enabled measurement has been received yet.
        RUNNING: State has been seeded; every enabled measurement runs a
            prediction and an update.
    """

    UNINITIALIZED = "uninitialized"
    RUNNING = "running"


def _check_positive(name: str, value: float) -> None:
    if not math.isfinite(value) or value <= 0.0:
        raise ValueError(f"{name} must be a finite value > 0, got {value}")


def _check_non_negative(name: str, value: float) -> None:
    if not math.isfinite(value) or value < 0.0:
        raise ValueError(f"{name} must be a finite value >= 0, got {value}")


@dataclass(frozen=True)
class TrackerConfig:
    """Fixed parameters of an :class:`~fusionjax.tracking.UnscentedTracker`.

    Defaults are tuned for a bicycle-like target observed by an automotive
    lidar and radar.

    Args:
        use_laser: Process lidar measurements. When ``False`` they are
            ignored entirely, including for initialization.
        use_radar: Process radar measurements. When ``False`` they are
            ignored entirely, including for initialization.
        std_a: Process noise, longitudinal acceleration [m/s^2].
        std_yawdd: Process noise, yaw acceleration [rad/s^2].
        std_laspx: Lidar noise, x position [m].
        std_laspy: Lidar noise, y position [m].
        std_radr: Radar noise, range [m].
        std_radphi: Radar noise, bearing [rad].
        std_radrd: Radar noise, range rate [m/s].
        lam: Sigma point spreading parameter. ``None`` selects
            ``3 - n_aug``.
        init_std_v: Initial speed standard deviation [m/s].
        init_std_yaw: Initial heading standard deviation [rad].
        init_std_yawd: Initial turn rate standard deviation [rad/s].

    Examples:
        ```python
        from fusionjax.tracking import TrackerConfig
        config = TrackerConfig(use_radar=False)
        config.spreading  # -4.0
        ```
    """

    # Sensor toggles
    use_laser: bool = True
    use_radar: bool = True

    # Process noise
    std_a: float = 1.5
    std_yawdd: float = 0.5

    # Measurement noise
    std_laspx: float = 0.15
    std_laspy: float = 0.15
    std_radr: float = 0.3
    std_radphi: float = 0.03
    std_radrd: float = 0.3

    # Sigma points
    lam: float | None = None

    # Initial uncertainty of the unobserved components
    init_std_v: float = 2.0
    init_std_yaw: float = 1.0
    init_std_yawd: float = 0.5

    def __post_init__(self) -> None:
        _check_non_negative("std_a", self.std_a)
        _check_non_negative("std_yawdd", self.std_yawdd)
        for name in (
            "std_laspx",
            "std_laspy",
            "std_radr",
            "std_radphi",
            "std_radrd",
            "init_std_v",
            "init_std_yaw",
            "init_std_yawd",
        ):
            _check_positive(name, getattr(self, name))
        if self.lam is not None and (not math.isfinite(self.lam) or self.lam + N_AUG <= 0.0):
            raise ValueError(f"lam + n_aug must be > 0, got lam={self.lam}, n_aug={N_AUG}")

    @property
    def spreading(self) -> float:
        """Effective spreading parameter ``lam``."""
        return default_lambda(N_AUG) if self.lam is None else float(self.lam)

    def enabled(self, sensor_type: SensorType) -> bool:
        """Return whether measurements from ``sensor_type`` are processed.

        Args:
            sensor_type: A :class:`~fusionjax.measurement.SensorType`.

        Returns:
            bool: ``use_laser`` for lidar, ``use_radar`` for radar.
        """
        if SensorType(sensor_type) is SensorType.LIDAR:
            return self.use_laser
        return self.use_radar
