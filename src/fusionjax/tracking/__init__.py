"""Lidar/radar target tracking.

Available components:

- :class:`TrackerConfig` -- Sensor toggles, noise levels, sigma point spread
- :class:`FilterStatus` -- ``UNINITIALIZED`` / ``RUNNING`` lifecycle
- :class:`UnscentedTracker` -- Per-measurement dispatch over the UKF kernels
- :class:`NISLog` -- Per-cycle NIS sink (in memory, optionally to a file)
- :func:`read_nis_log` -- Read a NIS log file back
"""

from fusionjax.tracking._types import FilterStatus, TrackerConfig
from fusionjax.tracking.nis_log import NISLog, NISRecord, read_nis_log
from fusionjax.tracking.tracker import UnscentedTracker

__all__ = [
    "TrackerConfig",
    "FilterStatus",
    "UnscentedTracker",
    "NISLog",
    "NISRecord",
    "read_nis_log",
]
