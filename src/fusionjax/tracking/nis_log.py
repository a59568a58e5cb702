"""Append-only sink for per-cycle NIS values.

Each update cycle produces one record ``(cycle, nis_lidar, nis_radar)``
holding the latest value of both sensors. Records are kept in memory and,
when a path is given, appended to a whitespace-separated text file::

    1 0.84210 nan
    2 0.84210 2.91004

``nan`` marks a sensor that has not produced a value yet.
"""

from __future__ import annotations

import logging
import math
from pathlib import Path
from typing import NamedTuple, TextIO

logger = logging.getLogger(__name__)


class NISRecord(NamedTuple):
    """One logged update cycle.

    Attributes:
        cycle: 1-based update counter.
        nis_lidar: Latest lidar NIS, ``nan`` if none yet.
        nis_radar: Latest radar NIS, ``nan`` if none yet.
    """

    cycle: int
    nis_lidar: float
    nis_radar: float


class NISLog:
    """Collect NIS values and optionally mirror them to a file.

    Args:
        filepath: Optional output file. Parent directories are created. An
            existing file is truncated when the log is opened.

    Examples:
        ```python
        from fusionjax.tracking import NISLog, UnscentedTracker

        with NISLog("nis.txt") as log:
            tracker = UnscentedTracker(nis_log=log)
            for m in measurements:
                tracker.process_measurement(m)
        ```
    """

    def __init__(self, filepath: str | Path | None = None) -> None:
        self._filepath = Path(filepath) if filepath is not None else None
        self._fh: TextIO | None = None
        self._records: list[NISRecord] = []

    @property
    def filepath(self) -> Path | None:
        """Output file, or ``None`` for an in-memory log."""
        return self._filepath

    @property
    def records(self) -> list[NISRecord]:
        """Copy of every record appended so far."""
        return list(self._records)

    def open(self) -> NISLog:
        """Open the output file for writing. No-op for in-memory logs."""
        if self._filepath is not None and self._fh is None:
            self._filepath.parent.mkdir(parents=True, exist_ok=True)
            self._fh = open(self._filepath, "w", encoding="utf-8")
            logger.info("Writing NIS values to %s", self._filepath)
        return self

    def close(self) -> None:
        """Flush and close the output file."""
        if self._fh is not None:
            self._fh.close()
            self._fh = None

    def __enter__(self) -> NISLog:
        return self.open()

    def __exit__(self, *exc) -> None:
        self.close()

    def append(self, cycle: int, nis_lidar: float, nis_radar: float) -> NISRecord:
        """Record the NIS values of one update cycle.

        The file is opened lazily on first append if :meth:`open` was not
        called, and flushed after every line so that it is complete even if
        the log is never closed.

        Args:
            cycle: Update counter.
            nis_lidar: Latest lidar NIS.
            nis_radar: Latest radar NIS.

        Returns:
            NISRecord: The stored record.
        """
        record = NISRecord(int(cycle), float(nis_lidar), float(nis_radar))
        self._records.append(record)
        if self._filepath is not None:
            self.open()
            self._fh.write(
                f"{record.cycle} {_fmt(record.nis_lidar)} {_fmt(record.nis_radar)}\n"
            )
            self._fh.flush()
        return record

    def __len__(self) -> int:
        return len(self._records)


def _fmt(value: float) -> str:
    return "nan" if math.isnan(value) else f"{value:.5f}"


def read_nis_log(filepath: str | Path) -> list[NISRecord]:
    """Read a file written by :class:`NISLog`.

    Args:
        filepath: Path to the log file.

    Returns:
        list[NISRecord]: Records in file order.

    Raises:
        FileNotFoundError: If *filepath* does not exist.
        ValueError: If a line does not hold three fields.
    """
    filepath = Path(filepath)
    if not filepath.exists():
        raise FileNotFoundError(f"No such file: '{filepath}'")

    records = []
    with open(filepath, encoding="utf-8") as f:
        for lineno, line in enumerate(f, start=1):
            fields = line.split()
            if not fields:
                continue
            if len(fields) != 3:
                raise ValueError(
                    f"{filepath}:{lineno}: expected 3 fields, got {len(fields)}"
                )
            records.append(NISRecord(int(fields[0]), float(fields[1]), float(fields[2])))
    return records
