"""Shared utility functions for fusionjax.

Provides angle wrapping used by every residual computation in the filter.
"""

from fusionjax.utils._angle import wrap_angle, wrap_component

__all__ = [
    "wrap_angle",
    "wrap_component",
]
