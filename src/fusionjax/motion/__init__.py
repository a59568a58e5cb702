"""Process models for target motion.

Available components:

- :func:`ctrv_transition` -- CTRV step for one augmented sigma point
- :func:`ctrv_propagate` -- CTRV step for a batch of sigma points (``jax.vmap``)
"""

from fusionjax.motion.ctrv import ctrv_propagate, ctrv_transition

__all__ = [
    "ctrv_transition",
    "ctrv_propagate",
]
