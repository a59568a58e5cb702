"""Angle helpers.

Heading and bearing residuals must be wrapped before they enter any
covariance, innovation, or state update. :func:`wrap_angle` is the single
place this is done.
"""

from __future__ import annotations

import jax.numpy as jnp
from jax import Array
from jax.typing import ArrayLike

from fusionjax.constants import TWO_PI


def wrap_angle(angle: ArrayLike) -> Array:
    """Wrap an angle into the half-open interval ``(-pi, pi]``.

    Works elementwise on arrays and is JAX-traceable. ``-pi`` maps to
    ``pi``.

    Args:
        angle (ArrayLike): Angle in radians.

    Returns:
        Angle in radians within ``(-pi, pi]``.

    Examples:
        ```python
        from fusionjax.utils import wrap_angle
        wrap_angle(3.5)  # 3.5 - 2*pi
        ```
    """
    angle = jnp.asarray(angle)
    wrapped = jnp.pi - jnp.mod(jnp.pi - angle, TWO_PI)
    # mod can round up to a full turn for inputs just above pi
    return jnp.where(wrapped <= -jnp.pi, wrapped + TWO_PI, wrapped)


def wrap_component(vector: ArrayLike, index: int | None) -> Array:
    """Wrap a single angular component of a vector (or batch of vectors).

    Args:
        vector (ArrayLike): Array whose last axis holds the components.
        index (int | None): Component to wrap. ``None`` returns the input
            unchanged.

    Returns:
        Array with component ``index`` wrapped to ``(-pi, pi]``.
    """
    vector = jnp.asarray(vector)
    if index is None:
        return vector
    return vector.at[..., index].set(wrap_angle(vector[..., index]))
