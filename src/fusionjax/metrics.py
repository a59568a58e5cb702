"""Post-hoc accuracy and consistency statistics.

These functions compare tracker output against ground truth or against
the chi-squared reference distribution of the NIS. They are not used
inside the filter loop.
"""

from __future__ import annotations

import jax.numpy as jnp
from jax import Array
from jax.typing import ArrayLike

from fusionjax.config import get_dtype
from fusionjax.constants import CHI2_95


def state_to_cartesian(x: ArrayLike) -> Array:
    """Convert CTRV states to ``[px, py, vx, vy]``.

    Args:
        x: State ``[px, py, v, yaw, yaw_rate]`` of shape ``(5,)`` or a batch
            of shape ``(N, 5)``.

    Returns:
        jax.Array: Cartesian position and velocity, shape ``(4,)`` or
            ``(N, 4)``.
    """
    dtype = get_dtype()
    x = jnp.asarray(x, dtype=dtype)
    v = x[..., 2]
    yaw = x[..., 3]
    return jnp.stack([x[..., 0], x[..., 1], v * jnp.cos(yaw), v * jnp.sin(yaw)], axis=-1)


def rmse(estimations: ArrayLike, ground_truth: ArrayLike) -> Array:
    """Root mean square error per component.

    Args:
        estimations: Estimates of shape ``(N, k)``.
        ground_truth: True values of shape ``(N, k)``.

    Returns:
        jax.Array: RMSE of shape ``(k,)``.

    Raises:
        ValueError: If the inputs are empty or their shapes differ.

    Examples:
        ```python
        import jax.numpy as jnp
        from fusionjax.metrics import rmse

        rmse(jnp.array([[1.0, 2.0]]), jnp.array([[1.0, 4.0]]))  # [0.0, 2.0]
        ```
    """
    dtype = get_dtype()
    est = jnp.atleast_2d(jnp.asarray(estimations, dtype=dtype))
    gt = jnp.atleast_2d(jnp.asarray(ground_truth, dtype=dtype))
    if est.size == 0 or gt.size == 0:
        raise ValueError("rmse requires at least one estimation")
    if est.shape != gt.shape:
        raise ValueError(
            f"estimations and ground truth shapes differ: {est.shape} vs {gt.shape}"
        )
    return jnp.sqrt(jnp.mean((est - gt) ** 2, axis=0))


def mean_nis(nis_values: ArrayLike) -> float:
    """Mean of a NIS series, ignoring ``nan`` entries.

    For a consistent filter this approaches the measurement dimension.

    Args:
        nis_values: NIS samples.

    Returns:
        float: Mean NIS, ``nan`` if there are no finite samples.
    """
    values = jnp.asarray(nis_values, dtype=get_dtype())
    return float(jnp.nanmean(values)) if values.size else float("nan")


def nis_exceedance(nis_values: ArrayLike, dof: int) -> float:
    """Fraction of NIS samples above the 95% chi-squared threshold.

    A consistent filter exceeds the threshold about 5% of the time. A much
    larger fraction means the filter is overconfident, a much smaller one
    that the noise is overestimated.

    Args:
        nis_values: NIS samples. ``nan`` entries are dropped.
        dof: Degrees of freedom, i.e. the measurement dimension.

    Returns:
        float: Fraction in ``[0, 1]``.

    Raises:
        ValueError: If no threshold is tabulated for ``dof`` or there are
            no finite samples.
    """
    if dof not in CHI2_95:
        raise ValueError(f"No chi-squared threshold for dof={dof}; known: {sorted(CHI2_95)}")
    values = jnp.asarray(nis_values, dtype=get_dtype())
    values = values[jnp.isfinite(values)]
    if values.size == 0:
        raise ValueError("nis_exceedance requires at least one finite NIS value")
    return float(jnp.mean(values > CHI2_95[dof]))
