"""Tests for the fusionjax.metrics module."""

import jax.numpy as jnp
import pytest

from fusionjax.metrics import mean_nis, nis_exceedance, rmse, state_to_cartesian


class TestRMSE:
    def test_known_values(self):
        est = jnp.array([[1.0, 2.0], [3.0, 4.0]])
        gt = jnp.array([[1.0, 4.0], [3.0, 2.0]])
        assert jnp.allclose(rmse(est, gt), jnp.array([0.0, 2.0]))

    def test_single_row(self):
        assert jnp.allclose(rmse(jnp.array([1.0, 2.0]), jnp.array([2.0, 2.0])), jnp.array([1.0, 0.0]))

    def test_perfect_estimate(self):
        x = jnp.ones((10, 4))
        assert jnp.allclose(rmse(x, x), 0.0)

    def test_shape_mismatch_raises(self):
        with pytest.raises(ValueError, match="shapes differ"):
            rmse(jnp.ones((3, 4)), jnp.ones((2, 4)))

    def test_empty_raises(self):
        with pytest.raises(ValueError, match="at least one"):
            rmse(jnp.zeros((0, 4)), jnp.zeros((0, 4)))


class TestStateToCartesian:
    def test_single(self):
        out = state_to_cartesian(jnp.array([1.0, 2.0, 2.0, jnp.pi / 2, 0.3]))
        assert jnp.allclose(out, jnp.array([1.0, 2.0, 0.0, 2.0]), atol=1e-12)

    def test_batch(self):
        x = jnp.array([[0.0, 0.0, 1.0, 0.0, 0.0], [1.0, 1.0, 2.0, jnp.pi, 0.0]])
        out = state_to_cartesian(x)
        assert out.shape == (2, 4)
        assert jnp.allclose(out[1], jnp.array([1.0, 1.0, -2.0, 0.0]), atol=1e-12)


class TestNISStatistics:
    def test_mean_ignores_nan(self):
        assert mean_nis(jnp.array([1.0, jnp.nan, 3.0])) == pytest.approx(2.0)

    def test_mean_empty_is_nan(self):
        assert jnp.isnan(mean_nis(jnp.array([])))

    def test_exceedance_lidar(self):
        # 5.991 is the 95% threshold for 2 dof
        assert nis_exceedance(jnp.array([1.0, 10.0, 2.0, 8.0]), 2) == pytest.approx(0.5)

    def test_exceedance_radar(self):
        # 7.815 is the 95% threshold for 3 dof
        assert nis_exceedance(jnp.array([1.0, 7.0, 8.0, 2.0, jnp.nan]), 3) == pytest.approx(0.25)

    def test_unknown_dof_raises(self):
        with pytest.raises(ValueError, match="No chi-squared threshold"):
            nis_exceedance(jnp.array([1.0]), 12)

    def test_no_finite_values_raises(self):
        with pytest.raises(ValueError, match="at least one finite"):
            nis_exceedance(jnp.array([jnp.nan]), 2)
