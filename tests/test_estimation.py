"""Tests for the fusionjax.estimation UKF stages.

Tests cover:
- FilterState, MeasurementModel, result type construction and access
- Mean/covariance recovery, including headings across the +/-pi cut
- Prediction: symmetry, zero-time identity, straight-line kinematics
- Measurement projection for lidar and radar
- Correction: agreement with the linear Kalman filter, NIS, bearing
  wrapping, singular innovation covariance
- PSD enforcement
- JIT compatibility
"""

import jax
import jax.numpy as jnp
import pytest

from fusionjax.constants import N_AUG, N_SIGMA, YAW_INDEX
from fusionjax.estimation import (
    FilterState,
    MeasurementModel,
    MeasurementPrediction,
    ensure_psd,
    project_measurement,
    recover_mean_covariance,
    sigma_point_weights,
    ukf_correct,
    ukf_predict,
)
from fusionjax.sensors import (
    LIDAR_MODEL,
    RADAR_MODEL,
    lidar_measurement_noise,
    radar_measurement,
    radar_measurement_noise,
)

LAM = 3.0 - N_AUG

# ──────────────────────────────────────────────
# Helper functions
# ──────────────────────────────────────────────


def _state(x=None, P=None):
    if x is None:
        x = jnp.array([5.0, 2.0, 3.0, 0.4, 0.1])
    if P is None:
        P = jnp.diag(jnp.array([0.1, 0.2, 0.5, 0.05, 0.02]))
    return FilterState(x=jnp.asarray(x), P=jnp.asarray(P))


def _predict_zero_dt(fs):
    """Prediction with dt = 0: sigma points sample the prior unchanged."""
    return ukf_predict(fs, 0.0, 0.0, 0.0, LAM)


def _weights():
    return sigma_point_weights(N_AUG, LAM)


# ──────────────────────────────────────────────
# Type tests
# ──────────────────────────────────────────────


class TestTypes:
    def test_filter_state(self):
        fs = _state()
        assert fs.x.shape == (5,)
        assert fs.P.shape == (5, 5)

    def test_measurement_model_is_hashable(self):
        """Models are used as static jit arguments."""
        assert hash(LIDAR_MODEL) != hash(RADAR_MODEL)
        assert LIDAR_MODEL.dim == 2
        assert LIDAR_MODEL.angle_index is None
        assert RADAR_MODEL.dim == 3
        assert RADAR_MODEL.angle_index == 1

    def test_custom_model(self):
        model = MeasurementModel(name="speed", fn=lambda x: x[2:3], dim=1)
        assert model.angle_index is None


# ──────────────────────────────────────────────
# Mean / covariance recovery
# ──────────────────────────────────────────────


class TestRecoverMeanCovariance:
    def test_equal_weights(self):
        pts = jnp.array([[1.0, 0.0], [3.0, 2.0]])
        mean, cov = recover_mean_covariance(pts, jnp.array([0.5, 0.5]))
        assert jnp.allclose(mean, jnp.array([2.0, 1.0]))
        assert jnp.allclose(cov, jnp.array([[1.0, 1.0], [1.0, 1.0]]))

    def test_angle_across_cut(self):
        """Angles on both sides of +/-pi average to pi, not to zero."""
        pts = jnp.array([[jnp.pi - 0.1], [-jnp.pi + 0.1]])
        mean, cov = recover_mean_covariance(pts, jnp.array([0.5, 0.5]), angle_index=0)
        assert abs(float(jnp.cos(mean[0])) + 1.0) < 1e-12
        assert float(cov[0, 0]) == pytest.approx(0.01, abs=1e-12)

    def test_without_angle_index_cut_corrupts(self):
        """Plain averaging across the cut gives the wrong answer."""
        pts = jnp.array([[jnp.pi - 0.1], [-jnp.pi + 0.1]])
        mean, cov = recover_mean_covariance(pts, jnp.array([0.5, 0.5]))
        assert float(mean[0]) == pytest.approx(0.0, abs=1e-12)
        assert float(cov[0, 0]) > 9.0

    def test_mean_angle_wrapped(self):
        pts = jnp.array([[4.0], [4.2]])
        mean, _ = recover_mean_covariance(pts, jnp.array([0.5, 0.5]), angle_index=0)
        assert float(mean[0]) == pytest.approx(4.1 - 2 * jnp.pi, abs=1e-12)

    def test_symmetric(self):
        key = jax.random.PRNGKey(3)
        pts = jax.random.normal(key, (N_SIGMA, 5))
        _, cov = recover_mean_covariance(pts, _weights(), YAW_INDEX)
        assert jnp.allclose(cov, cov.T, atol=1e-14)


# ──────────────────────────────────────────────
# Prediction
# ──────────────────────────────────────────────


class TestUKFPredict:
    def test_shapes_and_validity(self):
        result = ukf_predict(_state(), 0.1, 1.5, 0.5, LAM)
        assert result.state.x.shape == (5,)
        assert result.state.P.shape == (5, 5)
        assert result.sigma_points.shape == (N_SIGMA, 5)
        assert bool(result.valid)

    def test_zero_dt_keeps_state(self):
        fs = _state()
        result = _predict_zero_dt(fs)
        assert jnp.allclose(result.state.x, fs.x, atol=1e-10)
        assert jnp.allclose(result.state.P, fs.P, atol=1e-10)

    def test_covariance_symmetric(self):
        result = ukf_predict(_state(), 0.1, 1.5, 0.5, LAM)
        assert jnp.allclose(result.state.P, result.state.P.T, atol=1e-14)

    def test_covariance_psd(self):
        result = ukf_predict(_state(), 0.5, 1.5, 0.5, LAM)
        assert float(jnp.min(jnp.linalg.eigvalsh(result.state.P))) >= -1e-12

    def test_process_noise_grows_uncertainty(self):
        quiet = ukf_predict(_state(), 0.5, 0.0, 0.0, LAM)
        noisy = ukf_predict(_state(), 0.5, 2.0, 1.0, LAM)
        assert float(noisy.state.P[2, 2]) > float(quiet.state.P[2, 2])
        assert float(noisy.state.P[4, 4]) > float(quiet.state.P[4, 4])

    def test_straight_line_without_noise(self):
        """Zero process noise and zero turn rate reproduce exact kinematics."""
        x0 = jnp.array([1.0, -2.0, 2.0, 0.3, 0.0])
        fs = FilterState(x=x0, P=jnp.eye(5) * 1e-10)
        dt = 0.1
        for k in range(1, 21):
            fs = ukf_predict(fs, dt, 0.0, 0.0, LAM).state
            t = k * dt
            expected = jnp.array(
                [1.0 + 2.0 * t * jnp.cos(0.3), -2.0 + 2.0 * t * jnp.sin(0.3), 2.0, 0.3, 0.0]
            )
            assert jnp.allclose(fs.x, expected, atol=1e-8)

    def test_heading_wrapped(self):
        fs = _state(x=jnp.array([0.0, 0.0, 1.0, 3.1, 1.0]), P=jnp.eye(5) * 1e-4)
        result = ukf_predict(fs, 0.2, 0.1, 0.1, LAM)
        yaw = float(result.state.x[YAW_INDEX])
        assert -jnp.pi < yaw <= jnp.pi
        assert yaw == pytest.approx(3.3 - 2 * jnp.pi, abs=1e-3)

    def test_invalid_covariance_flagged(self):
        fs = _state(P=-jnp.eye(5))
        result = ukf_predict(fs, 0.1, 1.5, 0.5, LAM)
        assert not bool(result.valid)


# ──────────────────────────────────────────────
# Measurement projection
# ──────────────────────────────────────────────


class TestProjectMeasurement:
    def test_lidar_linear_moments(self):
        """For the linear lidar model the projection is exact."""
        fs = _state()
        pred = _predict_zero_dt(fs)
        R = lidar_measurement_noise(0.15, 0.15)

        mp = project_measurement(pred.sigma_points, pred.state.x, _weights(), LIDAR_MODEL, R)

        assert mp.sigma_points.shape == (N_SIGMA, 2)
        assert jnp.allclose(mp.z_pred, fs.x[:2], atol=1e-10)
        assert jnp.allclose(mp.S, fs.P[:2, :2] + R, atol=1e-10)
        assert jnp.allclose(mp.Pxz, fs.P[:, :2], atol=1e-10)

    def test_noise_added_once(self):
        pred = _predict_zero_dt(_state())
        R = lidar_measurement_noise(1.0, 2.0)
        without = project_measurement(
            pred.sigma_points, pred.state.x, _weights(), LIDAR_MODEL, jnp.zeros((2, 2))
        )
        with_noise = project_measurement(pred.sigma_points, pred.state.x, _weights(), LIDAR_MODEL, R)
        assert jnp.allclose(with_noise.S - without.S, R, atol=1e-12)

    def test_radar_shapes(self):
        pred = ukf_predict(_state(), 0.1, 1.5, 0.5, LAM)
        R = radar_measurement_noise(0.3, 0.03, 0.3)
        mp = project_measurement(pred.sigma_points, pred.state.x, _weights(), RADAR_MODEL, R)
        assert mp.sigma_points.shape == (N_SIGMA, 3)
        assert mp.z_pred.shape == (3,)
        assert mp.S.shape == (3, 3)
        assert mp.Pxz.shape == (5, 3)
        assert jnp.allclose(mp.S, mp.S.T, atol=1e-14)

    def test_radar_mean_near_point_projection(self):
        """With a tight prior the predicted radar measurement is h(x)."""
        fs = _state(P=jnp.eye(5) * 1e-8)
        pred = _predict_zero_dt(fs)
        R = radar_measurement_noise(0.3, 0.03, 0.3)
        mp = project_measurement(pred.sigma_points, pred.state.x, _weights(), RADAR_MODEL, R)
        assert jnp.allclose(mp.z_pred, radar_measurement(fs.x), atol=1e-6)

    def test_radar_bearing_across_cut(self):
        """Bearings straddling +/-pi keep a small spread in S."""
        fs = _state(x=jnp.array([-5.0, 0.0, 1.0, 0.0, 0.0]), P=jnp.eye(5) * 1e-3)
        pred = _predict_zero_dt(fs)
        R = radar_measurement_noise(0.3, 0.03, 0.3)
        mp = project_measurement(pred.sigma_points, pred.state.x, _weights(), RADAR_MODEL, R)
        assert abs(float(jnp.cos(mp.z_pred[1])) + 1.0) < 1e-6
        assert float(mp.S[1, 1]) < 0.01

    def test_radar_at_origin_finite(self):
        fs = _state(x=jnp.zeros(5), P=jnp.eye(5) * 1e-12)
        pred = _predict_zero_dt(fs)
        R = radar_measurement_noise(0.3, 0.03, 0.3)
        mp = project_measurement(pred.sigma_points, pred.state.x, _weights(), RADAR_MODEL, R)
        assert jnp.all(jnp.isfinite(mp.z_pred))
        assert jnp.all(jnp.isfinite(mp.S))


# ──────────────────────────────────────────────
# Correction
# ──────────────────────────────────────────────


class TestUKFCorrect:
    def _lidar_update(self, fs, z, std=0.15):
        pred = _predict_zero_dt(fs)
        R = lidar_measurement_noise(std, std)
        mp = project_measurement(pred.sigma_points, pred.state.x, _weights(), LIDAR_MODEL, R)
        return pred.state, mp, R, ukf_correct(pred.state, z, mp, LIDAR_MODEL)

    def test_matches_linear_kalman_filter(self):
        """For the linear lidar model the update equals the textbook KF."""
        fs = _state()
        z = jnp.array([5.3, 1.8])
        prior, _, R, result = self._lidar_update(fs, z)

        H = jnp.zeros((2, 5)).at[0, 0].set(1.0).at[1, 1].set(1.0)
        S = H @ prior.P @ H.T + R
        K = prior.P @ H.T @ jnp.linalg.inv(S)
        x_expected = prior.x + K @ (z - H @ prior.x)
        P_expected = prior.P - K @ S @ K.T

        assert jnp.allclose(result.state.x, x_expected, atol=1e-9)
        assert jnp.allclose(result.state.P, P_expected, atol=1e-9)
        assert jnp.allclose(result.kalman_gain, K, atol=1e-9)
        assert bool(result.valid)

    def test_nis_value(self):
        fs = _state()
        z = jnp.array([5.3, 1.8])
        _, mp, _, result = self._lidar_update(fs, z)
        y = z - mp.z_pred
        expected = float(y @ jnp.linalg.inv(mp.S) @ y)
        assert float(result.nis) == pytest.approx(expected, rel=1e-9)
        assert float(result.nis) >= 0.0

    def test_zero_innovation(self):
        fs = _state()
        _, _, _, result = self._lidar_update(fs, fs.x[:2])
        assert float(result.nis) == pytest.approx(0.0, abs=1e-12)
        assert jnp.allclose(result.state.x, fs.x, atol=1e-10)

    def test_reduces_uncertainty(self):
        fs = _state()
        prior, _, _, result = self._lidar_update(fs, jnp.array([5.3, 1.8]))
        assert float(result.state.P[0, 0]) < float(prior.P[0, 0])
        assert float(result.state.P[1, 1]) < float(prior.P[1, 1])

    def test_state_moves_toward_measurement(self):
        fs = _state()
        _, _, _, result = self._lidar_update(fs, jnp.array([7.0, 2.0]))
        assert abs(float(result.state.x[0]) - 7.0) < abs(5.0 - 7.0)

    def test_covariance_symmetric_psd(self):
        fs = _state()
        _, _, _, result = self._lidar_update(fs, jnp.array([5.3, 1.8]))
        P = result.state.P
        assert jnp.max(jnp.abs(P - P.T)) < 1e-14
        assert float(jnp.min(jnp.linalg.eigvalsh(P))) >= -1e-12

    def test_radar_bearing_innovation_wrapped(self):
        """A measurement just across the cut yields a small innovation."""
        fs = _state(x=jnp.array([-5.0, 0.01, 1.0, 0.0, 0.0]), P=jnp.eye(5) * 1e-3)
        pred = _predict_zero_dt(fs)
        R = radar_measurement_noise(0.3, 0.03, 0.3)
        mp = project_measurement(pred.sigma_points, pred.state.x, _weights(), RADAR_MODEL, R)
        z = jnp.array([5.0, -jnp.pi + 0.002, -1.0])

        result = ukf_correct(pred.state, z, mp, RADAR_MODEL)

        assert abs(float(result.innovation[1])) < 0.05
        assert -jnp.pi < float(result.innovation[1]) <= jnp.pi
        assert bool(result.valid)
        assert float(result.nis) < 20.0

    def test_updated_heading_wrapped(self):
        fs = _state(x=jnp.array([1.0, 1.0, 2.0, jnp.pi - 1e-3, 0.0]))
        pred = _predict_zero_dt(fs)
        R = lidar_measurement_noise(0.15, 0.15)
        mp = project_measurement(pred.sigma_points, pred.state.x, _weights(), LIDAR_MODEL, R)
        result = ukf_correct(pred.state, jnp.array([0.5, 1.5]), mp, LIDAR_MODEL)
        yaw = float(result.state.x[YAW_INDEX])
        assert -jnp.pi < yaw <= jnp.pi

    def test_singular_innovation_covariance_flagged(self):
        fs = _state()
        mp = MeasurementPrediction(
            sigma_points=jnp.zeros((N_SIGMA, 2)),
            z_pred=jnp.zeros(2),
            S=jnp.array([[1.0, 1.0], [1.0, 1.0]]),
            Pxz=jnp.ones((5, 2)),
        )
        result = ukf_correct(fs, jnp.array([1.0, 0.0]), mp, LIDAR_MODEL)
        assert not bool(result.valid)

    def test_zero_innovation_covariance_flagged(self):
        fs = _state()
        mp = MeasurementPrediction(
            sigma_points=jnp.zeros((N_SIGMA, 2)),
            z_pred=jnp.zeros(2),
            S=jnp.zeros((2, 2)),
            Pxz=jnp.zeros((5, 2)),
        )
        result = ukf_correct(fs, jnp.array([1.0, 0.0]), mp, LIDAR_MODEL)
        assert not bool(result.valid)


# ──────────────────────────────────────────────
# PSD enforcement
# ──────────────────────────────────────────────


class TestEnsurePSD:
    def test_psd_matrix_unchanged(self):
        P = jnp.array([[2.0, 0.5], [0.5, 1.0]])
        assert jnp.allclose(ensure_psd(P), P, atol=1e-14)

    def test_asymmetry_removed(self):
        P = jnp.array([[2.0, 0.6], [0.4, 1.0]])
        out = ensure_psd(P)
        assert jnp.array_equal(out, out.T)
        assert float(out[0, 1]) == pytest.approx(0.5)

    def test_negative_eigenvalue_clipped(self):
        P = jnp.array([[1.0, 2.0], [2.0, 1.0]])  # eigenvalues 3 and -1
        out = ensure_psd(P)
        eig = jnp.linalg.eigvalsh(out)
        assert float(jnp.min(eig)) >= -1e-12
        assert float(jnp.max(eig)) == pytest.approx(3.0)


# ──────────────────────────────────────────────
# JAX compatibility tests
# ──────────────────────────────────────────────


class TestJAXCompatibility:
    def test_jit_ukf_predict(self):
        """ukf_predict is JIT-compilable."""
        fn = jax.jit(ukf_predict, static_argnames=("lam",))
        result = fn(_state(), 0.1, 1.5, 0.5, lam=LAM)
        assert jnp.all(jnp.isfinite(result.state.x))
        assert bool(result.valid)

    def test_jit_project_and_correct(self):
        """Projection and correction compile with a static measurement model."""

        def step(fs, sig, w, z, R, model):
            mp = project_measurement(sig, fs.x, w, model, R)
            return ukf_correct(fs, z, mp, model)

        fn = jax.jit(step, static_argnames=("model",))
        pred = ukf_predict(_state(), 0.1, 1.5, 0.5, LAM)
        R = radar_measurement_noise(0.3, 0.03, 0.3)
        z = radar_measurement(pred.state.x) + jnp.array([0.1, 0.01, -0.1])

        result = fn(pred.state, pred.sigma_points, _weights(), z, R, model=RADAR_MODEL)

        assert jnp.all(jnp.isfinite(result.state.x))
        assert bool(result.valid)

    def test_lax_scan_lidar_filter(self):
        """Predict + lidar update composes with jax.lax.scan."""
        R = lidar_measurement_noise(0.15, 0.15)
        w = _weights()
        measurements = jnp.stack([jnp.array([0.1 * k, 0.0]) for k in range(1, 11)])

        def filter_step(fs, z):
            pred = ukf_predict(fs, 0.1, 1.0, 0.5, LAM)
            mp = project_measurement(pred.sigma_points, pred.state.x, w, LIDAR_MODEL, R)
            result = ukf_correct(pred.state, z, mp, LIDAR_MODEL)
            return result.state, result.nis

        fs0 = FilterState(x=jnp.zeros(5), P=jnp.eye(5))
        final, nis = jax.lax.scan(filter_step, fs0, measurements)

        assert nis.shape == (10,)
        assert jnp.all(jnp.isfinite(final.x))
        assert float(final.P[0, 0]) < 1.0
