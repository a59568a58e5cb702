"""Tests for the fusionjax.measurement module."""

import jax.numpy as jnp
import pytest

from fusionjax.measurement import Measurement, SensorType


class TestSensorType:
    def test_dimensions(self):
        assert SensorType.LIDAR.dim == 2
        assert SensorType.RADAR.dim == 3

    def test_from_value(self):
        assert SensorType("lidar") is SensorType.LIDAR
        assert SensorType("radar") is SensorType.RADAR


class TestMeasurement:
    def test_lidar_shorthand(self):
        m = Measurement.lidar(1477010443000000, 0.3122, 0.5803)
        assert m.timestamp == 1477010443000000
        assert m.sensor_type is SensorType.LIDAR
        assert m.values.shape == (2,)
        assert jnp.allclose(m.values, jnp.array([0.3122, 0.5803]))

    def test_radar_shorthand(self):
        m = Measurement.radar(100, 1.014, 0.554, 4.892)
        assert m.sensor_type is SensorType.RADAR
        assert m.values.shape == (3,)

    def test_create_accepts_string_sensor(self):
        m = Measurement.create(5, "radar", [1.0, 0.1, 0.0])
        assert m.sensor_type is SensorType.RADAR

    def test_create_flattens_column_vector(self):
        m = Measurement.create(5, SensorType.LIDAR, [[1.0], [2.0]])
        assert m.values.shape == (2,)

    def test_timestamp_cast_to_int(self):
        m = Measurement.lidar(1.0e6, 0.0, 0.0)
        assert isinstance(m.timestamp, int)
        assert m.timestamp == 1_000_000

    def test_lidar_wrong_length_raises(self):
        with pytest.raises(ValueError, match="requires 2 values"):
            Measurement.create(0, SensorType.LIDAR, [1.0, 2.0, 3.0])

    def test_radar_wrong_length_raises(self):
        with pytest.raises(ValueError, match="requires 3 values"):
            Measurement.create(0, SensorType.RADAR, [1.0, 2.0])

    def test_unknown_sensor_raises(self):
        with pytest.raises(ValueError):
            Measurement.create(0, "sonar", [1.0, 2.0])
