"""
The `constants` module defines the fixed dimensions and numerical thresholds used by the tracker.
"""

from jax.numpy import pi as PI

# Dimensions
"""
State dimension: ``[px, py, v, yaw, yaw_rate]``.
"""
N_X = 5

"""
Augmented state dimension: state plus longitudinal and yaw acceleration noise.
"""
N_AUG = 7

"""
Number of sigma points generated over the augmented state.
"""
N_SIGMA = 2 * N_AUG + 1

"""
Lidar measurement dimension: ``[px, py]``.
"""
N_LIDAR = 2

"""
Radar measurement dimension: ``[rho, phi, rho_dot]``.
"""
N_RADAR = 3

"""
Index of the heading angle in the state vector.
"""
YAW_INDEX = 3

"""
Index of the bearing angle in the radar measurement vector.
"""
BEARING_INDEX = 1

# Numerical thresholds

"""
Turn rate below which the CTRV model integrates a straight line. Units: *rad/s*
"""
YAW_RATE_EPS = 1e-3

"""
Range below which radar geometry is treated as degenerate. Units: *m*
"""
RANGE_EPS = 1e-4

"""
Conversion from timestamp microseconds to seconds.
"""
US2S = 1e-6

# Consistency reference values

"""
95th percentile of the chi-squared distribution, keyed by degrees of freedom.
"""
CHI2_95 = {
    1: 3.841,
    2: 5.991,
    3: 7.815,
    4: 9.488,
    5: 11.070,
}

"""
Full turn in radians.
"""
TWO_PI = 2.0 * PI
