"""
common_utils.py
Common utility functions shared across the SN-11 landing project

Consolidates frequently-used utilities:
- Angle wrapping for Euler angles reported in [0, 360)
- Attitude conversion (Euler degrees <-> rotation matrix, axis-angle)
- Clamping and denormalisation of control signals
"""

import numpy as np


class ConfigurationError(ValueError):
    """Raised when a configuration value or bound is invalid."""


def normalize_angle(angle_deg):
    """
    Wrap an angle (or array of angles) into [0, 360).

    Args:
        angle_deg: float or array of angles in degrees

    Returns:
        Angle(s) in [0, 360), same shape as input
    """
    wrapped = np.mod(angle_deg, 360.0)
    # np.mod can return 360.0 for tiny negative inputs due to rounding
    if np.ndim(wrapped):
        wrapped[wrapped >= 360.0] = 0.0
        return wrapped
    return 0.0 if wrapped >= 360.0 else float(wrapped)


def is_within_tolerance_of_zero(angle_deg, tolerance_deg):
    """
    Wrap-aware check that an angle in [0, 360) lies within tolerance of 0.

    A value near 360 is equivalent to a value near 0, so the test is
    ``a <= tol or a >= 360 - tol``.
    """
    return angle_deg <= tolerance_deg or angle_deg >= 360.0 - tolerance_deg


def clamp(value, low, high):
    """Clamp a scalar into [low, high]."""
    return max(low, min(high, value))


def denormalize_symmetric(value, min_value, max_value):
    """
    Map a normalised value in [-1, 1] onto the symmetric range [min, max].

    The input is clamped to [-1, 1] before scaling so out-of-domain control
    signals never produce out-of-range outputs.

    Args:
        value: normalised input
        min_value: lower bound, must be <= 0 and equal to -max_value
        max_value: upper bound

    Returns:
        float in [min_value, max_value]

    Raises:
        ConfigurationError: if the bounds are not a symmetric [-m, m] pair
    """
    if min_value > 0:
        raise ConfigurationError(
            f"Symmetric denormalisation needs a non-positive lower bound, got {min_value}")
    if not np.isclose(min_value, -max_value):
        raise ConfigurationError(
            f"Symmetric denormalisation needs min == -max, got [{min_value}, {max_value}]")
    return clamp(float(value), -1.0, 1.0) * max_value


def denormalize_one_sided(value, min_value, max_value):
    """
    Map a normalised value in [0, 1] onto [min, max] via value * (max - min) + min.

    Raises:
        ConfigurationError: if min_value > max_value
    """
    if min_value > max_value:
        raise ConfigurationError(
            f"Lower bound {min_value} exceeds upper bound {max_value}")
    return clamp(float(value), 0.0, 1.0) * (max_value - min_value) + min_value


def _rot_x(angle_rad):
    c, s = np.cos(angle_rad), np.sin(angle_rad)
    return np.array([[1.0, 0.0, 0.0],
                     [0.0, c, -s],
                     [0.0, s, c]])


def _rot_y(angle_rad):
    c, s = np.cos(angle_rad), np.sin(angle_rad)
    return np.array([[c, 0.0, s],
                     [0.0, 1.0, 0.0],
                     [-s, 0.0, c]])


def _rot_z(angle_rad):
    c, s = np.cos(angle_rad), np.sin(angle_rad)
    return np.array([[c, -s, 0.0],
                     [s, c, 0.0],
                     [0.0, 0.0, 1.0]])


def euler_to_matrix(euler_deg):
    """
    Convert (x, y, z) Euler angles in degrees to a rotation matrix.

    Rotation order is roll about Z, then pitch about X, then yaw about Y
    (R = Ry @ Rx @ Rz), matching a Y-up world.

    Args:
        euler_deg: (3,) [pitch_x, yaw_y, roll_z] in degrees

    Returns:
        R: (3, 3) rotation matrix, body to world
    """
    x, y, z = np.radians(np.asarray(euler_deg, dtype=float))
    return _rot_y(y) @ _rot_x(x) @ _rot_z(z)


def matrix_to_euler(R):
    """
    Convert a rotation matrix to (x, y, z) Euler angles in degrees in [0, 360).

    Inverse of euler_to_matrix. At the pitch singularity (x = ±90°) roll is
    folded into yaw and reported as 0.

    Args:
        R: (3, 3) rotation matrix

    Returns:
        euler: (3,) [pitch_x, yaw_y, roll_z] degrees, each in [0, 360)
    """
    sin_x = -R[1, 2]
    if abs(sin_x) >= 1.0 - 1e-9:
        x = np.sign(sin_x) * np.pi / 2
        y = np.arctan2(-R[2, 0], R[0, 0])
        z = 0.0
    else:
        x = np.arcsin(sin_x)
        y = np.arctan2(R[0, 2], R[2, 2])
        z = np.arctan2(R[1, 0], R[1, 1])
    return normalize_angle(np.degrees(np.array([x, y, z])))


def axis_angle_to_matrix(rotation_vector):
    """
    Rodrigues formula: rotation matrix for a rotation vector (axis * angle, rad).

    Args:
        rotation_vector: (3,) array

    Returns:
        R: (3, 3) rotation matrix
    """
    theta = np.linalg.norm(rotation_vector)
    if theta < 1e-12:
        return np.eye(3)
    k = rotation_vector / theta
    K = np.array([[0.0, -k[2], k[1]],
                  [k[2], 0.0, -k[0]],
                  [-k[1], k[0], 0.0]])
    return np.eye(3) + np.sin(theta) * K + (1.0 - np.cos(theta)) * (K @ K)


def orthonormalize(R):
    """Project a drifting rotation matrix back onto SO(3)."""
    u, _, vt = np.linalg.svd(R)
    result = u @ vt
    if np.linalg.det(result) < 0:
        u[:, -1] *= -1
        result = u @ vt
    return result
