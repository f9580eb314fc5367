"""Vector and quaternion helpers.

Quaternions are numpy arrays in [w, x, y, z] order. Vectors are (3,) arrays.
"""

from typing import Sequence, Union

import numpy as np


ArrayLike = Union[np.ndarray, Sequence[float]]

EPSILON = 1e-8


def normalize(v: ArrayLike) -> np.ndarray:
    """Normalize a vector, return zero if length is too small."""
    v = np.asarray(v, dtype=np.float64)
    n = np.linalg.norm(v)
    if n < EPSILON:
        return np.zeros_like(v)
    return v / n


def quat_identity() -> np.ndarray:
    """Return identity quaternion [w, x, y, z]."""
    return np.array([1.0, 0.0, 0.0, 0.0], dtype=np.float64)


def quat_normalize(q: ArrayLike) -> np.ndarray:
    q = np.asarray(q, dtype=np.float64)
    n = np.linalg.norm(q)
    if n < EPSILON:
        return quat_identity()
    return q / n


def quat_multiply(q1: ArrayLike, q2: ArrayLike) -> np.ndarray:
    """Multiply two quaternions: q1 * q2 (q2 is applied first)."""
    w1, x1, y1, z1 = q1
    w2, x2, y2, z2 = q2
    return np.array([
        w1*w2 - x1*x2 - y1*y2 - z1*z2,
        w1*x2 + x1*w2 + y1*z2 - z1*y2,
        w1*y2 - x1*z2 + y1*w2 + z1*x2,
        w1*z2 + x1*y2 - y1*x2 + z1*w2
    ], dtype=np.float64)


def quat_conjugate(q: ArrayLike) -> np.ndarray:
    """Return conjugate (inverse for unit quaternion)."""
    return np.array([q[0], -q[1], -q[2], -q[3]], dtype=np.float64)


def quat_rotate_vector(q: ArrayLike, v: ArrayLike) -> np.ndarray:
    """Rotate vector v by quaternion q."""
    qv = np.array([0.0, v[0], v[1], v[2]], dtype=np.float64)
    rotated = quat_multiply(quat_multiply(q, qv), quat_conjugate(q))
    return rotated[1:4]


def quat_from_axis_angle(axis: ArrayLike, angle: float) -> np.ndarray:
    """Create quaternion from axis and angle (radians)."""
    axis = normalize(axis)
    half = angle * 0.5
    s = np.sin(half)
    return np.array([np.cos(half), axis[0]*s, axis[1]*s, axis[2]*s], dtype=np.float64)


def quat_from_two_vectors(v_from: ArrayLike, v_to: ArrayLike) -> np.ndarray:
    """
    Create the shortest-arc quaternion that rotates v_from onto v_to.

    Both inputs are normalized first. Returns [w, x, y, z].
    """
    v_from = normalize(v_from)
    v_to = normalize(v_to)

    dot = float(np.dot(v_from, v_to))

    # Vectors are nearly parallel
    if dot > 0.999999:
        return quat_identity()

    # Vectors are nearly opposite: 180 degrees about any orthogonal axis
    if dot < -0.999999:
        ortho = np.array([1.0, 0.0, 0.0])
        if abs(v_from[0]) > 0.9:
            ortho = np.array([0.0, 1.0, 0.0])
        axis = normalize(np.cross(v_from, ortho))
        return np.array([0.0, axis[0], axis[1], axis[2]], dtype=np.float64)

    axis = np.cross(v_from, v_to)
    s = np.sqrt((1.0 + dot) * 2.0)
    invs = 1.0 / s

    return quat_normalize(np.array([
        s * 0.5,
        axis[0] * invs,
        axis[1] * invs,
        axis[2] * invs
    ], dtype=np.float64))


def quat_from_euler(angles: ArrayLike) -> np.ndarray:
    """Quaternion from intrinsic XYZ Euler angles (radians)."""
    x, y, z = (float(a) for a in angles)
    qx = quat_from_axis_angle((1.0, 0.0, 0.0), x)
    qy = quat_from_axis_angle((0.0, 1.0, 0.0), y)
    qz = quat_from_axis_angle((0.0, 0.0, 1.0), z)
    return quat_multiply(quat_multiply(qx, qy), qz)


def quat_slerp(q1: ArrayLike, q2: ArrayLike, t: float) -> np.ndarray:
    """Spherical linear interpolation between quaternions."""
    q1 = np.asarray(q1, dtype=np.float64)
    q2 = np.asarray(q2, dtype=np.float64)

    if t <= 0.0:
        return q1.copy()

    dot = float(np.dot(q1, q2))

    # Ensure shortest path
    if dot < 0:
        q2 = -q2
        dot = -dot

    if t >= 1.0:
        return q2.copy()

    if dot > 0.9995:
        # Linear interpolation for close quaternions
        result = q1 + t * (q2 - q1)
        return result / np.linalg.norm(result)

    theta_0 = np.arccos(dot)
    theta = theta_0 * t

    q2_perp = q2 - q1 * dot
    q2_perp = q2_perp / np.linalg.norm(q2_perp)

    return q1 * np.cos(theta) + q2_perp * np.sin(theta)


def quat_angle(q1: ArrayLike, q2: ArrayLike) -> float:
    """Angle in radians of the rotation taking q1 to q2."""
    dot = abs(float(np.dot(quat_normalize(q1), quat_normalize(q2))))
    return float(2.0 * np.arccos(min(1.0, dot)))
