"""SO(3) helpers used by the rotation-scale and similarity groups."""

import numpy as np
from typing import Tuple


def skew_symmetric(v: np.ndarray) -> np.ndarray:
    """Create skew-symmetric matrix from 3D vector.

    skew_symmetric(a) @ b == np.cross(a, b)
    """
    if v.shape != (3,):
        raise ValueError(f"v must be 3-element vector, got shape {v.shape}")

    zero = v.dtype.type(0)
    return np.array([
        [zero, -v[2], v[1]],
        [v[2], zero, -v[0]],
        [-v[1], v[0], zero]
    ], dtype=v.dtype)


def vee(Omega: np.ndarray) -> np.ndarray:
    """Inverse of skew_symmetric."""
    if Omega.shape != (3, 3):
        raise ValueError(f"Omega must be 3x3 matrix, got shape {Omega.shape}")

    return np.array([Omega[2, 1], Omega[0, 2], Omega[1, 0]], dtype=Omega.dtype)


def exp_and_theta(omega: np.ndarray, eps: float) -> Tuple[np.ndarray, np.floating]:
    """Exponential map from a rotation vector to a unit quaternion.

    Args:
        omega: Rotation vector (axis * angle)
        eps: Small-angle threshold of the working precision

    Returns:
        Tuple of (q, theta) where q is [x, y, z, w] and theta = |omega|
    """
    if omega.shape != (3,):
        raise ValueError(f"omega must be 3-element vector, got shape {omega.shape}")

    dtype = omega.dtype.type
    theta_sq = omega @ omega
    theta = np.sqrt(theta_sq)
    half_theta = dtype(0.5) * theta

    if theta < eps:
        # Taylor expansions of sin(theta/2)/theta and cos(theta/2)
        theta_po4 = theta_sq * theta_sq
        imag_factor = dtype(0.5) - dtype(1.0 / 48.0) * theta_sq + dtype(1.0 / 3840.0) * theta_po4
        real_factor = dtype(1) - dtype(0.125) * theta_sq + dtype(1.0 / 384.0) * theta_po4
    else:
        imag_factor = np.sin(half_theta) / theta
        real_factor = np.cos(half_theta)

    q = np.empty(4, dtype=omega.dtype)
    q[:3] = imag_factor * omega
    q[3] = real_factor
    return q, theta


def log_and_theta(q: np.ndarray, eps: float) -> Tuple[np.ndarray, np.floating]:
    """Logarithm of a unit quaternion.

    Both q and -q map to the same rotation vector, whose angle lies in
    [0, pi].

    Args:
        q: Unit quaternion [x, y, z, w]
        eps: Small-angle threshold of the working precision

    Returns:
        Tuple of (omega, theta) with theta = |omega|
    """
    if q.shape != (4,):
        raise ValueError(f"Quaternion must be 4-element vector, got shape {q.shape}")

    dtype = q.dtype.type
    vec = q[:3]
    squared_n = vec @ vec
    n = np.sqrt(squared_n)
    w = q[3]

    if squared_n < eps * eps:
        # atan(n / w) / n ~ 1 / w - n^2 / (3 w^3); w is close to +-1 here
        two_atan_nbyw_by_n = dtype(2) / w - dtype(2.0 / 3.0) * squared_n / (w * w * w)
    elif abs(w) < eps:
        # sign of zero keeps q and -q on the same rotation vector
        if not np.signbit(w):
            two_atan_nbyw_by_n = dtype(np.pi) / n
        else:
            two_atan_nbyw_by_n = -dtype(np.pi) / n
    else:
        two_atan_nbyw_by_n = dtype(2) * np.arctan(n / w) / n

    theta = abs(two_atan_nbyw_by_n * n)
    return (two_atan_nbyw_by_n * vec).astype(q.dtype), theta
