"""Quaternion operations for 3D rotations.

All quaternions are stored as [x, y, z, w] (Hamilton convention, scalar
last), which is also the parameter order of the rotation-scale block in
Sim3 buffers.
"""

import numpy as np
from scipy.spatial.transform import Rotation


def quat_norm(q: np.ndarray) -> np.floating:
    """Euclidean norm of a quaternion."""
    if q.shape != (4,):
        raise ValueError(f"Quaternion must be 4-element vector, got shape {q.shape}")

    return np.sqrt(q @ q)


def quat_normalize(q: np.ndarray, eps: float = 1e-12) -> np.ndarray:
    """Normalize quaternion to unit length."""
    norm = quat_norm(q)
    if norm < eps:
        raise ValueError("Cannot normalize zero quaternion")

    return q / norm


def quat_multiply(q1: np.ndarray, q2: np.ndarray) -> np.ndarray:
    """Hamilton product q1 * q2.

    Norms multiply, so the product of two scaled quaternions carries the
    product of their scales.
    """
    if q1.shape != (4,) or q2.shape != (4,):
        raise ValueError("Both quaternions must be 4-element vectors")

    x1, y1, z1, w1 = q1
    x2, y2, z2, w2 = q2

    return np.array([
        w1*x2 + x1*w2 + y1*z2 - z1*y2,
        w1*y2 - x1*z2 + y1*w2 + z1*x2,
        w1*z2 + x1*y2 - y1*x2 + z1*w2,
        w1*w2 - x1*x2 - y1*y2 - z1*z2
    ], dtype=np.result_type(q1, q2))


def quat_conjugate(q: np.ndarray) -> np.ndarray:
    """Return quaternion conjugate."""
    if q.shape != (4,):
        raise ValueError(f"Quaternion must be 4-element vector, got shape {q.shape}")

    return np.array([-q[0], -q[1], -q[2], q[3]], dtype=q.dtype)


def quat_to_matrix(q: np.ndarray) -> np.ndarray:
    """Convert quaternion to rotation matrix.

    Args:
        q: Quaternion [x, y, z, w], normalized before use

    Returns:
        3x3 rotation matrix with the dtype of q
    """
    q = quat_normalize(q)
    x, y, z, w = q

    return np.array([
        [1 - 2*(y*y + z*z), 2*(x*y - w*z), 2*(x*z + w*y)],
        [2*(x*y + w*z), 1 - 2*(x*x + z*z), 2*(y*z - w*x)],
        [2*(x*z - w*y), 2*(y*z + w*x), 1 - 2*(x*x + y*y)]
    ], dtype=q.dtype)


def quat_from_matrix(R: np.ndarray) -> np.ndarray:
    """Convert a rotation matrix to a unit quaternion [x, y, z, w].

    The caller is responsible for R being a proper rotation.
    """
    if R.shape != (3, 3):
        raise ValueError(f"R must be 3x3 matrix, got shape {R.shape}")

    q = Rotation.from_matrix(np.asarray(R, dtype=np.float64)).as_quat()
    return q.astype(R.dtype if R.dtype == np.float32 else np.float64)
