"""RxSO(3): rotation combined with uniform positive scale.

An element is a non-zero quaternion q = [x, y, z, w]. Its norm is the
scale and its direction the orientation, so that the Hamilton product of
two elements composes both rotation and scale.
"""

import logging
from typing import Optional, Tuple, Union

import numpy as np

from .precision import PrecisionTraits, as_array, infer_dtype, traits_for
from .quaternions import (
    quat_conjugate,
    quat_from_matrix,
    quat_multiply,
    quat_norm,
    quat_to_matrix,
)
from . import so3

logger = logging.getLogger(__name__)


def check_scaled_rotation(sR: np.ndarray, traits: PrecisionTraits) -> np.floating:
    """Check that sR = s * R with R a proper rotation and s > 0.

    Returns:
        The scale s
    """
    if sR.shape != (3, 3):
        raise ValueError(f"sR must be 3x3 matrix, got shape {sR.shape}")

    det = np.linalg.det(sR)
    if not det > 0:
        raise ValueError(f"Scaled rotation must have positive determinant, got {det}")

    scale = np.cbrt(det)
    if not scale > traits.epsilon:
        raise ValueError(f"Scale must be positive, got {scale}")

    gram = sR.T @ sR
    residual = np.max(np.abs(gram - scale * scale * np.eye(3, dtype=sR.dtype)))
    if residual > traits.orthogonality_tolerance * scale * scale:
        raise ValueError(
            f"Matrix is not scaled-orthogonal: |sR^T sR - s^2 I| = {residual:.3e}"
        )
    return sR.dtype.type(scale)


class RxSO3:
    """Rotation-and-scale group element.

    The quaternion may live in memory owned by this object or, when created
    through RxSO3.map, in a caller-supplied buffer that every mutation
    writes through to.
    """

    num_parameters = 4
    DoF = 4

    def __init__(self, quaternion: Optional[np.ndarray] = None, dtype=None):
        """Initialize from a non-zero quaternion [x, y, z, w].

        Args:
            quaternion: Quaternion coefficients, identity when omitted
            dtype: float32 or float64, inferred from quaternion when omitted
        """
        if dtype is None:
            dtype = infer_dtype(quaternion) if quaternion is not None else np.float64
        self._traits = traits_for(dtype)

        if quaternion is None:
            self._q = np.array([0, 0, 0, 1], dtype=self._traits.dtype)
        else:
            q = as_array(quaternion, (4,), self._traits.dtype, "quaternion")
            self._q = q.copy()
            self._check_nonzero(self._q)

    @classmethod
    def map(cls, buffer: np.ndarray) -> "RxSO3":
        """Wrap a 4-scalar buffer without copying it."""
        if not isinstance(buffer, np.ndarray):
            raise ValueError(f"buffer must be a numpy array, got {type(buffer).__name__}")
        if buffer.shape != (4,):
            raise ValueError(f"buffer must have shape (4,), got shape {buffer.shape}")

        obj = cls.__new__(cls)
        obj._traits = traits_for(buffer.dtype)
        obj._q = buffer
        return obj

    @classmethod
    def from_matrix(cls, sR: np.ndarray, dtype=None) -> "RxSO3":
        """Create from a scaled rotation matrix s * R."""
        if dtype is None:
            dtype = infer_dtype(sR)
        result = cls(dtype=dtype)
        result.set_scaled_rotation_matrix(sR)
        return result

    def _check_nonzero(self, q: np.ndarray) -> None:
        if quat_norm(q) < self._traits.epsilon:
            raise ValueError("Quaternion must be non-zero (its norm is the scale)")

    @property
    def dtype(self) -> np.dtype:
        return self._traits.dtype

    @property
    def traits(self) -> PrecisionTraits:
        return self._traits

    def data(self) -> np.ndarray:
        """Raw quaternion coefficients (live, writes are not validated)."""
        return self._q

    def quaternion(self) -> np.ndarray:
        """Read-only view of the quaternion coefficients."""
        view = self._q.view()
        view.flags.writeable = False
        return view

    def set_quaternion(self, quaternion: np.ndarray) -> None:
        q = as_array(quaternion, (4,), self.dtype, "quaternion")
        self._check_nonzero(q)
        self._q[:] = q

    def scale(self) -> np.floating:
        return quat_norm(self._q)

    def set_scale(self, scale: float) -> None:
        """Change the scale, keeping the orientation."""
        scale = self.dtype.type(scale)
        if not scale > self._traits.epsilon:
            raise ValueError(f"Scale must be positive, got {scale}")

        self._q[:] = self._q * (scale / self.scale())

    def rotation_matrix(self) -> np.ndarray:
        return quat_to_matrix(self._q)

    def matrix(self) -> np.ndarray:
        """Scaled rotation matrix s * R."""
        return self.scale() * self.rotation_matrix()

    def set_rotation_matrix(self, R: np.ndarray) -> None:
        """Change the orientation, keeping the scale."""
        R = as_array(R, (3, 3), self.dtype, "R")
        if abs(check_scaled_rotation(R, self._traits) - 1) > self._traits.orthogonality_tolerance:
            raise ValueError("R must be a rotation matrix (unit scale)")

        self._q[:] = quat_from_matrix(R) * self.scale()

    def set_scaled_rotation_matrix(self, sR: np.ndarray) -> None:
        sR = as_array(sR, (3, 3), self.dtype, "sR")
        scale = check_scaled_rotation(sR, self._traits)
        logger.debug("Accepted scaled rotation with scale %.6g", scale)
        self._q[:] = quat_from_matrix(sR / scale) * scale

    def inverse(self) -> "RxSO3":
        """Inverse element: conjugate over squared norm, so the scale inverts."""
        q = self._q
        return RxSO3(quat_conjugate(q) / (q @ q), dtype=self.dtype)

    def __mul__(self, other: Union["RxSO3", np.ndarray]):
        """Compose with another element, or act on a 3D point."""
        if isinstance(other, RxSO3):
            return RxSO3(quat_multiply(self._q, other._q), dtype=self.dtype)

        p = as_array(other, (3,), self.dtype, "point")
        return self.matrix() @ p

    def __imul__(self, other: "RxSO3") -> "RxSO3":
        if not isinstance(other, RxSO3):
            return NotImplemented
        self._q[:] = quat_multiply(self._q, other._q)
        return self

    def copy(self) -> "RxSO3":
        return RxSO3(self._q, dtype=self.dtype)

    def cast(self, dtype) -> "RxSO3":
        traits = traits_for(dtype)
        return RxSO3(self._q.astype(traits.dtype), dtype=traits.dtype)

    @classmethod
    def exp_and_theta(cls, a: np.ndarray, dtype=None) -> Tuple["RxSO3", np.floating]:
        """Exponential map, also reporting the rotation angle.

        Args:
            a: Tangent vector [omega(3), sigma] (rotation vector, log-scale)
            dtype: Working precision, inferred from a when omitted

        Returns:
            Tuple of (element, theta) with theta = |omega|
        """
        if dtype is None:
            dtype = infer_dtype(a)
        traits = traits_for(dtype)
        a = as_array(a, (4,), traits.dtype, "a")

        q, theta = so3.exp_and_theta(a[:3], traits.epsilon)
        scale = np.exp(a[3])
        return cls(q * scale, dtype=traits.dtype), theta

    @classmethod
    def exp(cls, a: np.ndarray, dtype=None) -> "RxSO3":
        return cls.exp_and_theta(a, dtype)[0]

    def log_and_theta(self) -> Tuple[np.ndarray, np.floating]:
        """Logarithm [omega(3), sigma], also reporting the rotation angle."""
        scale = self.scale()
        omega, theta = so3.log_and_theta(self._q / scale, self._traits.epsilon)

        result = np.empty(4, dtype=self.dtype)
        result[:3] = omega
        result[3] = np.log(scale)
        return result, theta

    def log(self) -> np.ndarray:
        return self.log_and_theta()[0]

    @staticmethod
    def hat(a: np.ndarray) -> np.ndarray:
        """Map [omega, sigma] to skew(omega) + sigma * I."""
        a = as_array(a, (4,), infer_dtype(a), "a")
        return so3.skew_symmetric(a[:3]) + a[3] * np.eye(3, dtype=a.dtype)

    @staticmethod
    def vee(Omega: np.ndarray) -> np.ndarray:
        """Inverse of hat; sigma is read from the mean of the diagonal."""
        Omega = as_array(Omega, (3, 3), infer_dtype(Omega), "Omega")
        result = np.empty(4, dtype=Omega.dtype)
        result[:3] = so3.vee(Omega)
        result[3] = np.trace(Omega) / 3
        return result

    def __repr__(self) -> str:
        return f"RxSO3(quaternion={self._q.tolist()}, dtype={self.dtype.name})"
