"""Sim(3) Lie group: 3D similarity transforms.

An element is (rxso3, t): a rotation-scale quaternion and a translation,
acting on points as p' = s * R @ p + t. Its 4x4 matrix form is

    [[s * R, t],
     [0,     1]]

Tangent vectors are [upsilon(3), omega(3), sigma]: translational velocity,
rotation vector and log-scale rate.
"""

import logging
from typing import Generic, Optional, TypeVar, Union

import numpy as np

from .kernels import calc_w, calc_w_inv
from .precision import PrecisionTraits, as_array, infer_dtype, traits_for
from .rxso3 import RxSO3
from .so3 import skew_symmetric
from .storage import BufferStorage, OwnedStorage, Sim3Storage

logger = logging.getLogger(__name__)

StorageT = TypeVar("StorageT", bound=Sim3Storage)


class Sim3(Generic[StorageT]):
    """Similarity transform (rotation + uniform scale + translation).

    Sim3(...) owns its 7 parameters. Sim3.map and Sim3.map_parts view
    caller-owned buffers instead; both run the same algebra.
    """

    DoF = 7
    num_parameters = 7

    def __init__(
        self,
        rxso3: Optional[Union[RxSO3, np.ndarray]] = None,
        translation: Optional[np.ndarray] = None,
        dtype=None
    ):
        """Create an element owning its parameters.

        Args:
            rxso3: RxSO3 element or non-zero quaternion [x, y, z, w];
                identity when omitted
            translation: Translation vector, zero when omitted
            dtype: float32 or float64, inferred from the inputs when omitted
        """
        if dtype is None:
            given = [v for v in (rxso3, translation) if v is not None]
            if isinstance(rxso3, RxSO3):
                dtype = rxso3.dtype
            else:
                dtype = infer_dtype(*given)
        traits = traits_for(dtype)

        if rxso3 is None:
            rxso3 = RxSO3(dtype=traits.dtype)
        elif isinstance(rxso3, RxSO3):
            if rxso3.dtype != traits.dtype:
                rxso3 = rxso3.cast(traits.dtype)
        else:
            rxso3 = RxSO3(rxso3, dtype=traits.dtype)

        if translation is None:
            translation = np.zeros(3, dtype=traits.dtype)

        self._traits = traits
        self._storage: StorageT = OwnedStorage(rxso3, translation)

    @classmethod
    def from_storage(cls, storage: StorageT) -> "Sim3[StorageT]":
        obj = cls.__new__(cls)
        obj._traits = traits_for(storage.dtype)
        obj._storage = storage
        return obj

    @classmethod
    def identity(cls, dtype=np.float64) -> "Sim3[OwnedStorage]":
        return cls(dtype=dtype)

    @classmethod
    def from_matrix(cls, T: np.ndarray, dtype=None) -> "Sim3[OwnedStorage]":
        """Create from a 4x4 homogeneous matrix.

        The upper-left 3x3 block must be a positive multiple of a rotation
        and the last row (0, 0, 0, 1).
        """
        if dtype is None:
            dtype = infer_dtype(T)
        traits = traits_for(dtype)
        T = as_array(T, (4, 4), traits.dtype, "T")
        if not np.allclose(T[3], [0, 0, 0, 1], rtol=0, atol=traits.epsilon):
            raise ValueError(f"T must have last row (0, 0, 0, 1), got {T[3].tolist()}")

        rxso3 = RxSO3.from_matrix(T[:3, :3], dtype=traits.dtype)
        logger.debug("Created Sim3 from matrix with scale %.6g", rxso3.scale())
        return cls(rxso3, T[:3, 3], dtype=traits.dtype)

    @classmethod
    def map(cls, buffer: np.ndarray) -> "Sim3[BufferStorage]":
        """View a contiguous 7-scalar buffer [qx, qy, qz, qw, tx, ty, tz].

        No data is copied: mutations write through to the buffer.
        """
        return cls.from_storage(BufferStorage.from_buffer(buffer))

    @classmethod
    def map_parts(
        cls, quaternion_buffer: np.ndarray, translation_buffer: np.ndarray
    ) -> "Sim3[BufferStorage]":
        """View separate quaternion and translation buffers."""
        return cls.from_storage(BufferStorage(quaternion_buffer, translation_buffer))

    @property
    def dtype(self) -> np.dtype:
        return self._traits.dtype

    @property
    def traits(self) -> PrecisionTraits:
        return self._traits

    @property
    def storage(self) -> StorageT:
        return self._storage

    @property
    def rxso3(self) -> RxSO3:
        return self._storage.rxso3

    @rxso3.setter
    def rxso3(self, value: RxSO3) -> None:
        self._storage.set_rxso3(value)

    @property
    def translation(self) -> np.ndarray:
        """Live translation array; writes go to the underlying storage."""
        return self._storage.translation

    @translation.setter
    def translation(self, value: np.ndarray) -> None:
        self._storage.set_translation(value)

    def data(self) -> np.ndarray:
        """Contiguous parameter block [qx, qy, qz, qw, tx, ty, tz]."""
        return self._storage.params()

    def quaternion(self) -> np.ndarray:
        return self.rxso3.quaternion()

    def set_quaternion(self, quaternion: np.ndarray) -> None:
        rxso3 = self.rxso3.copy()
        rxso3.set_quaternion(quaternion)
        self._storage.set_rxso3(rxso3)

    def scale(self) -> np.floating:
        return self.rxso3.scale()

    def set_scale(self, scale: float) -> None:
        rxso3 = self.rxso3.copy()
        rxso3.set_scale(scale)
        self._storage.set_rxso3(rxso3)

    def rotation_matrix(self) -> np.ndarray:
        return self.rxso3.rotation_matrix()

    def set_rotation_matrix(self, R: np.ndarray) -> None:
        rxso3 = self.rxso3.copy()
        rxso3.set_rotation_matrix(R)
        self._storage.set_rxso3(rxso3)

    def set_scaled_rotation_matrix(self, sR: np.ndarray) -> None:
        rxso3 = self.rxso3.copy()
        rxso3.set_scaled_rotation_matrix(sR)
        self._storage.set_rxso3(rxso3)

    def assign(self, other: "Sim3") -> "Sim3[StorageT]":
        """Copy the parameters of other (of any storage) into this element."""
        rxso3 = other.rxso3 if other.dtype == self.dtype else other.rxso3.cast(self.dtype)
        self._storage.set_rxso3(rxso3)
        self._storage.set_translation(other.translation.astype(self.dtype))
        return self

    def copy(self) -> "Sim3[OwnedStorage]":
        return Sim3(self.rxso3, self.translation, dtype=self.dtype)

    def cast(self, dtype) -> "Sim3[OwnedStorage]":
        """Owning copy in another precision."""
        traits = traits_for(dtype)
        logger.debug("Casting Sim3 from %s to %s", self._traits.name, traits.name)
        return Sim3(
            self.rxso3.cast(traits.dtype),
            self.translation.astype(traits.dtype),
            dtype=traits.dtype
        )

    def matrix(self) -> np.ndarray:
        """4x4 homogeneous transformation matrix."""
        T = np.eye(4, dtype=self.dtype)
        T[:3, :3] = self.rxso3.matrix()
        T[:3, 3] = self.translation
        return T

    def matrix3x4(self) -> np.ndarray:
        """Top three rows of matrix()."""
        T = np.empty((3, 4), dtype=self.dtype)
        T[:, :3] = self.rxso3.matrix()
        T[:, 3] = self.translation
        return T

    def inverse(self) -> "Sim3[OwnedStorage]":
        inv_rxso3 = self.rxso3.inverse()
        return Sim3(inv_rxso3, inv_rxso3 * -self.translation, dtype=self.dtype)

    def adj(self) -> np.ndarray:
        """Adjoint matrix: hat(adj() @ x) == T @ hat(x) @ T^-1."""
        R = self.rotation_matrix()
        t = self.translation

        res = np.zeros((7, 7), dtype=self.dtype)
        res[:3, :3] = self.scale() * R
        res[:3, 3:6] = skew_symmetric(t) @ R
        res[:3, 6] = -t
        res[3:6, 3:6] = R
        res[6, 6] = 1
        return res

    def _check_same_precision(self, other: "Sim3") -> None:
        if other.dtype != self.dtype:
            raise ValueError(
                f"Cannot combine {self._traits.name} and {other._traits.name} "
                "precision elements, cast one of them first"
            )

    def __mul__(self, other):
        """Compose with another element (self applied last), or act on a point."""
        if isinstance(other, Sim3):
            result = self.copy()
            result *= other
            return result

        p = as_array(other, (3,), self.dtype, "point")
        return self.rxso3 * p + self.translation

    def __imul__(self, other: "Sim3") -> "Sim3[StorageT]":
        if not isinstance(other, Sim3):
            return NotImplemented
        self._check_same_precision(other)

        translation = self.translation + self.rxso3 * other.translation
        rxso3 = self.rxso3 * other.rxso3
        self._storage.set_translation(translation)
        self._storage.set_rxso3(rxso3)
        return self

    def log(self) -> np.ndarray:
        """Logarithm map; also usable as Sim3.log(element).

        Returns:
            Tangent vector [upsilon, omega, sigma]
        """
        omega_sigma, theta = self.rxso3.log_and_theta()
        omega = omega_sigma[:3]
        sigma = omega_sigma[3]

        W_inv = calc_w_inv(theta, sigma, self.scale(), skew_symmetric(omega))

        res = np.empty(7, dtype=self.dtype)
        res[:3] = W_inv @ self.translation
        res[3:] = omega_sigma
        return res

    @staticmethod
    def exp(a: np.ndarray, dtype=None) -> "Sim3[OwnedStorage]":
        """Exponential map.

        Args:
            a: Tangent vector [upsilon, omega, sigma]
            dtype: Working precision, inferred from a when omitted

        Returns:
            Sim3 element
        """
        if dtype is None:
            dtype = infer_dtype(a)
        traits = traits_for(dtype)
        a = as_array(a, (7,), traits.dtype, "a")

        upsilon = a[:3]
        omega = a[3:6]
        sigma = a[6]

        rxso3, theta = RxSO3.exp_and_theta(a[3:], dtype=traits.dtype)
        W = calc_w(theta, sigma, rxso3.scale(), skew_symmetric(omega))
        return Sim3(rxso3, W @ upsilon, dtype=traits.dtype)

    @staticmethod
    def hat(v: np.ndarray) -> np.ndarray:
        """Map a tangent vector to its 4x4 Lie algebra matrix."""
        v = as_array(v, (7,), infer_dtype(v), "v")

        Omega = np.zeros((4, 4), dtype=v.dtype)
        Omega[:3, :3] = RxSO3.hat(v[3:])
        Omega[:3, 3] = v[:3]
        return Omega

    @staticmethod
    def vee(Omega: np.ndarray) -> np.ndarray:
        """Inverse of hat."""
        Omega = as_array(Omega, (4, 4), infer_dtype(Omega), "Omega")

        res = np.empty(7, dtype=Omega.dtype)
        res[:3] = Omega[:3, 3]
        res[3:] = RxSO3.vee(Omega[:3, :3])
        return res

    @staticmethod
    def generator(i: int, dtype=np.float64) -> np.ndarray:
        """i-th basis element of the Lie algebra.

        0-2 translate along x, y, z; 3-5 rotate about x, y, z; 6 scales.
        """
        if not 0 <= i <= 6:
            raise ValueError(f"i should be in range [0, 6], got {i}")

        e = np.zeros(7, dtype=traits_for(dtype).dtype)
        e[i] = 1
        return Sim3.hat(e)

    @staticmethod
    def lie_bracket(a: np.ndarray, b: np.ndarray) -> np.ndarray:
        """Tangent vector of hat(a) @ hat(b) - hat(b) @ hat(a)."""
        dtype = infer_dtype(a, b)
        a = as_array(a, (7,), dtype, "a")
        b = as_array(b, (7,), dtype, "b")

        upsilon1, omega1, sigma1 = a[:3], a[3:6], a[6]
        upsilon2, omega2, sigma2 = b[:3], b[3:6], b[6]

        res = np.zeros(7, dtype=dtype)
        res[:3] = (skew_symmetric(omega1) @ upsilon2
                   + skew_symmetric(upsilon1) @ omega2
                   + sigma1 * upsilon2 - sigma2 * upsilon1)
        res[3:6] = np.cross(omega1, omega2)
        return res

    @staticmethod
    def d_lie_bracket_ab_by_d_a(b: np.ndarray) -> np.ndarray:
        """Jacobian of lie_bracket(a, b) with respect to a."""
        b = as_array(b, (7,), infer_dtype(b), "b")
        upsilon2, omega2, sigma2 = b[:3], b[3:6], b[6]

        res = np.zeros((7, 7), dtype=b.dtype)
        res[:3, :3] = -skew_symmetric(omega2) - sigma2 * np.eye(3, dtype=b.dtype)
        res[:3, 3:6] = -skew_symmetric(upsilon2)
        res[:3, 6] = upsilon2
        res[3:6, 3:6] = -skew_symmetric(omega2)
        return res

    def is_approx(self, other: "Sim3", tol: Optional[float] = None) -> bool:
        """Compare the 4x4 matrices of two elements."""
        if tol is None:
            tol = np.sqrt(self._traits.epsilon)
        return bool(np.allclose(self.matrix(), other.matrix().astype(self.dtype), atol=tol, rtol=0))

    def __repr__(self) -> str:
        return (
            f"Sim3(quaternion={self.rxso3.data().tolist()}, "
            f"translation={self.translation.tolist()}, dtype={self.dtype.name})"
        )
