"""Math primitives for sim3lie."""

from .precision import PrecisionTraits, DOUBLE, SINGLE, traits_for
from .quaternions import quat_normalize, quat_multiply, quat_to_matrix, quat_from_matrix
from .so3 import skew_symmetric
from .rxso3 import RxSO3
from .kernels import calc_w, calc_w_inv
from .storage import Sim3Storage, OwnedStorage, BufferStorage
from .sim3 import Sim3

__all__ = [
    "PrecisionTraits",
    "DOUBLE",
    "SINGLE",
    "traits_for",
    "quat_normalize",
    "quat_multiply",
    "quat_to_matrix",
    "quat_from_matrix",
    "skew_symmetric",
    "RxSO3",
    "calc_w",
    "calc_w_inv",
    "Sim3Storage",
    "OwnedStorage",
    "BufferStorage",
    "Sim3",
]
