"""Parameter storage behind Sim3 elements.

A Sim3 element is 7 scalars laid out as [qx, qy, qz, qw, tx, ty, tz]: the
rotation-scale quaternion followed by the translation, without padding.
The algebra in sim3.py only talks to a storage through the Sim3Storage
protocol, so the same code runs on parameters it owns and on parameters
that live in a caller's buffer.
"""

import logging
from typing import Optional, Protocol

import numpy as np

from .precision import as_array, traits_for
from .rxso3 import RxSO3

logger = logging.getLogger(__name__)

NUM_PARAMETERS = 7


class Sim3Storage(Protocol):
    """Accessors the Sim3 algebra needs from its parameters."""

    @property
    def dtype(self) -> np.dtype: ...

    @property
    def rxso3(self) -> RxSO3: ...

    @property
    def translation(self) -> np.ndarray: ...

    def set_rxso3(self, rxso3: RxSO3) -> None: ...

    def set_translation(self, translation: np.ndarray) -> None: ...

    def params(self) -> np.ndarray: ...


class OwnedStorage:
    """Parameters owned by the element itself.

    Copies its inputs into a freshly allocated contiguous 7-scalar array.
    """

    def __init__(self, rxso3: RxSO3, translation: np.ndarray):
        self._params = np.empty(NUM_PARAMETERS, dtype=rxso3.dtype)
        self._params[:4] = rxso3.data()
        self._params[4:] = as_array(translation, (3,), rxso3.dtype, "translation")

        self._rxso3 = RxSO3.map(self._params[:4])
        self._translation = self._params[4:]

    @property
    def dtype(self) -> np.dtype:
        return self._params.dtype

    @property
    def rxso3(self) -> RxSO3:
        return self._rxso3

    @property
    def translation(self) -> np.ndarray:
        return self._translation

    def set_rxso3(self, rxso3: RxSO3) -> None:
        self._params[:4] = rxso3.data()

    def set_translation(self, translation: np.ndarray) -> None:
        self._translation[:] = as_array(translation, (3,), self.dtype, "translation")

    def params(self) -> np.ndarray:
        return self._params


class BufferStorage:
    """Zero-copy view over caller-owned memory.

    Either a single 7-scalar buffer or two separate buffers (4 quaternion
    scalars, 3 translation scalars). Read-only numpy buffers give a read-only
    element: every mutation raises ValueError.
    """

    def __init__(
        self,
        quaternion_buffer: np.ndarray,
        translation_buffer: np.ndarray,
        params: Optional[np.ndarray] = None
    ):
        for name, buffer, size in (
            ("quaternion_buffer", quaternion_buffer, 4),
            ("translation_buffer", translation_buffer, 3),
        ):
            if not isinstance(buffer, np.ndarray):
                raise ValueError(f"{name} must be a numpy array, got {type(buffer).__name__}")
            if buffer.shape != (size,):
                raise ValueError(f"{name} must have shape ({size},), got shape {buffer.shape}")

        if quaternion_buffer.dtype != translation_buffer.dtype:
            raise ValueError(
                f"Buffers must share one precision, got {quaternion_buffer.dtype} "
                f"and {translation_buffer.dtype}"
            )
        traits_for(quaternion_buffer.dtype)

        self._params = params
        self._rxso3 = RxSO3.map(quaternion_buffer)
        self._translation = translation_buffer

    @classmethod
    def from_buffer(cls, buffer: np.ndarray) -> "BufferStorage":
        """View a contiguous [4 rotation-scale][3 translation] block."""
        if not isinstance(buffer, np.ndarray):
            raise ValueError(f"buffer must be a numpy array, got {type(buffer).__name__}")
        if buffer.shape != (NUM_PARAMETERS,):
            raise ValueError(f"buffer must have shape (7,), got shape {buffer.shape}")
        if not buffer.flags.c_contiguous:
            raise ValueError("buffer must be contiguous")

        logger.debug("Viewing %s buffer at 0x%x", buffer.dtype, buffer.ctypes.data)
        return cls(buffer[:4], buffer[4:], params=buffer)

    @property
    def dtype(self) -> np.dtype:
        return self._translation.dtype

    @property
    def read_only(self) -> bool:
        return not (self._rxso3.data().flags.writeable and self._translation.flags.writeable)

    def _check_writeable(self) -> None:
        if self.read_only:
            raise ValueError("Cannot modify a Sim3 element mapped onto a read-only buffer")

    @property
    def rxso3(self) -> RxSO3:
        return self._rxso3

    @property
    def translation(self) -> np.ndarray:
        return self._translation

    def set_rxso3(self, rxso3: RxSO3) -> None:
        self._check_writeable()
        self._rxso3.data()[:] = rxso3.data()

    def set_translation(self, translation: np.ndarray) -> None:
        self._check_writeable()
        self._translation[:] = as_array(translation, (3,), self.dtype, "translation")

    def params(self) -> np.ndarray:
        if self._params is None:
            raise ValueError("Element is mapped onto split buffers, no contiguous parameter block")
        return self._params
