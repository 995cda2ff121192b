"""Scalar precision traits for the group algebra."""

from typing import Dict, Literal, Union

import numpy as np
from pydantic import BaseModel, Field, field_validator


class PrecisionTraits(BaseModel):
    """Constants attached to one scalar precision.

    - name: "double" or "single"
    - dtype_name: numpy dtype name used for every array of this precision
    - epsilon: threshold that selects the Taylor-limit branches of the
      exp/log coefficient kernels and the small-angle quaternion formulas
    - orthogonality_tolerance: relative tolerance used when checking that a
      3x3 block is a scaled rotation
    """

    model_config = {"frozen": True}

    name: Literal["double", "single"] = Field(description="Precision name")
    dtype_name: Literal["float64", "float32"] = Field(description="numpy dtype name")
    epsilon: float = Field(gt=0, description="Branch selection threshold")
    orthogonality_tolerance: float = Field(
        gt=0,
        description="Relative tolerance for scaled-orthogonal checks"
    )

    @field_validator('epsilon')
    @classmethod
    def validate_epsilon(cls, v):
        if v >= 1e-2:
            raise ValueError("epsilon must be a small threshold (< 1e-2)")
        return v

    @property
    def dtype(self) -> np.dtype:
        return np.dtype(self.dtype_name)

    def scalar(self, value: float) -> np.floating:
        """Wrap a Python float as a scalar of this precision."""
        return self.dtype.type(value)


DOUBLE = PrecisionTraits(
    name="double",
    dtype_name="float64",
    epsilon=1e-10,
    orthogonality_tolerance=1e-8,
)

SINGLE = PrecisionTraits(
    name="single",
    dtype_name="float32",
    epsilon=1e-5,
    orthogonality_tolerance=1e-4,
)

_TRAITS: Dict[np.dtype, PrecisionTraits] = {
    DOUBLE.dtype: DOUBLE,
    SINGLE.dtype: SINGLE,
}


def traits_for(dtype: Union[np.dtype, type, str]) -> PrecisionTraits:
    """Look up the precision traits for a numpy dtype.

    Args:
        dtype: float32 or float64, as a dtype, scalar type or name

    Returns:
        Matching precision traits
    """
    try:
        key = np.dtype(dtype)
    except TypeError:
        raise ValueError(f"Unsupported scalar type: {dtype!r}")

    traits = _TRAITS.get(key)
    if traits is None:
        raise ValueError(f"Unsupported scalar type: {key}, expected float32 or float64")
    return traits


def as_array(value, shape: tuple, dtype: np.dtype, name: str) -> np.ndarray:
    """Convert input to an array of the working precision and check its shape.

    No copy is made when value already is an array of that dtype.
    """
    arr = np.asarray(value, dtype=dtype)
    if arr.shape != shape:
        raise ValueError(f"{name} must have shape {shape}, got shape {arr.shape}")
    return arr


def infer_dtype(*values) -> np.dtype:
    """Precision implied by the given inputs.

    Single precision only when every input is already a float32 array or
    scalar; lists, ints and mixed inputs resolve to double.
    """
    if values and all(getattr(v, "dtype", None) == SINGLE.dtype for v in values):
        return SINGLE.dtype
    return DOUBLE.dtype
