"""sim3lie - closed-form Sim(3) group algebra

Composition, inversion, point action, adjoint, hat/vee, Lie bracket and the
exponential/logarithm maps of 3D similarity transforms, in single or double
precision, over owned parameters or caller-supplied buffers.
"""

__version__ = "0.1.0"

# Groups
from .core.math.rxso3 import RxSO3
from .core.math.sim3 import Sim3

# Storage
from .core.math.storage import BufferStorage, OwnedStorage, Sim3Storage

# Precision
from .core.math.precision import DOUBLE, SINGLE, PrecisionTraits, traits_for

__all__ = [
    # Version
    "__version__",
    # Groups
    "RxSO3",
    "Sim3",
    # Storage
    "Sim3Storage",
    "OwnedStorage",
    "BufferStorage",
    # Precision
    "PrecisionTraits",
    "DOUBLE",
    "SINGLE",
    "traits_for",
]
