"""
MCCtools Tensors

Backend-agnostic numeric tensor used by every algorithm in the toolkit, with
a vectorised numpy backend and a Numba JIT backend.

Author: MCCtools developers
"""

# Import main classes
from .operations import (
    AbstractTensor,
    NumpyTensor,
    NumbaTensor,
    get_backend,
    make_tensor,
    zeros,
    from_flat,
)
from .sci_tensor import SciTensor, extend_metadata
from .constants import BACKGROUND, NUMPY_BACKEND, NUMBA_BACKEND, BACKENDS

__version__ = "1.0.0"
__author__ = "MCCtools developers"

# Define public API
__all__ = [
    'AbstractTensor',
    'NumpyTensor',
    'NumbaTensor',
    'get_backend',
    'make_tensor',
    'zeros',
    'from_flat',
    'SciTensor',
    'extend_metadata',
    'BACKGROUND', 'NUMPY_BACKEND', 'NUMBA_BACKEND', 'BACKENDS',
]
