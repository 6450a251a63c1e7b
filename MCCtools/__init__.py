"""
MCCtools

Extraction of cloud elements (connected regions of non-background cells)
from gridded geophysical fields such as TRMM precipitation, with optional
sparse-aware resolution reduction, over numpy or Numba tensor backends.
"""

from .exceptions import (
    MCCError,
    ShapeMismatchError,
    InvalidArgumentError,
    IndexOutOfBoundsError,
    MissingDimensionError,
    MetadataConflictError,
)
from .funcs.tensors import (
    AbstractTensor,
    NumpyTensor,
    NumbaTensor,
    SciTensor,
    make_tensor,
    zeros,
    from_flat,
    BACKGROUND,
)
from .funcs.resolution import ResolutionOperations
from .funcs.clustering import ClusteringOperations

__version__ = "0.1.0"

__all__ = [
    'MCCError',
    'ShapeMismatchError',
    'InvalidArgumentError',
    'IndexOutOfBoundsError',
    'MissingDimensionError',
    'MetadataConflictError',
    'AbstractTensor',
    'NumpyTensor',
    'NumbaTensor',
    'SciTensor',
    'make_tensor',
    'zeros',
    'from_flat',
    'BACKGROUND',
    'ResolutionOperations',
    'ClusteringOperations',
]
