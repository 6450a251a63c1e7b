"""
MCCtools Resolution Operations

Coarsens a gridded field by sparse-aware block averaging before component
labeling. Supports Numba and numpy kernels over any tensor backend.

Author: MCCtools developers
"""

import numbers

import numpy as np

from .constants import *
from .core_functions import *
from ..tensors.constants import BACKGROUND
from ..tensors.operations import AbstractTensor
from ..tensors.sci_tensor import SciTensor
from ...exceptions import InvalidArgumentError


class ResolutionOperations:
    """
    Block-average downsampling that ignores background (missing) cells.

    Output shape is (R // block_size, C // block_size). Trailing rows and
    columns that do not fill a complete block are dropped without error.
    """

    def __init__(
        self,
        use_numba: bool = True,
        background: float = BACKGROUND,
        verbose: bool = False) -> None:
        """
        Args:
            use_numba: use the Numba kernel (recommended)
            background: sentinel value for missing cells
            verbose: print progress information
        """
        self.use_numba = use_numba
        self.background = float(background)
        self.verbose = verbose

    def reduce_resolution(
        self,
        tensor: AbstractTensor,
        block_size: int = DEFAULT_BLOCK_SIZE) -> AbstractTensor:
        """
        Reduce the resolution of a 2D tensor by averaging n x n blocks.

        Args:
            tensor: (R, C) tensor of any backend; it is not modified
            block_size: edge length of the averaging blocks, >= 1

        Returns:
            (R // block_size, C // block_size) tensor of the same backend.
            Each cell is the mean of the non-background cells of its block,
            or the background value if the block holds none.

        Raises:
            InvalidArgumentError: block_size is not a positive integer, or
                                  tensor is not 2D
        """
        if (isinstance(block_size, bool)
                or not isinstance(block_size, numbers.Integral)
                or block_size <= 0):
            raise InvalidArgumentError(
                f"block_size must be a positive integer, got {block_size!r}")
        if tensor.ndim != 2:
            raise InvalidArgumentError(f"tensor must be 2D, got {tensor.ndim}D")

        block_size = int(block_size)
        field = tensor.to_numpy()
        out_shape = (field.shape[0] // block_size, field.shape[1] // block_size)

        if self.verbose:
            print(f"Reducing {field.shape} to {out_shape} with {block_size}x{block_size} blocks")
            dropped_rows = field.shape[0] % block_size
            dropped_cols = field.shape[1] % block_size
            if dropped_rows or dropped_cols:
                print(f"  Dropping {dropped_rows} trailing rows and {dropped_cols} trailing columns")

        if self.use_numba:
            out = np.empty(out_shape, dtype=field.dtype)
            reduce_resolution_nb_core(field, block_size, field.dtype.type(self.background), out)
        else:
            out = reduce_resolution_np_core(field, block_size, self.background)

        return tensor.like(out)

    def reduce_sci_tensor(
        self,
        sci_tensor: SciTensor,
        block_size: int = DEFAULT_BLOCK_SIZE) -> SciTensor:
        """
        Reduce the resolution of the tensor carried by a SciTensor.

        The variable name and metadata are carried over unchanged.
        """
        reduced = self.reduce_resolution(sci_tensor.tensor, block_size)
        return sci_tensor.derive(reduced)
