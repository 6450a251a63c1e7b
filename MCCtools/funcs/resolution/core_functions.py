"""
Core kernels for sparse-aware block averaging.

Only cells that differ from the background value contribute to a block
mean, so missing-data fill values do not drag the coarse field down.
Trailing rows and columns that do not fill a whole block are dropped.

Author: MCCtools developers
"""
import numpy as np
from numba import njit
from .constants import *

##########################################################################################
# Core numpy functions
##########################################################################################

def reduce_resolution_np_core(
    field: np.ndarray,
    block_size: int,
    background: float) -> np.ndarray:
    """
    Block-average a 2D field, ignoring background cells.

    Args:
        field: (R, C) array
        block_size: edge of the square blocks (>= 1)
        background: sentinel for missing cells

    Returns:
        (R // block_size, C // block_size) array. Blocks made only of
        background cells hold the background value.
    """
    n_rows = field.shape[0] // block_size
    n_cols = field.shape[1] // block_size
    blocks = field[:n_rows * block_size, :n_cols * block_size].reshape(
        n_rows, block_size, n_cols, block_size)

    valid = blocks != background
    counts = valid.sum(axis=(1, 3))
    totals = np.where(valid, blocks, 0).sum(axis=(1, 3), dtype=np.float64)

    out = np.full((n_rows, n_cols), background, dtype=np.float64)
    np.divide(totals, counts, out=out, where=counts > 0)
    return out.astype(field.dtype)

##########################################################################################
# Core numba JIT functions
##########################################################################################

@njit([sig_reduce_resolution_32, sig_reduce_resolution_64], cache=True, nogil=True)
def reduce_resolution_nb_core(field, block_size, background, out):
    """
    Block-average a 2D field, ignoring background cells.

    Args:
        field: (R, C) array
        block_size: edge of the square blocks (>= 1)
        background: sentinel for missing cells
        out: preallocated (R // block_size, C // block_size) array
    """
    for i in range(out.shape[0]):
        for j in range(out.shape[1]):
            total = 0.0
            count = 0
            for r in range(i * block_size, (i + 1) * block_size):
                for c in range(j * block_size, (j + 1) * block_size):
                    v = field[r, c]
                    if v != background:
                        total += v
                        count += 1
            if count > 0:
                out[i, j] = total / count
            else:
                out[i, j] = background
