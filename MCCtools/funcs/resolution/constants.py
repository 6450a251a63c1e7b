"""
Constants and Numba type signatures for resolution reduction.

Author: MCCtools developers
"""
from numba import types

##############################################################################
# Global constants
##############################################################################

# Default n x n block edge used by the TRMM/AIRS workflows
DEFAULT_BLOCK_SIZE = 5

##############################################################################
# Type signatures for Numba functions
##############################################################################

sig_reduce_resolution_32 = types.void(
    types.float32[:, :],  # field (R, C)
    types.int64,          # block_size
    types.float32,        # background value
    types.float32[:, :]   # out (R // block_size, C // block_size)
)

sig_reduce_resolution_64 = types.void(
    types.float64[:, :],  # field (R, C)
    types.int64,          # block_size
    types.float64,        # background value
    types.float64[:, :]   # out (R // block_size, C // block_size)
)
