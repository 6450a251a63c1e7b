"""
Constants and Numba type signatures for the tensor backends.

Author: MCCtools developers
"""
from numba import types

##############################################################################
# Global constants
##############################################################################

# Sentinel for "no measurement" cells
BACKGROUND = 0.0

# Value written into cells that fail a masking comparison
DEFAULT_MASK_VALUE = 0.0

# Backend names
NUMPY_BACKEND = "numpy"
NUMBA_BACKEND = "numba"
BACKENDS = (NUMPY_BACKEND, NUMBA_BACKEND)
DEFAULT_BACKEND = NUMBA_BACKEND

# Precision names
FLOAT32 = "float32"
FLOAT64 = "float64"
DEFAULT_PRECISION = FLOAT64

# Threshold used by is_zero / is_zero_shortcut
ZERO_TOLERANCE = 1e-9

# Comparison codes passed to the masking kernels
CMP_LT, CMP_GT, CMP_LE, CMP_GE, CMP_EQ, CMP_NE = 0, 1, 2, 3, 4, 5

# Arithmetic codes passed to the elementwise kernels
OP_ADD, OP_SUB, OP_MUL, OP_DIV = 0, 1, 2, 3

##############################################################################
# Type signatures for Numba functions
##############################################################################

# Elementwise tensor-tensor arithmetic (flattened storage)
sig_elementwise_32 = types.void(
    types.float32[:],   # a
    types.float32[:],   # b
    types.float32[:],   # out
    types.int64         # op code
)

sig_elementwise_64 = types.void(
    types.float64[:],   # a
    types.float64[:],   # b
    types.float64[:],   # out
    types.int64         # op code
)

# Elementwise tensor-scalar arithmetic
sig_scalar_32 = types.void(
    types.float32[:],   # a
    types.float32,      # scalar
    types.float32[:],   # out
    types.int64,        # op code
    types.boolean       # reflected (scalar on the left)
)

sig_scalar_64 = types.void(
    types.float64[:],   # a
    types.float64,      # scalar
    types.float64[:],   # out
    types.int64,        # op code
    types.boolean       # reflected (scalar on the left)
)

# Masking comparison against a scalar
sig_compare_32 = types.void(
    types.float32[:],   # a
    types.float32,      # scalar
    types.float32,      # mask value
    types.float32[:],   # out
    types.int64         # comparison code
)

sig_compare_64 = types.void(
    types.float64[:],   # a
    types.float64,      # scalar
    types.float64,      # mask value
    types.float64[:],   # out
    types.int64         # comparison code
)

# Full reductions
sig_reduce_32 = types.float64(types.float32[:])
sig_reduce_64 = types.float64(types.float64[:])
