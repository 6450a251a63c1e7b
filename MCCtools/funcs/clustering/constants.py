"""
Constants and Numba type signatures for connected-component labeling and
cloud element extraction.

Author: MCCtools developers
"""
from numba import types

##############################################################################
# Global constants
##############################################################################

# 4-neighbour offsets: (row+1, col), (row-1, col), (row, col+1), (row, col-1)
ROW_OFFSETS_4 = (1, -1, 0, 0)
COL_OFFSETS_4 = (0, 0, 1, -1)

# Label written into background cells of a label grid
UNLABELED = 0.0

# Metadata keys appended by the extractor
AREA_KEY = "AREA"
DIFFERENCE_KEY = "DIFFERENCE"
COMPONENT_KEY = "COMPONENT"
NUM_COMPONENTS_KEY = "NUM_COMPONENTS"

# What a cloud element carries as its tensor
MASK_PRODUCT = "mask"        # 1.0 inside the component, 0.0 elsewhere
VALUES_PRODUCT = "values"    # source values inside the component, 0.0 elsewhere
PRODUCTS = (MASK_PRODUCT, VALUES_PRODUCT)

##############################################################################
# Type signatures for Numba functions
##############################################################################

# Flood-fill labeling in 2D, returns the number of components
sig_label_2d_32 = types.int64(
    types.float32[:, :],  # field (R, C)
    types.float32,        # background value
    types.float32[:, :]   # labels (R, C), zero-initialised
)

sig_label_2d_64 = types.int64(
    types.float64[:, :],  # field (R, C)
    types.float64,        # background value
    types.float64[:, :]   # labels (R, C), zero-initialised
)
