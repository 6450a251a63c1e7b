"""
MCCtools Clustering

Grid connected-component labeling (4-connectivity, Numba flood fill) and
cloud element extraction for gridded geophysical fields.

Author: MCCtools developers
"""

# Import main classes
from .operations import ClusteringOperations
from .constants import (
    AREA_KEY, DIFFERENCE_KEY, COMPONENT_KEY, NUM_COMPONENTS_KEY,
    MASK_PRODUCT, VALUES_PRODUCT,
)

# Import core functions for advanced users
from .core_functions import (
    label_components_2d_np_core,
    label_components_2d_nb_core,
    binary_indicator,
)

__version__ = "1.0.0"
__author__ = "MCCtools developers"

# Define public API
__all__ = [
    'ClusteringOperations',
    'AREA_KEY', 'DIFFERENCE_KEY', 'COMPONENT_KEY', 'NUM_COMPONENTS_KEY',
    'MASK_PRODUCT', 'VALUES_PRODUCT',
    # Core functions for advanced use
    'label_components_2d_np_core',
    'label_components_2d_nb_core',
    'binary_indicator',
]
