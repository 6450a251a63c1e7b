"""
MCCtools Resolution Module

Sparse-aware block averaging for coarsening gridded geophysical fields.

Author: MCCtools developers
"""

# Import main classes
from .operations import ResolutionOperations
from .constants import DEFAULT_BLOCK_SIZE

# Import core functions for advanced users
from .core_functions import (
    reduce_resolution_np_core,
    reduce_resolution_nb_core,
)

__version__ = "1.0.0"
__author__ = "MCCtools developers"

# Define public API
__all__ = [
    'ResolutionOperations',
    'DEFAULT_BLOCK_SIZE',
    # Core functions for advanced use
    'reduce_resolution_np_core',
    'reduce_resolution_nb_core',
]
