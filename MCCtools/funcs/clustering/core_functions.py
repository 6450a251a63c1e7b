"""
Core flood-fill kernels for 4-connected component labeling.

Cells are connected when they share an edge and both differ from the
background value; their numeric values are never compared with each other.
Seeds are taken in row-major order and labels start at 1. The fill uses an
explicit stack so a component covering the whole grid cannot exhaust the
call stack.

Author: MCCtools developers
"""
import numpy as np
from collections import deque
from numba import njit
from .constants import *

##########################################################################################
# Core numpy functions
##########################################################################################

def label_components_2d_np_core(
    field: np.ndarray,
    background: float,
    labels: np.ndarray) -> int:
    """
    Label 4-connected non-background regions of a 2D field (python loop).

    Args:
        field: (R, C) array, not modified
        background: sentinel for empty cells
        labels: (R, C) zero-initialised array, filled in place

    Returns:
        number of components (highest label used)
    """
    n_rows, n_cols = field.shape
    foreground = field != background
    label = 0

    for row in range(n_rows):
        for col in range(n_cols):
            if not foreground[row, col] or labels[row, col] != UNLABELED:
                continue
            label += 1
            labels[row, col] = label
            stack = deque([(row, col)])
            while stack:
                r, c = stack.pop()
                for k in range(4):
                    nr = r + ROW_OFFSETS_4[k]
                    nc = c + COL_OFFSETS_4[k]
                    if (0 <= nr < n_rows and 0 <= nc < n_cols
                            and foreground[nr, nc] and labels[nr, nc] == UNLABELED):
                        labels[nr, nc] = label
                        stack.append((nr, nc))

    return label

##########################################################################################
# Core numba JIT functions
##########################################################################################

@njit([sig_label_2d_32, sig_label_2d_64], cache=True, nogil=True)
def label_components_2d_nb_core(field, background, labels):
    """
    Label 4-connected non-background regions of a 2D field.

    Args:
        field: (R, C) array, not modified
        background: sentinel for empty cells
        labels: (R, C) zero-initialised array, filled in place

    Returns:
        number of components (highest label used)
    """
    n_rows = field.shape[0]
    n_cols = field.shape[1]

    # Cells are labeled when pushed, so each is pushed at most once
    stack = np.empty(n_rows * n_cols, dtype=np.int64)
    label = 0

    for row in range(n_rows):
        for col in range(n_cols):
            if field[row, col] == background or labels[row, col] != UNLABELED:
                continue
            label += 1
            labels[row, col] = label
            top = 0
            stack[top] = row * n_cols + col
            top += 1

            while top > 0:
                top -= 1
                idx = stack[top]
                r = idx // n_cols
                c = idx % n_cols
                for k in range(4):
                    nr = r + ROW_OFFSETS_4[k]
                    nc = c + COL_OFFSETS_4[k]
                    if nr < 0 or nr >= n_rows or nc < 0 or nc >= n_cols:
                        continue
                    if field[nr, nc] == background or labels[nr, nc] != UNLABELED:
                        continue
                    labels[nr, nc] = label
                    stack[top] = nr * n_cols + nc
                    top += 1

    return label


@njit(cache=True)
def binary_indicator(value):
    """1.0 for a non-zero cell, 0.0 otherwise."""
    return 1.0 if value != 0.0 else 0.0
