"""
Core functions for the tensor backends.

The *_np_core functions are vectorised numpy kernels used by NumpyTensor.
The *_nb_core functions are Numba JIT kernels used by NumbaTensor. All
kernels work on flattened (row-major) storage and write into a preallocated
output array so the caller owns every allocation.

Author: MCCtools developers
"""
import inspect

import numpy as np
from functools import lru_cache
from numba import njit
from .constants import *

##########################################################################################
# Core numpy functions
##########################################################################################

def elementwise_np_core(
    a: np.ndarray,
    b,
    op: int,
    reflected: bool = False) -> np.ndarray:
    """
    Elementwise arithmetic between an array and an array or scalar.

    Args:
        a: flattened operand
        b: flattened operand of the same size, or a python scalar
        op: one of OP_ADD, OP_SUB, OP_MUL, OP_DIV
        reflected: evaluate ``b <op> a`` instead of ``a <op> b``

    Returns:
        new array with the result
    """
    left, right = (b, a) if reflected else (a, b)
    with np.errstate(divide='ignore', invalid='ignore'):
        if op == OP_ADD:
            out = left + right
        elif op == OP_SUB:
            out = left - right
        elif op == OP_MUL:
            out = left * right
        else:
            out = left / right
    return np.asarray(out, dtype=a.dtype)


def compare_np_core(
    a: np.ndarray,
    scalar: float,
    mask_value: float,
    cmp: int) -> np.ndarray:
    """
    Keep cells that satisfy ``a <cmp> scalar``; replace the rest by mask_value.
    """
    if cmp == CMP_LT:
        keep = a < scalar
    elif cmp == CMP_GT:
        keep = a > scalar
    elif cmp == CMP_LE:
        keep = a <= scalar
    elif cmp == CMP_GE:
        keep = a >= scalar
    elif cmp == CMP_EQ:
        keep = a == scalar
    else:
        keep = a != scalar
    return np.where(keep, a, a.dtype.type(mask_value))


def map_np_core(
    a: np.ndarray,
    f) -> np.ndarray:
    """Pointwise transform with an arbitrary python callable."""
    return np.vectorize(f, otypes=[a.dtype])(a) if a.size else a.copy()

##########################################################################################
# Core numba JIT functions
##########################################################################################

@njit([sig_elementwise_32, sig_elementwise_64], cache=True, nogil=True, error_model='numpy')
def elementwise_nb_core(a, b, out, op):
    """
    Elementwise tensor-tensor arithmetic.

    Args:
        a, b: flattened operands of equal size
        out: preallocated output of the same size
        op: one of OP_ADD, OP_SUB, OP_MUL, OP_DIV
    """
    for i in range(a.shape[0]):
        if op == OP_ADD:
            out[i] = a[i] + b[i]
        elif op == OP_SUB:
            out[i] = a[i] - b[i]
        elif op == OP_MUL:
            out[i] = a[i] * b[i]
        else:
            out[i] = a[i] / b[i]


@njit([sig_scalar_32, sig_scalar_64], cache=True, nogil=True, error_model='numpy')
def scalar_nb_core(a, scalar, out, op, reflected):
    """
    Elementwise tensor-scalar arithmetic. With reflected=True the scalar is
    the left operand (``scalar - a``, ``scalar / a``).
    """
    for i in range(a.shape[0]):
        if reflected:
            left = scalar
            right = a[i]
        else:
            left = a[i]
            right = scalar
        if op == OP_ADD:
            out[i] = left + right
        elif op == OP_SUB:
            out[i] = left - right
        elif op == OP_MUL:
            out[i] = left * right
        else:
            out[i] = left / right


@njit([sig_compare_32, sig_compare_64], cache=True, nogil=True)
def compare_nb_core(a, scalar, mask_value, out, cmp):
    """
    Masking comparison: matching cells keep their value, the rest take mask_value.
    """
    for i in range(a.shape[0]):
        v = a[i]
        if cmp == CMP_LT:
            keep = v < scalar
        elif cmp == CMP_GT:
            keep = v > scalar
        elif cmp == CMP_LE:
            keep = v <= scalar
        elif cmp == CMP_GE:
            keep = v >= scalar
        elif cmp == CMP_EQ:
            keep = v == scalar
        else:
            keep = v != scalar
        out[i] = v if keep else mask_value


@njit([sig_reduce_32, sig_reduce_64], cache=True, nogil=True)
def sum_nb_core(a):
    total = 0.0
    for i in range(a.shape[0]):
        total += a[i]
    return total


@njit([sig_reduce_32, sig_reduce_64], cache=True, nogil=True)
def max_nb_core(a):
    # caller guarantees a.size > 0
    best = a[0]
    for i in range(1, a.shape[0]):
        if a[i] > best:
            best = a[i]
    return best


@njit([sig_reduce_32, sig_reduce_64], cache=True, nogil=True)
def min_nb_core(a):
    # caller guarantees a.size > 0
    best = a[0]
    for i in range(1, a.shape[0]):
        if a[i] < best:
            best = a[i]
    return best


@njit([sig_reduce_32, sig_reduce_64], cache=True, nogil=True)
def sum_squares_nb_core(a):
    total = 0.0
    for i in range(a.shape[0]):
        total += a[i] * a[i]
    return total


def compile_map_nb_core(f):
    """
    Build a JIT kernel applying the scalar function ``f`` to every cell.

    Numba freezes the globals a function reads at compile time, so plain
    python functions are compiled afresh on every call. Functions that are
    already Numba dispatchers carry that behaviour themselves and their
    kernels are cached per dispatcher.

    Raises:
        TypeError: if f is neither a python function nor a Numba dispatcher
    """
    if hasattr(f, "py_func"):
        return _dispatcher_map_nb_core(f)
    if not inspect.isfunction(f):
        raise TypeError(f"cannot JIT compile a {type(f).__name__} object")
    return _build_map_nb_core(njit(f))


@lru_cache(maxsize=64)
def _dispatcher_map_nb_core(f_jit):
    return _build_map_nb_core(f_jit)


def _build_map_nb_core(f_jit):
    @njit(nogil=True)
    def map_nb_core(a, out):
        for i in range(a.shape[0]):
            out[i] = f_jit(a[i])

    return map_nb_core
