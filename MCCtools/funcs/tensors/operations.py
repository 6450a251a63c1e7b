"""
MCCtools: Tensor Capability Interface

A backend-agnostic 2-D (generalisable to N-D) numeric array. Algorithm code
(resolution reduction, component labeling, cloud element extraction) is
written only against AbstractTensor, so it runs unchanged over either
backend:

    NumpyTensor  - vectorised numpy kernels
    NumbaTensor  - Numba JIT kernels over the same numpy storage

The backend is picked once, at construction time, by name.

Author: MCCtools developers
"""

import numbers
import warnings
from abc import ABC, abstractmethod
from typing import Dict, Sequence, Tuple, Union

import numpy as np
from numba.core.errors import NumbaError

from .constants import *
from .core_functions import *
from ...exceptions import (
    IndexOutOfBoundsError,
    InvalidArgumentError,
    MissingDimensionError,
    ShapeMismatchError,
)


def _resolve_dtype(precision, data=None):
    """Map a precision name to a numpy dtype, defaulting from the data."""
    if precision is None:
        if data is not None and np.asarray(data).dtype == np.float32:
            return np.float32
        return np.float64
    if precision == FLOAT32:
        return np.float32
    if precision == FLOAT64:
        return np.float64
    raise InvalidArgumentError(
        f"precision must be '{FLOAT32}' or '{FLOAT64}', got {precision!r}")


class AbstractTensor(ABC):
    """
    Dense numeric tensor with elementwise arithmetic, masking comparisons,
    slicing and full reductions.

    Every operation that returns a tensor allocates new storage; only put,
    assign and the augmented operators (+=, -=, *=, /=) write into the
    receiver.

    Masking comparisons (<, >, <=, >=, ==, !=) are against a scalar and
    return a tensor: matching cells keep their value, the others take the
    tensor's mask value (see set_mask). Because == returns a tensor, use
    equals() for a boolean value comparison.
    """

    name = None
    __hash__ = None

    def __init__(
        self,
        data,
        precision: str = None) -> None:
        """
        Args:
            data: array-like of numbers; it is copied, so the tensor owns
                  its storage
            precision: 'float32' or 'float64'. If None, float32 input stays
                       float32 and everything else becomes float64
        """
        dtype = _resolve_dtype(precision, data)
        array = np.array(data, dtype=dtype, copy=True)
        if array.ndim == 0:
            raise InvalidArgumentError("tensor data must have at least one dimension")
        self._data = np.ascontiguousarray(array)
        self.mask_value = DEFAULT_MASK_VALUE

    @classmethod
    def _from_owned(cls, array: np.ndarray) -> 'AbstractTensor':
        """Wrap a freshly allocated array without copying it again."""
        tensor = cls.__new__(cls)
        tensor._data = np.ascontiguousarray(array)
        tensor.mask_value = DEFAULT_MASK_VALUE
        return tensor

    def _new(self, flat: np.ndarray) -> 'AbstractTensor':
        return type(self)._from_owned(flat.reshape(self._data.shape))

    ##########################################################################
    # Backend kernels
    ##########################################################################

    @abstractmethod
    def _elementwise(self, other_flat: np.ndarray, op: int) -> np.ndarray:
        """Tensor-tensor arithmetic on flattened storage."""

    @abstractmethod
    def _scalar(self, scalar: float, op: int, reflected: bool) -> np.ndarray:
        """Tensor-scalar arithmetic on flattened storage."""

    @abstractmethod
    def _compare(self, scalar: float, cmp: int) -> np.ndarray:
        """Masking comparison on flattened storage."""

    @abstractmethod
    def _map(self, f) -> np.ndarray:
        """Pointwise transform on flattened storage."""

    @abstractmethod
    def _keep(self, predicate) -> np.ndarray:
        """Boolean array, True where predicate(cell) holds."""

    @abstractmethod
    def sum(self) -> float:
        """Sum over all cells."""

    @abstractmethod
    def _max(self) -> float:
        pass

    @abstractmethod
    def _min(self) -> float:
        pass

    @abstractmethod
    def _sum_squares(self) -> float:
        pass

    ##########################################################################
    # Shape accessors
    ##########################################################################

    @property
    def shape(self) -> Tuple[int, ...]:
        return self._data.shape

    @property
    def rows(self) -> int:
        return self._data.shape[0]

    @property
    def cols(self) -> int:
        return self._data.shape[1] if self._data.ndim > 1 else 1

    @property
    def ndim(self) -> int:
        return self._data.ndim

    @property
    def size(self) -> int:
        return self._data.size

    @property
    def dtype(self):
        return self._data.dtype

    @property
    def precision(self) -> str:
        return FLOAT32 if self._data.dtype == np.float32 else FLOAT64

    @property
    def data(self) -> np.ndarray:
        """Row-major copy of all cell values as a 1-D array."""
        return self._data.ravel().copy()

    def to_numpy(self) -> np.ndarray:
        """Copy of the values with the tensor's shape."""
        return self._data.copy()

    def _flat(self) -> np.ndarray:
        return self._data.reshape(-1)

    ##########################################################################
    # Construction
    ##########################################################################

    def zeros(self, *shape) -> 'AbstractTensor':
        """
        New tensor of this backend and precision filled with 0.0.

        Accepts zeros(rows, cols) or zeros((rows, cols)).
        """
        if len(shape) == 1 and isinstance(shape[0], (tuple, list)):
            shape = tuple(shape[0])
        if any(int(s) < 0 for s in shape):
            raise InvalidArgumentError(f"negative dimension in shape {shape}")
        return type(self)._from_owned(np.zeros(tuple(int(s) for s in shape), dtype=self.dtype))

    def like(self, data) -> 'AbstractTensor':
        """New tensor of this backend and precision holding a copy of data."""
        return type(self)(data, precision=self.precision)

    def copy(self) -> 'AbstractTensor':
        tensor = type(self)._from_owned(self._data.copy())
        tensor.mask_value = self.mask_value
        return tensor

    def reshape(self, shape: Sequence[int]) -> 'AbstractTensor':
        shape = tuple(int(s) for s in shape)
        if int(np.prod(shape)) != self.size:
            raise ShapeMismatchError(self.shape, shape, op="reshape")
        return type(self)._from_owned(self._data.reshape(shape).copy())

    def assign(self, other: 'AbstractTensor') -> 'AbstractTensor':
        """Copy the values of other into this tensor (in place)."""
        other_array = self._operand_array(other, op="assign")
        self._data[...] = other_array.reshape(self.shape)
        return self

    ##########################################################################
    # Elementwise arithmetic
    ##########################################################################

    def _operand_array(self, other: 'AbstractTensor', op: str) -> np.ndarray:
        if other.shape != self.shape:
            raise ShapeMismatchError(self.shape, other.shape, op=op)
        return np.ascontiguousarray(other._data, dtype=self.dtype).reshape(-1)

    def _binary(self, other, op: int, reflected: bool = False):
        if isinstance(other, AbstractTensor):
            # tensor <op> tensor always dispatches to the left operand
            other_flat = self._operand_array(other, op="elementwise")
            return self._new(self._elementwise(other_flat, op))
        if isinstance(other, numbers.Real) and not isinstance(other, bool):
            return self._new(self._scalar(float(other), op, reflected))
        return NotImplemented

    def _inplace(self, other, op: int):
        result = self._binary(other, op)
        if result is NotImplemented:
            return NotImplemented
        self._data[...] = result._data
        return self

    def __add__(self, other):
        return self._binary(other, OP_ADD)

    def __radd__(self, other):
        return self._binary(other, OP_ADD, reflected=True)

    def __sub__(self, other):
        return self._binary(other, OP_SUB)

    def __rsub__(self, other):
        return self._binary(other, OP_SUB, reflected=True)

    def __mul__(self, other):
        return self._binary(other, OP_MUL)

    def __rmul__(self, other):
        return self._binary(other, OP_MUL, reflected=True)

    def __truediv__(self, other):
        return self._binary(other, OP_DIV)

    def __rtruediv__(self, other):
        return self._binary(other, OP_DIV, reflected=True)

    def __iadd__(self, other):
        return self._inplace(other, OP_ADD)

    def __isub__(self, other):
        return self._inplace(other, OP_SUB)

    def __imul__(self, other):
        return self._inplace(other, OP_MUL)

    def __itruediv__(self, other):
        return self._inplace(other, OP_DIV)

    def __neg__(self):
        return self._binary(-1.0, OP_MUL)

    def div(self, scalar: float) -> 'AbstractTensor':
        return self / scalar

    def dot(self, other: 'AbstractTensor') -> 'AbstractTensor':
        """Matrix product of two 2-D tensors."""
        if self.ndim != 2 or other.ndim != 2 or self.cols != other.rows:
            raise ShapeMismatchError(self.shape, other.shape, op="matrix product")
        return type(self)._from_owned(self._data @ other._data.astype(self.dtype))

    def __matmul__(self, other):
        if not isinstance(other, AbstractTensor):
            return NotImplemented
        return self.dot(other)

    ##########################################################################
    # Pointwise transforms and masking
    ##########################################################################

    def map(self, f) -> 'AbstractTensor':
        """
        New tensor with f applied to every cell; the receiver is untouched.

        f may be any scalar callable. On the Numba backend, callables that
        cannot be compiled in nopython mode run through numpy with a warning.
        """
        return self._new(self._map(f))

    def mask(self, predicate, mask_value: float = DEFAULT_MASK_VALUE) -> 'AbstractTensor':
        """Keep cells where predicate(cell) is true, replace the rest by mask_value."""
        keep = self._keep(predicate)
        return self._new(np.where(keep, self._flat(), self.dtype.type(mask_value)))

    def set_mask(self, value: float) -> 'AbstractTensor':
        """Set the fill value used by masking comparisons; returns self."""
        self.mask_value = float(value)
        return self

    def _masked(self, other, cmp: int):
        if isinstance(other, bool) or not isinstance(other, numbers.Real):
            raise InvalidArgumentError(
                f"masking comparisons take a scalar, got {type(other).__name__}")
        result = self._new(self._compare(float(other), cmp))
        result.mask_value = self.mask_value
        return result

    def __lt__(self, other):
        return self._masked(other, CMP_LT)

    def __gt__(self, other):
        return self._masked(other, CMP_GT)

    def __le__(self, other):
        return self._masked(other, CMP_LE)

    def __ge__(self, other):
        return self._masked(other, CMP_GE)

    def __eq__(self, other):
        return self._masked(other, CMP_EQ)

    def __ne__(self, other):
        return self._masked(other, CMP_NE)

    def equals(self, other: 'AbstractTensor') -> bool:
        """True if other has the same shape and cell values."""
        if not isinstance(other, AbstractTensor):
            return False
        return self.shape == other.shape and bool(np.array_equal(self._data, other._data))

    ##########################################################################
    # Indexing and slicing
    ##########################################################################

    def _check_cell(self, index: Tuple[int, ...]) -> Tuple[int, ...]:
        if len(index) != self.ndim:
            raise IndexOutOfBoundsError(
                f"expected {self.ndim} indices, got {len(index)}")
        for axis, (i, n) in enumerate(zip(index, self.shape)):
            if not 0 <= i < n:
                raise IndexOutOfBoundsError(
                    f"index {i} out of bounds for axis {axis} with size {n}")
        return tuple(int(i) for i in index)

    def _check_range(self, start, stop, axis: int) -> slice:
        n = self.shape[axis]
        start = 0 if start is None else int(start)
        stop = n if stop is None else int(stop)
        if not 0 <= start <= stop <= n:
            raise IndexOutOfBoundsError(
                f"range [{start}, {stop}) out of bounds for axis {axis} with size {n}")
        return slice(start, stop)

    def __getitem__(self, key):
        if not isinstance(key, tuple):
            key = (key,)
        if all(isinstance(k, numbers.Integral) for k in key):
            return float(self._data[self._check_cell(key)])
        if all(isinstance(k, slice) for k in key):
            if len(key) > self.ndim:
                raise IndexOutOfBoundsError(
                    f"too many ranges ({len(key)}) for a {self.ndim}-D tensor")
            ranges = []
            for axis, k in enumerate(key):
                if k.step not in (None, 1):
                    raise InvalidArgumentError("slices with a step are not supported")
                ranges.append(self._check_range(k.start, k.stop, axis))
            return type(self)._from_owned(self._data[tuple(ranges)].copy())
        raise InvalidArgumentError(
            "index with all integers (cell) or all slices (sub-region)")

    def apply(self, *args):
        """
        apply(row, col) reads one cell; apply((r0, r1), (c0, c1)) copies the
        sub-region [r0, r1) x [c0, c1) into a new tensor.
        """
        if args and all(isinstance(a, tuple) for a in args):
            return self[tuple(slice(a[0], a[1]) for a in args)]
        return self[tuple(args)]

    def put(self, value: float, *index: int) -> None:
        """Write value into a single cell."""
        self._data[self._check_cell(index)] = value

    ##########################################################################
    # Reductions
    ##########################################################################

    def cumsum(self) -> float:
        return self.sum()

    def max(self) -> float:
        if self.size == 0:
            raise InvalidArgumentError("max() of an empty tensor")
        return float(self._max())

    def min(self) -> float:
        if self.size == 0:
            raise InvalidArgumentError("min() of an empty tensor")
        return float(self._min())

    def mean(self) -> float:
        if self.size == 0:
            raise InvalidArgumentError("mean() of an empty tensor")
        return self.sum() / self.size

    def is_zero(self) -> bool:
        return self._sum_squares() <= ZERO_TOLERANCE

    def is_zero_shortcut(self) -> bool:
        return self.sum() <= ZERO_TOLERANCE

    def __repr__(self) -> str:
        return f"{type(self).__name__}(shape={self.shape}, dtype={self.dtype})\n{self._data}"


class NumpyTensor(AbstractTensor):
    """Tensor backed by vectorised numpy kernels."""

    name = NUMPY_BACKEND

    def _elementwise(self, other_flat, op):
        return elementwise_np_core(self._flat(), other_flat, op)

    def _scalar(self, scalar, op, reflected):
        return elementwise_np_core(self._flat(), self.dtype.type(scalar), op, reflected)

    def _compare(self, scalar, cmp):
        return compare_np_core(self._flat(), scalar, self.mask_value, cmp)

    def _map(self, f):
        return map_np_core(self._flat(), f)

    def _keep(self, predicate):
        flat = self._flat()
        if flat.size == 0:
            return np.zeros(0, dtype=bool)
        return np.vectorize(predicate, otypes=[bool])(flat)

    def sum(self):
        return float(np.sum(self._data, dtype=np.float64))

    def _max(self):
        return np.max(self._data)

    def _min(self):
        return np.min(self._data)

    def _sum_squares(self):
        return float(np.sum(np.square(self._data, dtype=np.float64)))


class NumbaTensor(AbstractTensor):
    """Tensor backed by Numba JIT kernels."""

    name = NUMBA_BACKEND

    def _elementwise(self, other_flat, op):
        out = np.empty_like(self._flat())
        elementwise_nb_core(self._flat(), other_flat, out, op)
        return out

    def _scalar(self, scalar, op, reflected):
        out = np.empty_like(self._flat())
        scalar_nb_core(self._flat(), self.dtype.type(scalar), out, op, reflected)
        return out

    def _compare(self, scalar, cmp):
        out = np.empty_like(self._flat())
        compare_nb_core(self._flat(), self.dtype.type(scalar),
                        self.dtype.type(self.mask_value), out, cmp)
        return out

    def _map(self, f):
        out = np.empty_like(self._flat())
        try:
            compile_map_nb_core(f)(self._flat(), out)
        except (NumbaError, TypeError) as e:
            # f is not a nopython-compilable function; run it through numpy instead
            warnings.warn(f"Numba map failed ({e}), falling back to numpy implementation")
            return map_np_core(self._flat(), f)
        return out

    def _keep(self, predicate):
        out = np.empty(self.size, dtype=np.float64)
        try:
            compile_map_nb_core(predicate)(self._flat(), out)
        except (NumbaError, TypeError) as e:
            warnings.warn(f"Numba mask failed ({e}), falling back to numpy implementation")
            return NumpyTensor._keep(self, predicate)
        return out != 0.0

    def sum(self):
        return float(sum_nb_core(self._flat()))

    def _max(self):
        return max_nb_core(self._flat())

    def _min(self):
        return min_nb_core(self._flat())

    def _sum_squares(self):
        return float(sum_squares_nb_core(self._flat()))


##########################################################################################
# Backend selection
##########################################################################################

_BACKEND_CLASSES = {
    NUMPY_BACKEND: NumpyTensor,
    NUMBA_BACKEND: NumbaTensor,
}


def get_backend(backend: str = DEFAULT_BACKEND):
    """Return the tensor class registered under ``backend``."""
    try:
        return _BACKEND_CLASSES[backend]
    except KeyError:
        raise InvalidArgumentError(
            f"backend must be one of {BACKENDS}, got {backend!r}") from None


def make_tensor(
    data,
    backend: str = DEFAULT_BACKEND,
    precision: str = None) -> AbstractTensor:
    """Build a tensor of the requested backend from array-like data."""
    return get_backend(backend)(data, precision=precision)


def zeros(
    shape: Union[int, Sequence[int]],
    backend: str = DEFAULT_BACKEND,
    precision: str = DEFAULT_PRECISION) -> AbstractTensor:
    """Tensor of the requested backend filled with 0.0."""
    if isinstance(shape, numbers.Integral):
        shape = (shape,)
    dtype = _resolve_dtype(precision)
    if any(int(s) < 0 for s in shape):
        raise InvalidArgumentError(f"negative dimension in shape {tuple(shape)}")
    return get_backend(backend)._from_owned(np.zeros(tuple(int(s) for s in shape), dtype=dtype))


def from_flat(
    values: Sequence[float],
    dimension_sizes: Dict[int, int],
    backend: str = DEFAULT_BACKEND,
    precision: str = None) -> AbstractTensor:
    """
    Build a row-major 2-D tensor from flat values and a dimension map.

    Args:
        values: flat sequence of rows * cols numbers
        dimension_sizes: {axis_index: size}; axis 1 is rows, axis 2 is cols
        backend: backend name
        precision: 'float32', 'float64' or None

    Returns:
        tensor of shape (dimension_sizes[1], dimension_sizes[2])

    Raises:
        MissingDimensionError: if axis 1 or 2 is absent
        ShapeMismatchError: if the number of values does not fill the grid
    """
    for axis in (1, 2):
        if axis not in dimension_sizes:
            raise MissingDimensionError(axis, dimension_sizes)
    rows, cols = int(dimension_sizes[1]), int(dimension_sizes[2])
    flat = np.asarray(values)
    if flat.size != rows * cols:
        raise ShapeMismatchError((flat.size,), (rows, cols), op="from_flat")
    return make_tensor(flat.reshape(rows, cols), backend=backend, precision=precision)
