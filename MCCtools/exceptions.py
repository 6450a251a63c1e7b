"""
Typed failures raised by the MCCtools grid pipeline.

Each error also derives from the matching builtin so callers can catch
either the specific class or the plain ValueError / IndexError / KeyError.

Author: MCCtools developers
"""


class MCCError(Exception):
    """Base class for all MCCtools errors."""


class ShapeMismatchError(MCCError, ValueError):
    """Two tensors combined elementwise do not have the same shape."""

    def __init__(self, shape_a, shape_b, op: str = "elementwise") -> None:
        self.shape_a = tuple(shape_a)
        self.shape_b = tuple(shape_b)
        super().__init__(
            f"{op} operation on tensors of different shapes: "
            f"{self.shape_a} vs {self.shape_b}")


class InvalidArgumentError(MCCError, ValueError):
    """An argument is outside its valid domain (e.g. block_size <= 0)."""


class IndexOutOfBoundsError(MCCError, IndexError):
    """A cell index or slice range lies outside the tensor."""


class MissingDimensionError(MCCError, KeyError):
    """A required spatial dimension could not be resolved."""

    def __init__(self, missing, found) -> None:
        self.missing = missing
        self.found = dict(found)
        super().__init__(
            f"Required dimension {missing} not found. Found: {self.found}")

    def __str__(self) -> str:
        return self.args[0]


class MetadataConflictError(MCCError, KeyError):
    """A pipeline stage tried to overwrite an existing metadata entry."""

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"metadata key '{key}' is already set")

    def __str__(self) -> str:
        return self.args[0]
