"""
SciTensor: a tensor travelling through the pipeline with its variable name
and an insertion-ordered string metadata map.

Metadata is accumulated additively. Each stage receives a copy of the
incoming map with its own entries appended; an entry that already exists is
never replaced.

Author: MCCtools developers
"""

from types import MappingProxyType
from typing import Dict, Mapping, Optional

from .operations import AbstractTensor
from ...exceptions import MetadataConflictError


def extend_metadata(
    metadata: Mapping[str, str],
    entries: Mapping[str, object]) -> Dict[str, str]:
    """
    Return a copy of metadata with entries appended in order.

    Values are stored as strings (str() of the given value).

    Raises:
        MetadataConflictError: if a key in entries is already present
    """
    extended = dict(metadata)
    for key, value in entries.items():
        if key in extended:
            raise MetadataConflictError(key)
        extended[str(key)] = str(value)
    return extended


class SciTensor:
    """
    Record of {variable name, tensor, metadata} with read-only attributes
    and metadata. The tensor itself is shared, not copied, so in-place
    tensor operations such as put() are visible through the record.

    CloudElements produced by the extractor are SciTensors whose tensor is a
    component mask (or the masked source values).
    """

    __slots__ = ('_variable_name', '_tensor', '_metadata')

    def __init__(
        self,
        variable_name: str,
        tensor: AbstractTensor,
        metadata: Optional[Mapping[str, str]] = None) -> None:
        if not isinstance(tensor, AbstractTensor):
            raise TypeError(
                f"tensor must be an AbstractTensor, got {type(tensor).__name__}")
        object.__setattr__(self, '_variable_name', str(variable_name))
        object.__setattr__(self, '_tensor', tensor)
        object.__setattr__(self, '_metadata',
                           {str(k): str(v) for k, v in (metadata or {}).items()})

    def __setattr__(self, name, value):
        raise AttributeError(f"{type(self).__name__} is immutable")

    def __reduce__(self):
        # rebuild through __init__ so joblib workers can pickle records
        return (SciTensor, (self._variable_name, self._tensor, self._metadata))

    @property
    def variable_name(self) -> str:
        return self._variable_name

    @property
    def tensor(self) -> AbstractTensor:
        return self._tensor

    # cloud elements call their tensor a mask
    mask = tensor

    @property
    def metadata(self) -> Mapping[str, str]:
        """Read-only view of the metadata."""
        return MappingProxyType(self._metadata)

    def derive(
        self,
        tensor: AbstractTensor,
        entries: Optional[Mapping[str, object]] = None) -> 'SciTensor':
        """New SciTensor for the same variable with extra metadata entries."""
        return SciTensor(self._variable_name, tensor,
                         extend_metadata(self._metadata, entries or {}))

    def __repr__(self) -> str:
        return (f"SciTensor(variable_name={self._variable_name!r}, "
                f"shape={self._tensor.shape}, metadata={self._metadata})")
