"""Ownership Introspection.

Describes how a container relates to its storage.

Key Concepts:
    - OWNED: The container's buffer was allocated by densa (Sequence, Grid).
    - VIEW: The container aliases a buffer another object allocated
      (SequenceView, GridView produced by slicing).
    - BORROWED: The container aliases external memory densa never frees
      (views built with from_buffer()).

Safety Model:
    1. OWNED and VIEW buffers are reference counted; a view stays valid after
       the container it was sliced from is released.
    2. BORROWED memory: caller responsible for source lifetime.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Tuple

from ._errors import ReleasedError

__all__ = [
    'Ownership',
    'StorageInfo',
    'storage_info',
    'ensure_alive',
]


class Ownership(Enum):
    """Data ownership model.

    Attributes:
        OWNED: Container allocated its buffer. Created by constructors,
               copy(), from_array(), move().
        BORROWED: Container views external memory.
                  Created by: SequenceView.from_buffer(), GridView.from_buffer()
        VIEW: Container aliases a densa-allocated buffer.
              Created by: slicing, view(), alias()
    """
    OWNED = 'owned'
    BORROWED = 'borrowed'
    VIEW = 'view'


@dataclass(frozen=True)
class StorageInfo:
    """Storage metadata for a container.

    Attributes:
        ownership: Data ownership model.
        dtype: Element type name.
        shape: (n,) for sequences, (m, n) for grids.
        offset: Buffer position of element 0 (or (0, 0)).
        strides: Element strides per dimension.
        refcount: Referrers of the underlying buffer.
        capacity: Elements in the underlying buffer.

    Note:
        This is for introspection and debugging; it is a snapshot and
        does not track later changes.
    """
    ownership: Ownership
    dtype: str
    shape: Tuple[int, ...]
    offset: int
    strides: Tuple[int, ...]
    refcount: int
    capacity: int

    @property
    def is_contiguous(self) -> bool:
        """True if the viewed elements occupy one gap-free block."""
        expected = 1
        for extent, stride in zip(self.shape, self.strides):
            if extent > 1 and stride != expected:
                return False
            expected *= extent
        return True

    def __repr__(self) -> str:
        return (
            f"StorageInfo(ownership={self.ownership.value}, dtype={self.dtype}, "
            f"shape={self.shape}, offset={self.offset}, strides={self.strides}, "
            f"refcount={self.refcount})"
        )


def ensure_alive(obj: Any) -> None:
    """Raise if obj has been released or its buffer freed.

    Raises:
        ReleasedError: If the container can no longer reach its storage.
    """
    buf = getattr(obj, '_buffer', None)
    if buf is None or not buf.is_alive:
        raise ReleasedError(f"{type(obj).__name__} has been released")


def storage_info(obj: Any) -> StorageInfo:
    """Snapshot how obj maps onto its buffer.

    Args:
        obj: Any densa container.

    Raises:
        ReleasedError: If obj has been released.
    """
    ensure_alive(obj)
    buf = obj._buffer
    if obj.is_view:
        ownership = Ownership.BORROWED if buf.is_borrowed else Ownership.VIEW
    else:
        ownership = Ownership.OWNED
    return StorageInfo(
        ownership=ownership,
        dtype=str(buf.dtype),
        shape=obj.shape,
        offset=obj.offset,
        strides=obj.strides,
        refcount=buf.refcount,
        capacity=buf.capacity,
    )
