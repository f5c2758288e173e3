"""
Array Capability

Structural contract shared by owning containers and views, plus the
generic helpers written once against it.

Capability:

    SequenceLike   dtype, len(x), x[i], x[i] = v
    GridLike       dtype, x.num_rows, x.num_columns, x[i, j], x[i, j] = v

These are typing.Protocol classes, not base classes: Sequence and
SequenceView share no data layout, and any object with the right surface
(a 1-D numpy array, for instance) satisfies SequenceLike too.

Passing Discipline:

    Duplicating an owning container yields an independent deep copy;
    duplicating a view yields a shallow alias over the same buffer.
    apply(routine, x, mode=PassMode.DUPLICATE) therefore lets a routine
    mutate the caller's data iff x is a view, while PassMode.REFERENCE
    always lets mutations through.

Example:
    >>> def add_one(v):
    ...     for i in range(len(v)):
    ...         v[i] += 1
    >>> seq = Sequence(3, fill=0.0)
    >>> apply(add_one, seq, mode=PassMode.DUPLICATE)
    >>> seq.tolist()
    [0.0, 0.0, 0.0]
    >>> view = seq.view()
    >>> apply(add_one, view, mode=PassMode.DUPLICATE)
    >>> seq.tolist()
    [1.0, 1.0, 1.0]
"""

from __future__ import annotations

import copy as _copy
import operator
from enum import Enum
from typing import Any, Callable, Protocol, Tuple, runtime_checkable

from ._errors import (
    IndexOutOfBoundsError,
    InvalidSliceError,
    ShapeMismatchError,
)

__all__ = [
    'SequenceLike',
    'GridLike',
    'PassMode',
    'is_sequence_like',
    'is_grid_like',
    'shape_of',
    'check_index',
    'check_range',
    'check_same_length',
    'check_same_shape',
    'copy',
    'duplicate',
    'apply',
    'shares_buffer',
]


# =============================================================================
# Capability Protocols
# =============================================================================

@runtime_checkable
class SequenceLike(Protocol):
    """One-dimensional array capability."""

    @property
    def dtype(self) -> Any: ...

    def __len__(self) -> int: ...

    def __getitem__(self, i): ...

    def __setitem__(self, i, value) -> None: ...


@runtime_checkable
class GridLike(Protocol):
    """Two-dimensional array capability (row index first)."""

    @property
    def dtype(self) -> Any: ...

    @property
    def num_rows(self) -> int: ...

    @property
    def num_columns(self) -> int: ...

    def __getitem__(self, ij): ...

    def __setitem__(self, ij, value) -> None: ...


class PassMode(Enum):
    """How apply() hands array arguments to a routine."""
    REFERENCE = 'reference'
    DUPLICATE = 'duplicate'


def is_grid_like(obj: Any) -> bool:
    """Check if obj satisfies the 2-D capability."""
    return isinstance(obj, GridLike)


def is_sequence_like(obj: Any) -> bool:
    """Check if obj satisfies the 1-D capability (and not the 2-D one)."""
    return isinstance(obj, SequenceLike) and not isinstance(obj, GridLike)


def shape_of(obj: Any) -> Tuple[int, ...]:
    """(n,) for sequence-likes, (m, n) for grid-likes."""
    if is_grid_like(obj):
        return (obj.num_rows, obj.num_columns)
    if is_sequence_like(obj):
        return (len(obj),)
    raise TypeError(f"{type(obj).__name__} does not satisfy the array capability")


# =============================================================================
# Bounds Helpers
# =============================================================================

def check_index(index: Any, extent: int, axis: str = "index") -> int:
    """
    Validate a single index against [0, extent).

    Returns:
        The index as a plain int

    Raises:
        TypeError: If index is not an integer
        IndexOutOfBoundsError: If index is outside [0, extent)
    """
    i = operator.index(index)
    if i < 0 or i >= extent:
        raise IndexOutOfBoundsError(f"{axis} {i} out of bounds [0, {extent})")
    return i


def check_range(start: int, end: int, extent: int, stride: int = 1,
                axis: str = "range") -> None:
    """
    Validate a half-open slice [start, end) with a positive stride.

    Raises:
        InvalidSliceError: On negative start, end past extent, empty range
            or non-positive stride
    """
    if start < 0:
        raise InvalidSliceError(f"{axis} start {start} is negative")
    if end > extent:
        raise InvalidSliceError(f"{axis} end {end} exceeds extent {extent}")
    if start >= end:
        raise InvalidSliceError(f"{axis} [{start}, {end}) is empty")
    if stride <= 0:
        raise InvalidSliceError(f"{axis} stride {stride} must be positive")


def check_same_length(a: Any, b: Any, context: str = "") -> int:
    """Raise ShapeMismatchError unless len(a) == len(b); returns the length."""
    if len(a) != len(b):
        prefix = f"{context}: " if context else ""
        raise ShapeMismatchError(f"{prefix}length {len(a)} != {len(b)}")
    return len(a)


def check_same_shape(a: Any, b: Any, context: str = "") -> Tuple[int, ...]:
    """Raise ShapeMismatchError unless both operands have equal extents."""
    sa, sb = shape_of(a), shape_of(b)
    if sa != sb:
        prefix = f"{context}: " if context else ""
        raise ShapeMismatchError(f"{prefix}shape {sa} != {sb}")
    return sa


# =============================================================================
# Generic Copy / Dispatch
# =============================================================================

def copy(source: Any, dtype=None):
    """
    Deep-copy any capability source into a new owning container.

    Grid-likes become Grid, sequence-likes become Sequence. The result
    never aliases the source.
    """
    if is_grid_like(source):
        from ._grid import Grid
        return Grid.from_array(source, dtype=dtype)
    if is_sequence_like(source):
        from ._sequence import Sequence
        return Sequence.from_array(source, dtype=dtype)
    raise TypeError(f"Cannot copy {type(source).__name__}: not array-like")


def duplicate(obj: Any) -> Any:
    """
    Duplicate a handle the way pass-by-value would.

    Owning containers deep-copy; views alias the same buffer.
    """
    return _copy.copy(obj)


def apply(routine: Callable[..., Any], *args: Any,
          mode: PassMode = PassMode.REFERENCE, **kwargs: Any) -> Any:
    """
    Call routine with array arguments passed according to mode.

    Under PassMode.DUPLICATE every array-like positional argument is
    duplicated first; other arguments are passed unchanged.
    """
    if mode is PassMode.DUPLICATE:
        args = tuple(
            duplicate(a) if (is_grid_like(a) or is_sequence_like(a)) else a
            for a in args
        )
    return routine(*args, **kwargs)


def shares_buffer(a: Any, b: Any) -> bool:
    """True if both containers reference the same SharedBuffer."""
    buf_a = getattr(a, '_buffer', None)
    return buf_a is not None and buf_a is getattr(b, '_buffer', None)
