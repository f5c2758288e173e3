"""
Sequence and SequenceView

One-dimensional dense containers.

Memory Layout:
    Sequence      positions [0, n) of its own buffer, stride 1
    SequenceView  positions offset + i * stride, i in [0, n), of a buffer
                  it shares with the container it was sliced from

Ownership Rules:
    - Sequence(...), Sequence.from_array(...), seq.copy(): fresh buffer,
      elements copied. The result never aliases its source.
    - seq.move(): new owner over the same buffer (shared policy); the source
      stays valid and aliases the result until released.
    - seq.subvector(...), seq[a:b:c], seq.view(): SequenceView over the same
      buffer. No element is copied.
    - copy.copy(seq) deep-copies; copy.copy(view) aliases.

Example:
    >>> seq = Sequence.from_list([0, 1, 2, 3, 4, 5, 6, 7, 8, 9])
    >>> odd = seq.subvector(1, 9, 2)     # elements 1, 3, 5, 7
    >>> odd[0] = 100.0
    >>> seq[1]
    100.0
"""

from __future__ import annotations

from typing import Any, Iterator, List, Optional, Union

import numpy as np

from ._base import (
    check_index,
    check_range,
    check_same_length,
    is_grid_like,
    is_sequence_like,
    shares_buffer,
)
from ._buffer import BufferHandle, SharedBuffer
from ._config import get_config
from ._dtypes import DType, dtype_of, validate_dtype
from ._errors import InvalidShapeError, InvalidSliceError, ShapeMismatchError

__all__ = ['Sequence', 'SequenceView']


def _slice_bounds(key: slice, extent: int):
    """Resolve a slice without Python's negative-index wraparound."""
    start = 0 if key.start is None else key.start
    stop = extent if key.stop is None else key.stop
    step = 1 if key.step is None else key.step
    return start, stop, step


class _StridedSequence(BufferHandle):
    """
    Element access shared by Sequence and SequenceView.

    Index i maps to buffer position offset + i * stride.
    """

    __slots__ = ('_n', '_offset', '_stride')

    # -------------------------------------------------------------------------
    # Geometry
    # -------------------------------------------------------------------------

    @property
    def length(self) -> int:
        """Number of elements."""
        return self._n

    @property
    def size(self) -> int:
        return self._n

    @property
    def shape(self):
        return (self._n,)

    @property
    def offset(self) -> int:
        return self._offset

    @property
    def stride(self) -> int:
        return self._stride

    @property
    def strides(self):
        return (self._stride,)

    def __len__(self) -> int:
        return self._n

    # -------------------------------------------------------------------------
    # Element Access
    # -------------------------------------------------------------------------

    def _position(self, i) -> int:
        return self._offset + check_index(i, self._n) * self._stride

    def __getitem__(self, key: Union[int, slice]):
        """
        seq[i] reads element i; seq[a:b:c] returns a SequenceView.

        Negative indices are out of bounds, not counted from the end.
        """
        if isinstance(key, slice):
            return self.subvector(*_slice_bounds(key, self._n))
        data = self._storage()
        return data[self._position(key)]

    def __setitem__(self, key: Union[int, slice], value) -> None:
        """
        seq[i] = v stores one element; seq[a:b:c] = x assigns through a view
        (x may be a scalar or an equally long array-like).
        """
        if isinstance(key, slice):
            target = self[key]
            try:
                if is_sequence_like(value) or isinstance(value, (list, tuple)):
                    target.assign(value)
                else:
                    target.fill(value)
            finally:
                target.release()
            return
        data = self._storage()
        data[self._position(key)] = self._dtype.cast(value)

    def __iter__(self) -> Iterator:
        data = self._storage()
        for pos in range(self._offset, self._offset + self._n * self._stride, self._stride):
            yield data[pos]

    def tolist(self) -> List:
        """Copy elements into a Python list."""
        return list(self)

    def fill(self, value) -> None:
        """Store value into every element."""
        data = self._storage()
        value = self._dtype.cast(value)
        for pos in range(self._offset, self._offset + self._n * self._stride, self._stride):
            data[pos] = value

    # -------------------------------------------------------------------------
    # Slicing
    # -------------------------------------------------------------------------

    def subvector(self, start: int, end: Optional[int] = None, stride: int = 1) -> 'SequenceView':
        """
        View elements start, start + stride, ... below end.

        The result aliases this container's buffer:
            offset = self.offset + start * self.stride
            stride = self.stride * stride
            length = ceil((end - start) / stride)

        Raises:
            InvalidSliceError: If start < 0, end > len(self), start >= end
                or stride <= 0
        """
        if end is None:
            end = self._n
        check_range(start, end, self._n, stride, axis="subvector")
        return SequenceView(
            self.buffer,
            -(-(end - start) // stride),
            offset=self._offset + start * self._stride,
            stride=self._stride * stride,
        )

    # -------------------------------------------------------------------------
    # Copy Semantics
    # -------------------------------------------------------------------------

    def assign(self, source: Any) -> None:
        """
        Copy-assign: write source's elements into this container's storage.

        Lengths must match. Storage is never reallocated and, for views,
        never rebound; elements land at this container's mapped positions.

        Raises:
            ShapeMismatchError: If len(source) != len(self), or source is a grid
        """
        if is_grid_like(source):
            raise ShapeMismatchError(
                f"assign: {source.num_rows}x{source.num_columns} grid into length {self._n} sequence"
            )
        check_same_length(self, source, "assign")
        if shares_buffer(self, source) or (
                isinstance(source, np.ndarray) and np.shares_memory(source, self.as_numpy())):
            # Overlapping storage: read everything before writing anything
            source = [source[i] for i in range(len(source))]
        data = self._storage()
        cast = self._dtype.cast
        pos = self._offset
        for i in range(self._n):
            data[pos] = cast(source[i])
            pos += self._stride

    def to_owned(self) -> 'Sequence':
        """Independent owning copy of the viewed elements."""
        return Sequence.from_array(self)

    # -------------------------------------------------------------------------
    # NumPy Interop
    # -------------------------------------------------------------------------

    def as_numpy(self) -> np.ndarray:
        """
        Zero-copy strided ndarray over the same memory.

        Writes through the result are visible here and vice versa.
        """
        base = np.ctypeslib.as_array(self._storage())
        stop = self._offset + (self._n - 1) * self._stride + 1
        return base[self._offset:stop:self._stride]

    def to_numpy(self) -> np.ndarray:
        """Independent ndarray copy."""
        return self.as_numpy().copy()

    def __array__(self, dtype=None, copy=None):
        if copy is False:
            # No-copy request: hand out the aliasing view or refuse
            arr = self.as_numpy()
            if dtype is not None and np.dtype(dtype) != arr.dtype:
                raise ValueError(f"Cannot convert {self._dtype} to {np.dtype(dtype)} without a copy")
            return arr
        arr = self.to_numpy()
        if dtype is not None:
            arr = arr.astype(dtype)
        return arr

    # -------------------------------------------------------------------------
    # Arithmetic (delegates to densa.ops)
    # -------------------------------------------------------------------------

    def __add__(self, other):
        from . import ops
        return ops.add(self, other)

    def __sub__(self, other):
        from . import ops
        return ops.sub(self, other)

    def __mul__(self, scalar):
        from . import ops
        return ops.scale(self, scalar)

    __rmul__ = __mul__

    def __matmul__(self, other):
        from . import ops
        return ops.dot(self, other)

    def __iadd__(self, other):
        from . import ops
        ops.iadd(self, other)
        return self

    def __isub__(self, other):
        from . import ops
        ops.isub(self, other)
        return self

    def __imul__(self, scalar):
        from . import ops
        ops.iscale(self, scalar)
        return self

    # -------------------------------------------------------------------------
    # Representation
    # -------------------------------------------------------------------------

    def __repr__(self) -> str:
        name = type(self).__name__
        if self._buffer is None:
            return f"{name}(<released>, dtype={self._dtype})"
        values = self.tolist()
        if len(values) > 6:
            values = values[:3] + ['...'] + values[-3:]
        return f"{name}({values}, dtype={self._dtype})"


# =============================================================================
# Sequence (owning)
# =============================================================================

class Sequence(_StridedSequence):
    """
    Owning one-dimensional container.

    Attributes:
        length (int): Number of elements (immutable)
        dtype (DType): Element type
        ptr (int): Address of element 0 (storage identity)

    Example:
        >>> a = Sequence(4, fill=1.0)
        >>> b = a.copy()          # independent
        >>> b[0] = 5.0
        >>> a[0]
        1.0
    """

    __slots__ = ()

    def __init__(self, n: int, fill: Any = None, dtype: Union[DType, str, None] = None):
        """
        Allocate n elements.

        Args:
            n: Length (must be positive)
            fill: Initial value for every element. When omitted, contents
                are unspecified; in debug mode floating storage is NaN.
            dtype: Element type (default: configured default)

        Raises:
            InvalidShapeError: If n <= 0
        """
        self._init_storage(n, dtype)
        if fill is not None:
            self._buffer.fill(fill)
        elif get_config().debug:
            self._buffer.fill_sentinel()

    def _init_storage(self, n: int, dtype) -> None:
        if n <= 0:
            raise InvalidShapeError(f"Sequence length must be positive, got {n}")
        self._dtype = validate_dtype(dtype)
        self._buffer = SharedBuffer.allocate(n, self._dtype)
        self._n = n
        self._offset = 0
        self._stride = 1

    @classmethod
    def _adopt(cls, buffer: SharedBuffer, n: int) -> 'Sequence':
        """Owner over an already-retained buffer."""
        seq = cls.__new__(cls)
        seq._buffer = buffer
        seq._dtype = buffer.dtype
        seq._n = n
        seq._offset = 0
        seq._stride = 1
        return seq

    @property
    def is_view(self) -> bool:
        return False

    # -------------------------------------------------------------------------
    # Factory Methods
    # -------------------------------------------------------------------------

    @classmethod
    def from_array(cls, source: Any, dtype: Union[DType, str, None] = None) -> 'Sequence':
        """
        Copy any sequence-like (owning, view, 1-D ndarray) into a new Sequence.

        Raises:
            TypeError: If source is not sequence-like
            InvalidShapeError: If source is empty
        """
        if isinstance(source, np.ndarray):
            return cls.from_numpy(source, dtype=dtype)
        if not is_sequence_like(source):
            raise TypeError(f"Cannot build a Sequence from {type(source).__name__}")
        seq = cls.__new__(cls)
        seq._init_storage(len(source), dtype if dtype is not None else dtype_of(source))
        seq.assign(source)
        return seq

    @classmethod
    def from_list(cls, values: List, dtype: Union[DType, str, None] = None) -> 'Sequence':
        """Create a Sequence from a Python list."""
        seq = cls.__new__(cls)
        seq._init_storage(len(values), dtype)
        seq.assign(values)
        return seq

    @classmethod
    def from_numpy(cls, arr: Any, dtype: Union[DType, str, None] = None) -> 'Sequence':
        """
        Copy a 1-D array into a new Sequence.

        The dtype defaults to the array's own when densa supports it.
        """
        arr = np.asarray(arr)
        if arr.ndim != 1:
            raise InvalidShapeError(f"Expected a 1-D array, got {arr.ndim}-D")
        if dtype is None:
            try:
                dtype = DType.from_numpy(arr.dtype)
            except TypeError:
                dtype = None
        seq = cls.__new__(cls)
        seq._init_storage(arr.shape[0], dtype)
        seq.as_numpy()[:] = arr.astype(seq._dtype.numpy_dtype, copy=False)
        return seq

    # -------------------------------------------------------------------------
    # Copy / Move
    # -------------------------------------------------------------------------

    def copy(self) -> 'Sequence':
        """Deep copy into a fresh buffer."""
        return Sequence.from_array(self)

    def __copy__(self) -> 'Sequence':
        return self.copy()

    def __deepcopy__(self, memo) -> 'Sequence':
        return self.copy()

    def move(self) -> 'Sequence':
        """
        Transfer the buffer to a new owner.

        The result's ptr equals this container's ptr. Under the shared
        ownership policy this container stays valid and aliases the result
        until released.
        """
        return Sequence._adopt(self.buffer.retain(), self._n)

    def move_from(self, source: 'Sequence') -> None:
        """
        Move-assign: adopt source's buffer in place of this one.

        Raises:
            TypeError: If source is not a Sequence
            ShapeMismatchError: If lengths differ
        """
        if not isinstance(source, Sequence):
            raise TypeError(f"move_from expects a Sequence, got {type(source).__name__}")
        check_same_length(self, source, "move_from")
        incoming = source.buffer.retain()
        self.release()
        self._buffer = incoming
        self._dtype = incoming.dtype

    def view(self) -> 'SequenceView':
        """View over the whole sequence."""
        return SequenceView.of(self)


# =============================================================================
# SequenceView (non-owning)
# =============================================================================

class SequenceView(_StridedSequence):
    """
    Strided window onto a buffer owned elsewhere.

    Element i lives at buffer position offset + i * stride. Copying or moving
    a view only duplicates (buffer, offset, stride, length); every duplicate
    reads and writes the same elements.

    Example:
        >>> seq = Sequence.from_list([0.0, 1.0, 2.0, 3.0])
        >>> v = seq[::2]
        >>> w = copy.copy(v)     # alias, not a copy
        >>> w[1] = 9.0
        >>> seq[2]
        9.0
    """

    __slots__ = ()

    def __init__(self, buffer: SharedBuffer, n: int, offset: int = 0, stride: int = 1):
        """
        View n elements of buffer starting at offset, stride apart.

        Retains buffer; release() gives the reference back.

        Raises:
            InvalidShapeError: If the geometry leaves the buffer's capacity
        """
        if n <= 0:
            raise InvalidShapeError(f"View length must be positive, got {n}")
        if offset < 0 or stride < 1:
            raise InvalidShapeError(f"Invalid view geometry: offset={offset}, stride={stride}")
        last = offset + (n - 1) * stride
        if last >= buffer.capacity:
            raise InvalidShapeError(
                f"View reaches position {last}, buffer capacity is {buffer.capacity}"
            )
        self._buffer = buffer.retain()
        self._dtype = buffer.dtype
        self._n = n
        self._offset = offset
        self._stride = stride

    @property
    def is_view(self) -> bool:
        return True

    @classmethod
    def of(cls, source: _StridedSequence) -> 'SequenceView':
        """View with the same buffer, offset, stride and length as source."""
        return cls(source.buffer, source.length, source.offset, source.stride)

    @classmethod
    def from_buffer(
        cls,
        source: Any,
        n: Optional[int] = None,
        offset: int = 0,
        stride: int = 1,
        dtype: Union[DType, str, None] = None,
    ) -> 'SequenceView':
        """
        View external writable memory (bytearray, ndarray, ...).

        WARNING: source is never freed by densa and must outlive the view.

        Args:
            source: Writable buffer-protocol object
            n: Length (default: every stride-th element from offset)
            offset: Element position of the first element
            stride: Elements between consecutive entries
            dtype: How to interpret the memory (default: configured default)
        """
        buf = SharedBuffer.wrap(source, dtype)
        try:
            if n is None:
                if stride < 1 or offset >= buf.capacity:
                    raise InvalidSliceError(
                        f"Invalid geometry for {buf.capacity} elements: "
                        f"offset={offset}, stride={stride}"
                    )
                n = -(-(buf.capacity - offset) // stride)
            return cls(buf, n, offset, stride)
        finally:
            buf.release()

    def alias(self) -> 'SequenceView':
        """Another handle on the same elements."""
        return SequenceView.of(self)

    def move(self) -> 'SequenceView':
        """Shallow: identical to alias()."""
        return self.alias()

    def __copy__(self) -> 'SequenceView':
        return self.alias()

    def __deepcopy__(self, memo) -> 'SequenceView':
        # Views never duplicate elements; use to_owned() for a real copy
        return self.alias()

