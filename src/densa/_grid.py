"""
Grid and GridView

Two-dimensional dense containers in column-major order.

Memory Layout:
    Grid      element (i, j) at buffer position i + j * m  (ld == m)
    GridView  element (i, j) at buffer position offset + i + j * ld

    For a 4 x 3 grid the buffer holds columns back to back:

        position  0  1  2  3 | 4  5  6  7 | 8  9 10 11
        element  (0,0)...(3,0)|(0,1)..(3,1)|(0,2)..(3,2)

Slicing Rules (no element is copied):
    submatrix(i1, i2, j1, j2)  rows i2-i1, columns j2-j1, same ld,
                               offset + i1 + j1 * ld
    row(i)                     SequenceView: n elements, stride ld,
                               offset + i
    column(j)                  SequenceView: m elements, stride 1,
                               offset + j * ld

Example:
    >>> g = Grid.from_rows([[0, 1, 2], [1, 2, 3], [2, 3, 4], [3, 4, 5]])
    >>> s = g.submatrix(1, 3, 1, 3)
    >>> s[0, 0]
    2.0
    >>> s[0, 0] = 99
    >>> g[1, 1]
    99.0
"""

from __future__ import annotations

from typing import Any, Iterator, List, Optional, Tuple, Union

import numpy as np

from ._base import (
    check_index,
    check_range,
    check_same_shape,
    is_grid_like,
    is_sequence_like,
    shares_buffer,
)
from ._buffer import BufferHandle, SharedBuffer
from ._config import get_config
from ._dtypes import DType, dtype_of, validate_dtype
from ._errors import InvalidShapeError, InvalidSliceError
from ._sequence import SequenceView

__all__ = ['Grid', 'GridView']


def _unit_slice(key: slice, extent: int, axis: str) -> Tuple[int, int]:
    if key.step not in (None, 1):
        raise InvalidSliceError(f"{axis} slices of a grid must have step 1, got {key.step}")
    start = 0 if key.start is None else key.start
    stop = extent if key.stop is None else key.stop
    return start, stop


class _ColumnMajorGrid(BufferHandle):
    """
    Element access shared by Grid and GridView.

    Element (i, j) maps to buffer position offset + i + j * ld.
    """

    __slots__ = ('_m', '_n', '_ld', '_offset')

    # -------------------------------------------------------------------------
    # Geometry
    # -------------------------------------------------------------------------

    @property
    def num_rows(self) -> int:
        return self._m

    @property
    def num_columns(self) -> int:
        return self._n

    @property
    def shape(self) -> Tuple[int, int]:
        """(rows, columns)."""
        return (self._m, self._n)

    @property
    def size(self) -> int:
        """Total number of elements."""
        return self._m * self._n

    @property
    def ld(self) -> int:
        """Leading dimension: buffer positions between consecutive columns."""
        return self._ld

    @property
    def offset(self) -> int:
        return self._offset

    @property
    def strides(self) -> Tuple[int, int]:
        return (1, self._ld)

    # -------------------------------------------------------------------------
    # Element Access
    # -------------------------------------------------------------------------

    def _position(self, i, j) -> int:
        return (
            self._offset
            + check_index(i, self._m, "row")
            + check_index(j, self._n, "column") * self._ld
        )

    def _split_key(self, key) -> Tuple[Any, Any]:
        if not isinstance(key, tuple) or len(key) != 2:
            raise TypeError(f"Grid indices must be (row, column) pairs, got {key!r}")
        return key

    def __getitem__(self, key):
        """
        g[i, j]       element (i, j)
        g[a:b, c:d]   GridView over rows [a, b) and columns [c, d)
        g[i, c:d]     SequenceView over part of row i
        g[a:b, j]     SequenceView over part of column j
        """
        i, j = self._split_key(key)
        if isinstance(i, slice) and isinstance(j, slice):
            return self.submatrix(*_unit_slice(i, self._m, "row"),
                                  *_unit_slice(j, self._n, "column"))
        if isinstance(j, slice):
            start, stop = _unit_slice(j, self._n, "column")
            check_range(start, stop, self._n, axis="column")
            return SequenceView(self.buffer, stop - start,
                                offset=self._position(i, start), stride=self._ld)
        if isinstance(i, slice):
            start, stop = _unit_slice(i, self._m, "row")
            check_range(start, stop, self._m, axis="row")
            return SequenceView(self.buffer, stop - start,
                                offset=self._position(start, j), stride=1)
        data = self._storage()
        return data[self._position(i, j)]

    def __setitem__(self, key, value) -> None:
        """g[i, j] = v stores one element; slice keys assign through a view."""
        i, j = self._split_key(key)
        if isinstance(i, slice) or isinstance(j, slice):
            target = self[key]
            try:
                if (is_grid_like(value) or is_sequence_like(value)
                        or isinstance(value, (list, tuple))):
                    target.assign(value)
                else:
                    target.fill(value)
            finally:
                target.release()
            return
        data = self._storage()
        data[self._position(i, j)] = self._dtype.cast(value)

    def _positions(self) -> Iterator[int]:
        """Buffer positions in column-major order."""
        for j in range(self._n):
            base = self._offset + j * self._ld
            yield from range(base, base + self._m)

    def fill(self, value) -> None:
        """Store value into every element."""
        data = self._storage()
        value = self._dtype.cast(value)
        for pos in self._positions():
            data[pos] = value

    def tolist(self) -> List[List]:
        """Rows as nested Python lists."""
        data = self._storage()
        return [
            [data[self._offset + i + j * self._ld] for j in range(self._n)]
            for i in range(self._m)
        ]

    # -------------------------------------------------------------------------
    # Slicing
    # -------------------------------------------------------------------------

    def submatrix(self, i1: int, i2: int, j1: int, j2: int) -> 'GridView':
        """
        View rows [i1, i2) and columns [j1, j2).

        Raises:
            InvalidSliceError: If either range is empty or out of bounds
        """
        check_range(i1, i2, self._m, axis="row")
        check_range(j1, j2, self._n, axis="column")
        return GridView(
            self.buffer, i2 - i1, j2 - j1,
            ld=self._ld,
            offset=self._offset + i1 + j1 * self._ld,
        )

    def row(self, i: int) -> SequenceView:
        """Row i as a SequenceView (stride ld)."""
        i = check_index(i, self._m, "row")
        return SequenceView(self.buffer, self._n, offset=self._offset + i, stride=self._ld)

    def column(self, j: int) -> SequenceView:
        """Column j as a contiguous SequenceView."""
        j = check_index(j, self._n, "column")
        return SequenceView(self.buffer, self._m, offset=self._offset + j * self._ld, stride=1)

    def rows(self) -> Iterator[SequenceView]:
        for i in range(self._m):
            yield self.row(i)

    def columns(self) -> Iterator[SequenceView]:
        for j in range(self._n):
            yield self.column(j)

    # -------------------------------------------------------------------------
    # Copy Semantics
    # -------------------------------------------------------------------------

    def assign(self, source: Any) -> None:
        """
        Copy-assign: write source's elements into this container's storage.

        source may be grid-like, a 2-D ndarray, or a list of rows. Shapes
        must match; storage
        is never reallocated or rebound.

        Raises:
            ShapeMismatchError: If shapes differ
        """
        if isinstance(source, (list, tuple)):
            source = Grid.from_rows(source, dtype=self._dtype)
        elif isinstance(source, np.ndarray):
            source = Grid.from_numpy(source, dtype=self._dtype)
        check_same_shape(self, source, "assign")
        if shares_buffer(self, source):
            # Overlapping views: read everything before writing anything
            source = Grid.from_array(source)
        data = self._storage()
        cast = self._dtype.cast
        for j in range(self._n):
            base = self._offset + j * self._ld
            for i in range(self._m):
                data[base + i] = cast(source[i, j])

    def to_owned(self) -> 'Grid':
        """Independent owning copy of the viewed elements."""
        return Grid.from_array(self)

    # -------------------------------------------------------------------------
    # NumPy Interop
    # -------------------------------------------------------------------------

    def as_numpy(self) -> np.ndarray:
        """
        Zero-copy (rows, columns) ndarray over the same memory.

        Writes through the result are visible here and vice versa.
        """
        base = np.ctypeslib.as_array(self._storage())
        itemsize = self._dtype.itemsize
        return np.lib.stride_tricks.as_strided(
            base[self._offset:],
            shape=(self._m, self._n),
            strides=(itemsize, self._ld * itemsize),
        )

    def to_numpy(self) -> np.ndarray:
        """Independent (rows, columns) ndarray copy."""
        return np.array(self.as_numpy())

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
        if is_grid_like(other):
            return ops.matmul(self, other)
        return ops.matvec(self, other)

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

    @property
    def T(self) -> 'Grid':
        """Transposed copy."""
        from . import ops
        return ops.transpose(self)

    def __repr__(self) -> str:
        name = type(self).__name__
        if self._buffer is None:
            return f"{name}(<released>, shape={self.shape}, dtype={self._dtype})"
        return f"{name}(shape={self.shape}, ld={self._ld}, dtype={self._dtype})"


# =============================================================================
# Grid (owning)
# =============================================================================

class Grid(_ColumnMajorGrid):
    """
    Owning column-major two-dimensional container.

    Attributes:
        num_rows (int): m (immutable)
        num_columns (int): n (immutable)
        ld (int): Leading dimension, always m
        ptr (int): Address of element (0, 0) (storage identity)

    Example:
        >>> A = Grid(3, 2, fill=0.0)
        >>> A[2, 1] = 5.0
        >>> B = A.copy()               # independent
        >>> col = A.column(1)          # aliases A
        >>> col[2]
        5.0
    """

    __slots__ = ()

    def __init__(self, m: int, n: int, fill: Any = None,
                 dtype: Union[DType, str, None] = None):
        """
        Allocate an m x n grid.

        Args:
            m: Rows (must be positive)
            n: Columns (must be positive)
            fill: Initial value for every element. When omitted, contents
                are unspecified; in debug mode floating storage is NaN.
            dtype: Element type (default: configured default)

        Raises:
            InvalidShapeError: If m <= 0 or n <= 0
        """
        self._init_storage(m, n, dtype)
        if fill is not None:
            self._buffer.fill(fill)
        elif get_config().debug:
            self._buffer.fill_sentinel()

    def _init_storage(self, m: int, n: int, dtype) -> None:
        if m <= 0 or n <= 0:
            raise InvalidShapeError(f"Grid extents must be positive, got ({m}, {n})")
        self._dtype = validate_dtype(dtype)
        self._buffer = SharedBuffer.allocate(m * n, self._dtype)
        self._m = m
        self._n = n
        self._ld = m
        self._offset = 0

    @classmethod
    def _adopt(cls, buffer: SharedBuffer, m: int, n: int) -> 'Grid':
        """Owner over an already-retained buffer."""
        grid = cls.__new__(cls)
        grid._buffer = buffer
        grid._dtype = buffer.dtype
        grid._m = m
        grid._n = n
        grid._ld = m
        grid._offset = 0
        return grid

    @property
    def is_view(self) -> bool:
        return False

    # -------------------------------------------------------------------------
    # Factory Methods
    # -------------------------------------------------------------------------

    @classmethod
    def from_array(cls, source: Any, dtype: Union[DType, str, None] = None) -> 'Grid':
        """
        Copy any grid-like (owning, view, 2-D ndarray) into a new Grid.

        Raises:
            TypeError: If source is not grid-like
        """
        if isinstance(source, np.ndarray):
            return cls.from_numpy(source, dtype=dtype)
        if not is_grid_like(source):
            raise TypeError(f"Cannot build a Grid from {type(source).__name__}")
        grid = cls.__new__(cls)
        grid._init_storage(source.num_rows, source.num_columns,
                           dtype if dtype is not None else dtype_of(source))
        data = grid._storage()
        cast = grid._dtype.cast
        pos = 0
        for j in range(grid._n):
            for i in range(grid._m):
                data[pos] = cast(source[i, j])
                pos += 1
        return grid

    @classmethod
    def from_rows(cls, rows: List[List], dtype: Union[DType, str, None] = None) -> 'Grid':
        """
        Create a Grid from nested lists, one inner list per row.

        Raises:
            InvalidShapeError: If rows are ragged or empty
        """
        m = len(rows)
        n = len(rows[0]) if m else 0
        if any(len(r) != n for r in rows):
            raise InvalidShapeError("Rows must all have the same length")
        grid = cls.__new__(cls)
        grid._init_storage(m, n, dtype)
        data = grid._storage()
        cast = grid._dtype.cast
        for i, row in enumerate(rows):
            for j, value in enumerate(row):
                data[i + j * m] = cast(value)
        return grid

    @classmethod
    def from_numpy(cls, arr: Any, dtype: Union[DType, str, None] = None) -> 'Grid':
        """
        Copy a 2-D array into a new Grid.

        The dtype defaults to the array's own when densa supports it.
        """
        arr = np.asarray(arr)
        if arr.ndim != 2:
            raise InvalidShapeError(f"Expected a 2-D array, got {arr.ndim}-D")
        if dtype is None:
            try:
                dtype = DType.from_numpy(arr.dtype)
            except TypeError:
                dtype = None
        grid = cls.__new__(cls)
        grid._init_storage(arr.shape[0], arr.shape[1], dtype)
        grid.as_numpy()[:, :] = arr.astype(grid._dtype.numpy_dtype, copy=False)
        return grid

    # -------------------------------------------------------------------------
    # Copy / Move
    # -------------------------------------------------------------------------

    def copy(self) -> 'Grid':
        """Deep copy into a fresh buffer."""
        return Grid.from_array(self)

    def __copy__(self) -> 'Grid':
        return self.copy()

    def __deepcopy__(self, memo) -> 'Grid':
        return self.copy()

    def move(self) -> 'Grid':
        """
        Transfer the buffer to a new owner.

        The result's ptr equals this grid's ptr; this grid stays valid and
        aliases the result until released (shared ownership policy).
        """
        return Grid._adopt(self.buffer.retain(), self._m, self._n)

    def move_from(self, source: 'Grid') -> None:
        """
        Move-assign: adopt source's buffer in place of this one.

        Raises:
            TypeError: If source is not a Grid
            ShapeMismatchError: If shapes differ
        """
        if not isinstance(source, Grid):
            raise TypeError(f"move_from expects a Grid, got {type(source).__name__}")
        check_same_shape(self, source, "move_from")
        incoming = source.buffer.retain()
        self.release()
        self._buffer = incoming
        self._dtype = incoming.dtype

    def view(self) -> 'GridView':
        """View over the whole grid (ld = rows, offset 0)."""
        return GridView.of(self)


# =============================================================================
# GridView (non-owning)
# =============================================================================

class GridView(_ColumnMajorGrid):
    """
    Rectangular window onto a column-major buffer owned elsewhere.

    Copying or moving a view duplicates only (buffer, offset, ld, extents).
    assign() writes through the view; it never changes which buffer the view
    aliases.
    """

    __slots__ = ()

    def __init__(self, buffer: SharedBuffer, m: int, n: int,
                 ld: Optional[int] = None, offset: int = 0):
        """
        View an m x n block of buffer.

        Args:
            buffer: Buffer to alias (retained)
            m: Rows
            n: Columns
            ld: Leading dimension (default: m); must be >= m
            offset: Buffer position of element (0, 0)

        Raises:
            InvalidShapeError: If the block does not fit in the buffer
        """
        if ld is None:
            ld = m
        if m <= 0 or n <= 0:
            raise InvalidShapeError(f"View extents must be positive, got ({m}, {n})")
        if ld < m:
            raise InvalidShapeError(f"Leading dimension {ld} is smaller than rows {m}")
        if offset < 0:
            raise InvalidShapeError(f"View offset must be non-negative, got {offset}")
        last = offset + (m - 1) + (n - 1) * ld
        if last >= buffer.capacity:
            raise InvalidShapeError(
                f"View reaches position {last}, buffer capacity is {buffer.capacity}"
            )
        self._buffer = buffer.retain()
        self._dtype = buffer.dtype
        self._m = m
        self._n = n
        self._ld = ld
        self._offset = offset

    @property
    def is_view(self) -> bool:
        return True

    @classmethod
    def of(cls, source: _ColumnMajorGrid) -> 'GridView':
        """View with the same buffer, extents, ld and offset as source."""
        return cls(source.buffer, source.num_rows, source.num_columns,
                   ld=source.ld, offset=source.offset)

    @classmethod
    def from_buffer(
        cls,
        source: Any,
        m: int,
        n: int,
        ld: Optional[int] = None,
        offset: int = 0,
        dtype: Union[DType, str, None] = None,
    ) -> 'GridView':
        """
        View external writable memory as a column-major m x n grid.

        WARNING: source is never freed by densa and must outlive the view.
        """
        buf = SharedBuffer.wrap(source, dtype)
        try:
            return cls(buf, m, n, ld=ld, offset=offset)
        finally:
            buf.release()

    def alias(self) -> 'GridView':
        """Another handle on the same elements."""
        return GridView.of(self)

    def move(self) -> 'GridView':
        """Shallow: identical to alias()."""
        return self.alias()

    def __copy__(self) -> 'GridView':
        return self.alias()

    def __deepcopy__(self, memo) -> 'GridView':
        # Views never duplicate elements; use to_owned() for a real copy
        return self.alias()
