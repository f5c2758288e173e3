"""
Shared Buffer

Reference-counted block of homogeneous elements backing every container.

Memory Model:
    - OWNED buffers are allocated here (ctypes, aligned) and freed when the
      reference count drops to zero.
    - BORROWED buffers wrap external writable memory (bytearray, numpy
      arrays, ...). densa never frees that memory; the caller keeps it alive
      for as long as any view over it exists.

The count is updated under a lock so retain/release are atomic. Element
reads and writes are not synchronized.
"""

from __future__ import annotations

import ctypes
import logging
import math
import threading
import weakref
from typing import Any, List, Optional, Union

from ._config import get_config
from ._dtypes import DType, validate_dtype
from ._errors import AllocationError, InvalidShapeError, ReleasedError

__all__ = ['SharedBuffer', 'BufferHandle', 'live_buffers']

logger = logging.getLogger("densa.buffer")

# Default alignment for SIMD-friendly allocation (64 bytes for AVX-512)
DEFAULT_ALIGNMENT = 64

_registry: "weakref.WeakSet[SharedBuffer]" = weakref.WeakSet()


class SharedBuffer:
    """
    Reference-counted element storage.

    Attributes:
        dtype (DType): Element type
        capacity (int): Number of elements
        refcount (int): Number of live referrers
        ptr (int): Base address (0 once freed)

    No element operation here is bounds-checked beyond what ctypes itself
    enforces; containers check their indices before touching storage.

    Example:
        >>> buf = SharedBuffer.allocate(10, 'float64')
        >>> buf.refcount
        1
        >>> buf.retain() is buf
        True
        >>> buf.release(); buf.release()
        >>> buf.is_alive
        False
    """

    __slots__ = (
        '_dtype', '_capacity', '_refcount', '_lock',
        '_data', '_owner', '_borrowed', '__weakref__',
    )

    def __init__(self, data, owner: Any, capacity: int, dtype: DType, borrowed: bool):
        """
        Internal constructor - use allocate() or wrap() instead.
        """
        self._dtype = dtype
        self._capacity = capacity
        self._refcount = 1
        self._lock = threading.Lock()
        self._data = data
        self._owner = owner
        self._borrowed = borrowed
        if get_config().track_buffers:
            _registry.add(self)

    # -------------------------------------------------------------------------
    # Construction
    # -------------------------------------------------------------------------

    @classmethod
    def allocate(
        cls,
        capacity: int,
        dtype: Union[DType, str, None] = None,
        align: int = DEFAULT_ALIGNMENT,
    ) -> 'SharedBuffer':
        """
        Allocate a new buffer with reference count 1.

        Args:
            capacity: Number of elements (must be positive)
            dtype: Element type (default: configured default)
            align: Alignment of the first element in bytes

        Raises:
            InvalidShapeError: If capacity is not positive
            AllocationError: If the memory cannot be obtained
        """
        if capacity <= 0:
            raise InvalidShapeError(f"Buffer capacity must be positive, got {capacity}")
        dtype = validate_dtype(dtype)
        ctype = dtype.ctype
        nbytes = capacity * dtype.itemsize

        try:
            # Over-allocate, then place the typed array at the aligned address
            raw = (ctypes.c_uint8 * (nbytes + align))()
        except (MemoryError, OverflowError) as e:
            raise AllocationError(
                f"Cannot allocate {capacity} x {dtype} ({nbytes} bytes): {e}"
            ) from e
        addr = ctypes.addressof(raw)
        aligned_addr = (addr + align - 1) & ~(align - 1)
        # from_buffer keeps raw alive for as long as data is referenced
        data = (ctype * capacity).from_buffer(raw, aligned_addr - addr)

        buf = cls(data, raw, capacity, dtype, borrowed=False)
        logger.debug(f"Allocated {buf!r}")
        return buf

    @classmethod
    def wrap(
        cls,
        source: Any,
        dtype: Union[DType, str, None] = None,
        size: Optional[int] = None,
    ) -> 'SharedBuffer':
        """
        Borrow external writable memory (zero-copy).

        WARNING: densa never frees borrowed memory. The source must stay
        alive and unresized while any view over it exists.

        Args:
            source: Writable object supporting the buffer protocol
            dtype: Element type (default: configured default)
            size: Number of elements (default: as many as fit)

        Raises:
            TypeError: If source is read-only or not a buffer
            InvalidShapeError: If source is smaller than size elements
        """
        dtype = validate_dtype(dtype)
        try:
            mv = memoryview(source)
        except TypeError as e:
            raise TypeError(f"Cannot wrap {type(source).__name__}: {e}") from e
        if mv.readonly:
            raise TypeError(f"Cannot wrap read-only buffer of {type(source).__name__}")
        if not mv.c_contiguous:
            raise TypeError("Cannot wrap non-contiguous buffer")

        available = mv.nbytes // dtype.itemsize
        if size is None:
            size = available
        if size <= 0 or size > available:
            raise InvalidShapeError(
                f"Buffer too small: need {size} x {dtype}, have {mv.nbytes} bytes"
            )
        data = (dtype.ctype * size).from_buffer(mv.cast('B'))

        buf = cls(data, source, size, dtype, borrowed=True)
        logger.debug(f"Wrapped external memory as {buf!r}")
        return buf

    # -------------------------------------------------------------------------
    # Reference Counting
    # -------------------------------------------------------------------------

    def retain(self) -> 'SharedBuffer':
        """Increment the reference count and return this handle."""
        with self._lock:
            if self._refcount == 0:
                raise ReleasedError("Cannot retain a freed buffer")
            self._refcount += 1
        return self

    def release(self) -> None:
        """Decrement the reference count, freeing storage when it reaches zero."""
        with self._lock:
            if self._refcount == 0:
                logger.warning(f"Release of already freed buffer {self!r}")
                return
            self._refcount -= 1
            if self._refcount > 0:
                return
            data, owner = self._data, self._owner
            self._data = None
            self._owner = None
        if self._borrowed:
            logger.debug(f"Dropped borrowed {self._capacity} x {self._dtype} buffer")
        else:
            logger.debug(f"Freed {self._capacity} x {self._dtype} buffer")
        del data, owner

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def dtype(self) -> DType:
        return self._dtype

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def refcount(self) -> int:
        return self._refcount

    @property
    def itemsize(self) -> int:
        return self._dtype.itemsize

    @property
    def nbytes(self) -> int:
        return self._capacity * self._dtype.itemsize

    @property
    def is_alive(self) -> bool:
        return self._data is not None

    @property
    def is_borrowed(self) -> bool:
        """True if the memory belongs to an external object."""
        return self._borrowed

    @property
    def ptr(self) -> int:
        """Base address of element 0 (0 once freed)."""
        if self._data is None:
            return 0
        return ctypes.addressof(self._data)

    @property
    def data(self):
        """
        Underlying ctypes array.

        UNSAFE: indexing it bypasses container bounds checks.

        Raises:
            ReleasedError: If the buffer has been freed
        """
        if self._data is None:
            raise ReleasedError("Buffer has been freed")
        return self._data

    # -------------------------------------------------------------------------
    # Bulk Helpers
    # -------------------------------------------------------------------------

    def fill(self, value, start: int = 0, stop: Optional[int] = None) -> None:
        """Store value into positions [start, stop)."""
        data = self.data
        if stop is None:
            stop = self._capacity
        value = self._dtype.cast(value)
        for pos in range(start, stop):
            data[pos] = value

    def fill_sentinel(self) -> None:
        """NaN-fill floating storage so reads of unwritten elements stand out."""
        if self._dtype.is_floating:
            self.fill(math.nan)

    def tolist(self) -> List:
        """Copy all elements into a Python list."""
        return list(self.data)

    def __repr__(self) -> str:
        kind = "borrowed" if self._borrowed else "owned"
        state = f"refcount={self._refcount}" if self.is_alive else "freed"
        return f"SharedBuffer({self._capacity} x {self._dtype}, {kind}, {state})"


class BufferHandle:
    """
    A referrer of one SharedBuffer.

    Holds exactly one reference on its buffer, given back by release(),
    on context-manager exit, or when the handle is garbage collected.
    Subclasses map their indices onto buffer positions.
    """

    __slots__ = ('_buffer', '_dtype', '__weakref__')

    def __del__(self):
        """Give back the buffer reference (never frees memory still in use)."""
        if getattr(self, '_buffer', None) is not None:
            self.release()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.release()

    def release(self) -> None:
        """
        Drop this handle's reference on its buffer.

        The buffer is freed only when no other container references it.
        Idempotent; any later element access raises ReleasedError.
        """
        buf = self._buffer
        if buf is not None:
            self._buffer = None
            buf.release()

    @property
    def is_released(self) -> bool:
        return self._buffer is None

    def _storage(self):
        """ctypes array behind this handle."""
        buf = self._buffer
        if buf is None:
            raise ReleasedError(f"{type(self).__name__} has been released")
        return buf.data

    @property
    def buffer(self) -> SharedBuffer:
        """
        The SharedBuffer this handle references.

        UNSAFE: buffer.data bypasses this container's bounds checks.
        """
        if self._buffer is None:
            raise ReleasedError(f"{type(self).__name__} has been released")
        return self._buffer

    @property
    def dtype(self) -> DType:
        """Element type."""
        return self._dtype

    @property
    def offset(self) -> int:
        """Buffer position of the first element."""
        return 0

    @property
    def ptr(self) -> int:
        """Address of the first element; identifies storage."""
        return self.buffer.ptr + self.offset * self._dtype.itemsize

    @property
    def storage(self):
        """StorageInfo snapshot (ownership, offset, strides, refcount)."""
        from ._ownership import storage_info
        return storage_info(self)


def live_buffers() -> List[SharedBuffer]:
    """
    Buffers allocated while `track_buffers` was enabled and still alive.

    Useful in tests for detecting containers that were never released.
    """
    return [buf for buf in list(_registry) if buf.is_alive]
