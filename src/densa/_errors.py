"""
Error handling for densa.

Every failure raised by the containers is a DensaError carrying a numeric
code. Each concrete error also derives from the matching builtin exception,
so callers can catch either `IndexOutOfBoundsError` or plain `IndexError`.
"""

from __future__ import annotations

from typing import Optional


# =============================================================================
# Error Codes
# =============================================================================

# Success
DENSA_OK = 0

# General errors (1-9)
DENSA_ERROR_UNKNOWN = 1
DENSA_ERROR_OUT_OF_MEMORY = 3
DENSA_ERROR_RELEASED = 5

# Argument errors (10-19)
DENSA_ERROR_INVALID_ARGUMENT = 10
DENSA_ERROR_DIMENSION_MISMATCH = 11
DENSA_ERROR_INVALID_SLICE = 13
DENSA_ERROR_INDEX_OUT_OF_BOUNDS = 14


_ERROR_MESSAGES = {
    DENSA_OK: "Success",
    DENSA_ERROR_UNKNOWN: "Unknown error",
    DENSA_ERROR_OUT_OF_MEMORY: "Out of memory",
    DENSA_ERROR_RELEASED: "Storage already released",
    DENSA_ERROR_INVALID_ARGUMENT: "Invalid argument",
    DENSA_ERROR_DIMENSION_MISMATCH: "Dimension mismatch",
    DENSA_ERROR_INVALID_SLICE: "Invalid slice",
    DENSA_ERROR_INDEX_OUT_OF_BOUNDS: "Index out of bounds",
}


# =============================================================================
# Exception Classes
# =============================================================================

class DensaError(Exception):
    """
    Base exception for all densa errors.
    """

    code = DENSA_ERROR_UNKNOWN

    def __init__(self, message: Optional[str] = None, code: Optional[int] = None):
        if code is not None:
            self.code = code
        if message is None:
            message = _ERROR_MESSAGES.get(self.code, f"Unknown error (code={self.code})")
        self.message = message
        super().__init__(message)

    @classmethod
    def from_code(cls, code: int, context: str = "") -> "DensaError":
        """Create the exception matching an error code, with optional context."""
        base_msg = _ERROR_MESSAGES.get(code, "Unknown error")
        msg = f"{context}: {base_msg}" if context else base_msg
        target = _CODE_TO_CLASS.get(code, cls)
        return target(msg, code)


class IndexOutOfBoundsError(DensaError, IndexError):
    """Index outside [0, extent) on some dimension."""
    code = DENSA_ERROR_INDEX_OUT_OF_BOUNDS


class ShapeMismatchError(DensaError, ValueError):
    """Operands whose extents must agree do not."""
    code = DENSA_ERROR_DIMENSION_MISMATCH


class InvalidSliceError(DensaError, ValueError):
    """Negative start, end past extent, empty range, or non-positive stride."""
    code = DENSA_ERROR_INVALID_SLICE


class InvalidShapeError(DensaError, ValueError):
    """Non-positive extent, or view geometry outside its buffer."""
    code = DENSA_ERROR_INVALID_ARGUMENT


class AllocationError(DensaError, MemoryError):
    """Backing storage could not be allocated."""
    code = DENSA_ERROR_OUT_OF_MEMORY


class ReleasedError(DensaError, RuntimeError):
    """Container or buffer used after release."""
    code = DENSA_ERROR_RELEASED


_CODE_TO_CLASS = {
    DENSA_ERROR_INDEX_OUT_OF_BOUNDS: IndexOutOfBoundsError,
    DENSA_ERROR_DIMENSION_MISMATCH: ShapeMismatchError,
    DENSA_ERROR_INVALID_SLICE: InvalidSliceError,
    DENSA_ERROR_INVALID_ARGUMENT: InvalidShapeError,
    DENSA_ERROR_OUT_OF_MEMORY: AllocationError,
    DENSA_ERROR_RELEASED: ReleasedError,
}
