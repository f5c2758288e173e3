"""
Tests for the error hierarchy.
"""

import pytest

from densa import Sequence, Grid
from densa import (
    DensaError,
    IndexOutOfBoundsError,
    ShapeMismatchError,
    InvalidSliceError,
    InvalidShapeError,
    AllocationError,
    ReleasedError,
)
from densa._errors import (
    DENSA_ERROR_INDEX_OUT_OF_BOUNDS,
    DENSA_ERROR_DIMENSION_MISMATCH,
    DENSA_ERROR_RELEASED,
    DENSA_ERROR_UNKNOWN,
)


class TestHierarchy:
    """Test every error is both a DensaError and a builtin."""

    @pytest.mark.parametrize("cls, builtin", [
        (IndexOutOfBoundsError, IndexError),
        (ShapeMismatchError, ValueError),
        (InvalidSliceError, ValueError),
        (InvalidShapeError, ValueError),
        (AllocationError, MemoryError),
        (ReleasedError, RuntimeError),
    ])
    def test_bases(self, requires_densa, cls, builtin):
        """Test both base classes."""
        assert issubclass(cls, DensaError)
        assert issubclass(cls, builtin)

    def test_default_message(self, requires_densa):
        """Test the message defaults to the code's description."""
        err = IndexOutOfBoundsError()
        assert err.code == DENSA_ERROR_INDEX_OUT_OF_BOUNDS
        assert str(err) == "Index out of bounds"

    def test_from_code(self, requires_densa):
        """Test mapping numeric codes to exception classes."""
        err = DensaError.from_code(DENSA_ERROR_DIMENSION_MISMATCH, "add")
        assert isinstance(err, ShapeMismatchError)
        assert str(err) == "add: Dimension mismatch"

        assert isinstance(DensaError.from_code(DENSA_ERROR_RELEASED), ReleasedError)
        unknown = DensaError.from_code(999)
        assert type(unknown) is DensaError
        assert unknown.code == 999

    def test_base_code(self, requires_densa):
        """Test the base class code."""
        assert DensaError().code == DENSA_ERROR_UNKNOWN


class TestRaisedErrors:
    """Test containers raise the documented errors."""

    def test_catch_as_densa_error(self, requires_densa):
        """Test one except clause covers every container failure."""
        seq = Sequence(3, fill=0.0)
        grid = Grid(2, 2, fill=0.0)
        failures = [
            lambda: seq[3],
            lambda: seq.subvector(2, 1),
            lambda: grid[2, 0],
            lambda: grid.submatrix(0, 3, 0, 1),
            lambda: seq.assign([1.0]),
            lambda: Sequence(0),
        ]
        for fail in failures:
            with pytest.raises(DensaError):
                fail()

    def test_error_messages(self, requires_densa):
        """Test messages name the offending values."""
        seq = Sequence(3, fill=0.0)
        with pytest.raises(IndexOutOfBoundsError, match=r"5 out of bounds \[0, 3\)"):
            seq[5]
        with pytest.raises(InvalidSliceError, match="stride"):
            seq.subvector(0, 3, -1)
