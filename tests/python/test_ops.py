"""
Tests for array operations.

Tests the routines in densa.ops:
- Elementwise: add, sub, scale and the in-place forms
- Reductions: dot, norm
- Products: matvec, matmul, transpose
- Initialization and printing: randomize, format_array, print_array
"""

import pytest
import numpy as np

from densa import Grid, Sequence, ops, config_context
from densa import float64, int64
from densa import ShapeMismatchError
from conftest import assert_array_equal


# =============================================================================
# Elementwise Operations Tests
# =============================================================================

class TestElementwise:
    """Test elementwise arithmetic."""

    def test_add_sub(self, requires_densa):
        """Test add and sub on sequences."""
        a = Sequence.from_list([1, 2, 3])
        b = Sequence.from_list([4, 5, 6])
        assert ops.add(a, b).tolist() == [5.0, 7.0, 9.0]
        assert (b - a).tolist() == [3.0, 3.0, 3.0]

    def test_add_views(self, seq10):
        """Test owners and views mix freely."""
        total = seq10.subvector(0, 4) + seq10.subvector(6, 10)
        assert total.tolist() == [6.0, 8.0, 10.0, 12.0]
        assert not total.is_view

    def test_add_grids(self, grid4x3, dense4x3):
        """Test add on grids."""
        assert_array_equal(grid4x3 + grid4x3, dense4x3 * 2)

    def test_add_mismatch(self, requires_densa):
        """Test extents must agree."""
        with pytest.raises(ShapeMismatchError):
            ops.add(Sequence(2, fill=0.0), Sequence(3, fill=0.0))
        with pytest.raises(ShapeMismatchError):
            ops.add(Grid(2, 2, fill=0.0), Grid(2, 3, fill=0.0))

    def test_add_out(self, seq10):
        """Test writing the result into a view."""
        ones = Sequence(3, fill=1.0)
        ops.add(ones, ones, out=seq10.subvector(0, 3))
        assert seq10.tolist()[:4] == [2.0, 2.0, 2.0, 3.0]

    def test_scale(self, requires_densa):
        """Test scalar multiplication from either side."""
        a = Sequence.from_list([1.0, -2.0])
        assert (a * 3).tolist() == [3.0, -6.0]
        assert (2.0 * a).tolist() == [2.0, -4.0]

    def test_scale_promotes(self, requires_densa):
        """Test integer data scaled by a float becomes float64."""
        a = Sequence.from_list([1, 2], dtype='int64')
        assert ops.scale(a, 2).dtype == int64
        scaled = ops.scale(a, 0.5)
        assert scaled.dtype == float64
        assert scaled.tolist() == [0.5, 1.0]

    def test_inplace_through_view(self, seq10):
        """Test in-place operators write through a view."""
        view = seq10.subvector(0, 3)
        view += Sequence.from_list([1.0, 1.0, 1.0])
        assert seq10.tolist()[:3] == [1.0, 2.0, 3.0]
        view *= 2
        assert seq10.tolist()[:3] == [2.0, 4.0, 6.0]
        view -= view
        assert seq10.tolist()[:4] == [0.0, 0.0, 0.0, 3.0]

    def test_inplace_grid(self, grid4x3):
        """Test in-place operations on a grid view."""
        block = grid4x3.submatrix(0, 2, 0, 2)
        ops.iscale(block, 10)
        assert grid4x3[1, 1] == 20.0
        assert grid4x3[2, 2] == 4.0


# =============================================================================
# Reduction Tests
# =============================================================================

class TestReductions:
    """Test dot and norm."""

    def test_dot(self, requires_densa):
        """Test the inner product."""
        a = Sequence.from_list([1, 2, 3])
        b = Sequence.from_list([4, 5, 6])
        assert ops.dot(a, b) == 32.0
        assert a @ b == 32.0

    def test_dot_strided(self, seq10):
        """Test dot over strided views."""
        assert ops.dot(seq10[::2], seq10[1::2]) == 0 * 1 + 2 * 3 + 4 * 5 + 6 * 7 + 8 * 9

    def test_dot_mismatch(self, requires_densa):
        """Test lengths must agree."""
        with pytest.raises(ShapeMismatchError):
            ops.dot(Sequence(2, fill=0.0), Sequence(3, fill=0.0))

    def test_norm(self, requires_densa, grid4x3, dense4x3):
        """Test 2-norm and Frobenius norm."""
        assert ops.norm(Sequence.from_list([3.0, 4.0])) == pytest.approx(5.0)
        assert ops.norm(grid4x3) == pytest.approx(np.linalg.norm(dense4x3))


# =============================================================================
# Product Tests
# =============================================================================

class TestProducts:
    """Test matvec, matmul and transpose."""

    def test_matvec(self, requires_densa):
        """Test a small matrix-vector product."""
        A = Grid.from_rows([[1, 2], [3, 4]])
        x = Sequence.from_list([1.0, 1.0])
        assert ops.matvec(A, x).tolist() == [3.0, 7.0]
        assert (A @ x).tolist() == [3.0, 7.0]

    def test_matvec_aliasing_out(self, requires_densa):
        """Test out may alias the input vector."""
        A = Grid.from_rows([[1, 2], [3, 4]])
        x = Sequence.from_list([1.0, 1.0])
        ops.matvec(A, x, out=x)
        assert x.tolist() == [3.0, 7.0]

    def test_matvec_mismatch(self, grid4x3):
        """Test column count must match the vector length."""
        with pytest.raises(ShapeMismatchError):
            ops.matvec(grid4x3, Sequence(4, fill=1.0))
        with pytest.raises(ShapeMismatchError):
            ops.matvec(grid4x3, Sequence(3, fill=1.0), out=Sequence(3, fill=0.0))

    def test_matmul(self, grid4x3, dense4x3):
        """Test matmul against NumPy."""
        result = grid4x3 @ grid4x3.T
        assert result.shape == (4, 4)
        assert_array_equal(result, dense4x3 @ dense4x3.T)

    def test_matmul_views(self, grid4x3, dense4x3):
        """Test matmul of two submatrices."""
        left = grid4x3.submatrix(0, 2, 0, 3)
        right = grid4x3.submatrix(1, 4, 1, 3)
        assert_array_equal(ops.matmul(left, right), dense4x3[0:2, :] @ dense4x3[1:4, 1:3])

    def test_matmul_mismatch(self, grid4x3):
        """Test inner dimensions must agree."""
        with pytest.raises(ShapeMismatchError):
            grid4x3 @ grid4x3

    def test_transpose_out(self, grid4x3, dense4x3):
        """Test transposing into a preallocated grid."""
        out = Grid(3, 4, fill=0.0)
        ops.transpose(grid4x3, out=out)
        assert_array_equal(out, dense4x3.T)
        with pytest.raises(ShapeMismatchError):
            ops.transpose(grid4x3, out=Grid(4, 3, fill=0.0))


# =============================================================================
# Initialization and Printing Tests
# =============================================================================

class TestRandomize:
    """Test random initialization."""

    def test_seed_reproducible(self, requires_densa):
        """Test equal seeds give equal data."""
        a = Sequence(8, fill=0.0)
        b = Sequence(8, fill=0.0)
        ops.randomize(a, seed=7)
        ops.randomize(b, seed=7)
        assert a.tolist() == b.tolist()
        assert any(v != 0.0 for v in a)

    def test_debug_seed(self, requires_densa):
        """Test debug mode uses a fixed seed."""
        with config_context(debug=True):
            a = Grid(3, 3, fill=0.0)
            b = Grid(3, 3, fill=0.0)
            ops.randomize(a)
            ops.randomize(b)
        assert a.tolist() == b.tolist()

    def test_integer_range(self, requires_densa):
        """Test integer data is drawn from [0, 100]."""
        a = Sequence(50, fill=0, dtype='int64')
        ops.randomize(a, rng=np.random.default_rng(0))
        assert all(0 <= v <= 100 for v in a)

    def test_randomize_view(self, seq10):
        """Test only the viewed elements change."""
        ops.randomize(seq10.subvector(0, 10, 2), seed=1)
        assert [seq10[i] for i in range(1, 10, 2)] == [1.0, 3.0, 5.0, 7.0, 9.0]


class TestPrinting:
    """Test text rendering."""

    def test_format_sequence(self, requires_densa):
        """Test one element per line."""
        text = ops.format_array(Sequence.from_list([1.0, 2.0]))
        assert text == "(2)[\n1.0\n2.0\n]"

    def test_format_grid(self, requires_densa):
        """Test one bracketed row per line."""
        text = ops.format_array(Grid.from_rows([[1, 2], [3, 4]]))
        assert text == "(2,2)[\n[1.0,2.0]\n[3.0,4.0]\n]"

    def test_format_rejects(self, requires_densa):
        """Test non-arrays are rejected."""
        with pytest.raises(TypeError):
            ops.format_array(3.0)

    def test_print_array(self, grid4x3, capsys):
        """Test print_array writes format_array to stdout."""
        ops.print_array(grid4x3.row(0))
        out = capsys.readouterr().out
        assert out == "(3)[\n0.0\n1.0\n2.0\n]\n"


# =============================================================================
# Overlapping Operand Tests
# =============================================================================

class TestOverlappingOperands:
    """Test elementwise routines when out overlaps an operand."""

    def test_iadd_shifted_view(self, requires_densa):
        """Test v += seq[0:4] with v = seq[1:5] reads the original values."""
        seq = Sequence.from_list([0, 1, 2, 3, 4])
        view = seq[1:5]
        view += seq[0:4]
        assert seq.tolist() == [0.0, 1.0, 3.0, 5.0, 7.0]

    def test_add_out_shifted(self, requires_densa):
        """Test out one element past both operands."""
        seq = Sequence.from_list([0, 1, 2, 3, 4])
        ops.add(seq[0:4], seq[0:4], out=seq[1:5])
        assert seq.tolist() == [0.0, 0.0, 2.0, 4.0, 6.0]

    def test_sub_out_shifted(self, requires_densa):
        """Test sub writing over its second operand."""
        seq = Sequence.from_list([1, 2, 3, 4])
        ops.sub(seq[1:4], seq[0:3], out=seq[0:3])
        assert seq.tolist() == [1.0, 1.0, 1.0, 4.0]

    def test_scale_out_shifted(self, requires_densa):
        """Test scale into a view offset from its source."""
        seq = Sequence.from_list([1, 2, 3, 4])
        ops.scale(seq[0:3], 10, out=seq[1:4])
        assert seq.tolist() == [1.0, 10.0, 20.0, 30.0]

    def test_grid_shifted_block(self, grid4x3, dense4x3):
        """Test isub on grid blocks one row apart."""
        block = grid4x3[1:4, :]
        block -= grid4x3[0:3, :]
        expected = dense4x3.copy()
        expected[1:4, :] = dense4x3[1:4, :] - dense4x3[0:3, :]
        assert_array_equal(grid4x3, expected)
