"""Array Operations.

Routines written once against the array capability. Every function works
the same on Sequence, SequenceView, Grid and GridView (and on anything else
with the same surface):

- Elementwise arithmetic (add, sub, scale and their in-place forms)
- Reductions (dot, norm)
- Products and transposition (matvec, matmul, transpose)
- Random initialization (randomize)
- Printing (format_array, print_array)

Functions that allocate return owning containers. Functions taking `out`
write into it, which may be a view; extents are checked first.

Example:
    >>> from densa import Grid, Sequence, ops
    >>> A = Grid.from_rows([[1, 2], [3, 4]])
    >>> x = Sequence.from_list([1.0, 1.0])
    >>> ops.matvec(A, x).tolist()
    [3.0, 7.0]
    >>> ops.matvec(A, x, out=A.column(0))   # write into a view of A
"""

import math
from typing import Any, Iterator, Optional

import numpy as np

from ._base import (
    check_same_length,
    check_same_shape,
    is_grid_like,
    is_sequence_like,
    shape_of,
)
from ._config import get_config
from ._dtypes import DType, dtype_of
from ._errors import ShapeMismatchError
from ._grid import Grid
from ._sequence import Sequence

__all__ = [
    # Elementwise
    'add',
    'sub',
    'scale',
    'iadd',
    'isub',
    'iscale',

    # Reductions
    'dot',
    'norm',

    # Products
    'matvec',
    'matmul',
    'transpose',

    # Initialization / printing
    'randomize',
    'format_array',
    'print_array',
]

# Seed used by randomize() in debug mode so failures reproduce
DEBUG_SEED = 1302


# =============================================================================
# Helpers
# =============================================================================

def _keys(shape) -> Iterator[Any]:
    """Element keys in storage-friendly order: i for 1-D, (i, j) column-major."""
    if len(shape) == 1:
        yield from range(shape[0])
        return
    m, n = shape
    for j in range(n):
        for i in range(m):
            yield (i, j)


def _new_like(a: Any, dtype: Optional[DType] = None):
    """Fresh owning container with a's extents."""
    dtype = dtype if dtype is not None else dtype_of(a)
    if is_grid_like(a):
        return Grid(a.num_rows, a.num_columns, dtype=dtype)
    return Sequence(len(a), dtype=dtype)


def _prepare_out(out: Any, a: Any, context: str):
    if out is None:
        return _new_like(a)
    check_same_shape(out, a, context)
    return out


def _store(out: Any, keys, values):
    """Write precomputed values; out may overlap the operands they came from."""
    for k, v in zip(keys, values):
        out[k] = v
    return out


# =============================================================================
# Elementwise Operations
# =============================================================================

def add(a: Any, b: Any, out: Any = None):
    """Elementwise a + b.

    Args:
        a: Sequence-like or grid-like.
        b: Operand with the same extents.
        out: Destination (default: new owning container with a's dtype).

    Raises:
        ShapeMismatchError: If extents differ.
    """
    keys = list(_keys(check_same_shape(a, b, "add")))
    out = _prepare_out(out, a, "add")
    return _store(out, keys, [a[k] + b[k] for k in keys])


def sub(a: Any, b: Any, out: Any = None):
    """Elementwise a - b."""
    keys = list(_keys(check_same_shape(a, b, "sub")))
    out = _prepare_out(out, a, "sub")
    return _store(out, keys, [a[k] - b[k] for k in keys])


def scale(a: Any, scalar: Any, out: Any = None):
    """Elementwise a * scalar.

    An integer operand scaled by a float yields a float64 result.
    """
    if out is None:
        dtype = dtype_of(a)
        if dtype.is_integer and isinstance(scalar, float):
            dtype = DType.FLOAT64
        out = _new_like(a, dtype)
    else:
        check_same_shape(out, a, "scale")
    keys = list(_keys(shape_of(a)))
    return _store(out, keys, [a[k] * scalar for k in keys])


def iadd(a: Any, b: Any) -> None:
    """a += b in place (through a's own storage, also for views)."""
    add(a, b, out=a)


def isub(a: Any, b: Any) -> None:
    """a -= b in place."""
    sub(a, b, out=a)


def iscale(a: Any, scalar: Any) -> None:
    """a *= scalar in place."""
    scale(a, scalar, out=a)


# =============================================================================
# Reductions
# =============================================================================

def dot(a: Any, b: Any):
    """Inner product of two sequence-likes."""
    n = check_same_length(a, b, "dot")
    total = 0
    for i in range(n):
        total += a[i] * b[i]
    return total


def norm(a: Any) -> float:
    """2-norm of a sequence-like, Frobenius norm of a grid-like."""
    total = 0.0
    for k in _keys(shape_of(a)):
        v = a[k]
        total += v * v
    return math.sqrt(total)


# =============================================================================
# Products
# =============================================================================

def matvec(A: Any, x: Any, out: Any = None):
    """Matrix-vector product A @ x.

    Raises:
        ShapeMismatchError: If A.num_columns != len(x), or out has the
            wrong length.
    """
    m, n = A.num_rows, A.num_columns
    if n != len(x):
        raise ShapeMismatchError(f"matvec: {m}x{n} grid with length {len(x)} sequence")
    if out is None:
        out = Sequence(m, dtype=dtype_of(A))
    elif len(out) != m:
        raise ShapeMismatchError(f"matvec: out has length {len(out)}, expected {m}")
    # Accumulate first; out may alias x or A
    result = []
    for i in range(m):
        total = 0
        for j in range(n):
            total += A[i, j] * x[j]
        result.append(total)
    for i, v in enumerate(result):
        out[i] = v
    return out


def matmul(A: Any, B: Any, out: Any = None):
    """Matrix-matrix product A @ B."""
    m, k = A.num_rows, A.num_columns
    if k != B.num_rows:
        raise ShapeMismatchError(
            f"matmul: {m}x{k} @ {B.num_rows}x{B.num_columns}"
        )
    n = B.num_columns
    if out is None:
        out = Grid(m, n, dtype=dtype_of(A))
    elif (out.num_rows, out.num_columns) != (m, n):
        raise ShapeMismatchError(
            f"matmul: out is {out.num_rows}x{out.num_columns}, expected {m}x{n}"
        )
    # Accumulate first; out may alias A or B
    result = [
        [sum(A[i, p] * B[p, j] for p in range(k)) for j in range(n)]
        for i in range(m)
    ]
    for j in range(n):
        for i in range(m):
            out[i, j] = result[i][j]
    return out


def transpose(A: Any, out: Any = None):
    """Transposed copy of A (or write it into out)."""
    m, n = A.num_rows, A.num_columns
    if out is None:
        out = Grid(n, m, dtype=dtype_of(A))
    elif (out.num_rows, out.num_columns) != (n, m):
        raise ShapeMismatchError(
            f"transpose: out is {out.num_rows}x{out.num_columns}, expected {n}x{m}"
        )
    values = [[A[i, j] for j in range(n)] for i in range(m)]
    for i in range(m):
        for j in range(n):
            out[j, i] = values[i][j]
    return out


# =============================================================================
# Initialization
# =============================================================================

def randomize(a: Any, rng: Optional[np.random.Generator] = None,
              seed: Optional[int] = None) -> None:
    """Fill a with random values in place.

    Integer dtypes draw uniformly from [0, 100]; floating dtypes draw from
    the standard normal distribution.

    Args:
        a: Sequence-like or grid-like (views are filled through).
        rng: Generator to draw from. Takes precedence over seed.
        seed: Seed for a fresh generator. In debug mode, when neither rng
            nor seed is given, DEBUG_SEED is used so runs repeat.
    """
    if rng is None:
        if seed is None and get_config().debug:
            seed = DEBUG_SEED
        rng = np.random.default_rng(seed)
    shape = shape_of(a)
    count = math.prod(shape)
    if dtype_of(a).is_integer:
        draws = rng.integers(0, 100, size=count, endpoint=True)
    else:
        draws = rng.standard_normal(count)
    for k, v in zip(_keys(shape), draws.tolist()):
        a[k] = v


# =============================================================================
# Printing
# =============================================================================

def format_array(a: Any) -> str:
    """Render a as text.

    Sequences print as "(n)[" followed by one element per line; grids as
    "(m,n)[" followed by one bracketed row per line. Both end with "]".
    """
    if is_grid_like(a):
        lines = [f"({a.num_rows},{a.num_columns})["]
        for i in range(a.num_rows):
            row = ",".join(str(a[i, j]) for j in range(a.num_columns))
            lines.append(f"[{row}]")
    elif is_sequence_like(a):
        lines = [f"({len(a)})["]
        lines.extend(str(a[i]) for i in range(len(a)))
    else:
        raise TypeError(f"Cannot format {type(a).__name__}: not array-like")
    lines.append("]")
    return "\n".join(lines)


def print_array(a: Any, file=None) -> None:
    """Print format_array(a)."""
    print(format_array(a), file=file)
