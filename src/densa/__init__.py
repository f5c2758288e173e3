"""
densa - Dense Arrays

Column-major dense sequences and grids with:
- Reference-counted shared buffers
- Zero-copy strided views (subvectors, submatrices, rows, columns)
- Routines written once against the array capability
- Zero-copy NumPy interop

Modules:
- ops: Arithmetic, products, randomization and printing
- hooks: Runtime integration with collections.abc (auto-activated)

Architecture:
    ┌──────────────────────────────────────────────┐
    │   Sequence / Grid        (owning containers) │
    │   SequenceView / GridView  (strided views)   │
    ├──────────────────────────────────────────────┤
    │  SharedBuffer: refcounted, OWNED | BORROWED  │
    └──────────────────────────────────────────────┘

Example:
    >>> import densa
    >>> from densa import Grid, ops
    >>>
    >>> # 4x3 grid, column-major
    >>> A = Grid.from_rows([[1, 2, 3], [4, 5, 6], [7, 8, 9], [10, 11, 12]])
    >>>
    >>> # Views alias A's storage
    >>> col = A.column(1)
    >>> col.tolist()
    [2.0, 5.0, 8.0, 11.0]
    >>> col[0] = 0.0
    >>> A[0, 1]
    0.0
    >>>
    >>> # Routines take owners and views alike
    >>> ops.norm(A.submatrix(0, 2, 0, 2))  # Frobenius norm of the top-left 2x2
"""

__version__ = '0.1.0'

from . import ops
from . import _hooks as hooks

from ._dtypes import (
    DType,
    float32,
    float64,
    int32,
    int64,
    uint8,
    validate_dtype,
    dtype_of,
)
from ._config import (
    get_config,
    set_debug,
    set_default_dtype,
    config_context,
)
from ._errors import (
    DensaError,
    IndexOutOfBoundsError,
    ShapeMismatchError,
    InvalidSliceError,
    InvalidShapeError,
    AllocationError,
    ReleasedError,
)
from ._buffer import SharedBuffer, live_buffers
from ._ownership import Ownership, StorageInfo, storage_info, ensure_alive
from ._base import (
    SequenceLike,
    GridLike,
    PassMode,
    is_sequence_like,
    is_grid_like,
    shape_of,
    copy,
    duplicate,
    apply,
    shares_buffer,
)
from ._sequence import Sequence, SequenceView
from ._grid import Grid, GridView

__all__ = [
    # Version
    '__version__',

    # Modules
    'ops',
    'hooks',

    # Containers
    'Sequence',
    'SequenceView',
    'Grid',
    'GridView',
    'SharedBuffer',
    'live_buffers',

    # Type constants
    'DType',
    'float32',
    'float64',
    'int32',
    'int64',
    'uint8',
    'validate_dtype',
    'dtype_of',

    # Configuration
    'get_config',
    'set_debug',
    'set_default_dtype',
    'config_context',

    # Errors
    'DensaError',
    'IndexOutOfBoundsError',
    'ShapeMismatchError',
    'InvalidSliceError',
    'InvalidShapeError',
    'AllocationError',
    'ReleasedError',

    # Ownership
    'Ownership',
    'StorageInfo',
    'storage_info',
    'ensure_alive',

    # Capabilities and pass modes
    'SequenceLike',
    'GridLike',
    'PassMode',
    'is_sequence_like',
    'is_grid_like',
    'shape_of',
    'copy',
    'duplicate',
    'apply',
    'shares_buffer',
]

# Auto-install hooks on import (unless disabled)
hooks._auto_install()
