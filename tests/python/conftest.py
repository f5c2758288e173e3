"""
Pytest configuration and shared fixtures for densa tests.
"""

import pytest
import numpy as np
from pathlib import Path
import sys

# Add src to path for imports
project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root / "src"))

# Try to import densa - if it fails, skip tests that require it
try:
    import densa
    from densa import Sequence, Grid, config_context
    HAS_DENSA = True
except ImportError as e:
    HAS_DENSA = False
    DENSA_IMPORT_ERROR = str(e)


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture(scope="session")
def requires_densa():
    """Skip test if densa is not available."""
    if not HAS_DENSA:
        pytest.skip(f"densa not available: {DENSA_IMPORT_ERROR}")


@pytest.fixture
def reset_config(requires_densa):
    """Restore global configuration after the test."""
    with config_context() as cfg:
        yield cfg


@pytest.fixture
def seq10(requires_densa):
    """Sequence [0.0, 1.0, ..., 9.0] (float64)."""
    return Sequence.from_list([float(i) for i in range(10)])


@pytest.fixture
def grid4x3(requires_densa):
    """4x3 float64 grid with element (i, j) = i + j.

    Grid:
    [[0, 1, 2],
     [1, 2, 3],
     [2, 3, 4],
     [3, 4, 5]]
    """
    return Grid.from_rows([[i + j for j in range(3)] for i in range(4)])


@pytest.fixture
def dense4x3():
    """NumPy counterpart of grid4x3."""
    return np.add.outer(np.arange(4.0), np.arange(3.0))


# =============================================================================
# Helper Functions
# =============================================================================

def assert_array_equal(a1, a2, rtol=1e-7, atol=1e-12):
    """Assert two arrays are approximately equal."""
    if hasattr(a1, 'tolist'):
        a1 = np.array(a1.tolist())
    if hasattr(a2, 'tolist'):
        a2 = np.array(a2.tolist())

    np.testing.assert_allclose(a1, a2, rtol=rtol, atol=atol)
