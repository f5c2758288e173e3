"""
densa DTypes - Element Type Definitions

Defines the element types a buffer can hold and the mapping to ctypes
and NumPy equivalents.
"""

from __future__ import annotations

from ctypes import c_double, c_float, c_int32, c_int64, c_uint8
from enum import IntEnum
from typing import Any, Dict, Type, Union

import numpy as np

__all__ = [
    'DType',
    'float32',
    'float64',
    'int32',
    'int64',
    'uint8',
    'validate_dtype',
    'dtype_of',
]


# =============================================================================
# Data Type Enumeration
# =============================================================================

class DType(IntEnum):
    """
    Supported element types.

    Each type has a corresponding C type, size and NumPy dtype.
    """
    FLOAT32 = 0
    FLOAT64 = 1
    INT32 = 2
    INT64 = 3
    UINT8 = 4

    @property
    def itemsize(self) -> int:
        """Size in bytes of one element."""
        return _DTYPE_INFO[self]["size"]

    @property
    def ctype(self) -> Type:
        """Corresponding ctypes type."""
        return _DTYPE_INFO[self]["ctype"]

    @property
    def type_name(self) -> str:
        """Canonical lowercase name ('float64', ...)."""
        return _DTYPE_INFO[self]["name"]

    @property
    def numpy_dtype(self) -> np.dtype:
        return np.dtype(_DTYPE_INFO[self]["name"])

    @property
    def is_floating(self) -> bool:
        return self in (DType.FLOAT32, DType.FLOAT64)

    @property
    def is_integer(self) -> bool:
        return not self.is_floating

    def cast(self, value: Any):
        """Convert a Python scalar to the value stored for this type."""
        if self.is_floating:
            return float(value)
        return int(value)

    @classmethod
    def from_name(cls, name: str) -> "DType":
        """Get DType from string name."""
        name_lower = name.lower()
        for dtype, info in _DTYPE_INFO.items():
            if info["name"] == name_lower:
                return dtype
        aliases = {
            "double": cls.FLOAT64,
            "float": cls.FLOAT64,
            "real": cls.FLOAT64,
            "single": cls.FLOAT32,
            "int": cls.INT64,
            "long": cls.INT64,
            "index": cls.INT64,
            "byte": cls.UINT8,
        }
        if name_lower in aliases:
            return aliases[name_lower]
        raise TypeError(f"Unknown dtype name: {name}")

    @classmethod
    def from_numpy(cls, dtype: Any) -> "DType":
        """Get DType from a NumPy dtype (or anything np.dtype accepts)."""
        np_dtype = np.dtype(dtype)
        for member, info in _DTYPE_INFO.items():
            if np_dtype == np.dtype(info["name"]):
                return member
        raise TypeError(f"Unsupported NumPy dtype: {np_dtype}")

    def __str__(self) -> str:
        return self.type_name


# Type information table
_DTYPE_INFO: Dict[DType, Dict[str, Any]] = {
    DType.FLOAT32: {"ctype": c_float, "size": 4, "name": "float32"},
    DType.FLOAT64: {"ctype": c_double, "size": 8, "name": "float64"},
    DType.INT32: {"ctype": c_int32, "size": 4, "name": "int32"},
    DType.INT64: {"ctype": c_int64, "size": 8, "name": "int64"},
    DType.UINT8: {"ctype": c_uint8, "size": 1, "name": "uint8"},
}


# =============================================================================
# Type Mapping (Python type / ctypes -> DType)
# =============================================================================

TYPE_MAP: Dict[type, DType] = {
    float: DType.FLOAT64,
    int: DType.INT64,
}

CTYPE_MAP: Dict[Type, DType] = {
    c_double: DType.FLOAT64,
    c_float: DType.FLOAT32,
    c_int64: DType.INT64,
    c_int32: DType.INT32,
    c_uint8: DType.UINT8,
}


# =============================================================================
# Module-Level Constants
# =============================================================================

float32 = DType.FLOAT32
float64 = DType.FLOAT64
int32 = DType.INT32
int64 = DType.INT64
uint8 = DType.UINT8


# =============================================================================
# Type Validation
# =============================================================================

def validate_dtype(dtype: Union[DType, str, Type, np.dtype, None],
                   default: Union[DType, None] = None) -> DType:
    """
    Validate and normalize a dtype specification.

    Args:
        dtype: DType, string name, ctypes type, Python type, NumPy dtype
            or None
        default: Returned when dtype is None. Falls back to the configured
            default dtype when not given.

    Returns:
        Validated DType

    Raises:
        TypeError: If the specification names no supported type.
    """
    if dtype is None:
        if default is not None:
            return default
        from ._config import get_config
        return get_config().default_dtype
    if isinstance(dtype, DType):
        return dtype
    if isinstance(dtype, str):
        return DType.from_name(dtype)
    if isinstance(dtype, type) and dtype in CTYPE_MAP:
        return CTYPE_MAP[dtype]
    if isinstance(dtype, type) and dtype in TYPE_MAP:
        return TYPE_MAP[dtype]
    try:
        return DType.from_numpy(dtype)
    except (TypeError, ValueError):
        raise TypeError(f"Cannot convert {dtype!r} to DType") from None


def dtype_of(obj: Any) -> DType:
    """Element type of a container, falling back to the configured default."""
    return validate_dtype(getattr(obj, 'dtype', None))
