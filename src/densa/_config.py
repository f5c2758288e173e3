"""
Global configuration for densa.

Provides:
- Debug mode (NaN-filling of freshly allocated floating storage)
- Default element type
- Optional live-buffer tracking for leak diagnostics

Every setting starts from an environment variable so that test runs and
deployments can flip it without code changes:

    DENSA_DEBUG          1/true/yes or 0/false/no (default: __debug__)
    DENSA_DEFAULT_DTYPE  float32, float64, int32, int64, uint8
    DENSA_TRACK_BUFFERS  1/true/yes to keep a registry of live buffers
"""

from __future__ import annotations

import logging
import os
from contextlib import contextmanager
from typing import Iterator, Optional, Union

from ._dtypes import DType, validate_dtype

logger = logging.getLogger("densa.config")

_TRUE = ('1', 'true', 'yes', 'on')
_FALSE = ('0', 'false', 'no', 'off')


def _env_flag(name: str, default: bool) -> bool:
    raw = os.environ.get(name, '').strip().lower()
    if raw in _TRUE:
        return True
    if raw in _FALSE:
        return False
    if raw:
        logger.warning(f"Ignoring unrecognized value {raw!r} for {name}")
    return default


def _env_dtype(name: str, default: DType) -> DType:
    raw = os.environ.get(name, '').strip()
    if not raw:
        return default
    try:
        return validate_dtype(raw)
    except TypeError:
        logger.warning(f"Ignoring unsupported dtype {raw!r} for {name}")
        return default


# =============================================================================
# Global Configuration State
# =============================================================================

class _Config:
    """
    Global configuration singleton.

    Manages debug filling, the default element type, and buffer tracking.
    """

    def __init__(self):
        self._debug = _env_flag('DENSA_DEBUG', __debug__)
        self._default_dtype = _env_dtype('DENSA_DEFAULT_DTYPE', DType.FLOAT64)
        self._track_buffers = _env_flag('DENSA_TRACK_BUFFERS', False)

    @property
    def debug(self) -> bool:
        """Whether new floating storage is filled with NaN."""
        return self._debug

    @debug.setter
    def debug(self, value: bool):
        self._debug = bool(value)

    @property
    def default_dtype(self) -> DType:
        """Element type used when none is given."""
        return self._default_dtype

    @default_dtype.setter
    def default_dtype(self, value: Union[DType, str]):
        self._default_dtype = validate_dtype(value, default=DType.FLOAT64)

    @property
    def track_buffers(self) -> bool:
        """Whether allocated buffers are registered for diagnostics."""
        return self._track_buffers

    @track_buffers.setter
    def track_buffers(self, value: bool):
        self._track_buffers = bool(value)

    def __repr__(self) -> str:
        return (
            f"Config(debug={self._debug}, "
            f"default_dtype={self._default_dtype}, "
            f"track_buffers={self._track_buffers})"
        )


# Global config instance
_config = _Config()


# =============================================================================
# Public API
# =============================================================================

def get_config() -> _Config:
    """Get global configuration instance."""
    return _config


def set_debug(enabled: bool) -> None:
    """
    Enable or disable debug filling.

    Example:
        >>> densa.set_debug(False)
        >>> seq = densa.Sequence(1000)  # storage left as allocated
    """
    _config.debug = enabled


def set_default_dtype(dtype: Union[DType, str]) -> None:
    """Set the element type used when constructors get no dtype."""
    _config.default_dtype = dtype


@contextmanager
def config_context(
    debug: Optional[bool] = None,
    default_dtype: Optional[Union[DType, str]] = None,
    track_buffers: Optional[bool] = None,
) -> Iterator[_Config]:
    """
    Temporarily override configuration values.

    Previous values are restored on exit, also when the body raises.

    Example:
        >>> with config_context(debug=False, default_dtype='float32'):
        ...     seq = Sequence(10)
    """
    saved = (_config.debug, _config.default_dtype, _config.track_buffers)
    try:
        if debug is not None:
            _config.debug = debug
        if default_dtype is not None:
            _config.default_dtype = default_dtype
        if track_buffers is not None:
            _config.track_buffers = track_buffers
        yield _config
    finally:
        _config.debug, _config.default_dtype, _config.track_buffers = saved
