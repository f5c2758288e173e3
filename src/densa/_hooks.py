"""
Runtime Hooks and Integration

Makes densa containers recognizable to code that checks for standard
abstract base classes.

Architecture:
1. ABC Registration: isinstance(seq, collections.abc.Sequence) returns True
   for Sequence and SequenceView

Safety:
- Registration only affects isinstance/issubclass checks, never the MRO
- Idempotent
- Can be disabled via environment variable

Usage:
    import densa
    # Hooks auto-activate on import

    # Or explicitly
    from densa import hooks
    hooks.install()

    # Disable before importing densa
    import os
    os.environ['DENSA_NO_HOOKS'] = '1'
"""

import collections.abc
import logging
import os

logger = logging.getLogger("densa.hooks")


def _is_enabled() -> bool:
    """Check if hooks are enabled (default: True)."""
    return os.environ.get('DENSA_NO_HOOKS', '').lower() not in ('1', 'true', 'yes')


_hooks_installed = False
_abc_registered = False


def is_installed() -> bool:
    """Check if hooks have been installed."""
    return _hooks_installed


def install() -> None:
    """
    Install all available hooks.

    This function is idempotent - safe to call multiple times.
    """
    global _hooks_installed

    if _hooks_installed:
        logger.debug("densa hooks already installed, skipping")
        return

    if not _is_enabled():
        logger.info("densa hooks disabled via DENSA_NO_HOOKS environment variable")
        return

    _register_abcs()
    _hooks_installed = True
    logger.debug("densa hooks installation complete")


def _register_abcs() -> None:
    """
    Register the 1-D containers as virtual collections.abc.Sequence subclasses.

    Grids are left out: their element access takes (row, column) pairs,
    which is not the Sequence protocol.
    """
    global _abc_registered

    if _abc_registered:
        return

    from ._sequence import Sequence, SequenceView

    collections.abc.Sequence.register(Sequence)
    collections.abc.Sequence.register(SequenceView)

    _abc_registered = True
    logger.debug("Registered Sequence, SequenceView as collections.abc.Sequence")


def _auto_install() -> None:
    """Called on package import."""
    install()
