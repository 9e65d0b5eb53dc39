"""
==============================================================================
Core Package
==============================================================================

Core infrastructure shared by the overlay, codec, scanner and API layers.

Modules:
--------
- exceptions: AppException class and error factory functions

Usage:
------
    from viewfinder.core import AppException
    from viewfinder.core import exceptions

    raise exceptions.invalid_image("empty frame")

==============================================================================
"""

from .exceptions import (
    AppException,
    DECODE_FAILURE_CODES,
    register_exception_handlers,
)

__all__ = [
    "AppException",
    "DECODE_FAILURE_CODES",
    "register_exception_handlers",
]
