"""
==============================================================================
WebSocket Package
==============================================================================

Real-time WebSocket handlers for barcode scanning.

Handlers:
---------
- scanner: Frame scanning with points, results and overlay frames

==============================================================================
"""

from .scanner import router as scanner_router

__all__ = ["scanner_router"]
