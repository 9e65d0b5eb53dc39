"""
==============================================================================
API v1 Endpoints
==============================================================================

Version 1 of the REST API.

Routers:
--------
- health: Health check endpoints
- barcodes: Barcode encode / decode

==============================================================================
"""

from . import health, barcodes

__all__ = ["health", "barcodes"]
