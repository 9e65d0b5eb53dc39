"""
Application Exception Handling

Single AppException class for all application errors with FastAPI integration.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse


class AppException(Exception):
    """
    Unified application exception for all error scenarios.

    Provides consistent error response format across the entire API and a
    machine-readable code the decode pipeline uses to tell expected decode
    misses apart from programming errors.

    Usage:
        raise AppException("Invalid image", "INVALID_IMAGE", 400)
        raise AppException("Text too large", "ENCODE_FAILURE", 422, {"size": 150})

    Error Codes:
        Decoding (expected outcomes, consumed by the pipeline):
            - NOT_FOUND (404)
            - CHECKSUM_ERROR (422)
            - FORMAT_ERROR (422)

        Encoding:
            - ENCODE_FAILURE (422)
            - INVALID_TEXT (400)

        Images:
            - INVALID_IMAGE (400)
            - SNAPSHOT_RELEASED (500)

        Camera:
            - CAMERA_UNAVAILABLE (503)

        General:
            - VALIDATION_ERROR (422)
            - INTERNAL_ERROR (500)
    """

    def __init__(
        self,
        message: str,
        code: str,
        status_code: int = 400,
        details: Optional[Dict[str, Any]] = None
    ):
        """
        Initialize application exception.

        Args:
            message: Human-readable error message
            code: Machine-readable error code (e.g., "ENCODE_FAILURE")
            status_code: HTTP status code (default: 400)
            details: Additional error context (optional)
        """
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}
        self.timestamp = datetime.now(timezone.utc).isoformat()
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for JSON response."""
        error_dict = {
            "success": False,
            "error": {
                "code": self.code,
                "message": self.message,
                "timestamp": self.timestamp
            }
        }

        if self.details:
            error_dict["error"]["details"] = self.details

        return error_dict


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """
    FastAPI exception handler for AppException.

    Converts AppException to consistent JSON error response.
    """
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict()
    )


def register_exception_handlers(app: FastAPI) -> None:
    """
    Register all exception handlers with FastAPI app.

    Args:
        app: FastAPI application instance
    """
    app.add_exception_handler(AppException, app_exception_handler)


# Codes a codec raises when a frame simply holds no readable symbol
DECODE_FAILURE_CODES = frozenset({"NOT_FOUND", "CHECKSUM_ERROR", "FORMAT_ERROR"})


# ============================================
# CONVENIENCE FACTORY FUNCTIONS
# ============================================

def _points_detail(points: Optional[Iterable[Any]]) -> list:
    return [{"x": float(p.x), "y": float(p.y)} for p in (points or ())]


def barcode_not_found(binarizer: Optional[str] = None) -> AppException:
    """Create symbol not found exception."""
    details = {"binarizer": binarizer} if binarizer else {}
    return AppException("No barcode found", "NOT_FOUND", 404, details)


def checksum_error(binarizer: Optional[str] = None, points=None) -> AppException:
    """Create checksum failure exception carrying candidate points."""
    return AppException(
        "Barcode checksum verification failed",
        "CHECKSUM_ERROR",
        422,
        {"binarizer": binarizer, "points": _points_detail(points)}
    )


def format_error(binarizer: Optional[str] = None, points=None) -> AppException:
    """Create malformed symbol exception carrying candidate points."""
    return AppException(
        "Barcode format could not be decoded",
        "FORMAT_ERROR",
        422,
        {"binarizer": binarizer, "points": _points_detail(points)}
    )


def encode_failure(
    text_length: int,
    barcode_format: str,
    width: int,
    height: int,
    error_correction: str,
    reason: str = ""
) -> AppException:
    """Create encode failure exception carrying the offending parameters."""
    return AppException(
        f"Could not encode {text_length} characters as {barcode_format} "
        f"at {width}x{height}, error correction {error_correction}",
        "ENCODE_FAILURE",
        422,
        {
            "text_length": text_length,
            "format": barcode_format,
            "width": width,
            "height": height,
            "error_correction": error_correction,
            "reason": reason,
        }
    )


def invalid_text(reason: str = "Text is required") -> AppException:
    """Create invalid text exception."""
    return AppException(reason, "INVALID_TEXT", 400)


def invalid_image(reason: str) -> AppException:
    """Create invalid image exception."""
    return AppException(f"Invalid image: {reason}", "INVALID_IMAGE", 400, {"reason": reason})


def snapshot_released() -> AppException:
    """Create use-after-release exception for result snapshots."""
    return AppException(
        "Result snapshot has already been released",
        "SNAPSHOT_RELEASED",
        500
    )


def camera_unavailable(camera_index: int) -> AppException:
    """Create camera unavailable exception."""
    return AppException(
        f"Cannot open camera {camera_index}",
        "CAMERA_UNAVAILABLE",
        503,
        {"camera_index": camera_index}
    )


def internal_error(message: str = "Internal server error") -> AppException:
    """Create internal server error exception."""
    return AppException(message, "INTERNAL_ERROR", 500)
