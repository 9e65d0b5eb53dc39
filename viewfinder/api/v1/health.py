"""
==============================================================================
Health Check Endpoints
==============================================================================

System health status endpoints for monitoring and orchestration.

==============================================================================
"""

from fastapi import APIRouter, Depends

import cv2
import zxingcpp

from viewfinder import __version__
from viewfinder.config import Settings, get_settings


router = APIRouter(prefix="/health", tags=["Health"])


class HealthController:
    """Controller for health check operations."""

    def __init__(self, settings: Settings):
        self._settings = settings

    def check_codec(self) -> dict:
        """Check that the barcode codec is importable and report its version."""
        version = getattr(zxingcpp, "__version__", "unknown")
        return {"status": "healthy", "version": version}

    def get_health(self) -> dict:
        """Get full health status."""
        codec_info = self.check_codec()

        return {
            "status": "healthy",
            "version": __version__,
            "environment": self._settings.app_env,
            "components": {
                "api": "healthy",
                "codec": codec_info["status"],
                "opencv": "healthy"
            },
            "details": {
                "codec_version": codec_info["version"],
                "opencv_version": cv2.__version__,
                "indicator_mode": self._settings.indicator_mode
            }
        }


@router.get("")
async def health_check(settings: Settings = Depends(get_settings)):
    """
    Health check endpoint.

    Returns system status including API, codec and OpenCV.
    """
    controller = HealthController(settings)
    return controller.get_health()


@router.get("/ready")
async def readiness_check():
    """Readiness probe for container orchestration."""
    return {"ready": True}


@router.get("/live")
async def liveness_check():
    """Liveness probe for container orchestration."""
    return {"alive": True}
