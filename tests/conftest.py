"""
==============================================================================
Pytest Configuration and Fixtures
==============================================================================

Provides the API client, camera and codec test doubles, canvases and an
encoded sample code.

==============================================================================
"""

import base64
from typing import Dict, Generator, List, Optional, Union

import cv2
import numpy as np
import pytest
from fastapi.testclient import TestClient

from viewfinder.codec import CodeCreator
from viewfinder.codec.models import Binarizer, DecodeResult
from viewfinder.core.exceptions import AppException
from viewfinder.main import app
from viewfinder.overlay.camera import PreviewListeners
from viewfinder.overlay.geometry import PreviewSize, Rect


# ============================================================================
# CLIENT FIXTURES
# ============================================================================

@pytest.fixture(scope="function")
def client() -> Generator[TestClient, None, None]:
    """Create test client running the application lifespan."""
    with TestClient(app) as test_client:
        yield test_client


# ============================================================================
# TEST DOUBLES
# ============================================================================

class FakeClock:
    """Manually advanced monotonic clock (seconds)."""

    def __init__(self, now: float = 0.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakePreview:
    """Camera preview reporting fixed geometry."""

    def __init__(
        self,
        preview_size: Optional[PreviewSize] = PreviewSize(400, 400),
        framing_rect: Optional[Rect] = Rect(100, 100, 300, 300)
    ):
        self.preview_size = preview_size
        self.framing_rect = framing_rect
        self.listeners = PreviewListeners()

    def add_state_listener(self, listener) -> None:
        self.listeners.add(listener)

    def remove_state_listener(self, listener) -> None:
        self.listeners.remove(listener)


class FakeCodec:
    """
    Codec returning scripted outcomes per binarizer.

    Each script entry is a DecodeResult to return or an AppException to
    raise; a missing entry raises NOT_FOUND.
    """

    def __init__(self, script: Optional[Dict[Binarizer, Union[DecodeResult, AppException]]] = None):
        self.script = script or {}
        self.calls: List[tuple] = []

    def decode(self, source, hints, binarizer):
        self.calls.append((source, hints, binarizer))
        outcome = self.script.get(binarizer)
        if outcome is None:
            raise AppException("No barcode found", "NOT_FOUND", 404)
        if isinstance(outcome, AppException):
            raise outcome
        return outcome

    def encode(self, text, barcode_format, width, height, hints):
        raise AssertionError("FakeCodec does not encode")


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def preview() -> FakePreview:
    return FakePreview()


# ============================================================================
# IMAGE FIXTURES
# ============================================================================

@pytest.fixture
def gray_canvas() -> np.ndarray:
    """400x400 mid-gray BGR canvas."""
    return np.full((400, 400, 3), 128, dtype=np.uint8)


@pytest.fixture(scope="session")
def hello_code() -> np.ndarray:
    """BGRA QR code for "HELLO" (level H, 150x150, margin 1)."""
    return CodeCreator().create_code("HELLO")


@pytest.fixture(scope="session")
def hello_frame(hello_code: np.ndarray) -> np.ndarray:
    """400x400 white BGR frame with the sample code in the middle."""
    frame = np.full((400, 400, 3), 255, dtype=np.uint8)
    frame[125:275, 125:275] = cv2.cvtColor(hello_code, cv2.COLOR_BGRA2BGR)
    return frame


def to_base64_png(image: np.ndarray) -> str:
    ok, buffer = cv2.imencode(".png", image)
    assert ok
    return base64.b64encode(buffer.tobytes()).decode("ascii")


def with_quiet_zone(image: np.ndarray, border: int = 40) -> np.ndarray:
    """Surround a generated code with white so detectors see a quiet zone."""
    white = (255,) * image.shape[2] if image.ndim == 3 else 255
    return cv2.copyMakeBorder(image, border, border, border, border, cv2.BORDER_CONSTANT, value=white)
