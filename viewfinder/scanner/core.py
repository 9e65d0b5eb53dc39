"""
==============================================================================
Barcode Scanner Core Module
==============================================================================

Scanning session tying a frame source, the decode pipeline and the
overlay renderer together.

Features:
---------
- Single-shot and continuous decode modes
- Candidate points forwarded to the overlay before the caller sees them
- Overlay frozen on the framing-rectangle crop of the decoded frame
- Background decode worker so decoding never blocks the render loop
- Live OpenCV window scanning ('q' quits, 'r' resumes scanning)

==============================================================================
"""

from __future__ import annotations

import logging
import queue
import threading
from enum import Enum
from typing import List, Optional, Protocol

import cv2
import numpy as np

from viewfinder.codec.luminance import LuminanceSource
from viewfinder.codec.models import DecodeResult
from viewfinder.codec.pipeline import DecodePipeline
from viewfinder.overlay.camera import CameraPreview
from viewfinder.overlay.geometry import ResultPoint
from viewfinder.overlay.renderer import OverlayRenderer, OverlayStyle, ScanState
from viewfinder.scanner.camera import OpenCVCameraPreview


# Module logger
logger = logging.getLogger(__name__)


class ScanCallback(Protocol):
    """Receives scan results; called on the thread that decoded the frame."""

    def on_result(self, result: DecodeResult) -> None: ...

    def on_possible_result_points(self, points: List[ResultPoint]) -> None: ...


class DecodeMode(str, Enum):
    """What the scanner does with incoming frames."""

    NONE = "none"
    SINGLE = "single"
    CONTINUOUS = "continuous"


class BarcodeScanner:
    """
    Scanning session with overlay feedback.

    Attributes:
        pipeline: Decode pipeline (luminance + binarizer fallback)
        renderer: Overlay renderer for this session
        freeze_on_result: Freeze the overlay on the decoded frame

    Example:
        >>> scanner = BarcodeScanner()
        >>> scanner.preview = StreamPreview()
        >>> scanner.decode_single(callback)
        >>> result = scanner.process_frame(frame)
        >>> scanner.render_overlay(frame)
    """

    def __init__(
        self,
        pipeline: Optional[DecodePipeline] = None,
        renderer: Optional[OverlayRenderer] = None,
        camera_index: int = 0,
        margin_fraction: float = 0.125,
        freeze_on_result: bool = True
    ) -> None:
        """
        Initialize scanner instance.

        Args:
            pipeline: Decode pipeline (zxing-cpp backed by default)
            renderer: Overlay renderer (default style by default)
            camera_index: Camera device index for live scanning
            margin_fraction: Framing margin used by the live camera preview
            freeze_on_result: Freeze the overlay when a symbol decodes
        """
        self.pipeline = pipeline or DecodePipeline()
        self.renderer = renderer or OverlayRenderer()
        self.freeze_on_result = freeze_on_result
        self._camera_index = camera_index
        self._margin_fraction = margin_fraction
        self._callback: Optional[ScanCallback] = None
        self._mode = DecodeMode.NONE
        self._pending_snapshot: Optional[np.ndarray] = None
        self._lock = threading.Lock()

        logger.debug(f"Scanner created (camera {camera_index})")

    @classmethod
    def from_settings(cls, settings) -> "BarcodeScanner":
        """Build a scanner whose pipeline and overlay follow the settings."""
        renderer = OverlayRenderer(style=OverlayStyle.from_settings(settings))
        renderer.driver.min_interval = settings.min_repaint_interval
        renderer.offset_top = settings.offset_top
        return cls(
            pipeline=DecodePipeline.from_settings(settings),
            renderer=renderer,
            camera_index=settings.camera_index,
            margin_fraction=settings.framing_margin_fraction,
        )

    # =========================================================================
    # SESSION CONTROL
    # =========================================================================

    @property
    def preview(self) -> Optional[CameraPreview]:
        return self.renderer.camera_preview

    @preview.setter
    def preview(self, preview: Optional[CameraPreview]) -> None:
        self.renderer.camera_preview = preview

    @property
    def mode(self) -> DecodeMode:
        return self._mode

    @property
    def is_decoding(self) -> bool:
        return self._mode is not DecodeMode.NONE

    def decode_single(self, callback: ScanCallback) -> None:
        """Decode until the first result, then stop."""
        with self._lock:
            self._callback = callback
            self._mode = DecodeMode.SINGLE
        logger.info("🔍 Single decode started")

    def decode_continuous(self, callback: ScanCallback) -> None:
        """Decode every frame until stop_decoding()."""
        with self._lock:
            self._callback = callback
            self._mode = DecodeMode.CONTINUOUS
        logger.info("🔍 Continuous decode started")

    def stop_decoding(self) -> None:
        with self._lock:
            self._callback = None
            self._mode = DecodeMode.NONE
        logger.debug("Decoding stopped")

    def reset(self) -> None:
        """Drop any frozen result and resume the live overlay."""
        with self._lock:
            self._pending_snapshot = None
        self.renderer.reset()
        logger.info("🔄 Scanner reset")

    # =========================================================================
    # FRAME PROCESSING METHODS
    # =========================================================================

    def process_frame(self, frame: np.ndarray) -> Optional[DecodeResult]:
        """
        Decode one preview frame and report to the active callback.

        Candidate points go to the overlay first, then to the callback.
        Frames that arrive while a result is frozen on screen are ignored
        until reset().

        Args:
            frame: OpenCV image in preview coordinates

        Returns:
            DecodeResult, or None when nothing decoded (or not decoding)
        """
        if frame is None or frame.size == 0:
            return None

        with self._lock:
            callback, mode = self._callback, self._mode
            frozen = self._pending_snapshot is not None
        if mode is DecodeMode.NONE or callback is None:
            return None
        if self.freeze_on_result and (frozen or self.renderer.state is ScanState.FROZEN):
            return None

        outcome = self.pipeline.decode_source(LuminanceSource.from_image(frame))
        points = list(outcome.points)

        self.renderer.add_possible_result_points(points)
        callback.on_possible_result_points(points)

        result = outcome.result
        if result is None:
            return None

        with self._lock:
            if self._mode is DecodeMode.SINGLE:
                self._mode = DecodeMode.NONE
                self._callback = None
            if self.freeze_on_result:
                self._pending_snapshot = self._result_crop(frame)

        logger.info(f"✓ Detected {result.format.value}: {result.text}")
        callback.on_result(result)
        return result

    def render_overlay(self, canvas: np.ndarray) -> bool:
        """
        Draw the overlay onto `canvas`; call from the render thread.

        A result snapshot produced by a decode thread is applied here so
        renderer state only changes on one thread.
        """
        with self._lock:
            snapshot, self._pending_snapshot = self._pending_snapshot, None
        if snapshot is not None:
            self.renderer.draw_result_bitmap(snapshot)
        return self.renderer.render(canvas)

    def _result_crop(self, frame: np.ndarray) -> np.ndarray:
        rect = self.renderer.framing_rect
        if rect is None:
            return frame.copy()
        height, width = frame.shape[:2]
        left, top = max(0, rect.left), max(0, rect.top)
        right, bottom = min(width, rect.right), min(height, rect.bottom)
        if left >= right or top >= bottom:
            return frame.copy()
        return frame[top:bottom, left:right].copy()

    # =========================================================================
    # CAMERA METHODS
    # =========================================================================

    def scan_camera_live(
        self,
        duration_seconds: int = 30,
        window_name: str = "Barcode Scanner",
        callback: Optional[ScanCallback] = None
    ) -> List[DecodeResult]:
        """
        Live camera scanning with the overlay drawn on every frame.

        Press 'q' to quit and 'r' to resume scanning after a result.

        Args:
            duration_seconds: How long to scan (0 = indefinite)
            window_name: OpenCV window name
            callback: Optional callback receiving results and points

        Returns:
            Every result decoded during the session

        Raises:
            AppException: CAMERA_UNAVAILABLE if the camera cannot be opened
        """
        preview = OpenCVCameraPreview(self._camera_index, self._margin_fraction)
        preview.start()
        self.preview = preview

        collector = _CollectingCallback(callback)
        worker = DecodeWorker(self)
        self.decode_continuous(collector)
        worker.start()

        logger.info("📷 Starting live scan (press 'q' to quit, 'r' to rescan)")
        start_time = cv2.getTickCount()

        try:
            while True:
                frame = preview.read()
                if frame is None:
                    break

                worker.submit(frame)
                self.render_overlay(frame)
                cv2.imshow(window_name, frame)

                key = cv2.waitKey(1) & 0xFF
                if key == ord('q'):
                    logger.info("User pressed 'q' - stopping scan")
                    break
                if key == ord('r'):
                    self.reset()

                if duration_seconds > 0:
                    elapsed = (cv2.getTickCount() - start_time) / cv2.getTickFrequency()
                    if elapsed >= duration_seconds:
                        logger.info(f"Duration {duration_seconds}s reached")
                        break
        finally:
            worker.stop()
            self.stop_decoding()
            self.preview = None
            preview.close()
            cv2.destroyAllWindows()

        logger.info(f"📊 Total results: {len(collector.results)}")
        return collector.results

    def close(self) -> None:
        """Stop decoding and release the overlay's frozen snapshot."""
        self.stop_decoding()
        with self._lock:
            self._pending_snapshot = None
        self.renderer.draw_viewfinder()
        self.renderer.set_visible(False)
        self.preview = None
        logger.debug("Scanner closed")


class _CollectingCallback:
    """Keeps every result and forwards to an optional caller callback."""

    def __init__(self, delegate: Optional[ScanCallback] = None) -> None:
        self.delegate = delegate
        self.results: List[DecodeResult] = []

    def on_result(self, result: DecodeResult) -> None:
        self.results.append(result)
        if self.delegate is not None:
            self.delegate.on_result(result)

    def on_possible_result_points(self, points: List[ResultPoint]) -> None:
        if self.delegate is not None:
            self.delegate.on_possible_result_points(points)


class DecodeWorker:
    """
    Background thread decoding the most recent frame.

    The queue holds a single frame; submitting while one is waiting
    replaces it, so the worker always decodes the newest frame.
    """

    def __init__(self, scanner: BarcodeScanner, poll_interval: float = 0.1) -> None:
        self.scanner = scanner
        self.poll_interval = poll_interval
        self.frames_processed = 0
        self.frames_dropped = 0
        self._queue: "queue.Queue[np.ndarray]" = queue.Queue(maxsize=1)
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.is_running:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, name="decode-worker", daemon=True)
        self._thread.start()

    def stop(self, timeout: float = 2.0) -> None:
        if self._thread is None:
            return
        self._stop_event.set()
        self._thread.join(timeout=timeout)
        self._thread = None

    def submit(self, frame: np.ndarray) -> None:
        """Queue a copy of `frame`, replacing any frame still waiting."""
        frame = frame.copy()
        while True:
            try:
                self._queue.put_nowait(frame)
                return
            except queue.Full:
                try:
                    self._queue.get_nowait()
                    self.frames_dropped += 1
                except queue.Empty:
                    pass

    def _run(self) -> None:
        while not self._stop_event.is_set():
            try:
                frame = self._queue.get(timeout=self.poll_interval)
            except queue.Empty:
                continue
            try:
                self.scanner.process_frame(frame)
            except Exception as e:
                logger.error(f"Decode worker error: {e}")
            self.frames_processed += 1
