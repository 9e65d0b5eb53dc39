"""
==============================================================================
Overlay Renderer Module
==============================================================================

Draws the scanning overlay onto camera frames with OpenCV.

One paint pass composes, in order:
- the darkened mask outside the framing rectangle
- either the frozen result snapshot (FROZEN) or
- corner brackets, the scan indicator and the candidate point trail
  (SCANNING), followed by a repaint request to the animation driver

The renderer is the per-session context object: it owns the framing
state, the animator, the repaint driver, the point buffers and the frozen
snapshot, and can be reset for a new preview session.

==============================================================================
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional, Tuple

import cv2
import numpy as np

from viewfinder.core import exceptions
from viewfinder.overlay.animator import (
    AnimationDriver,
    IndicatorFrame,
    IndicatorMode,
    ScanIndicatorAnimator,
    create_animator,
)
from viewfinder.overlay.camera import CameraPreview
from viewfinder.overlay.geometry import (
    UNSET_OFFSET,
    FramingState,
    PreviewSize,
    Rect,
    ResultPoint,
)
from viewfinder.overlay.points import (
    CURRENT_POINT_OPACITY,
    POINT_SIZE,
    ResultPointBuffer,
)


# Module logger
logger = logging.getLogger(__name__)


Color = Tuple[int, int, int]


# =============================================================================
# COLOR CONSTANTS (BGR format for OpenCV)
# =============================================================================

class OverlayColors:
    """
    Default overlay colors.

    All colors are in BGR format (OpenCV standard); opacity is configured
    separately.
    """

    MASK = (0, 0, 0)
    RESULT = (0, 0, 0)
    LASER = (0, 0, 204)
    RESULT_POINT = (33, 189, 255)
    CORNER = (255, 255, 255)


class ScanState(str, Enum):
    """Renderer mode."""

    SCANNING = "scanning"
    FROZEN = "frozen"


@dataclass
class OverlayStyle:
    """
    Rendering configuration for the scanning overlay.

    Geometry:
    - corner_ratio: bracket leg = rectangle dimension // ratio (4 or 8)
    - corner_stroke_width: bracket stroke width in pixels
    - line_height: scan line thickness when no line image is given

    Indicator:
    - indicator_mode: "sweep" (moving line) or "pulse" (flickering laser)
    - laser_visible: draw the indicator at all
    - line_image: optional BGR/BGRA image stretched across the framing width

    Opacity (0-255):
    - mask_alpha / result_alpha: outside area while scanning / frozen
    - snapshot_opacity: frozen result image over the framing rectangle
    """

    mask_color: Color = OverlayColors.MASK
    mask_alpha: int = 0x60
    result_color: Color = OverlayColors.RESULT
    result_alpha: int = 0xB0
    laser_color: Color = OverlayColors.LASER
    laser_visible: bool = True
    result_point_color: Color = OverlayColors.RESULT_POINT
    corner_color: Color = OverlayColors.CORNER
    corner_stroke_width: int = 4
    corner_ratio: int = 8
    indicator_mode: str = IndicatorMode.SWEEP.value
    line_height: int = 3
    line_image: Optional[np.ndarray] = None
    snapshot_opacity: int = CURRENT_POINT_OPACITY

    def __post_init__(self) -> None:
        if self.corner_ratio not in (4, 8):
            raise ValueError(f"Unsupported corner ratio: {self.corner_ratio}")
        IndicatorMode(self.indicator_mode)

    @classmethod
    def from_settings(cls, settings) -> "OverlayStyle":
        """Build a style from application settings."""
        return cls(
            mask_alpha=settings.mask_alpha,
            result_alpha=settings.result_alpha,
            laser_visible=settings.laser_visible,
            corner_stroke_width=settings.corner_stroke_width,
            corner_ratio=settings.corner_ratio,
            indicator_mode=settings.indicator_mode,
        )


class ResultSnapshot:
    """
    Frozen result image owned by the renderer.

    `release` drops the pixels exactly once; reading them afterwards is a
    programming error and raises.
    """

    def __init__(self, image: np.ndarray) -> None:
        if image is None or image.size == 0 or image.ndim not in (2, 3):
            raise exceptions.invalid_image("empty or malformed result snapshot")
        self._pixels: Optional[np.ndarray] = np.ascontiguousarray(image).copy()

    @property
    def released(self) -> bool:
        return self._pixels is None

    @property
    def pixels(self) -> np.ndarray:
        if self._pixels is None:
            raise exceptions.snapshot_released()
        return self._pixels

    def release(self) -> bool:
        """Free the pixels; returns False if already released."""
        if self._pixels is None:
            return False
        self._pixels = None
        return True


# =============================================================================
# DRAWING HELPERS
# =============================================================================

def _channel_color(canvas: np.ndarray, color: Color) -> Tuple[int, ...]:
    if canvas.shape[2] == 4:
        return tuple(color) + (255,)
    return tuple(color)


def _clip(canvas: np.ndarray, x0: int, y0: int, x1: int, y1: int) -> Optional[Tuple[int, int, int, int]]:
    height, width = canvas.shape[:2]
    x0, x1 = max(0, x0), min(width, x1)
    y0, y1 = max(0, y0), min(height, y1)
    if x0 >= x1 or y0 >= y1:
        return None
    return x0, y0, x1, y1


def blend_rect(canvas: np.ndarray, x0: int, y0: int, x1: int, y1: int, color: Color, alpha: int) -> None:
    """Blend a solid color over a canvas region, clipped to the canvas."""
    clipped = _clip(canvas, x0, y0, x1, y1)
    if clipped is None or alpha <= 0:
        return
    x0, y0, x1, y1 = clipped
    roi = canvas[y0:y1, x0:x1]
    solid = np.empty_like(roi)
    solid[:] = _channel_color(canvas, color)
    weight = min(alpha, 255) / 255.0
    canvas[y0:y1, x0:x1] = cv2.addWeighted(solid, weight, roi, 1.0 - weight, 0)


def blend_image(canvas: np.ndarray, image: np.ndarray, rect: Rect, opacity: int) -> None:
    """
    Stretch `image` into `rect` and blend it at `opacity`.

    BGRA images use their own alpha multiplied by `opacity`.
    """
    if rect.width <= 0 or rect.height <= 0 or opacity <= 0:
        return
    clipped = _clip(canvas, rect.left, rect.top, rect.right, rect.bottom)
    if clipped is None:
        return

    if image.ndim == 2:
        image = cv2.cvtColor(image, cv2.COLOR_GRAY2BGR)
    stretched = cv2.resize(image, (rect.width, rect.height), interpolation=cv2.INTER_LINEAR)

    x0, y0, x1, y1 = clipped
    part = stretched[y0 - rect.top:y1 - rect.top, x0 - rect.left:x1 - rect.left]
    alpha = np.full(part.shape[:2], opacity / 255.0, dtype=np.float32)
    if part.shape[2] == 4:
        alpha *= part[:, :, 3].astype(np.float32) / 255.0
        part = part[:, :, :3]

    roi = canvas[y0:y1, x0:x1]
    channels = min(3, roi.shape[2])
    base = roi[:, :, :channels].astype(np.float32)
    top = part[:, :, :channels].astype(np.float32)
    mixed = top * alpha[:, :, None] + base * (1.0 - alpha[:, :, None])
    roi[:, :, :channels] = np.clip(mixed, 0, 255).astype(canvas.dtype)


def blend_circle(canvas: np.ndarray, x: float, y: float, radius: int, color: Color, alpha: int) -> None:
    """Blend a filled circle, clipped to the canvas."""
    cx, cy = int(x), int(y)
    clipped = _clip(canvas, cx - radius - 1, cy - radius - 1, cx + radius + 2, cy + radius + 2)
    if clipped is None or alpha <= 0:
        return
    x0, y0, x1, y1 = clipped
    roi = canvas[y0:y1, x0:x1]
    painted = roi.copy()
    cv2.circle(painted, (cx - x0, cy - y0), radius, _channel_color(canvas, color), -1, cv2.LINE_AA)
    weight = min(alpha, 255) / 255.0
    canvas[y0:y1, x0:x1] = cv2.addWeighted(painted, weight, roi, 1.0 - weight, 0)


class OverlayRenderer:
    """
    Scanning overlay renderer bound to one preview session.

    Attributes:
        style: Colors, opacities and indicator selection
        animator: Scan indicator animator (exclusively owned)
        driver: Repaint driver polled by the host loop
        points: Candidate point fade-trail buffers

    Example:
        >>> renderer = OverlayRenderer()
        >>> renderer.camera_preview = preview
        >>> if renderer.driver.consume():
        ...     renderer.render(frame)
    """

    def __init__(
        self,
        style: Optional[OverlayStyle] = None,
        animator: Optional[ScanIndicatorAnimator] = None,
        driver: Optional[AnimationDriver] = None,
        points: Optional[ResultPointBuffer] = None
    ) -> None:
        self.style = style or OverlayStyle()
        self.animator = animator or create_animator(self.style.indicator_mode)
        self.driver = driver or AnimationDriver()
        self.points = points or ResultPointBuffer()
        self._framing = FramingState()
        self._camera: Optional[CameraPreview] = None
        self._listener = _RendererCameraListener(self)
        self._offset_top = UNSET_OFFSET
        self._snapshot: Optional[ResultSnapshot] = None
        self._visible = True

    # =========================================================================
    # COLLABORATOR & GEOMETRY
    # =========================================================================

    @property
    def camera_preview(self) -> Optional[CameraPreview]:
        return self._camera

    @camera_preview.setter
    def camera_preview(self, preview: Optional[CameraPreview]) -> None:
        if self._camera is not None:
            self._camera.remove_state_listener(self._listener)
        self._camera = preview
        self._framing.reset()
        if preview is not None:
            preview.add_state_listener(self._listener)
            self.refresh_geometry()

    @property
    def offset_top(self) -> int:
        return self._offset_top

    @offset_top.setter
    def offset_top(self, value: int) -> None:
        self._offset_top = value
        self._listener.preview_sized(None)

    @property
    def framing_rect(self) -> Optional[Rect]:
        return self._framing.rect

    @property
    def preview_size(self) -> Optional[PreviewSize]:
        return self._framing.preview_size

    def refresh_geometry(self) -> Optional[Rect]:
        """Pull geometry from the camera preview into the framing state."""
        camera = self._camera
        if camera is None:
            return self._framing.update_geometry(None, None)
        return self._framing.update_geometry(
            camera.preview_size,
            camera.framing_rect,
            self._offset_top,
        )

    # =========================================================================
    # STATE
    # =========================================================================

    @property
    def state(self) -> ScanState:
        return ScanState.FROZEN if self._snapshot is not None else ScanState.SCANNING

    @property
    def snapshot(self) -> Optional[ResultSnapshot]:
        return self._snapshot

    @property
    def visible(self) -> bool:
        return self._visible

    def add_possible_result_point(self, point: ResultPoint) -> bool:
        """Queue a candidate point; safe to call from a decode worker."""
        return self.points.add(point)

    def add_possible_result_points(self, points: Iterable[ResultPoint]) -> int:
        return self.points.add_all(points)

    def draw_result_bitmap(self, image: Optional[np.ndarray]) -> None:
        """
        Freeze the overlay on a result image.

        Args:
            image: Result image (BGR, BGRA or gray); None resumes scanning
        """
        if image is None:
            self.draw_viewfinder()
            return

        snapshot = ResultSnapshot(image)
        self._release_snapshot()
        self._snapshot = snapshot
        self.animator.stop()
        self.driver.cancel()
        self.driver.schedule(0.0)
        logger.debug("Overlay frozen on result snapshot")

    def draw_viewfinder(self) -> None:
        """Drop the frozen snapshot and resume the live overlay."""
        self._release_snapshot()
        if self._visible:
            self.animator.start()
        self.driver.schedule(0.0)

    def set_visible(self, visible: bool) -> None:
        """
        Follow host visibility: stop animating and scheduling when hidden.

        Args:
            visible: Whether the overlay is currently shown
        """
        self._visible = visible
        self.driver.set_visible(visible)
        if visible:
            if self.state is ScanState.SCANNING:
                self.animator.start()
            self.driver.schedule(0.0)
        else:
            self.animator.stop()

    def reset(self) -> None:
        """Return to a fresh scanning session keeping the camera attached."""
        self._release_snapshot()
        self.points.clear()
        self.driver.cancel()
        self._framing.reset()
        self.refresh_geometry()
        if self._visible:
            self.animator.start()
            self.driver.schedule(0.0)

    def request_repaint(self) -> bool:
        return self.driver.schedule(0.0)

    def _release_snapshot(self) -> None:
        snapshot, self._snapshot = self._snapshot, None
        if snapshot is not None:
            snapshot.release()

    # =========================================================================
    # RENDERING
    # =========================================================================

    def render(self, canvas: np.ndarray) -> bool:
        """
        Paint one overlay pass onto `canvas` in place.

        Args:
            canvas: BGR or BGRA uint8 frame in view coordinates

        Returns:
            False when no geometry is available and nothing was drawn
        """
        if canvas is None or canvas.ndim != 3 or canvas.shape[2] not in (3, 4):
            raise exceptions.invalid_image("canvas must be a BGR or BGRA image")

        frame = self.refresh_geometry()
        preview = self._framing.preview_size
        if frame is None or preview is None or preview.is_empty:
            return False

        view_height, view_width = canvas.shape[:2]
        frozen = self._snapshot is not None

        self._draw_mask(canvas, frame, view_width, view_height, frozen)

        if frozen:
            blend_image(canvas, self._snapshot.pixels, frame, self.style.snapshot_opacity)
            return True

        self._draw_corners(canvas, frame)

        self.animator.set_bounds(frame)
        if self._visible and not self.animator.is_running:
            self.animator.start()
        indicator = self.animator.tick()
        if self.style.laser_visible:
            self._draw_indicator(canvas, frame, indicator)

        scale_x = view_width / float(preview.width)
        scale_y = view_height / float(preview.height)
        self.points.swap_and_render(
            lambda x, y, opacity, radius: blend_circle(
                canvas, x, y, radius, self.style.result_point_color, opacity
            ),
            scale_x,
            scale_y,
        )

        region = None
        if self.animator.mode is IndicatorMode.PULSE:
            region = frame.inset(-POINT_SIZE, -POINT_SIZE)
        self.driver.schedule(self.animator.repaint_delay, region)
        return True

    def _draw_mask(self, canvas: np.ndarray, frame: Rect, width: int, height: int, frozen: bool) -> None:
        color = self.style.result_color if frozen else self.style.mask_color
        alpha = self.style.result_alpha if frozen else self.style.mask_alpha

        blend_rect(canvas, 0, 0, width, frame.top, color, alpha)
        blend_rect(canvas, 0, frame.top, frame.left, frame.bottom + 1, color, alpha)
        blend_rect(canvas, frame.right + 1, frame.top, width, frame.bottom + 1, color, alpha)
        blend_rect(canvas, 0, frame.bottom + 1, width, height, color, alpha)

    def _draw_corners(self, canvas: np.ndarray, frame: Rect) -> None:
        stroke = self.style.corner_stroke_width
        half = stroke // 2
        h_len = frame.width // self.style.corner_ratio
        v_len = frame.height // self.style.corner_ratio
        color = _channel_color(canvas, self.style.corner_color)

        left, right = frame.left + half, frame.right - half
        top, bottom = frame.top + half, frame.bottom - half

        segments = (
            ((left, top), (left, top + v_len)),
            ((left, top), (left + h_len, top)),
            ((right, top), (right, top + v_len)),
            ((right, top), (right - h_len, top)),
            ((left, bottom), (left, bottom - v_len)),
            ((left, bottom), (left + h_len, bottom)),
            ((right, bottom), (right, bottom - v_len)),
            ((right, bottom), (right - h_len, bottom)),
        )
        for start, end in segments:
            cv2.line(canvas, start, end, color, stroke, cv2.LINE_AA)

    def _draw_indicator(self, canvas: np.ndarray, frame: Rect, indicator: IndicatorFrame) -> None:
        if self.animator.mode is IndicatorMode.PULSE:
            middle = indicator.position
            blend_rect(
                canvas,
                frame.left + 2, middle - 1, frame.right - 1, middle + 2,
                self.style.laser_color, indicator.opacity,
            )
            return

        if self.style.line_image is not None and self.style.line_image.size:
            line_height = max(1, self.style.line_image.shape[0])
            line_rect = Rect(frame.left, indicator.position, frame.right, indicator.position + line_height)
            blend_image(canvas, self.style.line_image, line_rect, indicator.opacity)
            return

        blend_rect(
            canvas,
            frame.left, indicator.position,
            frame.right, indicator.position + self.style.line_height,
            self.style.laser_color, indicator.opacity,
        )


class _RendererCameraListener:
    """Routes camera lifecycle callbacks into the renderer."""

    def __init__(self, renderer: OverlayRenderer) -> None:
        self._renderer = renderer

    def preview_sized(self, size: Optional[PreviewSize]) -> None:
        self._renderer.refresh_geometry()
        self._renderer.request_repaint()

    def preview_started(self) -> None:
        logger.debug("Preview started")

    def preview_stopped(self) -> None:
        logger.debug("Preview stopped; keeping last framing geometry")

    def camera_error(self, error: Exception) -> None:
        logger.warning(f"Camera error reported to overlay: {error}")

    def camera_closed(self) -> None:
        logger.debug("Camera closed")
