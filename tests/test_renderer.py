"""
==============================================================================
Overlay Renderer Tests
==============================================================================

Tests for mask, corner brackets, indicator, point trail and the frozen
result state. The fake preview reports a 400x400 preview with the
framing rectangle (100, 100, 300, 300).

==============================================================================
"""

import numpy as np
import pytest

from conftest import FakePreview
from viewfinder.core.exceptions import AppException
from viewfinder.overlay.animator import AnimationDriver, PulsingLaserAnimator
from viewfinder.overlay.geometry import Rect, ResultPoint
from viewfinder.overlay.renderer import OverlayRenderer, OverlayStyle, ResultSnapshot, ScanState


def make_renderer(preview, **style) -> OverlayRenderer:
    style.setdefault("laser_visible", False)
    renderer = OverlayRenderer(style=OverlayStyle(**style), driver=AnimationDriver(min_interval=0.0))
    renderer.camera_preview = preview
    return renderer


class TestGeometry:
    """Tests for collaborator geometry handling."""

    def test_no_camera_draws_nothing(self, gray_canvas):
        renderer = OverlayRenderer()
        assert renderer.render(gray_canvas) is False
        assert (gray_canvas == 128).all()

    def test_unsized_camera_draws_nothing(self, gray_canvas):
        renderer = make_renderer(FakePreview(preview_size=None, framing_rect=None))
        assert renderer.render(gray_canvas) is False
        assert (gray_canvas == 128).all()

    def test_last_geometry_kept_when_camera_stops_reporting(self, preview, gray_canvas):
        renderer = make_renderer(preview)
        renderer.refresh_geometry()
        preview.framing_rect = None
        assert renderer.render(gray_canvas) is True
        assert renderer.framing_rect == Rect(100, 100, 300, 300)

    def test_offset_top_override(self, preview):
        renderer = make_renderer(preview)
        renderer.offset_top = 50
        assert renderer.framing_rect == Rect(100, 50, 300, 250)

    def test_switching_camera_moves_listener(self, preview):
        renderer = make_renderer(preview)
        other = FakePreview()
        renderer.camera_preview = other
        assert len(preview.listeners) == 0
        assert len(other.listeners) == 1

    def test_preview_sized_requests_repaint(self, preview):
        renderer = make_renderer(preview)
        assert renderer.driver.pending is False
        preview.listeners.preview_sized(preview.preview_size)
        assert renderer.driver.pending is True

    def test_invalid_canvas(self, preview):
        renderer = make_renderer(preview)
        with pytest.raises(AppException) as exc:
            renderer.render(np.zeros((400, 400), dtype=np.uint8))
        assert exc.value.code == "INVALID_IMAGE"


class TestScanningPaint:
    """Tests for the live (SCANNING) paint pass."""

    def test_mask_uses_inclusive_right_and_bottom_edges(self, preview, gray_canvas):
        make_renderer(preview).render(gray_canvas)

        assert gray_canvas[99, 200, 0] < 100
        assert gray_canvas[100, 200, 0] == 128
        assert gray_canvas[200, 99, 0] < 100
        assert gray_canvas[200, 100, 0] == 128
        assert gray_canvas[200, 300, 0] == 128
        assert gray_canvas[200, 301, 0] < 100
        assert gray_canvas[300, 200, 0] == 128
        assert gray_canvas[301, 200, 0] < 100

    def test_corner_brackets_eighth_of_side(self, preview, gray_canvas):
        make_renderer(preview).render(gray_canvas)
        assert gray_canvas[110, 102, 0] > 200
        assert gray_canvas[102, 110, 0] > 200
        assert gray_canvas[102, 140, 0] == 128

    def test_corner_brackets_quarter_of_side(self, preview, gray_canvas):
        make_renderer(preview, corner_ratio=4).render(gray_canvas)
        assert gray_canvas[102, 140, 0] > 200

    def test_unsupported_corner_ratio(self):
        with pytest.raises(ValueError):
            OverlayStyle(corner_ratio=5)

    def test_result_point_drawn(self, preview, gray_canvas):
        renderer = make_renderer(preview)
        renderer.add_possible_result_point(ResultPoint(200, 200))
        renderer.render(gray_canvas)

        blue, green, red = gray_canvas[200, 200]
        assert red > 180
        assert blue < 100

    def test_result_points_scaled_to_view(self, preview):
        canvas = np.full((800, 800, 3), 128, dtype=np.uint8)
        renderer = make_renderer(preview)
        renderer.add_possible_result_point(ResultPoint(250, 250))
        renderer.render(canvas)
        assert canvas[500, 500, 2] > 180

    def test_render_starts_animator_and_schedules(self, preview, gray_canvas):
        renderer = make_renderer(preview)
        renderer.render(gray_canvas)
        assert renderer.animator.is_running
        assert renderer.driver.pending
        assert renderer.driver.region is None

    def test_pulse_repaints_framing_region(self, preview, gray_canvas):
        renderer = OverlayRenderer(
            style=OverlayStyle(indicator_mode="pulse"),
            driver=AnimationDriver(min_interval=0.0)
        )
        renderer.camera_preview = preview
        renderer.render(gray_canvas)

        assert isinstance(renderer.animator, PulsingLaserAnimator)
        assert renderer.driver.region == Rect(94, 94, 306, 306)
        assert renderer.driver.time_until_due() == pytest.approx(0.08, abs=0.01)

    def test_pulse_laser_drawn_at_midline(self, preview, gray_canvas):
        renderer = OverlayRenderer(style=OverlayStyle(indicator_mode="pulse"))
        renderer.camera_preview = preview
        # first opacity step is 0, the fifth is 255
        for _ in range(5):
            canvas = gray_canvas.copy()
            renderer.render(canvas)
        blue, green, red = canvas[200, 200]
        assert red > 180
        assert blue < 50

    def test_hidden_overlay_stops_animating(self, preview, gray_canvas):
        renderer = make_renderer(preview)
        renderer.render(gray_canvas)
        renderer.set_visible(False)

        assert renderer.animator.is_running is False
        assert renderer.driver.pending is False
        assert renderer.request_repaint() is False


class TestFrozenState:
    """Tests for the result snapshot lifecycle."""

    def test_freeze_draws_snapshot_without_brackets(self, preview, gray_canvas):
        renderer = make_renderer(preview)
        renderer.draw_result_bitmap(np.zeros((50, 50, 3), dtype=np.uint8))

        assert renderer.state is ScanState.FROZEN
        assert renderer.animator.is_running is False

        renderer.render(gray_canvas)
        assert gray_canvas[200, 200, 0] < 60
        assert gray_canvas[110, 102, 0] < 60
        assert gray_canvas[10, 10, 0] < 60

    def test_new_result_releases_previous_snapshot(self, preview):
        renderer = make_renderer(preview)
        renderer.draw_result_bitmap(np.zeros((10, 10, 3), dtype=np.uint8))
        first = renderer.snapshot
        renderer.draw_result_bitmap(np.zeros((10, 10, 3), dtype=np.uint8))

        assert first.released
        assert renderer.snapshot is not first

    def test_reset_releases_and_resumes(self, preview, gray_canvas):
        renderer = make_renderer(preview)
        renderer.draw_result_bitmap(np.zeros((10, 10, 3), dtype=np.uint8))
        snapshot = renderer.snapshot

        renderer.reset()

        assert snapshot.released
        assert renderer.state is ScanState.SCANNING
        assert renderer.animator.is_running
        renderer.render(gray_canvas)
        assert gray_canvas[110, 102, 0] > 200

    def test_none_result_resumes_scanning(self, preview):
        renderer = make_renderer(preview)
        renderer.draw_result_bitmap(np.zeros((10, 10, 3), dtype=np.uint8))
        renderer.draw_result_bitmap(None)
        assert renderer.state is ScanState.SCANNING

    def test_released_snapshot_cannot_be_read(self):
        snapshot = ResultSnapshot(np.zeros((10, 10, 3), dtype=np.uint8))
        assert snapshot.release() is True
        assert snapshot.release() is False

        with pytest.raises(AppException) as exc:
            snapshot.pixels
        assert exc.value.code == "SNAPSHOT_RELEASED"
