"""
==============================================================================
Scan Indicator Animation Tests
==============================================================================

Tests for the sweeping line, the pulsing laser and the repaint driver.

==============================================================================
"""

import pytest

from viewfinder.overlay.animator import (
    ANIMATION_DELAY_MS,
    SCANNER_ALPHA,
    AnimationDriver,
    IndicatorMode,
    PulsingLaserAnimator,
    SweepingLineAnimator,
    create_animator,
)
from viewfinder.overlay.geometry import Rect


BOUNDS = Rect(0, 0, 100, 600)


class TestSweepingLineAnimator:
    """Tests for the sweeping scan line."""

    def test_position_follows_cycle(self, clock):
        animator = SweepingLineAnimator(clock=clock)
        animator.set_bounds(BOUNDS)
        animator.start()

        assert animator.tick().position == 0
        clock.advance(1.5)
        assert animator.tick().position == 300
        clock.advance(1.5)
        assert animator.tick().position == 0

    def test_full_opacity_above_last_sixth(self):
        for position in range(0, 500, 25):
            assert SweepingLineAnimator.opacity_at(BOUNDS, position) == 255

    def test_opacity_fades_to_zero_at_bottom(self):
        opacities = [SweepingLineAnimator.opacity_at(BOUNDS, p) for p in range(500, 601, 10)]
        assert opacities[0] == 255
        assert opacities[-1] == 0
        assert all(a >= b for a, b in zip(opacities, opacities[1:]))
        assert SweepingLineAnimator.opacity_at(BOUNDS, 550) == 127

    def test_zero_height_bounds(self):
        assert SweepingLineAnimator.opacity_at(Rect(0, 10, 100, 10), 10) == 0

    def test_stop_start_continues_cycle(self, clock):
        animator = SweepingLineAnimator(clock=clock)
        animator.start()
        clock.advance(1.0)
        animator.stop()
        clock.advance(4.0)
        assert animator.elapsed_ms() == pytest.approx(1000.0)

        animator.start()
        clock.advance(0.5)
        assert animator.elapsed_ms() == pytest.approx(1500.0)

    def test_tick_while_stopped_returns_stored_frame(self, clock):
        animator = SweepingLineAnimator(clock=clock)
        animator.set_bounds(BOUNDS)
        animator.start()
        clock.advance(0.5)
        frame = animator.tick()
        animator.stop()
        clock.advance(1.0)
        assert animator.tick() == frame

    def test_requests_immediate_repaint(self):
        assert SweepingLineAnimator().repaint_delay == 0.0


class TestPulsingLaserAnimator:
    """Tests for the flickering laser."""

    def test_cycles_through_opacities_at_midline(self):
        animator = PulsingLaserAnimator()
        animator.set_bounds(BOUNDS)
        animator.start()

        frames = [animator.tick() for _ in range(len(SCANNER_ALPHA) + 2)]
        assert [f.opacity for f in frames] == list(SCANNER_ALPHA) + list(SCANNER_ALPHA[:2])
        assert {f.position for f in frames} == {BOUNDS.center_y}

    def test_repaint_delay(self):
        assert PulsingLaserAnimator().repaint_delay == ANIMATION_DELAY_MS / 1000.0


class TestCreateAnimator:
    """Tests for animator selection."""

    def test_modes(self):
        assert create_animator("sweep").mode is IndicatorMode.SWEEP
        assert create_animator("pulse").mode is IndicatorMode.PULSE

    def test_created_stopped(self):
        assert create_animator("sweep").is_running is False

    def test_unknown_mode(self):
        with pytest.raises(ValueError):
            create_animator("spin")


class TestAnimationDriver:
    """Tests for the single pending repaint request."""

    def test_one_pending_request(self, clock):
        driver = AnimationDriver(min_interval=0.0, clock=clock)
        assert driver.schedule() is True
        assert driver.schedule() is False
        assert driver.pending

    def test_consume_waits_for_deadline(self, clock):
        driver = AnimationDriver(min_interval=0.0, clock=clock)
        driver.schedule(0.08, Rect(0, 0, 10, 10))

        assert driver.consume() is False
        assert driver.time_until_due() == pytest.approx(0.08)
        clock.advance(0.08)
        assert driver.consume() is True
        assert driver.pending is False
        assert driver.region is None

    def test_min_interval_floor(self, clock):
        driver = AnimationDriver(min_interval=0.5, clock=clock)
        driver.schedule(0.0)
        clock.advance(0.25)
        assert driver.consume() is False
        clock.advance(0.25)
        assert driver.consume() is True

    def test_hidden_cancels_and_refuses(self, clock):
        driver = AnimationDriver(min_interval=0.0, clock=clock)
        driver.schedule()
        driver.set_visible(False)

        assert driver.pending is False
        assert driver.schedule() is False

        driver.set_visible(True)
        assert driver.schedule() is True

    def test_cancel(self, clock):
        driver = AnimationDriver(clock=clock)
        driver.schedule()
        driver.cancel()
        assert driver.time_until_due() is None
