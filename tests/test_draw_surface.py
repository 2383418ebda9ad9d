"""
Tests for the growable, centered draw surface.
"""

import os
import random
import sys
from unittest.mock import Mock, patch

import numpy as np
import pytest

# Add parent directory to path for imports
sys.path.append(os.path.dirname(os.path.dirname(__file__)))

from cloud_layout import Point, Rectangle, Size, SpiralLayouter
from draw_surface import DrawSurface, SurfaceGrowthError

RED = (255, 0, 0, 255)


def fill(color):
    """Drawing callback painting the whole rectangle."""

    def paint(draw, rect):
        draw.rectangle(
            [rect.x, rect.y, rect.x + rect.width - 1, rect.y + rect.height - 1],
            fill=color,
        )

    return paint


@pytest.mark.unit
class TestInitialAllocation:
    def test_first_rectangle_sizes_buffer(self):
        surface = DrawSurface()
        surface.prepare_and_commit(Rectangle(-5, -5, 10, 10))
        assert surface.size == (15, 15)
        assert surface.center == Point(7, 7)

    def test_callback_receives_buffer_coordinates(self):
        surface = DrawSurface()
        callback = Mock()

        translated = surface.prepare_and_commit(Rectangle(-5, -5, 10, 10), callback)

        assert translated == Rectangle(2, 2, 10, 10)
        draw, rect = callback.call_args[0]
        assert rect == translated
        assert draw is not None

    def test_source_center_is_subtracted(self):
        surface = DrawSurface(Point(100, 50))
        translated = surface.prepare_and_commit(Rectangle(95, 45, 10, 10))
        assert surface.size == (15, 15)
        assert translated == Rectangle(2, 2, 10, 10)

    def test_far_off_first_rectangle_is_contained(self):
        surface = DrawSurface()
        translated = surface.prepare_and_commit(Rectangle(100, 100, 10, 10))
        width, height = surface.size

        assert surface.size == (220, 220)
        assert translated.right <= width and translated.bottom <= height

    def test_snapshot_before_commit(self):
        assert DrawSurface().snapshot() is None
        assert DrawSurface().size == (0, 0)


@pytest.mark.unit
class TestGrowth:
    def test_grows_only_violated_axis(self):
        surface = DrawSurface()
        surface.prepare_and_commit(Rectangle(-10, -10, 10, 10))
        assert surface.size == (20, 20)

        surface.prepare_and_commit(Rectangle(-15, -2, 5, 4))
        assert surface.size == (30, 20)

    def test_pixels_survive_growth_recentered(self):
        surface = DrawSurface()
        surface.prepare_and_commit(Rectangle(-10, -10, 10, 10), fill(RED))
        before = np.array(surface.snapshot())

        surface.prepare_and_commit(Rectangle(-15, -2, 5, 4))
        after = np.array(surface.snapshot())

        # Old buffer pasted at (30 // 2 - 20 // 2, 0)
        assert np.array_equal(after[0:20, 5:25], before)
        assert tuple(after[0, 5]) == RED
        assert tuple(after[0, 4]) == (0, 0, 0, 0)

    def test_odd_axis_never_shrinks(self):
        surface = DrawSurface()
        surface.prepare_and_commit(Rectangle(-5, -5, 10, 10))
        assert surface.size == (15, 15)

        surface.prepare_and_commit(Rectangle(-20, 0, 5, 5))
        assert surface.size == (40, 15)

    def test_fitting_rectangle_keeps_size(self):
        surface = DrawSurface()
        surface.prepare_and_commit(Rectangle(-10, -10, 20, 20))
        size = surface.size

        surface.prepare_and_commit(Rectangle(-3, -3, 6, 6))
        surface.prepare_and_commit(Rectangle(0, 0, 1, 1))
        assert surface.size == size

    def test_containment_and_monotonic_growth(self):
        rng = random.Random(7)
        layouter = SpiralLayouter(Point(0, 0), Size(2, 2))
        surface = DrawSurface()
        committed = []
        previous = (0, 0)

        for _ in range(60):
            size = Size(rng.uniform(4, 40), rng.uniform(4, 20))
            rect = layouter.place_next(size)
            surface.prepare_and_commit(rect)
            committed.append(rect)

            width, height = surface.size
            assert width >= previous[0] and height >= previous[1]
            previous = (width, height)

            for placed in committed:
                assert max(abs(placed.left), abs(placed.right)) <= width // 2
                assert max(abs(placed.top), abs(placed.bottom)) <= height // 2

    def test_fractional_negative_edges_stay_inside(self):
        surface = DrawSurface()
        surface.prepare_and_commit(Rectangle(-5.5, -5.5, 11, 11))
        assert surface.size == (18, 18)

        translated = surface.prepare_and_commit(Rectangle(-8.5, 0, 3, 3))
        width, height = surface.size

        assert translated.left == 0.5
        assert translated.left >= 0 and translated.right <= width
        assert translated.top >= 0 and translated.bottom <= height

    def test_odd_size_growth_keeps_centers_aligned(self):
        surface = DrawSurface()
        surface.prepare_and_commit(Rectangle(-5, -5, 10, 10), fill(RED))
        before = np.array(surface.snapshot())

        surface.prepare_and_commit(Rectangle(-20, 0, 5, 5))
        after = np.array(surface.snapshot())

        # Old center 7 lands on new center 20
        assert surface.size == (40, 15)
        assert np.array_equal(after[0:15, 13:28], before)
        assert tuple(after[2, 15]) == RED
        assert tuple(after[2, 14]) == (0, 0, 0, 0)


@pytest.mark.unit
class TestSnapshotsAndLifecycle:
    def test_snapshot_is_independent_copy(self):
        surface = DrawSurface()
        surface.prepare_and_commit(Rectangle(-4, -4, 8, 8))
        snapshot = surface.snapshot()

        surface.prepare_and_commit(Rectangle(-4, -4, 8, 8), fill(RED))

        assert snapshot.getextrema()[3] == (0, 0)
        assert surface.snapshot().getextrema()[3][1] == 255

    def test_context_manager_closes(self):
        with DrawSurface() as surface:
            surface.prepare_and_commit(Rectangle(0, 0, 2, 2))
        assert surface.snapshot() is None
        with pytest.raises(RuntimeError, match="closed"):
            surface.prepare_and_commit(Rectangle(0, 0, 2, 2))

    def test_allocation_failure_keeps_previous_buffer(self):
        surface = DrawSurface()
        surface.prepare_and_commit(Rectangle(-5, -5, 10, 10), fill(RED))
        before = np.array(surface.snapshot())

        with patch("draw_surface.Image.new", side_effect=MemoryError("too big")):
            with pytest.raises(SurfaceGrowthError, match="Could not allocate"):
                surface.prepare_and_commit(Rectangle(-5000, -5, 10, 10))

        assert surface.size == (15, 15)
        assert np.array_equal(np.array(surface.snapshot()), before)
        surface.prepare_and_commit(Rectangle(-1, -1, 2, 2))
        assert surface.size == (15, 15)
