"""
Cloud layout module.
Geometry primitives and placement strategies that assign non-overlapping
positions to successive word rectangles, growing outward from a center.
"""

import math
from abc import ABC, abstractmethod
from typing import List, NamedTuple


class Point(NamedTuple):
    x: float
    y: float


class Size(NamedTuple):
    width: float
    height: float


class Rectangle(NamedTuple):
    """Axis-aligned rectangle; y grows downward like image coordinates."""

    x: float
    y: float
    width: float
    height: float

    @property
    def left(self) -> float:
        return self.x

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def top(self) -> float:
        return self.y

    @property
    def bottom(self) -> float:
        return self.y + self.height

    @property
    def location(self) -> Point:
        return Point(self.x, self.y)

    @property
    def size(self) -> Size:
        return Size(self.width, self.height)

    def offset(self, dx: float, dy: float) -> "Rectangle":
        return Rectangle(self.x + dx, self.y + dy, self.width, self.height)

    def inflate(self, dx: float, dy: float) -> "Rectangle":
        """Grow the rectangle by dx on the left and right, dy on top and bottom."""
        return Rectangle(
            self.x - dx, self.y - dy, self.width + 2 * dx, self.height + 2 * dy
        )

    def intersects(self, other: "Rectangle") -> bool:
        """True when the interiors overlap; shared edges do not count."""
        return (
            self.left < other.right
            and other.left < self.right
            and self.top < other.bottom
            and other.top < self.bottom
        )

    def pixel_bounds(self) -> "Rectangle":
        """Smallest whole-pixel rectangle covering this one."""
        left, top = math.floor(self.left), math.floor(self.top)
        return Rectangle(
            left,
            top,
            math.ceil(self.right) - left,
            math.ceil(self.bottom) - top,
        )


class PlacementError(RuntimeError):
    """Raised when a layouter cannot find room for a rectangle."""


class Layouter(ABC):
    """Stateful placer for one rendering run."""

    @abstractmethod
    def place_next(self, size: Size) -> Rectangle:
        """
        Place a rectangle of the given size.

        The result never overlaps a rectangle previously returned by the
        same instance; its location is in the layouter's own coordinates.
        """
        pass


class LayouterFactory(ABC):
    """Creates a fresh layouter per run."""

    @abstractmethod
    def create(self, center: Point, min_spacing: Size) -> Layouter:
        pass


class SpiralLayouter(Layouter):
    """Places rectangles along an Archimedean spiral around the center."""

    def __init__(
        self,
        center: Point,
        min_spacing: Size,
        angle_step: float = 0.1,
        density: float = 1.0,
        max_steps: int = 200000,
    ):
        """
        Initialize the spiral layouter.

        Args:
            center: Spiral origin
            min_spacing: Minimal horizontal and vertical gap between rectangles
            angle_step: Angle increment in radians between candidate points
            density: Radius gained per radian of rotation
            max_steps: Candidate points tried before giving up on a rectangle
        """
        self.center = Point(*center)
        self.min_spacing = Size(*min_spacing)
        self.angle_step = angle_step
        self.density = density
        self.max_steps = max_steps
        self.rectangles: List[Rectangle] = []

    def place_next(self, size: Size) -> Rectangle:
        width, height = size
        if width < 0 or height < 0:
            raise ValueError(f"Rectangle size must not be negative, got {size}")

        for step in range(self.max_steps):
            angle = step * self.angle_step
            radius = self.density * angle
            cx = self.center.x + radius * math.cos(angle)
            cy = self.center.y + radius * math.sin(angle)

            candidate = Rectangle(cx - width / 2, cy - height / 2, width, height)
            if not self._collides(candidate):
                self.rectangles.append(candidate)
                return candidate

        raise PlacementError(
            f"Could not place {width}x{height} rectangle after {self.max_steps} steps"
        )

    def _collides(self, candidate: Rectangle) -> bool:
        padded = candidate.inflate(self.min_spacing.width, self.min_spacing.height)
        return any(padded.intersects(placed) for placed in self.rectangles)


class SpiralLayouterFactory(LayouterFactory):
    def __init__(self, angle_step: float = 0.1, density: float = 1.0):
        self.angle_step = angle_step
        self.density = density

    def create(self, center: Point, min_spacing: Size) -> Layouter:
        return SpiralLayouter(
            center, min_spacing, angle_step=self.angle_step, density=self.density
        )


LAYOUTERS = {
    "spiral": SpiralLayouterFactory,
}
