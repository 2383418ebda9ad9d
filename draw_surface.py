"""
Growable draw surface for tag clouds.
Keeps an RGBA buffer whose geometric center is the cloud origin and enlarges
it around that center whenever a committed rectangle would not fit.
"""

from typing import Callable, Optional, Tuple

from PIL import Image, ImageDraw

from cloud_layout import Point, Rectangle

DrawCallback = Callable[[ImageDraw.ImageDraw, Rectangle], None]


class SurfaceGrowthError(RuntimeError):
    """Raised when a larger buffer cannot be allocated."""


def _max_abs(*numbers: int) -> int:
    return max(abs(n) for n in numbers)


class DrawSurface:
    """
    Image buffer with a centered coordinate system.

    Every rectangle committed so far satisfies max(|left|, |right|) <= width // 2
    and max(|top|, |bottom|) <= height // 2 relative to the buffer center.
    The buffer only ever grows, and growth keeps already painted pixels at the
    same place relative to the center.
    """

    MODE = "RGBA"

    def __init__(self, source_center: Point = Point(0, 0)):
        """
        Args:
            source_center: Origin of the coordinates rectangles arrive in
        """
        self.source_center = Point(*source_center)
        self._image: Optional[Image.Image] = None
        self._draw: Optional[ImageDraw.ImageDraw] = None
        self._closed = False

    def __enter__(self) -> "DrawSurface":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def size(self) -> Tuple[int, int]:
        if self._image is None:
            return (0, 0)
        return self._image.size

    @property
    def center(self) -> Point:
        width, height = self.size
        return Point(width // 2, height // 2)

    def prepare_and_commit(
        self, rectangle: Rectangle, on_draw: Optional[DrawCallback] = None
    ) -> Rectangle:
        """
        Make room for a rectangle and hand it to the drawing callback.

        Args:
            rectangle: Rectangle relative to the source center
            on_draw: Called with the drawing context and the rectangle in
                buffer pixel coordinates (top-left origin)

        Returns:
            The rectangle in buffer pixel coordinates
        """
        if self._closed:
            raise RuntimeError("Draw surface is closed")

        relative = Rectangle(*rectangle).offset(
            -self.source_center.x, -self.source_center.y
        )
        self._ensure_capacity(relative.pixel_bounds())

        half_width, half_height = self.center
        translated = relative.offset(half_width, half_height)
        if on_draw is not None:
            on_draw(self._draw, translated)
        return translated

    def snapshot(self) -> Optional[Image.Image]:
        """Return an independent copy of the buffer, or None before any commit."""
        if self._image is None:
            return None
        return self._image.copy()

    def close(self) -> None:
        """Release the buffer and its drawing context."""
        self._draw = None
        if self._image is not None:
            self._image.close()
            self._image = None
        self._closed = True

    def _ensure_capacity(self, bounds: Rectangle) -> None:
        if self._image is None:
            width = _max_abs(bounds.left, bounds.right) + bounds.width
            height = _max_abs(bounds.top, bounds.bottom) + bounds.height
            self._replace_image(self._allocate((width, height)))

        new_size = self._required_size(self._image.size, bounds)
        if new_size != self._image.size:
            self._replace_image(self._extend(self._image, new_size))

    @staticmethod
    def _required_size(size: Tuple[int, int], bounds: Rectangle) -> Tuple[int, int]:
        width, height = size
        half_width, half_height = width // 2, height // 2

        x_distance = _max_abs(bounds.left, bounds.right, half_width)
        y_distance = _max_abs(bounds.top, bounds.bottom, half_height)

        # An axis that already fits keeps its size, odd sizes included.
        new_width = width if x_distance == half_width else x_distance * 2
        new_height = height if y_distance == half_height else y_distance * 2
        return new_width, new_height

    def _extend(self, image: Image.Image, new_size: Tuple[int, int]) -> Image.Image:
        extended = self._allocate(new_size)
        # Old and new centers coincide, also when the old size is odd
        offset = (
            new_size[0] // 2 - image.width // 2,
            new_size[1] // 2 - image.height // 2,
        )
        extended.paste(image, offset)
        return extended

    def _allocate(self, size: Tuple[int, int]) -> Image.Image:
        try:
            return Image.new(self.MODE, size, (0, 0, 0, 0))
        except (MemoryError, OverflowError, ValueError) as e:
            raise SurfaceGrowthError(
                f"Could not allocate a {size[0]}x{size[1]} draw surface: {e}"
            ) from e

    def _replace_image(self, image: Image.Image) -> None:
        previous = self._image
        self._image = image
        self._draw = ImageDraw.Draw(image)
        if previous is not None:
            previous.close()
