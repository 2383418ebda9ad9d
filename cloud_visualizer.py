"""
Tag Cloud Visualizer
Draws frequency-ranked words onto a growable surface, sized by frequency
and positioned by a pluggable layouter, then flattens the result onto an
opaque background.
"""

import math
from abc import ABC, abstractmethod
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, Union

import matplotlib
import matplotlib.colors as mcolors
import numpy as np
from PIL import Image, ImageDraw, ImageFont

from cloud_layout import Layouter, Point, Rectangle, Size
from config import (
    IMAGE_FORMATS,
    OUTPUT_CONFIG,
    RENDER_CONFIG,
    ConfigurationError,
)
from draw_surface import DrawSurface
from word_analysis import CancellationToken, WordCount

RGBA = Tuple[int, int, int, int]
ColorSpec = Union[str, Tuple[int, ...]]


def parse_color(value: ColorSpec) -> RGBA:
    """
    Convert a color name, hex string or integer tuple to an RGBA tuple.

    Names and hex strings are understood the way matplotlib understands them.
    """
    if isinstance(value, (tuple, list)) and all(isinstance(c, int) for c in value):
        if len(value) == 3:
            return (value[0], value[1], value[2], 255)
        if len(value) == 4:
            return tuple(value)
        raise ConfigurationError(f"Invalid color: {value!r}")

    try:
        rgba = mcolors.to_rgba(value)
    except ValueError as e:
        raise ConfigurationError(f"Invalid color: {value!r}") from e
    return tuple(int(round(channel * 255)) for channel in rgba)


class ColorPalette:
    """Ordered word colors, assigned round-robin by word rank."""

    def __init__(self, colors: Iterable[ColorSpec]):
        self.colors: List[RGBA] = [parse_color(c) for c in colors]
        if not self.colors:
            raise ConfigurationError("Color palette must contain at least one color")

    @classmethod
    def from_colormap(cls, name: str, count: int = 8) -> "ColorPalette":
        """Sample `count` evenly spaced colors from a matplotlib colormap."""
        try:
            cmap = matplotlib.colormaps[name]
        except KeyError as e:
            raise ConfigurationError(f"Unknown colormap: {name}") from e

        samples = np.linspace(0.0, 1.0, max(1, count))
        return cls(mcolors.to_hex(rgba) for rgba in cmap(samples))

    @classmethod
    def coerce(cls, palette: Union["ColorPalette", Sequence[ColorSpec]]) -> "ColorPalette":
        if isinstance(palette, cls):
            return palette
        return cls(palette)

    def color_for(self, index: int) -> RGBA:
        return self.colors[index % len(self.colors)]

    def __len__(self) -> int:
        return len(self.colors)


class FontManager:
    """Handles font loading for one font family with caching."""

    DEFAULT_FAMILY = "default"

    def __init__(self, family: Optional[str] = None):
        self.family = family if family is not None else RENDER_CONFIG["font_family"]
        self._font_cache: Dict[int, ImageFont.FreeTypeFont] = {}

    def validate(self) -> None:
        """Fail early when the family is missing or cannot be loaded."""
        if not self.family or not str(self.family).strip():
            raise ConfigurationError("Font family is required")
        self.get_font(RENDER_CONFIG["min_font_size"])

    def get_font(self, font_size: int):
        """Get a font of the specified size with caching."""
        font_size = max(1, int(font_size))
        if font_size in self._font_cache:
            return self._font_cache[font_size]

        try:
            if self.family == self.DEFAULT_FAMILY:
                font = ImageFont.load_default(size=font_size)
            else:
                font = ImageFont.truetype(self.family, font_size)
        except OSError as e:
            raise ConfigurationError(
                f"Could not load font family '{self.family}': {e}"
            ) from e

        self._font_cache[font_size] = font
        return font


class FontSizeResolver(ABC):
    """Maps a word frequency to a font size in pixels."""

    def __init__(self, min_size: Optional[int] = None, max_size: Optional[int] = None):
        self.min_size = min_size if min_size is not None else RENDER_CONFIG["min_font_size"]
        self.max_size = max_size if max_size is not None else RENDER_CONFIG["max_font_size"]
        if self.min_size <= 0 or self.max_size < self.min_size:
            raise ConfigurationError(
                f"Invalid font size range: {self.min_size}..{self.max_size}"
            )

    def resolve(self, frequency: int, max_frequency: int) -> int:
        if max_frequency <= 0:
            # Equally frequent words share the largest size
            ratio = 1.0
        else:
            ratio = self._ratio(max(0, frequency), max_frequency)
        return int(round(self.min_size + (self.max_size - self.min_size) * ratio))

    @abstractmethod
    def _ratio(self, frequency: int, max_frequency: int) -> float:
        pass


class LinearFontSizeResolver(FontSizeResolver):
    def _ratio(self, frequency: int, max_frequency: int) -> float:
        return frequency / max_frequency


class LogarithmicFontSizeResolver(FontSizeResolver):
    def _ratio(self, frequency: int, max_frequency: int) -> float:
        return math.log1p(frequency) / math.log1p(max_frequency)


FONT_SIZE_RESOLVERS = {
    "linear": LinearFontSizeResolver,
    "log": LogarithmicFontSizeResolver,
}


class ImageResizer(ABC):
    """Resizes the drawn (still transparent) cloud to the output size."""

    def resize(self, image: Image.Image, size: Size) -> Image.Image:
        width, height = int(size[0]), int(size[1])
        if image.width == 0 or image.height == 0:
            return Image.new(image.mode, (width, height))
        return self._resize(image, width, height)

    @abstractmethod
    def _resize(self, image: Image.Image, width: int, height: int) -> Image.Image:
        pass


class StretchResizer(ImageResizer):
    """Scale to exactly the requested size."""

    def _resize(self, image: Image.Image, width: int, height: int) -> Image.Image:
        return image.resize((width, height), Image.Resampling.LANCZOS)


class FitResizer(ImageResizer):
    """Scale preserving aspect ratio and center on a canvas of the requested size."""

    def _resize(self, image: Image.Image, width: int, height: int) -> Image.Image:
        scale = min(width / image.width, height / image.height)
        new_width = max(1, int(image.width * scale))
        new_height = max(1, int(image.height * scale))

        resized = image.resize((new_width, new_height), Image.Resampling.LANCZOS)
        canvas = Image.new(image.mode, (width, height))

        start_x = (width - new_width) // 2
        start_y = (height - new_height) // 2
        canvas.paste(resized, (start_x, start_y))
        return canvas


RESIZERS = {
    "stretch": StretchResizer,
    "fit": FitResizer,
}


def fill_background(image: Image.Image, color: ColorSpec) -> Image.Image:
    """Flatten the drawing onto an opaque background of the given color."""
    canvas = Image.new("RGBA", image.size, parse_color(color))
    if image.width and image.height:
        canvas.alpha_composite(image.convert("RGBA"))
    return canvas.convert("RGB")


class TagCloudRenderer:
    """Drives font sizing, placement and drawing for one word list at a time."""

    def __init__(self):
        self._font_managers: Dict[str, FontManager] = {}
        self._measure = ImageDraw.Draw(Image.new("RGBA", (1, 1)))

    def render(
        self,
        font_size_resolver: FontSizeResolver,
        palette: Union[ColorPalette, Sequence[ColorSpec]],
        layouter: Layouter,
        words: Sequence[WordCount],
        cancellation: Optional[CancellationToken] = None,
        font_family: Optional[str] = None,
        background_color: Optional[ColorSpec] = None,
        output_size: Size = Size(0, 0),
        resizer: Optional[ImageResizer] = None,
        source_center: Point = Point(0, 0),
    ) -> Image.Image:
        """
        Render words into the final opaque image.

        Args:
            font_size_resolver: Font size source driven by frequency
            palette: Word colors, used round-robin in rank order
            layouter: Placement strategy instance for this run
            words: Ranked words, most frequent first
            cancellation: Checked once before drawing starts
            font_family: Font family name, "default" for Pillow's own font
            background_color: Opaque fill behind the words
            output_size: Target size; (0, 0) keeps the drawn size
            resizer: Resizer used when output_size is set
            source_center: Center offset the layouter was created with

        Returns:
            RGB image with the background filled in
        """
        if background_color is None:
            background_color = RENDER_CONFIG["background_color"]
        parse_color(background_color)

        drawn = self.draw_words(
            font_size_resolver,
            palette,
            layouter,
            words,
            cancellation,
            font_family,
            source_center,
        )

        width, height = output_size
        if width > 0 and height > 0:
            resizer = resizer or StretchResizer()
            drawn = resizer.resize(drawn, Size(width, height))

        return fill_background(drawn, background_color)

    def draw_words(
        self,
        font_size_resolver: FontSizeResolver,
        palette: Union[ColorPalette, Sequence[ColorSpec]],
        layouter: Layouter,
        words: Sequence[WordCount],
        cancellation: Optional[CancellationToken] = None,
        font_family: Optional[str] = None,
        source_center: Point = Point(0, 0),
    ) -> Image.Image:
        """Draw words on a transparent surface and return a snapshot of it."""
        palette = ColorPalette.coerce(palette)
        font_manager = self.font_manager(font_family)
        words = list(words)

        with DrawSurface(source_center) as surface:
            if cancellation is not None and cancellation.is_cancelled:
                if OUTPUT_CONFIG["verbose"]:
                    print("Rendering cancelled before drawing")
            else:
                self._draw_all(surface, font_size_resolver, palette, layouter, words, font_manager)
            image = surface.snapshot()

        if image is None:
            return Image.new(DrawSurface.MODE, (0, 0))
        return image

    def _draw_all(
        self,
        surface: DrawSurface,
        font_size_resolver: FontSizeResolver,
        palette: ColorPalette,
        layouter: Layouter,
        words: List[WordCount],
        font_manager: FontManager,
    ) -> None:
        max_frequency = max((w.frequency for w in words), default=0)

        for index, word in enumerate(words):
            if OUTPUT_CONFIG["verbose"] and index % 50 == 0:
                print(f"  Drawing word {index + 1}/{len(words)}")

            font_size = font_size_resolver.resolve(word.frequency, max_frequency)
            font = font_manager.get_font(font_size)
            bbox = self._measure.textbbox((0, 0), word.text, font=font)
            size = Size(bbox[2] - bbox[0], bbox[3] - bbox[1])

            rectangle = layouter.place_next(size)
            surface.prepare_and_commit(
                rectangle,
                self._text_painter(word.text, font, bbox, palette.color_for(index)),
            )

        if OUTPUT_CONFIG["verbose"]:
            width, height = surface.size
            print(f"Drew {len(words)} words on a {width}x{height} surface")

    @staticmethod
    def _text_painter(text: str, font, bbox: Tuple[int, int, int, int], color: RGBA):
        def paint(draw: ImageDraw.ImageDraw, rectangle: Rectangle) -> None:
            # textbbox is relative to the anchor, so shift back by its origin
            draw.text(
                (rectangle.x - bbox[0], rectangle.y - bbox[1]),
                text,
                fill=color,
                font=font,
            )

        return paint

    def font_manager(self, font_family: Optional[str]) -> FontManager:
        """Load and cache the font family, failing when it cannot be used."""
        if font_family is None:
            font_family = RENDER_CONFIG["font_family"]
        if not font_family or not str(font_family).strip():
            raise ConfigurationError("Font family is required")

        if font_family not in self._font_managers:
            manager = FontManager(font_family)
            manager.validate()
            self._font_managers[font_family] = manager
        return self._font_managers[font_family]


class FileResultWriter:
    """Saves the final image in a chosen format."""

    PIL_FORMATS = {
        "png": "PNG",
        "bmp": "BMP",
        "gif": "GIF",
        "jpeg": "JPEG",
        "tiff": "TIFF",
    }

    def __init__(self, image_format: Optional[str] = None):
        image_format = (image_format or RENDER_CONFIG["image_format"]).lower()
        if image_format not in IMAGE_FORMATS:
            raise ConfigurationError(f"Unsupported image format: {image_format}")
        self.image_format = image_format

    def save(self, image: Image.Image, path: str) -> str:
        """Write the image to `path` plus the format extension and return the full path."""
        output_path = f"{path}.{self.image_format}"
        image.save(output_path, self.PIL_FORMATS[self.image_format])

        if OUTPUT_CONFIG["verbose"]:
            print(f"Tag cloud saved to: {output_path}")
        return output_path
