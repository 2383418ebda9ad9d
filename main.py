"""
Main entry point for the Tag Cloud renderer.
Reads words from a document, counts them in the background and renders
the tag cloud image.
"""

import argparse
import sys
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Iterable, List, NamedTuple, Optional

from PIL import Image

from cloud_layout import LAYOUTERS, LayouterFactory, PlacementError, Point, Size
from cloud_visualizer import (
    FONT_SIZE_RESOLVERS,
    RESIZERS,
    ColorPalette,
    FileResultWriter,
    FontSizeResolver,
    ImageResizer,
    TagCloudRenderer,
    parse_color,
)
from config import (
    ANALYSIS_CONFIG,
    IMAGE_FORMATS,
    OUTPUT_CONFIG,
    RENDER_CONFIG,
    ConfigurationError,
    validate_render_settings,
)
from draw_surface import SurfaceGrowthError
from text_extractor import FILTERS, NORMALIZERS, read_tokens
from word_analysis import CancellationToken, WordCount, WordFrequencyAggregator


class JobResult(NamedTuple):
    words: List[WordCount]
    image: Optional[Image.Image]
    cancelled: bool


class TagCloudJob:
    """
    One aggregation-and-rendering run executed on a background worker.

    Aggregation and rendering share a single cancellation token. When the
    token is already set once counting finishes, rendering is skipped.
    """

    def __init__(
        self,
        tokens: Callable[[], Iterable[str]],
        layouter_factory: LayouterFactory,
        font_size_resolver: FontSizeResolver,
        palette: ColorPalette,
        font_family: Optional[str] = None,
        center_offset: Point = Point(0, 0),
        min_spacing: Size = Size(4, 4),
        background_color=None,
        output_size: Size = Size(0, 0),
        resizer: Optional[ImageResizer] = None,
        exact_counts: Optional[bool] = None,
        renderer: Optional[TagCloudRenderer] = None,
    ):
        """
        Initialize the job.

        Args:
            tokens: Callable producing the lazy word stream, called on the worker
            layouter_factory: Creates the placement strategy for this run
            font_size_resolver: Font size source
            palette: Word colors
            font_family: Font family for the words
            center_offset: Cloud center handed to the layouter
            min_spacing: Minimal distance between words
            background_color: Background of the final image
            output_size: Target size, (0, 0) for no resize
            resizer: Resizer used when output_size is set
            exact_counts: Report raw occurrence counts
            renderer: Renderer to use (a new one if None)
        """
        self.tokens = tokens
        self.layouter_factory = layouter_factory
        self.font_size_resolver = font_size_resolver
        self.palette = palette
        self.font_family = font_family
        self.center_offset = Point(*center_offset)
        self.min_spacing = Size(*min_spacing)
        self.background_color = background_color
        self.output_size = Size(*output_size)
        self.resizer = resizer
        self.exact_counts = exact_counts
        self.renderer = renderer or TagCloudRenderer()

        self.cancellation = CancellationToken()
        self._executor: Optional[ThreadPoolExecutor] = None
        self._future = None

    def start(self) -> "TagCloudJob":
        if self._future is not None:
            raise RuntimeError("Job already started")
        self._executor = ThreadPoolExecutor(max_workers=1)
        self._future = self._executor.submit(self.run)
        return self

    def cancel(self) -> None:
        self.cancellation.cancel()

    def result(self, timeout: Optional[float] = None) -> JobResult:
        """Wait for the background run; its exceptions are re-raised here."""
        if self._future is None:
            raise RuntimeError("Job not started")
        try:
            return self._future.result(timeout)
        finally:
            if self._future.done():
                self._executor.shutdown(wait=False)

    def validate(self) -> None:
        """
        Check the settings and load the font without touching the words.

        Raises:
            ConfigurationError: if any setting is invalid
        """
        validate_render_settings(
            min_spacing=self.min_spacing,
            output_size=self.output_size,
            font_family=self.font_family,
            palette=self.palette.colors,
        )
        if self.background_color is not None:
            parse_color(self.background_color)
        self.renderer.font_manager(self.font_family)

    def run(self) -> JobResult:
        """Count words and render them on the calling thread."""
        self.validate()

        aggregator = WordFrequencyAggregator(self.cancellation, self.exact_counts)
        words = aggregator.aggregate(self.tokens())

        if self.cancellation.is_cancelled:
            return JobResult(words, None, True)

        layouter = self.layouter_factory.create(self.center_offset, self.min_spacing)
        image = self.renderer.render(
            self.font_size_resolver,
            self.palette,
            layouter,
            words,
            self.cancellation,
            self.font_family,
            background_color=self.background_color,
            output_size=self.output_size,
            resizer=self.resizer,
            source_center=self.center_offset,
        )
        return JobResult(words, image, self.cancellation.is_cancelled)


def parse_arguments(argv: Optional[List[str]] = None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Tag Cloud - Render words sized by frequency into an image",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Render a text file to cloud.png
  python main.py --input text.txt --output cloud

  # Skip short and common words, use a log scale for font sizes
  python main.py --input book.pdf --output cloud --filters min-length stop-words --font-size-source log

  # Fixed output size on a white background with a matplotlib palette
  python main.py --input text.txt --output cloud --size 1920 1080 --resizer fit --background white --colormap viridis

  # List the available filters, layouters, resizers and formats
  python main.py --list-options
""",
    )

    input_group = parser.add_argument_group("Input Options")
    input_group.add_argument("--input", "-i", type=str, help="Input file path or text string")
    input_group.add_argument(
        "--input-type",
        "-t",
        type=str,
        choices=["pdf", "txt", "docx", "string"],
        help="Input type (auto-detected if not specified)",
    )
    input_group.add_argument(
        "--pdf-pages",
        nargs=2,
        type=int,
        metavar=("START", "END"),
        help="Page range for PDF extraction",
    )

    words_group = parser.add_argument_group("Word Options")
    words_group.add_argument(
        "--filters",
        nargs="+",
        choices=sorted(FILTERS),
        default=["alphabetic"],
        help="Word filters; a word must pass all of them",
    )
    words_group.add_argument(
        "--normalizer",
        choices=sorted(NORMALIZERS),
        help="Word normalization method (lowercase unless case sensitive)",
    )
    words_group.add_argument(
        "--exact-counts",
        action="store_true",
        help="Report raw occurrence counts instead of repeat counts",
    )

    layout_group = parser.add_argument_group("Layout Options")
    layout_group.add_argument("--layouter", choices=sorted(LAYOUTERS), default=RENDER_CONFIG["layouter"])
    layout_group.add_argument(
        "--center-offset",
        nargs=2,
        type=int,
        metavar=("X", "Y"),
        default=RENDER_CONFIG["center_offset"],
        help="Cloud center offset",
    )
    layout_group.add_argument(
        "--spacing",
        nargs=2,
        type=int,
        metavar=("WIDTH", "HEIGHT"),
        default=RENDER_CONFIG["min_spacing"],
        help="Minimal distance between words",
    )

    style_group = parser.add_argument_group("Style Options")
    style_group.add_argument("--font", type=str, default=RENDER_CONFIG["font_family"], help="Font family or .ttf path")
    style_group.add_argument(
        "--font-size-source",
        choices=sorted(FONT_SIZE_RESOLVERS),
        default=RENDER_CONFIG["font_size_source"],
    )
    style_group.add_argument("--min-font-size", type=int, default=RENDER_CONFIG["min_font_size"])
    style_group.add_argument("--max-font-size", type=int, default=RENDER_CONFIG["max_font_size"])
    style_group.add_argument("--background", type=str, default=RENDER_CONFIG["background_color"])
    style_group.add_argument(
        "--palette",
        nargs="+",
        type=str,
        default=RENDER_CONFIG["palette"],
        help="Word colors used in rank order",
    )
    style_group.add_argument("--colormap", type=str, help="Take word colors from a matplotlib colormap")

    output_group = parser.add_argument_group("Output Options")
    output_group.add_argument("--output", "-o", type=str, help="Output path without extension")
    output_group.add_argument("--format", choices=IMAGE_FORMATS, default=RENDER_CONFIG["image_format"])
    output_group.add_argument(
        "--size",
        nargs=2,
        type=int,
        metavar=("WIDTH", "HEIGHT"),
        default=RENDER_CONFIG["output_size"],
        help="Result image size (0 0 keeps the drawn size)",
    )
    output_group.add_argument("--resizer", choices=sorted(RESIZERS), default=RENDER_CONFIG["resizer"])
    output_group.add_argument("--quiet", "-q", action="store_true", help="Minimal output")
    output_group.add_argument(
        "--list-options",
        action="store_true",
        help="List available filters, normalizers, layouters, resizers and formats",
    )

    return parser.parse_args(argv)


def list_options() -> None:
    options = {
        "Filters": FILTERS,
        "Normalizers": NORMALIZERS,
        "Layouters": LAYOUTERS,
        "Font size sources": FONT_SIZE_RESOLVERS,
        "Resizers": RESIZERS,
    }
    for title, registry in options.items():
        print(f"{title}: {', '.join(sorted(registry))}")
    print(f"Formats: {', '.join(IMAGE_FORMATS)}")


def build_job(args) -> TagCloudJob:
    """Validate the arguments and assemble a job from them."""
    if args.colormap:
        palette = ColorPalette.from_colormap(args.colormap)
    else:
        palette = ColorPalette(args.palette)

    validate_render_settings(
        min_spacing=tuple(args.spacing),
        output_size=tuple(args.size),
        font_family=args.font,
        palette=palette.colors,
        image_format=args.format,
    )

    filters = [FILTERS[name]() for name in args.filters]
    normalizer = NORMALIZERS[args.normalizer]() if args.normalizer else None

    extract_kwargs = {}
    if args.pdf_pages:
        extract_kwargs["page_range"] = tuple(args.pdf_pages)

    def tokens():
        return read_tokens(args.input, args.input_type, filters, normalizer, **extract_kwargs)

    font_size_resolver = FONT_SIZE_RESOLVERS[args.font_size_source](
        args.min_font_size, args.max_font_size
    )

    job = TagCloudJob(
        tokens,
        LAYOUTERS[args.layouter](),
        font_size_resolver,
        palette,
        font_family=args.font,
        center_offset=Point(*args.center_offset),
        min_spacing=Size(*args.spacing),
        background_color=args.background,
        output_size=Size(*args.size),
        resizer=RESIZERS[args.resizer](),
        exact_counts=args.exact_counts or ANALYSIS_CONFIG["exact_counts"],
    )
    job.validate()
    return job


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = parse_arguments(argv)

    if args.quiet:
        OUTPUT_CONFIG["verbose"] = False
        OUTPUT_CONFIG["timing_info"] = False

    if args.list_options:
        list_options()
        return 0

    if not args.input or not args.output:
        print("Error: --input and --output are required")
        return 1

    try:
        job = build_job(args)
        writer = FileResultWriter(args.format)
    except ConfigurationError as e:
        print(f"Error: {e}")
        return 1

    start_time = time.time()
    if OUTPUT_CONFIG["verbose"]:
        print(f"Rendering tag cloud for {args.input}... (Ctrl+C to cancel)")

    job.start()
    try:
        try:
            result = job.result()
        except KeyboardInterrupt:
            print("Cancelling...")
            job.cancel()
            result = job.result()
    except (
        ValueError,
        ImportError,
        PlacementError,
        SurfaceGrowthError,
        OSError,
    ) as e:
        # ValueError covers ConfigurationError and undecodable text input
        print(f"Error creating tag cloud: {e}")
        return 1

    if result.cancelled:
        print("Cancelled, nothing was saved")
        return 130

    try:
        writer.save(result.image, args.output)
    except OSError as e:
        print(f"Error saving tag cloud: {e}")
        return 1

    if OUTPUT_CONFIG["timing_info"]:
        elapsed = round(time.time() - start_time, 2)
        print(f"Completed in {elapsed} seconds ({len(result.words)} unique words)")
    return 0


if __name__ == "__main__":
    sys.exit(main())
