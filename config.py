"""
Configuration file for the tag cloud renderer.
Modify this file to customize the renderer's behavior.
"""

# Analysis configuration
ANALYSIS_CONFIG = {
    "case_sensitive": False,  # Whether to keep the original case of words
    "strip_punctuation": True,  # Whether to remove punctuation around words
    "min_word_length": 3,  # Used by the "min-length" filter
    "exact_counts": False,  # Report raw occurrence counts instead of repeats
}

# Rendering configuration
RENDER_CONFIG = {
    "center_offset": (0, 0),  # Cloud center in layouter coordinates
    "min_spacing": (4, 4),  # Minimal distance between rectangles
    "output_size": (0, 0),  # (0, 0) keeps the drawn size
    "background_color": "khaki",
    "palette": ["darkred"],
    "font_family": "default",  # "default" is Pillow's bundled font
    "min_font_size": 12,
    "max_font_size": 96,
    "font_size_source": "linear",
    "layouter": "spiral",
    "resizer": "stretch",
    "image_format": "png",
}

# Words ignored by the "stop-words" filter
STOP_WORDS = {
    "a", "an", "and", "are", "as", "at", "be", "but", "by", "for", "from",
    "has", "have", "he", "her", "his", "i", "in", "is", "it", "its", "of",
    "on", "or", "she", "that", "the", "their", "they", "this", "to", "was",
    "we", "were", "with", "you",
}

# Output configuration
OUTPUT_CONFIG = {
    "verbose": True,  # Show detailed progress information
    "timing_info": True,  # Show execution time
}

IMAGE_FORMATS = ["png", "bmp", "gif", "jpeg", "tiff"]


class ConfigurationError(ValueError):
    """Raised when rendering settings are unusable."""


def validate_render_settings(
    min_spacing=None,
    output_size=None,
    font_family=None,
    palette=None,
    image_format=None,
) -> None:
    """
    Validate rendering settings before any work begins.

    Omitted arguments fall back to RENDER_CONFIG.

    Raises:
        ConfigurationError: if any setting is invalid
    """
    if min_spacing is None:
        min_spacing = RENDER_CONFIG["min_spacing"]
    if output_size is None:
        output_size = RENDER_CONFIG["output_size"]
    if font_family is None:
        font_family = RENDER_CONFIG["font_family"]
    if palette is None:
        palette = RENDER_CONFIG["palette"]
    if image_format is None:
        image_format = RENDER_CONFIG["image_format"]

    width, height = min_spacing
    if width <= 0 or height <= 0:
        raise ConfigurationError(
            f"Spacing between words must be positive, got {width}x{height}"
        )

    width, height = output_size
    if width < 0 or height < 0:
        raise ConfigurationError(
            f"Output size must not be negative, got {width}x{height}"
        )

    if not font_family or not str(font_family).strip():
        raise ConfigurationError("Font family is required")

    if not palette:
        raise ConfigurationError("Color palette must contain at least one color")

    if str(image_format).lower() not in IMAGE_FORMATS:
        raise ConfigurationError(
            f"Unsupported image format: {image_format} "
            f"(choose from {', '.join(IMAGE_FORMATS)})"
        )
