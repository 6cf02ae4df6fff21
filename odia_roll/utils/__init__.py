"""
Utility functions for the Odia roll pipeline.
"""

from .image_utils import (
    load_image,
    save_image,
    image_size,
    crop_rect,
    to_greyscale,
    normalize_contrast,
    sharpen,
)

from .script import (
    is_odia,
    convert_odia_digits,
    extract_odia_text,
)

from .timing import (
    timed_operation,
    Timer,
)

__all__ = [
    # Image utilities
    "load_image",
    "save_image",
    "image_size",
    "crop_rect",
    "to_greyscale",
    "normalize_contrast",
    "sharpen",

    # Script utilities
    "is_odia",
    "convert_odia_digits",
    "extract_odia_text",

    # Timing utilities
    "timed_operation",
    "Timer",
]
