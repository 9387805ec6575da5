"""
Presentation helpers: human-readable sizes, reduction figures and output names.
"""

import math
import os
from typing import Optional

from .encoder import JPEG_EXTENSION

SIZE_UNITS = ('Bytes', 'KB', 'MB')
ACCEPTED_EXTENSIONS = ('.jpg', '.jpeg', '.png')
OUTPUT_PREFIX = "compressed_"


def _round_half_up(value: float, digits: int = 0) -> float:
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def format_file_size(size_bytes: int) -> str:
    """
    Format a byte count using 1024-based units.

    Example:
        >>> format_file_size(1536)
        '1.5 KB'
    """
    if size_bytes == 0:
        return "0 Bytes"
    index = int(math.floor(math.log(size_bytes) / math.log(1024)))
    index = max(0, min(index, len(SIZE_UNITS) - 1))
    value = _round_half_up(size_bytes / 1024 ** index, 2)
    return f"{value:.2f}".rstrip("0").rstrip(".") + f" {SIZE_UNITS[index]}"


def reduction_percent(original_size: int, compressed_size: Optional[int]) -> Optional[int]:
    """
    Percentage by which ``compressed_size`` undercuts ``original_size``.

    Negative when the re-encoded image is larger. ``None`` when there is
    nothing to compare.
    """
    if not original_size or compressed_size is None:
        return None
    return int(_round_half_up((1 - compressed_size / original_size) * 100))


def output_name(original_name: str, extension: str = JPEG_EXTENSION) -> str:
    """Name of the compressed artifact: ``photo.png`` -> ``compressed_photo.jpg``."""
    base = os.path.splitext(os.path.basename(original_name))[0]
    return f"{OUTPUT_PREFIX}{base}{extension}"


def is_accepted(path: str) -> bool:
    """True for JPEG and PNG file names."""
    return path.lower().endswith(ACCEPTED_EXTENSIONS)
