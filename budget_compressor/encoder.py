"""
Encoder Adapter.

Wraps OpenCV's in-memory JPEG encoder behind a uniform contract: one call is
one encode attempt at one quality, with no retries. Also holds the decode step
that turns uploaded bytes into a ``SourceImage``.
"""

import os
from dataclasses import dataclass

import cv2
import numpy as np

from .errors import DecodeFailure, EncodeFailure

JPEG_MEDIA_TYPE = "image/jpeg"
JPEG_EXTENSION = ".jpg"


@dataclass(frozen=True, eq=False)
class SourceImage:
    """
    Decoded pixel buffer (BGR, as returned by OpenCV).

    The buffer is flagged read-only so that no encode attempt can modify it.
    """

    pixels: np.ndarray

    def __post_init__(self):
        self.pixels.flags.writeable = False

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1]) if self.pixels.ndim >= 2 else 0

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0]) if self.pixels.ndim >= 1 else 0


@dataclass(frozen=True)
class EncodedResult:
    """Encoded bytes produced by a single attempt, and the quality that produced them."""

    data: bytes
    quality: float
    media_type: str = JPEG_MEDIA_TYPE
    extension: str = JPEG_EXTENSION

    @property
    def size(self) -> int:
        return len(self.data)

    def fits(self, budget: int) -> bool:
        return self.size <= budget

    def save(self, path: str) -> None:
        """Write the encoded bytes to ``path``, creating parent directories."""
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(path, "wb") as f:
            f.write(self.data)


def decode_image(data: bytes) -> SourceImage:
    """
    Decode JPEG or PNG bytes into a ``SourceImage``.

    Transparency is discarded: the output format is always JPEG.

    Raises:
        DecodeFailure: If the bytes are empty or not a supported image.
    """
    if not data:
        raise DecodeFailure("Empty image data")

    buffer = np.frombuffer(data, dtype=np.uint8)
    try:
        img = cv2.imdecode(buffer, cv2.IMREAD_COLOR)
    except cv2.error as e:
        raise DecodeFailure(f"Failed to decode image: {e}") from e

    if img is None:
        raise DecodeFailure("Data is not a valid JPEG or PNG image")
    return SourceImage(img)


def load_image(path: str) -> SourceImage:
    """Read ``path`` from disk and decode it."""
    try:
        with open(path, "rb") as f:
            data = f.read()
    except OSError as e:
        raise DecodeFailure(f"Failed to read {path}: {e}") from e
    return decode_image(data)


def encode_at(source: SourceImage, quality: float) -> EncodedResult:
    """
    Encode ``source`` as JPEG at ``quality`` in [0, 1].

    The quality is mapped onto OpenCV's 0-100 ``IMWRITE_JPEG_QUALITY`` scale.

    Raises:
        EncodeFailure: If the image is empty, the quality is out of range,
            or OpenCV cannot produce output.
    """
    if not 0.0 <= quality <= 1.0:
        raise EncodeFailure(f"Quality {quality} is outside [0, 1]", quality)
    if source.width == 0 or source.height == 0:
        raise EncodeFailure("Cannot encode an image with a zero dimension", quality)

    encode_params = [cv2.IMWRITE_JPEG_QUALITY, int(round(quality * 100))]
    try:
        success, encoded_img = cv2.imencode(JPEG_EXTENSION, source.pixels, encode_params)
    except cv2.error as e:
        raise EncodeFailure(f"Encoder error at quality {quality}: {e}", quality) from e

    if not success:
        raise EncodeFailure(f"Encoder produced no output at quality {quality}", quality)
    return EncodedResult(encoded_img.tobytes(), quality)
