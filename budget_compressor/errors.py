"""
Error types raised by the budget compressor.

The core never recovers from these itself; callers decide how to report them.
An unreachable budget is not an error: the floor attempt is returned instead.
"""

from typing import Optional


class CompressorError(Exception):
    """Base class for every failure surfaced by the compressor."""


class DecodeFailure(CompressorError):
    """The source bytes could not be interpreted as a supported image."""


class EncodeFailure(CompressorError):
    """The JPEG encoder could not produce output at a given quality."""

    def __init__(self, message: str, quality: Optional[float] = None):
        super().__init__(message)
        self.quality = quality


class CompressionCancelled(CompressorError):
    """A run was cancelled before its next encode attempt."""


class OutputFailure(CompressorError):
    """The encoded image could not be written to its destination."""
