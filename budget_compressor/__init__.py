"""
Budget Compressor Package

Re-encodes JPEG and PNG images as JPEG files that fit a byte budget by
lowering the encoder quality step by step, with async and parallel folder
processing. Includes colored console logging and file logging.
"""

from .config import CompressionConfig, DEFAULT_BUDGET, quality_schedule
from .encoder import EncodedResult, SourceImage, decode_image, encode_at, load_image
from .errors import CompressionCancelled, CompressorError, DecodeFailure, EncodeFailure, OutputFailure
from .compression import FileReport, compress, compress_file
from .async_compressor import compress_async, compress_file_async, compress_folder_async
from .formatting import format_file_size, is_accepted, output_name, reduction_percent

__all__ = [
    "CompressionConfig",
    "DEFAULT_BUDGET",
    "quality_schedule",
    "EncodedResult",
    "SourceImage",
    "decode_image",
    "encode_at",
    "load_image",
    "CompressionCancelled",
    "CompressorError",
    "DecodeFailure",
    "EncodeFailure",
    "OutputFailure",
    "FileReport",
    "compress",
    "compress_file",
    "compress_async",
    "compress_file_async",
    "compress_folder_async",
    "format_file_size",
    "is_accepted",
    "output_name",
    "reduction_percent",
]
