import os
import time
from dataclasses import dataclass, replace
from typing import Callable, Optional

from .config import CompressionConfig, quality_schedule
from .encoder import EncodedResult, SourceImage, encode_at, load_image
from .errors import OutputFailure
from .logger_setup import setup_logger

log = setup_logger()

Encoder = Callable[[SourceImage, float], EncodedResult]


@dataclass(frozen=True)
class FileReport:
    """Outcome of compressing one file on disk."""

    input_path: str
    output_path: str
    original_size: int
    compressed_size: int
    quality: float
    attempts: int
    budget: int
    elapsed: float

    @property
    def within_budget(self) -> bool:
        return self.compressed_size <= self.budget


def resolve_config(config: Optional[CompressionConfig], budget: Optional[int]) -> CompressionConfig:
    """Return ``config`` (or the defaults) with ``budget`` applied when given."""
    config = config or CompressionConfig()
    if budget is not None and budget != config.budget:
        config = replace(config, budget=budget)
    return config


def accept(result: EncodedResult, budget: int, is_last: bool) -> bool:
    """
    Stopping rule shared by the sync and async compressors.

    A result is accepted when it fits the budget, or unconditionally when it
    is the floor attempt.
    """
    if result.fits(budget):
        return True
    if is_last:
        log.warning(
            f"Budget of {budget} bytes unreachable; returning floor attempt "
            f"at quality {result.quality} ({result.size} bytes)"
        )
        return True
    return False


def compress(
        source: SourceImage,
        budget: Optional[int] = None,
        config: Optional[CompressionConfig] = None,
        encoder: Encoder = encode_at
) -> EncodedResult:
    """
    Re-encode ``source`` at the highest scheduled quality whose output fits the budget.

    Qualities are tried from ``config.initial_quality`` downwards. The first
    result with ``size <= budget`` is returned; if none fits, the attempt at
    the floor quality is returned anyway.

    Args:
        source (SourceImage): Decoded image to encode.
        budget (int, optional): Byte ceiling; overrides ``config.budget``.
        config (CompressionConfig, optional): Search parameters. Defaults to ``CompressionConfig()``.
        encoder (Callable): Encode-at-quality primitive. Defaults to ``encode_at``.

    Returns:
        EncodedResult: The accepted attempt. Its size may exceed the budget.

    Raises:
        EncodeFailure: Propagated from the first failing attempt; no further attempts are made.
    """
    config = resolve_config(config, budget)
    schedule = quality_schedule(config)
    last = len(schedule) - 1

    for index, quality in enumerate(schedule):
        result = encoder(source, quality)
        log.debug(f"Attempt {index + 1}/{len(schedule)}: quality {quality} -> {result.size} bytes")
        if accept(result, config.budget, index == last):
            break
        # Release the rejected buffer before the next attempt.
        del result

    return result


def compress_file(
        input_path: str,
        output_path: str,
        config: Optional[CompressionConfig] = None
) -> FileReport:
    """
    Compress the image at ``input_path`` and write the JPEG to ``output_path``.

    Returns:
        FileReport: Sizes, chosen quality, attempt count and elapsed time.

    Raises:
        DecodeFailure: If the input cannot be read or decoded.
        EncodeFailure: If any encode attempt fails.
        OutputFailure: If the JPEG cannot be written to ``output_path``.
    """
    config = config or CompressionConfig()
    start_time = time.time()

    attempts = []

    def counting_encoder(src: SourceImage, quality: float) -> EncodedResult:
        attempts.append(quality)
        return encode_at(src, quality)

    source = load_image(input_path)
    orig_size = os.path.getsize(input_path)
    result = compress(source, config=config, encoder=counting_encoder)
    try:
        result.save(output_path)
    except OSError as e:
        raise OutputFailure(f"Failed to write {output_path}: {e}") from e

    return FileReport(
        input_path=input_path,
        output_path=output_path,
        original_size=orig_size,
        compressed_size=result.size,
        quality=result.quality,
        attempts=len(attempts),
        budget=config.budget,
        elapsed=time.time() - start_time,
    )
