"""
Main entry point for the budget image compressor.

Asks for an image file or a folder of images and re-encodes each one as a
JPEG that fits the size budget (2 MB unless another limit is entered).
Single files are written to 'compressed/compressed_<name>.jpg'; folders are
mirrored into 'compressed/'.

Example:
    $ python main.py
"""

import math
import os
import asyncio
from budget_compressor import (
    CompressionConfig,
    CompressorError,
    compress_file_async,
    compress_folder_async,
    format_file_size,
    is_accepted,
    output_name,
    reduction_percent,
)

OUTPUT_FOLDER = "compressed"


def ask_budget() -> int:
    """Ask for the size limit in MB; an empty answer keeps the 2 MB default."""
    answer = input("📏 Enter the size limit in MB (default: 2): ").strip()
    if not answer:
        return CompressionConfig().budget
    megabytes = float(answer)
    if not math.isfinite(megabytes) or megabytes <= 0:
        raise ValueError("the size limit must be a positive number")
    return int(megabytes * 1024 * 1024)


async def compress_single(input_path: str, config: CompressionConfig) -> None:
    if not is_accepted(input_path):
        print("❌ Please choose a JPEG, JPG, or PNG image.")
        return

    output_path = os.path.join(OUTPUT_FOLDER, output_name(input_path))
    try:
        report = await compress_file_async(input_path, output_path, config)
    except CompressorError as e:
        print(f"❌ Failed to compress image: {e}")
        return

    print(f"Original:   {format_file_size(report.original_size)}")
    print(f"Compressed: {format_file_size(report.compressed_size)} (quality {report.quality:.1f})")
    print(f"✓ Reduced by {reduction_percent(report.original_size, report.compressed_size)}%")
    if not report.within_budget:
        print(f"⚠️  Still above {format_file_size(config.budget)} at the lowest quality")
    print(f"💾 Saved to {output_path}")


async def main():
    """Interactive entry point for budget compression."""
    input_path = input("📁 Enter an image or a folder with images (default: ./images): ").strip() or "images"

    if not os.path.exists(input_path):
        print(f"❌ The path '{input_path}' does not exist.")
        return

    try:
        config = CompressionConfig(budget=ask_budget())
    except ValueError as e:
        print(f"❌ Invalid size limit: {e}")
        return

    if os.path.isdir(input_path):
        print(f"🚀 Starting compression from: {input_path}")
        await compress_folder_async(input_path, OUTPUT_FOLDER, config)
    else:
        await compress_single(input_path, config)


if __name__ == "__main__":
    asyncio.run(main())
