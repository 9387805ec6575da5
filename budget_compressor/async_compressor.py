"""
Asynchronous Budget Compressor Module.

Runs the size-constrained search without blocking the event loop, and
compresses whole folders in parallel using `ProcessPoolExecutor` for the
CPU-bound encoding.

Functions:
    - compress_async: Awaitable version of `compress`, one executor call per encode attempt.
    - compress_file_async: Compress a single file in an executor.
    - compress_folder_async: Compress all accepted images in a folder.
    - process_image: Compress one file of a folder run and report it to the log queue.
    - logger_worker: Reads reports from a queue and logs them immediately.
"""

import asyncio
import os
import time
from concurrent.futures import Executor, ProcessPoolExecutor
from typing import List, Optional

from .compression import Encoder, FileReport, accept, compress_file, resolve_config
from .config import CompressionConfig, quality_schedule
from .encoder import EncodedResult, SourceImage, encode_at
from .errors import CompressionCancelled, CompressorError
from .formatting import format_file_size, is_accepted, output_name, reduction_percent
from .logger_setup import setup_logger

log = setup_logger()


async def compress_async(
        source: SourceImage,
        budget: Optional[int] = None,
        config: Optional[CompressionConfig] = None,
        encoder: Encoder = encode_at,
        executor: Optional[Executor] = None,
        cancel_event: Optional[asyncio.Event] = None
) -> EncodedResult:
    """
    Awaitable counterpart of `compress`.

    Each encode attempt runs in ``executor`` (the loop's default executor when
    ``None``). The next attempt is only started once the previous result has
    been checked against the budget.

    Args:
        source (SourceImage): Decoded image to encode.
        budget (int, optional): Byte ceiling; overrides ``config.budget``.
        config (CompressionConfig, optional): Search parameters.
        encoder (Callable): Encode-at-quality primitive. Must be picklable for process executors.
        executor (Executor, optional): Where attempts run.
        cancel_event (asyncio.Event, optional): Checked before every attempt.

    Raises:
        CompressionCancelled: If ``cancel_event`` is set before an attempt starts.
        EncodeFailure: Propagated from the first failing attempt.
    """
    config = resolve_config(config, budget)
    schedule = quality_schedule(config)
    last = len(schedule) - 1
    loop = asyncio.get_running_loop()

    for index, quality in enumerate(schedule):
        if cancel_event is not None and cancel_event.is_set():
            raise CompressionCancelled(f"Cancelled before attempt at quality {quality}")

        result = await loop.run_in_executor(executor, encoder, source, quality)
        log.debug(f"Attempt {index + 1}/{len(schedule)}: quality {quality} -> {result.size} bytes")
        if accept(result, config.budget, index == last):
            break
        del result

    return result


async def compress_file_async(
        input_path: str,
        output_path: str,
        config: Optional[CompressionConfig] = None,
        executor: Optional[Executor] = None
) -> FileReport:
    """Run `compress_file` in ``executor`` and return its report."""
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(executor, compress_file, input_path, output_path, config)


def log_report(report: FileReport, total_time: float) -> None:
    """Log one file's outcome with aligned columns."""
    name = os.path.basename(report.input_path)
    ratio = reduction_percent(report.original_size, report.compressed_size) or 0
    log.info(
        f"{name:<45} | {format_file_size(report.original_size):>10} → "
        f"{format_file_size(report.compressed_size):>10} ({-ratio:+4d}%) "
        f"| quality: {report.quality:.1f} ({report.attempts} attempts) | processing: {report.elapsed:5.2f}s | total: {total_time:5.2f}s"
    )
    if not report.within_budget:
        log.warning(f"{name} is still above {format_file_size(report.budget)} at the lowest quality")


async def process_image(
        executor: Executor,
        input_path: str,
        output_path: str,
        config: CompressionConfig,
        start_total: float,
        log_queue: asyncio.Queue
) -> Optional[FileReport]:
    """
    Compress a single image in the executor and send its report to the queue.

    Failures are logged and reported as ``None`` so that one bad file does not
    stop the rest of the folder.
    """
    try:
        report = await compress_file_async(input_path, output_path, config, executor)
    except CompressorError as e:
        log.error(f"Failed to compress {input_path}: {e}")
        return None

    await log_queue.put((report, time.time() - start_total))
    return report


async def logger_worker(log_queue: asyncio.Queue) -> None:
    """
    Asynchronous logger worker that logs reports in real time from the queue.

    Exits when `None` is put into the queue.
    """
    while True:
        msg = await log_queue.get()
        if msg is None:
            log_queue.task_done()
            break
        report, total_time = msg
        log_report(report, total_time)
        log_queue.task_done()


def collect_images(input_folder: str, output_folder: str) -> List[tuple]:
    """Pair every accepted image under ``input_folder`` with its output path, mirroring subfolders."""
    image_tasks = []
    for root, _, files in os.walk(input_folder):
        for file in sorted(files):
            if is_accepted(file):
                input_path = os.path.join(root, file)
                rel_path = os.path.relpath(root, input_folder)
                output_dir = os.path.normpath(os.path.join(output_folder, rel_path))
                image_tasks.append((input_path, os.path.join(output_dir, output_name(file))))
    return image_tasks


async def compress_folder_async(
        input_folder: str = "images",
        output_folder: str = "compressed",
        config: Optional[CompressionConfig] = None,
        max_workers: Optional[int] = None
) -> List[FileReport]:
    """
    Compress all JPEG and PNG images in a folder using multiple CPU processes.

    Args:
        input_folder (str, optional): Source folder containing images. Defaults to "images".
        output_folder (str, optional): Destination folder for the JPEG outputs. Defaults to "compressed".
        config (CompressionConfig, optional): Search parameters shared by every file.
        max_workers (int, optional): Process count. Defaults to the number of CPUs.

    Returns:
        List[FileReport]: Reports for the files that were compressed successfully.
    """
    config = config or CompressionConfig()
    start_total = time.time()
    log_queue = asyncio.Queue()

    log_task = asyncio.create_task(logger_worker(log_queue))

    image_tasks = collect_images(input_folder, output_folder)
    if not image_tasks:
        log.warning(f"No JPEG or PNG images found in {input_folder}")

    max_workers = max_workers or os.cpu_count() or 8
    log.info(f"🧠 Using {max_workers} parallel processes, budget {format_file_size(config.budget)}")

    try:
        with ProcessPoolExecutor(max_workers=max_workers) as executor:
            tasks = [
                process_image(executor, inp, out, config, start_total, log_queue)
                for inp, out in image_tasks
            ]
            reports = await asyncio.gather(*tasks)
    finally:
        await log_queue.put(None)
        await log_task

    return [report for report in reports if report is not None]
