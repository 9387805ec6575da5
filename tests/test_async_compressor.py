import asyncio
import os
from concurrent.futures import ThreadPoolExecutor

import cv2
import pytest

from budget_compressor import (
    CompressionCancelled,
    CompressionConfig,
    EncodeFailure,
    compress_async,
    compress_file_async,
    compress_folder_async,
)
from budget_compressor.async_compressor import collect_images

from .conftest import MB, ReleaseTrackingEncoder, ScriptedEncoder

BUDGET = 2_097_152


class TestCompressAsync:
    @pytest.mark.asyncio
    async def test_descends_until_under_budget(self, dummy_source):
        encoder = ScriptedEncoder({
            0.9: int(3.0 * MB),
            0.8: int(2.5 * MB),
            0.7: int(2.1 * MB),
            0.6: int(1.9 * MB),
        })

        result = await compress_async(dummy_source, BUDGET, encoder=encoder)

        assert encoder.calls == [0.9, 0.8, 0.7, 0.6]
        assert result.quality == 0.6

    @pytest.mark.asyncio
    async def test_unreachable_budget_is_not_an_error(self, dummy_source):
        encoder = ScriptedEncoder(default_size=BUDGET * 2)

        result = await compress_async(dummy_source, BUDGET, encoder=encoder)

        assert len(encoder.calls) == 9
        assert result.quality == 0.1
        assert result.size > BUDGET

    @pytest.mark.asyncio
    async def test_rejected_results_are_released_before_next_attempt(self, dummy_source):
        encoder = ReleaseTrackingEncoder(default_size=BUDGET + 1)

        result = await compress_async(dummy_source, BUDGET, encoder=encoder)

        assert result.quality == 0.1
        assert encoder.leaked == [False] * 8

    @pytest.mark.asyncio
    async def test_encode_failure_aborts(self, dummy_source):
        encoder = ScriptedEncoder(default_size=BUDGET * 2, fail_at=0.8)

        with pytest.raises(EncodeFailure):
            await compress_async(dummy_source, BUDGET, encoder=encoder)

        assert encoder.calls == [0.9, 0.8]

    @pytest.mark.asyncio
    async def test_runs_in_given_executor(self, noise_image):
        with ThreadPoolExecutor(max_workers=1) as executor:
            result = await compress_async(noise_image, 1, executor=executor)
        assert result.quality == 0.1

    @pytest.mark.asyncio
    async def test_cancelled_before_first_attempt(self, dummy_source):
        encoder = ScriptedEncoder()
        cancel_event = asyncio.Event()
        cancel_event.set()

        with pytest.raises(CompressionCancelled):
            await compress_async(dummy_source, BUDGET, encoder=encoder, cancel_event=cancel_event)

        assert encoder.calls == []

    @pytest.mark.asyncio
    async def test_cancel_takes_effect_before_next_attempt(self, dummy_source):
        loop = asyncio.get_running_loop()
        cancel_event = asyncio.Event()
        scripted = ScriptedEncoder(default_size=BUDGET * 2)

        def encoder(source, quality):
            result = scripted(source, quality)
            loop.call_soon_threadsafe(cancel_event.set)
            return result

        with pytest.raises(CompressionCancelled):
            await compress_async(dummy_source, BUDGET, encoder=encoder, cancel_event=cancel_event)

        assert scripted.calls == [0.9]

    @pytest.mark.asyncio
    async def test_independent_requests_run_concurrently(self, dummy_source):
        small = ScriptedEncoder(default_size=10)
        large = ScriptedEncoder(default_size=BUDGET * 2)

        first, second = await asyncio.gather(
            compress_async(dummy_source, BUDGET, encoder=small),
            compress_async(dummy_source, BUDGET, encoder=large),
        )

        assert first.quality == 0.9
        assert second.quality == 0.1
        assert len(small.calls) == 1
        assert len(large.calls) == 9


def write_image(path, pixels):
    os.makedirs(os.path.dirname(path), exist_ok=True)
    assert cv2.imwrite(str(path), pixels)


class TestFolderCompression:
    @pytest.mark.asyncio
    async def test_compress_file_async(self, tmp_path, noise_pixels):
        input_path = tmp_path / "photo.png"
        write_image(input_path, noise_pixels)

        report = await compress_file_async(str(input_path), str(tmp_path / "photo.jpg"))

        assert report.quality == 0.9
        assert (tmp_path / "photo.jpg").exists()

    def test_collect_images_mirrors_tree(self, tmp_path, noise_pixels):
        write_image(tmp_path / "in" / "a.png", noise_pixels)
        write_image(tmp_path / "in" / "sub" / "b.jpg", noise_pixels)
        (tmp_path / "in" / "notes.txt").write_text("skip me")

        tasks = collect_images(str(tmp_path / "in"), str(tmp_path / "out"))

        assert tasks == [
            (str(tmp_path / "in" / "a.png"), str(tmp_path / "out" / "compressed_a.jpg")),
            (str(tmp_path / "in" / "sub" / "b.jpg"), str(tmp_path / "out" / "sub" / "compressed_b.jpg")),
        ]

    @pytest.mark.asyncio
    async def test_compress_folder_skips_bad_files(self, tmp_path, noise_pixels):
        write_image(tmp_path / "in" / "a.png", noise_pixels)
        write_image(tmp_path / "in" / "sub" / "b.jpg", noise_pixels)
        (tmp_path / "in" / "broken.png").write_bytes(b"not a png")

        reports = await compress_folder_async(
            str(tmp_path / "in"),
            str(tmp_path / "out"),
            CompressionConfig(budget=1),
            max_workers=2,
        )

        assert sorted(os.path.basename(r.output_path) for r in reports) == [
            "compressed_a.jpg",
            "compressed_b.jpg",
        ]
        assert all(r.quality == 0.1 and not r.within_budget for r in reports)
        assert (tmp_path / "out" / "sub" / "compressed_b.jpg").exists()
        assert not (tmp_path / "out" / "compressed_broken.jpg").exists()

    @pytest.mark.asyncio
    async def test_unwritable_output_does_not_stop_folder(self, tmp_path, noise_pixels):
        write_image(tmp_path / "in" / "a.png", noise_pixels)
        write_image(tmp_path / "in" / "b.png", noise_pixels)
        (tmp_path / "out" / "compressed_a.jpg").mkdir(parents=True)

        reports = await compress_folder_async(
            str(tmp_path / "in"), str(tmp_path / "out"), max_workers=1
        )

        assert [os.path.basename(r.output_path) for r in reports] == ["compressed_b.jpg"]
        assert reports[0].attempts == 1
        assert (tmp_path / "out" / "compressed_b.jpg").is_file()

    @pytest.mark.asyncio
    async def test_empty_folder(self, tmp_path):
        (tmp_path / "in").mkdir()
        reports = await compress_folder_async(str(tmp_path / "in"), str(tmp_path / "out"))
        assert reports == []
