"""Shared fixtures: synthetic images and a scripted encoder."""

import gc
import weakref

import cv2
import numpy as np
import pytest

from budget_compressor import EncodedResult, EncodeFailure, SourceImage

MB = 1024 * 1024


class ScriptedEncoder:
    """
    Encoder stand-in returning results of predetermined sizes.

    ``sizes`` maps a quality (rounded to 2 places) to the byte count to
    return; qualities not listed fall back to ``default_size``.
    """

    def __init__(self, sizes=None, default_size=0, fail_at=None):
        self.sizes = sizes or {}
        self.default_size = default_size
        self.fail_at = fail_at
        self.calls = []

    def __call__(self, source, quality):
        self.calls.append(quality)
        key = round(quality, 2)
        if self.fail_at is not None and key == self.fail_at:
            raise EncodeFailure(f"scripted failure at {quality}", quality)
        return EncodedResult(b"\0" * self.sizes.get(key, self.default_size), quality)


@pytest.fixture
def noise_pixels():
    rng = np.random.default_rng(0)
    return rng.integers(0, 256, size=(64, 96, 3), dtype=np.uint8)


@pytest.fixture
def noise_image(noise_pixels):
    return SourceImage(noise_pixels)


@pytest.fixture
def png_bytes(noise_pixels):
    success, buffer = cv2.imencode(".png", noise_pixels)
    assert success
    return buffer.tobytes()


@pytest.fixture
def dummy_source():
    return SourceImage(np.zeros((2, 2, 3), dtype=np.uint8))


class ReleaseTrackingEncoder(ScriptedEncoder):
    """
    Scripted encoder that keeps only weak references to its results.

    ``leaked`` records, for every call after the first, whether any earlier
    result was still alive when that call started.
    """

    def __init__(self, sizes=None, default_size=0):
        super().__init__(sizes, default_size)
        self.refs = []
        self.leaked = []

    def __call__(self, source, quality):
        if self.refs:
            gc.collect()
            self.leaked.append(any(ref() is not None for ref in self.refs))
        result = super().__call__(source, quality)
        self.refs.append(weakref.ref(result))
        return result
