"""
Compression configuration and the quality schedule derived from it.
"""

import math
from dataclasses import dataclass
from typing import List

DEFAULT_BUDGET = 2 * 1024 * 1024  # 2 MiB

# Absorbs representation error in (initial - floor) / step, e.g. 0.8 / 0.1.
_STEP_EPSILON = 1e-9

# Qualities are rounded to this many decimals to strip float noise; any
# quality within _FLOOR_TOLERANCE of the floor snaps to the floor.
_QUALITY_DIGITS = 10
_FLOOR_TOLERANCE = 1e-10

MIN_STEP = 1e-6


@dataclass(frozen=True)
class CompressionConfig:
    """
    Parameters of one size-constrained compression run.

    Attributes:
        budget (int): Maximum accepted output size in bytes.
        initial_quality (float): First quality tried, in (0, 1].
        step (float): Amount subtracted from the quality after each rejected attempt.
        floor_quality (float): Lowest quality tried; its result is accepted unconditionally.
    """

    budget: int = DEFAULT_BUDGET
    initial_quality: float = 0.9
    step: float = 0.1
    floor_quality: float = 0.1

    def __post_init__(self):
        if self.budget <= 0:
            raise ValueError(f"budget must be positive, got {self.budget}")
        if self.step < MIN_STEP:
            raise ValueError(f"step must be at least {MIN_STEP}, got {self.step}")
        if not 0 < self.floor_quality <= self.initial_quality <= 1:
            raise ValueError(
                "expected 0 < floor_quality <= initial_quality <= 1, "
                f"got floor={self.floor_quality}, initial={self.initial_quality}"
            )

    @property
    def max_attempts(self) -> int:
        """Upper bound on encode attempts for this configuration."""
        steps = math.floor((self.initial_quality - self.floor_quality) / self.step + _STEP_EPSILON)
        while steps > 0 and self.initial_quality - steps * self.step < self.floor_quality - _FLOOR_TOLERANCE:
            steps -= 1
        return steps + 1

    def quality_at(self, index: int) -> float:
        """Quality of the attempt at ``index`` (0 is the first attempt)."""
        if index == 0:
            return self.initial_quality
        quality = round(self.initial_quality - index * self.step, _QUALITY_DIGITS)
        return max(quality, self.floor_quality)


def quality_schedule(config: CompressionConfig) -> List[float]:
    """
    Return every quality the compressor may try, highest first.

    Qualities are computed from an integer step counter rather than by
    repeated subtraction, so the floor is reached in exactly
    ``(initial - floor) / step`` steps.

    Example:
        >>> quality_schedule(CompressionConfig())
        [0.9, 0.8, 0.7, 0.6, 0.5, 0.4, 0.3, 0.2, 0.1]
    """
    return [config.quality_at(i) for i in range(config.max_attempts)]
