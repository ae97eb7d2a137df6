"""Range of usable pixel shifts around a spectral line."""

import math
from dataclasses import dataclass
from typing import Callable, Iterator

import numpy as np

from solarmath.constants import constants as C
from solarmath.core.exceptions import InvalidArgumentsError


@dataclass(frozen=True)
class PixelShiftRange:
    """
    Minimum and maximum shift, in pixels relative to the line center row,
    and the sampling step between two consecutive shifts.
    """
    min_shift: float = C.DEFAULT_MIN_PIXEL_SHIFT
    max_shift: float = C.DEFAULT_MAX_PIXEL_SHIFT
    step: float = C.DEFAULT_PIXEL_SHIFT_STEP

    def __post_init__(self):
        if self.step <= 0:
            raise InvalidArgumentsError(f"Pixel shift step must be > 0, got {self.step}")
        if self.min_shift > self.max_shift:
            raise InvalidArgumentsError(
                f"Pixel shift range is empty: min {self.min_shift} > max {self.max_shift}"
            )

    def contains(self, shift: float) -> bool:
        return self.min_shift <= shift <= self.max_shift

    def __contains__(self, shift: float) -> bool:
        return self.contains(shift)

    def shifts(self) -> Iterator[float]:
        """Every sampled shift from min to max (inclusive)."""
        count = int(math.floor((self.max_shift - self.min_shift) / self.step + 1e-9))
        for i in range(count + 1):
            yield self.min_shift + i * self.step

    @classmethod
    def compute(cls, start: int, end: int, height: int,
                polynomial: Callable[[np.ndarray], np.ndarray],
                step: float = C.DEFAULT_PIXEL_SHIFT_STEP) -> "PixelShiftRange":
        """
        Shifts for which the line stays inside the frame on every column.

        Args:
            start: First column where the line is detected.
            end: Column after the last one where the line is detected.
            height: Frame height in rows.
            polynomial: Row of the line center as a function of the column,
                accepting a numpy array (e.g. numpy.polynomial.Polynomial).
            step: Sampling step of the resulting range.
        """
        if end <= start:
            raise InvalidArgumentsError(f"Empty column range [{start}, {end})")
        if height < 1:
            raise InvalidArgumentsError(f"Frame height must be >= 1, got {height}")
        rows = np.asarray(polynomial(np.arange(start, end, dtype=np.float64)), dtype=np.float64)
        min_shift = math.ceil(-float(rows.min()))
        max_shift = math.floor(height - 1 - float(rows.max()))
        return cls(float(min_shift), float(max_shift), step)
