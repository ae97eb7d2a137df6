"""
Horizontal banding reduction.

Scan reconstructions show rows slightly brighter or darker than their
neighbours. Every row is scaled towards the median of the surrounding rows,
blended with the median of the whole disk when a disk is known, with a
bounded correction factor.
"""
from __future__ import annotations

import logging
import math
from typing import Optional, Tuple

import numpy as np

from solarmath.constants.constants import (
    BANDING_DISK_AVERAGE_WEIGHT,
    BANDING_MAX_CORRECTION,
    BANDING_MIN_SAMPLES,
)
from solarmath.core.exceptions import InvalidArgumentsError
from solarmath.core.image.model import MonoImage, require_mono
from solarmath.processing.func_registry import image_function
from solarmath.processing.image_ops import as_int, clip_pixels, pixel_grid, resolve_ellipse

logger = logging.getLogger(__name__)


def _row_medians(data: np.ndarray, mask: np.ndarray, first: int, last: int) -> np.ndarray:
    medians = np.full(data.shape[0], np.nan)
    for y in range(first, last + 1):
        values = data[y, mask[y]]
        if values.size:
            medians[y] = np.median(values)
    return medians


def _window(y: int, half: int, first: int, last: int) -> Tuple[int, int]:
    """Rows [start, end] around y, shifted to stay within [first, last]."""
    start, end = y - half, y + half
    if start < first:
        end += first - start
        start = first
    if end > last:
        start -= end - last
        end = last
    return max(start, first), end


def _correction_factors(medians: np.ndarray, global_median: Optional[float], band_size: int,
                        first: int, last: int) -> np.ndarray:
    factors = np.ones_like(medians)
    half = band_size // 2
    for y in range(first, last + 1):
        row = medians[y]
        if np.isnan(row) or row <= 0:
            continue
        start, end = _window(y, half, first, last)
        neighbours = np.concatenate([medians[start:y], medians[y + 1:end + 1]])
        neighbours = neighbours[~np.isnan(neighbours)]
        if neighbours.size < BANDING_MIN_SAMPLES:
            continue
        band = np.median(neighbours)
        if global_median is not None:
            band = (1.0 - BANDING_DISK_AVERAGE_WEIGHT) * band + BANDING_DISK_AVERAGE_WEIGHT * global_median
        factors[y] = np.clip(band / row, 1.0 - BANDING_MAX_CORRECTION, 1.0 + BANDING_MAX_CORRECTION)
    return factors


@image_function()
def fix_banding(img, band_size=None, passes=None, ellipse=None, *, context):
    """
    Reduce horizontal banding.

    Args:
        img: Mono image or list of images.
        band_size: Rows considered around each row; defaults to config.banding.band_size.
        passes: Number of correction passes; defaults to config.banding.passes.
        ellipse: Disk ellipse restricting the correction. Optional; resolved
            from the image metadata or the context when omitted.
        context: Processing context.
    """
    defaults = context.config.banding
    band_size = as_int(defaults.band_size if band_size is None else band_size, "band_size", "fix_banding")
    passes = as_int(defaults.passes if passes is None else passes, "passes", "fix_banding")
    if band_size < 1:
        raise InvalidArgumentsError(f"fix_banding: band_size must be >= 1, got {band_size}")
    if passes < 0:
        raise InvalidArgumentsError(f"fix_banding: passes must be >= 0, got {passes}")

    mono = require_mono(img, "fix_banding")
    disk = resolve_ellipse("fix_banding", ellipse, mono, context, required=False)
    data = mono.data.astype(np.float64)
    height, width = data.shape

    if disk is None:
        mask = np.ones(data.shape, dtype=bool)
        first, last = 0, height - 1
    else:
        xs, ys = pixel_grid(height, width)
        mask = disk.contains(xs, ys)
        _, _, min_y, max_y = disk.bounding_box()
        first = min(max(0, math.floor(min_y)), height - 1)
        last = max(min(height - 1, math.ceil(max_y)), 0)

    if not mask.any():
        logger.debug("fix_banding: no pixel inside the disk, image left unchanged")
        return mono.copy()

    for _ in range(passes):
        medians = _row_medians(data, mask, first, last)
        global_median = float(np.median(data[mask])) if disk is not None else None
        factors = _correction_factors(medians, global_median, band_size, first, last)
        data = np.where(mask, data * factors[:, None], data)
        data = np.clip(data, 0.0, None)

    return MonoImage(clip_pixels(data), mono.metadata)
