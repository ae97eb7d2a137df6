"""
Filling and masking of the solar disk.

Both operations use the same sub-pixel coverage of the disk ellipse, so the
pixels touched by disk_fill are exactly the pixels outside the inverted
disk_mask.
"""
from __future__ import annotations

import logging

import numpy as np

from solarmath.constants.constants import DISK_FILL_SAMPLES, FULL_COVERAGE, NO_COVERAGE
from solarmath.core.geometry.ellipse import Ellipse
from solarmath.core.image.model import MonoImage, unwrap_to_memory
from solarmath.processing.func_registry import image_function
from solarmath.processing.image_ops import as_float, map_channels, pixel_grid, resolve_ellipse

logger = logging.getLogger(__name__)


def disk_coverage(ellipse: Ellipse, height: int, width: int, samples: int = DISK_FILL_SAMPLES) -> np.ndarray:
    """Fraction of each pixel inside the ellipse, from samples x samples sub-pixel points."""
    xs, ys = pixel_grid(height, width)
    offsets = (np.arange(samples) + 0.5) / samples - 0.5
    inside = np.zeros((height, width), dtype=np.float64)
    for dy in offsets:
        for dx in offsets:
            inside += ellipse.contains(xs + dx, ys + dy)
    return inside / (samples * samples)


@image_function()
def disk_fill(img, fill=None, ellipse=None, *, context):
    """
    Paint the disk with a constant value, anti-aliased along the limb.

    Args:
        img: Image or list of images.
        fill: Fill value; defaults to the context blackpoint.
        ellipse: Disk ellipse; resolved from the image or the context when omitted.
        context: Processing context.
    """
    value = as_float(context.image_stats.blackpoint if fill is None else fill, "fill", "disk_fill")
    image = unwrap_to_memory(img)
    geometry = resolve_ellipse("disk_fill", ellipse, image, context)
    coverage = disk_coverage(geometry, image.height, image.width)

    def apply(data: np.ndarray) -> np.ndarray:
        source = data.astype(np.float64)
        blended = coverage * value + (1.0 - coverage) * source
        filled = np.where(coverage > FULL_COVERAGE, value, np.where(coverage > NO_COVERAGE, blended, source))
        return filled.astype(np.float32)

    return map_channels(image, apply, "disk_fill")


@image_function()
def disk_mask(img, invert=0, ellipse=None, *, context):
    """Mono mask of the disk: 1 inside, 0 outside, swapped when invert is not 0."""
    image = unwrap_to_memory(img)
    geometry = resolve_ellipse("disk_mask", ellipse, image, context)
    inside = disk_coverage(geometry, image.height, image.width) > NO_COVERAGE
    if as_float(invert, "invert", "disk_mask") != 0:
        inside = ~inside
    return MonoImage(inside.astype(np.float32), image.metadata)
