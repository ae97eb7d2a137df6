"""Radial blending of a disk image with a prominence image."""
from __future__ import annotations

import logging

import numpy as np

from solarmath.core.exceptions import (
    DimensionMismatchError,
    InvalidArgumentsError,
    TypeMismatchError,
)
from solarmath.core.image.model import ColorImage, ColorizedImage, MonoImage, unwrap_to_memory
from solarmath.core.metadata_merger import merge_metadata
from solarmath.processing.func_registry import image_function
from solarmath.processing.image_ops import as_float, pixel_grid, resolve_ellipse

logger = logging.getLogger(__name__)


def blend_weights(ellipse, height: int, width: int, start: float, end: float) -> np.ndarray:
    """
    Weight of the disk image per pixel.

    1 up to start (in mean radii from the center), 0 from end, and a cosine
    ramp in between.
    """
    xs, ys = pixel_grid(height, width)
    distance = ellipse.distance_to_center(xs, ys) / ellipse.mean_radius
    ramp = 0.5 * (1.0 + np.cos(np.pi * (distance - start) / (end - start)))
    return np.where(distance <= start, 1.0, np.where(distance >= end, 0.0, ramp))


def _mix(disk: np.ndarray, prominences: np.ndarray, weights: np.ndarray) -> np.ndarray:
    disk = disk.astype(np.float64)
    prominences = prominences.astype(np.float64)
    return (prominences + weights * (disk - prominences)).astype(np.float32)


@image_function(broadcast=("disk", "prominences"))
def blend(disk, prominences, start=None, end=None, ellipse=None, *, context):
    """
    Blend a disk exposure and a prominence exposure around the limb.

    Args:
        disk: Image used inside the disk.
        prominences: Image used outside the disk.
        start: Normalized distance where the transition begins; defaults to config.blend.start.
        end: Normalized distance where the transition ends; defaults to config.blend.end.
        ellipse: Disk ellipse; resolved from the disk image or the context when omitted.
        context: Processing context.

    Raises:
        TypeMismatchError: If the two images are of different kinds.
        DimensionMismatchError: If the two images differ in size.
    """
    defaults = context.config.blend
    start = as_float(defaults.start if start is None else start, "start", "blend")
    end = as_float(defaults.end if end is None else end, "end", "blend")
    if end <= start:
        raise InvalidArgumentsError(f"blend: end must be greater than start, got start={start}, end={end}")

    disk = unwrap_to_memory(disk)
    prominences = unwrap_to_memory(prominences)
    if disk.kind is not prominences.kind:
        raise TypeMismatchError(
            f"blend requires images of the same kind, got {disk.kind.value} and {prominences.kind.value}"
        )
    if (disk.width, disk.height) != (prominences.width, prominences.height):
        raise DimensionMismatchError(
            f"blend requires images of the same size, got {disk.width}x{disk.height} "
            f"and {prominences.width}x{prominences.height}"
        )

    geometry = resolve_ellipse("blend", ellipse, disk, context)
    weights = blend_weights(geometry, disk.height, disk.width, start, end)
    metadata = merge_metadata([disk, prominences])

    match disk:
        case MonoImage():
            return MonoImage(_mix(disk.data, prominences.data, weights), metadata)
        case ColorizedImage():
            mono = MonoImage(_mix(disk.mono.data, prominences.mono.data, weights), metadata)
            return disk.with_mono(mono)
        case ColorImage():
            channels = [_mix(d, p, weights) for d, p in zip(disk.channels, prominences.channels)]
            return ColorImage(*channels, metadata)
