"""
Image rescaling.

Pixels are resampled with skimage.transform.resize (bilinear, range
preserving, anti-aliased when shrinking). The ELLIPSE metadata follows the
pixels so that downstream disk operations keep working on the result.
"""
from __future__ import annotations

import logging
from typing import List

import numpy as np
from skimage.transform import resize

from solarmath.constants.constants import MetadataCategory
from solarmath.core.exceptions import InvalidArgumentsError
from solarmath.core.image.model import unwrap_to_memory
from solarmath.processing.func_registry import image_function
from solarmath.processing.image_ops import as_float, as_int, map_channels, resolve_ellipse

logger = logging.getLogger(__name__)


def _resample(data: np.ndarray, height: int, width: int) -> np.ndarray:
    shrinking = height < data.shape[0] or width < data.shape[1]
    resized = resize(data, (height, width), order=1, mode="reflect",
                     preserve_range=True, anti_aliasing=shrinking)
    return resized.astype(np.float32)


def _rescale(img, scale_x: float, scale_y: float, operation: str):
    image = unwrap_to_memory(img)
    width = max(1, int(round(image.width * scale_x)))
    height = max(1, int(round(image.height * scale_y)))
    metadata = image.metadata
    ellipse = metadata.ellipse
    if ellipse is not None:
        moved = ellipse.rescale(1.0 / scale_x, 1.0 / scale_y).centered_at(ellipse.cx * scale_x, ellipse.cy * scale_y)
        metadata = metadata.with_value(MetadataCategory.ELLIPSE, moved)
    logger.debug(f"{operation}: {image.width}x{image.height} -> {width}x{height}")
    return map_channels(image, lambda data: _resample(data, height, width), operation, metadata)


@image_function()
def rescale_rel(img, sx, sy, *, context):
    """Rescale by relative factors along x and y."""
    scale_x = as_float(sx, "sx", "rescale_rel")
    scale_y = as_float(sy, "sy", "rescale_rel")
    if scale_x <= 0 or scale_y <= 0:
        raise InvalidArgumentsError(f"rescale_rel: scale factors must be > 0, got ({sx}, {sy})")
    return _rescale(img, scale_x, scale_y, "rescale_rel")


@image_function()
def rescale_abs(img, width, height, *, context):
    """Rescale to an absolute size in pixels."""
    width = as_int(width, "width", "rescale_abs")
    height = as_int(height, "height", "rescale_abs")
    if width < 1 or height < 1:
        raise InvalidArgumentsError(f"rescale_abs: size must be at least 1x1, got {width}x{height}")
    image = unwrap_to_memory(img)
    return _rescale(image, width / image.width, height / image.height, "rescale_abs")


@image_function(aggregate=True)
def radius_rescale(images, *, context) -> List:
    """
    Bring several images to the same disk radius.

    Every image is scaled uniformly so that its disk radius matches the
    largest one, then all images are center-cropped to the smallest
    resulting width and height.

    Unlike rescale_rel and rescale_abs, which rescale the ellipse semi-axes
    by the inverse of the applied factors, the ellipse here is scaled by the
    factor itself: its mean radius must equal the common target radius of
    the resampled disks.

    Raises:
        MissingPrerequisiteError: If an image has no ellipse.
    """
    images = [unwrap_to_memory(i) for i in (images if isinstance(images, (list, tuple)) else [images])]
    if not images:
        return []
    ellipses = [resolve_ellipse("radius_rescale", None, image, context) for image in images]
    target = max(e.mean_radius for e in ellipses)

    scaled = []
    for image, ellipse in zip(images, ellipses):
        factor = target / ellipse.mean_radius
        width = max(1, int(round(image.width * factor)))
        height = max(1, int(round(image.height * factor)))
        moved = ellipse.rescale(factor, factor).centered_at(ellipse.cx * factor, ellipse.cy * factor)
        metadata = image.metadata.with_value(MetadataCategory.ELLIPSE, moved)
        scaled.append(map_channels(image, lambda data, h=height, w=width: _resample(data, h, w),
                                   "radius_rescale", metadata))

    crop_width = min(i.width for i in scaled)
    crop_height = min(i.height for i in scaled)
    result = []
    for image in scaled:
        left = (image.width - crop_width) // 2
        top = (image.height - crop_height) // 2
        ellipse = image.metadata.ellipse.translate(-left, -top)
        metadata = image.metadata.with_value(MetadataCategory.ELLIPSE, ellipse)
        result.append(map_channels(
            image,
            lambda data, x=left, y=top: np.array(data[y:y + crop_height, x:x + crop_width], copy=True),
            "radius_rescale",
            metadata,
        ))
    logger.debug(f"radius_rescale: {len(result)} images at radius {target:.1f}, {crop_width}x{crop_height}")
    return result
