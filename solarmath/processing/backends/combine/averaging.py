"""Weighted averaging of mono images."""
from __future__ import annotations

import logging

import numpy as np

from solarmath.core.exceptions import DimensionMismatchError, InvalidArgumentsError
from solarmath.core.image.model import MonoImage, require_mono
from solarmath.core.metadata_merger import merge_metadata
from solarmath.processing.func_registry import image_function
from solarmath.processing.image_ops import as_float

logger = logging.getLogger(__name__)


@image_function(aggregate=True)
def weighted_avg(images, weights=None, *, context):
    """
    Weighted pixel-wise average of mono images.

    Args:
        images: List of mono images of identical size.
        weights: One weight per image; all 1 when omitted.
        context: Processing context.

    Returns:
        sum(w * img) / sum(w) with merged metadata. A zero total weight
        yields NaN or infinite pixels.

    Raises:
        UnsupportedImageKindError: If an image is not mono.
        DimensionMismatchError: If the images differ in size.
        InvalidArgumentsError: If the weights do not match the images.
    """
    if not isinstance(images, (list, tuple)):
        images = [images]
    if not images:
        raise InvalidArgumentsError("weighted_avg requires at least one image")
    monos = [require_mono(image, "weighted_avg") for image in images]
    shapes = {m.data.shape for m in monos}
    if len(shapes) > 1:
        raise DimensionMismatchError(f"weighted_avg requires images of the same size, got {sorted(shapes)}")

    if weights is None:
        weights = [1.0] * len(monos)
    elif not isinstance(weights, (list, tuple)):
        weights = [weights]
    if len(weights) != len(monos):
        raise InvalidArgumentsError(
            f"weighted_avg requires one weight per image, got {len(weights)} weights for {len(monos)} images"
        )
    factors = [as_float(w, "weights", "weighted_avg") for w in weights]

    total = np.zeros(monos[0].data.shape, dtype=np.float64)
    for factor, mono in zip(factors, monos):
        total += factor * mono.data
    with np.errstate(divide="ignore", invalid="ignore"):
        average = total / sum(factors)
    return MonoImage(average.astype(np.float32), merge_metadata(monos))
