"""Side by side and stacked composition of two images."""
from __future__ import annotations

import logging
from typing import Callable, Tuple

import numpy as np

from solarmath.core.exceptions import DimensionMismatchError, TypeMismatchError
from solarmath.core.image.model import (
    ColorImage,
    ColorizedImage,
    InMemoryImage,
    MonoImage,
    as_color_channels,
    unwrap_to_memory,
)
from solarmath.core.metadata_merger import merge_metadata
from solarmath.processing.func_registry import image_function

logger = logging.getLogger(__name__)

Joiner = Callable[[Tuple[np.ndarray, np.ndarray]], np.ndarray]


def _is_color(image: InMemoryImage) -> bool:
    return isinstance(image, (ColorImage, ColorizedImage))


def _compose(first, second, join: Joiner, operation: str) -> InMemoryImage:
    first = unwrap_to_memory(first)
    second = unwrap_to_memory(second)
    metadata = merge_metadata([first, second])
    if isinstance(first, MonoImage) and isinstance(second, MonoImage):
        return MonoImage(join((first.data, second.data)), metadata)
    if _is_color(first) and _is_color(second):
        channels = [join(pair) for pair in zip(as_color_channels(first), as_color_channels(second))]
        return ColorImage(*channels, metadata)
    raise TypeMismatchError(
        f"{operation} requires two mono or two color images, got {first.kind.value} and {second.kind.value}"
    )


@image_function(broadcast=("left", "right"))
def side_by_side(left, right, *, context):
    """Place two images of the same height next to each other."""
    if left.height != right.height:
        raise DimensionMismatchError(
            f"side_by_side requires images of the same height, got {left.height} and {right.height}"
        )
    return _compose(left, right, np.hstack, "side_by_side")


@image_function(broadcast=("top", "bottom"))
def top_bottom(top, bottom, *, context):
    """Stack two images of the same width vertically."""
    if top.width != bottom.width:
        raise DimensionMismatchError(
            f"top_bottom requires images of the same width, got {top.width} and {bottom.width}"
        )
    return _compose(top, bottom, np.vstack, "top_bottom")
