"""Pixel statistics and observation date formatting."""
from __future__ import annotations

import logging
from typing import Callable, List, Union

import numpy as np

from solarmath.constants.constants import DEFAULT_DATETIME_FORMAT
from solarmath.core.exceptions import InvalidArgumentsError
from solarmath.core.image.model import ColorImage, ColorizedImage, MonoImage, unwrap_to_memory
from solarmath.processing.func_registry import image_function

logger = logging.getLogger(__name__)

Reducer = Callable[[np.ndarray], float]


def _pixels(image) -> np.ndarray:
    image = unwrap_to_memory(image)
    match image:
        case MonoImage():
            return image.data
        case ColorizedImage():
            return image.mono.data
        case ColorImage():
            return np.stack(image.channels)
    raise InvalidArgumentsError(f"Expected an image, got {type(image).__name__}")


def _reduce(images, reducer: Reducer, operation: str) -> Union[float, List[float]]:
    """Scalar for a single image, list of scalars for several."""
    values = images if isinstance(images, (list, tuple)) else [images]
    if not values:
        raise InvalidArgumentsError(f"{operation} requires at least one image")
    results = [float(reducer(_pixels(image).astype(np.float64))) for image in values]
    return results[0] if len(results) == 1 else results


@image_function(aggregate=True)
def img_avg(images, *, context):
    """Mean pixel value."""
    return _reduce(images, np.mean, "img_avg")


@image_function(aggregate=True)
def img_median(images, *, context):
    """Median pixel value."""
    return _reduce(images, np.median, "img_median")


@image_function(aggregate=True)
def img_min(images, *, context):
    """Minimum pixel value."""
    return _reduce(images, np.min, "img_min")


@image_function(aggregate=True)
def img_max(images, *, context):
    """Maximum pixel value."""
    return _reduce(images, np.max, "img_max")


@image_function()
def video_datetime(img, format=DEFAULT_DATETIME_FORMAT, *, context):
    """Observation date of the image as text, empty when unknown."""
    date = img.metadata.observation_date()
    if date is None:
        return ""
    return date.strftime(str(format))
