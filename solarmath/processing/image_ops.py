"""
Shared helpers for the operation backends.

These helpers encode the conventions every operation follows: how an
optional disk ellipse is resolved, how a mono algorithm is carried over to
color and colorized images, and how results are brought back into the pixel
range.
"""

import logging
from typing import Callable, Optional

import numpy as np

from solarmath.constants.constants import MAX_PIXEL_VALUE
from solarmath.core.exceptions import (
    InvalidArgumentsError,
    MissingPrerequisiteError,
    UnsupportedImageKindError,
)
from solarmath.core.geometry.ellipse import Ellipse
from solarmath.core.image.metadata import Metadata
from solarmath.core.image.model import (
    ColorImage,
    ColorizedImage,
    Image,
    InMemoryImage,
    MonoImage,
    unwrap_to_memory,
)
from solarmath.processing.color_space import hsl_to_rgb, rgb_to_hsl

logger = logging.getLogger(__name__)

PixelFunction = Callable[[np.ndarray], np.ndarray]


def clip_pixels(data: np.ndarray) -> np.ndarray:
    """Clamp to [0, MAX_PIXEL_VALUE] as float32."""
    return np.clip(data, 0.0, MAX_PIXEL_VALUE).astype(np.float32)


def resolve_ellipse(operation: str, explicit: Optional[Ellipse], image: Optional[Image],
                    context, required: bool = True) -> Optional[Ellipse]:
    """
    Find the disk ellipse an operation works with.

    The explicit argument wins, then the ELLIPSE metadata of the image, then
    the ellipse of the context.

    Raises:
        InvalidArgumentsError: If the explicit argument is not an Ellipse.
        MissingPrerequisiteError: If required and no ellipse is available.
    """
    if explicit is not None:
        if not isinstance(explicit, Ellipse):
            raise InvalidArgumentsError(
                f"{operation}: ellipse must be an Ellipse, got {type(explicit).__name__}"
            )
        return explicit
    if image is not None and image.metadata.ellipse is not None:
        return image.metadata.ellipse
    if context is not None and context.ellipse is not None:
        return context.ellipse
    if required:
        raise MissingPrerequisiteError(
            f"{operation} requires a disk ellipse: pass one explicitly, "
            f"attach ELLIPSE metadata to the image or set one on the context"
        )
    return None


def map_lightness(image: Image, fn: PixelFunction, operation: str) -> InMemoryImage:
    """
    Apply a mono pixel function to any image kind.

    Mono images are processed directly. Colorized images are processed
    through their mono source and keep their converter. Color images are
    processed on their HSL lightness, scaled to the pixel range; hue and
    saturation are preserved.
    """
    image = unwrap_to_memory(image)
    match image:
        case MonoImage():
            return MonoImage(fn(image.data), image.metadata)
        case ColorizedImage():
            return image.with_mono(MonoImage(fn(image.mono.data), image.metadata))
        case ColorImage():
            r, g, b = (c / MAX_PIXEL_VALUE for c in image.channels)
            hue, saturation, lightness = rgb_to_hsl(r, g, b)
            processed = fn((lightness * MAX_PIXEL_VALUE).astype(np.float32))
            lightness = np.clip(processed / MAX_PIXEL_VALUE, 0.0, 1.0)
            r, g, b = hsl_to_rgb(hue, saturation, lightness)
            return ColorImage(r * MAX_PIXEL_VALUE, g * MAX_PIXEL_VALUE, b * MAX_PIXEL_VALUE, image.metadata)
    raise UnsupportedImageKindError(f"{operation} does not support {type(image).__name__}")


def map_channels(image: Image, fn: PixelFunction, operation: str,
                 metadata: Optional[Metadata] = None) -> InMemoryImage:
    """
    Apply a pixel function to every channel of an image.

    Colorized images are processed through their mono source. The metadata of
    the result is metadata when given, else the metadata of the input.
    """
    image = unwrap_to_memory(image)
    metadata = image.metadata if metadata is None else metadata
    match image:
        case MonoImage():
            return MonoImage(fn(image.data), metadata)
        case ColorizedImage():
            return image.with_mono(MonoImage(fn(image.mono.data), metadata))
        case ColorImage():
            return ColorImage(fn(image.r), fn(image.g), fn(image.b), metadata)
    raise UnsupportedImageKindError(f"{operation} does not support {type(image).__name__}")


def pixel_grid(height: int, width: int):
    """(xs, ys) coordinate arrays of shape (height, width)."""
    ys, xs = np.indices((height, width), dtype=np.float64)
    return xs, ys


def as_int(value, name: str, operation: str) -> int:
    """Integer argument; integral floats are accepted."""
    if isinstance(value, bool):
        raise InvalidArgumentsError(f"{operation}: {name} must be an integer, got {value!r}")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise InvalidArgumentsError(f"{operation}: {name} must be an integer, got {value!r}") from None
    if not number.is_integer():
        raise InvalidArgumentsError(f"{operation}: {name} must be an integer, got {value!r}")
    return int(number)


def as_float(value, name: str, operation: str) -> float:
    if isinstance(value, bool):
        raise InvalidArgumentsError(f"{operation}: {name} must be a number, got {value!r}")
    try:
        return float(value)
    except (TypeError, ValueError):
        raise InvalidArgumentsError(f"{operation}: {name} must be a number, got {value!r}") from None
