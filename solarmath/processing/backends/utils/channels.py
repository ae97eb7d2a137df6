"""Channel extraction."""
from __future__ import annotations

import numpy as np

from solarmath.core.exceptions import UnsupportedImageKindError
from solarmath.core.image.model import ColorImage, ColorizedImage, MonoImage, unwrap_to_memory
from solarmath.processing.func_registry import image_function


def _channel(img, index: int, operation: str) -> MonoImage:
    image = unwrap_to_memory(img)
    match image:
        case ColorImage():
            return MonoImage(image.channels[index].copy(), image.metadata)
        case ColorizedImage():
            return MonoImage(image.to_color().channels[index], image.metadata)
        case MonoImage():
            raise UnsupportedImageKindError(f"{operation} requires a color image, got a mono image")
    raise UnsupportedImageKindError(f"{operation} does not support {type(image).__name__}")


@image_function()
def red(img, *, context):
    """Red channel of a color image."""
    return _channel(img, 0, "red")


@image_function()
def green(img, *, context):
    """Green channel of a color image."""
    return _channel(img, 1, "green")


@image_function()
def blue(img, *, context):
    """Blue channel of a color image."""
    return _channel(img, 2, "blue")


@image_function()
def mono(img, *, context):
    """Mono version of an image: mean of the channels, or a copy for mono images."""
    image = unwrap_to_memory(img)
    match image:
        case MonoImage():
            return image.copy()
        case ColorImage() | ColorizedImage():
            channels = image.channels if isinstance(image, ColorImage) else image.to_color().channels
            return MonoImage(np.mean(np.stack(channels), axis=0), image.metadata)
    raise UnsupportedImageKindError(f"mono does not support {type(image).__name__}")
