"""
Colorization of mono images.

The result is a ColorizedImage: the mono image stays the source of truth and
the color view is produced on demand by one of the converters below. The
converters are frozen dataclasses, so they are deterministic and safe to
share between images and threads.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Tuple

import numpy as np

from solarmath.constants.constants import (
    COLOR_CHANNEL_MAX,
    COLORIZE_GAMMA,
    COLORIZE_STRETCH_RATIO,
    MAX_PIXEL_VALUE,
)
from solarmath.core.exceptions import UnknownProfileError, UnsupportedImageKindError
from solarmath.core.image.model import ColorImage, ColorizedImage, MonoImage, unwrap_to_memory
from solarmath.processing.backends.color.spectral_rays import ColorCurve, find_ray, spectral_rays
from solarmath.processing.func_registry import image_function
from solarmath.processing.image_ops import as_float

logger = logging.getLogger(__name__)

Channels = Tuple[np.ndarray, np.ndarray, np.ndarray]


@dataclass(frozen=True)
class CurveConverter:
    """Mono to RGB through per-channel tone curves."""
    curve: ColorCurve

    def __call__(self, data: np.ndarray) -> Channels:
        scaled = np.clip(np.asarray(data, dtype=np.float64), 0.0, MAX_PIXEL_VALUE) / MAX_PIXEL_VALUE * COLOR_CHANNEL_MAX
        r, g, b = self.curve.apply(scaled)
        factor = MAX_PIXEL_VALUE / COLOR_CHANNEL_MAX
        return (r * factor).astype(np.float32), (g * factor).astype(np.float32), (b * factor).astype(np.float32)


@dataclass(frozen=True)
class WavelengthConverter:
    """Mono to RGB by tinting with the color of a wavelength."""
    rgb: Tuple[int, int, int]

    def __call__(self, data: np.ndarray) -> Channels:
        normalized = np.clip(np.asarray(data, dtype=np.float64), 0.0, MAX_PIXEL_VALUE) / MAX_PIXEL_VALUE
        gray = MAX_PIXEL_VALUE * normalized ** (1.0 / COLORIZE_GAMMA)
        channels = np.stack([gray * c / COLOR_CHANNEL_MAX for c in self.rgb])
        low, high = float(channels.min()), float(channels.max())
        if high > low:
            channels = (channels - low) * (COLORIZE_STRETCH_RATIO * MAX_PIXEL_VALUE / (high - low))
        channels = channels.astype(np.float32)
        return channels[0], channels[1], channels[2]


def _converter_for_profile(profile: str, context):
    ray = find_ray(profile, spectral_rays(context.config))
    if ray.color_curve is not None:
        return CurveConverter(ray.color_curve)
    if ray.wavelength_nm != 0:
        return WavelengthConverter(ray.to_rgb())
    raise UnknownProfileError(f"Cannot find color profile '{profile}'")


@image_function()
def colorize(img, r_in=0, r_out=255, g_in=0, g_out=255, b_in=0, b_out=255, profile=None, *, context):
    """
    Colorize a mono image with tone curves or a named spectral profile.

    A string given in place of r_in is taken as the profile name.

    Raises:
        UnknownProfileError: If the profile name is not a known spectral ray.
        UnsupportedImageKindError: If the input is a color image.
    """
    if isinstance(r_in, str):
        profile, r_in = r_in, 0

    image = unwrap_to_memory(img)
    match image:
        case MonoImage():
            mono = image
        case ColorizedImage():
            mono = image.mono
        case ColorImage():
            raise UnsupportedImageKindError("colorize requires a mono image, got a color image")
        case _:
            raise UnsupportedImageKindError(f"colorize does not support {type(image).__name__}")

    if profile is not None:
        converter = _converter_for_profile(str(profile), context)
        logger.debug(f"colorize: profile '{profile}' -> {converter}")
    else:
        values = [as_float(v, name, "colorize") for v, name in (
            (r_in, "r_in"), (r_out, "r_out"), (g_in, "g_in"), (g_out, "g_out"), (b_in, "b_in"), (b_out, "b_out"))]
        converter = CurveConverter(ColorCurve(*values))
    return ColorizedImage(mono, converter)
