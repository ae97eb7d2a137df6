"""
Vectorized RGB <-> HSL conversion.

All channels are float arrays in [0, 1]. Hue is expressed as a fraction of
a full turn, also in [0, 1).
"""

from typing import Tuple

import numpy as np

HSL = Tuple[np.ndarray, np.ndarray, np.ndarray]


def rgb_to_hsl(r: np.ndarray, g: np.ndarray, b: np.ndarray) -> HSL:
    r = np.asarray(r, dtype=np.float64)
    g = np.asarray(g, dtype=np.float64)
    b = np.asarray(b, dtype=np.float64)
    high = np.maximum(np.maximum(r, g), b)
    low = np.minimum(np.minimum(r, g), b)
    chroma = high - low
    lightness = (high + low) / 2.0

    denominator = 1.0 - np.abs(2.0 * lightness - 1.0)
    with np.errstate(divide="ignore", invalid="ignore"):
        saturation = np.where((chroma > 0) & (denominator > 0), chroma / denominator, 0.0)
        safe = np.where(chroma > 0, chroma, 1.0)
        hue = np.select(
            [chroma == 0, high == r, high == g],
            [0.0, ((g - b) / safe) % 6.0, (b - r) / safe + 2.0],
            default=(r - g) / safe + 4.0,
        )
    hue = (hue / 6.0) % 1.0
    return hue, np.clip(saturation, 0.0, 1.0), lightness


def hsl_to_rgb(hue: np.ndarray, saturation: np.ndarray, lightness: np.ndarray) -> HSL:
    hue = np.asarray(hue, dtype=np.float64)
    saturation = np.asarray(saturation, dtype=np.float64)
    lightness = np.asarray(lightness, dtype=np.float64)

    chroma = (1.0 - np.abs(2.0 * lightness - 1.0)) * saturation
    sector = (hue * 6.0) % 6.0
    x = chroma * (1.0 - np.abs(sector % 2.0 - 1.0))
    zero = np.zeros_like(chroma)
    index = np.floor(sector).astype(np.int64) % 6

    r = np.choose(index, [chroma, x, zero, zero, x, chroma])
    g = np.choose(index, [x, chroma, chroma, x, zero, zero])
    b = np.choose(index, [zero, zero, x, chroma, chroma, x])
    m = lightness - chroma / 2.0
    return r + m, g + m, b + m
