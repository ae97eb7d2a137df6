"""
Contrast limited adaptive histogram equalization.

The image is split into square tiles. Each tile gets a clipped histogram
whose cumulative distribution becomes the tile's intensity mapping; pixels
are mapped by bilinear interpolation between the mappings of the four
nearest tile centers. Histograms, clipping and interpolation are vectorized
over all tiles at once.
"""
from __future__ import annotations

import logging

import numpy as np

from solarmath.constants.constants import MAX_PIXEL_VALUE
from solarmath.core.exceptions import InvalidArgumentsError
from solarmath.processing.func_registry import image_function
from solarmath.processing.image_ops import as_float, as_int, map_lightness

logger = logging.getLogger(__name__)


def _stretch(data: np.ndarray) -> np.ndarray:
    low = float(data.min())
    high = float(data.max())
    return (data.astype(np.float64) - low) * (MAX_PIXEL_VALUE / (high - low))


def _clip_histograms(histograms: np.ndarray, limits: np.ndarray) -> np.ndarray:
    """Clip every tile histogram and spread the excess evenly, remainder to the first bins."""
    bins = histograms.shape[-1]
    limits = limits[..., None]
    excess = np.maximum(histograms - limits, 0).sum(axis=-1)
    clipped = np.minimum(histograms, limits)
    clipped += (excess // bins)[..., None]
    clipped += (np.arange(bins) < (excess % bins)[..., None]).astype(clipped.dtype)
    return clipped


def _tile_mappings(bin_index: np.ndarray, tile_size: int, bins: int, clip: float) -> np.ndarray:
    """Normalized CDF of every tile, shape (tiles_y, tiles_x, bins)."""
    height, width = bin_index.shape
    tiles_y = -(-height // tile_size)
    tiles_x = -(-width // tile_size)
    ys, xs = np.indices((height, width))
    tile_id = (ys // tile_size) * tiles_x + (xs // tile_size)
    flat = tile_id * bins + bin_index
    histograms = np.bincount(flat.ravel(), minlength=tiles_y * tiles_x * bins)
    histograms = histograms.reshape(tiles_y, tiles_x, bins).astype(np.int64)

    pixel_counts = histograms.sum(axis=-1)
    limits = np.maximum(1, (clip * pixel_counts / bins).astype(np.int64))
    clipped = _clip_histograms(histograms, limits)

    cdf = np.cumsum(clipped, axis=-1).astype(np.float64)
    return cdf / cdf[..., -1:]


def _interpolation_axis(length: int, tile_size: int, tiles: int):
    """Lower/upper tile index and weight of the upper tile for every coordinate of an axis."""
    position = (np.arange(length, dtype=np.float64) - tile_size / 2.0) / tile_size
    lower = np.floor(position)
    weight = position - lower
    lower = lower.astype(np.int64)
    upper = np.clip(lower + 1, 0, tiles - 1)
    lower = np.clip(lower, 0, tiles - 1)
    return lower, upper, weight


def equalize(data: np.ndarray, tile_size: int, bins: int, clip: float) -> np.ndarray:
    """
    CLAHE of a single channel.

    Args:
        data: 2-D array of pixel values.
        tile_size: Tile edge length in pixels.
        bins: Histogram bin count.
        clip: Clip factor relative to the average bin population.

    Returns:
        Equalized float32 array in [0, MAX_PIXEL_VALUE]. A constant input is
        returned unchanged.
    """
    if float(data.max()) <= float(data.min()):
        logger.debug("clahe: constant image, nothing to equalize")
        return np.array(data, dtype=np.float32, copy=True)

    stretched = _stretch(data)
    bin_index = np.clip(np.rint(stretched * (bins - 1) / MAX_PIXEL_VALUE), 0, bins - 1).astype(np.int64)
    mappings = _tile_mappings(bin_index, tile_size, bins, clip)
    tiles_y, tiles_x = mappings.shape[:2]
    height, width = data.shape

    y0, y1, wy = _interpolation_axis(height, tile_size, tiles_y)
    x0, x1, wx = _interpolation_axis(width, tile_size, tiles_x)
    y0, y1, wy = y0[:, None], y1[:, None], wy[:, None]
    x0, x1, wx = x0[None, :], x1[None, :], wx[None, :]

    top = (1.0 - wx) * mappings[y0, x0, bin_index] + wx * mappings[y0, x1, bin_index]
    bottom = (1.0 - wx) * mappings[y1, x0, bin_index] + wx * mappings[y1, x1, bin_index]
    mapped = (1.0 - wy) * top + wy * bottom
    return np.clip(MAX_PIXEL_VALUE * mapped, 0.0, MAX_PIXEL_VALUE).astype(np.float32)


@image_function()
def clahe(img, tile_size=None, bins=None, clip=None, *, context):
    """
    Contrast limited adaptive histogram equalization.

    Args:
        img: Image or list of images.
        tile_size: Tile edge length; defaults to config.clahe.tile_size.
        bins: Histogram bins; defaults to config.clahe.bins.
        clip: Clip factor; defaults to config.clahe.clip.
        context: Processing context.

    Raises:
        InvalidArgumentsError: If a parameter is out of range or the tile
            area is smaller than the bin count.
    """
    defaults = context.config.clahe
    tile_size = as_int(defaults.tile_size if tile_size is None else tile_size, "tile_size", "clahe")
    bins = as_int(defaults.bins if bins is None else bins, "bins", "clahe")
    clip = as_float(defaults.clip if clip is None else clip, "clip", "clahe")
    if tile_size < 1:
        raise InvalidArgumentsError(f"clahe: tile_size must be >= 1, got {tile_size}")
    if bins < 2:
        raise InvalidArgumentsError(f"clahe: bins must be >= 2, got {bins}")
    if clip <= 0:
        raise InvalidArgumentsError(f"clahe: clip must be > 0, got {clip}")
    if tile_size * tile_size < bins:
        raise InvalidArgumentsError(
            f"clahe: tile area / bins must be >= 1, got {tile_size}x{tile_size} / {bins}"
        )
    return map_lightness(img, lambda data: equalize(data, tile_size, bins, clip), "clahe")
