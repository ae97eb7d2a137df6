"""
Convolution based sharpening and Richardson-Lucy deconvolution.

All kernels are built per call and never shared mutably. Borders are handled
by reflection. Color images are processed on their HSL lightness, colorized
images on their mono source.
"""
from __future__ import annotations

import logging
from typing import Optional

import numpy as np
from scipy import ndimage

from solarmath.constants.constants import (
    DEFAULT_KERNEL_SIZE,
    DEFAULT_UNSHARP_STRENGTH,
    MAX_PIXEL_VALUE,
    RL_EPSILON,
)
from solarmath.core.exceptions import InvalidArgumentsError
from solarmath.processing.func_registry import image_function
from solarmath.processing.image_ops import as_float, as_int, clip_pixels, map_lightness

logger = logging.getLogger(__name__)


def _kernel_size(kernel, operation: str) -> int:
    size = as_int(kernel, "kernel", operation)
    if size < 3 or size % 2 == 0:
        raise InvalidArgumentsError(f"{operation}: kernel size must be an odd integer >= 3, got {kernel}")
    return size


def sharpen_kernel(size: int) -> np.ndarray:
    """size x size kernel: -1 everywhere, size² at the center. Sums to 1."""
    kernel = np.full((size, size), -1.0)
    kernel[size // 2, size // 2] = float(size * size)
    return kernel


def box_kernel(size: int) -> np.ndarray:
    return np.full((size, size), 1.0 / (size * size))


def gaussian_psf(radius: float, sigma: float) -> np.ndarray:
    """
    Gaussian point-spread function normalized to a unit sum.

    Args:
        radius: PSF radius in pixels; the kernel is int(2 * (radius + 0.5)) wide.
        sigma: Divisor of the radius giving the Gaussian standard deviation.
    """
    width = max(1, int(2 * (radius + 0.5)))
    center = width / 2.0
    spread = radius / sigma
    ys, xs = np.indices((width, width), dtype=np.float64)
    distance_sq = (xs - center) ** 2 + (ys - center) ** 2
    psf = np.exp(-distance_sq / (2.0 * spread * spread))
    return psf / psf.sum()


def _convolve(data: np.ndarray, kernel: np.ndarray) -> np.ndarray:
    return ndimage.convolve(np.asarray(data, dtype=np.float64), kernel, mode="reflect")


def richardson_lucy(data: np.ndarray, psf: np.ndarray, iterations: int) -> np.ndarray:
    """Multiplicative Richardson-Lucy updates, clamped to the pixel range after each step."""
    observed = np.asarray(data, dtype=np.float64)
    estimate = observed.copy()
    psf_flipped = psf[::-1, ::-1]
    for _ in range(iterations):
        blurred = _convolve(estimate, psf)
        ratio = observed / (blurred + RL_EPSILON)
        estimate = estimate * _convolve(ratio, psf_flipped)
        np.clip(estimate, 0.0, MAX_PIXEL_VALUE, out=estimate)
    return estimate.astype(np.float32)


@image_function()
def sharpen(img, kernel=DEFAULT_KERNEL_SIZE, *, context):
    """Sharpen with an n x n kernel."""
    size = _kernel_size(kernel, "sharpen")
    weights = sharpen_kernel(size)
    return map_lightness(img, lambda data: clip_pixels(_convolve(data, weights)), "sharpen")


@image_function()
def blur(img, kernel=DEFAULT_KERNEL_SIZE, *, context):
    """Blur with a normalized n x n box kernel."""
    size = _kernel_size(kernel, "blur")
    weights = box_kernel(size)
    return map_lightness(img, lambda data: clip_pixels(_convolve(data, weights)), "blur")


@image_function()
def unsharp_mask(img, strength=DEFAULT_UNSHARP_STRENGTH, kernel=DEFAULT_KERNEL_SIZE, *, context):
    """Add back strength times the difference between the image and its blur."""
    size = _kernel_size(kernel, "unsharp_mask")
    amount = as_float(strength, "strength", "unsharp_mask")
    weights = box_kernel(size)

    def apply(data: np.ndarray) -> np.ndarray:
        source = np.asarray(data, dtype=np.float64)
        return clip_pixels(source + amount * (source - _convolve(source, weights)))

    return map_lightness(img, apply, "unsharp_mask")


@image_function()
def rl_decon(img, radius=None, sigma=None, iterations=None, *, context):
    """
    Richardson-Lucy deconvolution with a Gaussian point-spread function.

    Args:
        img: Image or list of images.
        radius: PSF radius; defaults to config.deconvolution.radius.
        sigma: PSF sigma divisor; defaults to config.deconvolution.sigma.
        iterations: Update count; defaults to config.deconvolution.iterations.
        context: Processing context.

    Returns:
        The deconvolved image, same kind as the input.
    """
    defaults = context.config.deconvolution
    radius = as_float(defaults.radius if radius is None else radius, "radius", "rl_decon")
    sigma = as_float(defaults.sigma if sigma is None else sigma, "sigma", "rl_decon")
    iterations = as_int(defaults.iterations if iterations is None else iterations, "iterations", "rl_decon")
    if radius <= 0 or sigma <= 0:
        raise InvalidArgumentsError(f"rl_decon: radius and sigma must be > 0, got radius={radius}, sigma={sigma}")
    if iterations < 0:
        raise InvalidArgumentsError(f"rl_decon: iterations must be >= 0, got {iterations}")

    psf = gaussian_psf(radius, sigma)
    logger.debug(f"rl_decon: PSF {psf.shape[0]}x{psf.shape[1]}, {iterations} iterations")
    return map_lightness(img, lambda data: richardson_lucy(data, psf, iterations), "rl_decon")
