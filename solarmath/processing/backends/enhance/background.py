"""
Sky background correction around the solar disk.

remove_bg subtracts a radial estimate of the background outside the disk.
neutralize_bg and bg_model fit a low-order polynomial surface through
background samples taken outside the disk: the former subtracts it, the
latter returns it as an image.
"""
from __future__ import annotations

import logging
from typing import List, Tuple

import numpy as np
from scipy import linalg

from solarmath.constants.constants import (
    BG_MODEL_GRID_DIVISIONS,
    BG_MODEL_RIDGE,
    MAX_BG_MODEL_ORDER,
    NEUTRALIZE_SAMPLE_STEP,
)
from solarmath.core.exceptions import InvalidArgumentsError
from solarmath.core.image.model import MonoImage, require_mono
from solarmath.processing.func_registry import image_function
from solarmath.processing.image_ops import (
    as_float,
    as_int,
    clip_pixels,
    pixel_grid,
    resolve_ellipse,
)

logger = logging.getLogger(__name__)

NEUTRALIZE_ORDER = 2
NEUTRALIZE_MIN_SAMPLES = 6


def polynomial_terms(order: int) -> List[Tuple[int, int]]:
    """Exponent pairs (i, j) of every x^i y^j monomial with i + j <= order."""
    return [(total - j, j) for total in range(order + 1) for j in range(total + 1)]


def _normalize(coordinates: np.ndarray, size: int) -> np.ndarray:
    """Map pixel coordinates to [-1, 1] along an axis of the given size."""
    if size <= 1:
        return np.zeros_like(coordinates, dtype=np.float64)
    return 2.0 * coordinates / (size - 1) - 1.0


def _design_matrix(x: np.ndarray, y: np.ndarray, terms: List[Tuple[int, int]]) -> np.ndarray:
    return np.stack([x ** i * y ** j for i, j in terms], axis=-1)


def _evaluate(coefficients: np.ndarray, terms: List[Tuple[int, int]], height: int, width: int) -> np.ndarray:
    xs, ys = pixel_grid(height, width)
    design = _design_matrix(_normalize(xs, width), _normalize(ys, height), terms)
    return design @ coefficients


@image_function()
def remove_bg(img, tolerance=None, ellipse=None, *, context):
    """
    Subtract the sky background outside the disk.

    Outside pixels lose tolerance * (distance / radius)² times the mean of
    the positive outside pixels, floored at 0. Inside pixels are unchanged.
    """
    tolerance = as_float(context.config.background.tolerance if tolerance is None else tolerance,
                         "tolerance", "remove_bg")
    if tolerance < 0:
        raise InvalidArgumentsError(f"remove_bg: tolerance must be >= 0, got {tolerance}")
    mono = require_mono(img, "remove_bg")
    disk = resolve_ellipse("remove_bg", ellipse, mono, context)

    data = mono.data.astype(np.float64)
    xs, ys = pixel_grid(mono.height, mono.width)
    outside = ~disk.contains(xs, ys)
    samples = data[outside]
    samples = samples[samples > 0]
    if tolerance == 0 or samples.size == 0:
        return mono.copy()

    background = float(samples.mean())
    logger.debug(f"remove_bg: background estimate {background:.2f}")
    distance = disk.distance_to_center(xs, ys) / disk.mean_radius
    corrected = np.maximum(0.0, data - tolerance * distance * distance * background)
    return MonoImage(clip_pixels(np.where(outside, corrected, data)), mono.metadata)


@image_function()
def neutralize_bg(img, iterations=None, ellipse=None, *, context):
    """Subtract a second order background surface fitted outside the disk."""
    iterations = as_int(context.config.background.neutralize_iterations if iterations is None else iterations,
                        "iterations", "neutralize_bg")
    if iterations < 0:
        raise InvalidArgumentsError(f"neutralize_bg: iterations must be >= 0, got {iterations}")
    mono = require_mono(img, "neutralize_bg")
    disk = resolve_ellipse("neutralize_bg", ellipse, mono, context)

    height, width = mono.height, mono.width
    data = mono.data.astype(np.float64)
    xs, ys = pixel_grid(height, width)
    outside = ~disk.contains(xs, ys)
    if not outside.any():
        return mono.copy()

    terms = polynomial_terms(NEUTRALIZE_ORDER)
    grid = np.zeros_like(outside)
    grid[::NEUTRALIZE_SAMPLE_STEP, ::NEUTRALIZE_SAMPLE_STEP] = True

    for iteration in range(iterations):
        values = data[outside]
        threshold = values.mean() + values.std()
        selected = grid & outside & (data < threshold)
        count = int(selected.sum())
        if count < NEUTRALIZE_MIN_SAMPLES:
            logger.debug(f"neutralize_bg: only {count} background samples, stopping at iteration {iteration}")
            break
        design = _design_matrix(_normalize(xs[selected], width), _normalize(ys[selected], height), terms)
        coefficients, *_ = linalg.lstsq(design, data[selected])
        data = np.clip(data - _evaluate(coefficients, terms, height, width), 0.0, None)

    return MonoImage(clip_pixels(data), mono.metadata)


@image_function()
def bg_model(img, order=None, sigma=None, ellipse=None, *, context):
    """
    Model the sky background as a polynomial surface.

    Args:
        img: Mono image or list of images.
        order: Polynomial degree, 1 to 4; defaults to config.background.model_order.
        sigma: Samples further than sigma standard deviations from the mean
            are rejected; defaults to config.background.model_sigma.
        ellipse: Disk ellipse; samples are taken outside it.
        context: Processing context.

    Returns:
        The background model as a mono image. When there are fewer samples
        than polynomial terms a copy of the input is returned.
    """
    defaults = context.config.background
    order = as_int(defaults.model_order if order is None else order, "order", "bg_model")
    sigma = as_float(defaults.model_sigma if sigma is None else sigma, "sigma", "bg_model")
    if not 1 <= order <= MAX_BG_MODEL_ORDER:
        raise InvalidArgumentsError(f"bg_model: order must be between 1 and {MAX_BG_MODEL_ORDER}, got {order}")
    if sigma <= 0:
        raise InvalidArgumentsError(f"bg_model: sigma must be > 0, got {sigma}")
    mono = require_mono(img, "bg_model")
    disk = resolve_ellipse("bg_model", ellipse, mono, context)

    height, width = mono.height, mono.width
    step = max(1, max(width, height) // BG_MODEL_GRID_DIVISIONS)
    gy, gx = np.mgrid[0:height:step, 0:width:step]
    gx = gx.ravel().astype(np.float64)
    gy = gy.ravel().astype(np.float64)
    keep = ~disk.contains(gx, gy)
    gx, gy = gx[keep], gy[keep]
    values = mono.data[gy.astype(np.int64), gx.astype(np.int64)].astype(np.float64)

    terms = polynomial_terms(order)
    if values.size:
        mean, std = values.mean(), values.std()
        keep = (np.abs(values - mean) <= sigma * std) & (values > 0)
        gx, gy, values = gx[keep], gy[keep], values[keep]
    if values.size < len(terms):
        logger.debug(f"bg_model: {values.size} samples for {len(terms)} terms, returning the input")
        return mono.copy()

    design = _design_matrix(_normalize(gx, width), _normalize(gy, height), terms)
    normal = design.T @ design + BG_MODEL_RIDGE * np.eye(len(terms))
    coefficients = linalg.solve(normal, design.T @ values, assume_a="pos")
    model = _evaluate(coefficients, terms, height, width)
    return MonoImage(clip_pixels(model), mono.metadata)
