"""Geometry model: disk ellipse, ellipse regression and pixel-shift ranges."""

from solarmath.core.geometry.ellipse import Ellipse
from solarmath.core.geometry.pixel_shift import PixelShiftRange
from solarmath.core.geometry.regression import EllipseRegression, fit_ellipse

__all__ = [
    "Ellipse",
    "EllipseRegression",
    "PixelShiftRange",
    "fit_ellipse",
]
