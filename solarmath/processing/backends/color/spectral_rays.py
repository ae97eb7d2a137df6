"""
Spectral rays and their color rendering.

The predefined table lists the lines commonly observed with a
spectroheliograph. It is immutable; additional rays can be declared in a YAML
file referenced by ``SolarMathConfig.spectral_rays_file``::

    - label: Iron (Fe I)
      wavelength: 617.33
    - label: My H-alpha
      wavelength: 656.281
      curve: [84, 139, 95, 20, 218, 65]
"""

import functools
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence, Tuple

import numpy as np
import yaml

from solarmath.constants.constants import COLOR_CHANNEL_MAX
from solarmath.core.exceptions import InvalidArgumentsError, UnknownProfileError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ColorCurve:
    """
    Per-channel quadratic tone curves on the 8-bit scale.

    Each channel curve passes through (0, 0), (in, out) and (255, 255).
    """
    r_in: float
    r_out: float
    g_in: float
    g_out: float
    b_in: float
    b_out: float

    @staticmethod
    def _coefficients(x: float, y: float) -> Tuple[float, float]:
        """(a, b) of a·v² + b·v through (0, 0), (x, y) and (255, 255)."""
        if x <= 0 or x >= COLOR_CHANNEL_MAX:
            return 0.0, 1.0
        a = (y - x) / (x * (x - COLOR_CHANNEL_MAX))
        return a, 1.0 - COLOR_CHANNEL_MAX * a

    def apply(self, values: np.ndarray) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        """Map 8-bit scale values through the three channel curves."""
        channels = []
        for x, y in ((self.r_in, self.r_out), (self.g_in, self.g_out), (self.b_in, self.b_out)):
            a, b = self._coefficients(x, y)
            channels.append(np.clip(a * values * values + b * values, 0.0, COLOR_CHANNEL_MAX))
        return channels[0], channels[1], channels[2]


@dataclass(frozen=True)
class SpectralRay:
    """A spectral line, optionally with a color curve used to colorize its images."""
    label: str
    wavelength_nm: float
    color_curve: Optional[ColorCurve] = None

    def to_rgb(self) -> Tuple[int, int, int]:
        """Approximate perceived color of the wavelength, 0-255 per channel. Black outside 380-781 nm."""
        w = self.wavelength_nm
        if 380 <= w < 440:
            r, g, b = -(w - 440) / (440 - 380), 0.0, 1.0
        elif 440 <= w < 490:
            r, g, b = 0.0, (w - 440) / (490 - 440), 1.0
        elif 490 <= w < 510:
            r, g, b = 0.0, 1.0, -(w - 510) / (510 - 490)
        elif 510 <= w < 580:
            r, g, b = (w - 510) / (580 - 510), 1.0, 0.0
        elif 580 <= w < 645:
            r, g, b = 1.0, -(w - 645) / (645 - 580), 0.0
        elif 645 <= w < 781:
            r, g, b = 1.0, 0.0, 0.0
        else:
            r, g, b = 0.0, 0.0, 0.0

        if 380 <= w < 420:
            factor = 0.3 + 0.7 * (w - 380) / (420 - 380)
        elif 420 <= w < 701:
            factor = 1.0
        elif 701 <= w < 781:
            factor = 0.3 + 0.7 * (780 - w) / (780 - 700)
        else:
            factor = 0.0

        def component(c: float) -> int:
            if c == 0.0 or factor <= 0.0:
                return 0
            return int(round(COLOR_CHANNEL_MAX * (c * factor) ** 0.7))

        return component(r), component(g), component(b)


H_ALPHA_CURVE = ColorCurve(84, 139, 95, 20, 218, 65)

PREDEFINED_RAYS: Tuple[SpectralRay, ...] = (
    SpectralRay("Calcium (K)", 393.366),
    SpectralRay("Calcium (H)", 396.847),
    SpectralRay("Calcium+Iron+CH (G)", 430.782),
    SpectralRay("H-beta", 486.134),
    SpectralRay("Magnesium (b1)", 518.362),
    SpectralRay("Iron (E2)", 527.039),
    SpectralRay("Mercury (e)", 546.073),
    SpectralRay("Helium (D3)", 587.562),
    SpectralRay("Sodium (D2)", 588.995),
    SpectralRay("Sodium (D1)", 589.592),
    SpectralRay("H-alpha", 656.281, H_ALPHA_CURVE),
)


def _ray_from_dict(entry) -> SpectralRay:
    if not isinstance(entry, dict) or "label" not in entry or "wavelength" not in entry:
        raise InvalidArgumentsError(f"Spectral ray entries need a label and a wavelength, got {entry!r}")
    curve = entry.get("curve")
    if curve is not None:
        if not isinstance(curve, (list, tuple)) or len(curve) != 6:
            raise InvalidArgumentsError(f"Color curve of '{entry['label']}' must have 6 values, got {curve!r}")
        curve = ColorCurve(*(float(v) for v in curve))
    return SpectralRay(str(entry["label"]), float(entry["wavelength"]), curve)


@functools.lru_cache(maxsize=8)
def load_spectral_rays(path: Path) -> Tuple[SpectralRay, ...]:
    """
    Read additional rays from a YAML list.

    Returns:
        The rays declared in the file; an empty tuple when the file is missing,
        empty or not valid YAML.

    Raises:
        InvalidArgumentsError: If an entry is malformed.
    """
    if not path.exists():
        logger.warning(f"Spectral rays file {path} does not exist. Using predefined rays only.")
        return ()
    try:
        with open(path, "r", encoding="utf-8") as f:
            loaded = yaml.safe_load(f)
    except yaml.YAMLError as e:
        logger.warning(f"Error parsing spectral rays from {path}: {e}. Using predefined rays only.")
        return ()
    if not loaded:
        return ()
    if not isinstance(loaded, list):
        raise InvalidArgumentsError(f"Spectral rays file {path} must contain a list of rays")
    rays = tuple(_ray_from_dict(entry) for entry in loaded)
    logger.info(f"Loaded {len(rays)} spectral rays from {path}")
    return rays


def spectral_rays(config=None) -> Tuple[SpectralRay, ...]:
    """Rays declared in the configured YAML file, followed by the predefined rays."""
    rays_file = getattr(config, "spectral_rays_file", None)
    if rays_file is None:
        return PREDEFINED_RAYS
    return load_spectral_rays(Path(rays_file)) + PREDEFINED_RAYS


def find_ray(name: str, rays: Optional[Sequence[SpectralRay]] = None) -> SpectralRay:
    """
    Look up a ray by label, ignoring case.

    Raises:
        UnknownProfileError: If no ray has this label.
    """
    wanted = name.strip().lower()
    for ray in PREDEFINED_RAYS if rays is None else rays:
        if ray.label.lower() == wanted:
            return ray
    raise UnknownProfileError(f"Cannot find color profile '{name}'")
