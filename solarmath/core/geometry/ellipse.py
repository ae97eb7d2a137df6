"""
Ellipse model of the solar disk.

The ellipse is kept in center / semi-axes / rotation form and converts to and
from the general conic ``a·x² + b·xy + c·y² + d·x + e·y + f = 0`` used by the
regression.
"""

import math
from dataclasses import dataclass
from typing import List, Tuple, Union

import numpy as np

from solarmath.core.exceptions import InvalidArgumentsError

ArrayLike = Union[float, np.ndarray]


@dataclass(frozen=True)
class Ellipse:
    """
    An ellipse in image coordinates (x to the right, y downwards).

    Attributes:
        cx: X coordinate of the center.
        cy: Y coordinate of the center.
        semi_major: Semi-axis along the rotation direction.
        semi_minor: Semi-axis orthogonal to the rotation direction.
        rotation: Angle of the first semi-axis, in radians.
    """
    cx: float
    cy: float
    semi_major: float
    semi_minor: float
    rotation: float = 0.0

    def __post_init__(self):
        if not (self.semi_major > 0 and self.semi_minor > 0):
            raise InvalidArgumentsError(
                f"Ellipse semi-axes must be positive, got ({self.semi_major}, {self.semi_minor})"
            )

    @classmethod
    def circle(cls, cx: float, cy: float, radius: float) -> "Ellipse":
        return cls(cx, cy, radius, radius, 0.0)

    @classmethod
    def from_cartesian(cls, a: float, b: float, c: float, d: float, e: float, f: float) -> "Ellipse":
        """
        Build an ellipse from the coefficients of its conic equation.

        Raises:
            InvalidArgumentsError: If the conic is not a real ellipse.
        """
        if b * b - 4 * a * c >= 0:
            raise InvalidArgumentsError("Conic coefficients do not describe an ellipse")
        quad = np.array([[a, b / 2.0], [b / 2.0, c]], dtype=np.float64)
        linear = np.array([d, e], dtype=np.float64)
        center = -0.5 * np.linalg.solve(quad, linear)
        # value of the conic at the center
        f0 = f + 0.5 * float(linear @ center)
        eigenvalues, eigenvectors = np.linalg.eigh(quad)
        squared = -f0 / eigenvalues
        if np.any(squared <= 0):
            raise InvalidArgumentsError("Conic coefficients describe an imaginary ellipse")
        # eigh sorts ascending: the smallest eigenvalue gives the largest axis
        axes = np.sqrt(squared)
        direction = eigenvectors[:, 0]
        rotation = math.atan2(direction[1], direction[0])
        return cls(float(center[0]), float(center[1]), float(axes[0]), float(axes[1]), rotation)

    def cartesian(self) -> Tuple[float, float, float, float, float, float]:
        """Coefficients (a, b, c, d, e, f) of the conic, normalized so that f0 = -1 at the center."""
        cos_r = math.cos(self.rotation)
        sin_r = math.sin(self.rotation)
        inv_a2 = 1.0 / (self.semi_major ** 2)
        inv_b2 = 1.0 / (self.semi_minor ** 2)
        a = cos_r * cos_r * inv_a2 + sin_r * sin_r * inv_b2
        b = 2.0 * cos_r * sin_r * (inv_a2 - inv_b2)
        c = sin_r * sin_r * inv_a2 + cos_r * cos_r * inv_b2
        cx, cy = self.cx, self.cy
        d = -2.0 * a * cx - b * cy
        e = -b * cx - 2.0 * c * cy
        f = a * cx * cx + b * cx * cy + c * cy * cy - 1.0
        return a, b, c, d, e, f

    @property
    def center(self) -> Tuple[float, float]:
        return self.cx, self.cy

    @property
    def semi_axes(self) -> Tuple[float, float]:
        return self.semi_major, self.semi_minor

    @property
    def mean_radius(self) -> float:
        return (self.semi_major + self.semi_minor) / 2.0

    def _normalized_radius_squared(self, x: ArrayLike, y: ArrayLike) -> ArrayLike:
        dx = np.asarray(x, dtype=np.float64) - self.cx
        dy = np.asarray(y, dtype=np.float64) - self.cy
        cos_r = math.cos(self.rotation)
        sin_r = math.sin(self.rotation)
        u = (dx * cos_r + dy * sin_r) / self.semi_major
        v = (-dx * sin_r + dy * cos_r) / self.semi_minor
        return u * u + v * v

    def contains(self, x: ArrayLike, y: ArrayLike) -> Union[bool, np.ndarray]:
        """Whether the point(s) lie inside or on the ellipse. Works on scalars and arrays."""
        inside = self._normalized_radius_squared(x, y) <= 1.0
        if np.ndim(inside) == 0:
            return bool(inside)
        return inside

    def distance_to_center(self, x: ArrayLike, y: ArrayLike) -> ArrayLike:
        return np.hypot(np.asarray(x, dtype=np.float64) - self.cx, np.asarray(y, dtype=np.float64) - self.cy)

    def point_at(self, theta: float) -> Tuple[float, float]:
        """Boundary point for the parametric angle theta."""
        cos_t, sin_t = math.cos(theta), math.sin(theta)
        cos_r, sin_r = math.cos(self.rotation), math.sin(self.rotation)
        a, b = self.semi_major, self.semi_minor
        return (
            self.cx + a * cos_t * cos_r - b * sin_t * sin_r,
            self.cy + a * cos_t * sin_r + b * sin_t * cos_r,
        )

    def sample_points(self, count: int) -> List[Tuple[float, float]]:
        """count boundary points at evenly spaced parametric angles, starting at 0."""
        if count < 1:
            raise InvalidArgumentsError(f"Sample count must be >= 1, got {count}")
        step = 2.0 * math.pi / count
        return [self.point_at(k * step) for k in range(count)]

    def bounding_box(self) -> Tuple[float, float, float, float]:
        """(min_x, max_x, min_y, max_y) of the ellipse."""
        cos_r, sin_r = math.cos(self.rotation), math.sin(self.rotation)
        a, b = self.semi_major, self.semi_minor
        half_w = math.sqrt(a * a * cos_r * cos_r + b * b * sin_r * sin_r)
        half_h = math.sqrt(a * a * sin_r * sin_r + b * b * cos_r * cos_r)
        return self.cx - half_w, self.cx + half_w, self.cy - half_h, self.cy + half_h

    def translate(self, dx: float, dy: float) -> "Ellipse":
        return Ellipse(self.cx + dx, self.cy + dy, self.semi_major, self.semi_minor, self.rotation)

    def centered_at(self, x: float, y: float) -> "Ellipse":
        return Ellipse(x, y, self.semi_major, self.semi_minor, self.rotation)

    def rescale(self, scale_x: float, scale_y: float) -> "Ellipse":
        """
        Stretch the ellipse about its own center by independent x / y factors.

        The center is unchanged; callers moving the ellipse along with the
        pixels follow up with centered_at.
        """
        if scale_x <= 0 or scale_y <= 0:
            raise InvalidArgumentsError(f"Scale factors must be > 0, got ({scale_x}, {scale_y})")
        if self.rotation % (math.pi / 2) == 0 or scale_x == scale_y:
            quarter_turns = round(self.rotation / (math.pi / 2)) % 2
            if scale_x == scale_y or quarter_turns == 0:
                major_scale, minor_scale = scale_x, scale_y
            else:
                major_scale, minor_scale = scale_y, scale_x
            return Ellipse(self.cx, self.cy, self.semi_major * major_scale,
                           self.semi_minor * minor_scale, self.rotation)
        # General case: substitute x -> x / sx, y -> y / sy in the centered conic
        at_origin = self.centered_at(0.0, 0.0)
        a, b, c, _, _, f = at_origin.cartesian()
        scaled = Ellipse.from_cartesian(a / (scale_x * scale_x), b / (scale_x * scale_y),
                                        c / (scale_y * scale_y), 0.0, 0.0, f)
        return scaled.centered_at(self.cx, self.cy)
