"""
Direct least-squares ellipse fitting.

Implements the numerically stable variant of Fitzgibbon's algorithm: the
scatter matrix is split in its quadratic and linear parts, the linear part is
eliminated and the remaining 3x3 generalized eigenproblem is solved under the
constraint 4ac - b² > 0.
"""

import logging
from typing import Iterable, List, Sequence, Tuple

import numpy as np
from scipy import linalg

from solarmath.core.exceptions import InvalidArgumentsError, RegressionError
from solarmath.core.geometry.ellipse import Ellipse

logger = logging.getLogger(__name__)

# Inverse of the constraint matrix [[0, 0, 2], [0, -1, 0], [2, 0, 0]]
_CONSTRAINT_INV = linalg.inv(np.array([[0.0, 0.0, 2.0], [0.0, -1.0, 0.0], [2.0, 0.0, 0.0]]))

MIN_SAMPLES = 6


class EllipseRegression:
    """Fits an ellipse through a set of (x, y) samples."""

    def __init__(self, samples: Iterable[Tuple[float, float]]):
        self.samples: List[Tuple[float, float]] = [(float(x), float(y)) for x, y in samples]

    def solve(self) -> Ellipse:
        """
        Compute the best-fit ellipse.

        Returns:
            The fitted ellipse.

        Raises:
            RegressionError: If there are too few samples or no eigenvector
                satisfies the ellipse constraint.
        """
        if len(self.samples) < MIN_SAMPLES:
            raise RegressionError(
                f"Ellipse regression needs at least {MIN_SAMPLES} samples, got {len(self.samples)}"
            )
        points = np.asarray(self.samples, dtype=np.float64)
        x = points[:, 0]
        y = points[:, 1]
        d1 = np.column_stack([x * x, x * y, y * y])
        d2 = np.column_stack([x, y, np.ones_like(x)])
        s1 = d1.T @ d1
        s2 = d1.T @ d2
        s3 = d2.T @ d2
        try:
            t = -linalg.solve(s3, s2.T)
        except linalg.LinAlgError as e:
            raise RegressionError(f"Unable to find solution: {e}") from e
        m = _CONSTRAINT_INV @ (s1 + s2 @ t)
        _, vectors = linalg.eig(m)
        abc = self._select_solution(np.real(vectors))
        d, e, f = t @ abc
        a, b, c = abc
        try:
            return Ellipse.from_cartesian(a, b, c, d, e, f)
        except InvalidArgumentsError as ex:
            raise RegressionError(f"Unable to find solution: {ex}") from ex

    @staticmethod
    def _select_solution(vectors: np.ndarray) -> np.ndarray:
        v0, v1, v2 = vectors[0], vectors[1], vectors[2]
        condition = 4.0 * v0 * v2 - v1 * v1
        for i in range(vectors.shape[1]):
            if condition[i] > 0:
                return vectors[:, i]
        raise RegressionError("Unable to find solution")


def fit_ellipse(samples: Sequence[Tuple[float, float]]) -> Ellipse:
    """Convenience wrapper around EllipseRegression(samples).solve()."""
    return EllipseRegression(samples).solve()
