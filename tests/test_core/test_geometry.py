"""Tests for the ellipse model, ellipse regression, pixel-shift range and ephemeris."""
import math
from datetime import datetime

import numpy as np
import pytest

from solarmath.core.exceptions import InvalidArgumentsError, RegressionError
from solarmath.core.geometry import Ellipse, EllipseRegression, PixelShiftRange, fit_ellipse
from solarmath.core.geometry.ephemeris import julian_day, solar_parameters


class TestEllipse:

    def test_axes_must_be_positive(self):
        with pytest.raises(InvalidArgumentsError):
            Ellipse(0, 0, 0, 5)

    def test_cartesian_round_trip(self):
        original = Ellipse(10.0, 20.0, 8.0, 4.0, 0.3)
        restored = Ellipse.from_cartesian(*original.cartesian())
        assert restored.cx == pytest.approx(10.0)
        assert restored.cy == pytest.approx(20.0)
        assert restored.semi_major == pytest.approx(8.0)
        assert restored.semi_minor == pytest.approx(4.0)
        assert math.tan(restored.rotation) == pytest.approx(math.tan(0.3))

    def test_from_cartesian_rejects_hyperbola(self):
        with pytest.raises(InvalidArgumentsError):
            Ellipse.from_cartesian(1.0, 0.0, -1.0, 0.0, 0.0, -1.0)

    def test_contains_scalar_and_array(self):
        circle = Ellipse.circle(0.0, 0.0, 10.0)
        assert circle.contains(3.0, 4.0) is True
        assert circle.contains(8.0, 8.0) is False
        inside = circle.contains(np.array([0.0, 20.0]), np.array([0.0, 0.0]))
        np.testing.assert_array_equal(inside, [True, False])

    def test_sample_points_lie_on_boundary(self):
        ellipse = Ellipse(5.0, -3.0, 6.0, 2.0, 0.7)
        for x, y in ellipse.sample_points(12):
            # slightly inside / outside along the ray from the center
            assert ellipse.contains(5.0 + 0.99 * (x - 5.0), -3.0 + 0.99 * (y + 3.0))
            assert not ellipse.contains(5.0 + 1.01 * (x - 5.0), -3.0 + 1.01 * (y + 3.0))

    def test_bounding_box_of_circle(self):
        assert Ellipse.circle(10.0, 20.0, 5.0).bounding_box() == pytest.approx((5.0, 15.0, 15.0, 25.0))

    def test_translate_and_center(self):
        moved = Ellipse.circle(1.0, 2.0, 3.0).translate(4.0, -1.0)
        assert moved.center == (5.0, 1.0)
        assert moved.centered_at(0.0, 0.0).center == (0.0, 0.0)

    def test_rescale_axis_aligned(self):
        scaled = Ellipse(0.0, 0.0, 10.0, 5.0).rescale(2.0, 1.0)
        assert scaled.semi_axes == (20.0, 5.0)

    def test_rescale_quarter_turn_swaps_factors(self):
        scaled = Ellipse(0.0, 0.0, 10.0, 5.0, math.pi / 2).rescale(2.0, 1.0)
        assert scaled.semi_major == pytest.approx(10.0)
        assert scaled.semi_minor == pytest.approx(10.0)

    def test_rescale_rotated_maps_boundary(self):
        ellipse = Ellipse(3.0, 4.0, 10.0, 5.0, 0.4)
        scaled = ellipse.rescale(2.0, 0.5)
        assert scaled.center == pytest.approx((3.0, 4.0))
        for x, y in ellipse.sample_points(8):
            dx, dy = 2.0 * (x - 3.0), 0.5 * (y - 4.0)
            assert scaled.contains(3.0 + 0.99 * dx, 4.0 + 0.99 * dy)
            assert not scaled.contains(3.0 + 1.01 * dx, 4.0 + 1.01 * dy)

    def test_rescale_requires_positive_factors(self):
        with pytest.raises(InvalidArgumentsError):
            Ellipse.circle(0, 0, 1).rescale(0.0, 1.0)


class TestEllipseRegression:

    def test_recovers_exact_ellipse(self):
        truth = Ellipse(50.0, 40.0, 30.0, 20.0, 0.5)
        fitted = EllipseRegression(truth.sample_points(20)).solve()
        assert fitted.cx == pytest.approx(50.0, rel=1e-4)
        assert fitted.cy == pytest.approx(40.0, rel=1e-4)
        assert fitted.semi_major == pytest.approx(30.0, rel=1e-4)
        assert fitted.semi_minor == pytest.approx(20.0, rel=1e-4)

    def test_noisy_circle(self):
        rng = np.random.default_rng(5)
        angles = rng.uniform(0, 2 * np.pi, 200)
        points = [(100 + 50 * math.cos(a) + rng.normal(0, 0.2), 80 + 50 * math.sin(a) + rng.normal(0, 0.2))
                  for a in angles]
        fitted = fit_ellipse(points)
        assert fitted.center == pytest.approx((100.0, 80.0), abs=0.2)
        assert fitted.mean_radius == pytest.approx(50.0, abs=0.2)

    def test_too_few_samples(self):
        with pytest.raises(RegressionError):
            EllipseRegression([(0, 0), (1, 0), (0, 1)]).solve()


class TestPixelShiftRange:

    def test_defaults(self):
        shift_range = PixelShiftRange()
        assert (shift_range.min_shift, shift_range.max_shift, shift_range.step) == (-15.0, 15.0, 0.25)

    def test_invalid_step(self):
        with pytest.raises(InvalidArgumentsError):
            PixelShiftRange(-1.0, 1.0, 0.0)

    def test_empty_range(self):
        with pytest.raises(InvalidArgumentsError):
            PixelShiftRange(2.0, 1.0)

    def test_contains_and_shifts(self):
        shift_range = PixelShiftRange(-1.0, 1.0, 0.5)
        assert 0.5 in shift_range
        assert not shift_range.contains(1.5)
        assert list(shift_range.shifts()) == [-1.0, -0.5, 0.0, 0.5, 1.0]

    def test_compute_from_polynomial(self):
        shift_range = PixelShiftRange.compute(0, 100, 30, lambda x: 10.0 + 0.02 * x)
        # line center between rows 10 and 11.98
        assert shift_range.min_shift == -10.0
        assert shift_range.max_shift == 17.0


class TestEphemeris:

    def test_julian_day_of_j2000(self):
        assert julian_day(datetime(2000, 1, 1, 12)) == pytest.approx(2451545.0)

    def test_solar_parameters_ranges(self):
        params = solar_parameters(datetime(2024, 4, 8, 18))
        assert 1880.0 < params.apparent_size < 1960.0
        assert abs(params.b0) <= 7.25
        assert abs(params.p) <= 26.4
        assert 0.0 <= params.l0 < 360.0
        assert 2280 <= params.carrington_rotation <= 2285
