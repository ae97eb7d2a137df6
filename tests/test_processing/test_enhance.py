"""Tests for sharpening, deconvolution, CLAHE, banding and background operations."""
import numpy as np
import pytest

from solarmath.constants.constants import MAX_PIXEL_VALUE, MetadataCategory
from solarmath.core.config import DeconvolutionConfig, SolarMathConfig
from solarmath.core.context.processing_context import ProcessingContext
from solarmath.core.exceptions import (
    InvalidArgumentsError,
    MissingPrerequisiteError,
    UnsupportedImageKindError,
)
from solarmath.core.geometry import Ellipse
from solarmath.core.image.metadata import Metadata
from solarmath.core.image.model import ColorImage, ColorizedImage, MonoImage
from solarmath.processing import invoke
from solarmath.processing.backends.enhance.background import polynomial_terms
from solarmath.processing.backends.enhance.convolution import gaussian_psf, sharpen_kernel


def make_disk_image(ellipse, inside=40000.0, background=None, size=64):
    """Bright disk over a background given as a function of (xs, ys) or a constant."""
    ys, xs = np.indices((size, size), dtype=np.float64)
    if background is None:
        background = 1000.0
    bg = background(xs, ys) if callable(background) else np.full((size, size), float(background))
    data = np.where(ellipse.contains(xs, ys), inside, bg)
    return MonoImage(data), ellipse.contains(xs, ys)


class TestKernels:

    def test_sharpen_kernel_sums_to_one(self):
        kernel = sharpen_kernel(5)
        assert kernel.sum() == pytest.approx(1.0)
        assert kernel[2, 2] == 25.0

    def test_gaussian_psf(self):
        psf = gaussian_psf(2.5, 2.5)
        assert psf.shape == (6, 6)
        assert psf.sum() == pytest.approx(1.0)


class TestConvolution:

    def test_constant_image_is_unchanged(self, context):
        flat = MonoImage(np.full((20, 20), 1000.0))
        np.testing.assert_allclose(invoke("sharpen", [flat, 5], context).data, 1000.0, rtol=1e-6)
        np.testing.assert_allclose(invoke("blur", [flat], context).data, 1000.0, rtol=1e-6)

    def test_blur_smooths_and_sharpen_amplifies(self, random_image, context):
        blurred = invoke("blur", [random_image], context)
        sharpened = invoke("sharpen", [blurred], context)
        assert blurred.data.std() < random_image.data.std()
        assert sharpened.data.std() > blurred.data.std()

    def test_result_stays_in_pixel_range(self, random_image, context):
        sharpened = invoke("sharpen", [random_image, 7], context).data
        assert sharpened.dtype == np.float32
        assert sharpened.min() >= 0.0
        assert sharpened.max() <= MAX_PIXEL_VALUE

    @pytest.mark.parametrize("kernel", [1, 4, 2.5, "big"])
    def test_invalid_kernel(self, gradient_image, context, kernel):
        with pytest.raises(InvalidArgumentsError):
            invoke("sharpen", [gradient_image, kernel], context)

    def test_unsharp_mask_zero_strength_is_identity(self, random_image, context):
        result = invoke("unsharp_mask", [random_image, 0.0], context)
        np.testing.assert_allclose(result.data, random_image.data, rtol=1e-6)

    def test_metadata_is_kept(self, context):
        metadata = Metadata({MetadataCategory.ELLIPSE: Ellipse.circle(5, 5, 3)})
        image = MonoImage(np.ones((10, 10)), metadata)
        assert invoke("blur", [image], context).metadata is metadata


class TestDeconvolution:

    def test_zero_iterations_is_identity(self, random_image, context):
        result = invoke("rl_decon", [random_image, 2.5, 2.5, 0], context)
        np.testing.assert_array_equal(result.data, random_image.data)

    def test_constant_image_is_a_fixed_point(self, context):
        flat = MonoImage(np.full((24, 24), 5000.0))
        np.testing.assert_allclose(invoke("rl_decon", [flat], context).data, 5000.0, rtol=1e-4)

    def test_defaults_come_from_config(self, random_image):
        config = SolarMathConfig(num_workers=1, deconvolution=DeconvolutionConfig(iterations=0))
        with ProcessingContext(config=config) as context:
            result = invoke("rl_decon", [random_image], context)
        np.testing.assert_array_equal(result.data, random_image.data)

    def test_invalid_radius(self, random_image, context):
        with pytest.raises(InvalidArgumentsError):
            invoke("rl_decon", [random_image, 0.0], context)

    def test_color_and_colorized_keep_their_kind(self, color_image, gradient_image, context):
        assert isinstance(invoke("rl_decon", [color_image], context), ColorImage)
        colorized = invoke("colorize", [gradient_image, "H-alpha"], context)
        result = invoke("rl_decon", [colorized], context)
        assert isinstance(result, ColorizedImage)
        assert result.converter == colorized.converter


class TestClahe:

    def test_tile_area_smaller_than_bins(self, context):
        small = MonoImage(np.arange(16, dtype=np.float32).reshape(4, 4) * 1000)
        with pytest.raises(InvalidArgumentsError, match="tile area / bins must be >= 1"):
            invoke("clahe", [small, 8, 256, 3.0], context)

    @pytest.mark.parametrize("args", [(0, 16), (8, 1), (8, 16, 0.0)])
    def test_invalid_parameters(self, gradient_image, context, args):
        with pytest.raises(InvalidArgumentsError):
            invoke("clahe", [gradient_image, *args], context)

    def test_constant_image_is_unchanged(self, context):
        flat = MonoImage(np.full((32, 32), 1234.0))
        np.testing.assert_array_equal(invoke("clahe", [flat, 8, 64], context).data, flat.data)

    def test_low_contrast_is_expanded(self, context):
        data = np.tile(np.linspace(1000.0, 2000.0, 64), (64, 1))
        result = invoke("clahe", [MonoImage(data), 16, 64], context).data
        assert result.shape == (64, 64)
        assert result.dtype == np.float32
        assert 0.0 <= result.min() and result.max() <= MAX_PIXEL_VALUE
        assert result.max() - result.min() > 30000.0

    def test_non_multiple_tile_size(self, random_image, context):
        result = invoke("clahe", [random_image, 16, 64], context)
        assert result.data.shape == random_image.data.shape

    def test_color_image(self, color_image, context):
        result = invoke("clahe", [color_image, 8, 64], context)
        assert isinstance(result, ColorImage)
        assert result.width == color_image.width


class TestBanding:

    def setup_method(self):
        data = np.full((64, 64), 20000.0)
        data[30] = 21000.0
        self.banded = MonoImage(data)

    def test_bright_row_is_corrected(self, context):
        result = invoke("fix_banding", [self.banded, 24, 1], context).data
        assert abs(float(result[30].mean()) - 20000.0) < 1.0
        np.testing.assert_allclose(result[10], 20000.0, rtol=1e-6)

    def test_correction_is_bounded(self, context):
        data = np.full((64, 64), 20000.0)
        data[30] = 30000.0
        result = invoke("fix_banding", [MonoImage(data), 24, 1], context).data
        assert float(result[30].mean()) == pytest.approx(30000.0 * 0.95, rel=1e-5)

    def test_smooth_ramp_without_disk_is_unchanged(self, context):
        ramp = np.repeat(np.linspace(10000.0, 30000.0, 64)[:, None], 32, axis=1)
        image = MonoImage(ramp)
        result = invoke("fix_banding", [image, 24, 1], context).data
        # rows whose band window is symmetric
        np.testing.assert_allclose(result[12:52], image.data[12:52], rtol=1e-6)

    def test_pixels_outside_the_disk_are_untouched(self, context):
        ellipse = Ellipse.circle(32.0, 32.0, 15.0)
        result = invoke("fix_banding", [self.banded, 24, 2, ellipse], context).data
        ys, xs = np.indices((64, 64))
        outside = ~ellipse.contains(xs.astype(float), ys.astype(float))
        np.testing.assert_array_equal(result[outside], self.banded.data[outside])
        assert float(result[30, 32]) < 21000.0

    def test_zero_passes_is_identity(self, context):
        result = invoke("fix_banding", [self.banded, 24, 0], context)
        np.testing.assert_array_equal(result.data, self.banded.data)

    def test_color_is_rejected(self, color_image, context):
        with pytest.raises(UnsupportedImageKindError):
            invoke("fix_banding", [color_image], context)


class TestBackground:

    def test_polynomial_terms(self):
        assert polynomial_terms(1) == [(0, 0), (1, 0), (0, 1)]
        assert len(polynomial_terms(2)) == 6

    def test_remove_bg_darkens_outside_only(self, disk_ellipse, context):
        image, inside = make_disk_image(disk_ellipse)
        result = invoke("remove_bg", [image, 0.9, disk_ellipse], context).data
        np.testing.assert_array_equal(result[inside], image.data[inside])
        assert np.all(result[~inside] <= image.data[~inside])
        assert result[0, 0] < image.data[0, 0]
        assert result.min() >= 0.0

    def test_remove_bg_zero_tolerance(self, disk_ellipse, context):
        image, _ = make_disk_image(disk_ellipse)
        result = invoke("remove_bg", [image, 0.0, disk_ellipse], context)
        np.testing.assert_array_equal(result.data, image.data)

    def test_remove_bg_uses_context_ellipse(self, disk_ellipse, context):
        image, _ = make_disk_image(disk_ellipse)
        with pytest.raises(MissingPrerequisiteError, match="remove_bg requires a disk ellipse"):
            invoke("remove_bg", [image], context)
        context.ellipse = disk_ellipse
        assert invoke("remove_bg", [image], context).data[0, 0] < image.data[0, 0]

    def test_neutralize_bg_removes_gradient(self, disk_ellipse, context):
        image, inside = make_disk_image(disk_ellipse, background=lambda xs, ys: 1000.0 + 20.0 * xs)
        result = invoke("neutralize_bg", [image, 1, disk_ellipse], context).data
        assert np.abs(result[~inside]).max() < 1.0
        assert result[inside].min() > 30000.0

    def test_bg_model_of_constant_background(self, disk_ellipse, context):
        image, _ = make_disk_image(disk_ellipse, inside=30000.0, background=500.0)
        model = invoke("bg_model", [image, 2, 2.5, disk_ellipse], context).data
        np.testing.assert_allclose(model, 500.0, atol=0.05)

    def test_bg_model_without_samples_returns_input(self, disk_ellipse, context):
        image, _ = make_disk_image(disk_ellipse)
        huge = Ellipse.circle(32.0, 32.0, 200.0)
        result = invoke("bg_model", [image, 2, 2.5, huge], context)
        np.testing.assert_array_equal(result.data, image.data)

    def test_bg_model_order_range(self, disk_ellipse, context):
        image, _ = make_disk_image(disk_ellipse)
        with pytest.raises(InvalidArgumentsError):
            invoke("bg_model", [image, 5, 2.5, disk_ellipse], context)
