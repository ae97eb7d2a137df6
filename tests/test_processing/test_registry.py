"""Tests for the operation registry, argument binding and broadcasting."""
import re

import numpy as np
import pytest

from solarmath.constants.constants import DEFAULT_KERNEL_SIZE, DEFAULT_SORT_ORDER, DEFAULT_UNSHARP_STRENGTH
from solarmath.core.exceptions import (
    InvalidArgumentsError,
    UnknownFunctionError,
    UnsupportedImageKindError,
)
from solarmath.core.image.model import FileBackedImage, MonoImage
from solarmath.core.progress import RecordingProgressSink
from solarmath.io import MemoryStorageBackend
from solarmath.processing import ImageMath, get_function, image_function, invoke, list_functions
from solarmath.processing.func_registry import register_function

EXPECTED_OPERATIONS = {
    "blend", "blue", "blur", "bg_model", "clahe", "colorize", "concat", "disk_fill", "disk_mask",
    "fix_banding", "get_at", "green", "img_avg", "img_max", "img_median", "img_min", "mono",
    "neutralize_bg", "radius_rescale", "red", "remove_bg", "rescale_abs", "rescale_rel",
    "rl_decon", "sharpen", "shift_filter", "side_by_side", "sort", "top_bottom",
    "unsharp_mask", "video_datetime", "weighted_avg",
}


class TestRegistry:

    def test_catalog_is_complete(self):
        assert EXPECTED_OPERATIONS <= set(list_functions())

    def test_unknown_function(self):
        with pytest.raises(UnknownFunctionError, match="Unknown function 'nope'"):
            get_function("nope")

    def test_lookup_ignores_case(self):
        assert get_function("SHARPEN").name == "sharpen"

    def test_spec_is_derived_from_signature(self):
        spec = get_function("clahe")
        assert [p.name for p in spec.params] == ["img", "tile_size", "bins", "clip"]
        assert (spec.min_args, spec.max_args) == (1, 4)
        assert spec.broadcast == ("img",)
        assert not spec.aggregate
        assert get_function("concat").variadic == "lists"
        assert get_function("concat").max_args is None

    def test_signature_defaults_use_library_constants(self):
        def defaults(name):
            return {p.name: p.default for p in get_function(name).params if not p.required}
        assert defaults("sharpen") == {"kernel": DEFAULT_KERNEL_SIZE}
        assert defaults("unsharp_mask") == {"strength": DEFAULT_UNSHARP_STRENGTH, "kernel": DEFAULT_KERNEL_SIZE}
        assert defaults("sort") == {"order": DEFAULT_SORT_ORDER}

    def test_operation_needs_context_parameter(self):
        with pytest.raises(TypeError):
            @image_function()
            def no_context(img):
                return img

    def test_broadcast_target_must_exist(self):
        with pytest.raises(TypeError):
            @image_function(broadcast=("image",))
            def wrong_target(img, *, context):
                return img

    def test_duplicate_registration_is_rejected(self):
        get_function("sharpen")

        @image_function(name="sharpen")
        def impostor(img, *, context):
            return img

        with pytest.raises(ValueError, match="already registered"):
            register_function(impostor.__image_function__)
        assert get_function("sharpen").func is not impostor


class TestArgumentBinding:

    def test_too_many_positional_arguments(self, gradient_image, context):
        message = "Function 'sharpen' expects between 1 and 2 arguments: [img, kernel (optional)]"
        with pytest.raises(InvalidArgumentsError, match=re.escape(message)):
            invoke("sharpen", [gradient_image, 3, 4], context)

    def test_missing_positional_argument(self, context):
        with pytest.raises(InvalidArgumentsError, match=re.escape("Function 'red' expects 1 arguments: [img]")):
            invoke("red", [], context)

    def test_unknown_named_argument(self, gradient_image, context):
        with pytest.raises(InvalidArgumentsError, match="does not accept arguments: size"):
            invoke("blur", {"img": gradient_image, "size": 3}, context)

    def test_missing_named_argument(self, context):
        with pytest.raises(InvalidArgumentsError, match="is missing required arguments: img"):
            invoke("blur", {"kernel": 3}, context)

    def test_named_and_positional_are_equivalent(self, gradient_image, context):
        positional = invoke("blur", [gradient_image, 5], context)
        named = invoke("blur", {"kernel": 5, "img": gradient_image}, context)
        np.testing.assert_array_equal(positional.data, named.data)

    def test_arguments_must_be_list_or_mapping(self, context):
        with pytest.raises(InvalidArgumentsError):
            invoke("blur", 3, context)


class TestBroadcasting:

    def setup_method(self):
        rng = np.random.default_rng(3)
        self.images = [MonoImage(rng.uniform(0, 50000, size=(16, 16))) for _ in range(5)]

    def test_list_result_matches_element_wise_calls(self, context):
        results = invoke("sharpen", [self.images], context)
        assert isinstance(results, list)
        assert len(results) == len(self.images)
        for image, result in zip(self.images, results):
            expected = invoke("sharpen", [image], context)
            np.testing.assert_array_equal(result.data, expected.data)

    def test_empty_list(self, context):
        assert invoke("blur", [[]], context) == []

    def test_parallel_lists_are_zipped(self, context):
        left = self.images[:2]
        right = self.images[2:4]
        results = invoke("side_by_side", [left, right], context)
        assert [r.width for r in results] == [32, 32]
        np.testing.assert_array_equal(results[1].data[:, 16:], right[1].data)

    def test_list_sizes_must_match(self, context):
        with pytest.raises(InvalidArgumentsError, match="same size"):
            invoke("side_by_side", [self.images[:2], self.images[:3]], context)

    def test_scalar_is_reused_for_every_element(self, context):
        results = invoke("side_by_side", [self.images[:3], self.images[4]], context)
        assert len(results) == 3

    def test_lowest_index_error_is_raised(self, color_image, context):
        mixed = [self.images[0], color_image, self.images[1], color_image]
        with pytest.raises(UnsupportedImageKindError, match="got a color image"):
            invoke("fix_banding", [mixed], context)

    def test_nested_lists(self, context):
        nested = [self.images[:2], [self.images[2]]]
        results = invoke("blur", [nested], context)
        assert [len(group) for group in results] == [2, 1]
        assert isinstance(results[0][1], MonoImage)

    def test_file_backed_images_are_materialized(self, context):
        stored = FileBackedImage.wrap(self.images[0], MemoryStorageBackend())
        result = invoke("blur", [stored], context)
        assert isinstance(result, MonoImage)
        np.testing.assert_array_equal(result.data, invoke("blur", [self.images[0]], context).data)

    def test_aggregate_receives_whole_list(self, context):
        assert invoke("img_avg", [self.images], context) == pytest.approx(
            [float(np.mean(i.data, dtype=np.float64)) for i in self.images])

    def test_progress_is_reported(self, context):
        sink = RecordingProgressSink()
        context.progress = sink
        invoke("blur", [self.images], context)
        events = sink.events
        assert events
        assert {e.label for e in events} == {"ImageMath: blur"}
        assert events[-1].fraction == 1.0

    def test_temporary_context(self):
        assert isinstance(invoke("blur", [self.images[0]]), MonoImage)


class TestImageMath:

    def setup_method(self):
        self.math = ImageMath()

    def teardown_method(self):
        self.math.close()

    def test_operations_are_methods(self, gradient_image):
        result = self.math.blur(gradient_image, kernel=5)
        expected = invoke("blur", [gradient_image, 5], self.math.context)
        np.testing.assert_array_equal(result.data, expected.data)

    def test_positional_only_call(self, gradient_image):
        assert isinstance(self.math.sharpen(gradient_image), MonoImage)

    def test_variadic_call(self, gradient_image, random_image):
        assert self.math.call("concat", [gradient_image], [random_image]) == [gradient_image, random_image]

    def test_duplicate_values(self, gradient_image):
        with pytest.raises(InvalidArgumentsError, match="multiple values for: kernel"):
            self.math.blur(gradient_image, 3, kernel=5)

    def test_unknown_operation_is_attribute_error(self):
        assert not hasattr(self.math, "nope")
        with pytest.raises(AttributeError):
            self.math.nope
