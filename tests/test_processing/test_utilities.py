"""Tests for channel extraction, list handling and statistics."""
from datetime import datetime

import numpy as np
import pytest

from solarmath.constants.constants import MetadataCategory
from solarmath.core.exceptions import InvalidArgumentsError, UnsupportedImageKindError
from solarmath.core.geometry import PixelShiftRange
from solarmath.core.image.metadata import Metadata, PixelShift, ProcessParams, SourceInfo
from solarmath.core.image.model import ColorImage, FileBackedImage, MonoImage
from solarmath.io import MemoryStorageBackend
from solarmath.processing import invoke


def tagged(value, date=None, shift=None, file_name=None):
    """Constant 2x2 mono image carrying the given metadata."""
    metadata = Metadata({
        MetadataCategory.PROCESS_PARAMS: ProcessParams(date) if date else None,
        MetadataCategory.PIXEL_SHIFT: PixelShift(shift) if shift is not None else None,
        MetadataCategory.SOURCE_INFO: SourceInfo(file_name) if file_name else None,
    })
    return MonoImage(np.full((2, 2), float(value)), metadata)


class TestChannels:

    def test_color_channels(self, color_image, context):
        for index, name in enumerate(("red", "green", "blue")):
            channel = invoke(name, [color_image], context)
            assert isinstance(channel, MonoImage)
            np.testing.assert_array_equal(channel.data, color_image.channels[index])

    def test_channel_is_a_copy(self, color_image, context):
        channel = invoke("red", [color_image], context)
        channel.data[0, 0] = -1.0
        assert color_image.r[0, 0] != -1.0

    def test_channel_of_mono_is_rejected(self, gradient_image, context):
        with pytest.raises(UnsupportedImageKindError, match="requires a color image"):
            invoke("green", [gradient_image], context)

    def test_channel_of_colorized(self, gradient_image, context):
        colorized = invoke("colorize", [gradient_image, "H-alpha"], context)
        np.testing.assert_array_equal(invoke("red", [colorized], context).data, colorized.to_color().r)

    def test_mono_of_color_is_channel_mean(self, color_image, context):
        result = invoke("mono", [color_image], context)
        expected = (color_image.r.astype(np.float64) + color_image.g + color_image.b) / 3
        np.testing.assert_allclose(result.data, expected, rtol=1e-5)

    def test_mono_of_mono_is_a_copy(self, gradient_image, context):
        result = invoke("mono", [gradient_image], context)
        assert result is not gradient_image
        np.testing.assert_array_equal(result.data, gradient_image.data)


class TestLists:

    def setup_method(self):
        self.early = tagged(1, date=datetime(2024, 4, 8, 9), shift=2.0, file_name="b.ser")
        self.late = tagged(2, date=datetime(2024, 4, 8, 11), shift=-1.0, file_name="a.ser")
        self.bare = tagged(3)

    def test_sort_by_date(self, context):
        assert invoke("sort", [[self.late, self.bare, self.early]], context) == [self.early, self.late, self.bare]

    def test_sort_descending(self, context):
        result = invoke("sort", [[self.early, self.bare, self.late], "date desc"], context)
        assert result == [self.late, self.early, self.bare]

    def test_sort_by_shift_and_file_name(self, context):
        images = [self.early, self.late]
        assert invoke("sort", [images, "shift"], context) == [self.late, self.early]
        assert invoke("sort", [images, "file_name"], context) == [self.late, self.early]

    def test_sort_unknown_key(self, context):
        with pytest.raises(InvalidArgumentsError, match="unknown order 'size'"):
            invoke("sort", [[self.early], "size"], context)

    def test_sort_keeps_file_backed_images_lazy(self, context):
        stored = FileBackedImage.wrap(self.late, MemoryStorageBackend())
        result = invoke("sort", [[stored, self.early]], context)
        assert result == [self.early, stored]

    def test_get_at(self, context):
        images = [self.early, self.late, self.bare]
        assert invoke("get_at", [images, 1], context) is self.late
        assert invoke("get_at", [images, 2.0], context) is self.bare

    @pytest.mark.parametrize("index", [3, -1, 1.5])
    def test_get_at_out_of_range(self, context, index):
        with pytest.raises(InvalidArgumentsError):
            invoke("get_at", [[self.early, self.late, self.bare], index], context)

    def test_concat(self, context):
        result = invoke("concat", [[self.early, self.late], self.bare, [self.late]], context)
        assert result == [self.early, self.late, self.bare, self.late]
        assert invoke("concat", [], context) == []

    def test_shift_filter_uses_context_range(self, context):
        context.pixel_shift_range = PixelShiftRange(-1.0, 1.0, 0.5)
        assert invoke("shift_filter", [[self.early, self.late, self.bare]], context) == [self.late]

    def test_shift_filter_default_range(self, context):
        images = [tagged(0, shift=10.0), tagged(0, shift=20.0)]
        assert invoke("shift_filter", [images], context) == images[:1]


class TestStatistics:

    def setup_method(self):
        self.images = [MonoImage(np.array([[1.0, 2.0], [3.0, 10.0]])), MonoImage(np.full((2, 2), 5.0))]

    def test_single_image_gives_a_number(self, context):
        assert invoke("img_avg", [self.images[0]], context) == 4.0
        assert invoke("img_median", [self.images[0]], context) == 2.5
        assert invoke("img_min", [self.images[0]], context) == 1.0
        assert invoke("img_max", [self.images[0]], context) == 10.0

    def test_list_of_one_gives_a_number(self, context):
        assert invoke("img_max", [self.images[:1]], context) == 10.0

    def test_list_gives_a_list(self, context):
        assert invoke("img_avg", [self.images], context) == [4.0, 5.0]

    def test_empty_list(self, context):
        with pytest.raises(InvalidArgumentsError):
            invoke("img_min", [[]], context)

    def test_color_uses_every_channel(self, context):
        color = ColorImage(np.zeros((2, 2)), np.full((2, 2), 3.0), np.full((2, 2), 6.0))
        assert invoke("img_avg", [color], context) == 3.0

    def test_video_datetime(self, context):
        image = tagged(0, date=datetime(2024, 4, 8, 18, 30))
        assert invoke("video_datetime", [image], context) == "2024-04-08 18:30:00"
        assert invoke("video_datetime", [image, "%H:%M"], context) == "18:30"
        assert invoke("video_datetime", [tagged(0)], context) == ""

    def test_video_datetime_broadcasts(self, context):
        images = [tagged(0, date=datetime(2024, 1, 1)), tagged(0)]
        assert invoke("video_datetime", [images, "%Y"], context) == ["2024", ""]
