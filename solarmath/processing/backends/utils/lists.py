"""
List handling operations.

These operations work on whole lists of images and never broadcast. They
only read metadata, so lazily-stored images are returned without being
materialized.
"""
from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional

from solarmath.constants.constants import DEFAULT_SORT_ORDER
from solarmath.core.exceptions import InvalidArgumentsError
from solarmath.core.geometry.pixel_shift import PixelShiftRange
from solarmath.processing.func_registry import image_function
from solarmath.processing.image_ops import as_int

logger = logging.getLogger(__name__)

DESCENDING_SUFFIX = " desc"


def _as_list(value) -> List[Any]:
    return list(value) if isinstance(value, (list, tuple)) else [value]


def _date_key(image) -> Optional[Any]:
    return image.metadata.observation_date()


def _shift_key(image) -> Optional[Any]:
    shift = image.metadata.pixel_shift
    return None if shift is None else shift.shift


def _file_name_key(image) -> Optional[Any]:
    source = image.metadata.source_info
    return None if source is None else source.file_name


SORT_KEYS: Dict[str, Callable[[Any], Optional[Any]]] = {
    "date": _date_key,
    "shift": _shift_key,
    "file_name": _file_name_key,
}


@image_function(aggregate=True)
def sort(images, order=DEFAULT_SORT_ORDER, *, context):
    """
    Sort images by a metadata key.

    Args:
        images: List of images.
        order: One of date, shift or file_name, optionally followed by " desc".
        context: Processing context.

    Returns:
        A new list. Images without the key come last, in their input order.
    """
    spec = str(order).strip().lower()
    descending = spec.endswith(DESCENDING_SUFFIX)
    if descending:
        spec = spec[:-len(DESCENDING_SUFFIX)].strip()
    key = SORT_KEYS.get(spec)
    if key is None:
        raise InvalidArgumentsError(
            f"sort: unknown order '{order}', expected one of {', '.join(SORT_KEYS)} (optionally followed by ' desc')"
        )
    keyed = [(key(image), image) for image in _as_list(images)]
    present = [pair for pair in keyed if pair[0] is not None]
    missing = [image for value, image in keyed if value is None]
    present.sort(key=lambda pair: pair[0], reverse=descending)
    return [image for _, image in present] + missing


@image_function(aggregate=True)
def get_at(images, index, *, context):
    """Element of a list at the given index."""
    images = _as_list(images)
    position = as_int(index, "index", "get_at")
    if not 0 <= position < len(images):
        raise InvalidArgumentsError(f"get_at: index {position} out of range for a list of {len(images)} images")
    return images[position]


@image_function(aggregate=True)
def concat(*lists, context):
    """Concatenate lists of images into a single list."""
    result: List[Any] = []
    for value in lists:
        result.extend(_as_list(value))
    return result


@image_function(aggregate=True)
def shift_filter(images, *, context):
    """Keep the images whose pixel shift lies in the context pixel-shift range."""
    shift_range = context.pixel_shift_range or PixelShiftRange()
    kept = []
    for image in _as_list(images):
        shift = image.metadata.pixel_shift
        if shift is not None and shift_range.contains(shift.shift):
            kept.append(image)
    logger.debug(f"shift_filter: kept {len(kept)} images in [{shift_range.min_shift}, {shift_range.max_shift}]")
    return kept
