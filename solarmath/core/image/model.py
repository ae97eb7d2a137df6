"""
Image value model.

An image is one of four variants:

- MonoImage: a single float32 channel.
- ColorImage: three float32 channels of identical shape.
- ColorizedImage: a MonoImage plus a deterministic mono-to-RGB converter. The
  mono is the source of truth; the color view is computed on demand.
- FileBackedImage: pixel data persisted in a StorageBackend plus cached
  metadata. It must be materialized with unwrap_to_memory before any pixel
  algorithm runs.

Pixel values are nominally in [0, MAX_PIXEL_VALUE]. Images are treated as
immutable: operations build new images and never write into the arrays of
their inputs.
"""

import logging
import uuid
from dataclasses import dataclass, field
from typing import Callable, Optional, Tuple, Union

import numpy as np

from solarmath.constants.constants import ImageKind
from solarmath.core.exceptions import (
    DimensionMismatchError,
    InvalidArgumentsError,
    UnsupportedImageKindError,
)
from solarmath.core.image.metadata import EMPTY_METADATA, Metadata
from solarmath.io.base import StorageBackend

logger = logging.getLogger(__name__)

Channels = Tuple[np.ndarray, np.ndarray, np.ndarray]
ColorConverter = Callable[[np.ndarray], Channels]


def _as_channel(data, name: str = "data") -> np.ndarray:
    array = np.asarray(data, dtype=np.float32)
    if array.ndim != 2:
        raise InvalidArgumentsError(f"Image {name} must be a 2-D array, got shape {array.shape}")
    return array


@dataclass(frozen=True, eq=False)
class MonoImage:
    """Monochrome image backed by a (height, width) float32 array."""
    data: np.ndarray
    metadata: Metadata = EMPTY_METADATA

    def __post_init__(self):
        object.__setattr__(self, "data", _as_channel(self.data))

    @property
    def kind(self) -> ImageKind:
        return ImageKind.MONO

    @property
    def width(self) -> int:
        return self.data.shape[1]

    @property
    def height(self) -> int:
        return self.data.shape[0]

    def copy(self) -> "MonoImage":
        return MonoImage(self.data.copy(), self.metadata)

    def with_metadata(self, metadata: Metadata) -> "MonoImage":
        return MonoImage(self.data, metadata)

    def unwrap_to_memory(self) -> "MonoImage":
        return self


@dataclass(frozen=True, eq=False)
class ColorImage:
    """RGB image backed by three (height, width) float32 arrays."""
    r: np.ndarray
    g: np.ndarray
    b: np.ndarray
    metadata: Metadata = EMPTY_METADATA

    def __post_init__(self):
        r = _as_channel(self.r, "r")
        g = _as_channel(self.g, "g")
        b = _as_channel(self.b, "b")
        if not (r.shape == g.shape == b.shape):
            raise DimensionMismatchError(
                f"Color channels must share their shape, got {r.shape}, {g.shape}, {b.shape}"
            )
        object.__setattr__(self, "r", r)
        object.__setattr__(self, "g", g)
        object.__setattr__(self, "b", b)

    @property
    def kind(self) -> ImageKind:
        return ImageKind.COLOR

    @property
    def width(self) -> int:
        return self.r.shape[1]

    @property
    def height(self) -> int:
        return self.r.shape[0]

    @property
    def channels(self) -> Channels:
        return self.r, self.g, self.b

    def copy(self) -> "ColorImage":
        return ColorImage(self.r.copy(), self.g.copy(), self.b.copy(), self.metadata)

    def with_metadata(self, metadata: Metadata) -> "ColorImage":
        return ColorImage(self.r, self.g, self.b, metadata)

    def unwrap_to_memory(self) -> "ColorImage":
        return self


@dataclass(frozen=True, eq=False)
class ColorizedImage:
    """Mono image with a deterministic color view."""
    mono: MonoImage
    converter: ColorConverter

    @property
    def kind(self) -> ImageKind:
        return ImageKind.COLORIZED

    @property
    def metadata(self) -> Metadata:
        return self.mono.metadata

    @property
    def width(self) -> int:
        return self.mono.width

    @property
    def height(self) -> int:
        return self.mono.height

    def to_color(self) -> ColorImage:
        r, g, b = self.converter(self.mono.data)
        return ColorImage(r, g, b, self.mono.metadata)

    def with_mono(self, mono: MonoImage) -> "ColorizedImage":
        """Same color conversion over a different mono source."""
        return ColorizedImage(mono, self.converter)

    def copy(self) -> "ColorizedImage":
        return ColorizedImage(self.mono.copy(), self.converter)

    def with_metadata(self, metadata: Metadata) -> "ColorizedImage":
        return ColorizedImage(self.mono.with_metadata(metadata), self.converter)

    def unwrap_to_memory(self) -> "ColorizedImage":
        return self


InMemoryImage = Union[MonoImage, ColorImage, ColorizedImage]


@dataclass(frozen=True, eq=False)
class FileBackedImage:
    """
    Image whose pixels live in a storage backend.

    Only the dimensions and metadata are kept in memory. Each call to
    unwrap_to_memory reads a fresh copy of the pixels, so concurrent
    materialization by independent callers is safe and the persisted data
    is never modified.
    """
    backend: StorageBackend
    key: str
    stored_kind: ImageKind
    width: int
    height: int
    metadata: Metadata = EMPTY_METADATA
    converter: Optional[ColorConverter] = field(default=None, repr=False)

    @property
    def kind(self) -> ImageKind:
        return ImageKind.FILE_BACKED

    @classmethod
    def wrap(cls, image: "Image", backend: StorageBackend) -> "FileBackedImage":
        """
        Persist an in-memory image and return a lazy reference to it.

        Wrapping a FileBackedImage returns it unchanged.
        """
        match image:
            case FileBackedImage():
                return image
            case MonoImage():
                payload, converter = image.data, None
            case ColorImage():
                payload, converter = np.stack(image.channels), None
            case ColorizedImage():
                payload, converter = image.mono.data, image.converter
            case _:
                raise UnsupportedImageKindError(f"Cannot store {type(image).__name__}")
        key = f"image-{uuid.uuid4().hex}"
        backend.save(payload, key)
        logger.debug(f"Wrapped {image.kind.value} image {image.width}x{image.height} as {key}")
        return cls(backend, key, image.kind, image.width, image.height, image.metadata, converter)

    def unwrap_to_memory(self) -> InMemoryImage:
        payload = self.backend.load(self.key)
        match self.stored_kind:
            case ImageKind.MONO:
                return MonoImage(payload, self.metadata)
            case ImageKind.COLOR:
                return ColorImage(payload[0], payload[1], payload[2], self.metadata)
            case ImageKind.COLORIZED:
                return ColorizedImage(MonoImage(payload, self.metadata), self.converter)
        raise UnsupportedImageKindError(f"Unexpected stored image kind {self.stored_kind}")

    def copy(self) -> InMemoryImage:
        return self.unwrap_to_memory()

    def with_metadata(self, metadata: Metadata) -> "FileBackedImage":
        return FileBackedImage(self.backend, self.key, self.stored_kind, self.width, self.height,
                               metadata, self.converter)

    def release(self) -> None:
        """Delete the persisted pixels. The reference is unusable afterwards."""
        self.backend.delete(self.key)


Image = Union[MonoImage, ColorImage, ColorizedImage, FileBackedImage]
IMAGE_TYPES = (MonoImage, ColorImage, ColorizedImage, FileBackedImage)


def is_image(value) -> bool:
    return isinstance(value, IMAGE_TYPES)


def unwrap_to_memory(image: Image) -> InMemoryImage:
    """Materialize an image. No-op for in-memory variants; idempotent."""
    match image:
        case MonoImage() | ColorImage() | ColorizedImage():
            return image
        case FileBackedImage():
            return image.unwrap_to_memory()
    raise UnsupportedImageKindError(f"Not an image: {type(image).__name__}")


def copy_image(image: Image) -> InMemoryImage:
    """Independent in-memory copy: deep-copied arrays, same metadata."""
    match image:
        case MonoImage() | ColorImage() | ColorizedImage():
            return image.copy()
        case FileBackedImage():
            return image.unwrap_to_memory()
    raise UnsupportedImageKindError(f"Not an image: {type(image).__name__}")


def require_mono(image: Image, operation: str) -> MonoImage:
    """
    Return image as a MonoImage or fail.

    Raises:
        UnsupportedImageKindError: If the image is not monochrome.
    """
    image = unwrap_to_memory(image)
    match image:
        case MonoImage():
            return image
        case ColorImage() | ColorizedImage():
            raise UnsupportedImageKindError(
                f"{operation} only supports mono images, got a {image.kind.value} image; "
                f"extract a channel first with mono, red, green or blue"
            )
    raise UnsupportedImageKindError(f"{operation} does not support {type(image).__name__}")


def as_color_channels(image: Image) -> Channels:
    """RGB channels of a color or colorized image."""
    image = unwrap_to_memory(image)
    match image:
        case ColorImage():
            return image.channels
        case ColorizedImage():
            return image.to_color().channels
    raise UnsupportedImageKindError(f"Expected a color image, got a {image.kind.value} image")
