"""Image value model and metadata side-table."""

from solarmath.core.image.metadata import (
    EMPTY_METADATA,
    Metadata,
    PixelShift,
    ProcessParams,
    Properties,
    SolarParameters,
    SourceInfo,
)
from solarmath.core.image.model import (
    ColorImage,
    ColorizedImage,
    FileBackedImage,
    Image,
    MonoImage,
    copy_image,
    is_image,
    require_mono,
    unwrap_to_memory,
)

__all__ = [
    "EMPTY_METADATA",
    "ColorImage",
    "ColorizedImage",
    "FileBackedImage",
    "Image",
    "Metadata",
    "MonoImage",
    "PixelShift",
    "ProcessParams",
    "Properties",
    "SolarParameters",
    "SourceInfo",
    "copy_image",
    "is_image",
    "require_mono",
    "unwrap_to_memory",
]
