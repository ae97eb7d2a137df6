from solarmath.constants.constants import (
    MAX_PIXEL_VALUE,
    Backend,
    ImageKind,
    MetadataCategory,
)

__all__ = [
    "MAX_PIXEL_VALUE",
    "Backend",
    "ImageKind",
    "MetadataCategory",
]
