"""
Image metadata side-table.

Metadata maps a MetadataCategory to at most one immutable value. The mapping
itself is immutable: every change returns a new Metadata instance, so a
metadata table can be shared freely between images and threads.
"""

from dataclasses import dataclass
from datetime import datetime
from types import MappingProxyType
from typing import Any, Dict, Iterator, Mapping, Optional

from solarmath.constants.constants import MetadataCategory
from solarmath.core.exceptions import InvalidArgumentsError
from solarmath.core.geometry.ellipse import Ellipse


@dataclass(frozen=True)
class PixelShift:
    """Shift, in pixels, of the row the image was reconstructed from."""
    shift: float


@dataclass(frozen=True)
class SourceInfo:
    """Provenance of an image."""
    file_name: Optional[str] = None
    parent_dir: Optional[str] = None
    date_time: Optional[datetime] = None


@dataclass(frozen=True)
class ProcessParams:
    """Acquisition parameters relevant to the image math."""
    observation_date: Optional[datetime] = None
    wavelength_nm: Optional[float] = None
    instrument: Optional[str] = None


@dataclass(frozen=True)
class SolarParameters:
    """Solar ephemeris at the observation date (degrees, arcseconds)."""
    carrington_rotation: int
    b0: float
    l0: float
    p: float
    apparent_size: float


class Properties(Mapping[str, str]):
    """Immutable string-to-string properties."""

    def __init__(self, values: Optional[Mapping[str, str]] = None):
        self._values = MappingProxyType(dict(values or {}))

    def __getitem__(self, key: str) -> str:
        return self._values[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __eq__(self, other):
        if isinstance(other, Properties):
            return dict(self._values) == dict(other._values)
        return NotImplemented

    def __hash__(self):
        return hash(frozenset(self._values.items()))

    def __repr__(self):
        return f"Properties({dict(self._values)!r})"


_EXPECTED_TYPES = {
    MetadataCategory.ELLIPSE: Ellipse,
    MetadataCategory.PIXEL_SHIFT: PixelShift,
    MetadataCategory.SOURCE_INFO: SourceInfo,
    MetadataCategory.PROCESS_PARAMS: ProcessParams,
    MetadataCategory.SOLAR_PARAMETERS: SolarParameters,
    MetadataCategory.PROPERTIES: Properties,
}


class Metadata(Mapping[MetadataCategory, Any]):
    """
    Immutable mapping from metadata category to value.

    Values are checked against the type expected for their category.
    """

    __slots__ = ("_values",)

    def __init__(self, values: Optional[Mapping[MetadataCategory, Any]] = None):
        checked: Dict[MetadataCategory, Any] = {}
        for category, value in (values or {}).items():
            if value is None:
                continue
            checked[category] = _check(category, value)
        object.__setattr__(self, "_values", MappingProxyType(checked))

    def __setattr__(self, name, value):
        raise AttributeError("Metadata is immutable")

    def __getitem__(self, category: MetadataCategory) -> Any:
        return self._values[category]

    def __iter__(self) -> Iterator[MetadataCategory]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __eq__(self, other):
        if isinstance(other, Metadata):
            return dict(self._values) == dict(other._values)
        return NotImplemented

    def __hash__(self):
        return hash(frozenset(self._values.items()))

    def __repr__(self):
        inner = ", ".join(f"{k.value}={v!r}" for k, v in self._values.items())
        return f"Metadata({inner})"

    def with_value(self, category: MetadataCategory, value: Any) -> "Metadata":
        """Copy of this mapping with category set to value (or removed if value is None)."""
        values = dict(self._values)
        if value is None:
            values.pop(category, None)
        else:
            values[category] = value
        return Metadata(values)

    def without(self, category: MetadataCategory) -> "Metadata":
        return self.with_value(category, None)

    def updated(self, other: Mapping[MetadataCategory, Any]) -> "Metadata":
        """Copy of this mapping with every entry of other applied on top."""
        values = dict(self._values)
        values.update(other)
        return Metadata(values)

    # Typed accessors

    @property
    def ellipse(self) -> Optional[Ellipse]:
        return self._values.get(MetadataCategory.ELLIPSE)

    @property
    def pixel_shift(self) -> Optional[PixelShift]:
        return self._values.get(MetadataCategory.PIXEL_SHIFT)

    @property
    def source_info(self) -> Optional[SourceInfo]:
        return self._values.get(MetadataCategory.SOURCE_INFO)

    @property
    def process_params(self) -> Optional[ProcessParams]:
        return self._values.get(MetadataCategory.PROCESS_PARAMS)

    @property
    def solar_parameters(self) -> Optional[SolarParameters]:
        return self._values.get(MetadataCategory.SOLAR_PARAMETERS)

    @property
    def properties(self) -> Properties:
        return self._values.get(MetadataCategory.PROPERTIES, Properties())

    def observation_date(self) -> Optional[datetime]:
        """Acquisition date, falling back to the source file date."""
        params = self.process_params
        if params is not None and params.observation_date is not None:
            return params.observation_date
        source = self.source_info
        if source is not None:
            return source.date_time
        return None


EMPTY_METADATA = Metadata()


def _check(category: MetadataCategory, value: Any) -> Any:
    if not isinstance(category, MetadataCategory):
        raise InvalidArgumentsError(f"Unknown metadata category: {category!r}")
    expected = _EXPECTED_TYPES[category]
    if category is MetadataCategory.PROPERTIES and isinstance(value, Mapping) \
            and not isinstance(value, Properties):
        return Properties(value)
    if not isinstance(value, expected):
        raise InvalidArgumentsError(
            f"Metadata category '{category.value}' expects {expected.__name__}, got {type(value).__name__}"
        )
    return value
