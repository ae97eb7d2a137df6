"""
Metadata merging for images derived from several inputs.

Each category has its own aggregation:

- ELLIPSE: a single distinct ellipse is kept as is; several ellipses are
  replaced by a regression fit through boundary samples of all of them.
- PIXEL_SHIFT: the shift closest to the line center.
- PROCESS_PARAMS: the running mean of the observation dates; the solar
  parameters are recomputed for the averaged date.
- PROPERTIES: union, first input wins on conflicts.
- Any other category: the first non-empty value, in input order.

If the ellipse regression fails the ellipse is left out of the result and a
MetadataMergeWarning is emitted instead of an error.
"""

import logging
import warnings
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Union

from solarmath.constants.constants import ELLIPSE_MERGE_SAMPLES, MetadataCategory
from solarmath.core.exceptions import MetadataMergeWarning, RegressionError
from solarmath.core.geometry.ellipse import Ellipse
from solarmath.core.geometry.ephemeris import solar_parameters
from solarmath.core.geometry.regression import EllipseRegression
from solarmath.core.image.metadata import (
    EMPTY_METADATA,
    Metadata,
    PixelShift,
    ProcessParams,
    Properties,
)

logger = logging.getLogger(__name__)

Merger = Callable[[List[Any], Optional[List[str]]], Any]


def _warn(message: str, warning_sink: Optional[List[str]]) -> None:
    logger.warning(message)
    if warning_sink is not None:
        warning_sink.append(message)
    warnings.warn(message, MetadataMergeWarning, stacklevel=3)


def merge_ellipses(values: List[Ellipse], warning_sink: Optional[List[str]] = None) -> Optional[Ellipse]:
    """Regression fit through ELLIPSE_MERGE_SAMPLES boundary points of every distinct ellipse."""
    distinct: List[Ellipse] = []
    for ellipse in values:
        if ellipse not in distinct:
            distinct.append(ellipse)
    if len(distinct) == 1:
        return distinct[0]
    samples = [p for ellipse in distinct for p in ellipse.sample_points(ELLIPSE_MERGE_SAMPLES)]
    try:
        return EllipseRegression(samples).solve()
    except RegressionError as e:
        _warn(f"Unable to merge {len(distinct)} ellipses, dropping ellipse metadata: {e}", warning_sink)
        return None


def merge_pixel_shifts(values: List[PixelShift], warning_sink: Optional[List[str]] = None) -> PixelShift:
    """The shift with the smallest magnitude; the first one on ties."""
    return min(values, key=lambda s: abs(s.shift))


def average_dates(dates: Iterable[datetime]) -> Optional[datetime]:
    """Running mean of a sequence of datetimes."""
    average: Optional[datetime] = None
    count = 0
    for date in dates:
        count += 1
        if average is None:
            average = date
        else:
            average = average + (date - average) / count
    return average


def merge_process_params(values: List[ProcessParams], warning_sink: Optional[List[str]] = None) -> ProcessParams:
    first = values[0]
    dates = [p.observation_date for p in values if p.observation_date is not None]
    return ProcessParams(
        observation_date=average_dates(dates),
        wavelength_nm=first.wavelength_nm,
        instrument=first.instrument,
    )


def merge_properties(values: List[Properties], warning_sink: Optional[List[str]] = None) -> Properties:
    merged: Dict[str, str] = {}
    for props in values:
        for key, value in props.items():
            merged.setdefault(key, value)
    return Properties(merged)


def _first(values: List[Any], warning_sink: Optional[List[str]] = None) -> Any:
    return values[0]


MERGERS: Dict[MetadataCategory, Merger] = {
    MetadataCategory.ELLIPSE: merge_ellipses,
    MetadataCategory.PIXEL_SHIFT: merge_pixel_shifts,
    MetadataCategory.PROCESS_PARAMS: merge_process_params,
    MetadataCategory.PROPERTIES: merge_properties,
}


def merge_metadata(sources: Sequence[Union[Metadata, Any]],
                   warning_sink: Optional[List[str]] = None) -> Metadata:
    """
    Merge the metadata of several images into one table.

    Args:
        sources: Metadata tables, or images exposing a ``metadata`` attribute,
            in precedence order.
        warning_sink: Optional list receiving the message of every soft failure.

    Returns:
        The merged metadata.
    """
    tables = [s if isinstance(s, Metadata) else s.metadata for s in sources]
    if not tables:
        return EMPTY_METADATA
    if len(tables) == 1:
        return tables[0]

    merged: Dict[MetadataCategory, Any] = {}
    for category in MetadataCategory:
        values = [t[category] for t in tables if category in t]
        if not values:
            continue
        merger = MERGERS.get(category, _first)
        value = merger(values, warning_sink)
        if value is not None:
            merged[category] = value

    params = merged.get(MetadataCategory.PROCESS_PARAMS)
    if params is not None and params.observation_date is not None:
        merged[MetadataCategory.SOLAR_PARAMETERS] = solar_parameters(params.observation_date)
    return Metadata(merged)
