"""
Low-precision solar ephemeris.

Computes the physical observation parameters of the Sun (P, B0, L0, Carrington
rotation and apparent diameter) for a date, following Meeus, Astronomical
Algorithms, chapters 25 and 29. Accuracy is about 0.01 degree, plenty for
orienting and labelling images.
"""

import math
from datetime import datetime, timezone

from solarmath.core.image.metadata import SolarParameters

_J2000 = 2451545.0
_UNIX_EPOCH_JD = 2440587.5


def julian_day(date: datetime) -> float:
    """Julian day of a datetime; naive datetimes are taken as UTC."""
    if date.tzinfo is None:
        date = date.replace(tzinfo=timezone.utc)
    return _UNIX_EPOCH_JD + date.timestamp() / 86400.0


def solar_parameters(date: datetime) -> SolarParameters:
    """
    Solar parameters for the given observation date.

    Args:
        date: Observation date; naive datetimes are interpreted as UTC.

    Returns:
        SolarParameters with angles in degrees and the apparent diameter in arcseconds.
    """
    jd = julian_day(date)
    t = (jd - _J2000) / 36525.0

    # Sun's apparent longitude
    l0 = 280.46646 + 36000.76983 * t + 0.0003032 * t * t
    m = math.radians(357.52911 + 35999.05029 * t - 0.0001537 * t * t)
    center = ((1.914602 - 0.004817 * t - 0.000014 * t * t) * math.sin(m)
              + (0.019993 - 0.000101 * t) * math.sin(2 * m)
              + 0.000289 * math.sin(3 * m))
    true_longitude = l0 + center
    omega = math.radians(125.04 - 1934.136 * t)
    apparent_longitude = math.radians(true_longitude - 0.00569 - 0.00478 * math.sin(omega))
    obliquity = math.radians(23.439291 - 0.0130042 * t + 0.00256 * math.cos(omega))

    # Sun's distance in AU
    eccentricity = 0.016708634 - 0.000042037 * t
    true_anomaly = m + math.radians(center)
    distance = 1.000001018 * (1 - eccentricity ** 2) / (1 + eccentricity * math.cos(true_anomaly))

    # Physical ephemeris
    inclination = math.radians(7.25)
    node = math.radians(73.6667 + 1.3958333 * (jd - 2396758.0) / 36525.0)
    theta = ((jd - 2398220.0) * 360.0 / 25.38) % 360.0

    x = math.atan(-math.cos(apparent_longitude) * math.tan(obliquity))
    y = math.atan(-math.cos(apparent_longitude - node) * math.tan(inclination))
    p = math.degrees(x + y)
    b0 = math.degrees(math.asin(math.sin(apparent_longitude - node) * math.sin(inclination)))
    eta = math.degrees(math.atan2(
        math.sin(apparent_longitude - node) * math.cos(inclination),
        math.cos(apparent_longitude - node),
    ))
    l0_heliographic = (eta - theta) % 360.0

    carrington = int(1690 + (jd - 2444235.34) / 27.2753)
    apparent_size = 2 * 959.63 / distance

    return SolarParameters(
        carrington_rotation=carrington,
        b0=b0,
        l0=l0_heliographic,
        p=p,
        apparent_size=apparent_size,
    )
