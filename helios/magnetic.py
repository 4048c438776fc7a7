"""
Magnetic → true north conversion.

Declination is the angle between magnetic north and true north:
- positive: magnetic north lies east of true north
- negative: magnetic north lies west of true north

True azimuth = magnetic azimuth + declination. Altitude is never touched.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable, Optional

from pygeomag import GeoMag

from common.interface import DeclinationModel
from common.logger import get_logger
from common.math import is_finite, normalize_azimuth
from common.types import GeoLocation, MagneticDeclination, TrueNorthResult

__all__ = ["FixedDeclination", "CachedDeclination", "WMMDeclination", "decimal_year", "lookup_declination", "to_true_north"]

logger = get_logger("magnetic")


class FixedDeclination(DeclinationModel):
    """Same declination everywhere; useful for a manual override or tests."""

    def __init__(self, degrees: float = 0.0):
        self.degrees = float(degrees)

    def declination(self, latitude: float, longitude: float) -> float:
        return self.degrees


class CachedDeclination(DeclinationModel):
    """
    Wraps another model and only recomputes once the location has moved more
    than ``min_move_deg`` in latitude or longitude since the last lookup.
    """

    def __init__(self, model: DeclinationModel, min_move_deg: float = 0.1):
        if min_move_deg < 0.0:
            raise ValueError("min_move_deg must be non-negative")
        self.model = model
        self.min_move_deg = float(min_move_deg)
        self._cached: Optional[MagneticDeclination] = None

    @property
    def cached(self) -> Optional[MagneticDeclination]:
        return self._cached

    def _is_near_cached(self, latitude: float, longitude: float) -> bool:
        if self._cached is None:
            return False
        return (
            abs(latitude - self._cached.latitude) <= self.min_move_deg
            and abs(longitude - self._cached.longitude) <= self.min_move_deg
        )

    def declination(self, latitude: float, longitude: float) -> float:
        if not self._is_near_cached(latitude, longitude):
            degrees = self.model.declination(latitude, longitude)
            self._cached = MagneticDeclination(degrees=degrees, latitude=latitude, longitude=longitude)
        return self._cached.degrees

    def invalidate(self) -> None:
        self._cached = None


def decimal_year(when: datetime) -> float:
    """``datetime`` -> fractional year (2024-07-02T00:00 -> 2024.5), as WMM expects."""
    start = datetime(when.year, 1, 1, tzinfo=when.tzinfo)
    end = datetime(when.year + 1, 1, 1, tzinfo=when.tzinfo)
    return when.year + (when - start).total_seconds() / (end - start).total_seconds()


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class WMMDeclination(DeclinationModel):
    """
    Declination from the World Magnetic Model via pygeomag, evaluated for the
    current date (or whatever ``when`` returns) at ``altitude_km`` above the
    ellipsoid.
    """

    def __init__(
        self,
        altitude_km: float = 0.0,
        when: Callable[[], datetime] = _utc_now,
        coefficients_file: Optional[str] = None,
        allow_date_outside_lifespan: bool = False,
    ):
        self.altitude_km = float(altitude_km)
        self.when = when
        self.allow_date_outside_lifespan = allow_date_outside_lifespan
        if coefficients_file is None:
            self._geomag = GeoMag()
        else:
            self._geomag = GeoMag(coefficients_file=coefficients_file)

    def declination(self, latitude: float, longitude: float) -> float:
        result = self._geomag.calculate(
            glat=latitude,
            glon=longitude,
            alt=self.altitude_km,
            time=decimal_year(self.when()),
            allow_date_outside_lifespan=self.allow_date_outside_lifespan,
        )
        return float(result.d)


def lookup_declination(model: DeclinationModel, location: GeoLocation) -> Optional[MagneticDeclination]:
    """Ask ``model`` for the declination at ``location``; None if it cannot answer."""
    if not is_finite(location.latitude, location.longitude):
        return None
    try:
        degrees = float(model.declination(location.latitude, location.longitude))
    except (ValueError, ArithmeticError) as exc:
        logger.warning(f"Declination lookup failed at {location}: {exc}")
        return None
    if not is_finite(degrees):
        logger.warning(f"Declination model returned {degrees} at {location}")
        return None
    return MagneticDeclination(degrees=degrees, latitude=location.latitude, longitude=location.longitude)


def to_true_north(
    magnetic_azimuth: float,
    location: Optional[GeoLocation],
    model: Optional[DeclinationModel],
) -> TrueNorthResult:
    """Convert a magnetic azimuth to true north.

    Without a location (or model) the correction is skipped and the magnetic
    azimuth is returned as-is with ``declination_used=None``.
    """
    if location is None or model is None:
        return TrueNorthResult(true_azimuth=normalize_azimuth(magnetic_azimuth))
    declination = lookup_declination(model, location)
    if declination is None:
        return TrueNorthResult(true_azimuth=normalize_azimuth(magnetic_azimuth))
    return TrueNorthResult(
        true_azimuth=normalize_azimuth(magnetic_azimuth + declination.degrees),
        declination_used=declination.degrees,
    )
