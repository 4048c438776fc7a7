"""Captured measurements and aggregate statistics over a batch of them."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Iterable, Optional

import numpy as np
from scipy.stats import circmean, circstd

from common.types import AngularDelta, CelestialPosition, GeoLocation
from helios.guidance import MeasurementQuality, assess_quality

__all__ = ["CollectionMethod", "Measurement", "SessionSummary", "build_measurement", "summarize"]


class CollectionMethod(str, Enum):
    CAMERA = "CAMERA"
    SHADOW = "SHADOW"


@dataclass(frozen=True)
class Measurement:
    """One captured pointing, ready to hand to a submission service."""

    location: GeoLocation
    device: CelestialPosition
    target: CelestialPosition
    delta: AngularDelta
    quality: MeasurementQuality
    captured_at: datetime
    magnetic_azimuth: Optional[float] = None
    magnetic_declination: Optional[float] = None
    collection_method: CollectionMethod = CollectionMethod.CAMERA

    def to_payload(self) -> Dict[str, Any]:
        return {
            "latitude": self.location.latitude,
            "longitude": self.location.longitude,
            "device_azimuth": self.device.azimuth,
            "device_altitude": self.device.altitude,
            "nasa_azimuth": self.target.azimuth,
            "nasa_altitude": self.target.altitude,
            "delta_azimuth": self.delta.azimuth_delta,
            "delta_altitude": self.delta.altitude_delta,
            "magnetic_azimuth": self.magnetic_azimuth,
            "magnetic_declination": self.magnetic_declination,
            "collection_method": self.collection_method.value,
            "quality": self.quality.value,
            "timestamp": self.captured_at.isoformat(),
        }


def build_measurement(
    location: GeoLocation,
    device: CelestialPosition,
    target: CelestialPosition,
    delta: AngularDelta,
    *,
    magnetic_azimuth: Optional[float] = None,
    magnetic_declination: Optional[float] = None,
    collection_method: CollectionMethod = CollectionMethod.CAMERA,
    now: Optional[datetime] = None,
) -> Measurement:
    return Measurement(
        location=location,
        device=device,
        target=target,
        delta=delta,
        quality=assess_quality(delta),
        captured_at=now or datetime.now(timezone.utc),
        magnetic_azimuth=magnetic_azimuth,
        magnetic_declination=magnetic_declination,
        collection_method=CollectionMethod(collection_method),
    )


@dataclass(frozen=True)
class SessionSummary:
    count: int
    mean_azimuth_delta: Optional[float] = None
    std_azimuth_delta: Optional[float] = None
    mean_altitude_delta: Optional[float] = None
    std_altitude_delta: Optional[float] = None
    quality_counts: Dict[MeasurementQuality, int] = field(default_factory=dict)


def summarize(measurements: Iterable[Measurement]) -> SessionSummary:
    """
    Mean and spread of pointing errors. Azimuth deltas are angles, so they are
    averaged on the circle (a mix of +179 and -179 averages to about 180, not 0).
    """
    items = list(measurements)
    if not items:
        return SessionSummary(count=0)

    az = np.array([m.delta.azimuth_delta for m in items], dtype=float)
    alt = np.array([m.delta.altitude_delta for m in items], dtype=float)
    az_mean = float(circmean(az, high=180.0, low=-180.0))
    if az_mean <= -180.0:
        az_mean += 360.0
    quality_counts = Counter(m.quality for m in items)
    return SessionSummary(
        count=len(items),
        mean_azimuth_delta=az_mean,
        std_azimuth_delta=float(circstd(az, high=180.0, low=-180.0)),
        mean_altitude_delta=float(np.mean(alt)),
        std_altitude_delta=float(np.std(alt)),
        quality_counts={q: quality_counts.get(q, 0) for q in MeasurementQuality},
    )
