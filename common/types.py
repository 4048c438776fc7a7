"""
Shared data structures for sensor ↔ pipeline ↔ presentation boundaries.
All angles are in degrees.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class RawOrientationSample:
    """One reading from the device orientation sensor, before any correction."""

    heading: float
    front_back_tilt: float
    left_right_tilt: float
    is_absolute: bool = False


@dataclass(frozen=True)
class CelestialPosition:
    """
    A direction on the sky:
    - azimuth: 0-360, 0 = North, increasing clockwise
    - altitude: -90 to 90, 0 = horizon, 90 = zenith
    Used both for where the device points and for where the target is.
    """

    azimuth: float
    altitude: float


@dataclass(frozen=True)
class LevelCalibration:
    """Tilt offsets recorded while the device rested on a flat surface."""

    tilt_offset_front_back: float = 0.0
    tilt_offset_left_right: float = 0.0
    captured_at: Optional[str] = None

    @property
    def is_calibrated(self) -> bool:
        return self.tilt_offset_front_back != 0.0 or self.tilt_offset_left_right != 0.0


@dataclass(frozen=True)
class GeoLocation:
    latitude: float
    longitude: float


@dataclass(frozen=True)
class MagneticDeclination:
    """Declination (east positive) computed for a coordinate pair."""

    degrees: float
    latitude: float
    longitude: float


@dataclass(frozen=True)
class TrueNorthResult:
    """Outcome of the declination stage; ``declination_used`` is None when skipped."""

    true_azimuth: float
    declination_used: Optional[float] = None

    @property
    def corrected(self) -> bool:
        return self.declination_used is not None


@dataclass(frozen=True)
class AngularDelta:
    """
    Pointing error from current to target:
    - azimuth_delta in (-180, 180], positive = target is clockwise (turn right)
    - altitude_delta is plain target minus current, positive = look up
    """

    azimuth_delta: float
    altitude_delta: float

    @property
    def max_delta(self) -> float:
        return max(abs(self.azimuth_delta), abs(self.altitude_delta))

    @property
    def total_delta(self) -> float:
        return abs(self.azimuth_delta) + abs(self.altitude_delta)


@dataclass(frozen=True)
class RotationRateSample:
    """Device rotation rates about its three axes (deg/s)."""

    alpha: float
    beta: float
    gamma: float
