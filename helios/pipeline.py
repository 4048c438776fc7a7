"""
Targeting pipeline: raw orientation sample in, corrected pointing, guidance
and audio cue out. Stages always run in the same order:

    level offset -> normalize -> true north -> delta -> classify -> audio
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Callable, Optional

from common.interface import DeclinationModel
from common.logger import get_logger
from common.math import is_finite
from common.realtime import monotonic_time
from common.types import CelestialPosition, GeoLocation, LevelCalibration, RawOrientationSample
from helios.audio import AudioCue, ClickScheduler
from helios.config import HeliosConfig
from helios.guidance import GuidanceClassifier, GuidanceState, angular_delta
from helios.level import apply_level_calibration
from helios.magnetic import to_true_north
from helios.measurement import CollectionMethod, Measurement, build_measurement
from helios.normalize import normalize_sample

__all__ = [
    "SensorAccess",
    "SensorCapability",
    "CapabilityGate",
    "PipelineNotAuthorized",
    "CaptureNotAllowed",
    "PointingSolution",
    "PipelineFrame",
    "TargetingPipeline",
]

logger = get_logger("pipeline")


class PipelineNotAuthorized(RuntimeError):
    """Raised when samples arrive before sensor access has been granted."""


class CaptureNotAllowed(RuntimeError):
    """Raised when a measurement is requested but cannot be taken right now."""


class SensorAccess(str, Enum):
    UNAUTHORIZED = "unauthorized"
    AUTHORIZED = "authorized"


@dataclass(frozen=True)
class SensorCapability:
    """Token proving sensor access was granted; handed to the pipeline."""

    granted_at: float


class CapabilityGate:
    """Unauthorized -> Authorized. The permission prompt itself happens outside."""

    def __init__(self, clock: Callable[[], float] = monotonic_time):
        self.clock = clock
        self._token: Optional[SensorCapability] = None

    @property
    def state(self) -> SensorAccess:
        return SensorAccess.AUTHORIZED if self._token is not None else SensorAccess.UNAUTHORIZED

    @property
    def token(self) -> Optional[SensorCapability]:
        return self._token

    def grant(self) -> SensorCapability:
        if self._token is None:
            self._token = SensorCapability(granted_at=self.clock())
        return self._token

    def revoke(self) -> None:
        self._token = None


@dataclass(frozen=True)
class PointingSolution:
    """Corrected pointing direction plus what went into the heading correction."""

    position: CelestialPosition
    magnetic_azimuth: float
    declination: Optional[float] = None


@dataclass(frozen=True)
class PipelineFrame:
    pointing: PointingSolution
    guidance: Optional[GuidanceState]
    audio: AudioCue
    target: Optional[CelestialPosition] = None


class TargetingPipeline:
    """Single-owner evaluation context: not safe for concurrent writers."""

    def __init__(
        self,
        config: HeliosConfig | None = None,
        *,
        capability: Optional[SensorCapability] = None,
        declination_model: Optional[DeclinationModel] = None,
        level_calibration: Optional[LevelCalibration] = None,
        clock: Callable[[], float] = monotonic_time,
    ):
        self.config = config or HeliosConfig()
        self.declination_model = declination_model
        self.classifier = GuidanceClassifier(
            self.config.thresholds,
            self.config.capture_policy,
            self.config.hysteresis_samples,
        )
        self.clicks = ClickScheduler(self.config.audio, clock=clock)
        self.audio_enabled = self.config.audio_enabled
        self._capability = capability
        self._location: Optional[GeoLocation] = None
        self._target: Optional[CelestialPosition] = None
        self._calibration = level_calibration
        self._last_frame: Optional[PipelineFrame] = None

    # -- Inputs ---------------------------------------------------------------

    @property
    def authorized(self) -> bool:
        return self._capability is not None

    def authorize(self, capability: SensorCapability) -> None:
        self._capability = capability
        logger.info("Sensor access authorized; pipeline accepting samples")

    def set_location(self, location: Optional[GeoLocation]) -> None:
        if location is not None and not is_finite(location.latitude, location.longitude):
            location = None
        self._location = location
        self._last_frame = None

    def set_target(self, target: Optional[CelestialPosition]) -> None:
        if target is not None and not is_finite(target.azimuth, target.altitude):
            target = None
        self._target = target
        self._last_frame = None

    def set_level_calibration(self, calibration: Optional[LevelCalibration]) -> None:
        self._calibration = calibration

    @property
    def location(self) -> Optional[GeoLocation]:
        return self._location

    @property
    def target(self) -> Optional[CelestialPosition]:
        return self._target

    @property
    def last_frame(self) -> Optional[PipelineFrame]:
        return self._last_frame

    # -- Pipeline stages ------------------------------------------------------

    def correct(self, sample: RawOrientationSample) -> Optional[PointingSolution]:
        """Level offset, normalization and true-north correction for one sample."""
        leveled = apply_level_calibration(sample, self._calibration)
        normalized = normalize_sample(leveled)
        if normalized is None:
            return None
        north = to_true_north(normalized.azimuth, self._location, self.declination_model)
        return PointingSolution(
            position=CelestialPosition(azimuth=north.true_azimuth, altitude=normalized.altitude),
            magnetic_azimuth=normalized.azimuth,
            declination=north.declination_used,
        )

    def update(self, sample: RawOrientationSample) -> Optional[PipelineFrame]:
        """Run every stage for ``sample``; None means "no valid sample"."""
        if self._capability is None:
            raise PipelineNotAuthorized("sensor access has not been granted")
        pointing = self.correct(sample)
        if pointing is None:
            self._last_frame = None
            return None
        guidance = self.classifier.classify(pointing.position, self._target)
        total = guidance.total_delta if guidance is not None else None
        cue = self.clicks.update(total, self.audio_enabled)
        frame = PipelineFrame(pointing=pointing, guidance=guidance, audio=cue, target=self._target)
        self._last_frame = frame
        return frame

    def capture(
        self,
        collection_method: CollectionMethod = CollectionMethod.CAMERA,
        now: Optional[datetime] = None,
    ) -> Measurement:
        """Freeze the latest frame into a Measurement annotated with its quality."""
        frame = self._last_frame
        if frame is None or frame.guidance is None or frame.target is None:
            raise CaptureNotAllowed("no guidance available yet")
        if self._location is None:
            raise CaptureNotAllowed("location unavailable")
        if not frame.guidance.capture_allowed:
            raise CaptureNotAllowed(f"pointing error {frame.guidance.max_delta:.1f} deg exceeds capture threshold")
        pointing = frame.pointing
        return build_measurement(
            self._location,
            pointing.position,
            frame.target,
            angular_delta(pointing.position, frame.target),
            magnetic_azimuth=pointing.magnetic_azimuth,
            magnetic_declination=pointing.declination,
            collection_method=collection_method,
            now=now,
        )
