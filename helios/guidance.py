"""
Targeting guidance: angular error between where the device points and the
target, classified into proximity bands with direction hints.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from common.logger import get_logger
from common.math import is_finite, shortest_angle
from common.types import AngularDelta, CelestialPosition

__all__ = [
    "ProximityBand",
    "CapturePolicy",
    "MeasurementQuality",
    "GuidanceThresholds",
    "DirectionFlags",
    "GuidanceState",
    "angular_delta",
    "classify_band",
    "direction_flags",
    "classify_delta",
    "assess_quality",
    "GuidanceClassifier",
]

logger = get_logger("guidance")


class ProximityBand(str, Enum):
    COARSE = "coarse"
    FINE = "fine"
    LOCKED = "locked"


# Higher rank = larger error
_RANK = {ProximityBand.LOCKED: 0, ProximityBand.FINE: 1, ProximityBand.COARSE: 2}


class CapturePolicy(str, Enum):
    """When capturing a measurement is allowed once sensors and location are ready."""

    GATED = "gated"  # only within the capture threshold
    ALWAYS = "always"


class MeasurementQuality(str, Enum):
    EXCELLENT = "excellent"
    GOOD = "good"
    POOR = "poor"


@dataclass(frozen=True)
class GuidanceThresholds:
    lock: float = 5.0
    fine: float = 15.0
    capture: float = 20.0

    def __post_init__(self) -> None:
        if not is_finite(self.lock, self.fine, self.capture):
            raise ValueError("thresholds must be finite")
        if self.lock < 0.0 or self.fine < 0.0 or self.capture < 0.0:
            raise ValueError("thresholds must be non-negative")
        if self.lock > self.fine:
            raise ValueError("lock threshold must not exceed fine threshold")


@dataclass(frozen=True)
class DirectionFlags:
    up: bool = False
    down: bool = False
    left: bool = False
    right: bool = False

    def any(self) -> bool:
        return self.up or self.down or self.left or self.right


@dataclass(frozen=True)
class GuidanceState:
    """Everything a HUD needs to render guidance for one sample."""

    azimuth_delta: float
    altitude_delta: float
    directions: DirectionFlags
    azimuth_locked: bool
    altitude_locked: bool
    band: ProximityBand
    capture_allowed: bool
    target_below_horizon: bool = False

    @property
    def fully_locked(self) -> bool:
        return self.band is ProximityBand.LOCKED and self.azimuth_locked and self.altitude_locked

    @property
    def is_coarse(self) -> bool:
        return self.band is ProximityBand.COARSE

    @property
    def is_fine(self) -> bool:
        return self.band is ProximityBand.FINE

    @property
    def max_delta(self) -> float:
        return max(abs(self.azimuth_delta), abs(self.altitude_delta))

    @property
    def total_delta(self) -> float:
        return abs(self.azimuth_delta) + abs(self.altitude_delta)

    def hint(self) -> str:
        """Short status line, e.g. ``"Sun is Above & Right"``."""
        if self.fully_locked:
            return "ON TARGET"
        words = []
        if self.is_coarse:
            if self.directions.up:
                words.append("Above")
            if self.directions.down:
                words.append("Below")
            if self.directions.left:
                words.append("Left")
            if self.directions.right:
                words.append("Right")
        if not words:
            return "Almost there..."
        return "Sun is " + " & ".join(words)


def angular_delta(current: CelestialPosition, target: CelestialPosition) -> AngularDelta:
    """Azimuth via the shortest signed rotation; altitude by plain subtraction."""
    return AngularDelta(
        azimuth_delta=shortest_angle(target.azimuth, current.azimuth),
        altitude_delta=target.altitude - current.altitude,
    )


def classify_band(delta: AngularDelta, thresholds: GuidanceThresholds) -> ProximityBand:
    if abs(delta.azimuth_delta) <= thresholds.lock and abs(delta.altitude_delta) <= thresholds.lock:
        return ProximityBand.LOCKED
    if delta.max_delta <= thresholds.fine:
        return ProximityBand.FINE
    return ProximityBand.COARSE


def direction_flags(delta: AngularDelta, thresholds: GuidanceThresholds) -> DirectionFlags:
    # Arrows use the fine threshold: they disappear once within fine range
    return DirectionFlags(
        up=delta.altitude_delta > thresholds.fine,
        down=delta.altitude_delta < -thresholds.fine,
        left=delta.azimuth_delta < -thresholds.fine,
        right=delta.azimuth_delta > thresholds.fine,
    )


def classify_delta(
    delta: AngularDelta,
    thresholds: GuidanceThresholds,
    policy: CapturePolicy = CapturePolicy.GATED,
    band: Optional[ProximityBand] = None,
    target_below_horizon: bool = False,
) -> GuidanceState:
    """Build a GuidanceState from a delta.

    ``band`` overrides the freshly computed band (used by hysteresis); flags,
    lock bits and capture gating always follow the raw delta.
    """
    if policy is CapturePolicy.ALWAYS:
        capture_allowed = True
    else:
        capture_allowed = delta.max_delta <= thresholds.capture
    return GuidanceState(
        azimuth_delta=delta.azimuth_delta,
        altitude_delta=delta.altitude_delta,
        directions=direction_flags(delta, thresholds),
        azimuth_locked=abs(delta.azimuth_delta) <= thresholds.lock,
        altitude_locked=abs(delta.altitude_delta) <= thresholds.lock,
        band=band if band is not None else classify_band(delta, thresholds),
        capture_allowed=capture_allowed,
        target_below_horizon=target_below_horizon,
    )


def assess_quality(delta: AngularDelta) -> MeasurementQuality:
    """Grade a captured measurement: <3° excellent, <10° good, otherwise poor."""
    if delta.max_delta < 3.0:
        return MeasurementQuality.EXCELLENT
    if delta.max_delta < 10.0:
        return MeasurementQuality.GOOD
    return MeasurementQuality.POOR


class GuidanceClassifier:
    """
    Classifies each new (current, target) pair.

    With ``hysteresis_samples=1`` every sample is classified from scratch.
    With N > 1, moving into a tighter band is only reported after N
    consecutive samples agree on it; falling back to a looser band is
    reported at once, so a held band never claims more precision than the
    current sample has.
    """

    def __init__(
        self,
        thresholds: GuidanceThresholds | None = None,
        policy: CapturePolicy = CapturePolicy.GATED,
        hysteresis_samples: int = 1,
    ):
        if hysteresis_samples < 1:
            raise ValueError("hysteresis_samples must be >= 1")
        self.thresholds = thresholds or GuidanceThresholds()
        self.policy = CapturePolicy(policy)
        self.hysteresis_samples = int(hysteresis_samples)
        self._band: Optional[ProximityBand] = None
        self._pending: Optional[ProximityBand] = None
        self._pending_count = 0

    @property
    def band(self) -> Optional[ProximityBand]:
        return self._band

    def reset(self) -> None:
        self._band = None
        self._pending = None
        self._pending_count = 0

    def _debounce(self, proposed: ProximityBand) -> ProximityBand:
        if self._band is None or self.hysteresis_samples == 1:
            return proposed
        if proposed is self._band or _RANK[proposed] > _RANK[self._band]:
            self._pending = None
            self._pending_count = 0
            return proposed
        if proposed is self._pending:
            self._pending_count += 1
        else:
            self._pending = proposed
            self._pending_count = 1
        if self._pending_count >= self.hysteresis_samples:
            self._pending = None
            self._pending_count = 0
            return proposed
        return self._band

    def classify(
        self,
        current: Optional[CelestialPosition],
        target: Optional[CelestialPosition],
    ) -> Optional[GuidanceState]:
        """Return guidance, or None when there is no valid pointing or target yet."""
        if current is None or target is None:
            return None
        if not is_finite(current.azimuth, current.altitude, target.azimuth, target.altitude):
            return None

        delta = angular_delta(current, target)
        band = self._debounce(classify_band(delta, self.thresholds))
        if band is not self._band:
            logger.debug(f"Guidance band {self._band} -> {band}")
            self._band = band
        return classify_delta(
            delta,
            self.thresholds,
            self.policy,
            band=band,
            target_below_horizon=target.altitude < 0.0,
        )
