"""
Compass calibration sessions. Two interchangeable strategies report progress
in [0, 100]: accumulated figure-8 rotation energy, or elapsed wall time.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from common.interface import CalibrationSession, KeyValueStore
from common.logger import get_logger
from common.math import is_finite
from common.realtime import monotonic_time
from common.types import RotationRateSample

__all__ = [
    "ENERGY_MULTIPLIER",
    "CalibrationStrategy",
    "CalibrationConfig",
    "CalibrationProgress",
    "rotation_energy",
    "Figure8CalibrationSession",
    "TimedCalibrationSession",
    "CompassCalibrationFlag",
    "make_session",
]

logger = get_logger("calibrate")

# Tuned so a vigorous figure-8 completes in roughly 3-5 seconds of samples
ENERGY_MULTIPLIER = 0.015
COMPASS_CALIBRATED_KEY = "helios_calibrated"


class CalibrationStrategy(str, Enum):
    FIGURE8 = "figure8"
    TIMED = "timed"


@dataclass(frozen=True)
class CalibrationConfig:
    strategy: CalibrationStrategy = CalibrationStrategy.FIGURE8
    energy_multiplier: float = ENERGY_MULTIPLIER
    duration_s: float = 5.0


@dataclass(frozen=True)
class CalibrationProgress:
    accumulated_energy: float
    is_complete: bool


def rotation_energy(sample: RotationRateSample) -> float:
    """Sum of absolute rotation rates; non-finite axes count as zero."""
    total = 0.0
    for rate in (sample.alpha, sample.beta, sample.gamma):
        if is_finite(rate):
            total += abs(rate)
    return total


class CompassCalibrationFlag:
    """Persisted "calibration already done" marker so the flow runs once per device."""

    def __init__(self, store: KeyValueStore, key: str = COMPASS_CALIBRATED_KEY):
        self.store = store
        self.key = key

    @property
    def is_done(self) -> bool:
        return self.store.get(self.key) == "true"

    def mark_done(self) -> None:
        self.store.set(self.key, "true")

    def reset(self) -> None:
        self.store.clear(self.key)


class _SessionBase(CalibrationSession):
    name = "session"

    def __init__(self, flag: Optional[CompassCalibrationFlag] = None):
        self.flag = flag
        self._active = False
        self._completed = False

    @property
    def active(self) -> bool:
        return self._active

    def snapshot(self) -> CalibrationProgress:
        progress = self.progress()
        return CalibrationProgress(accumulated_energy=progress, is_complete=progress >= 100.0)

    def _check_complete(self) -> None:
        if self._completed or self.progress() < 100.0:
            return
        self._completed = True
        self._active = False
        logger.info(f"Compass calibration complete ({self.name})")
        if self.flag is not None:
            self.flag.mark_done()


class Figure8CalibrationSession(_SessionBase):
    """Progress grows with the rotation energy of each motion sample, capped at 100."""

    name = "figure8"

    def __init__(self, energy_multiplier: float = ENERGY_MULTIPLIER, flag: Optional[CompassCalibrationFlag] = None):
        super().__init__(flag)
        if not is_finite(energy_multiplier) or energy_multiplier <= 0.0:
            raise ValueError("energy_multiplier must be positive")
        self.energy_multiplier = float(energy_multiplier)
        self._progress = 0.0

    def start(self) -> None:
        self._progress = 0.0
        self._active = True
        self._completed = False
        logger.info("Compass calibration started (figure8)")

    def update(self, sample: RotationRateSample) -> float:
        if not self._active:
            return self._progress
        self._progress = min(100.0, self._progress + rotation_energy(sample) * self.energy_multiplier)
        self._check_complete()
        return self._progress

    def progress(self) -> float:
        return self._progress


class TimedCalibrationSession(_SessionBase):
    """Progress is the elapsed fraction of a fixed duration; motion content is ignored."""

    name = "timed"

    def __init__(
        self,
        duration_s: float = 5.0,
        clock: Callable[[], float] = monotonic_time,
        flag: Optional[CompassCalibrationFlag] = None,
    ):
        super().__init__(flag)
        if not is_finite(duration_s) or duration_s <= 0.0:
            raise ValueError("duration_s must be positive")
        self.duration_s = float(duration_s)
        self.clock = clock
        self._started_at: Optional[float] = None
        self._final: Optional[float] = None

    def start(self) -> None:
        self._started_at = self.clock()
        self._final = None
        self._active = True
        self._completed = False
        logger.info(f"Compass calibration started (timed, {self.duration_s:.1f}s)")

    def progress(self) -> float:
        if self._final is not None:
            return self._final
        if self._started_at is None:
            return 0.0
        elapsed = self.clock() - self._started_at
        return max(0.0, min(100.0, elapsed / self.duration_s * 100.0))

    def update(self, sample: RotationRateSample) -> float:
        progress = self.progress()
        if self._active:
            self._check_complete()
            if self._completed:
                self._final = 100.0
        return progress


def make_session(
    config: CalibrationConfig | None = None,
    clock: Callable[[], float] = monotonic_time,
    flag: Optional[CompassCalibrationFlag] = None,
) -> CalibrationSession:
    """Build the session selected by ``config.strategy``."""
    config = config or CalibrationConfig()
    strategy = CalibrationStrategy(config.strategy)
    if strategy is CalibrationStrategy.TIMED:
        return TimedCalibrationSession(config.duration_s, clock=clock, flag=flag)
    return Figure8CalibrationSession(config.energy_multiplier, flag=flag)
