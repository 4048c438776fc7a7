"""
Level calibration: tilt offsets captured on a flat surface and subtracted
from every subsequent raw reading before altitude conversion.
"""

from __future__ import annotations

import json
from dataclasses import replace
from datetime import datetime, timezone
from typing import Optional, Tuple

from common.interface import KeyValueStore
from common.logger import get_logger
from common.math import is_finite
from common.types import LevelCalibration, RawOrientationSample

__all__ = ["LEVEL_CALIBRATION_KEY", "correct_tilt", "apply_level_calibration", "LevelCalibrationStore"]

logger = get_logger("level")

LEVEL_CALIBRATION_KEY = "helios_level_calibration"


def correct_tilt(
    front_back_tilt: float,
    left_right_tilt: float,
    calibration: Optional[LevelCalibration],
) -> Tuple[float, float]:
    """Subtract calibration offsets from raw tilts; identity when uncalibrated.

    No wrapping or clamping here: the altitude step saturates later.
    """
    if calibration is None:
        return front_back_tilt, left_right_tilt
    return (
        front_back_tilt - calibration.tilt_offset_front_back,
        left_right_tilt - calibration.tilt_offset_left_right,
    )


def apply_level_calibration(
    sample: RawOrientationSample,
    calibration: Optional[LevelCalibration],
) -> RawOrientationSample:
    """Return a copy of ``sample`` with level offsets removed from its tilts."""
    if calibration is None:
        return sample
    front_back, left_right = correct_tilt(sample.front_back_tilt, sample.left_right_tilt, calibration)
    return replace(sample, front_back_tilt=front_back, left_right_tilt=left_right)


class LevelCalibrationStore:
    """Persists a single LevelCalibration record as JSON in a key-value store."""

    def __init__(self, store: KeyValueStore, key: str = LEVEL_CALIBRATION_KEY):
        self.store = store
        self.key = key

    def load(self) -> Optional[LevelCalibration]:
        """Return the stored calibration, or None if absent or unreadable."""
        raw = self.store.get(self.key)
        if not raw:
            return None
        try:
            data = json.loads(raw)
            calibration = LevelCalibration(
                tilt_offset_front_back=float(data["offset_front_back"]),
                tilt_offset_left_right=float(data["offset_left_right"]),
                captured_at=data.get("captured_at"),
            )
        except (ValueError, KeyError, TypeError) as exc:
            logger.warning(f"Ignoring unreadable level calibration: {exc}")
            return None
        if not is_finite(calibration.tilt_offset_front_back, calibration.tilt_offset_left_right):
            logger.warning("Ignoring level calibration with non-finite offsets")
            return None
        return calibration

    def save(self, calibration: LevelCalibration) -> None:
        payload = {
            "offset_front_back": calibration.tilt_offset_front_back,
            "offset_left_right": calibration.tilt_offset_left_right,
            "captured_at": calibration.captured_at,
        }
        self.store.set(self.key, json.dumps(payload))

    def capture(self, sample: RawOrientationSample, now: Optional[datetime] = None) -> LevelCalibration:
        """Record the current raw tilts as the flat-surface reference and persist them."""
        if not is_finite(sample.front_back_tilt, sample.left_right_tilt):
            raise ValueError("Cannot capture level calibration from a non-finite sample")
        captured_at = (now or datetime.now(timezone.utc)).isoformat()
        calibration = LevelCalibration(
            tilt_offset_front_back=sample.front_back_tilt,
            tilt_offset_left_right=sample.left_right_tilt,
            captured_at=captured_at,
        )
        self.save(calibration)
        logger.info(
            f"Level calibration captured (front/back {calibration.tilt_offset_front_back:.2f}, "
            f"left/right {calibration.tilt_offset_left_right:.2f})"
        )
        return calibration

    def clear(self) -> None:
        self.store.clear(self.key)
        logger.info("Level calibration cleared")

    @property
    def is_calibrated(self) -> bool:
        calibration = self.load()
        return calibration is not None and calibration.is_calibrated
