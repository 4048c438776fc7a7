"""Convert raw device orientation into astronomical azimuth/altitude."""

from __future__ import annotations

from typing import Optional

from common.logger import get_logger
from common.math import clamp, is_finite, normalize_azimuth
from common.types import CelestialPosition, RawOrientationSample

__all__ = ["tilt_to_altitude", "normalize_orientation", "normalize_sample", "is_valid_sample"]

logger = get_logger("normalize")

# Phone held upright (pointing at the horizon) reports a front-back tilt of 90
HORIZON_TILT = 90.0


def tilt_to_altitude(front_back_tilt: float) -> float:
    """Map front-back tilt to altitude, saturating at the zenith and nadir."""
    return clamp(front_back_tilt - HORIZON_TILT, -90.0, 90.0)


def normalize_orientation(heading: float, front_back_tilt: float, left_right_tilt: float = 0.0) -> CelestialPosition:
    """
    Normalize raw device orientation to astronomical coordinates.

    Args:
        heading: Compass heading in degrees, any real value (periodic mod 360).
        front_back_tilt: Front-to-back tilt; 90 when upright, 180 pointing at zenith.
        left_right_tilt: Left-to-right tilt. Accepted but not used yet.

    Returns:
        CelestialPosition with azimuth in [0, 360) and altitude in [-90, 90].
    """
    return CelestialPosition(
        azimuth=normalize_azimuth(heading),
        altitude=tilt_to_altitude(front_back_tilt),
    )


def is_valid_sample(sample: RawOrientationSample) -> bool:
    # Left-right tilt feeds nothing downstream, so a missing one is tolerated
    return is_finite(sample.heading, sample.front_back_tilt)


def normalize_sample(sample: RawOrientationSample) -> Optional[CelestialPosition]:
    """Normalize a sample, or return None when a reading is NaN/inf (e.g. sensor dropout)."""
    if not is_valid_sample(sample):
        logger.debug(f"Rejected non-finite orientation sample: {sample}")
        return None
    return normalize_orientation(sample.heading, sample.front_back_tilt, sample.left_right_tilt)
