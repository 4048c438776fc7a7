"""Angle helpers shared by the orientation and guidance stages."""

from __future__ import annotations

import math

import numpy as np

__all__ = ["normalize_azimuth", "shortest_angle", "clamp", "is_finite"]


def normalize_azimuth(angle_deg: float) -> float:
    """Fold any heading into [0, 360)."""
    azimuth = angle_deg % 360.0
    # Floored modulo rounds tiny negatives up to exactly 360.0; fold again
    return (azimuth % 360.0) + 0.0


def shortest_angle(target_deg: float, current_deg: float) -> float:
    """Shortest signed rotation from ``current_deg`` to ``target_deg``.

    Positive means the target is clockwise of the current heading (turn right).
    The result lies in (-180, 180]; an exact half-turn is reported as +180.
    """
    delta = ((target_deg - current_deg + 540.0) % 360.0) - 180.0
    if delta <= -180.0:
        delta += 360.0
    return delta + 0.0


def clamp(value: float, low: float, high: float) -> float:
    return float(np.clip(value, low, high))


def is_finite(*values: float) -> bool:
    """True when every value is a real, finite number."""
    try:
        return all(math.isfinite(float(v)) for v in values)
    except (TypeError, ValueError):
        return False
