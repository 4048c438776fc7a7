"""
Interface definitions for collaborators the pipeline depends on:
geomagnetic models, key-value persistence, and calibration sessions.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from common.types import RotationRateSample


class DeclinationModel(ABC):
    """Abstract base for geomagnetic models."""

    @abstractmethod
    def declination(self, latitude: float, longitude: float) -> float:
        """Return magnetic declination in degrees (east positive) at a location."""


class KeyValueStore(ABC):
    """Abstract string key-value persistence port."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """Return the stored value, or None if the key is absent."""

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Store ``value`` under ``key``, replacing any previous value."""

    @abstractmethod
    def clear(self, key: str) -> None:
        """Remove ``key``; removing a missing key is not an error."""


class CalibrationSession(ABC):
    """Abstract base for compass calibration flows reporting progress in [0, 100]."""

    @abstractmethod
    def start(self) -> None:
        """Begin (or restart) a session with progress reset to zero."""

    @abstractmethod
    def update(self, sample: RotationRateSample) -> float:
        """Feed one motion sample and return the current progress."""

    @abstractmethod
    def progress(self) -> float:
        """Current progress in [0, 100]."""

    @property
    def is_complete(self) -> bool:
        return self.progress() >= 100.0
