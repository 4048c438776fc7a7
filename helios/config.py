"""
Runtime configuration: thresholds, audio cadence and calibration strategy,
with optional overrides from HELIOS_* environment variables.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from typing import Callable, Mapping, Optional, TypeVar

from helios.audio import AudioCadenceConfig
from helios.calibrate import CalibrationConfig, CalibrationStrategy
from helios.guidance import CapturePolicy, GuidanceThresholds

__all__ = ["HeliosConfig"]

T = TypeVar("T")

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


def _parse_bool(text: str) -> bool:
    value = text.strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise ValueError(f"not a boolean: {text!r}")


def _env(environ: Mapping[str, str], name: str, parse: Callable[[str], T]) -> Optional[T]:
    raw = environ.get(name)
    if raw is None or raw.strip() == "":
        return None
    try:
        return parse(raw.strip())
    except ValueError as exc:
        raise ValueError(f"Invalid value for {name}: {raw!r} ({exc})") from exc


@dataclass(frozen=True)
class HeliosConfig:
    thresholds: GuidanceThresholds = field(default_factory=GuidanceThresholds)
    capture_policy: CapturePolicy = CapturePolicy.GATED
    hysteresis_samples: int = 1
    audio: AudioCadenceConfig = field(default_factory=AudioCadenceConfig)
    audio_enabled: bool = True
    calibration: CalibrationConfig = field(default_factory=CalibrationConfig)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "HeliosConfig":
        """Defaults overridden by any HELIOS_* variables present in ``environ``."""
        environ = os.environ if environ is None else environ
        base = cls()

        lock = _env(environ, "HELIOS_LOCK_THRESHOLD", float)
        fine = _env(environ, "HELIOS_FINE_THRESHOLD", float)
        capture = _env(environ, "HELIOS_CAPTURE_THRESHOLD", float)
        thresholds = GuidanceThresholds(
            lock=base.thresholds.lock if lock is None else lock,
            fine=base.thresholds.fine if fine is None else fine,
            capture=base.thresholds.capture if capture is None else capture,
        )

        policy = _env(environ, "HELIOS_CAPTURE_POLICY", lambda s: CapturePolicy(s.lower()))
        hysteresis = _env(environ, "HELIOS_HYSTERESIS_SAMPLES", int)
        if hysteresis is not None and hysteresis < 1:
            raise ValueError(f"Invalid value for HELIOS_HYSTERESIS_SAMPLES: {hysteresis} (must be >= 1)")
        audio_enabled = _env(environ, "HELIOS_AUDIO_ENABLED", _parse_bool)
        strategy = _env(environ, "HELIOS_CALIBRATION_STRATEGY", lambda s: CalibrationStrategy(s.lower()))

        return replace(
            base,
            thresholds=thresholds,
            capture_policy=base.capture_policy if policy is None else policy,
            hysteresis_samples=base.hysteresis_samples if hysteresis is None else hysteresis,
            audio_enabled=base.audio_enabled if audio_enabled is None else audio_enabled,
            calibration=base.calibration if strategy is None else replace(base.calibration, strategy=strategy),
        )
