"""
Audio feedback triggering: choose between a continuous tone, clicking at a
distance-dependent interval, or silence. Sound synthesis lives elsewhere;
this module only decides what should play and when a click is due.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from common.math import clamp, is_finite
from common.realtime import IntervalGate, monotonic_time

__all__ = ["FeedbackMode", "AudioFeedback", "AudioCadenceConfig", "click_interval_ms", "select_feedback", "ClickScheduler", "AudioCue"]


class FeedbackMode(str, Enum):
    CONTINUOUS_TONE = "tone"
    CLICKING = "clicking"
    SILENCE = "silence"


@dataclass(frozen=True)
class AudioFeedback:
    mode: FeedbackMode
    interval_ms: Optional[float] = None


SILENT = AudioFeedback(FeedbackMode.SILENCE)


@dataclass(frozen=True)
class AudioCadenceConfig:
    tone_below: float = 3.0  # deg; strictly below => continuous tone
    click_max: float = 20.0  # deg; above => silence
    min_interval_ms: float = 100.0
    max_interval_ms: float = 1000.0

    def __post_init__(self) -> None:
        if not is_finite(self.tone_below, self.click_max, self.min_interval_ms, self.max_interval_ms):
            raise ValueError("cadence bounds must be finite")
        if not 0.0 <= self.tone_below < self.click_max:
            raise ValueError("tone_below must be non-negative and below click_max")
        if not 0.0 < self.min_interval_ms <= self.max_interval_ms:
            raise ValueError("intervals must satisfy 0 < min_interval_ms <= max_interval_ms")


def click_interval_ms(total_delta: float, config: AudioCadenceConfig | None = None) -> float:
    """
    Linear map of the clicking range onto the interval range:
    tone_below -> max_interval_ms, click_max -> min_interval_ms.
    With defaults: 3° -> 1000 ms, 11.5° -> 550 ms, 20° -> 100 ms.
    """
    config = config or AudioCadenceConfig()
    span = config.click_max - config.tone_below
    fraction = (total_delta - config.tone_below) / span
    interval = config.max_interval_ms - fraction * (config.max_interval_ms - config.min_interval_ms)
    return clamp(interval, config.min_interval_ms, config.max_interval_ms)


def select_feedback(total_delta: float, enabled: bool = True, config: AudioCadenceConfig | None = None) -> AudioFeedback:
    """Pick the feedback mode for an L1 pointing error ``|daz| + |dalt|``."""
    config = config or AudioCadenceConfig()
    if not enabled or not is_finite(total_delta):
        return SILENT
    if total_delta < config.tone_below:
        return AudioFeedback(FeedbackMode.CONTINUOUS_TONE)
    if total_delta <= config.click_max:
        return AudioFeedback(FeedbackMode.CLICKING, click_interval_ms(total_delta, config))
    return SILENT


@dataclass(frozen=True)
class AudioCue:
    feedback: AudioFeedback
    click: bool = False  # emit one click now


class ClickScheduler:
    """
    Re-evaluated on every sample. While clicking, a click is emitted at most
    once per current interval, measured from the previous click.
    """

    def __init__(self, config: AudioCadenceConfig | None = None, clock: Callable[[], float] = monotonic_time):
        self.config = config or AudioCadenceConfig()
        self._gate = IntervalGate(clock)

    @property
    def last_click(self) -> Optional[float]:
        return self._gate.last_fired

    def reset(self) -> None:
        self._gate.reset()

    def update(self, total_delta: Optional[float], enabled: bool = True) -> AudioCue:
        if total_delta is None:
            return AudioCue(SILENT)
        feedback = select_feedback(total_delta, enabled, self.config)
        if feedback.mode is not FeedbackMode.CLICKING:
            return AudioCue(feedback)
        return AudioCue(feedback, click=self._gate.try_fire(feedback.interval_ms / 1000.0))
