# helios/__init__.py

from common.types import (
    AngularDelta,
    CelestialPosition,
    GeoLocation,
    LevelCalibration,
    RawOrientationSample,
    RotationRateSample,
)
from .audio import AudioCadenceConfig, AudioFeedback, ClickScheduler, FeedbackMode, select_feedback
from .calibrate import Figure8CalibrationSession, TimedCalibrationSession, make_session
from .config import HeliosConfig
from .guidance import (
    CapturePolicy,
    GuidanceClassifier,
    GuidanceState,
    GuidanceThresholds,
    MeasurementQuality,
    ProximityBand,
    angular_delta,
    assess_quality,
)
from .level import LevelCalibrationStore, apply_level_calibration
from .magnetic import CachedDeclination, FixedDeclination, to_true_north
from .measurement import CollectionMethod, Measurement, summarize
from .normalize import normalize_orientation, normalize_sample
from .pipeline import CapabilityGate, PipelineFrame, TargetingPipeline

__all__ = [
    'AngularDelta', 'CelestialPosition', 'GeoLocation', 'LevelCalibration',
    'RawOrientationSample', 'RotationRateSample',
    'AudioCadenceConfig', 'AudioFeedback', 'ClickScheduler', 'FeedbackMode', 'select_feedback',
    'Figure8CalibrationSession', 'TimedCalibrationSession', 'make_session',
    'HeliosConfig',
    'CapturePolicy', 'GuidanceClassifier', 'GuidanceState', 'GuidanceThresholds',
    'MeasurementQuality', 'ProximityBand', 'angular_delta', 'assess_quality',
    'LevelCalibrationStore', 'apply_level_calibration',
    'CachedDeclination', 'FixedDeclination', 'to_true_north',
    'CollectionMethod', 'Measurement', 'summarize',
    'normalize_orientation', 'normalize_sample',
    'CapabilityGate', 'PipelineFrame', 'TargetingPipeline',
]
