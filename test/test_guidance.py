import unittest

import numpy as np
from common.types import AngularDelta, CelestialPosition
from helios.guidance import (
    CapturePolicy,
    GuidanceClassifier,
    GuidanceThresholds,
    MeasurementQuality,
    ProximityBand,
    angular_delta,
    assess_quality,
    classify_band,
    classify_delta,
)

DEFAULTS = GuidanceThresholds()
BAND_RANK = {ProximityBand.LOCKED: 0, ProximityBand.FINE: 1, ProximityBand.COARSE: 2}


class TestAngularDelta(unittest.TestCase):
    def test_wrap_and_altitude(self):
        delta = angular_delta(CelestialPosition(350.0, 0.0), CelestialPosition(10.0, 5.0))
        self.assertEqual(delta, AngularDelta(20.0, 5.0))

    def test_altitude_does_not_wrap(self):
        delta = angular_delta(CelestialPosition(0.0, -80.0), CelestialPosition(0.0, 85.0))
        self.assertEqual(delta.altitude_delta, 165.0)
        self.assertEqual(delta.azimuth_delta, 0.0)


class TestClassifyBand(unittest.TestCase):
    def test_band_table(self):
        for az, alt, expected in [
            (0.0, 0.0, ProximityBand.LOCKED),
            (5.0, -5.0, ProximityBand.LOCKED),
            (5.1, 0.0, ProximityBand.FINE),
            (-15.0, 14.0, ProximityBand.FINE),
            (15.01, 0.0, ProximityBand.COARSE),
            (0.0, -40.0, ProximityBand.COARSE),
        ]:
            with self.subTest(az=az, alt=alt):
                self.assertIs(classify_band(AngularDelta(az, alt), DEFAULTS), expected)

    def test_precision_never_improves_as_error_grows(self):
        for az in (0.0, 3.0, 10.0, 30.0):
            ranks = [
                BAND_RANK[classify_band(AngularDelta(az, alt), DEFAULTS)]
                for alt in np.linspace(0.0, 60.0, 121)
            ]
            with self.subTest(az=az):
                self.assertEqual(ranks, sorted(ranks))


class TestClassifyDelta(unittest.TestCase):
    def test_end_to_end_scenario(self):
        state = classify_delta(AngularDelta(20.0, 5.0), DEFAULTS)
        self.assertIs(state.band, ProximityBand.COARSE)
        self.assertTrue(state.is_coarse)
        self.assertTrue(state.directions.right)
        self.assertFalse(state.directions.left)
        self.assertFalse(state.directions.up)
        self.assertFalse(state.directions.down)
        self.assertFalse(state.azimuth_locked)
        self.assertTrue(state.altitude_locked)
        self.assertTrue(state.capture_allowed)
        self.assertEqual(state.hint(), "Sun is Right")

    def test_flags_use_fine_threshold(self):
        state = classify_delta(AngularDelta(-12.0, 9.0), DEFAULTS)
        self.assertIs(state.band, ProximityBand.FINE)
        self.assertFalse(state.directions.any())
        self.assertEqual(state.hint(), "Almost there...")

        state = classify_delta(AngularDelta(-40.0, -30.0), DEFAULTS)
        self.assertTrue(state.directions.left)
        self.assertTrue(state.directions.down)
        self.assertEqual(state.hint(), "Sun is Below & Left")

    def test_locked(self):
        state = classify_delta(AngularDelta(1.0, -2.0), DEFAULTS)
        self.assertTrue(state.fully_locked)
        self.assertEqual(state.hint(), "ON TARGET")

    def test_capture_policy(self):
        far = AngularDelta(25.0, 0.0)
        self.assertFalse(classify_delta(far, DEFAULTS, CapturePolicy.GATED).capture_allowed)
        self.assertTrue(classify_delta(far, DEFAULTS, CapturePolicy.ALWAYS).capture_allowed)
        self.assertTrue(classify_delta(AngularDelta(20.0, -20.0), DEFAULTS).capture_allowed)

    def test_scores(self):
        state = classify_delta(AngularDelta(-7.0, 3.0), DEFAULTS)
        self.assertEqual(state.max_delta, 7.0)
        self.assertEqual(state.total_delta, 10.0)


class TestThresholds(unittest.TestCase):
    def test_custom_thresholds(self):
        tight = GuidanceThresholds(lock=1.0, fine=4.0, capture=6.0)
        self.assertIs(classify_band(AngularDelta(2.0, 0.0), tight), ProximityBand.FINE)
        self.assertIs(classify_band(AngularDelta(5.0, 0.0), tight), ProximityBand.COARSE)

    def test_invalid(self):
        for kwargs in ({"lock": -1.0}, {"lock": 20.0, "fine": 10.0}, {"capture": float("nan")}):
            with self.subTest(kwargs=kwargs):
                with self.assertRaises(ValueError):
                    GuidanceThresholds(**kwargs)


class TestAssessQuality(unittest.TestCase):
    def test_bands(self):
        for az, alt, expected in [
            (0.0, 2.9, MeasurementQuality.EXCELLENT),
            (3.0, 0.0, MeasurementQuality.GOOD),
            (-9.9, 5.0, MeasurementQuality.GOOD),
            (0.0, -10.0, MeasurementQuality.POOR),
        ]:
            with self.subTest(az=az, alt=alt):
                self.assertIs(assess_quality(AngularDelta(az, alt)), expected)


class TestGuidanceClassifier(unittest.TestCase):
    def test_missing_inputs_produce_no_guidance(self):
        classifier = GuidanceClassifier()
        here = CelestialPosition(0.0, 0.0)
        self.assertIsNone(classifier.classify(here, None))
        self.assertIsNone(classifier.classify(None, here))
        self.assertIsNone(classifier.classify(here, CelestialPosition(float("nan"), 0.0)))

    def test_night_mode_flag(self):
        state = GuidanceClassifier().classify(CelestialPosition(0.0, 0.0), CelestialPosition(0.0, -3.0))
        self.assertTrue(state.target_below_horizon)

    def test_without_hysteresis_band_follows_every_sample(self):
        classifier = GuidanceClassifier()
        target = CelestialPosition(100.0, 0.0)
        self.assertIs(classifier.classify(CelestialPosition(84.0, 0.0), target).band, ProximityBand.COARSE)
        self.assertIs(classifier.classify(CelestialPosition(86.0, 0.0), target).band, ProximityBand.FINE)
        self.assertIs(classifier.classify(CelestialPosition(84.0, 0.0), target).band, ProximityBand.COARSE)

    def test_hysteresis_requires_consecutive_samples(self):
        classifier = GuidanceClassifier(hysteresis_samples=3)
        target = CelestialPosition(100.0, 0.0)
        coarse = CelestialPosition(80.0, 0.0)
        fine = CelestialPosition(90.0, 0.0)

        self.assertIs(classifier.classify(coarse, target).band, ProximityBand.COARSE)
        self.assertIs(classifier.classify(fine, target).band, ProximityBand.COARSE)
        self.assertIs(classifier.classify(fine, target).band, ProximityBand.COARSE)
        # A flicker back resets the count
        self.assertIs(classifier.classify(coarse, target).band, ProximityBand.COARSE)
        self.assertIs(classifier.classify(fine, target).band, ProximityBand.COARSE)
        self.assertIs(classifier.classify(fine, target).band, ProximityBand.COARSE)
        state = classifier.classify(fine, target)
        self.assertIs(state.band, ProximityBand.FINE)
        self.assertEqual(state.azimuth_delta, 10.0)

    def test_hysteresis_never_holds_a_tighter_band(self):
        classifier = GuidanceClassifier(hysteresis_samples=3)
        target = CelestialPosition(100.0, 0.0)
        self.assertTrue(classifier.classify(CelestialPosition(99.0, 0.0), target).fully_locked)

        state = classifier.classify(CelestialPosition(40.0, 0.0), target)
        self.assertIs(state.band, ProximityBand.COARSE)
        self.assertFalse(state.fully_locked)
        self.assertFalse(state.azimuth_locked)
        self.assertTrue(state.directions.right)
        self.assertEqual(state.hint(), "Sun is Right")

        # Coming back is still debounced
        self.assertIs(classifier.classify(CelestialPosition(99.0, 0.0), target).band, ProximityBand.COARSE)
        self.assertFalse(classifier.classify(CelestialPosition(99.0, 0.0), target).fully_locked)
        self.assertTrue(classifier.classify(CelestialPosition(99.0, 0.0), target).fully_locked)

    def test_locked_band_agrees_with_lock_bits(self):
        state = classify_delta(AngularDelta(9.0, 0.0), DEFAULTS, band=ProximityBand.LOCKED)
        self.assertFalse(state.fully_locked)
        self.assertNotEqual(state.hint(), "ON TARGET")

    def test_rejects_zero_hysteresis(self):
        with self.assertRaises(ValueError):
            GuidanceClassifier(hysteresis_samples=0)


if __name__ == '__main__':
    unittest.main()
