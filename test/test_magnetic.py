import unittest
from datetime import datetime, timezone

from common.interface import DeclinationModel
from common.types import GeoLocation
from helios.magnetic import (
    CachedDeclination,
    FixedDeclination,
    WMMDeclination,
    decimal_year,
    lookup_declination,
    to_true_north,
)


class CountingModel(DeclinationModel):
    def __init__(self, degrees=0.0):
        self.degrees = degrees
        self.calls = 0

    def declination(self, latitude, longitude):
        self.calls += 1
        return self.degrees + longitude * 0.01


class FailingModel(DeclinationModel):
    def declination(self, latitude, longitude):
        raise ValueError("outside model coverage")


class NanModel(DeclinationModel):
    def declination(self, latitude, longitude):
        return float("nan")


HERE = GeoLocation(latitude=51.5, longitude=0.0)


class TestToTrueNorth(unittest.TestCase):
    def test_adds_declination(self):
        for magnetic, declination, expected in [
            (100.0, 2.5, 102.5),
            (359.0, 3.0, 2.0),
            (1.0, -3.0, 358.0),
            (0.0, 0.0, 0.0),
        ]:
            with self.subTest(magnetic=magnetic, declination=declination):
                result = to_true_north(magnetic, HERE, FixedDeclination(declination))
                self.assertAlmostEqual(result.true_azimuth, expected)
                self.assertEqual(result.declination_used, declination)
                self.assertTrue(result.corrected)

    def test_skipped_without_location(self):
        result = to_true_north(123.0, None, FixedDeclination(10.0))
        self.assertEqual(result.true_azimuth, 123.0)
        self.assertIsNone(result.declination_used)
        self.assertFalse(result.corrected)

    def test_skipped_without_model(self):
        self.assertIsNone(to_true_north(123.0, HERE, None).declination_used)

    def test_model_failure_falls_back_to_magnetic(self):
        for model in (FailingModel(), NanModel()):
            with self.subTest(model=type(model).__name__):
                with self.assertLogs("helios.magnetic", level="WARNING"):
                    result = to_true_north(45.0, HERE, model)
                self.assertEqual(result.true_azimuth, 45.0)
                self.assertIsNone(result.declination_used)

    def test_non_finite_location_is_ignored(self):
        self.assertIsNone(lookup_declination(FixedDeclination(1.0), GeoLocation(float("nan"), 0.0)))


class TestCachedDeclination(unittest.TestCase):
    def test_recomputes_only_after_material_move(self):
        inner = CountingModel(degrees=-1.0)
        cached = CachedDeclination(inner, min_move_deg=0.1)

        first = cached.declination(40.0, 10.0)
        self.assertAlmostEqual(first, -0.9)
        cached.declination(40.05, 10.05)
        self.assertEqual(inner.calls, 1)

        moved = cached.declination(40.0, 11.0)
        self.assertEqual(inner.calls, 2)
        self.assertAlmostEqual(moved, -0.89)
        self.assertEqual(cached.cached.longitude, 11.0)

    def test_invalidate(self):
        inner = CountingModel()
        cached = CachedDeclination(inner)
        cached.declination(0.0, 0.0)
        cached.invalidate()
        cached.declination(0.0, 0.0)
        self.assertEqual(inner.calls, 2)

    def test_rejects_negative_threshold(self):
        with self.assertRaises(ValueError):
            CachedDeclination(FixedDeclination(), min_move_deg=-1.0)


def mid_2025():
    return datetime(2025, 6, 1, tzinfo=timezone.utc)


class TestWMMDeclination(unittest.TestCase):
    def setUp(self):
        self.model = WMMDeclination(when=mid_2025, allow_date_outside_lifespan=True)

    def test_decimal_year(self):
        self.assertEqual(decimal_year(datetime(2024, 1, 1)), 2024.0)
        self.assertAlmostEqual(decimal_year(datetime(2024, 7, 2, tzinfo=timezone.utc)), 2024.5)

    def test_known_declinations(self):
        # Seattle is about 15 deg east, New York about 13 deg west
        for name, latitude, longitude, low, high in [
            ("seattle", 47.6205, -122.3493, 13.5, 16.5),
            ("new_york", 40.7128, -74.0060, -14.5, -11.0),
        ]:
            with self.subTest(name=name):
                degrees = self.model.declination(latitude, longitude)
                self.assertGreater(degrees, low)
                self.assertLess(degrees, high)

    def test_feeds_true_north(self):
        result = to_true_north(0.0, GeoLocation(47.6205, -122.3493), self.model)
        self.assertTrue(result.corrected)
        self.assertAlmostEqual(result.true_azimuth, result.declination_used)


if __name__ == '__main__':
    unittest.main()
