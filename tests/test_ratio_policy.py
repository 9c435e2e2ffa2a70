from unittest import TestCase

from ratio_policy import ONE_DAY_SECONDS
from ratio_policy import ONE_YEAR_SECONDS
from ratio_policy import PolicyThresholds
from ratio_policy import TorrentRecord
from ratio_policy import evaluate
from ratio_policy import predict_ratio
from ratio_policy import torrent_age

NOW = 1_700_000_000.0


def record(age_days, ratio, hash='abc123', name='some.torrent'):
    return TorrentRecord(hash=hash, name=name, added_on=NOW - age_days * ONE_DAY_SECONDS, ratio=ratio)


class PredictRatioTest(TestCase):

    def test_one_year_old_keeps_ratio(self):
        self.assertAlmostEqual(predict_ratio(2.5, ONE_YEAR_SECONDS), 2.5)

    def test_zero_age_returns_current_ratio(self):
        self.assertEqual(predict_ratio(3.0, 0), 3.0)

    def test_negative_age_returns_current_ratio(self):
        self.assertEqual(predict_ratio(3.0, -100), 3.0)

    def test_half_year_doubles(self):
        self.assertAlmostEqual(predict_ratio(1.5, ONE_YEAR_SECONDS / 2), 3.0)


class TorrentAgeTest(TestCase):

    def test_future_added_on_is_zero(self):
        t = TorrentRecord(hash='h', name='n', added_on=NOW + 3600, ratio=1.0)
        self.assertEqual(torrent_age(t, NOW), 0.0)

    def test_elapsed_seconds(self):
        self.assertEqual(torrent_age(record(2, 1.0), NOW), 2 * ONE_DAY_SECONDS)


class EvaluateTest(TestCase):

    def setUp(self):
        self.thresholds = PolicyThresholds.from_days(100, 10)

    def test_young_torrent_is_kept(self):
        decision = evaluate(record(50, 0.01), self.thresholds, NOW)
        self.assertFalse(decision.should_remove)

    def test_old_low_ratio_is_removed(self):
        decision = evaluate(record(200, 1.0), self.thresholds, NOW)
        self.assertTrue(decision.should_remove)
        self.assertAlmostEqual(decision.predicted_ratio, 365 / 200)
        self.assertEqual(decision.hash, 'abc123')

    def test_old_high_ratio_is_kept(self):
        decision = evaluate(record(200, 20.0), self.thresholds, NOW)
        self.assertFalse(decision.should_remove)
        self.assertAlmostEqual(decision.predicted_ratio, 36.5)

    def test_exactly_at_age_threshold_is_eligible(self):
        decision = evaluate(record(100, 0.5), self.thresholds, NOW)
        self.assertTrue(decision.should_remove)

    def test_predicted_equal_to_threshold_is_kept(self):
        decision = evaluate(record(365, 10.0), self.thresholds, NOW)
        self.assertAlmostEqual(decision.predicted_ratio, 10.0)
        self.assertFalse(decision.should_remove)

    def test_zero_age_threshold_with_fresh_torrent(self):
        thresholds = PolicyThresholds.from_days(0, 10)
        t = TorrentRecord(hash='h', name='n', added_on=NOW, ratio=0.0)
        decision = evaluate(t, thresholds, NOW)
        self.assertEqual(decision.predicted_ratio, 0.0)
        self.assertTrue(decision.should_remove)


class TorrentRecordTest(TestCase):

    def test_rejects_missing_hash(self):
        with self.assertRaises(ValueError):
            TorrentRecord(hash='', name='n', added_on=NOW, ratio=1.0)

    def test_rejects_negative_ratio(self):
        with self.assertRaises(ValueError):
            TorrentRecord(hash='h', name='n', added_on=NOW, ratio=-1.0)

    def test_rejects_missing_ratio(self):
        with self.assertRaises(ValueError):
            TorrentRecord(hash='h', name='n', added_on=NOW, ratio=None)

    def test_rejects_missing_added_on(self):
        with self.assertRaises(ValueError):
            TorrentRecord(hash='h', name='n', added_on=None, ratio=1.0)

    def test_rejects_negative_added_on(self):
        with self.assertRaises(ValueError):
            TorrentRecord(hash='h', name='n', added_on=-5, ratio=1.0)
