"""Ratio projection and removal policy.

A torrent's current ratio is extrapolated linearly to one year of age. Torrents
old enough to be judged whose projected ratio falls short of the threshold are
flagged for removal.
"""
import time
from dataclasses import dataclass

ONE_DAY_SECONDS = 24 * 3600
ONE_YEAR_SECONDS = 365 * ONE_DAY_SECONDS


@dataclass(frozen=True)
class TorrentRecord:
    hash: str
    name: str
    added_on: float  # unix epoch seconds
    ratio: float

    def __post_init__(self):
        if not self.hash:
            raise ValueError("torrent record without hash")
        if self.added_on is None or self.added_on <= 0:
            raise ValueError(f"invalid added_on for {self.hash}: {self.added_on}")
        if self.ratio is None or self.ratio < 0:
            raise ValueError(f"invalid ratio for {self.hash}: {self.ratio}")


@dataclass(frozen=True)
class PolicyThresholds:
    min_age_seconds: float
    min_ratio: float

    @classmethod
    def from_days(cls, age_days, min_ratio):
        return cls(min_age_seconds=age_days * ONE_DAY_SECONDS, min_ratio=min_ratio)


@dataclass(frozen=True)
class RemovalDecision:
    torrent: TorrentRecord
    should_remove: bool
    predicted_ratio: float
    age_seconds: float

    @property
    def hash(self):
        return self.torrent.hash


def torrent_age(record, now):
    # clock skew or a future added_on counts as brand new
    return max(0.0, now - record.added_on)


def predict_ratio(current_ratio, age_seconds):
    """Linear extrapolation of ``current_ratio`` to one year of age.

    Without any elapsed time there is nothing to extrapolate from, so the
    current ratio is returned unchanged.
    """
    if age_seconds <= 0:
        return current_ratio
    return current_ratio * (ONE_YEAR_SECONDS / age_seconds)


def evaluate(record, thresholds, now=None):
    if now is None:
        now = time.time()
    age = torrent_age(record, now)
    predicted = predict_ratio(record.ratio, age)
    eligible = age >= thresholds.min_age_seconds
    return RemovalDecision(
        torrent=record,
        should_remove=eligible and predicted < thresholds.min_ratio,
        predicted_ratio=predicted,
        age_seconds=age,
    )
