import pytest

from runguide.tracker.errors import ConfigurationError
from runguide.tracker.models import SampleRejection
from runguide.tracker.sample_filter import LocationSampleFilter
from runguide.tracker.track_config import TrackConfig


def test_first_accurate_sample_is_persisted(make_sample):
    f = LocationSampleFilter()
    decision = f.accept(make_sample(t=1_700_000_000.0))
    assert decision.evaluate and decision.persist
    assert f.last_persisted_ts == 1_700_000_000.0


@pytest.mark.parametrize("accuracy", [60.0, 50.01, 0.0, -1.0])
def test_inaccurate_samples_are_rejected(make_sample, accuracy):
    f = LocationSampleFilter()
    decision = f.accept(make_sample(accuracy=accuracy))
    assert not decision.evaluate
    assert not decision.persist
    assert decision.reason is SampleRejection.INACCURATE
    assert f.last_persisted_ts is None


def test_accuracy_at_threshold_is_accepted(make_sample):
    assert LocationSampleFilter().accept(make_sample(accuracy=50.0)).evaluate


def test_persist_is_throttled_but_evaluate_is_not(make_sample):
    f = LocationSampleFilter()
    decisions = [f.accept(make_sample(t=float(t))) for t in range(0, 21)]
    assert all(d.evaluate for d in decisions)
    persisted = [t for t, d in zip(range(0, 21), decisions) if d.persist]
    assert persisted == [0, 5, 10, 15, 20]


def test_never_persists_twice_within_interval(make_sample):
    f = LocationSampleFilter(TrackConfig(publish_interval_s=5.0))
    times = [0.0, 0.4, 3.9, 4.99, 5.0, 7.5, 9.99, 10.1, 10.2, 16.0, 16.0, 30.0]
    persisted = [t for t in times if f.accept(make_sample(t=t)).persist]
    gaps = [b - a for a, b in zip(persisted, persisted[1:])]
    assert all(g >= 5.0 for g in gaps)
    assert persisted == [0.0, 5.0, 10.1, 16.0, 30.0]


def test_rejected_sample_does_not_move_throttle_clock(make_sample):
    f = LocationSampleFilter()
    f.accept(make_sample(t=0.0))
    assert not f.accept(make_sample(t=6.0, accuracy=80.0)).persist
    assert f.accept(make_sample(t=6.5)).persist


def test_out_of_order_sample_is_evaluated_but_not_persisted(make_sample):
    f = LocationSampleFilter()
    f.accept(make_sample(t=10.0))
    decision = f.accept(make_sample(t=9.0))
    assert decision.evaluate
    assert not decision.persist
    assert decision.reason is SampleRejection.STALE
    assert f.last_persisted_ts == 10.0


def test_out_of_order_sample_does_not_move_newest_timestamp_back(make_sample):
    f = LocationSampleFilter()
    f.accept(make_sample(t=10.0))
    f.accept(make_sample(t=2.0))
    assert not f.accept(make_sample(t=8.0)).persist
    assert f.accept(make_sample(t=10.0)).evaluate
    assert f.accept(make_sample(t=15.0)).persist


def test_reset_makes_next_sample_persist_again(make_sample):
    f = LocationSampleFilter()
    f.accept(make_sample(t=100.0))
    f.reset()
    assert f.accept(make_sample(t=50.0)).persist


def test_non_positive_threshold_is_rejected():
    with pytest.raises(ConfigurationError):
        LocationSampleFilter(TrackConfig(accuracy_threshold_m=0))
    with pytest.raises(ConfigurationError):
        LocationSampleFilter(TrackConfig(publish_interval_s=-1))
