import pytest

from runguide.tracker.errors import ConfigurationError
from runguide.tracker.geofence import GeofenceEngine
from runguide.tracker.models import GuidePoint
from runguide.tracker.track_config import TrackConfig

POINT_ORIGIN = (35.001, 139.001)


@pytest.fixture
def point():
    return GuidePoint("gp-1", POINT_ORIGIN[0], POINT_ORIGIN[1], radius_m=20.0, cue_id="cue-1")


def test_hysteresis_sequence(point, make_sample):
    engine = GeofenceEngine()
    hits = []
    for d in [50.0, 10.0, 15.0, 35.0, 10.0]:
        sample = make_sample(north_m=d, origin=POINT_ORIGIN)
        hits.append([p.point_id for p in engine.check_hits(sample, [point])])
        if d == 35.0:
            assert "gp-1" not in engine.triggered_ids
    assert hits == [[], ["gp-1"], [], [], ["gp-1"]]


def test_lingering_between_radius_and_exit_radius_does_not_rearm(point, make_sample):
    engine = GeofenceEngine()
    distances = [10.0, 25.0, 29.0, 12.0, 28.0, 5.0, 29.5, 19.0]
    total = sum(
        len(engine.check_hits(make_sample(north_m=d, origin=POINT_ORIGIN), [point]))
        for d in distances
    )
    assert total == 1
    assert engine.triggered_ids == frozenset({"gp-1"})


def test_overlapping_points_hit_together_in_course_order(guide_point, make_sample):
    a = guide_point("a", north_m=10.0, radius=30.0)
    b = guide_point("b", north_m=-10.0, radius=30.0)
    c = guide_point("c", north_m=500.0, radius=30.0)
    engine = GeofenceEngine()
    hits = engine.check_hits(make_sample(), [b, c, a])
    assert [p.point_id for p in hits] == ["b", "a"]


def test_empty_course_returns_no_hits(make_sample):
    assert GeofenceEngine().check_hits(make_sample(), []) == []


def test_reset_then_replay_matches_fresh_engine(guide_point, make_sample):
    course = [guide_point("a", north_m=100.0, radius=25.0), guide_point("b", north_m=200.0, radius=25.0)]
    samples = [make_sample(north_m=n) for n in range(0, 260, 10)]
    samples += [make_sample(north_m=n) for n in range(250, -10, -10)]

    def replay(engine):
        return [[p.point_id for p in engine.check_hits(s, course)] for s in samples]

    used = GeofenceEngine()
    first = replay(used)
    used.reset()
    assert replay(used) == first == replay(GeofenceEngine())
    assert sum(len(h) for h in first) == 4


def test_custom_hysteresis_factor(point, make_sample):
    engine = GeofenceEngine(TrackConfig(hysteresis_factor=3.0))
    engine.check_hits(make_sample(north_m=5.0, origin=POINT_ORIGIN), [point])
    engine.check_hits(make_sample(north_m=45.0, origin=POINT_ORIGIN), [point])
    assert "gp-1" in engine.triggered_ids
    engine.check_hits(make_sample(north_m=61.0, origin=POINT_ORIGIN), [point])
    assert engine.triggered_ids == frozenset()


@pytest.mark.parametrize("factor", [1.0, 0.5])
def test_hysteresis_factor_must_exceed_one(factor):
    with pytest.raises(ConfigurationError):
        GeofenceEngine(TrackConfig(hysteresis_factor=factor))


def test_guide_point_radius_must_be_positive():
    with pytest.raises(ConfigurationError):
        GuidePoint("bad", 35.0, 139.0, radius_m=0.0, cue_id="x")


def test_config_and_engine_reject_hysteresis_factor_alike():
    with pytest.raises(ConfigurationError, match="hysteresis_factor must be > 1") as from_config:
        TrackConfig(hysteresis_factor=1.0).validate()
    with pytest.raises(ConfigurationError) as from_engine:
        GeofenceEngine(TrackConfig(hysteresis_factor=1.0))
    assert str(from_config.value) == str(from_engine.value)
