import json

import pytest

from runguide.tracker.course_loader import CourseLoader
from runguide.tracker.errors import CourseFormatError
from runguide.tracker.models import Course, GuidePoint


@pytest.fixture
def loader(config):
    return CourseLoader(config)


def test_missing_course_file_means_no_guide_points(loader):
    assert loader.load_guide_points() == []


def test_save_then_load_guide_points(loader, guide_point):
    points = [guide_point("a", north_m=100.0, label="Turn left"), guide_point("b", north_m=200.0)]
    assert loader.save_guide_points(points)
    assert loader.load_guide_points() == points


def test_save_notifies_subscribers_until_unsubscribed(loader, guide_point):
    calls = []
    unsubscribe = loader.subscribe(lambda: calls.append("changed"))
    loader.save_guide_points([guide_point("a")])
    unsubscribe()
    loader.save_guide_points([guide_point("b")])
    unsubscribe()
    assert calls == ["changed"]


def test_missing_radius_uses_configured_trigger_radius(loader, config):
    with open(config.course_filepath, "w", encoding="utf-8") as f:
        json.dump([{"id": "x", "latitude": 35.0, "longitude": 139.0,
                    "message": "hi", "audioId": "cue-x"}], f)
    [point] = loader.load_guide_points()
    assert point.radius_m == config.guide_trigger_radius_m == 40.0


@pytest.mark.parametrize(
    "content",
    [
        "{broken",
        json.dumps({"id": "not a list"}),
        json.dumps([{"id": "x", "latitude": 35.0}]),
        json.dumps([{"id": "x", "latitude": 35.0, "longitude": 139.0,
                     "radius": 0, "audioId": "a"}]),
    ],
)
def test_malformed_course_file_raises(loader, config, content):
    with open(config.course_filepath, "w", encoding="utf-8") as f:
        f.write(content)
    with pytest.raises(CourseFormatError):
        loader.load_guide_points()


def test_non_list_course_file_message_is_not_repeated(loader, config):
    with open(config.course_filepath, "w", encoding="utf-8") as f:
        json.dump({"id": "not a list"}, f)
    with pytest.raises(CourseFormatError) as excinfo:
        loader.load_guide_points()
    message = str(excinfo.value)
    assert message.count("Failed to load guide points") == 1
    assert message.count(config.course_filepath) == 1
    assert message.endswith("expected a list")


def test_course_document_round_trip(loader, tmp_path, guide_point):
    course = Course(
        course_id="c1",
        name="Riverside loop",
        description="Flat 5k",
        distance_m=5000.0,
        estimated_duration_s=1800.0,
        guide_points=[guide_point("a", north_m=50.0)],
    )
    path = str(tmp_path / "riverside.json")
    assert loader.save_course(course, path)
    assert loader.load_course(path) == course


def test_load_course_missing_file_raises(loader, tmp_path):
    with pytest.raises(CourseFormatError):
        loader.load_course(str(tmp_path / "nope.json"))


def test_load_guide_points_csv(loader, tmp_path):
    path = tmp_path / "course.csv"
    path.write_text(
        "lat,lon,message,audio_id,radius\n"
        "35.001,139.001,Water station,water,25\n"
        "35.002,139.002,Halfway,halfway,\n",
        encoding="utf-8",
    )
    points = loader.load_guide_points_csv(str(path))
    assert points == [
        GuidePoint("0", 35.001, 139.001, radius_m=25.0, cue_id="water", label="Water station"),
        GuidePoint("1", 35.002, 139.002, radius_m=40.0, cue_id="halfway", label="Halfway"),
    ]


def test_csv_without_required_columns_raises(loader, tmp_path):
    path = tmp_path / "course.csv"
    path.write_text("lat,lon\n35.0,139.0\n", encoding="utf-8")
    with pytest.raises(CourseFormatError):
        loader.load_guide_points_csv(str(path))
