"""
Shared pytest fixtures for the tracker and voice tests.
"""

import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_ROOT = PROJECT_ROOT / "src"
if str(SRC_ROOT) not in sys.path:
    sys.path.insert(0, str(SRC_ROOT))

from runguide.tracker.geo_utils import offset_coordinate
from runguide.tracker.models import GuidePoint, LocationSample
from runguide.tracker.track_config import TrackConfig

START = (35.0, 139.0)


@pytest.fixture
def make_sample():
    """Build a sample `north_m`/`east_m` metres from an origin (default START)."""

    def _make(north_m=0.0, east_m=0.0, t=0.0, accuracy=5.0, origin=START, **kwargs):
        lat, lon = offset_coordinate(origin[0], origin[1], north_m, east_m)
        return LocationSample(lat, lon, accuracy_m=accuracy, timestamp=t, **kwargs)

    return _make


@pytest.fixture
def guide_point():
    """Build a guide point `north_m`/`east_m` metres from START."""

    def _make(point_id, north_m=0.0, east_m=0.0, radius=20.0, cue_id=None, label=""):
        lat, lon = offset_coordinate(START[0], START[1], north_m, east_m)
        return GuidePoint(point_id, lat, lon, radius_m=radius,
                          cue_id=cue_id or f"cue-{point_id}", label=label)

    return _make


@pytest.fixture
def config(tmp_path):
    """Exit-arming only, data files under tmp_path."""
    return TrackConfig(
        finish_radius_m=30.0,
        finish_consecutive=3,
        arm_distance_m=None,
        min_elapsed_s=None,
        data_dir=str(tmp_path),
    )
