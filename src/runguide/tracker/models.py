# models.py
# Shared data structures and enums used across all modules.

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Union

from .errors import require_positive


# ---------------------------------------------------------------------------
# Coordinate
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Coord:
    """Immutable geographic coordinate."""
    lat: float
    lon: float


# ---------------------------------------------------------------------------
# Guide point / course
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class GuidePoint:
    """A location-anchored cue on the course."""
    point_id: str
    lat: float
    lon: float
    radius_m: float
    cue_id: str                  # audio cue identifier
    label: str = ""              # message spoken / shown when hit

    def __post_init__(self) -> None:
        require_positive(f"radius_m of guide point {self.point_id}", self.radius_m)

    @property
    def coord(self) -> Coord:
        return Coord(self.lat, self.lon)

    def to_dict(self) -> dict:
        return {
            "id": self.point_id,
            "latitude": self.lat,
            "longitude": self.lon,
            "radius": self.radius_m,
            "message": self.label,
            "audioId": self.cue_id,
        }

    @staticmethod
    def from_dict(d: dict, default_radius_m: Optional[float] = None) -> "GuidePoint":
        radius = d.get("radius", default_radius_m)
        return GuidePoint(
            point_id=str(d["id"]),
            lat=float(d["latitude"]),
            lon=float(d["longitude"]),
            radius_m=float(radius) if radius is not None else radius,
            cue_id=str(d["audioId"]),
            label=d.get("message", ""),
        )


@dataclass
class Course:
    """A named set of guide points. Order does not affect triggering."""
    course_id: str
    name: str
    description: str = ""
    distance_m: float = 0.0
    estimated_duration_s: float = 0.0
    guide_points: List[GuidePoint] = field(default_factory=list)
    is_active: bool = True

    def to_dict(self) -> dict:
        return {
            "id": self.course_id,
            "name": self.name,
            "description": self.description,
            "distance": self.distance_m,
            "estimatedDuration": self.estimated_duration_s,
            "isActive": self.is_active,
            "guidePoints": [p.to_dict() for p in self.guide_points],
        }

    @staticmethod
    def from_dict(d: dict, default_radius_m: Optional[float] = None) -> "Course":
        return Course(
            course_id=str(d["id"]),
            name=d["name"],
            description=d.get("description", ""),
            distance_m=float(d.get("distance", 0.0)),
            estimated_duration_s=float(d.get("estimatedDuration", 0.0)),
            guide_points=[
                GuidePoint.from_dict(p, default_radius_m) for p in d.get("guidePoints", [])
            ],
            is_active=bool(d.get("isActive", True)),
        )


# ---------------------------------------------------------------------------
# GPS samples and recorded track
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class LocationSample:
    """A raw fix from the location provider."""
    lat: float
    lon: float
    accuracy_m: float            # horizontal accuracy; <= 0 means invalid
    timestamp: float             # Unix seconds
    speed_mps: Optional[float] = None
    heading_deg: Optional[float] = None
    altitude_m: Optional[float] = None

    @property
    def coord(self) -> Coord:
        return Coord(self.lat, self.lon)


@dataclass(frozen=True)
class TrackPoint:
    """A sample accepted for persistence, tagged with its run."""
    run_id: str
    timestamp: float
    lat: float
    lon: float
    accuracy_m: float
    speed_mps: Optional[float] = None
    heading_deg: Optional[float] = None
    altitude_m: Optional[float] = None

    @staticmethod
    def from_sample(run_id: str, sample: LocationSample) -> "TrackPoint":
        # Devices report unknown speed/course as negative values.
        speed = sample.speed_mps if sample.speed_mps is not None and sample.speed_mps >= 0 else None
        heading = (
            sample.heading_deg
            if sample.heading_deg is not None and sample.heading_deg >= 0
            else None
        )
        return TrackPoint(
            run_id=run_id,
            timestamp=sample.timestamp,
            lat=sample.lat,
            lon=sample.lon,
            accuracy_m=sample.accuracy_m,
            speed_mps=speed,
            heading_deg=heading,
            altitude_m=sample.altitude_m,
        )

    def to_dict(self) -> dict:
        return {
            "run_id": self.run_id,
            "ts": self.timestamp,
            "lat": self.lat,
            "lon": self.lon,
            "accuracy": self.accuracy_m,
            "speed": self.speed_mps,
            "heading": self.heading_deg,
            "altitude": self.altitude_m,
        }

    @staticmethod
    def from_dict(d: dict) -> "TrackPoint":
        return TrackPoint(
            run_id=d["run_id"],
            timestamp=float(d["ts"]),
            lat=float(d["lat"]),
            lon=float(d["lon"]),
            accuracy_m=float(d["accuracy"]),
            speed_mps=d.get("speed"),
            heading_deg=d.get("heading"),
            altitude_m=d.get("altitude"),
        )


# ---------------------------------------------------------------------------
# Stored run
# ---------------------------------------------------------------------------

@dataclass
class RunRecord:
    """Run metadata as kept by the run store."""
    run_id: str
    started_at: float
    start_lat: float
    start_lon: float
    ended_at: Optional[float] = None
    end_radius_m: float = 0.0
    finish_consecutive: int = 0
    course_id: Optional[str] = None

    @property
    def is_finished(self) -> bool:
        return self.ended_at is not None

    def to_dict(self) -> dict:
        return {
            "id": self.run_id,
            "started_at": self.started_at,
            "start_lat": self.start_lat,
            "start_lng": self.start_lon,
            "ended_at": self.ended_at,
            "end_radius": self.end_radius_m,
            "finish_consecutive": self.finish_consecutive,
            "course_id": self.course_id,
        }

    @staticmethod
    def from_dict(d: dict) -> "RunRecord":
        return RunRecord(
            run_id=d["id"],
            started_at=float(d["started_at"]),
            start_lat=float(d["start_lat"]),
            start_lon=float(d["start_lng"]),
            ended_at=d.get("ended_at"),
            end_radius_m=float(d.get("end_radius", 0.0)),
            finish_consecutive=int(d.get("finish_consecutive", 0)),
            course_id=d.get("course_id"),
        )


@dataclass
class RunSummary:
    """Derived statistics for a recorded run."""
    point_count: int
    distance_m: float
    duration_s: float
    average_pace_s_per_km: Optional[float] = None   # None if no distance covered


# ---------------------------------------------------------------------------
# Filter decision
# ---------------------------------------------------------------------------

class SampleRejection(Enum):
    INACCURATE = "inaccurate"
    STALE      = "stale"


@dataclass(frozen=True)
class FilterDecision:
    """Returned by LocationSampleFilter.accept() for every sample."""
    evaluate: bool
    persist: bool
    reason: Optional[SampleRejection] = None    # why evaluate or persist is False


# ---------------------------------------------------------------------------
# Session output
# ---------------------------------------------------------------------------

class SessionStatus(Enum):
    INACTIVE = "inactive"
    REJECTED = "rejected"
    TRACKING = "tracking"
    FINISHED = "finished"


@dataclass(frozen=True)
class StartRunRequest:
    """The run's start point is known (eagerly at start() or on the first fix)."""
    run_id: str
    sample: LocationSample


@dataclass(frozen=True)
class PlayCueRequest:
    guide_point: GuidePoint


@dataclass(frozen=True)
class PersistTrackPointRequest:
    track_point: TrackPoint


@dataclass(frozen=True)
class FinishRunRequest:
    run_id: str
    end_radius_m: float
    hit_count: int               # consecutive in-radius samples at finish
    finished_at: float
    auto: bool = True            # False when the user finished manually


SessionRequest = Union[StartRunRequest, PlayCueRequest, PersistTrackPointRequest, FinishRunRequest]


@dataclass
class SampleResult:
    """Returned by RunSession.on_sample() every GPS update."""
    status: SessionStatus
    requests: List[SessionRequest] = field(default_factory=list)
    hits: List[GuidePoint] = field(default_factory=list)
    distance_to_start_m: Optional[float] = None
