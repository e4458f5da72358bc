# track_config.py
# All tuneable constants in one place.
# Pass a TrackConfig instance to every module that needs settings.

import os
from dataclasses import dataclass
from typing import Optional

from .errors import ConfigurationError, require_above_one, require_positive


# ---------------------------------------------------------------------------
# Sample filtering
# ---------------------------------------------------------------------------

ACCURACY_THRESHOLD_M: float = 50.0     # samples less accurate than this are dropped
PUBLISH_INTERVAL_S: float = 5.0        # min gap between persisted track points

# ---------------------------------------------------------------------------
# Geofence / auto-finish
# ---------------------------------------------------------------------------

HYSTERESIS_FACTOR: float = 1.5
GUIDE_TRIGGER_RADIUS_M: float = 40.0
FINISH_RADIUS_M: float = 30.0
FINISH_CONSECUTIVE: int = 3
ARM_DISTANCE_M: float = 50.0
MIN_ELAPSED_S: float = 60.0


# ---------------------------------------------------------------------------
# Main config
# ---------------------------------------------------------------------------

@dataclass
class TrackConfig:
    # Sample filter
    accuracy_threshold_m: float = ACCURACY_THRESHOLD_M
    publish_interval_s: float = PUBLISH_INTERVAL_S

    # Guide points
    hysteresis_factor: float = HYSTERESIS_FACTOR
    guide_trigger_radius_m: float = GUIDE_TRIGGER_RADIUS_M

    # Auto-finish
    finish_radius_m: float = FINISH_RADIUS_M
    finish_consecutive: int = FINISH_CONSECUTIVE
    require_exit_before_finish: bool = True
    arm_distance_m: Optional[float] = ARM_DISTANCE_M     # None disables distance arming
    min_elapsed_s: Optional[float] = MIN_ELAPSED_S       # None disables time arming

    # Storage
    data_dir: str = "."                    # directory for saved JSON files
    runs_filename: str = "runs.json"
    course_filename: str = "course.json"
    settings_filename: str = "settings.json"

    # Voice
    speech_rate: int = 150                 # pyttsx3 words per minute

    def validate(self) -> "TrackConfig":
        """Reject impossible values. Returns self so calls can be chained."""
        require_positive("accuracy_threshold_m", self.accuracy_threshold_m)
        require_positive("publish_interval_s", self.publish_interval_s)
        require_positive("guide_trigger_radius_m", self.guide_trigger_radius_m)
        require_positive("finish_radius_m", self.finish_radius_m)
        require_above_one("hysteresis_factor", self.hysteresis_factor)
        if int(self.finish_consecutive) != self.finish_consecutive or self.finish_consecutive < 1:
            raise ConfigurationError(
                f"finish_consecutive must be an integer >= 1, got {self.finish_consecutive!r}"
            )
        if self.arm_distance_m is not None:
            require_positive("arm_distance_m", self.arm_distance_m)
        if self.min_elapsed_s is not None:
            require_positive("min_elapsed_s", self.min_elapsed_s)
        return self

    @property
    def runs_filepath(self) -> str:
        return os.path.join(self.data_dir, self.runs_filename)

    @property
    def course_filepath(self) -> str:
        return os.path.join(self.data_dir, self.course_filename)

    @property
    def settings_filepath(self) -> str:
        return os.path.join(self.data_dir, self.settings_filename)

    def track_filepath(self, run_id: str) -> str:
        return os.path.join(self.data_dir, f"track_{run_id}.jsonl")
