# course_loader.py
# Reads and writes guide points / courses and notifies listeners when they change.
#
# Usage:
#   loader = CourseLoader(config)
#   points = loader.load_guide_points()
#   unsubscribe = loader.subscribe(session.on_guide_points_changed)

import json
import logging
import os
from typing import Callable, List, Optional

import pandas as pd

from .errors import CourseFormatError
from .models import Course, GuidePoint
from .track_config import TrackConfig

logger = logging.getLogger(__name__)

CSV_REQUIRED_COLUMNS = ("lat", "lon", "message", "audio_id")


class CourseLoader:
    """
    Course provider backed by ``course.json`` in the data directory.

    Args:
        config: TrackConfig for the file path and default trigger radius.
    """

    def __init__(self, config: Optional[TrackConfig] = None) -> None:
        self.config = config or TrackConfig()
        self._listeners: List[Callable[[], None]] = []

    # ------------------------------------------------------------------
    # Change notification
    # ------------------------------------------------------------------

    def subscribe(self, callback: Callable[[], None]) -> Callable[[], None]:
        """Register callback for guide point changes. Returns an unsubscribe function."""
        self._listeners.append(callback)

        def unsubscribe() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe

    def notify_changed(self) -> None:
        for callback in list(self._listeners):
            callback()

    # ------------------------------------------------------------------
    # Guide point persistence
    # ------------------------------------------------------------------

    def load_guide_points(self) -> List[GuidePoint]:
        """
        Load guide points from course.json.

        Returns:
            Guide points in file order; [] when the file does not exist.

        Raises:
            CourseFormatError: the file exists but is not a list of guide points.
        """
        path = self.config.course_filepath
        if not os.path.exists(path):
            logger.info(f"{path} not found, returning no guide points")
            return []
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except ValueError as e:
            raise CourseFormatError(f"Failed to load guide points from {path}: {e}") from e
        if not isinstance(data, list):
            raise CourseFormatError(f"Failed to load guide points from {path}: expected a list")
        try:
            points = [
                GuidePoint.from_dict(d, self.config.guide_trigger_radius_m) for d in data
            ]
        except (KeyError, TypeError, ValueError) as e:
            raise CourseFormatError(f"Failed to load guide points from {path}: {e}") from e
        logger.info(f"Loaded {len(points)} guide points from {path}")
        return points

    def save_guide_points(self, points: List[GuidePoint]) -> bool:
        """
        Write guide points to course.json and notify listeners.

        Returns:
            True on success, False on failure.
        """
        path = self.config.course_filepath
        try:
            os.makedirs(self.config.data_dir, exist_ok=True)
            with open(path, "w", encoding="utf-8") as f:
                json.dump([p.to_dict() for p in points], f, ensure_ascii=False, indent=2)
        except IOError as e:
            logger.error(f"Failed to save guide points to {path}: {e}")
            return False
        logger.info(f"Saved {len(points)} guide points to {path}")
        self.notify_changed()
        return True

    # ------------------------------------------------------------------
    # Course documents
    # ------------------------------------------------------------------

    def load_course(self, path: str) -> Course:
        """
        Load a full course document (metadata + guide points).

        Raises:
            CourseFormatError: unreadable or incomplete document.
        """
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
            course = Course.from_dict(data, self.config.guide_trigger_radius_m)
        except (IOError, KeyError, TypeError, ValueError) as e:
            raise CourseFormatError(f"Failed to load course from {path}: {e}") from e
        logger.info(f"Loaded course: {course.name} with {len(course.guide_points)} guide points")
        return course

    def save_course(self, course: Course, path: str) -> bool:
        try:
            with open(path, "w", encoding="utf-8") as f:
                json.dump(course.to_dict(), f, ensure_ascii=False, indent=2)
        except IOError as e:
            logger.error(f"Failed to save course to {path}: {e}")
            return False
        return True

    def load_guide_points_csv(self, path: str) -> List[GuidePoint]:
        """
        Load guide points from a CSV with columns lat, lon, message, audio_id
        and optionally radius and id.

        Missing radius values fall back to the configured trigger radius;
        missing ids become the row number.

        Raises:
            CourseFormatError: missing columns or unparsable values.
        """
        try:
            df = pd.read_csv(path)
        except (IOError, ValueError) as e:
            raise CourseFormatError(f"Failed to read {path}: {e}") from e

        missing = [c for c in CSV_REQUIRED_COLUMNS if c not in df.columns]
        if missing:
            raise CourseFormatError(f"{path}: missing columns {missing}")

        if "radius" not in df.columns:
            df["radius"] = self.config.guide_trigger_radius_m
        df["radius"] = df["radius"].fillna(self.config.guide_trigger_radius_m)
        if "id" not in df.columns:
            df["id"] = [str(i) for i in range(len(df))]
        df["message"] = df["message"].fillna("")

        try:
            points = [
                GuidePoint(
                    point_id=str(row["id"]),
                    lat=float(row["lat"]),
                    lon=float(row["lon"]),
                    radius_m=float(row["radius"]),
                    cue_id=str(row["audio_id"]),
                    label=str(row["message"]),
                )
                for _, row in df.iterrows()
            ]
        except (TypeError, ValueError) as e:
            raise CourseFormatError(f"{path}: {e}") from e
        logger.info(f"Loaded {len(points)} guide points from {path}")
        return points
