# run_store.py
# Handles all file I/O for recorded runs.
# Saves the runs index as JSON and each run's track as append-only JSONL.

import json
import logging
import os
import time
import uuid
from typing import Dict, List, Optional

import pandas as pd

from .geo_utils import path_length
from .models import LocationSample, RunRecord, RunSummary, TrackPoint
from .track_config import TrackConfig

logger = logging.getLogger(__name__)

TRACK_COLUMNS = ["run_id", "ts", "lat", "lon", "accuracy", "speed", "heading", "altitude"]


class RunStore:
    """
    Persists runs and their track points to JSON files.

    Args:
        config: TrackConfig instance for file paths and directories.
    """

    def __init__(self, config: Optional[TrackConfig] = None) -> None:
        self.config = config or TrackConfig()
        os.makedirs(self.config.data_dir, exist_ok=True)
        self._runs: Dict[str, RunRecord] = self._read_index()
        self._last_ts: Dict[str, float] = {}

    # ------------------------------------------------------------------
    # Runs index
    # ------------------------------------------------------------------

    def _read_index(self) -> Dict[str, RunRecord]:
        path = self.config.runs_filepath
        if not os.path.exists(path):
            return {}
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
            runs = [RunRecord.from_dict(r) for r in data["runs"]]
            logger.info(f"Runs loaded from {path} ({len(runs)} runs).")
            return {r.run_id: r for r in runs}
        except (IOError, KeyError, ValueError) as e:
            logger.error(f"Failed to load runs from {path}: {e}")
            return {}

    def _write_index(self) -> bool:
        path = self.config.runs_filepath
        try:
            data = {
                "saved_at": time.time(),
                "run_count": len(self._runs),
                "runs": [r.to_dict() for r in self._runs.values()],
            }
            with open(path, "w", encoding="utf-8") as f:
                json.dump(data, f, ensure_ascii=False, indent=2)
            return True
        except IOError as e:
            logger.error(f"Failed to save runs to {path}: {e}")
            return False

    def start_run(
        self,
        sample: LocationSample,
        run_id: Optional[str] = None,
        course_id: Optional[str] = None,
    ) -> str:
        """
        Register a new run starting at sample.

        Args:
            sample:    First fix of the run (start coordinate and time).
            run_id:    Id chosen by the caller; a new one is generated if omitted.
            course_id: Course being run, if any.

        Returns:
            The run id.
        """
        run_id = run_id or uuid.uuid4().hex
        self._runs[run_id] = RunRecord(
            run_id=run_id,
            started_at=sample.timestamp,
            start_lat=sample.lat,
            start_lon=sample.lon,
            course_id=course_id,
        )
        self._write_index()
        logger.info(f"Started new run: {run_id}")
        return run_id

    def finish_run(
        self,
        run_id: str,
        end_radius_m: float,
        hit_count: int,
        ended_at: Optional[float] = None,
    ) -> bool:
        """
        Mark a run as finished.

        Returns:
            True on success, False if the run is unknown or already finished.
        """
        run = self._runs.get(run_id)
        if run is None:
            logger.warning(f"finish_run: unknown run {run_id}")
            return False
        if run.is_finished:
            logger.warning(f"finish_run: run {run_id} already finished")
            return False
        run.ended_at = ended_at if ended_at is not None else time.time()
        run.end_radius_m = end_radius_m
        run.finish_consecutive = hit_count
        self._last_ts.pop(run_id, None)
        logger.info(f"Finished run: {run_id}")
        return self._write_index()

    def get_run(self, run_id: str) -> Optional[RunRecord]:
        return self._runs.get(run_id)

    def load_runs(self) -> List[RunRecord]:
        """All runs, newest first."""
        return sorted(self._runs.values(), key=lambda r: r.started_at, reverse=True)

    def detect_unfinished_run(self) -> Optional[RunRecord]:
        """Newest run without an end time (left open by a crash or restart)."""
        for run in self.load_runs():
            if not run.is_finished:
                logger.info(f"Detected unfinished run: {run.run_id}")
                return run
        return None

    def delete_run(self, run_id: str) -> bool:
        """Remove a run and its track file."""
        if self._runs.pop(run_id, None) is None:
            return False
        self._last_ts.pop(run_id, None)
        track_path = self.config.track_filepath(run_id)
        try:
            if os.path.exists(track_path):
                os.remove(track_path)
        except OSError as e:
            logger.error(f"Failed to delete track file {track_path}: {e}")
        logger.info(f"Deleted run: {run_id}")
        return self._write_index()

    # ------------------------------------------------------------------
    # Track points
    # ------------------------------------------------------------------

    def append_track_point(self, run_id: str, point: TrackPoint) -> bool:
        """
        Append one track point to the run's JSONL file.

        Points older than the last recorded one are dropped, keeping the
        file in non-decreasing timestamp order.

        Returns:
            True if written.
        """
        if run_id not in self._runs:
            logger.warning(f"append_track_point: unknown run {run_id}")
            return False

        last = self._last_ts.get(run_id)
        if last is None:
            last = self._read_last_timestamp(run_id)
        if last is not None and point.timestamp < last:
            logger.debug(f"Dropped out-of-order track point for run {run_id}")
            return False

        path = self.config.track_filepath(run_id)
        try:
            with open(path, "a", encoding="utf-8") as f:
                f.write(json.dumps(point.to_dict(), ensure_ascii=False) + "\n")
        except IOError as e:
            logger.error(f"Failed to write track point: {e}")
            return False
        self._last_ts[run_id] = point.timestamp
        logger.debug(f"Added track point to run {run_id}: lat={point.lat}, lon={point.lon}")
        return True

    def _read_last_timestamp(self, run_id: str) -> Optional[float]:
        points = self.get_track_points(run_id)
        return points[-1].timestamp if points else None

    def get_track_points(self, run_id: str) -> List[TrackPoint]:
        """Track points of a run, ascending by timestamp."""
        path = self.config.track_filepath(run_id)
        if not os.path.exists(path):
            return []
        points: List[TrackPoint] = []
        try:
            with open(path, "r", encoding="utf-8") as f:
                for line in f:
                    line = line.strip()
                    if line:
                        points.append(TrackPoint.from_dict(json.loads(line)))
        except (IOError, KeyError, ValueError) as e:
            logger.error(f"Failed to read track points from {path}: {e}")
        points.sort(key=lambda p: p.timestamp)
        return points

    def track_frame(self, run_id: str) -> pd.DataFrame:
        """Track points as a DataFrame (one row per point, TRACK_COLUMNS)."""
        points = self.get_track_points(run_id)
        return pd.DataFrame([p.to_dict() for p in points], columns=TRACK_COLUMNS)

    def summarize_run(self, run_id: str) -> Optional[RunSummary]:
        """
        Distance, duration and pace of a recorded run.

        Returns:
            RunSummary, or None if the run is unknown.
        """
        run = self._runs.get(run_id)
        if run is None:
            return None
        df = self.track_frame(run_id)
        distance = path_length(df["lat"], df["lon"])

        end = run.ended_at if run.ended_at is not None else (
            float(df["ts"].iloc[-1]) if len(df) else run.started_at
        )
        duration = max(0.0, end - run.started_at)
        pace = duration / (distance / 1000.0) if distance > 0 else None
        return RunSummary(
            point_count=len(df),
            distance_m=distance,
            duration_s=duration,
            average_pace_s_per_km=pace,
        )
