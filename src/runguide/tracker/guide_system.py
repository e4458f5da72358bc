# guide_system.py
# Public entry point for the run guide.
# Owns no business logic. Delegates to RunSession and routes its requests
# to storage and audio.

import logging
from typing import List, Optional

from .course_loader import CourseLoader
from .models import (
    Coord,
    FinishRunRequest,
    GuidePoint,
    LocationSample,
    PersistTrackPointRequest,
    PlayCueRequest,
    SampleResult,
    SessionRequest,
    StartRunRequest,
)
from .run_session import RunSession
from .run_store import RunStore
from .settings_store import SettingsStore
from .track_config import TrackConfig

logger = logging.getLogger(__name__)


class RunGuideSystem:
    """
    High-level run guide facade.

    Typical lifecycle:
        guide = RunGuideSystem(config, player=CuePlayer())
        guide.start_run(first_fix)

        # GPS loop:
        result = guide.update(sample)

    Collaborator failures (disk, speech) are logged here and never reach
    the session; its state is already updated when a request is dispatched.

    Args:
        config:   Optional TrackConfig; defaults to TrackConfig().
        player:   Cue player with play(cue_id, text) and stop(); None = silent.
        store:    RunStore; built from config if omitted.
        course:   CourseLoader; built from config if omitted.
        settings: SettingsStore; built from config if omitted.
    """

    def __init__(
        self,
        config: Optional[TrackConfig] = None,
        player=None,
        store: Optional[RunStore] = None,
        course: Optional[CourseLoader] = None,
        settings: Optional[SettingsStore] = None,
        **session_kwargs,
    ) -> None:
        self.config = config or TrackConfig()
        self._settings = settings or SettingsStore(self.config)
        self._store = store or RunStore(self.config)
        self._course = course or CourseLoader(self.config)
        self._player = player
        self._session_kwargs = session_kwargs
        self._session = self._build_session()

    def _build_session(self) -> RunSession:
        # Settings are read once per session.
        return RunSession(
            self._settings.apply(self.config),
            course=self._course,
            emit=self._dispatch,
            **self._session_kwargs,
        )

    # ------------------------------------------------------------------
    # Run control
    # ------------------------------------------------------------------

    def start_run(self, first_fix: Optional[LocationSample] = None) -> str:
        """
        Begin a run. Without a fix the run is recorded once GPS delivers one.

        Returns:
            The run id.
        """
        if self._session.is_active:
            return self._session.run_id
        self._session = self._build_session()
        return self._session.start(first_fix)

    def resume_unfinished_run(self) -> Optional[str]:
        """
        Reopen the newest run the store has without an end time.

        Returns:
            Its run id, or None if every run is finished or one is already active.
        """
        if self._session.is_active:
            return None
        record = self._store.detect_unfinished_run()
        if record is None:
            return None
        self._session = self._build_session()
        self._session.restore(
            record.run_id,
            Coord(record.start_lat, record.start_lon),
            record.started_at,
        )
        return record.run_id

    def stop_run(self) -> None:
        """Pause tracking; the run stays open."""
        self._session.stop()

    def resume_run(self) -> None:
        self._session.resume()

    def finish_run(self) -> Optional[FinishRunRequest]:
        """User-initiated finish. No-op (None) without an active run."""
        return self._session.finish()

    # ------------------------------------------------------------------
    # GPS update: call this on every position fix
    # ------------------------------------------------------------------

    def update(self, sample: LocationSample) -> SampleResult:
        """
        Process a new GPS sample.

        Args:
            sample: Raw location sample.

        Returns:
            SampleResult with status, hits and emitted requests.
        """
        return self._session.on_sample(sample)

    # ------------------------------------------------------------------
    # Request routing
    # ------------------------------------------------------------------

    def _dispatch(self, request: SessionRequest) -> None:
        try:
            if isinstance(request, StartRunRequest):
                self._store.start_run(request.sample, run_id=request.run_id)
            elif isinstance(request, PlayCueRequest):
                point = request.guide_point
                if self._player is not None:
                    self._player.play(point.cue_id, point.label)
            elif isinstance(request, PersistTrackPointRequest):
                self._store.append_track_point(request.track_point.run_id, request.track_point)
            elif isinstance(request, FinishRunRequest):
                self._store.finish_run(
                    request.run_id,
                    end_radius_m=request.end_radius_m,
                    hit_count=request.hit_count,
                    ended_at=request.finished_at,
                )
                if self._player is not None:
                    self._player.stop()
        except Exception as e:
            logger.error(f"Failed to handle {type(request).__name__}: {e}")

    # ------------------------------------------------------------------
    # Convenience read-only properties
    # ------------------------------------------------------------------

    @property
    def is_active(self) -> bool:
        return self._session.is_active

    @property
    def session(self) -> RunSession:
        return self._session

    @property
    def store(self) -> RunStore:
        return self._store

    @property
    def course(self) -> CourseLoader:
        return self._course

    @property
    def guide_points(self) -> List[GuidePoint]:
        return self._session.guide_points
