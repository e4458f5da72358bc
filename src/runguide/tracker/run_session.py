# run_session.py
# Lifecycle of one run: sample -> filter -> {geofence, auto-finish, persistence}.
# Side effects are expressed as requests; nothing here touches disk or audio.

import logging
import time
import uuid
from typing import Callable, List, Optional, Sequence

from .auto_finish import AutoFinishJudge
from .geofence import GeofenceEngine
from .models import (
    Coord,
    FinishRunRequest,
    GuidePoint,
    LocationSample,
    PersistTrackPointRequest,
    PlayCueRequest,
    SampleResult,
    SessionRequest,
    SessionStatus,
    StartRunRequest,
    TrackPoint,
)
from .sample_filter import LocationSampleFilter
from .track_config import TrackConfig

logger = logging.getLogger(__name__)


class RunSession:
    """
    Owns the volatile state of the active run.

    Not thread-safe: feed samples one at a time from a single owner.

    Usage:
        session = RunSession(config, course=loader, emit=dispatch)
        session.start(first_fix)          # or start() before a GPS fix

        # Inside GPS loop:
        result = session.on_sample(sample)

    Args:
        config:       TrackConfig; validated on construction.
        course:       Optional course provider with load_guide_points() and
                      subscribe(callback) -> unsubscribe.
        guide_points: Static guide points, used when no provider is given.
        emit:         Called with every request after the state transition
                      that produced it has been applied.
        clock:        Monotonic seconds source for time-based arming.
        wall_clock:   Unix seconds source for start/finish timestamps.
    """

    def __init__(
        self,
        config: Optional[TrackConfig] = None,
        course=None,
        guide_points: Optional[Sequence[GuidePoint]] = None,
        emit: Optional[Callable[[SessionRequest], None]] = None,
        clock: Callable[[], float] = time.monotonic,
        wall_clock: Callable[[], float] = time.time,
    ) -> None:
        self.config = (config or TrackConfig()).validate()
        self._course = course
        self._static_points: List[GuidePoint] = list(guide_points or [])
        self._emit_cb = emit
        self._clock = clock
        self._wall_clock = wall_clock

        self._filter = LocationSampleFilter(self.config)
        self._geofence = GeofenceEngine(self.config)

        self._guide_points: List[GuidePoint] = list(self._static_points)
        self._unsubscribe: Optional[Callable[[], None]] = None
        self._clear()

    def _clear(self) -> None:
        self._run_id: Optional[str] = None
        self._started_at: Optional[float] = None
        self._start_coord: Optional[Coord] = None
        self._judge: Optional[AutoFinishJudge] = None
        self._tracking = False
        self._hit_total = 0

    # ------------------------------------------------------------------
    # Read-only properties
    # ------------------------------------------------------------------

    @property
    def is_active(self) -> bool:
        """True while a run is open (tracking or paused)."""
        return self._run_id is not None

    @property
    def is_tracking(self) -> bool:
        return self._tracking

    @property
    def run_id(self) -> Optional[str]:
        return self._run_id

    @property
    def started_at(self) -> Optional[float]:
        return self._started_at

    @property
    def start_coord(self) -> Optional[Coord]:
        return self._start_coord

    @property
    def judge(self) -> Optional[AutoFinishJudge]:
        return self._judge

    @property
    def geofence(self) -> GeofenceEngine:
        return self._geofence

    @property
    def guide_points(self) -> List[GuidePoint]:
        return list(self._guide_points)

    @property
    def hit_total(self) -> int:
        """Cues triggered so far in this run."""
        return self._hit_total

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(
        self,
        initial_sample: Optional[LocationSample] = None,
        run_id: Optional[str] = None,
    ) -> str:
        """
        Open a new run and begin tracking.

        With an accurate sample the auto-finish judge is anchored immediately;
        otherwise it is anchored on the first accepted sample.

        Returns:
            The run id (the current one if a run is already open).

        Raises:
            CourseFormatError: the course provider could not load guide
                points; no run is opened.
        """
        if self.is_active:
            logger.warning(f"Run {self._run_id} already active; start() ignored.")
            return self._run_id

        self._open(run_id or uuid.uuid4().hex)

        decision = self._filter.accept(initial_sample) if initial_sample is not None else None
        if decision is not None and decision.evaluate:
            self._started_at = initial_sample.timestamp
            requests: List[SessionRequest] = [self._anchor(initial_sample)]
            if decision.persist:
                requests.append(PersistTrackPointRequest(
                    TrackPoint.from_sample(self._run_id, initial_sample)
                ))
            logger.info(f"Run {self._run_id} started at {self._start_coord}.")
            for request in requests:
                self._emit(request)
        else:
            self._started_at = self._wall_clock()
            logger.info(f"Run {self._run_id} started; waiting for first GPS fix.")
        return self._run_id

    def restore(self, run_id: str, start: Coord, started_at: float) -> None:
        """
        Reopen a run recorded earlier (e.g. left unfinished by a restart).

        The judge is anchored at the recorded start and its elapsed clock
        starts now; no StartRunRequest is emitted.
        """
        if self.is_active:
            logger.warning(f"Run {self._run_id} already active; restore() ignored.")
            return
        self._open(run_id)
        self._started_at = started_at
        self._start_coord = start
        self._judge = self._build_judge(start)
        logger.info(f"Run {run_id} restored at {start}.")

    def stop(self) -> None:
        """Pause tracking. The run stays open and can be resumed or finished."""
        if not self.is_active:
            return
        self._tracking = False
        logger.info(f"Run {self._run_id} paused.")

    def resume(self) -> None:
        if not self.is_active or self._tracking:
            return
        self._tracking = True
        logger.info(f"Run {self._run_id} resumed.")

    def finish(self) -> Optional[FinishRunRequest]:
        """
        Finalize the open run on user request.

        Returns:
            The emitted FinishRunRequest, or None when no run is open.
        """
        if not self.is_active:
            return None
        request = FinishRunRequest(
            run_id=self._run_id,
            end_radius_m=self.config.finish_radius_m,
            hit_count=self._judge.consecutive_hits if self._judge else 0,
            finished_at=self._wall_clock(),
            auto=False,
        )
        self._finalize()
        self._emit(request)
        return request

    def on_guide_points_changed(self) -> None:
        """Course edited or reloaded: every guide point may fire again."""
        self._reload_guide_points()
        self._geofence.reset()

    def set_guide_points(self, guide_points: Sequence[GuidePoint]) -> None:
        """Replace static guide points (no provider) and re-arm them."""
        self._static_points = list(guide_points)
        self.on_guide_points_changed()

    # ------------------------------------------------------------------
    # Core method, call on every GPS update
    # ------------------------------------------------------------------

    def on_sample(self, sample: LocationSample) -> SampleResult:
        """
        Run one sample through filter, geofence and auto-finish.

        Args:
            sample: Raw location sample.

        Returns:
            SampleResult with status, emitted requests and hits.
        """
        if not self.is_active or not self._tracking:
            return SampleResult(status=SessionStatus.INACTIVE)

        decision = self._filter.accept(sample)
        if not decision.evaluate:
            return SampleResult(status=SessionStatus.REJECTED)

        requests: List[SessionRequest] = []
        if self._judge is None:
            requests.append(self._anchor(sample))

        hits = self._geofence.check_hits(sample, self._guide_points)
        self._hit_total += len(hits)
        requests.extend(PlayCueRequest(p) for p in hits)

        if decision.persist:
            requests.append(PersistTrackPointRequest(TrackPoint.from_sample(self._run_id, sample)))

        judge = self._judge
        status = SessionStatus.TRACKING
        finished = judge.process_location_update(sample)
        distance = judge.last_distance_m
        if finished:
            status = SessionStatus.FINISHED
            requests.append(FinishRunRequest(
                run_id=self._run_id,
                end_radius_m=judge.finish_radius_m,
                hit_count=judge.consecutive_hits,
                finished_at=sample.timestamp,
            ))
            logger.info(f"Run {self._run_id} auto-finished.")
            self._finalize()

        for request in requests:
            self._emit(request)
        return SampleResult(
            status=status,
            requests=requests,
            hits=hits,
            distance_to_start_m=distance,
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _open(self, run_id: str) -> None:
        # Guide points load first; a failing provider leaves no run open.
        self._reload_guide_points()
        self._clear()
        self._filter.reset()
        self._geofence.reset()
        if self._course is not None:
            self._unsubscribe = self._course.subscribe(self.on_guide_points_changed)
        self._run_id = run_id
        self._tracking = True

    def _anchor(self, sample: LocationSample) -> StartRunRequest:
        """Fix the start point, build the judge and announce the run start."""
        self._start_coord = sample.coord
        self._judge = self._build_judge(self._start_coord)
        return StartRunRequest(run_id=self._run_id, sample=sample)

    def _build_judge(self, start: Coord) -> AutoFinishJudge:
        return AutoFinishJudge(
            start=start,
            finish_radius_m=self.config.finish_radius_m,
            required_hits=self.config.finish_consecutive,
            require_exit_before_finish=self.config.require_exit_before_finish,
            arm_distance_m=self.config.arm_distance_m,
            min_elapsed_s=self.config.min_elapsed_s,
            clock=self._clock,
        )

    def _reload_guide_points(self) -> None:
        if self._course is not None:
            self._guide_points = list(self._course.load_guide_points())
        else:
            self._guide_points = list(self._static_points)

    def _finalize(self) -> None:
        self._geofence.reset()
        if self._judge is not None:
            self._judge.reset()
        self._filter.reset()
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self._clear()

    def _emit(self, request: SessionRequest) -> None:
        if self._emit_cb is not None:
            self._emit_cb(request)
