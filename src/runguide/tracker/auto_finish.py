# auto_finish.py
# State machine that decides when a run has come back to its start point.
# Call process_location_update() on every evaluated sample, then read should_finish.

import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional, Union

from .errors import ConfigurationError, require_positive
from .geo_utils import haversine_distance
from .models import Coord, LocationSample

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# States
# ---------------------------------------------------------------------------

@dataclass
class Unarmed:
    """Finish counting has not started; tracks samples seen outside the radius."""
    outside_streak: int = 0


@dataclass
class Armed:
    """The runner has demonstrably left; counts consecutive samples back inside."""
    inside_streak: int = 0


JudgeState = Union[Unarmed, Armed]

# One sample outside the finish radius is enough evidence of having left.
OUTSIDE_NEEDED_TO_ARM = 1


# ---------------------------------------------------------------------------
# Judge
# ---------------------------------------------------------------------------

class AutoFinishJudge:
    """
    Arm-then-count finish detector.

    A plain "N consecutive samples inside the radius" rule would finish a run
    that never left the start line, so counting only begins once the judge is
    armed by any of:

    - a sample strictly outside the radius (``require_exit_before_finish``),
    - a sample at least ``arm_distance_m`` from the start,
    - ``min_elapsed_s`` seconds since construction / reset.

    The sample that arms the judge is not counted. Once ``should_finish``
    becomes True it stays True until ``reset()``.

    Args:
        start:                      Start coordinate of the run.
        finish_radius_m:            Radius around the start that counts as "back".
        required_hits:              Consecutive inside samples needed to finish.
        require_exit_before_finish: Arm on the first sample outside the radius.
        arm_distance_m:             Arm when this far from the start (None = off).
        min_elapsed_s:              Arm after this many seconds (None = off).
        clock:                      Monotonic seconds source for time arming.
    """

    def __init__(
        self,
        start: Coord,
        finish_radius_m: float,
        required_hits: int,
        require_exit_before_finish: bool = True,
        arm_distance_m: Optional[float] = None,
        min_elapsed_s: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        require_positive("finish_radius_m", finish_radius_m)
        if isinstance(required_hits, bool) or int(required_hits) != required_hits or required_hits < 1:
            raise ConfigurationError(f"required_hits must be an integer >= 1, got {required_hits!r}")
        if arm_distance_m is not None:
            require_positive("arm_distance_m", arm_distance_m)
        if min_elapsed_s is not None:
            require_positive("min_elapsed_s", min_elapsed_s)

        self.start = start
        self.finish_radius_m = finish_radius_m
        self.required_hits = int(required_hits)
        self.require_exit_before_finish = require_exit_before_finish
        self.arm_distance_m = arm_distance_m
        self.min_elapsed_s = min_elapsed_s
        self._clock = clock

        self.reset()

    # ------------------------------------------------------------------
    # Read-only properties
    # ------------------------------------------------------------------

    @property
    def state(self) -> JudgeState:
        return self._state

    @property
    def is_armed(self) -> bool:
        return isinstance(self._state, Armed)

    @property
    def consecutive_hits(self) -> int:
        return self._state.inside_streak if isinstance(self._state, Armed) else 0

    @property
    def should_finish(self) -> bool:
        return self._should_finish

    @property
    def last_distance_m(self) -> Optional[float]:
        return self._last_distance_m

    # ------------------------------------------------------------------
    # Control
    # ------------------------------------------------------------------

    def reset(self) -> None:
        """Back to unarmed, clear the latch and restart the elapsed clock."""
        self._state: JudgeState = Unarmed()
        self._should_finish = False
        self._started_at = self._clock()
        self._last_distance_m: Optional[float] = None

    def process_location_update(self, sample: LocationSample) -> bool:
        """
        Feed one evaluated sample.

        Returns:
            The (latched) should_finish flag after this sample.
        """
        if self._should_finish:
            return True

        dist = haversine_distance(sample.lat, sample.lon, self.start.lat, self.start.lon)
        self._last_distance_m = dist
        inside = dist <= self.finish_radius_m

        # 1. Arming
        if isinstance(self._state, Unarmed):
            if self._arming_reason(self._state, dist, inside) is None:
                return False
            self._state = Armed(inside_streak=0)
            return False

        # 2. Counting
        if inside:
            self._state.inside_streak += 1
            if self._state.inside_streak >= self.required_hits:
                self._should_finish = True
                logger.info(
                    f"Auto-finish: {self._state.inside_streak} consecutive samples "
                    f"within {self.finish_radius_m:.0f} m of start."
                )
        else:
            self._state.inside_streak = 0

        return self._should_finish

    def _arming_reason(self, state: Unarmed, dist: float, inside: bool) -> Optional[str]:
        """Update the outside streak and return why the judge arms now, if it does."""
        reason = None

        if self.require_exit_before_finish:
            state.outside_streak = 0 if inside else state.outside_streak + 1
            if state.outside_streak >= OUTSIDE_NEEDED_TO_ARM:
                reason = "left start zone"

        if self.arm_distance_m is not None and dist >= self.arm_distance_m:
            reason = reason or f"{dist:.0f} m from start"

        if self.min_elapsed_s is not None:
            elapsed = self._clock() - self._started_at
            if elapsed >= self.min_elapsed_s:
                reason = reason or f"{elapsed:.0f} s elapsed"

        if reason is not None:
            logger.info(f"Auto-finish armed ({reason}).")
        return reason
