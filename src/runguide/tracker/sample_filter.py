# sample_filter.py
# Decides, per raw GPS sample, whether it feeds the geofence / auto-finish
# logic and whether it should be persisted as a track point.

import logging
import math
from typing import Optional

from .errors import require_positive
from .models import FilterDecision, LocationSample, SampleRejection
from .track_config import TrackConfig

logger = logging.getLogger(__name__)

_REJECT_INACCURATE = FilterDecision(False, False, SampleRejection.INACCURATE)
_EVALUATE_ONLY_STALE = FilterDecision(True, False, SampleRejection.STALE)


class LocationSampleFilter:
    """
    Accuracy gate, out-of-order guard and persistence throttle.

    Every accurate sample is evaluated; only in-order samples at least
    ``publish_interval_s`` apart (by sample timestamp) are marked for
    persistence.

    Args:
        config: TrackConfig for the accuracy threshold and publish interval.
    """

    def __init__(self, config: Optional[TrackConfig] = None) -> None:
        self.config = config or TrackConfig()
        require_positive("accuracy_threshold_m", self.config.accuracy_threshold_m)
        require_positive("publish_interval_s", self.config.publish_interval_s)
        self.reset()

    def reset(self) -> None:
        # -inf guarantees the first accurate sample is persisted.
        self._last_persisted_ts: float = -math.inf
        self._newest_ts: float = -math.inf

    @property
    def last_persisted_ts(self) -> Optional[float]:
        return None if self._last_persisted_ts == -math.inf else self._last_persisted_ts

    def accept(self, sample: LocationSample) -> FilterDecision:
        """
        Classify one sample.

        Returns:
            FilterDecision(evaluate, persist, reason). Inaccurate and
            out-of-order samples leave the throttle clock untouched.
        """
        acc = sample.accuracy_m
        if not (0 < acc <= self.config.accuracy_threshold_m):
            logger.debug(f"Sample skipped (accuracy {acc} m)")
            return _REJECT_INACCURATE

        if sample.timestamp < self._newest_ts:
            logger.debug(
                f"Sample not persisted (out of order: {sample.timestamp} < {self._newest_ts})"
            )
            return _EVALUATE_ONLY_STALE
        self._newest_ts = sample.timestamp

        persist = sample.timestamp - self._last_persisted_ts >= self.config.publish_interval_s
        if persist:
            self._last_persisted_ts = sample.timestamp
        return FilterDecision(evaluate=True, persist=persist)
