# geofence.py
# Guide point hit detection with hysteresis.
# Call check_hits() on every evaluated sample; reset() when the course changes.

import logging
from typing import FrozenSet, List, Optional, Sequence, Set

from .errors import require_above_one
from .geo_utils import haversine_distances
from .models import GuidePoint, LocationSample
from .track_config import TrackConfig

logger = logging.getLogger(__name__)


class GeofenceEngine:
    """
    Remembers which guide points already fired during the current approach.

    A point fires when a sample is within its radius. It stays silent until
    a sample is farther than ``radius * hysteresis_factor``, which re-arms it.

    Usage:
        engine = GeofenceEngine(config)

        # Inside GPS loop:
        for point in engine.check_hits(sample, course.guide_points):
            player.play(point.cue_id, point.label)
    """

    def __init__(self, config: Optional[TrackConfig] = None) -> None:
        self.config = config or TrackConfig()
        self.hysteresis_factor = self.config.hysteresis_factor
        require_above_one("hysteresis_factor", self.hysteresis_factor)
        self._triggered: Set[str] = set()

    @property
    def triggered_ids(self) -> FrozenSet[str]:
        return frozenset(self._triggered)

    def reset(self) -> None:
        """Forget every triggered point (course edited or run restarted)."""
        self._triggered.clear()
        logger.info("Geofence reset: all guide points re-armed.")

    def check_hits(
        self,
        sample: LocationSample,
        guide_points: Sequence[GuidePoint],
    ) -> List[GuidePoint]:
        """
        Return the guide points newly hit by this sample, in input order.

        Args:
            sample:       An evaluated location sample.
            guide_points: Course guide points; order decides output order only.

        Returns:
            List of hit GuidePoints (possibly empty).
        """
        if not guide_points:
            return []

        distances = haversine_distances(
            sample.lat,
            sample.lon,
            [p.lat for p in guide_points],
            [p.lon for p in guide_points],
        )

        hits: List[GuidePoint] = []
        for point, dist in zip(guide_points, distances):
            exit_radius = point.radius_m * self.hysteresis_factor

            if point.point_id in self._triggered and dist > exit_radius:
                self._triggered.discard(point.point_id)
                logger.debug(
                    f"Re-armed guide point {point.point_id} "
                    f"({dist:.1f} m > {exit_radius:.1f} m)"
                )

            if dist <= point.radius_m and point.point_id not in self._triggered:
                self._triggered.add(point.point_id)
                hits.append(point)
                logger.info(
                    f"Hit guide point {point.point_id} "
                    f"({dist:.1f} m <= {point.radius_m:.1f} m)"
                )

        return hits
