# main.py
# Entry point: simulates a GPS loop feeding samples into RunGuideSystem.
# In production, replace simulated_run() with your real location feed.

import logging
import time
from typing import List

from runguide.tracker.geo_utils import offset_coordinate
from runguide.tracker.guide_system import RunGuideSystem
from runguide.tracker.models import GuidePoint, LocationSample, SessionStatus
from runguide.tracker.track_config import TrackConfig
from runguide.voice.cue_player import CuePlayer

# ------------------------------------------------------------------
# Logging setup: configure once here, all modules inherit
# ------------------------------------------------------------------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%H:%M:%S",
)

# ------------------------------------------------------------------
# Config: tweak thresholds or paths here
# ------------------------------------------------------------------
config = TrackConfig(
    finish_radius_m=30.0,
    finish_consecutive=3,
    data_dir="logs",
)

# ------------------------------------------------------------------
# Simulated course: a 200 m square loop starting at START
# ------------------------------------------------------------------
START = (35.0, 139.0)
SIDE_M = 200.0
STEP_M = 20.0
STEP_S = 4.0

COURSE = [
    GuidePoint("corner-1", *offset_coordinate(*START, SIDE_M, 0), radius_m=25.0,
               cue_id="turn_right", label="Turn right at the corner."),
    GuidePoint("corner-2", *offset_coordinate(*START, SIDE_M, SIDE_M), radius_m=25.0,
               cue_id="halfway", label="Halfway there. Keep going."),
    GuidePoint("corner-3", *offset_coordinate(*START, 0, SIDE_M), radius_m=25.0,
               cue_id="home_straight", label="Last side. Head back to the start."),
]


def simulated_run(t0: float) -> List[LocationSample]:
    """Square loop in STEP_M increments, then three fixes at the start line."""
    legs = [(1, 0), (0, 1), (-1, 0), (0, -1)]
    north = east = 0.0
    samples = [LocationSample(*START, accuracy_m=8.0, timestamp=t0)]
    t = t0
    for d_north, d_east in legs:
        for _ in range(int(SIDE_M / STEP_M)):
            north += d_north * STEP_M
            east += d_east * STEP_M
            t += STEP_S
            samples.append(LocationSample(*offset_coordinate(*START, north, east),
                                          accuracy_m=8.0, timestamp=t, speed_mps=STEP_M / STEP_S))
    # A poor fix mid-run is ignored by the filter.
    samples.insert(15, LocationSample(*START, accuracy_m=120.0, timestamp=samples[14].timestamp))
    for _ in range(3):
        t += STEP_S
        samples.append(LocationSample(*START, accuracy_m=6.0, timestamp=t, speed_mps=0.0))
    return samples


def main() -> None:
    player = CuePlayer(rate=config.speech_rate)
    guide = RunGuideSystem(config, player=player)
    guide.course.save_guide_points(COURSE)

    samples = simulated_run(time.time())
    run_id = guide.start_run(samples[0])
    print(f"\n--- Run {run_id} started ---")

    for sample in samples[1:]:
        result = guide.update(sample)

        for hit in result.hits:
            print(f"  Cue: [{hit.cue_id}] {hit.label}")

        if result.status == SessionStatus.FINISHED:
            print("  Back at the start. Run finished automatically.")
            break

    player.wait()
    player.shutdown()

    summary = guide.store.summarize_run(run_id)
    print("\n--- Session complete ---")
    if summary:
        print(f"    {summary.point_count} track points, {summary.distance_m:.0f} m "
              f"in {summary.duration_s:.0f} s")
    print(f"    Data files written to: {config.data_dir}/")


if __name__ == "__main__":
    main()
