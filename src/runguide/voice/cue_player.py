# cue_player.py
# Speaks guide point cues on a background thread so the GPS loop never waits on audio.

import logging
import queue
import threading
from typing import Callable, Optional, Set

import pyttsx3

logger = logging.getLogger(__name__)

PREFERRED_VOICES = ["Samantha", "Victoria", "Ava", "Moira", "Karen", "Tessa", "Kathy"]


def init_engine(rate: int = 150):
    """Create a pyttsx3 engine, preferring a clearer voice when one is installed."""
    engine = pyttsx3.init()
    engine.setProperty("rate", rate)
    engine.setProperty("volume", 1.0)

    for v in engine.getProperty("voices"):
        if any(p.lower() in (v.name or "").lower() for p in PREFERRED_VOICES):
            engine.setProperty("voice", v.id)
            break

    return engine


class CuePlayer:
    """
    Fire-and-forget cue playback.

    play() only enqueues; a daemon worker owns the speech engine. A cue that is
    already queued or being spoken is not queued again.

    Args:
        rate:           Speech rate in words per minute.
        engine_factory: Builds the engine inside the worker thread
                        (defaults to init_engine).
    """

    def __init__(self, rate: int = 150, engine_factory: Optional[Callable[[], object]] = None) -> None:
        self._engine_factory = engine_factory or (lambda: init_engine(rate))
        self._engine = None
        self._queue: "queue.Queue[Optional[tuple]]" = queue.Queue()
        self._pending: Set[str] = set()
        self._lock = threading.Lock()
        self._thread = threading.Thread(target=self._worker, name="cue-player", daemon=True)
        self._thread.start()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def play(self, cue_id: str, text: str = "") -> bool:
        """
        Queue a cue. Returns False if it was skipped as a duplicate or empty.
        """
        text = (text or cue_id or "").strip()
        if not text:
            return False
        with self._lock:
            if cue_id in self._pending:
                logger.info(f"Already playing {cue_id}, skipping")
                return False
            self._pending.add(cue_id)
        self._queue.put((cue_id, text))
        return True

    def stop(self) -> None:
        """Drop every queued cue and cut the current one short."""
        dropped = 0
        while True:
            try:
                item = self._queue.get_nowait()
            except queue.Empty:
                break
            if item is not None:
                with self._lock:
                    self._pending.discard(item[0])
                dropped += 1
            self._queue.task_done()
        if self._engine is not None:
            try:
                self._engine.stop()
            except Exception as e:
                logger.error(f"Speech engine stop failed: {e}")
        logger.info(f"Stopped playback ({dropped} queued cues dropped)")

    def wait(self) -> None:
        """Block until every queued cue has been spoken."""
        self._queue.join()

    def shutdown(self, timeout: float = 5.0) -> None:
        self._queue.put(None)
        self._thread.join(timeout=timeout)

    # ------------------------------------------------------------------
    # Worker
    # ------------------------------------------------------------------

    def _worker(self) -> None:
        while True:
            item = self._queue.get()
            if item is None:
                self._queue.task_done()
                break
            cue_id, text = item
            try:
                if self._engine is None:
                    self._engine = self._engine_factory()
                self._engine.say(text)
                self._engine.runAndWait()
                logger.info(f"Played cue: {cue_id}")
            except Exception as e:
                logger.error(f"Failed to play cue {cue_id}: {e}")
            finally:
                with self._lock:
                    self._pending.discard(cue_id)
                self._queue.task_done()
