import logging
import threading

import pytest

from runguide.voice.cue_player import CuePlayer


class FakeEngine:
    """Records spoken text; can hold runAndWait until released."""

    def __init__(self, hold=False, fail_on=None):
        self.spoken = []
        self.stopped = 0
        self.speaking = threading.Event()
        self.release = threading.Event()
        if not hold:
            self.release.set()
        self.fail_on = fail_on
        self._current = None

    def say(self, text):
        if text == self.fail_on:
            raise RuntimeError("driver error")
        self._current = text

    def runAndWait(self):
        self.speaking.set()
        self.release.wait(timeout=5)
        self.spoken.append(self._current)

    def stop(self):
        self.stopped += 1


@pytest.fixture
def make_player():
    players = []

    def _make(engine):
        player = CuePlayer(engine_factory=lambda: engine)
        players.append(player)
        return player

    yield _make
    for player in players:
        player.shutdown(timeout=1.0)


def test_cues_are_spoken_in_order(make_player):
    engine = FakeEngine()
    player = make_player(engine)
    assert player.play("a", "Turn left")
    assert player.play("b", "Water station")
    player.wait()
    assert engine.spoken == ["Turn left", "Water station"]


def test_cue_already_playing_is_skipped(make_player):
    engine = FakeEngine(hold=True)
    player = make_player(engine)
    assert player.play("a", "Turn left")
    assert engine.speaking.wait(timeout=5)
    assert not player.play("a", "Turn left")
    assert player.play("b", "Water station")

    engine.release.set()
    player.wait()
    assert engine.spoken == ["Turn left", "Water station"]
    assert player.play("a", "Turn left")
    player.wait()


def test_empty_cue_is_ignored(make_player):
    player = make_player(FakeEngine())
    assert not player.play("", "")
    assert player.play("km-1")
    player.wait()


def test_engine_failure_is_logged_and_worker_keeps_going(make_player, caplog):
    engine = FakeEngine(fail_on="boom")
    player = make_player(engine)
    with caplog.at_level(logging.ERROR):
        player.play("bad", "boom")
        player.play("good", "fine")
        player.wait()
    assert engine.spoken == ["fine"]
    assert "Failed to play cue bad" in caplog.text


def test_stop_drops_queued_cues(make_player):
    engine = FakeEngine(hold=True)
    player = make_player(engine)
    player.play("a", "first")
    assert engine.speaking.wait(timeout=5)
    player.play("b", "second")
    player.play("c", "third")

    player.stop()
    assert engine.stopped == 1

    engine.release.set()
    player.wait()
    assert engine.spoken == ["first"]
    assert player.play("b", "second")
    player.wait()
