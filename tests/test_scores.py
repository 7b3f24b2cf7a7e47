"""Tests for the cumulative score tally."""

import pytest

from tictactoe.game import DRAW, NO_RESULT, Outcome
from tictactoe.scores import ScoreTally


def test_record_counts_wins_and_draws():
    tally = ScoreTally()
    tally.record(Outcome(winner="X", line=(0, 1, 2)))
    tally.record(Outcome(winner="O", line=(2, 4, 6)))
    tally.record(Outcome(winner="X", line=(0, 3, 6)))
    tally.record(DRAW)
    tally.record(NO_RESULT)
    assert tally.as_dict() == {"X": 2, "O": 1, "draw": 1}


def test_reset_zeroes_counters():
    tally = ScoreTally(x=3, o=2, draw=1)
    tally.reset()
    assert tally.as_dict() == {"X": 0, "O": 0, "draw": 0}


def test_restore_keeps_valid_payload():
    tally = ScoreTally.restore({"X": 4, "O": 1, "draw": 7})
    assert tally == ScoreTally(x=4, o=1, draw=7)


@pytest.mark.parametrize("payload", [None, "oops", 12, ["X", 1]])
def test_restore_fails_open_on_unusable_payload(payload):
    assert ScoreTally.restore(payload) == ScoreTally()


def test_restore_drops_only_bad_counters(caplog):
    with caplog.at_level("WARNING", logger="tictactoe.scores"):
        tally = ScoreTally.restore({"X": -1, "O": "3", "draw": True})
    assert tally == ScoreTally()
    assert "Ignoring stored score" in caplog.text

    assert ScoreTally.restore({"X": 2}) == ScoreTally(x=2)
