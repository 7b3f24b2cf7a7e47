"""Cumulative score tally across rounds."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping
import logging

from .game import Outcome

logger = logging.getLogger(__name__)

SCORE_KEYS = ("X", "O", "draw")


@dataclass
class ScoreTally:
    x: int = 0
    o: int = 0
    draw: int = 0

    def record(self, outcome: Outcome) -> None:
        """Count a finished round. Rounds still in progress are ignored."""
        if outcome.winner == "X":
            self.x += 1
        elif outcome.winner == "O":
            self.o += 1
        elif outcome.drawn:
            self.draw += 1

    def reset(self) -> None:
        self.x = self.o = self.draw = 0

    def as_dict(self) -> Dict[str, int]:
        return {"X": self.x, "O": self.o, "draw": self.draw}

    @classmethod
    def restore(cls, payload: Any) -> "ScoreTally":
        """Rebuild a tally persisted by the browser.

        Anything unusable falls back to zero instead of failing: the payload
        lives in client storage and may be stale or hand-edited.
        """
        if payload is None:
            return cls()
        if not isinstance(payload, Mapping):
            logger.warning("Ignoring stored scores of type %s", type(payload).__name__)
            return cls()

        counts: Dict[str, int] = {}
        for key in SCORE_KEYS:
            value = payload.get(key, 0)
            # bool is an int subclass; true/false is not a count
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                logger.warning("Ignoring stored score %s=%r", key, value)
                value = 0
            counts[key] = value
        return cls(x=counts["X"], o=counts["O"], draw=counts["draw"])
