"""Minimax computer player for Tic-Tac-Toe with a random opening."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple
import logging
import math
import random

from .game import EMPTY, Player, available_moves, evaluate, other_player

logger = logging.getLogger(__name__)

# While this many cells (or more) are empty the move is picked at random, so
# rounds against the computer do not all play out the same way.
RANDOM_OPENING_EMPTY_CELLS = 7
WIN_SCORE = 10


def minimax(
    cells: List[str],
    maximizing: bool,
    depth: int,
    ai_mark: Player,
    opponent_mark: Player,
) -> Tuple[float, Optional[int]]:
    """Score ``cells`` by exhaustive search and return ``(score, best_move)``.

    Wins score ``10 - depth`` so faster wins are preferred, losses score
    ``depth - 10`` so slower losses are preferred, draws score 0. Every trial
    placement is undone before returning.
    """
    outcome = evaluate(cells)
    if outcome.winner == ai_mark:
        return WIN_SCORE - depth, None
    if outcome.winner == opponent_mark:
        return depth - WIN_SCORE, None
    if outcome.drawn:
        return 0, None

    best_move: Optional[int] = None
    best_score = -math.inf if maximizing else math.inf
    for idx in available_moves(cells):
        cells[idx] = ai_mark if maximizing else opponent_mark
        score, _ = minimax(cells, not maximizing, depth + 1, ai_mark, opponent_mark)
        cells[idx] = EMPTY
        if (score > best_score) if maximizing else (score < best_score):
            best_score, best_move = score, idx
    return best_score, best_move


def select_move(
    board: Sequence[str],
    ai_mark: Player,
    opponent_mark: Player,
    rng: Optional[random.Random] = None,
) -> Optional[int]:
    """Pick the cell ``ai_mark`` should play, or ``None`` if the round is over."""
    if evaluate(board).finished:
        return None
    empties = available_moves(board)
    if not empties:
        return None
    if len(empties) >= RANDOM_OPENING_EMPTY_CELLS:
        return (rng or random).choice(empties)
    _, move = minimax(list(board), True, 0, ai_mark, opponent_mark)
    return move


@dataclass
class MinimaxAI:
    """Computer opponent playing ``player`` against ``opponent``.

    ``choose(board)`` returns a cell index, or ``None`` when no move is left.
    """

    player: Player = "O"
    opponent: Optional[Player] = None
    rng: random.Random = field(default_factory=random.Random, repr=False)

    def __post_init__(self) -> None:
        if self.opponent is None:
            self.opponent = other_player(self.player)
        if self.opponent == self.player:
            raise ValueError("AI and opponent must play different marks")

    def choose(self, board: Sequence[str]) -> Optional[int]:
        move = select_move(board, self.player, self.opponent, rng=self.rng)
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                "AI %s picked %s with %d empty cells",
                self.player,
                move,
                len(available_moves(board)),
            )
        return move
