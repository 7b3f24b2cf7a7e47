"""Core rules for classic 3x3 Tic-Tac-Toe: outcome evaluation and rounds."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

Player = str  # "X" or "O"
Line = Tuple[int, int, int]

EMPTY = " "
MARKS: Tuple[Player, Player] = ("X", "O")
BOARD_SIZE = 9

# Rows, then columns, then both diagonals. The order decides which line is
# reported for a board completing more than one.
WINNING_LINES: Tuple[Line, ...] = (
    (0, 1, 2),
    (3, 4, 5),
    (6, 7, 8),
    (0, 3, 6),
    (1, 4, 7),
    (2, 5, 8),
    (0, 4, 8),
    (2, 4, 6),
)


@dataclass(frozen=True)
class Outcome:
    """Result of evaluating a board: no result, a win with its line, or a draw."""

    winner: Optional[Player] = None
    line: Optional[Line] = None
    drawn: bool = False

    @property
    def finished(self) -> bool:
        return self.winner is not None or self.drawn


NO_RESULT = Outcome()
DRAW = Outcome(drawn=True)


def new_board() -> List[str]:
    return [EMPTY] * BOARD_SIZE


def validate_board(board: Sequence[str]) -> None:
    """Raise ``ValueError`` unless ``board`` is nine cells of X, O or empty."""
    if len(board) != BOARD_SIZE:
        raise ValueError(f"Board must have {BOARD_SIZE} cells, got {len(board)}")
    for index, cell in enumerate(board):
        if cell != EMPTY and cell not in MARKS:
            raise ValueError(f"Invalid mark {cell!r} at cell {index}")


def available_moves(board: Sequence[str]) -> List[int]:
    """Indices of the empty cells, ascending."""
    return [i for i, c in enumerate(board) if c == EMPTY]


def evaluate(board: Sequence[str]) -> Outcome:
    for line in WINNING_LINES:
        a, b, c = line
        v = board[a]
        if v != EMPTY and v == board[b] == board[c]:
            return Outcome(winner=v, line=line)
    if all(c != EMPTY for c in board):
        return DRAW
    return NO_RESULT


def other_player(player: Player) -> Player:
    return "O" if player == "X" else "X"


# ---------- Round ----------


@dataclass
class Round:
    """A single round: the board, whose turn it is and the current outcome.

    Won and drawn rounds are terminal; ``reset`` starts a fresh round with X
    to move.
    """

    cells: List[str] = field(default_factory=new_board)
    current_player: Player = "X"
    outcome: Outcome = NO_RESULT

    def __post_init__(self) -> None:
        validate_board(self.cells)
        self.outcome = evaluate(self.cells)

    @property
    def finished(self) -> bool:
        return self.outcome.finished

    def available_moves(self) -> List[int]:
        if self.finished:
            return []
        return available_moves(self.cells)

    def play_move(self, index: int) -> Outcome:
        """Place the current player's mark, re-evaluate and pass the turn."""
        if self.finished:
            raise ValueError("Round already finished")
        if not 0 <= index < BOARD_SIZE:
            raise ValueError(f"Cell index {index} is off the board")
        if self.cells[index] != EMPTY:
            raise ValueError("Cell already occupied")

        self.cells[index] = self.current_player
        self.outcome = evaluate(self.cells)
        self.current_player = other_player(self.current_player)
        return self.outcome

    def reset(self) -> None:
        self.cells = new_board()
        self.current_player = "X"
        self.outcome = NO_RESULT

    def snapshot(self) -> Tuple[str, ...]:
        return tuple(self.cells)
