"""Tic-Tac-Toe package exposing game logic and the AI player.

The web application lives in :mod:`tictactoe.ui`.
"""

from .ai import MinimaxAI, select_move
from .game import Outcome, Round, evaluate

__all__ = ["MinimaxAI", "Outcome", "Round", "evaluate", "select_move"]
