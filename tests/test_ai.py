"""Tests for the Tic-Tac-Toe minimax AI."""

import itertools
import logging
import random

import pytest

from tictactoe import ai
from tictactoe.ai import MinimaxAI, minimax, select_move
from tictactoe.game import EMPTY, available_moves, evaluate, new_board, other_player


def board(text):
    return [" " if c == "." else c for c in text]


def test_ai_takes_immediate_win():
    cells = board("XX.OO....")
    assert select_move(cells, "X", "O") == 2


def test_ai_blocks_opponent_line():
    cells = board("XX..O...O")
    assert select_move(cells, "O", "X") == 2


def test_ai_prefers_faster_win():
    # Playing 1 or 3 forks for a win two plies later; 8 wins at once.
    cells = board("X.O.X.O..")
    assert select_move(cells, "X", "O") == 8


def test_ai_wins_at_once_when_it_can_also_block():
    cells = board("X.OXXO...")
    assert select_move(cells, "O", "X") == 8


def test_ai_does_not_mutate_board():
    cells = board("XO.X.O...")
    before = list(cells)
    select_move(cells, "X", "O")
    assert cells == before


def test_ai_returns_none_when_round_is_over():
    assert select_move(board("XOXXOOOXX"), "O", "X") is None
    assert select_move(board("XXXOO...."), "O", "X") is None


@pytest.mark.parametrize("seed", range(20))
def test_random_opening_picks_an_empty_cell(seed):
    rng = random.Random(seed)
    cells = new_board()
    cells[seed % 9] = "X"
    move = select_move(cells, "O", "X", rng=rng)
    assert move in available_moves(cells)


def test_random_opening_is_seeded_by_rng():
    cells = new_board()
    first = [select_move(cells, "X", "O", rng=random.Random(3)) for _ in range(5)]
    assert len(set(first)) == 1


class NoChoiceRandom(random.Random):
    """An rng that fails the test if a move is drawn from it."""

    def choice(self, seq):
        raise AssertionError("move should come from the search, not the rng")


def test_seven_empty_cells_still_play_at_random():
    cells = board("X...O....")
    moves = {
        select_move(cells, "X", "O", rng=random.Random(seed)) for seed in range(30)
    }
    assert len(moves) > 1
    assert moves <= set(available_moves(cells))


def test_six_empty_cells_switch_to_search():
    cells = board("X...O...X")
    _, expected = minimax(list(cells), True, 0, "O", "X")
    moves = {
        select_move(cells, "O", "X", rng=NoChoiceRandom(seed)) for seed in range(5)
    }
    assert moves == {expected}


def test_ai_never_picks_occupied_cell_from_any_two_ply_opening():
    for x, o in itertools.permutations(range(9), 2):
        cells = new_board()
        cells[x], cells[o] = "X", "O"
        move = select_move(cells, "X", "O", rng=random.Random(x * 9 + o))
        assert cells[move] == EMPTY


def test_minimax_self_play_from_empty_board_draws():
    cells = new_board()
    player = "X"
    while not evaluate(cells).finished:
        _, move = minimax(cells, True, 0, player, other_player(player))
        cells[move] = player
        player = other_player(player)
    assert evaluate(cells).drawn


def _best_reply(cells, player):
    _, move = minimax(list(cells), True, 0, player, other_player(player))
    return move


@pytest.mark.parametrize("x_opening", [0, 4])
def test_ai_never_loses_a_position_it_can_hold(x_opening):
    for o_reply, x_second in itertools.permutations(
        [i for i in range(9) if i != x_opening], 2
    ):
        cells = new_board()
        cells[x_opening], cells[o_reply], cells[x_second] = "X", "O", "X"
        if evaluate(cells).finished:
            continue
        value, _ = minimax(list(cells), True, 0, "O", "X")
        if value < 0:
            continue

        player = "O"
        while not evaluate(cells).finished:
            if player == "O":
                move = select_move(cells, "O", "X")
            else:
                move = _best_reply(cells, "X")
            cells[move] = player
            player = other_player(player)
        assert evaluate(cells).winner != "X"


def test_minimax_ai_wrapper_defaults_opponent():
    ai = MinimaxAI(player="X")
    assert ai.opponent == "O"
    assert ai.choose(board("XX.OO....")) == 2


def test_minimax_ai_rejects_same_marks():
    with pytest.raises(ValueError):
        MinimaxAI(player="O", opponent="O")


def test_choose_counts_empty_cells_only_for_debug_logging(monkeypatch, caplog):
    calls = []

    def counting_moves(cells):
        calls.append(cells)
        return available_moves(cells)

    monkeypatch.setattr(ai, "available_moves", counting_moves)
    player = MinimaxAI(player="O")
    finished = board("XXXOO....")

    with caplog.at_level(logging.INFO, logger="tictactoe.ai"):
        assert player.choose(finished) is None
    assert calls == []

    with caplog.at_level(logging.DEBUG, logger="tictactoe.ai"):
        assert player.choose(finished) is None
    assert len(calls) == 1
    assert "AI O picked None with 4 empty cells" in caplog.text
