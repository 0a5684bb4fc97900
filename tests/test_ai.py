"""Tests for the minimax search and the opponent strategies."""

import random

import pytest

from tictacbot import ai
from tictacbot.ai import (
    OPENING_MOVES,
    NoLegalMoveError,
    OpponentMode,
    OptimalStrategy,
    PessimalStrategy,
    RandomStrategy,
    candidate_scores,
    parse_mode,
    score,
    strategy_for,
)
from tictacbot.game import EMPTY, HUMAN, OPPONENT, Board, Won, evaluate


def make_board(layout: str) -> Board:
    return Board(cells=[EMPTY if c == "." else c for c in layout])


def test_score_terminal_positions():
    assert score(make_board("OOOXX.X.."), 2, False) == 8
    assert score(make_board("XXXOO...."), 3, True) == -7
    assert score(make_board("XOXXOOOXX"), 5, True) == 0


def test_score_prefers_faster_wins():
    # O can win at once on cell 2.
    board = make_board("OO.XX.X..")
    assert score(board, 0, True) == 9


def test_score_leaves_board_untouched():
    board = make_board("X...O....")
    before = list(board.cells)
    score(board, 0, False)
    assert board.cells == before


def test_score_restores_board_when_search_fails(monkeypatch):
    board = make_board("X...O....")
    before = list(board.cells)
    calls = {"n": 0}
    real_evaluate = ai.evaluate

    def flaky_evaluate(b):
        calls["n"] += 1
        if calls["n"] > 25:
            raise RuntimeError("boom")
        return real_evaluate(b)

    monkeypatch.setattr(ai, "evaluate", flaky_evaluate)
    with pytest.raises(RuntimeError):
        score(board, 0, True)
    assert board.cells == before


def test_optimal_opens_from_preferred_set():
    strategy = OptimalStrategy(rng=random.Random(3))
    picks = {strategy.choose(Board()) for _ in range(50)}
    assert picks <= set(OPENING_MOVES)


def test_optimal_answers_corner_with_best_scored_cell():
    board = make_board("X........")
    move = OptimalStrategy().choose(board)
    scores = dict(candidate_scores(board))
    assert scores[move] == max(scores.values())
    assert move == 4


def test_optimal_blocks_row():
    board = make_board("XX.O.....")
    assert OptimalStrategy().choose(board) == 2


def test_optimal_takes_immediate_win():
    board = make_board("OO.XX.X..")
    assert OptimalStrategy().choose(board) == 2


def test_optimal_never_loses():
    strategy = OptimalStrategy(rng=random.Random(0))
    memo = {}

    def explore(board: Board) -> None:
        for human_move in board.empty_cells():
            board.place(HUMAN, human_move)
            try:
                outcome = evaluate(board)
                assert not (isinstance(outcome, Won) and outcome.mark == HUMAN)
                if outcome.terminal:
                    continue
                key = tuple(board.cells)
                if key not in memo:
                    memo[key] = strategy.choose(board)
                reply = memo[key]
                board.place(OPPONENT, reply)
                try:
                    if not evaluate(board).terminal:
                        explore(board)
                finally:
                    board.clear(reply)
            finally:
                board.clear(human_move)

    explore(Board())


def test_strategies_do_not_mutate_board():
    board = make_board("X...O...X")
    before = list(board.cells)
    for strategy in (OptimalStrategy(), PessimalStrategy(), RandomStrategy()):
        strategy.choose(board)
        assert board.cells == before


def test_pessimal_avoids_immediate_win():
    board = make_board("OO.XX.X..")
    move = PessimalStrategy().choose(board)
    scores = dict(candidate_scores(board))
    lowest = min(scores.values())
    tied = [idx for idx, value in scores.items() if value == lowest]
    assert move != 2
    assert len(tied) > 1
    assert move == min(tied)


def test_pessimal_still_moves_when_every_cell_wins():
    # Both empty cells (2 and 6) complete a line for O.
    board = make_board("OO.OXX.XX")
    assert all(value == 10 for _, value in candidate_scores(board))
    move = PessimalStrategy().choose(board)
    assert move == 2
    assert board.cells[2] == EMPTY


@pytest.mark.parametrize("cls", [OptimalStrategy, PessimalStrategy, RandomStrategy])
def test_full_board_has_no_legal_move(cls):
    with pytest.raises(NoLegalMoveError):
        cls().choose(make_board("XOXXOOOXX"))


def test_random_picks_empty_cells_only():
    strategy = RandomStrategy(rng=random.Random(7))
    board = make_board("XO.X.O.X.")
    picks = {strategy.choose(board) for _ in range(100)}
    assert picks == set(board.empty_cells())


@pytest.mark.parametrize(
    "value, expected",
    [
        ("win", OpponentMode.WIN),
        ("LOSE", OpponentMode.LOSE),
        (" random ", OpponentMode.RANDOM),
        ("impossible", OpponentMode.RANDOM),
        ("", OpponentMode.RANDOM),
        (None, OpponentMode.RANDOM),
    ],
)
def test_parse_mode(value, expected):
    assert parse_mode(value) is expected


def test_strategy_for_mode():
    assert isinstance(strategy_for("win"), OptimalStrategy)
    assert isinstance(strategy_for(OpponentMode.LOSE), PessimalStrategy)
    assert isinstance(strategy_for("bogus"), RandomStrategy)
