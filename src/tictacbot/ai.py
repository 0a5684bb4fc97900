"""Exhaustive minimax search and the opponent's move-selection strategies."""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar, Dict, Iterator, List, Optional, Tuple, Type, Union
import logging
import random

from .game import HUMAN, OPPONENT, Board, Draw, Mark, Won, evaluate

logger = logging.getLogger(__name__)

WIN_SCORE = 10
# Center first, then corners; used when the opponent opens on an empty board
OPENING_MOVES: Tuple[int, ...] = (4, 0, 2, 6, 8)


class NoLegalMoveError(RuntimeError):
    """Raised when a strategy is asked to move on a full board."""


class OpponentMode(str, Enum):
    WIN = "win"
    LOSE = "lose"
    RANDOM = "random"


def parse_mode(value: Optional[str]) -> OpponentMode:
    """Resolve a launch parameter to a mode; anything unrecognised is random."""
    if value is None:
        return OpponentMode.RANDOM
    try:
        return OpponentMode(str(value).strip().lower())
    except ValueError:
        return OpponentMode.RANDOM


# ---- core search ----


@contextmanager
def _trial(board: Board, mark: Mark, idx: int) -> Iterator[Board]:
    """Place ``mark`` for the duration of the block and always take it back."""
    board.place(mark, idx)
    try:
        yield board
    finally:
        board.clear(idx)


def score(board: Board, depth: int, opponent_to_move: bool) -> int:
    """Depth-weighted minimax value of ``board`` from the opponent's side.

    Opponent wins score ``10 - depth``, human wins ``depth - 10`` and draws
    ``0``. The board is mutated while searching but is restored before
    returning, including when an exception unwinds the recursion.
    """
    outcome = evaluate(board)
    if isinstance(outcome, Won):
        return WIN_SCORE - depth if outcome.mark == OPPONENT else depth - WIN_SCORE
    if isinstance(outcome, Draw):
        return 0

    if opponent_to_move:
        best = -WIN_SCORE - 1
        for idx in board.empty_cells():
            with _trial(board, OPPONENT, idx):
                best = max(best, score(board, depth + 1, False))
        return best

    best = WIN_SCORE + 1
    for idx in board.empty_cells():
        with _trial(board, HUMAN, idx):
            best = min(best, score(board, depth + 1, True))
    return best


def candidate_scores(board: Board) -> List[Tuple[int, int]]:
    """Score every opponent reply on a private copy, in ascending cell order."""
    work = board.copy()
    scored: List[Tuple[int, int]] = []
    for idx in work.empty_cells():
        with _trial(work, OPPONENT, idx):
            scored.append((idx, score(work, 0, False)))
    return scored


def _require_moves(board: Board) -> List[int]:
    moves = board.empty_cells()
    if not moves:
        raise NoLegalMoveError("No empty cell left to play")
    return moves


# ---- strategies ----


@dataclass
class OptimalStrategy:
    """Perfect play: never loses, takes the fastest win available."""

    mode: ClassVar[OpponentMode] = OpponentMode.WIN
    rng: random.Random = field(default_factory=random.Random, repr=False)

    def choose(self, board: Board) -> int:
        moves = _require_moves(board)
        if len(moves) == len(board.cells):
            return self.rng.choice(OPENING_MOVES)

        best_move, best_score = moves[0], -WIN_SCORE - 1
        for idx, value in candidate_scores(board):
            if value > best_score:
                best_move, best_score = idx, value
        logger.debug("optimal pick %d (score %d)", best_move, best_score)
        return best_move


@dataclass
class PessimalStrategy:
    """Helper play: picks the move that is worst for the opponent."""

    mode: ClassVar[OpponentMode] = OpponentMode.LOSE
    rng: random.Random = field(default_factory=random.Random, repr=False)

    def choose(self, board: Board) -> int:
        moves = _require_moves(board)

        worst_move, worst_score = moves[0], WIN_SCORE + 1
        for idx, value in candidate_scores(board):
            if value < worst_score:
                worst_move, worst_score = idx, value

        # Every reply wins on the spot: look for one that does not.
        if worst_score == WIN_SCORE and len(moves) > 1:
            work = board.copy()
            for idx in moves:
                with _trial(work, OPPONENT, idx):
                    outcome = evaluate(work)
                if not (isinstance(outcome, Won) and outcome.mark == OPPONENT):
                    logger.debug("pessimal fallback pick %d", idx)
                    return idx

        logger.debug("pessimal pick %d (score %d)", worst_move, worst_score)
        return worst_move


@dataclass
class RandomStrategy:
    """Uniformly random choice among the empty cells."""

    mode: ClassVar[OpponentMode] = OpponentMode.RANDOM
    rng: random.Random = field(default_factory=random.Random, repr=False)

    def choose(self, board: Board) -> int:
        return self.rng.choice(_require_moves(board))


Strategy = Union[OptimalStrategy, PessimalStrategy, RandomStrategy]

STRATEGIES: Dict[OpponentMode, Type[Strategy]] = {
    OpponentMode.WIN: OptimalStrategy,
    OpponentMode.LOSE: PessimalStrategy,
    OpponentMode.RANDOM: RandomStrategy,
}


def strategy_for(
    mode: Union[OpponentMode, str, None], rng: Optional[random.Random] = None
) -> Strategy:
    if not isinstance(mode, OpponentMode):
        mode = parse_mode(mode)
    cls = STRATEGIES[mode]
    return cls(rng=rng) if rng is not None else cls()
