"""TicTacBot package exposing the board model, opponent strategies, and the web application."""

from .ai import OpponentMode, OptimalStrategy, PessimalStrategy, RandomStrategy
from .controller import TurnController
from .game import Board, evaluate
from .ui import app

__all__ = [
    "Board",
    "OpponentMode",
    "OptimalStrategy",
    "PessimalStrategy",
    "RandomStrategy",
    "TurnController",
    "app",
    "evaluate",
]
