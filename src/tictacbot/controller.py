"""Turn state machine sequencing the human and the scripted opponent."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional, Tuple, Union
import logging
import threading

from .ai import Strategy
from .game import HUMAN, OPPONENT, Board, Draw, Mark, Ongoing, Outcome, Won, evaluate

logger = logging.getLogger(__name__)

OPPONENT_THINK_DELAY = 0.6  # seconds


class TurnPhase(str, Enum):
    HUMAN_TO_MOVE = "human_to_move"
    OPPONENT_THINKING = "opponent_thinking"
    GAME_OVER = "game_over"


# ---------- Outbound events ----------


@dataclass(frozen=True)
class CellMarked:
    index: int
    mark: Mark


@dataclass(frozen=True)
class StatusChanged:
    text: str


@dataclass(frozen=True)
class LineHighlighted:
    line: Tuple[int, int, int]


@dataclass(frozen=True)
class InputToggled:
    enabled: bool


@dataclass(frozen=True)
class BoardReset:
    pass


Event = Union[CellMarked, StatusChanged, LineHighlighted, InputToggled, BoardReset]
Listener = Callable[[Event], None]


def status_text(phase: TurnPhase, outcome: Outcome) -> str:
    if isinstance(outcome, Won):
        return f"Player {outcome.mark} has won!"
    if isinstance(outcome, Draw):
        return "Game ended in a draw!"
    if phase is TurnPhase.OPPONENT_THINKING:
        return f"Player {OPPONENT}'s turn. Thinking..."
    return f"Player {HUMAN}'s turn"


# ---------- Deferred opponent move ----------


@dataclass
class PendingMove:
    """Opponent move waiting out the thinking delay.

    Schedulers call :meth:`fire` once ``delay`` has elapsed. A move cancelled
    by a restart does nothing when fired.
    """

    controller: "TurnController" = field(repr=False)
    delay: float
    cancelled: bool = False

    def cancel(self) -> None:
        self.cancelled = True

    def fire(self) -> None:
        self.controller._complete_opponent_turn(self)


Scheduler = Callable[[PendingMove], None]


def timer_scheduler(pending: PendingMove) -> None:
    """Run the pending move on a daemon timer thread."""
    timer = threading.Timer(pending.delay, pending.fire)
    timer.daemon = True
    timer.start()


# ---------- Controller ----------


class TurnController:
    """Owns the board and turn state of one game.

    Only this class mutates the board; strategies receive it to read and
    return a cell index.
    """

    def __init__(
        self,
        strategy: Strategy,
        scheduler: Scheduler = timer_scheduler,
        think_delay: float = OPPONENT_THINK_DELAY,
    ) -> None:
        self.strategy = strategy
        self.scheduler = scheduler
        self.think_delay = think_delay
        self.board = Board()
        self.phase = TurnPhase.HUMAN_TO_MOVE
        self._active: Mark = HUMAN
        self.outcome: Outcome = Ongoing()
        self.move_log: List[Tuple[Mark, int]] = []
        self.input_enabled = True
        self._pending: Optional[PendingMove] = None
        self._listeners: List[Listener] = []
        self._lock = threading.RLock()

    # ---- subscription ----

    def subscribe(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def _emit(self, event: Event) -> None:
        for listener in list(self._listeners):
            listener(event)

    # ---- state snapshot ----

    @property
    def active_player(self) -> Mark:
        return self._active

    @property
    def game_active(self) -> bool:
        return self.phase is not TurnPhase.GAME_OVER

    @property
    def status(self) -> str:
        return status_text(self.phase, self.outcome)

    @property
    def pending(self) -> Optional[PendingMove]:
        return self._pending

    def cells(self) -> List[Mark]:
        with self._lock:
            return list(self.board.cells)

    # ---- inbound events ----

    def select_cell(self, index: int) -> bool:
        """Play the human's mark; returns False if the request was ignored."""
        with self._lock:
            if self.phase is not TurnPhase.HUMAN_TO_MOVE:
                return False
            if not 0 <= index < len(self.board.cells) or not self.board.is_empty(index):
                return False

            self._mark(HUMAN, index)
            if self._finish_if_terminal():
                return True

            self.phase = TurnPhase.OPPONENT_THINKING
            self._active = OPPONENT
            self._set_input(False)
            self._emit(StatusChanged(self.status))
            self._pending = PendingMove(controller=self, delay=self.think_delay)
            pending = self._pending

        self.scheduler(pending)
        return True

    def restart(self) -> None:
        with self._lock:
            if self._pending is not None:
                self._pending.cancel()
                self._pending = None
            self.board.reset()
            self.move_log.clear()
            self.outcome = Ongoing()
            self.phase = TurnPhase.HUMAN_TO_MOVE
            self._active = HUMAN
            logger.info("game restarted (%s)", self.strategy.mode.value)
            self._emit(BoardReset())
            self._set_input(True)
            self._emit(StatusChanged(self.status))

    # ---- transitions ----

    def _complete_opponent_turn(self, pending: PendingMove) -> None:
        with self._lock:
            if pending.cancelled or pending is not self._pending:
                return
            self._pending = None
            if self.phase is not TurnPhase.OPPONENT_THINKING:
                return

            try:
                index = self.strategy.choose(self.board.copy())
            except Exception:
                logger.exception("opponent strategy failed on %s", self.board.cells)
                raise

            self._mark(OPPONENT, index)
            if self._finish_if_terminal():
                return
            self.phase = TurnPhase.HUMAN_TO_MOVE
            self._active = HUMAN
            self._set_input(True)
            self._emit(StatusChanged(self.status))

    def _mark(self, mark: Mark, index: int) -> None:
        self.board.place(mark, index)
        self.move_log.append((mark, index))
        self._emit(CellMarked(index=index, mark=mark))

    def _finish_if_terminal(self) -> bool:
        outcome = evaluate(self.board)
        if not outcome.terminal:
            return False
        self.outcome = outcome
        self.phase = TurnPhase.GAME_OVER
        logger.info("game over: %s", self.status)
        self._emit(StatusChanged(self.status))
        if isinstance(outcome, Won):
            self._emit(LineHighlighted(outcome.line))
        self._set_input(True)
        return True

    def _set_input(self, enabled: bool) -> None:
        if self.input_enabled != enabled:
            self.input_enabled = enabled
            self._emit(InputToggled(enabled))
