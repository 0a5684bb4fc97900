"""Board model and outcome evaluation for a single 3x3 tic-tac-toe game."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Tuple, Union

Mark = str  # "X", "O", or "" for empty

HUMAN: Mark = "X"
OPPONENT: Mark = "O"
EMPTY: Mark = ""

BOARD_SIZE = 9

WINNING_LINES: Tuple[Tuple[int, int, int], ...] = (
    (0, 1, 2),
    (3, 4, 5),
    (6, 7, 8),
    (0, 3, 6),
    (1, 4, 7),
    (2, 5, 8),
    (0, 4, 8),
    (2, 4, 6),
)


def other(mark: Mark) -> Mark:
    return OPPONENT if mark == HUMAN else HUMAN


# ---------- Board ----------


@dataclass
class Board:
    # Row-major: index 0..8 maps to (index // 3, index % 3)
    cells: List[Mark] = field(default_factory=lambda: [EMPTY] * BOARD_SIZE)

    def __post_init__(self) -> None:
        if len(self.cells) != BOARD_SIZE:
            raise ValueError(f"A board has exactly {BOARD_SIZE} cells")

    def __getitem__(self, idx: int) -> Mark:
        return self.cells[idx]

    def is_empty(self, idx: int) -> bool:
        return self.cells[idx] == EMPTY

    def is_full(self) -> bool:
        return all(c != EMPTY for c in self.cells)

    def empty_cells(self) -> List[int]:
        """Indices of empty cells in ascending order."""
        return [i for i, c in enumerate(self.cells) if c == EMPTY]

    def counts(self) -> Tuple[int, int]:
        return self.cells.count(HUMAN), self.cells.count(OPPONENT)

    def place(self, mark: Mark, idx: int) -> None:
        if mark not in (HUMAN, OPPONENT):
            raise ValueError(f"Unknown mark {mark!r}")
        if not 0 <= idx < BOARD_SIZE:
            raise ValueError(f"Cell index {idx} is off the board")
        if self.cells[idx] != EMPTY:
            raise ValueError("Cell already occupied")
        self.cells[idx] = mark

    def clear(self, idx: int) -> None:
        self.cells[idx] = EMPTY

    def reset(self) -> None:
        self.cells[:] = [EMPTY] * BOARD_SIZE

    def copy(self) -> "Board":
        return Board(cells=self.cells.copy())


# ---------- Outcome ----------


@dataclass(frozen=True)
class Won:
    mark: Mark
    line: Tuple[int, int, int]

    @property
    def terminal(self) -> bool:
        return True


@dataclass(frozen=True)
class Draw:
    @property
    def terminal(self) -> bool:
        return True


@dataclass(frozen=True)
class Ongoing:
    @property
    def terminal(self) -> bool:
        return False


Outcome = Union[Won, Draw, Ongoing]


def evaluate(board: Board) -> Outcome:
    """Report a win on the first completed line, else a draw on a full board."""
    cells = board.cells
    for line in WINNING_LINES:
        a, b, c = line
        v = cells[a]
        if v != EMPTY and v == cells[b] == cells[c]:
            return Won(mark=v, line=line)
    if board.is_full():
        return Draw()
    return Ongoing()
