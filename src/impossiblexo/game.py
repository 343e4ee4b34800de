"""Board model, move rules and outcome detection for ImpossibleXO."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Iterable, List, Optional, Sequence, Tuple

if TYPE_CHECKING:
    from .ai import MinimaxAI

logger = logging.getLogger(__name__)

SIZE = 3

# Row-major cell indices: index = row * 3 + column
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


# ---------- Errors ----------


class MoveError(ValueError):
    """A move was refused; the board is left untouched."""


class InvalidMove(MoveError):
    pass


class CellOccupied(MoveError):
    pass


class GameOver(MoveError):
    pass


class OutOfTurn(MoveError):
    pass


class BoardFull(MoveError):
    pass


class InvariantViolation(RuntimeError):
    """Board contents that no legal sequence of moves can produce."""


# ---------- Cells ----------


class CellValue(str, Enum):
    EMPTY = "Empty"
    HUMAN = "Human"
    CPU = "Cpu"


class GameState(str, Enum):
    IN_PROGRESS = "InProgress"
    HUMAN_WINS = "HumanWins"
    CPU_WINS = "CpuWins"
    DRAW = "Draw"

    @property
    def is_terminal(self) -> bool:
        return self is not GameState.IN_PROGRESS


@dataclass(frozen=True)
class Cell:
    row: int
    column: int
    value: CellValue

    @property
    def is_empty(self) -> bool:
        return self.value is CellValue.EMPTY


def cell_index(row: int, column: int) -> int:
    return row * SIZE + column


def winner_of(values: Sequence[CellValue]) -> Optional[CellValue]:
    """Return the side owning a complete line, or None.

    Raises InvariantViolation if both sides own a line at once.
    """
    found: Optional[CellValue] = None
    for a, b, c in WINNING_LINES:
        v = values[a]
        if v is not CellValue.EMPTY and v == values[b] == values[c]:
            if found is not None and found is not v:
                raise InvariantViolation("Both sides hold a winning line")
            found = v
    return found


# ---------- Board ----------


@dataclass
class Board:
    values: List[CellValue] = field(
        default_factory=lambda: [CellValue.EMPTY] * (SIZE * SIZE)
    )

    def __post_init__(self) -> None:
        if len(self.values) != SIZE * SIZE:
            raise ValueError("Board must have exactly 9 cells")

    @classmethod
    def from_rows(cls, rows: Iterable[Iterable[CellValue]]) -> "Board":
        grid = [[CellValue(v) for v in row] for row in rows]
        if len(grid) != SIZE or any(len(row) != SIZE for row in grid):
            raise ValueError("Board must have exactly 3 rows of 3 cells")
        return cls(values=[v for row in grid for v in row])

    def cells(self) -> List[Cell]:
        return [
            Cell(row=i // SIZE, column=i % SIZE, value=v)
            for i, v in enumerate(self.values)
        ]

    def get(self, row: int, column: int) -> CellValue:
        return self.values[cell_index(row, column)]

    def set(self, row: int, column: int, value: CellValue) -> None:
        self.values[cell_index(row, column)] = value

    def empty_cells(self) -> List[Tuple[int, int]]:
        return [
            (i // SIZE, i % SIZE)
            for i, v in enumerate(self.values)
            if v is CellValue.EMPTY
        ]

    def has_empty_cells(self) -> bool:
        return CellValue.EMPTY in self.values

    def count(self, value: CellValue) -> int:
        return self.values.count(value)

    def winner(self) -> Optional[CellValue]:
        return winner_of(self.values)

    def outcome(self) -> GameState:
        who = self.winner()
        if who is CellValue.CPU:
            return GameState.CPU_WINS
        if who is CellValue.HUMAN:
            return GameState.HUMAN_WINS
        if not self.has_empty_cells():
            return GameState.DRAW
        return GameState.IN_PROGRESS

    def side_to_move(self) -> CellValue:
        # Human always opens, so equal counts mean it is the Human's turn
        diff = self.count(CellValue.HUMAN) - self.count(CellValue.CPU)
        if diff == 0:
            return CellValue.HUMAN
        if diff == 1:
            return CellValue.CPU
        raise InvariantViolation(f"Impossible piece balance: {diff:+d}")

    def snapshot(self) -> Tuple[CellValue, ...]:
        return tuple(self.values)

    def copy(self) -> "Board":
        return Board(values=self.values.copy())

    def clear(self) -> None:
        self.values[:] = [CellValue.EMPTY] * (SIZE * SIZE)

    def render(self) -> str:
        marks = {CellValue.EMPTY: ".", CellValue.HUMAN: "X", CellValue.CPU: "O"}
        return "\n".join(
            " ".join(marks[v] for v in self.values[r * SIZE : (r + 1) * SIZE])
            for r in range(SIZE)
        )


# ---------- Game ----------


class TicTacToeGame:
    """Human-versus-computer game; the computer never loses.

    The board is the only state. Turn and outcome are derived from it on
    every query. The game keeps its own copy of any board it is given, and
    ``board`` hands out copies, so moves only happen through ``human_play``
    and ``cpu_play``.
    """

    def __init__(
        self, board: Optional[Board] = None, ai: Optional["MinimaxAI"] = None
    ) -> None:
        if ai is None:
            from .ai import MinimaxAI

            ai = MinimaxAI()
        self._board = board.copy() if board is not None else Board()
        self.ai = ai

    @classmethod
    def from_rows(
        cls, rows: Iterable[Iterable[CellValue]], ai: Optional["MinimaxAI"] = None
    ) -> "TicTacToeGame":
        return cls(board=Board.from_rows(rows), ai=ai)

    def __repr__(self) -> str:
        return f"TicTacToeGame(board={self._board!r})"

    @property
    def board(self) -> Board:
        """Detached copy of the current board."""
        return self._board.copy()

    # ---- queries ----

    def cells(self) -> List[Cell]:
        return self._board.cells()

    def has_empty_cells(self) -> bool:
        return self._board.has_empty_cells()

    def has_winner(self) -> bool:
        return self._board.winner() is not None

    def is_cpu_winner(self) -> bool:
        return self._board.winner() is CellValue.CPU

    def is_human_winner(self) -> bool:
        return self._board.winner() is CellValue.HUMAN

    def state(self) -> GameState:
        return self._board.outcome()

    def is_over(self) -> bool:
        return self.state().is_terminal

    # ---- commands ----

    def human_play(self, row: int, column: int) -> Cell:
        """Place the Human mark at (row, column)."""
        if not _on_board(row) or not _on_board(column):
            raise InvalidMove(f"Cell ({row}, {column}) is outside the board")
        if self.is_over():
            raise GameOver("Game already finished")
        if self._board.get(row, column) is not CellValue.EMPTY:
            raise CellOccupied(f"Cell ({row}, {column}) is already occupied")
        if self._board.side_to_move() is not CellValue.HUMAN:
            raise OutOfTurn("It is the computer's turn")

        self._board.set(row, column, CellValue.HUMAN)
        self._log_if_finished()
        return Cell(row=row, column=column, value=CellValue.HUMAN)

    def cpu_play(self) -> Cell:
        """Let the search pick and place the computer's mark."""
        if not self._board.has_empty_cells():
            raise BoardFull("No empty cells left")
        if self.is_over():
            raise GameOver("Game already finished")
        if self._board.side_to_move() is not CellValue.CPU:
            raise OutOfTurn("It is the human's turn")

        row, column = self.ai.choose(self._board)
        self._board.set(row, column, CellValue.CPU)
        self._log_if_finished()
        return Cell(row=row, column=column, value=CellValue.CPU)

    def restart(self) -> None:
        self._board.clear()

    def clone(self) -> "TicTacToeGame":
        # The search object only caches exact values, so clones may share it
        return TicTacToeGame(board=self._board, ai=self.ai)

    # ---- helpers ----

    def _log_if_finished(self) -> None:
        state = self.state()
        if state.is_terminal:
            logger.debug("Game finished: %s\n%s", state.value, self._board.render())


def _on_board(value: object) -> bool:
    return (
        isinstance(value, int)
        and not isinstance(value, bool)
        and 0 <= value < SIZE
    )
