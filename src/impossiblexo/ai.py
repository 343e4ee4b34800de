"""Exhaustive minimax opponent with a transposition table for ImpossibleXO."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

from .game import (
    SIZE,
    Board,
    BoardFull,
    CellValue,
    GameOver,
    OutOfTurn,
    winner_of,
)

logger = logging.getLogger(__name__)

Position = Tuple[CellValue, ...]

WIN, LOSS, DRAW = 1, -1, 0


@dataclass
class MinimaxAI:
    """Computer player searching the full game tree.

    Scores are from the computer's point of view: +1 win, -1 loss, 0 draw.
    Among equally good moves the first in row-major order is taken, so the
    same board always yields the same move.

    The transposition table stores exact values only, which keeps cached
    and uncached searches in agreement. One instance may serve many games
    across threads; searches are serialized on ``lock``.
    """

    _tt: Dict[Position, int] = field(default_factory=dict, repr=False)
    nodes_evaluated: int = field(default=0, init=False)
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    # ---- public API ----

    def choose(self, board: Board) -> Tuple[int, int]:
        if not board.has_empty_cells():
            raise BoardFull("No valid moves available")
        position = board.snapshot()
        if _score(position) is not None:
            raise GameOver("Game already finished")
        if board.side_to_move() is not CellValue.CPU:
            raise OutOfTurn("It is not the computer's turn")

        with self.lock:
            self.nodes_evaluated = 0
            best_score: Optional[int] = None
            best_index = -1
            for index in _empty_indices(position):
                score = self._minimax(_play(position, index, CellValue.CPU), False)
                if best_score is None or score > best_score:
                    best_score, best_index = score, index
            nodes = self.nodes_evaluated

        move = divmod(best_index, SIZE)
        logger.debug("Minimax chose %s (score %d) after %d nodes", move, best_score, nodes)
        return move

    def evaluate(self, board: Board) -> int:
        """Minimax value of ``board`` for whichever side is to move."""
        position = board.snapshot()
        maximizing = board.side_to_move() is CellValue.CPU
        with self.lock:
            return self._minimax(position, maximizing)

    def clear_cache(self) -> None:
        with self.lock:
            self._tt.clear()

    def cache_size(self) -> int:
        return len(self._tt)

    # ---- core search ----

    def _minimax(self, position: Position, maximizing: bool) -> int:
        self.nodes_evaluated += 1

        cached = self._tt.get(position)
        if cached is not None:
            return cached

        terminal = _score(position)
        if terminal is not None:
            self._tt[position] = terminal
            return terminal

        if maximizing:
            value = max(
                self._minimax(_play(position, i, CellValue.CPU), False)
                for i in _empty_indices(position)
            )
        else:
            value = min(
                self._minimax(_play(position, i, CellValue.HUMAN), True)
                for i in _empty_indices(position)
            )

        # Side to move is implied by the piece counts, so the position alone
        # is a complete key
        self._tt[position] = value
        return value


# ---- helpers ----


def _score(position: Position) -> Optional[int]:
    who = winner_of(position)
    if who is CellValue.CPU:
        return WIN
    if who is CellValue.HUMAN:
        return LOSS
    if CellValue.EMPTY not in position:
        return DRAW
    return None


def _empty_indices(position: Position):
    return (i for i, v in enumerate(position) if v is CellValue.EMPTY)


def _play(position: Position, index: int, value: CellValue) -> Position:
    return position[:index] + (value,) + position[index + 1 :]
