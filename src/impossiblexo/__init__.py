"""ImpossibleXO package exposing the game engine, the minimax opponent, and the web application."""

from .ai import MinimaxAI
from .game import (
    BoardFull,
    Cell,
    CellOccupied,
    CellValue,
    GameOver,
    GameState,
    InvalidMove,
    MoveError,
    OutOfTurn,
    TicTacToeGame,
)
from .ui import app

__all__ = [
    "BoardFull",
    "Cell",
    "CellOccupied",
    "CellValue",
    "GameOver",
    "GameState",
    "InvalidMove",
    "MinimaxAI",
    "MoveError",
    "OutOfTurn",
    "TicTacToeGame",
    "app",
]
