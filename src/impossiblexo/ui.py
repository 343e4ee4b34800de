"""FastAPI-powered web UI for playing ImpossibleXO in the browser."""

from __future__ import annotations

import logging
import threading
import time
import uuid
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from fastapi import FastAPI, HTTPException
from fastapi.responses import HTMLResponse
from pydantic import BaseModel, Field

from .ai import MinimaxAI
from .game import Cell, MoveError, TicTacToeGame

logger = logging.getLogger(__name__)


@dataclass
class GameSession:
    """Container for an active game and the computer's last reply."""

    game: TicTacToeGame
    last_cpu_move: Optional[Cell] = None
    last_seen: float = field(default_factory=lambda: time.time())
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False)


SESSION_TTL_SECONDS = 60 * 30  # 30 minutes
MAX_SESSIONS = 1000

# Every game searches with the same opponent so its cache is built only once
AI = MinimaxAI()
SESSIONS: Dict[str, GameSession] = {}
SESSIONS_LOCK = threading.Lock()
app = FastAPI(
    title="ImpossibleXO",
    description="Tic-tac-toe against a computer that never loses",
)


class MoveRequest(BaseModel):
    """Request payload for placing the human's mark."""

    row: int = Field(ge=0, le=2)
    column: int = Field(ge=0, le=2)


def _cleanup_sessions() -> None:
    """Drop idle sessions, then the oldest ones while over the cap.

    Caller must hold ``SESSIONS_LOCK``.
    """

    now = time.time()
    expired = [
        game_id
        for game_id, session in list(SESSIONS.items())
        if now - session.last_seen >= SESSION_TTL_SECONDS
    ]
    for game_id in expired:
        SESSIONS.pop(game_id, None)

    overflow = len(SESSIONS) - MAX_SESSIONS + 1
    if overflow > 0:
        oldest = sorted(SESSIONS, key=lambda game_id: SESSIONS[game_id].last_seen)
        for game_id in oldest[:overflow]:
            SESSIONS.pop(game_id, None)
        expired.extend(oldest[:overflow])

    if expired:
        logger.info("Dropped %d idle games", len(expired))


def _create_session() -> Tuple[str, GameSession]:
    """Create a new game session and register it for later access."""

    session = GameSession(game=TicTacToeGame(ai=AI))
    session_id = uuid.uuid4().hex
    with SESSIONS_LOCK:
        _cleanup_sessions()
        SESSIONS[session_id] = session
    logger.info("Created game %s", session_id)
    return session_id, session


def _get_session(game_id: str) -> GameSession:
    with SESSIONS_LOCK:
        try:
            session = SESSIONS[game_id]
        except KeyError as exc:
            raise HTTPException(status_code=404, detail="Game not found") from exc
        session.last_seen = time.time()
        return session


def _serialize_session(game_id: str, session: GameSession) -> Dict[str, object]:
    with session.lock:
        game = session.game
        cells: List[Dict[str, object]] = [
            {"row": c.row, "column": c.column, "value": c.value.value}
            for c in game.cells()
        ]
        last = session.last_cpu_move
        return {
            "id": game_id,
            "cells": cells,
            "hasEmptyCells": game.has_empty_cells(),
            "hasWinner": game.has_winner(),
            "isCpuWinner": game.is_cpu_winner(),
            "isHumanWinner": game.is_human_winner(),
            "state": game.state().value,
            "lastCpuMove": (
                {"row": last.row, "column": last.column} if last else None
            ),
        }


def _apply_player_move(
    game_id: str, session: GameSession, row: int, column: int
) -> None:
    with session.lock:
        game = session.game
        try:
            game.human_play(row, column)
            session.last_cpu_move = None
            if game.has_empty_cells() and not game.has_winner():
                session.last_cpu_move = game.cpu_play()
        except MoveError as exc:
            logger.warning("Rejected move (%d, %d) in %s: %s", row, column, game_id, exc)
            raise HTTPException(status_code=400, detail=str(exc)) from exc

        state = game.state()
        if state.is_terminal:
            logger.info("Game %s finished: %s", game_id, state.value)


@app.post("/api/game")
def create_game() -> Dict[str, object]:
    game_id, session = _create_session()
    return _serialize_session(game_id, session)


@app.get("/api/game/{game_id}")
def get_game(game_id: str) -> Dict[str, object]:
    session = _get_session(game_id)
    return _serialize_session(game_id, session)


@app.post("/api/game/{game_id}/move")
def make_move(game_id: str, request: MoveRequest) -> Dict[str, object]:
    session = _get_session(game_id)
    _apply_player_move(game_id, session, request.row, request.column)
    return _serialize_session(game_id, session)


@app.post("/api/game/{game_id}/restart")
def restart_game(game_id: str) -> Dict[str, object]:
    session = _get_session(game_id)
    with session.lock:
        session.game.restart()
        session.last_cpu_move = None
    logger.info("Restarted game %s", game_id)
    return _serialize_session(game_id, session)


@app.get("/", response_class=HTMLResponse)
def index() -> str:
    return HTML_PAGE


HTML_PAGE = """<!DOCTYPE html>
<html lang=\"en\">
  <head>
    <meta charset=\"utf-8\" />
    <meta name=\"viewport\" content=\"width=device-width, initial-scale=1\" />
    <title>ImpossibleXO</title>
    <style>
      :root {
        color-scheme: light;
        font-family: system-ui, -apple-system, BlinkMacSystemFont, \"Segoe UI\", sans-serif;
      }
      * {
        box-sizing: border-box;
      }
      body {
        margin: 0;
        background: radial-gradient(circle at top, #f2f5ff, #dbe0ff 40%, #cfd8ff 70%);
        min-height: 100vh;
        display: flex;
        justify-content: center;
        padding: 2rem 1rem 3rem;
        color: #13203a;
      }
      main {
        background: rgba(255, 255, 255, 0.92);
        border-radius: 18px;
        box-shadow: 0 20px 40px rgba(34, 47, 79, 0.16);
        padding: clamp(1.5rem, 4vw, 2.5rem);
        width: min(480px, 100%);
        text-align: center;
      }
      h1 {
        margin: 0 0 0.5rem;
        letter-spacing: 0.06em;
      }
      .tagline {
        margin: 0 0 1.5rem;
        color: rgba(19, 32, 58, 0.75);
      }
      #board {
        display: grid;
        grid-template-columns: repeat(3, 1fr);
        gap: 8px;
        margin: 0 auto 1.25rem;
        width: min(320px, 100%);
      }
      .cell {
        aspect-ratio: 1;
        border-radius: 12px;
        background: #eef1ff;
        font-size: 2.6rem;
        font-weight: 700;
        display: flex;
        align-items: center;
        justify-content: center;
        cursor: pointer;
        user-select: none;
      }
      .cell.x {
        color: #3a66ff;
      }
      .cell.o {
        color: #ff5a5f;
      }
      .banner {
        display: none;
        font-weight: 600;
        margin-bottom: 1rem;
      }
      button {
        font-size: 1rem;
        padding: 0.55rem 0.95rem;
        border-radius: 999px;
        border: 1px solid rgba(60, 70, 120, 0.25);
        background: white;
        cursor: pointer;
        font-family: inherit;
      }
      #message {
        min-height: 1.2rem;
        color: #b3261e;
      }
    </style>
  </head>
  <body>
    <main>
      <h1>ImpossibleXO</h1>
      <p class=\"tagline\">You are X. Try to beat the computer.</p>
      <div id=\"board\">
        <div class=\"cell\" id=\"cell-0-0\"></div>
        <div class=\"cell\" id=\"cell-0-1\"></div>
        <div class=\"cell\" id=\"cell-0-2\"></div>
        <div class=\"cell\" id=\"cell-1-0\"></div>
        <div class=\"cell\" id=\"cell-1-1\"></div>
        <div class=\"cell\" id=\"cell-1-2\"></div>
        <div class=\"cell\" id=\"cell-2-0\"></div>
        <div class=\"cell\" id=\"cell-2-1\"></div>
        <div class=\"cell\" id=\"cell-2-2\"></div>
      </div>
      <div class=\"banner\" id=\"lose-text\">You lose!</div>
      <div class=\"banner\" id=\"draw-text\">Draw!</div>
      <div class=\"banner\" id=\"win-text\">You win!</div>
      <p id=\"message\"></p>
      <button id=\"btn-restart\">Restart (R)</button>
    </main>
    <script>
      const marks = { Human: 'X', Cpu: 'O', Empty: '' };
      const banners = {
        CpuWins: document.getElementById('lose-text'),
        Draw: document.getElementById('draw-text'),
        HumanWins: document.getElementById('win-text'),
      };
      const messageEl = document.getElementById('message');

      let gameId = null;
      let isPlayable = false;
      let isRequestPending = false;

      function setState(data) {
        gameId = data.id;
        data.cells.forEach(({ row, column, value }) => {
          const element = document.getElementById(`cell-${row}-${column}`);
          element.textContent = marks[value];
          element.classList.toggle('x', value === 'Human');
          element.classList.toggle('o', value === 'Cpu');
        });
        Object.entries(banners).forEach(([state, element]) => {
          element.style.display = state === data.state ? 'block' : 'none';
        });
        isPlayable = data.state === 'InProgress';
      }

      async function request(url, body) {
        const response = await fetch(url, {
          method: 'POST',
          headers: { 'Content-Type': 'application/json' },
          body: body ? JSON.stringify(body) : undefined,
        });
        const payload = await response.json().catch(() => ({}));
        if (!response.ok) {
          throw new Error(payload?.detail || 'Request failed');
        }
        return payload;
      }

      async function run(url, body) {
        if (isRequestPending) return;
        isRequestPending = true;
        messageEl.textContent = '';
        try {
          setState(await request(url, body));
        } catch (error) {
          messageEl.textContent = error.message || 'Network error. Please try again.';
        } finally {
          isRequestPending = false;
        }
      }

      function restart() {
        return run(gameId ? `/api/game/${gameId}/restart` : '/api/game');
      }

      document.querySelectorAll('.cell').forEach((element) => {
        const [, row, column] = element.id.split('-').map(Number);
        element.addEventListener('click', () => {
          if (!isPlayable || !gameId || element.textContent !== '') {
            return;
          }
          run(`/api/game/${gameId}/move`, { row, column });
        });
      });
      document.getElementById('btn-restart').addEventListener('click', restart);
      document.addEventListener('keypress', (e) => {
        if (e.key.toLowerCase() === 'r') restart();
      });

      run('/api/game');
    </script>
  </body>
</html>
"""
