"""FastAPI-powered web UI for playing tic-tac-toe against the scripted opponent."""

from __future__ import annotations

import logging
import os
import threading
import time
import uuid
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from fastapi import BackgroundTasks, FastAPI, HTTPException
from fastapi.responses import HTMLResponse
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .ai import OpponentMode, parse_mode, strategy_for
from .controller import OPPONENT_THINK_DELAY, PendingMove, TurnController, TurnPhase
from .game import Draw, Won

logger = logging.getLogger(__name__)


@dataclass
class GameSession:
    """Container for an active game, its opponent mode, and queued opponent moves."""

    controller: TurnController
    mode: OpponentMode
    queued: List[PendingMove] = field(default_factory=list, repr=False)
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False)


SESSIONS: Dict[str, GameSession] = {}
app = FastAPI(title="TicTacBot", description="Tic-tac-toe against a scripted opponent")

DEFAULT_MODE: OpponentMode = parse_mode(os.environ.get("TICTACBOT_MODE"))


class NewGameRequest(BaseModel):
    """Request payload for starting a new game."""

    mode: OpponentMode = Field(
        default_factory=lambda: DEFAULT_MODE,
        description="Opponent behaviour: win, lose or random",
    )

    @field_validator("mode", mode="before")
    @classmethod
    def resolve_mode(cls, value: object) -> OpponentMode:
        # Unknown modes are not an error; they fall back to random play.
        if isinstance(value, OpponentMode):
            return value
        if value is None:
            return DEFAULT_MODE
        return parse_mode(str(value))


class MoveRequest(BaseModel):
    """Request payload for selecting a cell on an existing game."""

    model_config = ConfigDict(populate_by_name=True)

    cell_index: int = Field(alias="cellIndex", ge=0, le=8)


def _create_session(mode: OpponentMode) -> Tuple[str, GameSession]:
    """Create a new game session and register it for later access."""

    queued: List[PendingMove] = []
    lock = threading.Lock()

    def enqueue(pending: PendingMove) -> None:
        with lock:
            queued.append(pending)

    controller = TurnController(
        strategy_for(mode),
        scheduler=enqueue,
        think_delay=OPPONENT_THINK_DELAY,
    )
    session = GameSession(controller=controller, mode=mode, queued=queued, lock=lock)
    session_id = uuid.uuid4().hex
    SESSIONS[session_id] = session
    logger.info("created game %s (mode=%s)", session_id, mode.value)
    return session_id, session


def _get_session(game_id: str) -> GameSession:
    try:
        return SESSIONS[game_id]
    except KeyError as exc:
        raise HTTPException(status_code=404, detail="Game not found") from exc


def _run_pending(pending: PendingMove) -> None:
    time.sleep(max(0.0, pending.delay))
    pending.fire()


def _dispatch_queued(session: GameSession, background_tasks: BackgroundTasks) -> None:
    with session.lock:
        drained = list(session.queued)
        session.queued.clear()
    for pending in drained:
        background_tasks.add_task(_run_pending, pending)


def _serialize_session(
    game_id: str, session: GameSession, accepted: Optional[bool] = None
) -> Dict[str, object]:
    controller = session.controller
    outcome = controller.outcome
    move_log = [
        {"player": mark, "cellIndex": index} for mark, index in controller.move_log
    ]
    state: Dict[str, object] = {
        "id": game_id,
        "mode": session.mode.value,
        "cells": controller.cells(),
        "phase": controller.phase.value,
        "currentPlayer": controller.active_player,
        "gameActive": controller.game_active,
        "status": controller.status,
        "winner": outcome.mark if isinstance(outcome, Won) else None,
        "winningLine": list(outcome.line) if isinstance(outcome, Won) else None,
        "drawn": isinstance(outcome, Draw),
        "inputEnabled": controller.input_enabled,
        "aiPending": controller.phase is TurnPhase.OPPONENT_THINKING,
        "moveLog": move_log,
    }
    if move_log:
        state["lastMove"] = move_log[-1]
    if accepted is not None:
        state["accepted"] = accepted
    return state


@app.post("/api/game")
def create_game(request: NewGameRequest) -> Dict[str, object]:
    game_id, session = _create_session(request.mode)
    return _serialize_session(game_id, session)


@app.get("/api/game/{game_id}")
def get_game(game_id: str) -> Dict[str, object]:
    session = _get_session(game_id)
    return _serialize_session(game_id, session)


@app.post("/api/game/{game_id}/move")
def make_move(
    game_id: str, request: MoveRequest, background_tasks: BackgroundTasks
) -> Dict[str, object]:
    session = _get_session(game_id)
    accepted = session.controller.select_cell(request.cell_index)
    _dispatch_queued(session, background_tasks)
    return _serialize_session(game_id, session, accepted=accepted)


@app.post("/api/game/{game_id}/restart")
def restart_game(game_id: str) -> Dict[str, object]:
    session = _get_session(game_id)
    session.controller.restart()
    with session.lock:
        session.queued.clear()
    return _serialize_session(game_id, session)


@app.get("/", response_class=HTMLResponse)
def index() -> str:
    return HOME_PAGE


@app.get("/play", response_class=HTMLResponse)
def play() -> str:
    return GAME_PAGE


_STYLE = """
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
        width: min(520px, 100%);
        text-align: center;
      }
      h1 {
        margin: 0 0 0.5rem;
        letter-spacing: 0.06em;
      }
      button,
      a.button {
        display: inline-block;
        font-size: 1rem;
        padding: 0.55rem 0.95rem;
        border-radius: 999px;
        border: 1px solid rgba(60, 70, 120, 0.25);
        background: white;
        color: inherit;
        text-decoration: none;
        cursor: pointer;
        margin: 0.35rem;
      }
      #board {
        display: grid;
        grid-template-columns: repeat(3, 96px);
        grid-template-rows: repeat(3, 96px);
        gap: 6px;
        justify-content: center;
        margin: 1.5rem auto;
      }
      #board.locked {
        pointer-events: none;
        opacity: 0.85;
      }
      .cell {
        border-radius: 12px;
        background: #eef2ff;
        font-size: 2.6rem;
        font-weight: 700;
        display: flex;
        align-items: center;
        justify-content: center;
        cursor: pointer;
      }
      .cell.x {
        color: #3a66ff;
      }
      .cell.o {
        color: #e8485f;
      }
      .cell.winning {
        background: #ffe9a8;
      }
      #status {
        font-weight: 600;
        min-height: 1.5rem;
      }
    </style>
"""


HOME_PAGE = f"""<!DOCTYPE html>
<html lang=\"en\">
  <head>
    <meta charset=\"utf-8\" />
    <meta name=\"viewport\" content=\"width=device-width, initial-scale=1\" />
    <title>TicTacBot</title>
{_STYLE}
  </head>
  <body>
    <main>
      <h1>TicTacBot</h1>
      <p>Pick how your opponent should play.</p>
      <a class=\"button\" href=\"/play?mode=win\">Play to win</a>
      <a class=\"button\" href=\"/play?mode=lose\">Play to lose</a>
      <a class=\"button\" href=\"/play?mode=random\">Random</a>
    </main>
  </body>
</html>
"""


GAME_PAGE = f"""<!DOCTYPE html>
<html lang=\"en\">
  <head>
    <meta charset=\"utf-8\" />
    <meta name=\"viewport\" content=\"width=device-width, initial-scale=1\" />
    <title>TicTacBot</title>
{_STYLE}
  </head>
  <body>
    <main>
      <h1>TicTacBot</h1>
      <p id=\"status\"></p>
      <div id=\"board\"></div>
      <button id=\"restartButton\">Restart</button>
      <a class=\"button\" href=\"/\">Back</a>
    </main>
    <script>
      const boardEl = document.getElementById('board');
      const statusEl = document.getElementById('status');
      const restartButton = document.getElementById('restartButton');
      const mode = new URLSearchParams(window.location.search).get('mode');
      let gameId = null;
      let pollHandle = null;

      for (let i = 0; i < 9; i += 1) {{
        const cell = document.createElement('div');
        cell.className = 'cell';
        cell.dataset.index = String(i);
        boardEl.appendChild(cell);
      }}

      function render(state) {{
        const winning = new Set(state.winningLine || []);
        boardEl.querySelectorAll('.cell').forEach((cell, index) => {{
          const mark = state.cells[index];
          cell.textContent = mark;
          cell.classList.remove('x', 'o', 'winning');
          if (mark) cell.classList.add(mark.toLowerCase());
          if (winning.has(index)) cell.classList.add('winning');
        }});
        statusEl.textContent = state.status;
        boardEl.classList.toggle('locked', !state.inputEnabled);
        if (state.aiPending) schedulePoll();
      }}

      function schedulePoll() {{
        if (pollHandle) return;
        pollHandle = window.setTimeout(async () => {{
          pollHandle = null;
          const response = await fetch(`/api/game/${{gameId}}`);
          if (response.ok) render(await response.json());
        }}, 450);
      }}

      async function post(url, body) {{
        const response = await fetch(url, {{
          method: 'POST',
          headers: {{ 'Content-Type': 'application/json' }},
          body: JSON.stringify(body || {{}}),
        }});
        if (!response.ok) throw new Error('Request failed');
        return response.json();
      }}

      async function startGame() {{
        const state = await post('/api/game', {{ mode }});
        gameId = state.id;
        render(state);
      }}

      boardEl.addEventListener('click', async (event) => {{
        const cell = event.target.closest('.cell');
        if (!cell || !gameId) return;
        const state = await post(`/api/game/${{gameId}}/move`, {{
          cellIndex: Number(cell.dataset.index),
        }});
        render(state);
      }});

      restartButton.addEventListener('click', async () => {{
        if (!gameId) return;
        render(await post(`/api/game/${{gameId}}/restart`));
      }});

      startGame();
    </script>
  </body>
</html>
"""
