"""FastAPI-powered web UI for playing PerfectXO in the browser."""

from __future__ import annotations

import random
import threading
import time
import uuid
from dataclasses import dataclass, field
from typing import Dict, Literal, Optional, Tuple

from fastapi import BackgroundTasks, FastAPI, HTTPException
from fastapi.responses import HTMLResponse
from pydantic import BaseModel, Field

from .ai import choose_move
from .config import Settings
from .game import EMPTY, PlacementError
from .session import GameSession, Phase, SessionError, TurnError


@dataclass
class SessionHandle:
    """An active game plus the bookkeeping the web layer needs around it."""

    session: GameSession
    ai_pending: bool = False
    touched_at: float = field(default_factory=lambda: time.time())
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False)


SESSIONS: Dict[str, SessionHandle] = {}
app = FastAPI(title="PerfectXO", description="Tic-tac-toe against a perfect opponent")


# Defaults until configure() applies settings read from the environment.
AI_THINK_DELAY: Tuple[float, float] = Settings.ai_think_delay
RESET_DELAY_MS: int = Settings.reset_delay_ms
SESSION_TTL_SECONDS = 60 * 60  # 1 hour


def configure(settings: Settings) -> None:
    """Apply runtime settings to the web layer."""

    global AI_THINK_DELAY, RESET_DELAY_MS
    AI_THINK_DELAY = settings.ai_think_delay
    RESET_DELAY_MS = settings.reset_delay_ms


class SymbolRequest(BaseModel):
    """Symbol the human wants to play."""

    symbol: Literal["X", "O"]


class NewGameRequest(BaseModel):
    """Request payload for starting a new game; the symbol can be chosen later."""

    symbol: Optional[Literal["X", "O"]] = None


class MoveRequest(BaseModel):
    """Request payload for submitting a move on an existing game."""

    row: int = Field(ge=0, le=2)
    col: int = Field(ge=0, le=2)


def _cleanup_sessions() -> None:
    """Remove sessions that have been idle too long and have no search running."""

    now = time.time()
    expired = [
        game_id
        for game_id, handle in list(SESSIONS.items())
        if not handle.ai_pending and now - handle.touched_at >= SESSION_TTL_SECONDS
    ]
    for game_id in expired:
        SESSIONS.pop(game_id, None)


def _create_session() -> Tuple[str, SessionHandle]:
    _cleanup_sessions()
    handle = SessionHandle(session=GameSession())
    session_id = uuid.uuid4().hex
    SESSIONS[session_id] = handle
    return session_id, handle


def _get_session(game_id: str) -> SessionHandle:
    try:
        handle = SESSIONS[game_id]
    except KeyError as exc:
        raise HTTPException(status_code=404, detail="Game not found") from exc
    handle.touched_at = time.time()
    return handle


def _http_error(exc: ValueError) -> HTTPException:
    if isinstance(exc, TurnError):
        return HTTPException(status_code=409, detail=str(exc))
    return HTTPException(status_code=400, detail=str(exc))


def _run_ai_turn(game_id: str) -> None:
    handle = SESSIONS.get(game_id)
    if not handle:
        return

    time.sleep(max(0.0, random.uniform(*AI_THINK_DELAY)))

    # Search outside the lock on a snapshot. A result made stale by a reset is
    # dropped by the session, and the loop then serves the new game if needed.
    while True:
        with handle.lock:
            session = handle.session
            if session.phase is not Phase.COMPUTER_TURN:
                handle.ai_pending = False
                return
            generation, board = session.snapshot()
            computer, human = session.computer, session.human

        try:
            move = choose_move(board, computer, human)
        except Exception:
            with handle.lock:
                handle.ai_pending = False
            raise

        with handle.lock:
            session.apply_computer_move(move, generation)


def _schedule_ai(
    game_id: str, handle: SessionHandle, background_tasks: Optional[BackgroundTasks]
) -> None:
    """Queue a computer turn unless one is already in flight. Caller holds the lock."""
    if handle.session.phase is not Phase.COMPUTER_TURN or handle.ai_pending:
        return
    handle.ai_pending = True
    if background_tasks is not None:
        background_tasks.add_task(_run_ai_turn, game_id)


def _serialize_session(game_id: str, handle: SessionHandle) -> Dict[str, object]:
    with handle.lock:
        session = handle.session
        board = session.board
        outcome = session.outcome
        line = board.winning_line()

        state: Dict[str, object] = {
            "id": game_id,
            "phase": session.phase.value,
            "human": session.human,
            "computer": session.computer,
            "board": [
                [c if c != EMPTY else "" for c in row] for row in board.rows()
            ],
            "outcome": {"status": outcome.status.value, "winner": outcome.winner},
            "winningLine": [list(cell) for cell in line] if line else None,
            "moveLog": [
                {"player": player, "row": move.row, "col": move.col}
                for player, move in session.move_log
            ],
            "aiPending": handle.ai_pending,
            "resetDelayMs": RESET_DELAY_MS,
        }
        if session.move_log:
            state["lastMove"] = state["moveLog"][-1]  # type: ignore[index]
        return state


def _choose_symbol(
    game_id: str,
    handle: SessionHandle,
    symbol: str,
    background_tasks: Optional[BackgroundTasks],
) -> None:
    with handle.lock:
        try:
            handle.session.choose_symbol(symbol)
        except SessionError as exc:
            raise _http_error(exc) from exc
        _schedule_ai(game_id, handle, background_tasks)


def _apply_player_move(
    game_id: str,
    handle: SessionHandle,
    row: int,
    col: int,
    background_tasks: Optional[BackgroundTasks] = None,
) -> bool:
    with handle.lock:
        try:
            accepted = handle.session.play((row, col))
        except (SessionError, PlacementError) as exc:
            raise _http_error(exc) from exc
        _schedule_ai(game_id, handle, background_tasks)
    return accepted


@app.post("/api/game")
def create_game(
    request: NewGameRequest, background_tasks: BackgroundTasks
) -> Dict[str, object]:
    game_id, handle = _create_session()
    if request.symbol is not None:
        _choose_symbol(game_id, handle, request.symbol, background_tasks)
    return _serialize_session(game_id, handle)


@app.get("/api/game/{game_id}")
def get_game(game_id: str) -> Dict[str, object]:
    handle = _get_session(game_id)
    return _serialize_session(game_id, handle)


@app.post("/api/game/{game_id}/symbol")
def choose_symbol(
    game_id: str, request: SymbolRequest, background_tasks: BackgroundTasks
) -> Dict[str, object]:
    handle = _get_session(game_id)
    _choose_symbol(game_id, handle, request.symbol, background_tasks)
    return _serialize_session(game_id, handle)


@app.post("/api/game/{game_id}/move")
def make_move(
    game_id: str, request: MoveRequest, background_tasks: BackgroundTasks
) -> Dict[str, object]:
    handle = _get_session(game_id)
    accepted = _apply_player_move(
        game_id, handle, request.row, request.col, background_tasks
    )
    state = _serialize_session(game_id, handle)
    state["ignored"] = not accepted
    return state


@app.post("/api/game/{game_id}/reset")
def reset_game(game_id: str) -> Dict[str, object]:
    handle = _get_session(game_id)
    with handle.lock:
        try:
            handle.session.reset()
        except SessionError as exc:
            raise _http_error(exc) from exc
    return _serialize_session(game_id, handle)


@app.get("/", response_class=HTMLResponse)
def index() -> str:
    return HTML_PAGE


HTML_PAGE = """<!DOCTYPE html>
<html lang=\"en\">
  <head>
    <meta charset=\"utf-8\" />
    <meta name=\"viewport\" content=\"width=device-width, initial-scale=1\" />
    <title>PerfectXO</title>
    <style>
      body {
        margin: 0;
        min-height: 100vh;
        display: flex;
        flex-direction: column;
        align-items: center;
        justify-content: center;
        font-family: system-ui, sans-serif;
        background: #1f2430;
        color: #f4f4f4;
      }
      #board {
        display: grid;
        grid-template-columns: repeat(3, 110px);
        grid-template-rows: repeat(3, 110px);
        gap: 6px;
      }
      .cell {
        display: flex;
        align-items: center;
        justify-content: center;
        font-size: 64px;
        font-weight: 700;
        background: #2d3444;
        border-radius: 8px;
        cursor: pointer;
        transition: background 0.2s;
      }
      .cell.player-win { background: #2e7d4f; }
      .cell.enemy-win { background: #a33a3a; }
      .cell.draw { background: #55596a; }
      #status { margin: 18px 0; min-height: 1.4em; }
      #choose-modal {
        position: fixed;
        inset: 0;
        display: none;
        align-items: center;
        justify-content: center;
        background: rgba(0, 0, 0, 0.6);
      }
      #choose-modal .box {
        background: #2d3444;
        padding: 28px 36px;
        border-radius: 12px;
        text-align: center;
      }
      #choose-modal button {
        font-size: 32px;
        width: 80px;
        margin: 10px;
        border: none;
        border-radius: 8px;
        cursor: pointer;
      }
    </style>
  </head>
  <body>
    <h1>PerfectXO</h1>
    <div id=\"board\"></div>
    <div id=\"status\"></div>
    <div id=\"choose-modal\">
      <div class=\"box\">
        <p>Play as</p>
        <button data-symbol=\"X\">X</button>
        <button data-symbol=\"O\">O</button>
        <p><small>X moves first</small></p>
      </div>
    </div>
    <script>
      const boardEl = document.getElementById("board");
      const statusEl = document.getElementById("status");
      const modal = document.getElementById("choose-modal");
      let state = null;
      let resetTimer = null;

      for (let i = 0; i < 9; i++) {
        const cell = document.createElement("div");
        cell.className = "cell";
        cell.dataset.row = Math.floor(i / 3);
        cell.dataset.col = i % 3;
        cell.addEventListener("click", onCellClick);
        boardEl.appendChild(cell);
      }

      async function api(path, body) {
        const options = body === undefined
          ? {}
          : { method: "POST", headers: { "Content-Type": "application/json" }, body: JSON.stringify(body) };
        const response = await fetch(path, options);
        if (!response.ok) {
          return null;
        }
        return response.json();
      }

      function render() {
        const cells = boardEl.children;
        for (let i = 0; i < 9; i++) {
          const [r, c] = [Math.floor(i / 3), i % 3];
          cells[i].textContent = state.board[r][c];
          cells[i].classList.remove("player-win", "enemy-win", "draw");
        }
        const outcome = state.outcome;
        if (outcome.status === "win") {
          const cls = outcome.winner === state.human ? "player-win" : "enemy-win";
          for (const [r, c] of state.winningLine) {
            cells[r * 3 + c].classList.add(cls);
          }
          statusEl.textContent = outcome.winner === state.human ? "You win!" : "Computer wins";
        } else if (outcome.status === "draw") {
          for (const cell of cells) cell.classList.add("draw");
          statusEl.textContent = "Draw";
        } else if (state.phase === "computer_turn") {
          statusEl.textContent = "Computer is thinking...";
        } else {
          statusEl.textContent = "Your move (" + (state.human || "") + ")";
        }

        if (state.phase === "terminal" && resetTimer === null) {
          resetTimer = setTimeout(async () => {
            resetTimer = null;
            const next = await api("/api/game/" + state.id + "/reset", {});
            if (next) { state = next; render(); }
          }, state.resetDelayMs);
        }
        if (state.aiPending) {
          setTimeout(refresh, 150);
        }
      }

      async function refresh() {
        const next = await api("/api/game/" + state.id);
        if (next) { state = next; render(); }
      }

      async function onCellClick(event) {
        if (!state || state.phase !== "player_turn") return;
        const { row, col } = event.currentTarget.dataset;
        const next = await api("/api/game/" + state.id + "/move", { row: Number(row), col: Number(col) });
        if (next) { state = next; render(); }
      }

      modal.querySelectorAll("button").forEach((button) => {
        button.addEventListener("click", async () => {
          modal.style.display = "none";
          const next = await api("/api/game", { symbol: button.dataset.symbol });
          if (next) { state = next; render(); }
        });
      });

      modal.style.display = "flex";
    </script>
  </body>
</html>
"""
