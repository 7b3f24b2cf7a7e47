"""FastAPI-powered web UI for playing Tic-Tac-Toe in the browser."""

from __future__ import annotations

import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

import threading

from fastapi import BackgroundTasks, FastAPI, HTTPException
from fastapi.responses import HTMLResponse
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .ai import MinimaxAI
from .config import get_settings
from .game import EMPTY, Round
from .scores import ScoreTally

logger = logging.getLogger(__name__)

ALLOWED_MODES: Tuple[str, ...] = ("cpu", "player")
AI_PLAYER = "O"
# Overrides for the environment settings; None defers to them.
AI_THINK_DELAY: Optional[float] = None
ROUND_RESTART_DELAY: Optional[float] = None


def _ai_think_delay() -> float:
    if AI_THINK_DELAY is not None:
        return AI_THINK_DELAY
    return get_settings().ai_delay


def _round_restart_delay() -> float:
    if ROUND_RESTART_DELAY is not None:
        return ROUND_RESTART_DELAY
    return get_settings().restart_delay


@dataclass
class GameSession:
    """Container for an active game, its score tally and the computer opponent."""

    mode: str
    round: Round = field(default_factory=Round)
    scores: ScoreTally = field(default_factory=ScoreTally)
    ai: Optional[MinimaxAI] = None
    move_log: List[Dict[str, int | str]] = field(default_factory=list)
    ai_pending: bool = False
    # Bumped on every new round so a delayed AI move cannot land in a later one.
    round_number: int = 0
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def __post_init__(self) -> None:
        self._configure_ai()

    def _configure_ai(self) -> None:
        self.ai = MinimaxAI(player=AI_PLAYER) if self.mode == "cpu" else None

    def new_round(self) -> None:
        self.round.reset()
        self.move_log = []
        self.ai_pending = False
        self.round_number += 1

    def reset(self) -> None:
        self.scores.reset()
        self.new_round()

    def switch_mode(self, mode: str) -> None:
        self.mode = mode
        self._configure_ai()
        self.reset()


SESSIONS: Dict[str, GameSession] = {}
app = FastAPI(title="Tic-Tac-Toe", description="Tic-Tac-Toe played in the browser")


def _check_mode(value: str) -> str:
    if value not in ALLOWED_MODES:
        raise ValueError(
            f"Unsupported game mode {value!r}. "
            f"Choose one of {', '.join(ALLOWED_MODES)}."
        )
    return value


class NewGameRequest(BaseModel):
    """Request payload for starting a new game."""

    mode: str = Field(default="cpu", description="'cpu' or 'player'")
    # Whatever the browser kept in storage; restored leniently.
    scores: Any = None

    @field_validator("mode")
    @classmethod
    def ensure_supported_mode(cls, value: str) -> str:
        return _check_mode(value)


class ModeRequest(BaseModel):
    """Request payload for switching the game mode."""

    mode: str

    @field_validator("mode")
    @classmethod
    def ensure_supported_mode(cls, value: str) -> str:
        return _check_mode(value)


class MoveRequest(BaseModel):
    """Request payload for submitting a move on an existing game."""

    model_config = ConfigDict(populate_by_name=True)

    cell_index: int = Field(alias="cellIndex", ge=0, le=8)


def _create_session(mode: str, scores: Any = None) -> Tuple[str, GameSession]:
    """Create a new game session and register it for later access."""

    session = GameSession(mode=mode, scores=ScoreTally.restore(scores))
    session_id = uuid.uuid4().hex
    SESSIONS[session_id] = session
    logger.info("Created %s game %s", mode, session_id)
    return session_id, session


def _get_session(game_id: str) -> GameSession:
    try:
        return SESSIONS[game_id]
    except KeyError as exc:
        raise HTTPException(status_code=404, detail="Game not found") from exc


def _record_move(
    game_id: str, session: GameSession, player: str, cell_index: int
) -> None:
    """Apply a move under the session lock and count the round if it ended."""

    outcome = session.round.play_move(cell_index)
    session.move_log.append({"player": player, "cellIndex": cell_index})
    if outcome.finished:
        session.scores.record(outcome)
        logger.info(
            "Game %s round finished: %s",
            game_id,
            f"{outcome.winner} wins" if outcome.winner else "draw",
        )


def _run_ai_turn(game_id: str, round_number: int) -> None:
    session = SESSIONS.get(game_id)
    if not session:
        return

    time.sleep(max(0.0, _ai_think_delay()))

    with session.lock:
        if session.round_number != round_number:
            return
        try:
            if not session.ai:
                return
            current = session.round
            if current.finished:
                return
            if current.current_player != session.ai.player:
                return
            cell_index = session.ai.choose(current.snapshot())
            if cell_index is None:
                return
            _record_move(game_id, session, session.ai.player, cell_index)
        finally:
            session.ai_pending = False


def _serialize_session(game_id: str, session: GameSession) -> Dict[str, object]:
    with session.lock:
        current = session.round
        outcome = current.outcome
        state: Dict[str, object] = {
            "id": game_id,
            "mode": session.mode,
            "board": [c if c != EMPTY else "" for c in current.cells],
            "currentPlayer": current.current_player,
            "winner": outcome.winner,
            "line": list(outcome.line) if outcome.line else None,
            "drawn": outcome.drawn,
            "finished": outcome.finished,
            "scores": session.scores.as_dict(),
            "availableMoves": current.available_moves(),
            "moveLog": list(session.move_log),
            "aiPending": session.ai_pending,
            "aiPlayer": session.ai.player if session.ai else None,
            "restartDelayMs": int(_round_restart_delay() * 1000),
        }
        if session.move_log:
            state["lastMove"] = session.move_log[-1]
        return state


def _apply_player_move(
    game_id: str,
    session: GameSession,
    cell_index: int,
    background_tasks: Optional[BackgroundTasks] = None,
) -> None:
    should_schedule_ai = False
    with session.lock:
        current = session.round
        if current.finished:
            raise HTTPException(status_code=400, detail="Round already finished")

        if session.ai_pending:
            raise HTTPException(
                status_code=400, detail="Computer is completing its move"
            )

        if session.ai and current.current_player == session.ai.player:
            raise HTTPException(status_code=400, detail="It is the computer's turn")

        player = current.current_player
        try:
            _record_move(game_id, session, player, cell_index)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc

        should_schedule_ai = bool(
            session.ai
            and not current.finished
            and current.current_player == session.ai.player
        )
        if should_schedule_ai:
            session.ai_pending = True
        round_number = session.round_number

    if should_schedule_ai and background_tasks is not None:
        background_tasks.add_task(_run_ai_turn, game_id, round_number)


@app.post("/api/game")
def create_game(request: NewGameRequest) -> Dict[str, object]:
    game_id, session = _create_session(request.mode, request.scores)
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
    _apply_player_move(game_id, session, request.cell_index, background_tasks)
    return _serialize_session(game_id, session)


@app.post("/api/game/{game_id}/restart")
def restart_round(game_id: str) -> Dict[str, object]:
    session = _get_session(game_id)
    with session.lock:
        session.new_round()
    return _serialize_session(game_id, session)


@app.post("/api/game/{game_id}/reset")
def reset_game(game_id: str) -> Dict[str, object]:
    session = _get_session(game_id)
    with session.lock:
        session.reset()
    logger.info("Game %s scores reset", game_id)
    return _serialize_session(game_id, session)


@app.post("/api/game/{game_id}/mode")
def change_mode(game_id: str, request: ModeRequest) -> Dict[str, object]:
    session = _get_session(game_id)
    with session.lock:
        session.switch_mode(request.mode)
    logger.info("Game %s switched to %s mode", game_id, request.mode)
    return _serialize_session(game_id, session)


@app.get("/", response_class=HTMLResponse)
def index() -> str:
    return HTML_PAGE


HTML_PAGE = """<!DOCTYPE html>
<html lang=\"en\">
  <head>
    <meta charset=\"utf-8\" />
    <meta name=\"viewport\" content=\"width=device-width, initial-scale=1\" />
    <title>Tic-Tac-Toe</title>
    <link rel=\"preconnect\" href=\"https://fonts.googleapis.com\" />
    <link rel=\"preconnect\" href=\"https://fonts.gstatic.com\" crossorigin />
    <link
      href=\"https://fonts.googleapis.com/css2?family=Poppins:wght@400;500;600;700&display=swap\"
      rel=\"stylesheet\"
    />
    <style>
      :root {
        color-scheme: light;
        font-family: 'Poppins', system-ui, -apple-system, BlinkMacSystemFont, \"Segoe UI\", sans-serif;
        font-weight: 400;
        --primary: #1976d2;
        --secondary: #ff9800;
        --accent: #e91e63;
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
      }
      .header {
        display: flex;
        align-items: center;
        justify-content: space-between;
        margin-bottom: 1.5rem;
      }
      .title {
        font-size: clamp(1.6rem, 2vw + 1rem, 2.2rem);
        font-weight: 700;
        letter-spacing: 0.04em;
        color: var(--primary);
      }
      .mode-chip {
        background: var(--secondary);
        color: white;
        font-weight: 600;
        padding: 0.3rem 0.8rem;
        border-radius: 999px;
        font-size: 0.9rem;
      }
      .scoreboard {
        display: flex;
        justify-content: space-around;
        margin-bottom: 1.25rem;
      }
      .score {
        font-weight: 600;
        padding: 0.35rem 0.8rem;
        border-radius: 12px;
        border: 2px solid transparent;
      }
      .score.active {
        border-color: var(--primary);
        background: rgba(25, 118, 210, 0.08);
      }
      .score .number {
        font-weight: 700;
        margin-left: 0.35rem;
      }
      .board {
        display: grid;
        grid-template-columns: repeat(3, 1fr);
        gap: 0.55rem;
        max-width: 340px;
        margin: 0 auto 1rem;
      }
      .cell {
        aspect-ratio: 1 / 1;
        font-size: clamp(2rem, 8vw, 3rem);
        font-weight: 700;
        background: rgba(255, 255, 255, 0.95);
        border: 2px solid rgba(80, 100, 160, 0.25);
        border-radius: 12px;
        cursor: pointer;
        font-family: inherit;
        transition: transform 0.1s ease, box-shadow 0.1s ease;
      }
      .cell:hover:not(:disabled) {
        transform: translateY(-2px) scale(1.02);
        box-shadow: 0 6px 16px rgba(50, 80, 160, 0.25);
      }
      .cell:disabled {
        cursor: default;
      }
      .cell.x {
        color: #f04a6a;
      }
      .cell.o {
        color: #3a66ff;
      }
      .cell.highlight {
        background: rgba(255, 152, 0, 0.25);
        border-color: var(--secondary);
      }
      #status {
        text-align: center;
        font-size: 1.1rem;
        font-weight: 600;
        min-height: 1.6rem;
        margin-bottom: 0.5rem;
      }
      #status.final {
        color: var(--accent);
      }
      #message {
        text-align: center;
        min-height: 1.25rem;
        color: #b00020;
        font-weight: 600;
        margin-bottom: 1rem;
      }
      .controls {
        display: grid;
        gap: 0.75rem;
        justify-items: center;
      }
      .group {
        display: flex;
        flex-wrap: wrap;
        gap: 0.75rem;
        justify-content: center;
      }
      button.btn {
        font-size: 1rem;
        padding: 0.55rem 0.95rem;
        border-radius: 999px;
        border: 1px solid rgba(60, 70, 120, 0.25);
        background: white;
        cursor: pointer;
        font-family: inherit;
        font-weight: 600;
      }
      button.btn.selected {
        background: var(--secondary);
        color: white;
      }
      #restart {
        color: var(--primary);
      }
      #reset {
        color: var(--accent);
      }
    </style>
  </head>
  <body>
    <main>
      <nav class=\"header\" aria-label=\"Main header\">
        <span class=\"title\">Tic-Tac-Toe</span>
        <span class=\"mode-chip\" id=\"mode-chip\"></span>
      </nav>
      <section class=\"scoreboard\" aria-label=\"Scoreboard\">
        <span class=\"score\" id=\"score-x\">X<span class=\"number\" id=\"score-x-value\">0</span></span>
        <span class=\"score\" id=\"score-o\">O<span class=\"number\" id=\"score-o-value\">0</span></span>
        <span class=\"score\" id=\"score-draw\">Draw<span class=\"number\" id=\"score-draw-value\">0</span></span>
      </section>
      <div class=\"board\" id=\"board\" role=\"group\" aria-label=\"Game board\"></div>
      <div id=\"status\" aria-live=\"polite\"></div>
      <div id=\"message\" role=\"alert\"></div>
      <div class=\"controls\">
        <div class=\"group\" role=\"group\" aria-label=\"Game mode\">
          <button class=\"btn\" id=\"mode-cpu\" type=\"button\">vs Computer</button>
          <button class=\"btn\" id=\"mode-player\" type=\"button\">Two Players</button>
        </div>
        <div class=\"group\">
          <button class=\"btn\" id=\"restart\" type=\"button\">Restart Round</button>
          <button class=\"btn\" id=\"reset\" type=\"button\">Reset Game</button>
        </div>
      </div>
    </main>
    <script>
      const SCORES_KEY = 'ttt_scores';
      const MODE_KEY = 'ttt_mode';
      const boardEl = document.getElementById('board');
      const statusEl = document.getElementById('status');
      const messageEl = document.getElementById('message');
      const modeChip = document.getElementById('mode-chip');
      const modeButtons = {
        cpu: document.getElementById('mode-cpu'),
        player: document.getElementById('mode-player'),
      };

      let gameId = null;
      let gameState = null;
      let isRequestPending = false;
      let aiPollHandle = null;
      let restartHandle = null;

      function loadStored() {
        let mode = 'cpu';
        let scores = null;
        try {
          const storedMode = localStorage.getItem(MODE_KEY);
          if (storedMode === 'cpu' || storedMode === 'player') {
            mode = storedMode;
          }
          const raw = localStorage.getItem(SCORES_KEY);
          scores = raw ? JSON.parse(raw) : null;
        } catch (error) {
          scores = null;
        }
        return { mode, scores };
      }

      function persist() {
        if (!gameState) return;
        try {
          localStorage.setItem(SCORES_KEY, JSON.stringify(gameState.scores));
          localStorage.setItem(MODE_KEY, gameState.mode);
        } catch (error) {
          /* Storage may be unavailable; play on without it. */
        }
      }

      async function request(path, body) {
        const options = body === undefined
          ? { method: 'POST' }
          : {
              method: 'POST',
              headers: { 'Content-Type': 'application/json' },
              body: JSON.stringify(body),
            };
        const response = await fetch(path, options);
        if (!response.ok) {
          const payload = await response.json().catch(() => ({}));
          const detail = typeof payload?.detail === 'string' ? payload.detail : 'Request failed';
          throw new Error(detail);
        }
        return response.json();
      }

      async function run(action) {
        if (isRequestPending) return;
        isRequestPending = true;
        messageEl.textContent = '';
        try {
          setState(await action());
        } catch (error) {
          messageEl.textContent = error.message || 'Network error. Please try again.';
        } finally {
          isRequestPending = false;
        }
      }

      function startGame() {
        const stored = loadStored();
        return run(() => request('/api/game', stored));
      }

      function sendMove(cellIndex) {
        if (!gameId || !gameState || gameState.finished) return;
        return run(() => request(`/api/game/${gameId}/move`, { cellIndex }));
      }

      function restartRound() {
        if (!gameId) return;
        return run(() => request(`/api/game/${gameId}/restart`));
      }

      function resetGame() {
        if (!gameId) return;
        return run(() => request(`/api/game/${gameId}/reset`));
      }

      function setMode(mode) {
        if (!gameId || (gameState && gameState.mode === mode)) return;
        return run(() => request(`/api/game/${gameId}/mode`, { mode }));
      }

      function stopAiPolling() {
        if (aiPollHandle) {
          clearTimeout(aiPollHandle);
          aiPollHandle = null;
        }
      }

      function ensureAiPolling() {
        if (aiPollHandle) return;
        aiPollHandle = setTimeout(pollAiState, 200);
      }

      async function pollAiState() {
        aiPollHandle = null;
        if (!gameId) return;
        try {
          const response = await fetch(`/api/game/${gameId}`);
          if (!response.ok) {
            return;
          }
          setState(await response.json());
        } catch (error) {
          console.error('Polling failed', error);
          ensureAiPolling();
        }
      }

      function scheduleRestart() {
        if (restartHandle) {
          clearTimeout(restartHandle);
          restartHandle = null;
        }
        if (gameState && gameState.finished) {
          restartHandle = setTimeout(autoRestart, gameState.restartDelayMs);
        }
      }

      function autoRestart() {
        restartHandle = null;
        if (!gameState || !gameState.finished) return;
        if (isRequestPending) {
          // Another request holds the client; try again once it settles.
          restartHandle = setTimeout(autoRestart, 200);
          return;
        }
        restartRound();
      }

      function setState(data) {
        gameId = data.id;
        gameState = data;
        persist();
        render();
        if (gameState.aiPending && !gameState.finished) {
          ensureAiPolling();
        } else {
          stopAiPolling();
        }
        scheduleRestart();
      }

      function render() {
        const state = gameState;
        const highlight = new Set(state.line || []);
        const humanTurn = !state.aiPending && state.currentPlayer !== state.aiPlayer;
        boardEl.innerHTML = '';
        state.board.forEach((value, index) => {
          const cell = document.createElement('button');
          cell.type = 'button';
          cell.classList.add('cell');
          cell.setAttribute('aria-label', `Cell ${index}`);
          if (value) {
            cell.textContent = value;
            cell.classList.add(value === 'X' ? 'x' : 'o');
          }
          if (highlight.has(index)) {
            cell.classList.add('highlight');
          }
          cell.disabled = Boolean(value) || state.finished || !humanTurn;
          cell.addEventListener('click', () => sendMove(index));
          boardEl.appendChild(cell);
        });

        modeChip.textContent = state.mode === 'cpu' ? 'vs Computer' : 'Two Players';
        Object.entries(modeButtons).forEach(([mode, button]) => {
          button.classList.toggle('selected', state.mode === mode);
        });

        document.getElementById('score-x-value').textContent = state.scores.X;
        document.getElementById('score-o-value').textContent = state.scores.O;
        document.getElementById('score-draw-value').textContent = state.scores.draw;
        ['X', 'O'].forEach((mark) => {
          const active = state.winner === mark || state.currentPlayer === mark;
          document.getElementById(`score-${mark.toLowerCase()}`).classList.toggle('active', active);
        });

        statusEl.classList.toggle('final', state.finished);
        if (state.winner) {
          statusEl.textContent = `Player ${state.winner} wins!`;
        } else if (state.drawn) {
          statusEl.textContent = \"It's a draw!\";
        } else if (state.mode === 'cpu' && state.currentPlayer === state.aiPlayer) {
          statusEl.textContent = `Computer's turn (${state.aiPlayer})`;
        } else {
          statusEl.textContent = `Player ${state.currentPlayer}'s turn`;
        }
      }

      modeButtons.cpu.addEventListener('click', () => setMode('cpu'));
      modeButtons.player.addEventListener('click', () => setMode('player'));
      document.getElementById('restart').addEventListener('click', restartRound);
      document.getElementById('reset').addEventListener('click', resetGame);

      startGame();
    </script>
  </body>
</html>
"""
