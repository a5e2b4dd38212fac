"""
Session Manager - Creates and manages play sessions.

LIFECYCLE:
1. A level is generated or loaded
2. A session is created for it (in-memory only)
3. During play:
   - The player asks for a pour
   - The engine validates it (attempt_pour) and applies it (execute_pour)
   - The session recomputes Playing / Won / Lost
   - Listeners are told what happened (animation, audio, ...)
4. The player can undo, redo, reset or ask for a hint at any time
5. The session ends on completion or when abandoned

PERSISTENCE:
- Sessions are not stored; snapshot() gives the saved-game schema and
  restore_session() rebuilds a session from it
"""

from __future__ import annotations
import logging
import time
import uuid
from dataclasses import dataclass, field
from enum import Enum

from ..engine_core.state import GameState
from ..engine_core.action import Move, PourFailureKind
from ..engine_core.level import Level
from ..engine_core.engine import GameEngine
from ..solver.hint_solver import HintSolver, DEFAULT_MAX_STATES
from ..persistence.schemas import GameStateModel
from .events import GameEventListener

logger = logging.getLogger(__name__)


class SessionState(Enum):
    """State of a play session."""
    PLAYING = "playing"
    WON = "won"
    LOST = "lost"  # No legal pour left; undo or reset still allowed
    ABANDONED = "abandoned"


@dataclass
class PourOutcome:
    """
    Result of a pour request.

    Contains:
    - Whether the pour happened
    - The session state afterwards
    - The executed move, or why it was rejected
    """
    success: bool
    state: SessionState
    move: Move | None = None
    failure: PourFailureKind | None = None
    error: str | None = None


@dataclass
class Session:
    """
    One play-through of a level.

    The session is the engine's caller: it owns the current GameState,
    drives transitions and notifies listeners after each one.
    """
    session_id: str
    level: Level
    game_state: GameState
    created_at: float
    engine: GameEngine = field(default_factory=GameEngine)
    solver: HintSolver | None = None
    listeners: list[GameEventListener] = field(default_factory=list)

    state: SessionState = SessionState.PLAYING
    hints_used: int = 0

    def __post_init__(self):
        if self.solver is None:
            self.solver = HintSolver(engine=self.engine)

    def is_active(self) -> bool:
        """Check if session can still take input."""
        return self.state in {SessionState.PLAYING, SessionState.LOST}

    def add_listener(self, listener: GameEventListener):
        self.listeners.append(listener)

    def pour(self, from_id: int, to_id: int) -> PourOutcome:
        """Validate and, if legal, execute a pour."""
        if self.state != SessionState.PLAYING:
            return PourOutcome(
                success=False,
                state=self.state,
                error=f"Cannot pour, game is {self.state.value}",
            )

        result = self.engine.attempt_pour(self.game_state, from_id, to_id)
        if not result.success:
            logger.debug(f"Session {self.session_id}: rejected pour: {result.error}")
            for listener in self.listeners:
                listener.on_invalid_pour(result, self.game_state)
            return PourOutcome(
                success=False,
                state=self.state,
                failure=result.failure,
                error=result.error,
            )

        self.game_state = self.engine.execute_pour(self.game_state, from_id, to_id)
        move = self.game_state.move_history[self.game_state.current_move_index]
        for listener in self.listeners:
            listener.on_pour(move, self.game_state)
        self._update_state()
        return PourOutcome(success=True, state=self.state, move=move)

    def undo(self) -> bool:
        """Undo the last move. False if there is nothing to undo."""
        if not self.is_active():
            return False
        new_state = self.engine.undo_last_move(self.game_state)
        if new_state is None:
            return False
        self.game_state = new_state
        self._update_state(notify=False)
        for listener in self.listeners:
            listener.on_undo(self.game_state)
        return True

    def redo(self) -> bool:
        """Redo an undone move. False if there is nothing to redo."""
        if not self.is_active():
            return False
        new_state = self.engine.redo_next_move(self.game_state)
        if new_state is None:
            return False
        self.game_state = new_state
        for listener in self.listeners:
            listener.on_redo(self.game_state)
        self._update_state()
        return True

    def reset(self):
        """Start the level over."""
        self.game_state = self.engine.reset(self.game_state)
        self.state = SessionState.PLAYING
        for listener in self.listeners:
            listener.on_reset(self.game_state)

    def hint(self) -> Move | None:
        """Suggest the next move. None when the game is over."""
        if self.state != SessionState.PLAYING:
            return None
        move = self.solver.find_best_move(self.game_state)
        if move is not None:
            self.hints_used += 1
        return move

    def snapshot(self) -> GameStateModel:
        """Saved-game form of the current state."""
        return GameStateModel.from_domain(self.game_state)

    def _update_state(self, notify: bool = True):
        """Recompute Playing / Won / Lost from the board."""
        if self.engine.check_win_condition(self.game_state):
            self.state = SessionState.WON
            logger.info(f"Session {self.session_id}: level {self.level.id} solved")
            if notify:
                for listener in self.listeners:
                    listener.on_win(self.game_state)
        elif self.engine.check_loss_condition(self.game_state):
            self.state = SessionState.LOST
            logger.info(f"Session {self.session_id}: no legal moves left")
            if notify:
                for listener in self.listeners:
                    listener.on_loss(self.game_state)
        else:
            self.state = SessionState.PLAYING


class SessionManager:
    """
    Manages play sessions.

    Responsibilities:
    - Create sessions from levels or saved games
    - Track active sessions
    - Clean up finished sessions

    No persistence - sessions are in-memory only.
    """

    def __init__(
        self,
        engine: GameEngine | None = None,
        solver_max_states: int = DEFAULT_MAX_STATES,
    ):
        self.engine = engine or GameEngine()
        self.solver = HintSolver(engine=self.engine, max_states=solver_max_states)
        self._sessions: dict[str, Session] = {}

    def create_session(
        self,
        level: Level,
        listeners: list[GameEventListener] | None = None,
    ) -> Session:
        """Create a new session at the start of a level."""
        return self._register(level, self.engine.initialize_from_level(level), listeners)

    def restore_session(
        self,
        level: Level,
        saved: GameStateModel | GameState,
        listeners: list[GameEventListener] | None = None,
    ) -> Session:
        """
        Create a session that resumes a saved game.

        Raises ValueError if the save belongs to another level or starts
        from another layout, and ContainerInvariantError if its board
        does not match its move history.
        """
        game_state = saved.to_domain() if isinstance(saved, GameStateModel) else saved
        if game_state.level_id != level.id:
            raise ValueError(
                f"Saved game is for level {game_state.level_id}, not level {level.id}"
            )
        if game_state.initial_containers != level.initial_containers:
            raise ValueError(f"Saved game does not start from the layout of level {level.id}")
        game_state = self.engine.verify_history(game_state)
        return self._register(level, game_state, listeners)

    def get_session(self, session_id: str) -> Session | None:
        """Get a session by ID."""
        return self._sessions.get(session_id)

    def end_session(self, session_id: str, reason: str = "completed"):
        """
        End a session and remove it from memory.

        A session ended for any reason other than completion is marked
        abandoned.
        """
        session = self._sessions.pop(session_id, None)
        if session and reason != "completed":
            session.state = SessionState.ABANDONED
        logger.debug(f"Session {session_id} ended ({reason})")

    def list_active_sessions(self) -> list[str]:
        """List IDs of active sessions."""
        return [
            sid for sid, session in self._sessions.items()
            if session.is_active()
        ]

    def cleanup_stale_sessions(self, max_age_seconds: int = 3600):
        """End finished sessions older than max_age."""
        current_time = time.time()
        stale = [
            sid for sid, session in self._sessions.items()
            if current_time - session.created_at > max_age_seconds and not session.is_active()
        ]
        for session_id in stale:
            self.end_session(session_id, reason="stale")

    def _register(
        self,
        level: Level,
        game_state: GameState,
        listeners: list[GameEventListener] | None,
    ) -> Session:
        session = Session(
            session_id=str(uuid.uuid4()),
            level=level,
            game_state=game_state,
            created_at=time.time(),
            engine=self.engine,
            solver=self.solver,
            listeners=list(listeners or []),
        )
        session._update_state(notify=False)
        self._sessions[session.session_id] = session
        return session
