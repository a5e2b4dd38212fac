"""
Tests for play sessions.

Tests:
- Session lifecycle (create, pour, win, loss)
- Listener notifications
- Undo / redo / reset / hints through the session
- Save and restore
- Session bookkeeping in the manager
- Full play-through of a generated level
"""

import pytest

from ..engine_core.action import PourFailureKind
from ..engine_core.level import Level
from ..engine_core.state import ContainerInvariantError
from ..generator import GenerationConfig, ReverseLevelGenerator
from ..session import GameEventListener, SessionManager, SessionState


class RecordingListener(GameEventListener):
    """Listener that records event names."""

    def __init__(self):
        self.events = []

    def on_pour(self, move, state):
        self.events.append("pour")

    def on_invalid_pour(self, result, state):
        self.events.append(f"invalid:{result.failure.value}")

    def on_win(self, state):
        self.events.append("win")

    def on_loss(self, state):
        self.events.append("loss")

    def on_undo(self, state):
        self.events.append("undo")

    def on_redo(self, state):
        self.events.append("redo")

    def on_reset(self, state):
        self.events.append("reset")


@pytest.fixture
def manager(engine) -> SessionManager:
    return SessionManager(engine=engine)


class TestSessionPlay:
    """Tests for pours through a session."""

    def test_new_session_is_playing(self, manager, mixed_level):
        """A new session starts on the level's layout."""
        session = manager.create_session(mixed_level)

        assert session.state == SessionState.PLAYING
        assert session.is_active()
        assert session.game_state.containers == mixed_level.initial_containers

    def test_pour_notifies_listener(self, manager, mixed_level):
        """A legal pour is reported to listeners."""
        listener = RecordingListener()
        session = manager.create_session(mixed_level, listeners=[listener])
        outcome = session.pour(0, 2)

        assert outcome.success
        assert outcome.move.volume == 2
        assert outcome.state == SessionState.PLAYING
        assert listener.events == ["pour"]

    def test_rejected_pour(self, manager, mixed_level):
        """A rejected pour leaves the state alone and reports why."""
        listener = RecordingListener()
        session = manager.create_session(mixed_level, listeners=[listener])
        before = session.game_state
        outcome = session.pour(1, 0)

        assert not outcome.success
        assert outcome.failure == PourFailureKind.CONTAINER_FULL
        assert session.game_state is before
        assert listener.events == ["invalid:container_full"]

    def test_win(self, manager, mixed_level):
        """The sorting pour wins and further pours are refused."""
        listener = RecordingListener()
        session = manager.create_session(mixed_level, listeners=[listener])
        session.pour(0, 2)
        session.pour(1, 0)
        outcome = session.pour(1, 2)

        assert outcome.state == SessionState.WON
        assert listener.events[-1] == "win"
        assert not session.is_active()

        blocked = session.pour(0, 3)
        assert not blocked.success
        assert "won" in blocked.error

    def test_loss_then_undo(self, manager, deadlock_level):
        """A lost session still allows undo back into play."""
        listener = RecordingListener()
        session = manager.create_session(deadlock_level, listeners=[listener])
        outcome = session.pour(1, 3)

        assert outcome.state == SessionState.LOST
        assert listener.events == ["pour", "loss"]
        assert session.is_active()
        assert session.pour(0, 1).error.startswith("Cannot pour")

        assert session.undo()
        assert session.state == SessionState.PLAYING
        assert listener.events[-1] == "undo"

    def test_session_on_solved_level_starts_won(self, manager, solved_state, mixed_level):
        """A level that starts solved opens as won."""
        level = mixed_level._copy_with(initial_containers=solved_state.containers)
        session = manager.create_session(level)
        assert session.state == SessionState.WON


class TestSessionHistory:
    """Tests for undo, redo, reset and hints."""

    def test_undo_redo(self, manager, mixed_level):
        """Undo and redo step through history and notify listeners."""
        listener = RecordingListener()
        session = manager.create_session(mixed_level, listeners=[listener])
        session.pour(0, 2)

        assert session.undo()
        assert not session.undo()
        assert session.redo()
        assert not session.redo()
        assert session.game_state.current_move_index == 0
        assert listener.events == ["pour", "undo", "redo"]

    def test_no_undo_after_win(self, manager, mixed_level):
        """Undo is not allowed once the game is won."""
        session = manager.create_session(mixed_level)
        for from_id, to_id in [(0, 2), (1, 0), (1, 2)]:
            session.pour(from_id, to_id)

        assert not session.undo()
        assert session.state == SessionState.WON

    def test_reset(self, manager, mixed_level):
        """Reset clears history and resumes play."""
        listener = RecordingListener()
        session = manager.create_session(mixed_level, listeners=[listener])
        session.pour(0, 2)
        session.reset()

        assert session.game_state.move_history == ()
        assert session.state == SessionState.PLAYING
        assert listener.events[-1] == "reset"

    def test_hint(self, manager, mixed_level):
        """A hint is a legal pour and is counted."""
        session = manager.create_session(mixed_level)
        move = session.hint()

        assert move is not None
        assert session.hints_used == 1
        assert session.pour(move.from_container_id, move.to_container_id).success

    def test_no_hint_after_win(self, manager, mixed_level):
        """No hints once the game is won."""
        session = manager.create_session(mixed_level)
        for from_id, to_id in [(0, 2), (1, 0), (1, 2)]:
            session.pour(from_id, to_id)
        assert session.hint() is None
        assert session.hints_used == 0


class TestSaveRestore:
    """Tests for snapshot and restore."""

    def test_snapshot_and_restore(self, manager, mixed_level):
        """A restored session continues where the snapshot left off."""
        session = manager.create_session(mixed_level)
        session.pour(0, 2)
        session.pour(1, 0)
        session.undo()

        restored = manager.restore_session(mixed_level, session.snapshot())

        assert restored.session_id != session.session_id
        assert restored.game_state == session.game_state
        assert restored.redo()

    def test_restore_won_game(self, manager, one_move_state):
        """A saved win restores as won."""
        level = Level(
            id=one_move_state.level_id, difficulty=1, container_count=3,
            color_count=2, initial_containers=one_move_state.initial_containers,
        )
        session = manager.create_session(level)
        session.pour(1, 0)

        restored = manager.restore_session(level, session.snapshot())
        assert restored.state == SessionState.WON

    def test_restore_for_wrong_level(self, manager, mixed_level, deadlock_level):
        """A save for another level is refused."""
        session = manager.create_session(mixed_level)
        with pytest.raises(ValueError):
            manager.restore_session(deadlock_level, session.snapshot())

    def test_restore_rejects_board_that_disagrees_with_history(self, manager, mixed_level):
        """The saved board must be the start layout with the history replayed."""
        session = manager.create_session(mixed_level)
        session.pour(0, 2)
        saved = session.snapshot()
        tampered = saved.model_copy(update={"containers": saved.initial_containers})

        with pytest.raises(ContainerInvariantError):
            manager.restore_session(mixed_level, tampered)

    def test_restore_rejects_other_start_layout(self, manager, mixed_level, solved_state):
        """A save for the same level id but a different start layout is refused."""
        other = mixed_level._copy_with(initial_containers=solved_state.containers)
        session = manager.create_session(other)

        with pytest.raises(ValueError):
            manager.restore_session(mixed_level, session.snapshot())

    def test_restore_recomputes_outcome(self, manager, mixed_level):
        """A save claiming a win on an unsolved board resumes as playing."""
        session = manager.create_session(mixed_level)
        session.pour(0, 2)
        saved = session.snapshot().model_copy(update={"is_completed": True})

        restored = manager.restore_session(mixed_level, saved)
        assert restored.state == SessionState.PLAYING
        assert not restored.game_state.is_completed


class TestSessionManager:
    """Tests for session bookkeeping."""

    def test_get_and_end(self, manager, mixed_level):
        """Ending a session removes it and marks it abandoned."""
        session = manager.create_session(mixed_level)
        assert manager.get_session(session.session_id) is session

        manager.end_session(session.session_id, reason="quit")
        assert manager.get_session(session.session_id) is None
        assert session.state == SessionState.ABANDONED

    def test_completed_session_keeps_state(self, manager, mixed_level):
        """Ending a won session keeps it won."""
        session = manager.create_session(mixed_level)
        for from_id, to_id in [(0, 2), (1, 0), (1, 2)]:
            session.pour(from_id, to_id)
        manager.end_session(session.session_id)
        assert session.state == SessionState.WON

    def test_list_active(self, manager, mixed_level):
        """Won sessions are not active."""
        playing = manager.create_session(mixed_level)
        won = manager.create_session(mixed_level)
        for from_id, to_id in [(0, 2), (1, 0), (1, 2)]:
            won.pour(from_id, to_id)

        assert manager.list_active_sessions() == [playing.session_id]

    def test_cleanup_stale(self, manager, mixed_level):
        """Only old finished sessions are cleaned up."""
        old_won = manager.create_session(mixed_level)
        for from_id, to_id in [(0, 2), (1, 0), (1, 2)]:
            old_won.pour(from_id, to_id)
        old_won.created_at = 0
        old_playing = manager.create_session(mixed_level)
        old_playing.created_at = 0

        manager.cleanup_stale_sessions(max_age_seconds=60)

        assert manager.get_session(old_won.session_id) is None
        assert manager.get_session(old_playing.session_id) is old_playing


class TestPlayThrough:
    """Generate a level and play it to the end with hints."""

    def test_hints_solve_generated_level(self):
        """Following hints wins a generated level in minimum moves."""
        level = ReverseLevelGenerator(GenerationConfig(seed=21)).generate_level(
            1, difficulty=2, color_count=3
        )
        manager = SessionManager()
        session = manager.create_session(level)

        for _ in range(100):
            if session.state != SessionState.PLAYING:
                break
            move = session.hint()
            assert move is not None
            assert session.pour(move.from_container_id, move.to_container_id).success

        assert session.state == SessionState.WON
        if level.minimum_moves is not None:
            assert session.game_state.effective_move_count == level.minimum_moves
