"""Integration tests for save persistence.

Tests saving, loading, listing and deleting adventures, plus stored summaries.
"""

from __future__ import annotations

import sqlite3
from pathlib import Path

import pytest

from rpg_engine.core.exceptions import NotFoundError, PersistenceError
from rpg_engine.models.game_state import GameState, StoryMessage
from rpg_engine.models.summary import StorySummary
from rpg_engine.storage.database import GameRepository, get_repository


@pytest.fixture
def repository(tmp_path: Path) -> GameRepository:
    """Provide a repository backed by a fresh database file."""
    return GameRepository(tmp_path / "saves" / "test.db")


class TestSavePersistence:
    """Test game save persistence."""

    def test_save_and_load(self, repository: GameRepository, sample_state: GameState) -> None:
        """Save a state and load it back unchanged."""
        state = sample_state.model_copy(
            update={"gold": 42, "world_flags": {"bridge_burned": True}}
        ).append_messages([StoryMessage.system("Saved at the inn.")])

        summary = repository.save(state)
        loaded = repository.load(state.id)

        assert loaded == state
        assert summary.id == state.id
        assert summary.character_name == "Mira"
        assert summary.scene_name == "The Crossroads Inn"

    def test_save_overwrites(self, repository: GameRepository, sample_state: GameState) -> None:
        """Saving the same id again replaces the stored state."""
        repository.save(sample_state)
        richer = sample_state.model_copy(update={"gold": 500})

        repository.save(richer)

        assert repository.load(sample_state.id).gold == 500
        assert len(repository.list_saves()) == 1

    def test_load_missing(self, repository: GameRepository) -> None:
        """Loading an unknown id raises NotFoundError."""
        with pytest.raises(NotFoundError) as exc_info:
            repository.load("no-such-save")

        assert exc_info.value.details["kind"] == "save"

    def test_corrupt_save(self, repository: GameRepository, sample_state: GameState) -> None:
        """A stored state that no longer validates raises PersistenceError."""
        repository.save(sample_state)
        with sqlite3.connect(repository.db_path) as conn:
            conn.execute("UPDATE saves SET state_json = ? WHERE id = ?", ("{oops", sample_state.id))

        with pytest.raises(PersistenceError):
            repository.load(sample_state.id)

    def test_list_most_recent_first(
        self, repository: GameRepository, sample_state: GameState
    ) -> None:
        """Saves are listed by last write, newest first."""
        other = GameState.new_adventure(sample_state.character, save_name="Second")
        repository.save(sample_state)
        repository.save(other)
        repository.save(sample_state)

        assert [save.id for save in repository.list_saves()] == [sample_state.id, other.id]

    def test_delete(self, repository: GameRepository, sample_state: GameState) -> None:
        """Deleting removes the save and reports whether one existed."""
        repository.save(sample_state)

        assert repository.exists(sample_state.id)
        assert repository.delete(sample_state.id)
        assert not repository.exists(sample_state.id)
        assert not repository.delete(sample_state.id)

    def test_unopenable_database(self, tmp_path: Path) -> None:
        """A path the database cannot open raises PersistenceError."""
        with pytest.raises(PersistenceError):
            GameRepository(tmp_path)

    def test_default_repository(self) -> None:
        """The shared repository is created once at the configured path."""
        assert get_repository() is get_repository()


class TestSummaryPersistence:
    """Test stored story summaries."""

    def test_missing_summary(self, repository: GameRepository) -> None:
        """No stored summary loads as None."""
        assert repository.load_summary("save-1") is None

    def test_newer_summary_replaces(self, repository: GameRepository) -> None:
        """A summary covering more messages overwrites the stored one."""
        repository.save_summary(StorySummary(save_id="save-1", summary="Start.", messages_summarized=15))
        repository.save_summary(StorySummary(save_id="save-1", summary="Later.", messages_summarized=30))

        stored = repository.load_summary("save-1")

        assert stored is not None
        assert stored.summary == "Later."
        assert stored.messages_summarized == 30

    def test_stale_summary_ignored(self, repository: GameRepository) -> None:
        """An older summary never overwrites a newer one."""
        repository.save_summary(StorySummary(save_id="save-1", summary="Later.", messages_summarized=30))
        repository.save_summary(StorySummary(save_id="save-1", summary="Start.", messages_summarized=15))

        stored = repository.load_summary("save-1")

        assert stored is not None
        assert stored.summary == "Later."

    def test_delete_removes_summary(
        self, repository: GameRepository, sample_state: GameState
    ) -> None:
        """Deleting a save also drops its summary."""
        repository.save(sample_state)
        repository.save_summary(
            StorySummary(save_id=sample_state.id, summary="Gone soon.", messages_summarized=15)
        )

        repository.delete(sample_state.id)

        assert repository.load_summary(sample_state.id) is None
