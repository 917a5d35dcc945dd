"""SQLite persistence for adventure saves.

Provides persistent storage for:
- Game saves (the full GameState as JSON, plus listing metadata)
- Running story summaries, one per save

The database location comes from ``StorageSettings.database_path``.
"""

from __future__ import annotations

import sqlite3
from collections.abc import Generator
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from rpg_engine.core.config import get_settings
from rpg_engine.core.exceptions import NotFoundError, PersistenceError
from rpg_engine.core.logging import get_logger
from rpg_engine.models.game_state import GameState
from rpg_engine.models.summary import StorySummary


logger = get_logger(__name__)


# =============================================================================
# Data Classes
# =============================================================================


@dataclass(frozen=True)
class SaveSummary:
    """Listing entry for a stored save.

    Attributes:
        id: Save identifier.
        save_name: Player-facing save name.
        character_name: Name of the player character.
        character_level: Character level at the time of saving.
        scene_name: Where the story was when saved.
        created_at: When the adventure started.
        updated_at: When the save was last written.
    """

    id: str
    save_name: str
    character_name: str
    character_level: int
    scene_name: str
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_row(cls, row: tuple[Any, ...]) -> SaveSummary:
        return cls(
            id=row[0],
            save_name=row[1],
            character_name=row[2],
            character_level=row[3],
            scene_name=row[4],
            created_at=datetime.fromisoformat(row[5]),
            updated_at=datetime.fromisoformat(row[6]),
        )


# =============================================================================
# Repository
# =============================================================================


class GameRepository:
    """SQLite repository for game saves and story summaries.

    Every failure of the underlying database surfaces as PersistenceError;
    the caller's in-memory state is never touched.

    Example:
        >>> repo = GameRepository(tmp_path / "saves.db")
        >>> repo.save(state)
        >>> repo.load(state.id) == state
        True
    """

    SCHEMA_VERSION = 1

    def __init__(self, db_path: str | Path | None = None) -> None:
        """Initialize the repository and create the schema.

        Args:
            db_path: Path to the database file. Defaults to the configured
                storage path.

        Raises:
            PersistenceError: If the database cannot be opened.
        """
        if db_path is None:
            self.db_path = get_settings().storage.database_path
        else:
            self.db_path = Path(db_path)
            self.db_path.parent.mkdir(parents=True, exist_ok=True)

        self._init_schema()
        logger.info("Game repository initialized", path=str(self.db_path))

    @contextmanager
    def _get_connection(self) -> Generator[sqlite3.Connection, None, None]:
        """Get a database connection with commit/rollback and cleanup."""
        conn = sqlite3.connect(str(self.db_path))
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    @contextmanager
    def _operation(
        self, operation: str, save_id: str | None = None
    ) -> Generator[sqlite3.Cursor, None, None]:
        """Run one repository operation, mapping sqlite errors to PersistenceError."""
        try:
            with self._get_connection() as conn:
                yield conn.cursor()
        except sqlite3.Error as exc:
            logger.error("Database operation failed", operation=operation, save_id=save_id, error=str(exc))
            raise PersistenceError(
                f"Database {operation} failed: {exc}",
                save_id=save_id,
                operation=operation,
            ) from exc

    def _init_schema(self) -> None:
        with self._operation("init_schema") as cursor:
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS schema_version (
                    version INTEGER PRIMARY KEY
                )
            """)
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS saves (
                    id TEXT PRIMARY KEY,
                    save_name TEXT NOT NULL,
                    character_name TEXT NOT NULL,
                    character_level INTEGER NOT NULL,
                    scene_name TEXT NOT NULL,
                    state_json TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
            """)
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS summaries (
                    save_id TEXT PRIMARY KEY,
                    summary_json TEXT NOT NULL,
                    messages_summarized INTEGER NOT NULL,
                    updated_at TEXT NOT NULL
                )
            """)
            cursor.execute("""
                CREATE INDEX IF NOT EXISTS idx_saves_updated
                ON saves(updated_at DESC)
            """)
            cursor.execute(
                "INSERT OR REPLACE INTO schema_version (version) VALUES (?)",
                (self.SCHEMA_VERSION,),
            )

    # =========================================================================
    # Save Operations
    # =========================================================================

    def save(self, state: GameState) -> SaveSummary:
        """Insert or overwrite the save for ``state.id``.

        Returns:
            Listing entry for the written save.

        Raises:
            PersistenceError: If the write fails.
        """
        now = datetime.now(UTC)
        state_json = state.model_dump_json()

        with self._operation("save", state.id) as cursor:
            cursor.execute(
                """
                INSERT INTO saves
                (id, save_name, character_name, character_level, scene_name,
                 state_json, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    save_name = excluded.save_name,
                    character_name = excluded.character_name,
                    character_level = excluded.character_level,
                    scene_name = excluded.scene_name,
                    state_json = excluded.state_json,
                    updated_at = excluded.updated_at
                """,
                (
                    state.id,
                    state.save_name,
                    state.character.name,
                    state.character.level,
                    state.current_scene.name,
                    state_json,
                    state.created_at.isoformat(),
                    now.isoformat(),
                ),
            )

        logger.info("Game saved", save_id=state.id, messages=len(state.story_log))
        return SaveSummary(
            id=state.id,
            save_name=state.save_name,
            character_name=state.character.name,
            character_level=state.character.level,
            scene_name=state.current_scene.name,
            created_at=state.created_at,
            updated_at=now,
        )

    def load(self, save_id: str) -> GameState:
        """Load a save by id.

        Raises:
            NotFoundError: If no save has this id.
            PersistenceError: If the read fails or the stored state is corrupt.
        """
        with self._operation("load", save_id) as cursor:
            cursor.execute("SELECT state_json FROM saves WHERE id = ?", (save_id,))
            row = cursor.fetchone()

        if row is None:
            raise NotFoundError(f"Save not found: {save_id}", kind="save", key=save_id)

        try:
            return GameState.model_validate_json(row[0])
        except PydanticValidationError as exc:
            raise PersistenceError(
                f"Stored save is corrupt: {exc.error_count()} error(s)",
                save_id=save_id,
                operation="load",
            ) from exc

    def delete(self, save_id: str) -> bool:
        """Delete a save and its summary.

        Returns:
            True if a save was deleted, False if none existed.
        """
        with self._operation("delete", save_id) as cursor:
            cursor.execute("DELETE FROM saves WHERE id = ?", (save_id,))
            deleted = cursor.rowcount > 0
            cursor.execute("DELETE FROM summaries WHERE save_id = ?", (save_id,))

        if deleted:
            logger.info("Save deleted", save_id=save_id)
        return deleted

    def list_saves(self) -> list[SaveSummary]:
        """All saves, most recently written first."""
        with self._operation("list_saves") as cursor:
            cursor.execute("""
                SELECT id, save_name, character_name, character_level, scene_name,
                       created_at, updated_at
                FROM saves ORDER BY updated_at DESC
            """)
            return [SaveSummary.from_row(tuple(row)) for row in cursor.fetchall()]

    def exists(self, save_id: str) -> bool:
        with self._operation("exists", save_id) as cursor:
            cursor.execute("SELECT 1 FROM saves WHERE id = ?", (save_id,))
            return cursor.fetchone() is not None

    # =========================================================================
    # Summary Operations
    # =========================================================================

    def save_summary(self, summary: StorySummary) -> None:
        """Store the running summary for ``summary.save_id``.

        A stored summary covering more messages is kept; an older one is
        never written over a newer one.
        """
        with self._operation("save_summary", summary.save_id) as cursor:
            cursor.execute(
                """
                INSERT INTO summaries (save_id, summary_json, messages_summarized, updated_at)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(save_id) DO UPDATE SET
                    summary_json = excluded.summary_json,
                    messages_summarized = excluded.messages_summarized,
                    updated_at = excluded.updated_at
                WHERE excluded.messages_summarized > summaries.messages_summarized
                """,
                (
                    summary.save_id,
                    summary.model_dump_json(),
                    summary.messages_summarized,
                    datetime.now(UTC).isoformat(),
                ),
            )
            written = cursor.rowcount > 0

        logger.debug(
            "Summary stored" if written else "Stale summary not stored",
            save_id=summary.save_id,
            messages=summary.messages_summarized,
        )

    def load_summary(self, save_id: str) -> StorySummary | None:
        """The stored summary for ``save_id``, or None if there is none."""
        with self._operation("load_summary", save_id) as cursor:
            cursor.execute("SELECT summary_json FROM summaries WHERE save_id = ?", (save_id,))
            row = cursor.fetchone()

        if row is None:
            return None
        try:
            return StorySummary.model_validate_json(row[0])
        except PydanticValidationError as exc:
            raise PersistenceError(
                "Stored summary is corrupt",
                save_id=save_id,
                operation="load_summary",
            ) from exc


# =============================================================================
# Singleton Instance
# =============================================================================


_repository_instance: GameRepository | None = None


def get_repository() -> GameRepository:
    """Get the global repository at the configured database path."""
    global _repository_instance

    if _repository_instance is None:
        _repository_instance = GameRepository()

    return _repository_instance


__all__ = [
    "SaveSummary",
    "GameRepository",
    "get_repository",
]
