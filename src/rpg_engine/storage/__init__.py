"""Storage module for rpg-engine persistence.

Provides SQLite-based storage for:
- Game saves (full GameState)
- Running story summaries
"""

from rpg_engine.storage.database import (
    GameRepository,
    SaveSummary,
    get_repository,
)

__all__ = [
    "GameRepository",
    "SaveSummary",
    "get_repository",
]
