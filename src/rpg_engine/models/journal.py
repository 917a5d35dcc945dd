"""Story journal: the per-save record of key events, NPCs and places.

The journal is the player-facing history of an adventure and a compact
source of context for the narrator. Like the rest of GameState it is never
modified in place; every ``with_*`` method returns a new journal.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Annotated, Any
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

from rpg_engine.models.enums import JournalEntryType, RelationshipStatus


SUMMARY_CONTENT_LENGTH = 100
"""Characters of entry content shown per line in the events summary."""

MAX_KNOWN_FACTS = 5
"""Facts remembered per NPC; the oldest drop first."""

NPC_CONTEXT_FACTS = 2
"""Most recent facts shown per NPC in the narrator context."""


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _truncate(text: str, max_length: int) -> str:
    text = " ".join(text.split())
    if len(text) <= max_length:
        return text
    return f"{text[:max_length]}..."


def npc_key(name: str) -> str:
    """Key NPC relationships by case- and whitespace-folded name."""
    return " ".join(name.lower().split())


class JournalEntry(BaseModel):
    """One recorded event.

    Attributes:
        id: Unique entry identifier.
        timestamp: When the event was recorded.
        entry_type: Kind of event.
        title: Short heading.
        content: What happened.
        location: Scene the event happened in.
        involved_npcs: Names of NPCs or enemies involved.
        metadata: Numbers behind the event, such as rolls or XP.
        is_important: Whether the event is a milestone.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str = Field(default_factory=lambda: str(uuid4()))
    timestamp: datetime = Field(default_factory=_utcnow)
    entry_type: JournalEntryType
    title: str
    content: str = ""
    location: str | None = None
    involved_npcs: tuple[str, ...] = ()
    metadata: dict[str, Any] = Field(default_factory=dict)
    is_important: bool = False


class NpcRelationship(BaseModel):
    """What the character knows about one NPC."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    npc_name: str
    reputation: Annotated[int, Field(ge=-100, le=100)] = 0
    status: RelationshipStatus = RelationshipStatus.STRANGER
    known_facts: tuple[str, ...] = ()
    interactions: Annotated[int, Field(ge=0)] = 0
    last_interaction: datetime | None = None


class StoryJournal(BaseModel):
    """The complete journal of one save.

    Attributes:
        entries: Recorded events, oldest first.
        npc_relationships: Relationships keyed by :func:`npc_key`.
        discovered_locations: Scene names visited, in discovery order.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    entries: tuple[JournalEntry, ...] = ()
    npc_relationships: dict[str, NpcRelationship] = Field(default_factory=dict)
    discovered_locations: tuple[str, ...] = ()

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def entries_of_type(self, entry_type: JournalEntryType) -> tuple[JournalEntry, ...]:
        return tuple(entry for entry in self.entries if entry.entry_type == entry_type)

    @property
    def important_entries(self) -> tuple[JournalEntry, ...]:
        return tuple(entry for entry in self.entries if entry.is_important)

    def recent_entries(self, count: int) -> tuple[JournalEntry, ...]:
        """The last ``count`` entries, oldest first."""
        if count <= 0:
            return ()
        return self.entries[-count:]

    def has_discovered(self, location: str) -> bool:
        return location.lower() in (name.lower() for name in self.discovered_locations)

    def relationship(self, name: str) -> NpcRelationship | None:
        return self.npc_relationships.get(npc_key(name))

    # -------------------------------------------------------------------------
    # Updates
    # -------------------------------------------------------------------------

    def with_entries(
        self, entries: list[JournalEntry], *, max_entries: int | None = None
    ) -> StoryJournal:
        """Append ``entries``, keeping at most ``max_entries`` of the newest."""
        if not entries:
            return self
        combined = (*self.entries, *entries)
        if max_entries is not None and len(combined) > max_entries:
            combined = combined[-max_entries:]
        return self.model_copy(update={"entries": combined})

    def with_location(self, location: str) -> StoryJournal:
        """Mark ``location`` as discovered; known locations are left as is."""
        if self.has_discovered(location):
            return self
        return self.model_copy(
            update={"discovered_locations": (*self.discovered_locations, location)}
        )

    def with_npc_interaction(
        self,
        name: str,
        *,
        fact: str | None = None,
        at: datetime | None = None,
    ) -> StoryJournal:
        """Record an interaction with ``name``, remembering ``fact`` if given.

        A stranger becomes an acquaintance on the first interaction; other
        statuses are kept.
        """
        key = npc_key(name)
        current = self.npc_relationships.get(key) or NpcRelationship(npc_name=name)
        facts = current.known_facts
        if fact and fact not in facts:
            facts = (*facts, fact)[-MAX_KNOWN_FACTS:]
        status = current.status
        if status == RelationshipStatus.STRANGER:
            status = RelationshipStatus.ACQUAINTANCE
        updated = current.model_copy(
            update={
                "status": status,
                "known_facts": facts,
                "interactions": current.interactions + 1,
                "last_interaction": at or _utcnow(),
            }
        )
        return self.model_copy(
            update={"npc_relationships": {**self.npc_relationships, key: updated}}
        )

    # -------------------------------------------------------------------------
    # Narrator context
    # -------------------------------------------------------------------------

    def recent_events_summary(self, count: int = 5) -> str:
        """Render the last ``count`` entries as a bullet list, oldest first.

        Returns:
            The summary, or an empty string when the journal is empty.
        """
        recent = self.recent_entries(count)
        if not recent:
            return ""
        lines = ["Recent events:"]
        for entry in recent:
            lines.append(f"- {entry.title}: {_truncate(entry.content, SUMMARY_CONTENT_LENGTH)}")
        return "\n".join(lines)

    def npc_context(self) -> str:
        """Render known NPCs with their status and latest facts."""
        if not self.npc_relationships:
            return ""
        lines = ["Known NPCs:"]
        for npc in self.npc_relationships.values():
            lines.append(f"- {npc.npc_name} ({npc.status.display_name})")
            for fact in npc.known_facts[-NPC_CONTEXT_FACTS:]:
                lines.append(f"  • {fact}")
        return "\n".join(lines)


__all__ = [
    "SUMMARY_CONTENT_LENGTH",
    "MAX_KNOWN_FACTS",
    "NPC_CONTEXT_FACTS",
    "npc_key",
    "JournalEntry",
    "NpcRelationship",
    "StoryJournal",
]
