"""Records turns and combat into the story journal.

The keeper reads what a turn already produced (the narrative response, the
resolved check and the story messages) and turns it into journal entries.
It never decides outcomes and keeps no state; every method takes a
journal and returns the updated one.

What gets recorded:
1. Narrative turns, titled from the player's action.
2. NPC dialogue, which also updates the NPC relationship.
3. Skill checks with their numbers.
4. Travel, flagged important the first time a location is discovered.
5. Items found, level ups and quest updates from story messages.
6. Combat starts and endings.
"""

from __future__ import annotations

from rpg_engine.core.config import get_settings
from rpg_engine.core.logging import get_logger
from rpg_engine.engine.encounter import CombatTurnResult
from rpg_engine.engine.skill_checks import SkillCheckOutcome
from rpg_engine.models.ai_response import AIResponse
from rpg_engine.models.enums import JournalEntryType, MessageType
from rpg_engine.models.game_state import StoryMessage
from rpg_engine.models.journal import JournalEntry, StoryJournal
from rpg_engine.models.monster import Monster


logger = get_logger(__name__)

FACT_LENGTH = 80
"""Characters of dialogue remembered as an NPC fact."""

# Checked in order; the first keyword group found in the action wins
_EVENT_TITLES: tuple[tuple[tuple[str, ...], str], ...] = (
    (("look", "examine", "inspect"), "Observation"),
    (("talk", "speak", "ask"), "Conversation"),
    (("attack", "fight", "strike"), "Combat"),
    (("search", "find"), "Search"),
    (("go", "walk", "move", "travel"), "Travel"),
    (("take", "grab", "pick up"), "Item Acquired"),
)


def event_title(player_action: str) -> str:
    """Title a narrative entry by what the player tried to do.

    Example:
        >>> event_title("I ask the innkeeper about work")
        'Conversation'
    """
    words = player_action.lower()
    for keywords, title in _EVENT_TITLES:
        if any(keyword in words for keyword in keywords):
            return title
    return "Event"


def _dialogue_fact(dialogue: str) -> str:
    text = " ".join(dialogue.split())
    if len(text) > FACT_LENGTH:
        text = f"{text[:FACT_LENGTH]}..."
    return f'Said: "{text}"'


def _enemy_names(enemies: tuple[Monster, ...] | list[Monster]) -> tuple[str, ...]:
    return tuple(enemy.name for enemy in enemies)


class JournalKeeper:
    """Turns game events into journal entries.

    Usage:
        >>> keeper = JournalKeeper()
        >>> journal = keeper.record_turn(
        ...     state.journal,
        ...     player_action="I talk to the innkeeper",
        ...     ai_response=ai_response,
        ...     location=state.current_scene.name,
        ... )
    """

    def __init__(self, *, max_entries: int | None = None) -> None:
        self.max_entries = max_entries or get_settings().game.journal_max_entries

    def add(self, journal: StoryJournal, entries: list[JournalEntry]) -> StoryJournal:
        return journal.with_entries(entries, max_entries=self.max_entries)

    # -------------------------------------------------------------------------
    # Narrative turns
    # -------------------------------------------------------------------------

    def record_turn(
        self,
        journal: StoryJournal,
        *,
        player_action: str,
        ai_response: AIResponse,
        location: str,
        outcome: SkillCheckOutcome | None = None,
        messages: list[StoryMessage] | None = None,
    ) -> StoryJournal:
        """Record one narrative turn.

        Args:
            journal: Journal before the turn.
            player_action: What the player did.
            ai_response: The narrative response being applied.
            location: Scene the turn started in.
            outcome: The resolved check, if one was proposed.
            messages: Story messages the turn produced.

        Returns:
            The journal with this turn's entries appended.
        """
        speakers = tuple(dialogue.npc_name for dialogue in ai_response.npc_dialogues)
        entries = [
            JournalEntry(
                entry_type=JournalEntryType.NARRATIVE,
                title=event_title(player_action),
                content=f"You: {player_action}\n\n{ai_response.narration}",
                location=location,
                involved_npcs=speakers,
            )
        ]

        for dialogue in ai_response.npc_dialogues:
            emotion = f" ({dialogue.emotion})" if dialogue.emotion else ""
            entry = JournalEntry(
                entry_type=JournalEntryType.NPC_ENCOUNTER,
                title=f"Spoke with {dialogue.npc_name}",
                content=f'"{dialogue.dialogue}"{emotion}',
                location=location,
                involved_npcs=(dialogue.npc_name,),
            )
            entries.append(entry)
            journal = journal.with_npc_interaction(
                dialogue.npc_name, fact=_dialogue_fact(dialogue.dialogue), at=entry.timestamp
            )

        if outcome is not None:
            roll = outcome.roll
            verdict = "Success" if outcome.is_success else "Failure"
            entries.append(
                JournalEntry(
                    entry_type=JournalEntryType.SKILL_CHECK,
                    title=f"{outcome.check_type_name} - {verdict}",
                    content=(
                        f"Rolled {roll.d20.result} + {roll.modifier} = {roll.total} "
                        f"vs DC {roll.difficulty_class}"
                    ),
                    location=location,
                    metadata={
                        "roll": roll.d20.result,
                        "modifier": roll.modifier,
                        "total": roll.total,
                        "dc": roll.difficulty_class,
                        "success": roll.is_success,
                    },
                )
            )

        change = ai_response.scene_change
        if change is not None:
            is_new = not journal.has_discovered(change.new_scene_name)
            entries.append(
                JournalEntry(
                    entry_type=JournalEntryType.LOCATION_CHANGE,
                    title=f"Traveled to {change.new_scene_name}",
                    content=change.transition_description or change.new_scene_description,
                    location=change.new_scene_name,
                    is_important=is_new,
                )
            )
            journal = journal.with_location(change.new_scene_name)

        journal = self.add(journal, entries)
        if messages:
            journal = self.record_messages(journal, messages, location=location)
        logger.debug("Turn journaled", entries=len(journal.entries), npcs=len(speakers))
        return journal

    def record_messages(
        self,
        journal: StoryJournal,
        messages: list[StoryMessage],
        *,
        location: str | None = None,
    ) -> StoryJournal:
        """Record item, level-up and quest messages; other kinds are skipped."""
        entries: list[JournalEntry] = []
        for message in messages:
            match message.message_type:
                case MessageType.ITEM_RECEIVED:
                    found = ", ".join(dict.fromkeys(message.items_received)) or "an item"
                    entries.append(
                        JournalEntry(
                            entry_type=JournalEntryType.ITEM_FOUND,
                            title=f"Found {found}",
                            content=message.content,
                            location=location,
                        )
                    )
                case MessageType.LEVEL_UP:
                    entries.append(
                        JournalEntry(
                            entry_type=JournalEntryType.LEVEL_UP,
                            title="Level Up!",
                            content=message.content,
                            location=location,
                            is_important=True,
                        )
                    )
                case MessageType.QUEST_UPDATE:
                    completed = "complete" in message.content.lower()
                    entries.append(
                        JournalEntry(
                            entry_type=(
                                JournalEntryType.QUEST_COMPLETE
                                if completed
                                else JournalEntryType.QUEST_START
                            ),
                            title="Quest Completed" if completed else "Quest Update",
                            content=message.content,
                            location=location,
                            is_important=True,
                        )
                    )
        return self.add(journal, entries)

    # -------------------------------------------------------------------------
    # Combat
    # -------------------------------------------------------------------------

    def record_combat_start(
        self,
        journal: StoryJournal,
        enemies: list[Monster],
        *,
        location: str,
    ) -> StoryJournal:
        names = _enemy_names(enemies)
        return self.add(
            journal,
            [
                JournalEntry(
                    entry_type=JournalEntryType.COMBAT,
                    title="Combat Encounter",
                    content=f"Battle joined against {', '.join(names)}.",
                    location=location,
                    involved_npcs=names,
                )
            ],
        )

    def record_combat_end(
        self,
        journal: StoryJournal,
        result: CombatTurnResult,
        *,
        location: str,
    ) -> StoryJournal:
        """Record how an encounter ended; turns that did not end it are ignored."""
        if not result.combat_ended:
            return journal

        names = _enemy_names(result.session.enemies)
        enemy_list = ", ".join(names)
        if result.player_victory:
            entry = JournalEntry(
                entry_type=JournalEntryType.COMBAT,
                title="Victory in Battle",
                content=f"Defeated {enemy_list}.",
                location=location,
                involved_npcs=names,
                metadata={"victory": True, "xp_gained": result.xp_earned},
                is_important=True,
            )
        elif result.player_defeated:
            entry = JournalEntry(
                entry_type=JournalEntryType.DEATH,
                title="Fallen in Battle",
                content=f"{result.character.name} fell fighting {enemy_list}.",
                location=location,
                involved_npcs=names,
                metadata={"victory": False},
                is_important=True,
            )
        else:
            entry = JournalEntry(
                entry_type=JournalEntryType.COMBAT,
                title="Escaped from Battle",
                content=f"Fled from {enemy_list}.",
                location=location,
                involved_npcs=names,
                metadata={"victory": False, "fled": result.player_fled},
            )
        logger.info("Combat journaled", title=entry.title, enemies=len(names))
        return self.add(journal, [entry])


__all__ = [
    "FACT_LENGTH",
    "event_title",
    "JournalKeeper",
]
