"""Game Master: the trust boundary between narrative output and game state.

The narrative provider proposes; the Game Master disposes. Every proposal in
an AIResponse (checks, rewards, scene changes, combat) is resolved with the
engine's own dice and validated through the action pipeline before it can
touch the GameState. The Game Master keeps no state between calls.

Turn flow:
1. Resolve the proposed check, if any.
2. Convert rewards to actions and run them through the pipeline, but only
   when there was no check or the check succeeded.
3. Start combat if the response triggers it.
4. Apply the scene change.
5. Append the turn's messages to the story log.
6. Record the turn in the story journal.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, replace

from rpg_engine.core.logging import bind_context, clear_context, get_logger
from rpg_engine.dm.journal import JournalKeeper
from rpg_engine.dm.narrator import NarrativeClient
from rpg_engine.dm.summarizer import ContextSummarizer
from rpg_engine.engine.actions import ActionExecutor, ActionPipeline, ActionResult
from rpg_engine.engine.combat import CombatResolver
from rpg_engine.engine.dice import DiceRoller
from rpg_engine.engine.encounter import (
    CombatSession,
    CombatTurnResult,
    EncounterManager,
    PlayerCombatAction,
)
from rpg_engine.engine.monsters import MonsterCatalog
from rpg_engine.engine.skill_checks import SkillCheckEngine, SkillCheckOutcome
from rpg_engine.models.actions import AddGold, AddItem, AddXP, ChangeLocation, GameAction
from rpg_engine.models.ai_response import AIResponse, PlayerChoice, ProposedReward
from rpg_engine.models.enums import MessageType, RewardType, SceneType
from rpg_engine.models.game_state import GameState, Scene, StoryMessage
from rpg_engine.models.monster import Monster


logger = get_logger(__name__)


# =============================================================================
# Responses
# =============================================================================


@dataclass(frozen=True)
class GameMasterResponse:
    """Everything a caller needs after one narrative turn.

    Attributes:
        state: The state with this turn's messages appended.
        messages: This turn's messages, in story-log order.
        combat_session: Encounter started this turn, if any.
        skill_check_outcome: The resolved check, if one was proposed.
        rejected_actions: Reward actions the pipeline refused.
        suggested_actions: Follow-ups to offer the player.
        requires_player_choice: Whether the player must pick a choice.
        player_choices: Choices offered to the player.
    """

    state: GameState
    messages: tuple[StoryMessage, ...]
    combat_session: CombatSession | None = None
    skill_check_outcome: SkillCheckOutcome | None = None
    rejected_actions: tuple[ActionResult, ...] = ()
    suggested_actions: tuple[str, ...] = ()
    requires_player_choice: bool = False
    player_choices: tuple[PlayerChoice, ...] = ()


@dataclass(frozen=True)
class CombatUpdate:
    """State after one combat step, with the session and its messages."""

    state: GameState
    session: CombatSession
    messages: tuple[StoryMessage, ...]
    narrative_prompt: str = ""
    combat_ended: bool = False
    player_victory: bool = False
    player_fled: bool = False
    player_defeated: bool = False
    xp_earned: int | None = None


def rewards_to_actions(rewards: tuple[ProposedReward, ...]) -> list[GameAction]:
    """Convert proposed rewards into pipeline actions.

    Rewards with no amount are skipped. Reputation has no action and is
    ignored.
    """
    actions: list[GameAction] = []
    for reward in rewards:
        match reward.reward_type:
            case RewardType.EXPERIENCE if reward.experience_points:
                actions.append(AddXP(amount=reward.experience_points))
            case RewardType.GOLD if reward.gold_amount:
                actions.append(AddGold(amount=reward.gold_amount))
            case RewardType.ITEM if reward.item_name:
                actions.append(
                    AddItem(
                        item_name=reward.item_name,
                        quantity=reward.quantity or 1,
                        description=reward.description,
                    )
                )
            case _:
                logger.debug("Reward skipped", reward_type=reward.reward_type)
    return actions


@contextmanager
def _turn_context(save_id: str) -> Iterator[None]:
    bind_context(save_id=save_id)
    try:
        yield
    finally:
        clear_context()


# =============================================================================
# Game Master
# =============================================================================


class GameMaster:
    """Interprets narrative responses into validated state transitions.

    Example:
        >>> gm = GameMaster(DiceRoller(seed=11))
        >>> response = gm.process_ai_response(state, ai_response, "I search the chest")
        >>> response.state.story_log[-1].content
        'Found 20 gold!'
    """

    def __init__(
        self,
        dice: DiceRoller | None = None,
        *,
        pipeline: ActionPipeline | None = None,
        monsters: MonsterCatalog | None = None,
        narrator: NarrativeClient | None = None,
        summarizer: ContextSummarizer | None = None,
        journal: JournalKeeper | None = None,
    ) -> None:
        """Initialize the Game Master.

        Args:
            dice: Shared dice roller; seeded rollers give replayable turns.
            pipeline: Action pipeline; built around ``dice`` when omitted.
            monsters: Monster templates for combat triggers.
            narrator: Narrative provider client, needed only by :meth:`play_turn`.
            summarizer: Story summarizer, needed only by :meth:`play_turn`.
            journal: Journal keeper; built from settings when omitted.
        """
        self._dice = dice or DiceRoller()
        self._resolver = CombatResolver(self._dice)
        self._checks = SkillCheckEngine(self._dice)
        self._encounters = EncounterManager(self._resolver)
        self._pipeline = pipeline or ActionPipeline(
            ActionExecutor(self._dice, combat=self._resolver)
        )
        self._monsters = monsters or MonsterCatalog()
        self._narrator = narrator
        self._summarizer = summarizer
        self._journal = journal or JournalKeeper()

    @property
    def pipeline(self) -> ActionPipeline:
        return self._pipeline

    @property
    def encounters(self) -> EncounterManager:
        return self._encounters

    # -------------------------------------------------------------------------
    # Narrative turns
    # -------------------------------------------------------------------------

    def process_ai_response(
        self,
        state: GameState,
        ai_response: AIResponse,
        player_action: str,
        *,
        player_message_already_logged: bool = False,
    ) -> GameMasterResponse:
        """Apply one narrative response to the state.

        Args:
            state: State before the turn.
            ai_response: Parsed narrative response.
            player_action: What the player did.
            player_message_already_logged: Skip logging ``player_action``.

        Returns:
            GameMasterResponse with the new state and this turn's messages.
        """
        with _turn_context(state.id):
            return self._process(
                state, ai_response, player_action, player_message_already_logged
            )

    def _process(
        self,
        state: GameState,
        ai_response: AIResponse,
        player_action: str,
        player_message_already_logged: bool,
    ) -> GameMasterResponse:
        location = state.current_scene.name

        # 1. check
        outcome: SkillCheckOutcome | None = None
        if ai_response.proposed_check is not None:
            outcome = self._checks.perform_check(state.character, ai_response.proposed_check)

        # 2. rewards
        reward_messages: list[StoryMessage] = []
        rejected: tuple[ActionResult, ...] = ()
        if ai_response.proposed_rewards and (outcome is None or outcome.is_success):
            batch = self._pipeline.run(rewards_to_actions(ai_response.proposed_rewards), state)
            state = batch.state
            reward_messages.extend(batch.messages)
            rejected = batch.rejected

        # 3. combat
        session: CombatSession | None = None
        combat_message: StoryMessage | None = None
        if ai_response.triggers_combat and ai_response.combat_trigger is not None:
            enemies = self._monsters.create_enemies(ai_response.combat_trigger)
            start = self._encounters.start(state.character, enemies)
            session, combat_message = start.session, start.message
            state = state.model_copy(
                update={"current_scene": self._scene_in_combat(state.current_scene, enemies)}
            )

        # 4. scene change
        if ai_response.scene_change is not None:
            change = ai_response.scene_change
            batch = self._pipeline.run(
                [
                    ChangeLocation(
                        name=change.new_scene_name,
                        description=change.new_scene_description,
                        scene_type=SceneType.COMBAT if session else SceneType.EXPLORATION,
                    )
                ],
                state,
            )
            state = batch.state
            reward_messages.extend(batch.messages)
            rejected += batch.rejected
            if session is not None:
                state = state.model_copy(
                    update={
                        "current_scene": self._scene_in_combat(
                            state.current_scene, list(session.enemies)
                        )
                    }
                )

        # 5. story log
        messages: list[StoryMessage] = []
        if not player_message_already_logged:
            messages.append(
                StoryMessage(message_type=MessageType.PLAYER_ACTION, content=player_action)
            )
        messages.append(
            StoryMessage(message_type=MessageType.NARRATION, content=ai_response.narration)
        )
        for dialogue in ai_response.npc_dialogues:
            messages.append(
                StoryMessage(
                    message_type=MessageType.DIALOGUE,
                    content=dialogue.dialogue,
                    speaker_name=dialogue.npc_name,
                )
            )
        if outcome is not None:
            text = (
                ai_response.success_outcome or "You succeed!"
                if outcome.is_success
                else ai_response.failure_outcome or "You fail."
            )
            messages.append(
                StoryMessage(
                    message_type=MessageType.SKILL_CHECK,
                    content=text,
                    skill_check_result=outcome.to_record(),
                )
            )
        messages.extend(reward_messages)
        if combat_message is not None:
            messages.append(combat_message)

        state = state.append_messages(messages)

        # 6. journal
        journal = self._journal.record_turn(
            state.journal,
            player_action=player_action,
            ai_response=ai_response,
            location=location,
            outcome=outcome,
            messages=reward_messages,
        )
        if session is not None:
            journal = self._journal.record_combat_start(
                journal, list(session.enemies), location=state.current_scene.name
            )
        state = state.model_copy(
            update={"journal": journal, "last_played_at": messages[-1].timestamp}
        )

        logger.info(
            "Turn processed",
            messages=len(messages),
            check=outcome.is_success if outcome else None,
            rejected=len(rejected),
            combat=session is not None,
        )
        return GameMasterResponse(
            state=state,
            messages=tuple(messages),
            combat_session=session,
            skill_check_outcome=outcome,
            rejected_actions=rejected,
            suggested_actions=ai_response.suggested_actions,
            requires_player_choice=ai_response.requires_player_choice,
            player_choices=ai_response.player_choices,
        )

    async def play_turn(self, state: GameState, player_action: str) -> GameMasterResponse:
        """Run a full turn: log the action, ask the narrator, apply the response.

        Story summarization is scheduled in the background and never delays
        the turn.

        Raises:
            RuntimeError: If the Game Master was built without a narrator
                and summarizer.
        """
        if self._narrator is None or self._summarizer is None:
            raise RuntimeError("play_turn requires a narrator and a summarizer")

        summary = self._summarizer.summary_for(state.id)
        context = self._summarizer.build_prompt(state.story_log, summary)

        player_message = StoryMessage(message_type=MessageType.PLAYER_ACTION, content=player_action)
        state = state.append_messages([player_message])

        ai_response = await self._narrator.generate(state, player_action, story_context=context)
        response = self.process_ai_response(
            state, ai_response, player_action, player_message_already_logged=True
        )
        self._summarizer.schedule(response.state.id, response.state.story_log)
        return replace(response, messages=(player_message, *response.messages))

    # -------------------------------------------------------------------------
    # Combat
    # -------------------------------------------------------------------------

    def start_combat(self, state: GameState, monsters: list[Monster]) -> CombatUpdate:
        """Open an encounter against ``monsters`` outside a narrative turn."""
        with _turn_context(state.id):
            start = self._encounters.start(state.character, monsters)
            journal = self._journal.record_combat_start(
                state.journal, monsters, location=state.current_scene.name
            )
            state = state.model_copy(
                update={
                    "current_scene": self._scene_in_combat(state.current_scene, monsters),
                    "journal": journal,
                }
            ).append_messages([start.message])
            return CombatUpdate(
                state=state,
                session=start.session,
                messages=(start.message,),
                narrative_prompt=start.narrative_prompt,
            )

    def process_player_combat_action(
        self,
        state: GameState,
        session: CombatSession,
        action: PlayerCombatAction,
    ) -> CombatUpdate:
        """Resolve the player's combat turn.

        Victory experience is applied through the action pipeline.

        Raises:
            CombatError: If the encounter is over, it is not the player's
                turn, or the target is unknown.
        """
        with _turn_context(state.id):
            result = self._encounters.player_action(session, state.character, action)
            return self._apply_combat_turn(state, result)

    def process_enemy_turn(self, state: GameState, session: CombatSession) -> CombatUpdate:
        """Let the current enemy act; nothing happens on the player's turn."""
        with _turn_context(state.id):
            result = self._encounters.enemy_turn(
                session,
                state.character,
                difficulty_multiplier=state.difficulty_multiplier,
            )
            return self._apply_combat_turn(state, result)

    def _apply_combat_turn(self, state: GameState, result: CombatTurnResult) -> CombatUpdate:
        state = state.model_copy(update={"character": result.character})
        messages = list(result.messages)
        location = state.current_scene.name
        journal = self._journal.record_combat_end(state.journal, result, location=location)

        if result.player_victory and result.xp_earned:
            batch = self._pipeline.run([AddXP(amount=result.xp_earned)], state)
            state = batch.state
            messages.extend(batch.messages)
            journal = self._journal.record_messages(
                journal, list(batch.messages), location=location
            )

        if result.combat_ended:
            scene = state.current_scene.model_copy(
                update={
                    "is_in_combat": False,
                    "present_monster_ids": (),
                    "scene_type": SceneType.EXPLORATION,
                }
            )
            state = state.model_copy(update={"current_scene": scene})

        state = state.model_copy(update={"journal": journal}).append_messages(messages)
        return CombatUpdate(
            state=state,
            session=result.session,
            messages=tuple(messages),
            narrative_prompt=result.narrative_prompt,
            combat_ended=result.combat_ended,
            player_victory=result.player_victory,
            player_fled=result.player_fled,
            player_defeated=result.player_defeated,
            xp_earned=result.xp_earned,
        )

    @staticmethod
    def _scene_in_combat(scene: Scene, enemies: list[Monster]) -> Scene:
        return scene.model_copy(
            update={
                "is_in_combat": True,
                "scene_type": SceneType.COMBAT,
                "present_monster_ids": tuple(enemy.id for enemy in enemies),
            }
        )


__all__ = [
    "GameMasterResponse",
    "CombatUpdate",
    "rewards_to_actions",
    "GameMaster",
]
