"""Turn-by-turn combat encounters.

A CombatSession is an immutable snapshot of one fight: the enemies, the
initiative order, whose turn it is and the round number. EncounterManager
advances it one turn at a time and returns a new session together with the
updated character and the story messages describing what happened.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from uuid import uuid4

from rpg_engine.core.constants import FLEE_DC
from rpg_engine.core.exceptions import CombatError
from rpg_engine.core.logging import get_logger
from rpg_engine.engine.combat import (
    DEFAULT_MONSTER_DAMAGE,
    CombatResolver,
    InitiativeEntry,
    MonsterAttackResult,
    PlayerAttackResult,
)
from rpg_engine.models.character import Character
from rpg_engine.models.enums import (
    Ability,
    CombatActionType,
    CombatPhase,
    DamageType,
    MessageType,
)
from rpg_engine.models.game_state import CombatRecord, StoryMessage
from rpg_engine.models.monster import Monster, MonsterAction


logger = get_logger(__name__)

DEFAULT_PLAYER_DAMAGE = "1d8"

_FALLBACK_MONSTER_ACTION = MonsterAction(
    name="Attack",
    description="Basic attack",
    damage=DEFAULT_MONSTER_DAMAGE,
    damage_type=DamageType.BLUDGEONING,
)


# =============================================================================
# Session & Actions
# =============================================================================


@dataclass(frozen=True)
class CombatSession:
    """Snapshot of an ongoing fight.

    Attributes:
        enemies: Every enemy in the fight, including defeated ones.
        initiative_order: Turn order, highest initiative first.
        current_turn_index: Index into ``initiative_order``.
        round_number: Starts at 1 and increments when the order wraps.
        is_active: False once the fight has ended for any reason.
        phase: Whose turn it is, or how the fight ended.
    """

    enemies: tuple[Monster, ...]
    initiative_order: tuple[InitiativeEntry, ...]
    id: str = field(default_factory=lambda: str(uuid4()))
    current_turn_index: int = 0
    round_number: int = 1
    is_active: bool = True
    phase: CombatPhase = CombatPhase.PLAYER_TURN

    @property
    def alive_enemies(self) -> tuple[Monster, ...]:
        return tuple(enemy for enemy in self.enemies if enemy.is_alive)

    @property
    def is_over(self) -> bool:
        return not self.is_active or not self.alive_enemies

    @property
    def current_turn(self) -> InitiativeEntry | None:
        if not self.initiative_order:
            return None
        return self.initiative_order[self.current_turn_index]

    @property
    def is_player_turn(self) -> bool:
        turn = self.current_turn
        return turn is not None and turn.is_player

    def find_enemy(self, enemy_id: str) -> Monster | None:
        for enemy in self.enemies:
            if enemy.id == enemy_id:
                return enemy
        return None

    def with_enemy(self, updated: Monster) -> CombatSession:
        enemies = tuple(updated if enemy.id == updated.id else enemy for enemy in self.enemies)
        return replace(self, enemies=enemies)

    def advanced(self) -> CombatSession:
        """Move to the next entry in the initiative order."""
        next_index = (self.current_turn_index + 1) % len(self.initiative_order)
        next_turn = self.initiative_order[next_index]
        return replace(
            self,
            current_turn_index=next_index,
            round_number=self.round_number + 1 if next_index == 0 else self.round_number,
            phase=CombatPhase.PLAYER_TURN if next_turn.is_player else CombatPhase.ENEMY_TURN,
        )


@dataclass(frozen=True)
class PlayerCombatAction:
    """What the player chose to do on their turn.

    Attack actions need ``target_id``. When ``attack_bonus`` is omitted the
    character's proficiency plus STR modifier is used.
    """

    action_type: CombatActionType
    target_id: str | None = None
    attack_bonus: int | None = None
    damage_notation: str | None = None
    damage_type: DamageType | None = None
    healing_notation: str | None = None
    advantage: bool = False
    disadvantage: bool = False


@dataclass(frozen=True)
class CombatStartResult:
    session: CombatSession
    message: StoryMessage
    narrative_prompt: str


@dataclass(frozen=True)
class CombatTurnResult:
    """Outcome of one turn, player or enemy.

    Attributes:
        session: The session after the turn.
        character: The character after the turn.
        messages: Story messages describing the turn.
        narrative_prompt: Short description for the narrator to embellish.
        xp_earned: Experience for a victory; the caller applies it.
    """

    session: CombatSession
    character: Character
    messages: tuple[StoryMessage, ...]
    narrative_prompt: str = ""
    combat_ended: bool = False
    player_victory: bool = False
    player_fled: bool = False
    player_defeated: bool = False
    xp_earned: int | None = None


def _combat_message(content: str, **kwargs: object) -> StoryMessage:
    return StoryMessage(message_type=MessageType.COMBAT, content=content, **kwargs)


# =============================================================================
# Encounter Manager
# =============================================================================


class EncounterManager:
    """Drives a CombatSession turn by turn.

    Example:
        >>> manager = EncounterManager(CombatResolver(DiceRoller(seed=7)))
        >>> start = manager.start(character, [goblin])
        >>> start.session.round_number
        1
    """

    def __init__(self, resolver: CombatResolver | None = None) -> None:
        self._resolver = resolver or CombatResolver()

    @property
    def resolver(self) -> CombatResolver:
        return self._resolver

    def start(self, character: Character, enemies: list[Monster]) -> CombatStartResult:
        """Roll initiative and open the encounter.

        Raises:
            CombatError: If there are no enemies to fight.
        """
        if not enemies:
            raise CombatError("Cannot start combat without enemies")

        order = self._resolver.roll_initiative(character, enemies)
        first = order[0]
        session = CombatSession(
            enemies=tuple(enemies),
            initiative_order=order,
            phase=CombatPhase.PLAYER_TURN if first.is_player else CombatPhase.ENEMY_TURN,
        )

        order_text = ", ".join(f"{entry.name}: {entry.initiative}" for entry in order)
        message = _combat_message(
            f"⚔️ COMBAT BEGINS!\n\nInitiative Order: {order_text}\n\n{first.name} acts first!",
            is_important=True,
        )
        enemy_names = ", ".join(enemy.name for enemy in enemies)
        prompt = (
            f"COMBAT HAS STARTED!\nEnemies: {enemy_names}\n{first.name} acts first!\n\n"
            "Describe the tense moment as combat begins. Set the scene for battle."
        )
        logger.info("Combat started", session_id=session.id, enemies=len(enemies))
        return CombatStartResult(session=session, message=message, narrative_prompt=prompt)

    # -------------------------------------------------------------------------
    # Player turn
    # -------------------------------------------------------------------------

    def player_action(
        self,
        session: CombatSession,
        character: Character,
        action: PlayerCombatAction,
    ) -> CombatTurnResult:
        """Resolve the player's chosen action and advance the turn.

        Raises:
            CombatError: If the encounter is over, it is not the player's
                turn, or the target is unknown.
        """
        self._ensure_active(session)
        if not session.is_player_turn:
            turn = session.current_turn
            raise CombatError(
                "Not the player's turn",
                combatant_id=turn.combatant_id if turn else None,
                round_number=session.round_number,
            )
        messages: list[StoryMessage] = []
        prompt = ""

        match action.action_type:
            case CombatActionType.MELEE_ATTACK | CombatActionType.RANGED_ATTACK:
                session, prompt = self._player_attack(session, character, action, messages)
            case CombatActionType.DODGE:
                messages.append(
                    _combat_message(
                        f"🛡️ {character.name} takes the Dodge action, "
                        "gaining advantage on DEX saves."
                    )
                )
                prompt = f"{character.name} takes a defensive stance, ready to dodge incoming attacks."
            case CombatActionType.FLEE:
                roll = self._resolver.dice.roll_d20()
                if roll >= FLEE_DC:
                    messages.append(
                        _combat_message(
                            f"🏃 {character.name} successfully flees from combat! "
                            f"(Rolled {roll} vs DC {FLEE_DC})"
                        )
                    )
                    logger.info("Player fled", session_id=session.id, roll=roll)
                    return CombatTurnResult(
                        session=replace(session, is_active=False, phase=CombatPhase.FLED),
                        character=character,
                        messages=tuple(messages),
                        narrative_prompt=f"{character.name} manages to escape from the battle!",
                        combat_ended=True,
                        player_fled=True,
                    )
                messages.append(
                    _combat_message(
                        f"❌ {character.name} fails to escape! (Rolled {roll} vs DC {FLEE_DC})"
                    )
                )
                prompt = f"{character.name} tries to flee but the enemies block the escape!"
            case CombatActionType.HEAL if action.healing_notation:
                healing = self._resolver.apply_healing(character, action.healing_notation)
                character = healing.character
                messages.append(
                    _combat_message(
                        f"💚 {character.name} heals for {healing.actual_healing} HP! "
                        f"(Now at {healing.new_hp}/{character.max_hit_points})"
                    )
                )
                prompt = (
                    f"{character.name} channels healing energy, "
                    f"recovering {healing.actual_healing} hit points."
                )
            case _:
                messages.append(_combat_message(f"{character.name} prepares for the next move."))

        if not session.alive_enemies:
            return self._victory(session, character, messages)

        return CombatTurnResult(
            session=session.advanced(),
            character=character,
            messages=tuple(messages),
            narrative_prompt=prompt,
        )

    def _player_attack(
        self,
        session: CombatSession,
        character: Character,
        action: PlayerCombatAction,
        messages: list[StoryMessage],
    ) -> tuple[CombatSession, str]:
        target = session.find_enemy(action.target_id) if action.target_id else None
        if target is None:
            raise CombatError(
                "Unknown attack target",
                combatant_id=action.target_id,
                round_number=session.round_number,
            )

        attack_bonus = action.attack_bonus
        if attack_bonus is None:
            attack_bonus = character.proficiency_bonus + character.ability_modifier(Ability.STR)

        result = self._resolver.player_attack(
            character,
            target,
            attack_bonus=attack_bonus,
            damage_notation=action.damage_notation or DEFAULT_PLAYER_DAMAGE,
            damage_type=action.damage_type or DamageType.SLASHING,
            advantage=action.advantage,
            disadvantage=action.disadvantage,
        )
        messages.append(self._player_attack_message(character.name, target.name, result))
        if result.target_killed:
            messages.append(
                _combat_message(f"💀 {target.name} has been defeated!", is_important=True)
            )

        if result.is_critical:
            prompt = (
                f"{character.name} lands a devastating critical hit on {target.name} "
                f"for {result.final_damage} damage!"
            )
        elif result.is_hit:
            prompt = f"{character.name} strikes {target.name} for {result.final_damage} damage."
        else:
            prompt = f"{character.name}'s attack misses {target.name}."
        return session.with_enemy(result.target), prompt

    def _victory(
        self,
        session: CombatSession,
        character: Character,
        messages: list[StoryMessage],
    ) -> CombatTurnResult:
        xp = self._resolver.calculate_experience_reward(list(session.enemies))
        messages.append(
            _combat_message(
                f"🎉 Victory! All enemies defeated! Earned {xp} XP!",
                is_important=True,
                experience_gained=xp,
            )
        )
        logger.info("Combat won", session_id=session.id, xp=xp, rounds=session.round_number)
        return CombatTurnResult(
            session=replace(session, is_active=False, phase=CombatPhase.VICTORY),
            character=character,
            messages=tuple(messages),
            narrative_prompt=f"Victory! {character.name} has defeated all enemies!",
            combat_ended=True,
            player_victory=True,
            xp_earned=xp,
        )

    # -------------------------------------------------------------------------
    # Enemy turn
    # -------------------------------------------------------------------------

    def enemy_turn(
        self,
        session: CombatSession,
        character: Character,
        *,
        difficulty_multiplier: float = 1.0,
    ) -> CombatTurnResult:
        """Let the enemy whose turn it is act, then advance.

        On the player's turn nothing happens. A defeated enemy's turn is
        skipped.
        """
        self._ensure_active(session)
        turn = session.current_turn
        if turn is None or turn.is_player:
            return CombatTurnResult(session=session, character=character, messages=())

        enemy = session.find_enemy(turn.combatant_id)
        if enemy is None or not enemy.is_alive:
            return CombatTurnResult(session=session.advanced(), character=character, messages=())

        action = enemy.actions[0] if enemy.actions else _FALLBACK_MONSTER_ACTION
        result = self._resolver.monster_attack(
            enemy, character, action, difficulty_multiplier=difficulty_multiplier
        )
        messages = [self._monster_attack_message(character.name, result)]

        if result.player_knocked_out:
            messages.append(
                _combat_message(
                    f"💀 {character.name} has fallen! The world fades to black...",
                    is_important=True,
                )
            )
            logger.info("Combat lost", session_id=session.id, attacker=enemy.name)
            return CombatTurnResult(
                session=replace(session, is_active=False, phase=CombatPhase.DEFEAT),
                character=result.character,
                messages=tuple(messages),
                narrative_prompt=(
                    f"{character.name} falls unconscious as {enemy.name}'s attack lands!"
                ),
                combat_ended=True,
                player_defeated=True,
            )

        if result.is_critical:
            prompt = f"{enemy.name} lands a brutal {action.name}, dealing {result.final_damage} damage!"
        elif result.is_hit:
            prompt = f"{enemy.name}'s {action.name} connects, dealing {result.final_damage} damage."
        else:
            prompt = f"{enemy.name}'s {action.name} misses!"

        return CombatTurnResult(
            session=session.advanced(),
            character=result.character,
            messages=tuple(messages),
            narrative_prompt=prompt,
        )

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    @staticmethod
    def suggestions(session: CombatSession, character: Character) -> list[str]:
        """Up to four suggested combat actions for the player."""
        alive = session.alive_enemies
        if not alive:
            return ["Victory!"]

        suggestions = [f"Attack {enemy.name}" for enemy in alive[:2]]
        suggestions.append("Dodge")
        character_class = character.character_class.lower()
        if character_class in ("cleric", "paladin"):
            suggestions.append("Cast healing spell")
        if character_class == "rogue":
            suggestions.append("Hide and prepare sneak attack")
        suggestions.append("Attempt to flee")
        return suggestions[:4]

    @staticmethod
    def _ensure_active(session: CombatSession) -> None:
        if session.is_over:
            raise CombatError(
                "Combat has already ended",
                round_number=session.round_number,
                details={"phase": session.phase.value},
            )

    @staticmethod
    def _player_attack_message(
        attacker: str, target: str, result: PlayerAttackResult
    ) -> StoryMessage:
        roll = result.attack_roll
        if roll.is_critical_hit:
            content = f"💥 CRITICAL HIT! {attacker} strikes {target} for {result.final_damage} damage!"
        elif roll.is_critical_miss:
            content = f"❌ Critical Miss! {attacker}'s attack goes wild!"
        elif result.is_hit:
            content = (
                f"⚔️ {attacker} hits {target} for {result.final_damage} "
                f"{result.damage_type.display_name} damage!"
            )
        else:
            content = f"🛡️ {attacker}'s attack misses {target}! ({roll.total} vs AC)"

        return _combat_message(
            content,
            combat_result=CombatRecord(
                attacker_name=attacker,
                defender_name=target,
                attack_roll=roll.total,
                damage=result.final_damage,
                damage_type=result.damage_type,
                is_hit=result.is_hit,
                is_critical_hit=roll.is_critical_hit,
                is_critical_miss=roll.is_critical_miss,
            ),
        )

    @staticmethod
    def _monster_attack_message(defender: str, result: MonsterAttackResult) -> StoryMessage:
        roll = result.attack_roll
        attacker, action = result.attacker_name, result.action_name
        if roll.is_critical_hit:
            content = f"💥 CRITICAL! {attacker} uses {action} and deals {result.final_damage} damage!"
        elif roll.is_critical_miss:
            content = f"😅 {attacker}'s {action} misses completely!"
        elif result.is_hit:
            content = f"🔴 {attacker} uses {action} dealing {result.final_damage} damage!"
        else:
            content = f"🛡️ {attacker}'s {action} misses! ({roll.total} vs AC)"

        return _combat_message(
            content,
            combat_result=CombatRecord(
                attacker_name=attacker,
                defender_name=defender,
                attack_roll=roll.total,
                damage=result.final_damage,
                damage_type=result.damage_type,
                is_hit=result.is_hit,
                is_critical_hit=roll.is_critical_hit,
                is_critical_miss=roll.is_critical_miss,
            ),
        )


__all__ = [
    "DEFAULT_PLAYER_DAMAGE",
    "CombatSession",
    "PlayerCombatAction",
    "CombatStartResult",
    "CombatTurnResult",
    "EncounterManager",
]
