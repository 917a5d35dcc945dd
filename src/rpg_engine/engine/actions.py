"""Action pipeline: the only code path that changes a GameState.

Actions are validated first and executed second. The validator rejects
actions that cannot apply (spending gold the character does not have,
using an item that is not in the inventory). The executor applies the
rest, clamping amounts to the engine's bounds rather than rejecting them.
The pipeline runs a batch of actions in order and keeps going past
failures.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from rpg_engine.core.constants import max_gold_reward, max_xp_reward
from rpg_engine.core.exceptions import (
    CapacityExceeded,
    DiceRollError,
    InvariantViolation,
    NotFoundError,
    ValidationError,
)
from rpg_engine.core.logging import get_logger
from rpg_engine.engine.combat import CombatResolver
from rpg_engine.engine.dice import DiceRoller, is_flat_amount, is_valid_notation
from rpg_engine.engine.items import ItemCatalog
from rpg_engine.models.actions import (
    AddGold,
    AddItem,
    AddXP,
    ChangeLocation,
    Damage,
    GameAction,
    Heal,
    RemoveItem,
    Rest,
    SpendGold,
    UseItem,
)
from rpg_engine.models.character import Character
from rpg_engine.models.enums import Ability, Condition, MessageType, RestType
from rpg_engine.models.game_state import GameState, Scene, StoryMessage


logger = get_logger(__name__)


# =============================================================================
# Results
# =============================================================================


@dataclass(frozen=True)
class ValidationResult:
    is_valid: bool
    error: str | None = None

    @classmethod
    def valid(cls) -> ValidationResult:
        return cls(is_valid=True)

    @classmethod
    def invalid(cls, error: str) -> ValidationResult:
        return cls(is_valid=False, error=error)


@dataclass(frozen=True)
class ActionResult:
    """Outcome of executing one action.

    Attributes:
        success: Whether the action changed anything.
        state: The state after the action; the input state on failure.
        message: Player-facing text describing the outcome.
        data: Extra values for callers (amounts applied, rolls, level ups).
        message_type: Story-log type for ``message``.
    """

    success: bool
    state: GameState
    message: str
    data: dict[str, Any] = field(default_factory=dict)
    message_type: MessageType = MessageType.SYSTEM


@dataclass(frozen=True)
class BatchResult:
    """Outcome of a pipeline run: final state, story messages and per-action results."""

    state: GameState
    messages: tuple[StoryMessage, ...]
    results: tuple[ActionResult, ...]

    @property
    def rejected(self) -> tuple[ActionResult, ...]:
        return tuple(result for result in self.results if not result.success)


# =============================================================================
# Validator
# =============================================================================


class ActionValidator:
    """Decides whether an action may be applied to a state.

    Gold and XP rewards above the per-level cap are accepted here; the
    executor clamps them.
    """

    def validate(self, action: GameAction, state: GameState) -> ValidationResult:
        match action:
            case AddGold(amount=amount) if amount < 0:
                return ValidationResult.invalid("Gold amount cannot be negative")
            case AddXP(amount=amount) if amount < 0:
                return ValidationResult.invalid("XP amount cannot be negative")
            case SpendGold(amount=amount) if amount < 0:
                return ValidationResult.invalid("Gold amount cannot be negative")
            case SpendGold(amount=amount) if amount > state.gold:
                return ValidationResult.invalid(
                    f"Not enough gold (need {amount}, have {state.gold})"
                )
            case AddItem(item_name=name, quantity=quantity):
                if not name.strip():
                    return ValidationResult.invalid("Item name is required")
                if quantity < 1:
                    return ValidationResult.invalid("Quantity must be at least 1")
            case RemoveItem(item_name=name) | UseItem(item_name=name):
                if not name.strip():
                    return ValidationResult.invalid("Item name is required")
                if not state.inventory.has_item(name):
                    return ValidationResult.invalid(f'Item "{name}" not found in inventory')
            case Heal(amount=amount):
                if is_flat_amount(amount):
                    if int(amount) < 0:
                        return ValidationResult.invalid("Heal amount cannot be negative")
                elif not is_valid_notation(amount):
                    return ValidationResult.invalid(f'Invalid heal amount "{amount}"')
            case Damage(amount=amount) if amount < 0:
                return ValidationResult.invalid("Damage amount cannot be negative")
            case ChangeLocation(name=name) if not name.strip():
                return ValidationResult.invalid("Location name is required")
        return ValidationResult.valid()


# =============================================================================
# Executor
# =============================================================================


def _take_damage(character: Character, amount: int) -> tuple[Character, int, int]:
    """Apply damage to temporary HP first, then current HP.

    Returns:
        Tuple of (updated character, damage absorbed by temp HP, damage to HP).
    """
    absorbed = min(character.temporary_hit_points, amount)
    remaining = amount - absorbed
    new_hp = max(character.current_hit_points - remaining, 0)
    updated = character.model_copy(
        update={
            "temporary_hit_points": character.temporary_hit_points - absorbed,
            "current_hit_points": new_hp,
        }
    )
    return updated, absorbed, character.current_hit_points - new_hp


def _restore_hit_points(character: Character, amount: int) -> tuple[Character, int]:
    """Raise current HP by ``amount`` floored at 0, never above max HP."""
    new_hp = min(character.current_hit_points + max(amount, 0), character.max_hit_points)
    updated = character.model_copy(update={"current_hit_points": new_hp})
    return updated, new_hp - character.current_hit_points


def _parse_condition(token: str) -> Condition | None:
    token = token.strip().lower()
    for condition in Condition:
        # 'poison' cures 'poisoned'
        if condition.value == token or condition.value.startswith(token):
            return condition
    return None


class ActionExecutor:
    """Applies validated actions to a GameState.

    Example:
        >>> executor = ActionExecutor(DiceRoller(seed=3))
        >>> result = executor.execute(AddGold(amount=20), state)
        >>> result.state.gold - state.gold
        20
    """

    def __init__(
        self,
        dice: DiceRoller | None = None,
        *,
        items: ItemCatalog | None = None,
        combat: CombatResolver | None = None,
    ) -> None:
        self._dice = dice or DiceRoller()
        self._items = items or ItemCatalog()
        self._combat = combat or CombatResolver(self._dice)

    def execute(self, action: GameAction, state: GameState) -> ActionResult:
        """Apply one action.

        Args:
            action: The action to apply; assumed already validated.
            state: Current state.

        Returns:
            ActionResult with the new state. A full inventory yields an
            unsuccessful result rather than an exception.

        Raises:
            InvariantViolation: If ``action`` is not a known action kind.
        """
        match action:
            case AddItem():
                return self._add_item(action, state)
            case RemoveItem():
                return self._remove_item(action, state)
            case UseItem():
                return self._use_item(action, state)
            case Heal():
                return self._heal(action, state)
            case Damage():
                return self._damage(action, state)
            case AddGold():
                return self._add_gold(action, state)
            case SpendGold():
                return self._spend_gold(action, state)
            case AddXP():
                return self._add_xp(action, state)
            case ChangeLocation():
                return self._change_location(action, state)
            case Rest():
                return self._rest(action, state)
            case _:
                raise InvariantViolation(
                    "Unknown action kind",
                    field_name="kind",
                    value=getattr(action, "kind", type(action).__name__),
                )

    # -------------------------------------------------------------------------
    # Inventory
    # -------------------------------------------------------------------------

    def _add_item(self, action: AddItem, state: GameState) -> ActionResult:
        try:
            return self._store_items(action, state)
        except CapacityExceeded as exc:
            logger.info("Inventory full", item=action.item_name, **exc.details)
            return ActionResult(
                success=False,
                state=state,
                message=f"Inventory is full! Could not add {action.item_name}.",
                data=dict(exc.details),
            )

    def _store_items(self, action: AddItem, state: GameState) -> ActionResult:
        inventory = state.inventory
        if inventory.free_slots == 0:
            raise CapacityExceeded(
                "No free inventory slots",
                capacity=inventory.max_slots,
                requested=action.quantity,
            )

        template = self._items.resolve(action.item_name, max_rarity=action.rarity)
        added_count = min(action.quantity, inventory.free_slots)
        new_items = [template.to_item(description=action.description) for _ in range(added_count)]
        new_state = state.model_copy(update={"inventory": inventory.with_added(new_items)})

        label = template.name if added_count == 1 else f"{added_count}x {template.name}"
        message = f"Received: {label}"
        dropped = action.quantity - added_count
        if dropped:
            message += f" (inventory full, {dropped} left behind)"

        logger.info("Items added", item=template.name, added=added_count, dropped=dropped)
        return ActionResult(
            success=True,
            state=new_state,
            message=message,
            data={"item_name": template.name, "added": added_count, "dropped": dropped},
            message_type=MessageType.ITEM_RECEIVED,
        )

    def _remove_item(self, action: RemoveItem, state: GameState) -> ActionResult:
        wanted = action.item_name.strip().lower()
        matching = [item for item in state.inventory.items if item.name.lower() == wanted]
        if not matching:
            raise NotFoundError(
                f'Item "{action.item_name}" not found in inventory',
                kind="item",
                key=action.item_name,
            )
        removed = matching[: max(action.quantity, 1)]
        new_inventory = state.inventory.without({item.id for item in removed})
        label = matching[0].name if len(removed) == 1 else f"{len(removed)}x {matching[0].name}"
        return ActionResult(
            success=True,
            state=state.model_copy(update={"inventory": new_inventory}),
            message=f"Removed: {label}",
            data={"removed": len(removed)},
        )

    def _use_item(self, action: UseItem, state: GameState) -> ActionResult:
        item = state.inventory.find(action.item_name)
        if item is None:
            raise NotFoundError(
                f'Item "{action.item_name}" not found in inventory',
                kind="item",
                key=action.item_name,
            )

        character = state.character
        message = f"Used {item.name}."
        data: dict[str, Any] = {"item_name": item.name}

        effect_kind, _, effect_value = (item.effect or "").partition(":")
        if effect_kind == "heal" and effect_value:
            healed_amount = self._dice.roll_flat_or_notation(effect_value)
            character, healed = _restore_hit_points(character, healed_amount)
            message = f"Used {item.name}: healed {healed} HP."
            data["healed"] = healed
        elif effect_kind == "cure" and effect_value:
            condition = _parse_condition(effect_value)
            if condition is not None and condition in character.conditions:
                character = character.model_copy(
                    update={"conditions": character.conditions - {condition}}
                )
                message = f"Used {item.name}: no longer {condition.value}."
            data["cured"] = condition.value if condition else None
        elif effect_kind == "resistance" and effect_value:
            message = f"Used {item.name}: you feel resistant to {effect_value}."

        inventory = state.inventory
        if item.is_consumable:
            inventory = inventory.without({item.id})

        logger.info("Item used", item=item.name, effect=item.effect, consumed=item.is_consumable)
        return ActionResult(
            success=True,
            state=state.model_copy(update={"character": character, "inventory": inventory}),
            message=message,
            data=data,
        )

    # -------------------------------------------------------------------------
    # Hit points
    # -------------------------------------------------------------------------

    def _heal(self, action: Heal, state: GameState) -> ActionResult:
        amount = self._dice.roll_flat_or_notation(action.amount)
        character, healed = _restore_hit_points(state.character, amount)
        return ActionResult(
            success=True,
            state=state.model_copy(update={"character": character}),
            message=f"Healed {healed} HP.",
            data={"rolled": amount, "healed": healed},
        )

    def _damage(self, action: Damage, state: GameState) -> ActionResult:
        character, absorbed, taken = _take_damage(state.character, max(action.amount, 0))
        message = f"Took {taken} damage."
        if absorbed:
            message = f"Took {taken} damage ({absorbed} absorbed by temporary HP)."
        if character.current_hit_points == 0:
            message += " You fall unconscious!"
        return ActionResult(
            success=True,
            state=state.model_copy(update={"character": character}),
            message=message,
            data={"absorbed": absorbed, "taken": taken},
        )

    # -------------------------------------------------------------------------
    # Rewards
    # -------------------------------------------------------------------------

    def _add_gold(self, action: AddGold, state: GameState) -> ActionResult:
        cap = max_gold_reward(state.character.level)
        amount = min(action.amount, cap)
        if amount < action.amount:
            logger.info("Gold reward clamped", proposed=action.amount, applied=amount, cap=cap)
        return ActionResult(
            success=True,
            state=state.model_copy(update={"gold": state.gold + amount}),
            message=f"Found {amount} gold!",
            data={"amount": amount, "proposed": action.amount},
        )

    def _spend_gold(self, action: SpendGold, state: GameState) -> ActionResult:
        if action.amount > state.gold:
            raise ValidationError(
                f"Not enough gold (need {action.amount}, have {state.gold})",
                field_name="amount",
                invalid_value=action.amount,
            )
        return ActionResult(
            success=True,
            state=state.model_copy(update={"gold": state.gold - action.amount}),
            message=f"Spent {action.amount} gold.",
            data={"amount": action.amount},
        )

    def _add_xp(self, action: AddXP, state: GameState) -> ActionResult:
        cap = max_xp_reward(state.character.level)
        amount = min(action.amount, cap)
        if amount < action.amount:
            logger.info("XP reward clamped", proposed=action.amount, applied=amount, cap=cap)

        level_up = self._combat.check_level_up(state.character, amount)
        character = self._combat.apply_level_up(state.character, level_up)
        data: dict[str, Any] = {
            "amount": amount,
            "proposed": action.amount,
            "experience_gained": amount,
        }
        if level_up.did_level_up:
            data["level_up"] = level_up

        return ActionResult(
            success=True,
            state=state.model_copy(update={"character": character}),
            message=f"Gained {amount} experience points!",
            data=data,
        )

    # -------------------------------------------------------------------------
    # World
    # -------------------------------------------------------------------------

    def _change_location(self, action: ChangeLocation, state: GameState) -> ActionResult:
        scene = Scene(
            name=action.name,
            description=action.description,
            scene_type=action.scene_type,
        )
        return ActionResult(
            success=True,
            state=state.model_copy(update={"current_scene": scene}),
            message=f"Arrived at {scene.name}.",
            data={"scene_id": scene.id},
        )

    def _rest(self, action: Rest, state: GameState) -> ActionResult:
        character = state.character
        if action.rest_type == RestType.LONG:
            rested = character.model_copy(
                update={
                    "current_hit_points": character.max_hit_points,
                    "temporary_hit_points": 0,
                    "hit_dice_remaining": character.level,
                    "death_save_successes": 0,
                    "death_save_failures": 0,
                }
            )
            return ActionResult(
                success=True,
                state=state.model_copy(update={"character": rested}),
                message="You take a long rest and feel fully restored.",
                data={"healed": rested.current_hit_points - character.current_hit_points},
            )

        if character.hit_dice_remaining <= 0:
            return ActionResult(
                success=True,
                state=state,
                message="You take a short rest, but have no hit dice left to spend.",
                data={"healed": 0},
            )

        roll = self._dice.roll_die(character.hit_die)
        amount = max(0, roll + character.ability_modifier(Ability.CON))
        rested, healed = _restore_hit_points(character, amount)
        rested = rested.model_copy(
            update={"hit_dice_remaining": character.hit_dice_remaining - 1}
        )
        return ActionResult(
            success=True,
            state=state.model_copy(update={"character": rested}),
            message=f"You take a short rest and recover {healed} HP.",
            data={"roll": roll, "healed": healed},
        )


# =============================================================================
# Pipeline
# =============================================================================


class ActionPipeline:
    """Validates and executes a batch of actions in order.

    A rejected action contributes a system message and the batch carries on
    with the state as it was before that action.
    """

    def __init__(
        self,
        executor: ActionExecutor | None = None,
        validator: ActionValidator | None = None,
    ) -> None:
        self._executor = executor or ActionExecutor()
        self._validator = validator or ActionValidator()

    @property
    def executor(self) -> ActionExecutor:
        return self._executor

    def run(self, actions: list[GameAction], state: GameState) -> BatchResult:
        """Run ``actions`` against ``state``.

        Returns:
            BatchResult with the final state and one story message per
            action (plus one per level gained).
        """
        messages: list[StoryMessage] = []
        results: list[ActionResult] = []

        for action in actions:
            result = self._run_one(action, state)
            results.append(result)
            state = result.state
            messages.extend(self._messages_for(result))

        logger.info(
            "Action batch processed",
            total=len(results),
            rejected=sum(1 for result in results if not result.success),
        )
        return BatchResult(state=state, messages=tuple(messages), results=tuple(results))

    def _run_one(self, action: GameAction, state: GameState) -> ActionResult:
        validation = self._validator.validate(action, state)
        if not validation.is_valid:
            logger.info("Action rejected", kind=action.kind, reason=validation.error)
            return ActionResult(
                success=False,
                state=state,
                message=validation.error or "Action rejected",
                data={"kind": action.kind},
            )

        try:
            return self._executor.execute(action, state)
        except (ValidationError, NotFoundError, CapacityExceeded, DiceRollError) as exc:
            logger.warning("Action failed", kind=action.kind, error=str(exc))
            return ActionResult(
                success=False,
                state=state,
                message=exc.message,
                data={"kind": action.kind},
            )

    @staticmethod
    def _messages_for(result: ActionResult) -> list[StoryMessage]:
        data = result.data
        messages = [
            StoryMessage(
                message_type=result.message_type,
                content=result.message,
                items_received=(data["item_name"],) * data.get("added", 0)
                if result.message_type == MessageType.ITEM_RECEIVED
                else (),
                experience_gained=data.get("experience_gained"),
            )
        ]
        level_up = data.get("level_up")
        if level_up is not None:
            messages.append(
                StoryMessage(
                    message_type=MessageType.LEVEL_UP,
                    content=f"Level Up! You are now level {level_up.new_level}!",
                    is_important=True,
                )
            )
        return messages


__all__ = [
    "ValidationResult",
    "ActionResult",
    "BatchResult",
    "ActionValidator",
    "ActionExecutor",
    "ActionPipeline",
]
