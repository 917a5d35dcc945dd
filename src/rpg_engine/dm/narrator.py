"""Narrative provider client.

The narrator sends the current situation to an OpenAI-compatible chat
completions endpoint and parses the reply into an AIResponse. It never
fails a turn: timeouts, API errors and missing credentials all degrade to a
local fallback response.
"""

from __future__ import annotations

import asyncio
from typing import Any

from openai import (
    APIConnectionError,
    APIError,
    APITimeoutError,
    AsyncOpenAI,
    RateLimitError,
)
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from rpg_engine.core.config import AIProviderSettings, get_settings
from rpg_engine.core.constants import max_gold_reward, max_xp_reward
from rpg_engine.core.exceptions import ExternalServiceError
from rpg_engine.core.logging import get_logger
from rpg_engine.dm.prompts import (
    COMBAT_EVENT_PROMPT,
    COMBAT_SYSTEM_PROMPT,
    FALLBACK_NARRATION,
    FALLBACK_SUGGESTED_ACTIONS,
    JOURNAL_CONTEXT_HEADER,
    MONSTER_CONTEXT_HEADER,
    NARRATOR_SYSTEM_PROMPT,
    TURN_PROMPT,
)
from rpg_engine.models.ai_response import AIResponse
from rpg_engine.models.enums import Ability
from rpg_engine.models.game_state import GameState
from rpg_engine.models.journal import StoryJournal
from rpg_engine.models.monster import Monster


logger = get_logger(__name__)

SERVICE_NAME = "narrative_provider"

RETRYABLE_ERRORS = (APIConnectionError, APITimeoutError, RateLimitError)


def build_openai_client(settings: AIProviderSettings) -> AsyncOpenAI:
    """Create an async client for the configured endpoint.

    Raises:
        ExternalServiceError: If no API key is configured.
    """
    if settings.api_key is None:
        raise ExternalServiceError(
            "No API key configured for the narrative provider",
            service=SERVICE_NAME,
        )
    return AsyncOpenAI(
        api_key=settings.api_key.get_secret_value(),
        base_url=settings.base_url,
        timeout=settings.timeout_seconds,
        max_retries=0,
        default_headers={"X-Title": "RPG Engine"},
    )


async def request_completion(
    client: Any,
    *,
    model: str,
    messages: list[dict[str, str]],
    temperature: float,
    max_retries: int,
    max_tokens: int = 1024,
    json_mode: bool = True,
) -> str:
    """Call chat completions with retries on transient errors.

    Returns:
        The message content of the first choice.

    Raises:
        ExternalServiceError: When the provider fails after all retries.
    """
    kwargs: dict[str, Any] = {
        "model": model,
        "messages": messages,
        "temperature": temperature,
        "max_tokens": max_tokens,
    }
    if json_mode:
        kwargs["response_format"] = {"type": "json_object"}

    try:
        async for attempt in AsyncRetrying(
            retry=retry_if_exception_type(RETRYABLE_ERRORS),
            stop=stop_after_attempt(max_retries),
            wait=wait_exponential(multiplier=1, min=2, max=10),
            reraise=True,
        ):
            with attempt:
                response = await client.chat.completions.create(**kwargs)
    except RateLimitError as exc:
        raise ExternalServiceError(
            f"Rate limit exceeded after {max_retries} attempts",
            service=SERVICE_NAME,
            model=model,
        ) from exc
    except (APIConnectionError, APITimeoutError) as exc:
        raise ExternalServiceError(
            f"Failed to connect to narrative provider: {exc}",
            service=SERVICE_NAME,
            model=model,
        ) from exc
    except APIError as exc:
        raise ExternalServiceError(
            f"Narrative provider API error: {exc}",
            service=SERVICE_NAME,
            model=model,
        ) from exc

    content = response.choices[0].message.content or ""
    logger.debug("Completion received", model=model, response_length=len(content))
    return content


def fallback_response() -> AIResponse:
    """Local response used when the provider is unavailable."""
    return AIResponse(
        narration=FALLBACK_NARRATION,
        suggested_actions=FALLBACK_SUGGESTED_ACTIONS,
    )


def _format_modifier(value: int) -> str:
    return f"+{value}" if value >= 0 else str(value)


def _ability_summary(state: GameState) -> str:
    character = state.character
    parts = []
    for ability in Ability:
        score = character.ability_scores.get_score(ability)
        modifier = character.ability_modifier(ability)
        parts.append(f"{ability.name} {score} ({_format_modifier(modifier)})")
    return ", ".join(parts)


def _monster_context(monsters: list[Monster]) -> str:
    if not monsters:
        return ""
    lines = [MONSTER_CONTEXT_HEADER]
    for monster in monsters:
        lines.append(f"- {monster.name} ({monster.monster_type.value})")
        lines.append(
            f"  HP: {monster.current_hit_points}/{monster.max_hit_points}, "
            f"AC: {monster.armor_class}"
        )
        if monster.description:
            lines.append(f"  {monster.description}")
    return "\n".join(lines) + "\n"


def _journal_context(journal: StoryJournal, recent_events: int) -> str:
    sections = [
        section
        for section in (journal.recent_events_summary(recent_events), journal.npc_context())
        if section
    ]
    if not sections:
        return ""
    return "\n".join([JOURNAL_CONTEXT_HEADER, *sections]) + "\n"


def build_system_prompt(
    state: GameState,
    monsters: list[Monster] | None = None,
    *,
    recent_events: int | None = None,
) -> str:
    """Render the narrator system prompt for the current state.

    Args:
        state: Current game state.
        monsters: Monsters present in the scene, if any.
        recent_events: Journal entries to include. Defaults to
            ``GameSettings.journal_recent_events``.
    """
    if recent_events is None:
        recent_events = get_settings().game.journal_recent_events
    character = state.character
    scene = state.current_scene
    return NARRATOR_SYSTEM_PROMPT.format(
        max_xp=max_xp_reward(character.level),
        max_gold=max_gold_reward(character.level),
        character_name=character.name,
        character_race=character.race,
        character_class=character.character_class.title(),
        character_level=character.level,
        current_hp=character.current_hit_points,
        max_hp=character.max_hit_points,
        armor_class=character.armor_class,
        ability_summary=_ability_summary(state),
        scene_name=scene.name,
        scene_description=scene.description,
        combat_status="- STATUS: IN COMBAT" if scene.is_in_combat else "",
        monster_context=_monster_context(monsters or []),
        journal_context=_journal_context(state.journal, recent_events),
    )


def build_combat_prompt(state: GameState, monsters: list[Monster], round_number: int) -> str:
    character = state.character
    enemy_list = ", ".join(
        f"{m.name} (HP: {m.current_hit_points}/{m.max_hit_points})" for m in monsters if m.is_alive
    )
    return COMBAT_SYSTEM_PROMPT.format(
        character_name=character.name,
        current_hp=character.current_hit_points,
        max_hp=character.max_hit_points,
        enemy_list=enemy_list or "none",
        round_number=round_number,
    )


# =============================================================================
# Narrative Client
# =============================================================================


class NarrativeClient:
    """Asks the narrative provider what happens next.

    Example:
        >>> narrator = NarrativeClient()
        >>> response = await narrator.generate(state, "I open the door", story_context=context)
        >>> response.narration
        'The door creaks open...'
    """

    def __init__(
        self,
        settings: AIProviderSettings | None = None,
        *,
        client: Any = None,
    ) -> None:
        """Initialize the client.

        Args:
            settings: Provider settings; defaults to the application settings.
            client: Object exposing ``chat.completions.create``; built lazily
                from settings when omitted.
        """
        self._settings = settings or get_settings().ai
        self._client = client

        logger.info(
            "NarrativeClient initialized",
            model=self._settings.model,
            timeout=self._settings.timeout_seconds,
        )

    @property
    def model(self) -> str:
        return self._settings.model

    def _get_client(self) -> Any:
        if self._client is None:
            self._client = build_openai_client(self._settings)
        return self._client

    async def complete(self, messages: list[dict[str, str]], *, json_mode: bool = True) -> str:
        """Send messages to the provider, bounded by the configured timeout.

        Raises:
            ExternalServiceError: On timeout, API failure or missing credentials.
        """
        client = self._get_client()
        try:
            return await asyncio.wait_for(
                request_completion(
                    client,
                    model=self._settings.model,
                    messages=messages,
                    temperature=self._settings.temperature,
                    max_retries=self._settings.max_retries,
                    json_mode=json_mode,
                ),
                timeout=self._settings.timeout_seconds,
            )
        except TimeoutError as exc:
            raise ExternalServiceError(
                f"Narrative provider timed out after {self._settings.timeout_seconds}s",
                service=SERVICE_NAME,
                model=self._settings.model,
            ) from exc

    async def generate(
        self,
        state: GameState,
        player_action: str,
        *,
        story_context: str = "",
        monsters: list[Monster] | None = None,
    ) -> AIResponse:
        """Produce the narrative response to a player action.

        Args:
            state: Current game state.
            player_action: What the player typed.
            story_context: Summary and recent events from ContextSummarizer.
            monsters: Monsters present in the scene, if any.

        Returns:
            Parsed AIResponse, or the fallback response if the provider
            could not be reached.
        """
        messages = [
            {"role": "system", "content": build_system_prompt(state, monsters)},
            {
                "role": "user",
                "content": TURN_PROMPT.format(
                    story_context=story_context, player_action=player_action
                ),
            },
        ]
        try:
            raw = await self.complete(messages)
        except ExternalServiceError as exc:
            logger.warning("Narrative provider unavailable, using fallback", error=str(exc))
            return fallback_response()

        response = AIResponse.from_payload(raw)
        logger.info(
            "Narrative generated",
            has_check=response.proposed_check is not None,
            rewards=len(response.proposed_rewards),
            combat=response.triggers_combat,
        )
        return response

    async def narrate_combat(
        self,
        state: GameState,
        monsters: list[Monster],
        event: str,
        *,
        round_number: int = 1,
    ) -> str:
        """Embellish a combat event; returns the event text itself on failure."""
        messages = [
            {"role": "system", "content": build_combat_prompt(state, monsters, round_number)},
            {"role": "user", "content": COMBAT_EVENT_PROMPT.format(event=event)},
        ]
        try:
            raw = await self.complete(messages)
        except ExternalServiceError as exc:
            logger.warning("Combat narration unavailable", error=str(exc))
            return event

        narration = AIResponse.from_payload(raw).narration
        return narration or event


__all__ = [
    "SERVICE_NAME",
    "build_openai_client",
    "request_completion",
    "fallback_response",
    "build_system_prompt",
    "build_combat_prompt",
    "NarrativeClient",
]
