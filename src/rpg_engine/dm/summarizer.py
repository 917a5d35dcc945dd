"""Story summarization to keep narrative prompts bounded.

Instead of sending an ever-growing story log to the narrative provider,
the summarizer keeps a running summary per save:

1. Without a summary, the prompt carries the last 10 log entries.
2. Once enough unsummarized entries pile up, a background task folds them
   into the running summary.
3. With a summary, the prompt carries the summary plus only the last 5
   entries.

Summaries are merged monotonically: a result that covers fewer messages
than the cached one is discarded, so a slow task can never roll the
summary back.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from typing import Any

from rpg_engine.core.config import AIProviderSettings, get_settings
from rpg_engine.core.logging import get_logger
from rpg_engine.dm.narrator import build_openai_client, request_completion
from rpg_engine.dm.prompts import (
    RECENT_EVENTS_HEADER,
    STORY_SO_FAR_HEADER,
    SUMMARY_INITIAL_PROMPT,
    SUMMARY_PREFIXES,
    SUMMARY_SYSTEM_PROMPT,
    SUMMARY_UPDATE_PROMPT,
)
from rpg_engine.models.enums import MessageType
from rpg_engine.models.game_state import StoryMessage
from rpg_engine.models.summary import StorySummary


logger = get_logger(__name__)


# =============================================================================
# Prompt Helpers
# =============================================================================


def is_relevant_for_summary(message: StoryMessage) -> bool:
    """Narration, dialogue, quest updates and important player actions."""
    if message.message_type in (
        MessageType.NARRATION,
        MessageType.DIALOGUE,
        MessageType.QUEST_UPDATE,
    ):
        return True
    return message.message_type == MessageType.PLAYER_ACTION and message.is_important


def build_summary_prompt(messages: list[StoryMessage], existing_summary: str | None = None) -> str:
    events = "\n".join(
        f"{'Player' if m.message_type == MessageType.PLAYER_ACTION else 'Story'}: {m.content}"
        for m in messages
    )
    if existing_summary:
        return SUMMARY_UPDATE_PROMPT.format(existing_summary=existing_summary, events=events)
    return SUMMARY_INITIAL_PROMPT.format(events=events)


def clean_summary_text(text: str) -> str:
    """Strip 'Summary:'-style prefixes and wrapping quotes."""
    cleaned = text.strip()
    for prefix in SUMMARY_PREFIXES:
        if cleaned.lower().startswith(prefix.lower()):
            cleaned = cleaned[len(prefix):].strip()
            break
    if len(cleaned) >= 2 and cleaned[0] == cleaned[-1] and cleaned[0] in ("'", '"'):
        cleaned = cleaned[1:-1]
    return cleaned.strip()


def render_entry(message: StoryMessage) -> str:
    speaker = "Player" if message.message_type == MessageType.PLAYER_ACTION else "DM"
    return f"{speaker}: {message.content}"


# =============================================================================
# Summary Generators
# =============================================================================


class SummaryGenerator(ABC):
    """Turns a summarization prompt into summary text."""

    @abstractmethod
    async def generate(self, prompt: str) -> str:
        """Return raw summary text for ``prompt``.

        Raises:
            ExternalServiceError: If the backing service fails.
        """


class OpenAISummaryGenerator(SummaryGenerator):
    """Summaries from an OpenAI-compatible chat completions endpoint."""

    def __init__(
        self,
        settings: AIProviderSettings | None = None,
        *,
        client: Any = None,
    ) -> None:
        self._settings = settings or get_settings().ai
        self._client = client

    def _get_client(self) -> Any:
        if self._client is None:
            self._client = build_openai_client(self._settings)
        return self._client

    async def generate(self, prompt: str) -> str:
        return await request_completion(
            self._get_client(),
            model=self._settings.summary_model,
            messages=[
                {"role": "system", "content": SUMMARY_SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            temperature=self._settings.summary_temperature,
            max_retries=self._settings.max_retries,
            max_tokens=300,
            json_mode=False,
        )


# =============================================================================
# Context Summarizer
# =============================================================================


class ContextSummarizer:
    """Maintains running story summaries and builds bounded story context.

    The cache maps ``save_id`` to ``(summary, messages_summarized)``. It is
    only ever updated through :meth:`merge`.

    Usage:
        >>> summarizer = ContextSummarizer()
        >>> context = summarizer.build_prompt(state.story_log, summarizer.summary_for(state.id))
        >>> summarizer.schedule(state.id, state.story_log)  # returns immediately
    """

    def __init__(
        self,
        generator: SummaryGenerator | None = None,
        *,
        threshold: int | None = None,
        recent_with_summary: int | None = None,
        recent_without_summary: int | None = None,
    ) -> None:
        game = get_settings().game
        self._generator = generator or OpenAISummaryGenerator()
        self.threshold = threshold or game.summary_threshold
        self.recent_with_summary = recent_with_summary or game.recent_messages_with_summary
        self.recent_without_summary = recent_without_summary or game.recent_messages_without_summary

        self._cache: dict[str, tuple[StorySummary | None, int]] = {}
        self._pending: dict[str, asyncio.Task[StorySummary | None]] = {}

    # -------------------------------------------------------------------------
    # Cache
    # -------------------------------------------------------------------------

    def cached(self, save_id: str) -> tuple[StorySummary | None, int]:
        return self._cache.get(save_id, (None, 0))

    def summary_for(self, save_id: str) -> StorySummary | None:
        return self.cached(save_id)[0]

    def merge(self, save_id: str, summary: StorySummary) -> bool:
        """Cache ``summary`` if it covers more messages than the cached one.

        Returns:
            True if the summary was applied.
        """
        _, current = self.cached(save_id)
        if summary.messages_summarized <= current:
            logger.debug(
                "Stale summary discarded",
                save_id=save_id,
                cached=current,
                incoming=summary.messages_summarized,
            )
            return False
        self._cache[save_id] = (summary, summary.messages_summarized)
        logger.info("Summary merged", save_id=save_id, messages=summary.messages_summarized)
        return True

    def clear(self, save_id: str | None = None) -> None:
        if save_id is None:
            self._cache.clear()
        else:
            self._cache.pop(save_id, None)

    # -------------------------------------------------------------------------
    # Prompt Context
    # -------------------------------------------------------------------------

    def build_prompt(
        self,
        log: tuple[StoryMessage, ...] | list[StoryMessage],
        summary: StorySummary | str | None = None,
    ) -> str:
        """Render the story context sent with each narrative request.

        Args:
            log: Full story log.
            summary: Running summary, if one exists.

        Returns:
            The summary section (if any) followed by the most recent entries.
        """
        text = summary.summary if isinstance(summary, StorySummary) else summary
        lines: list[str] = []
        if text:
            lines.extend([STORY_SO_FAR_HEADER, text, ""])
            recent_count = self.recent_with_summary
        else:
            recent_count = self.recent_without_summary

        recent = list(log)[-recent_count:] if recent_count else []
        if recent:
            lines.append(RECENT_EVENTS_HEADER)
            lines.extend(render_entry(message) for message in recent)
        return "\n".join(lines)

    def should_summarize(
        self,
        log: tuple[StoryMessage, ...] | list[StoryMessage],
        messages_summarized: int,
    ) -> bool:
        return len(log) - messages_summarized >= self.threshold

    # -------------------------------------------------------------------------
    # Summarization
    # -------------------------------------------------------------------------

    async def summarize(
        self,
        save_id: str,
        log: tuple[StoryMessage, ...] | list[StoryMessage],
    ) -> StorySummary | None:
        """Fold unsummarized messages into a new running summary.

        Does not touch the cache; callers decide whether to :meth:`merge`.

        Returns:
            The new summary, or None if there was nothing to summarize.

        Raises:
            ExternalServiceError: If the generator fails.
        """
        existing, covered = self.cached(save_id)
        pending = [m for m in list(log)[covered:] if is_relevant_for_summary(m)]
        if not pending:
            if existing is None:
                return None
            return existing.model_copy(
                update={"messages_summarized": len(log), "end_turn": max(len(log) - 1, 0)}
            )

        prompt = build_summary_prompt(pending, existing.summary if existing else None)
        text = clean_summary_text(await self._generator.generate(prompt))
        if not text:
            logger.warning("Empty summary returned", save_id=save_id)
            return None

        return StorySummary(
            save_id=save_id,
            summary=text,
            messages_summarized=len(log),
            start_turn=covered,
            end_turn=max(len(log) - 1, 0),
            is_running_summary=existing is not None,
        )

    def schedule(
        self,
        save_id: str,
        log: tuple[StoryMessage, ...] | list[StoryMessage],
    ) -> asyncio.Task[StorySummary | None] | None:
        """Start background summarization if the log has grown enough.

        Must be called from a running event loop. Returns immediately.

        Returns:
            The background task, or None if no summarization was needed.
        """
        _, covered = self.cached(save_id)
        if not self.should_summarize(log, covered):
            return None

        running = self._pending.get(save_id)
        if running is not None and not running.done():
            return running

        snapshot = tuple(log)
        task = asyncio.get_running_loop().create_task(self._run(save_id, snapshot))
        self._pending[save_id] = task
        logger.debug("Summarization scheduled", save_id=save_id, messages=len(snapshot))
        return task

    async def _run(self, save_id: str, log: tuple[StoryMessage, ...]) -> StorySummary | None:
        try:
            summary = await self.summarize(save_id, log)
        except Exception:
            logger.exception("Background summarization failed", save_id=save_id)
            return None
        finally:
            self._pending.pop(save_id, None)

        if summary is not None:
            self.merge(save_id, summary)
        return summary

    async def wait_pending(self) -> None:
        """Wait for all scheduled summarization tasks to finish."""
        tasks = list(self._pending.values())
        if tasks:
            await asyncio.gather(*tasks)


__all__ = [
    "is_relevant_for_summary",
    "build_summary_prompt",
    "clean_summary_text",
    "render_entry",
    "SummaryGenerator",
    "OpenAISummaryGenerator",
    "ContextSummarizer",
]
