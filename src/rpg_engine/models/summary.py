"""Running story summary used to keep prompts bounded."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field


class StorySummary(BaseModel):
    """Condensed story so far for one save.

    A summary is replaced wholesale on each successful re-summarization;
    ``messages_summarized`` never decreases for a given save.

    Attributes:
        save_id: Save this summary belongs to.
        summary: Summary text.
        messages_summarized: Story-log length covered by the summary.
        start_turn: First log index of the latest summarized batch.
        end_turn: Last log index covered.
        is_running_summary: Whether the text folds in an earlier summary.
        created_at: When the summary was produced.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    save_id: str
    summary: str
    messages_summarized: Annotated[int, Field(ge=0)]
    start_turn: Annotated[int, Field(ge=0)] = 0
    end_turn: Annotated[int, Field(ge=0)] = 0
    is_running_summary: bool = False
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


__all__ = [
    "StorySummary",
]
