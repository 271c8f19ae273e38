from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Literal

from pydantic import BaseModel


class CacheState(BaseModel):
    """Contents of ``state.json``, written only after a successful swap."""

    updated_at: datetime
    generation: str  # Directory name the live pointer was swapped to
    source_url: str | None = None


@dataclass(frozen=True)
class UpdateOutcome:
    """Result of an update flow. ``reason`` is set only when ``status`` is ``failed``."""

    status: Literal["up_to_date", "updated", "failed"]
    reason: str | None = None
    suggestion: str = ""

    @property
    def failed(self) -> bool:
        return self.status == "failed"
