from datetime import datetime, timezone
from typing import Literal

from pydantic import BaseModel, Field


class Notice(BaseModel):
    """A transient user-facing notification."""

    title: str
    description: str
    variant: Literal["default", "destructive"] = "default"
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
