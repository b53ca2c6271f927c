"""Pydantic models for the conversation transcript."""

from typing import Literal

from pydantic import BaseModel, ConfigDict

USER_ROLE = "user"
ASSISTANT_ROLE = "assistant"
SYSTEM_ROLE = "system"
Role = Literal["user", "assistant", "system"]


class ChatMessage(BaseModel):
    """A single transcript entry. Messages are never edited after creation."""

    model_config = ConfigDict(frozen=True)

    id: str
    role: Role
    content: str


class ConversationReply(BaseModel):
    """The parts of a remote conversation response the session uses."""

    text: str | None = None
    generation_id: str | None = None
