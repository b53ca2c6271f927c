from pydantic import BaseModel

from shared.models.document import Document
from shared.models.knowledge_base import KnowledgeBase
from shared.models.message import ChatMessage


class DashboardState(BaseModel):
    """Everything the dashboard renders."""

    is_api_key_set: bool
    is_ready: bool
    is_uploading: bool
    is_processing: bool
    knowledge_base: KnowledgeBase | None = None
    documents: list[Document]
    messages: list[ChatMessage]


class ApiKeySubmitResponse(BaseModel):
    accepted: bool
    knowledge_base_ready: bool


class DeleteDocumentResponse(BaseModel):
    deleted_id: str | None = None


class MessageResponse(BaseModel):
    reply: ChatMessage | None = None
    messages: list[ChatMessage]
