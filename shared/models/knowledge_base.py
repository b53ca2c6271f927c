from pydantic import BaseModel

from shared.models.document import Document


class KnowledgeBase(BaseModel):
    """The remote container all documents and conversations are scoped to."""

    id: str
    name: str = ""


class KnowledgeBaseSnapshot(BaseModel):
    """A resolved knowledge base together with the documents it held at sync time."""

    knowledge_base: KnowledgeBase
    documents: list[Document] = []
    created: bool = False
