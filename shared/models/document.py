"""Pydantic models for knowledge-base documents.

Hierarchy:
  Document:     a document that lives in the remote knowledge base, as mirrored locally.
  UploadFile:   a local file handed to the coordinator for upload.
  UploadResult: outcome of one upload batch.
"""

from datetime import datetime, timezone

from pydantic import BaseModel, Field

UNKNOWN_DOCUMENT_NAME = "Unknown Document"
DEFAULT_MIME_TYPE = "application/octet-stream"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Document(BaseModel):
    """A document of the active knowledge base.

    Only created after the remote side confirmed it, either because it was
    listed by the knowledge base or because an upload returned a document id.
    """

    id: str
    name: str = UNKNOWN_DOCUMENT_NAME
    size: int = Field(default=0, ge=0)
    mime_type: str = DEFAULT_MIME_TYPE
    uploaded_at: datetime = Field(default_factory=_utcnow)


class UploadFile(BaseModel):
    """A local file selected for upload."""

    name: str
    content: bytes
    mime_type: str = DEFAULT_MIME_TYPE
    size: int | None = None

    def get_size(self) -> int:
        return self.size if self.size is not None else len(self.content)


class UploadResult(BaseModel):
    """Outcome of DocumentCoordinator.upload().

    Attributes:
        added: Documents appended to the visible list (empty on any failure).
        failed: True if a remote call failed and the batch was abandoned.
        failed_file: Name of the file whose upload failed.
        failed_index: Zero-based position of that file in the batch.
        orphaned: Documents confirmed remotely but not shown locally (batch failed or the knowledge base changed).
        partial: True if at least one file was confirmed before the failure.
        error: Error text of the failed request.
    """

    added: list[Document] = []
    failed: bool = False
    failed_file: str | None = None
    failed_index: int | None = None
    orphaned: list[Document] = []
    partial: bool = False
    error: str | None = None
