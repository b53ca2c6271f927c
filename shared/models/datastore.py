"""Pydantic models for the backend data store tables."""

from datetime import datetime

from pydantic import BaseModel


class ApiKeyRecord(BaseModel):
    """A row of the api_keys table."""

    id: int
    service_name: str
    key: str
    created_at: datetime | None = None
    last_pdf_generated: datetime | None = None
    user_id: str | None = None


class ResumeRecord(BaseModel):
    """A row of the resumes table. pdf_url is the object path inside the resumes bucket."""

    id: int
    job_id: str
    pdf_url: str
    content: str | None = None
    created_at: datetime | None = None
    user_id: str | None = None
