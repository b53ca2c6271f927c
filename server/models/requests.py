from pydantic import BaseModel


class ApiKeySubmitRequest(BaseModel):
    api_key: str = ""


class MessageRequest(BaseModel):
    text: str


class ApiKeyCreateRequest(BaseModel):
    service_name: str = ""
    key: str = ""
    user_id: str | None = None


class GeneratePdfRequest(BaseModel):
    """Body of the generate-pdf function. Fields are validated by the service to return a 400."""

    text: str | None = None
    jobId: str | None = None
    userId: str | None = None
