"""FastAPI dependencies resolving the services stored on app.state."""

from fastapi import HTTPException, Request

from services.api_keys.ApiKeyService import ApiKeyService
from services.dashboard.DashboardService import DashboardService
from services.resumes.ResumeService import ResumeService


def get_dashboard_service(request: Request) -> DashboardService:
    return request.app.state.dashboard_service


def get_api_key_service(request: Request) -> ApiKeyService:
    service = getattr(request.app.state, "api_key_service", None)
    if service is None:
        raise HTTPException(status_code=503, detail="No data store configured.")
    return service


def get_resume_service(request: Request) -> ResumeService:
    service = getattr(request.app.state, "resume_service", None)
    if service is None:
        raise HTTPException(status_code=503, detail="No data store configured.")
    return service
