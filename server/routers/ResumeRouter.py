import mimetypes

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse, Response

from server.dependencies.auth import verify_api_key
from server.dependencies.services import get_resume_service
from server.models.requests import GeneratePdfRequest
from services.resumes.ResumeService import ResumeService
from shared.models.datastore import ResumeRecord

router = APIRouter(tags=["resumes"], dependencies=[Depends(verify_api_key)])


@router.get("/resumes")
async def list_resumes(user_id: str | None = None, service: ResumeService = Depends(get_resume_service)) -> list[ResumeRecord]:
    """List generated resumes, newest first."""
    return await service.list_resumes(user_id=user_id)


@router.get("/resumes/{resume_id}/download")
async def download_resume(resume_id: int, service: ResumeService = Depends(get_resume_service)) -> Response:
    file_name, content = await service.download(resume_id)
    media_type = mimetypes.guess_type(file_name)[0] or "application/octet-stream"
    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{file_name}"'},
    )


@router.delete("/resumes/{resume_id}")
async def delete_resume(resume_id: int, service: ResumeService = Depends(get_resume_service)) -> dict:
    await service.delete(resume_id)
    return {"status": "deleted", "id": resume_id}


@router.post("/functions/generate-pdf")
async def generate_pdf(body: GeneratePdfRequest, service: ResumeService = Depends(get_resume_service)) -> JSONResponse:
    """Render and store a resume for a job.

    Returns {success, resume, fileName}; errors come back as {error} with status 400 or 500.
    """
    result = await service.generate(body.text, body.jobId, body.userId)
    return JSONResponse(content=result)
