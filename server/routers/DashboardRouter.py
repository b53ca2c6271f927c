from fastapi import APIRouter, Depends, File
from fastapi import UploadFile as IncomingFile

from server.dependencies.auth import verify_api_key
from server.dependencies.services import get_dashboard_service
from server.models.requests import ApiKeySubmitRequest, MessageRequest
from server.models.responses import ApiKeySubmitResponse, DashboardState, DeleteDocumentResponse, MessageResponse
from services.dashboard.DashboardService import DashboardService
from shared.models.document import DEFAULT_MIME_TYPE, UploadFile, UploadResult
from shared.models.notice import Notice

router = APIRouter(prefix="/dashboard", tags=["dashboard"], dependencies=[Depends(verify_api_key)])


def _build_state(dashboard: DashboardService, newest_first: bool = False) -> DashboardState:
    documents = dashboard.documents.get_documents()
    if newest_first:
        documents.reverse()
    return DashboardState(
        is_api_key_set=dashboard.credentials.is_set,
        is_ready=dashboard.is_ready(),
        is_uploading=dashboard.documents.is_uploading(),
        is_processing=dashboard.session.is_busy(),
        knowledge_base=dashboard.synchronizer.get_active_knowledge_base(),
        documents=documents,
        messages=dashboard.session.get_messages(),
    )


@router.get("")
async def get_dashboard(
    newest_first: bool = False,
    dashboard: DashboardService = Depends(get_dashboard_service),
) -> DashboardState:
    """Return the current dashboard state.

    Args:
        newest_first (bool): List documents newest first, as the document detail view does.
    """
    return _build_state(dashboard, newest_first=newest_first)


@router.post("/api-key")
async def submit_api_key(
    body: ApiKeySubmitRequest,
    dashboard: DashboardService = Depends(get_dashboard_service),
) -> ApiKeySubmitResponse:
    """Store a new knowledge-service API key and resync the knowledge base.

    A blank key is ignored and reported as not accepted.
    """
    accepted = await dashboard.do_submit_api_key(body.api_key)
    return ApiKeySubmitResponse(
        accepted=accepted,
        knowledge_base_ready=dashboard.synchronizer.get_active_knowledge_base() is not None,
    )


@router.post("/sync")
async def sync_knowledge_base(dashboard: DashboardService = Depends(get_dashboard_service)) -> DashboardState:
    """Re-resolve the knowledge base and reload its documents."""
    await dashboard.do_sync()
    return _build_state(dashboard)


@router.post("/documents")
async def upload_documents(
    files: list[IncomingFile] = File(...),
    dashboard: DashboardService = Depends(get_dashboard_service),
) -> UploadResult:
    """Upload files into the knowledge base, one after another in the given order."""
    local_files = []
    for incoming in files:
        content = await incoming.read()
        local_files.append(
            UploadFile(
                name=incoming.filename or "upload",
                content=content,
                mime_type=incoming.content_type or DEFAULT_MIME_TYPE,
                size=len(content),
            )
        )
    return await dashboard.do_upload(local_files)


@router.delete("/documents/{document_id}")
async def delete_document(
    document_id: str,
    dashboard: DashboardService = Depends(get_dashboard_service),
) -> DeleteDocumentResponse:
    return DeleteDocumentResponse(deleted_id=await dashboard.do_delete(document_id))


@router.post("/messages")
async def send_message(
    body: MessageRequest,
    dashboard: DashboardService = Depends(get_dashboard_service),
) -> MessageResponse:
    """Ask a question about the uploaded documents.

    Rejected submissions (busy session, no key, no documents) return no reply
    and leave a notice in GET /dashboard/notices.
    """
    reply = await dashboard.do_send_message(body.text)
    return MessageResponse(reply=reply, messages=dashboard.session.get_messages())


@router.get("/notices")
async def drain_notices(dashboard: DashboardService = Depends(get_dashboard_service)) -> list[Notice]:
    """Return and clear all pending notices."""
    return dashboard.notices.drain()
