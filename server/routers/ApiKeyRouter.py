from fastapi import APIRouter, Depends

from server.dependencies.auth import verify_api_key
from server.dependencies.services import get_api_key_service
from server.models.requests import ApiKeyCreateRequest
from services.api_keys.ApiKeyService import ApiKeyService
from shared.models.datastore import ApiKeyRecord

router = APIRouter(prefix="/api-keys", tags=["api-keys"], dependencies=[Depends(verify_api_key)])


@router.get("")
async def list_api_keys(
    user_id: str | None = None,
    reveal: bool = False,
    service: ApiKeyService = Depends(get_api_key_service),
) -> list[ApiKeyRecord]:
    """List saved API keys, newest first. Keys are masked unless reveal is set."""
    return await service.list_keys(user_id=user_id, reveal=reveal)


@router.post("")
async def create_api_key(
    body: ApiKeyCreateRequest,
    service: ApiKeyService = Depends(get_api_key_service),
) -> ApiKeyRecord:
    return await service.save_key(body.service_name, body.key, user_id=body.user_id)


@router.delete("/{key_id}")
async def delete_api_key(key_id: int, service: ApiKeyService = Depends(get_api_key_service)) -> dict:
    await service.delete_key(key_id)
    return {"status": "deleted", "id": key_id}
