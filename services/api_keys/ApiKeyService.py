"""Per-user API keys kept in the backend data store."""

import httpx

from shared.clients.ClientInterface import ClientRequestError
from shared.clients.datastore.DataStoreClientInterface import DataStoreClientInterface, DataStoreError
from shared.helper.HelperConfig import HelperConfig
from shared.models.datastore import ApiKeyRecord

SUPPORTED_SERVICES = ("gemini", "openai", "mistral", "pica")


def mask_key(key: str) -> str:
    """Show only the first and last four characters of a key."""
    if len(key) <= 8:
        return "*" * len(key)
    return key[:4] + "*" * (len(key) - 8) + key[-4:]


class ApiKeyService:
    def __init__(self, helper_config: HelperConfig, datastore_client: DataStoreClientInterface) -> None:
        self.logging = helper_config.get_logger()
        self._datastore = datastore_client

    async def list_keys(self, user_id: str | None = None, reveal: bool = False) -> list[ApiKeyRecord]:
        """List stored keys, newest first. Keys are masked unless reveal is True."""
        try:
            records = await self._datastore.do_fetch_api_keys(user_id)
        except (ClientRequestError, httpx.HTTPError) as exc:
            self.logging.error("Error fetching API keys: %s", exc)
            raise DataStoreError("Failed to load API keys") from exc
        if reveal:
            return records
        return [record.model_copy(update={"key": mask_key(record.key)}) for record in records]

    async def save_key(self, service_name: str, key: str, user_id: str | None = None) -> ApiKeyRecord:
        service_name = (service_name or "").strip().lower()
        key = (key or "").strip()
        if not service_name or not key:
            raise DataStoreError("Please provide both service name and API key", status_code=400)
        if service_name not in SUPPORTED_SERVICES:
            raise DataStoreError(
                "Unsupported service '%s'. Choose one of: %s" % (service_name, ", ".join(SUPPORTED_SERVICES)),
                status_code=400,
            )
        try:
            record = await self._datastore.do_create_api_key(service_name, key, user_id=user_id)
        except (ClientRequestError, httpx.HTTPError, ValueError) as exc:
            self.logging.error("Error saving API key: %s", exc)
            raise DataStoreError("Failed to save API key") from exc
        self.logging.info("Saved API key %d for service '%s'.", record.id, service_name)
        return record.model_copy(update={"key": mask_key(record.key)})

    async def delete_key(self, key_id: int) -> None:
        try:
            await self._datastore.do_delete_api_key(key_id)
        except (ClientRequestError, httpx.HTTPError) as exc:
            self.logging.error("Error deleting API key %d: %s", key_id, exc)
            raise DataStoreError("Failed to delete API key") from exc
        self.logging.info("Deleted API key %d.", key_id)
