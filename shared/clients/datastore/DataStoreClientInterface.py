from abc import abstractmethod

from shared.clients.ClientInterface import ClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.models.datastore import ApiKeyRecord, ResumeRecord

TABLE_API_KEYS = "api_keys"
TABLE_RESUMES = "resumes"
BUCKET_RESUMES = "resumes"


class DataStoreClientInterface(ClientInterface):
    """Client for a backend-as-a-service data store: REST tables plus object storage."""

    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_client_type(self) -> str:
        return "datastore"

    ################ ENDPOINTS ##################
    @abstractmethod
    def _get_endpoint_table(self, table: str) -> str:
        """Returns the endpoint path for row operations on a table (e.g. "/rest/v1/resumes")."""
        pass

    @abstractmethod
    def _get_endpoint_storage_object(self, bucket: str, path: str) -> str:
        """Returns the endpoint path of a stored object (e.g. "/storage/v1/object/resumes/u1/a.html")."""
        pass

    ################ QUERY BUILDER ##################
    @abstractmethod
    def _get_select_params(self, filters: dict | None = None, order_by: str | None = None, descending: bool = True) -> dict:
        """Build the query parameters of a row selection.

        Args:
            filters (dict | None): Column equality filters.
            order_by (str | None): Column to sort by.
            descending (bool): Sort direction.
        """
        pass

    @abstractmethod
    def _get_filter_params(self, filters: dict) -> dict:
        """Build the query parameters that restrict an update/delete to matching rows."""
        pass

    @abstractmethod
    def _get_insert_headers(self) -> dict:
        """Extra headers that make an insert return the created row."""
        pass

    @abstractmethod
    def _parse_inserted_row(self, response: list | dict) -> dict:
        """Extract the created row from an insert response."""
        pass

    ##########################################
    ############ GENERIC REQUESTS ############
    ##########################################

    async def do_select(self, table: str, filters: dict | None = None, order_by: str | None = None, descending: bool = True) -> list[dict]:
        resp = await self.do_request(
            method="GET",
            endpoint=self._get_endpoint_table(table),
            params=self._get_select_params(filters=filters, order_by=order_by, descending=descending),
            raise_on_error=True,
        )
        return resp.json() or []

    async def do_insert(self, table: str, row: dict) -> dict:
        resp = await self.do_request(
            method="POST",
            endpoint=self._get_endpoint_table(table),
            json=row,
            additional_headers=self._get_insert_headers(),
            raise_on_error=True,
        )
        return self._parse_inserted_row(resp.json())

    async def do_delete(self, table: str, filters: dict) -> None:
        if not filters:
            raise ValueError("Refusing to delete from '%s' without a filter." % table)
        await self.do_request(
            method="DELETE",
            endpoint=self._get_endpoint_table(table),
            params=self._get_filter_params(filters),
            raise_on_error=True,
        )

    async def do_upload_object(self, bucket: str, path: str, content: bytes, content_type: str) -> None:
        await self.do_request(
            method="POST",
            endpoint=self._get_endpoint_storage_object(bucket, path),
            content=content,
            additional_headers={"Content-Type": content_type},
            raise_on_error=True,
        )

    async def do_download_object(self, bucket: str, path: str) -> bytes:
        resp = await self.do_request(method="GET", endpoint=self._get_endpoint_storage_object(bucket, path), raise_on_error=True)
        return resp.content

    async def do_remove_object(self, bucket: str, path: str) -> None:
        await self.do_request(method="DELETE", endpoint=self._get_endpoint_storage_object(bucket, path), raise_on_error=True)

    ##########################################
    ############# TABLE REQUESTS #############
    ##########################################

    ################ API KEYS ##################
    async def do_fetch_api_keys(self, user_id: str | None = None) -> list[ApiKeyRecord]:
        """Fetch stored API keys, newest first."""
        rows = await self.do_select(TABLE_API_KEYS, filters={"user_id": user_id} if user_id else None, order_by="created_at")
        return [ApiKeyRecord(**row) for row in rows]

    async def do_create_api_key(self, service_name: str, key: str, user_id: str | None = None) -> ApiKeyRecord:
        row: dict = {"service_name": service_name, "key": key}
        if user_id:
            row["user_id"] = user_id
        return ApiKeyRecord(**await self.do_insert(TABLE_API_KEYS, row))

    async def do_delete_api_key(self, key_id: int) -> None:
        await self.do_delete(TABLE_API_KEYS, {"id": key_id})

    ################ RESUMES ##################
    async def do_fetch_resumes(self, user_id: str | None = None) -> list[ResumeRecord]:
        """Fetch generated resumes, newest first."""
        rows = await self.do_select(TABLE_RESUMES, filters={"user_id": user_id} if user_id else None, order_by="created_at")
        return [ResumeRecord(**row) for row in rows]

    async def do_fetch_resume(self, resume_id: int) -> ResumeRecord | None:
        rows = await self.do_select(TABLE_RESUMES, filters={"id": resume_id}, order_by=None)
        return ResumeRecord(**rows[0]) if rows else None

    async def do_create_resume(self, user_id: str, job_id: str, pdf_url: str, content: str) -> ResumeRecord:
        row = {"user_id": user_id, "job_id": job_id, "pdf_url": pdf_url, "content": content}
        return ResumeRecord(**await self.do_insert(TABLE_RESUMES, row))

    async def do_delete_resume(self, resume_id: int) -> None:
        await self.do_delete(TABLE_RESUMES, {"id": resume_id})


class DataStoreError(Exception):
    """A data store operation failed. status_code is the HTTP status to report to the caller."""

    def __init__(self, message: str, status_code: int = 500):
        super().__init__(message)
        self.status_code = status_code
