from shared.clients.datastore.DataStoreClientInterface import DataStoreClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.models.config import EnvConfig


class DataStoreClientSupabase(DataStoreClientInterface):
    """Supabase data store: PostgREST tables under /rest/v1, object storage under /storage/v1."""

    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self._base_url = self.get_config_val("BASE_URL", default=None, val_type="string")
        self._api_key = self.get_config_val("API_KEY", default=None, val_type="string")

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_engine_name(self) -> str:
        return "Supabase"

    ################ CONFIG ##################
    def _get_required_config(self) -> list[EnvConfig]:
        return [
            EnvConfig(env_key="BASE_URL", val_type="string", default=None),
            EnvConfig(env_key="API_KEY", val_type="string", default=None),
        ]

    ################ AUTH ##################
    def _get_auth_header(self) -> dict:
        return {"apikey": self._api_key, "Authorization": f"Bearer {self._api_key}"}

    ################ ENDPOINTS ##################
    def _get_base_url(self) -> str:
        return self._base_url

    def _get_endpoint_healthcheck(self) -> str:
        return "/rest/v1/"

    def _get_endpoint_table(self, table: str) -> str:
        return f"/rest/v1/{table}"

    def _get_endpoint_storage_object(self, bucket: str, path: str) -> str:
        return f"/storage/v1/object/{bucket}/{path.lstrip('/')}"

    ################ QUERY BUILDER ##################
    def _get_select_params(self, filters: dict | None = None, order_by: str | None = None, descending: bool = True) -> dict:
        params = {"select": "*"}
        params.update(self._get_filter_params(filters or {}))
        if order_by:
            params["order"] = f"{order_by}.{'desc' if descending else 'asc'}"
        return params

    def _get_filter_params(self, filters: dict) -> dict:
        # PostgREST operator syntax: column=eq.value
        return {column: f"eq.{value}" for column, value in filters.items()}

    def _get_insert_headers(self) -> dict:
        return {"Prefer": "return=representation"}

    def _parse_inserted_row(self, response: list | dict) -> dict:
        if isinstance(response, list):
            if not response:
                raise ValueError("Insert returned no row.")
            return response[0]
        return response
