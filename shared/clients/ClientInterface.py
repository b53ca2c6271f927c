from abc import ABC, abstractmethod

import httpx
from httpx._types import QueryParamTypes, RequestContent, RequestData, RequestFiles
from typing import Any
from shared.models.config import EnvConfig

from shared.helper.HelperConfig import HelperConfig

DEFAULT_TIMEOUT = 30.0


class ClientRequestError(Exception):
    """A backend request failed on the network or answered with a non-2xx status.

    Attributes:
        url (str): The requested URL.
        status_code (int | None): HTTP status, None for network failures.
        body (str): Start of the response body, if there was one.
    """

    def __init__(self, message: str, url: str = "", status_code: int | None = None, body: str = ""):
        super().__init__(message)
        self.url = url
        self.status_code = status_code
        self.body = body

    @property
    def is_network_error(self) -> bool:
        return self.status_code is None


class ClientInterface(ABC):
    """Base of every backend client: env-driven config plus one shared httpx.AsyncClient.

    Subclasses name their client type ("kb", "datastore") and engine
    ("Elevenlabs", "Supabase"); engine settings are read from
    "{TYPE}_{ENGINE}_{KEY}" environment variables.
    """

    def __init__(self, helper_config: HelperConfig):
        self.logging = helper_config.get_logger()
        self._helper_config = helper_config
        self.timeout = helper_config.get_number_val(f"{self.get_client_type().upper()}_TIMEOUT", default=DEFAULT_TIMEOUT)

        self._client: httpx.AsyncClient | None = None
        self.validate_full_configuration()

    ##########################################
    ############### CHECKER ##################
    ##########################################

    def validate_full_configuration(self) -> None:
        """Resolve every required setting once so a missing one fails at construction.

        Raises:
            ValueError: If a required configuration value is missing or invalid.
        """
        for config in self._get_required_config():
            self.get_config_val(raw_key=config.env_key, default=config.default, val_type=config.val_type)

    def is_booted(self) -> bool:
        return self._client is not None

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def get_client_type(self) -> str:
        return self._get_client_type().lower()

    @abstractmethod
    def _get_client_type(self) -> str:
        """The kind of backend, e.g. "kb"."""
        pass

    def get_engine_name(self) -> str:
        return self._get_engine_name().lower()

    @abstractmethod
    def _get_engine_name(self) -> str:
        """The backend product, e.g. "Elevenlabs"."""
        pass

    ################ CONFIG ##################
    @abstractmethod
    def _get_required_config(self) -> list[EnvConfig]:
        """Settings this engine reads. An EnvConfig without default is mandatory."""
        pass

    def _get_config_key_name(self, raw_key: str) -> str:
        """E.g. "base_url" -> "KB_ELEVENLABS_BASE_URL"."""
        return f"{self.get_client_type()}_{self.get_engine_name()}_{raw_key}".upper()

    def get_config_val(self, raw_key: str, default: Any = None, val_type: str = "string") -> Any:
        """Read an engine setting.

        Args:
            raw_key (str): Key without the "{TYPE}_{ENGINE}_" prefix.
            default (Any): Fallback if unset. None makes the setting mandatory.
            val_type (str): "string", "number", "bool" or "list".
        """
        readers = {
            "string": self._helper_config.get_string_val,
            "number": self._helper_config.get_number_val,
            "bool": self._helper_config.get_bool_val,
            "list": self._helper_config.get_list_val,
        }
        if val_type not in readers:
            raise ValueError(
                f"Unsupported config value type '{val_type}' for '{raw_key}' in {self.get_client_type()} client '{self.get_engine_name()}'."
            )
        return readers[val_type](self._get_config_key_name(raw_key), default=default)

    ################ AUTH ##################
    @abstractmethod
    def _get_auth_header(self) -> dict:
        """Headers that authenticate a request. Empty if no credential is known yet."""
        pass

    ################ ENDPOINTS ##################
    @abstractmethod
    def _get_base_url(self) -> str:
        """Base URL all endpoint paths are appended to, e.g. "https://api.elevenlabs.io/v1"."""
        pass

    @abstractmethod
    def _get_endpoint_healthcheck(self) -> str:
        """A cheap GET path used to probe reachability."""
        pass

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def do_healthcheck(self) -> httpx.Response:
        return await self.do_request(method="GET", endpoint=self._get_endpoint_healthcheck())

    ##########################################
    ############ CORE REQUESTS ###############
    ##########################################

    async def boot(self, transport: httpx.AsyncBaseTransport | None = None) -> None:
        """Create the HTTP client. Tests pass an httpx.MockTransport here."""
        self._client = httpx.AsyncClient(timeout=self.timeout, transport=transport)

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    async def do_request(
        self,
        method: str = "GET",
        content: RequestContent | None = None,
        data: RequestData | None = None,
        files: RequestFiles | None = None,
        json: dict | list | None = None,
        params: QueryParamTypes | None = None,
        endpoint: str = "",
        additional_headers: dict | None = None,
        raise_on_error: bool = False,
    ) -> httpx.Response:
        """Send one request to the backend.

        At most one body argument is used, checked in the order content, data,
        files, json. httpx sets the matching Content-Type unless
        additional_headers overrides it.

        Args:
            endpoint: Path appended to the base URL.
            additional_headers: Merged over the auth headers.
            raise_on_error: Turn network failures and non-2xx answers into ClientRequestError.

        Raises:
            Exception: If boot() was not called.
            ClientRequestError: On failure, if raise_on_error is set.
            httpx.HTTPError: On network failure otherwise.
        """
        if self._client is None:
            raise Exception("HTTP client not initialised. Call boot() before making requests.")

        url = self._build_url(endpoint)
        headers = {**self._get_auth_header(), **(additional_headers or {})}
        body = self._pick_body(content=content, data=data, files=files, json=json)

        try:
            response = await self._client.request(method, url, headers=headers, params=params, timeout=self.timeout, **body)
        except httpx.HTTPError as exc:
            self.logging.error("Request %s %s failed: %s", method, url, exc)
            if raise_on_error:
                raise ClientRequestError(f"Request to {url} failed: {exc}", url=url) from exc
            raise

        if raise_on_error and not response.is_success:
            self.logging.error("Request %s %s answered %d: %s", method, url, response.status_code, response.text[:200])
            raise ClientRequestError(
                f"Request to {url} failed with status {response.status_code}",
                url=url,
                status_code=response.status_code,
                body=response.text[:500],
            )
        return response

    ##########################################
    ############### HELPERS ##################
    ##########################################

    def _build_url(self, endpoint: str) -> str:
        path = endpoint.strip().lstrip("/")
        return f"{self._get_base_url().rstrip('/')}/{path}" if path else self._get_base_url().rstrip("/")

    @staticmethod
    def _pick_body(**candidates) -> dict:
        for name in ("content", "data", "files", "json"):
            if candidates.get(name) is not None:
                return {name: candidates[name]}
        return {}
