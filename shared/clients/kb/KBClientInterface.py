from abc import abstractmethod
from typing import Any, Callable

import httpx

from shared.clients.ClientInterface import ClientInterface, ClientRequestError
from shared.helper.HelperConfig import HelperConfig
from shared.models.document import Document, UploadFile
from shared.models.knowledge_base import KnowledgeBase
from shared.models.message import ChatMessage, ConversationReply


class KBClientInterface(ClientInterface):
    """Client for a remote knowledge/chat service.

    All requests are scoped by the user's API key, which is set at runtime via
    set_api_key() rather than read from the environment.
    """

    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self._api_key: str = ""

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_client_type(self) -> str:
        return "kb"

    ################ AUTH ##################
    def set_api_key(self, api_key: str) -> None:
        """Replace the API key sent with every request."""
        self._api_key = api_key or ""

    def has_api_key(self) -> bool:
        return bool(self._api_key)

    ################ ENDPOINTS ##################
    @abstractmethod
    def _get_endpoint_knowledge_bases(self) -> str:
        """Returns the endpoint path for listing and creating knowledge bases (e.g. "/knowledge-bases")."""
        pass

    @abstractmethod
    def _get_endpoint_documents(self, knowledge_base_id: str) -> str:
        """Returns the endpoint path for listing the documents of a knowledge base."""
        pass

    @abstractmethod
    def _get_endpoint_document_upload(self, knowledge_base_id: str) -> str:
        """Returns the endpoint path for uploading a document into a knowledge base."""
        pass

    @abstractmethod
    def _get_endpoint_document_details(self, knowledge_base_id: str, document_id: str) -> str:
        """Returns the endpoint path addressing a single document (used for deletion)."""
        pass

    @abstractmethod
    def _get_endpoint_conversation(self, knowledge_base_id: str) -> str:
        """Returns the endpoint path for conversation requests against a knowledge base."""
        pass

    ################ PAYLOAD BUILDER ##################
    @abstractmethod
    def get_create_knowledge_base_payload(self, name: str, description: str) -> dict:
        """Build the request body for creating a knowledge base."""
        pass

    @abstractmethod
    def get_conversation_payload(self, query: str, history: list[ChatMessage]) -> dict:
        """Build the request body for a conversation turn.

        Args:
            query (str): The new user question.
            history (list[ChatMessage]): Prior turns, oldest first. Never contains system messages.

        Returns:
            dict: JSON-serialisable request body.
        """
        pass

    ##########################################
    ########### RESPONSE PARSER ##############
    ##########################################

    @abstractmethod
    def _parse_endpoint_knowledge_bases(self, response: dict) -> list[KnowledgeBase]:
        """Parse the knowledge-base listing, preserving the remote order."""
        pass

    @abstractmethod
    def _parse_endpoint_knowledge_base(self, response: dict) -> KnowledgeBase:
        """Parse a single knowledge-base record (e.g. the answer to a create request).

        Raises:
            ValueError: If the record carries no id.
        """
        pass

    @abstractmethod
    def _parse_endpoint_documents(self, response: dict) -> list[Document]:
        """Parse the document listing of a knowledge base into local documents."""
        pass

    @abstractmethod
    def _parse_endpoint_upload(self, response: dict) -> str | None:
        """Extract the server-assigned document id from an upload response, if present."""
        pass

    @abstractmethod
    def _parse_endpoint_conversation(self, response: dict) -> ConversationReply:
        """Extract the answer text and generation id from a conversation response."""
        pass

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def do_fetch_knowledge_bases(self) -> list[KnowledgeBase]:
        """Fetch all knowledge bases visible to the current API key.

        Raises:
            ClientRequestError: If the request fails.
        """
        resp = await self.do_request(method="GET", endpoint=self._get_endpoint_knowledge_bases(), raise_on_error=True)
        knowledge_bases = self._parse_response(resp, self._parse_endpoint_knowledge_bases)
        self.logging.debug("Fetched %d knowledge base(s) from %s", len(knowledge_bases), self._get_engine_name())
        return knowledge_bases

    async def do_create_knowledge_base(self, name: str, description: str) -> KnowledgeBase:
        """Create a new knowledge base.

        Raises:
            ClientRequestError: If the request fails or the response carries no id.
        """
        resp = await self.do_request(
            method="POST",
            endpoint=self._get_endpoint_knowledge_bases(),
            json=self.get_create_knowledge_base_payload(name, description),
            raise_on_error=True,
        )
        return self._parse_response(resp, self._parse_endpoint_knowledge_base)

    async def do_fetch_documents(self, knowledge_base_id: str) -> list[Document]:
        """Fetch the documents of a knowledge base.

        Raises:
            ClientRequestError: If the request fails.
        """
        resp = await self.do_request(method="GET", endpoint=self._get_endpoint_documents(knowledge_base_id), raise_on_error=True)
        documents = self._parse_response(resp, self._parse_endpoint_documents)
        self.logging.debug("Fetched %d document(s) of knowledge base %s", len(documents), knowledge_base_id)
        return documents

    async def do_upload_document(self, knowledge_base_id: str, file: UploadFile) -> str | None:
        """Upload one file as multipart form field "file".

        Returns:
            str | None: The server-assigned document id, None if the response carried none.

        Raises:
            ClientRequestError: If the request fails.
        """
        resp = await self.do_request(
            method="POST",
            endpoint=self._get_endpoint_document_upload(knowledge_base_id),
            files={"file": (file.name, file.content, file.mime_type)},
            raise_on_error=True,
        )
        return self._parse_response(resp, self._parse_endpoint_upload)

    async def do_delete_document(self, knowledge_base_id: str, document_id: str) -> None:
        """Delete a document from a knowledge base.

        Raises:
            ClientRequestError: If the request fails.
        """
        await self.do_request(
            method="DELETE",
            endpoint=self._get_endpoint_document_details(knowledge_base_id, document_id),
            raise_on_error=True,
        )

    async def do_converse(self, knowledge_base_id: str, query: str, history: list[ChatMessage]) -> ConversationReply:
        """Send a question plus prior turns and return the remote answer.

        Raises:
            ClientRequestError: If the request fails.
        """
        resp = await self.do_request(
            method="POST",
            endpoint=self._get_endpoint_conversation(knowledge_base_id),
            json=self.get_conversation_payload(query, history),
            raise_on_error=True,
        )
        return self._parse_response(resp, self._parse_endpoint_conversation)

    ##########################################
    ############### HELPERS ##################
    ##########################################

    def _parse_response(self, resp: httpx.Response, parser: Callable[[dict], Any]) -> Any:
        """Decode a 2xx JSON object and run an endpoint parser on it.

        Raises:
            ClientRequestError: If the body is not a JSON object or does not fit the parser.
        """
        try:
            body = resp.json()
            if not isinstance(body, dict):
                raise ValueError("expected a JSON object, got %s" % type(body).__name__)
            return parser(body)
        # pydantic's ValidationError and JSONDecodeError are ValueErrors
        except (ValueError, TypeError, AttributeError, KeyError) as exc:
            url = str(resp.request.url)
            self.logging.error("Unexpected response from %s (status %d): %s", url, resp.status_code, exc)
            raise ClientRequestError(
                f"Unexpected response from {url}: {exc}",
                url=url,
                status_code=resp.status_code,
                body=resp.text[:500],
            ) from exc
