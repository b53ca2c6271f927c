from datetime import datetime, timezone

from shared.clients.kb.KBClientInterface import KBClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.models.config import EnvConfig
from shared.models.document import DEFAULT_MIME_TYPE, UNKNOWN_DOCUMENT_NAME, Document
from shared.models.knowledge_base import KnowledgeBase
from shared.models.message import ASSISTANT_ROLE, ChatMessage, ConversationReply

DEFAULT_BASE_URL = "https://api.elevenlabs.io/v1"


class KBClientElevenlabs(KBClientInterface):
    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self._base_url = self.get_config_val("BASE_URL", default=DEFAULT_BASE_URL, val_type="string")

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_engine_name(self) -> str:
        return "Elevenlabs"

    ################ CONFIG ##################
    def _get_required_config(self) -> list[EnvConfig]:
        return [
            EnvConfig(env_key="BASE_URL", val_type="string", default=DEFAULT_BASE_URL),
        ]

    ################ AUTH ##################
    def _get_auth_header(self) -> dict:
        if self._api_key:
            return {"xi-api-key": self._api_key}
        return {}

    ################ ENDPOINTS ##################
    def _get_base_url(self) -> str:
        return self._base_url

    def _get_endpoint_healthcheck(self) -> str:
        return "/knowledge-bases"

    def _get_endpoint_knowledge_bases(self) -> str:
        return "/knowledge-bases"

    def _get_endpoint_documents(self, knowledge_base_id: str) -> str:
        return f"/knowledge-bases/{knowledge_base_id}/documents"

    def _get_endpoint_document_upload(self, knowledge_base_id: str) -> str:
        return f"/knowledge-bases/{knowledge_base_id}/documents/create"

    def _get_endpoint_document_details(self, knowledge_base_id: str, document_id: str) -> str:
        return f"/knowledge-bases/{knowledge_base_id}/documents/{document_id}"

    def _get_endpoint_conversation(self, knowledge_base_id: str) -> str:
        return f"/knowledge-bases/{knowledge_base_id}/conversation"

    ################ PAYLOAD BUILDER ##################
    def get_create_knowledge_base_payload(self, name: str, description: str) -> dict:
        return {"name": name, "description": description}

    def get_conversation_payload(self, query: str, history: list[ChatMessage]) -> dict:
        """Build the conversation request body.

        ElevenLabs names the assistant side "agent" in conversation history.

        Returns:
            dict: {"query": "...", "conversation_history": [{"role": ..., "message": ...}]}
        """
        return {
            "query": query,
            "conversation_history": [
                {
                    "role": "agent" if msg.role == ASSISTANT_ROLE else msg.role,
                    "message": msg.content,
                }
                for msg in history
            ],
        }

    ##########################################
    ########### RESPONSE PARSER ##############
    ##########################################

    def _parse_endpoint_knowledge_bases(self, response: dict) -> list[KnowledgeBase]:
        knowledge_bases = []
        for item in response.get("knowledge_bases") or []:
            if not isinstance(item, dict):
                self.logging.warning("Skipping malformed knowledge base record: %r", item)
                continue
            try:
                knowledge_bases.append(self._parse_endpoint_knowledge_base(item))
            except ValueError as e:
                self.logging.warning("Skipping knowledge base record without id: %s", e)
        return knowledge_bases

    def _parse_endpoint_knowledge_base(self, response: dict) -> KnowledgeBase:
        # older responses name the id "knowledge_base_id"
        kb_id = response.get("id") or response.get("knowledge_base_id")
        if not kb_id:
            raise ValueError("Knowledge base record carries no id. Keys: %s" % list(response.keys()))
        return KnowledgeBase(id=str(kb_id), name=response.get("name") or "")

    def _parse_endpoint_documents(self, response: dict) -> list[Document]:
        documents = []
        for item in response.get("documents") or []:
            doc_id = item.get("id") if isinstance(item, dict) else None
            if doc_id is None:
                self.logging.warning("Skipping document record without id: %s", item)
                continue
            documents.append(self._parse_endpoint_document(item))
        return documents

    def _parse_endpoint_document(self, item: dict) -> Document:
        """Map one remote document record to the local model, filling in defaults."""
        return Document(
            id=str(item["id"]),
            name=item.get("name") or UNKNOWN_DOCUMENT_NAME,
            size=item.get("size") or 0,
            mime_type=item.get("type") or DEFAULT_MIME_TYPE,
            uploaded_at=item.get("upload_date") or datetime.now(timezone.utc),
        )

    def _parse_endpoint_upload(self, response: dict) -> str | None:
        doc_id = response.get("document_id")
        return str(doc_id) if doc_id else None

    def _parse_endpoint_conversation(self, response: dict) -> ConversationReply:
        text = response.get("answer") or response.get("text") or None
        generation_id = response.get("generation_id")
        return ConversationReply(text=text, generation_id=str(generation_id) if generation_id else None)
