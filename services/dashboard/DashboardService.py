"""Dashboard orchestration.

Wires credential, knowledge base, documents and conversation together the
way the chat page uses them: a new key triggers a sync, uploads and
deletions are announced in the transcript, and chatting is only possible
with a key and at least one document.
"""

from shared.clients.kb.KBClientInterface import KBClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.helper.NoticeChannel import NoticeChannel
from shared.models.document import UploadFile, UploadResult
from shared.models.message import ChatMessage
from shared.storage.CredentialStoreInterface import CredentialStoreInterface
from services.conversation.ConversationSession import ConversationSession
from services.credential.CredentialHolder import CredentialHolder
from services.documents.DocumentCoordinator import DocumentCoordinator
from services.knowledge_sync.KnowledgeBaseSynchronizer import KnowledgeBaseSynchronizer


class DashboardService:
    """Single-user dashboard state behind the presentation API."""

    def __init__(
        self,
        helper_config: HelperConfig,
        kb_client: KBClientInterface,
        credential_store: CredentialStoreInterface,
        notices: NoticeChannel | None = None,
        welcome_message: str | None = None,
    ) -> None:
        self.logging = helper_config.get_logger()
        self.notices = notices or NoticeChannel(helper_config)
        self.credentials = CredentialHolder(helper_config, store=credential_store)
        self.synchronizer = KnowledgeBaseSynchronizer(helper_config, kb_client=kb_client, notices=self.notices)
        self.documents = DocumentCoordinator(helper_config, kb_client=kb_client, notices=self.notices)
        session_kwargs = {"welcome_message": welcome_message} if welcome_message is not None else {}
        self.session = ConversationSession(helper_config, kb_client=kb_client, notices=self.notices, **session_kwargs)
        self._kb_client = kb_client

        self.credentials.subscribe(self._on_credential_changed)

    ##########################################
    ################ GETTER ##################
    ##########################################

    def is_ready(self) -> bool:
        """Chat is enabled once a key is set and the knowledge base holds a document."""
        return self.credentials.is_set and len(self.documents.get_documents()) > 0

    ##########################################
    ################ CORE ####################
    ##########################################

    async def do_startup(self) -> None:
        """Load a stored key and, if there is one, sync its knowledge base."""
        if self.credentials.load():
            await self.do_sync()

    async def do_submit_api_key(self, value: str | None) -> bool:
        """Store a new key and resync. Returns False for blank input."""
        if not self.credentials.submit(value):
            return False
        await self.do_sync()
        return True

    async def do_sync(self) -> bool:
        """(Re)resolve the knowledge base for the current key.

        Returns:
            bool: True if a knowledge base is active afterwards.
        """
        if not self.credentials.is_set:
            self._notify_missing_key()
            return False
        snapshot = await self.synchronizer.initialize(self.credentials.api_key)
        if snapshot is None:
            self.documents.reset(None)
            self.session.set_knowledge_base(None)
            return False
        self.documents.reset(snapshot.knowledge_base.id, snapshot.documents)
        self.session.set_knowledge_base(snapshot.knowledge_base.id)
        return True

    async def do_upload(self, files: list[UploadFile]) -> UploadResult:
        if not self.credentials.is_set:
            self._notify_missing_key()
            return UploadResult()

        result = await self.documents.upload(files)
        if result.added:
            names = ", ".join(doc.name for doc in result.added)
            self.session.add_system_message(
                f"{len(result.added)} new document(s) added to the knowledge base: {names}"
            )
        return result

    async def do_delete(self, document_id: str) -> str | None:
        if not self.credentials.is_set:
            self._notify_missing_key()
            return None

        document = self.documents.get_document(document_id)
        deleted_id = await self.documents.delete(document_id)
        if deleted_id and document:
            self.session.add_system_message(f"Document removed from knowledge base: {document.name}")
        return deleted_id

    async def do_send_message(self, text: str) -> ChatMessage | None:
        if not self.credentials.is_set:
            self._notify_missing_key()
            return None
        if not self.documents.get_documents():
            self._notify_no_documents()
            return None
        return await self.session.submit(text)

    ##########################################
    ############### HELPERS ##################
    ##########################################

    def _on_credential_changed(self, api_key: str) -> None:
        # requests must not go out with the previous key while the resync runs
        self._kb_client.set_api_key(api_key)
        self.documents.reset(None)
        self.session.set_knowledge_base(None)

    def _notify_missing_key(self) -> None:
        self.notices.notify("Error", "Please set your ElevenLabs API key first.", destructive=True)

    def _notify_no_documents(self) -> None:
        self.notices.notify(
            "No Documents",
            "Upload at least one document before asking questions.",
            destructive=True,
        )
