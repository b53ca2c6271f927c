"""Knowledge base synchronisation.

Resolves exactly one remote knowledge base for the current API key (reusing
the first existing one, creating one otherwise) and mirrors its documents.
"""

import httpx

from shared.clients.ClientInterface import ClientRequestError
from shared.clients.kb.KBClientInterface import KBClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.helper.NoticeChannel import NoticeChannel
from shared.models.knowledge_base import KnowledgeBase, KnowledgeBaseSnapshot

DEFAULT_KB_NAME = "FileChatSage KB"
DEFAULT_KB_DESCRIPTION = "Knowledge base for FileChatSage documents"


class KnowledgeBaseSynchronizer:
    """Obtains or creates the knowledge base of a credential and lists its documents."""

    def __init__(
        self,
        helper_config: HelperConfig,
        kb_client: KBClientInterface,
        notices: NoticeChannel,
    ) -> None:
        self.logging = helper_config.get_logger()
        self._kb_client = kb_client
        self._notices = notices
        self._kb_name = helper_config.get_string_val("KB_DEFAULT_NAME", default=DEFAULT_KB_NAME)
        self._kb_description = helper_config.get_string_val("KB_DEFAULT_DESCRIPTION", default=DEFAULT_KB_DESCRIPTION)
        self._active: KnowledgeBase | None = None

    def get_active_knowledge_base(self) -> KnowledgeBase | None:
        return self._active

    ##########################################
    ################ CORE ####################
    ##########################################

    async def initialize(self, credential: str) -> KnowledgeBaseSnapshot | None:
        """Resolve the knowledge base for a credential and fetch its documents.

        Failures are reported through the notice channel; nothing is raised.

        Args:
            credential (str): The API key to scope all requests with.

        Returns:
            KnowledgeBaseSnapshot | None: The resolved knowledge base and its documents,
            None if any request failed.
        """
        self._active = None
        self._kb_client.set_api_key(credential)
        try:
            knowledge_base, created = await self._resolve_knowledge_base()
            documents = await self._kb_client.do_fetch_documents(knowledge_base.id)
        except (ClientRequestError, httpx.HTTPError, ValueError) as exc:
            self.logging.error("Failed to initialize knowledge base: %s", exc)
            self._notices.notify(
                "Error",
                "Failed to initialize knowledge base. Please try again.",
                destructive=True,
            )
            return None

        self._active = knowledge_base
        self.logging.info(
            "Knowledge base '%s' (%s) ready with %d document(s).",
            knowledge_base.name,
            knowledge_base.id,
            len(documents),
        )
        return KnowledgeBaseSnapshot(knowledge_base=knowledge_base, documents=documents, created=created)

    ##########################################
    ############### HELPERS ##################
    ##########################################

    async def _resolve_knowledge_base(self) -> tuple[KnowledgeBase, bool]:
        """Return the first existing knowledge base, creating one if there is none.

        Returns:
            tuple[KnowledgeBase, bool]: The knowledge base and whether it was just created.
        """
        existing = await self._kb_client.do_fetch_knowledge_bases()
        if existing:
            if len(existing) > 1:
                self.logging.debug("Found %d knowledge bases, using the first one.", len(existing))
            return existing[0], False

        self.logging.info("No knowledge base found. Creating '%s'.", self._kb_name)
        created = await self._kb_client.do_create_knowledge_base(self._kb_name, self._kb_description)
        return created, True
