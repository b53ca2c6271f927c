"""Document-grounded conversation session.

Keeps an append-only transcript and exchanges messages with the remote
conversation endpoint of the active knowledge base. A session sends at most
one message at a time: submissions while a request is in flight are rejected,
not queued.
"""

import time
from enum import Enum

import httpx

from shared.clients.ClientInterface import ClientRequestError
from shared.clients.kb.KBClientInterface import KBClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.helper.NoticeChannel import NoticeChannel
from shared.models.message import ASSISTANT_ROLE, SYSTEM_ROLE, USER_ROLE, ChatMessage, Role

HISTORY_WINDOW = 10
WELCOME_MESSAGE = (
    "Hello! I'm ready to help you chat with your documents. "
    "Upload some files to get started, then ask me questions about them!"
)
FALLBACK_ANSWER = "I received your message but couldn't generate a response."
FAILURE_MESSAGE = (
    "Failed to get a response from the AI. "
    "Please try again or check if your documents were uploaded successfully."
)


class SessionState(str, Enum):
    IDLE = "idle"
    SENDING = "sending"


class ConversationSession:
    """Ordered transcript plus the idle → sending → idle state machine around it."""

    def __init__(
        self,
        helper_config: HelperConfig,
        kb_client: KBClientInterface,
        notices: NoticeChannel,
        welcome_message: str | None = WELCOME_MESSAGE,
    ) -> None:
        self.logging = helper_config.get_logger()
        self._kb_client = kb_client
        self._notices = notices
        self._history_window = int(helper_config.get_number_val("CHAT_HISTORY_WINDOW", default=HISTORY_WINDOW))
        self._messages: list[ChatMessage] = []
        self._state = SessionState.IDLE
        self._knowledge_base_id: str | None = None
        self._last_id = 0
        if welcome_message:
            self._append(SYSTEM_ROLE, welcome_message, message_id="welcome")

    ##########################################
    ################ GETTER ##################
    ##########################################

    @property
    def state(self) -> SessionState:
        return self._state

    def is_busy(self) -> bool:
        return self._state is SessionState.SENDING

    def get_messages(self) -> list[ChatMessage]:
        return list(self._messages)

    def get_knowledge_base_id(self) -> str | None:
        return self._knowledge_base_id

    def set_knowledge_base(self, knowledge_base_id: str | None) -> None:
        self._knowledge_base_id = knowledge_base_id

    ##########################################
    ################ CORE ####################
    ##########################################

    def add_system_message(self, content: str) -> ChatMessage:
        """Append an informational message. It is never sent to the remote side."""
        return self._append(SYSTEM_ROLE, content)

    async def submit(self, text: str) -> ChatMessage | None:
        """Send a user message and append the answer.

        The user message is appended before the remote call starts. Exactly one
        assistant or system message follows once the call resolved.

        Args:
            text (str): The user's question.

        Returns:
            ChatMessage | None: The appended reply (assistant answer or system failure
            notice), None if the submission was rejected.
        """
        text = (text or "").strip()
        if not text:
            return None

        if self._state is SessionState.SENDING:
            self._notices.notify("Processing", "Please wait while we process your previous message.")
            return None

        if not self._knowledge_base_id:
            self._notices.notify(
                "No Knowledge Base",
                "Please upload some documents first to create a knowledge base.",
                destructive=True,
            )
            return None

        # both happen before the first await, so no second submit can slip in
        history = self._build_history()
        self._append(USER_ROLE, text)
        self._state = SessionState.SENDING

        try:
            reply = await self._kb_client.do_converse(self._knowledge_base_id, text, history)
        except (ClientRequestError, httpx.HTTPError) as exc:
            self.logging.error("Conversation request failed: %s", exc)
            self._notices.notify(
                "Message Error",
                "Failed to get a response from the AI. Please check your API key and try again.",
                destructive=True,
            )
            return self._append(SYSTEM_ROLE, FAILURE_MESSAGE)
        finally:
            self._state = SessionState.IDLE

        if reply.generation_id:
            self.logging.debug("Received answer, generation id %s.", reply.generation_id)
        return self._append(ASSISTANT_ROLE, reply.text or FALLBACK_ANSWER)

    ##########################################
    ############### HELPERS ##################
    ##########################################

    def _build_history(self) -> list[ChatMessage]:
        """The trailing window of prior conversational turns, without system messages."""
        turns = [msg for msg in self._messages if msg.role != SYSTEM_ROLE]
        return turns[-self._history_window:] if self._history_window > 0 else []

    def _append(self, role: Role, content: str, message_id: str | None = None) -> ChatMessage:
        message = ChatMessage(id=message_id or self._next_id(), role=role, content=content)
        self._messages.append(message)
        return message

    def _next_id(self) -> str:
        # millisecond timestamp, bumped so ids stay strictly increasing in this session
        candidate = int(time.time() * 1000)
        if candidate <= self._last_id:
            candidate = self._last_id + 1
        self._last_id = candidate
        return str(candidate)
