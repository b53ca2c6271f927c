"""Tests for ConversationSession: transcript growth, busy state and history."""

import asyncio
import json

import httpx
import pytest

from services.conversation.ConversationSession import (
    FAILURE_MESSAGE,
    FALLBACK_ANSWER,
    WELCOME_MESSAGE,
    ConversationSession,
    SessionState,
)
from shared.clients.kb.elevenlabs.KBClientElevenlabs import KBClientElevenlabs
from shared.models.message import ASSISTANT_ROLE, SYSTEM_ROLE, USER_ROLE


@pytest.fixture
def session(helper_config, kb_client, notices) -> ConversationSession:
    session = ConversationSession(helper_config, kb_client=kb_client, notices=notices, welcome_message=None)
    session.set_knowledge_base("kb_1")
    return session


def _conversation_bodies(fake_service) -> list[dict]:
    return [json.loads(r.content) for r in fake_service.requests_to("POST", "/conversation")]


class TestTranscript:
    def test_welcome_message(self, helper_config, kb_client, notices):
        session = ConversationSession(helper_config, kb_client=kb_client, notices=notices)
        messages = session.get_messages()
        assert len(messages) == 1
        assert messages[0].id == "welcome"
        assert messages[0].role == SYSTEM_ROLE
        assert messages[0].content == WELCOME_MESSAGE

    @pytest.mark.asyncio
    async def test_completed_submit_adds_two_messages(self, session):
        reply = await session.submit("What is in the file?")

        messages = session.get_messages()
        assert len(messages) == 2
        assert (messages[0].role, messages[0].content) == (USER_ROLE, "What is in the file?")
        assert (messages[1].role, messages[1].content) == (ASSISTANT_ROLE, "It contains...")
        assert reply == messages[1]
        assert session.state is SessionState.IDLE

    @pytest.mark.asyncio
    async def test_blank_submit_is_rejected(self, session, fake_service):
        assert await session.submit("   ") is None
        assert session.get_messages() == []
        assert fake_service.requests == []

    @pytest.mark.asyncio
    async def test_no_knowledge_base_is_rejected(self, helper_config, kb_client, notices, fake_service):
        session = ConversationSession(helper_config, kb_client=kb_client, notices=notices, welcome_message=None)

        assert await session.submit("Hello") is None

        assert session.get_messages() == []
        assert fake_service.requests == []
        assert notices.drain()[0].title == "No Knowledge Base"

    @pytest.mark.asyncio
    async def test_empty_answer_uses_fallback(self, session, fake_service):
        fake_service.answer = {"generation_id": "g"}
        reply = await session.submit("Hello")
        assert reply.role == ASSISTANT_ROLE
        assert reply.content == FALLBACK_ANSWER

    @pytest.mark.asyncio
    async def test_text_field_is_used_without_answer(self, session, fake_service):
        fake_service.answer = {"text": "From text"}
        reply = await session.submit("Hello")
        assert reply.content == "From text"

    @pytest.mark.asyncio
    async def test_failure_appends_system_message(self, session, fake_service, notices):
        fake_service.fail_on.add("converse")

        reply = await session.submit("Hello")

        messages = session.get_messages()
        assert [m.role for m in messages] == [USER_ROLE, SYSTEM_ROLE]
        assert reply.content == FAILURE_MESSAGE
        assert session.state is SessionState.IDLE
        pending = notices.drain()
        assert pending[-1].title == "Message Error"
        assert pending[-1].variant == "destructive"

    @pytest.mark.asyncio
    async def test_message_ids_strictly_increase(self, session):
        for i in range(3):
            await session.submit(f"q{i}")
        ids = [int(m.id) for m in session.get_messages()]
        assert ids == sorted(ids)
        assert len(set(ids)) == len(ids)


class TestHistory:
    @pytest.mark.asyncio
    async def test_history_excludes_system_messages(self, helper_config, kb_client, notices, fake_service):
        session = ConversationSession(helper_config, kb_client=kb_client, notices=notices)
        session.set_knowledge_base("kb_1")
        session.add_system_message("1 new document(s) added to the knowledge base: a.txt")

        await session.submit("first")
        await session.submit("second")

        bodies = _conversation_bodies(fake_service)
        assert bodies[0] == {"query": "first", "conversation_history": []}
        assert bodies[1]["query"] == "second"
        assert bodies[1]["conversation_history"] == [
            {"role": "user", "message": "first"},
            {"role": "agent", "message": "It contains..."},
        ]

    @pytest.mark.asyncio
    async def test_history_is_limited_to_last_ten(self, session, fake_service):
        for i in range(7):
            await session.submit(f"q{i}")

        last = _conversation_bodies(fake_service)[-1]
        history = last["conversation_history"]
        assert len(history) == 10
        # 12 prior turns exist, the two oldest are dropped
        assert history[0] == {"role": "user", "message": "q1"}
        assert history[-1]["role"] == "agent"

    @pytest.mark.asyncio
    async def test_history_window_from_env(self, helper_config, kb_client, notices, fake_service, monkeypatch):
        monkeypatch.setenv("CHAT_HISTORY_WINDOW", "2")
        session = ConversationSession(helper_config, kb_client=kb_client, notices=notices, welcome_message=None)
        session.set_knowledge_base("kb_1")
        for i in range(3):
            await session.submit(f"q{i}")
        assert len(_conversation_bodies(fake_service)[-1]["conversation_history"]) == 2


class TestBusyState:
    @pytest.mark.asyncio
    async def test_second_submit_while_sending_is_rejected(self, helper_config, notices):
        release = asyncio.Event()
        calls = []

        async def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            await release.wait()
            return httpx.Response(200, json={"answer": "done"})

        client = KBClientElevenlabs(helper_config=helper_config)
        await client.boot(transport=httpx.MockTransport(handler))
        client.set_api_key("sk_test")
        session = ConversationSession(helper_config, kb_client=client, notices=notices, welcome_message=None)
        session.set_knowledge_base("kb_1")

        try:
            first = asyncio.create_task(session.submit("first"))
            while not calls:
                await asyncio.sleep(0)
            assert session.state is SessionState.SENDING

            assert await session.submit("second") is None
            assert notices.drain()[-1].title == "Processing"
            assert [m.content for m in session.get_messages()] == ["first"]

            release.set()
            reply = await first
        finally:
            await client.close()

        assert reply.content == "done"
        assert len(calls) == 1
        assert [m.content for m in session.get_messages()] == ["first", "done"]
        assert session.state is SessionState.IDLE


def _unreachable(request: httpx.Request) -> httpx.Response:
    raise httpx.ConnectError("unreachable", request=request)


class TestBrokenService:
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "response",
        [
            httpx.Response(200, text="<html>maintenance</html>"),
            httpx.Response(200, json=[]),
            httpx.Response(200, json={"answer": {"x": 1}}),
        ],
        ids=["not-json", "json-list", "non-string-answer"],
    )
    async def test_malformed_answer_is_contained(self, session, fake_service, notices, response):
        fake_service.overrides["converse"] = lambda request: response

        reply = await session.submit("Hello")

        assert reply.role == SYSTEM_ROLE
        assert reply.content == FAILURE_MESSAGE
        assert [m.role for m in session.get_messages()] == [USER_ROLE, SYSTEM_ROLE]
        assert session.state is SessionState.IDLE
        assert notices.drain()[-1].title == "Message Error"

    @pytest.mark.asyncio
    async def test_unreachable_service_is_contained(self, session, fake_service, notices):
        fake_service.overrides["converse"] = _unreachable

        reply = await session.submit("Hello")

        assert reply.content == FAILURE_MESSAGE
        assert [m.role for m in session.get_messages()] == [USER_ROLE, SYSTEM_ROLE]
        assert session.state is SessionState.IDLE
        pending = notices.drain()
        assert pending[-1].title == "Message Error"
        assert pending[-1].variant == "destructive"

    @pytest.mark.asyncio
    async def test_session_recovers_after_failure(self, session, fake_service):
        fake_service.overrides["converse"] = _unreachable
        await session.submit("first")
        del fake_service.overrides["converse"]

        reply = await session.submit("second")

        assert reply.role == ASSISTANT_ROLE
        assert reply.content == "It contains..."
