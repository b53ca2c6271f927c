"""
Shared pytest fixtures for filechat_bridge.

Remote services are replaced by httpx.MockTransport handlers, so every test
runs the real client code down to the HTTP layer.
"""

import json
import logging
from typing import Callable

import httpx
import pytest
import pytest_asyncio

from shared.clients.kb.elevenlabs.KBClientElevenlabs import KBClientElevenlabs
from shared.helper.HelperConfig import HelperConfig
from shared.helper.NoticeChannel import NoticeChannel
from shared.storage.CredentialStoreMemory import CredentialStoreMemory

Handler = Callable[[httpx.Request], httpx.Response]


class FakeKnowledgeService:
    """In-memory stand-in for the remote knowledge service.

    Records every request and answers the endpoints the KB client uses.
    Individual endpoints can be made to fail via fail_on.
    An entry in `overrides` (keyed "list_kb", "list_docs", "converse", "upload"
    or "delete") answers that endpoint instead and may raise httpx errors.
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.knowledge_bases: list[dict] = []
        self.documents: dict[str, list[dict]] = {}
        self.answer: dict = {"answer": "It contains...", "generation_id": "gen_1"}
        self.fail_on: set[str] = set()
        self.fail_upload_names: set[str] = set()
        self.overrides: dict[str, Handler] = {}
        self._next_doc = 1

    def add_knowledge_base(self, kb_id: str, name: str = "Existing KB", documents: list[dict] | None = None) -> None:
        self.knowledge_bases.append({"id": kb_id, "name": name})
        self.documents[kb_id] = list(documents or [])

    def requests_to(self, method: str, suffix: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == method and r.url.path.endswith(suffix)]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        parts = [p for p in request.url.path.split("/") if p]
        # parts: ["v1", "knowledge-bases", kb?, "documents"|"conversation"?, doc|"create"?]
        parts = parts[parts.index("knowledge-bases"):]

        if len(parts) == 1:
            if request.method == "GET" and "list_kb" in self.overrides:
                return self.overrides["list_kb"](request)
            if "list_kb" in self.fail_on and request.method == "GET":
                return httpx.Response(500, json={"detail": "boom"})
            if request.method == "GET":
                return httpx.Response(200, json={"knowledge_bases": self.knowledge_bases})
            if "create_kb" in self.fail_on:
                return httpx.Response(500, json={"detail": "boom"})
            body = json.loads(request.content)
            kb_id = f"kb_{len(self.knowledge_bases) + 1}"
            self.add_knowledge_base(kb_id, body["name"])
            return httpx.Response(200, json={"id": kb_id, "name": body["name"]})

        kb_id = parts[1]
        if parts[2] == "conversation":
            if "converse" in self.overrides:
                return self.overrides["converse"](request)
            if "converse" in self.fail_on:
                return httpx.Response(502, json={"detail": "upstream"})
            return httpx.Response(200, json=self.answer)

        if len(parts) == 3 and request.method == "GET":
            if "list_docs" in self.overrides:
                return self.overrides["list_docs"](request)
            if "list_docs" in self.fail_on:
                return httpx.Response(500, json={"detail": "boom"})
            return httpx.Response(200, json={"documents": self.documents.get(kb_id, [])})

        if parts[3] == "create":
            if "upload" in self.overrides:
                return self.overrides["upload"](request)
            body = request.content.decode("latin-1")
            if any(f'filename="{name}"' in body for name in self.fail_upload_names):
                return httpx.Response(500, json={"detail": "upload failed"})
            doc_id = f"doc_{self._next_doc}"
            self._next_doc += 1
            return httpx.Response(200, json={"document_id": doc_id})

        if request.method == "DELETE":
            if "delete" in self.overrides:
                return self.overrides["delete"](request)
            if "delete" in self.fail_on:
                return httpx.Response(404, json={"detail": "not found"})
            doc_id = parts[3]
            self.documents[kb_id] = [d for d in self.documents.get(kb_id, []) if d.get("id") != doc_id]
            return httpx.Response(200, json={})

        return httpx.Response(404, json={"detail": "unknown endpoint"})


# ===== CONFIG FIXTURES =====


@pytest.fixture
def logger() -> logging.Logger:
    return logging.getLogger("filechat_bridge.test")


@pytest.fixture
def helper_config(logger, monkeypatch, tmp_path) -> HelperConfig:
    """HelperConfig on a clean environment rooted in a temporary directory."""
    for key in ("KB_ENGINE", "DATASTORE_ENGINE", "CHAT_HISTORY_WINDOW", "CREDENTIAL_STORE_PATH", "KB_DEFAULT_NAME"):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("ROOT_DIR", str(tmp_path))
    monkeypatch.setenv("KB_ELEVENLABS_BASE_URL", "https://kb.test/v1")
    return HelperConfig(logger=logger)


@pytest.fixture
def notices(helper_config) -> NoticeChannel:
    return NoticeChannel(helper_config)


@pytest.fixture
def memory_store() -> CredentialStoreMemory:
    return CredentialStoreMemory()


# ===== CLIENT FIXTURES =====


@pytest.fixture
def fake_service() -> FakeKnowledgeService:
    return FakeKnowledgeService()


@pytest_asyncio.fixture
async def kb_client(helper_config, fake_service):
    """ElevenLabs client whose HTTP traffic goes to fake_service."""
    client = KBClientElevenlabs(helper_config=helper_config)
    await client.boot(transport=httpx.MockTransport(fake_service))
    client.set_api_key("sk_test_key_123456")
    yield client
    await client.close()
