"""Tests for the Supabase data store client, ApiKeyService and ResumeService."""

import json
import re

import httpx
import pytest
import pytest_asyncio

from services.api_keys.ApiKeyService import ApiKeyService, mask_key
from services.resumes.ResumeService import ResumeService, render_resume_html
from shared.clients.datastore.DataStoreClientInterface import DataStoreError
from shared.clients.datastore.DataStoreClientManager import DataStoreClientManager
from shared.clients.datastore.supabase.DataStoreClientSupabase import DataStoreClientSupabase


class FakeSupabase:
    """Minimal PostgREST + storage stand-in keeping rows and objects in memory."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.tables: dict[str, list[dict]] = {"api_keys": [], "resumes": []}
        self.objects: dict[str, bytes] = {}
        self.fail_storage = False
        self._next_id = 1

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if path.startswith("/storage/v1/object/"):
            return self._storage(request, path[len("/storage/v1/object/"):])
        table = path[len("/rest/v1/"):]
        rows = self.tables[table]
        filters = {k: v[len("eq."):] for k, v in request.url.params.items() if v.startswith("eq.")}
        matching = [r for r in rows if all(str(r.get(k)) == v for k, v in filters.items())]

        if request.method == "GET":
            order = request.url.params.get("order")
            if order:
                column, direction = order.split(".")
                matching = sorted(matching, key=lambda r: r[column], reverse=direction == "desc")
            return httpx.Response(200, json=matching)
        if request.method == "POST":
            row = json.loads(request.content)
            row["id"] = self._next_id
            row["created_at"] = f"2024-01-{self._next_id:02d}T00:00:00+00:00"
            self._next_id += 1
            rows.append(row)
            return httpx.Response(201, json=[row])
        if request.method == "DELETE":
            self.tables[table] = [r for r in rows if r not in matching]
            return httpx.Response(204)
        return httpx.Response(405)

    def _storage(self, request: httpx.Request, key: str) -> httpx.Response:
        if self.fail_storage:
            return httpx.Response(500, json={"message": "storage unavailable"})
        if request.method == "POST":
            self.objects[key] = request.content
            return httpx.Response(200, json={"Key": key})
        if request.method == "GET":
            if key not in self.objects:
                return httpx.Response(404, json={"message": "not found"})
            return httpx.Response(200, content=self.objects[key])
        if request.method == "DELETE":
            self.objects.pop(key, None)
            return httpx.Response(200, json={})
        return httpx.Response(405)


@pytest.fixture
def supabase_env(monkeypatch):
    monkeypatch.setenv("DATASTORE_ENGINE", "supabase")
    monkeypatch.setenv("DATASTORE_SUPABASE_BASE_URL", "https://project.supabase.test")
    monkeypatch.setenv("DATASTORE_SUPABASE_API_KEY", "service_role_key")


@pytest.fixture
def fake_supabase() -> FakeSupabase:
    return FakeSupabase()


@pytest_asyncio.fixture
async def datastore(helper_config, supabase_env, fake_supabase):
    client = DataStoreClientSupabase(helper_config=helper_config)
    await client.boot(transport=httpx.MockTransport(fake_supabase))
    yield client
    await client.close()


class TestSupabaseClient:
    @pytest.mark.asyncio
    async def test_auth_headers_and_query_params(self, datastore, fake_supabase):
        await datastore.do_fetch_api_keys(user_id="u1")
        request = fake_supabase.requests[0]
        assert request.headers["apikey"] == "service_role_key"
        assert request.headers["authorization"] == "Bearer service_role_key"
        assert request.url.path == "/rest/v1/api_keys"
        assert request.url.params["user_id"] == "eq.u1"
        assert request.url.params["order"] == "created_at.desc"

    @pytest.mark.asyncio
    async def test_insert_asks_for_representation(self, datastore, fake_supabase):
        record = await datastore.do_create_api_key("openai", "sk-123456789", user_id="u1")
        assert record.id == 1
        assert fake_supabase.requests[0].headers["prefer"] == "return=representation"

    @pytest.mark.asyncio
    async def test_delete_requires_filter(self, datastore):
        with pytest.raises(ValueError):
            await datastore.do_delete("resumes", {})

    def test_missing_config_raises(self, helper_config, monkeypatch):
        monkeypatch.delenv("DATASTORE_SUPABASE_API_KEY", raising=False)
        monkeypatch.setenv("DATASTORE_SUPABASE_BASE_URL", "https://project.supabase.test")
        with pytest.raises(ValueError, match="DATASTORE_SUPABASE_API_KEY"):
            DataStoreClientSupabase(helper_config=helper_config)

    def test_manager_without_engine_returns_none(self, helper_config):
        assert DataStoreClientManager(helper_config=helper_config).get_client() is None

    def test_manager_with_engine(self, helper_config, supabase_env):
        assert isinstance(DataStoreClientManager(helper_config=helper_config).get_client(), DataStoreClientSupabase)


class TestApiKeyService:
    @pytest.mark.parametrize(
        "key, masked",
        [
            ("", ""),
            ("short", "*****"),
            ("12345678", "********"),
            ("sk-abcdefghijkl", "sk-a*******ijkl"),
        ],
    )
    def test_mask_key(self, key, masked):
        assert mask_key(key) == masked

    @pytest.fixture
    def service(self, helper_config, datastore) -> ApiKeyService:
        return ApiKeyService(helper_config, datastore_client=datastore)

    @pytest.mark.asyncio
    async def test_save_and_list_masked(self, service, fake_supabase):
        saved = await service.save_key(" OpenAI ", "sk-abcdefghijkl", user_id="u1")
        assert saved.service_name == "openai"
        assert saved.key == "sk-a*******ijkl"
        assert fake_supabase.tables["api_keys"][0]["key"] == "sk-abcdefghijkl"

        listed = await service.list_keys()
        assert [k.key for k in listed] == ["sk-a*******ijkl"]
        revealed = await service.list_keys(reveal=True)
        assert revealed[0].key == "sk-abcdefghijkl"

    @pytest.mark.asyncio
    async def test_list_newest_first(self, service):
        await service.save_key("openai", "sk-first-key-000")
        await service.save_key("gemini", "sk-second-key-00")
        listed = await service.list_keys()
        assert [k.service_name for k in listed] == ["gemini", "openai"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("service_name, key", [("", "sk-1"), ("openai", "  "), ("", "")])
    async def test_missing_fields(self, service, fake_supabase, service_name, key):
        with pytest.raises(DataStoreError) as exc_info:
            await service.save_key(service_name, key)
        assert exc_info.value.status_code == 400
        assert str(exc_info.value) == "Please provide both service name and API key"
        assert fake_supabase.requests == []

    @pytest.mark.asyncio
    async def test_unsupported_service(self, service):
        with pytest.raises(DataStoreError) as exc_info:
            await service.save_key("anthropic", "sk-1234567890")
        assert exc_info.value.status_code == 400

    @pytest.mark.asyncio
    async def test_delete(self, service, fake_supabase):
        saved = await service.save_key("pica", "pk-1234567890")
        await service.delete_key(saved.id)
        assert fake_supabase.tables["api_keys"] == []


class TestResumeService:
    @pytest.fixture
    def service(self, helper_config, datastore) -> ResumeService:
        return ResumeService(helper_config, datastore_client=datastore)

    def test_render_escapes_and_keeps_line_breaks(self):
        html = render_resume_html("Line <1>\nLine 2", "job-7", "01/02/2024")
        assert "<h1>Resume for job-7</h1>" in html
        assert "Line &lt;1&gt;<br>Line 2" in html
        assert "Generated on 01/02/2024" in html

    @pytest.mark.asyncio
    async def test_generate_stores_file_and_row(self, service, fake_supabase):
        result = await service.generate("My resume", "job42", "user1")

        assert result["success"] is True
        assert re.fullmatch(r"user1/job42-\d{13}\.html", result["fileName"])
        assert result["resume"]["job_id"] == "job42"
        assert result["resume"]["pdf_url"] == result["fileName"]
        assert result["resume"]["content"] == "My resume"

        stored = fake_supabase.objects[f"resumes/{result['fileName']}"]
        assert b"My resume" in stored
        upload = fake_supabase.requests[0]
        assert upload.headers["content-type"] == "text/html"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("text, job_id, user_id", [("", "j", "u"), ("t", None, "u"), ("t", "j", "")])
    async def test_generate_missing_fields(self, service, fake_supabase, text, job_id, user_id):
        with pytest.raises(DataStoreError) as exc_info:
            await service.generate(text, job_id, user_id)
        assert exc_info.value.status_code == 400
        assert str(exc_info.value) == "Missing required fields: text, jobId, userId"
        assert fake_supabase.requests == []

    @pytest.mark.asyncio
    async def test_generate_storage_failure_is_500(self, service, fake_supabase):
        fake_supabase.fail_storage = True
        with pytest.raises(DataStoreError) as exc_info:
            await service.generate("My resume", "job42", "user1")
        assert exc_info.value.status_code == 500
        assert fake_supabase.tables["resumes"] == []

    @pytest.mark.asyncio
    async def test_download_and_delete(self, service, fake_supabase):
        result = await service.generate("Body", "job9", "user1")
        resume_id = result["resume"]["id"]

        file_name, content = await service.download(resume_id)
        assert file_name == "resume-job9.html"
        assert b"Body" in content

        await service.delete(resume_id)
        assert fake_supabase.tables["resumes"] == []
        assert fake_supabase.objects == {}

    @pytest.mark.asyncio
    async def test_missing_resume_is_404(self, service):
        with pytest.raises(DataStoreError) as exc_info:
            await service.download(999)
        assert exc_info.value.status_code == 404
