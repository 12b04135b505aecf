import httpx
import pytest

from fakes import ANON_KEY, BASE_URL
from genstudio.backend.client import BackendClient, BackendError, create_backend
from genstudio.core.errors import ConfigurationMissing
from genstudio.core.config import get_settings


def recording_client(responder, token=None):
    seen = []

    def handler(request):
        seen.append(request)
        return responder(request)

    return BackendClient(BASE_URL, ANON_KEY, token, transport=httpx.MockTransport(handler)), seen


@pytest.mark.asyncio
async def test_select_builds_rest_query():
    client, seen = recording_client(lambda r: httpx.Response(200, json=[{"id": 1}]), token="user-token")

    rows = await (
        client.table("projects")
        .select("*")
        .eq("user_id", "u1")
        .gt("expires_at", "2026-01-01T00:00:00+00:00")
        .order("created_at", desc=True)
        .execute()
    )

    assert rows == [{"id": 1}]
    req = seen[0]
    assert req.method == "GET"
    assert req.url.path == "/rest/v1/projects"
    params = req.url.params
    assert params["select"] == "*"
    assert params["user_id"] == "eq.u1"
    assert params["expires_at"] == "gt.2026-01-01T00:00:00+00:00"
    assert params["order"] == "created_at.desc"
    assert req.headers["apikey"] == ANON_KEY
    assert req.headers["Authorization"] == "Bearer user-token"


@pytest.mark.asyncio
async def test_anonymous_calls_use_api_key_as_bearer():
    client, seen = recording_client(lambda r: httpx.Response(200, json=[]))
    await client.table("plans").select("*").execute()
    assert seen[0].headers["Authorization"] == f"Bearer {ANON_KEY}"


@pytest.mark.asyncio
async def test_single_returns_first_row_or_none():
    client, seen = recording_client(lambda r: httpx.Response(200, json=[]))
    assert await client.table("profiles").select("*").eq("id", "x").single().execute() is None
    assert seen[0].url.params["limit"] == "1"

    client, _ = recording_client(lambda r: httpx.Response(200, json=[{"id": "a"}, {"id": "b"}]))
    assert await client.table("profiles").select("*").single().execute() == {"id": "a"}


@pytest.mark.asyncio
async def test_limit_caps_the_read():
    client, seen = recording_client(lambda r: httpx.Response(200, json=[{"id": "a"}]))
    await client.table("projects").select("*").order("created_at", desc=True).limit(4).execute()
    assert seen[0].url.params["limit"] == "4"

    await client.table("projects").select("*").limit(3).single().execute()
    assert seen[1].url.params.get_list("limit") == ["3"]


@pytest.mark.asyncio
async def test_update_formats_booleans_and_asks_for_rows():
    client, seen = recording_client(lambda r: httpx.Response(200, json=[{"is_active": False}]))
    rows = await client.table("user_subscriptions").update({"is_active": False}).eq("is_active", True).execute()

    assert rows == [{"is_active": False}]
    req = seen[0]
    assert req.method == "PATCH"
    assert req.url.params["is_active"] == "eq.true"
    assert req.headers["Prefer"] == "return=representation"


@pytest.mark.asyncio
async def test_unfiltered_update_is_refused():
    client, seen = recording_client(lambda r: httpx.Response(200, json=[]))
    with pytest.raises(ValueError):
        await client.table("user_subscriptions").update({"credits_remaining": 0}).execute()
    with pytest.raises(ValueError):
        await client.table("profiles").delete().execute()
    assert seen == []


@pytest.mark.asyncio
async def test_error_body_becomes_backend_error():
    client, _ = recording_client(lambda r: httpx.Response(409, json={"message": "duplicate key", "code": "23505"}))
    with pytest.raises(BackendError) as exc:
        await client.table("plans").insert({"name": "Free"}).execute()
    assert exc.value.status == 409
    assert exc.value.message == "duplicate key"


@pytest.mark.asyncio
async def test_transport_failure_becomes_backend_error():
    def boom(request):
        raise httpx.ConnectError("connection refused", request=request)

    client, _ = recording_client(boom)
    with pytest.raises(BackendError) as exc:
        await client.table("plans").select("*").execute()
    assert exc.value.status == 0


@pytest.mark.asyncio
async def test_get_user_treats_401_as_logged_out():
    client, _ = recording_client(lambda r: httpx.Response(401, json={"msg": "invalid JWT"}))
    assert await client.get_user("stale") is None

    client, _ = recording_client(lambda r: httpx.Response(500, json={"msg": "down"}))
    with pytest.raises(BackendError):
        await client.get_user("whatever")


@pytest.mark.asyncio
async def test_sign_up_sends_display_name_and_redirect():
    client, seen = recording_client(lambda r: httpx.Response(200, json={"id": "u"}))
    await client.sign_up("a@b.c", "pw", "Ann", redirect_to="https://studio.test")

    req = seen[0]
    assert req.url.path == "/auth/v1/signup"
    assert req.url.params["redirect_to"] == "https://studio.test"
    assert b'"full_name":"Ann"' in req.content.replace(b" ", b"")


def test_create_backend_requires_configuration(monkeypatch):
    monkeypatch.setenv("BACKEND_URL", "")
    monkeypatch.setenv("BACKEND_ANON_KEY", "")
    get_settings(reload=True)

    with pytest.raises(ConfigurationMissing) as exc:
        create_backend()
    assert exc.value.missing == ["BACKEND_URL", "BACKEND_ANON_KEY"]
    assert exc.value.status_code == 503


def test_config_strips_quotes_and_placeholder(monkeypatch):
    monkeypatch.setenv("BACKEND_URL", '"https://x.backend.test/"')
    monkeypatch.setenv("GENERATION_API_URL", "https://your-fastapi-url.com")
    monkeypatch.setenv("PROJECT_RETENTION_MINUTES", "soon")
    s = get_settings(reload=True)

    assert s.backend_url == "https://x.backend.test"
    assert not s.generation_configured
    assert s.project_retention_min == 60
