"""Tests for SupabaseClient request shapes and error mapping."""

from __future__ import annotations

import json

import httpx
import pytest

from stashbox.adapters.supabase.client import (
    SupabaseAuthError,
    SupabaseClient,
    SupabaseClientError,
    SupabaseRetryableError,
)
from tests.conftest import ts

API_URL = "https://demo.supabase.co"


class _Recorder:
    """Serve canned responses in order and remember every request."""

    def __init__(self, *responses: httpx.Response) -> None:
        self.responses = list(responses)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.responses.pop(0)


def _client(recorder: _Recorder, **kwargs) -> SupabaseClient:
    return SupabaseClient(
        API_URL + "/",
        "anon-key",
        "user-jwt",
        transport=httpx.MockTransport(recorder),
        retry_base_delay=0.0,
        retry_max_delay=0.0,
        **kwargs,
    )


@pytest.mark.asyncio
async def test_identity_lookup_sends_both_credentials() -> None:
    recorder = _Recorder(
        httpx.Response(
            200,
            json={
                "id": "user-1",
                "email": "ada@example.com",
                "user_metadata": {"name": "Ada"},
                "created_at": "2025-01-01T00:00:00Z",
            },
        )
    )

    async with _client(recorder) as client:
        identity = await client.get_current_identity()

    request = recorder.requests[0]
    assert request.method == "GET"
    assert str(request.url) == f"{API_URL}/auth/v1/user"
    assert request.headers["apikey"] == "anon-key"
    assert request.headers["Authorization"] == "Bearer user-jwt"
    assert identity.id == "user-1"
    assert identity.name == "Ada"
    assert identity.created_at == "2025-01-01T00:00:00Z"


@pytest.mark.asyncio
async def test_rejected_token_raises_auth_error_without_retry() -> None:
    recorder = _Recorder(httpx.Response(401, json={"msg": "invalid JWT"}))

    async with _client(recorder) as client:
        with pytest.raises(SupabaseAuthError, match="invalid JWT") as exc_info:
            await client.get_current_identity()

    assert exc_info.value.status_code == 401
    assert len(recorder.requests) == 1


@pytest.mark.asyncio
async def test_missing_token_fails_without_a_request() -> None:
    recorder = _Recorder()
    client = SupabaseClient(API_URL, "anon-key", "", transport=httpx.MockTransport(recorder))

    async with client:
        with pytest.raises(SupabaseAuthError):
            await client.get_current_identity()

    assert recorder.requests == []


@pytest.mark.asyncio
async def test_identity_lookup_retries_transient_failures() -> None:
    recorder = _Recorder(
        httpx.Response(503, text="upstream unavailable"),
        httpx.Response(200, json={"id": "user-1"}),
    )

    async with _client(recorder, max_retries=2) as client:
        identity = await client.get_current_identity()

    assert identity.id == "user-1"
    assert len(recorder.requests) == 2


@pytest.mark.asyncio
async def test_upsert_request_shape() -> None:
    recorder = _Recorder(httpx.Response(201))

    async with _client(recorder) as client:
        await client.upsert(
            "item_folders",
            {"item_id": "i1", "folder_id": "f1", "created_at": ts(0)},
            on_conflict="item_id,folder_id",
        )

    request = recorder.requests[0]
    assert request.method == "POST"
    assert request.url.path == "/rest/v1/item_folders"
    assert request.url.params["on_conflict"] == "item_id,folder_id"
    assert request.headers["Prefer"] == "resolution=merge-duplicates,return=minimal"
    assert json.loads(request.content) == {
        "item_id": "i1",
        "folder_id": "f1",
        "created_at": "2025-03-01T09:00:00+00:00",
    }


@pytest.mark.asyncio
async def test_upsert_is_sent_exactly_once_even_on_transient_failure() -> None:
    recorder = _Recorder(httpx.Response(503, json={"message": "service unavailable"}))

    async with _client(recorder, max_retries=3) as client:
        with pytest.raises(SupabaseRetryableError) as exc_info:
            await client.upsert("tags", {"id": "t1"}, on_conflict="id")

    assert exc_info.value.status_code == 503
    assert "service unavailable" in str(exc_info.value)
    assert len(recorder.requests) == 1


@pytest.mark.asyncio
async def test_upsert_client_error_carries_server_message() -> None:
    recorder = _Recorder(
        httpx.Response(409, json={"code": "23505", "message": "duplicate key value"})
    )

    async with _client(recorder) as client:
        with pytest.raises(SupabaseClientError) as exc_info:
            await client.upsert("tags", {"id": "t1"}, on_conflict="id")

    assert not isinstance(exc_info.value, SupabaseRetryableError)
    assert str(exc_info.value) == "upsert tags failed (409): duplicate key value"


@pytest.mark.asyncio
async def test_fetch_profile_filters_by_id() -> None:
    recorder = _Recorder(httpx.Response(200, json=[{"id": "user-1"}]), httpx.Response(200, json=[]))

    async with _client(recorder) as client:
        found = await client.fetch_profile("user-1")
        missing = await client.fetch_profile("user-2")

    assert found == {"id": "user-1"}
    assert missing is None
    params = recorder.requests[0].url.params
    assert recorder.requests[0].url.path == "/rest/v1/users"
    assert params["id"] == "eq.user-1"
    assert params["select"] == "id"


@pytest.mark.asyncio
async def test_insert_profile_posts_row() -> None:
    recorder = _Recorder(httpx.Response(201))
    profile = {"id": "user-1", "email": None, "name": "User"}

    async with _client(recorder) as client:
        await client.insert_profile(profile)

    request = recorder.requests[0]
    assert request.method == "POST"
    assert request.url.path == "/rest/v1/users"
    assert request.headers["Prefer"] == "return=minimal"
    assert json.loads(request.content) == profile


@pytest.mark.asyncio
async def test_client_requires_context_manager() -> None:
    client = SupabaseClient(API_URL, "anon-key", "user-jwt")

    with pytest.raises(SupabaseClientError, match="not initialized"):
        await client.upsert("tags", {"id": "t1"}, on_conflict="id")
