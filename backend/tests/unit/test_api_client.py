"""Unit tests for StudioApiClient using httpx.MockTransport."""

import json

import httpx
import pytest

from backend.src.client.api_client import StudioApiClient, StudioApiError


def _client(handler) -> StudioApiClient:
    return StudioApiClient("http://studio.test/", transport=httpx.MockTransport(handler))


class TestSessionCalls:
    @pytest.mark.asyncio
    async def test_register_sends_camel_case_body(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"success": True, "isNewEditor": True, "currentEditor": "Alice"})

        client = _client(handler)
        result = await client.register(1, "sess_a", "Alice")
        await client.close()

        assert seen["path"] == "/api/session/register"
        assert seen["body"] == {"projectId": 1, "sessionId": "sess_a", "editorName": "Alice"}
        assert result.is_new_editor is True
        assert result.current_editor == "Alice"
        assert result.started_at is None

    @pytest.mark.asyncio
    async def test_register_contention_parses_started_at(self):
        def handler(request):
            return httpx.Response(
                200,
                json={
                    "success": True,
                    "isNewEditor": False,
                    "currentEditor": "Bob",
                    "startedAt": "2025-03-01T12:00:00Z",
                },
            )

        client = _client(handler)
        result = await client.register(1, "sess_a", "Alice")
        await client.close()

        assert result.is_new_editor is False
        assert result.started_at.year == 2025

    @pytest.mark.asyncio
    async def test_heartbeat_omits_editor_name(self):
        bodies = []

        def handler(request):
            bodies.append(json.loads(request.content))
            return httpx.Response(200, json={"success": True})

        client = _client(handler)
        await client.heartbeat(3, "sess_a")
        await client.close()

        assert bodies == [{"projectId": 3, "sessionId": "sess_a"}]

    @pytest.mark.asyncio
    async def test_check_uses_query_params(self):
        def handler(request):
            assert request.method == "GET"
            assert request.url.params["projectId"] == "2"
            assert request.url.params["sessionId"] == "sess_b"
            return httpx.Response(200, json={"isCurrentEditor": False, "currentEditor": "Alice"})

        client = _client(handler)
        result = await client.check(2, "sess_b")
        await client.close()

        assert result.is_current_editor is False
        assert result.current_editor == "Alice"

    @pytest.mark.asyncio
    async def test_save_pages_posts_document(self):
        seen = {}

        def handler(request):
            seen["params"] = dict(request.url.params)
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"success": True})

        client = _client(handler)
        await client.save_pages(4, {"projectName": "Shop"})
        await client.close()

        assert seen == {"params": {"projectId": "4"}, "body": {"projectName": "Shop"}}


class TestErrors:
    @pytest.mark.asyncio
    async def test_not_found_detail_message(self):
        def handler(request):
            return httpx.Response(
                404, json={"detail": {"error": "project_not_found", "message": "Project 9 not found"}}
            )

        client = _client(handler)
        with pytest.raises(StudioApiError) as exc_info:
            await client.force_acquire(9, "sess_a", "Alice")
        await client.close()

        assert exc_info.value.status_code == 404
        assert exc_info.value.message == "Project 9 not found"

    @pytest.mark.asyncio
    async def test_validation_error_keeps_payload(self):
        def handler(request):
            return httpx.Response(422, json={"detail": [{"loc": ["body", "sessionId"], "msg": "Field required"}]})

        client = _client(handler)
        with pytest.raises(StudioApiError) as exc_info:
            await client.release(1, "")
        await client.close()

        assert exc_info.value.status_code == 422
        assert exc_info.value.response["detail"][0]["msg"] == "Field required"

    @pytest.mark.asyncio
    async def test_non_json_error_falls_back(self):
        def handler(request):
            return httpx.Response(502, text="Bad Gateway")

        client = _client(handler)
        with pytest.raises(StudioApiError) as exc_info:
            await client.heartbeat(1, "sess_a")
        await client.close()

        assert exc_info.value.status_code == 502
        assert "HTTP 502" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_transport_error_wrapped(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        client = _client(handler)
        with pytest.raises(StudioApiError) as exc_info:
            await client.check(1, "sess_a")
        await client.close()

        assert exc_info.value.status_code is None
        assert "connection refused" in exc_info.value.message


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_client_recreated_after_close(self):
        client = _client(lambda request: httpx.Response(200, json={"projects": []}))

        assert await client.list_projects() == []
        await client.close()
        assert await client.list_projects() == []
        await client.close()

    @pytest.mark.asyncio
    async def test_empty_body_returns_empty_dict(self):
        client = _client(lambda request: httpx.Response(204))

        assert await client.get_pages(1) == {}
        await client.close()
