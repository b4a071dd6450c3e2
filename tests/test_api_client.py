"""
Tests for the attestation API client against a local aiohttp server.
"""
from contextlib import asynccontextmanager

import pytest
from aiohttp import web
from aiohttp import test_utils

from attestation_bot.api.client import AttestationAPI
from tests.factories import dashboard_payload, record_payload


@asynccontextmanager
async def attestation_server(routes):
    app = web.Application()
    app["seen"] = []
    app.add_routes(routes)
    async with test_utils.TestServer(app) as server:
        yield str(server.make_url("/")).rstrip("/"), app["seen"]


def recorder(response, status=200):
    """Handler that records the request and answers with a fixed body"""
    async def handler(request):
        body = await request.json() if request.can_read_body else None
        request.app["seen"].append({
            "path": request.path,
            "auth": request.headers.get("Authorization"),
            "body": body,
        })
        return web.json_response(response, status=status)
    return handler


class TestAuthentication:

    @pytest.mark.asyncio
    async def test_login_then_bearer_token(self):
        routes = [
            web.post("/api/auth/login", recorder({"token": "jwt-1"})),
            web.get("/api/attestation/campaigns", recorder({"campaigns": [{"id": 1}]})),
        ]
        async with attestation_server(routes) as (base_url, seen):
            async with AttestationAPI(base_url, email="svc@example.com", password="secret") as api:
                campaigns = await api.campaigns()

        assert campaigns == [{"id": 1}]
        assert seen[0]["body"] == {"email": "svc@example.com", "password": "secret"}
        assert seen[1]["auth"] == "Bearer jwt-1"

    @pytest.mark.asyncio
    async def test_configured_token_skips_login(self):
        routes = [web.get("/api/attestation/campaigns", recorder({"campaigns": []}))]
        async with attestation_server(routes) as (base_url, seen):
            async with AttestationAPI(base_url, token="static") as api:
                await api.campaigns()

        assert [s["path"] for s in seen] == ["/api/attestation/campaigns"]
        assert seen[0]["auth"] == "Bearer static"

    @pytest.mark.asyncio
    async def test_failed_login_returns_empty(self):
        routes = [web.post("/api/auth/login", recorder({"error": "bad credentials"}, status=401))]
        async with attestation_server(routes) as (base_url, _):
            async with AttestationAPI(base_url, email="svc@example.com", password="wrong") as api:
                assert await api.campaigns() == []
                assert await api.dashboard("c1") is None

    @pytest.mark.asyncio
    async def test_expired_token_logs_in_again(self):
        issued = []

        async def login(request):
            issued.append(f"jwt-{len(issued) + 1}")
            return web.json_response({"token": issued[-1]})

        async def campaigns(request):
            request.app["seen"].append(request.headers.get("Authorization"))
            if request.headers.get("Authorization") != "Bearer jwt-2":
                return web.json_response({"error": "token expired"}, status=401)
            return web.json_response({"campaigns": [{"id": 1}]})

        routes = [
            web.post("/api/auth/login", login),
            web.get("/api/attestation/campaigns", campaigns),
        ]
        async with attestation_server(routes) as (base_url, seen):
            async with AttestationAPI(base_url, email="svc@example.com", password="secret") as api:
                assert await api.campaigns() == [{"id": 1}]
                assert api.token == "jwt-2"

        assert seen == ["Bearer jwt-1", "Bearer jwt-2"]

    @pytest.mark.asyncio
    async def test_rejected_static_token_is_not_retried(self):
        routes = [web.get("/api/attestation/campaigns", recorder({"error": "revoked"}, status=401))]
        async with attestation_server(routes) as (base_url, seen):
            async with AttestationAPI(base_url, token="static") as api:
                assert await api.campaigns() == []
                assert api.token == "static"

        assert len(seen) == 1

    @pytest.mark.asyncio
    async def test_second_rejection_gives_up(self):
        routes = [
            web.post("/api/auth/login", recorder({"token": "jwt-1"})),
            web.get("/api/attestation/campaigns", recorder({"error": "denied"}, status=401)),
        ]
        async with attestation_server(routes) as (base_url, seen):
            async with AttestationAPI(base_url, email="svc@example.com", password="secret") as api:
                assert await api.campaigns() == []

        assert [s["path"] for s in seen] == [
            "/api/auth/login",
            "/api/attestation/campaigns",
            "/api/auth/login",
            "/api/attestation/campaigns",
        ]


class TestDashboard:

    @pytest.mark.asyncio
    async def test_returns_payload(self):
        payload = dashboard_payload([record_payload("1")])
        routes = [web.get("/api/attestation/campaigns/c1/dashboard", recorder(payload))]
        async with attestation_server(routes) as (base_url, _):
            async with AttestationAPI(base_url, token="t") as api:
                data = await api.dashboard("c1")

        assert data["records"][0]["id"] == "1"

    @pytest.mark.asyncio
    async def test_missing_records_list_is_a_failure(self):
        routes = [web.get("/api/attestation/campaigns/c1/dashboard", recorder({"campaign": {"id": "c1"}}))]
        async with attestation_server(routes) as (base_url, _):
            async with AttestationAPI(base_url, token="t") as api:
                assert await api.dashboard("c1") is None

    @pytest.mark.asyncio
    async def test_server_error_is_a_failure(self):
        routes = [web.get("/api/attestation/campaigns/c1/dashboard", recorder({"error": "boom"}, status=500))]
        async with attestation_server(routes) as (base_url, _):
            async with AttestationAPI(base_url, token="t") as api:
                assert await api.dashboard("c1") is None

    @pytest.mark.asyncio
    async def test_connection_error_is_a_failure(self):
        async with AttestationAPI("http://127.0.0.1:1", token="t", timeout=2) as api:
            assert await api.dashboard("c1") is None
            assert await api.send_reminder("1") is False


class TestActions:

    @pytest.mark.asyncio
    async def test_bulk_remind(self):
        routes = [web.post(
            "/api/attestation/campaigns/c1/bulk-remind",
            recorder({"success": True, "sent": 2, "failed": 1})
        )]
        async with attestation_server(routes) as (base_url, seen):
            async with AttestationAPI(base_url, token="t") as api:
                summary = await api.bulk_remind("c1", ["1", "2", "3"])

        assert summary == {"sent": 2, "failed": 1}
        assert seen[0]["body"] == {"record_ids": ["1", "2", "3"]}

    @pytest.mark.asyncio
    async def test_resend_invites(self):
        routes = [web.post(
            "/api/attestation/campaigns/c1/resend-invites",
            recorder({"success": True, "emailsSent": 2})
        )]
        async with attestation_server(routes) as (base_url, seen):
            async with AttestationAPI(base_url, token="t") as api:
                sent = await api.resend_invites("c1", ["8", "9"])

        assert sent == 2
        assert seen[0]["body"] == {"inviteIds": ["8", "9"]}

    @pytest.mark.asyncio
    async def test_single_actions(self):
        routes = [
            web.post("/api/attestation/records/1/remind", recorder({"success": True})),
            web.post("/api/attestation/pending-invites/9/resend", recorder({"success": True})),
            web.post("/api/attestation/records/1/escalate", recorder({"success": True})),
        ]
        async with attestation_server(routes) as (base_url, seen):
            async with AttestationAPI(base_url, token="t") as api:
                assert await api.send_reminder("1") is True
                assert await api.resend_invite("9") is True
                assert await api.escalate("1", "Please nudge") is True

        assert seen[2]["body"] == {"custom_message": "Please nudge"}

    @pytest.mark.asyncio
    async def test_rejected_reminder(self):
        routes = [web.post("/api/attestation/records/1/remind", recorder({"error": "Cannot send"}, status=400))]
        async with attestation_server(routes) as (base_url, _):
            async with AttestationAPI(base_url, token="t") as api:
                assert await api.send_reminder("1") is False

    @pytest.mark.asyncio
    async def test_pending_invites(self):
        invites = [{"id": 9, "email": "new@example.com", "invite_sent_at": None}]
        routes = [web.get(
            "/api/attestation/campaigns/c1/pending-invites",
            recorder({"success": True, "pending_invites": invites})
        )]
        async with attestation_server(routes) as (base_url, _):
            async with AttestationAPI(base_url, token="t") as api:
                assert await api.pending_invites("c1") == invites
