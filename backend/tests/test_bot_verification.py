"""
Tests for the Turnstile bot verification client.

Verification fails closed: anything other than an explicit success is a
rejection.
"""
import os, sys
sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

from urllib.parse import parse_qs

import httpx
import pytest

from config import settings
from services.bot_verification import verify_challenge


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class TestVerifyChallenge:

    @pytest.mark.asyncio
    async def test_success(self):
        seen = []

        def handler(request):
            seen.append(parse_qs(request.content.decode()))
            return httpx.Response(200, json={"success": True})

        async with _client(handler) as client:
            assert await verify_challenge("tok", "198.51.100.7", client=client) is True

        form = seen[0]
        assert form["secret"] == [settings.turnstile_secret_key]
        assert form["response"] == ["tok"]
        assert form["remoteip"] == ["198.51.100.7"]

    @pytest.mark.asyncio
    async def test_unknown_ip_not_forwarded(self):
        seen = []

        def handler(request):
            seen.append(parse_qs(request.content.decode()))
            return httpx.Response(200, json={"success": True})

        async with _client(handler) as client:
            await verify_challenge("tok", "unknown", client=client)
        assert "remoteip" not in seen[0]

    @pytest.mark.asyncio
    async def test_rejected_token(self):
        def handler(request):
            return httpx.Response(200, json={"success": False, "error-codes": ["invalid-input-response"]})

        async with _client(handler) as client:
            assert await verify_challenge("tok", "198.51.100.7", client=client) is False

    @pytest.mark.asyncio
    async def test_server_error_fails_closed(self):
        async with _client(lambda request: httpx.Response(503)) as client:
            assert await verify_challenge("tok", "198.51.100.7", client=client) is False

    @pytest.mark.asyncio
    async def test_unparseable_body_fails_closed(self):
        async with _client(lambda request: httpx.Response(200, content=b"<html>")) as client:
            assert await verify_challenge("tok", "198.51.100.7", client=client) is False

    @pytest.mark.asyncio
    async def test_timeout_fails_closed(self):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        async with _client(handler) as client:
            assert await verify_challenge("tok", "198.51.100.7", client=client) is False

    @pytest.mark.asyncio
    async def test_missing_token_makes_no_call(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(200, json={"success": True})

        async with _client(handler) as client:
            assert await verify_challenge("", "198.51.100.7", client=client) is False
        assert calls == []

    @pytest.mark.asyncio
    async def test_missing_secret_fails_closed(self, monkeypatch):
        monkeypatch.setattr(settings, "turnstile_secret_key", "")
        async with _client(lambda request: httpx.Response(200, json={"success": True})) as client:
            assert await verify_challenge("tok", "198.51.100.7", client=client) is False
