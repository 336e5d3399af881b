"""
Tests for single and batch confirmation responses.
"""

from unittest.mock import AsyncMock, MagicMock
from urllib.parse import parse_qs, urlparse

import pytest

from confirmationsHandler.SteamGuard import ConfirmationTokenGenerator
from confirmationsHandler.confirmation import ActionTag, Confirmation
from confirmationsHandler.exceptions import ResponseParseError
from confirmationsHandler.responder import ConfirmationResponder, parse_success
from confirmationsHandler.session_client import SessionHttpClient

SECRET = "c2VjcmV0LWtleS0xMjM0NQ=="


@pytest.fixture
def tokens():
    return ConfirmationTokenGenerator("76561197960287930", SECRET, clock=lambda: 1700000000)


@pytest.fixture
def client():
    client = MagicMock(spec=SessionHttpClient)
    client.send = AsyncMock(return_value=(200, '{"success": true}'))
    return client


@pytest.fixture
def responder(client, tokens):
    return ConfirmationResponder(client, tokens)


def _resolve(value):
    return value() if callable(value) else value


class TestParseSuccess:
    """Test response body parsing."""

    def test_success_values(self):
        assert parse_success('{"success": true}') is True
        assert parse_success('{"success": false}') is False
        assert parse_success('{"message": "no field"}') is False

    @pytest.mark.parametrize("body", ["<html>error</html>", "{", "not json"])
    def test_malformed_json(self, body):
        with pytest.raises(ResponseParseError):
            parse_success(body)

    def test_json_that_is_not_an_object(self):
        with pytest.raises(ResponseParseError):
            parse_success("[1, 2]")


class TestRespondSingle:
    """Test respond_single."""

    @pytest.mark.asyncio
    async def test_builds_signed_get(self, responder, client):
        confirmation = Confirmation(id="111", type="2", key="keyA")

        assert await responder.respond_single(confirmation, "allow") is True

        url, method = client.send.call_args.args[:2]
        url = _resolve(url)
        parsed = urlparse(url)
        query = parse_qs(parsed.query)
        assert method == "GET"
        assert parsed.path == "/mobileconf/ajaxop"
        assert query["op"] == ["allow"]
        assert query["tag"] == ["allow"]
        assert query["k"] == ["aliuYl+zJkyeGpgQl70fRXz8EHQ="]
        assert query["t"] == ["1700000000"]
        assert query["m"] == ["android"]
        assert query["p"] == ["android:6d3f10d9-6369-a1ae-97a0-94df28b95192"]
        assert query["a"] == ["76561197960287930"]
        assert query["cid"] == ["111"]
        assert query["ck"] == ["keyA"]

    @pytest.mark.asyncio
    async def test_cancel_operation(self, responder, client):
        await responder.respond_single(Confirmation(id="1", type="1", key="k"), ActionTag.CANCEL)

        query = parse_qs(urlparse(_resolve(client.send.call_args.args[0])).query)
        assert query["op"] == ["cancel"]
        assert query["tag"] == ["cancel"]

    @pytest.mark.asyncio
    async def test_failure_is_reported_not_retried(self, responder, client):
        client.send.return_value = (200, '{"success": false}')

        assert await responder.respond_single(Confirmation(id="1", type="1", key="k"), "allow") is False
        assert client.send.await_count == 1

    @pytest.mark.asyncio
    async def test_malformed_body_raises(self, responder, client):
        client.send.return_value = (200, "<html>Error</html>")

        with pytest.raises(ResponseParseError):
            await responder.respond_single(Confirmation(id="1", type="1", key="k"), "allow")

    @pytest.mark.asyncio
    async def test_rejects_non_response_tags(self, responder, client):
        with pytest.raises(ValueError):
            await responder.respond_single(Confirmation(id="1", type="1", key="k"), "details")

        client.send.assert_not_called()


class TestRespondBatch:
    """Test respond_batch."""

    def test_form_arrays_keep_input_order(self, responder):
        confirmations = [
            Confirmation(id="a", type="1", key="k1"),
            Confirmation(id="b", type="1", key="k2"),
        ]

        form = responder.build_batch_form(confirmations, "allow")

        assert form["cid[]"] == ["a", "b"]
        assert form["ck[]"] == ["k1", "k2"]
        assert form["op"] == "allow"
        assert form["tag"] == "allow"
        assert form["k"] == "aliuYl+zJkyeGpgQl70fRXz8EHQ="

    @pytest.mark.asyncio
    async def test_posts_to_multiajaxop(self, responder, client):
        confirmations = [
            Confirmation(id="3", type="2", key="z"),
            Confirmation(id="1", type="2", key="x"),
            Confirmation(id="2", type="2", key="y"),
        ]

        assert await responder.respond_batch(confirmations, "cancel") is True

        url, method, form = client.send.call_args.args[:3]
        form = _resolve(form)
        assert url == "https://steamcommunity.com/mobileconf/multiajaxop"
        assert method == "POST"
        assert form["op"] == "cancel"
        assert form["cid[]"] == ["3", "1", "2"]
        assert form["ck[]"] == ["z", "x", "y"]

    @pytest.mark.asyncio
    async def test_malformed_body_raises(self, responder, client):
        client.send.return_value = (200, "")

        with pytest.raises(ResponseParseError):
            await responder.respond_batch([Confirmation(id="1", type="1", key="k")], "allow")

    @pytest.mark.asyncio
    async def test_empty_batch(self, responder, client):
        with pytest.raises(ValueError):
            await responder.respond_batch([], "allow")

        client.send.assert_not_called()
