import json

import httpx
import pytest

from restaurant_ops.core.errors import AppError, TransientError
from restaurant_ops.whatsapp.cloud_client import (
    MetaCloudClient,
    MetaCredentials,
    MetaSendError,
    backoff_seconds,
    should_retry,
)

CREDENTIALS = MetaCredentials(access_token="EAAG-token", phone_number_id="106540352242922", api_version="v22.0")


def _client(handler, sleeps=None, max_retries=3):
    recorded = sleeps if sleeps is not None else []
    return MetaCloudClient(
        max_retries=max_retries,
        transport=httpx.MockTransport(handler),
        sleep=recorded.append,
    )


def test_send_text_posts_to_phone_number_endpoint():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["auth"] = request.headers["Authorization"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"messages": [{"id": "wamid.OUT1"}]})

    result = _client(handler).send_text(CREDENTIALS, "15551234567", "Pedido confirmado")

    assert result.provider_message_id == "wamid.OUT1"
    assert result.attempts == 1
    assert seen["url"] == "https://graph.facebook.com/v22.0/106540352242922/messages"
    assert seen["auth"] == "Bearer EAAG-token"
    assert seen["body"]["to"] == "15551234567"
    assert seen["body"]["text"]["body"] == "Pedido confirmado"


def test_server_errors_are_retried_with_backoff():
    calls = []
    sleeps = []

    def handler(request):
        calls.append(request)
        if len(calls) < 3:
            return httpx.Response(503, text="unavailable")
        return httpx.Response(200, json={"messages": [{"id": "wamid.OK"}]})

    result = _client(handler, sleeps).send_text(CREDENTIALS, "1", "oi")

    assert result.attempts == 3
    assert sleeps == [1.0, 2.0]


def test_meta_generic_error_code_is_retried():
    calls = []

    def handler(request):
        calls.append(request)
        if len(calls) == 1:
            return httpx.Response(400, json={"error": {"code": 131000, "message": "Something went wrong"}})
        return httpx.Response(200, json={"messages": [{"id": "wamid.OK"}]})

    assert _client(handler).send_text(CREDENTIALS, "1", "oi").attempts == 2


def test_client_errors_are_not_retried():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(400, json={"error": {"code": 100, "message": "Invalid parameter"}})

    with pytest.raises(MetaSendError) as exc_info:
        _client(handler).send_text(CREDENTIALS, "1", "oi")

    assert len(calls) == 1
    assert exc_info.value.response_status == 400


def test_exhausted_retries_raise_transient_error():
    sleeps = []

    def handler(request):
        raise httpx.ConnectTimeout("timed out", request=request)

    with pytest.raises(TransientError):
        _client(handler, sleeps).send_text(CREDENTIALS, "1", "oi")

    assert sleeps == [1.0, 2.0]


def test_incomplete_credentials_are_rejected_before_any_request():
    def handler(request):
        raise AssertionError("no request expected")

    with pytest.raises(AppError) as exc_info:
        _client(handler).send_text(MetaCredentials(access_token="", phone_number_id="1"), "1", "oi")

    assert "incomplete" in str(exc_info.value)


def test_retry_policy_helpers():
    assert should_retry(502, "") is True
    assert should_retry(429, "") is False
    assert should_retry(400, '{"error": {"code": 131000}}') is True
    assert should_retry(400, "not json") is False
    assert [backoff_seconds(n) for n in (1, 2, 3, 4, 5)] == [1.0, 2.0, 4.0, 8.0, 8.0]


def test_protocol_errors_are_retried_then_reported_as_transient():
    calls = []
    sleeps = []

    def handler(request):
        calls.append(request)
        raise httpx.RemoteProtocolError("Server disconnected without sending a response.", request=request)

    with pytest.raises(TransientError) as exc_info:
        _client(handler, sleeps).send_text(CREDENTIALS, "1", "oi")

    assert len(calls) == 3
    assert sleeps == [1.0, 2.0]
    assert "RemoteProtocolError" in exc_info.value.message
