import asyncio
import json

import httpx
import pytest

from zalo_bridge.exceptions import ZaloApiError
from zalo_bridge.models.schemas import LoginStatus, ThreadType
from zalo_bridge.zalo.client import ZaloClient


def make_client(handler) -> ZaloClient:
    return ZaloClient(base_url="http://sidecar.test/", api_key="k", transport=httpx.MockTransport(handler))


def test_send_posts_thread_and_returns_raw_result():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["key"] = request.headers.get("X-Api-Key")
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"message": {"msgId": 42}})

    result = asyncio.run(make_client(handler).api_send_message({"msg": "hi"}, "g1", ThreadType.GROUP))

    assert result == {"message": {"msgId": 42}}
    assert seen["path"] == "/messages/send"
    assert seen["key"] == "k"
    assert seen["body"] == {"message": {"msg": "hi"}, "threadId": "g1", "threadType": 1}


def test_sidecar_error_keeps_zalo_code():
    def handler(request):
        return httpx.Response(400, json={"error": "Thread not found", "code": 114})

    with pytest.raises(ZaloApiError) as exc:
        asyncio.run(make_client(handler).api_send_message({"msg": "hi"}, "u1", ThreadType.USER))

    assert exc.value.code == 114
    assert exc.value.status_code == 400
    assert "Thread not found" in exc.value.message


def test_timeout_becomes_api_error():
    def handler(request):
        raise httpx.ReadTimeout("slow", request=request)

    with pytest.raises(ZaloApiError) as exc:
        asyncio.run(make_client(handler).api_send_message({"msg": "hi"}, "u1", ThreadType.USER))

    assert exc.value.code is None
    assert "timed out" in exc.value.message


def test_status_is_parsed():
    def handler(request):
        assert request.url.path == "/status"
        return httpx.Response(200, json={"status": "logged_in", "userId": "me", "qrCode": None, "isListening": True})

    status = asyncio.run(make_client(handler).login_get_status())

    assert status.status == LoginStatus.LOGGED_IN
    assert status.is_logged_in
    assert status.userId == "me"


def test_missing_session_is_none():
    def handler(request):
        return httpx.Response(404, json={"error": "No session"})

    assert asyncio.run(make_client(handler).session_get_info()) is None


def test_cookie_import_sends_credentials():
    seen = {}

    def handler(request):
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"status": "logged_in", "userId": "me", "isListening": False})

    status = asyncio.run(make_client(handler).login_import_session("imei", "UA", [{"name": "a", "value": "b"}]))

    assert seen["body"] == {"imei": "imei", "userAgent": "UA", "cookies": [{"name": "a", "value": "b"}]}
    assert status.userId == "me"


def test_send_with_unreadable_body_returns_empty_result():
    def handler(request):
        return httpx.Response(200, text="OK")

    result = asyncio.run(make_client(handler).api_send_message({"msg": "hi"}, "u1", ThreadType.USER))

    assert result == {}
