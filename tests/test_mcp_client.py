import asyncio
import json

import httpx
import pytest

from common.mcp_client import ChannelError, MCPClient


def make_transport(tool_response):
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        calls.append(body)
        if body["method"] == "initialize":
            return httpx.Response(200, json={"jsonrpc": "2.0", "id": body["id"], "result": {}})
        if body["method"] == "notifications/initialized":
            return httpx.Response(200, json={})
        return httpx.Response(200, json=tool_response(body))

    return httpx.MockTransport(handler), calls


def test_send_message_calls_tool():
    transport, calls = make_transport(lambda body: {
        "jsonrpc": "2.0", "id": body["id"],
        "result": {"content": [{"type": "text", "text": json.dumps({"ok": True})}]},
    })
    client = MCPClient("http://mcp.local/", transport=transport)

    result = asyncio.run(client.send_message("5511", "olá"))

    assert result == {"ok": True}
    tool_call = calls[-1]
    assert tool_call["method"] == "tools/call"
    assert tool_call["params"] == {"name": "wa.send_message", "arguments": {"to": "5511", "text": "olá"}}


def test_initialize_only_once():
    transport, calls = make_transport(lambda body: {"jsonrpc": "2.0", "id": body["id"], "result": {}})
    client = MCPClient("http://mcp.local", transport=transport)

    async def main():
        await client.notify("Alerta", "humano")
        await client.contact_get("5511")

    asyncio.run(main())
    assert [c["method"] for c in calls].count("initialize") == 1
    assert calls[-2]["params"]["arguments"] == {"title": "Alerta", "message": "humano", "sound": True, "wait": True}


def test_non_json_text_is_wrapped():
    transport, _ = make_transport(lambda body: {
        "jsonrpc": "2.0", "id": body["id"], "result": {"content": [{"type": "text", "text": "sent"}]},
    })
    client = MCPClient("http://mcp.local", transport=transport)
    assert asyncio.run(client.send_message("5511", "x")) == {"text": "sent"}


def test_tool_error_raises_channel_error():
    transport, _ = make_transport(lambda body: {
        "jsonrpc": "2.0", "id": body["id"], "error": {"code": -32000, "message": "session closed"},
    })
    client = MCPClient("http://mcp.local", transport=transport)
    with pytest.raises(ChannelError, match="session closed"):
        asyncio.run(client.send_message("5511", "x"))


def test_http_failure_raises_channel_error():
    def handler(request):
        return httpx.Response(503)

    client = MCPClient("http://mcp.local", transport=httpx.MockTransport(handler))
    with pytest.raises(ChannelError):
        asyncio.run(client.contact_get("5511"))
