"""
JSON-RPC 2.0 client for the MCP tool server.

The messaging channel (WhatsApp send, contact lookup) and the human-alert
notifier live behind MCP tools; this client is the only place that talks
to them over HTTP.
"""
import json
import logging
import uuid

import httpx

log = logging.getLogger(__name__)


class ChannelError(RuntimeError):
    """Raised when the messaging channel or one of its tools fails."""


class MCPClient:
    def __init__(self, base: str, timeout: float = 15, transport: httpx.AsyncBaseTransport | None = None):
        self.base = base.rstrip("/")
        self.endpoint = f"{self.base}/mcp/v1/jsonrpc"
        self.timeout = timeout
        self._transport = transport
        self._initialized = False

    def _client(self, timeout: float | None = None) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=timeout or self.timeout, transport=self._transport)

    async def initialize(self):
        """Initialize the MCP session (idempotent)"""
        if self._initialized:
            return

        payload = {
            "jsonrpc": "2.0",
            "id": str(uuid.uuid4()),
            "method": "initialize",
            "params": {
                "protocolVersion": "2024-11-05",
                "capabilities": {},
                "clientInfo": {"name": "serve-vm-agent-reception", "version": "1.0.0"},
            },
        }
        try:
            async with self._client() as client:
                r = await client.post(self.endpoint, json=payload)
                r.raise_for_status()
                resp = r.json()
                if "error" in resp and resp["error"].get("message") != "Already initialized":
                    raise ChannelError(f"MCP initialization failed: {resp['error'].get('message')}")
                r = await client.post(self.endpoint, json={"jsonrpc": "2.0", "method": "notifications/initialized"})
                r.raise_for_status()
        except httpx.HTTPError as e:
            log.error(f"[MCP] Failed to initialize: {e}")
            raise ChannelError(f"MCP initialization failed: {e}") from e

        self._initialized = True
        log.info("[MCP] MCP session initialized")

    async def call(self, tool_name: str, arguments: dict, timeout: float | None = None) -> dict:
        """
        Call an MCP tool via JSON-RPC 2.0

        Returns the parsed JSON of result.content[0].text when present,
        otherwise the raw result object.
        """
        await self.initialize()

        payload = {
            "jsonrpc": "2.0",
            "id": str(uuid.uuid4()),
            "method": "tools/call",
            "params": {"name": tool_name, "arguments": arguments},
        }
        log.debug(f"[MCP] Calling tool={tool_name}")
        try:
            async with self._client(timeout) as client:
                r = await client.post(self.endpoint, json=payload)
                r.raise_for_status()
                resp = r.json()
        except httpx.HTTPError as e:
            raise ChannelError(f"MCP tool '{tool_name}' unreachable: {e}") from e

        if "error" in resp:
            error = resp["error"]
            log.error(f"[MCP] Tool error: {error.get('message')} (code: {error.get('code')})")
            raise ChannelError(f"MCP tool '{tool_name}' failed: {error.get('message')}")

        result = resp.get("result") or {}
        content = result.get("content")
        if content:
            text = content[0].get("text", "{}")
            try:
                return json.loads(text)
            except json.JSONDecodeError:
                return {"text": text}
        return result

    async def send_message(self, to: str, text: str) -> dict:
        return await self.call("wa.send_message", {"to": to, "text": text}, timeout=10)

    async def contact_get(self, contact_id: str) -> dict:
        return await self.call("wa.contact_get", {"id": contact_id}, timeout=10)

    async def notify(self, title: str, message: str, audible: bool = True, wait: bool = True) -> dict:
        return await self.call("notify.alert", {
            "title": title,
            "message": message,
            "sound": audible,
            "wait": wait,
        })
