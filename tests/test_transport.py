"""Tests for the SSE session transport and the session registry."""

import json

import anyio
import pytest
from mcp import types
from mcp.shared.message import SessionMessage
from pydantic import ValidationError

from mcp_memory_bank.exceptions import NoActiveSessionError
from mcp_memory_bank.transport import (
    SessionRegistry,
    SessionState,
    SessionTransport,
    decode_message,
    encode_frame,
)

PING = {"jsonrpc": "2.0", "id": 1, "method": "ping"}


class TestCodec:
    """Tests for frame decoding and encoding."""

    def test_decode_request(self):
        message = decode_message(json.dumps(PING).encode())

        assert isinstance(message.root, types.JSONRPCRequest)
        assert message.root.method == "ping"

    def test_decode_notification(self):
        body = json.dumps({"jsonrpc": "2.0", "method": "notifications/initialized"})

        message = decode_message(body)

        assert isinstance(message.root, types.JSONRPCNotification)

    @pytest.mark.parametrize("body", [b"not json", b"{}", b'{"jsonrpc": "1.0", "id": 1}'])
    def test_decode_invalid(self, body):
        with pytest.raises(ValidationError):
            decode_message(body)

    def test_encode_frame(self):
        response = types.JSONRPCMessage(
            types.JSONRPCResponse(jsonrpc="2.0", id=7, result={"ok": True})
        )

        frame = encode_frame(SessionMessage(response))

        assert frame["event"] == "message"
        assert json.loads(frame["data"]) == {"jsonrpc": "2.0", "id": 7, "result": {"ok": True}}


class TestSessionTransport:
    def test_new_transport_is_connecting(self):
        transport = SessionTransport("/messages")

        assert transport.state == SessionState.CONNECTING
        assert len(transport.transport_id) == 32

    def test_endpoint_uri_carries_transport_id(self):
        transport = SessionTransport("/messages")

        assert transport.endpoint_uri == f"/messages?session_id={transport.transport_id}"

    def test_transport_ids_are_unique(self):
        assert SessionTransport().transport_id != SessionTransport().transport_id

    @pytest.mark.asyncio
    async def test_forward_preserves_arrival_order(self):
        transport = SessionTransport()
        for i in range(3):
            request = {"jsonrpc": "2.0", "id": i, "method": "ping"}
            await transport.forward(SessionMessage(decode_message(json.dumps(request))))

        received = [transport.read_stream.receive_nowait().message.root.id for _ in range(3)]

        assert received == [0, 1, 2]

    @pytest.mark.asyncio
    async def test_forward_after_close_raises(self):
        transport = SessionTransport()
        await transport.close()

        assert transport.state == SessionState.CLOSED
        with pytest.raises(NoActiveSessionError):
            await transport.forward(SessionMessage(decode_message(json.dumps(PING))))


class TestSessionRegistry:
    """Tests for the single-slot session registry."""

    def test_empty_registry(self):
        registry = SessionRegistry()

        assert registry.active is None
        assert registry.state == SessionState.ABSENT
        with pytest.raises(NoActiveSessionError):
            registry.resolve()

    def test_attach(self):
        registry = SessionRegistry()
        transport = SessionTransport()

        previous = registry.attach(transport)

        assert previous is None
        assert registry.active is transport
        assert transport.state == SessionState.ATTACHED
        assert registry.resolve() is transport
        assert registry.resolve(transport.transport_id) is transport

    def test_second_attach_supersedes_first(self):
        registry = SessionRegistry()
        first = SessionTransport()
        second = SessionTransport()

        registry.attach(first)
        previous = registry.attach(second)

        assert previous is first
        assert first.state == SessionState.CLOSED
        assert registry.active is second
        assert len(registry) == 1
        assert registry.resolve() is second
        # The superseded session can no longer be reached
        assert registry.resolve(first.transport_id) is None

    def test_detach(self):
        registry = SessionRegistry()
        transport = SessionTransport()
        registry.attach(transport)

        assert registry.detach(transport) is True

        assert registry.active is None
        assert transport.state == SessionState.CLOSED
        with pytest.raises(NoActiveSessionError):
            registry.resolve()

    def test_detach_superseded_keeps_current(self):
        """A superseded connection closing later must not detach its successor."""
        registry = SessionRegistry()
        first = SessionTransport()
        second = SessionTransport()
        registry.attach(first)
        registry.attach(second)

        assert registry.detach(first) is False

        assert registry.active is second
        assert second.state == SessionState.ATTACHED

    def test_resolve_unknown_id(self):
        registry = SessionRegistry()
        registry.attach(SessionTransport())

        assert registry.resolve("0" * 32) is None


class TestSessionTransportClose:
    @pytest.mark.asyncio
    async def test_close_ends_read_stream(self):
        transport = SessionTransport()
        await transport.close()

        with pytest.raises(anyio.ClosedResourceError):
            transport._read_stream_writer.send_nowait(SessionMessage(decode_message(json.dumps(PING))))
