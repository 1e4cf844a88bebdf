"""SSE session transport for the memory bank MCP server.

A client opens ``GET /sse`` and keeps the event stream open. The first event
tells it where to POST its JSON-RPC messages (the control channel). Every
server-to-client message is sent back as a ``message`` event on the stream.

Only one session is attached at a time. A new connection supersedes the
previous one, which is dropped from the registry but not force-closed.

The stream handling is adapted from the mcp SDK's ``SseServerTransport``;
routing goes through SessionRegistry instead of the SDK's per-session map.
"""

import logging
from contextlib import asynccontextmanager
from enum import Enum
from typing import Any, AsyncIterator
from urllib.parse import quote
from uuid import uuid4

import anyio
from anyio.streams.memory import MemoryObjectReceiveStream, MemoryObjectSendStream
from mcp import types
from mcp.shared.message import ServerMessageMetadata, SessionMessage
from pydantic import ValidationError
from sse_starlette import EventSourceResponse
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import Receive, Scope, Send

from mcp_memory_bank.exceptions import NoActiveSessionError

logger = logging.getLogger(__name__)

# Inbound messages queue here in arrival order while the server loop is busy
READ_BUFFER_SIZE = 32


class SessionState(str, Enum):
    ABSENT = "absent"
    CONNECTING = "connecting"
    ATTACHED = "attached"
    CLOSED = "closed"


def decode_message(body: bytes | str) -> types.JSONRPCMessage:
    """Parse a control-channel body into a JSON-RPC message.

    Raises:
        pydantic.ValidationError: The body is not a valid JSON-RPC message
    """
    return types.JSONRPCMessage.model_validate_json(body)


def encode_frame(session_message: SessionMessage) -> dict[str, Any]:
    """Turn an outbound message into an SSE ``message`` event."""
    return {
        "event": "message",
        "data": session_message.message.model_dump_json(by_alias=True, exclude_none=True),
    }


class SessionTransport:
    """One streaming connection and the memory streams the MCP server runs on."""

    def __init__(self, endpoint: str = "/messages"):
        self.transport_id = uuid4().hex
        self.endpoint = endpoint
        self.state = SessionState.CONNECTING

        self._read_stream_writer: MemoryObjectSendStream[SessionMessage | Exception]
        self.read_stream: MemoryObjectReceiveStream[SessionMessage | Exception]
        self._read_stream_writer, self.read_stream = anyio.create_memory_object_stream[
            SessionMessage | Exception
        ](READ_BUFFER_SIZE)

        self.write_stream: MemoryObjectSendStream[SessionMessage]
        self._write_stream_reader: MemoryObjectReceiveStream[SessionMessage]
        self.write_stream, self._write_stream_reader = anyio.create_memory_object_stream[
            SessionMessage
        ](0)

    def __repr__(self) -> str:
        return f"SessionTransport(id={self.transport_id!r}, state={self.state.value!r})"

    @property
    def endpoint_uri(self) -> str:
        """Control-channel URI announced to the client."""
        return f"{quote(self.endpoint)}?session_id={self.transport_id}"

    @asynccontextmanager
    async def connect(
        self, scope: Scope, receive: Receive, send: Send
    ) -> AsyncIterator[
        tuple[
            MemoryObjectReceiveStream[SessionMessage | Exception],
            MemoryObjectSendStream[SessionMessage],
        ]
    ]:
        """Start the event stream and yield the server's (read, write) streams.

        The event stream runs in the background until the client disconnects.
        """
        endpoint_uri = f"{quote(scope.get('root_path', ''))}{self.endpoint_uri}"
        sse_stream_writer, sse_stream_reader = anyio.create_memory_object_stream[
            dict[str, Any]
        ](0)

        async def sse_writer() -> None:
            async with sse_stream_writer, self._write_stream_reader:
                await sse_stream_writer.send({"event": "endpoint", "data": endpoint_uri})
                async for session_message in self._write_stream_reader:
                    await sse_stream_writer.send(encode_frame(session_message))

        async def response_wrapper(scope: Scope, receive: Receive, send: Send) -> None:
            await EventSourceResponse(
                content=sse_stream_reader, data_sender_callable=sse_writer
            )(scope, receive, send)
            await self.close()

        async with anyio.create_task_group() as tg:
            tg.start_soon(response_wrapper, scope, receive, send)
            yield self.read_stream, self.write_stream

    async def close(self) -> None:
        """Close the streams; the server loop sees end-of-input."""
        self.state = SessionState.CLOSED
        await self._read_stream_writer.aclose()
        await self._write_stream_reader.aclose()

    async def forward(self, item: SessionMessage | Exception) -> None:
        """Queue an inbound message for the server loop.

        Raises:
            NoActiveSessionError: The connection behind this transport is gone
        """
        try:
            await self._read_stream_writer.send(item)
        except (anyio.ClosedResourceError, anyio.BrokenResourceError) as e:
            self.state = SessionState.CLOSED
            raise NoActiveSessionError(
                f"Session {self.transport_id} is no longer connected"
            ) from e

    async def handle_post_message(self, request: Request) -> Response:
        """Decode a control-channel POST and hand it to the server loop."""
        body = await request.body()
        try:
            message = decode_message(body)
        except ValidationError as err:
            logger.warning(f"Could not parse message for session {self.transport_id}: {err}")
            await self.forward(err)
            return Response("Could not parse message", status_code=400)

        metadata = ServerMessageMetadata(request_context=request)
        await self.forward(SessionMessage(message, metadata=metadata))
        return Response("Accepted", status_code=202)


class SessionRegistry:
    """Sessions keyed by transport id, with a single attached slot."""

    def __init__(self):
        self._sessions: dict[str, SessionTransport] = {}
        self._active_id: str | None = None

    def __len__(self) -> int:
        return len(self._sessions)

    @property
    def active(self) -> SessionTransport | None:
        if self._active_id is None:
            return None
        return self._sessions.get(self._active_id)

    @property
    def state(self) -> SessionState:
        active = self.active
        return active.state if active else SessionState.ABSENT

    def attach(self, transport: SessionTransport) -> SessionTransport | None:
        """Make a transport the attached session.

        Returns the superseded transport, if any. It is marked closed and
        can no longer be resolved.
        """
        previous = self.active
        if previous is not None:
            previous.state = SessionState.CLOSED
            self._sessions.pop(previous.transport_id, None)
            logger.warning(
                f"Session {previous.transport_id} superseded by {transport.transport_id}"
            )

        self._sessions[transport.transport_id] = transport
        self._active_id = transport.transport_id
        transport.state = SessionState.ATTACHED
        logger.info(f"Session {transport.transport_id} attached")
        return previous

    def detach(self, transport: SessionTransport) -> bool:
        """Drop a transport whose connection closed.

        Returns False if it had already been superseded.
        """
        transport.state = SessionState.CLOSED
        if self._sessions.get(transport.transport_id) is not transport:
            return False
        del self._sessions[transport.transport_id]
        if self._active_id == transport.transport_id:
            self._active_id = None
        logger.info(f"Session {transport.transport_id} detached")
        return True

    def resolve(self, transport_id: str | None = None) -> SessionTransport | None:
        """Find the transport a control message belongs to.

        Without an id the attached session is used. Returns None when the id
        names a session that is not attached.

        Raises:
            NoActiveSessionError: No session is attached
        """
        active = self.active
        if active is None:
            raise NoActiveSessionError("No active SSE connection")
        if transport_id is None:
            return active
        return self._sessions.get(transport_id)
