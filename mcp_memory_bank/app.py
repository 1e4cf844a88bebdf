"""HTTP front end of the memory bank MCP server.

Routes:
- GET  /health    - liveness check used to detect a running instance
- GET  /status    - server and session state, for connection debugging
- GET  /sse       - opens the streaming session
- POST /messages  - control channel for the attached session
"""

import logging
from contextlib import asynccontextmanager

from fastmcp import FastMCP
from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.routing import Route

from mcp_memory_bank.debug import reset_session_id, set_session_id
from mcp_memory_bank.exceptions import NoActiveSessionError
from mcp_memory_bank.models import ServerState
from mcp_memory_bank.server import create_memory_bank_server
from mcp_memory_bank.storage import MemoryBankStorage
from mcp_memory_bank.transport import SessionRegistry, SessionState, SessionTransport

logger = logging.getLogger(__name__)

HEALTH_PATH = "/health"
STATUS_PATH = "/status"
SSE_PATH = "/sse"
MESSAGES_PATH = "/messages"

# Body returned by /health; other tools look for this exact value
HEALTH_STATUS = "ok ok"


class ProtocolServer:
    """Owns the MCP capability registry and the attached streaming session."""

    def __init__(
        self,
        storage: MemoryBankStorage,
        state: ServerState | None = None,
        mcp: FastMCP | None = None,
    ):
        self.storage = storage
        self.state = state or ServerState(port=storage.config.port)
        self.mcp = mcp or create_memory_bank_server(storage)
        self.sessions = SessionRegistry()

    def status_payload(self) -> dict:
        return {
            "mcpServer": self.mcp is not None,
            "transport": self.sessions.active is not None,
            "isRunning": self.state.is_running,
            "port": self.state.port,
            "sessionState": self.sessions.state.value,
            "externallyOwned": self.state.is_externally_owned,
        }

    async def health_check(self, request: Request) -> JSONResponse:
        return JSONResponse({"status": HEALTH_STATUS})

    async def status(self, request: Request) -> JSONResponse:
        return JSONResponse(self.status_payload())

    async def handle_sse(self, request: Request) -> Response:
        """Attach a new session and run the MCP server over it until it closes."""
        transport = SessionTransport(MESSAGES_PATH)
        self.sessions.attach(transport)
        logger.info(f"SSE connection from {request.client}, session {transport.transport_id}")

        token = set_session_id(transport.transport_id)
        server = self.mcp._mcp_server
        try:
            async with transport.connect(
                request.scope, request.receive, request._send
            ) as (read_stream, write_stream):
                await server.run(
                    read_stream,
                    write_stream,
                    server.create_initialization_options(),
                )
        finally:
            self.sessions.detach(transport)
            reset_session_id(token)

        logger.info(f"SSE connection closed, session {transport.transport_id}")
        return Response()

    async def handle_messages(self, request: Request) -> Response:
        """Forward a control message to the attached session."""
        session_id = request.query_params.get("session_id")
        try:
            transport = self.sessions.resolve(session_id)
            if transport is None:
                logger.warning(f"Message for unknown session {session_id}")
                return JSONResponse(
                    {
                        "error": "Session not found",
                        "message": f"Session {session_id} is not the active SSE connection",
                    },
                    status_code=404,
                )
            return await transport.handle_post_message(request)
        except NoActiveSessionError as e:
            logger.error(f"No active transport found: {e}")
            active = self.sessions.active
            if active is not None and active.state == SessionState.CLOSED:
                self.sessions.detach(active)
            return JSONResponse(
                {
                    "error": "No active SSE connection",
                    "message": "Please reconnect to the SSE endpoint first",
                },
                status_code=503,
            )

    def http_app(self) -> Starlette:
        """Create the Starlette ASGI app serving the memory bank."""

        @asynccontextmanager
        async def lifespan(app: Starlette):
            logger.info("HTTP server starting up")
            try:
                yield
            finally:
                logger.info("HTTP server shutting down")

        routes = [
            Route(HEALTH_PATH, self.health_check, methods=["GET"]),
            Route(STATUS_PATH, self.status, methods=["GET"]),
            Route(SSE_PATH, self.handle_sse, methods=["GET"]),
            Route(MESSAGES_PATH, self.handle_messages, methods=["POST"]),
        ]
        return Starlette(routes=routes, lifespan=lifespan)
