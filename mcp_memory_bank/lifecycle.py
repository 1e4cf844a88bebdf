"""Start/stop control for the memory bank HTTP server.

The listening socket is bound here, before uvicorn takes it over, so that an
address conflict surfaces as PortInUseError to the caller instead of uvicorn
exiting the process.
"""

import asyncio
import errno
import logging
import socket
import sys

import httpx
import uvicorn

from mcp_memory_bank.app import HEALTH_PATH, HEALTH_STATUS, ProtocolServer
from mcp_memory_bank.exceptions import PortInUseError
from mcp_memory_bank.models import LifecyclePhase, MemoryBankConfig, ServerState
from mcp_memory_bank.storage import MemoryBankStorage

logger = logging.getLogger(__name__)

_ADDRESS_IN_USE = {errno.EADDRINUSE, getattr(errno, "WSAEADDRINUSE", errno.EADDRINUSE)}

STARTUP_POLL_INTERVAL = 0.01


class ServerLifecycle:
    """Owns the listener, the protocol server and the shared ServerState."""

    def __init__(
        self,
        config: MemoryBankConfig | None = None,
        storage: MemoryBankStorage | None = None,
    ):
        self.config = config or (storage.config if storage else MemoryBankConfig())
        self.storage = storage or MemoryBankStorage(self.config)
        self.state = ServerState(port=self.config.port)
        self.protocol = ProtocolServer(self.storage, state=self.state)
        self._server: uvicorn.Server | None = None
        self._serve_task: asyncio.Task | None = None

    @property
    def is_running(self) -> bool:
        return self.state.is_running

    def get_port(self) -> int:
        return self.state.port

    def status(self) -> str:
        """Summary for UIs: running, external or stopped."""
        if self.state.is_running:
            return "running"
        if self.state.is_externally_owned:
            return "external"
        return "stopped"

    def _bind(self) -> socket.socket:
        host, port = self.config.host, self.config.port
        family = socket.AF_INET6 if ":" in host else socket.AF_INET
        sock = socket.socket(family, socket.SOCK_STREAM)
        if sys.platform != "win32":
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        try:
            sock.bind((host, port))
            sock.listen()
        except OSError as e:
            sock.close()
            if e.errno in _ADDRESS_IN_USE:
                raise PortInUseError(port, host) from e
            raise
        sock.setblocking(False)
        return sock

    async def start(self) -> None:
        """Initialize the memory bank and start serving.

        Does nothing if already started.

        Raises:
            PortInUseError: The configured port is taken
            PersistenceError: The memory bank folder could not be initialized
        """
        if self.state.phase != LifecyclePhase.STOPPED:
            return

        self.state.phase = LifecyclePhase.STARTING
        try:
            await self.storage.initialize()
            sock = self._bind()
        except PortInUseError:
            self.state.phase = LifecyclePhase.STOPPED
            logger.error(
                f"Port {self.config.port} is already in use. Please try a different port."
            )
            raise
        except BaseException:
            self.state.phase = LifecyclePhase.STOPPED
            raise

        config = uvicorn.Config(
            self.protocol.http_app(),
            log_level="warning",
            access_log=False,
            timeout_graceful_shutdown=self.config.shutdown_timeout,
        )
        self._server = uvicorn.Server(config)
        self._serve_task = asyncio.create_task(self._server.serve(sockets=[sock]))

        try:
            await self._wait_started(self._server, self._serve_task)
        except BaseException:
            self._serve_task.cancel()
            sock.close()
            self._server = None
            self._serve_task = None
            self.state.phase = LifecyclePhase.STOPPED
            raise

        self.state.port = sock.getsockname()[1]
        self.state.phase = LifecyclePhase.RUNNING
        logger.info(f"AI Memory MCP server started on port {self.state.port}")

    async def _wait_started(self, server: uvicorn.Server, task: asyncio.Task) -> None:
        while not server.started:
            if task.done():
                task.result()
                raise RuntimeError("HTTP server exited during startup")
            await asyncio.sleep(STARTUP_POLL_INTERVAL)

    async def stop(self) -> None:
        """Close the listener. Does nothing if not running.

        Attached sessions are not notified; clients see the connection close.
        """
        if not self.state.is_running or self._server is None:
            return

        self._server.should_exit = True
        try:
            if self._serve_task is not None:
                await self._serve_task
        finally:
            self._server = None
            self._serve_task = None
            self.state.phase = LifecyclePhase.STOPPED
            logger.info("AI Memory MCP server stopped")

    async def wait_closed(self) -> None:
        """Block until the server exits on its own (e.g. on a signal)."""
        if self._serve_task is None:
            return
        try:
            await self._serve_task
        finally:
            self._server = None
            self._serve_task = None
            self.state.phase = LifecyclePhase.STOPPED

    def set_external_server_running(self, port: int) -> None:
        """Record that another process is already serving the memory bank."""
        self.state.is_externally_owned = True
        self.state.port = port
        logger.info(f"Server already running on port {port}")

    async def probe_external(self, port: int) -> bool:
        """Check whether a compatible server answers on a port.

        Any failure, including the one second timeout, means no server.
        """
        url = f"http://{self.config.probe_host}:{port}{HEALTH_PATH}"
        try:
            async with httpx.AsyncClient(timeout=self.config.probe_timeout) as client:
                response = await client.get(url)
        except httpx.HTTPError as e:
            logger.debug(f"No server running on port {port}: {e}")
            return False

        if response.status_code != 200:
            return False
        try:
            data = response.json()
        except ValueError:
            logger.debug(f"Unexpected health response on port {port}")
            return False
        if not isinstance(data, dict) or data.get("status") != HEALTH_STATUS:
            return False

        if self.state.is_running and port == self.state.port:
            # That's us
            return True

        logger.info(f"Server found running on port {port}")
        self.set_external_server_running(port)
        return True

    async def find_external(self, ports: list[int] | None = None) -> int | None:
        """Probe ports in order and return the first with a running server."""
        for port in ports or self.config.probe_ports:
            if await self.probe_external(port):
                return port
        return None
