"""Exceptions raised by the memory bank server.

Resource and tool failures use FastMCP's error classes so that FastMCP maps
them to the right channel: a ``ResourceError`` fails the JSON-RPC request,
while a ``ToolError`` becomes a tool result with ``isError`` set.
"""

from fastmcp.exceptions import ResourceError, ToolError


class MemoryBankError(Exception):
    """Base class for memory bank errors."""


class NotFoundError(MemoryBankError, ResourceError):
    """A document kind was not found in the store."""


class ToolLevelError(MemoryBankError, ToolError):
    """A tool call failed in a way the client is expected to inspect."""


class PersistenceError(MemoryBankError):
    """Writing to durable storage failed."""


class NoActiveSessionError(MemoryBankError):
    """A control message arrived while no streaming session was attached."""


class PortInUseError(MemoryBankError):
    """The listener could not bind because the address is already in use."""

    def __init__(self, port: int, host: str | None = None):
        self.port = port
        self.host = host
        where = f"{host}:{port}" if host else str(port)
        super().__init__(f"Port {where} is already in use")
