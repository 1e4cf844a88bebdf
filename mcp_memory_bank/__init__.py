"""AI Memory - a file-backed memory bank served to AI agents over MCP."""

from mcp_memory_bank.app import ProtocolServer
from mcp_memory_bank.exceptions import (
    MemoryBankError,
    NoActiveSessionError,
    NotFoundError,
    PersistenceError,
    PortInUseError,
    ToolLevelError,
)
from mcp_memory_bank.lifecycle import ServerLifecycle
from mcp_memory_bank.models import (
    Document,
    DocumentKind,
    MemoryBankConfig,
    ServerState,
)
from mcp_memory_bank.server import create_memory_bank_server
from mcp_memory_bank.storage import MemoryBankStorage
from mcp_memory_bank.transport import SessionRegistry, SessionState, SessionTransport

__all__ = [
    "Document",
    "DocumentKind",
    "MemoryBankConfig",
    "MemoryBankError",
    "MemoryBankStorage",
    "NoActiveSessionError",
    "NotFoundError",
    "PersistenceError",
    "PortInUseError",
    "ProtocolServer",
    "ServerLifecycle",
    "ServerState",
    "SessionRegistry",
    "SessionState",
    "SessionTransport",
    "ToolLevelError",
    "create_memory_bank_server",
]
