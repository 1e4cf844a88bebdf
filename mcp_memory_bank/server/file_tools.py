"""File tools for the memory bank MCP server.

Failures are raised as ToolLevelError so the client gets an error result it
can read, not a protocol fault.
"""

# ruff: noqa: E501

import logging

from fastmcp import FastMCP

from mcp_memory_bank.debug import timed_tool
from mcp_memory_bank.exceptions import NotFoundError, PersistenceError, ToolLevelError
from mcp_memory_bank.storage import MemoryBankStorage

from .utils import _format_listing

logger = logging.getLogger(__name__)


def register_file_tools(mcp: FastMCP, storage: MemoryBankStorage) -> None:
    """Register get, update and list tools for memory bank files."""

    async def get_memory_bank_file(file_type: str) -> str:
        """Retrieve the content of a memory bank file.

        Args:
            file_type: File name, e.g. projectbrief.md, activeContext.md or progress.md
        """
        document = storage.get_file(file_type)
        if document is None:
            raise ToolLevelError(f"File {file_type} not found")
        return document.content

    async def update_memory_bank_file(file_type: str, content: str) -> str:
        """Replace the content of a memory bank file.

        Args:
            file_type: File name, e.g. activeContext.md
            content: New markdown content for the whole file
        """
        try:
            document = await storage.update_file(file_type, content)
        except (NotFoundError, PersistenceError) as e:
            logger.error(f"Failed to update {file_type}: {e}")
            raise ToolLevelError(f"Error updating {file_type}: {e}") from e
        return f"Updated {document.kind.value} successfully"

    async def list_memory_bank_files() -> str:
        """List all memory bank files and when each was last updated."""
        return _format_listing(storage.get_all_files())

    for name, fn in [
        ("get-memory-bank-file", get_memory_bank_file),
        ("update-memory-bank-file", update_memory_bank_file),
        ("list-memory-bank-files", list_memory_bank_files),
    ]:
        mcp.tool(name=name)(timed_tool(fn, tool_name=name))
