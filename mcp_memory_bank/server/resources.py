"""Resources exposing memory bank files for MCP clients to read."""

import json

from fastmcp import FastMCP

from mcp_memory_bank.exceptions import NotFoundError
from mcp_memory_bank.storage import MemoryBankStorage

from .utils import _manifest

ROOT_URI = "memory-bank://files"
FILE_URI_TEMPLATE = "memory-bank://files/{file_type}"


def register_resources(mcp: FastMCP, storage: MemoryBankStorage) -> None:
    """Register the root manifest and the per-file resource template."""

    @mcp.resource(
        ROOT_URI,
        name="memory-bank-root",
        description="List of all memory bank files with their last-updated times",
        mime_type="application/json",
    )
    def memory_bank_root() -> str:
        return json.dumps(_manifest(storage.get_all_files()), indent=2)

    @mcp.resource(
        FILE_URI_TEMPLATE,
        name="memory-bank-files",
        description="Content of a single memory bank file, e.g. memory-bank://files/progress.md",
        mime_type="text/markdown",
    )
    def memory_bank_file(file_type: str) -> str:
        document = storage.get_file(file_type)
        if document is None:
            raise NotFoundError(f"File {file_type} not found")
        return document.content
