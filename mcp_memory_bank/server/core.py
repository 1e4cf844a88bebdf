"""Core MCP server creation function for the memory bank.

Builds the FastMCP capability registry: resources, tools and prompts.
"""

from fastmcp import FastMCP

from mcp_memory_bank.models import MemoryBankConfig
from mcp_memory_bank.storage import MemoryBankStorage

from .file_tools import register_file_tools
from .instructions import SERVER_INSTRUCTIONS
from .prompts import register_prompts
from .resources import register_resources


def create_memory_bank_server(
    storage: MemoryBankStorage | None = None,
    config: MemoryBankConfig | None = None,
) -> FastMCP:
    """Create an MCP server exposing the memory bank.

    Args:
        storage: Storage to serve (created from config if not provided)
        config: Optional MemoryBankConfig (ignored if storage provided)
    """
    if storage is None:
        storage = MemoryBankStorage(config)
    config = storage.config

    mcp = FastMCP(
        config.server_name,
        instructions=SERVER_INSTRUCTIONS,
        version=config.server_version,
    )

    register_resources(mcp, storage)
    register_file_tools(mcp, storage)
    register_prompts(mcp)

    return mcp
