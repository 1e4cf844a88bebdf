"""Prompts for the memory bank MCP server."""

from fastmcp import FastMCP

from .instructions import MEMORY_BANK_GUIDE


def register_prompts(mcp: FastMCP) -> None:
    @mcp.prompt(
        name="memory-bank-guide",
        description="Explains the memory bank files and the tools for working with them",
    )
    def memory_bank_guide() -> str:
        return MEMORY_BANK_GUIDE
