"""MCP server package for the memory bank.

Provides resources, tools and a prompt over the memory bank files.
"""

from .core import create_memory_bank_server
from .instructions import MEMORY_BANK_GUIDE, SERVER_INSTRUCTIONS
from .resources import FILE_URI_TEMPLATE, ROOT_URI

__all__ = [
    "create_memory_bank_server",
    "FILE_URI_TEMPLATE",
    "MEMORY_BANK_GUIDE",
    "ROOT_URI",
    "SERVER_INSTRUCTIONS",
]
