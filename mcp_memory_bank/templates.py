"""Default content written for memory bank files that do not exist yet."""

from mcp_memory_bank.models import DocumentKind

# ruff: noqa: E501

TEMPLATES: dict[DocumentKind, str] = {
    DocumentKind.PROJECT_BRIEF: "# Project Brief\n\n*Foundation document that shapes all other files*\n\n## Core Requirements\n\n## Project Goals\n\n## Project Scope\n",
    DocumentKind.PRODUCT_CONTEXT: "# Product Context\n\n## Why this project exists\n\n## Problems it solves\n\n## How it should work\n\n## User experience goals\n",
    DocumentKind.ACTIVE_CONTEXT: "# Active Context\n\n## Current work focus\n\n## Recent changes\n\n## Next steps\n\n## Active decisions and considerations\n",
    DocumentKind.SYSTEM_PATTERNS: "# System Patterns\n\n## System architecture\n\n## Key technical decisions\n\n## Design patterns in use\n\n## Component relationships\n",
    DocumentKind.TECH_CONTEXT: "# Tech Context\n\n## Technologies used\n\n## Development setup\n\n## Technical constraints\n\n## Dependencies\n",
    DocumentKind.PROGRESS: "# Progress\n\n## What works\n\n## What's left to build\n\n## Current status\n\n## Known issues\n",
}

DEFAULT_TEMPLATE = "# Memory Bank File\n\n*This is a default template*\n"


def get_template(kind: DocumentKind) -> str:
    """Return the starting content for a memory bank file."""
    return TEMPLATES.get(kind, DEFAULT_TEMPLATE)


def section_headers(kind: DocumentKind) -> list[str]:
    """List the ``## `` section headers of a kind's template."""
    return [
        line[3:].strip()
        for line in get_template(kind).splitlines()
        if line.startswith("## ")
    ]
