"""Formatting helpers for memory bank server responses."""

from mcp_memory_bank.models import Document


def _format_timestamp(document: Document) -> str:
    if document.last_updated is None:
        return "never"
    return f"{document.last_updated:%Y-%m-%d %H:%M:%S}"


def _format_listing(documents: list[Document]) -> str:
    """One ``<file>: Last updated <when>`` line per document."""
    return "\n".join(
        f"{doc.kind.value}: Last updated {_format_timestamp(doc)}" for doc in documents
    )


def _manifest(documents: list[Document]) -> list[dict]:
    """Kind and last-updated time of every document, for the root resource."""
    return [
        {
            "type": doc.kind.value,
            "lastUpdated": doc.last_updated.isoformat() if doc.last_updated else None,
        }
        for doc in documents
    ]
