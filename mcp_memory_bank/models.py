"""Data models for the memory bank.

Documents are plain markdown files, one per kind, inside a single folder.
"""

from datetime import datetime
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict

DEFAULT_PORT = 7331
ALTERNATIVE_PORT = 7332


class DocumentKind(str, Enum):
    """The fixed set of memory bank files.

    The value doubles as the file name inside the memory bank folder.
    """

    PROJECT_BRIEF = "projectbrief.md"
    PRODUCT_CONTEXT = "productContext.md"
    ACTIVE_CONTEXT = "activeContext.md"
    SYSTEM_PATTERNS = "systemPatterns.md"
    TECH_CONTEXT = "techContext.md"
    PROGRESS = "progress.md"

    @property
    def slug(self) -> str:
        """Kebab-case alias, e.g. ``project-brief``."""
        return self.name.lower().replace("_", "-")

    @classmethod
    def parse(cls, value: "str | DocumentKind") -> "DocumentKind | None":
        """Resolve a kind from its value, slug or member name.

        Returns None for anything that is not a known kind.
        """
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        key = value.strip()
        for kind in cls:
            if key == kind.value:
                return kind
        lowered = key.lower()
        for kind in cls:
            if lowered in (kind.value.lower(), kind.slug, kind.name.lower()):
                return kind
        return None


class Document(BaseModel):
    """One memory bank file."""

    kind: DocumentKind
    content: str
    last_updated: datetime | None = None


class LifecyclePhase(str, Enum):
    STOPPED = "stopped"
    STARTING = "starting"
    RUNNING = "running"


class ServerState(BaseModel):
    """Process-wide server state shared by the lifecycle and the HTTP app."""

    port: int = DEFAULT_PORT
    phase: LifecyclePhase = LifecyclePhase.STOPPED
    is_externally_owned: bool = False

    @property
    def is_running(self) -> bool:
        return self.phase == LifecyclePhase.RUNNING


class MemoryBankConfig(BaseModel):
    """Root configuration for the memory bank server."""

    model_config = ConfigDict(extra="forbid")

    workspace_path: str = "."
    folder_name: str = "memory-bank"
    host: str = "127.0.0.1"
    port: int = DEFAULT_PORT
    alternative_port: int = ALTERNATIVE_PORT
    probe_host: str = "localhost"
    probe_timeout: float = 1.0
    shutdown_timeout: float = 5.0
    server_name: str = "AI Memory MCP Server"
    server_version: str = "0.1.12"

    @property
    def memory_bank_dir(self) -> Path:
        return Path(self.workspace_path) / self.folder_name

    @property
    def probe_ports(self) -> list[int]:
        """Ports checked when looking for an already running instance."""
        return [self.port, self.alternative_port]
