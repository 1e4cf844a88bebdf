"""File-backed storage for memory bank documents.

One plain markdown file per document kind inside the memory bank folder.
There is no frontmatter: the last-updated time is the file's mtime.
Documents are cached in memory after initialize() and kept in sync by
update_file().
"""

import logging
from datetime import datetime, timedelta

import anyio

from mcp_memory_bank.exceptions import NotFoundError, PersistenceError
from mcp_memory_bank.models import Document, DocumentKind, MemoryBankConfig
from mcp_memory_bank.templates import get_template

logger = logging.getLogger(__name__)


class MemoryBankStorage:
    """Async CRUD over the fixed set of memory bank files."""

    def __init__(self, config: MemoryBankConfig | None = None):
        self.config = config or MemoryBankConfig()
        self.folder = anyio.Path(self.config.memory_bank_dir)
        self._files: dict[DocumentKind, Document] = {}

    def _path(self, kind: DocumentKind) -> anyio.Path:
        return self.folder / kind.value

    async def _mtime(self, path: anyio.Path) -> datetime:
        stat = await path.stat()
        return datetime.fromtimestamp(stat.st_mtime)

    async def initialize(self) -> None:
        """Create the folder and load every file, writing templates for missing ones.

        Running this again on a complete folder only reloads the cache.
        """
        try:
            await self.folder.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise PersistenceError(
                f"Could not create memory bank folder {self.folder}: {e}"
            ) from e

        files: dict[DocumentKind, Document] = {}
        for kind in DocumentKind:
            path = self._path(kind)
            try:
                if await path.exists():
                    content = await path.read_text(encoding="utf-8", errors="replace")
                else:
                    content = get_template(kind)
                    await path.write_text(content, encoding="utf-8")
                    logger.info(f"Created {kind.value} from template")
                last_updated = await self._mtime(path)
            except OSError as e:
                raise PersistenceError(f"Could not load {kind.value}: {e}") from e

            files[kind] = Document(kind=kind, content=content, last_updated=last_updated)

        self._files = files
        logger.debug(f"Loaded {len(files)} memory bank files from {self.folder}")

    def get_file(self, kind: DocumentKind | str) -> Document | None:
        """Return the cached document, or None if it is unknown or not loaded."""
        resolved = DocumentKind.parse(kind)
        if resolved is None:
            return None
        return self._files.get(resolved)

    def get_all_files(self) -> list[Document]:
        """Return the cached documents in DocumentKind declaration order."""
        return [self._files[kind] for kind in DocumentKind if kind in self._files]

    async def update_file(self, kind: DocumentKind | str, content: str) -> Document:
        """Overwrite a file and refresh its cache entry.

        The cache is only touched after the write succeeded.

        Raises:
            NotFoundError: The kind is not a memory bank file
            PersistenceError: The file could not be written
        """
        resolved = DocumentKind.parse(kind)
        if resolved is None:
            raise NotFoundError(f"File {kind} not found")

        await self._write(resolved, content)
        return self._commit(resolved, content)

    async def _write(self, kind: DocumentKind, content: str) -> None:
        try:
            await self.folder.mkdir(parents=True, exist_ok=True)
            await self._path(kind).write_text(content, encoding="utf-8")
        except OSError as e:
            logger.error(f"Failed to write {kind.value}: {e}")
            raise PersistenceError(f"Could not write {kind.value}: {e}") from e

    def _commit(self, kind: DocumentKind, content: str) -> Document:
        now = datetime.now()
        previous = self._files.get(kind)
        if previous and previous.last_updated and now <= previous.last_updated:
            now = previous.last_updated + timedelta(microseconds=1)
        document = Document(kind=kind, content=content, last_updated=now)
        self._files[kind] = document
        return document

    async def is_initialized(self) -> bool:
        """Check on disk that the folder and every file exist."""
        if not await self.folder.is_dir():
            return False
        for kind in DocumentKind:
            if not await self._path(kind).exists():
                return False
        return True

    def render_all(self) -> str:
        """Render every cached document with its name and last-updated time."""
        blocks = []
        for doc in self.get_all_files():
            updated = doc.last_updated.isoformat() if doc.last_updated else "never"
            blocks.append(f"{doc.kind.value}:\nlast updated: {updated}\n\n{doc.content}")
        return "\n\n".join(blocks)
