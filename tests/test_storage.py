"""Tests for memory bank file storage."""

import os
from unittest.mock import patch

import anyio
import pytest

from mcp_memory_bank.exceptions import NotFoundError, PersistenceError
from mcp_memory_bank.models import DocumentKind
from mcp_memory_bank.storage import MemoryBankStorage
from mcp_memory_bank.templates import get_template, section_headers


class TestInitialize:
    """Tests for MemoryBankStorage.initialize."""

    @pytest.mark.asyncio
    async def test_creates_folder_and_templates(self, storage, config):
        """An empty workspace gets one templated file per kind."""
        await storage.initialize()

        folder = config.memory_bank_dir
        assert folder.is_dir()
        for kind in DocumentKind:
            path = folder / kind.value
            assert path.read_text() == get_template(kind)

    @pytest.mark.asyncio
    async def test_templates_contain_section_headers(self, storage):
        await storage.initialize()

        for kind in DocumentKind:
            document = storage.get_file(kind)
            assert document.content.strip()
            headers = section_headers(kind)
            assert headers
            for header in headers:
                assert f"## {header}" in document.content

    @pytest.mark.asyncio
    async def test_progress_template_headers(self, storage):
        await storage.initialize()

        content = storage.get_file(DocumentKind.PROGRESS).content
        assert content.startswith("# Progress")
        assert "## What works" in content
        assert "## Known issues" in content

    @pytest.mark.asyncio
    async def test_loads_existing_content(self, storage, config):
        folder = config.memory_bank_dir
        folder.mkdir(parents=True)
        (folder / "progress.md").write_text("# Progress\n\nAll done.\n")

        await storage.initialize()

        assert storage.get_file(DocumentKind.PROGRESS).content == "# Progress\n\nAll done.\n"
        # Missing files are still filled from templates
        brief = storage.get_file(DocumentKind.PROJECT_BRIEF)
        assert brief.content == get_template(DocumentKind.PROJECT_BRIEF)

    @pytest.mark.asyncio
    async def test_last_updated_comes_from_mtime(self, storage, config):
        folder = config.memory_bank_dir
        folder.mkdir(parents=True)
        path = folder / "techContext.md"
        path.write_text("stack")
        os.utime(path, (1_600_000_000, 1_600_000_000))

        await storage.initialize()

        document = storage.get_file(DocumentKind.TECH_CONTEXT)
        assert document.last_updated.timestamp() == pytest.approx(1_600_000_000)

    @pytest.mark.asyncio
    async def test_loads_file_with_invalid_utf8(self, storage, config):
        """Undecodable bytes in an edited file are replaced, not fatal."""
        folder = config.memory_bank_dir
        folder.mkdir(parents=True)
        (folder / "progress.md").write_bytes(b"# Progress\n\xff\xfe caf\xe9\n")

        await storage.initialize()

        content = storage.get_file(DocumentKind.PROGRESS).content
        assert content.startswith("# Progress\n")
        assert "\ufffd" in content
        assert len(storage.get_all_files()) == len(DocumentKind)

    @pytest.mark.asyncio
    async def test_initialize_is_idempotent(self, storage):
        """A second initialize changes neither content nor timestamps."""
        await storage.initialize()
        first = {d.kind: (d.content, d.last_updated) for d in storage.get_all_files()}

        await storage.initialize()
        second = {d.kind: (d.content, d.last_updated) for d in storage.get_all_files()}

        assert first == second

    @pytest.mark.asyncio
    async def test_initialize_refreshes_cache_from_disk(self, storage, config):
        await storage.initialize()
        (config.memory_bank_dir / "activeContext.md").write_text("edited outside")

        await storage.initialize()

        assert storage.get_file(DocumentKind.ACTIVE_CONTEXT).content == "edited outside"

    @pytest.mark.asyncio
    async def test_initialize_folder_failure_raises_persistence_error(self, storage):
        with patch.object(anyio.Path, "mkdir", side_effect=PermissionError("denied")):
            with pytest.raises(PersistenceError, match="denied"):
                await storage.initialize()


class TestReads:
    """Tests for get_file and get_all_files."""

    def test_get_file_before_initialize(self, storage):
        assert storage.get_file(DocumentKind.PROGRESS) is None
        assert storage.get_all_files() == []

    @pytest.mark.asyncio
    async def test_get_all_files_complete_and_ordered(self, storage):
        await storage.initialize()

        documents = storage.get_all_files()

        assert [d.kind for d in documents] == list(DocumentKind)

    @pytest.mark.asyncio
    async def test_get_file_by_name(self, storage):
        await storage.initialize()

        assert storage.get_file("systemPatterns.md").kind == DocumentKind.SYSTEM_PATTERNS
        assert storage.get_file("system-patterns").kind == DocumentKind.SYSTEM_PATTERNS

    @pytest.mark.asyncio
    async def test_get_unknown_file(self, storage):
        await storage.initialize()

        assert storage.get_file("secrets.md") is None


class TestUpdateFile:
    """Tests for MemoryBankStorage.update_file."""

    @pytest.mark.asyncio
    async def test_update_round_trip(self, storage, config):
        await storage.initialize()
        before = storage.get_file(DocumentKind.PROGRESS).last_updated

        await storage.update_file(DocumentKind.PROGRESS, "X")

        document = storage.get_file(DocumentKind.PROGRESS)
        assert document.content == "X"
        assert document.last_updated > before
        assert (config.memory_bank_dir / "progress.md").read_text() == "X"

    @pytest.mark.asyncio
    async def test_rapid_updates_have_increasing_timestamps(self, storage):
        await storage.initialize()

        first = await storage.update_file("progress.md", "one")
        second = await storage.update_file("progress.md", "two")

        assert second.last_updated > first.last_updated
        assert storage.get_file("progress.md").content == "two"

    @pytest.mark.asyncio
    async def test_update_unknown_kind(self, storage):
        await storage.initialize()

        with pytest.raises(NotFoundError):
            await storage.update_file("unknown.md", "content")

    @pytest.mark.asyncio
    async def test_failed_write_leaves_cache_untouched(self, storage):
        """The cache only changes after the durable write succeeded."""
        await storage.initialize()
        before = storage.get_file(DocumentKind.ACTIVE_CONTEXT)

        with patch.object(anyio.Path, "write_text", side_effect=OSError(28, "No space left on device")):
            with pytest.raises(PersistenceError, match="No space left"):
                await storage.update_file(DocumentKind.ACTIVE_CONTEXT, "new focus")

        after = storage.get_file(DocumentKind.ACTIVE_CONTEXT)
        assert after == before

    @pytest.mark.asyncio
    async def test_update_recreates_missing_folder(self, storage, config):
        await storage.initialize()
        for path in config.memory_bank_dir.iterdir():
            path.unlink()
        config.memory_bank_dir.rmdir()

        await storage.update_file(DocumentKind.PROGRESS, "back")

        assert (config.memory_bank_dir / "progress.md").read_text() == "back"


class TestIsInitialized:
    """Tests for MemoryBankStorage.is_initialized."""

    @pytest.mark.asyncio
    async def test_false_for_empty_workspace(self, storage):
        assert await storage.is_initialized() is False

    @pytest.mark.asyncio
    async def test_true_after_initialize(self, storage):
        await storage.initialize()
        assert await storage.is_initialized() is True

    @pytest.mark.asyncio
    async def test_checks_disk_not_cache(self, storage, config):
        await storage.initialize()
        (config.memory_bank_dir / "techContext.md").unlink()

        assert await storage.is_initialized() is False
        # The cache still has the document
        assert storage.get_file(DocumentKind.TECH_CONTEXT) is not None

    @pytest.mark.asyncio
    async def test_false_with_partial_folder(self, config):
        config.memory_bank_dir.mkdir(parents=True)
        (config.memory_bank_dir / "progress.md").write_text("x")

        assert await MemoryBankStorage(config).is_initialized() is False


class TestRenderAll:
    @pytest.mark.asyncio
    async def test_render_all_includes_every_file(self, storage):
        await storage.initialize()
        await storage.update_file(DocumentKind.PROGRESS, "Shipped v1")

        rendered = storage.render_all()

        for kind in DocumentKind:
            assert f"{kind.value}:\nlast updated: " in rendered
        assert "Shipped v1" in rendered
