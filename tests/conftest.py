"""Pytest fixtures for memory bank tests."""

import pytest

from mcp_memory_bank.models import MemoryBankConfig
from mcp_memory_bank.storage import MemoryBankStorage


@pytest.fixture
def config(tmp_path):
    """Config rooted in a temp workspace, listening on an ephemeral port."""
    return MemoryBankConfig(
        workspace_path=str(tmp_path),
        host="127.0.0.1",
        port=0,
        probe_host="127.0.0.1",
        shutdown_timeout=1.0,
    )


@pytest.fixture
def storage(config):
    """Uninitialized storage for the temp workspace."""
    return MemoryBankStorage(config)


@pytest.fixture
def sample_config_yaml(tmp_path):
    """A config file overriding the folder name and port."""
    path = tmp_path / ".memory-bank.yaml"
    path.write_text("folder_name: notes\nport: 7400\n")
    return path
