"""Configuration loading for the memory bank server."""

import os
import re
from pathlib import Path

import yaml

from mcp_memory_bank.models import MemoryBankConfig

CONFIG_FILE_NAMES = [".memory-bank.yaml", ".memory-bank.yml", "memory-bank.yaml"]


def _substitute_env_vars(obj):
    """Recursively substitute ${VAR} with environment variables."""
    if isinstance(obj, str):
        pattern = r"\$\{([^}]+)\}"
        return re.sub(pattern, lambda m: os.environ.get(m.group(1), m.group(0)), obj)
    elif isinstance(obj, dict):
        return {k: _substitute_env_vars(v) for k, v in obj.items()}
    elif isinstance(obj, list):
        return [_substitute_env_vars(item) for item in obj]
    return obj


def find_config_file(path: str | Path) -> Path | None:
    """Auto-detect a config file inside a workspace directory."""
    base = Path(path)
    for name in CONFIG_FILE_NAMES:
        if (base / name).exists():
            return base / name
    return None


def load_config(path: str | Path = ".", config_file: str | Path | None = None) -> MemoryBankConfig:
    """Load config from a YAML file or fall back to defaults.

    Args:
        path: Workspace directory (used as workspace_path unless the file sets one)
        config_file: Explicit config file; auto-detected in ``path`` when omitted
    """
    if config_file is not None:
        config_path = Path(config_file)
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")
    else:
        config_path = find_config_file(path)

    if config_path is None:
        return MemoryBankConfig(workspace_path=str(path))

    with open(config_path) as f:
        data = yaml.safe_load(f) or {}

    data = _substitute_env_vars(data)
    if "workspace_path" not in data:
        data["workspace_path"] = str(path)
    return MemoryBankConfig.model_validate(data)
