"""Editor rules file that tells coding agents to use the memory bank."""

import logging
from pathlib import Path

from mcp_memory_bank.exceptions import PersistenceError

logger = logging.getLogger(__name__)

RULES_DIR = Path(".cursor") / "rules"
RULES_FILENAME = "memory-bank.mdc"

DEFAULT_RULES = """---
description: Memory Bank workflow
globs:
alwaysApply: true
---

# Memory Bank

My memory resets between sessions. The memory bank is the only link to
previous work, so I read ALL memory bank files at the start of EVERY task.

## Files

1. `projectbrief.md` - foundation document, core requirements and goals
2. `productContext.md` - why the project exists and how it should work
3. `activeContext.md` - current focus, recent changes, next steps
4. `systemPatterns.md` - architecture, key decisions, design patterns
5. `techContext.md` - technologies, setup, constraints, dependencies
6. `progress.md` - what works, what is left, known issues

## Workflow

- Call `list-memory-bank-files`, then `get-memory-bank-file` for each file.
- Do the task using what the memory bank says.
- After significant changes call `update-memory-bank-file`, always keeping
  `activeContext.md` and `progress.md` current.
- When the user says "update memory bank", review every file.
"""


class RulesService:
    """Create and inspect the memory bank rules file of a workspace."""

    def __init__(self, workspace_path: str | Path = "."):
        self.workspace_path = Path(workspace_path)

    @property
    def rules_path(self) -> Path:
        return self.workspace_path / RULES_DIR / RULES_FILENAME

    def is_present(self) -> bool:
        return self.rules_path.is_file()

    def create_rules_file(self, content: str = DEFAULT_RULES, overwrite: bool = False) -> bool:
        """Write the rules file.

        Returns False without writing when the file exists and overwrite is off.
        """
        path = self.rules_path
        if path.exists() and not overwrite:
            return False
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
        except OSError as e:
            raise PersistenceError(f"Could not write rules file {path}: {e}") from e
        logger.info(f"Wrote rules file {path}")
        return True
