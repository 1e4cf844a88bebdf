"""Static text served to clients: server instructions and the guide prompt."""

# fmt: off
# ruff: noqa: E501
SERVER_INSTRUCTIONS = """
The Memory Bank stores the project context an AI assistant needs to pick up work across
sessions. It is a fixed set of six markdown files kept in the workspace's `memory-bank/`
folder, each identified by its file name (for example `projectbrief.md`).

Read the files with `get-memory-bank-file` or the `memory-bank://files/{file_type}` resource,
see when each was last changed with `list-memory-bank-files`, and persist new knowledge with
`update-memory-bank-file`. Updates replace the whole file.
""".strip()

MEMORY_BANK_GUIDE = """You are an AI assistant with access to a Memory Bank for this project.
The Memory Bank contains files that document the project context, progress, and technical details.

Memory Bank files:
- projectbrief.md: The foundation document that defines core requirements and goals
- productContext.md: Why this project exists, problems it solves, user experience goals
- activeContext.md: Current work focus, recent changes, next steps
- systemPatterns.md: System architecture, key technical decisions, design patterns
- techContext.md: Technologies used, development setup, technical constraints
- progress.md: What works, what's left to build, current status

You can use the following tools:
- get-memory-bank-file: Retrieve the content of a specific memory bank file
- update-memory-bank-file: Update the content of a memory bank file
- list-memory-bank-files: List all available memory bank files

When interacting with the user, you should:
1. Start by reviewing all memory bank files to understand the project context
2. Help the user with their task based on the memory bank content
3. Update the memory bank files as needed to reflect new information

If the memory bank is missing information for a task, inform the user and suggest adding it."""
# fmt: on
