"""Logging setup and tool-call instrumentation.

Tool timing is only logged when debug mode is on. Enable it with the
MEMORY_BANK_DEBUG=1 environment variable or enable_debug().
"""

import contextvars
import functools
import json
import logging
import os
import time
from typing import Any, Callable, TypeVar

from fastmcp.exceptions import ToolError

logger = logging.getLogger("mcp_memory_bank.debug")

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

# Transport id of the session a tool call arrived on
_session_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "session_id", default=None
)

_debug_enabled = False

SLOW_TOOL_THRESHOLD_MS = 100

T = TypeVar("T", bound=Callable[..., Any])


def is_debug_enabled() -> bool:
    """Check if debug logging is enabled.

    Returns True if either:
    - enable_debug() was called
    - MEMORY_BANK_DEBUG env var is set to "1", "true", or "yes"
    """
    if _debug_enabled:
        return True
    env_val = os.environ.get("MEMORY_BANK_DEBUG", "").lower()
    return env_val in ("1", "true", "yes")


def enable_debug() -> None:
    global _debug_enabled
    _debug_enabled = True


def disable_debug() -> None:
    global _debug_enabled
    _debug_enabled = False


def set_session_id(session_id: str | None) -> contextvars.Token:
    """Bind a session id to the current context for log correlation."""
    return _session_id.set(session_id)


def reset_session_id(token: contextvars.Token) -> None:
    _session_id.reset(token)


def get_session_id() -> str | None:
    return _session_id.get()


def _truncate(value: str, max_len: int = 100) -> str:
    """Truncate a string with ellipsis if too long."""
    if len(value) <= max_len:
        return value
    return value[: max_len - 3] + "..."


def _format_value(value: Any, max_len: int = 100) -> str:
    if value is None:
        return "None"
    if isinstance(value, str):
        return _truncate(repr(value), max_len)
    if isinstance(value, (dict, list)):
        try:
            return _truncate(json.dumps(value, default=str), max_len)
        except (TypeError, ValueError):
            return _truncate(str(value), max_len)
    return _truncate(str(value), max_len)


def _format_args(args: dict[str, Any], max_len: int = 100) -> str:
    """Format tool arguments for logging, shortening long document bodies."""
    if not args:
        return "{}"
    parts = [f"{k}={_format_value(v, 50)}" for k, v in args.items()]
    return _truncate("{" + ", ".join(parts) + "}", max_len)


def _summarize_result(result: Any) -> str:
    if result is None:
        return "None"
    if isinstance(result, str):
        return f"str({len(result)} chars)"
    if isinstance(result, list):
        return f"list({len(result)} items)"
    return type(result).__name__


def timed_tool(fn: T, *, tool_name: str | None = None) -> T:
    """Wrap an async tool function with timing and logging.

    Recoverable tool errors are logged as warnings and re-raised so FastMCP
    can turn them into an error result. Anything else is logged as an error.
    """
    name = tool_name or fn.__name__

    @functools.wraps(fn)
    async def wrapper(*args: Any, **kwargs: Any) -> Any:
        if not is_debug_enabled():
            return await fn(*args, **kwargs)

        context_str = f"session={get_session_id() or '-'}"
        logger.debug(f"CALL [{context_str}] {name}({_format_args(kwargs)})")
        start = time.perf_counter()

        try:
            result = await fn(*args, **kwargs)
        except ToolError as e:
            elapsed = (time.perf_counter() - start) * 1000
            logger.warning(
                f"TOOL_ERROR [{context_str}] {name} in {elapsed:.1f}ms: {e}"
            )
            raise
        except Exception as e:
            elapsed = (time.perf_counter() - start) * 1000
            logger.error(
                f"FAIL [{context_str}] {name} failed in {elapsed:.1f}ms: "
                f"{type(e).__name__}: {e}"
            )
            raise

        elapsed = (time.perf_counter() - start) * 1000
        summary = _summarize_result(result)
        if elapsed > SLOW_TOOL_THRESHOLD_MS:
            logger.warning(
                f"SLOW [{context_str}] {name} completed in {elapsed:.1f}ms -> {summary}"
            )
        else:
            logger.debug(
                f"DONE [{context_str}] {name} completed in {elapsed:.1f}ms -> {summary}"
            )
        return result

    return wrapper  # type: ignore[return-value]


def configure_logging(level: int = logging.INFO) -> None:
    """Configure the package logger.

    Sets up the mcp_memory_bank logger with a stream handler. Safe to call
    more than once.
    """
    package_logger = logging.getLogger("mcp_memory_bank")
    package_logger.setLevel(logging.DEBUG if is_debug_enabled() else level)

    if not package_logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        package_logger.addHandler(handler)
