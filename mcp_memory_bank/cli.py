"""CLI for the memory bank MCP server."""

import asyncio
import logging

import click

from mcp_memory_bank.config import load_config
from mcp_memory_bank.exceptions import PersistenceError, PortInUseError


def run_async(coro):
    """Run an async coroutine from sync CLI code."""
    return asyncio.run(coro)


def path_option():
    return click.option(
        "--path",
        "-p",
        default=".",
        help="Workspace containing the memory-bank folder (default: current directory)",
    )


@click.group()
def main():
    """AI Memory - a memory bank for AI agents, served over MCP."""
    pass  # pragma: no cover


@main.command()
@path_option()
@click.option(
    "--config",
    "-c",
    default=None,
    help="Path to config file (auto-detects .memory-bank.yaml)",
)
@click.option("--host", default=None, help="Address to bind (default: 127.0.0.1)")
@click.option("--port", default=None, type=int, help="Port to listen on (default: 7331)")
@click.option("--debug", is_flag=True, help="Log every tool call")
def serve(path: str, config: str | None, host: str | None, port: int | None, debug: bool):
    """Start the memory bank MCP server."""
    from mcp_memory_bank.debug import configure_logging, enable_debug
    from mcp_memory_bank.lifecycle import ServerLifecycle

    memory_config = load_config(path, config)
    overrides = {k: v for k, v in {"host": host, "port": port}.items() if v is not None}
    if overrides:
        memory_config = memory_config.model_copy(update=overrides)

    if debug:
        enable_debug()
    configure_logging(logging.DEBUG if debug else logging.INFO)

    lifecycle = ServerLifecycle(memory_config)

    async def _serve() -> None:
        await lifecycle.start()
        click.echo(
            f"AI Memory MCP server running on http://{memory_config.host}:{lifecycle.get_port()}/sse"
        )
        await lifecycle.wait_closed()

    try:
        run_async(_serve())
    except PortInUseError as e:
        if run_async(lifecycle.probe_external(memory_config.port)):
            click.echo(f"AI Memory MCP server is already running on port {memory_config.port}")
            return
        click.echo(f"Error: {e}. Please try a different port.", err=True)
        raise SystemExit(1)
    except PersistenceError as e:
        click.echo(f"Error: Failed to initialize memory bank: {e}", err=True)
        raise SystemExit(1)
    except KeyboardInterrupt:
        pass
    click.echo("AI Memory MCP server stopped")


@main.command()
@path_option()
def init(path: str):
    """Create the memory bank folder and template files."""
    from mcp_memory_bank.storage import MemoryBankStorage

    storage = MemoryBankStorage(load_config(path))
    try:
        run_async(storage.initialize())
    except PersistenceError as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1)

    for document in storage.get_all_files():
        click.echo(f"{storage.config.memory_bank_dir / document.kind.value}")
    click.echo("Memory bank initialized!")


@main.command()
@path_option()
@click.option("--port", default=None, type=int, help="Port to probe (default: 7331 and 7332)")
def status(path: str, port: int | None):
    """Report whether a server is running and the memory bank is initialized."""
    from mcp_memory_bank.lifecycle import ServerLifecycle

    lifecycle = ServerLifecycle(load_config(path))

    async def _status() -> tuple[int | None, bool]:
        ports = [port] if port is not None else None
        found = await lifecycle.find_external(ports)
        return found, await lifecycle.storage.is_initialized()

    found, initialized = run_async(_status())
    if found is None:
        click.echo("Server: not running")
    else:
        click.echo(f"Server: running on port {found}")
    click.echo(f"Memory bank: {'initialized' if initialized else 'not initialized'}")


@main.command()
@path_option()
def show(path: str):
    """Print every memory bank file."""
    from mcp_memory_bank.storage import MemoryBankStorage

    storage = MemoryBankStorage(load_config(path))

    async def _load() -> bool:
        if not await storage.is_initialized():
            return False
        await storage.initialize()
        return True

    if not run_async(_load()):
        click.echo("Memory bank is not initialized. Run 'init' first.", err=True)
        raise SystemExit(1)
    click.echo(storage.render_all())


@main.command()
@path_option()
@click.option("--reset", is_flag=True, help="Overwrite the rules file with the default content")
def rules(path: str, reset: bool):
    """Show or reset the editor rules file for the memory bank."""
    from mcp_memory_bank.rules import RulesService

    service = RulesService(load_config(path).workspace_path)
    if reset:
        try:
            service.create_rules_file(overwrite=True)
        except PersistenceError as e:
            click.echo(f"Error: {e}", err=True)
            raise SystemExit(1)
        click.echo(f"Rules reset: {service.rules_path}")
        return

    state = "present" if service.is_present() else "missing"
    click.echo(f"Rules file {service.rules_path}: {state}")


if __name__ == "__main__":
    main()
