"""Typer CLI for browsing and running research bots."""

import asyncio
import logging
from pathlib import Path
from typing import List, NoReturn, Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from bot_workspace import __version__
from bot_workspace.client import BotClient
from bot_workspace.config import get_settings
from bot_workspace.exceptions import UnknownToolError
from bot_workspace.keepalive import KeepAlive
from bot_workspace.models.invocation import Attachment, InvocationPhase
from bot_workspace.models.tool import FieldKind
from bot_workspace.schema import SchemaResolver
from bot_workspace.status import StatusTier, message_for
from bot_workspace.workspace import Workspace

logger = logging.getLogger(__name__)

app = typer.Typer(help="Research bot workspace", no_args_is_help=True)
console = Console()

POLL_SECONDS = 0.25


def _parse_assignments(assignments: List[str]) -> dict[str, str]:
    values: dict[str, str] = {}
    for item in assignments:
        name, sep, value = item.partition("=")
        if not sep or not name.strip():
            raise typer.BadParameter(f"Expected name=value, got {item!r}", param_hint="--set")
        values[name.strip()] = value
    return values


def _fail(message: str) -> NoReturn:
    console.print(f"[bold red]Error:[/bold red] {message}")
    raise typer.Exit(code=1)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """Browse the research bots and run them against the bot backend."""
    level = logging.DEBUG if verbose else get_settings().log_level.upper()
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


@app.command()
def version() -> None:
    """Print the package version."""
    console.print(__version__)


@app.command()
def tools(
    category: Optional[str] = typer.Option(None, "--category", "-c", help="Only this category"),
) -> None:
    """List the available bots."""
    catalog = SchemaResolver().catalog
    descriptors = catalog.by_category(category) if category else catalog.get_all()
    if not descriptors:
        _fail(f"No bots in category {category!r}")

    table = Table(title="Research Bots")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Name")
    table.add_column("Category")
    table.add_column("Version")
    for tool in descriptors:
        table.add_row(tool.id, tool.name, tool.category, tool.version)
    console.print(table)


@app.command()
def fields(
    tool_id: str = typer.Argument(..., help="Bot id"),
    assignments: List[str] = typer.Option([], "--set", "-s", help="name=value, repeatable"),
) -> None:
    """Show the fields a bot needs for the given values."""
    resolver = SchemaResolver()
    values = _parse_assignments(assignments)
    try:
        active = resolver.active_fields(tool_id, values)
    except UnknownToolError as e:
        _fail(str(e))

    table = Table(title=f"Fields for {tool_id}")
    table.add_column("Name", style="cyan", no_wrap=True)
    table.add_column("Kind")
    table.add_column("Required")
    table.add_column("Default / Choices")
    for spec in active:
        if spec.kind == FieldKind.CHOICE:
            extra = ", ".join(spec.choice_values) + f" (default {spec.default})"
        else:
            extra = "" if spec.default is None else str(spec.default)
        table.add_row(spec.name, spec.kind.value, "yes" if spec.required else "", extra)
    console.print(table)


@app.command()
def run(
    tool_id: str = typer.Argument(..., help="Bot id"),
    assignments: List[str] = typer.Option([], "--set", "-s", help="name=value, repeatable"),
    file: Optional[Path] = typer.Option(
        None, "--file", "-f", exists=True, dir_okay=False, readable=True, help="PDF to attach"
    ),
    copy: bool = typer.Option(False, "--copy", help="Copy the result to the clipboard"),
) -> None:
    """Run a bot and render its answer."""
    values = _parse_assignments(assignments)
    attachment = Attachment.from_path(file) if file else None
    exit_code = asyncio.run(_run(tool_id, values, attachment, copy))
    if exit_code:
        raise typer.Exit(code=exit_code)


async def _run(
    tool_id: str,
    values: dict[str, str],
    attachment: Attachment | None,
    copy: bool,
) -> int:
    settings = get_settings()
    client = BotClient()
    keep_alive = KeepAlive(client, interval=settings.keep_alive_interval)

    try:
        workspace = Workspace(tool_id, client=client)
    except UnknownToolError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        return 1

    if settings.keep_alive_enabled:
        keep_alive.start()

    try:
        async with workspace:
            try:
                for name, value in values.items():
                    workspace.set_value(name, value)
            except KeyError as e:
                console.print(f"[bold red]Error:[/bold red] {e.args[0]}")
                return 1
            workspace.set_attachment(attachment)

            state = await _submit_with_status(workspace)
            if state is None:
                console.print(f"[bold red]Error:[/bold red] {workspace.validation_message}")
                return 1

            if state.phase == InvocationPhase.FAILED:
                console.print(
                    Panel(
                        f"{state.error_reason}\n\nRun the command again to retry.",
                        title="Request failed",
                        border_style="red",
                    )
                )
                return 1

            console.print(
                Panel(
                    workspace.document.to_rich(),
                    title=f"{workspace.tool.name} ({state.elapsed_ms / 1000:.0f}s)",
                    border_style="cyan",
                )
            )
            if copy:
                if workspace.copy():
                    console.print("[green]Copied to clipboard[/green]")
                else:
                    console.print("[yellow]Could not copy to clipboard[/yellow]")
            return 0
    finally:
        await keep_alive.stop()


async def _submit_with_status(workspace: Workspace):
    """Submit while showing the current status tier."""
    submission = asyncio.ensure_future(workspace.submit())
    noted = False
    with console.status(message_for(StatusTier.PROCESSING).headline) as status:
        while not submission.done():
            await asyncio.wait({submission}, timeout=POLL_SECONDS)
            state = workspace.state
            if state is None or state.settled:
                continue
            message = message_for(state.tier)
            text = message.headline
            if message.detail:
                text = f"{text} [dim]{message.detail}[/dim]"
            status.update(f"{text} [dim]({state.elapsed_ms // 1000}s)[/dim]")
            if message.note and not noted:
                console.print(f"[dim]{message.note}[/dim]")
                noted = True
    return submission.result()
