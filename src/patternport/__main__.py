import asyncio
from pathlib import Path
from typing import List, Optional

import typer

from . import __version__
from .main import mcp_server

cli = typer.Typer(
    name="patternport",
    help="PatternPort: block pattern authoring with theme file import and export.",
    add_completion=False,
)


def _workspace_id(workspace: Path) -> str:
    return str(workspace.expanduser().resolve())


@cli.command(help="Starts the PatternPort MCP server in STDIO mode (default command).")
def start():
    """Start the server in STDIO mode, waiting for tool calls with a 'workspace_id'."""
    print("Starting PatternPort MCP server in STDIO mode...")
    print("Waiting for tool calls with a 'workspace_id' argument...")
    mcp_server.run(transport="stdio")


@cli.command(help="Starts the HTTP API.")
def serve(
    host: str = typer.Option("127.0.0.1", help="Interface to bind."),
    port: int = typer.Option(8000, help="Port to listen on."),
):
    import uvicorn

    from .app_factory import create_app

    uvicorn.run(create_app, factory=True, host=host, port=port)


@cli.command(name="import", help="Imports theme pattern files into the workspace database.")
def import_patterns(
    workspace: Path = typer.Argument(..., help="Theme directory (the workspace)."),
    files: Optional[List[str]] = typer.Option(
        None, "--file", "-f", help="Pattern file name to import; repeat for more. Default: all."
    ),
):
    from .db.database import get_db_session_for_workspace
    from .services import io_service

    workspace_id = _workspace_id(workspace)

    async def _run():
        async with get_db_session_for_workspace(workspace_id) as db:
            sync = io_service.for_workspace(db, workspace_id)
            return sync.import_named(files) if files else sync.import_all()

    result = asyncio.run(_run())
    print(result.message)
    if result.errors:
        raise typer.Exit(code=1)


@cli.command(name="export", help="Writes every published pattern to the theme's pattern directory.")
def export_patterns(
    workspace: Path = typer.Argument(..., help="Theme directory (the workspace)."),
):
    from .db.database import get_db_session_for_workspace
    from .services import io_service

    workspace_id = _workspace_id(workspace)

    async def _run():
        async with get_db_session_for_workspace(workspace_id) as db:
            return io_service.for_workspace(db, workspace_id).export_all()

    result = asyncio.run(_run())
    print(f"Wrote {len(result.files_created)} pattern files to {result.path}")
    for error in result.errors:
        print(error)
    if result.errors:
        raise typer.Exit(code=1)


@cli.command(help="Show the application's version and exit.")
def version():
    """Show the application's version and exit."""
    print(f"PatternPort version: {__version__}")


@cli.callback(invoke_without_command=True)
def main(ctx: typer.Context):
    """Handle CLI callback that invokes start command when no subcommand is given."""
    if ctx.invoked_subcommand is None:
        start()


if __name__ == "__main__":
    cli()
