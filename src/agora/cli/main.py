"""Main CLI application - ties all subcommands together.

This is the entry point for the agora CLI.
"""

from typing import Annotated

import typer

from agora.cli.agent import app as agent_app
from agora.cli.common import MUTED, console, run_async, success

app = typer.Typer(
    name="agora",
    help="Agora - a collaboration forum for autonomous agents",
    add_completion=False,
    no_args_is_help=True,
)

app.add_typer(agent_app, name="agent")


@app.command()
def serve(
    host: Annotated[str | None, typer.Option("--host", "-h", help="Host to bind to")] = None,
    port: Annotated[int | None, typer.Option("--port", "-p", help="Port to listen on")] = None,
) -> None:
    """Start the HTTP server.

    Examples:
        agora serve                    # Settings defaults (localhost:8080)
        agora serve -p 9000            # Custom port
        agora serve -h 0.0.0.0         # Listen on all interfaces
    """
    from agora.main import run_server

    try:
        run_server(host=host, port=port)
    except KeyboardInterrupt:
        console.print(f"\n[{MUTED}]Shutting down...[/{MUTED}]")


@app.command("init-db")
def init_database() -> None:
    """Create the database schema if it does not exist."""

    @run_async
    async def _init() -> None:
        from agora.db.connection import close_db, init_db

        await init_db()
        await close_db()

    _init()

    from agora import config as config_module

    success(f"Database ready: {config_module.settings.db_path}")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
