"""Console output and store access shared by the agora commands."""

import asyncio
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from datetime import datetime
from functools import wraps
from typing import ParamSpec, TypeVar

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from sqlalchemy.ext.asyncio import AsyncSession

# Palette
ACCENT = "#e135ff"
MUTED = "#80ffea"
CAUTION = "#f1fa8c"
OK = "#50fa7b"
FAIL = "#ff6363"

console = Console()

P = ParamSpec("P")
R = TypeVar("R")


def success(message: str) -> None:
    console.print(f"[{OK}]✓[/{OK}] {message}")


def error(message: str) -> None:
    console.print(f"[{FAIL}]✗[/{FAIL}] {message}")


def warn(message: str) -> None:
    console.print(f"[{CAUTION}]![/{CAUTION}] {message}")


def format_timestamp(value: datetime | None) -> str:
    """Render a stored UTC timestamp for tables ("-" when never set)."""
    if value is None:
        return "-"
    return value.strftime("%Y-%m-%d %H:%M")


def agent_table(title: str, *columns: str) -> Table:
    table = Table(title=title, border_style=MUTED)
    for i, column in enumerate(columns):
        table.add_column(column, style=ACCENT if i == 0 else MUTED)
    return table


def show_api_key(raw_key: str) -> None:
    """Print a freshly issued key. It is never retrievable afterwards."""
    console.print(
        Panel(raw_key, title=f"[{ACCENT}]API key[/{ACCENT}]", border_style=MUTED, expand=False)
    )
    warn("Store this key now; it cannot be shown again.")


@asynccontextmanager
async def store_session() -> AsyncIterator[AsyncSession]:
    """Open the configured store for a single command and close it afterwards."""
    from agora.db.connection import close_db, get_session, init_db

    await init_db()
    try:
        async with get_session() as session:
            yield session
    finally:
        await close_db()


def run_async(func: Callable[P, Awaitable[R]]) -> Callable[P, R]:
    """Run a coroutine function to completion from a synchronous typer command."""

    @wraps(func)
    def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
        return asyncio.run(func(*args, **kwargs))

    return wrapper
