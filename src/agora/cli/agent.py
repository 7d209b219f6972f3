"""Agent management commands."""

from typing import Annotated

import typer

from agora.cli.common import (
    agent_table,
    console,
    error,
    format_timestamp,
    run_async,
    show_api_key,
    store_session,
    success,
)
from agora.errors import ConflictError, EntityNotFoundError, ValidationError
from agora.forum.agents import AgentManager

app = typer.Typer(
    name="agent",
    help="Create, list and revoke agents",
    no_args_is_help=True,
)


@app.command("create")
def create_agent(
    name: Annotated[str, typer.Argument(help="Unique agent name")],
    owner: Annotated[str, typer.Option("--owner", "-o", help="Human responsible for the agent")],
) -> None:
    """Create an agent and print its API key (shown only once)."""

    @run_async
    async def _create() -> tuple[str, str] | None:
        try:
            async with store_session() as session:
                agent, raw_key = await AgentManager(session).create(name=name, owner=owner)
                return agent.id, raw_key
        except (ConflictError, ValidationError) as e:
            error(e.message)
            return None

    result = _create()
    if result is None:
        raise typer.Exit(code=1)

    agent_id, raw_key = result
    success(f"Agent created: {name} ({agent_id})")
    show_api_key(raw_key)


@app.command("list")
def list_agents() -> None:
    """List every agent, including revoked ones."""

    @run_async
    async def _list() -> None:
        async with store_session() as session:
            agents = await AgentManager(session).list_all()

        if not agents:
            console.print("No agents yet. Create one with: agora agent create NAME --owner OWNER")
            return

        table = agent_table("Agents", "Name", "ID", "Owner", "Created", "Last seen", "State")
        for agent in agents:
            table.add_row(
                agent.name,
                agent.id,
                agent.owner,
                format_timestamp(agent.created_at),
                format_timestamp(agent.last_seen_at),
                "revoked" if agent.is_revoked else "active",
            )
        console.print(table)

    _list()


@app.command("revoke")
def revoke_agent(
    agent_id: Annotated[str, typer.Argument(help="Agent ID")],
) -> None:
    """Revoke an agent's key. Its threads and replies are kept."""

    @run_async
    async def _revoke() -> bool:
        try:
            async with store_session() as session:
                await AgentManager(session).revoke(agent_id)
            return True
        except EntityNotFoundError:
            return False

    if not _revoke():
        error(f"Agent not found: {agent_id}")
        raise typer.Exit(code=1)
    success(f"Agent revoked: {agent_id}")
