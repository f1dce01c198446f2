"""Agents command group - inspect registered agent definitions."""

import asyncio
from pathlib import Path
from typing import Annotated

import typer

from kiro_agents.agents.registry import RegisteredAgent
from kiro_agents.cli.commands._shared import RootOption, load_registry, open_session
from kiro_agents.cli.formatters import console
from kiro_agents.cli.formatters.panels import print_error, print_info, print_warning
from kiro_agents.cli.formatters.tables import agents_table, key_value_table, print_table

app = typer.Typer(
    name="agents",
    help="Inspect registered agent definitions.",
    no_args_is_help=True,
)


@app.command("list")
def list_agents(
    root: RootOption = Path("."),
    pack: Annotated[
        str | None,
        typer.Option("--pack", "-p", help="Only agents of this expansion pack."),
    ] = None,
    invalid: Annotated[
        bool,
        typer.Option("--invalid", help="Only agents with validation errors."),
    ] = False,
) -> None:
    """List registered agents with their source and validation status."""

    async def _run() -> list[RegisteredAgent]:
        session = open_session(root)
        await load_registry(session)
        registry = session.registry
        agents = registry.get_agents_by_expansion_pack(pack) if pack else registry.list_agents()
        stats = registry.get_statistics()
        if stats.failed_registrations:
            print_warning(f"{stats.failed_registrations} definition(s) could not be read.")
        return agents

    agents = asyncio.run(_run())
    if invalid:
        agents = [a for a in agents if not a.is_valid]
    if not agents:
        print_info("No agents found.")
        return
    print_table(agents_table(agents))


@app.command()
def show(
    agent_id: Annotated[str, typer.Argument(help="Agent id to show.")],
    root: RootOption = Path("."),
) -> None:
    """Show one agent's metadata, dependencies, and validation errors."""

    async def _run() -> RegisteredAgent | None:
        session = open_session(root)
        await load_registry(session)
        return session.registry.get_agent(agent_id)

    agent = asyncio.run(_run())
    if agent is None:
        print_error(f"Agent not found: {agent_id}")
        raise typer.Exit(1)

    definition = agent.definition
    print_table(
        key_value_table(
            {
                "ID": definition.id,
                "Name": definition.name,
                "Title": definition.title or "-",
                "Role": definition.persona_role or "-",
                "Description": definition.description,
                "Source": definition.source.label,
                "Priority": definition.priority,
                "Path": definition.path or "-",
                "Parsed with fallback": agent.is_fallback,
            },
            title=definition.name,
        )
    )
    for category, names in definition.declared_dependencies.items():
        console.print(f"[highlight]{category}[/]: {', '.join(names) or '-'}")
    for error in agent.validation_errors:
        console.print(f"[warning]! {error}[/]")


__all__ = ["app"]
