"""Deps command group - resolve declared resources and inspect the graph."""

import asyncio
import json
from pathlib import Path
from typing import Annotated

import typer

from kiro_agents.cli.commands._shared import RootOption, load_registry, open_session
from kiro_agents.cli.formatters import console
from kiro_agents.cli.formatters.panels import print_error, print_success, print_warning
from kiro_agents.cli.formatters.tables import key_value_table, print_table, resolution_table
from kiro_agents.dependencies.graph import DependencyGraph
from kiro_agents.dependencies.resolver import DependencyResolutionResult

app = typer.Typer(
    name="deps",
    help="Check agent dependencies.",
    no_args_is_help=True,
)


@app.command()
def check(
    agent_id: Annotated[
        str | None,
        typer.Argument(help="Agent id to check. Checks every agent when omitted."),
    ] = None,
    root: RootOption = Path("."),
    strict: Annotated[
        bool,
        typer.Option("--strict", help="Exit with status 1 when anything is missing."),
    ] = False,
) -> None:
    """Check which declared resources exist."""

    async def _run() -> list[DependencyResolutionResult] | None:
        session = open_session(root)
        await load_registry(session)
        if agent_id is None:
            definitions = [a.definition for a in session.registry.list_agents()]
        else:
            agent = session.registry.get_agent(agent_id)
            if agent is None:
                return None
            definitions = [agent.definition]
        results = await session.resolver.resolve_all(definitions)
        return [results[d.id] for d in definitions]

    results = asyncio.run(_run())
    if results is None:
        print_error(f"Agent not found: {agent_id}")
        raise typer.Exit(1)

    incomplete = 0
    for result in results:
        if result.resolved or result.missing:
            print_table(resolution_table(result))
        for error in result.errors:
            console.print(f"[error]{result.agent_id}: {error}[/]")
        if not result.is_complete:
            incomplete += 1

    if incomplete:
        print_warning(f"{incomplete} of {len(results)} agent(s) have missing dependencies.")
        if strict:
            raise typer.Exit(1)
    else:
        print_success(f"All dependencies resolved for {len(results)} agent(s).")


@app.command()
def graph(
    root: RootOption = Path("."),
    as_json: Annotated[
        bool,
        typer.Option("--json", help="Print the graph as JSON."),
    ] = False,
) -> None:
    """Show shared resources, stats, and agent dependency cycles."""

    async def _run() -> DependencyGraph:
        session = open_session(root)
        await load_registry(session)
        return session.build_graph()

    dependency_graph = asyncio.run(_run())
    if as_json:
        console.print_json(json.dumps(dependency_graph.to_dict()))
        return

    print_table(key_value_table(dependency_graph.stats.to_dict(), title="Dependency Stats"))
    for name, agent_ids in sorted(dependency_graph.shared.items()):
        console.print(f"[highlight]{name}[/] shared by {', '.join(agent_ids)}")
    for cycle in dependency_graph.circular_dependencies:
        console.print(f"[error]cycle: {' -> '.join(cycle)}[/]")


__all__ = ["app"]
