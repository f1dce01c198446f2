"""Rich tables for agents, dependency results, and sessions."""

from collections.abc import Iterable, Mapping
from typing import Any

from rich.table import Table

from kiro_agents.agents.registry import RegisteredAgent
from kiro_agents.cli.formatters import console
from kiro_agents.dependencies.resolver import DependencyResolutionResult


def create_table(title: str | None = None, *, show_header: bool = True) -> Table:
    """Create a table with the CLI's border and header styling."""
    return Table(
        title=title,
        show_header=show_header,
        border_style="blue",
        header_style="bold cyan",
        row_styles=["", "dim"],
    )


def key_value_table(data: Mapping[str, Any], title: str | None = None) -> Table:
    table = create_table(title, show_header=False)
    table.add_column("Key", style="cyan", no_wrap=True)
    table.add_column("Value")
    for key, value in data.items():
        table.add_row(str(key), str(value))
    return table


def agents_table(agents: Iterable[RegisteredAgent], title: str = "Registered Agents") -> Table:
    table = create_table(title)
    table.add_column("ID", style="agent", no_wrap=True)
    table.add_column("Name")
    table.add_column("Source")
    table.add_column("Deps", justify="right")
    table.add_column("Status", justify="center")

    for agent in sorted(agents, key=lambda a: a.id):
        definition = agent.definition
        dep_count = sum(len(names) for names in definition.declared_dependencies.values())
        if not agent.is_valid:
            status = "[warning]invalid[/]"
        elif agent.is_fallback:
            status = "[warning]fallback[/]"
        else:
            status = "[success]ok[/]"
        table.add_row(
            definition.id, definition.name, definition.source.label, str(dep_count), status
        )
    return table


def resolution_table(result: DependencyResolutionResult) -> Table:
    table = create_table(f"Dependencies of {result.agent_id}")
    table.add_column("Category", style="cyan")
    table.add_column("Resource")
    table.add_column("Status", justify="center")
    table.add_column("Found in / Suggestions")

    for category, names in result.resolved.items():
        for name in names:
            table.add_row(
                category, name, "[success]found[/]", result.locations.get(f"{category}/{name}", "")
            )
    for category, names in result.missing.items():
        for name in names:
            hint = ", ".join(result.suggestions.get(name, []))
            table.add_row(category, name, "[error]missing[/]", hint)
    return table


def print_table(table: Table) -> None:
    console.print(table)


__all__ = [
    "agents_table",
    "create_table",
    "key_value_table",
    "print_table",
    "resolution_table",
]
