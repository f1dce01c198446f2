"""State command group - inspect persisted activation state."""

import asyncio
from pathlib import Path
from typing import Any

import typer

from kiro_agents.cli.commands._shared import RootOption, open_session
from kiro_agents.cli.formatters.panels import print_error, print_info
from kiro_agents.cli.formatters.tables import create_table, key_value_table, print_table
from kiro_agents.core.errors import PersistenceError
from kiro_agents.core.types import Result

app = typer.Typer(
    name="state",
    help="Inspect persisted activation state.",
    no_args_is_help=True,
)


@app.command()
def show(root: RootOption = Path(".")) -> None:
    """Show the saved active agents and their sessions."""
    session = open_session(root)

    async def _run() -> Result[dict[str, Any] | None, PersistenceError]:
        return await session.state_store.read_state()

    result = asyncio.run(_run())
    if result.is_err:
        print_error(result.error.message, "State Unreadable")
        raise typer.Exit(1)

    data = result.value
    if data is None:
        print_info(f"No saved state at {session.state_store.path}")
        return

    print_table(
        key_value_table(
            {
                "Version": data.get("version", "-"),
                "Saved at": data.get("saved_at", "-"),
                "Active agents": ", ".join(data.get("active_agents", [])) or "-",
            },
            title="Activation State",
        )
    )

    sessions = data.get("sessions", [])
    if sessions:
        table = create_table("Sessions")
        table.add_column("Agent", style="cyan")
        table.add_column("Created")
        table.add_column("Last activity")
        table.add_column("Expires")
        for entry in sessions:
            table.add_row(
                str(entry.get("agent_id", "?")),
                str(entry.get("created_at", "-")),
                str(entry.get("last_activity", "-")),
                str(entry.get("expires_at", "-")),
            )
        print_table(table)


__all__ = ["app"]
