"""Typer application for the kiro-agents command line."""

from typing import Annotated

import typer

from kiro_agents import __version__
from kiro_agents.cli.commands import agents, deps, state
from kiro_agents.cli.formatters import console
from kiro_agents.observability.logging import configure_logging, set_console_logging

app = typer.Typer(
    name="kiro-agents",
    help="Inspect BMad agent definitions, their dependencies, and saved activation state.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

for _group in (agents, deps, state):
    app.add_typer(_group.app, name=_group.__name__.rsplit(".", 1)[-1])


def _show_version(requested: bool) -> None:
    if not requested:
        return
    console.print(f"[highlight]kiro-agents[/] [success]{__version__}[/]")
    raise typer.Exit()


VersionOption = Annotated[
    bool,
    typer.Option(
        "--version",
        "-V",
        callback=_show_version,
        is_eager=True,
        help="Print the installed version.",
    ),
]
VerboseOption = Annotated[
    bool,
    typer.Option("--verbose", "-v", help="Print structured logs to stderr."),
]


@app.callback()
def main(version: VersionOption = False, verbose: VerboseOption = False) -> None:
    """Discover, resolve, and activate BMad agents.

    Run [bold cyan]kiro-agents COMMAND --help[/] for the options of a command group.
    """
    configure_logging()
    set_console_logging(verbose)


__all__ = ["app", "main"]
