"""Helpers shared by the command groups."""

from pathlib import Path
from typing import Annotated

import typer

from kiro_agents.cli.formatters.panels import print_error
from kiro_agents.config.loader import load_config
from kiro_agents.core.errors import ConfigError, DefinitionStoreError
from kiro_agents.observability.logging import configure_logging
from kiro_agents.session import RegistrySession

RootOption = Annotated[
    Path,
    typer.Option("--root", "-r", help="Project root containing bmad-core/ and .kiro/."),
]


def open_session(root: Path) -> RegistrySession:
    """Build a session for ``root`` without starting background work."""
    try:
        config = load_config(project_root=root)
    except ConfigError as e:
        print_error(e.message, "Configuration Error")
        raise typer.Exit(1) from e
    configure_logging(config.logging)
    return RegistrySession(root, config, start_sweeper=False)


async def load_registry(session: RegistrySession) -> None:
    """Register every definition, exiting with status 1 if the store is unreachable."""
    try:
        await session.registry.initialize()
    except DefinitionStoreError as e:
        print_error(e.message, "Definition Store Unavailable")
        raise typer.Exit(1) from e
