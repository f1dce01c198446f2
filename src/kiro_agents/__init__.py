"""kiro-agents - Agent lifecycle subsystem for BMad Method personas.

Discovers agent-definition documents, resolves the resources they declare,
and runs them as tracked, conflict-resolved, recoverable sessions inside a
host application.

Example:
    # Using CLI
    kiro-agents agents list --root ./my-project
    kiro-agents deps check architect

    # Using Python
    from kiro_agents.session import RegistrySession

    async with RegistrySession(project_root) as session:
        result = await session.activation.activate_agent("architect")
"""

__version__ = "0.4.0"

__all__ = ["__version__", "main"]


def main() -> None:
    """Main entry point for the kiro-agents CLI.

    This function invokes the Typer app from kiro_agents.cli.main.
    """
    from kiro_agents.cli.main import app

    app()
