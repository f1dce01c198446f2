"""Observability module for kiro-agents.

Main components:
- Logging: configure_logging, get_logger, bind_context, unbind_context
"""

from kiro_agents.observability.logging import (
    LoggingConfig,
    LogMode,
    bind_context,
    configure_logging,
    get_logger,
    unbind_context,
)

__all__ = [
    "LogMode",
    "LoggingConfig",
    "bind_context",
    "configure_logging",
    "get_logger",
    "unbind_context",
]
