"""Structured logging for kiro-agents, built on structlog.

Every event passes through one processor chain and is rendered either as a
colored console line (``dev``) or as a JSON object (``prod``). Rendered lines
go to stderr and, when enabled, to a log file rotated at midnight UTC.

Events are named ``<domain>.<entity>.<verb_past_tense>``, for example
``registry.agent.registered`` or ``activation.agent.deactivated``. Common keys
are ``agent_id``, ``source``, ``expansion_pack``, ``category`` and ``phase``.

Usage:
    from kiro_agents.observability import configure_logging, get_logger

    configure_logging(LoggingConfig(mode=LogMode.PROD))
    log = get_logger(__name__)
    log.info("activation.agent.activated", agent_id="architect")
"""

from __future__ import annotations

from enum import Enum
from functools import partialmethod
import logging
from logging.handlers import TimedRotatingFileHandler
import os
from pathlib import Path
import sys
from typing import Any

from pydantic import BaseModel, Field
import structlog

from kiro_agents.core.security import sanitize_for_logging

LOG_MODE_ENV_VAR = "KIRO_AGENTS_LOG_MODE"
LOG_FILE_NAME = "kiro-agents.log"


class LogMode(str, Enum):
    DEV = "dev"
    PROD = "prod"


class LoggingConfig(BaseModel, frozen=True):
    """Logging settings, usually the ``logging`` section of the config file.

    Attributes:
        mode: ``dev`` renders for humans, ``prod`` renders JSON.
        log_level: Name of the lowest level that is emitted.
        log_dir: Where the rotated log file lives.
        max_log_days: Rotated files kept before the oldest is removed.
        enable_file_logging: Also write events to ``log_dir``.
    """

    mode: LogMode = LogMode.DEV
    log_level: str = "INFO"
    log_dir: Path = Field(default_factory=lambda: Path.home() / ".kiro-agents" / "logs")
    max_log_days: int = Field(default=7, ge=1, le=365)
    enable_file_logging: bool = False

    @property
    def level_number(self) -> int:
        return logging.getLevelNamesMapping().get(self.log_level.upper(), logging.INFO)


_active_config: LoggingConfig | None = None
_echo_to_stderr = True


def _redact_event(_logger: Any, _method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """Mask credentials anywhere in the event, including nested contexts."""
    event = event_dict.pop("event", None)
    redacted = sanitize_for_logging(event_dict)
    if event is not None:
        redacted["event"] = event
    return redacted


_SHARED_PROCESSORS: tuple[Any, ...] = (
    structlog.contextvars.merge_contextvars,
    _redact_event,
    structlog.processors.add_log_level,
    structlog.processors.TimeStamper(fmt="iso", utc=True),
    structlog.processors.StackInfoRenderer(),
    structlog.processors.CallsiteParameterAdder(
        parameters=[
            structlog.processors.CallsiteParameter.FILENAME,
            structlog.processors.CallsiteParameter.LINENO,
        ]
    ),
    structlog.processors.format_exc_info,
)


def _renderer(mode: LogMode) -> Any:
    if mode is LogMode.PROD:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=True)


def _open_log_file(config: LoggingConfig) -> TimedRotatingFileHandler:
    config.log_dir.mkdir(parents=True, exist_ok=True)
    handler = TimedRotatingFileHandler(
        config.log_dir / LOG_FILE_NAME,
        when="midnight",
        backupCount=config.max_log_days,
        encoding="utf-8",
        utc=True,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    return handler


class _LineSink:
    """structlog logger that writes each rendered line to stderr and a file."""

    def __init__(self, log_file: TimedRotatingFileHandler | None) -> None:
        self._log_file = log_file

    def _emit(self, level: int, line: str) -> None:
        if _echo_to_stderr:
            print(line, file=sys.stderr)
        if self._log_file is None:
            return
        record = logging.makeLogRecord(
            {"name": "kiro_agents", "levelno": level, "levelname": logging.getLevelName(level)}
        )
        record.msg = line
        self._log_file.emit(record)

    debug = partialmethod(_emit, logging.DEBUG)
    info = msg = partialmethod(_emit, logging.INFO)
    warning = warn = partialmethod(_emit, logging.WARNING)
    error = exception = partialmethod(_emit, logging.ERROR)
    critical = fatal = partialmethod(_emit, logging.CRITICAL)


def configure_logging(config: LoggingConfig | None = None) -> None:
    """Install the processor chain and output sinks.

    Args:
        config: Settings to apply, ``LoggingConfig()`` when omitted.
            ``KIRO_AGENTS_LOG_MODE``, when set to a known mode, overrides
            ``config.mode``.
    """
    global _active_config

    if config is None:
        config = LoggingConfig()
    env_mode = os.environ.get(LOG_MODE_ENV_VAR, "").strip().lower()
    if env_mode in {m.value for m in LogMode}:
        config = config.model_copy(update={"mode": LogMode(env_mode)})

    log_file = _open_log_file(config) if config.enable_file_logging else None
    structlog.configure(
        processors=[*_SHARED_PROCESSORS, _renderer(config.mode)],
        wrapper_class=structlog.make_filtering_bound_logger(config.level_number),
        context_class=dict,
        logger_factory=lambda *_: _LineSink(log_file),
        cache_logger_on_first_use=True,
    )
    _active_config = config


def set_console_logging(enabled: bool) -> None:
    """Turn stderr output on or off; the file sink is unaffected."""
    global _echo_to_stderr
    _echo_to_stderr = enabled


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    if _active_config is None:
        configure_logging()
    return structlog.get_logger(name)


def bind_context(**kwargs: Any) -> None:
    """Attach keys to every event logged from the current task."""
    structlog.contextvars.bind_contextvars(**kwargs)


def unbind_context(*keys: str) -> None:
    structlog.contextvars.unbind_contextvars(*keys)


def get_current_config() -> LoggingConfig | None:
    return _active_config


def is_configured() -> bool:
    return _active_config is not None


def reset_logging() -> None:
    """Forget the active configuration and bound context. Used by tests."""
    global _active_config
    _active_config = None
    structlog.contextvars.clear_contextvars()
    structlog.reset_defaults()
