"""Error hierarchy for kiro-agents.

These exceptions are used for unexpected errors (programming bugs), for the
single fatal failure of the subsystem (an unreachable definition store), and
as error values carried inside Result and activation results.

Exception Hierarchy:
    KiroAgentsError (base)
    ├── ConfigError            - Configuration loading and validation
    ├── PersistenceError       - State file reads and writes
    ├── ValidationError        - Definition and data validation failures
    ├── DefinitionStoreError   - Definition roots missing or unreadable
    ├── RegistrationError      - One definition document unreadable
    └── ActivationError        - Failures while activating an agent
        ├── AgentNotFoundError
        ├── ActivationHandlerError
        ├── ActivationTimeoutError
        ├── ResourceLoadingError
        ├── ResourceExhaustedError
        ├── RoleConflictError
        └── PermissionDeniedError
"""

from __future__ import annotations

from typing import Any


class KiroAgentsError(Exception):
    """Base exception for all kiro-agents errors.

    Attributes:
        message: Human-readable error description.
        details: Optional dict with additional context.
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        """Return string representation of the error."""
        if self.details:
            return f"{self.message} (details: {self.details})"
        return self.message


class ConfigError(KiroAgentsError):
    """Error from configuration operations.

    Attributes:
        config_key: The configuration key that caused the error.
        config_file: Path to the config file if applicable.
    """

    def __init__(
        self,
        message: str,
        *,
        config_key: str | None = None,
        config_file: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.config_key = config_key
        self.config_file = config_file


class PersistenceError(KiroAgentsError):
    """Error from state persistence.

    Attributes:
        operation: The operation that failed (e.g., "read", "write").
        path: The state file involved if applicable.
    """

    def __init__(
        self,
        message: str,
        *,
        operation: str | None = None,
        path: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.operation = operation
        self.path = path


class ValidationError(KiroAgentsError):
    """Error from definition or data validation.

    Attributes:
        field: The field that failed validation.
        value: The invalid value if safe to include.
    """

    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        value: Any | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.field = field
        self.value = value

    def __str__(self) -> str:
        base = self.message
        if self.field:
            base = f"{base} (field: {self.field})"
        if self.details:
            base = f"{base} (details: {self.details})"
        return base


class DefinitionStoreError(KiroAgentsError):
    """The definition store is unreachable.

    Raised by registry initialization. This is the only failure that is
    fatal to the whole subsystem.

    Attributes:
        roots: The definition roots that were searched.
    """

    def __init__(
        self,
        message: str,
        *,
        roots: list[str] | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.roots = roots or []


class RegistrationError(KiroAgentsError):
    """A single definition document could not be read after retries.

    Attributes:
        path: The document path.
        attempts: Number of read attempts made.
    """

    def __init__(
        self,
        message: str,
        *,
        path: str | None = None,
        attempts: int = 1,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.path = path
        self.attempts = attempts


class ActivationError(KiroAgentsError):
    """Base class for activation-time failures.

    Subclasses carry a stable ``code`` used for error classification.

    Attributes:
        agent_id: The agent being activated when the error occurred.
    """

    code = "activation-error"

    def __init__(
        self,
        message: str,
        *,
        agent_id: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.agent_id = agent_id


class AgentNotFoundError(ActivationError):
    """The requested agent id is not registered."""

    code = "agent-not-found"


class ActivationHandlerError(ActivationError):
    """The bound activation handler failed or returned an error."""

    code = "activation-handler-failed"


class ActivationTimeoutError(ActivationHandlerError):
    """An activation attempt exceeded the configured timeout."""


class ResourceLoadingError(ActivationError):
    """Steering, hook, or file-context resources could not be loaded."""

    code = "resource-loading-failed"


class ResourceExhaustedError(ActivationError):
    """The concurrency ceiling has been reached.

    Attributes:
        limit: The configured maximum number of active agents.
    """

    code = "resource-exhausted"

    def __init__(
        self,
        message: str,
        *,
        agent_id: str | None = None,
        limit: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, agent_id=agent_id, details=details)
        self.limit = limit


class RoleConflictError(ActivationError):
    """A singleton role is already held by another active agent.

    Attributes:
        role: The contested role.
        holder_id: The active agent currently holding the role.
    """

    code = "role-conflict"

    def __init__(
        self,
        message: str,
        *,
        agent_id: str | None = None,
        role: str | None = None,
        holder_id: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, agent_id=agent_id, details=details)
        self.role = role
        self.holder_id = holder_id


class PermissionDeniedError(ActivationError):
    """The host refused access to a resource needed for activation."""

    code = "permission-denied"
