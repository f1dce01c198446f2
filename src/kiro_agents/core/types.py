"""Result type and the domain aliases shared across kiro-agents."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Generic, TypeVar, cast

T = TypeVar("T")
E = TypeVar("E")


@dataclass(frozen=True, slots=True)
class Result(Generic[T, E]):
    """Outcome of an operation whose failure is expected, not exceptional.

    Reading a definition file that vanished or writing state to a read-only
    directory returns ``Result.err``; bugs still raise.

    Usage:
        read = await store.load_state()
        if read.is_err:
            log.warning("activation.state.unreadable", error=str(read.error))
        else:
            snapshot = read.value
    """

    _value: T | None
    _error: E | None
    _is_ok: bool

    @classmethod
    def ok(cls, value: T) -> Result[T, E]:
        return cls(_value=value, _error=None, _is_ok=True)

    @classmethod
    def err(cls, error: E) -> Result[T, E]:
        return cls(_value=None, _error=error, _is_ok=False)

    @property
    def is_ok(self) -> bool:
        return self._is_ok

    @property
    def is_err(self) -> bool:
        return not self._is_ok

    @property
    def value(self) -> T:
        """The success value; raises ValueError on an Err."""
        if self.is_err:
            raise ValueError("Err result has no value")
        return cast(T, self._value)

    @property
    def error(self) -> E:
        """The failure value; raises ValueError on an Ok."""
        if self.is_ok:
            raise ValueError("Ok result has no error")
        return cast(E, self._error)

    def __repr__(self) -> str:
        kind, payload = ("Ok", self._value) if self._is_ok else ("Err", self._error)
        return f"{kind}({payload!r})"


DependencyMap = Mapping[str, Sequence[str]]
"""Category -> declared resource names, e.g. ``{"tasks": ["create-doc.md"]}``."""

ActivationContext = dict[str, Any]
"""Caller-supplied key/value bag carried through activation untouched."""
