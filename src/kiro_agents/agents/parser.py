"""Agent definition parsing.

A definition carries its metadata either as YAML frontmatter or as an
embedded fenced ``yaml`` block. Two layouts are understood:

BMad layout::

    agent:
      id: architect
      name: Winston
      title: Architect
      whenToUse: Use for system design
    persona:
      role: Holistic System Architect
    dependencies:
      tasks: [create-doc.md]

Flat layout::

    id: architect
    name: Architect
    description: System design
    dependencies: {...}

Parsing never rejects a document. When the metadata block is missing or
unusable, identity fields are derived heuristically from headings and the
filename and the result is flagged ``is_fallback``.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
import re
from typing import Any

import yaml

from kiro_agents.agents.roles import display_name_for
from kiro_agents.core.text import normalize_agent_id

DEFAULT_DESCRIPTION = "BMad Method Agent"

_FRONTMATTER_RE = re.compile(r"\A---[ \t]*\n(.*?)\n---[ \t]*(?:\n|\Z)", re.DOTALL)
_YAML_BLOCK_RE = re.compile(r"```ya?ml[ \t]*\n(.*?)\n```", re.DOTALL)
_AGENT_HEADING_RE = re.compile(r"^#\s+Agent:\s*(.+?)\s*$", re.MULTILINE | re.IGNORECASE)
_HEADING_RE = re.compile(r"^#{1,6}\s+(.+?)\s*$", re.MULTILINE)
_YAML_ID_RE = re.compile(r"^\s*id:\s*['\"]?([^'\"\n]+?)['\"]?\s*$", re.MULTILINE)


@dataclass(frozen=True, slots=True)
class ParsedMetadata:
    """Normalized metadata of one definition document.

    ``is_fallback`` is True when identity fields were derived heuristically
    because no usable metadata block was found.
    """

    agent_id: str
    name: str
    description: str
    is_fallback: bool
    title: str | None = None
    persona_role: str | None = None
    icon: str | None = None
    dependencies: dict[str, tuple[str, ...]] = field(default_factory=dict)
    depends_on: tuple[str, ...] = ()
    priority: str = "normal"
    version: str | None = None
    file_context: tuple[str, ...] = ()
    commands: tuple[str, ...] = ()
    validation_errors: tuple[str, ...] = ()

    @property
    def is_valid(self) -> bool:
        return not self.validation_errors


# =============================================================================
# Heuristic extraction
# =============================================================================


def heuristic_id(text: str, path: Path) -> str:
    """Derive an id from a YAML ``id:`` line, a ``# Agent: X`` heading, or the filename."""
    match = _YAML_ID_RE.search(text)
    if match:
        candidate = normalize_agent_id(match.group(1))
        if candidate:
            return candidate

    match = _AGENT_HEADING_RE.search(text)
    if match:
        candidate = normalize_agent_id(match.group(1))
        if candidate:
            return candidate

    return normalize_agent_id(path.stem) or "agent"


def heuristic_name(text: str, agent_id: str) -> str:
    """Derive a display name from the first heading, else from the id."""
    match = _HEADING_RE.search(text)
    if match:
        heading = re.sub(r"^Agent:\s*", "", match.group(1), flags=re.IGNORECASE).strip()
        if heading:
            return heading
    return display_name_for(agent_id)


def heuristic_description(text: str) -> str:
    """Use the first prose line after a heading, else the default description."""
    seen_heading = False
    in_fence = False
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if line.startswith("```"):
            in_fence = not in_fence
            continue
        if in_fence or not line or line == "---":
            continue
        if line.startswith("#"):
            seen_heading = True
            continue
        if seen_heading:
            return line
    return DEFAULT_DESCRIPTION


def _fallback(text: str, path: Path, errors: list[str]) -> ParsedMetadata:
    agent_id = heuristic_id(text, path)
    return ParsedMetadata(
        agent_id=agent_id,
        name=heuristic_name(text, agent_id),
        description=heuristic_description(text),
        is_fallback=True,
        validation_errors=tuple(errors),
    )


# =============================================================================
# Structured extraction
# =============================================================================


def extract_yaml_block(text: str) -> str | None:
    """Return the frontmatter or first fenced yaml block, if any."""
    match = _FRONTMATTER_RE.match(text)
    if match:
        return match.group(1)
    match = _YAML_BLOCK_RE.search(text)
    if match:
        return match.group(1)
    return None


def extract_dependencies(raw: Any) -> tuple[dict[str, tuple[str, ...]], list[str]]:
    """Normalize a dependency block into category -> resource names.

    Categories are open-ended. Entries that are not names are dropped and
    reported.

    Returns:
        Tuple of (dependencies, validation errors).
    """
    if raw is None:
        return {}, []
    if not isinstance(raw, Mapping):
        return {}, ["Dependencies must be a mapping of category to resource names"]

    dependencies: dict[str, tuple[str, ...]] = {}
    errors: list[str] = []
    for key, value in raw.items():
        category = str(key).strip().lower()
        if value is None:
            continue
        if isinstance(value, str):
            values: list[Any] = [value]
        elif isinstance(value, list):
            values = value
        else:
            errors.append(f"Dependencies for '{category}' must be a list of names")
            continue

        names: list[str] = []
        for item in values:
            if isinstance(item, (str, int, float)) and not isinstance(item, bool):
                name = str(item).strip()
                if name and name not in names:
                    names.append(name)
            else:
                errors.append(f"Invalid dependency entry in '{category}': {item!r}")
        if names:
            dependencies[category] = tuple(names)

    return dependencies, errors


def _string_list(raw: Any) -> tuple[str, ...]:
    if isinstance(raw, str):
        return (raw,)
    if isinstance(raw, list):
        return tuple(str(item) for item in raw if isinstance(item, (str, int)))
    return ()


def _command_names(raw: Any) -> tuple[str, ...]:
    names: list[str] = []
    if isinstance(raw, Mapping):
        names.extend(str(key) for key in raw)
    elif isinstance(raw, list):
        for item in raw:
            if isinstance(item, Mapping):
                names.extend(str(key) for key in item)
            elif isinstance(item, str):
                names.append(item.split(":", 1)[0].strip())
    return tuple(name for name in names if name)


def _text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _parse_structured(data: dict[str, Any], text: str, path: Path) -> ParsedMetadata:
    errors: list[str] = []
    agent_block = data.get("agent")

    if isinstance(agent_block, Mapping):
        persona = data.get("persona")
        persona = persona if isinstance(persona, Mapping) else {}
        raw_id = _text(agent_block.get("id"))
        name = _text(agent_block.get("name"))
        title = _text(agent_block.get("title"))
        description = _text(agent_block.get("whenToUse")) or _text(persona.get("identity"))
        persona_role = _text(persona.get("role"))
        icon = _text(agent_block.get("icon"))
        if not title:
            errors.append("Missing agent title")
        if not persona_role:
            errors.append("Missing persona role")
    else:
        raw_id = _text(data.get("id"))
        name = _text(data.get("name"))
        if raw_id is None and name is None:
            return _fallback(text, path, ["Missing agent configuration in YAML"])
        title = _text(data.get("title"))
        description = _text(data.get("description"))
        persona_role = _text(data.get("role"))
        icon = _text(data.get("icon"))

    if raw_id and normalize_agent_id(raw_id):
        agent_id = normalize_agent_id(raw_id)
    else:
        errors.append("Missing agent id")
        agent_id = heuristic_id(text, path)

    if not name:
        errors.append("Missing agent name")
        name = title or heuristic_name(text, agent_id)

    raw_dependencies = data.get("dependencies")
    if raw_dependencies is None and isinstance(agent_block, Mapping):
        raw_dependencies = agent_block.get("dependencies")
    dependencies, dependency_errors = extract_dependencies(raw_dependencies)
    errors.extend(dependency_errors)

    priority = _text(data.get("priority"))
    if priority is None and isinstance(agent_block, Mapping):
        priority = _text(agent_block.get("priority"))

    return ParsedMetadata(
        agent_id=agent_id,
        name=name,
        description=description or heuristic_description(text),
        is_fallback=False,
        title=title,
        persona_role=persona_role,
        icon=icon,
        dependencies=dependencies,
        depends_on=tuple(
            normalize_agent_id(dep) for dep in _string_list(data.get("dependsOn")) if dep
        ),
        priority=(priority or "normal").lower(),
        version=_text(data.get("version")),
        file_context=_string_list(data.get("fileContext")),
        commands=_command_names(data.get("commands")),
        validation_errors=tuple(errors),
    )


def parse_definition(text: str, path: Path) -> ParsedMetadata:
    """Parse one agent definition document.

    Args:
        text: Raw document text.
        path: Document path, used for heuristic id derivation.

    Returns:
        ParsedMetadata. Never raises for malformed content.
    """
    if not text.strip():
        return _fallback(text, path, ["Agent file is empty"])

    block = extract_yaml_block(text)
    if block is None:
        return _fallback(text, path, ["No YAML metadata block found"])

    try:
        data = yaml.safe_load(block)
    except yaml.YAMLError as e:
        return _fallback(text, path, [f"Invalid YAML metadata: {e}"])

    if not isinstance(data, dict):
        return _fallback(text, path, ["YAML metadata is not a mapping"])

    return _parse_structured(data, text, path)


__all__ = [
    "DEFAULT_DESCRIPTION",
    "ParsedMetadata",
    "extract_dependencies",
    "extract_yaml_block",
    "heuristic_description",
    "heuristic_id",
    "heuristic_name",
    "parse_definition",
]
