"""Text utilities for kiro-agents."""

import re

_INVALID_ID_CHARS = re.compile(r"[^a-z0-9-]")
_DASH_RUNS = re.compile(r"-+")


def normalize_agent_id(raw: str) -> str:
    """Normalize a raw identifier into an agent id slug.

    Lowercases, replaces every character outside ``[a-z0-9-]`` with a dash,
    collapses dash runs, and trims leading and trailing dashes.

    Example:
        >>> normalize_agent_id("Game Designer_v2")
        'game-designer-v2'
    """
    slug = _INVALID_ID_CHARS.sub("-", raw.strip().lower())
    slug = _DASH_RUNS.sub("-", slug)
    return slug.strip("-")


def title_case_id(agent_id: str) -> str:
    """Turn a dash-separated id into title-cased words ("ux-expert" -> "Ux Expert")."""
    return " ".join(word.capitalize() for word in agent_id.split("-") if word)


def kebab_to_snake(name: str) -> str:
    return name.replace("-", "_")


def snake_to_kebab(name: str) -> str:
    return name.replace("_", "-")
