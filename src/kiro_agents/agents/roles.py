"""Role and display-name derivation for agent ids.

Both derivations are pure lookups over dash-separated id tokens, so
"game-architect" and "bmad-architect" share the "architect" role while
"game-developer" is a "dev".
"""

from kiro_agents.core.text import title_case_id

GENERAL_ROLE = "general"
"""Role of agents that match no table entry; never treated as a singleton."""

# Checked in order; the first role with a matching alias wins.
ROLE_ALIASES: dict[str, tuple[str, ...]] = {
    "architect": ("architect",),
    "pm": ("pm", "project-manager", "product-manager"),
    "po": ("po", "product-owner"),
    "dev": ("dev", "developer", "engineer"),
    "qa": ("qa", "quality", "tester", "test"),
    "sm": ("sm", "scrum-master"),
    "analyst": ("analyst",),
    "ux": ("ux", "ux-expert", "user-experience"),
}

AGENT_DISPLAY_NAMES: dict[str, str] = {
    "pm": "Product Manager",
    "architect": "Architect",
    "dev": "Developer",
    "qa": "QA Engineer",
    "sm": "Scrum Master",
    "po": "Product Owner",
    "analyst": "Business Analyst",
    "ux-expert": "UX Expert",
    "game-developer": "Game Developer",
    "game-designer": "Game Designer",
    "game-sm": "Game Scrum Master",
}


def _contains_run(tokens: list[str], run: list[str]) -> bool:
    width = len(run)
    return any(tokens[i : i + width] == run for i in range(len(tokens) - width + 1))


def derive_role(agent_id: str) -> str:
    """Derive the coarse role of an agent from its id.

    Example:
        >>> derive_role("game-architect")
        'architect'
        >>> derive_role("bmad-orchestrator")
        'general'
    """
    tokens = [token for token in agent_id.lower().split("-") if token]
    for role, aliases in ROLE_ALIASES.items():
        for alias in aliases:
            if _contains_run(tokens, alias.split("-")):
                return role
    return GENERAL_ROLE


def display_name_for(agent_id: str) -> str:
    """Human display name: well-known ids from the table, otherwise title case."""
    return AGENT_DISPLAY_NAMES.get(agent_id, title_case_id(agent_id))


def is_singleton_role(role: str, singleton_roles: list[str] | tuple[str, ...]) -> bool:
    return role != GENERAL_ROLE and role in singleton_roles
