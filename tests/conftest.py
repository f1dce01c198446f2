"""Shared fixtures: a small BMad project tree and a no-wait configuration."""

from pathlib import Path
from textwrap import dedent

import pytest

from kiro_agents.config.models import (
    ActivationConfig,
    KiroAgentsConfig,
    RecoveryConfig,
    RegistryConfig,
)

PHASER_PACK = "bmad-2d-phaser-game-dev"

ARCHITECT_MD = dedent(
    """\
    # architect

    ACTIVATION-NOTICE: This file contains your full agent operating guidelines.

    ```yaml
    agent:
      name: Winston
      id: architect
      title: Architect
      icon: "\U0001F3D7"
      whenToUse: Use for system design, architecture documents, technology selection
    persona:
      role: Holistic System Architect & Full-Stack Technical Leader
    commands:
      - help: Show numbered list of the following commands
      - create-full-stack-architecture: use create-doc with fullstack-architecture-tmpl.yaml
    dependencies:
      tasks:
        - create-doc.md
        - execute-checklist.md
      templates:
        - architecture-tmpl.yaml
      checklists:
        - architect-checklist.md
    ```
    """
)

PM_MD = dedent(
    """\
    ---
    id: pm
    name: John
    title: Product Manager
    role: Investigative Product Strategist
    description: Use for PRDs and product strategy
    priority: high
    dependencies:
      tasks: [create-doc.md]
      templates: [prd-tmpl.yaml]
    ---

    # pm

    Product manager agent.
    """
)

DEV_MD = dedent(
    """\
    # dev

    ```yaml
    agent:
      name: James
      id: dev
      title: Full Stack Developer
      whenToUse: Use for code implementation and debugging
    persona:
      role: Expert Senior Software Engineer
    dependencies:
      tasks:
        - execute-checklist.md
      checklists:
        - story-dod-checklist.md
    ```
    """
)

GAME_DEVELOPER_MD = dedent(
    """\
    # game-developer

    ```yaml
    agent:
      name: Maya
      id: game-developer
      title: Game Developer (Phaser 3 & TypeScript)
      whenToUse: Use for Phaser 3 implementation, game story development, and code reviews
    persona:
      role: Expert Game Developer & Implementation Specialist
    dependencies:
      tasks:
        - execute-checklist.md
      templates:
        - game-architecture-tmpl.yaml
      checklists:
        - game-story-dod-checklist.md
    ```
    """
)

GAME_ARCHITECT_MD = dedent(
    """\
    # game-architect

    ```yaml
    agent:
      name: Dan
      id: game-architect
      title: Game Architect
      whenToUse: Use for game systems architecture, Phaser 3 engine design, and technical planning
    persona:
      role: Game Systems Architect
    dependencies:
      tasks:
        - create-doc.md
      templates:
        - game-architecture-tmpl.yaml
    ```
    """
)

RESOURCES = {
    "bmad-core/tasks/create-doc.md": "# Create Document\n",
    "bmad-core/tasks/execute-checklist.md": "# Execute Checklist\n",
    "bmad-core/templates/architecture-tmpl.yaml": "template: architecture\n",
    "bmad-core/templates/prd-tmpl.yaml": "template: prd\n",
    "bmad-core/checklists/architect-checklist.md": "# Architect Checklist\n",
    "bmad-core/checklists/story-dod-checklist.md": "# Story DoD\n",
    f"expansion-packs/{PHASER_PACK}/templates/game-architecture-tmpl.yaml": "template: game\n",
}


def write_tree(root: Path, files: dict[str, str]) -> None:
    for relative, content in files.items():
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")


@pytest.fixture
def project_root(tmp_path: Path) -> Path:
    """A project with three base agents, two pack agents, and their resources.

    game-developer is missing ``game-story-dod-checklist.md`` on purpose.
    """
    root = tmp_path / "project"
    write_tree(
        root,
        {
            "bmad-core/agents/architect.md": ARCHITECT_MD,
            "bmad-core/agents/pm.md": PM_MD,
            "bmad-core/agents/dev.md": DEV_MD,
            f"expansion-packs/{PHASER_PACK}/agents/game-developer.md": GAME_DEVELOPER_MD,
            f"expansion-packs/{PHASER_PACK}/agents/game-architect.md": GAME_ARCHITECT_MD,
            **RESOURCES,
        },
    )
    return root


@pytest.fixture
def fast_config() -> KiroAgentsConfig:
    """Configuration with every retry wait set to zero."""
    return KiroAgentsConfig(
        registry=RegistryConfig(
            registration_attempts=2,
            registration_wait_initial=0.0,
            registration_wait_max=0.0,
        ),
        activation=ActivationConfig(activation_timeout=5.0),
        recovery=RecoveryConfig(
            max_retry_attempts=2,
            retry_delay=0.0,
            max_retry_delay=0.0,
            retry_jitter=0.0,
        ),
    )
