"""Configuration loading for kiro-agents.

Functions:
    load_config: Load configuration from a YAML file, or defaults
    find_config_file: Locate the project or user configuration file
    create_default_config: Write a default configuration file
"""

from pathlib import Path
from typing import Any

from dotenv import load_dotenv
from pydantic import ValidationError as PydanticValidationError
import yaml

from kiro_agents.config.models import KiroAgentsConfig, get_config_dir, get_default_config
from kiro_agents.core.errors import ConfigError

PROJECT_CONFIG_NAME = ".kiro/kiro-agents.yaml"
USER_CONFIG_NAME = "config.yaml"


def load_env_files(project_root: Path | None = None) -> None:
    """Load .env files from the project root and ~/.kiro-agents/.

    Existing environment variables win over values from the files.
    """
    if project_root is not None:
        load_dotenv(project_root / ".env")
    load_dotenv(get_config_dir() / ".env")


def find_config_file(project_root: Path | None = None) -> Path | None:
    """Return the first existing config file: project-level, then user-level."""
    candidates: list[Path] = []
    if project_root is not None:
        candidates.append(project_root / PROJECT_CONFIG_NAME)
    candidates.append(get_config_dir() / USER_CONFIG_NAME)

    for candidate in candidates:
        if candidate.is_file():
            return candidate
    return None


def load_config(
    config_path: Path | None = None,
    *,
    project_root: Path | None = None,
) -> KiroAgentsConfig:
    """Load and validate configuration.

    An explicit ``config_path`` must exist. Without one, the project and
    user locations are searched and defaults are used when neither exists.

    Args:
        config_path: Explicit path to a YAML config file.
        project_root: Project root used to locate .kiro/kiro-agents.yaml.

    Returns:
        Validated KiroAgentsConfig instance.

    Raises:
        ConfigError: If the explicit file is missing, or a file is malformed
            or fails validation.
    """
    load_env_files(project_root)

    if config_path is None:
        config_path = find_config_file(project_root)
        if config_path is None:
            return get_default_config()
    elif not config_path.exists():
        raise ConfigError(
            f"Configuration file not found: {config_path}",
            config_file=str(config_path),
        )

    try:
        with config_path.open(encoding="utf-8") as f:
            config_dict = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(
            f"Failed to parse configuration file: {e}",
            config_file=str(config_path),
            details={"yaml_error": str(e)},
        ) from e

    if config_dict is None:
        config_dict = {}
    if not isinstance(config_dict, dict):
        raise ConfigError(
            "Configuration root must be a mapping",
            config_file=str(config_path),
        )

    try:
        return KiroAgentsConfig.model_validate(config_dict)
    except PydanticValidationError as e:
        error_messages = []
        for error in e.errors():
            loc = ".".join(str(x) for x in error["loc"])
            error_messages.append(f"  - {loc}: {error['msg']}")

        raise ConfigError(
            "Configuration validation failed:\n" + "\n".join(error_messages),
            config_file=str(config_path),
            details={"validation_errors": e.errors()},
        ) from e


def _model_to_yaml_dict(model: KiroAgentsConfig) -> dict[str, Any]:
    return model.model_dump(mode="json")


def create_default_config(config_path: Path, *, overwrite: bool = False) -> Path:
    """Write the default configuration as YAML.

    Raises:
        ConfigError: If the file exists and overwrite is False.
    """
    if config_path.exists() and not overwrite:
        raise ConfigError(
            f"Configuration file already exists: {config_path}",
            config_file=str(config_path),
        )

    config_path.parent.mkdir(parents=True, exist_ok=True)
    with config_path.open("w", encoding="utf-8") as f:
        yaml.dump(
            _model_to_yaml_dict(get_default_config()),
            f,
            default_flow_style=False,
            sort_keys=False,
            allow_unicode=True,
        )
    return config_path
