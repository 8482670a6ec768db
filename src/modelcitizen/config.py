"""Factory configuration model and YAML loading."""

from pathlib import Path

import yaml
from pydantic import BaseModel, Field, field_validator

from modelcitizen.constants import DEFAULT_MAX_DEPTH

LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


class FactoryConfig(BaseModel):
    """Configuration for building a ModelFactory.

    Args:
        blueprints: Qualified names of blueprints to register.
        packages: Packages scanned for blueprints before ``blueprints``
            are registered.
        max_depth: Maximum nesting of nested model builds.
        log_level: Root log level set by the CLI.
    """

    blueprints: list[str] = Field(default_factory=list)
    packages: list[str] = Field(default_factory=list)
    max_depth: int = Field(DEFAULT_MAX_DEPTH, ge=1)
    log_level: str = "WARNING"

    @field_validator("log_level")
    @classmethod
    def _check_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in LOG_LEVELS:
            raise ValueError(
                f"Invalid log_level '{value}'. Must be one of: {', '.join(LOG_LEVELS)}"
            )
        return level


def load_config(path: Path) -> FactoryConfig:
    """Load a FactoryConfig from a YAML file.

    Args:
        path: YAML file with any of the FactoryConfig keys. An empty file
            yields the defaults.

    Returns:
        The validated configuration.

    Raises:
        ValueError: If the file is missing, is not a mapping, or holds
            invalid values.
    """
    if not path.is_file():
        raise ValueError(f"Config file not found: {path}")

    with open(path) as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must contain a mapping")
    return FactoryConfig(**data)
