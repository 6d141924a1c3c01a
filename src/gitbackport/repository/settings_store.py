"""Tool settings persisted in the repository's git config.

Values resolve with the precedence built-in default < git config < command
line. Options missing from git config are seeded with their built-in
default so users can discover and edit them with ``git config``.
"""

from enum import Enum
from typing import Any, Dict, List, Type, TypeVar

import structlog
from pydantic import ValidationError

from gitbackport.errors import InvalidOptionError
from gitbackport.models import ToolConfig
from gitbackport.repository.git_repository import GitRepository

logger = structlog.get_logger(__name__)

ConfigT = TypeVar("ConfigT", bound=ToolConfig)


def option_name(config_cls: Type[ToolConfig], field_name: str) -> str:
    """Git config option name for a field (its alias, else its name)."""
    field = config_cls.model_fields[field_name]
    return field.alias or field_name


def serialize(value: Any) -> str:
    """Render a setting the way ``git config`` stores it."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Enum):
        return str(value.value)
    return str(value)


class RepoSettingsStore:
    """Reads and seeds per-tool settings in a repository's git config."""

    def __init__(self, repository: GitRepository) -> None:
        self.repository = repository

    def read_persisted(self, config_cls: Type[ToolConfig]) -> Dict[str, str]:
        """Return the options of ``config_cls`` present in git config, keyed by field name."""
        persisted: Dict[str, str] = {}
        reader = self.repository.repo.config_reader()
        try:
            for field_name in config_cls.model_fields:
                option = option_name(config_cls, field_name)
                if reader.has_option(config_cls.section, option):
                    persisted[field_name] = reader.get(config_cls.section, option)
        finally:
            reader.release()
        return persisted

    def load(self, config_cls: Type[ConfigT], **overrides: Any) -> ConfigT:
        """Build the effective configuration of a tool.

        Args:
            config_cls: Configuration model of the tool
            **overrides: Command-line values by field name; None means "not given"

        Returns:
            Validated configuration

        Raises:
            InvalidOptionError: If a persisted or command-line value is invalid
        """
        values: Dict[str, Any] = self.read_persisted(config_cls)
        values.update({name: value for name, value in overrides.items() if value is not None})

        try:
            config = config_cls.model_validate(values)
        except ValidationError as e:
            problems = "; ".join(
                f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}" for err in e.errors()
            )
            raise InvalidOptionError(f"Invalid {config_cls.section} setting ({problems})") from e

        logger.debug("settings_loaded", section=config_cls.section, overrides=sorted(
            name for name, value in overrides.items() if value is not None
        ))
        return config

    def seed_defaults(self, config_cls: Type[ToolConfig]) -> List[str]:
        """Write the built-in default of every option missing from git config.

        Returns:
            Names of the options that were written
        """
        persisted = self.read_persisted(config_cls)
        missing = [name for name in config_cls.model_fields if name not in persisted]
        if not missing:
            return []

        written = []
        writer = self.repository.repo.config_writer(config_level="repository")
        try:
            for field_name in missing:
                option = option_name(config_cls, field_name)
                default = config_cls.model_fields[field_name].get_default(call_default_factory=True)
                writer.set_value(config_cls.section, option, serialize(default))
                written.append(option)
        finally:
            writer.release()

        logger.info("settings_seeded", section=config_cls.section, options=written)
        return written
