"""Run configuration loaded from a TOML file."""

import tomllib
from pathlib import Path
from typing import Dict, List

from pydantic import BaseModel, ValidationError

from git_log_sqlite.core.errors import ConfigError


class IngestConfig(BaseModel):
    """Repository names to ignore and email -> display name mapping.

    Example::

        ignored_repositories = ["scratch", "vendor"]

        [author_map]
        "a@x.com" = "Alice A."
    """

    ignored_repositories: List[str] = []
    author_map: Dict[str, str] = {}


def load_config(config_path: Path) -> IngestConfig:
    """Load ``config_path``; a missing file yields the empty configuration."""
    if not config_path.is_file():
        return IngestConfig()
    try:
        data = tomllib.loads(config_path.read_text(encoding="utf-8"))
        return IngestConfig.model_validate(data)
    except (OSError, tomllib.TOMLDecodeError, ValidationError) as e:
        raise ConfigError(f"Invalid config file {config_path}: {e}") from e
