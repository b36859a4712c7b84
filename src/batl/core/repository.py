"""Loaded repository handles."""

import logging
from dataclasses import dataclass, replace
from enum import Enum
from pathlib import Path

from batl.core.config_io import CONFIG_FILE_NAME, write_config
from batl.core.config_schema import RepositoryConfig
from batl.core.name import Name
from batl.core.version import Version

logger = logging.getLogger(__name__)


class Provenance(Enum):
    """Which storage tier a repository was resolved from."""

    LOCAL = "local"
    FETCHED = "fetched"


@dataclass
class Repository:
    """A resolved repository: its directory, canonical config and name.

    Owned by whoever resolved it. Every mutator persists immediately.
    """

    path: Path
    name: Name
    config: RepositoryConfig
    provenance: Provenance = Provenance.LOCAL

    @property
    def config_path(self) -> Path:
        return self.path / CONFIG_FILE_NAME

    @property
    def version(self) -> Version:
        return self.config.version

    def script(self, name: str) -> str | None:
        return self.config.scripts.get(name)

    def save(self) -> None:
        write_config(self.config_path, self.config)

    def update(self, config: RepositoryConfig) -> None:
        """Replace the config and persist it."""
        self.config = config
        self.save()

    def add_dependency(self, name: Name, version: Version) -> None:
        """Declare (or re-pin) a dependency on `name` at `version`."""
        key = name.without_version()
        dependencies = {**self.config.dependencies, key: version}
        logger.debug("Adding dependency %s@%s to %s", key, version, self.name)
        self.update(replace(self.config, dependencies=dependencies))
