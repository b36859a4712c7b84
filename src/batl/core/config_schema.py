"""Repository configuration schema generations and migration.

``batl.toml`` has gone through four on-disk schema generations. Each one is
a pydantic model here; only ConfigV0_3_0 is ever written. Older generations
exist solely as migration sources and never leave this module's read
boundary: callers get a canonical RepositoryConfig.

Upgrade chain (one hop per generation boundary, no downgrade):

    ConfigV0_2_0 -> ConfigV0_2_1 -> ConfigV0_2_2 -> ConfigV0_3_0 -> RepositoryConfig

Every model forbids unknown keys and newer generations narrow free-text
version strings to semantic versions, so a document that fails a newer
schema falls through to the generation that actually wrote it.
"""

import logging
import os
from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path, PurePosixPath
from typing import Annotated, TypeVar

from pydantic import AfterValidator, BaseModel, ConfigDict, Field

from batl.core.errors import ConfigInvalid, InvalidName
from batl.core.name import Name
from batl.core.version import ZERO, Version

logger = logging.getLogger(__name__)

SCHEMA_VERSION = "0.3.0"


class Condition(StrEnum):
    """Platform a restriction applies to."""

    UNIX = "Unix"
    WINDOWS = "Windows"

    @staticmethod
    def current() -> "Condition":
        if os.name == "nt":
            return Condition.WINDOWS
        return Condition.UNIX


class Requirement(StrEnum):
    """Whether a repository must or must not be included under a condition."""

    REQUIRE = "Require"
    FORBID = "Forbid"


# ============================================================================
# Canonical shape
# ============================================================================


@dataclass(frozen=True)
class GitConfig:
    """Git origin: remote url and the subdirectory it is cloned into."""

    url: str
    path: str


@dataclass(frozen=True)
class RestrictSettings:
    include: Requirement | None = None
    dependencies: dict[Name, Version] = field(default_factory=dict)


@dataclass(frozen=True)
class RepositoryConfig:
    """Schema-independent view of a repository's batl.toml.

    Invariant: every link key is also a dependency key.
    """

    name: Name
    version: Version
    git: GitConfig | None = None
    scripts: dict[str, str] = field(default_factory=dict)
    dependencies: dict[Name, Version] = field(default_factory=dict)
    links: dict[Name, Path] = field(default_factory=dict)
    restrict: dict[Condition, RestrictSettings] = field(default_factory=dict)

    def __post_init__(self) -> None:
        dangling = [str(name) for name in self.links if name not in self.dependencies]
        if dangling:
            raise ConfigInvalid(
                f"Links without a matching dependency in {self.name}: {', '.join(dangling)}"
            )


# ============================================================================
# Field types
# ============================================================================


def _check_semver(value: str) -> str:
    Version.parse(value)
    return value


def _check_floating_name(value: str) -> str:
    if Name.parse(value).is_pinned:
        raise InvalidName(f"'{value}' must not carry a version here")
    return value


SemverStr = Annotated[str, AfterValidator(_check_semver)]
NameStr = Annotated[str, AfterValidator(_check_floating_name)]


class _Schema(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


# ============================================================================
# Generation 0.2.0 / 0.2.1
# ============================================================================


class EnvironmentV0_2_0(_Schema):
    version: str


class GitV0_2_0(_Schema):
    url: str
    path: str


class RepositoryV0_2_0(_Schema):
    name: NameStr
    version: SemverStr
    git: GitV0_2_0 | None = None


class ConfigV0_2_0(_Schema):
    environment: EnvironmentV0_2_0
    repository: RepositoryV0_2_0
    scripts: dict[str, str] | None = None
    dependencies: dict[NameStr, str] | None = None


class ConfigV0_2_1(ConfigV0_2_0):
    """Version bump with no structural change."""


# ============================================================================
# Generation 0.2.2: adds `restrict`
# ============================================================================


class RestrictSettingsV0_2_2(_Schema):
    include: Requirement | None = None
    dependencies: dict[NameStr, str] | None = None


class ConfigV0_2_2(_Schema):
    environment: EnvironmentV0_2_0
    repository: RepositoryV0_2_0
    scripts: dict[str, str] | None = None
    dependencies: dict[NameStr, str] | None = None
    restrict: dict[Condition, RestrictSettingsV0_2_2] | None = None


# ============================================================================
# Generation 0.3.0: adds `links`, dependency versions become semver
# ============================================================================


class EnvironmentV0_3_0(_Schema):
    version: SemverStr = SCHEMA_VERSION


class RestrictSettingsV0_3_0(_Schema):
    include: Requirement | None = None
    dependencies: dict[NameStr, SemverStr] | None = None


class ConfigV0_3_0(_Schema):
    environment: EnvironmentV0_3_0 = Field(default_factory=EnvironmentV0_3_0)
    repository: RepositoryV0_2_0
    scripts: dict[str, str] | None = None
    dependencies: dict[NameStr, SemverStr] | None = None
    links: dict[NameStr, str] | None = None
    restrict: dict[Condition, RestrictSettingsV0_3_0] | None = None


AnyConfig = ConfigV0_3_0 | ConfigV0_2_2 | ConfigV0_2_1 | ConfigV0_2_0

# Newest first: the first generation that validates wins.
GENERATIONS: list[type[_Schema]] = [ConfigV0_3_0, ConfigV0_2_2, ConfigV0_2_1, ConfigV0_2_0]


# ============================================================================
# Migration
# ============================================================================


def _lenient_version(text: str, context: str) -> str:
    """Parse a free-text version, degrading to 0.0.0 instead of failing."""
    if Version.is_valid(text):
        return str(Version.parse(text))
    logger.debug("Version %r for %s is not semver, defaulting to %s", text, context, ZERO)
    return str(ZERO)


def _lenient_versions(mapping: dict[str, str] | None, context: str) -> dict[str, str] | None:
    if mapping is None:
        return None
    return {key: _lenient_version(value, f"{context} {key}") for key, value in mapping.items()}


def _v0_2_0_to_v0_2_1(config: ConfigV0_2_0) -> ConfigV0_2_1:
    return ConfigV0_2_1.model_validate(config.model_dump())


def _v0_2_1_to_v0_2_2(config: ConfigV0_2_1) -> ConfigV0_2_2:
    return ConfigV0_2_2(
        environment=config.environment,
        repository=config.repository,
        scripts=config.scripts,
        dependencies=config.dependencies,
        restrict=None,
    )


def _v0_2_2_to_v0_3_0(config: ConfigV0_2_2) -> ConfigV0_3_0:
    restrict = None
    if config.restrict is not None:
        restrict = {
            condition: RestrictSettingsV0_3_0(
                include=settings.include,
                dependencies=_lenient_versions(
                    settings.dependencies, f"restrict.{condition} dependency"
                ),
            )
            for condition, settings in config.restrict.items()
        }

    return ConfigV0_3_0(
        environment=EnvironmentV0_3_0(),
        repository=config.repository,
        scripts=config.scripts,
        dependencies=_lenient_versions(config.dependencies, "dependency"),
        links=None,
        restrict=restrict,
    )


def migrate(config: AnyConfig) -> ConfigV0_3_0:
    """Upgrade any generation to the latest one, one hop at a time."""
    while True:
        match config:
            case ConfigV0_3_0():
                return config
            case ConfigV0_2_2():
                config = _v0_2_2_to_v0_3_0(config)
            case ConfigV0_2_1():
                config = _v0_2_1_to_v0_2_2(config)
            case ConfigV0_2_0():
                config = _v0_2_0_to_v0_2_1(config)
            case _:
                raise ConfigInvalid(f"Unknown config generation {type(config).__name__}")


def _parse_version_map(mapping: dict[str, str] | None) -> dict[Name, Version]:
    if not mapping:
        return {}
    return {Name.parse(key): Version.parse(value) for key, value in mapping.items()}


def to_canonical(config: ConfigV0_3_0) -> RepositoryConfig:
    git = None
    if config.repository.git is not None:
        git = GitConfig(url=config.repository.git.url, path=config.repository.git.path)

    restrict = {
        condition: RestrictSettings(
            include=settings.include,
            dependencies=_parse_version_map(settings.dependencies),
        )
        for condition, settings in (config.restrict or {}).items()
    }

    return RepositoryConfig(
        name=Name.parse(config.repository.name),
        version=Version.parse(config.repository.version),
        git=git,
        scripts=dict(config.scripts or {}),
        dependencies=_parse_version_map(config.dependencies),
        links={Name.parse(key): Path(value) for key, value in (config.links or {}).items()},
        restrict=restrict,
    )


K = TypeVar("K")
V = TypeVar("V")


def _optional_map(mapping: dict[K, V]) -> dict[K, V] | None:
    # Empty tables are omitted from the written document.
    return mapping or None


def from_canonical(config: RepositoryConfig) -> ConfigV0_3_0:
    git = None
    if config.git is not None:
        git = GitV0_2_0(url=config.git.url, path=config.git.path)

    restrict = {
        condition: RestrictSettingsV0_3_0(
            include=settings.include,
            dependencies=_optional_map(
                {name.dotted: str(version) for name, version in settings.dependencies.items()}
            ),
        )
        for condition, settings in config.restrict.items()
    }

    return ConfigV0_3_0(
        environment=EnvironmentV0_3_0(),
        repository=RepositoryV0_2_0(
            name=config.name.dotted,
            version=str(config.version),
            git=git,
        ),
        scripts=_optional_map(dict(config.scripts)),
        dependencies=_optional_map(
            {name.dotted: str(version) for name, version in config.dependencies.items()}
        ),
        links=_optional_map(
            {name.dotted: PurePosixPath(path).as_posix() for name, path in config.links.items()}
        ),
        restrict=_optional_map(restrict),
    )


def migrate_to_latest(config: AnyConfig) -> RepositoryConfig:
    """Upgrade any generation straight to the canonical shape."""
    return to_canonical(migrate(config))
