"""Binding dependencies into a consumer's working tree.

A link is a directory link from the dependency's checkout into the
consumer, plus an entry in the consumer's .gitignore managed block, plus a
`links` record in its batl.toml. A link always requires a matching
dependency declaration, so dependencies can only be dropped once unlinked.
"""

import logging
from dataclasses import replace
from pathlib import Path, PurePosixPath

from batl.core.dir_links.abc import DirLinks
from batl.core.errors import ActionImpossible, AlreadyExists, MissingDependency, MissingLink
from batl.core.gitignore import add_ignore_entry, remove_ignore_entry
from batl.core.name import Name
from batl.core.repository import Repository

logger = logging.getLogger(__name__)


def _stored_link_path(consumer: Repository, target: Path) -> Path:
    if target.is_relative_to(consumer.path):
        return target.relative_to(consumer.path)
    return target


def _ignore_entry(stored: Path) -> str:
    return PurePosixPath(stored).as_posix()


def add_link(
    consumer: Repository, dependency: Repository, target: Path, dir_links: DirLinks
) -> Path:
    """Link `dependency` into `consumer` at `target`.

    Returns the path recorded in the consumer's config.

    Raises:
        AlreadyExists: If `target` exists or the dependency is already linked
        MissingDependency: If the consumer does not declare the dependency
    """
    target = target if target.is_absolute() else consumer.path / target
    key = dependency.name.without_version()

    if target.exists() or target.is_symlink():
        raise AlreadyExists(f"{target} already exists")
    if key not in consumer.config.dependencies:
        raise MissingDependency(f"{consumer.name} does not depend on {key}")
    if key in consumer.config.links:
        raise AlreadyExists(f"{key} is already linked at {consumer.config.links[key]}")

    stored = _stored_link_path(consumer, target)
    add_ignore_entry(consumer.path, _ignore_entry(stored))
    dir_links.create_dir_link(dependency.path, target)

    logger.debug("Linked %s into %s at %s", key, consumer.name, stored)
    consumer.update(replace(consumer.config, links={**consumer.config.links, key: stored}))
    return stored


def remove_link(consumer: Repository, name: Name, dir_links: DirLinks) -> None:
    """Undo add_link for `name`.

    Tolerates a link or ignore entry that is already gone.

    Raises:
        MissingLink: If no link is recorded under `name`
    """
    key = name.without_version()
    stored = consumer.config.links.get(key)
    if stored is None:
        raise MissingLink(f"{consumer.name} has no link for {key}")

    target = consumer.path / stored
    if dir_links.link_exists(target):
        dir_links.remove_dir_link(target)

    remove_ignore_entry(consumer.path, _ignore_entry(stored))

    links = {link: path for link, path in consumer.config.links.items() if link != key}
    logger.debug("Unlinked %s from %s", key, consumer.name)
    consumer.update(replace(consumer.config, links=links))


def remove_dependency(consumer: Repository, name: Name) -> None:
    """Drop a dependency declaration.

    Raises:
        ActionImpossible: If the dependency is still linked; nothing changes
        MissingDependency: If the dependency is not declared
    """
    key = name.without_version()
    if key in consumer.config.links:
        raise ActionImpossible("removing dependency", "dependency is linked")
    if key not in consumer.config.dependencies:
        raise MissingDependency(f"{consumer.name} does not depend on {key}")

    dependencies = {dep: v for dep, v in consumer.config.dependencies.items() if dep != key}
    logger.debug("Removed dependency %s from %s", key, consumer.name)
    consumer.update(replace(consumer.config, dependencies=dependencies))
