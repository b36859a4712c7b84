"""Reading and writing batl.toml documents."""

import logging
import tomllib
from pathlib import Path

import tomli_w
from pydantic import ValidationError

from batl.core.config_schema import (
    GENERATIONS,
    AnyConfig,
    RepositoryConfig,
    from_canonical,
    migrate_to_latest,
)
from batl.core.errors import ConfigInvalid, IoFailure, NotFound

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = "batl.toml"


def _read_toml(path: Path) -> dict:
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError as e:
        raise NotFound(f"No configuration file at {path}") from e
    except OSError as e:
        raise IoFailure(f"Could not read {path}: {e}") from e

    try:
        return tomllib.loads(text)
    except tomllib.TOMLDecodeError as e:
        raise ConfigInvalid(f"{path} is not valid TOML: {e}") from e


def read_any(path: Path) -> AnyConfig:
    """Parse a config document as the newest generation that accepts it.

    Raises:
        NotFound: If the file does not exist
        ConfigInvalid: If no generation accepts the document
    """
    data = _read_toml(path)

    last_error: ValidationError | None = None
    for generation in GENERATIONS:
        try:
            config = generation.model_validate(data)
        except ValidationError as e:
            last_error = e
            continue
        logger.debug("Parsed %s as %s", path, generation.__name__)
        return config  # type: ignore[return-value]

    raise ConfigInvalid(f"{path} does not match any known schema: {last_error}") from last_error


def load_config(path: Path) -> RepositoryConfig:
    """Read any generation from disk and return the canonical shape."""
    return migrate_to_latest(read_any(path))


def dump_config(config: RepositoryConfig) -> str:
    document = from_canonical(config).model_dump(mode="json", exclude_none=True)
    return tomli_w.dumps(document)


def write_config(path: Path, config: RepositoryConfig) -> None:
    """Persist a config, always in the latest generation."""
    try:
        path.write_text(dump_config(config), encoding="utf-8")
    except OSError as e:
        raise IoFailure(f"Could not write {path}: {e}") from e
    logger.debug("Wrote %s", path)


def locate_config(start: Path) -> Path | None:
    """Walk up from `start` to the nearest directory holding batl.toml.

    Returns the repository root, or None when no ancestor has a config.
    """
    current = start.resolve()
    for parent in [current, *current.parents]:
        if (parent / CONFIG_FILE_NAME).is_file():
            return parent
    return None
