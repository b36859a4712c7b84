"""The `.batlrc` root marker: schema version plus registry credentials."""

import logging
import tomllib
from pathlib import Path

import tomli_w
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from batl.core.config_schema import SCHEMA_VERSION
from batl.core.errors import ConfigInvalid, IoFailure, NotFound

logger = logging.getLogger(__name__)

BATLRC_FILE_NAME = ".batlrc"
DEFAULT_CREDENTIALS = "YOUR-KEY-GOES-HERE"


class ApiV0_2_1(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    credentials: str = DEFAULT_CREDENTIALS


class BatlRcV0_2_1(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    api: ApiV0_2_1 = Field(default_factory=ApiV0_2_1)


class EnvironmentRc(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    version: str = SCHEMA_VERSION


class BatlRc(BaseModel):
    """Latest `.batlrc` generation."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    environment: EnvironmentRc
    api: ApiV0_2_1 = Field(default_factory=ApiV0_2_1)

    @staticmethod
    def initial() -> "BatlRc":
        """Marker written by `batl setup`."""
        return BatlRc(environment=EnvironmentRc())

    @property
    def credentials(self) -> str:
        return self.api.credentials

    def with_credentials(self, credentials: str) -> "BatlRc":
        return self.model_copy(update={"api": ApiV0_2_1(credentials=credentials)})


def _parse(path: Path, data: dict) -> tuple[BatlRc, bool]:
    try:
        return BatlRc.model_validate(data), False
    except ValidationError:
        pass

    try:
        legacy = BatlRcV0_2_1.model_validate(data)
    except ValidationError as e:
        raise ConfigInvalid(f"{path} does not match any known schema: {e}") from e

    logger.debug("Migrating legacy %s from 0.2.1", path)
    return BatlRc(environment=EnvironmentRc(), api=legacy.api), True


def read_batlrc(root: Path) -> tuple[BatlRc, bool]:
    """Load `.batlrc` from a battalion root.

    Returns:
        The marker in the latest generation and whether it was migrated
        from a legacy one
    """
    path = root / BATLRC_FILE_NAME
    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as e:
        raise NotFound(f"No {BATLRC_FILE_NAME} at {root}") from e
    except tomllib.TOMLDecodeError as e:
        raise ConfigInvalid(f"{path} is not valid TOML: {e}") from e
    except OSError as e:
        raise IoFailure(f"Could not read {path}: {e}") from e
    return _parse(path, data)


def load_batlrc(root: Path) -> BatlRc:
    batlrc, _ = read_batlrc(root)
    return batlrc


def write_batlrc(root: Path, batlrc: BatlRc) -> None:
    path = root / BATLRC_FILE_NAME
    try:
        path.write_text(tomli_w.dumps(batlrc.model_dump(mode="json")), encoding="utf-8")
    except OSError as e:
        raise IoFailure(f"Could not write {path}: {e}") from e
