"""Tests for batl.toml schema generations and migration."""

import tomllib
from pathlib import Path

import pytest

from batl.core.config_io import dump_config, load_config, locate_config, read_any, write_config
from batl.core.config_schema import (
    Condition,
    ConfigV0_2_0,
    ConfigV0_2_2,
    ConfigV0_3_0,
    EnvironmentV0_2_0,
    RepositoryConfig,
    RepositoryV0_2_0,
    Requirement,
    RestrictSettings,
    migrate,
    migrate_to_latest,
)
from batl.core.errors import ConfigInvalid, NotFound
from batl.core.name import Name
from batl.core.version import Version

MINIMAL_V0_2_0 = """\
[environment]
version = "0.2.0"

[repository]
name = "tools.minimal"
version = "0.1.0"
"""

V0_2_0_WITH_FREE_TEXT_DEPS = """\
[environment]
version = "0.2.0"

[repository]
name = "tools.legacy"
version = "1.0.0"

[dependencies]
"tools.core" = "latest"
"tools.extra" = "2.1.0"
"""

V0_2_2_WITH_RESTRICT = """\
[environment]
version = "0.2.2"

[repository]
name = "tools.platform"
version = "0.4.0"

[restrict.Unix]
include = "Require"

[restrict.Windows]
include = "Forbid"

[restrict.Windows.dependencies]
"tools.win" = "whatever"
"""

V0_3_0_FULL = """\
[environment]
version = "0.3.0"

[repository]
name = "apps.viewer"
version = "2.0.0"

[repository.git]
url = "https://example.com/viewer.git"
path = "git"

[scripts]
build = "make"

[dependencies]
"libs.render" = "1.2.0"

[links]
"libs.render" = "deps/render"
"""


def _write(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "batl.toml"
    path.write_text(text, encoding="utf-8")
    return path


def test_minimal_v0_2_0_migrates_with_empty_maps(tmp_path: Path) -> None:
    """Test that absent tables become empty mappings, never None."""
    config = load_config(_write(tmp_path, MINIMAL_V0_2_0))

    assert config.name == Name.parse("tools.minimal")
    assert config.version == Version(0, 1, 0)
    assert config.dependencies == {}
    assert config.links == {}
    assert config.restrict == {}
    assert config.scripts == {}
    assert config.git is None


def test_free_text_dependency_versions_degrade_to_zero(tmp_path: Path) -> None:
    """Test the lenience policy: unparseable versions become 0.0.0."""
    path = _write(tmp_path, V0_2_0_WITH_FREE_TEXT_DEPS)

    config = load_config(path)

    assert config.dependencies == {
        Name.parse("tools.core"): Version(0, 0, 0),
        Name.parse("tools.extra"): Version(2, 1, 0),
    }


def test_free_text_document_is_read_as_older_generation(tmp_path: Path) -> None:
    """Test that a document failing the stricter schema falls through."""
    parsed = read_any(_write(tmp_path, V0_2_0_WITH_FREE_TEXT_DEPS))

    assert not isinstance(parsed, ConfigV0_3_0)
    assert isinstance(parsed, ConfigV0_2_0 | ConfigV0_2_2)


def test_restrict_generation_migrates_settings(tmp_path: Path) -> None:
    parsed = read_any(_write(tmp_path, V0_2_2_WITH_RESTRICT))
    config = migrate_to_latest(parsed)

    assert isinstance(parsed, ConfigV0_2_2)
    assert config.restrict[Condition.UNIX] == RestrictSettings(include=Requirement.REQUIRE)
    assert config.restrict[Condition.WINDOWS].include == Requirement.FORBID
    assert config.restrict[Condition.WINDOWS].dependencies == {
        Name.parse("tools.win"): Version(0, 0, 0)
    }


def test_latest_generation_is_read_directly(tmp_path: Path) -> None:
    parsed = read_any(_write(tmp_path, V0_3_0_FULL))
    config = migrate_to_latest(parsed)

    assert isinstance(parsed, ConfigV0_3_0)
    assert config.git is not None
    assert config.git.path == "git"
    assert config.scripts == {"build": "make"}
    assert config.links == {Name.parse("libs.render"): Path("deps/render")}


def test_unknown_keys_are_rejected(tmp_path: Path) -> None:
    text = MINIMAL_V0_2_0 + '\n[mystery]\nkey = "value"\n'

    with pytest.raises(ConfigInvalid):
        read_any(_write(tmp_path, text))


def test_invalid_toml_is_config_invalid(tmp_path: Path) -> None:
    with pytest.raises(ConfigInvalid):
        read_any(_write(tmp_path, "[repository\nname = "))


def test_missing_repository_table_is_config_invalid(tmp_path: Path) -> None:
    with pytest.raises(ConfigInvalid):
        read_any(_write(tmp_path, '[environment]\nversion = "0.2.0"\n'))


def test_invalid_repository_name_is_config_invalid(tmp_path: Path) -> None:
    text = MINIMAL_V0_2_0.replace("tools.minimal", "_hidden.name")

    with pytest.raises(ConfigInvalid):
        read_any(_write(tmp_path, text))


def test_link_without_dependency_is_config_invalid(tmp_path: Path) -> None:
    text = V0_3_0_FULL.replace('[dependencies]\n"libs.render" = "1.2.0"\n', "")

    with pytest.raises(ConfigInvalid):
        load_config(_write(tmp_path, text))


def test_missing_file_is_not_found(tmp_path: Path) -> None:
    with pytest.raises(NotFound):
        read_any(tmp_path / "batl.toml")


def test_write_always_uses_latest_generation(tmp_path: Path) -> None:
    """Test that a migrated document is persisted as 0.3.0."""
    path = _write(tmp_path, V0_2_0_WITH_FREE_TEXT_DEPS)

    write_config(path, load_config(path))
    document = tomllib.loads(path.read_text(encoding="utf-8"))

    assert document["environment"]["version"] == "0.3.0"
    assert document["dependencies"] == {"tools.core": "0.0.0", "tools.extra": "2.1.0"}
    assert isinstance(read_any(path), ConfigV0_3_0)


def test_empty_tables_are_omitted() -> None:
    config = RepositoryConfig(name=Name.parse("a.b"), version=Version(1, 0, 0))

    document = tomllib.loads(dump_config(config))

    assert set(document) == {"environment", "repository"}


def test_written_config_loads_back_unchanged(tmp_path: Path) -> None:
    config = RepositoryConfig(
        name=Name.parse("apps.viewer"),
        version=Version.parse("2.0.0-rc.1"),
        scripts={"build": "make", "test": "make test"},
        dependencies={Name.parse("libs.render"): Version(1, 2, 0)},
        links={Name.parse("libs.render"): Path("deps/render")},
        restrict={Condition.UNIX: RestrictSettings(include=Requirement.REQUIRE)},
    )
    path = tmp_path / "batl.toml"

    write_config(path, config)

    assert load_config(path) == config


def test_locate_config_walks_up(tmp_path: Path) -> None:
    _write(tmp_path, MINIMAL_V0_2_0)
    nested = tmp_path / "src" / "deep"
    nested.mkdir(parents=True)

    assert locate_config(nested) == tmp_path.resolve()


def test_locate_config_returns_none_without_config(tmp_path: Path) -> None:
    assert locate_config(tmp_path) is None


def test_oldest_generation_walks_the_whole_chain() -> None:
    """Test that a 0.2.0 value reaches the canonical shape through every hop."""
    oldest = ConfigV0_2_0(
        environment=EnvironmentV0_2_0(version="0.2.0"),
        repository=RepositoryV0_2_0(name="tools.oldest", version="0.4.0"),
    )

    config = migrate_to_latest(oldest)

    assert config.name == Name.parse("tools.oldest")
    assert config.version == Version(0, 4, 0)
    assert config.dependencies == {}
    assert config.links == {}
    assert config.restrict == {}


def test_migrate_passes_through_every_generation_type() -> None:
    oldest = ConfigV0_2_0(
        environment=EnvironmentV0_2_0(version="0.2.0"),
        repository=RepositoryV0_2_0(name="tools.oldest", version="0.4.0"),
        dependencies={"tools.core": "1.0.0"},
    )

    latest = migrate(oldest)

    assert isinstance(latest, ConfigV0_3_0)
    assert latest.dependencies == {"tools.core": "1.0.0"}


def test_migrate_rejects_unknown_generation() -> None:
    with pytest.raises(ConfigInvalid):
        migrate(RepositoryV0_2_0(name="tools.oldest", version="0.4.0"))  # type: ignore[arg-type]
