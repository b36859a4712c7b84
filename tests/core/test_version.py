"""Tests for semantic version values."""

import pytest

from batl.core.errors import InvalidName
from batl.core.version import Version


def test_parse_plain_version() -> None:
    """Test parsing major.minor.patch."""
    version = Version.parse("1.2.3")

    assert version == Version(1, 2, 3)
    assert str(version) == "1.2.3"


def test_parse_prerelease_and_build() -> None:
    """Test that pre-release and build identifiers are kept."""
    version = Version.parse("1.0.0-rc.1+build.7")

    assert version.prerelease == ("rc", "1")
    assert version.build == ("build", "7")
    assert str(version) == "1.0.0-rc.1+build.7"


@pytest.mark.parametrize(
    "text",
    ["1.0", "01.0.0", "1.0.0-", "v1.0.0", "latest", "", " 1.2.3", "1.2.3 ", "1.2.3\n"],
)
def test_parse_rejects_invalid(text: str) -> None:
    """Test that non-semver strings raise InvalidName."""
    with pytest.raises(InvalidName):
        Version.parse(text)


def test_numeric_components_compare_numerically() -> None:
    assert Version.parse("1.9.0") < Version.parse("1.10.0")


def test_release_outranks_prerelease() -> None:
    assert Version.parse("1.0.0-alpha") < Version.parse("1.0.0")


def test_prerelease_precedence_chain() -> None:
    """Test the ordering example from the Semantic Versioning document."""
    chain = [
        "1.0.0-alpha",
        "1.0.0-alpha.1",
        "1.0.0-alpha.beta",
        "1.0.0-beta",
        "1.0.0-beta.2",
        "1.0.0-beta.11",
        "1.0.0-rc.1",
        "1.0.0",
    ]
    versions = [Version.parse(text) for text in chain]

    assert sorted(reversed(versions)) == versions


def test_build_metadata_is_kept_for_equality() -> None:
    assert Version.parse("1.0.0+a") != Version.parse("1.0.0+b")


def test_path_segment_escapes_build_separator() -> None:
    """Test that `+` is written as `__` and read back."""
    version = Version.parse("1.0.0+7")

    assert version.to_path_segment() == "1.0.0__7"
    assert Version.from_path_segment("1.0.0__7") == version
