"""Managed block inside a repository's .gitignore.

Link entries live between two sentinel lines. Nothing outside the
sentinels is ever rewritten:

    # batl.gitignore begin
    deps/library
    # batl.gitignore end
"""

import logging
from pathlib import Path

from batl.core.errors import IoFailure

logger = logging.getLogger(__name__)

GITIGNORE_FILE_NAME = ".gitignore"
BLOCK_BEGIN = "# batl.gitignore begin"
BLOCK_END = "# batl.gitignore end"


def _read_lines(path: Path) -> list[str]:
    try:
        return path.read_text(encoding="utf-8").splitlines(keepends=True)
    except FileNotFoundError:
        return []
    except OSError as e:
        raise IoFailure(f"Could not read {path}: {e}") from e


def _write_lines(path: Path, lines: list[str]) -> None:
    try:
        path.write_text("".join(lines), encoding="utf-8")
    except OSError as e:
        raise IoFailure(f"Could not write {path}: {e}") from e


def _find_begin(lines: list[str]) -> int | None:
    for index, line in enumerate(lines):
        if line.rstrip("\r\n") == BLOCK_BEGIN:
            return index
    return None


def add_ignore_entry(repo_root: Path, entry: str) -> None:
    """Insert `entry` at the top of the managed block, creating it if needed."""
    path = repo_root / GITIGNORE_FILE_NAME
    lines = _read_lines(path)

    begin = _find_begin(lines)
    if begin is not None:
        lines.insert(begin + 1, entry + "\n")
    else:
        if lines and not lines[-1].endswith("\n"):
            lines[-1] += "\n"
        lines.extend([BLOCK_BEGIN + "\n", entry + "\n", BLOCK_END + "\n"])

    logger.debug("Ignoring %s in %s", entry, path)
    _write_lines(path, lines)


def remove_ignore_entry(repo_root: Path, entry: str) -> bool:
    """Remove one `entry` line from inside the managed block.

    Returns False, leaving the file untouched, when the entry is not found
    before the end sentinel.
    """
    path = repo_root / GITIGNORE_FILE_NAME
    lines = _read_lines(path)

    begin = _find_begin(lines)
    if begin is None:
        return False

    for index in range(begin + 1, len(lines)):
        line = lines[index].rstrip("\r\n")
        if line == BLOCK_END:
            return False
        if line == entry:
            del lines[index]
            logger.debug("Un-ignoring %s in %s", entry, path)
            _write_lines(path, lines)
            return True

    return False
