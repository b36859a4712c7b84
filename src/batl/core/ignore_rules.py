"""Gitignore-style pattern matching for the archive walk.

Supported syntax per line:

- blank lines and `#` comments are skipped, `\\#` and `\\!` escape them
- `!pattern` re-includes a path excluded by an earlier rule
- a trailing `/` restricts the rule to directories
- a pattern with a `/` before its end is anchored to the ignore file's
  directory; otherwise it matches the entry name at any depth
- `*`, `?` and `[...]` never cross `/`; `**` spans any number of directories

Rules from deeper ignore files are consulted after shallower ones and the
last matching rule wins.
"""

import logging
import re
from dataclasses import dataclass
from pathlib import Path, PurePosixPath

from batl.core.errors import IoFailure

logger = logging.getLogger(__name__)

IGNORE_FILE_NAMES = (".gitignore", ".ignore", "batl.ignore")


def _translate(pattern: str) -> str:
    """Turn one glob into a regex fragment over POSIX relative paths."""
    out: list[str] = []
    index = 0
    length = len(pattern)
    while index < length:
        char = pattern[index]
        if pattern.startswith("**/", index):
            out.append("(?:.*/)?")
            index += 3
        elif pattern.startswith("/**", index) and index + 3 == length:
            out.append("/.*")
            index += 3
        elif pattern.startswith("**", index):
            out.append(".*")
            index += 2
        elif char == "*":
            out.append("[^/]*")
            index += 1
        elif char == "?":
            out.append("[^/]")
            index += 1
        elif char == "[":
            close = pattern.find("]", index + 2)
            if close == -1:
                out.append(re.escape(char))
                index += 1
                continue
            body = pattern[index + 1 : close].replace("\\", "\\\\")
            if body.startswith("!"):
                body = "^" + body[1:]
            out.append("[" + body + "]")
            index = close + 1
        elif char == "\\" and index + 1 < length:
            out.append(re.escape(pattern[index + 1]))
            index += 2
        else:
            out.append(re.escape(char))
            index += 1
    return "".join(out)


@dataclass(frozen=True)
class IgnoreRule:
    """One compiled line of an ignore file."""

    regex: re.Pattern[str]
    negated: bool
    directory_only: bool
    base: PurePosixPath

    def matches(self, relative: PurePosixPath, is_dir: bool) -> bool:
        if self.directory_only and not is_dir:
            return False
        if self.base.parts:
            if not relative.is_relative_to(self.base):
                return False
            relative = relative.relative_to(self.base)
        return self.regex.fullmatch(relative.as_posix()) is not None


def parse_rule(line: str, base: PurePosixPath) -> IgnoreRule | None:
    """Compile one ignore-file line, or None for blanks and comments."""
    text = line.rstrip("\r\n")
    if not text.endswith("\\ "):
        text = text.rstrip(" ")
    if not text or text.startswith("#"):
        return None

    negated = False
    if text.startswith("!"):
        negated = True
        text = text[1:]
    elif text.startswith(("\\#", "\\!")):
        text = text[1:]

    directory_only = text.endswith("/")
    text = text.rstrip("/")
    if not text:
        return None

    anchored = "/" in text
    text = text.lstrip("/")
    body = _translate(text)
    if not anchored:
        body = "(?:.*/)?" + body

    return IgnoreRule(
        regex=re.compile(body, re.DOTALL),
        negated=negated,
        directory_only=directory_only,
        base=base,
    )


def load_rules(directory: Path, root: Path) -> list[IgnoreRule]:
    """Read every ignore file present in `directory`, in precedence order."""
    base = PurePosixPath(directory.relative_to(root).as_posix())
    if base == PurePosixPath("."):
        base = PurePosixPath()

    rules: list[IgnoreRule] = []
    for file_name in IGNORE_FILE_NAMES:
        path = directory / file_name
        if not path.is_file():
            continue
        try:
            lines = path.read_text(encoding="utf-8").splitlines()
        except OSError as e:
            raise IoFailure(f"Could not read {path}: {e}") from e
        compiled = [rule for rule in (parse_rule(line, base) for line in lines) if rule]
        logger.debug("Loaded %d rules from %s", len(compiled), path)
        rules.extend(compiled)
    return rules


def is_ignored(rules: list[IgnoreRule], relative: PurePosixPath, is_dir: bool) -> bool:
    ignored = False
    for rule in rules:
        if rule.matches(relative, is_dir):
            ignored = not rule.negated
    return ignored
