"""
Idempotent line patching for configuration files.

Every call takes a timestamped backup of the target first, then rewrites at
most one line (or inserts one fallback line). Untouched lines keep their
exact bytes, line terminators included.
"""

import datetime
import os
import re
import shutil
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional, Pattern, Tuple, Union

from .errors import ConfigurationError
from .ui import logger, print_step, print_success, print_warning

Regex = Union[str, Pattern[str]]

COMMENT_PREFIX = re.compile(r"^\s*#\s*")

# Config files are not guaranteed to be UTF-8; undecodable bytes round-trip.
FILE_ENCODING = {"encoding": "utf-8", "errors": "surrogateescape"}


class PatchResult(Enum):
    APPLIED = "applied"
    APPENDED = "appended"
    ALREADY_APPLIED = "already_applied"
    NO_MATCH = "no_match"


def _compile(pattern: Regex) -> Pattern[str]:
    if isinstance(pattern, str):
        return re.compile(pattern, re.IGNORECASE)
    return pattern


def has_token(token: str) -> Pattern[str]:
    """
    Whole-word predicate outside comments: ``wins`` matches ``dns wins`` but
    not ``winsxs`` or ``dns # wins``.
    """
    return re.compile(rf"^[^#]*\b{re.escape(token)}\b", re.IGNORECASE)


def append_token(token: str) -> Callable[[str], str]:
    """Transform that appends ``token`` after the last word, before any comment."""

    def transform(line: str) -> str:
        code, sep, comment = line.partition("#")
        if not sep:
            return f"{line.rstrip()} {token}"
        gap = code[len(code.rstrip()):] or " "
        return f"{code.rstrip()} {token}{gap}#{comment}"

    return transform


def replace_line(new_line: str) -> Callable[[str], str]:
    """Transform that swaps the whole line for ``new_line``, keeping its indent."""

    def transform(line: str) -> str:
        indent = line[: len(line) - len(line.lstrip())]
        return f"{indent}{new_line}"

    return transform


@dataclass(frozen=True)
class PatchRule:
    """
    Declarative description of a single-line edit.

    Attributes:
        match: Selects the line to edit; the first matching line wins
        applied: Tested against the matched line; a hit means nothing to do
        transform: Maps the matched line (without terminator) to its new text
        default_line: Inserted when no line matches; None leaves the file alone
        insert_after: Anchor for ``default_line``; None appends at end of file,
            and a file without the anchor is left alone
    """

    match: Regex
    applied: Regex
    transform: Callable[[str], str]
    default_line: Optional[str] = None
    insert_after: Optional[Regex] = None


def backup_file(path: str) -> str:
    """
    Copy ``path`` to ``path.bak.<timestamp>`` preserving metadata.

    A numeric suffix is added when a backup with the same timestamp already
    exists, so repeated runs within one second never overwrite each other.

    Raises:
        ConfigurationError: If the copy fails
    """
    ts = datetime.datetime.now().strftime("%Y%m%d%H%M%S")
    backup = f"{path}.bak.{ts}"
    n = 0
    while os.path.exists(backup):
        n += 1
        backup = f"{path}.bak.{ts}.{n}"
    try:
        shutil.copy2(path, backup)
    except OSError as e:
        raise ConfigurationError(f"Backup failed for {path}: {e}") from e
    logger.info(f"Backed up {path} to {backup}")
    return backup


def _ensure_file(path: str, default_content: Optional[str]) -> None:
    if os.path.isfile(path):
        return
    if default_content is None:
        raise ConfigurationError(f"{path} not found")
    print_warning(f"{path} not found; creating a default one.")
    os.makedirs(os.path.dirname(os.path.abspath(path)), exist_ok=True)
    with open(path, "w", newline="", **FILE_ENCODING) as f:
        f.write(default_content)


def _read_lines(path: str) -> List[str]:
    try:
        with open(path, newline="", **FILE_ENCODING) as f:
            return f.read().splitlines(keepends=True)
    except UnicodeError as e:
        raise ConfigurationError(f"Cannot decode {path}: {e}") from e


def _write_lines(path: str, lines: List[str]) -> None:
    try:
        with open(path, "w", newline="", **FILE_ENCODING) as f:
            f.writelines(lines)
    except UnicodeError as e:
        raise ConfigurationError(f"Cannot encode {path}: {e}") from e


def _printable(text: str) -> str:
    return text.encode("utf-8", "surrogateescape").decode("utf-8", "replace").strip()


def _split_terminator(line: str) -> Tuple[str, str]:
    body = line.rstrip("\r\n")
    return body, line[len(body):]


def patch_file(
    path: str, rule: PatchRule, default_content: Optional[str] = None
) -> PatchResult:
    """
    Apply ``rule`` to ``path`` unless it is already in the desired state.

    Args:
        path: File to edit
        rule: The edit to apply
        default_content: Content used to create ``path`` when it is missing;
            None makes a missing file an error

    Returns:
        What happened to the file

    Raises:
        ConfigurationError: If the file is missing and required, or the
            backup cannot be written
    """
    _ensure_file(path, default_content)
    backup_file(path)

    match = _compile(rule.match)
    applied = _compile(rule.applied)
    lines = _read_lines(path)

    for i, line in enumerate(lines):
        body, terminator = _split_terminator(line)
        if not match.search(body):
            continue
        if applied.search(body):
            print_success(f"{path}: already up to date ({_printable(body)}).")
            return PatchResult.ALREADY_APPLIED
        new_body = rule.transform(body)
        lines[i] = new_body + terminator
        _write_lines(path, lines)
        print_success(f"{path}: '{_printable(body)}' -> '{_printable(new_body)}'")
        return PatchResult.APPLIED

    if rule.default_line is None:
        print_warning(f"{path}: no line matches {match.pattern!r}; nothing changed.")
        return PatchResult.NO_MATCH

    newline = "\r\n" if lines and lines[0].endswith("\r\n") else "\n"
    new_line = rule.default_line + newline
    position = len(lines)
    if rule.insert_after is not None:
        anchor = _compile(rule.insert_after)
        for i, line in enumerate(lines):
            if anchor.search(line):
                position = i + 1
                break
        else:
            print_warning(
                f"{path}: no line matches {anchor.pattern!r}; "
                f"'{rule.default_line.strip()}' not added."
            )
            return PatchResult.NO_MATCH
    if position == len(lines) and lines and not lines[-1].endswith(("\n", "\r")):
        lines[-1] += newline
    lines.insert(position, new_line)
    _write_lines(path, lines)
    print_warning(f"{path}: no matching line found; added '{rule.default_line}'.")
    return PatchResult.APPENDED


def uncomment_lines(
    path: str, first: int, last: int, default_content: Optional[str] = None
) -> int:
    """
    Strip a leading ``#`` from lines ``first`` to ``last`` (1-based, inclusive).

    The edit is positional: whatever sits on those lines is uncommented,
    and lines in the range that are not comments are left as they are.

    Returns:
        Number of lines changed
    """
    if first < 1 or last < first:
        raise ValueError(f"invalid line range {first}-{last}")
    _ensure_file(path, default_content)
    print_step(f"Uncommenting lines {first} to {last} of {path}...")
    backup_file(path)

    lines = _read_lines(path)
    changed = 0
    for i in range(first - 1, min(last, len(lines))):
        body, terminator = _split_terminator(lines[i])
        stripped = COMMENT_PREFIX.sub("", body, count=1)
        if stripped != body:
            lines[i] = stripped + terminator
            changed += 1

    if changed:
        _write_lines(path, lines)
        print_success(f"{path}: uncommented {changed} line(s).")
    else:
        print_success(f"{path}: lines {first}-{last} already uncommented.")
    return changed
