"""
Unified diff parser — turns the per-file ``patch`` text GitHub returns for a
pull request into ordered hunks.

Parsing is best effort: text that does not look like a hunk header or hunk
body is ignored rather than reported.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Iterable, Optional

if TYPE_CHECKING:
    from ..github.client import PullRequestFile

logger = logging.getLogger(__name__)

_HUNK_HEADER = re.compile(r"^@@ -(\d+)(?:,(\d+))? \+(\d+)(?:,(\d+))? @@")

# Files whose functions we know how to extract
SOURCE_FILE_PATTERN = re.compile(r"\.(ts|tsx|js|jsx)$")


@dataclass(frozen=True)
class DiffHunk:
    """One ``@@ -a,b +c,d @@`` block and its body lines (markers included)."""
    old_start: int
    old_lines: int
    new_start: int
    new_lines: int
    lines: tuple[str, ...] = ()


@dataclass
class FileDiff:
    """The parsed diff of a single file in a change set."""
    filename: str
    status: str          # "added"|"modified"|"removed"|"renamed"
    hunks: list[DiffHunk] = field(default_factory=list)
    additions: int = 0
    deletions: int = 0


def parse_unified_diff(patch: Optional[str]) -> list[DiffHunk]:
    """Split *patch* into hunks.

    Parameters
    ----------
    patch:
        The unified diff text for one file. ``None`` (binary or oversized
        diffs have no patch) yields no hunks.

    Returns
    -------
    list[DiffHunk]
        Hunks in the order they appear. Lines before the first header have
        no hunk to belong to and are dropped.
    """
    if not patch:
        return []

    hunks: list[DiffHunk] = []
    lines = patch.split("\n")
    i = 0
    while i < len(lines):
        match = _HUNK_HEADER.match(lines[i])
        if not match:
            i += 1
            continue

        old_start, old_lines, new_start, new_lines = match.groups()
        i += 1
        body: list[str] = []
        while i < len(lines) and not lines[i].startswith("@@"):
            body.append(lines[i])
            i += 1

        hunks.append(DiffHunk(
            old_start=int(old_start),
            old_lines=int(old_lines or "1"),
            new_start=int(new_start),
            new_lines=int(new_lines or "1"),
            lines=tuple(body),
        ))

    return hunks


def parse_pull_request_files(
    files: Iterable["PullRequestFile"],
    logger: logging.Logger = logger,
) -> list[FileDiff]:
    """Build a :class:`FileDiff` for every changed JS/TS source file.

    Files with any other extension are dropped without parsing their patch.
    """
    diffs: list[FileDiff] = []
    for f in files:
        if not SOURCE_FILE_PATTERN.search(f.filename):
            continue

        hunks = parse_unified_diff(f.patch)
        diffs.append(FileDiff(
            filename=f.filename,
            status=f.status,
            hunks=hunks,
            additions=f.additions,
            deletions=f.deletions,
        ))
        if f.patch:
            logger.debug("[Diff] Parsed %d hunk(s) for %s", len(hunks), f.filename)

    return diffs
