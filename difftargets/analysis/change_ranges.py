"""
Changed-range builder — converts diff hunks into line ranges.

Addition ranges are in the *new* file's line numbers, deletion ranges in the
*old* file's. Only additions can be mapped onto functions in the new source;
deletions are carried along as metadata.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Optional

from .diff_parser import DiffHunk, FileDiff

logger = logging.getLogger(__name__)

ADDITION = "addition"
DELETION = "deletion"

# Same-type ranges whose gap is at most this many lines are merged
MERGE_DISTANCE = 2


@dataclass(frozen=True)
class ChangedRange:
    """A 1-indexed, inclusive line interval touched by a diff."""
    start: int
    end: int
    type: str   # "addition"|"deletion"

    def __post_init__(self) -> None:
        if self.start > self.end:
            raise ValueError(
                f"ChangedRange start {self.start} is after end {self.end}"
            )
        if self.type not in (ADDITION, DELETION):
            raise ValueError(f"Unknown ChangedRange type: {self.type!r}")

    def to_dict(self) -> dict:
        return {"start": self.start, "end": self.end, "type": self.type}


def hunks_to_changed_ranges(hunks: Iterable[DiffHunk]) -> list[ChangedRange]:
    """Walk every hunk body and return the merged addition/deletion ranges."""
    ranges: list[ChangedRange] = []
    for hunk in hunks:
        old_line = hunk.old_start
        new_line = hunk.new_start
        for line in hunk.lines:
            if line.startswith("+") and not line.startswith("+++"):
                ranges.append(ChangedRange(new_line, new_line, ADDITION))
                new_line += 1
            elif line.startswith("-") and not line.startswith("---"):
                ranges.append(ChangedRange(old_line, old_line, DELETION))
                old_line += 1
            elif not line.startswith("\\"):
                # Context line; "\ No newline at end of file" moves nothing
                old_line += 1
                new_line += 1

    return merge_ranges(ranges)


def merge_ranges(ranges: Iterable[ChangedRange]) -> list[ChangedRange]:
    """Sort by start and fold near-contiguous ranges of the same type.

    ``[5,5]`` and ``[7,7]`` merge into ``[5,7]``; ``[5,5]`` and ``[8,8]``
    stay apart. An addition never merges with a deletion, and a deletion
    sitting between two additions does not keep them apart.
    """
    ordered = sorted(ranges, key=lambda r: r.start)
    merged: list[ChangedRange] = []
    for range_type in (ADDITION, DELETION):
        current: Optional[ChangedRange] = None
        for nxt in ordered:
            if nxt.type != range_type:
                continue
            if current is None:
                current = nxt
            elif nxt.start <= current.end + MERGE_DISTANCE:
                current = ChangedRange(
                    current.start, max(current.end, nxt.end), range_type
                )
            else:
                merged.append(current)
                current = nxt
        if current is not None:
            merged.append(current)

    merged.sort(key=lambda r: r.start)
    return merged


def count_lines(content: str) -> int:
    """Number of lines in *content*, ignoring one trailing newline."""
    return max(1, len(content.splitlines()))


def get_changed_ranges(
    diff: FileDiff,
    file_content: Optional[str] = None,
    logger: logging.Logger = logger,
) -> list[ChangedRange]:
    """Return the changed ranges of *diff*.

    Parameters
    ----------
    diff:
        The parsed file diff.
    file_content:
        Full content of the file at the new ref. Required for ``added``
        files, whose every line is an addition.
    logger:
        Receives a debug line with the resulting ranges.

    Raises
    ------
    ValueError
        If *diff* is an added file and *file_content* is missing.
    """
    if diff.status == "added":
        if not file_content:
            raise ValueError(
                "file content is required for added files to determine line count"
            )
        ranges = [ChangedRange(1, count_lines(file_content), ADDITION)]
    elif diff.status == "removed":
        ranges = []
    else:
        ranges = hunks_to_changed_ranges(diff.hunks)

    logger.debug("[Diff] %s (%s): %d changed range(s)",
                 diff.filename, diff.status, len(ranges))
    return ranges
