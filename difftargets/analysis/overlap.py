"""
Overlap matching between a function's line span and the changed ranges.
"""

from __future__ import annotations

from typing import Iterable

from .change_ranges import ADDITION, ChangedRange


def range_touches(start_line: int, end_line: int, rng: ChangedRange) -> bool:
    """True if *rng* starts inside, ends inside, or covers ``[start_line, end_line]``."""
    return (
        start_line <= rng.start <= end_line
        or start_line <= rng.end <= end_line
        or (rng.start <= start_line and rng.end >= end_line)
    )


def function_overlaps_changes(
    start_line: int,
    end_line: int,
    changed_ranges: Iterable[ChangedRange],
) -> bool:
    """Return True if any *addition* range touches the function's lines.

    Deletion ranges are numbered against the old file and say nothing about
    lines of the new file, so they never make a function a target.
    """
    return any(
        range_touches(start_line, end_line, rng)
        for rng in changed_ranges
        if rng.type == ADDITION
    )


def ranges_within(
    changed_ranges: Iterable[ChangedRange],
    start_line: int,
    end_line: int,
) -> list[ChangedRange]:
    """Ranges touching ``[start_line, end_line]``, clipped to that span."""
    clipped: list[ChangedRange] = []
    for rng in changed_ranges:
        if not range_touches(start_line, end_line, rng):
            continue
        clipped.append(ChangedRange(
            max(rng.start, start_line),
            min(rng.end, end_line),
            rng.type,
        ))
    return clipped
