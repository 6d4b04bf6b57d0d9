"""
Code and context excerpts for a matched function, used by prompt builders.
"""

from __future__ import annotations

from typing import Optional, Sequence

from .function_extractor import FunctionRecord, line_number

# Lines shown before a function that has no preceding neighbour
CONTEXT_LINES_BEFORE = 10
# Lines shown after every function
CONTEXT_LINES_AFTER = 5


def extract_code_snippet(source: str, record: FunctionRecord) -> str:
    """The function's source text, verbatim."""
    return source[record.start_offset:record.end_offset]


def _previous_function(
    source: str,
    record: FunctionRecord,
    all_records: Sequence[FunctionRecord],
) -> Optional[FunctionRecord]:
    """The function ending closest above *record*'s first line, if any."""
    start_line = line_number(source, record.start_offset)
    best: Optional[FunctionRecord] = None
    best_end = 0
    for other in all_records:
        if other is record:
            continue
        other_end = line_number(source, other.end_offset)
        if other_end < start_line and other_end > best_end:
            best, best_end = other, other_end
    return best


def extract_context(
    source: str,
    record: FunctionRecord,
    all_records: Sequence[FunctionRecord],
) -> str:
    """Surrounding code for *record*.

    The excerpt starts at the first line of the nearest preceding function
    (or ``CONTEXT_LINES_BEFORE`` lines above *record* when there is none) and
    runs ``CONTEXT_LINES_AFTER`` lines past *record*'s last line.
    """
    start_line, end_line = record.line_span(source)
    previous = _previous_function(source, record, all_records)
    if previous is not None:
        context_start = line_number(source, previous.start_offset)
    else:
        context_start = max(1, start_line - CONTEXT_LINES_BEFORE)

    lines = source.split("\n")
    context_end = min(len(lines), end_line + CONTEXT_LINES_AFTER)
    return "\n".join(lines[context_start - 1:context_end])
