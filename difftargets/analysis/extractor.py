"""
Test target extractor — turns a pull request's changed files into the list of
functions that need tests.

Pipeline per file: patch -> hunks -> changed ranges -> functions in the new
source -> functions touched by an addition -> :class:`TestTarget`.
"""

from __future__ import annotations

import logging
import re
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable, Iterable, Optional, Sequence

from .change_ranges import ChangedRange, get_changed_ranges
from .context import extract_code_snippet, extract_context
from .diff_parser import FileDiff, parse_pull_request_files
from .function_extractor import detect_language, extract_functions
from .overlap import function_overlaps_changes, ranges_within
from .existing_tests import FileExists, detect_test_file

if TYPE_CHECKING:
    from ..config import Config
    from ..github.client import PullRequestFile

logger = logging.getLogger(__name__)

FetchContent = Callable[[str, str], str]


@dataclass
class TestTarget:
    """One changed function, ready for the test-generation stage."""
    __test__ = False  # not a pytest test class

    file_path: str
    function_name: str
    function_type: str      # "function"|"method"|"arrow-function"|"class-method"
    start_line: int
    end_line: int
    code: str
    context: str
    existing_test_file: Optional[str] = None
    changed_ranges: list[ChangedRange] = field(default_factory=list)

    def to_dict(self) -> dict:
        """camelCase form handed to prompt builders."""
        data = {
            "filePath": self.file_path,
            "functionName": self.function_name,
            "functionType": self.function_type,
            "startLine": self.start_line,
            "endLine": self.end_line,
            "code": self.code,
            "context": self.context,
            "changedRanges": [r.to_dict() for r in self.changed_ranges],
        }
        if self.existing_test_file:
            data["existingTestFile"] = self.existing_test_file
        return data


# ---------------------------------------------------------------------------
# Include / exclude filtering
# ---------------------------------------------------------------------------

def glob_to_regex(pattern: str) -> re.Pattern:
    """Translate a glob into an *unanchored* regular expression.

    ``**`` becomes ``.*`` and ``*`` becomes ``[^/]*``; every other character
    is kept verbatim, so ``.`` still matches any character. Matching is a
    substring search: ``*.test.ts`` also matches ``a.test.tsx``.
    """
    return re.compile(re.sub(
        r"\*\*|\*",
        lambda m: ".*" if m.group(0) == "**" else "[^/]*",
        pattern,
    ))


def filter_diffs(
    diffs: Iterable[FileDiff],
    include_patterns: Sequence[str],
    exclude_patterns: Sequence[str],
) -> list[FileDiff]:
    """Keep diffs matching an include pattern and no exclude pattern."""
    includes = [glob_to_regex(p) for p in include_patterns]
    excludes = [glob_to_regex(p) for p in exclude_patterns]
    return [
        diff for diff in diffs
        if any(rx.search(diff.filename) for rx in includes)
        and not any(rx.search(diff.filename) for rx in excludes)
    ]


# ---------------------------------------------------------------------------
# Single file analysis
# ---------------------------------------------------------------------------

def analyze_file(
    file_path: str,
    content: str,
    changed_ranges: Sequence[ChangedRange],
    ref: str,
    file_exists: FileExists,
    test_directory: str,
    logger: logging.Logger = logger,
) -> list[TestTarget]:
    """Return a target for every function in *content* touched by an addition.

    Parameters
    ----------
    file_path:
        Repository path of the file; selects the grammar and test locations.
    content:
        Full source at *ref*.
    changed_ranges:
        Merged ranges from :func:`get_changed_ranges`.
    ref:
        Git ref passed through to *file_exists*.
    file_exists:
        ``(ref, path) -> bool`` probe used to find an existing test file.
    test_directory:
        Configured root test directory.
    """
    language = detect_language(file_path)
    if language is None:
        raise ValueError(f"No grammar for {file_path}")

    functions = extract_functions(content, language, logger=logger)

    matched = []
    for func in functions:
        start_line, end_line = func.line_span(content)
        if function_overlaps_changes(start_line, end_line, changed_ranges):
            matched.append((func, start_line, end_line))
    if not matched:
        return []

    existing_test_file = detect_test_file(
        file_path, ref, file_exists, test_directory, logger=logger,
    )

    targets: list[TestTarget] = []
    for func, start_line, end_line in matched:
        targets.append(TestTarget(
            file_path=file_path,
            function_name=func.name,
            function_type=func.kind.value,
            start_line=start_line,
            end_line=end_line,
            code=extract_code_snippet(content, func),
            context=extract_context(content, func, functions),
            existing_test_file=existing_test_file,
            changed_ranges=ranges_within(changed_ranges, start_line, end_line),
        ))
        logger.debug(
            "[Targets] Found test target: %s (%s) in %s%s",
            func.name, func.kind.value, file_path,
            f" - existing test: {existing_test_file}" if existing_test_file else "",
        )
    return targets


# ---------------------------------------------------------------------------
# Orchestrator
# ---------------------------------------------------------------------------

class TestTargetExtractor:
    """Extract test targets from the files of a pull request.

    Each file is analysed on its own; a failure in one file is logged and
    that file is skipped.
    """
    __test__ = False  # not a pytest test class

    def __init__(
        self,
        fetch_content: FetchContent,
        file_exists: FileExists,
        include_patterns: Sequence[str],
        exclude_patterns: Sequence[str],
        test_directory: str,
        logger: Optional[logging.Logger] = None,
        max_workers: int = 1,
    ) -> None:
        """
        Parameters
        ----------
        fetch_content:
            ``(ref, path) -> str`` returning the file content at a ref.
        file_exists:
            ``(ref, path) -> bool`` existence probe.
        include_patterns, exclude_patterns:
            Glob filters applied to file names (see :func:`glob_to_regex`).
        test_directory:
            Root test directory used when looking for existing tests.
        logger:
            Logger for progress and per-file failures.
        max_workers:
            Files analysed concurrently. Results are always returned in
            file order regardless of this value.
        """
        self._fetch_content = fetch_content
        self._file_exists = file_exists
        self._include_patterns = list(include_patterns)
        self._exclude_patterns = list(exclude_patterns)
        self._test_directory = test_directory
        self._logger = logger or logging.getLogger(__name__)
        self._max_workers = max(1, max_workers)

    @classmethod
    def from_config(
        cls,
        config: "Config",
        fetch_content: FetchContent,
        file_exists: FileExists,
        logger: Optional[logging.Logger] = None,
    ) -> "TestTargetExtractor":
        return cls(
            fetch_content,
            file_exists,
            include_patterns=config.INCLUDE_PATTERNS,
            exclude_patterns=config.EXCLUDE_PATTERNS,
            test_directory=config.TEST_DIRECTORY,
            logger=logger,
            max_workers=config.MAX_WORKERS,
        )

    def extract(self, files: Sequence["PullRequestFile"], ref: str) -> list[TestTarget]:
        """Return the targets of all *files* at *ref*, in file order."""
        log = self._logger
        log.info("[Targets] Analyzing %d file(s) for test targets", len(files))

        diffs = parse_pull_request_files(files, logger=log)
        diffs = filter_diffs(diffs, self._include_patterns, self._exclude_patterns)
        diffs = [d for d in diffs if d.status != "removed"]
        log.debug("[Targets] Filtered to %d file(s) after pattern matching", len(diffs))

        if self._max_workers > 1 and len(diffs) > 1:
            with ThreadPoolExecutor(max_workers=min(len(diffs), self._max_workers)) as pool:
                # map() yields in submission order, which keeps output stable
                per_file = list(pool.map(lambda d: self._process(d, ref), diffs))
        else:
            per_file = [self._process(d, ref) for d in diffs]

        targets = [t for file_targets in per_file for t in file_targets]
        log.info("[Targets] Extracted %d total test target(s)", len(targets))
        return targets

    def _process(self, diff: FileDiff, ref: str) -> list[TestTarget]:
        log = self._logger
        try:
            content = self._fetch_content(ref, diff.filename)
            changed_ranges = get_changed_ranges(diff, content, logger=log)
            if not changed_ranges:
                return []

            targets = analyze_file(
                diff.filename,
                content,
                changed_ranges,
                ref,
                self._file_exists,
                self._test_directory,
                logger=log,
            )
        except Exception as exc:
            log.warning("[Targets] Failed to analyze %s: %s", diff.filename, exc)
            return []

        if targets:
            log.info("[Targets] Found %d test target(s) in %s", len(targets), diff.filename)
        return targets


def extract_test_targets(
    files: Sequence["PullRequestFile"],
    fetch_content: FetchContent,
    file_exists: FileExists,
    ref: str,
    include_patterns: Sequence[str],
    exclude_patterns: Sequence[str],
    test_directory: str,
    logger: Optional[logging.Logger] = None,
    max_workers: int = 1,
) -> list[TestTarget]:
    """Functional shortcut for :meth:`TestTargetExtractor.extract`."""
    extractor = TestTargetExtractor(
        fetch_content,
        file_exists,
        include_patterns,
        exclude_patterns,
        test_directory,
        logger=logger,
        max_workers=max_workers,
    )
    return extractor.extract(files, ref)
