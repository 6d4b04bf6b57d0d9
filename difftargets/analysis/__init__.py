"""Diff-to-function resolution: which functions did a change touch."""

from .diff_parser import DiffHunk, FileDiff, parse_unified_diff, parse_pull_request_files
from .change_ranges import (
    ADDITION, DELETION, ChangedRange, get_changed_ranges, hunks_to_changed_ranges, merge_ranges,
)
from .function_extractor import FunctionKind, FunctionRecord, detect_language, extract_functions
from .overlap import function_overlaps_changes, ranges_within
from .context import extract_code_snippet, extract_context
from .existing_tests import candidate_test_paths, detect_test_file
from .extractor import (
    TestTarget, TestTargetExtractor, analyze_file, extract_test_targets,
    filter_diffs, glob_to_regex,
)

__all__ = [
    "DiffHunk", "FileDiff", "parse_unified_diff", "parse_pull_request_files",
    "ADDITION", "DELETION",
    "ChangedRange", "get_changed_ranges", "hunks_to_changed_ranges", "merge_ranges",
    "FunctionKind", "FunctionRecord", "detect_language", "extract_functions",
    "function_overlaps_changes", "ranges_within",
    "extract_code_snippet", "extract_context",
    "candidate_test_paths", "detect_test_file",
    "TestTarget", "TestTargetExtractor", "analyze_file", "extract_test_targets",
    "filter_diffs", "glob_to_regex",
]
