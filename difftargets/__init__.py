"""
difftargets — find the JavaScript/TypeScript functions a pull request changed.

Public API for library usage::

    from difftargets import extract_test_targets

    targets = extract_test_targets(
        files, client.get_file_contents, client.file_exists, head_sha,
        include_patterns=["**/*.ts"], exclude_patterns=["**/*.test.ts"],
        test_directory="__tests__",
    )
"""

from .analysis import TestTarget, TestTargetExtractor, extract_test_targets

__all__ = ["TestTarget", "TestTargetExtractor", "extract_test_targets"]
