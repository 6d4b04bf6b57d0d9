"""Tests for the test target extractor (glob filtering and orchestration)."""

from __future__ import annotations

import logging
import textwrap
from unittest.mock import MagicMock

import pytest

from difftargets.analysis.change_ranges import ADDITION, ChangedRange
from difftargets.analysis.diff_parser import FileDiff
from difftargets.analysis.extractor import (
    TestTarget, TestTargetExtractor, extract_test_targets, filter_diffs, glob_to_regex,
)
from difftargets.github.client import PullRequestFile


UTILS_TS = "\n".join([
    "import { Item } from './types';",
    "",
    "const TAX_RATE = 0.2;",
    "",
    "// Totals are rounded to cents.",
    "",
    "type Totals = { net: number; gross: number };",
    "",
    "// computeTotal sums item prices.",
    "function computeTotal(items: Item[]): number {",
    "  let total = 0;",
    "  for (const item of items) {",
    "    total += item.price;",
    "    if (item.discount) {",
    "      total -= item.discount;",
    "    }",
    "  }",
    "  const gross = total * (1 + TAX_RATE);",
    "  return Math.round(gross * 100) / 100;",
    "}",
    "",
    "export { computeTotal };",
]) + "\n"

UTILS_PATCH = """\
@@ -11,7 +11,10 @@ function computeTotal(items: Item[]): number {
   let total = 0;
   for (const item of items) {
     total += item.price;
+    if (item.discount) {
+      total -= item.discount;
+    }
   }
   const gross = total * (1 + TAX_RATE);
   return Math.round(gross * 100) / 100;
 }"""

MATH_TS = textwrap.dedent("""\
    export function add(a: number, b: number): number {
      return a + b;
    }

    export const sub = (a: number, b: number): number => {
      return a - b;
    };
""")


def _diff(name):
    return FileDiff(name, "modified")


def _extractor(contents, existing=(), include=("**/*.ts", "*.ts"), exclude=("**/*.test.ts",),
               logger=None, max_workers=1):
    fetch = MagicMock(side_effect=lambda ref, path: contents[path])
    exists = MagicMock(side_effect=lambda ref, path: path in existing)
    extractor = TestTargetExtractor(
        fetch, exists, list(include), list(exclude), "__tests__",
        logger=logger, max_workers=max_workers,
    )
    return extractor, fetch, exists


@pytest.fixture()
def grammars():
    pytest.importorskip("tree_sitter_typescript")


# ---------------------------------------------------------------------------
# Glob filtering
# ---------------------------------------------------------------------------

class TestGlobToRegex:
    def test_double_star(self):
        assert glob_to_regex("**/*.ts").pattern == ".*/[^/]*.ts"

    def test_single_star_stops_at_slash(self):
        assert glob_to_regex("src/*.ts").search("src/a.ts")
        assert not glob_to_regex("src/*.ts").search("lib/a.ts")

    def test_unanchored_substring_match(self):
        assert glob_to_regex("*.test.ts").search("src/a.test.tsx")

    def test_double_star_needs_a_slash(self):
        assert glob_to_regex("**/*.ts").search("src/utils.ts")
        assert not glob_to_regex("**/*.ts").search("utils.ts")

    def test_node_modules(self):
        assert glob_to_regex("**/node_modules/**").search("web/node_modules/x/index.js")


class TestFilterDiffs:
    def test_include_and_exclude(self):
        diffs = [_diff("src/a.ts"), _diff("src/a.test.ts"), _diff("src/b.js")]
        kept = filter_diffs(diffs, ["**/*.ts"], ["**/*.test.ts"])
        assert [d.filename for d in kept] == ["src/a.ts"]

    def test_no_include_patterns_keeps_nothing(self):
        assert filter_diffs([_diff("src/a.ts")], [], []) == []


# ---------------------------------------------------------------------------
# Orchestration
# ---------------------------------------------------------------------------

class TestExtractTestTargets:
    def test_end_to_end_modified_function(self, grammars):
        files = [PullRequestFile("utils.ts", "modified", additions=3, patch=UTILS_PATCH)]
        extractor, fetch, _ = _extractor({"utils.ts": UTILS_TS})

        [target] = extractor.extract(files, "head-sha")

        assert isinstance(target, TestTarget)
        assert target.file_path == "utils.ts"
        assert target.function_name == "computeTotal"
        assert target.function_type == "function"
        assert (target.start_line, target.end_line) == (10, 20)
        assert target.changed_ranges == [ChangedRange(14, 16, ADDITION)]
        assert target.code.startswith("function computeTotal")
        assert target.code.endswith("}")
        assert target.context.split("\n")[0] == "import { Item } from './types';"
        assert "export { computeTotal };" in target.context
        assert target.existing_test_file is None
        fetch.assert_called_once_with("head-sha", "utils.ts")

    def test_existing_test_discovered(self, grammars):
        patch = "@@ -1,3 +1,3 @@\n export function add(a: number, b: number): number {\n-  return b + a;\n+  return a + b;\n }"
        files = [PullRequestFile("src/math.ts", "modified", patch=patch)]
        extractor, _, exists = _extractor(
            {"src/math.ts": MATH_TS}, existing={"src/__tests__/math.test.ts"},
        )

        [target] = extractor.extract(files, "sha")

        assert target.function_name == "add"
        assert target.existing_test_file == "src/__tests__/math.test.ts"
        assert target.to_dict()["existingTestFile"] == "src/__tests__/math.test.ts"

    def test_added_file_targets_every_function(self, grammars):
        files = [PullRequestFile("src/math.ts", "added", additions=7)]
        extractor, _, _ = _extractor({"src/math.ts": MATH_TS})

        targets = extractor.extract(files, "sha")

        assert [(t.function_name, t.function_type) for t in targets] == [
            ("add", "function"),
            ("sub", "arrow-function"),
        ]
        assert targets[0].changed_ranges == [ChangedRange(1, 3, ADDITION)]

    def test_removed_and_filtered_files_never_fetched(self, grammars):
        files = [
            PullRequestFile("src/gone.ts", "removed", patch="@@ -1 +0,0 @@\n-x"),
            PullRequestFile("src/math.test.ts", "modified", patch="@@ -1 +1 @@\n+x"),
            PullRequestFile("docs/readme.md", "modified", patch="@@ -1 +1 @@\n+x"),
        ]
        extractor, fetch, _ = _extractor({})

        assert extractor.extract(files, "sha") == []
        fetch.assert_not_called()

    def test_change_outside_functions_gives_nothing(self, grammars):
        patch = "@@ -3 +3 @@\n-const TAX_RATE = 0.1;\n+const TAX_RATE = 0.2;"
        files = [PullRequestFile("utils.ts", "modified", patch=patch)]
        extractor, _, exists = _extractor({"utils.ts": UTILS_TS})

        assert extractor.extract(files, "sha") == []
        exists.assert_not_called()

    def test_fetch_failure_is_logged_and_skipped(self, grammars):
        log = MagicMock(spec=logging.Logger)
        contents = {"src/math.ts": MATH_TS}
        files = [
            PullRequestFile("src/broken.ts", "modified", patch="@@ -1 +1 @@\n+x"),
            PullRequestFile("src/math.ts", "added"),
        ]
        extractor, _, _ = _extractor(contents, logger=log)

        targets = extractor.extract(files, "sha")

        assert [t.function_name for t in targets] == ["add", "sub"]
        log.warning.assert_called_once()
        assert "src/broken.ts" in log.warning.call_args.args

    def test_added_file_without_content_is_skipped(self, grammars):
        log = MagicMock(spec=logging.Logger)
        files = [PullRequestFile("src/empty.ts", "added")]
        extractor, _, _ = _extractor({"src/empty.ts": ""}, logger=log)

        assert extractor.extract(files, "sha") == []
        log.warning.assert_called_once()

    def test_probe_failure_skips_only_that_file(self, grammars):
        files = [
            PullRequestFile("src/a.ts", "added"),
            PullRequestFile("src/b.ts", "added"),
        ]
        def exists(ref, path):
            if path.startswith("src/a"):
                raise ConnectionError("down")
            return False

        fetch = MagicMock(return_value=MATH_TS)
        targets = extract_test_targets(
            files, fetch, exists, "sha",
            include_patterns=["**/*.ts"], exclude_patterns=[], test_directory="tests",
        )
        assert {t.file_path for t in targets} == {"src/b.ts"}

    def test_parallel_matches_sequential_order(self, grammars):
        names = [f"src/m{i}.ts" for i in range(8)]
        files = [PullRequestFile(n, "added") for n in names]
        contents = {n: MATH_TS for n in names}

        sequential, _, _ = _extractor(contents)
        parallel, _, _ = _extractor(contents, max_workers=4)

        seq = [(t.file_path, t.function_name) for t in sequential.extract(files, "sha")]
        par = [(t.file_path, t.function_name) for t in parallel.extract(files, "sha")]
        assert par == seq
        assert seq[:2] == [("src/m0.ts", "add"), ("src/m0.ts", "sub")]

    def test_from_config(self, grammars):
        config = MagicMock(
            INCLUDE_PATTERNS=["**/*.ts"], EXCLUDE_PATTERNS=[],
            TEST_DIRECTORY="tests", MAX_WORKERS=1,
        )
        fetch = MagicMock(return_value=MATH_TS)
        exists = MagicMock(return_value=False)
        extractor = TestTargetExtractor.from_config(config, fetch, exists)
        targets = extractor.extract([PullRequestFile("src/x.ts", "added")], "sha")
        assert len(targets) == 2


class TestTestTargetToDict:
    def test_camel_case_and_optional_test_file(self):
        target = TestTarget(
            file_path="a.ts", function_name="f", function_type="function",
            start_line=1, end_line=3, code="function f() {}", context="",
            changed_ranges=[ChangedRange(2, 2, ADDITION)],
        )
        data = target.to_dict()
        assert data["filePath"] == "a.ts"
        assert data["functionType"] == "function"
        assert data["changedRanges"] == [{"start": 2, "end": 2, "type": "addition"}]
        assert "existingTestFile" not in data
