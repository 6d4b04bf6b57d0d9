"""Tests for function / changed-range overlap matching."""

import random

from difftargets.analysis.change_ranges import ADDITION, DELETION, ChangedRange
from difftargets.analysis.overlap import function_overlaps_changes, ranges_within


def _add(start, end):
    return ChangedRange(start, end, ADDITION)


class TestFunctionOverlapsChanges:
    def test_range_starts_inside(self):
        assert function_overlaps_changes(10, 20, [_add(18, 25)])

    def test_range_ends_inside(self):
        assert function_overlaps_changes(10, 20, [_add(5, 10)])

    def test_range_inside_function(self):
        assert function_overlaps_changes(10, 20, [_add(14, 16)])

    def test_function_inside_range(self):
        assert function_overlaps_changes(10, 20, [_add(1, 40)])

    def test_disjoint(self):
        assert not function_overlaps_changes(10, 20, [_add(1, 9), _add(21, 30)])

    def test_deletions_ignored(self):
        assert not function_overlaps_changes(10, 20, [ChangedRange(12, 15, DELETION)])

    def test_no_ranges(self):
        assert not function_overlaps_changes(10, 20, [])

    def test_matches_line_intersection_randomised(self):
        rng = random.Random(1234)
        for _ in range(2000):
            f_start = rng.randint(1, 80)
            f_end = rng.randint(f_start, f_start + 30)
            ranges = []
            cursor = 1
            while cursor < 120:
                start = cursor + rng.randint(0, 10)
                end = start + rng.randint(0, 6)
                ranges.append(_add(start, end))
                cursor = end + 3
            rng.shuffle(ranges)
            ranges = ranges[: rng.randint(0, len(ranges))]

            func_lines = set(range(f_start, f_end + 1))
            expected = any(
                func_lines & set(range(r.start, r.end + 1)) for r in ranges
            )
            assert function_overlaps_changes(f_start, f_end, ranges) is expected


class TestRangesWithin:
    def test_clips_to_function_span(self):
        ranges = [_add(5, 12), _add(15, 15), _add(19, 30), _add(40, 41)]
        assert ranges_within(ranges, 10, 20) == [
            _add(10, 12), _add(15, 15), _add(19, 20),
        ]

    def test_keeps_type(self):
        ranges = [ChangedRange(11, 11, DELETION), _add(12, 13)]
        assert ranges_within(ranges, 10, 20) == ranges

    def test_nothing_touching(self):
        assert ranges_within([_add(1, 2)], 10, 20) == []
