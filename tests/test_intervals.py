"""
Tests for interval algebra.
"""

from contractorslots.domain.intervals import (
    duration_minutes,
    find_overlapping_pairs,
    has_overlaps,
    merge_intervals,
    overlaps,
    subtract,
    subtract_all,
    total_minutes,
)
from contractorslots.domain.models import TimeInterval


def iv(start, end):
    return TimeInterval.parse(start, end)


class TestOverlaps:

    def test_symmetric(self):
        pairs = [
            (iv("08:00", "12:00"), iv("11:00", "13:00")),
            (iv("08:00", "12:00"), iv("12:00", "13:00")),
            (iv("08:00", "12:00"), iv("09:00", "10:00")),
            (iv("08:00", "09:00"), iv("10:00", "11:00")),
        ]

        for a, b in pairs:
            assert overlaps(a, b) == overlaps(b, a)

    def test_touching_is_not_overlap(self):
        assert not overlaps(iv("08:00", "09:00"), iv("09:00", "10:00"))

    def test_duration(self):
        assert duration_minutes(iv("08:15", "09:00")) == 45


class TestSubtract:

    def test_disjoint_cut_keeps_base(self):
        base = iv("08:00", "12:00")

        assert subtract(base, iv("13:00", "14:00")) == [base]
        assert subtract(base, iv("12:00", "13:00")) == [base]

    def test_cut_in_the_middle(self):
        assert subtract(iv("08:00", "12:00"), iv("09:00", "09:30")) == [
            iv("08:00", "09:00"),
            iv("09:30", "12:00"),
        ]

    def test_cut_covering_everything(self):
        assert subtract(iv("09:00", "10:00"), iv("08:00", "12:00")) == []
        assert subtract(iv("09:00", "10:00"), iv("09:00", "10:00")) == []

    def test_cut_at_edges(self):
        assert subtract(iv("08:00", "12:00"), iv("07:00", "09:00")) == [iv("09:00", "12:00")]
        assert subtract(iv("08:00", "12:00"), iv("11:00", "13:00")) == [iv("08:00", "11:00")]

    def test_subtract_all_is_order_independent(self):
        bases = [iv("08:00", "12:00"), iv("14:00", "18:00")]
        cuts = [iv("09:00", "09:30"), iv("10:00", "10:30"), iv("11:30", "15:00")]

        forward = subtract_all(bases, cuts)
        backward = subtract_all(bases, list(reversed(cuts)))

        assert forward == backward == [
            iv("08:00", "09:00"),
            iv("09:30", "10:00"),
            iv("10:30", "11:30"),
            iv("15:00", "18:00"),
        ]

    def test_subtract_all_without_cuts(self):
        assert subtract_all([iv("14:00", "15:00"), iv("08:00", "09:00")], []) == [
            iv("08:00", "09:00"),
            iv("14:00", "15:00"),
        ]


class TestMerge:

    def test_merge_overlapping_and_touching(self):
        merged = merge_intervals([
            iv("12:00", "13:00"),
            iv("08:00", "10:00"),
            iv("14:00", "16:00"),
            iv("09:00", "12:00"),
        ])

        assert merged == [iv("08:00", "13:00"), iv("14:00", "16:00")]

    def test_merge_nested(self):
        assert merge_intervals([iv("08:00", "18:00"), iv("09:00", "10:00")]) == [iv("08:00", "18:00")]

    def test_merge_empty(self):
        assert merge_intervals([]) == []

    def test_merged_result_has_no_overlaps_and_same_coverage(self):
        intervals = [iv("08:00", "10:00"), iv("09:30", "11:00"), iv("13:00", "14:00"), iv("13:30", "13:45")]
        merged = merge_intervals(intervals)

        assert not has_overlaps(merged)
        assert total_minutes(merged) == total_minutes(intervals) == 240

    def test_total_minutes_counts_union(self):
        assert total_minutes([iv("08:00", "09:00"), iv("08:30", "09:30")]) == 90


class TestOverlapDetection:

    def test_find_pairs(self):
        intervals = [iv("08:00", "12:00"), iv("11:00", "15:00"), iv("16:00", "18:00")]

        assert find_overlapping_pairs(intervals) == [(0, 1)]

    def test_find_pairs_unsorted_input(self):
        intervals = [iv("11:00", "15:00"), iv("16:00", "18:00"), iv("08:00", "12:00"), iv("14:00", "16:30")]

        assert find_overlapping_pairs(intervals) == [(0, 2), (0, 3), (1, 3)]

    def test_no_pairs(self):
        intervals = [iv("08:00", "09:00"), iv("09:00", "10:00")]

        assert find_overlapping_pairs(intervals) == []
        assert not has_overlaps(intervals)
