"""
Interval algebra over same-day local time intervals.

Pure functions, no I/O. Overlap uses half-open semantics (touching
intervals do not overlap) while merging joins touching intervals.
"""

from typing import Iterable, List, Sequence, Tuple

from .models import TimeInterval


def overlaps(a: TimeInterval, b: TimeInterval) -> bool:
    """Return True iff ``a.start < b.end and b.start < a.end``."""
    return a.overlaps(b)


def duration_minutes(interval: TimeInterval) -> int:
    """Return the length of the interval in minutes."""
    return interval.duration_minutes()


def subtract(base: TimeInterval, cut: TimeInterval) -> List[TimeInterval]:
    """
    Remove ``cut`` from ``base``.

    Example:
    Base: 08:00 - 12:00
    Cut: 09:00 - 09:30
    Result: [08:00-09:00, 09:30-12:00]
    """
    if not base.overlaps(cut):
        return [base]

    remaining: List[TimeInterval] = []

    if base.start_minutes < cut.start_minutes:
        remaining.append(TimeInterval(base.start_minutes, cut.start_minutes))

    if cut.end_minutes < base.end_minutes:
        remaining.append(TimeInterval(cut.end_minutes, base.end_minutes))

    return remaining


def subtract_all(
    bases: Iterable[TimeInterval],
    cuts: Iterable[TimeInterval]
) -> List[TimeInterval]:
    """
    Subtract every cut from every base interval.

    Cuts are folded one at a time over the accumulated pieces; the result
    does not depend on the order of the cuts.
    """
    pieces = list(bases)

    for cut in cuts:
        pieces = [
            piece
            for current in pieces
            for piece in subtract(current, cut)
        ]
        if not pieces:
            break

    return sorted(pieces)


def merge_intervals(intervals: Iterable[TimeInterval]) -> List[TimeInterval]:
    """
    Merge overlapping or touching intervals.

    Example: [08:00-10:00, 09:00-12:00, 12:00-13:00, 14:00-16:00]
          -> [08:00-13:00, 14:00-16:00]
    """
    ordered = sorted(intervals)
    if not ordered:
        return []

    merged: List[TimeInterval] = [ordered[0]]

    for current in ordered[1:]:
        last = merged[-1]

        if current.start_minutes <= last.end_minutes:
            merged[-1] = TimeInterval(
                last.start_minutes,
                max(last.end_minutes, current.end_minutes)
            )
        else:
            merged.append(current)

    return merged


def total_minutes(intervals: Iterable[TimeInterval]) -> int:
    """Minutes covered by the union of the intervals."""
    return sum(interval.duration_minutes() for interval in merge_intervals(intervals))


def find_overlapping_pairs(intervals: Sequence[TimeInterval]) -> List[Tuple[int, int]]:
    """
    Return index pairs ``(i, j)`` with ``i < j`` of intervals that overlap.

    Example:
    [08:00-12:00, 11:00-15:00, 16:00-18:00] -> [(0, 1)]
    """
    order = sorted(range(len(intervals)), key=lambda index: intervals[index])
    pairs: List[Tuple[int, int]] = []

    for position, i in enumerate(order):
        for j in order[position + 1:]:
            # Sorted by start, so nothing further can overlap once a start passes our end
            if intervals[j].start_minutes >= intervals[i].end_minutes:
                break
            pairs.append((min(i, j), max(i, j)))

    return sorted(pairs)


def has_overlaps(intervals: Sequence[TimeInterval]) -> bool:
    """Check whether any two intervals in the list overlap."""
    ordered = sorted(intervals)
    return any(
        previous.overlaps(current)
        for previous, current in zip(ordered, ordered[1:])
    )
