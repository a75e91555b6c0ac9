from datetime import date
from typing import Any, List, Sequence, Tuple

from intervaltree import Interval, IntervalTree

# An open-ended version runs through the last representable day.
END_OF_TIME = date.max


class DateIntervalTree:
    """The intervaltree library, keyed by python dates.

    intervaltree stores integer ranges, so dates are converted with toordinal(), which preserves
    ordering. Intervals include their lower bound and exclude their upper bound: a version in force
    from A until B applies on A and stops applying on B.
    """

    def __init__(self):
        self.tree = IntervalTree()

    @staticmethod
    def to_date_interval(begin: date, end: date, data: Any) -> Interval:
        """Convert a date interval (and associated data, if any) into an ordinal interval"""
        return Interval(begin.toordinal(), end.toordinal(), data)

    @staticmethod
    def from_date_interval(ival: Interval) -> Interval:
        """Convert an ordinal interval to a date interval"""
        return Interval(
            date.fromordinal(ival.begin), date.fromordinal(ival.end), ival.data
        )

    @classmethod
    def from_effective_dates(cls, versions: Sequence[Tuple[date, Any]]) -> "DateIntervalTree":
        """Build a tree where each version is in force from its effective date until the next one starts.

        Versions must have distinct effective dates; the latest version never expires.
        """
        tree = cls()
        ordered = sorted(versions, key=lambda v: v[0])
        for idx, (effective, data) in enumerate(ordered):
            if idx + 1 < len(ordered):
                until = ordered[idx + 1][0]
            else:
                until = END_OF_TIME
            tree.add(effective, until, data)
        return tree

    def add(self, begin: date, end: date, data: Any = None):
        """Add a date interval to the interval tree, along with any associated data"""
        self.tree.add(DateIntervalTree.to_date_interval(begin, end, data))

    def point_query(self, point: date) -> List[Interval]:
        return [
            DateIntervalTree.from_date_interval(ival)
            for ival in self.tree.at(point.toordinal())
        ]

    def __len__(self):
        return len(self.tree)
