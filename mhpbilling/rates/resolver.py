"""Rate table lookup

A park prices each utility type with exactly one rate table at any given date. Rate changes are
recorded as new versions with a later effective date; old versions are kept so that historical
periods keep resolving to the rates they were billed under.
"""
import logging
from datetime import date
from typing import Dict, Iterable, List, Tuple, Union

from mhpbilling.common.exceptions import ConfigurationError
from mhpbilling.common.typing import UtilityType
from mhpbilling.model import DateIntervalTree, RateTable
from mhpbilling.model.time import END_OF_TIME

log = logging.getLogger(__name__)

RateKey = Tuple[str, str]


def utility_value(utility_type: Union[str, UtilityType]) -> str:
    try:
        return UtilityType(utility_type).value
    except ValueError:
        raise ConfigurationError("Unknown utility type: %s" % utility_type)


def effective_date_of(rate_table: RateTable) -> date:
    return rate_table.effective_date or date.min


class RateTableResolver:
    """Resolve the rate table in force for a (park, utility type) pair on a date.

    Each pair keeps its versions in a DateIntervalTree; a version is in force from its effective
    date until the next version's effective date.
    """

    def __init__(self):
        self._versions: Dict[RateKey, List[RateTable]] = {}
        self._trees: Dict[RateKey, DateIntervalTree] = {}

    @classmethod
    def from_tables(cls, rate_tables: Iterable[RateTable]) -> "RateTableResolver":
        resolver = cls()
        for rate_table in rate_tables:
            resolver.register(rate_table)
        return resolver

    def register(self, rate_table: RateTable) -> None:
        """Add a new rate table version.

        Raises ConfigurationError if the table is inconsistent, or if a version with the same
        effective date already exists for its park and utility type.
        """
        rate_table.check_configuration()

        key = (rate_table.park_id, utility_value(rate_table.utility_type))
        effective = effective_date_of(rate_table)
        if effective >= END_OF_TIME:
            raise ConfigurationError("Rate table effective date is out of range: %s" % effective)

        versions = self._versions.setdefault(key, [])
        if any(effective_date_of(v) == effective for v in versions):
            raise ConfigurationError(
                "Park %s already has a %s rate table effective %s; add a new version instead of "
                "editing an existing one." % (key[0], key[1], effective)
            )

        versions.append(rate_table)
        versions.sort(key=effective_date_of)
        self._trees[key] = DateIntervalTree.from_effective_dates(
            [(effective_date_of(v), v) for v in versions]
        )
        log.debug(
            "Registered %s %s rate table for park %s effective %s (%d versions)",
            rate_table.method,
            key[1],
            key[0],
            effective,
            len(versions),
        )

    def resolve(self, park_id: str, utility_type: Union[str, UtilityType], as_of: date) -> RateTable:
        """Return the rate table in force for the park and utility on as_of.

        Raises ConfigurationError when none is configured; callers must not treat that as a zero rate.
        """
        key = (park_id, utility_value(utility_type))
        tree = self._trees.get(key)
        if tree is None:
            raise ConfigurationError(
                "No %s rate table is configured for park %s." % (key[1], park_id)
            )

        matches = tree.point_query(as_of)
        if not matches:
            raise ConfigurationError(
                "No %s rate table for park %s is in effect on %s." % (key[1], park_id, as_of)
            )
        return matches[0].data

    def versions(self, park_id: str, utility_type: Union[str, UtilityType]) -> List[RateTable]:
        """All versions for the park and utility, oldest first."""
        return list(self._versions.get((park_id, utility_value(utility_type)), []))

    def utility_types(self, park_id: str) -> List[str]:
        return sorted(u for (p, u) in self._versions if p == park_id)
