import unittest
from datetime import date
from decimal import Decimal

from mhpbilling.billing.tests.util import default_rate_table, load_snapshot
from mhpbilling.common.exceptions import ConfigurationError
from mhpbilling.common.typing import UtilityType
from mhpbilling.model import Tier
from mhpbilling.rates import RateTableResolver


class TestRateTableResolver(unittest.TestCase):
    def setUp(self):
        self.original = default_rate_table(effective_date=date(2023, 1, 1))
        self.increase = default_rate_table(
            effective_date=date(2024, 2, 1),
            tiers=[Tier(min_usage=Decimal("0"), rate=Decimal("0.04"))],
        )
        self.resolver = RateTableResolver.from_tables([self.increase, self.original])

    def test_version_in_force(self):
        self.assertIs(self.original, self.resolver.resolve("park-1", "WATER", date(2023, 1, 1)))
        self.assertIs(self.original, self.resolver.resolve("park-1", "WATER", date(2024, 1, 31)))
        self.assertIs(self.increase, self.resolver.resolve("park-1", "WATER", date(2024, 2, 1)))
        self.assertIs(self.increase, self.resolver.resolve("park-1", UtilityType.WATER, date(2031, 6, 1)))

    def test_resolve_is_idempotent(self):
        first = self.resolver.resolve("park-1", "WATER", date(2024, 1, 15))
        second = self.resolver.resolve("park-1", "WATER", date(2024, 1, 15))
        self.assertIs(first, second)
        self.assertEqual(first.to_json(), second.to_json())

    def test_before_first_version(self):
        with self.assertRaises(ConfigurationError):
            self.resolver.resolve("park-1", "WATER", date(2022, 12, 31))

    def test_table_without_effective_date_always_applies(self):
        resolver = RateTableResolver.from_tables([default_rate_table(effective_date=None)])
        self.assertIsNotNone(resolver.resolve("park-1", "WATER", date(1999, 1, 1)))

    def test_missing_table(self):
        with self.assertRaises(ConfigurationError):
            self.resolver.resolve("park-1", "GAS", date(2024, 1, 15))
        with self.assertRaises(ConfigurationError):
            self.resolver.resolve("park-2", "WATER", date(2024, 1, 15))
        with self.assertRaises(ConfigurationError):
            self.resolver.resolve("park-1", "STEAM", date(2024, 1, 15))

    def test_versions_are_immutable(self):
        with self.assertRaises(ConfigurationError):
            self.resolver.register(default_rate_table(effective_date=date(2024, 2, 1)))
        self.assertEqual([self.original, self.increase], self.resolver.versions("park-1", "WATER"))

    def test_rejects_bad_configuration(self):
        with self.assertRaises(ConfigurationError):
            self.resolver.register(default_rate_table(utility_type="GAS", tiers=[]))

    def test_snapshot_tables(self):
        resolver = RateTableResolver.from_tables(load_snapshot().rate_tables)
        self.assertEqual(["ELECTRIC", "SEWER", "WATER"], resolver.utility_types("park-1"))
        water = resolver.resolve("park-1", "WATER", date(2024, 1, 31))
        self.assertEqual(Decimal("0.03"), water.tiers[0].rate)
        self.assertEqual("RUBS", resolver.resolve("park-1", "ELECTRIC", date(2024, 1, 31)).method)


if __name__ == "__main__":
    unittest.main()
