import unittest
from decimal import Decimal

from mhpbilling.billing.tests.util import default_lot, default_rate_table
from mhpbilling.calculators import RubsCalculator, allocation_factors
from mhpbilling.common.exceptions import ConfigurationError
from mhpbilling.common.typing import AllocationBasis, RubsInputs


def four_lots():
    return [
        default_lot(id="lot-1", occupants=1, square_footage=Decimal("1000")),
        default_lot(id="lot-2", occupants=2, square_footage=Decimal("1500")),
        default_lot(id="lot-3", occupants=3, square_footage=Decimal("1200")),
        default_lot(id="lot-4", occupants=0, square_footage=Decimal("800")),
    ]


class TestAllocationFactors(unittest.TestCase):
    def test_factors_sum_to_one(self):
        lots = four_lots()
        for basis in AllocationBasis:
            factors = allocation_factors(lots, basis)
            self.assertEqual(["lot-1", "lot-2", "lot-3", "lot-4"], list(factors.keys()))
            self.assertAlmostEqual(1, sum(factors.values()), places=9, msg=basis.value)

    def test_occupancy(self):
        factors = allocation_factors(four_lots(), AllocationBasis.OCCUPANCY)
        self.assertEqual(Decimal("0.5"), factors["lot-3"])
        self.assertEqual(Decimal("0"), factors["lot-4"])

    def test_zero_occupants(self):
        lots = [default_lot(id="a", occupants=0), default_lot(id="b", occupants=0)]
        with self.assertRaises(ConfigurationError):
            allocation_factors(lots, AllocationBasis.OCCUPANCY)

    def test_missing_square_footage(self):
        lots = four_lots()
        lots[1].square_footage = None
        with self.assertRaises(ConfigurationError):
            allocation_factors(lots, AllocationBasis.SQUARE_FOOTAGE)

    def test_no_lots(self):
        with self.assertRaises(ConfigurationError):
            allocation_factors([], AllocationBasis.EQUAL_SPLIT)

    def test_duplicate_lot(self):
        lots = four_lots()
        with self.assertRaises(ConfigurationError):
            allocation_factors(lots + [lots[0]], AllocationBasis.EQUAL_SPLIT)


class TestRubsCalculator(unittest.TestCase):
    def setUp(self):
        self.calculator = RubsCalculator()
        self.lots = four_lots()
        self.rate_table = default_rate_table(utility_type="ELECTRIC", method="RUBS")

    def charge_for(self, lot, basis=None, cost="400", usage="4000"):
        return self.calculator.compute_charge(
            RubsInputs(
                total_park_usage=Decimal(usage),
                total_park_cost=Decimal(cost),
                lot=lot,
                all_lots=self.lots,
                allocation_basis=basis,
            ),
            self.rate_table,
        )

    def test_equal_split(self):
        """A 400.00 park bill split four ways is 100.00 per lot at a factor of 0.25."""
        charges = [self.charge_for(lot) for lot in self.lots]
        for charge in charges:
            self.assertEqual(Decimal("100.00"), charge.amount)
            self.assertEqual(Decimal("0.25"), charge.rate)
            self.assertEqual(Decimal("1000"), charge.usage)
            self.assertEqual("RUBS", charge.method)
        self.assertEqual(Decimal("1"), sum(c.rate for c in charges))

    def test_basis_from_rate_table(self):
        self.rate_table.allocation_basis = AllocationBasis.SQUARE_FOOTAGE.value
        charge = self.charge_for(self.lots[1], cost="900")
        # 1500 of 4500 square feet
        self.assertEqual(Decimal("300.00"), charge.amount)

    def test_inputs_basis_overrides_table(self):
        self.rate_table.allocation_basis = AllocationBasis.SQUARE_FOOTAGE.value
        charge = self.charge_for(self.lots[1], basis=AllocationBasis.OCCUPANCY.value, cost="600")
        self.assertEqual(Decimal("200.00"), charge.amount)

    def test_amounts_rounded_per_lot(self):
        self.lots = self.lots[:3]
        charges = [self.charge_for(lot, cost="100") for lot in self.lots]
        self.assertEqual([Decimal("33.33")] * 3, [c.amount for c in charges])

    def test_lot_not_eligible(self):
        outsider = default_lot(id="lot-9")
        with self.assertRaises(ConfigurationError):
            self.charge_for(outsider)

    def test_zero_cost(self):
        self.assertEqual(Decimal("0.00"), self.charge_for(self.lots[0], cost="0").amount)

    def test_negative_totals(self):
        with self.assertRaises(ConfigurationError):
            self.charge_for(self.lots[0], cost="-1")


if __name__ == "__main__":
    unittest.main()
