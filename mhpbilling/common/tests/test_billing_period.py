import unittest
from datetime import date
from decimal import Decimal

from mhpbilling.common.exceptions import InvalidBillingPeriodError
from mhpbilling.common.typing import (
    BillingPeriod,
    BillStatus,
    due_date_for,
    monthly_period,
    monthly_periods,
    quantize_money,
)


class TestBillingPeriod(unittest.TestCase):
    def test_period_requires_start_before_end(self):
        with self.assertRaises(InvalidBillingPeriodError):
            BillingPeriod(date(2024, 1, 31), date(2024, 1, 1))
        with self.assertRaises(InvalidBillingPeriodError):
            BillingPeriod(date(2024, 1, 1), date(2024, 1, 1))
        # Still a ValueError for callers that don't know the billing exceptions
        with self.assertRaises(ValueError):
            BillingPeriod(date(2024, 1, 1), None)

    def test_period_is_inclusive(self):
        period = BillingPeriod(date(2024, 1, 1), date(2024, 1, 31))
        self.assertEqual(31, period.days)
        self.assertTrue(period.contains(date(2024, 1, 1)))
        self.assertTrue(period.contains(date(2024, 1, 31)))
        self.assertFalse(period.contains(date(2024, 2, 1)))
        self.assertEqual("2024-01-01 - 2024-01-31", str(period))

    def test_equality(self):
        a = BillingPeriod(date(2024, 1, 1), date(2024, 1, 31))
        b = BillingPeriod(date(2024, 1, 1), date(2024, 1, 31))
        self.assertEqual(a, b)
        self.assertEqual(1, len({a, b}))
        self.assertNotEqual(a, BillingPeriod(date(2024, 1, 1), date(2024, 1, 30)))

    def test_monthly_period(self):
        self.assertEqual(
            BillingPeriod(date(2024, 2, 1), date(2024, 2, 29)), monthly_period(2024, 2)
        )
        self.assertEqual(
            BillingPeriod(date(2023, 12, 1), date(2023, 12, 31)), monthly_period(2023, 12)
        )

    def test_monthly_periods_are_consecutive(self):
        periods = monthly_periods(date(2023, 11, 17), 4)
        self.assertEqual(
            [date(2023, 11, 1), date(2023, 12, 1), date(2024, 1, 1), date(2024, 2, 1)],
            [p.start for p in periods],
        )
        for earlier, later in zip(periods, periods[1:]):
            self.assertEqual(1, (later.start - earlier.end).days)

    def test_due_date(self):
        self.assertEqual(date(2024, 2, 15), due_date_for(monthly_period(2024, 1), 15))


class TestMoney(unittest.TestCase):
    def test_round_half_up_to_cents(self):
        self.assertEqual(Decimal("0.13"), quantize_money(Decimal("0.125")))
        self.assertEqual(Decimal("33.33"), quantize_money(Decimal(100) / 3))
        self.assertEqual(Decimal("55.00"), quantize_money(Decimal("55")))

    def test_enum_values(self):
        self.assertEqual(["PENDING", "SENT", "PAID", "OVERDUE"], BillStatus.values())


if __name__ == "__main__":
    unittest.main()
