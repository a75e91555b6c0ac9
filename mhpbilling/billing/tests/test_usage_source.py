import unittest
from datetime import date, datetime
from decimal import Decimal

from mhpbilling.billing.tests.util import default_lot, default_park, default_reading, load_snapshot
from mhpbilling.billing.usage import SnapshotUsageSource
from mhpbilling.common.exceptions import ConfigurationError, MeterAnomalyError, MissingMeterReadingError
from mhpbilling.common.typing import BillingPeriod, monthly_period
from mhpbilling.model import BillingSnapshot

JANUARY = monthly_period(2024, 1)


def source_for(readings, lots=None):
    return SnapshotUsageSource(
        BillingSnapshot(park=default_park(), lots=lots or [default_lot()], readings=readings)
    )


class TestSnapshotUsageSource(unittest.TestCase):
    def test_opening_and_closing_reads(self):
        source = source_for(
            [
                default_reading(value="100", timestamp=datetime(2023, 11, 30, 9)),
                default_reading(value="500", timestamp=datetime(2023, 12, 31, 9)),
                default_reading(value="900", timestamp=datetime(2024, 1, 15, 9)),
                default_reading(value="1800", timestamp=datetime(2024, 1, 31, 23)),
                default_reading(value="2500", timestamp=datetime(2024, 2, 1, 0)),
            ]
        )
        inputs = source.meter_inputs(default_lot(), "WATER", JANUARY)
        self.assertEqual(Decimal("500"), inputs.previous_reading)
        self.assertEqual(Decimal("1800"), inputs.current_reading)
        self.assertFalse(inputs.reset)

    def test_consecutive_periods_share_a_boundary_reading(self):
        source = source_for(
            [
                default_reading(value="0", timestamp=datetime(2023, 12, 31)),
                default_reading(value="700", timestamp=datetime(2024, 1, 31)),
                default_reading(value="1500", timestamp=datetime(2024, 2, 29)),
            ]
        )
        january = source.meter_inputs(default_lot(), "WATER", JANUARY)
        february = source.meter_inputs(default_lot(), "WATER", monthly_period(2024, 2))
        self.assertEqual(january.current_reading, february.previous_reading)

    def test_readings_out_of_order(self):
        source = source_for(
            [
                default_reading(value="1800", timestamp=datetime(2024, 1, 31)),
                default_reading(value="500", timestamp=datetime(2023, 12, 31)),
            ]
        )
        inputs = source.meter_inputs(default_lot(), "WATER", JANUARY)
        self.assertEqual((Decimal("500"), Decimal("1800")), inputs[:2])

    def test_superseded_reading_is_ignored(self):
        source = source_for(
            [
                default_reading(value="500", timestamp=datetime(2023, 12, 31), reading_id="a"),
                default_reading(value="18000", timestamp=datetime(2024, 1, 31, 8), reading_id="b"),
                default_reading(value="1800", timestamp=datetime(2024, 1, 30, 8), reading_id="c", supersedes="b"),
            ]
        )
        inputs = source.meter_inputs(default_lot(), "WATER", JANUARY)
        self.assertEqual(Decimal("1800"), inputs.current_reading)
        self.assertEqual(["a", "c"], [r.reading_id for r in source.readings_for("meter-lot-1")])

    def test_reset_flag(self):
        source = source_for(
            [
                default_reading(value="9000", timestamp=datetime(2023, 12, 31)),
                default_reading(value="0", timestamp=datetime(2024, 1, 10), reset=True),
                default_reading(value="300", timestamp=datetime(2024, 1, 31)),
            ]
        )
        inputs = source.meter_inputs(default_lot(), "WATER", JANUARY)
        self.assertTrue(inputs.reset)
        self.assertEqual(Decimal("300"), inputs.current_reading)

    def test_missing_readings(self):
        with self.assertRaises(MissingMeterReadingError):
            source_for([default_reading(timestamp=datetime(2024, 1, 31))]).meter_inputs(
                default_lot(), "WATER", JANUARY
            )
        with self.assertRaises(MissingMeterReadingError):
            source_for([default_reading(timestamp=datetime(2023, 12, 31))]).meter_inputs(
                default_lot(), "WATER", JANUARY
            )
        # still a meter anomaly, so a billing run treats it like any other
        self.assertTrue(issubclass(MissingMeterReadingError, MeterAnomalyError))

    def test_lot_without_meter(self):
        with self.assertRaises(ConfigurationError):
            source_for([]).meter_inputs(default_lot(), "ELECTRIC", JANUARY)

    def test_park_usage(self):
        source = SnapshotUsageSource(load_snapshot())
        usage = source.park_usage("park-1", "ELECTRIC", JANUARY)
        self.assertEqual(Decimal("4000"), usage.total_usage)
        self.assertEqual(Decimal("400.00"), usage.total_cost)

        with self.assertRaises(ConfigurationError):
            source.park_usage("park-1", "ELECTRIC", BillingPeriod(date(2024, 1, 1), date(2024, 1, 30)))
        with self.assertRaises(ConfigurationError):
            source.park_usage("park-1", "GAS", JANUARY)
        with self.assertRaises(ConfigurationError):
            source.park_usage("park-2", "ELECTRIC", JANUARY)

    def test_billable_lots(self):
        source = SnapshotUsageSource(load_snapshot())
        self.assertEqual(5, len(source.lots("park-1")))
        self.assertEqual(
            ["lot-1", "lot-2", "lot-3", "lot-4"], [lot.id for lot in source.billable_lots("park-1")]
        )


if __name__ == "__main__":
    unittest.main()
