import json
import os
import unittest
from datetime import date, datetime
from decimal import Decimal

from mhpbilling import db
from mhpbilling.model import (
    BillingSnapshot,
    Lot,
    LotMeter,
    MeterReading,
    Park,
    RateTable,
    Tier,
    json_to_snapshot,
)

TEST_DIR = os.path.split(__file__)[0]
DATA_DIR = os.path.join(TEST_DIR, "data")
PARK_SNAPSHOT = os.path.join(DATA_DIR, "park_snapshot.json")


def load_snapshot(path=PARK_SNAPSHOT) -> BillingSnapshot:
    with open(path) as f:
        return json_to_snapshot(json.load(f, parse_float=Decimal))


def water_tiers():
    """0-1000 @ 0.03, 1000-5000 @ 0.05, 5000+ @ 0.08"""
    return [
        Tier(min_usage=Decimal("0"), max_usage=Decimal("1000"), rate=Decimal("0.03")),
        Tier(min_usage=Decimal("1000"), max_usage=Decimal("5000"), rate=Decimal("0.05")),
        Tier(min_usage=Decimal("5000"), rate=Decimal("0.08")),
    ]


def default_rate_table(
    park_id="park-1",
    utility_type="WATER",
    method="DIRECT_METER",
    tiers=None,
    base_rate=None,
    flat_amount=None,
    allocation_basis=None,
    effective_date=date(2023, 1, 1),
):
    """Create a RateTable; a tiered water schedule unless told otherwise"""
    if tiers is None and method == "DIRECT_METER":
        tiers = water_tiers()
    return RateTable(
        park_id=park_id,
        utility_type=utility_type,
        method=method,
        tiers=tiers or [],
        base_rate=base_rate,
        flat_amount=flat_amount,
        allocation_basis=allocation_basis,
        effective_date=effective_date,
    )


def default_lot(
    id="lot-1",
    park_id="park-1",
    occupants=1,
    square_footage=None,
    archived=False,
    meter_id=None,
):
    """Create a Lot with a water meter named after the lot"""
    return Lot(
        id=id,
        park_id=park_id,
        occupants=occupants,
        square_footage=square_footage,
        archived=archived,
        meters=[LotMeter(meter_id=meter_id or "meter-%s" % id, utility_type="WATER")],
    )


def default_park(id="park-1", utility_types=None, due_days=15):
    return Park(
        id=id,
        name="Test Park",
        utility_types=utility_types or ["WATER"],
        due_days=due_days,
    )


def default_reading(
    meter_id="meter-lot-1",
    value="0",
    timestamp=datetime(2023, 12, 31, 12),
    reading_id=None,
    supersedes=None,
    reset=False,
):
    return MeterReading(
        reading_id=reading_id,
        meter_id=meter_id,
        utility_type="WATER",
        value=Decimal(value),
        timestamp=timestamp,
        supersedes=supersedes,
        reset=reset,
    )


class SqlLedgerTestCase(unittest.TestCase):
    """Give each test a fresh in-memory sqlite ledger database."""

    def setUp(self):
        db.dispose()
        db.init("sqlite://")

    def tearDown(self):
        db.session.rollback()
        db.dispose()
