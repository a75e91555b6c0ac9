from .core import (
    Tier,
    RateTable,
    MeterReading,
    LotMeter,
    Lot,
    Park,
    ParkUtilityUsage,
    ChargeLine,
    UtilityCharge,
    StatusChange,
    UtilityBill,
    BillingSnapshot,
    bill_to_json,
    json_to_bill,
    json_to_snapshot,
    order_json,
)

from .time import DateIntervalTree

from .util import log_charge, log_bill, show_bill_summary

__all__ = [
    "Tier",
    "RateTable",
    "MeterReading",
    "LotMeter",
    "Lot",
    "Park",
    "ParkUtilityUsage",
    "ChargeLine",
    "UtilityCharge",
    "StatusChange",
    "UtilityBill",
    "BillingSnapshot",
    "bill_to_json",
    "json_to_bill",
    "json_to_snapshot",
    "order_json",
    "DateIntervalTree",
    "log_charge",
    "log_bill",
    "show_bill_summary",
]
