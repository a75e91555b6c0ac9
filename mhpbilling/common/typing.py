from datetime import date, datetime, timedelta, timezone
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import Any, List, NamedTuple, Optional

from dateutil.relativedelta import relativedelta

from mhpbilling.common.exceptions import InvalidBillingPeriodError


CENTS = Decimal("0.01")


class _ValuesEnum(Enum):
    # Documents store the enum value; these helpers keep jsonobject choices in sync.
    @classmethod
    def values(cls) -> List[str]:
        return [f.value for f in cls]


class UtilityType(_ValuesEnum):
    WATER = "WATER"
    ELECTRIC = "ELECTRIC"
    GAS = "GAS"
    SEWER = "SEWER"


class BillingMethod(_ValuesEnum):
    DIRECT_METER = "DIRECT_METER"
    RUBS = "RUBS"
    FLAT_FEE = "FLAT_FEE"


class AllocationBasis(_ValuesEnum):
    EQUAL_SPLIT = "EQUAL_SPLIT"
    OCCUPANCY = "OCCUPANCY"
    SQUARE_FOOTAGE = "SQUARE_FOOTAGE"


class BillStatus(_ValuesEnum):
    PENDING = "PENDING"
    SENT = "SENT"
    PAID = "PAID"
    OVERDUE = "OVERDUE"


class TierBasis(_ValuesEnum):
    # Tiers cover meter register values; a period is priced over [previous, current].
    REGISTER = "REGISTER"
    # Tiers cover the period's usage; a period is priced over [0, usage].
    USAGE = "USAGE"


class Status(Enum):
    SUCCEEDED = 0
    FAILED = 1


def utcnow() -> datetime:
    """Naive UTC now, to the second, as stored on bills."""
    return datetime.now(timezone.utc).replace(tzinfo=None, microsecond=0)


def quantize_money(value: Decimal) -> Decimal:
    """Round a monetary amount to whole cents."""
    return Decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)


class BillingPeriod:
    """Container for the inclusive start & end dates of one billing cycle."""

    def __init__(self, start: date, end: date):
        if start is None or end is None or start >= end:
            raise InvalidBillingPeriodError(
                "A billing period must start before it ends: %s - %s" % (start, end)
            )
        self.start = start
        self.end = end

    def __eq__(self, other) -> bool:
        if not isinstance(other, BillingPeriod):
            return NotImplemented

        return self.start == other.start and self.end == other.end

    def __hash__(self):
        return hash((self.start, self.end))

    def __str__(self):
        return "{} - {}".format(self.start.isoformat(), self.end.isoformat())

    def __repr__(self):
        return "BillingPeriod(%r, %r)" % (self.start, self.end)

    @property
    def days(self) -> int:
        return (self.end - self.start).days + 1

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end


def monthly_period(year: int, month: int) -> BillingPeriod:
    """The calendar month as a billing period, e.g. 2024-01-01 - 2024-01-31."""
    start = date(year, month, 1)
    return BillingPeriod(start, start + relativedelta(months=1, days=-1))


def monthly_periods(first: date, count: int) -> List[BillingPeriod]:
    """Consecutive calendar-month billing periods, starting with the month containing `first`."""
    start = first.replace(day=1)
    periods = []
    for idx in range(count):
        month_start = start + relativedelta(months=idx)
        periods.append(monthly_period(month_start.year, month_start.month))
    return periods


def due_date_for(period: BillingPeriod, due_days: int) -> date:
    return period.end + timedelta(days=due_days)


class LotFailure(NamedTuple):
    lot_id: str
    # exception class name, e.g. "MeterAnomalyError"; "ConfigurationError:GAS" for a skipped utility
    error: str
    message: str


class DirectMeterInputs(NamedTuple):
    previous_reading: Decimal
    current_reading: Decimal
    reset: bool = False


class ParkUsage(NamedTuple):
    total_usage: Decimal
    total_cost: Decimal


class RubsInputs(NamedTuple):
    total_park_usage: Decimal
    total_park_cost: Decimal
    lot: Any  # mhpbilling.model.Lot
    all_lots: List[Any]
    allocation_basis: Optional[str] = None


class FlatFeeInputs(NamedTuple):
    pass
