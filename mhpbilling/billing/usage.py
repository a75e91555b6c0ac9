"""Usage inputs for the charge calculators

A UsageSource is the engine's window onto the metering, allocation and property-management
collaborators. The orchestrator fetches readings, park totals and lots before a billing run;
the source only answers questions about that already-fetched data, so calculators never wait
on I/O.
"""
from abc import ABC, abstractmethod
from collections import defaultdict
import logging
from typing import Dict, List, Optional

from mhpbilling.common.exceptions import ConfigurationError, MissingMeterReadingError
from mhpbilling.common.typing import BillingPeriod, DirectMeterInputs, ParkUsage
from mhpbilling.model import BillingSnapshot, Lot, MeterReading

log = logging.getLogger(__name__)


class UsageSource(ABC):
    """Base class for read-only views of usage data"""

    @abstractmethod
    def meter_inputs(self, lot: Lot, utility_type: str, period: BillingPeriod) -> DirectMeterInputs:
        """The opening and closing reads of the lot's meter for the utility over the period."""
        pass

    @abstractmethod
    def park_usage(self, park_id: str, utility_type: str, period: BillingPeriod) -> ParkUsage:
        """The park's master-metered usage and cost for the utility over the period."""
        pass

    @abstractmethod
    def lots(self, park_id: str) -> List[Lot]:
        """Every lot in the park, archived ones included."""
        pass

    def billable_lots(self, park_id: str) -> List[Lot]:
        return [lot for lot in self.lots(park_id) if not lot.archived]


class SnapshotUsageSource(UsageSource):
    """Answer usage questions from a BillingSnapshot document.

    Readings that a later reading supersedes are kept in the snapshot for audit but never used.
    The opening read for a period is the latest reading taken before the period's first day; the
    closing read is the latest reading taken on or before its last day. Consecutive periods
    therefore share a boundary reading and no usage falls between them.
    """

    def __init__(self, snapshot: BillingSnapshot):
        self.snapshot = snapshot

        superseded = set(r.supersedes for r in snapshot.readings if r.supersedes)
        by_meter: Dict[str, List[MeterReading]] = defaultdict(list)
        for reading in snapshot.readings:
            if reading.reading_id and reading.reading_id in superseded:
                log.debug("Skipping superseded reading %s on meter %s", reading.reading_id, reading.meter_id)
                continue
            by_meter[reading.meter_id].append(reading)

        self._readings = {
            meter_id: sorted(readings, key=lambda r: r.timestamp)
            for meter_id, readings in by_meter.items()
        }

    def readings_for(self, meter_id: str) -> List[MeterReading]:
        return list(self._readings.get(meter_id, []))

    @staticmethod
    def _latest(readings: List[MeterReading], predicate) -> Optional[MeterReading]:
        found = None
        for reading in readings:
            if predicate(reading):
                found = reading
        return found

    def meter_inputs(self, lot: Lot, utility_type: str, period: BillingPeriod) -> DirectMeterInputs:
        meter_id = lot.meter_for(utility_type)
        if meter_id is None:
            raise ConfigurationError("Lot %s has no %s meter." % (lot.id, utility_type))

        readings = self.readings_for(meter_id)
        opening = self._latest(readings, lambda r: r.timestamp.date() < period.start)
        if opening is None:
            raise MissingMeterReadingError(
                "Meter %s (lot %s) has no reading before %s." % (meter_id, lot.id, period.start)
            )

        closing = self._latest(
            readings,
            lambda r: opening.timestamp < r.timestamp and r.timestamp.date() <= period.end,
        )
        if closing is None:
            raise MissingMeterReadingError(
                "Meter %s (lot %s) has no reading during %s." % (meter_id, lot.id, period)
            )

        reset = any(
            r.reset for r in readings if opening.timestamp < r.timestamp <= closing.timestamp
        )
        if reset:
            log.info("Meter %s (lot %s) was reset during %s.", meter_id, lot.id, period)

        return DirectMeterInputs(
            previous_reading=opening.value,
            current_reading=closing.value,
            reset=reset,
        )

    def park_usage(self, park_id: str, utility_type: str, period: BillingPeriod) -> ParkUsage:
        if self.snapshot.park.id != park_id:
            raise ConfigurationError("This snapshot has no usage for park %s." % park_id)

        for usage in self.snapshot.park_usage:
            if (
                usage.utility_type == utility_type
                and usage.period_start == period.start
                and usage.period_end == period.end
            ):
                return ParkUsage(total_usage=usage.total_usage, total_cost=usage.total_cost)

        raise ConfigurationError(
            "Park %s has no %s usage totals for %s." % (park_id, utility_type, period)
        )

    def lots(self, park_id: str) -> List[Lot]:
        return [lot for lot in self.snapshot.lots if lot.park_id == park_id]
