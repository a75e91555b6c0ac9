import logging
from datetime import date, datetime
from typing import Any, Callable, List, Optional, Tuple
import uuid

from mhpbilling import config
from mhpbilling.billing import status
from mhpbilling.billing.usage import UsageSource
from mhpbilling.calculators import calculator_for
from mhpbilling.common.exceptions import ConfigurationError, InvalidBillTransitionError
from mhpbilling.common.typing import (
    BillingMethod,
    BillingPeriod,
    BillStatus,
    FlatFeeInputs,
    LotFailure,
    RubsInputs,
    due_date_for,
    utcnow,
)
from mhpbilling.ledger import BillLedger, MemoryBillLedger
from mhpbilling.model import (
    Lot,
    Park,
    RateTable,
    StatusChange,
    UtilityBill,
    UtilityCharge,
    log_bill,
    log_charge,
)
from mhpbilling.rates import RateTableResolver

log = logging.getLogger(__name__)


class BillAssembler:
    """Build one lot's utility bill for one billing period, and move issued bills through their statuses.

    For every utility type the park bills, the assembler resolves the rate table in force at the
    end of the period, gathers the inputs its billing method needs from the usage source, and
    hands both to that method's calculator. The bill is recorded in the ledger only once every
    charge has been computed, so a failure leaves no partial bill behind.
    """

    def __init__(
        self,
        resolver: RateTableResolver,
        usage_source: UsageSource,
        ledger: Optional[BillLedger] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.resolver = resolver
        self.usage_source = usage_source
        self.ledger = ledger if ledger is not None else MemoryBillLedger()
        self.clock = clock

    def gather_inputs(self, rate_table: RateTable, lot: Lot, park: Park, period: BillingPeriod) -> Any:
        method = rate_table.billing_method
        if method == BillingMethod.DIRECT_METER:
            return self.usage_source.meter_inputs(lot, rate_table.utility_type, period)

        if method == BillingMethod.RUBS:
            totals = self.usage_source.park_usage(park.id, rate_table.utility_type, period)
            return RubsInputs(
                total_park_usage=totals.total_usage,
                total_park_cost=totals.total_cost,
                lot=lot,
                all_lots=self.usage_source.billable_lots(park.id),
                allocation_basis=rate_table.allocation_basis,
            )

        return FlatFeeInputs()

    def compute_charges(
        self, lot: Lot, period: BillingPeriod, park: Park
    ) -> Tuple[List[UtilityCharge], List[LotFailure]]:
        """Price every utility the park bills, in the park's order.

        A utility with no rate table in force is left off the bill and returned as skipped; it is
        never billed at a zero rate. Errors from the calculators fail the whole lot.
        """
        charges = []
        skipped = []
        for utility_type in park.utility_types:
            try:
                rate_table = self.resolver.resolve(park.id, utility_type, period.end)
            except ConfigurationError as exc:
                log.warning("Lot %s is not billed for %s in %s: %s", lot.id, utility_type, period, exc)
                skipped.append(
                    LotFailure(
                        lot_id=lot.id,
                        error="ConfigurationError:%s" % utility_type,
                        message=str(exc),
                    )
                )
                continue

            usage_inputs = self.gather_inputs(rate_table, lot, park, period)
            charge = calculator_for(rate_table.method).compute_charge(usage_inputs, rate_table)
            log_charge(log, charge, indent=1)
            charges.append(charge)
        return charges, skipped

    def generate_bill(self, lot: Lot, period: BillingPeriod, park: Park) -> UtilityBill:
        """Create, record and return the PENDING bill for a lot and billing period.

        Raises DuplicateBillError if the lot already has an active bill for exactly this period,
        ConfigurationError if the lot can't be billed as configured, and MeterAnomalyError if its
        meter readings need review. Utilities without a rate table are left off the bill; use
        assemble() to find out which.
        """
        bill, _ = self.assemble(lot, period, park)
        return bill

    def assemble(
        self, lot: Lot, period: BillingPeriod, park: Park
    ) -> Tuple[UtilityBill, List[LotFailure]]:
        """generate_bill, also returning the utilities skipped for lack of a rate table."""
        if lot.park_id != park.id:
            raise ConfigurationError("Lot %s belongs to park %s, not %s." % (lot.id, lot.park_id, park.id))
        if lot.archived:
            raise ConfigurationError("Lot %s is archived and cannot be billed." % lot.id)
        if not park.utility_types:
            raise ConfigurationError("Park %s does not bill any utilities." % park.id)

        existing = self.ledger.find(lot.id, period.start, period.end)
        if existing is not None:
            raise self.ledger.duplicate_error(lot.id, period.start, period.end, existing)

        log.debug("Billing lot %s for %s", lot.id, period)
        charges, skipped = self.compute_charges(lot, period, park)
        if not charges:
            raise ConfigurationError(
                "Lot %s has no priced utilities for %s: %s"
                % (lot.id, period, "; ".join(s.message for s in skipped))
            )

        created = self.clock()
        due_days = park.due_days if park.due_days is not None else config.DEFAULT_DUE_DAYS
        bill = UtilityBill(
            id=str(uuid.uuid4()),
            lot_id=lot.id,
            park_id=park.id,
            period_start=period.start,
            period_end=period.end,
            charges=charges,
            status=BillStatus.PENDING.value,
            due_date=due_date_for(period, due_days),
            created=created,
            status_history=[StatusChange(status=BillStatus.PENDING.value, changed=created)],
        )
        self.ledger.record(bill)
        self._link_voided(bill)

        log.info(
            "Generated bill %s for lot %s (%s): $%s due %s",
            bill.id,
            lot.id,
            period,
            bill.total_amount,
            bill.due_date,
        )
        log_bill(log, bill)
        return bill, skipped

    def _link_voided(self, bill: UtilityBill) -> None:
        """Point voided bills for the same lot and period at the bill that replaced them."""
        for old in self.ledger.bills_for_lot(bill.lot_id):
            if (
                old.voided
                and old.superseded_by is None
                and old.period_start == bill.period_start
                and old.period_end == bill.period_end
            ):
                old.superseded_by = bill.id
                self.ledger.update(old)

    def supersede_bill(self, bill_id: str) -> UtilityBill:
        """Void a bill so its period can be regenerated. The voided bill stays in the ledger for audit."""
        bill = self.ledger.get(bill_id)
        if not bill.active:
            raise InvalidBillTransitionError("Bill %s is already voided." % bill_id)
        if bill.bill_status == BillStatus.PAID:
            raise InvalidBillTransitionError("Bill %s is paid and cannot be voided." % bill_id)

        bill.voided = True
        self.ledger.update(bill)
        log.info("Voided bill %s for lot %s (%s).", bill.id, bill.lot_id, bill.period)
        return bill

    def _transition(self, bill_id: str, new_status: BillStatus, when: Optional[datetime]) -> UtilityBill:
        bill = self.ledger.get(bill_id)
        status.transition(bill, new_status, when or self.clock())
        self.ledger.update(bill)
        log.info("Bill %s for lot %s is now %s.", bill.id, bill.lot_id, bill.status)
        return bill

    def mark_sent(self, bill_id: str, when: Optional[datetime] = None) -> UtilityBill:
        return self._transition(bill_id, BillStatus.SENT, when)

    def mark_paid(self, bill_id: str, when: Optional[datetime] = None) -> UtilityBill:
        return self._transition(bill_id, BillStatus.PAID, when)

    def mark_overdue(self, bill_id: str, as_of: date) -> UtilityBill:
        bill = self.ledger.get(bill_id)
        if not status.is_past_due(bill, as_of):
            raise InvalidBillTransitionError(
                "Bill %s is due %s; it is not overdue on %s." % (bill_id, bill.due_date, as_of)
            )
        return self._transition(bill_id, BillStatus.OVERDUE, None)

    def overdue_bills(self, as_of: date) -> List[UtilityBill]:
        """Active bills past their due date that have been neither paid nor marked overdue."""
        return [
            bill
            for bill in self.ledger.all_bills()
            if bill.active
            and bill.bill_status in (BillStatus.PENDING, BillStatus.SENT)
            and status.is_past_due(bill, as_of)
        ]
