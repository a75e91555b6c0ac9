"""Park-wide billing runs

A billing run bills every billable lot in a park for one period. Each lot is independent: a lot
that fails (meter anomaly, already billed, misconfigured) is logged, reported, and left out, and
the run moves on to the remaining lots. A utility with no rate table is reported per lot and left
off that lot's bill. Nothing is retried here; re-fetching readings or rate tables is the
orchestrator's job.
"""
from concurrent.futures import ThreadPoolExecutor
import logging
from typing import List, Optional, Tuple

from mhpbilling import config
from mhpbilling.billing.assembler import BillAssembler
from mhpbilling.common.exceptions import (
    ConfigurationError,
    DuplicateBillError,
    MeterAnomalyError,
)
from mhpbilling.common.typing import BillingPeriod, LotFailure, Status
from mhpbilling.model import Lot, Park, UtilityBill, show_bill_summary

log = logging.getLogger(__name__)

# Failures local to one lot; anything else is a bug and stops the run.
LOT_ERRORS = (ConfigurationError, MeterAnomalyError, DuplicateBillError)


class BillingRunResult:
    """Container for the bills and per-lot failures of one billing run"""

    def __init__(self, park_id: str, period: BillingPeriod):
        self.park_id = park_id
        self.period = period
        self.bills: List[UtilityBill] = []
        self.failures: List[LotFailure] = []

    @property
    def status(self) -> Status:
        return Status.FAILED if self.failures else Status.SUCCEEDED

    def failure_for(self, lot_id: str) -> Optional[LotFailure]:
        for failure in self.failures:
            if failure.lot_id == lot_id:
                return failure
        return None

    def log_summary(self) -> None:
        show_bill_summary(self.bills, title="Park %s: %s" % (self.park_id, self.period))
        for failure in self.failures:
            log.info("%-12s  %-24s  %s", failure.lot_id, failure.error, failure.message)
        log.info(
            "%d bills generated, %d lots excluded (%s)",
            len(self.bills),
            len(self.failures),
            self.status.name,
        )


def bill_lot(
    assembler: BillAssembler, lot: Lot, period: BillingPeriod, park: Park
) -> Tuple[Optional[UtilityBill], List[LotFailure]]:
    """Bill one lot, returning its bill (if any) and the failures to report for it.

    A lot billed without some utility still gets its bill, with the skipped utility reported as a
    failure next to it.
    """
    try:
        return assembler.assemble(lot, period, park)
    except LOT_ERRORS as exc:
        log.error(
            "Lot %s excluded from the %s billing run: %s: %s",
            lot.id,
            period,
            type(exc).__name__,
            exc,
        )
        return None, [LotFailure(lot_id=lot.id, error=type(exc).__name__, message=str(exc))]


def run_billing_cycle(
    park: Park,
    period: BillingPeriod,
    assembler: BillAssembler,
    max_workers: Optional[int] = None,
) -> BillingRunResult:
    """Bill every non-archived lot in the park for the period.

    With max_workers > 1 lots are billed on a thread pool; this needs a ledger that is safe to
    record into from several threads, and falls back to one lot at a time otherwise.
    """
    lots = assembler.usage_source.billable_lots(park.id)
    workers = max_workers or config.BILLING_WORKERS
    if workers > 1 and not assembler.ledger.thread_safe:
        log.warning(
            "%s cannot be shared between threads; billing lots one at a time.",
            type(assembler.ledger).__name__,
        )
        workers = 1

    log.info("Billing %d lots in park %s for %s", len(lots), park.id, period)
    if workers > 1:
        with ThreadPoolExecutor(max_workers=workers) as pool:
            outcomes = list(pool.map(lambda lot: bill_lot(assembler, lot, period, park), lots))
    else:
        outcomes = [bill_lot(assembler, lot, period, park) for lot in lots]

    result = BillingRunResult(park.id, period)
    for bill, failures in outcomes:
        if bill is not None:
            result.bills.append(bill)
        result.failures.extend(failures)

    result.log_summary()
    return result
