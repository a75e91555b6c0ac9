import logging
from typing import List

from .core import UtilityBill, UtilityCharge

log = logging.getLogger(__name__)


def log_charge(logger, charge: UtilityCharge, indent: int = 0) -> None:
    """Helper function for logging basic information about a UtilityCharge"""
    indent_str = "\t" * indent
    logger.debug("{0}Utility={1},Method={2},Usage={3},Rate={4},Amt=${5}".format(
        indent_str,
        charge.utility_type,
        charge.method,
        charge.usage,
        charge.rate,
        charge.amount))
    for line in charge.breakdown:
        logger.debug("{0}\t{1}: {2} @ {3} = ${4}".format(
            indent_str,
            line.label,
            line.quantity,
            line.rate,
            line.amount))


def log_bill(logger, bill: UtilityBill, indent: int = 0) -> None:
    """Helper function for logging a UtilityBill and its charges"""
    indent_str = "\t" * indent
    logger.debug("{0}Bill={1},Lot={2},Start='{3}',End='{4}',Due='{5}',Status={6},Total=${7}".format(
        indent_str,
        bill.id,
        bill.lot_id,
        bill.period_start,
        bill.period_end,
        bill.due_date,
        bill.status,
        bill.total_amount))
    for charge in bill.charges:
        log_charge(logger, charge, indent + 1)


def show_bill_summary(bills: List[UtilityBill], title=None):
    """Save our results to the log for easy reference."""

    if title:
        log.info("=" * 80)
        log.info(title)
        log.info("=" * 80)

    fields = ("Lot", "Start", "End", "Due", "Total", "Status")
    fmt = "%-12s  %-10s  %-10s  %-10s  %-10s  %-10s"
    log.info(fmt % fields)
    for b in bills:
        log.info(fmt % (b.lot_id, b.period_start, b.period_end, b.due_date, b.total_amount, b.status))
    log.info("=" * 80)
