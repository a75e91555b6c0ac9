"""A simple script for billing every lot in a park from a json billing snapshot.

The snapshot is a BillingSnapshot document (see mhpbilling.model.core): the park, its lots,
rate tables, meter readings and park-level usage totals. Bills are written as json (or csv) to
stdout or --outfile.

Exit status is 0 when every lot was billed, 1 when some lots were excluded, and 2 when the
snapshot itself can't be used.
"""

import argparse
import csv
import json
import logging
import sys
from datetime import datetime
from decimal import Decimal

from jsonobject.exceptions import BadValueError

from mhpbilling import config, db
from mhpbilling.billing import BillAssembler, SnapshotUsageSource, run_billing_cycle
from mhpbilling.common.exceptions import ConfigurationError, InvalidBillingPeriodError
from mhpbilling.common.typing import BillingPeriod, Status, monthly_period
from mhpbilling.ledger import MemoryBillLedger, SqlBillLedger
from mhpbilling.model import bill_to_json, json_to_snapshot, order_json
from mhpbilling.rates import RateTableResolver

log = logging.getLogger("mhpbilling.scripts.run_billing")

EXIT_CONFIGURATION_ERROR = 2


def load_snapshot(path):
    with open(path) as f:
        json_dict = json.load(f, parse_float=Decimal)
    return json_to_snapshot(json_dict)


def billing_period(args) -> BillingPeriod:
    if args.month:
        return monthly_period(args.month.year, args.month.month)
    if not (args.start and args.end):
        raise InvalidBillingPeriodError("Give either --month, or both --start and --end.")
    return BillingPeriod(args.start, args.end)


def write_result(args, result):
    outstream = sys.stdout
    opened_file = False
    if args.outfile:
        outstream = open(args.outfile, "w")
        opened_file = True

    try:
        if args.csv:
            writer = csv.writer(outstream)
            writer.writerow(["lot", "start", "end", "due", "total", "status", "error"])
            for bill in result.bills:
                writer.writerow(
                    [bill.lot_id, bill.period_start, bill.period_end, bill.due_date, bill.total_amount, bill.status, ""]
                )
            for failure in result.failures:
                writer.writerow([failure.lot_id, result.period.start, result.period.end, "", "", "", failure.error])
        else:
            json_data = {
                "park_id": result.park_id,
                "period_start": result.period.start.isoformat(),
                "period_end": result.period.end.isoformat(),
                "status": result.status.name,
                "bills": [bill_to_json(b) for b in result.bills],
                "failures": [dict(f._asdict()) for f in result.failures],
            }
            outstream.write(json.dumps(order_json(json_data), indent=4))
            outstream.write("\n")
    finally:
        if opened_file and outstream:
            outstream.close()


def process_snapshot(args) -> int:
    snapshot = load_snapshot(args.path)
    period = billing_period(args)
    resolver = RateTableResolver.from_tables(snapshot.rate_tables)

    if args.ledger == "sql":
        ledger = SqlBillLedger()
    else:
        ledger = MemoryBillLedger()

    assembler = BillAssembler(resolver, SnapshotUsageSource(snapshot), ledger)
    result = run_billing_cycle(snapshot.park, period, assembler, max_workers=args.workers)
    write_result(args, result)
    return result.status.value


@db.dbtask(application_name="mhpbilling.run_billing")
def process_snapshot_with_db(args) -> int:
    return process_snapshot(args)


def valid_date(s):
    try:
        return datetime.strptime(s, "%Y-%m-%d").date()
    except ValueError:
        msg = "Not a valid date: '{0}'.".format(s)
        raise argparse.ArgumentTypeError(msg)


def valid_month(s):
    try:
        return datetime.strptime(s, "%Y-%m").date()
    except ValueError:
        msg = "Not a valid month: '{0}'. Use YYYY-MM.".format(s)
        raise argparse.ArgumentTypeError(msg)


def make_parser():
    parser = argparse.ArgumentParser(description="Generate utility bills for every lot in a park.")
    parser.add_argument("path", help="Path to a json-serialized billing snapshot")
    parser.add_argument("--month", type=valid_month, help="Bill this calendar month (YYYY-MM)")
    parser.add_argument("--start", type=valid_date, help="First day of the billing period (YYYY-MM-DD)")
    parser.add_argument("--end", type=valid_date, help="Last day of the billing period (YYYY-MM-DD)")
    parser.add_argument("--csv", action="store_true")
    parser.add_argument("--outfile")
    parser.add_argument("--workers", type=int, default=config.BILLING_WORKERS)
    parser.add_argument("--ledger", choices=["memory", "sql"], default="memory")
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser


def main(argv=None) -> int:
    args = make_parser().parse_args(argv)

    if args.verbose:
        logging.getLogger("mhpbilling").setLevel(level=logging.DEBUG)

    if args.ledger == "sql" and config.UNDER_TEST:
        log.warning(
            "MHPBILLING_UNDER_TEST is set, so bills recorded in the sql ledger will not be committed. "
            "Set MHPBILLING_UNDER_TEST=False to keep them."
        )

    try:
        if args.ledger == "sql":
            status = process_snapshot_with_db(args)
        else:
            status = process_snapshot(args)
    # ValueError covers malformed json; BadValueError a document that doesn't fit the model.
    except (ConfigurationError, InvalidBillingPeriodError, BadValueError, ValueError, OSError) as exc:
        log.error("Cannot bill %s: %s", args.path, exc)
        return EXIT_CONFIGURATION_ERROR

    return status


if __name__ == "__main__":
    sys.exit(main())
