import logging
from datetime import date
from typing import List, Optional

from mhpbilling import db
from mhpbilling.common.exceptions import BillNotFoundError
from mhpbilling.ledger.base import BillLedger
from mhpbilling.model import UtilityBill
from mhpbilling.models import UtilityBillRecord
from mhpbilling.orm import create_schema

log = logging.getLogger(__name__)


class SqlBillLedger(BillLedger):
    """Record bills in the utility_bill table through the process-wide SQLAlchemy session.

    Writes are flushed, not committed; wrap the calling function in db.dbtask to commit.
    """

    def __init__(self, create_tables: bool = True):
        db.init()
        if create_tables:
            create_schema()

    @staticmethod
    def _query():
        return db.session.query(UtilityBillRecord)

    def _record_for(self, bill_id: str) -> UtilityBillRecord:
        record = self._query().filter(UtilityBillRecord.bill_id == bill_id).first()
        if record is None:
            raise BillNotFoundError("No bill with id %s" % bill_id)
        return record

    def find(self, lot_id: str, period_start: date, period_end: date) -> Optional[UtilityBill]:
        record = (
            self._query()
            .filter(UtilityBillRecord.lot == lot_id)
            .filter(UtilityBillRecord.initial == period_start)
            .filter(UtilityBillRecord.closing == period_end)
            .filter(UtilityBillRecord.voided.is_(False))
            .first()
        )
        return record.to_bill() if record else None

    def get(self, bill_id: str) -> UtilityBill:
        return self._record_for(bill_id).to_bill()

    def record(self, bill: UtilityBill) -> None:
        existing = self.find(bill.lot_id, bill.period_start, bill.period_end)
        if existing is not None:
            raise self.duplicate_error(bill.lot_id, bill.period_start, bill.period_end, existing)

        db.session.add(UtilityBillRecord.from_bill(bill))
        db.session.flush()
        log.debug("Recorded bill %s for lot %s (%s - %s).", bill.id, bill.lot_id, bill.period_start, bill.period_end)

    def update(self, bill: UtilityBill) -> None:
        record = self._record_for(bill.id)
        record.apply(bill)
        db.session.add(record)
        db.session.flush()

    def bills_for_lot(self, lot_id: str) -> List[UtilityBill]:
        records = (
            self._query()
            .filter(UtilityBillRecord.lot == lot_id)
            .order_by(UtilityBillRecord.initial.asc(), UtilityBillRecord.closing.asc())
            .all()
        )
        return [r.to_bill() for r in records]

    def all_bills(self) -> List[UtilityBill]:
        return [r.to_bill() for r in self._query().order_by(UtilityBillRecord.oid.asc()).all()]
