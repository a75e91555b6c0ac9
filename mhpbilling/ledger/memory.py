from collections import OrderedDict
import copy
import threading
from datetime import date
from typing import List, Optional

from mhpbilling.common.exceptions import BillNotFoundError
from mhpbilling.ledger.base import BillLedger
from mhpbilling.model import UtilityBill


def _copy(bill: UtilityBill) -> UtilityBill:
    return UtilityBill.wrap(copy.deepcopy(bill.to_json()))


class MemoryBillLedger(BillLedger):
    """Keep bills in a dict. Callers always get copies, so edits only stick through update()."""

    thread_safe = True

    def __init__(self):
        self._bills = OrderedDict()
        self._lock = threading.RLock()

    def find(self, lot_id: str, period_start: date, period_end: date) -> Optional[UtilityBill]:
        with self._lock:
            for bill in self._bills.values():
                if (
                    bill.active
                    and bill.lot_id == lot_id
                    and bill.period_start == period_start
                    and bill.period_end == period_end
                ):
                    return _copy(bill)
        return None

    def get(self, bill_id: str) -> UtilityBill:
        with self._lock:
            if bill_id not in self._bills:
                raise BillNotFoundError("No bill with id %s" % bill_id)
            return _copy(self._bills[bill_id])

    def record(self, bill: UtilityBill) -> None:
        with self._lock:
            existing = self.find(bill.lot_id, bill.period_start, bill.period_end)
            if existing is not None:
                raise self.duplicate_error(bill.lot_id, bill.period_start, bill.period_end, existing)
            self._bills[bill.id] = _copy(bill)

    def update(self, bill: UtilityBill) -> None:
        with self._lock:
            if bill.id not in self._bills:
                raise BillNotFoundError("No bill with id %s" % bill.id)
            self._bills[bill.id] = _copy(bill)

    def bills_for_lot(self, lot_id: str) -> List[UtilityBill]:
        with self._lock:
            bills = [_copy(b) for b in self._bills.values() if b.lot_id == lot_id]
        return sorted(bills, key=lambda b: (b.period_start, b.period_end))

    def all_bills(self) -> List[UtilityBill]:
        with self._lock:
            return [_copy(b) for b in self._bills.values()]
