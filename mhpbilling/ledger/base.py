"""Base class for bill ledgers

A BillLedger is the engine's view of the bills it has already issued. The assembler consults it
to refuse regenerating a billed period, and status changes and supersede actions are persisted
through it. Storage belongs to the surrounding application; the two implementations here (in
memory and SQLAlchemy) cover tests, the command line tool, and simple deployments.
"""
from abc import ABC, abstractmethod
from datetime import date
from typing import List, Optional

from mhpbilling.common.exceptions import DuplicateBillError
from mhpbilling.model import UtilityBill


class BillLedger(ABC):
    """Base class for stores of issued utility bills"""

    # May bills for several lots be recorded from different threads at once?
    thread_safe = False

    @abstractmethod
    def find(self, lot_id: str, period_start: date, period_end: date) -> Optional[UtilityBill]:
        """Return the active (not voided) bill for exactly this lot and period, if any."""
        pass

    @abstractmethod
    def get(self, bill_id: str) -> UtilityBill:
        """Return the bill with this id. Raises BillNotFoundError if there is none."""
        pass

    @abstractmethod
    def record(self, bill: UtilityBill) -> None:
        """Store a newly generated bill.

        Raises DuplicateBillError if an active bill already covers the same lot and period.
        """
        pass

    @abstractmethod
    def update(self, bill: UtilityBill) -> None:
        """Persist a status change or supersede action on an existing bill."""
        pass

    @abstractmethod
    def bills_for_lot(self, lot_id: str) -> List[UtilityBill]:
        """Every bill for the lot, voided ones included, oldest period first."""
        pass

    @abstractmethod
    def all_bills(self) -> List[UtilityBill]:
        pass

    @staticmethod
    def duplicate_error(lot_id: str, period_start: date, period_end: date, existing: UtilityBill) -> DuplicateBillError:
        return DuplicateBillError(
            "Lot %s is already billed for %s - %s (bill %s, %s). Void the existing bill before "
            "regenerating the period."
            % (lot_id, period_start, period_end, existing.id, existing.status)
        )
