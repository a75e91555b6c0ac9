"""Utility bill status transitions

    PENDING -> SENT -> PAID
       |         |
       +---------+--> OVERDUE -> PAID

A bill normally moves to SENT when the notification collaborator dispatches it and to PAID when
the payment collaborator confirms it. A bill still PENDING on its due date goes straight to
OVERDUE. PAID is terminal, and voided bills take no further transitions.
"""
from datetime import date, datetime
from typing import Dict, FrozenSet, Optional

from mhpbilling.common.exceptions import InvalidBillTransitionError
from mhpbilling.common.typing import BillStatus, utcnow
from mhpbilling.model import StatusChange, UtilityBill

ALLOWED_TRANSITIONS: Dict[BillStatus, FrozenSet[BillStatus]] = {
    BillStatus.PENDING: frozenset([BillStatus.SENT, BillStatus.OVERDUE]),
    BillStatus.SENT: frozenset([BillStatus.PAID, BillStatus.OVERDUE]),
    BillStatus.OVERDUE: frozenset([BillStatus.PAID]),
    BillStatus.PAID: frozenset(),
}


def can_transition(current: BillStatus, new: BillStatus) -> bool:
    return new in ALLOWED_TRANSITIONS[current]


def transition(bill: UtilityBill, new_status, when: Optional[datetime] = None) -> UtilityBill:
    """Move the bill to new_status in place, recording the change in its status history."""
    new = BillStatus(new_status)
    current = bill.bill_status

    if not bill.active:
        raise InvalidBillTransitionError(
            "Bill %s is voided; it cannot move from %s to %s." % (bill.id, current.value, new.value)
        )
    if not can_transition(current, new):
        raise InvalidBillTransitionError(
            "Bill %s cannot move from %s to %s." % (bill.id, current.value, new.value)
        )

    bill.status = new.value
    bill.status_history.append(StatusChange(status=new.value, changed=when or utcnow()))
    return bill


def is_past_due(bill: UtilityBill, as_of: date) -> bool:
    return bill.due_date is not None and as_of > bill.due_date
