"""Utility Bill

This module covers the table that records issued utility bills. Charges are stored as the json
documents the engine produced; the bill total is never stored and is recomputed from them.
"""
from decimal import Decimal

import sqlalchemy as sa
from sqlalchemy import JSON
from sqlalchemy.sql import func

from mhpbilling.common.typing import BillStatus, utcnow
from mhpbilling.model import StatusChange, UtilityBill, UtilityCharge
from mhpbilling.orm import ModelMixin, Base


class UtilityBillRecord(ModelMixin, Base):
    __tablename__ = "utility_bill"

    oid = sa.Column(sa.Integer, primary_key=True, autoincrement=True)
    bill_id = sa.Column(sa.Unicode, nullable=False, unique=True)
    lot = sa.Column(sa.Unicode, nullable=False, index=True)
    park = sa.Column(sa.Unicode)
    # The billing period, inclusive
    initial = sa.Column(sa.Date, nullable=False)
    closing = sa.Column(sa.Date, nullable=False)
    status = sa.Column(
        sa.Enum(*BillStatus.values(), name="utility_bill_status"),
        nullable=False,
        default=BillStatus.PENDING.value,
    )
    due = sa.Column(sa.Date)
    charges = sa.Column(JSON)
    status_history = sa.Column(JSON)
    # Date added to the db
    created = sa.Column(sa.DateTime, default=func.now())
    modified = sa.Column(sa.DateTime)
    voided = sa.Column(sa.Boolean, nullable=False, default=False)
    # If the bill has been voided and regenerated, the bill_id of its replacement.
    superseded_by = sa.Column(sa.Unicode, nullable=True)

    @property
    def cost(self) -> Decimal:
        return sum((Decimal(c["amount"]) for c in self.charges or []), Decimal("0.00"))

    @classmethod
    def from_bill(cls, bill: UtilityBill) -> "UtilityBillRecord":
        data = bill.to_json()
        return UtilityBillRecord(
            bill_id=bill.id,
            lot=bill.lot_id,
            park=bill.park_id,
            initial=bill.period_start,
            closing=bill.period_end,
            status=bill.status,
            due=bill.due_date,
            charges=data["charges"],
            status_history=data["status_history"],
            created=bill.created or utcnow(),
            modified=utcnow(),
            voided=bill.voided,
            superseded_by=bill.superseded_by,
        )

    def apply(self, bill: UtilityBill) -> None:
        """Copy the mutable parts of a bill (status and supersede state) onto this record.

        Charges and the billing period are fixed once a bill is issued.
        """
        self.status = bill.status
        self.status_history = bill.to_json()["status_history"]
        self.voided = bill.voided
        self.superseded_by = bill.superseded_by
        self.modified = utcnow()

    def to_bill(self) -> UtilityBill:
        attrs = self.attributes()
        return UtilityBill(
            id=attrs["bill_id"],
            lot_id=attrs["lot"],
            park_id=attrs["park"],
            period_start=attrs["initial"],
            period_end=attrs["closing"],
            charges=[UtilityCharge(c) for c in attrs["charges"] or []],
            status=attrs["status"],
            due_date=attrs["due"],
            created=attrs["created"],
            status_history=[StatusChange(h) for h in attrs["status_history"] or []],
            voided=bool(attrs["voided"]),
            superseded_by=attrs["superseded_by"],
        )
