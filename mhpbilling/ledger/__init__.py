from .base import BillLedger
from .memory import MemoryBillLedger
from .sql import SqlBillLedger

__all__ = ["BillLedger", "MemoryBillLedger", "SqlBillLedger"]
