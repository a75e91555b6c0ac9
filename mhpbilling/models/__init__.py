from mhpbilling.models.bill import UtilityBillRecord

__all__ = ["UtilityBillRecord"]
