from .assembler import BillAssembler
from .run import BillingRunResult, run_billing_cycle
from .usage import SnapshotUsageSource, UsageSource

__all__ = [
    "BillAssembler",
    "BillingRunResult",
    "SnapshotUsageSource",
    "UsageSource",
    "run_billing_cycle",
]
