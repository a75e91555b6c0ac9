from mhpbilling.common.exceptions import (
    BillingError,
    ConfigurationError,
    DuplicateBillError,
    InvalidBillTransitionError,
    InvalidBillingPeriodError,
    MeterAnomalyError,
    MissingMeterReadingError,
)
from mhpbilling.common.typing import (
    AllocationBasis,
    BillingMethod,
    BillingPeriod,
    BillStatus,
    TierBasis,
    UtilityType,
    monthly_period,
    monthly_periods,
)

__all__ = [
    "AllocationBasis",
    "BillingError",
    "BillingMethod",
    "BillingPeriod",
    "BillStatus",
    "ConfigurationError",
    "DuplicateBillError",
    "InvalidBillTransitionError",
    "InvalidBillingPeriodError",
    "MeterAnomalyError",
    "MissingMeterReadingError",
    "TierBasis",
    "UtilityType",
    "monthly_period",
    "monthly_periods",
]
