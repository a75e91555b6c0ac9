"""This module captures exception types that arise while billing a single lot.

Every one of them is local to one lot's calculation; a park-wide billing run catches them per lot,
reports them, and moves on to the next lot.
"""


class BillingError(Exception):
    pass


class ConfigurationError(BillingError):
    """No applicable rate table, an allocation basis that sums to zero, or an invalid setup."""
    pass


class MeterAnomalyError(BillingError):
    """A meter went backwards without a recorded reset. Needs manual review."""
    pass


class MissingMeterReadingError(MeterAnomalyError):
    pass


class DuplicateBillError(BillingError):
    """A bill already exists for this lot and billing period."""
    pass


class InvalidBillTransitionError(BillingError):
    pass


class BillNotFoundError(BillingError):
    pass


class InvalidBillingPeriodError(BillingError, ValueError):
    pass
