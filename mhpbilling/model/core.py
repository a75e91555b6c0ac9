"""Core billing data model

The classes defined in this module describe the records that cross the billing engine's boundary:
rate tables, meter readings, lots and parks flow in from the configuration, metering and
property-management collaborators; utility charges and utility bills flow out to the notification
and payment collaborators.

Field names are snake_case versions of the names those collaborators use (e.g. "period_start").
Enumerated fields hold the value of the matching enum in mhpbilling.common.typing
(e.g. UtilityType.WATER.value == "WATER"); collection fields are plural (e.g. "tiers", "charges").

The jsonobject library is used to define these types (https://github.com/dimagi/jsonobject).
This is a lightweight "ORM-like" system, where, conceptually, the backing store is a json
document. That lets a whole billing cycle (park, lots, readings, rate tables) be expressed as one
json document and deserialized straight into this data model, which is how the test fixtures and
the command line tool feed the engine.

Money and usage are Decimals. When loading json by hand, pass parse_float=Decimal (or write the
numbers as strings) so that rates like 0.03 are not routed through binary floats.
"""

from collections import OrderedDict
from decimal import Decimal
from typing import Any, Dict, List, Optional

# pylint: disable=E0611
from jsonobject import (
    JsonObject,
    DecimalProperty,
    StringProperty,
    DateProperty,
    DateTimeProperty,
    IntegerProperty,
    ListProperty,
    BooleanProperty,
    ObjectProperty,
)

from mhpbilling.common.exceptions import ConfigurationError
from mhpbilling.common.typing import (
    AllocationBasis,
    BillingMethod,
    BillingPeriod,
    BillStatus,
    TierBasis,
    UtilityType,
)


class Tier(JsonObject):
    """One band of a tiered rate schedule.

    Usage from min_usage up to max_usage is priced at rate. A tier without max_usage is unbounded.
    """
    min_usage = DecimalProperty(required=True)
    max_usage = DecimalProperty()
    rate = DecimalProperty(required=True)

    @property
    def unbounded(self) -> bool:
        return self.max_usage is None

    def label(self) -> str:
        if self.unbounded:
            return "%s+" % self.min_usage
        return "%s-%s" % (self.min_usage, self.max_usage)


class RateTable(JsonObject):
    """How one utility type is priced for one park, from effective_date onward.

    Rate tables are immutable versions: a rate change is a new RateTable with a later
    effective_date, never an edit to an existing one.
    """
    park_id = StringProperty(required=True)

    utility_type = StringProperty(required=True, choices=UtilityType.values())

    method = StringProperty(required=True, choices=BillingMethod.values())

    # The tiered schedule; DIRECT_METER only
    tiers = ListProperty(Tier)

    # Reference rate, shown on DIRECT_METER charges when there is no usage
    base_rate = DecimalProperty()

    # The fixed charge per lot per period; FLAT_FEE only
    flat_amount = DecimalProperty()

    # How shared cost is split between lots; RUBS only, EQUAL_SPLIT when not given
    allocation_basis = StringProperty(choices=AllocationBasis.values())

    # First day on which this version applies. A table without one applies from the beginning of time.
    effective_date = DateProperty()

    # Whether tiers are laid over the meter register or over the period usage; DIRECT_METER only
    tier_basis = StringProperty(choices=TierBasis.values(), default=TierBasis.REGISTER.value)

    @property
    def billing_method(self) -> BillingMethod:
        return BillingMethod(self.method)

    def ordered_tiers(self) -> List[Tier]:
        return sorted(self.tiers, key=lambda t: t.min_usage)

    def check_configuration(self) -> None:
        """Raise ConfigurationError unless the table is internally consistent.

        DIRECT_METER tables carry tiers and no flat amount, FLAT_FEE tables carry a flat amount and
        no tiers, and RUBS tables carry neither. Tiers start at 0 and are contiguous; only the
        last one may be unbounded.
        """
        where = "%s %s rate table for park %s" % (self.method, self.utility_type, self.park_id)
        method = self.billing_method

        if method == BillingMethod.DIRECT_METER:
            if not self.tiers:
                raise ConfigurationError("%s has no tiers." % where)
            if self.flat_amount is not None:
                raise ConfigurationError("%s must not set a flat amount." % where)
        elif method == BillingMethod.FLAT_FEE:
            if self.flat_amount is None:
                raise ConfigurationError("%s has no flat amount." % where)
            if self.tiers:
                raise ConfigurationError("%s must not define tiers." % where)
            if self.flat_amount < 0:
                raise ConfigurationError("%s has a negative flat amount." % where)
        else:
            if self.tiers or self.flat_amount is not None:
                raise ConfigurationError(
                    "%s allocates park cost and takes neither tiers nor a flat amount." % where
                )

        expected_min = Decimal(0)
        ordered = self.ordered_tiers()
        for idx, tier in enumerate(ordered):
            if tier.rate < 0:
                raise ConfigurationError("%s has a negative rate in tier %s." % (where, tier.label()))
            if tier.min_usage != expected_min:
                raise ConfigurationError(
                    "%s tiers are not contiguous: expected a tier starting at %s, found %s."
                    % (where, expected_min, tier.label())
                )
            if tier.unbounded:
                if idx != len(ordered) - 1:
                    raise ConfigurationError("%s has an unbounded tier before the last tier." % where)
                break
            if tier.max_usage <= tier.min_usage:
                raise ConfigurationError("%s has an empty tier %s." % (where, tier.label()))
            expected_min = tier.max_usage


class MeterReading(JsonObject):
    """An observation of a meter register, from manual entry, photo capture, or an IoT feed.

    Readings are never edited. A correction is a new reading naming the one it supersedes; the
    superseded reading stays on file for audit.
    """
    reading_id = StringProperty()

    meter_id = StringProperty(required=True)

    utility_type = StringProperty(choices=UtilityType.values())

    # The register value; non-decreasing over the meter's life unless a reset is recorded
    value = DecimalProperty(required=True)

    timestamp = DateTimeProperty(required=True)

    # The reading_id of an earlier reading this one corrects
    supersedes = StringProperty()

    # The meter was replaced or reset at this reading, and the register counts up from zero again
    reset = BooleanProperty(default=False)


class LotMeter(JsonObject):
    """Which meter measures a lot's consumption of a utility."""
    meter_id = StringProperty(required=True)
    utility_type = StringProperty(required=True, choices=UtilityType.values())


class Lot(JsonObject):
    """A billable pad/site within a park.

    Lots are archived rather than deleted; bills keep referring to them by id.
    """
    id = StringProperty(required=True)

    park_id = StringProperty(required=True)

    occupants = IntegerProperty(default=0)

    square_footage = DecimalProperty()

    # The active tenant, if any
    tenant_id = StringProperty()

    archived = BooleanProperty(default=False)

    meters = ListProperty(LotMeter)

    def meter_for(self, utility_type: str) -> Optional[str]:
        for meter in self.meters:
            if meter.utility_type == utility_type:
                return meter.meter_id
        return None


class Park(JsonObject):
    id = StringProperty(required=True)

    name = StringProperty()

    # The utility types billed to lots in this park, in the order charges appear on a bill
    utility_types = ListProperty(StringProperty)

    # Days after the end of a billing period until payment is due; the configured default if absent
    due_days = IntegerProperty()


class ParkUtilityUsage(JsonObject):
    """The master-metered usage and cost of one utility for a whole park over a billing period."""
    utility_type = StringProperty(required=True, choices=UtilityType.values())
    period_start = DateProperty(required=True)
    period_end = DateProperty(required=True)
    total_usage = DecimalProperty(required=True)
    total_cost = DecimalProperty(required=True)


class ChargeLine(JsonObject):
    """One line of a charge's explanation (a tier, an allocation share, a flat fee)."""
    label = StringProperty()
    quantity = DecimalProperty()
    rate = DecimalProperty()
    amount = DecimalProperty()


class UtilityCharge(JsonObject):
    """One utility's line item on a bill."""
    utility_type = StringProperty(required=True, choices=UtilityType.values())

    method = StringProperty(required=True, choices=BillingMethod.values())

    # The metered or allocated usage; None when usage doesn't apply (flat fees)
    usage = DecimalProperty()

    # The effective rate (metered), reference rate, or allocation factor (RUBS)
    rate = DecimalProperty()

    # The charge in dollars, rounded to cents
    amount = DecimalProperty(required=True)

    # Method-specific explanation of the amount
    breakdown = ListProperty(ChargeLine)


class StatusChange(JsonObject):
    status = StringProperty(required=True, choices=BillStatus.values())
    changed = DateTimeProperty()


class UtilityBill(JsonObject):
    """The utility charges for one lot over one billing period.

    total_amount is always the sum of the charges. It is computed on every read and never stored,
    so it cannot drift from the line items.
    """
    id = StringProperty(required=True)

    lot_id = StringProperty(required=True)

    park_id = StringProperty()

    # The billing period, inclusive of both endpoints
    period_start = DateProperty(required=True)
    period_end = DateProperty(required=True)

    charges = ListProperty(UtilityCharge)

    status = StringProperty(choices=BillStatus.values(), default=BillStatus.PENDING.value)

    due_date = DateProperty()

    created = DateTimeProperty()

    status_history = ListProperty(StatusChange)

    # A voided bill stays on file for audit but no longer blocks regenerating its period
    voided = BooleanProperty(default=False)

    # The id of the bill regenerated in place of this voided one
    superseded_by = StringProperty()

    @property
    def total_amount(self) -> Decimal:
        return sum((c.amount for c in self.charges), Decimal("0.00"))

    @property
    def period(self) -> BillingPeriod:
        return BillingPeriod(self.period_start, self.period_end)

    @property
    def bill_status(self) -> BillStatus:
        return BillStatus(self.status)

    @property
    def active(self) -> bool:
        return not self.voided

    def charge_for(self, utility_type: str) -> Optional[UtilityCharge]:
        for charge in self.charges:
            if charge.utility_type == utility_type:
                return charge
        return None


class BillingSnapshot(JsonObject):
    """Everything the engine needs to bill one park for one period, as fetched by the orchestrator."""
    park = ObjectProperty(Park)
    lots = ListProperty(Lot)
    rate_tables = ListProperty(RateTable)
    readings = ListProperty(MeterReading)
    park_usage = ListProperty(ParkUtilityUsage)


# These helpers keep callers from reaching for serialization routines on the models directly


def bill_to_json(bill: UtilityBill) -> Dict:
    """Serialize a bill, including its computed total."""
    data = bill.to_json()
    data["total_amount"] = str(bill.total_amount)
    return data


def json_to_bill(json_dict: Dict) -> UtilityBill:
    """Deserialize a bill; a serialized total is ignored and recomputed from the charges."""
    data = {k: v for k, v in json_dict.items() if k != "total_amount"}
    return UtilityBill(data)


def json_to_snapshot(json_dict: Dict) -> BillingSnapshot:
    return BillingSnapshot(json_dict)

def order_json(json_elem: Any) -> Any:
    """Order a json document for human readers.

    Within each object, "id" comes first, then the other scalar fields by name, then nested
    objects, then lists. Lists keep their order.
    """
    if isinstance(json_elem, list):
        return [order_json(e) for e in json_elem]
    if not isinstance(json_elem, dict):
        return json_elem

    def rank(field):
        value = json_elem[field]
        if field == "id":
            return (0, field)
        if isinstance(value, list):
            return (3, field)
        if isinstance(value, dict):
            return (2, field)
        return (1, field)

    return OrderedDict((field, order_json(json_elem[field])) for field in sorted(json_elem, key=rank))
