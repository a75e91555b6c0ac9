"""Ratio Utility Billing System (RUBS) allocation

When a utility is only metered at the park level, its cost is shared out between the lots in
proportion to an allocation basis: an equal split, the number of occupants, or square footage.
A lot's allocation factor is its share of the basis over the sum across every lot eligible for
allocation, so for a fixed period and basis the factors of all lots sum to 1.
"""
from collections import OrderedDict
import logging
from decimal import Decimal
from typing import Dict, Sequence

from mhpbilling import config
from mhpbilling.calculators.base import ChargeCalculator
from mhpbilling.common.exceptions import ConfigurationError
from mhpbilling.common.typing import AllocationBasis, BillingMethod, RubsInputs, quantize_money
from mhpbilling.model import ChargeLine, Lot, RateTable, UtilityCharge

log = logging.getLogger(__name__)


def basis_weight(lot: Lot, basis: AllocationBasis) -> Decimal:
    """The lot's share of the basis before normalization."""
    if basis == AllocationBasis.EQUAL_SPLIT:
        return Decimal(1)

    if basis == AllocationBasis.OCCUPANCY:
        occupants = lot.occupants or 0
        if occupants < 0:
            raise ConfigurationError("Lot %s has a negative occupant count: %s" % (lot.id, occupants))
        return Decimal(occupants)

    if lot.square_footage is None:
        raise ConfigurationError(
            "Lot %s has no square footage; it cannot be allocated by square footage." % lot.id
        )
    if lot.square_footage <= 0:
        raise ConfigurationError(
            "Lot %s has a non-positive square footage: %s" % (lot.id, lot.square_footage)
        )
    return Decimal(lot.square_footage)


def allocation_factors(all_lots: Sequence[Lot], basis: AllocationBasis) -> Dict[str, Decimal]:
    """Return every lot's allocation factor, keyed by lot id, in the order given.

    Raises ConfigurationError if there are no lots, a lot appears twice, or the basis sums to
    zero (e.g. OCCUPANCY in a park with no recorded occupants). Choosing a fallback basis in that
    case is the operator's decision, not the calculator's.
    """
    basis = AllocationBasis(basis)
    if not all_lots:
        raise ConfigurationError("There are no lots to allocate between.")

    weights = OrderedDict()
    for lot in all_lots:
        if lot.id in weights:
            raise ConfigurationError("Lot %s appears more than once in the allocation set." % lot.id)
        weights[lot.id] = basis_weight(lot, basis)

    denominator = sum(weights.values(), Decimal(0))
    if denominator == 0:
        raise ConfigurationError(
            "Cannot allocate by %s: the total across %d lots is zero." % (basis.value, len(weights))
        )

    factors = OrderedDict((lot_id, weight / denominator) for lot_id, weight in weights.items())

    drift = abs(sum(factors.values(), Decimal(0)) - 1)
    if drift > config.RUBS_TOLERANCE:
        log.warning("%s allocation factors drift from 1 by %s", basis.value, drift)

    return factors


class RubsCalculator(ChargeCalculator):
    """Allocate a share of the park's master-metered cost and usage to one lot."""

    method = BillingMethod.RUBS
    inputs_type = RubsInputs

    def compute_charge(self, usage_inputs: RubsInputs, rate_table: RateTable) -> UtilityCharge:
        self.check_inputs(usage_inputs, rate_table)

        basis = AllocationBasis(
            usage_inputs.allocation_basis
            or rate_table.allocation_basis
            or AllocationBasis.EQUAL_SPLIT.value
        )
        total_usage = Decimal(usage_inputs.total_park_usage)
        total_cost = Decimal(usage_inputs.total_park_cost)
        if total_usage < 0 or total_cost < 0:
            raise ConfigurationError(
                "Park totals must be non-negative: usage=%s, cost=%s" % (total_usage, total_cost)
            )

        lot = usage_inputs.lot
        factors = allocation_factors(usage_inputs.all_lots, basis)
        if lot.id not in factors:
            raise ConfigurationError(
                "Lot %s is not among the lots eligible for %s allocation." % (lot.id, rate_table.utility_type)
            )

        factor = factors[lot.id]
        amount = quantize_money(total_cost * factor)
        return UtilityCharge(
            utility_type=rate_table.utility_type,
            method=self.method.value,
            usage=total_usage * factor,
            rate=factor,
            amount=amount,
            breakdown=[
                ChargeLine(
                    label="%s share of park cost (%d lots)" % (basis.value, len(factors)),
                    quantity=factor,
                    rate=total_cost,
                    amount=amount,
                )
            ],
        )
