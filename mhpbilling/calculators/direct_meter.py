import logging
from decimal import Decimal
from typing import List, Sequence

from mhpbilling.calculators.base import ChargeCalculator
from mhpbilling.common.exceptions import MeterAnomalyError
from mhpbilling.common.typing import BillingMethod, DirectMeterInputs, TierBasis, quantize_money
from mhpbilling.model import ChargeLine, RateTable, Tier, UtilityCharge

log = logging.getLogger(__name__)


def metered_usage(usage_inputs: DirectMeterInputs) -> Decimal:
    """The usage between two reads of the same meter.

    A meter that went backwards is an anomaly unless the metering collaborator flagged a reset,
    in which case the register restarted from zero and the current reading is the usage.
    """
    previous = Decimal(usage_inputs.previous_reading)
    current = Decimal(usage_inputs.current_reading)

    if previous < 0 or current < 0:
        raise MeterAnomalyError(
            "Meter readings must be non-negative: previous=%s, current=%s" % (previous, current)
        )

    if usage_inputs.reset:
        return current

    usage = current - previous
    if usage < 0:
        raise MeterAnomalyError(
            "Meter reading decreased from %s to %s without a recorded reset." % (previous, current)
        )
    return usage


def tier_window_start(usage_inputs: DirectMeterInputs, rate_table: RateTable) -> Decimal:
    """Where the period's usage begins on the tier schedule.

    REGISTER tiers price the register values the meter moved through, so a period starts at the
    previous reading (or at zero after a reset). USAGE tiers price each period from zero.
    """
    basis = TierBasis(rate_table.tier_basis or TierBasis.REGISTER.value)
    if basis == TierBasis.USAGE or usage_inputs.reset:
        return Decimal(0)
    return Decimal(usage_inputs.previous_reading)


def consume_tiers(usage: Decimal, tiers: Sequence[Tier], start: Decimal = Decimal(0)) -> List[ChargeLine]:
    """Split usage across tiers, given in min_usage order as RateTable.ordered_tiers() returns them.

    The usage occupies [start, start + usage] on the schedule and each tier takes the part of that
    window inside its own range. Usage beyond a bounded last tier is billed at the last tier's
    rate on its own "overflow" line; it is never dropped.
    """
    lower = start
    upper = start + usage

    lines = []
    for tier in tiers:
        bottom = max(lower, tier.min_usage)
        top = upper if tier.unbounded else min(upper, tier.max_usage)
        if top <= bottom:
            continue
        units = top - bottom
        lines.append(
            ChargeLine(label=tier.label(), quantity=units, rate=tier.rate, amount=units * tier.rate)
        )

    last = tiers[-1]
    if not last.unbounded and upper > max(lower, last.max_usage):
        overflow = upper - max(lower, last.max_usage)
        log.warning(
            "Usage exceeds the configured tiers by %s units; charging the overflow at the last tier rate %s.",
            overflow,
            last.rate,
        )
        lines.append(
            ChargeLine(
                label="overflow above %s" % last.max_usage,
                quantity=overflow,
                rate=last.rate,
                amount=overflow * last.rate,
            )
        )

    return lines


def rate_at(position: Decimal, tiers: Sequence[Tier]) -> Decimal:
    """The rate of the tier covering a point on the schedule; tiers in min_usage order."""
    for tier in tiers:
        if tier.unbounded or position < tier.max_usage:
            return tier.rate
    return tiers[-1].rate


class DirectMeterCalculator(ChargeCalculator):
    """Price a lot's own metered usage against a tiered rate schedule."""

    method = BillingMethod.DIRECT_METER
    inputs_type = DirectMeterInputs

    def compute_charge(self, usage_inputs: DirectMeterInputs, rate_table: RateTable) -> UtilityCharge:
        rate_table.check_configuration()
        self.check_inputs(usage_inputs, rate_table)

        tiers = rate_table.ordered_tiers()
        usage = metered_usage(usage_inputs)
        start = tier_window_start(usage_inputs, rate_table)
        lines = consume_tiers(usage, tiers, start)
        exact = sum((line.amount for line in lines), Decimal(0))

        if usage > 0:
            rate = exact / usage
        elif rate_table.base_rate is not None:
            rate = rate_table.base_rate
        else:
            rate = rate_at(start, tiers)

        return UtilityCharge(
            utility_type=rate_table.utility_type,
            method=self.method.value,
            usage=usage,
            rate=rate,
            amount=quantize_money(exact),
            breakdown=lines,
        )
