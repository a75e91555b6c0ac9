from typing import Dict

from mhpbilling.common.exceptions import ConfigurationError
from mhpbilling.common.typing import BillingMethod

from .base import ChargeCalculator
from .direct_meter import DirectMeterCalculator, consume_tiers, metered_usage, tier_window_start
from .flat_fee import FlatFeeCalculator
from .rubs import RubsCalculator, allocation_factors

# The billing methods are a closed set; one calculator per method.
CALCULATORS: Dict[BillingMethod, ChargeCalculator] = {
    BillingMethod.DIRECT_METER: DirectMeterCalculator(),
    BillingMethod.RUBS: RubsCalculator(),
    BillingMethod.FLAT_FEE: FlatFeeCalculator(),
}


def calculator_for(method) -> ChargeCalculator:
    try:
        return CALCULATORS[BillingMethod(method)]
    except (KeyError, ValueError):
        raise ConfigurationError("No calculator for billing method %s" % method)


__all__ = [
    "CALCULATORS",
    "ChargeCalculator",
    "DirectMeterCalculator",
    "FlatFeeCalculator",
    "RubsCalculator",
    "allocation_factors",
    "calculator_for",
    "consume_tiers",
    "metered_usage",
    "tier_window_start",
]
