from mhpbilling.calculators.base import ChargeCalculator
from mhpbilling.common.exceptions import ConfigurationError
from mhpbilling.common.typing import BillingMethod, FlatFeeInputs, quantize_money
from mhpbilling.model import ChargeLine, RateTable, UtilityCharge


class FlatFeeCalculator(ChargeCalculator):
    """A fixed amount per lot per period, whatever the meter says."""

    method = BillingMethod.FLAT_FEE
    inputs_type = FlatFeeInputs

    def compute_charge(self, usage_inputs: FlatFeeInputs, rate_table: RateTable) -> UtilityCharge:
        self.check_inputs(usage_inputs, rate_table)
        if rate_table.flat_amount is None or rate_table.flat_amount < 0:
            raise ConfigurationError(
                "%s flat fee for park %s needs a non-negative flat amount."
                % (rate_table.utility_type, rate_table.park_id)
            )

        amount = quantize_money(rate_table.flat_amount)
        return UtilityCharge(
            utility_type=rate_table.utility_type,
            method=self.method.value,
            usage=None,
            rate=None,
            amount=amount,
            breakdown=[ChargeLine(label="flat fee", amount=amount)],
        )
