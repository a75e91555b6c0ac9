"""Base class for charge calculators

A charge calculator turns one utility's usage inputs and rate table into a UtilityCharge. The set
of billing methods is closed, so the assembler picks a calculator from a fixed mapping keyed by
the rate table's method rather than discovering them dynamically. Expressing the shared contract
as an abstract class mainly serves a documentation purpose.

Calculators are pure: they read already-fetched inputs, perform no I/O, and keep no state.
"""
from abc import ABC, abstractmethod
from typing import Any

from mhpbilling.common.exceptions import ConfigurationError
from mhpbilling.common.typing import BillingMethod
from mhpbilling.model import RateTable, UtilityCharge


class ChargeCalculator(ABC):
    """Base class for the per-method charge calculators"""

    method: BillingMethod

    # The NamedTuple type from mhpbilling.common.typing this calculator accepts
    inputs_type: type

    def check_inputs(self, usage_inputs: Any, rate_table: RateTable) -> None:
        if rate_table.method != self.method.value:
            raise ConfigurationError(
                "%s calculator cannot price a %s rate table." % (self.method.value, rate_table.method)
            )
        if not isinstance(usage_inputs, self.inputs_type):
            raise TypeError(
                "%s calculator expects %s, got %s"
                % (self.method.value, self.inputs_type.__name__, type(usage_inputs).__name__)
            )

    @abstractmethod
    def compute_charge(self, usage_inputs: Any, rate_table: RateTable) -> UtilityCharge:
        """Price one utility for one lot.

        Arguments:
            usage_inputs: The method-specific inputs (DirectMeterInputs, RubsInputs, FlatFeeInputs)
            rate_table: The rate table resolved for the lot's park and the utility

        Returns:
            A UtilityCharge whose amount is rounded to cents
        """
        pass
