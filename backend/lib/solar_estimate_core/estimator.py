# backend/lib/solar_estimate_core/estimator.py
import math
from decimal import Decimal, ROUND_HALF_UP, localcontext
from numbers import Real

from .errors import InvalidInputError
from .models import EstimateInput, EstimateResult, InputKind

TARIFF = 7                # currency units per kWh
GENERATION_PER_KW = 130   # kWh generated per kW per month
COST_PER_KW = 50000       # installed cost per kW
MIN_SYSTEM_SIZE_KW = 1.0
SYSTEM_SIZE_STEP_KW = 0.5


def round_half_up(value: float, places: int = 0) -> float:
    """
    Round a float to `places` decimals, halves going up.

    Uses the exact binary value of `value`, the way JavaScript's
    Math.round / toFixed do, instead of Python's banker's rounding.
    """
    exponent = Decimal(1).scaleb(-places)
    # a float carries up to 309 integer digits; the default 28-digit context is too small
    with localcontext() as ctx:
        ctx.prec = 400
        return float(Decimal(value).quantize(exponent, rounding=ROUND_HALF_UP))


def round_to_half_kw(raw_kw: float) -> float:
    """
    Round a required system size to the nearest 0.5 kW (halves up),
    never going below the 1.0 kW minimum system.
    """
    steps = round_half_up(raw_kw / SYSTEM_SIZE_STEP_KW)
    return max(steps * SYSTEM_SIZE_STEP_KW, MIN_SYSTEM_SIZE_KW)


def _check_positive(value) -> float:
    if value is None:
        raise InvalidInputError("a bill amount or unit consumption is required")
    if isinstance(value, bool) or not isinstance(value, Real):
        raise InvalidInputError(f"expected a number, got {value!r}")
    value = float(value)
    if not math.isfinite(value):
        raise InvalidInputError(f"value must be finite, got {value}")
    if value <= 0:
        raise InvalidInputError(f"value must be greater than zero, got {value}")
    return value


class SolarEstimator:
    def __init__(self, tariff: float = TARIFF,
                 generation_per_kw: float = GENERATION_PER_KW,
                 cost_per_kw: float = COST_PER_KW):
        """
        tariff: flat rate in currency units per kWh (e.g., INR/kWh)
        generation_per_kw: monthly kWh one installed kW produces
        cost_per_kw: installed cost of one kW
        """
        self.tariff = float(tariff)
        self.generation_per_kw = float(generation_per_kw)
        self.cost_per_kw = float(cost_per_kw)

    def estimate(self, estimate_input: EstimateInput) -> EstimateResult:
        try:
            kind = InputKind(estimate_input.kind)
        except ValueError:
            raise InvalidInputError(f"unknown input kind {estimate_input.kind!r}") from None
        value = _check_positive(estimate_input.value)

        if kind is InputKind.BILL:
            bill = value
            units = value / self.tariff
        else:
            units = value
            bill = value * self.tariff

        system_size_kw = round_to_half_kw(units / self.generation_per_kw)
        estimated_cost = system_size_kw * self.cost_per_kw
        # savings come from what the sized system generates, not from `units`
        monthly_savings = system_size_kw * self.generation_per_kw * self.tariff
        if not all(math.isfinite(v) for v in (bill, estimated_cost, monthly_savings * 12)):
            raise InvalidInputError(f"value is too large to estimate: {value}")
        payback_years = round_half_up(estimated_cost / (monthly_savings * 12), 1)

        return EstimateResult(
            monthly_units=units,
            monthly_bill_estimate=bill,
            system_size_kw=system_size_kw,
            estimated_cost=estimated_cost,
            monthly_savings=monthly_savings,
            payback_years=payback_years,
        )


_default_estimator = SolarEstimator()


def estimate(estimate_input: EstimateInput) -> EstimateResult:
    """Estimate with the standard Telangana / AP assumptions."""
    return _default_estimator.estimate(estimate_input)
