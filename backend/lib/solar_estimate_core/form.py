# backend/lib/solar_estimate_core/form.py
import math

from .errors import InvalidInputError
from .models import EstimateInput, InputKind

MIN_FORM_VALUE = 1
INVALID_AMOUNT_MESSAGE = "Please enter a valid amount"


def coerce_number(raw) -> float:
    """
    Read a submitted form value as a number.

    Accepts ints, floats and numeric strings ("2500", " 350.5 ").
    Anything else becomes NaN so the range check rejects it.
    """
    if isinstance(raw, bool) or raw is None:
        return math.nan
    if isinstance(raw, (int, float)):
        return float(raw)
    if isinstance(raw, str):
        try:
            return float(raw.strip())
        except ValueError:
            return math.nan
    return math.nan


def parse_estimate_form(input_type, raw_value) -> EstimateInput:
    """
    Turn the estimator form fields into an EstimateInput.

    input_type: "bill" or "units" (defaults to "bill" when empty)
    raw_value: the amount typed by the visitor, must be at least 1
    """
    try:
        kind = InputKind((input_type or InputKind.BILL.value).strip().lower())
    except (AttributeError, ValueError):
        raise InvalidInputError("inputType must be 'bill' or 'units'") from None

    value = coerce_number(raw_value)
    if not math.isfinite(value) or value < MIN_FORM_VALUE:
        raise InvalidInputError(INVALID_AMOUNT_MESSAGE)
    return EstimateInput(kind, value)
