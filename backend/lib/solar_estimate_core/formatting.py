# backend/lib/solar_estimate_core/formatting.py
from decimal import Decimal, ROUND_HALF_UP

from .estimator import round_half_up

SUPPORTED_LOCALES = ("en-IN", "en-US")


def format_plain_number(value: float) -> str:
    """
    Shortest text for a number, integral values without a trailing '.0'.

    format_plain_number(3.0) -> '3', format_plain_number(2.5) -> '2.5'
    """
    value = float(value)
    if value.is_integer():
        return str(int(value))
    return repr(value)


def _group_integer_digits(digits: str, locale: str) -> str:
    if locale == "en-IN":
        # lakh / crore grouping: last three digits, then pairs
        if len(digits) <= 3:
            return digits
        head, tail = digits[:-3], digits[-3:]
        pairs = []
        while len(head) > 2:
            pairs.insert(0, head[-2:])
            head = head[:-2]
        if head:
            pairs.insert(0, head)
        return ",".join(pairs + [tail])
    return f"{int(digits):,}"


def format_grouped(value: float, locale: str = "en-IN") -> str:
    """
    Digit-grouped number with at most three fraction digits.

    format_grouped(150000) -> '1,50,000'
    format_grouped(150000, 'en-US') -> '150,000'
    """
    if locale not in SUPPORTED_LOCALES:
        raise ValueError(f"unsupported locale {locale!r}, expected one of {SUPPORTED_LOCALES}")

    rounded = round_half_up(abs(float(value)), 3)
    text = format(Decimal(repr(rounded)), "f")
    integer_part, _, fraction = text.partition(".")
    fraction = fraction.rstrip("0")

    sign = "-" if value < 0 and rounded != 0 else ""
    grouped = _group_integer_digits(integer_part, locale)
    return f"{sign}{grouped}.{fraction}" if fraction else f"{sign}{grouped}"


def format_lakh(value: float) -> str:
    """Amount expressed in lakh (1,00,000) with two decimals: 125000 -> '1.25'."""
    lakh = Decimal(float(value)) / Decimal(100000)
    return str(lakh.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))
