# backend/lib/solar_estimate_core/messaging.py
from urllib.parse import quote

from .formatting import format_grouped, format_plain_number
from .models import EstimateResult

WHATSAPP_NUMBER = "919182897309"
BUSINESS_NAME = "AK Solar"

# characters encodeURIComponent leaves alone besides letters and digits
_URI_COMPONENT_SAFE = "-_.!~*'()"


def quote_message(result: EstimateResult, business_name: str = BUSINESS_NAME,
                  locale: str = "en-IN") -> str:
    return (
        f"Hi {business_name}! I'm interested in a "
        f"{format_plain_number(result.system_size_kw)}kW Solar System. "
        f"Estimated cost: ₹{format_grouped(result.estimated_cost, locale)}. "
        "Please send me a formal quote."
    )


def whatsapp_quote_link(result: EstimateResult, phone_number: str = WHATSAPP_NUMBER,
                        business_name: str = BUSINESS_NAME, locale: str = "en-IN") -> str:
    """
    Build the wa.me link that opens a chat with the business, pre-filled
    with the system size and estimated cost.
    """
    text = quote_message(result, business_name, locale)
    return f"https://wa.me/{phone_number}?text={quote(text, safe=_URI_COMPONENT_SAFE)}"
