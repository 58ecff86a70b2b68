# backend/lib/solar_estimate_core/presentation.py
from typing import Any, Dict

from .estimator import round_half_up
from .formatting import format_grouped, format_lakh, format_plain_number
from .models import EstimateResult
from .records import CalculationRecord


def result_to_dict(result: EstimateResult) -> Dict[str, Any]:
    return {
        "monthlyUnits": result.monthly_units,
        "monthlyBillEstimate": result.monthly_bill_estimate,
        "systemSizeKw": result.system_size_kw,
        "estimatedCost": result.estimated_cost,
        "monthlySavings": result.monthly_savings,
        "paybackPeriod": result.payback_years,
    }


def display_values(result: EstimateResult, locale: str = "en-IN") -> Dict[str, str]:
    """Strings for the results panel."""
    return {
        "systemSizeKw": format_plain_number(result.system_size_kw),
        "estimatedCost": format_grouped(result.estimated_cost, locale),
        "estimatedCostLakh": format_lakh(result.estimated_cost),
        "monthlySavings": format_grouped(result.monthly_savings, locale),
        "paybackPeriod": format_plain_number(result.payback_years),
        "monthlyUnits": format_grouped(round_half_up(result.monthly_units), locale),
        "monthlyBillEstimate": format_grouped(round_half_up(result.monthly_bill_estimate), locale),
    }


def build_estimate_payload(result: EstimateResult, record: CalculationRecord,
                           quote_link: str, locale: str = "en-IN") -> Dict[str, Any]:
    payload = result_to_dict(result)
    payload["display"] = display_values(result, locale)
    payload["record"] = record.to_dict()
    payload["whatsappLink"] = quote_link
    return payload
