# backend/lib/solar_estimate_core/records.py
from dataclasses import dataclass
from typing import Any, Dict, Optional

from .errors import InvalidRecordError
from .estimator import round_half_up
from .formatting import format_plain_number
from .models import EstimateResult

INT_FIELDS = ("billAmount", "monthlyUnits", "estimatedCost", "estimatedSavings")
STR_FIELDS = ("systemSizeKw", "paybackPeriod")


@dataclass(frozen=True)
class CalculationRecord:
    """
    The historical record archived for every estimate.

    Whole-currency / whole-kWh integers and display strings, exactly as
    they were shown to the visitor.
    """
    bill_amount: int
    monthly_units: int
    system_size_kw: str
    estimated_cost: int
    estimated_savings: int
    payback_period: str
    location: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "billAmount": self.bill_amount,
            "monthlyUnits": self.monthly_units,
            "systemSizeKw": self.system_size_kw,
            "estimatedCost": self.estimated_cost,
            "estimatedSavings": self.estimated_savings,
            "paybackPeriod": self.payback_period,
            "location": self.location,
        }

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "CalculationRecord":
        """
        Validate a record sent by a client (camelCase keys).

        Raises InvalidRecordError naming the first offending field.
        """
        if not isinstance(payload, dict):
            raise InvalidRecordError("calculation record must be a JSON object")

        for name in INT_FIELDS:
            value = payload.get(name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise InvalidRecordError(f"{name} must be an integer")
            if value < 0:
                raise InvalidRecordError(f"{name} must not be negative")

        for name in STR_FIELDS:
            value = payload.get(name)
            if not isinstance(value, str) or not value.strip():
                raise InvalidRecordError(f"{name} must be a non-empty string")

        location = payload.get("location")
        if location is not None and not isinstance(location, str):
            raise InvalidRecordError("location must be a string")

        return cls(
            bill_amount=payload["billAmount"],
            monthly_units=payload["monthlyUnits"],
            system_size_kw=payload["systemSizeKw"].strip(),
            estimated_cost=payload["estimatedCost"],
            estimated_savings=payload["estimatedSavings"],
            payback_period=payload["paybackPeriod"].strip(),
            location=(location or "").strip() or None,
        )


def build_calculation_record(result: EstimateResult,
                             location: Optional[str] = None) -> CalculationRecord:
    """Round an estimate the way it is displayed, ready for storage."""
    return CalculationRecord(
        bill_amount=int(round_half_up(result.monthly_bill_estimate)),
        monthly_units=int(round_half_up(result.monthly_units)),
        system_size_kw=format_plain_number(result.system_size_kw),
        estimated_cost=int(round_half_up(result.estimated_cost)),
        estimated_savings=int(round_half_up(result.monthly_savings)),
        payback_period=format_plain_number(result.payback_years),
        location=location,
    )
