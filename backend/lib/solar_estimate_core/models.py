# backend/lib/solar_estimate_core/models.py
from dataclasses import dataclass
from enum import Enum


class InputKind(str, Enum):
    BILL = "bill"
    UNITS = "units"


@dataclass(frozen=True)
class EstimateInput:
    kind: InputKind
    value: float

    @classmethod
    def bill(cls, amount) -> "EstimateInput":
        return cls(InputKind.BILL, amount)

    @classmethod
    def units(cls, units) -> "EstimateInput":
        return cls(InputKind.UNITS, units)


@dataclass(frozen=True)
class EstimateResult:
    monthly_units: float          # kWh / month
    monthly_bill_estimate: float  # currency / month
    system_size_kw: float
    estimated_cost: float
    monthly_savings: float
    payback_years: float
