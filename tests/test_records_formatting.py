# tests/test_records_formatting.py
from urllib.parse import unquote

import pytest

from backend.lib.solar_estimate_core.errors import InvalidInputError, InvalidRecordError
from backend.lib.solar_estimate_core.estimator import estimate
from backend.lib.solar_estimate_core.form import INVALID_AMOUNT_MESSAGE, parse_estimate_form
from backend.lib.solar_estimate_core.formatting import format_grouped, format_lakh, format_plain_number
from backend.lib.solar_estimate_core.messaging import quote_message, whatsapp_quote_link
from backend.lib.solar_estimate_core.models import EstimateInput, InputKind
from backend.lib.solar_estimate_core.presentation import build_estimate_payload, display_values
from backend.lib.solar_estimate_core.records import CalculationRecord, build_calculation_record


def make_payload(**overrides):
    payload = {
        "billAmount": 2500,
        "monthlyUnits": 357,
        "systemSizeKw": "2.5",
        "estimatedCost": 125000,
        "estimatedSavings": 2275,
        "paybackPeriod": "4.6",
        "location": "Telangana",
    }
    payload.update(overrides)
    return payload


def test_build_record_from_bill():
    record = build_calculation_record(estimate(EstimateInput.bill(2500)), "Telangana")
    assert record.to_dict() == make_payload()


def test_build_record_uses_plain_numbers_and_optional_location():
    record = build_calculation_record(estimate(EstimateInput.bill(100)))
    assert record.system_size_kw == "1"
    assert record.payback_period == "4.6"
    assert record.bill_amount == 100
    assert record.monthly_units == 14
    assert record.location is None


def test_build_record_rounds_half_up():
    # 3.5 units -> bill 24.5 -> 25
    record = build_calculation_record(estimate(EstimateInput.units(3.5)))
    assert record.bill_amount == 25
    assert record.monthly_units == 4


def test_from_payload_round_trip():
    record = CalculationRecord.from_payload(make_payload(location="  Andhra Pradesh "))
    assert record.location == "Andhra Pradesh"
    assert record.estimated_cost == 125000


def test_from_payload_blank_location_is_none():
    assert CalculationRecord.from_payload(make_payload(location="   ")).location is None
    payload = make_payload()
    del payload["location"]
    assert CalculationRecord.from_payload(payload).location is None


@pytest.mark.parametrize("overrides", [
    {"billAmount": "2500"},
    {"billAmount": 2500.5},
    {"monthlyUnits": True},
    {"estimatedCost": -1},
    {"estimatedSavings": None},
    {"systemSizeKw": 2.5},
    {"paybackPeriod": ""},
    {"location": 42},
])
def test_from_payload_rejects_bad_fields(overrides):
    with pytest.raises(InvalidRecordError):
        CalculationRecord.from_payload(make_payload(**overrides))


def test_from_payload_rejects_non_object():
    with pytest.raises(InvalidRecordError):
        CalculationRecord.from_payload(None)


def test_format_plain_number():
    assert format_plain_number(3.0) == "3"
    assert format_plain_number(2.5) == "2.5"
    assert format_plain_number(4.6) == "4.6"
    assert format_plain_number(10) == "10"


def test_format_grouped_indian():
    assert format_grouped(100) == "100"
    assert format_grouped(2275.0) == "2,275"
    assert format_grouped(100000) == "1,00,000"
    assert format_grouped(125000.0) == "1,25,000"
    assert format_grouped(12345678) == "1,23,45,678"
    assert format_grouped(1234.5678) == "1,234.568"


def test_format_grouped_international():
    assert format_grouped(125000.0, "en-US") == "125,000"
    assert format_grouped(1234567, "en-US") == "1,234,567"
    assert format_grouped(-2500.25, "en-US") == "-2,500.25"


def test_format_grouped_unknown_locale():
    with pytest.raises(ValueError):
        format_grouped(100, "fr-FR")


def test_format_lakh():
    assert format_lakh(125000) == "1.25"
    assert format_lakh(50000) == "0.50"
    assert format_lakh(500000) == "5.00"


def test_whatsapp_link():
    result = estimate(EstimateInput.bill(2500))
    link = whatsapp_quote_link(result)
    assert link.startswith(
        "https://wa.me/919182897309?text=Hi%20AK%20Solar!%20I'm%20interested%20in%20a%202.5kW%20Solar%20System."
    )
    assert "%E2%82%B91%2C25%2C000" in link
    assert unquote(link.split("text=", 1)[1]) == quote_message(result)
    assert quote_message(result) == (
        "Hi AK Solar! I'm interested in a 2.5kW Solar System. "
        "Estimated cost: ₹1,25,000. Please send me a formal quote."
    )


def test_whatsapp_link_custom_destination():
    result = estimate(EstimateInput.units(1300))
    link = whatsapp_quote_link(result, phone_number="911234567890", locale="en-US")
    assert link.startswith("https://wa.me/911234567890?text=")
    assert "10kW" in unquote(link)
    assert "₹500,000" in unquote(link)


def test_parse_estimate_form():
    assert parse_estimate_form("bill", "2500") == EstimateInput(InputKind.BILL, 2500.0)
    assert parse_estimate_form("Units", " 350 ") == EstimateInput(InputKind.UNITS, 350.0)
    assert parse_estimate_form(None, 100).kind is InputKind.BILL


@pytest.mark.parametrize("value", ["", "abc", "0.5", 0, -10, None, "nan", "inf", True])
def test_parse_estimate_form_rejects_amount(value):
    with pytest.raises(InvalidInputError) as excinfo:
        parse_estimate_form("bill", value)
    assert str(excinfo.value) == INVALID_AMOUNT_MESSAGE


def test_parse_estimate_form_rejects_input_type():
    with pytest.raises(InvalidInputError):
        parse_estimate_form("solar", 100)


def test_estimate_payload():
    result = estimate(EstimateInput.bill(2500))
    record = build_calculation_record(result, "Telangana")
    payload = build_estimate_payload(result, record, "https://wa.me/x")
    assert payload["systemSizeKw"] == 2.5
    assert payload["paybackPeriod"] == 4.6
    assert payload["record"]["billAmount"] == 2500
    assert payload["whatsappLink"] == "https://wa.me/x"
    assert payload["display"] == display_values(result)
    assert payload["display"]["estimatedCost"] == "1,25,000"
    assert payload["display"]["estimatedCostLakh"] == "1.25"
    assert payload["display"]["monthlyUnits"] == "357"


def test_record_and_display_for_very_large_bill():
    result = estimate(EstimateInput.bill(1e40))
    record = build_calculation_record(result)
    assert record.bill_amount == int(1e40)
    assert display_values(result)["estimatedCost"].count(",") > 10
