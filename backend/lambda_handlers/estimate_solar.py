# backend/lambda_handlers/estimate_solar.py
"""
Lambda function to estimate a rooftop solar system
Triggered by API Gateway
"""
import json
import logging
import os

from backend.lib.solar_estimate_core.errors import InvalidInputError
from backend.lib.solar_estimate_core.estimator import estimate
from backend.lib.solar_estimate_core.form import parse_estimate_form
from backend.lib.solar_estimate_core.messaging import WHATSAPP_NUMBER, whatsapp_quote_link
from backend.lib.solar_estimate_core.presentation import build_estimate_payload
from backend.lib.solar_estimate_core.records import build_calculation_record

logger = logging.getLogger(__name__)
logger.setLevel(logging.INFO)

DEFAULT_LOCATION = os.getenv('DEFAULT_LOCATION', 'Telangana')
PHONE_NUMBER = os.getenv('WHATSAPP_NUMBER', WHATSAPP_NUMBER)
NUMBER_LOCALE = os.getenv('NUMBER_LOCALE', 'en-IN')


def lambda_handler(event, context):
    """
    Estimate system size, cost, savings and payback.

    Query parameters:
    - value: Required, monthly bill (INR) or monthly units (kWh)
    - input_type: 'bill' or 'units' (default: 'bill')
    - location: State name (default: Telangana)
    """
    params = (event or {}).get('queryStringParameters') or {}
    location = (params.get('location') or DEFAULT_LOCATION).strip()

    try:
        estimate_input = parse_estimate_form(params.get('input_type'), params.get('value'))
        result = estimate(estimate_input)
    except InvalidInputError as e:
        return response(400, {'error': str(e)})

    record = build_calculation_record(result, location)
    link = whatsapp_quote_link(result, phone_number=PHONE_NUMBER, locale=NUMBER_LOCALE)
    logger.info("Estimated %s kW for %s input %s",
                record.system_size_kw, estimate_input.kind.value, estimate_input.value)

    return response(200, build_estimate_payload(result, record, link, NUMBER_LOCALE))


def response(status_code: int, body: dict) -> dict:
    """Create API Gateway response."""
    return {
        'statusCode': status_code,
        'headers': {
            'Content-Type': 'application/json',
            'Access-Control-Allow-Origin': '*',
            'Access-Control-Allow-Methods': 'GET,OPTIONS',
            'Access-Control-Allow-Headers': 'Content-Type'
        },
        'body': json.dumps(body, ensure_ascii=False)
    }
