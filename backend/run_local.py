# backend/run_local.py
"""
Print an estimate from the command line:

    python -m backend.run_local bill 2500
    python -m backend.run_local units 350 "Andhra Pradesh"
"""
import json
import logging
import os
import sys

from backend.lib.solar_estimate_core.errors import InvalidInputError
from backend.lib.solar_estimate_core.estimator import estimate
from backend.lib.solar_estimate_core.form import parse_estimate_form
from backend.lib.solar_estimate_core.messaging import whatsapp_quote_link
from backend.lib.solar_estimate_core.presentation import display_values
from backend.lib.solar_estimate_core.records import build_calculation_record

logger = logging.getLogger(__name__)


def main(input_type, value, location="Telangana"):
    try:
        result = estimate(parse_estimate_form(input_type, value))
    except InvalidInputError as e:
        logger.error("Invalid input: %s", e)
        return 1

    shown = display_values(result)
    print(f"System size:     {shown['systemSizeKw']} kW")
    print(f"Estimated cost:  ₹{shown['estimatedCost']} ({shown['estimatedCostLakh']} lakh)")
    print(f"Monthly savings: ₹{shown['monthlySavings']}")
    print(f"Payback period:  {shown['paybackPeriod']} years")
    print(f"Record: {json.dumps(build_calculation_record(result, location).to_dict())}")
    print(f"Quote:  {whatsapp_quote_link(result)}")
    return 0


if __name__ == "__main__":
    logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO"))
    args = sys.argv[1:]
    if len(args) < 2:
        print(__doc__)
        sys.exit(2)
    sys.exit(main(*args[:3]))
