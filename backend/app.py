"""
=============================================================================
AK SOLAR - LANDING PAGE & ESTIMATOR API (FLASK APPLICATION)
=============================================================================

Backend for the AK Solar Green Energy landing page. It serves the page and
the JSON API the estimator form talks to:

- GET  /                      the landing page (frontend/index.html)
- POST /api/estimate          size a solar system from a bill or units
- POST /api/calculations      archive a calculation record
- GET  /api/calculations      recent archived calculations
- GET  /api/storage/status    which storage sinks are enabled

Every estimate is archived fire-and-forget: the response goes back to the
visitor right away and a background worker writes the record to one of

- Lambda:   the save-calculation function, invoked asynchronously
- DynamoDB: the SolarCalculations table
- a local JSONL file (fallback when no AWS service is enabled)

A failed write is logged and otherwise ignored.

How to run:
    python -m backend.app

Then visit: http://127.0.0.1:5000
=============================================================================
"""

# =============================================================================
# IMPORTS
# =============================================================================

from flask import Flask, request, jsonify, send_from_directory

import json
import logging
import os
import threading
import uuid
from concurrent.futures import Future, ThreadPoolExecutor
from datetime import datetime, timezone
from pathlib import Path

# dotenv - Load environment variables from .env file
from dotenv import load_dotenv

# Must run before any os.getenv below
load_dotenv()

from backend.lib.solar_estimate_core.errors import (
    InvalidInputError,
    InvalidRecordError,
    PersistenceFailure,
)
from backend.lib.solar_estimate_core.estimator import estimate as run_estimate
from backend.lib.solar_estimate_core.form import parse_estimate_form
from backend.lib.solar_estimate_core.messaging import WHATSAPP_NUMBER, whatsapp_quote_link
from backend.lib.solar_estimate_core.presentation import build_estimate_payload
from backend.lib.solar_estimate_core.records import CalculationRecord, build_calculation_record

# =============================================================================
# FLASK APPLICATION INITIALIZATION
# =============================================================================

app = Flask(__name__)

DEFAULT_LOCATION = os.getenv('DEFAULT_LOCATION', 'Telangana')
PHONE_NUMBER = os.getenv('WHATSAPP_NUMBER', WHATSAPP_NUMBER)
NUMBER_LOCALE = os.getenv('NUMBER_LOCALE', 'en-IN')

FRONTEND_DIR = Path(__file__).resolve().parent.parent / "frontend"

# =============================================================================
# AWS SERVICE INITIALIZATION
# =============================================================================
# Each service is switched on by an environment variable. If it fails to
# start we fall back to the next sink instead of refusing to serve the page.

# -----------------------------------------------------------------------------
# DYNAMODB SERVICE - archive table for calculations
# -----------------------------------------------------------------------------
USE_DYNAMODB = os.getenv('USE_DYNAMODB', 'false').lower() == 'true'
dynamodb_service = None

if USE_DYNAMODB:
    try:
        from backend.lib.dynamodb_service import DynamoDBService
        dynamodb_service = DynamoDBService()
        USE_DYNAMODB = dynamodb_service.create_table_if_not_exists()
        if USE_DYNAMODB:
            app.logger.info("DynamoDB storage enabled")
        else:
            app.logger.warning("DynamoDB table unavailable. Using local storage.")
    except Exception as e:
        app.logger.warning("DynamoDB initialization failed: %s. Using local storage.", e)
        USE_DYNAMODB = False

# -----------------------------------------------------------------------------
# LAMBDA SERVICE - asynchronous save-calculation function
# -----------------------------------------------------------------------------
USE_LAMBDA = os.getenv('USE_LAMBDA', 'false').lower() == 'true'
SAVE_CALCULATION_FUNCTION = os.getenv('SAVE_CALCULATION_FUNCTION', 'solar-save-calculation')
lambda_service = None

if USE_LAMBDA:
    try:
        from backend.lib.lambda_service import LambdaService
        lambda_service = LambdaService()
        app.logger.info("Lambda dispatch enabled (%s)", SAVE_CALCULATION_FUNCTION)
    except Exception as e:
        app.logger.warning("Lambda initialization failed: %s.", e)
        USE_LAMBDA = False

# =============================================================================
# LOCAL DATA STORAGE CONFIGURATION
# =============================================================================
# Used when neither Lambda nor DynamoDB is enabled

DATA_DIR = Path(os.getenv('SOLAR_DATA_DIR', 'backend/data'))
DATA_DIR.mkdir(parents=True, exist_ok=True)
CALCULATIONS_FILE = DATA_DIR / "calculations.jsonl"

# Appends from the writer threads must not interleave
_file_lock = threading.Lock()

# Background workers for fire-and-forget archiving
calculation_writer = ThreadPoolExecutor(max_workers=2, thread_name_prefix="calculation-writer")

MAX_LIST_LIMIT = 100

# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def save_calculation(record: CalculationRecord) -> str:
    """
    Write one calculation record to the configured sink.

    Lambda (if enabled) takes precedence, then DynamoDB, then the local
    JSONL file.

    Args:
        record (CalculationRecord): Rounded record built from an estimate

    Returns:
        str: An identifier for the write (calculationId, or "queued" for Lambda)

    Raises:
        PersistenceFailure: When the sink could not accept the record
    """
    # OPTION 1: Hand off to the save Lambda
    if USE_LAMBDA and lambda_service:
        lambda_service.invoke_async(SAVE_CALCULATION_FUNCTION, record.to_dict())
        return "queued"

    # OPTION 2: Write to DynamoDB
    if USE_DYNAMODB and dynamodb_service:
        return dynamodb_service.put_calculation(record)

    # OPTION 3: Append to the local JSONL file
    calculation_id = str(uuid.uuid4())
    line = dict(record.to_dict(),
                calculationId=calculation_id,
                createdAt=datetime.now(timezone.utc).isoformat())
    try:
        with _file_lock, CALCULATIONS_FILE.open("a", encoding="utf-8") as f:
            f.write(json.dumps(line, ensure_ascii=False) + "\n")
    except OSError as e:
        raise PersistenceFailure(f"Failed to write {CALCULATIONS_FILE}: {e}") from e
    return calculation_id


def load_calculations(limit: int = 20) -> list:
    """
    Load the most recent calculations, newest first.

    Reads DynamoDB when enabled, otherwise the local JSONL file.
    Lambda dispatch only writes, so it has no list of its own.
    """
    if USE_DYNAMODB and dynamodb_service:
        return dynamodb_service.list_calculations(limit=limit)

    if not CALCULATIONS_FILE.exists():
        return []

    calculations = []
    with CALCULATIONS_FILE.open("r", encoding="utf-8") as f:
        for number, line in enumerate(f, start=1):
            if not line.strip():
                continue
            try:
                calculations.append(json.loads(line))
            except json.JSONDecodeError:
                app.logger.warning("Skipping malformed line %d in %s", number, CALCULATIONS_FILE)

    calculations.sort(key=lambda c: c.get("createdAt", ""), reverse=True)
    return calculations[:limit]


def log_write_failure(future: Future) -> None:
    """Done-callback for archive writes: failures are logged, never re-raised."""
    if future.cancelled():
        return
    error = future.exception()
    if error is None:
        return
    if isinstance(error, PersistenceFailure):
        app.logger.warning("Failed to save calculation statistic: %s", error)
    else:
        app.logger.error("Unexpected error while saving calculation", exc_info=error)


def dispatch_calculation(record: CalculationRecord) -> Future:
    """Archive a record in the background; the caller does not wait."""
    future = calculation_writer.submit(save_calculation, record)
    future.add_done_callback(log_write_failure)
    return future


def request_data() -> dict:
    """JSON body if there is one, otherwise the submitted form fields."""
    data = request.get_json(silent=True)
    if isinstance(data, dict):
        return data
    return request.form.to_dict()

# =============================================================================
# API ROUTES
# =============================================================================

@app.route("/")
def home():
    """Serve the landing page."""
    return send_from_directory(FRONTEND_DIR, "index.html")


@app.route("/api/estimate", methods=["POST"])
def estimate():
    """
    Size a rooftop solar system for the visitor.

    Request body (JSON or form):
        inputType: 'bill' (monthly bill in INR) or 'units' (monthly kWh)
        value: the amount, at least 1
        location (optional): 'Telangana' (default) or 'Andhra Pradesh'

    Example:
        POST /api/estimate {"inputType": "bill", "value": 2500}

        Response:
        {
            "systemSizeKw": 2.5,
            "estimatedCost": 125000.0,
            "monthlySavings": 2275.0,
            "paybackPeriod": 4.6,
            "monthlyUnits": 357.14...,
            "monthlyBillEstimate": 2500.0,
            "display": {...},
            "record": {...},
            "whatsappLink": "https://wa.me/..."
        }

    HTTP Status Codes:
        200: Estimate computed (archiving happens in the background)
        400: Missing or invalid input
    """
    data = request_data()

    try:
        estimate_input = parse_estimate_form(data.get("inputType"), data.get("value"))
        result = run_estimate(estimate_input)
    except InvalidInputError as e:
        return jsonify({"error": str(e)}), 400

    location = data.get("location")
    location = location.strip() if isinstance(location, str) and location.strip() else DEFAULT_LOCATION

    record = build_calculation_record(result, location)
    dispatch_calculation(record)

    link = whatsapp_quote_link(result, phone_number=PHONE_NUMBER, locale=NUMBER_LOCALE)
    return jsonify(build_estimate_payload(result, record, link, NUMBER_LOCALE))


@app.route("/api/calculations", methods=["POST"])
def create_calculation():
    """
    Archive a calculation record sent by a client.

    Unlike /api/estimate this write is synchronous, so the caller learns
    whether it succeeded.

    HTTP Status Codes:
        201: Stored
        400: Invalid record
        503: Storage unavailable
    """
    try:
        record = CalculationRecord.from_payload(request.get_json(silent=True))
    except InvalidRecordError as e:
        return jsonify({"error": str(e)}), 400

    try:
        calculation_id = save_calculation(record)
    except PersistenceFailure as e:
        app.logger.warning("Failed to save calculation statistic: %s", e)
        return jsonify({"error": "Calculation could not be saved"}), 503

    return jsonify({"calculationId": calculation_id, "record": record.to_dict()}), 201


@app.route("/api/calculations", methods=["GET"])
def list_calculations():
    """
    Recent archived calculations, newest first.

    Query Parameters:
        limit (optional): 1-100, default 20
    """
    try:
        limit = int(request.args.get("limit", 20))
    except ValueError:
        return jsonify({"error": "limit must be an integer"}), 400
    if not 1 <= limit <= MAX_LIST_LIMIT:
        return jsonify({"error": f"limit must be between 1 and {MAX_LIST_LIMIT}"}), 400

    return jsonify({"calculations": load_calculations(limit)})


@app.route("/api/storage/status", methods=["GET"])
def storage_status():
    """Which sinks are active; useful for health checks."""
    return jsonify({
        "lambda_enabled": USE_LAMBDA,
        "save_function": SAVE_CALCULATION_FUNCTION if USE_LAMBDA else None,
        "dynamodb_enabled": USE_DYNAMODB,
        "table_name": dynamodb_service.table_name if (USE_DYNAMODB and dynamodb_service) else None,
        "local_file": None if (USE_LAMBDA or USE_DYNAMODB) else str(CALCULATIONS_FILE),
    })

# =============================================================================
# RUN THE SERVER
# =============================================================================

if __name__ == "__main__":
    logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO"))
    app.run(debug=True)
