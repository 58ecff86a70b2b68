# backend/lambda_handlers/save_calculation.py
"""
Lambda function to archive one solar estimate in DynamoDB.

Invoked asynchronously ('Event') by the web app with the record as the
event, or through API Gateway with the record as a JSON body.
"""
import json
import logging

from backend.lib.dynamodb_service import DynamoDBService
from backend.lib.solar_estimate_core.errors import InvalidRecordError, PersistenceFailure
from backend.lib.solar_estimate_core.records import CalculationRecord

logger = logging.getLogger(__name__)
logger.setLevel(logging.INFO)

_service = None


def get_service() -> DynamoDBService:
    """One DynamoDBService per warm container."""
    global _service
    if _service is None:
        _service = DynamoDBService()
    return _service


def extract_record_payload(event):
    """Direct invocations carry the record itself; API Gateway wraps it in 'body'."""
    if isinstance(event, dict) and 'body' in event:
        body = event['body'] or '{}'
        return json.loads(body) if isinstance(body, str) else body
    return event


def lambda_handler(event, context):
    """
    Validate the calculation record and store it.

    Returns 201 with the new calculationId, 400 for an invalid record
    and 500 when DynamoDB rejects the write.
    """
    try:
        record = CalculationRecord.from_payload(extract_record_payload(event))
    except (InvalidRecordError, json.JSONDecodeError) as e:
        logger.warning("Rejected calculation record: %s", e)
        return response(400, {'error': str(e)})

    try:
        calculation_id = get_service().put_calculation(record)
    except PersistenceFailure as e:
        logger.error("Error storing calculation: %s", e)
        return response(500, {'error': str(e)})

    logger.info("Stored calculation %s (%s kW, %s)",
                calculation_id, record.system_size_kw, record.location)
    return response(201, {'calculationId': calculation_id})


def response(status_code: int, body: dict) -> dict:
    """Create API Gateway response."""
    return {
        'statusCode': status_code,
        'headers': {
            'Content-Type': 'application/json',
            'Access-Control-Allow-Origin': '*',
            'Access-Control-Allow-Methods': 'POST,OPTIONS',
            'Access-Control-Allow-Headers': 'Content-Type'
        },
        'body': json.dumps(body)
    }
