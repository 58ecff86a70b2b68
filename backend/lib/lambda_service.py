"""
=============================================================================
LAMBDA SERVICE - Hand calculation records to the save Lambda
=============================================================================

When USE_LAMBDA is enabled the web app does not write to DynamoDB itself.
It invokes the `solar-save-calculation` function (see
backend/lambda_handlers/save_calculation.py) with the asynchronous
'Event' invocation type: Lambda queues the event and returns 202
immediately, so the visitor never waits on the archive.

Invocation Types:
   - RequestResponse: Synchronous - wait for result
   - Event: Asynchronous - fire and forget
=============================================================================
"""

import boto3
from botocore.exceptions import BotoCoreError, ClientError

import json
import logging
import os
from typing import Any, Dict, Optional

from backend.lib.solar_estimate_core.errors import PersistenceFailure

logger = logging.getLogger(__name__)


class LambdaService:
    """
    A service class for invoking AWS Lambda functions.

    Usage:
        lambda_svc = LambdaService()
        lambda_svc.invoke_async("solar-save-calculation", record.to_dict())
    """

    def __init__(self):
        self.region = os.getenv('AWS_REGION', 'us-east-1')
        session_token = os.getenv('AWS_SESSION_TOKEN')

        self.lambda_client = boto3.client(
            'lambda',
            region_name=self.region,
            aws_access_key_id=os.getenv('AWS_ACCESS_KEY_ID'),
            aws_secret_access_key=os.getenv('AWS_SECRET_ACCESS_KEY'),
            aws_session_token=session_token if session_token else None
        )

    def invoke_function(self, function_name: str, payload: Dict[str, Any],
                        invocation_type: str = 'RequestResponse') -> Optional[Dict]:
        """
        Invoke a Lambda function.

        Args:
            function_name: Name or ARN of the Lambda function
            payload: Dictionary passed to the handler as `event`
            invocation_type: 'RequestResponse' (wait for result) or 'Event'

        Returns:
            dict: The function's response for RequestResponse, or status
                  info for Event

        Raises:
            PersistenceFailure: if the invocation is rejected or Lambda
                                cannot be reached
        """
        try:
            response = self.lambda_client.invoke(
                FunctionName=function_name,
                InvocationType=invocation_type,
                Payload=json.dumps(payload)
            )
        except (ClientError, BotoCoreError) as e:
            raise PersistenceFailure(f"Failed to invoke Lambda '{function_name}': {e}") from e

        if response.get('FunctionError'):
            raise PersistenceFailure(
                f"Lambda '{function_name}' failed: {response['FunctionError']}"
            )

        if invocation_type == 'RequestResponse':
            # The Payload is a StreamingBody object
            return json.loads(response['Payload'].read().decode('utf-8'))

        return {
            "status": "invoked",
            "StatusCode": response['StatusCode']
        }

    def invoke_async(self, function_name: str, payload: Dict[str, Any]) -> Dict:
        """Fire-and-forget invocation ('Event')."""
        result = self.invoke_function(function_name, payload, invocation_type='Event')
        logger.debug("Queued %s (status %s)", function_name, result["StatusCode"])
        return result
