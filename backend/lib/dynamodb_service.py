"""
=============================================================================
DYNAMODB SERVICE - Archive of Solar Estimates in Amazon DynamoDB
=============================================================================

Every estimate a visitor runs on the landing page is stored as one item,
so the business can see which bill sizes and locations its leads come from.

Our Table Schema:
-----------------
Table: SolarCalculations
- calculationId (String) - Partition Key - uuid4 generated on write
- createdAt (String) - ISO timestamp (UTC) of the write
- billAmount, monthlyUnits, estimatedCost, estimatedSavings (Number)
- systemSizeKw, paybackPeriod (String) - exactly as displayed
- location (String) - optional, e.g. "Telangana"

Example Item:
{
    "calculationId": "5d0c1c52-8c1e-4a55-9f0b-2a6f8f5c3f11",
    "createdAt": "2026-10-17T10:30:00+00:00",
    "billAmount": 2500,
    "monthlyUnits": 357,
    "systemSizeKw": "2.5",
    "estimatedCost": 125000,
    "estimatedSavings": 2275,
    "paybackPeriod": "4.6",
    "location": "Telangana"
}

Writes raise PersistenceFailure; the web app treats the archive as
fire-and-forget and only logs those failures.
=============================================================================
"""

# boto3 - AWS SDK for Python
import boto3

# botocore errors - AWS API errors and client-side errors (no credentials, timeouts)
from botocore.exceptions import BotoCoreError, ClientError

import logging
import os
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import Dict, List, Optional

from backend.lib.solar_estimate_core.errors import PersistenceFailure
from backend.lib.solar_estimate_core.records import CalculationRecord

logger = logging.getLogger(__name__)


def _from_dynamodb(item: Dict) -> Dict:
    """DynamoDB hands numbers back as Decimal; turn them into ints for JSON."""
    return {
        key: int(value) if isinstance(value, Decimal) else value
        for key, value in item.items()
    }


class DynamoDBService:
    """
    A service class for archiving solar estimates in Amazon DynamoDB.

    Usage:
        db = DynamoDBService()
        db.create_table_if_not_exists()
        calculation_id = db.put_calculation(record)
        recent = db.list_calculations(limit=20)
    """

    def __init__(self, table_name: str = None):
        """
        Initialize the DynamoDB service.

        Args:
            table_name: Optional custom table name. If not provided,
                       uses DYNAMODB_TABLE_NAME from environment or default.
        """
        self.table_name = table_name or os.getenv('DYNAMODB_TABLE_NAME', 'SolarCalculations')
        self.region = os.getenv('AWS_REGION', 'us-east-1')

        # Session token is only set for temporary (lab / SSO) credentials
        session_token = os.getenv('AWS_SESSION_TOKEN')

        # Resource for Table objects, client for describe_table
        self.dynamodb = boto3.resource(
            'dynamodb',
            region_name=self.region,
            aws_access_key_id=os.getenv('AWS_ACCESS_KEY_ID'),
            aws_secret_access_key=os.getenv('AWS_SECRET_ACCESS_KEY'),
            aws_session_token=session_token if session_token else None
        )
        self.client = boto3.client(
            'dynamodb',
            region_name=self.region,
            aws_access_key_id=os.getenv('AWS_ACCESS_KEY_ID'),
            aws_secret_access_key=os.getenv('AWS_SECRET_ACCESS_KEY'),
            aws_session_token=session_token if session_token else None
        )

        # Table object - set lazily on first access
        self.table = None

    def _get_table(self):
        if not self.table:
            self.table = self.dynamodb.Table(self.table_name)
        return self.table

    def create_table_if_not_exists(self) -> bool:
        """
        Create the calculations table if it doesn't exist.

        Uses on-demand (PAY_PER_REQUEST) billing: a landing page sees
        bursty, low-volume traffic.

        Returns:
            bool: True if table exists or was created successfully
        """
        try:
            self.client.describe_table(TableName=self.table_name)
            self.table = self.dynamodb.Table(self.table_name)
            logger.info("DynamoDB table '%s' exists", self.table_name)
            return True

        except ClientError as e:
            if e.response['Error']['Code'] != 'ResourceNotFoundException':
                logger.error("Error checking table '%s': %s", self.table_name, e)
                return False

        try:
            table = self.dynamodb.create_table(
                TableName=self.table_name,
                KeySchema=[
                    {'AttributeName': 'calculationId', 'KeyType': 'HASH'}
                ],
                AttributeDefinitions=[
                    {'AttributeName': 'calculationId', 'AttributeType': 'S'}
                ],
                BillingMode='PAY_PER_REQUEST'
            )
            # Wait for table to be fully created
            table.wait_until_exists()
            self.table = table
            logger.info("Created DynamoDB table '%s'", self.table_name)
            return True

        except ClientError as create_error:
            logger.error("Failed to create table '%s': %s", self.table_name, create_error)
            return False

    def put_calculation(self, record: CalculationRecord) -> str:
        """
        Store one calculation record.

        Args:
            record: The rounded record built from an estimate

        Returns:
            str: The generated calculationId

        Raises:
            PersistenceFailure: if DynamoDB rejects or cannot be reached
        """
        calculation_id = str(uuid.uuid4())
        item = {
            'calculationId': calculation_id,
            'createdAt': datetime.now(timezone.utc).isoformat(),
        }
        # DynamoDB rejects None attribute values, so a missing location is omitted
        item.update({key: value for key, value in record.to_dict().items() if value is not None})

        try:
            self._get_table().put_item(Item=item)
        except (ClientError, BotoCoreError) as e:
            raise PersistenceFailure(f"Failed to store calculation in '{self.table_name}': {e}") from e

        logger.debug("Stored calculation %s", calculation_id)
        return calculation_id

    def list_calculations(self, limit: Optional[int] = None) -> List[Dict]:
        """
        Get stored calculations, newest first.

        Scan reads the whole table; fine for a lead archive of this size.

        Args:
            limit: Optional maximum number of calculations to return

        Returns:
            list: Calculation dictionaries (empty list on error)
        """
        table = self._get_table()
        try:
            response = table.scan()
            items = list(response.get('Items', []))

            # DynamoDB returns max 1MB of data per scan
            while 'LastEvaluatedKey' in response:
                response = table.scan(ExclusiveStartKey=response['LastEvaluatedKey'])
                items.extend(response.get('Items', []))

        except (ClientError, BotoCoreError) as e:
            logger.error("Failed to list calculations: %s", e)
            return []

        calculations = [_from_dynamodb(item) for item in items]
        calculations.sort(key=lambda c: c.get('createdAt', ''), reverse=True)
        if limit is not None:
            calculations = calculations[:limit]
        return calculations

    def count_calculations(self) -> int:
        """Number of stored calculations (Select=COUNT scan, paginated)."""
        table = self._get_table()
        try:
            response = table.scan(Select='COUNT')
            total = response.get('Count', 0)
            while 'LastEvaluatedKey' in response:
                response = table.scan(Select='COUNT', ExclusiveStartKey=response['LastEvaluatedKey'])
                total += response.get('Count', 0)
            return total
        except (ClientError, BotoCoreError) as e:
            logger.error("Failed to count calculations: %s", e)
            return 0
