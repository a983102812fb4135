"""
=============================================================================
DYNAMODB READING STORE - Amazon DynamoDB backed smart meter readings
=============================================================================

Drop-in replacement for the in-memory MeterReadingStore: the cost
aggregator only needs get_readings(meter_id), and this class answers it
from a DynamoDB table instead of process memory.

Our Table Schema:
-----------------
Table: MeterReadings
- meter_id (String)  - Partition Key - Groups readings by smart meter
- timestamp (String) - Sort Key      - ISO-8601, orders readings in time
- reading (Number)   - The consumption sample (stored as Decimal)
- created_at (String) - When the record was inserted

Example Item:
{
    "meter_id": "smart-meter-0",
    "timestamp": "2025-11-01T00:00:00+00:00",
    "reading": 0.34,
    "created_at": "2025-11-28T10:30:00+00:00"
}

Note: two readings for the same meter and timestamp share a primary key,
so storing the second one overwrites the first.
=============================================================================
"""

import logging
from datetime import datetime, timezone
from typing import Iterable, List, Optional

# boto3 - AWS SDK for Python
import boto3
from boto3.dynamodb.conditions import Key

# ClientError - Exception class for AWS API errors
from botocore.exceptions import ClientError

from backend.lib.price_plan_core.exceptions import ReadingStoreError
from backend.lib.price_plan_core.io import parse_timestamp
from backend.lib.price_plan_core.models import Reading

logger = logging.getLogger(__name__)


class DynamoDBReadingStore:
    """
    Reading store on top of a DynamoDB table.

    Usage:
        store = DynamoDBReadingStore(table_name="MeterReadings")
        store.create_table_if_not_exists()
        store.store_readings("smart-meter-0", readings)
        store.get_readings("smart-meter-0")
    """

    def __init__(self, table_name: str = "MeterReadings", region: str = "us-east-1",
                 resource=None):
        """
        Args:
            table_name: DynamoDB table holding the readings
            region: AWS region; credentials come from the usual boto3 chain
                    (environment variables, ~/.aws, instance role)
            resource: an existing boto3 DynamoDB resource (used by tests)
        """
        self.table_name = table_name
        self.region = region

        # Resource (high-level interface): Table objects, batch_writer, query
        self.dynamodb = resource or boto3.resource('dynamodb', region_name=region)
        self.table = self.dynamodb.Table(self.table_name)

    def create_table_if_not_exists(self) -> None:
        """
        Create the table on first start. Billing is PAY_PER_REQUEST so there
        is no capacity to plan.
        """
        try:
            # load() raises ResourceNotFoundException if the table is missing
            self.table.load()
            logger.info("DynamoDB table '%s' exists", self.table_name)
            return
        except ClientError as e:
            if e.response['Error']['Code'] != 'ResourceNotFoundException':
                logger.error("Error checking table %s: %s", self.table_name, e)
                raise ReadingStoreError(f"Cannot describe table {self.table_name}") from e

        try:
            table = self.dynamodb.create_table(
                TableName=self.table_name,
                KeySchema=[
                    {'AttributeName': 'meter_id', 'KeyType': 'HASH'},    # Partition key
                    {'AttributeName': 'timestamp', 'KeyType': 'RANGE'},  # Sort key
                ],
                AttributeDefinitions=[
                    {'AttributeName': 'meter_id', 'AttributeType': 'S'},
                    {'AttributeName': 'timestamp', 'AttributeType': 'S'},
                ],
                BillingMode='PAY_PER_REQUEST'
            )
            # Wait for table to be fully created; this can take a few seconds
            table.wait_until_exists()
            self.table = table
            logger.info("Created DynamoDB table '%s'", self.table_name)
        except ClientError as e:
            logger.error("Failed to create table %s: %s", self.table_name, e)
            raise ReadingStoreError(f"Cannot create table {self.table_name}") from e

    def store_readings(self, meter_id: str, readings: Iterable[Reading]) -> int:
        """
        Write readings with the table's batch_writer, which groups puts into
        batch_write_item calls of up to 25 items and retries unprocessed ones.

        Returns:
            int: number of readings written
        """
        readings = list(readings)
        created_at = datetime.now(timezone.utc).isoformat()
        try:
            with self.table.batch_writer() as writer:
                for r in readings:
                    writer.put_item(Item={
                        'meter_id': meter_id,
                        'timestamp': r.timestamp.isoformat(),
                        # DynamoDB numbers are Decimal already; no float round trip
                        'reading': r.value,
                        'created_at': created_at,
                    })
        except ClientError as e:
            logger.error("Batch write for %s failed: %s", meter_id, e)
            raise ReadingStoreError(f"Cannot store readings for {meter_id}") from e

        logger.info("Stored %d readings for %s in %s", len(readings), meter_id, self.table_name)
        return len(readings)

    def get_readings(self, meter_id: str) -> Optional[List[Reading]]:
        """
        All readings for one meter, oldest first (sort key order).

        A meter with no items is unknown, so this returns None rather than
        an empty list. Query results are paginated at 1MB; every page is read.
        """
        items = []
        kwargs = {'KeyConditionExpression': Key('meter_id').eq(meter_id)}
        try:
            while True:
                response = self.table.query(**kwargs)
                items.extend(response.get('Items', []))
                if 'LastEvaluatedKey' not in response:
                    break
                kwargs['ExclusiveStartKey'] = response['LastEvaluatedKey']
        except ClientError as e:
            logger.error("Failed to query readings for %s: %s", meter_id, e)
            raise ReadingStoreError(f"Cannot read readings for {meter_id}") from e

        if not items:
            return None
        return [Reading(timestamp=parse_timestamp(item['timestamp']), value=item['reading'])
                for item in items]

    def meter_ids(self) -> List[str]:
        """
        Unique meter ids in the table. Uses Scan, which reads the whole
        table: fine for the demo endpoints, expensive on a big table.
        """
        meters = set()
        kwargs = {'ProjectionExpression': 'meter_id'}
        try:
            while True:
                response = self.table.scan(**kwargs)
                meters.update(item['meter_id'] for item in response.get('Items', []))
                if 'LastEvaluatedKey' not in response:
                    break
                kwargs['ExclusiveStartKey'] = response['LastEvaluatedKey']
        except ClientError as e:
            logger.error("Failed to scan meters: %s", e)
            raise ReadingStoreError("Cannot list meters") from e
        return sorted(meters)
