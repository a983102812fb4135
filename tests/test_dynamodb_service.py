from backend.lib.dynamodb_service import DynamoDBReadingStore
from backend.lib.price_plan_core.exceptions import ReadingStoreError
from backend.lib.price_plan_core.models import Reading
from botocore.exceptions import ClientError
from datetime import datetime, timezone
from decimal import Decimal
from unittest.mock import MagicMock
import pytest

T0 = datetime(2025, 11, 3, tzinfo=timezone.utc)


def client_error(code, operation="Query"):
    return ClientError({"Error": {"Code": code, "Message": "boom"}}, operation)


@pytest.fixture
def resource():
    return MagicMock()


@pytest.fixture
def table(resource):
    return resource.Table.return_value


def test_get_readings_follows_pagination(resource, table):
    table.query.side_effect = [
        {"Items": [{"meter_id": "m", "timestamp": "2025-11-03T00:00:00+00:00", "reading": Decimal("0.3")}],
         "LastEvaluatedKey": {"meter_id": "m", "timestamp": "2025-11-03T00:00:00+00:00"}},
        {"Items": [{"meter_id": "m", "timestamp": "2025-11-03T01:00:00+00:00", "reading": Decimal("0.6")}]},
    ]
    store = DynamoDBReadingStore("MeterReadings", resource=resource)

    readings = store.get_readings("m")

    assert readings == [
        Reading(T0, Decimal("0.3")),
        Reading(datetime(2025, 11, 3, 1, tzinfo=timezone.utc), Decimal("0.6")),
    ]
    assert table.query.call_count == 2
    assert "ExclusiveStartKey" in table.query.call_args_list[1].kwargs


def test_unknown_meter_is_none(resource, table):
    table.query.return_value = {"Items": []}
    assert DynamoDBReadingStore(resource=resource).get_readings("nobody") is None


def test_query_failure_is_raised(resource, table):
    table.query.side_effect = client_error("ProvisionedThroughputExceededException")
    with pytest.raises(ReadingStoreError):
        DynamoDBReadingStore(resource=resource).get_readings("m")


def test_store_readings_writes_decimals(resource, table):
    writer = table.batch_writer.return_value.__enter__.return_value
    store = DynamoDBReadingStore(resource=resource)

    count = store.store_readings("m", [Reading(T0, Decimal("0.42"))])

    assert count == 1
    item = writer.put_item.call_args.kwargs["Item"]
    assert item["meter_id"] == "m"
    assert item["timestamp"] == "2025-11-03T00:00:00+00:00"
    assert item["reading"] == Decimal("0.42")


def test_create_table_when_missing(resource, table):
    table.load.side_effect = client_error("ResourceNotFoundException", "DescribeTable")
    store = DynamoDBReadingStore("MeterReadings", resource=resource)

    store.create_table_if_not_exists()

    kwargs = resource.create_table.call_args.kwargs
    assert kwargs["TableName"] == "MeterReadings"
    assert kwargs["BillingMode"] == "PAY_PER_REQUEST"
    resource.create_table.return_value.wait_until_exists.assert_called_once()
    assert store.table is resource.create_table.return_value


def test_existing_table_is_left_alone(resource, table):
    DynamoDBReadingStore(resource=resource).create_table_if_not_exists()
    resource.create_table.assert_not_called()


def test_meter_ids_scans_all_pages(resource, table):
    table.scan.side_effect = [
        {"Items": [{"meter_id": "b"}, {"meter_id": "a"}], "LastEvaluatedKey": {"meter_id": "a"}},
        {"Items": [{"meter_id": "b"}]},
    ]
    assert DynamoDBReadingStore(resource=resource).meter_ids() == ["a", "b"]
