# tests/test_services.py
import io
import json
from decimal import Decimal
from unittest import mock

import pytest
from botocore.exceptions import ClientError, EndpointConnectionError

from backend.lib.dynamodb_service import DynamoDBService
from backend.lib.lambda_service import LambdaService
from backend.lib.solar_estimate_core.errors import PersistenceFailure
from backend.lib.solar_estimate_core.records import CalculationRecord


def make_record(location="Telangana"):
    return CalculationRecord(
        bill_amount=2500,
        monthly_units=357,
        system_size_kw="2.5",
        estimated_cost=125000,
        estimated_savings=2275,
        payback_period="4.6",
        location=location,
    )


def client_error(code, operation):
    return ClientError({"Error": {"Code": code, "Message": code}}, operation)


@pytest.fixture
def fake_boto3():
    with mock.patch("backend.lib.dynamodb_service.boto3") as boto3_mock:
        yield boto3_mock


@pytest.fixture
def db(fake_boto3):
    return DynamoDBService(table_name="TestCalculations")


def test_put_calculation_writes_item(db):
    calculation_id = db.put_calculation(make_record())

    table = db.dynamodb.Table.return_value
    item = table.put_item.call_args.kwargs["Item"]
    assert item["calculationId"] == calculation_id
    assert item["billAmount"] == 2500
    assert item["systemSizeKw"] == "2.5"
    assert item["location"] == "Telangana"
    assert "createdAt" in item


def test_put_calculation_omits_missing_location(db):
    db.put_calculation(make_record(location=None))
    item = db.dynamodb.Table.return_value.put_item.call_args.kwargs["Item"]
    assert "location" not in item


@pytest.mark.parametrize("error", [
    client_error("ValidationException", "PutItem"),
    EndpointConnectionError(endpoint_url="https://dynamodb.us-east-1.amazonaws.com"),
])
def test_put_calculation_failure_raises_persistence_failure(db, error):
    db.dynamodb.Table.return_value.put_item.side_effect = error
    with pytest.raises(PersistenceFailure):
        db.put_calculation(make_record())


def test_create_table_when_missing(db):
    db.client.describe_table.side_effect = client_error("ResourceNotFoundException", "DescribeTable")

    assert db.create_table_if_not_exists() is True
    kwargs = db.dynamodb.create_table.call_args.kwargs
    assert kwargs["TableName"] == "TestCalculations"
    assert kwargs["KeySchema"] == [{"AttributeName": "calculationId", "KeyType": "HASH"}]
    db.dynamodb.create_table.return_value.wait_until_exists.assert_called_once()


def test_create_table_when_present(db):
    assert db.create_table_if_not_exists() is True
    db.dynamodb.create_table.assert_not_called()


def test_create_table_other_error(db):
    db.client.describe_table.side_effect = client_error("AccessDeniedException", "DescribeTable")
    assert db.create_table_if_not_exists() is False


def test_list_calculations_paginates_and_sorts(db):
    table = db.dynamodb.Table.return_value
    table.scan.side_effect = [
        {"Items": [{"calculationId": "a", "createdAt": "2026-01-01", "billAmount": Decimal("2500")}],
         "LastEvaluatedKey": {"calculationId": "a"}},
        {"Items": [{"calculationId": "b", "createdAt": "2026-02-01", "billAmount": Decimal("100")}]},
    ]

    calculations = db.list_calculations()
    assert [c["calculationId"] for c in calculations] == ["b", "a"]
    assert calculations[1]["billAmount"] == 2500
    assert isinstance(calculations[1]["billAmount"], int)
    assert table.scan.call_args_list[1].kwargs == {"ExclusiveStartKey": {"calculationId": "a"}}


def test_list_calculations_limit_and_error(db):
    table = db.dynamodb.Table.return_value
    table.scan.return_value = {"Items": [
        {"calculationId": str(i), "createdAt": f"2026-01-0{i}"} for i in range(1, 6)
    ]}
    assert [c["calculationId"] for c in db.list_calculations(limit=2)] == ["5", "4"]

    table.scan.side_effect = client_error("ProvisionedThroughputExceededException", "Scan")
    assert db.list_calculations() == []


def test_count_calculations(db):
    table = db.dynamodb.Table.return_value
    table.scan.side_effect = [
        {"Count": 3, "LastEvaluatedKey": {"calculationId": "x"}},
        {"Count": 2},
    ]
    assert db.count_calculations() == 5


@pytest.fixture
def lambda_svc():
    with mock.patch("backend.lib.lambda_service.boto3"):
        yield LambdaService()


def test_invoke_async(lambda_svc):
    lambda_svc.lambda_client.invoke.return_value = {"StatusCode": 202}

    result = lambda_svc.invoke_async("solar-save-calculation", make_record().to_dict())

    assert result == {"status": "invoked", "StatusCode": 202}
    kwargs = lambda_svc.lambda_client.invoke.call_args.kwargs
    assert kwargs["InvocationType"] == "Event"
    assert json.loads(kwargs["Payload"])["estimatedCost"] == 125000


def test_invoke_request_response(lambda_svc):
    lambda_svc.lambda_client.invoke.return_value = {
        "StatusCode": 200,
        "Payload": io.BytesIO(b'{"statusCode": 201}'),
    }
    assert lambda_svc.invoke_function("solar-save-calculation", {}) == {"statusCode": 201}


def test_invoke_errors_raise_persistence_failure(lambda_svc):
    lambda_svc.lambda_client.invoke.side_effect = client_error("ResourceNotFoundException", "Invoke")
    with pytest.raises(PersistenceFailure):
        lambda_svc.invoke_async("missing-function", {})


def test_invoke_function_error_raises(lambda_svc):
    lambda_svc.lambda_client.invoke.return_value = {
        "StatusCode": 200,
        "FunctionError": "Unhandled",
        "Payload": io.BytesIO(b"{}"),
    }
    with pytest.raises(PersistenceFailure):
        lambda_svc.invoke_function("solar-save-calculation", {})
