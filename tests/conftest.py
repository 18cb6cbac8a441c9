"""Pytest fixtures for customer-lookup tests."""

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any
from unittest.mock import patch

import boto3
import pytest
from moto import mock_aws

from customer_lookup import schema
from customer_lookup.handler import CustomerTable
from customer_lookup.models import CustomerRecord, TableKey
from customer_lookup.repository import Repository

TABLE_NAME = "test-customers"

JANE = CustomerRecord(
    customer_id="C1",
    name="Jane Doe",
    phone="555-0100",
    address="1 Main St",
    email="jane@example.com",
)
JOHN = CustomerRecord(
    customer_id="C2",
    name="John Roe",
    phone="555-0300",
)


@pytest.fixture
def aws_credentials(monkeypatch):
    """Mock AWS credentials for moto."""
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SECURITY_TOKEN", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", "us-east-1")
    # Unset endpoint overrides to ensure moto intercepts requests
    monkeypatch.delenv("AWS_ENDPOINT_URL", raising=False)
    monkeypatch.delenv("DYNAMODB_ENDPOINT_URL", raising=False)


@pytest.fixture
def mock_dynamodb(aws_credentials):
    """Mock DynamoDB for tests."""
    with mock_aws():
        yield


def _patch_aiobotocore_response():
    """
    Patch aiobotocore to work with moto's sync responses.

    Moto returns botocore.awsrequest.AWSResponse which has sync content,
    but aiobotocore expects async content. This patch wraps the response
    handling to convert sync content to async.

    See: https://github.com/aio-libs/aiobotocore/discussions/1300
    """
    from aiobotocore import endpoint

    original_convert = endpoint.convert_to_response_dict

    async def patched_convert(http_response, operation_model):
        # If content is not awaitable (moto's sync response), wrap it
        if hasattr(http_response, "_content") and not isinstance(http_response._content, Awaitable):
            # Create a future that returns the content
            fut: asyncio.Future[bytes] = asyncio.Future()
            fut.set_result(http_response.content)
            http_response._content = fut
        return await original_convert(http_response, operation_model)

    return patch.object(endpoint, "convert_to_response_dict", patched_convert)


@pytest.fixture
def dynamodb_client(mock_dynamodb):
    """Sync DynamoDB client with the customer table created."""
    client = boto3.client("dynamodb", region_name="us-east-1")
    client.create_table(**schema.get_table_definition(TABLE_NAME))
    return client


@pytest.fixture
def seed(dynamodb_client) -> Callable[[CustomerRecord], None]:
    """Write a customer with its phone lock and lookup entry, as creation would."""

    def _seed(record: CustomerRecord) -> None:
        attributes = record.to_attributes()
        rows: list[dict[str, Any]] = [
            {"PK": record.key.pk, "SK": record.key.sk, **attributes},
            {
                "PK": record.phone_lock_key.pk,
                "SK": record.phone_lock_key.sk,
                "customerId": record.customer_id,
            },
            {"PK": record.lookup_key.pk, "SK": record.lookup_key.sk, "Info": attributes},
        ]
        for row in rows:
            dynamodb_client.put_item(TableName=TABLE_NAME, Item=schema.serialize_map(row))

    return _seed


@pytest.fixture
def seeded(seed) -> None:
    """Table holding Jane (C1, 555-0100) and John (C2, 555-0300)."""
    seed(JANE)
    seed(JOHN)


@pytest.fixture
def read_row(dynamodb_client) -> Callable[[TableKey], dict[str, Any] | None]:
    """Read a raw row back as a plain dict (None if absent)."""

    def _read(key: TableKey) -> dict[str, Any] | None:
        response = dynamodb_client.get_item(TableName=TABLE_NAME, Key=key.to_dynamodb())
        item = response.get("Item")
        return schema.deserialize_map(item) if item else None

    return _read


@pytest.fixture
async def repo(dynamodb_client):
    """Async repository bound to the mocked table."""
    with _patch_aiobotocore_response():
        repo = Repository(TABLE_NAME, region="us-east-1")
        yield repo
        await repo.close()


@pytest.fixture
def table(dynamodb_client) -> CustomerTable:
    """Sync (Lambda-side) table bound to the mocked table."""
    return CustomerTable(TABLE_NAME, client=dynamodb_client)
