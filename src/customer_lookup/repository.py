"""DynamoDB repository for customer records."""

import logging
from typing import Any

import aioboto3  # type: ignore[import-untyped]
from botocore.exceptions import BotoCoreError, ClientError

from . import schema
from .exceptions import CustomerNotFoundError
from .models import CustomerRecord, TableKey, WriteIntent
from .naming import resolve_endpoint_url, resolve_table_name
from .transaction import build_transact_items, translate_client_error

logger = logging.getLogger(__name__)


class Repository:
    """
    Async DynamoDB repository for customer data.

    Handles the point read of a customer's primary record and the single
    transactional write that moves its phone lock and lookup entry.

    The table_name falls back to ``DYNAMODB_TABLE_NAME`` and then to
    ``"customers"`` when not given.
    """

    def __init__(
        self,
        table_name: str | None = None,
        region: str | None = None,
        endpoint_url: str | None = None,
    ) -> None:
        self.table_name = resolve_table_name(table_name)
        self.region = region
        self.endpoint_url = resolve_endpoint_url(endpoint_url)
        self._session: aioboto3.Session | None = None
        self._client: Any = None

    async def _get_client(self) -> Any:
        """Get or create the DynamoDB client."""
        if self._client is None:
            self._session = aioboto3.Session()
            self._client = await self._session.client(
                "dynamodb",
                region_name=self.region,
                endpoint_url=self.endpoint_url,
            ).__aenter__()
        return self._client

    async def close(self) -> None:
        """Close the DynamoDB client."""
        if self._client is not None:
            await self._client.__aexit__(None, None, None)
            self._client = None
            self._session = None

    async def __aenter__(self) -> "Repository":
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()

    # -------------------------------------------------------------------------
    # Table operations
    # -------------------------------------------------------------------------

    async def create_table(self) -> None:
        """Create the DynamoDB table if it doesn't exist."""
        client = await self._get_client()
        definition = schema.get_table_definition(self.table_name)

        try:
            await client.create_table(**definition)
            # Wait for table to be active
            waiter = client.get_waiter("table_exists")
            await waiter.wait(TableName=self.table_name)
        except ClientError as e:
            if e.response["Error"]["Code"] != "ResourceInUseException":
                raise

    async def delete_table(self) -> None:
        """Delete the DynamoDB table."""
        client = await self._get_client()
        try:
            await client.delete_table(TableName=self.table_name)
        except ClientError as e:
            if e.response["Error"]["Code"] != "ResourceNotFoundException":
                raise

    # -------------------------------------------------------------------------
    # Customer operations
    # -------------------------------------------------------------------------

    async def get_customer(self, customer_id: str) -> CustomerRecord | None:
        """Get a customer's primary record by ID."""
        client = await self._get_client()

        try:
            response = await client.get_item(
                TableName=self.table_name,
                Key=TableKey.customer(customer_id).to_dynamodb(),
            )
        except (ClientError, BotoCoreError) as e:
            raise translate_client_error(e, customer_id, []) from e

        item = response.get("Item")
        if not item:
            return None

        return CustomerRecord.from_attributes(schema.deserialize_map(item))

    async def fetch_customer(self, customer_id: str) -> CustomerRecord:
        """
        Get a customer's primary record, failing if it does not exist.

        Raises:
            CustomerNotFoundError: If no record exists for customer_id
            TransportError: If the read itself fails
        """
        record = await self.get_customer(customer_id)
        if record is None:
            raise CustomerNotFoundError(customer_id)
        return record

    async def transact_write(self, customer_id: str, intents: list[WriteIntent]) -> None:
        """
        Execute planned write intents as one atomic transaction.

        Args:
            customer_id: Customer being updated (for error reporting)
            intents: Ordered intents from ``plan_update``

        Raises:
            PhoneConflictError: If any write condition failed
            TransportError: For any other DynamoDB failure
        """
        if not intents:
            return

        client = await self._get_client()
        items = build_transact_items(self.table_name, intents)
        logger.debug("Submitting %d transact items for customer %s", len(items), customer_id)

        try:
            await client.transact_write_items(TransactItems=items)
        except (ClientError, BotoCoreError) as e:
            raise translate_client_error(e, customer_id, intents) from e

    async def get_lookup_entry(self, phone: str, normalized_name: str) -> CustomerRecord | None:
        """Get the snapshot stored in a lookup entry, if present."""
        client = await self._get_client()

        response = await client.get_item(
            TableName=self.table_name,
            Key=TableKey.lookup(phone, normalized_name).to_dynamodb(),
        )

        item = response.get("Item")
        if not item:
            return None

        data = schema.deserialize_map(item)
        return CustomerRecord.from_attributes(data.get(schema.ATTR_INFO, {}))

    async def get_phone_owner(self, phone: str) -> str | None:
        """Get the customer ID holding a phone lock, if any."""
        client = await self._get_client()

        response = await client.get_item(
            TableName=self.table_name,
            Key=TableKey.phone_lock(phone).to_dynamodb(),
        )

        item = response.get("Item")
        if not item:
            return None

        owner: str | None = schema.deserialize_map(item).get("customerId")
        return owner
