"""Lambda handler for the UpdateCustomer API.

This module handles API Gateway proxy requests that update a customer.
Uses boto3 directly (sync) since Lambda runtime doesn't include aioboto3.
"""

import base64
import json
import os
import time
import traceback
from datetime import UTC, datetime
from typing import Any

import boto3  # type: ignore[import-untyped]
from botocore.exceptions import BotoCoreError, ClientError

from .exceptions import (
    CustomerLookupError,
    CustomerNotFoundError,
    PhoneConflictError,
    ValidationError,
)
from .models import CustomerRecord, TableKey, UpdateRequest, WriteIntent
from .naming import DEFAULT_TABLE_NAME, ENDPOINT_ENV_VAR, TABLE_ENV_VAR
from .planner import UpdateBranch, classify_update, plan_update
from .schema import deserialize_map
from .transaction import build_transact_items, translate_client_error

# Environment variables
TABLE_NAME = os.environ.get(TABLE_ENV_VAR, DEFAULT_TABLE_NAME)
ENDPOINT_URL = os.environ.get(ENDPOINT_ENV_VAR) or None
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

# Response messages
MSG_UPDATED = "Customer updated successfully."
MSG_MISSING_FIELDS = "Missing required fields."
MSG_INVALID_JSON = "Request body must be valid JSON."
MSG_NOT_FOUND = "Customer not found."
MSG_PHONE_EXISTS = "Phone number already exists."

_LEVELS = {"DEBUG": 10, "INFO": 20, "WARNING": 30, "ERROR": 40}


class StructuredLogger:
    """JSON-formatted logger for CloudWatch Logs Insights."""

    def __init__(self, name: str, level: str = "INFO"):
        self._name = name
        self._threshold = _LEVELS.get(level.upper(), _LEVELS["INFO"])

    def _log(self, level: str, message: str, **extra: Any) -> None:
        if _LEVELS[level] < self._threshold:
            return
        log_entry = {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": level,
            "logger": self._name,
            "message": message,
            **extra,
        }
        print(json.dumps(log_entry, default=str))

    def debug(self, message: str, **extra: Any) -> None:
        self._log("DEBUG", message, **extra)

    def info(self, message: str, **extra: Any) -> None:
        self._log("INFO", message, **extra)

    def warning(self, message: str, exc_info: bool = False, **extra: Any) -> None:
        if exc_info:
            extra["exception"] = traceback.format_exc()
        self._log("WARNING", message, **extra)

    def error(self, message: str, exc_info: bool = False, **extra: Any) -> None:
        if exc_info:
            extra["exception"] = traceback.format_exc()
        self._log("ERROR", message, **extra)


logger = StructuredLogger(__name__, LOG_LEVEL)


class CustomerTable:
    """Sync DynamoDB access for the update workflow using boto3."""

    def __init__(self, table_name: str, client: Any = None):
        self.table_name = table_name
        self._client = client or boto3.client("dynamodb", endpoint_url=ENDPOINT_URL)

    def fetch_customer(self, customer_id: str) -> CustomerRecord:
        """
        Point-read the primary record.

        Raises:
            CustomerNotFoundError: If no record exists
            TransportError: If the read fails
        """
        try:
            response = self._client.get_item(
                TableName=self.table_name,
                Key=TableKey.customer(customer_id).to_dynamodb(),
            )
        except (ClientError, BotoCoreError) as e:
            raise translate_client_error(e, customer_id, []) from e

        item = response.get("Item")
        if not item:
            raise CustomerNotFoundError(customer_id)
        return CustomerRecord.from_attributes(deserialize_map(item))

    def transact_write(self, customer_id: str, intents: list[WriteIntent]) -> None:
        """
        Commit write intents as one TransactWriteItems call.

        Raises:
            PhoneConflictError: If any write condition failed
            TransportError: For any other DynamoDB failure
        """
        try:
            self._client.transact_write_items(
                TransactItems=build_transact_items(self.table_name, intents)
            )
        except (ClientError, BotoCoreError) as e:
            raise translate_client_error(e, customer_id, intents) from e


_table: CustomerTable | None = None


def get_table() -> CustomerTable:
    """Get the process-wide table handle, creating it on first use."""
    global _table
    if _table is None:
        _table = CustomerTable(TABLE_NAME)
    return _table


def update_customer(table: CustomerTable, request: UpdateRequest) -> UpdateBranch:
    """Fetch, plan and commit a customer update. Returns the branch taken."""
    previous = table.fetch_customer(request.customer_id)
    intents = plan_update(previous, request)
    table.transact_write(request.customer_id, intents)
    return classify_update(previous, request)


# ---------------------------------------------------------------------------
# Request/Response helpers
# ---------------------------------------------------------------------------


def json_response(status_code: int, body: Any) -> dict[str, Any]:
    """Create an API Gateway response."""
    return {
        "statusCode": status_code,
        "headers": {
            "Content-Type": "application/json",
            "Access-Control-Allow-Origin": "*",
        },
        "body": json.dumps(body, default=str),
    }


def message_response(status_code: int, message: str) -> dict[str, Any]:
    """Create a response whose body is ``{"message": ...}``."""
    return json_response(status_code, {"message": message})


def parse_request(event: dict[str, Any]) -> UpdateRequest:
    """
    Decode and validate the request body of an API Gateway event.

    Raises:
        ValidationError: If the body is not a JSON object
        MissingFieldsError: If customerId, name or phone is missing
    """
    raw = event.get("body") or "{}"
    if event.get("isBase64Encoded") and isinstance(raw, str):
        raw = base64.b64decode(raw).decode("utf-8")

    if isinstance(raw, dict):
        payload = raw
    else:
        try:
            payload = json.loads(raw)
        except (json.JSONDecodeError, TypeError) as e:
            raise ValidationError("body", raw, "Request body must be valid JSON") from e

    if not isinstance(payload, dict):
        raise ValidationError("body", payload, "Request body must be a JSON object")

    return UpdateRequest.from_payload(payload)


def error_response(error: CustomerLookupError) -> dict[str, Any]:
    """Map a library error onto the API response for it."""
    if isinstance(error, ValidationError):
        if error.field == "body":
            return message_response(400, MSG_INVALID_JSON)
        return message_response(400, MSG_MISSING_FIELDS)
    if isinstance(error, CustomerNotFoundError):
        return message_response(404, MSG_NOT_FOUND)
    if isinstance(error, PhoneConflictError):
        return message_response(400, MSG_PHONE_EXISTS)
    # TransportError: surface the engine detail verbatim
    return message_response(400, str(error))


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def handler(event: dict[str, Any], context: Any) -> dict[str, Any]:
    """
    Lambda handler for API Gateway UpdateCustomer requests.

    Environment variables:
        DYNAMODB_TABLE_NAME: DynamoDB table name (default: customers)
        DYNAMODB_ENDPOINT_URL: Optional endpoint override (LocalStack)
        LOG_LEVEL: Minimum log level (default: INFO)

    Args:
        event: API Gateway proxy event with a JSON body
        context: Lambda context

    Returns:
        API Gateway proxy response
    """
    start_time = time.perf_counter()
    request_id = getattr(context, "aws_request_id", "unknown")

    logger.info(
        "Lambda invocation started",
        request_id=request_id,
        function_name=getattr(context, "function_name", "unknown"),
        table_name=TABLE_NAME,
    )

    customer_id: str | None = None
    try:
        request = parse_request(event)
        customer_id = request.customer_id
        branch = update_customer(get_table(), request)
    except CustomerLookupError as e:
        response = error_response(e)
        logger.warning(
            "UpdateCustomer rejected",
            request_id=request_id,
            customer_id=customer_id,
            error_type=type(e).__name__,
            error=str(e),
            status_code=response["statusCode"],
        )
        return response
    except Exception as e:
        logger.error(
            "UpdateCustomer error",
            exc_info=True,
            request_id=request_id,
            customer_id=customer_id,
        )
        return message_response(400, str(e))

    processing_time_ms = (time.perf_counter() - start_time) * 1000
    logger.info(
        "UpdateCustomer completed",
        request_id=request_id,
        customer_id=customer_id,
        branch=str(branch),
        status_code=200,
        processing_time_ms=round(processing_time_ms, 2),
    )
    return message_response(200, MSG_UPDATED)
