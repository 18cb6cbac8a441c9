"""TransactWriteItems wire format and failure translation.

Shared by the async ``Repository`` and the boto3-based Lambda handler so
both execute a plan, and report its failure, identically.
"""

from typing import Any

from botocore.exceptions import BotoCoreError, ClientError

from . import schema
from .exceptions import PhoneConflictError, TransportError
from .models import WriteIntent

# DynamoDB caps a single transaction at 100 items; a plan never exceeds 5.
MAX_TRANSACT_ITEMS = 100

CONDITION_FAILED_REASON = "ConditionalCheckFailed"


def build_transact_item(table_name: str, intent: WriteIntent) -> dict[str, Any]:
    """Build one TransactItems entry for a write intent."""
    if intent.action == "Put":
        item = {
            schema.ATTR_PK: intent.key.pk,
            schema.ATTR_SK: intent.key.sk,
            **getattr(intent, "attributes", {}),
        }
        spec: dict[str, Any] = {
            "TableName": table_name,
            "Item": schema.serialize_map(item),
        }
    elif intent.action == "Delete":
        spec = {
            "TableName": table_name,
            "Key": intent.key.to_dynamodb(),
        }
    else:
        raise ValueError(f"Unsupported write action: {intent.action}")

    if intent.condition is not None:
        spec["ConditionExpression"] = intent.condition

    return {intent.action: spec}


def build_transact_items(table_name: str, intents: list[WriteIntent]) -> list[dict[str, Any]]:
    """Build the full TransactItems list, preserving intent order."""
    if len(intents) > MAX_TRANSACT_ITEMS:
        raise ValueError(
            f"Transaction has {len(intents)} items; DynamoDB allows {MAX_TRANSACT_ITEMS}"
        )
    return [build_transact_item(table_name, intent) for intent in intents]


def cancellation_reasons(error: ClientError) -> list[str]:
    """Extract per-item cancellation reason codes from a canceled transaction."""
    reasons = error.response.get("CancellationReasons") or []
    return [reason.get("Code", "None") for reason in reasons]


def is_condition_check_failure(exc: Exception) -> bool:
    """Check if an exception is a transactional condition-check failure.

    A canceled transaction without per-item reasons is treated as a
    condition failure.
    """
    if not isinstance(exc, ClientError):
        return False
    code = exc.response.get("Error", {}).get("Code", "")
    if code == "ConditionalCheckFailedException":
        return True
    if code != "TransactionCanceledException":
        return False
    reasons = cancellation_reasons(exc)
    return not reasons or CONDITION_FAILED_REASON in reasons


def translate_client_error(
    exc: Exception,
    customer_id: str,
    intents: list[WriteIntent],
) -> Exception:
    """
    Map a failed DynamoDB call onto the library's exceptions.

    Returns:
        PhoneConflictError for condition failures, TransportError for any
        other botocore failure, or ``exc`` unchanged for everything else
    """
    if isinstance(exc, ClientError) and is_condition_check_failure(exc):
        reasons = cancellation_reasons(exc)
        failed = [
            intent
            for intent, code in zip(intents, reasons, strict=False)
            if code == CONDITION_FAILED_REASON
        ]
        return PhoneConflictError(customer_id, failed)

    if isinstance(exc, ClientError):
        error = exc.response.get("Error", {})
        return TransportError(
            error.get("Message") or str(exc),
            exc,
            code=error.get("Code"),
        )

    if isinstance(exc, BotoCoreError):
        return TransportError(str(exc), exc)

    return exc
