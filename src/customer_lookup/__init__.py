"""
customer-lookup: Customer updates with phone uniqueness on DynamoDB.

This library updates a customer record while keeping two secondary rows
in step with it, in one atomic TransactWriteItems call:
- a phone lock row, so each phone number belongs to at most one customer
- a lookup entry keyed by ``phone#NORMALIZED_NAME`` holding a snapshot

Example:
    from customer_lookup import Repository, UpdateRequest, update_customer

    async with Repository("customers", region="us-east-1") as repo:
        result = await update_customer(
            repo,
            UpdateRequest("C1", name="Jane Doe", phone="555-0200"),
        )
        print(result.branch)  # phone_changed

The Lambda entry point is ``customer_lookup.handler.handler``.
"""

# ---------------------------------------------------------------------------
# Lazy imports for Lambda compatibility
# ---------------------------------------------------------------------------
# Repository and update_customer are imported lazily via __getattr__ below.
# They depend on aioboto3, which is NOT available in the AWS Lambda runtime
# (only boto3 is provided). The Lambda handler (customer_lookup.handler)
# imports this package, so eager imports here would break it.
# ---------------------------------------------------------------------------
from importlib import metadata as _metadata
from typing import TYPE_CHECKING, Any

from .exceptions import (
    ConflictError,
    CustomerError,
    CustomerLookupError,
    CustomerNotFoundError,
    MissingFieldsError,
    PhoneConflictError,
    TransportError,
    ValidationError,
)
from .models import (
    CustomerRecord,
    DeleteUnconditional,
    InsertIfAbsent,
    IntentTarget,
    OverwriteIfExists,
    TableKey,
    UpdateRequest,
    WriteIntent,
)
from .naming import normalize_name
from .planner import UpdateBranch, classify_update, plan_update

if TYPE_CHECKING:
    from .repository import Repository as Repository
    from .updater import UpdateResult as UpdateResult
    from .updater import update_customer as update_customer

try:
    __version__ = _metadata.version("customer-lookup")
except _metadata.PackageNotFoundError:
    __version__ = "0.0.0+unknown"

__all__ = [
    # Version
    "__version__",
    # Main API
    "Repository",
    "update_customer",
    "UpdateResult",
    "plan_update",
    "classify_update",
    "normalize_name",
    # Models
    "CustomerRecord",
    "UpdateRequest",
    "TableKey",
    "UpdateBranch",
    # Write intents
    "WriteIntent",
    "IntentTarget",
    "InsertIfAbsent",
    "OverwriteIfExists",
    "DeleteUnconditional",
    # Exceptions
    "CustomerLookupError",
    "ValidationError",
    "MissingFieldsError",
    "CustomerError",
    "CustomerNotFoundError",
    "PhoneConflictError",
    "ConflictError",
    "TransportError",
]


def __getattr__(name: str) -> Any:
    """Lazy import for modules that require aioboto3.

    See Also:
        PEP 562 -- Module __getattr__ and __dir__
    """
    if name == "Repository":
        from .repository import Repository

        return Repository
    if name == "update_customer":
        from .updater import update_customer

        return update_customer
    if name == "UpdateResult":
        from .updater import UpdateResult

        return UpdateResult
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
