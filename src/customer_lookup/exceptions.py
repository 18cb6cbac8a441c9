"""Exceptions for customer-lookup."""

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .models import WriteIntent


# ---------------------------------------------------------------------------
# Base Exception
# ---------------------------------------------------------------------------


class CustomerLookupError(Exception):
    """
    Base exception for all customer-lookup errors.

    All exceptions raised by this library inherit from this class,
    allowing callers to catch all library-specific errors with a single
    except clause.
    """

    pass


# ---------------------------------------------------------------------------
# Category Exceptions
# ---------------------------------------------------------------------------


class ValidationError(CustomerLookupError):
    """
    Raised when caller input is missing or malformed.

    Always detected before any DynamoDB access.

    Attributes:
        field: Name of the offending field
        value: The rejected value
        reason: Human-readable explanation
    """

    def __init__(self, field: str, value: Any, reason: str) -> None:
        self.field = field
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid {field}: {reason}")


class MissingFieldsError(ValidationError):
    """Raised when one or more required request fields are absent or empty."""

    def __init__(self, missing: list[str]) -> None:
        self.missing = missing
        super().__init__(", ".join(missing), None, "required field is missing")


class CustomerError(CustomerLookupError):
    """
    Base exception for customer record errors.

    This includes lookups of unknown customers and write conflicts
    against the phone and lookup indexes.
    """

    pass


class TransportError(CustomerLookupError):
    """
    Raised for any DynamoDB failure that is not a condition check.

    The message is the engine-provided detail, passed through verbatim.

    Attributes:
        code: DynamoDB/botocore error code, if one was reported
        cause: The underlying exception
    """

    def __init__(
        self,
        message: str,
        cause: Exception | None = None,
        *,
        code: str | None = None,
    ) -> None:
        self.code = code
        self.cause = cause
        super().__init__(message)


# ---------------------------------------------------------------------------
# Customer Exceptions
# ---------------------------------------------------------------------------


class CustomerNotFoundError(CustomerError):
    """Raised when no primary record exists for a customer ID."""

    def __init__(self, customer_id: str) -> None:
        self.customer_id = customer_id
        super().__init__(f"Customer not found: {customer_id}")


class PhoneConflictError(CustomerError):
    """
    Raised when a transactional write condition fails.

    In practice this means the new phone number is already locked by
    another customer, or a row the update relies on vanished concurrently.
    The whole transaction was rejected; nothing was written.

    Attributes:
        customer_id: The customer being updated
        failed: Write intents whose condition was reported as failed
            (empty when DynamoDB did not report per-item reasons)
    """

    def __init__(
        self,
        customer_id: str,
        failed: list["WriteIntent"] | None = None,
    ) -> None:
        self.customer_id = customer_id
        self.failed = failed or []
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        msg = f"Conflicting update for customer {self.customer_id}"
        if self.failed:
            targets = ", ".join(f"{i.target} {i.key}" for i in self.failed)
            msg += f": condition failed on [{targets}]"
        return msg


ConflictError = PhoneConflictError
