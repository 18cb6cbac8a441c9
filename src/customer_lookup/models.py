"""Core models for customer-lookup."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar

from . import schema
from .exceptions import MissingFieldsError
from .naming import normalize_name


@dataclass(frozen=True)
class TableKey:
    """Composite primary key of a single-table row."""

    pk: str
    sk: str

    def __str__(self) -> str:
        return f"{self.pk}/{self.sk}"

    def to_dynamodb(self) -> dict[str, Any]:
        """Serialize to the low-level ``Key`` format."""
        return {
            schema.ATTR_PK: {"S": self.pk},
            schema.ATTR_SK: {"S": self.sk},
        }

    @classmethod
    def customer(cls, customer_id: str) -> "TableKey":
        """Key of the primary customer record."""
        return cls(schema.pk_customer(), schema.sk_customer(customer_id))

    @classmethod
    def phone_lock(cls, phone: str) -> "TableKey":
        """Key of the lock row that reserves a phone number."""
        return cls(schema.pk_phone_lock(phone), schema.sk_phone_lock())

    @classmethod
    def lookup(cls, phone: str, normalized_name: str) -> "TableKey":
        """Key of the lookup entry for a phone/normalized-name pair."""
        return cls(schema.pk_lookup(), schema.sk_lookup(phone, normalized_name))


@dataclass(frozen=True)
class CustomerRecord:
    """
    A customer as stored in the primary record.

    Attributes:
        customer_id: Opaque identifier, never mutated after creation
        name: Display name
        phone: Phone number, treated as an opaque unique key
        address: Optional postal address
        email: Optional email address
    """

    customer_id: str
    name: str
    phone: str
    address: str | None = None
    email: str | None = None

    @property
    def normalized_name(self) -> str:
        """Name fragment used in the lookup entry sort key."""
        return normalize_name(self.name)

    @property
    def key(self) -> TableKey:
        """Primary record key."""
        return TableKey.customer(self.customer_id)

    @property
    def phone_lock_key(self) -> TableKey:
        """Key of the phone lock held by this customer."""
        return TableKey.phone_lock(self.phone)

    @property
    def lookup_key(self) -> TableKey:
        """Key of the lookup entry describing this customer."""
        return TableKey.lookup(self.phone, self.normalized_name)

    def to_attributes(self) -> dict[str, Any]:
        """Serialize to the stored attribute names (optional fields may be None)."""
        return {
            "customerId": self.customer_id,
            "name": self.name,
            "address": self.address,
            "email": self.email,
            "phone": self.phone,
        }

    @classmethod
    def from_attributes(cls, data: dict[str, Any]) -> "CustomerRecord":
        """Deserialize from a (plain Python) primary item or lookup snapshot."""
        return cls(
            customer_id=data["customerId"],
            name=data["name"],
            phone=data["phone"],
            address=data.get("address"),
            email=data.get("email"),
        )


@dataclass(frozen=True)
class UpdateRequest:
    """
    Caller-supplied field values for an update.

    The identifier selects the record; every other field replaces the
    stored value.
    """

    REQUIRED_FIELDS: ClassVar[tuple[str, ...]] = ("customerId", "name", "phone")

    customer_id: str
    name: str
    phone: str
    address: str | None = None
    email: str | None = None

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "UpdateRequest":
        """
        Build a request from a decoded JSON body.

        Raises:
            MissingFieldsError: If customerId, name or phone is absent,
                null or empty
        """
        missing = [name for name in cls.REQUIRED_FIELDS if not payload.get(name)]
        if missing:
            raise MissingFieldsError(missing)

        return cls(
            customer_id=str(payload["customerId"]),
            name=str(payload["name"]),
            phone=str(payload["phone"]),
            address=_optional_str(payload.get("address")),
            email=_optional_str(payload.get("email")),
        )

    def to_record(self) -> CustomerRecord:
        """The record as it should look once the update is applied."""
        return CustomerRecord(
            customer_id=self.customer_id,
            name=self.name,
            phone=self.phone,
            address=self.address,
            email=self.email,
        )


def _optional_str(value: Any) -> str | None:
    return None if value is None else str(value)


# ---------------------------------------------------------------------------
# Write intents
# ---------------------------------------------------------------------------


class IntentTarget(str, Enum):
    """Kind of row a write intent touches."""

    CUSTOMER = "customer"
    PHONE_LOCK = "phone_lock"
    LOOKUP = "lookup"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class WriteIntent:
    """
    One conditional write inside an update transaction.

    Subclasses fix the DynamoDB action and the key condition; the planner
    only decides which intents to emit and in what order.
    """

    action: ClassVar[str]
    condition: ClassVar[str | None] = None

    target: IntentTarget
    key: TableKey

    @property
    def is_conditional(self) -> bool:
        return self.condition is not None

    def to_dict(self) -> dict[str, Any]:
        """Serialize for display (CLI plan output, logs)."""
        return {
            "intent": type(self).__name__,
            "action": self.action,
            "target": str(self.target),
            "pk": self.key.pk,
            "sk": self.key.sk,
            "condition": self.condition,
        }


@dataclass(frozen=True)
class InsertIfAbsent(WriteIntent):
    """Put a new row; fails if the key is already taken."""

    action: ClassVar[str] = "Put"
    condition: ClassVar[str | None] = schema.CONDITION_NOT_EXISTS

    attributes: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class OverwriteIfExists(WriteIntent):
    """Replace an existing row; fails if the key is gone."""

    action: ClassVar[str] = "Put"
    condition: ClassVar[str | None] = schema.CONDITION_EXISTS

    attributes: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class DeleteUnconditional(WriteIntent):
    """Delete a row whether or not it exists."""

    action: ClassVar[str] = "Delete"
