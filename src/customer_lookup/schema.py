"""DynamoDB schema definitions and key builders."""

from typing import Any

# Partition keys
CUSTOMER_PK = "CUSTOMER"
LOOKUP_PK = "CUSTOMER_LOOKUP"
PHONE_PREFIX = "CUSTOMER_PHONE#"

# Sort keys
SK_LOCK = "LOCK"
LOOKUP_SEPARATOR = "#"

# Attribute names
ATTR_PK = "PK"
ATTR_SK = "SK"
ATTR_INFO = "Info"

# Condition expressions
CONDITION_EXISTS = "attribute_exists(PK)"
CONDITION_NOT_EXISTS = "attribute_not_exists(PK)"


def pk_customer() -> str:
    """Build partition key for primary customer records."""
    return CUSTOMER_PK


def sk_customer(customer_id: str) -> str:
    """Build sort key for a primary customer record."""
    return customer_id


def pk_phone_lock(phone: str) -> str:
    """Build partition key for the lock row guarding a phone number."""
    return f"{PHONE_PREFIX}{phone}"


def sk_phone_lock() -> str:
    """Build sort key for a phone lock row."""
    return SK_LOCK


def pk_lookup() -> str:
    """Build partition key for lookup entries."""
    return LOOKUP_PK


def sk_lookup(phone: str, normalized_name: str) -> str:
    """Build sort key for a lookup entry (phone#NORMALIZED_NAME)."""
    return f"{phone}{LOOKUP_SEPARATOR}{normalized_name}"


def get_table_definition(table_name: str) -> dict[str, Any]:
    """
    Get the DynamoDB table definition for CreateTable.

    Returns a dictionary suitable for boto3 create_table().
    """
    return {
        "TableName": table_name,
        "BillingMode": "PAY_PER_REQUEST",
        "AttributeDefinitions": [
            {"AttributeName": ATTR_PK, "AttributeType": "S"},
            {"AttributeName": ATTR_SK, "AttributeType": "S"},
        ],
        "KeySchema": [
            {"AttributeName": ATTR_PK, "KeyType": "HASH"},
            {"AttributeName": ATTR_SK, "KeyType": "RANGE"},
        ],
    }


# ---------------------------------------------------------------------------
# Serialization helpers
# ---------------------------------------------------------------------------


def serialize_map(data: dict[str, Any]) -> dict[str, Any]:
    """Serialize a Python dict to DynamoDB map format.

    ``None`` values are dropped rather than stored as NULL so that optional
    customer fields are simply absent from the item.
    """
    return {key: serialize_value(value) for key, value in data.items() if value is not None}


def serialize_value(value: Any) -> dict[str, Any]:
    """Serialize a single value to DynamoDB format."""
    if value is None:
        return {"NULL": True}
    elif isinstance(value, bool):
        return {"BOOL": value}
    elif isinstance(value, str):
        return {"S": value}
    elif isinstance(value, int | float):
        return {"N": str(value)}
    elif isinstance(value, dict):
        return {"M": serialize_map(value)}
    elif isinstance(value, list):
        return {"L": [serialize_value(v) for v in value]}
    return {"S": str(value)}


def deserialize_map(data: dict[str, Any]) -> dict[str, Any]:
    """Deserialize a DynamoDB map (or item) to Python dict."""
    return {key: deserialize_value(value) for key, value in data.items()}


def deserialize_value(value: dict[str, Any]) -> Any:
    """Deserialize a single DynamoDB value."""
    if "S" in value:
        return value["S"]
    elif "N" in value:
        num_str = value["N"]
        return int(num_str) if "." not in num_str else float(num_str)
    elif "BOOL" in value:
        return value["BOOL"]
    elif "M" in value:
        return deserialize_map(value["M"])
    elif "L" in value:
        return [deserialize_value(v) for v in value["L"]]
    elif "NULL" in value:
        return None
    return None
