"""Name normalization and table name resolution.

Customer names feed the sort key of lookup entries, so they are folded to
a canonical form before use: surrounding whitespace stripped, upper-cased,
and every run of internal whitespace replaced by a single underscore.
"""

import os
import re

from .exceptions import ValidationError

DEFAULT_TABLE_NAME = "customers"
"""Default table name used when neither an argument nor the env var is set."""

TABLE_ENV_VAR = "DYNAMODB_TABLE_NAME"
"""Environment variable for overriding the default table name."""

ENDPOINT_ENV_VAR = "DYNAMODB_ENDPOINT_URL"
"""Environment variable for pointing clients at LocalStack or DynamoDB Local."""

NAME_SEPARATOR = "_"

_WHITESPACE_RUN = re.compile(r"\s+")

# DynamoDB table name rules: 3-255 chars of letters, digits, '_', '-', '.'
TABLE_NAME_PATTERN = re.compile(r"^[A-Za-z0-9_.-]{3,255}$")


def normalize_name(name: str) -> str:
    """
    Fold a display name into its lookup-key form.

    Examples:
        >>> normalize_name("  Jane   Doe ")
        'JANE_DOE'
        >>> normalize_name("jane\\tdoe")
        'JANE_DOE'

    Args:
        name: Free-text display name

    Returns:
        Canonical name fragment (idempotent)
    """
    return _WHITESPACE_RUN.sub(NAME_SEPARATOR, name.strip().upper())


def validate_table_name(name: str) -> None:
    """
    Validate a DynamoDB table name.

    Raises:
        ValidationError: If the name is empty or breaks DynamoDB naming rules
    """
    if not name:
        raise ValidationError("table_name", name, "Table name cannot be empty")
    if not TABLE_NAME_PATTERN.match(name):
        raise ValidationError(
            "table_name",
            name,
            "Must be 3-255 characters of letters, digits, '_', '-' or '.'",
        )


def resolve_table_name(table_name: str | None) -> str:
    """Resolve table name from explicit arg, env var, or default.

    Resolution order: ``table_name`` arg → ``DYNAMODB_TABLE_NAME`` env var →
    ``"customers"``.

    Args:
        table_name: Explicit table name, or ``None`` to use env/default.

    Returns:
        Validated table name.
    """
    name = table_name or os.environ.get(TABLE_ENV_VAR) or DEFAULT_TABLE_NAME
    validate_table_name(name)
    return name


def resolve_endpoint_url(endpoint_url: str | None) -> str | None:
    """Resolve endpoint URL from explicit arg or ``DYNAMODB_ENDPOINT_URL``."""
    return endpoint_url or os.environ.get(ENDPOINT_ENV_VAR) or None
