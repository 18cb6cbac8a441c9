"""Command-line interface for customer-lookup."""

import asyncio
import json
import sys
from collections.abc import Callable
from dataclasses import asdict
from typing import Any

import click

from .exceptions import CustomerLookupError, CustomerNotFoundError, PhoneConflictError
from .models import UpdateRequest
from .repository import Repository
from .updater import update_customer


def _table_options(func: Callable[..., Any]) -> Callable[..., Any]:
    """Shared table/connection options."""
    func = click.option(
        "--endpoint-url",
        help=(
            "AWS endpoint URL "
            "(e.g., http://localhost:4566 for LocalStack, or other AWS-compatible services)"
        ),
    )(func)
    func = click.option(
        "--region",
        help="AWS region (default: use boto3 defaults)",
    )(func)
    func = click.option(
        "--table-name",
        help="DynamoDB table name (default: $DYNAMODB_TABLE_NAME or 'customers')",
    )(func)
    return func


def _update_options(func: Callable[..., Any]) -> Callable[..., Any]:
    """Field options for plan/update."""
    func = click.option("--email", help="New email address")(func)
    func = click.option("--address", help="New postal address")(func)
    func = click.option("--phone", required=True, help="New phone number")(func)
    func = click.option("--name", required=True, help="New display name")(func)
    return func


def _repository(table_name: str | None, region: str | None, endpoint_url: str | None) -> Repository:
    try:
        return Repository(table_name, region=region, endpoint_url=endpoint_url)
    except CustomerLookupError as e:
        raise click.BadParameter(str(e), param_hint="--table-name") from e


@click.group()
@click.version_option(package_name="customer-lookup")
def cli() -> None:
    """customer-lookup management CLI."""
    pass


@cli.command("create-table")
@_table_options
def create_table(table_name: str | None, region: str | None, endpoint_url: str | None) -> None:
    """Create the customer table if it doesn't exist."""
    repo = _repository(table_name, region, endpoint_url)

    async def _create() -> None:
        async with repo:
            await repo.create_table()

    try:
        asyncio.run(_create())
    except Exception as e:
        click.echo(f"✗ Table creation failed: {e}", err=True)
        sys.exit(1)

    click.echo(f"✓ Table '{repo.table_name}' ready")


@cli.command("delete-table")
@_table_options
@click.option(
    "--yes",
    "-y",
    is_flag=True,
    help="Skip confirmation prompt",
)
def delete_table(
    table_name: str | None,
    region: str | None,
    endpoint_url: str | None,
    yes: bool,
) -> None:
    """Delete the customer table."""
    repo = _repository(table_name, region, endpoint_url)

    if not yes:
        click.confirm(
            f"Are you sure you want to delete table '{repo.table_name}'?",
            abort=True,
        )

    async def _delete() -> None:
        async with repo:
            await repo.delete_table()

    try:
        asyncio.run(_delete())
    except Exception as e:
        click.echo(f"✗ Deletion failed: {e}", err=True)
        sys.exit(1)

    click.echo(f"✓ Table '{repo.table_name}' deleted")


@cli.command()
@_table_options
@click.argument("customer_id")
def get(
    table_name: str | None,
    region: str | None,
    endpoint_url: str | None,
    customer_id: str,
) -> None:
    """Show a customer with its phone lock owner and lookup entry."""
    repo = _repository(table_name, region, endpoint_url)

    async def _get() -> dict[str, Any]:
        async with repo:
            record = await repo.fetch_customer(customer_id)
            owner = await repo.get_phone_owner(record.phone)
            lookup = await repo.get_lookup_entry(record.phone, record.normalized_name)
            return {
                "customer": asdict(record),
                "phone_lock_owner": owner,
                "lookup_key": str(record.lookup_key),
                "lookup_entry": asdict(lookup) if lookup else None,
            }

    try:
        result = asyncio.run(_get())
    except CustomerNotFoundError as e:
        click.echo(f"✗ {e}", err=True)
        sys.exit(1)
    except CustomerLookupError as e:
        click.echo(f"✗ Lookup failed: {e}", err=True)
        sys.exit(1)

    click.echo(json.dumps(result, indent=2))


def _run_update(
    table_name: str | None,
    region: str | None,
    endpoint_url: str | None,
    payload: dict[str, Any],
    dry_run: bool,
) -> None:
    try:
        request = UpdateRequest.from_payload(payload)
    except CustomerLookupError as e:
        raise click.UsageError(str(e)) from e
    repo = _repository(table_name, region, endpoint_url)

    async def _update() -> Any:
        async with repo:
            return await update_customer(repo, request, dry_run=dry_run)

    try:
        result = asyncio.run(_update())
    except CustomerNotFoundError as e:
        click.echo(f"✗ {e}", err=True)
        sys.exit(1)
    except PhoneConflictError as e:
        click.echo(f"✗ Phone number already exists: {e}", err=True)
        sys.exit(1)
    except CustomerLookupError as e:
        click.echo(f"✗ Update failed: {e}", err=True)
        sys.exit(1)

    if dry_run:
        click.echo(f"Branch: {result.branch}")
        for intent in result.intents:
            click.echo(json.dumps(intent.to_dict()))
    else:
        click.echo(
            f"✓ Customer '{request.customer_id}' updated "
            f"({result.branch}, {len(result.intents)} items)"
        )


@cli.command()
@_table_options
@_update_options
@click.argument("customer_id")
def plan(
    table_name: str | None,
    region: str | None,
    endpoint_url: str | None,
    name: str,
    phone: str,
    address: str | None,
    email: str | None,
    customer_id: str,
) -> None:
    """Show the transaction an update would run, without running it."""
    payload = {
        "customerId": customer_id,
        "name": name,
        "phone": phone,
        "address": address,
        "email": email,
    }
    _run_update(table_name, region, endpoint_url, payload, dry_run=True)


@cli.command()
@_table_options
@_update_options
@click.argument("customer_id")
def update(
    table_name: str | None,
    region: str | None,
    endpoint_url: str | None,
    name: str,
    phone: str,
    address: str | None,
    email: str | None,
    customer_id: str,
) -> None:
    """Update a customer's name, phone, address and email."""
    payload = {
        "customerId": customer_id,
        "name": name,
        "phone": phone,
        "address": address,
        "email": email,
    }
    _run_update(table_name, region, endpoint_url, payload, dry_run=False)


def main() -> None:
    """Entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
