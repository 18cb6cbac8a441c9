"""Async update workflow: fetch, plan, commit."""

import logging
from dataclasses import dataclass

from .models import CustomerRecord, UpdateRequest, WriteIntent
from .planner import UpdateBranch, classify_update, plan_update
from .repository import Repository

logger = logging.getLogger(__name__)


@dataclass
class UpdateResult:
    """Outcome of a committed (or planned) customer update."""

    previous: CustomerRecord
    current: CustomerRecord
    branch: UpdateBranch
    intents: list[WriteIntent]


async def update_customer(
    repository: Repository,
    request: UpdateRequest,
    dry_run: bool = False,
) -> UpdateResult:
    """
    Update a customer and move its phone lock and lookup entry atomically.

    Two round-trips at most: the point read of the primary record, then a
    single TransactWriteItems call. Nothing is retried; a lost race
    surfaces as PhoneConflictError and the caller decides what to do.

    Args:
        repository: Repository bound to the customer table
        request: Validated update request
        dry_run: Plan only, skip the transaction

    Returns:
        UpdateResult describing the applied (or planned) change

    Raises:
        CustomerNotFoundError: If the customer does not exist
        PhoneConflictError: If a write condition failed at commit time
        TransportError: For any other DynamoDB failure
    """
    previous = await repository.fetch_customer(request.customer_id)
    intents = plan_update(previous, request)
    branch = classify_update(previous, request)

    logger.info(
        "Planned %s update for customer %s (%d items)",
        branch,
        request.customer_id,
        len(intents),
    )

    if not dry_run:
        await repository.transact_write(request.customer_id, intents)

    return UpdateResult(
        previous=previous,
        current=request.to_record(),
        branch=branch,
        intents=intents,
    )
