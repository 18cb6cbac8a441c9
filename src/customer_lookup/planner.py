"""Transaction planning for customer updates.

Turns the stored record and the requested field values into the ordered
list of conditional writes that keeps the primary record, the phone lock
and the lookup entry consistent. Planning is pure: no I/O, no exceptions.
Every condition is evaluated later by DynamoDB when the transaction runs.

Key layout::

    PK=CUSTOMER               SK={customerId}              primary record
    PK=CUSTOMER_PHONE#{phone} SK=LOCK                      phone lock
    PK=CUSTOMER_LOOKUP        SK={phone}#{NORMALIZED_NAME} lookup entry

Branches (first match wins):

1. phone changed: claim the new lock and lookup entry, release the old ones
2. normalized name changed: replace the lookup entry under the same phone
3. neither: refresh the existing lookup entry in place
"""

from enum import Enum

from .models import (
    CustomerRecord,
    DeleteUnconditional,
    InsertIfAbsent,
    IntentTarget,
    OverwriteIfExists,
    UpdateRequest,
    WriteIntent,
)


class UpdateBranch(str, Enum):
    """Which index rows an update has to move."""

    PHONE_CHANGED = "phone_changed"
    NAME_CHANGED = "name_changed"
    UNCHANGED = "unchanged"

    def __str__(self) -> str:
        return self.value


def classify_update(old: CustomerRecord, new: UpdateRequest) -> UpdateBranch:
    """Decide which planning branch applies to an update."""
    if old.phone != new.phone:
        return UpdateBranch.PHONE_CHANGED
    if old.normalized_name != new.to_record().normalized_name:
        return UpdateBranch.NAME_CHANGED
    return UpdateBranch.UNCHANGED


def plan_update(old: CustomerRecord, new: UpdateRequest) -> list[WriteIntent]:
    """
    Plan the transactional writes for an update.

    The primary record overwrite always comes first and requires the record
    to still exist. Inserts that claim a key precede the deletes that vacate
    the old one, so the new phone lock is always ahead of the old lock's
    delete in the returned list.

    Args:
        old: Record as fetched before the update
        new: Requested field values (same customer_id as ``old``)

    Returns:
        Ordered write intents, ready for a single TransactWriteItems call
    """
    record = new.to_record()
    attributes = record.to_attributes()

    intents: list[WriteIntent] = [
        OverwriteIfExists(IntentTarget.CUSTOMER, record.key, attributes=attributes),
    ]

    branch = classify_update(old, new)

    if branch is UpdateBranch.PHONE_CHANGED:
        intents += [
            # Uniqueness check: fails if another customer holds the number
            InsertIfAbsent(
                IntentTarget.PHONE_LOCK,
                record.phone_lock_key,
                attributes={"customerId": record.customer_id},
            ),
            InsertIfAbsent(
                IntentTarget.LOOKUP,
                record.lookup_key,
                attributes={"Info": attributes},
            ),
            DeleteUnconditional(IntentTarget.PHONE_LOCK, old.phone_lock_key),
            DeleteUnconditional(IntentTarget.LOOKUP, old.lookup_key),
        ]
    elif branch is UpdateBranch.NAME_CHANGED:
        intents += [
            DeleteUnconditional(IntentTarget.LOOKUP, old.lookup_key),
            InsertIfAbsent(
                IntentTarget.LOOKUP,
                record.lookup_key,
                attributes={"Info": attributes},
            ),
        ]
    else:
        intents.append(
            OverwriteIfExists(
                IntentTarget.LOOKUP,
                record.lookup_key,
                attributes={"Info": attributes},
            )
        )

    return intents
