"""
Catalog reconciliation: diff incoming candidates against a seller's
existing offer IDs.

Pure functions, no I/O. Safe to call from any thread.
"""

from bisect import bisect_left
from typing import Sequence
import structlog

from models.catalog import (
    CandidateUpdate,
    ProductRecord,
    ReconciliationSets,
    RowError,
)

logger = structlog.get_logger(__name__)


def contains(sorted_ids: Sequence[int], offer_id: int) -> bool:
    """
    Binary-search membership test.

    Args:
        sorted_ids: Offer IDs in ascending order
        offer_id: ID to look up

    Returns:
        True if offer_id is in sorted_ids
    """
    pos = bisect_left(sorted_ids, offer_id)
    return pos < len(sorted_ids) and sorted_ids[pos] == offer_id


def is_sorted(ids: Sequence[int]) -> bool:
    """True if ids is in non-decreasing order."""
    return all(ids[i] <= ids[i + 1] for i in range(len(ids) - 1))


def reconcile(
    existing_offer_ids: Sequence[int],
    candidates: Sequence[CandidateUpdate],
) -> ReconciliationSets:
    """
    Partition candidates into add/update/delete sets.

    Classification, in order:
        available is False         -> to_delete
        offer_id already persisted -> to_update
        otherwise                  -> to_add

    Add and update records are then validated; invalid ones are dropped
    and reported. Deletes are never validated.

    Args:
        existing_offer_ids: Seller's persisted offer IDs (sorted here if needed)
        candidates: Parsed spreadsheet rows

    Returns:
        ReconciliationSets with validation errors (adds first, then updates)
    """
    if not is_sorted(existing_offer_ids):
        existing_offer_ids = sorted(existing_offer_ids)

    to_add: list[ProductRecord] = []
    to_update: list[ProductRecord] = []
    to_delete: list[ProductRecord] = []

    for candidate in candidates:
        if not candidate.available:
            to_delete.append(candidate.product)
        elif contains(existing_offer_ids, candidate.product.offer_id):
            to_update.append(candidate.product)
        else:
            to_add.append(candidate.product)

    errors: list[RowError] = []
    to_add = _drop_invalid(to_add, errors)
    to_update = _drop_invalid(to_update, errors)

    sets = ReconciliationSets(
        to_add=to_add,
        to_update=to_update,
        to_delete=to_delete,
        errors=errors,
    )

    logger.debug(
        "catalog_reconciled",
        to_add=len(to_add),
        to_update=len(to_update),
        to_delete=len(to_delete),
        invalid=len(errors)
    )

    return sets


def _drop_invalid(records: list[ProductRecord], errors: list[RowError]) -> list[ProductRecord]:
    valid = []
    for record in records:
        invalid = record.validate()
        if invalid is None:
            valid.append(record)
        else:
            errors.append(RowError(
                row=None,
                field=invalid.field,
                message=invalid.message,
                offer_id=invalid.offer_id,
            ))
    return valid
