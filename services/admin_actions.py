from __future__ import annotations

import logging
from typing import Union

from exceptions import InvalidTransitionError, StoreError
from schemas.loan_request import LoanRecord, LoanStatus
from services.lifecycle import ADMIN_ACTIONS, apply_transition
from services.store import RecordStore

logger = logging.getLogger(__name__)


async def transition(store: RecordStore, record_id: str, target: Union[LoanStatus, str]) -> LoanRecord:
    """
    Move one record to target status and return the stored result.
    The update is conditional on the status the check was made against, so a
    second concurrent trigger of the same action fails instead of applying twice.
    """
    record = await store.get(record_id)
    try:
        result = apply_transition(record, target)
    except InvalidTransitionError as e:
        logger.warning("Rejected transition of %s: %s", record_id, e.message)
        raise
    applied = await store.update_status(
        record_id,
        result.status,
        expected_status=result.previous,
        updated_at=result.updated_at,
    )
    if not applied:
        current = await store.get(record_id)
        logger.warning("Transition of %s lost a race: now %s", record_id, current.status.value)
        raise InvalidTransitionError(current.status.value, result.status.value)
    stored = await store.get(record_id)
    # A later action may already have moved it on; still at the old status means the write was lost
    if stored.status == result.previous:
        logger.error("Transition of %s to %s was not persisted", record_id, result.status.value)
        raise StoreError(f"Status update of {record_id} was not persisted")
    logger.info("Loan request %s: %s -> %s", record_id, result.previous.value, result.status.value)
    return stored


async def run_action(store: RecordStore, record_id: str, action: str) -> LoanRecord:
    """Admin surface entry point: approve, reject, mark-disbursed or mark-completed."""
    if action not in ADMIN_ACTIONS:
        raise ValueError(f"Unknown action '{action}'")
    return await transition(store, record_id, ADMIN_ACTIONS[action])
