"""One-shot full reindex of the target collection."""

import logging
from datetime import datetime, timedelta

from anonsync.services.anonymizer import anonymize_customer
from anonsync.services.checkpoint import CheckpointStore
from anonsync.services.collection import CustomerCollection
from anonsync.services.pursuer import DEFAULT_MARGIN, derive_initial_pointer
from anonsync.services.updater import PassSummary, ReconcileOutcome, reconcile_customer

logger = logging.getLogger(__name__)


class FullReindexer:
    """
    Rebuilds the target from the live source in three phases.

    1. Reconcile every existing target customer once.
    2. Insert every source customer newer than the last reconciled one.
    3. Store the final pointer so continuous mode resumes from it.

    The caller must hold the lock for the whole run.
    """

    def __init__(
        self,
        source: CustomerCollection,
        target: CustomerCollection,
        checkpoint: CheckpointStore,
        margin: timedelta = DEFAULT_MARGIN,
    ):
        self.source = source
        self.target = target
        self.checkpoint = checkpoint
        self.margin = margin

    async def reconcile_existing(self) -> tuple[datetime | None, PassSummary]:
        """
        Reconcile all target customers.

        Returns:
            Tuple of (created_at of the last target customer still present in
            the source, pass summary)
        """
        logger.info("[fullReindex] Update")
        last_created_at = None
        summary = PassSummary()

        async for target_customer in self.target.stream():
            outcome = await reconcile_customer(self.source, self.target, target_customer)
            summary.record(outcome)
            if outcome is not ReconcileOutcome.MISSING:
                last_created_at = target_customer.created_at

        logger.info(
            f"[fullReindex] Reconciled {summary.examined} customers: "
            f"{summary.updated} updated, {summary.missing} missing in source"
        )
        return last_created_at, summary

    async def insert_newest(self, pointer: datetime) -> tuple[datetime, int]:
        """
        Insert source customers created after ``pointer``.

        Returns:
            Tuple of (pointer after the last insert, number of customers inserted)
        """
        logger.info(f"[fullReindex] Insert newest {pointer.isoformat()}")
        inserted = 0

        async for source_customer in self.source.stream(created_after=pointer):
            new_target_customer = anonymize_customer(source_customer)
            if await self.target.insert_one(new_target_customer):
                inserted += 1
            pointer = new_target_customer.created_at

        logger.info(f"[fullReindex] Inserted {inserted} customers")
        return pointer, inserted

    async def run(self) -> datetime:
        """Run all phases and return the stored pointer."""
        pointer, _ = await self.reconcile_existing()
        if pointer is None:
            pointer = await derive_initial_pointer(self.source, self.margin)

        pointer, _ = await self.insert_newest(pointer)

        logger.info(f"[fullReindex] Store new pointer {pointer.isoformat()}")
        self.checkpoint.store(pointer)
        return pointer
