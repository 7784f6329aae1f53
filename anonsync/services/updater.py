"""Continuous reconciliation of target customers against the live source."""

import asyncio
import enum
import logging
from dataclasses import dataclass

from anonsync.schemas import Customer
from anonsync.services.anonymizer import anonymize_customer
from anonsync.services.collection import CustomerCollection
from anonsync.services.lock import LockCoordinator

logger = logging.getLogger(__name__)

DEFAULT_BACKOFF_SECONDS = 3.0


class ReconcileOutcome(enum.Enum):
    MISSING = "missing"
    UNCHANGED = "unchanged"
    UPDATED = "updated"


@dataclass
class PassSummary:
    """Counters for one reconciliation pass over the target."""

    examined: int = 0
    missing: int = 0
    unchanged: int = 0
    updated: int = 0
    aborted: bool = False

    def record(self, outcome: ReconcileOutcome) -> None:
        self.examined += 1
        if outcome is ReconcileOutcome.MISSING:
            self.missing += 1
        elif outcome is ReconcileOutcome.UNCHANGED:
            self.unchanged += 1
        else:
            self.updated += 1


async def reconcile_customer(
    source: CustomerCollection,
    target: CustomerCollection,
    target_customer: Customer,
) -> ReconcileOutcome:
    """
    Bring one target customer in line with its current source customer.

    Deleted source customers are left alone. The target is only written when
    the freshly anonymized record differs from what is stored.
    """
    source_customer = await source.find_one(target_customer.id)
    if source_customer is None:
        logger.debug(f"Source customer {target_customer.id} no longer exists, skipping")
        return ReconcileOutcome.MISSING

    new_target_customer = anonymize_customer(source_customer)
    if new_target_customer == target_customer:
        return ReconcileOutcome.UNCHANGED

    await target.update_one(new_target_customer)
    return ReconcileOutcome.UPDATED


class Updater:
    """
    Re-walks the whole target forever, correcting drift from the source.

    Backs off for a fixed period whenever a pass cannot run or has nothing
    to walk. Otherwise restarts from the beginning as soon as a pass ends.
    """

    def __init__(
        self,
        source: CustomerCollection,
        target: CustomerCollection,
        lock: LockCoordinator,
        backoff_seconds: float = DEFAULT_BACKOFF_SECONDS,
    ):
        self.source = source
        self.target = target
        self.lock = lock
        self.backoff_seconds = backoff_seconds
        self.task: asyncio.Task | None = None
        self.running = False

    async def reconcile_pass(self) -> PassSummary:
        """Reconcile every target customer once, aborting as soon as the lock is held."""
        summary = PassSummary()

        async for target_customer in self.target.stream():
            if self.lock.is_locked():
                logger.info("[Updater] Updater has been locked, aborting pass")
                summary.aborted = True
                break
            outcome = await reconcile_customer(self.source, self.target, target_customer)
            summary.record(outcome)

        if summary.updated:
            logger.info(
                f"[Updater] Pass complete: {summary.examined} examined, "
                f"{summary.updated} updated, {summary.missing} missing in source"
            )
        return summary

    async def run(self) -> None:
        """Reconcile until stopped."""
        self.running = True
        while self.running:
            if self.lock.is_locked():
                logger.info("[Updater] Updater has been locked")
                await asyncio.sleep(self.backoff_seconds)
                continue

            try:
                summary = await self.reconcile_pass()
            except Exception as e:
                logger.error(f"[Updater] Reconciliation pass failed: {e}", exc_info=True)
                await asyncio.sleep(self.backoff_seconds)
                continue

            if summary.examined == 0 and not summary.aborted:
                # Empty target, nothing to walk until the Pursuer flushes.
                await asyncio.sleep(self.backoff_seconds)

    def start(self) -> asyncio.Task:
        """Start reconciliation as a background task."""
        if self.task is None or self.task.done():
            self.task = asyncio.create_task(self.run())
            logger.info("Start Updater")
        return self.task

    async def stop(self) -> None:
        """Stop the background task."""
        self.running = False
        if self.task is not None:
            self.task.cancel()
            try:
                await self.task
            except asyncio.CancelledError:
                pass
            self.task = None
