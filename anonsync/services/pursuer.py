"""Forward sync of newly created source customers into the target."""

import logging
from datetime import UTC, datetime, timedelta

from anonsync.schemas import Customer
from anonsync.services.anonymizer import anonymize_customer
from anonsync.services.checkpoint import CheckpointStore
from anonsync.services.collection import CustomerCollection
from anonsync.services.lock import LockCoordinator

logger = logging.getLogger(__name__)

DEFAULT_WINDOW = 1000
DEFAULT_MARGIN = timedelta(seconds=60)


async def derive_initial_pointer(
    source: CustomerCollection, margin: timedelta = DEFAULT_MARGIN
) -> datetime:
    """Pointer used when none was stored: just before the oldest source customer, or now."""
    first_customer = await source.first()
    start = first_customer.created_at if first_customer else datetime.now(UTC)
    return start - margin


class Pursuer:
    """
    Copies source customers created after the pointer into the target.

    Features:
    - Windowed batching: anonymized customers are buffered and bulk-inserted
    - A partial buffer is always flushed on the next tick
    - The pointer only advances after a successful flush
    - Defers entirely while a full reindex holds the lock
    """

    def __init__(
        self,
        source: CustomerCollection,
        target: CustomerCollection,
        lock: LockCoordinator,
        checkpoint: CheckpointStore,
        window: int = DEFAULT_WINDOW,
        margin: timedelta = DEFAULT_MARGIN,
    ):
        self.source = source
        self.target = target
        self.lock = lock
        self.checkpoint = checkpoint
        self.window = window
        self.margin = margin

        self.pointer: datetime | None = None
        self.buffer: list[Customer] = []

    async def load_pointer(self) -> None:
        """Load the stored pointer, deriving one from the source if none exists."""
        self.pointer = self.checkpoint.load()
        if self.pointer is None:
            self.pointer = await derive_initial_pointer(self.source, self.margin)
            logger.info(f"[Pursuer] No stored pointer, starting from {self.pointer.isoformat()}")

    def store_pointer(self) -> None:
        if self.pointer is None:
            return
        self.checkpoint.store(self.pointer)

    async def tick(self) -> int:
        """
        Run one scheduled iteration.

        Returns:
            Number of customers inserted into the target
        """
        if self.lock.is_locked():
            logger.info("[Pursuer] Pursuer has been locked")
            # A running full reindex moves the stored pointer; reload it once unlocked.
            self.pointer = None
            self.buffer = []
            return 0

        return await self.loop()

    async def loop(self) -> int:
        """Fetch the next window of source customers and flush the buffer when due."""
        if self.pointer is None:
            await self.load_pointer()

        buffer_already_exists = len(self.buffer) != 0

        customers = await self.source.find(
            created_after=self.pointer,
            limit=self.window - len(self.buffer),
            skip=len(self.buffer),
        )
        for customer in customers:
            self.buffer.append(anonymize_customer(customer))

        if len(self.buffer) == self.window or buffer_already_exists:
            return await self.flush()

        return 0

    async def flush(self) -> int:
        """Insert the buffer into the target and advance the pointer."""
        if not self.buffer:
            return 0

        inserted = await self.target.insert_many(self.buffer)
        self.pointer = self.buffer[-1].created_at
        self.store_pointer()
        self.buffer = []

        logger.info(f"[Pursuer] Inserted {inserted} customers, pointer at {self.pointer.isoformat()}")
        return inserted
