"""Customer collection backed by one SQL table."""

import logging
from collections.abc import AsyncIterator, Iterable
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import Insert, Row, Select, Table, and_, func, or_, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncEngine

from anonsync.schemas import Address, Customer

logger = logging.getLogger(__name__)


def _utc(value: datetime) -> datetime:
    """Normalize a timestamp to timezone-aware UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


class CustomerCollection:
    """
    CRUD access to a source or target customer collection.

    Every read is ordered ascending by ``created_at`` with the id as a
    tie-breaker. Each write call runs in its own transaction. Inserts skip
    ids that are already stored, so re-copying a record is a no-op.
    """

    def __init__(self, engine: AsyncEngine, table: Table):
        self.engine = engine
        self.table = table

    @property
    def name(self) -> str:
        return self.table.name

    def _to_customer(self, row: Row) -> Customer:
        return Customer(
            id=row.id,
            first_name=row.first_name,
            last_name=row.last_name,
            email=row.email,
            address=Address(
                line1=row.address_line1,
                line2=row.address_line2,
                postcode=row.address_postcode,
                city=row.address_city,
                state=row.address_state,
                country=row.address_country,
            ),
            created_at=_utc(row.created_at),
        )

    def _to_values(self, customer: Customer) -> dict[str, Any]:
        address = customer.address
        return {
            "id": customer.id,
            "first_name": customer.first_name,
            "last_name": customer.last_name,
            "email": customer.email,
            "address_line1": address.line1,
            "address_line2": address.line2,
            "address_postcode": address.postcode,
            "address_city": address.city,
            "address_state": address.state,
            "address_country": address.country,
            "created_at": _utc(customer.created_at),
        }

    def _ordered(self, created_after: datetime | None = None) -> Select:
        query = select(self.table).order_by(self.table.c.created_at, self.table.c.id)
        if created_after is not None:
            query = query.where(self.table.c.created_at > _utc(created_after))
        return query

    async def find(
        self,
        created_after: datetime | None = None,
        limit: int | None = None,
        skip: int = 0,
    ) -> list[Customer]:
        """
        Fetch customers ascending by creation time.

        Args:
            created_after: Only return customers created strictly after this timestamp
            limit: Maximum number of customers to return
            skip: Number of matching customers to skip

        Returns:
            List of customers
        """
        query = self._ordered(created_after)
        if limit is not None:
            query = query.limit(limit)
        if skip:
            query = query.offset(skip)

        async with self.engine.connect() as conn:
            result = await conn.execute(query)
            return [self._to_customer(row) for row in result.all()]

    async def find_one(self, customer_id: str) -> Customer | None:
        """Fetch a customer by id."""
        query = select(self.table).where(self.table.c.id == customer_id)
        async with self.engine.connect() as conn:
            result = await conn.execute(query)
            row = result.first()
        return self._to_customer(row) if row else None

    async def first(self) -> Customer | None:
        """Fetch the oldest customer."""
        customers = await self.find(limit=1)
        return customers[0] if customers else None

    async def stream(
        self,
        created_after: datetime | None = None,
        batch_size: int = 500,
    ) -> AsyncIterator[Customer]:
        """
        Iterate over the whole collection ascending by creation time.

        Uses keyset pagination on (created_at, id), so no cursor is held open
        between batches and records written during iteration do not shift the
        position. The iterator is finite; call again to restart from the beginning.
        """
        last: Customer | None = None

        while True:
            query = self._ordered(created_after).limit(batch_size)
            if last is not None:
                last_created_at = _utc(last.created_at)
                query = query.where(
                    or_(
                        self.table.c.created_at > last_created_at,
                        and_(
                            self.table.c.created_at == last_created_at,
                            self.table.c.id > last.id,
                        ),
                    )
                )

            async with self.engine.connect() as conn:
                result = await conn.execute(query)
                rows = result.all()

            for row in rows:
                last = self._to_customer(row)
                yield last

            if len(rows) < batch_size:
                return

    def _insert_new(self) -> Insert:
        """INSERT that leaves already stored ids untouched and returns the inserted ids."""
        dialect = self.engine.dialect.name
        if dialect == "postgresql":
            stmt = postgresql.insert(self.table)
        elif dialect == "sqlite":
            stmt = sqlite.insert(self.table)
        else:
            raise NotImplementedError(f"Unsupported database dialect: {dialect}")

        return stmt.on_conflict_do_nothing(index_elements=[self.table.c.id]).returning(
            self.table.c.id
        )

    async def insert_one(self, customer: Customer) -> bool:
        """
        Insert a single customer.

        Returns:
            False if a customer with the same id was already stored
        """
        async with self.engine.begin() as conn:
            result = await conn.execute(self._insert_new().values(**self._to_values(customer)))
            inserted = result.first() is not None

        if not inserted:
            logger.debug(f"Customer {customer.id} already in {self.name}, skipped")
        return inserted

    async def insert_many(self, customers: Iterable[Customer]) -> int:
        """
        Insert customers in one transaction.

        Returns:
            Number of customers inserted, not counting ids already stored
        """
        values = [self._to_values(customer) for customer in customers]
        if not values:
            return 0

        async with self.engine.begin() as conn:
            result = await conn.execute(self._insert_new(), values)
            inserted = len(result.all())

        if inserted < len(values):
            logger.debug(f"Skipped {len(values) - inserted} customers already in {self.name}")
        logger.debug(f"Inserted {inserted} customers into {self.name}")
        return inserted

    async def update_one(self, customer: Customer) -> bool:
        """
        Overwrite every field of the customer with the same id.

        Returns:
            True if a record was updated
        """
        values = self._to_values(customer)
        customer_id = values.pop("id")

        async with self.engine.begin() as conn:
            result = await conn.execute(
                self.table.update().where(self.table.c.id == customer_id).values(**values)
            )
            return result.rowcount > 0

    async def count(self) -> int:
        """Count customers in the collection."""
        async with self.engine.connect() as conn:
            result = await conn.execute(select(func.count()).select_from(self.table))
            return result.scalar() or 0
