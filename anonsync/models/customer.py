"""Customer table layout shared by the source and target collections."""

import uuid

from sqlalchemy import Column, DateTime, Index, MetaData, String, Table


def new_customer_id() -> str:
    """Generate an opaque store-assigned customer id."""
    return uuid.uuid4().hex


def customer_table(name: str, metadata: MetaData) -> Table:
    """
    Build a customer table named ``name``.

    Source and target collections share this layout; the target keeps the
    source id as its primary key and ``created_at`` as the replication cursor.
    """
    table = Table(
        name,
        metadata,
        Column("id", String(32), primary_key=True, default=new_customer_id),
        Column("first_name", String(255), nullable=False),
        Column("last_name", String(255), nullable=False),
        Column("email", String(320), nullable=False),
        # Postal address
        Column("address_line1", String(255), nullable=False),
        Column("address_line2", String(255)),
        Column("address_postcode", String(32), nullable=False),
        Column("address_city", String(255), nullable=False),
        Column("address_state", String(255), nullable=False),
        Column("address_country", String(64), nullable=False),
        Column("created_at", DateTime(timezone=True), nullable=False),
    )
    # Cursor pagination index
    Index(f"idx_{name}_cursor", table.c.created_at, table.c.id)
    return table
