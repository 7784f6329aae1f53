"""Database models."""

from anonsync.models.customer import customer_table, new_customer_id

__all__ = ["customer_table", "new_customer_id"]
