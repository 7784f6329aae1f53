"""Pydantic schemas for replicated records."""

from anonsync.schemas.customer import Address, Customer

__all__ = ["Address", "Customer"]
