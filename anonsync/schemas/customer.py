"""Pydantic schemas for customer records."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class Address(BaseModel):
    """Postal address of a customer."""

    model_config = ConfigDict(frozen=True)

    line1: str
    line2: str | None = None
    postcode: str
    city: str
    state: str
    country: str


class Customer(BaseModel):
    """Customer record as stored in the source and target collections."""

    model_config = ConfigDict(frozen=True)

    id: str
    first_name: str
    last_name: str
    email: str
    address: Address
    created_at: datetime
