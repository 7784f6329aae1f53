"""Irreversible anonymization of customer records."""

import hashlib

from anonsync.schemas import Customer

DIGEST_LENGTH = 8


def hex_digest(value: str) -> str:
    """Return the first 8 hex characters of the SHA-256 digest of ``value``."""
    return hashlib.sha256(value.encode("utf-8")).hexdigest()[:DIGEST_LENGTH]


def anonymize_email(email: str) -> str:
    """Digest the local part of an email address and keep its domain."""
    login, host = email.split("@", 1)
    return f"{hex_digest(login)}@{host}"


def anonymize_customer(customer: Customer) -> Customer:
    """
    Build the anonymized copy of a source customer.

    Id and ``created_at`` are kept as-is. Names, the email local part,
    address lines and postcode are digested; city, state and country pass
    through. The same input always produces the same output, which is what
    lets reconciliation detect unchanged records by equality.

    Raises:
        ValueError: If the email has no ``@``.
    """
    address = customer.address
    line2 = hex_digest(address.line2) if address.line2 is not None else None
    return customer.model_copy(
        update={
            "first_name": hex_digest(customer.first_name),
            "last_name": hex_digest(customer.last_name),
            "email": anonymize_email(customer.email),
            "address": address.model_copy(
                update={
                    "line1": hex_digest(address.line1),
                    "line2": line2,
                    "postcode": hex_digest(address.postcode),
                }
            ),
        }
    )
