"""Synthetic customer generator feeding the source collection."""

import random
from datetime import UTC, datetime

from anonsync.models import new_customer_id
from anonsync.schemas import Address, Customer
from anonsync.services.collection import CustomerCollection

FIRST_NAMES = [
    "Ada", "Bruno", "Chloe", "Dmitri", "Elena", "Farah", "Gustavo", "Hana",
    "Igor", "Jane", "Kofi", "Lucia", "Mateo", "Nadia", "Oscar", "Priya",
]
LAST_NAMES = [
    "Anders", "Baker", "Castillo", "Doe", "Eriksen", "Fischer", "Garcia", "Haddad",
    "Ivanova", "Jensen", "Kowalski", "Lopez", "Moreau", "Nakamura", "Okafor", "Petrov",
]
EMAIL_DOMAINS = ["example.com", "example.org", "mail.test", "inbox.test"]
PLACES = [
    ("Springfield", "Illinois", "US"),
    ("Portland", "Oregon", "US"),
    ("Austin", "Texas", "US"),
    ("Toronto", "Ontario", "CA"),
    ("Manchester", "England", "GB"),
    ("Lyon", "Auvergne-Rhone-Alpes", "FR"),
]

MIN_BATCH = 1
MAX_BATCH = 9


def fake_customer(rng: random.Random | None = None, now: datetime | None = None) -> Customer:
    """Build a random customer created at ``now``."""
    rng = rng or random.Random()
    first_name = rng.choice(FIRST_NAMES)
    last_name = rng.choice(LAST_NAMES)
    city, state, country = rng.choice(PLACES)
    email = f"{first_name}.{last_name}{rng.randint(1, 999)}@{rng.choice(EMAIL_DOMAINS)}".lower()

    return Customer(
        id=new_customer_id(),
        first_name=first_name,
        last_name=last_name,
        email=email,
        address=Address(
            line1=f"{rng.randint(1, 99999)} Kurt Spur",
            line2=f"Suite {rng.randint(1, 999):03d}",
            postcode=f"{rng.randint(0, 99999):05d}",
            city=city,
            state=state,
            country=country,
        ),
        created_at=now or datetime.now(UTC),
    )


async def generate_batch(source: CustomerCollection, rng: random.Random | None = None) -> int:
    """
    Insert a random batch of fake customers into the source collection.

    Returns:
        Number of customers inserted
    """
    rng = rng or random.Random()
    count = rng.randint(MIN_BATCH, MAX_BATCH)
    return await source.insert_many(fake_customer(rng) for _ in range(count))
