"""Tests for the fake customer generator and scheduled jobs."""

import random
from unittest.mock import AsyncMock

import pytest

from anonsync.generator import MAX_BATCH, MIN_BATCH, fake_customer, generate_batch
from anonsync.services.anonymizer import anonymize_customer
from anonsync.tasks import scheduler as scheduler_module
from anonsync.tasks.scheduler import pursue_job, setup_scheduler, shutdown_scheduler


class TestGenerator:
    """Tests for fake_customer and generate_batch."""

    def test_fake_customer_is_anonymizable(self, sample_datetime):
        """Test generated customers carry a valid email and the given timestamp."""
        customer = fake_customer(random.Random(7), now=sample_datetime)

        assert "@" in customer.email
        assert len(customer.id) == 32
        assert customer.created_at == sample_datetime
        assert anonymize_customer(customer).address.city == customer.address.city

    def test_fake_customer_unique_ids(self):
        rng = random.Random(1)
        assert fake_customer(rng).id != fake_customer(rng).id

    @pytest.mark.asyncio
    async def test_generate_batch(self, source):
        """Test a batch of 1 to 9 customers lands in the source."""
        count = await generate_batch(source, random.Random(3))

        assert MIN_BATCH <= count <= MAX_BATCH
        assert await source.count() == count


class TestScheduler:
    """Tests for the background scheduler."""

    @pytest.mark.asyncio
    async def test_pursue_job_logs_failures(self, caplog):
        """Test a failing tick is logged and does not escape the job."""
        pursuer = AsyncMock()
        pursuer.tick.side_effect = RuntimeError("store unavailable")

        await pursue_job(pursuer)

        assert "Pursuer tick failed" in caplog.text

    @pytest.mark.asyncio
    async def test_setup_serializes_ticks(self, test_settings):
        """Test Pursuer ticks never overlap."""
        pursuer = AsyncMock()

        scheduler = setup_scheduler(test_settings, pursuer=pursuer)
        try:
            job = scheduler.get_job("pursue")
            assert job.max_instances == 1
            assert job.coalesce is True
            assert job.trigger.interval.total_seconds() == 1.0
            assert scheduler.get_job("generate_customers") is None
        finally:
            shutdown_scheduler()

        assert scheduler_module.scheduler is None
