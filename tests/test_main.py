"""Tests for the command line entry points."""

from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest

from anonsync.config import Settings
from anonsync.database import build_tables
from anonsync.main import parse_args, prepare_db, run, run_generator
from anonsync.services import Pursuer
from anonsync.services.anonymizer import anonymize_customer


class TestParseArgs:
    """Tests for parse_args."""

    def test_default_is_continuous(self):
        assert parse_args([]).full_reindex is False

    def test_full_reindex_flag(self):
        assert parse_args(["--full-reindex"]).full_reindex is True


class TestRun:
    """Tests for mode selection."""

    @pytest.mark.asyncio
    async def test_missing_configuration_does_nothing(self):
        """Test missing store settings exit cleanly without touching the store."""
        settings = Settings(_env_file=None, source_collection="customers")

        with patch("anonsync.main.create_engine") as create_engine:
            assert await run(settings) == 0
            assert await run(settings, full_reindex=True) == 0

        create_engine.assert_not_called()

    @pytest.mark.asyncio
    async def test_full_reindex_when_locked_exits_immediately(self, test_settings):
        """Test a held lock means zero store reads or writes."""
        Path(test_settings.lock_path).touch()

        with patch("anonsync.main.create_engine") as create_engine:
            assert await run(test_settings, full_reindex=True) == 0

        create_engine.assert_not_called()
        assert not Path(test_settings.checkpoint_path).exists()
        # Lock belongs to the other run
        assert Path(test_settings.lock_path).exists()

    @pytest.mark.asyncio
    async def test_full_reindex_copies_and_stores_pointer(
        self, test_settings, source, target, checkpoint, make_customer, sample_datetime
    ):
        """Test a full reindex run fills the target, stores the pointer and releases the lock."""
        customer = make_customer()
        await source.insert_one(customer)

        assert await run(test_settings, full_reindex=True) == 0

        assert await target.find_one(customer.id) == anonymize_customer(customer)
        assert checkpoint.load() == sample_datetime
        assert not Path(test_settings.lock_path).exists()

    @pytest.mark.asyncio
    async def test_full_reindex_failure_releases_lock(self, test_settings):
        """Test the lock is released before a reindex failure propagates."""
        with patch("anonsync.main.FullReindexer.run", AsyncMock(side_effect=RuntimeError("boom"))):
            with pytest.raises(RuntimeError, match="boom"):
                await run(test_settings, full_reindex=True)

        assert not Path(test_settings.lock_path).exists()

    @pytest.mark.asyncio
    async def test_continuous_starts_pursuer_and_updater(self, test_settings):
        """Test continuous mode schedules the Pursuer and runs the Updater."""
        settings = test_settings.model_copy(update={"buffer_size": 50, "updater_backoff_ms": 500})

        with (
            patch("anonsync.main.setup_scheduler") as setup_scheduler,
            patch("anonsync.main.shutdown_scheduler") as shutdown_scheduler,
            patch("anonsync.main.Updater.start", AsyncMock()) as start,
        ):
            assert await run(settings) == 0

        pursuer = setup_scheduler.call_args.kwargs["pursuer"]
        assert isinstance(pursuer, Pursuer)
        assert pursuer.window == 50
        start.assert_awaited_once()
        shutdown_scheduler.assert_called_once()


class TestRunGenerator:
    """Tests for the customer generator entry point."""

    @pytest.mark.asyncio
    async def test_missing_configuration_does_nothing(self):
        settings = Settings(_env_file=None)

        with patch("anonsync.main.create_engine") as create_engine:
            assert await run_generator(settings) == 0

        create_engine.assert_not_called()

    @pytest.mark.asyncio
    async def test_schedules_generator(self, test_settings):
        """Test the generator job is scheduled against the source collection."""
        with (
            patch("anonsync.main.setup_scheduler") as setup_scheduler,
            patch("anonsync.main.shutdown_scheduler"),
            patch("anonsync.main.wait_forever", AsyncMock()),
        ):
            assert await run_generator(test_settings) == 0

        source = setup_scheduler.call_args.kwargs["generator_source"]
        assert source.name == "customers"


class TestPrepareDb:
    """Tests for schema bootstrap."""

    @pytest.mark.asyncio
    async def test_check_only_reports_missing_tables(self, test_settings, async_engine):
        """Test disabled table creation fails fast on a missing schema."""
        settings = test_settings.model_copy(update={"create_tables": False})
        source_table, target_table = build_tables(settings)

        with pytest.raises(RuntimeError, match="customers"):
            await prepare_db(async_engine, settings, source_table, target_table)

        await prepare_db(async_engine, test_settings, source_table, target_table)
        await prepare_db(async_engine, settings, source_table, target_table)
